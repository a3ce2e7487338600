"""
Shared fixtures for the dispatch simulation tests
"""

import sys
from pathlib import Path

# Add project root to path for imports
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

import matplotlib
matplotlib.use("Agg")

import pytest
import simpy

from simulator.infrastructure.message_broker import MessageBroker
from simulator.core.car import Car
from simulator.core.dispatcher import Dispatcher
from analyzer.statistics import DispatchStatistics


NUM_FLOORS = 10
SCENARIO_DIR = project_root / "scenarios"


@pytest.fixture
def env():
    return simpy.Environment()


@pytest.fixture
def broker(env):
    return MessageBroker(env, verbose=False)


@pytest.fixture
def statistics(env, broker):
    stats = DispatchStatistics(env, broker.get_broadcast_pipe())
    env.process(stats.start_listening())
    return stats


@pytest.fixture
def car(env, broker):
    return Car(env, "Car_1", broker, max_floor=NUM_FLOORS)


@pytest.fixture
def dispatcher(env, broker, statistics, car):
    dispatcher = Dispatcher(env, "Dispatcher", broker, max_floor=NUM_FLOORS)
    dispatcher.attach(car)
    return dispatcher
