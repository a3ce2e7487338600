"""
Elevator Dispatch Simulator - core dispatch engine

This package provides the request queue, the car model and the dispatcher
that drives a car through a stream of floor calls and destinations.
"""

__version__ = "0.1.0"

from .core.request import Direction, CarMode, RequestKind, Request, RequestIdGenerator
from .core.request_queue import RequestQueue
from .core.car import Car
from .core.dispatcher import Dispatcher

from .infrastructure.message_broker import MessageBroker
from .infrastructure.realtime_env import RealtimeEnvironment, create_environment

from .errors import (
    DispatchError,
    InvalidRequestError,
    DuplicateRequestError,
    UnknownCarError,
    CarAlreadyAttachedError,
    CarMovementError,
)

__all__ = [
    'Direction',
    'CarMode',
    'RequestKind',
    'Request',
    'RequestIdGenerator',
    'RequestQueue',
    'Car',
    'Dispatcher',
    'MessageBroker',
    'RealtimeEnvironment',
    'create_environment',
    'DispatchError',
    'InvalidRequestError',
    'DuplicateRequestError',
    'UnknownCarError',
    'CarAlreadyAttachedError',
    'CarMovementError',
]
