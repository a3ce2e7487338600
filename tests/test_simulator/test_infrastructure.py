"""
MessageBroker and environment factory tests
"""

import pytest
import simpy

from simulator.infrastructure.message_broker import MessageBroker
from simulator.infrastructure.realtime_env import RealtimeEnvironment, create_environment


def test_put_without_subscriber_only_reaches_broadcast(env, broker):
    assert broker.put("car/Car_1/status", {'floor': 1}) is None
    assert "car/Car_1/status" not in broker.topics
    assert len(broker.get_broadcast_pipe().items) == 1
    assert broker.get_broadcast_pipe().items[0] == {'topic': "car/Car_1/status", 'message': {'floor': 1}}


def test_subscriber_receives_messages_in_order(env, broker):
    received = []

    def subscriber():
        while True:
            message = yield broker.get("dispatcher/queue")
            received.append((env.now, message))

    def publisher():
        yield env.timeout(1)
        broker.put("dispatcher/queue", "first")
        yield env.timeout(1)
        broker.put("dispatcher/queue", "second")

    env.process(subscriber())
    env.process(publisher())
    env.run()

    assert received == [(1, "first"), (2, "second")]
    assert broker.get_current_time() == 2


def test_verbose_broker_prints(env, capsys):
    broker = MessageBroker(env)
    broker.put("dispatcher/state", {'new_state': 'DISPATCHING'})

    assert "[Broker] Publish on 'dispatcher/state'" in capsys.readouterr().out


def test_create_environment():
    plain = create_environment()
    assert type(plain) is simpy.Environment

    paced = create_environment(50.0)
    assert isinstance(paced, RealtimeEnvironment)
    assert paced.get_speed() == 50.0


def test_realtime_environment_runs_simulated_time():
    env = RealtimeEnvironment(speed_factor=100.0)

    def ticker():
        yield env.timeout(0.5)

    env.process(ticker())
    env.run()
    assert env.now == 0.5

    env.set_speed(0.0)
    assert env.get_speed() == 0.0
    with pytest.raises(ValueError):
        env.set_speed(-1.0)
    with pytest.raises(ValueError):
        RealtimeEnvironment(speed_factor=-2.0)
