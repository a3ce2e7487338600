"""Infrastructure components for simulation"""

from .message_broker import MessageBroker
from .realtime_env import RealtimeEnvironment, create_environment

__all__ = [
    'MessageBroker',
    'RealtimeEnvironment',
    'create_environment',
]
