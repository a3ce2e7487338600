"""Core dispatch entities"""

from .request import Direction, CarMode, RequestKind, Request, RequestIdGenerator
from .request_queue import RequestQueue
from .entity import Entity
from .car import Car
from .dispatcher import Dispatcher

__all__ = [
    'Direction',
    'CarMode',
    'RequestKind',
    'Request',
    'RequestIdGenerator',
    'RequestQueue',
    'Entity',
    'Car',
    'Dispatcher',
]
