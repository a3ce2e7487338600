"""
Requests handled by the dispatcher, and the enums shared with the car.

Two kinds of request exist:
1. FLOOR_CALL - a rider waiting at a floor, carrying the travel direction
   they want. It may also carry the floor they will ask for once aboard
   (its destination policy).
2. DESTINATION - a rider already aboard; only the target floor matters,
   so its direction is always GOTO.
"""

import itertools
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

from ..errors import InvalidRequestError


class Direction(str, Enum):
    UP = "UP"
    DOWN = "DOWN"
    IDLE = "IDLE"
    GOTO = "GOTO"


class CarMode(str, Enum):
    IDLE = "IDLE"
    ACTIVE = "ACTIVE"
    DISABLED = "DISABLED"
    OVERRIDE = "OVERRIDE"


class RequestKind(str, Enum):
    FLOOR_CALL = "FLOOR_CALL"
    DESTINATION = "DESTINATION"


@dataclass(frozen=True)
class Request:
    """A unit of work for the dispatcher."""

    request_id: str
    kind: RequestKind
    floor: int
    direction: Direction
    destination_floor: Optional[int] = None  # FLOOR_CALL only
    origin_id: Optional[str] = None  # DESTINATION only, for traceability
    created_at: float = 0.0

    def __post_init__(self):
        # Accept plain strings ("UP", "FLOOR_CALL") from callers building requests by hand
        try:
            object.__setattr__(self, "kind", RequestKind(self.kind))
            object.__setattr__(self, "direction", Direction(self.direction))
        except ValueError as e:
            raise InvalidRequestError(f"Request {self.request_id}: {e}") from e

    @classmethod
    def floor_call(cls, request_id: str, floor: int, direction: Direction,
                   destination_floor: Optional[int] = None, created_at: float = 0.0) -> 'Request':
        return cls(
            request_id=request_id,
            kind=RequestKind.FLOOR_CALL,
            floor=floor,
            direction=direction,
            destination_floor=destination_floor,
            created_at=created_at,
        )

    @classmethod
    def destination(cls, request_id: str, floor: int, origin_id: Optional[str] = None,
                    created_at: float = 0.0) -> 'Request':
        return cls(
            request_id=request_id,
            kind=RequestKind.DESTINATION,
            floor=floor,
            direction=Direction.GOTO,
            origin_id=origin_id,
            created_at=created_at,
        )

    @property
    def is_floor_call(self) -> bool:
        return self.kind == RequestKind.FLOOR_CALL

    def matches(self, floor: int, direction: Direction) -> bool:
        """True when a stop at `floor` while heading `direction` satisfies this request."""
        if self.floor != floor:
            return False
        return self.direction == Direction.GOTO or self.direction == direction

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "request_id": self.request_id,
            "kind": self.kind.value,
            "floor": self.floor,
            "direction": self.direction.value,
            "created_at": self.created_at,
        }
        if self.destination_floor is not None:
            data["destination_floor"] = self.destination_floor
        if self.origin_id is not None:
            data["origin_id"] = self.origin_id
        return data

    def __str__(self) -> str:
        return f"<Request {self.request_id} {self.kind.value} floor={self.floor} direction={self.direction.value}>"


class RequestIdGenerator:
    """
    Monotonic request id source owned by a dispatcher.

    Ids are never reused within one generator: req-0001, req-0002, ...
    """

    def __init__(self, prefix: str = "req", start: int = 1):
        self.prefix = prefix
        self._counter = itertools.count(start)

    def __call__(self) -> str:
        return f"{self.prefix}-{next(self._counter):04d}"
