"""
Dispatcher error types

Every error raised at the dispatcher boundary derives from DispatchError,
so callers can catch the whole family or a specific condition.

Errors carrying an id keep only that id in `args` and build their message
in __str__, so re-raising with `type(e)(*e.args)` reproduces them exactly.
"""


class DispatchError(Exception):
    """Base class for all dispatcher errors"""
    pass


class InvalidRequestError(DispatchError, ValueError):
    """Raised when a request names a floor or direction the building cannot serve"""

    def __init__(self, message: str, request=None) -> None:
        super().__init__(message)
        self.request = request


class DuplicateRequestError(DispatchError, ValueError):
    """Raised when a request id is queued twice or re-queued after removal"""

    def __init__(self, request_id: str) -> None:
        super().__init__(request_id)
        self.request_id = request_id

    def __str__(self) -> str:
        return f'Request {self.request_id} is already queued or has been retired'


class UnknownCarError(DispatchError, KeyError):
    """Raised when a car id is not attached to the dispatcher"""

    def __init__(self, car_id: str) -> None:
        super().__init__(car_id)
        self.car_id = car_id

    def __str__(self) -> str:
        return f'Car {self.car_id} is not attached'


class CarAlreadyAttachedError(DispatchError, ValueError):
    """Raised when attaching a car whose id is already managed"""

    def __init__(self, car_id: str) -> None:
        super().__init__(car_id)
        self.car_id = car_id

    def __str__(self) -> str:
        return f'Car {self.car_id} is already attached'


class CarMovementError(DispatchError, RuntimeError):
    """Raised when a car is asked to travel past a terminal floor"""
    pass
