import simpy
from typing import Callable, Dict, List, Optional

from .entity import Entity
from .car import Car
from .request import CarMode, Direction, Request
from .request_queue import RequestQueue
from ..infrastructure.message_broker import MessageBroker
from ..errors import CarAlreadyAttachedError, DuplicateRequestError, InvalidRequestError, UnknownCarError


class Dispatcher(Entity):
    """
    Dispatcher for a single elevator car

    Holds the queue of outstanding requests and runs one dispatch cycle at a
    time: take the head request, ask the selector for a car, drive that car
    floor by floor toward the request, and open the doors wherever queued
    requests can be served on the way (batching).

    States: STOPPED, WAITING_FOR_WORK, WAITING_FOR_CAR, DISPATCHING
    """

    STATE_TOPIC = "dispatcher/state"
    QUEUE_TOPIC = "dispatcher/queue"
    NO_CAR_TOPIC = "dispatcher/no_car_available"

    # Fresh-id draws before giving up on a factory that only returns used ids
    MAX_ID_ATTEMPTS = 1000

    def __init__(self, env: simpy.Environment, name: str, broker: MessageBroker, max_floor: int,
                 selector=None, id_factory: Callable[[], str] = None,
                 retry_backoff: float = 1.0, retry_backoff_max: float = 30.0,
                 autostart: bool = True):
        """
        Args:
            env: SimPy environment
            name: Dispatcher name (for logs)
            broker: Observer hook for every state transition
            max_floor: Top floor of the building; requests must lie in [1, max_floor]
            selector: ICarSelector choosing the car for each cycle (default: FirstAvailableSelector)
            id_factory: Callable returning fresh request ids (default: RequestIdGenerator)
            retry_backoff: First wait (seconds) after "no car available"
            retry_backoff_max: Upper bound of the doubling back-off
            autostart: Start with the run flag set
        """
        if max_floor < 2:
            raise ValueError("max_floor must be at least 2")
        if retry_backoff <= 0:
            raise ValueError("retry_backoff must be positive")
        if retry_backoff_max < retry_backoff:
            raise ValueError("retry_backoff_max cannot be smaller than retry_backoff")

        if selector is None:
            # Imported here: group_control depends on simulator.core.request
            from group_control.algorithms.first_available import FirstAvailableSelector
            selector = FirstAvailableSelector()
        if id_factory is None:
            from .request import RequestIdGenerator
            id_factory = RequestIdGenerator()

        self.broker = broker
        self.max_floor = max_floor
        self.selector = selector
        self.id_factory = id_factory
        self.retry_backoff = retry_backoff
        self.retry_backoff_max = retry_backoff_max

        self.cars: Dict[str, Car] = {}
        self.queue = RequestQueue()
        self.running = autostart
        self.cycles_completed = 0

        # One-shot wake-up events, replaced after every trigger
        self._work_event = env.event()
        self._resume_event = env.event()
        self._capacity_event = env.event()

        super().__init__(env, name)
        self.set_state("WAITING_FOR_WORK" if autostart else "STOPPED")

    def _on_state_changed(self, old_state: str, new_state: str):
        super()._on_state_changed(old_state, new_state)
        self.broker.put(self.STATE_TOPIC, {
            "timestamp": self.env.now,
            "dispatcher": self.name,
            "old_state": old_state,
            "new_state": new_state,
        })

    # --- Car management ---

    def attach(self, car: Car):
        """Add a car to the managed set."""
        if car.car_id in self.cars:
            raise CarAlreadyAttachedError(car.car_id)
        if car.max_floor != self.max_floor:
            raise ValueError(f"Car {car.car_id} serves floors 1-{car.max_floor}, building has 1-{self.max_floor}")
        self.cars[car.car_id] = car
        print(f"{self.env.now:.2f} [{self.name}] Car '{car.car_id}' attached.")
        self._notify_capacity()

    def detach(self, car_id: str) -> Car:
        """
        Remove a car from the managed set. A cycle already driving the car
        finishes normally; later cycles no longer see it.

        Raises:
            UnknownCarError: car_id is not attached
        """
        if car_id not in self.cars:
            raise UnknownCarError(car_id)
        car = self.cars.pop(car_id)
        print(f"{self.env.now:.2f} [{self.name}] Car '{car_id}' detached.")
        return car

    def set_car_mode(self, car_id: str, mode: CarMode):
        """Operator hook for DISABLED / OVERRIDE and for returning a car to service."""
        if car_id not in self.cars:
            raise UnknownCarError(car_id)
        car = self.cars[car_id]
        car.set_mode(mode)
        if car.is_available():
            self._notify_capacity()

    # --- Requests ---

    def call_elevator(self, request: Request) -> Request:
        """
        Validate and enqueue a request. Returns immediately.

        Raises:
            InvalidRequestError: floor or direction out of range
            DuplicateRequestError: request id already queued or retired
        """
        self.validate_request(request)
        self.queue.enqueue(request)
        self._publish_queue_event("ENQUEUED", request)
        self._notify_work()
        return request

    def floor_call(self, floor: int, direction: Direction, destination_floor: Optional[int] = None) -> Request:
        """Create and enqueue a FloorCall with a fresh id."""
        request = Request.floor_call(self._next_request_id(), floor, direction,
                                     destination_floor=destination_floor, created_at=self.env.now)
        return self.call_elevator(request)

    def destination(self, floor: int, origin_id: Optional[str] = None) -> Request:
        """Create and enqueue a Destination request with a fresh id."""
        request = Request.destination(self._next_request_id(), floor, origin_id=origin_id, created_at=self.env.now)
        return self.call_elevator(request)

    def validate_request(self, request: Request):
        if not self._floor_in_range(request.floor):
            raise InvalidRequestError(f"Floor {request.floor} outside 1-{self.max_floor}", request)
        if request.is_floor_call:
            if request.direction not in (Direction.UP, Direction.DOWN):
                raise InvalidRequestError(f"Floor call direction must be UP or DOWN, got {request.direction.value}", request)
            if request.destination_floor is not None:
                if not self._floor_in_range(request.destination_floor):
                    raise InvalidRequestError(f"Destination floor {request.destination_floor} outside 1-{self.max_floor}", request)
                if request.destination_floor == request.floor:
                    raise InvalidRequestError(f"Destination floor equals call floor {request.floor}", request)
        elif request.direction != Direction.GOTO:
            raise InvalidRequestError("Destination requests must use direction GOTO", request)

    def _floor_in_range(self, floor) -> bool:
        return isinstance(floor, int) and not isinstance(floor, bool) and 1 <= floor <= self.max_floor

    @property
    def pending_requests(self) -> List[Request]:
        return self.queue.snapshot()

    # --- Run flag ---

    @property
    def is_running(self) -> bool:
        return self.running

    def start(self):
        """Set the run flag and wake the loop. No-op when already running."""
        if self.running:
            return
        self.running = True
        print(f"{self.env.now:.2f} [{self.name}] Started.")
        if not self._resume_event.triggered:
            self._resume_event.succeed()
        self._resume_event = self.env.event()

    def stop(self):
        """
        Clear the run flag. The loop notices at the top of its next cycle;
        a move or door dwell in progress is not interrupted. No-op when stopped.
        """
        if not self.running:
            return
        self.running = False
        print(f"{self.env.now:.2f} [{self.name}] Stop requested.")

    # --- Wake-up signals ---

    def _notify_work(self):
        if not self._work_event.triggered:
            self._work_event.succeed()
            self._work_event = self.env.event()

    def _notify_capacity(self):
        if not self._capacity_event.triggered:
            self._capacity_event.succeed()
            self._capacity_event = self.env.event()

    # --- Main loop ---

    def run(self):
        print(f"{self.env.now:.2f} [{self.name}] Dispatcher operational (floors 1-{self.max_floor}, "
              f"selector: {self.selector.get_strategy_name()}).")
        backoff = self.retry_backoff

        while True:
            if not self.running:
                self.set_state("STOPPED")
                yield self._resume_event
                continue

            next_request = self.queue.peek_first()
            if next_request is None:
                self.set_state("WAITING_FOR_WORK")
                yield self._work_event
                continue

            car = self._select_car(next_request)
            if car is None:
                self.set_state("WAITING_FOR_CAR")
                self._report_no_car(next_request, backoff)
                # Wake on attach / re-enable, or retry after the back-off
                yield self._capacity_event | self.env.timeout(backoff)
                backoff = min(backoff * 2, self.retry_backoff_max)
                continue

            backoff = self.retry_backoff
            self.set_state("DISPATCHING")
            yield from self._dispatch_cycle(car, next_request)

    def _select_car(self, request: Request) -> Optional[Car]:
        statuses = {car_id: car.status() for car_id, car in self.cars.items()}
        car_id = self.selector.select_car(request, statuses)
        if car_id is None:
            return None
        if car_id not in self.cars:
            raise UnknownCarError(car_id)
        return self.cars[car_id]

    def _report_no_car(self, request: Request, retry_in: float):
        print(f"{self.env.now:.2f} [{self.name}] No car available for {request}; retrying in {retry_in:.2f}s or on attach.")
        self.broker.put(self.NO_CAR_TOPIC, {
            "timestamp": self.env.now,
            "request": request.to_dict(),
            "retry_in": retry_in,
        })

    def _dispatch_cycle(self, car: Car, next_request: Request):
        """Drive `car` to the head request, stopping wherever the queue allows."""
        self._park_other_cars(car)
        car.set_mode(CarMode.ACTIVE)
        print(f"{self.env.now:.2f} [{self.name}] {car.car_id} at floor {car.floor} assigned {next_request}")

        if car.floor == next_request.floor:
            # Already there: serve the stop without moving
            if next_request.direction in (Direction.UP, Direction.DOWN):
                direction = next_request.direction
            else:
                direction = Direction.IDLE
            yield from self._serve_stop(car, next_request, direction)
        elif car.floor < next_request.floor:
            direction = Direction.UP
        else:
            direction = Direction.DOWN

        while car.floor != next_request.floor:
            yield from car.move(direction)
            if self._should_open(car, next_request, direction):
                yield from self._serve_stop(car, next_request, direction)

        self.cycles_completed += 1
        if not self.queue:
            car.set_mode(CarMode.IDLE)

    def _park_other_cars(self, selected: Car):
        """Only the car driven by the current cycle stays ACTIVE."""
        for car in self.cars.values():
            if car is not selected and car.mode == CarMode.ACTIVE:
                car.set_direction(Direction.IDLE)
                car.set_mode(CarMode.IDLE)

    def _should_open(self, car: Car, next_request: Request, direction: Direction) -> bool:
        if car.floor == next_request.floor:
            return True
        return bool(self.queue.matching(car.floor, direction))

    def _serve_stop(self, car: Car, next_request: Request, direction: Direction):
        """
        Open the doors at the current floor and retire what the stop satisfies.

        `direction` is the direction the car travelled in to reach this floor.
        """
        floor = car.floor
        at_target = floor == next_request.floor

        next_direction = self._lookahead(car, next_request, direction, at_target)
        car.set_direction(next_direction)

        yield from car.arrive()

        retired: List[Request] = []
        if at_target:
            head = self.queue.remove_by_id(next_request.request_id)
            if head is not None:
                retired.append(head)
        retired.extend(self.queue.remove_by_floor_and_direction(floor, direction))
        if car.is_at_terminal():
            # The car cannot keep going past a terminal floor
            retired.extend(self.queue.remove_by_floor_and_direction(floor, next_direction))

        for request in retired:
            self._publish_queue_event("DEQUEUED", request, car)

        for request in retired:
            if request.is_floor_call and request.destination_floor is not None:
                try:
                    request_id = self._next_request_id()
                except DuplicateRequestError as e:
                    print(f"{self.env.now:.2f} [{self.name}] Destination {request.destination_floor} "
                          f"for {request.request_id} dropped: {e}")
                    continue
                self.call_elevator(Request.destination(
                    request_id, request.destination_floor,
                    origin_id=request.request_id, created_at=self.env.now,
                ))

    def _next_request_id(self) -> str:
        """
        Draw from id_factory until the id is neither queued nor retired.

        Caller-built requests may already use ids from the factory's range.

        Raises:
            DuplicateRequestError: the factory kept returning used ids
        """
        request_id = None
        for _ in range(self.MAX_ID_ATTEMPTS):
            request_id = self.id_factory()
            if request_id not in self.queue and not self.queue.is_retired(request_id):
                return request_id
        raise DuplicateRequestError(request_id)

    def _lookahead(self, car: Car, next_request: Request, direction: Direction, at_target: bool) -> Direction:
        """Direction the car will leave this stop in."""
        if not at_target:
            # Still on the way to the head request
            return direction

        remaining = [
            r for r in self.queue.snapshot()
            if r.request_id != next_request.request_id and not r.matches(car.floor, direction)
        ]
        if not remaining:
            return Direction.IDLE
        if car.floor == car.max_floor:
            return Direction.DOWN
        if car.floor == 1:
            return Direction.UP

        head = remaining[0]
        if head.direction in (Direction.UP, Direction.DOWN):
            return head.direction
        if head.floor > car.floor:
            return Direction.UP
        if head.floor < car.floor:
            return Direction.DOWN
        return direction

    def _publish_queue_event(self, action: str, request: Request, car: Car = None):
        message = {
            "timestamp": self.env.now,
            "action": action,
            "request": request.to_dict(),
            "queue_length": len(self.queue),
        }
        if car is not None:
            message["car_id"] = car.car_id
            message["floor"] = car.floor
        self.broker.put(self.QUEUE_TOPIC, message)

    def __repr__(self) -> str:
        return f"<Dispatcher {self.name} cars={len(self.cars)} queued={len(self.queue)} state={self.state}>"
