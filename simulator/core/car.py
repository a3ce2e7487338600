import simpy
from ..infrastructure.message_broker import MessageBroker
from ..errors import CarMovementError
from .request import CarMode, Direction


class Car:
    """
    Mutable state of one elevator car.

    The car does not schedule itself: the dispatcher drives it by running
    move() and arrive() inside its own process (`yield from car.move(...)`).
    Those two generators are the only places where simulated time passes.
    """

    def __init__(self, env: simpy.Environment, car_id: str, broker: MessageBroker, max_floor: int,
                 start_floor: int = 1, velocity: float = 1.0, door_dwell: float = None,
                 capacity_max: float = 1200.0):
        """
        Args:
            env: SimPy environment
            car_id: Identity used in topics and by selectors
            broker: Observer hook every state change is published to
            max_floor: Top floor of the building (bottom floor is 1)
            start_floor: Floor the car starts at
            velocity: Simulated seconds to travel one floor
            door_dwell: Seconds the doors stay open at a stop (default: twice velocity)
            capacity_max: Maximum load, tracked but not enforced
        """
        if max_floor < 2:
            raise ValueError("max_floor must be at least 2")
        if not (1 <= start_floor <= max_floor):
            raise ValueError(f"start_floor must be between 1 and {max_floor}")
        if velocity <= 0:
            raise ValueError("velocity must be positive")

        self.env = env
        self.car_id = car_id
        self.broker = broker
        self.max_floor = max_floor
        self.floor = start_floor
        self.velocity = velocity
        self.door_dwell = door_dwell if door_dwell is not None else 2 * velocity
        self.capacity_max = capacity_max
        self.capacity_used = 0.0

        self.direction = Direction.IDLE
        self.mode = CarMode.IDLE
        self.door_state = "CLOSED"

        self.topic_prefix = f"car/{self.car_id}"
        print(f"{self.env.now:.2f} [{self.car_id}] Car ready at floor {self.floor} (max floor {self.max_floor}).")

    # --- State ---

    def set_mode(self, mode: CarMode):
        """Plain assignment; no transition table restricts which mode follows which."""
        mode = CarMode(mode)
        if self.mode != mode:
            old_mode = self.mode
            self.mode = mode
            self.broker.put(f"{self.topic_prefix}/mode", {
                "timestamp": self.env.now,
                "car_id": self.car_id,
                "old_mode": old_mode.value,
                "new_mode": mode.value,
            })
            self._report_status()

    def set_direction(self, direction: Direction):
        direction = Direction(direction)
        if self.direction != direction:
            self.direction = direction
            self._report_status()

    def is_available(self) -> bool:
        """Disabled and Override cars are reserved for operators."""
        return self.mode in (CarMode.IDLE, CarMode.ACTIVE)

    def is_at_terminal(self) -> bool:
        return self.floor == 1 or self.floor == self.max_floor

    def add_load(self, weight: float) -> float:
        self.capacity_used += weight
        return self.capacity_used

    def remove_load(self, weight: float) -> float:
        self.capacity_used = max(0.0, self.capacity_used - weight)
        return self.capacity_used

    # --- Timed operations (SimPy generators) ---

    def move(self, direction: Direction):
        """
        Travel one floor in `direction`. IDLE is a no-op.

        Raises:
            CarMovementError: direction is GOTO, or the move would leave [1, max_floor]
        """
        direction = Direction(direction)
        if direction == Direction.IDLE:
            return
        if direction == Direction.GOTO:
            raise CarMovementError(f"{self.car_id}: GOTO is not a travel direction")

        step = 1 if direction == Direction.UP else -1
        target = self.floor + step
        if not (1 <= target <= self.max_floor):
            raise CarMovementError(f"{self.car_id}: cannot move {direction.value} from floor {self.floor}")

        self.set_direction(direction)
        yield self.env.timeout(self.velocity)

        from_floor = self.floor
        self.floor = target
        print(f"{self.env.now:.2f} [{self.car_id}] Moved {from_floor} -> {self.floor} ({direction.value})")
        self.broker.put(f"{self.topic_prefix}/move", {
            "timestamp": self.env.now,
            "car_id": self.car_id,
            "from_floor": from_floor,
            "floor": self.floor,
            "direction": direction.value,
        })

    def arrive(self):
        """Open the doors, dwell, close them."""
        self._door_event("OPEN")
        yield self.env.timeout(self.door_dwell)
        self._door_event("CLOSE")

    # --- Observer messages ---

    def _door_event(self, event_type: str):
        self.door_state = "OPEN" if event_type == "OPEN" else "CLOSED"
        print(f"{self.env.now:.2f} [{self.car_id}] Doors {self.door_state} at floor {self.floor}")
        self.broker.put(f"{self.topic_prefix}/door_events", {
            "timestamp": self.env.now,
            "car_id": self.car_id,
            "event_type": event_type,
            "floor": self.floor,
        })

    def status(self) -> dict:
        return {
            "timestamp": self.env.now,
            "car_id": self.car_id,
            "floor": self.floor,
            "direction": self.direction.value,
            "mode": self.mode.value,
            "door_state": self.door_state,
            "capacity_used": self.capacity_used,
            "capacity_max": self.capacity_max,
            "max_floor": self.max_floor,
        }

    def _report_status(self):
        self.broker.put(f"{self.topic_prefix}/status", self.status())

    def __repr__(self) -> str:
        return (f"<Car {self.car_id} floor={self.floor} direction={self.direction.value} "
                f"mode={self.mode.value} load={self.capacity_used}/{self.capacity_max}>")
