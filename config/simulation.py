"""
Simulation Configuration

Physical specifications of the building and car, dispatcher tuning, and the
scripted call sequence the demo harness plays back.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass
class BuildingConfig:
    """Building specifications"""
    num_floors: int = 10

    def __post_init__(self):
        if self.num_floors < 2:
            raise ValueError("num_floors must be at least 2")


@dataclass
class CarConfig:
    """Car specifications"""
    num_cars: int = 1
    start_floor: int = 1
    capacity_max: float = 1200.0  # tracked, not enforced
    velocity: float = 1.0  # seconds per floor
    door_dwell: Optional[float] = None  # seconds; None = 2 x velocity

    def __post_init__(self):
        if self.num_cars < 1:
            raise ValueError("num_cars must be at least 1")
        if self.start_floor < 1:
            raise ValueError("start_floor must be at least 1")
        if self.capacity_max <= 0:
            raise ValueError("capacity_max must be positive")
        if self.velocity <= 0:
            raise ValueError("velocity must be positive")
        if self.door_dwell is not None and self.door_dwell <= 0:
            raise ValueError("door_dwell must be positive")

    @property
    def effective_door_dwell(self) -> float:
        return self.door_dwell if self.door_dwell is not None else 2 * self.velocity


@dataclass
class DispatcherConfig:
    """Dispatcher tuning"""
    retry_backoff: float = 1.0  # first wait after "no car available"
    retry_backoff_max: float = 30.0

    def __post_init__(self):
        if self.retry_backoff <= 0:
            raise ValueError("retry_backoff must be positive")
        if self.retry_backoff_max < self.retry_backoff:
            raise ValueError("retry_backoff_max cannot be smaller than retry_backoff")


@dataclass
class ScriptedCall:
    """One scripted floor call: after `delay` seconds a rider at `floor` presses `direction`"""
    delay: float
    floor: int
    direction: str
    destination_floor: Optional[int] = None

    def __post_init__(self):
        if self.delay < 0:
            raise ValueError("call delay cannot be negative")
        if self.direction not in ["UP", "DOWN"]:
            raise ValueError("call direction must be 'UP' or 'DOWN'")

    @classmethod
    def from_dict(cls, data: dict) -> 'ScriptedCall':
        return cls(
            delay=data.get('delay', 0.0),
            floor=data['floor'],
            direction=data['direction'],
            destination_floor=data.get('destination_floor'),
        )

    def to_dict(self) -> dict:
        result = {'delay': self.delay, 'floor': self.floor, 'direction': self.direction}
        if self.destination_floor is not None:
            result['destination_floor'] = self.destination_floor
        return result


@dataclass
class TrafficConfig:
    """Traffic configuration (scripted calls)"""
    calls: List[ScriptedCall] = field(default_factory=list)
    simulation_duration: Optional[float] = None  # None = run until the queue drains

    def __post_init__(self):
        if self.simulation_duration is not None and self.simulation_duration <= 0:
            raise ValueError("simulation_duration must be positive")


@dataclass
class SimulationConfig:
    """
    Complete simulation configuration

    Combines building, car, dispatcher and traffic settings.
    """
    building: BuildingConfig
    car: CarConfig
    dispatcher: DispatcherConfig
    traffic: TrafficConfig

    # Simulation control
    realtime_factor: float = 0.0  # 0.0 = as fast as possible, 1.0 = realtime
    verbose: bool = True

    def __post_init__(self):
        if self.realtime_factor < 0:
            raise ValueError("realtime_factor cannot be negative")

    @classmethod
    def from_dict(cls, data: dict) -> 'SimulationConfig':
        """Create SimulationConfig from dictionary"""
        sim_data = data.get('simulation', data)

        building_data = sim_data.get('building', {})
        building = BuildingConfig(
            num_floors=building_data.get('num_floors', 10)
        )

        car_data = sim_data.get('car', {})
        car = CarConfig(
            num_cars=car_data.get('num_cars', 1),
            start_floor=car_data.get('start_floor', 1),
            capacity_max=car_data.get('capacity_max', 1200.0),
            velocity=car_data.get('velocity', 1.0),
            door_dwell=car_data.get('door_dwell')
        )

        dispatcher_data = sim_data.get('dispatcher', {})
        dispatcher = DispatcherConfig(
            retry_backoff=dispatcher_data.get('retry_backoff', 1.0),
            retry_backoff_max=dispatcher_data.get('retry_backoff_max', 30.0)
        )

        traffic_data = sim_data.get('traffic', {})
        traffic = TrafficConfig(
            calls=[ScriptedCall.from_dict(c) for c in traffic_data.get('calls', [])],
            simulation_duration=traffic_data.get('simulation_duration')
        )

        return cls(
            building=building,
            car=car,
            dispatcher=dispatcher,
            traffic=traffic,
            realtime_factor=sim_data.get('realtime_factor', 0.0),
            verbose=sim_data.get('verbose', True)
        )

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization"""
        car: Dict[str, Any] = {
            'num_cars': self.car.num_cars,
            'start_floor': self.car.start_floor,
            'capacity_max': self.car.capacity_max,
            'velocity': self.car.velocity,
        }
        if self.car.door_dwell is not None:
            car['door_dwell'] = self.car.door_dwell

        traffic: Dict[str, Any] = {'calls': [c.to_dict() for c in self.traffic.calls]}
        if self.traffic.simulation_duration is not None:
            traffic['simulation_duration'] = self.traffic.simulation_duration

        return {
            'simulation': {
                'building': {
                    'num_floors': self.building.num_floors
                },
                'car': car,
                'dispatcher': {
                    'retry_backoff': self.dispatcher.retry_backoff,
                    'retry_backoff_max': self.dispatcher.retry_backoff_max
                },
                'traffic': traffic,
                'realtime_factor': self.realtime_factor,
                'verbose': self.verbose
            }
        }

    def validate(self):
        """Validate configuration consistency"""
        num_floors = self.building.num_floors
        if self.car.start_floor > num_floors:
            raise ValueError(f"car.start_floor ({self.car.start_floor}) cannot exceed building.num_floors ({num_floors})")

        for call in self.traffic.calls:
            if not (1 <= call.floor <= num_floors):
                raise ValueError(f"call floor {call.floor} must be between 1 and {num_floors}")
            if call.destination_floor is not None:
                if not (1 <= call.destination_floor <= num_floors):
                    raise ValueError(f"call destination {call.destination_floor} must be between 1 and {num_floors}")
                if call.destination_floor == call.floor:
                    raise ValueError(f"call at floor {call.floor} has itself as destination")
