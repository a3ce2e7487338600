"""
Nearest Car Strategy

Distance-based car selection that accounts for the way a moving car has to
finish its sweep before it can turn around.
"""

from typing import Any, Dict, Optional

from simulator.core.request import Direction, Request
from ..interfaces.car_selector import ICarSelector


class NearestCarSelector(ICarSelector):
    """
    Nearest car selection strategy

    Selection Logic:
    - Idle cars (or cars with no direction): simple distance
    - Moving cars: circular movement
      * UP: goes to the top floor, then reverses to DOWN
      * DOWN: goes to floor 1, then reverses to UP
    - Load penalty: cars at or above capacity get a large distance penalty
    - DISABLED and OVERRIDE cars are never selected

    Usage:
        selector = NearestCarSelector(num_floors=10)
        car_id = selector.select_car(request, car_statuses)
    """

    FULL_LOAD_PENALTY = 1000

    def __init__(self, num_floors: int = 10):
        """
        Args:
            num_floors: Total number of floors in the building
        """
        self.num_floors = num_floors

    def select_car(
        self,
        request: Request,
        car_statuses: Dict[str, Dict[str, Any]]
    ) -> Optional[str]:
        best_car = None
        best_score = float('inf')

        for car_id, status in car_statuses.items():
            if not self.is_selectable(status):
                continue

            distance = self._calculate_circular_distance(
                status.get('floor', 1),
                status.get('direction', Direction.IDLE.value),
                request.floor,
                request.direction.value,
            )

            capacity_max = status.get('capacity_max')
            if capacity_max and status.get('capacity_used', 0) >= capacity_max:
                distance += self.FULL_LOAD_PENALTY

            # Strict comparison keeps attachment order on ties
            if distance < best_score:
                best_score = distance
                best_car = car_id

        if best_car is not None:
            print(f"[Selector] Selected {best_car} for floor {request.floor} with distance={best_score:.1f}")
        return best_car

    def _calculate_circular_distance(
        self,
        car_floor: int,
        direction: str,
        call_floor: int,
        call_direction: str
    ) -> float:
        """
        Estimated travel distance in floors

        Args:
            car_floor: Current floor of the car
            direction: Car direction (UP/DOWN/IDLE/GOTO)
            call_floor: Floor of the request
            call_direction: Direction of the request (UP/DOWN/GOTO)
        """
        if direction == 'UP':
            if call_direction in ('UP', 'GOTO') and call_floor >= car_floor:
                # Ahead of the car in its sweep
                return call_floor - car_floor
            return (self.num_floors - car_floor) + (self.num_floors - call_floor)

        if direction == 'DOWN':
            if call_direction in ('DOWN', 'GOTO') and call_floor <= car_floor:
                return car_floor - call_floor
            return (car_floor - 1) + (call_floor - 1)

        return abs(call_floor - car_floor)

    def get_strategy_name(self) -> str:
        return "Nearest Car (Circular Distance-based)"
