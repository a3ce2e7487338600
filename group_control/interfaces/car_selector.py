"""
Car Selector Interface

Defines how a car is chosen to serve the request at the head of the queue.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

from simulator.core.request import CarMode, Request


# Modes a selector may hand work to; DISABLED and OVERRIDE belong to operators
SELECTABLE_MODES = (CarMode.IDLE.value, CarMode.ACTIVE.value)


class ICarSelector(ABC):
    """
    Interface for car selection policies

    The dispatcher calls select_car() once per dispatch cycle with the head
    request and a status snapshot of every attached car. Returning None means
    "no car available": the request stays queued and the dispatcher retries.
    """

    @abstractmethod
    def select_car(
        self,
        request: Request,
        car_statuses: Dict[str, Dict[str, Any]]
    ) -> Optional[str]:
        """
        Select the car that should serve a request

        Args:
            request: Head request of the dispatcher's queue
            car_statuses: Status of every attached car, keyed by car id
                {
                    'Car_1': {
                        'floor': int,
                        'direction': str,   # 'UP', 'DOWN', 'IDLE', 'GOTO'
                        'mode': str,        # 'IDLE', 'ACTIVE', 'DISABLED', 'OVERRIDE'
                        'capacity_used': float,
                        'capacity_max': float,
                        'max_floor': int,
                        ...
                    },
                    ...
                }

        Returns:
            Id of the selected car, or None when no car can serve the request.
            Implementations must only return ids present in car_statuses.
        """
        pass

    @abstractmethod
    def get_strategy_name(self) -> str:
        """Strategy name (for logging and debugging)"""
        pass

    @staticmethod
    def is_selectable(status: Dict[str, Any]) -> bool:
        return bool(status) and status.get('mode') in SELECTABLE_MODES
