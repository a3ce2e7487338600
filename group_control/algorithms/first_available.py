"""
First Available Strategy

Default selection policy: hand the request to the first attached car that
is not reserved for an operator.
"""

from typing import Any, Dict, Optional

from simulator.core.request import Request
from ..interfaces.car_selector import ICarSelector


class FirstAvailableSelector(ICarSelector):
    """Picks cars in attachment order, skipping DISABLED and OVERRIDE cars."""

    def select_car(
        self,
        request: Request,
        car_statuses: Dict[str, Dict[str, Any]]
    ) -> Optional[str]:
        for car_id, status in car_statuses.items():
            if self.is_selectable(status):
                return car_id
        return None

    def get_strategy_name(self) -> str:
        return "First Available"
