"""
Car Selection (group control)

This package provides the pluggable policies that decide which attached
car serves the request at the head of the dispatcher's queue.
"""

__version__ = "0.1.0"

from .interfaces.car_selector import ICarSelector
from .algorithms.first_available import FirstAvailableSelector
from .algorithms.nearest_car import NearestCarSelector


def create_selector(config, num_floors: int = 10) -> ICarSelector:
    """
    Build a selector from a SelectorConfig (or anything with .name/.parameters)

    Raises:
        ValueError: Unknown selector name
    """
    name = config.name
    parameters = dict(config.parameters or {})
    if name == "FirstAvailable":
        return FirstAvailableSelector()
    if name == "NearestCar":
        parameters.setdefault('num_floors', num_floors)
        return NearestCarSelector(**parameters)
    raise ValueError(f"Unknown selector: {name}")


__all__ = ['ICarSelector', 'FirstAvailableSelector', 'NearestCarSelector', 'create_selector']
