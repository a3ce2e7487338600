"""Group control interfaces"""

from .car_selector import ICarSelector, SELECTABLE_MODES

__all__ = ['ICarSelector', 'SELECTABLE_MODES']
