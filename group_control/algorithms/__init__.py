"""Car selection algorithms"""

from .first_available import FirstAvailableSelector
from .nearest_car import NearestCarSelector

__all__ = ['FirstAvailableSelector', 'NearestCarSelector']
