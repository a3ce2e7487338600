"""
Group Control Configuration

Chooses the car selection policy the dispatcher asks once per cycle.
"""

from dataclasses import dataclass, field
from typing import Dict, Any


KNOWN_SELECTORS = ("FirstAvailable", "NearestCar")


@dataclass
class SelectorConfig:
    """Configuration for the car selection policy"""
    name: str = "FirstAvailable"
    parameters: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        if not self.name:
            raise ValueError("selector.name cannot be empty")


@dataclass
class GroupControlConfig:
    """Group control configuration (selection policy only)"""
    selector: SelectorConfig = field(default_factory=SelectorConfig)

    @classmethod
    def from_dict(cls, data: dict) -> 'GroupControlConfig':
        """Create GroupControlConfig from dictionary"""
        gc_data = data.get('group_control', data) or {}
        selector_data = gc_data.get('selector', {})
        selector = SelectorConfig(
            name=selector_data.get('name', 'FirstAvailable'),
            parameters=selector_data.get('parameters', {}) or {}
        )
        return cls(selector=selector)

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization"""
        return {
            'group_control': {
                'selector': {
                    'name': self.selector.name,
                    'parameters': self.selector.parameters
                }
            }
        }

    def validate(self):
        if self.selector.name not in KNOWN_SELECTORS:
            raise ValueError(f"Unknown selector '{self.selector.name}', expected one of {KNOWN_SELECTORS}")
