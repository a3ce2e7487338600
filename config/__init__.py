"""
Configuration management package

Provides configuration classes for car selection and simulation.
"""

from .group_control import (
    GroupControlConfig,
    SelectorConfig,
)

from .simulation import (
    SimulationConfig,
    BuildingConfig,
    CarConfig,
    DispatcherConfig,
    ScriptedCall,
    TrafficConfig
)

from .config_loader import (
    ConfigLoader,
    load_group_control_config,
    load_simulation_config,
    save_group_control_config,
    save_simulation_config
)

__all__ = [
    # Group control
    'GroupControlConfig',
    'SelectorConfig',

    # Simulation
    'SimulationConfig',
    'BuildingConfig',
    'CarConfig',
    'DispatcherConfig',
    'ScriptedCall',
    'TrafficConfig',

    # Loader
    'ConfigLoader',
    'load_group_control_config',
    'load_simulation_config',
    'save_group_control_config',
    'save_simulation_config',
]
