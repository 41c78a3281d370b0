"""
lbm_fluid: a D2Q9 lattice-Boltzmann solver for 2D flow around obstacles.
"""

from .boundary import EdgeCondition, create_channel_walls, create_cylinder_mask
from .errors import ConfigurationError, LBMError, NumericalInstability, OutOfBounds
from .grid import Cell, CellType, Lattice
from .obstacles import ObstacleSpec
from .simulation import Simulation, SimulationConfig, SimulationState

__version__ = "0.1.0"

__all__ = [
    "Cell",
    "CellType",
    "ConfigurationError",
    "EdgeCondition",
    "LBMError",
    "Lattice",
    "NumericalInstability",
    "ObstacleSpec",
    "OutOfBounds",
    "Simulation",
    "SimulationConfig",
    "SimulationState",
    "create_channel_walls",
    "create_cylinder_mask",
]
