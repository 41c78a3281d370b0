"""
D2Q9 Lattice Constants and Utilities

Defines the D2Q9 lattice model for 2D fluid simulations.

The arrays below are shared read-only by every component. They are never
owned by a cell.
"""
import numpy as np

from .errors import ConfigurationError

# D2Q9 lattice velocities, clockwise from the rest particle
#     8   1   2
#       \ | /
#     7 - 0 - 3
#       / | \
#     6   5   4

# Direction names, in storage order
DIRECTION_NAMES = ("rest", "N", "NE", "E", "SE", "S", "SW", "W", "NW")

# Lattice velocity components
EX = np.array([0, 0, 1, 1, 1, 0, -1, -1, -1], dtype=np.int32)
EY = np.array([0, 1, 1, 0, -1, -1, -1, 0, 1], dtype=np.int32)

# Lattice weights
W = np.array([4/9, 1/9, 1/36, 1/9, 1/36, 1/9, 1/36, 1/9, 1/36], dtype=np.float64)

# Opposite direction indices (for bounce-back)
OPPOSITE = np.array([0, 5, 6, 7, 8, 1, 2, 3, 4], dtype=np.int32)

for _table in (EX, EY, W, OPPOSITE):
    _table.setflags(write=False)
del _table

# Lattice sound speed squared
CS2 = 1.0 / 3.0
CS4 = CS2 * CS2

# Number of lattice velocities
Q = 9

# Known lattice models. Only D2Q9 is implemented.
LATTICE_MODELS = {
    "D2Q9": {"dimension": 2, "speeds": 9},
    "D3Q19": {"dimension": 3, "speeds": 19},
    "D3Q27": {"dimension": 3, "speeds": 27},
}


def reverse(i):
    """Return the direction opposite to direction ``i``."""
    return int(OPPOSITE[i])


def lattice_settings(name="D2Q9"):
    """
    Look up a lattice model by name.

    Parameters
    ----------
    name : str
        Model name, e.g. "D2Q9"

    Returns
    -------
    settings : dict
        Dimension and number of discrete speeds

    Raises
    ------
    ConfigurationError
        If the model is unknown or is not D2Q9
    """
    if name not in LATTICE_MODELS:
        raise ConfigurationError(f"Unknown lattice model {name!r}")
    if name != "D2Q9":
        raise ConfigurationError(
            f"Lattice model {name} is not supported, only D2Q9 is implemented"
        )
    return dict(LATTICE_MODELS[name])
