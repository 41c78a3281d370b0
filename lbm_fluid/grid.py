"""
Lattice Storage

Dense container for the distribution field of a rectangular D2Q9 lattice.

All per-cell data lives in NumPy arrays indexed ``[y, x]`` (row-major, flat
index ``y * nx + x``):

    - f     : distribution functions, shape (Q, ny, nx)
    - solid : obstacle mask, shape (ny, nx)
    - rho   : density field, shape (ny, nx)
    - ux,uy : velocity fields, shape (ny, nx)

Solid cells hold a zero distribution which is never read as source data.
"""

import enum
import numbers
from dataclasses import dataclass

import numpy as np

from .errors import OutOfBounds
from .lattice import EX, EY, W, Q


class CellType(enum.Enum):
    FLUID = "fluid"
    SOLID = "solid"


@dataclass(frozen=True)
class Cell:
    """
    Snapshot of a single lattice cell.

    Attributes
    ----------
    x, y : int
        Cell coordinates
    type : CellType
        Fluid or solid
    distribution : ndarray or None
        Distribution functions f_0..f_8 (None for solid cells)
    velocity : tuple
        Derived velocity (ux, uy), (0, 0) for solid cells
    """
    x: int
    y: int
    type: CellType = CellType.FLUID
    distribution: object = None
    velocity: tuple = (0.0, 0.0)

    @property
    def is_solid(self):
        return self.type is CellType.SOLID

    @property
    def density(self):
        if self.distribution is None:
            return 0.0
        return float(np.sum(self.distribution))


class Lattice:
    """
    Dense nx x ny lattice of D2Q9 cells.

    Parameters
    ----------
    nx : int
        Number of lattice points in x-direction
    ny : int
        Number of lattice points in y-direction
    solid : ndarray, optional
        Boolean obstacle mask, shape (ny, nx). No obstacles if None.

    Attributes
    ----------
    f : ndarray
        Distribution functions, shape (Q, ny, nx)
    rho : ndarray
        Density field, shape (ny, nx)
    ux, uy : ndarray
        Velocity fields, shape (ny, nx)
    solid_cells : tuple
        (x, y) coordinates of solid cells, computed once
    """

    def __init__(self, nx, ny, solid=None):
        self.nx = nx
        self.ny = ny

        if solid is None:
            solid = np.zeros((ny, nx), dtype=bool)
        self._solid = np.array(solid, dtype=bool)
        if self._solid.shape != (ny, nx):
            raise ValueError(
                f"Solid mask shape {self._solid.shape} does not match ({ny}, {nx})"
            )
        self._solid.setflags(write=False)

        self.f = np.zeros((Q, ny, nx), dtype=np.float64)
        self.rho = np.zeros((ny, nx), dtype=np.float64)
        self.ux = np.zeros((ny, nx), dtype=np.float64)
        self.uy = np.zeros((ny, nx), dtype=np.float64)

        ys, xs = np.nonzero(self._solid)
        self.solid_cells = tuple((int(x), int(y)) for y, x in zip(ys, xs))

    @classmethod
    def create(cls, nx, ny, obstacles=None, rho0=1.0):
        """
        Build a lattice at rest with uniform density.

        Every fluid cell is seeded with the D2Q9 weights scaled by rho0.

        Parameters
        ----------
        nx, ny : int
            Grid dimensions
        obstacles : ObstacleSpec, optional
            Obstacle placement. No obstacles if None.
        rho0 : float
            Initial density

        Returns
        -------
        lattice : Lattice
        """
        solid = None
        if obstacles is not None:
            solid = obstacles.to_mask(nx, ny)

        lattice = cls(nx, ny, solid)
        fluid = lattice.fluid_mask
        lattice.f[:, fluid] = (W * rho0)[:, None]
        lattice.rho[fluid] = rho0
        return lattice

    @classmethod
    def empty_like(cls, other):
        """Structurally identical lattice with a zero distribution."""
        return cls(other.nx, other.ny, other.solid)

    @property
    def solid(self):
        """Read-only obstacle mask, shape (ny, nx)."""
        return self._solid

    @property
    def fluid_mask(self):
        return ~self._solid

    @property
    def shape(self):
        return (self.ny, self.nx)

    @property
    def solid_count(self):
        return len(self.solid_cells)

    @property
    def fluid_count(self):
        return self.nx * self.ny - self.solid_count

    def fluid_cells(self):
        """Iterate over (x, y) coordinates of fluid cells in row-major order."""
        ys, xs = np.nonzero(self.fluid_mask)
        for y, x in zip(ys, xs):
            yield int(x), int(y)

    def index(self, x, y):
        """Flat row-major storage index of cell (x, y)."""
        self._check_bounds(x, y)
        return y * self.nx + x

    def get(self, x, y):
        """
        Return a snapshot of cell (x, y).

        Raises
        ------
        OutOfBounds
            If (x, y) is outside the lattice
        TypeError
            If a coordinate is not an integer
        """
        self._check_bounds(x, y)

        if self._solid[y, x]:
            return Cell(x, y, CellType.SOLID, None, (0.0, 0.0))

        return Cell(
            x, y, CellType.FLUID,
            self.f[:, y, x].copy(),
            (float(self.ux[y, x]), float(self.uy[y, x])),
        )

    def set(self, x, y, cell):
        """
        Overwrite the distribution and velocity of cell (x, y).

        The cell type is fixed for the lifetime of the lattice.

        Raises
        ------
        OutOfBounds
            If (x, y) is outside the lattice
        TypeError
            If a coordinate is not an integer
        ValueError
            If the cell type does not match, or the distribution has the
            wrong length
        """
        self._check_bounds(x, y)

        expected = CellType.SOLID if self._solid[y, x] else CellType.FLUID
        if cell.type is not expected:
            raise ValueError(
                f"Cell ({x}, {y}) is {expected.value}; cell types are fixed"
            )
        if expected is CellType.SOLID:
            return

        distribution = np.asarray(cell.distribution, dtype=np.float64)
        if distribution.shape != (Q,):
            raise ValueError(
                f"Expected {Q} distribution values, got shape {distribution.shape}"
            )

        self.f[:, y, x] = distribution
        self.rho[y, x] = np.sum(distribution)
        self.ux[y, x], self.uy[y, x] = cell.velocity

    def copy(self):
        """Independent deep copy of the lattice."""
        other = Lattice(self.nx, self.ny, self._solid)
        other.f[...] = self.f
        other.rho[...] = self.rho
        other.ux[...] = self.ux
        other.uy[...] = self.uy
        return other

    def total_mass(self):
        """Return total mass over fluid cells."""
        return float(np.sum(self.f[:, self.fluid_mask]))

    def total_momentum(self):
        """Return total momentum (sum_i f_i * e_i) over fluid cells."""
        f = self.f[:, self.fluid_mask]
        mom_x = np.sum(f * EX[:, None])
        mom_y = np.sum(f * EY[:, None])
        return float(mom_x), float(mom_y)

    def _check_bounds(self, x, y):
        for value in (x, y):
            if isinstance(value, bool) or not isinstance(value, numbers.Integral):
                raise TypeError(
                    f"Cell coordinates must be integers, got ({x!r}, {y!r})"
                )
        if not (0 <= x < self.nx and 0 <= y < self.ny):
            raise OutOfBounds(x, y, self.nx, self.ny)

    def __repr__(self):
        return (
            f"Lattice(nx={self.nx}, ny={self.ny}, "
            f"fluid={self.fluid_count}, solid={self.solid_count})"
        )
