"""
Obstacle Placement

Deterministic description of which lattice cells are solid.

An ObstacleSpec is resolved to a boolean mask once, when a lattice is created.
Random placement is always seeded so that runs are reproducible.
"""

import numpy as np

from .errors import ConfigurationError


class ObstacleSpec:
    """
    Obstacle placement for a lattice.

    Combine several specs with ``|``:

        spec = ObstacleSpec.at([(5, 5)]) | ObstacleSpec.random(20, seed=1)

    Parameters
    ----------
    coordinates : iterable of (x, y), optional
        Explicit solid cells
    count : int
        Number of distinct cells to place at random
    seed : int
        Seed for random placement
    masks : iterable of ndarray, optional
        Prebuilt boolean masks, shape (ny, nx)
    """

    def __init__(self, coordinates=(), count=0, seed=0, masks=()):
        self.coordinates = tuple((int(x), int(y)) for x, y in coordinates)
        self.count = int(count)
        self.seed = seed
        self.masks = tuple(np.asarray(m, dtype=bool) for m in masks)

        if self.count < 0:
            raise ConfigurationError(f"Obstacle count must be >= 0, got {count}")

    @classmethod
    def none(cls):
        return cls()

    @classmethod
    def at(cls, coordinates):
        """Solid cells at the given (x, y) coordinates."""
        return cls(coordinates=coordinates)

    @classmethod
    def random(cls, count, seed=0):
        """``count`` distinct solid cells chosen with a seeded generator."""
        return cls(count=count, seed=seed)

    @classmethod
    def from_mask(cls, mask):
        """Solid cells wherever ``mask`` is True."""
        return cls(masks=(mask,))

    def __or__(self, other):
        if not isinstance(other, ObstacleSpec):
            return NotImplemented
        if self.count and other.count:
            raise ConfigurationError("Only one random placement can be combined")
        count, seed = (self.count, self.seed) if self.count else (other.count, other.seed)
        return ObstacleSpec(
            coordinates=self.coordinates + other.coordinates,
            count=count,
            seed=seed,
            masks=self.masks + other.masks,
        )

    def to_mask(self, nx, ny):
        """
        Resolve the placement on an nx x ny grid.

        Parameters
        ----------
        nx, ny : int
            Grid dimensions

        Returns
        -------
        mask : ndarray
            Boolean mask (True for solid), shape (ny, nx)

        Raises
        ------
        ConfigurationError
            If a coordinate is outside the grid, a mask has the wrong shape,
            or more random cells are requested than the grid holds
        """
        mask = np.zeros((ny, nx), dtype=bool)

        for x, y in self.coordinates:
            if not (0 <= x < nx and 0 <= y < ny):
                raise ConfigurationError(
                    f"Obstacle ({x}, {y}) is outside the {nx} x {ny} grid"
                )
            mask[y, x] = True

        for m in self.masks:
            if m.shape != (ny, nx):
                raise ConfigurationError(
                    f"Obstacle mask shape {m.shape} does not match ({ny}, {nx})"
                )
            mask |= m

        if self.count:
            if self.count > nx * ny:
                raise ConfigurationError(
                    f"Cannot place {self.count} obstacles on a {nx} x {ny} grid"
                )
            rng = np.random.default_rng(self.seed)
            flat = rng.choice(nx * ny, size=self.count, replace=False)
            mask[flat // nx, flat % nx] = True

        return mask

    def __repr__(self):
        return (
            f"ObstacleSpec(coordinates={len(self.coordinates)}, "
            f"count={self.count}, seed={self.seed}, masks={len(self.masks)})"
        )
