"""
Boundary Condition Handlers

Implements the boundary conditions used by the pull streaming step:
- Bounce-back (no-slip walls at solid nodes)
- Domain edges: periodic, wall, or inlet/outlet reservoirs

A fluid cell pulls direction i from its upstream neighbour x - e_i. When that
neighbour is solid, half-way bounce-back applies instead:

    f_i(x, t+1) = f_{i*}^out(x, t)

where i* is the opposite direction of i. The component the cell sent into the
wall comes straight back, so no mass is created or destroyed at a wall.
"""

import enum
from collections import namedtuple

import numpy as np
from .errors import ConfigurationError
from .lattice import EX, EY, OPPOSITE
from .equilibrium import equilibrium_single_site


class EdgeCondition(enum.IntEnum):
    """Rule applied when a pull reaches outside the domain."""
    PERIODIC = 0
    WALL = 1
    INLET_OUTLET = 2

    @classmethod
    def parse(cls, value):
        """Accept an EdgeCondition, its value, or its name (any case)."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls[value.strip().upper().replace("-", "_")]
            except KeyError:
                pass
        else:
            try:
                return cls(value)
            except ValueError:
                pass
        names = ", ".join(e.name.lower() for e in cls)
        raise ConfigurationError(f"Unknown edge condition {value!r} (expected one of {names})")


# Upstream source of each fluid cell for one direction
UpstreamLinks = namedtuple(
    "UpstreamLinks", ["y_src", "x_src", "bounce", "from_inlet", "from_outlet"]
)


def bounce_back(f, x, y, i):
    """
    Value arriving in direction i at fluid cell (x, y) from a solid neighbour.

    Parameters
    ----------
    f : ndarray
        Pre-streaming distribution, shape (Q, ny, nx)
    x, y : int or ndarray
        Fluid cell coordinates (integer index arrays select many cells)
    i : int
        Incoming direction

    Returns
    -------
    value : float or ndarray
        f[i*, y, x], the cell's own outgoing component toward the wall
    """
    return f[OPPOSITE[i], y, x]


def upstream_links(solid, i, edge):
    """
    Resolve where every cell pulls direction i from.

    Parameters
    ----------
    solid : ndarray
        Boolean obstacle mask, shape (ny, nx)
    i : int
        Lattice direction
    edge : EdgeCondition
        Domain edge rule

    Returns
    -------
    links : UpstreamLinks
        y_src, x_src : clipped source coordinates, shape (ny, nx)
        bounce : cells that take the bounce-back value
        from_inlet, from_outlet : cells fed by the left / right reservoir
    """
    ny, nx = solid.shape
    y_idx, x_idx = np.indices((ny, nx))

    x_src = x_idx - EX[i]
    y_src = y_idx - EY[i]

    if edge == EdgeCondition.PERIODIC:
        x_src %= nx
        y_src %= ny

    left = x_src < 0
    right = x_src >= nx
    outside_x = left | right
    outside_y = (y_src < 0) | (y_src >= ny)

    x_src = np.clip(x_src, 0, nx - 1)
    y_src = np.clip(y_src, 0, ny - 1)

    inside = ~(outside_x | outside_y)
    bounce = inside & solid[y_src, x_src]

    no_reservoir = np.zeros((ny, nx), dtype=bool)
    if edge == EdgeCondition.INLET_OUTLET:
        # Reservoirs feed the left/right edges, top/bottom act as walls
        bounce |= outside_y & ~outside_x
        return UpstreamLinks(y_src, x_src, bounce, left, right)

    bounce |= outside_x | outside_y
    return UpstreamLinks(y_src, x_src, bounce, no_reservoir, no_reservoir)


def apply_bounce_back(f_src, f_dst, i, mask):
    """
    Apply bounce-back for direction i at the masked fluid cells.

    Parameters
    ----------
    f_src : ndarray
        Pre-streaming distribution, shape (Q, ny, nx)
    f_dst : ndarray
        Post-streaming distribution, modified in place
    i : int
        Incoming direction
    mask : ndarray
        Boolean mask of cells whose upstream neighbour is a wall
    """
    y, x = np.nonzero(mask)
    f_dst[i, y, x] = bounce_back(f_src, x, y, i)


def edge_equilibria(inlet_density=1.05, inlet_velocity=0.0,
                    outlet_density=1.0, outlet_velocity=0.0):
    """
    Reservoir distributions for the inlet/outlet edge condition.

    Parameters
    ----------
    inlet_density, outlet_density : float
        Reservoir densities on the left / right edge
    inlet_velocity, outlet_velocity : float
        Reservoir x-velocities on the left / right edge

    Returns
    -------
    feq_in, feq_out : ndarray
        Equilibrium distributions, shape (Q,)
    """
    feq_in = equilibrium_single_site(inlet_density, inlet_velocity, 0.0)
    feq_out = equilibrium_single_site(outlet_density, outlet_velocity, 0.0)
    return feq_in, feq_out


def apply_reservoir(f_dst, i, mask, f_eq):
    """Set direction i to the reservoir value at the masked cells."""
    f_dst[i][mask] = f_eq[i]


def create_cylinder_mask(nx, ny, cx, cy, radius):
    """
    Create a solid mask for a circular cylinder.

    Parameters
    ----------
    nx, ny : int
        Grid dimensions
    cx, cy : float
        Cylinder center coordinates
    radius : float
        Cylinder radius

    Returns
    -------
    mask : ndarray
        Boolean mask (True for solid), shape (ny, nx)
    """
    x = np.arange(nx)
    y = np.arange(ny)
    X, Y = np.meshgrid(x, y)

    distance = np.sqrt((X - cx)**2 + (Y - cy)**2)
    mask = distance <= radius

    return mask


def create_channel_walls(nx, ny):
    """
    Create solid masks for horizontal channel walls.

    Parameters
    ----------
    nx, ny : int
        Grid dimensions

    Returns
    -------
    wall_mask : ndarray
        Boolean mask for walls (top and bottom rows)
    """
    mask = np.zeros((ny, nx), dtype=bool)
    mask[0, :] = True   # Bottom wall
    mask[-1, :] = True  # Top wall
    return mask
