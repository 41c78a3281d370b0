"""
Streaming Step Implementations

Propagation of distribution functions along lattice velocities.

The streaming step moves each distribution f_i from site x to site x + e_i.
It is implemented as a pull (gather) from the current buffer into the next:

    f_i(x, t + 1) = f_i(x - e_i, t)

If x - e_i is solid the bounce-back value is used instead; if it lies outside
the grid the edge condition decides (see boundary.py). Solid cells are never
read as source data and hold zeros in the destination buffer.

Streaming in place would let a cell read a neighbour that was already updated
during the same sweep, so two buffers are used and swapped after each sweep.
"""

import numpy as np
from numba import njit, prange
from .boundary import (
    EdgeCondition,
    apply_bounce_back,
    apply_reservoir,
    upstream_links,
)
from .errors import ConfigurationError
from .lattice import EX, EY, Q, OPPOSITE


def stream_pull(f, solid, edge=EdgeCondition.PERIODIC, feq_in=None, feq_out=None):
    """
    Streaming step using the pull scheme.

    Parameters
    ----------
    f : ndarray
        Distribution functions, shape (Q, ny, nx)
    solid : ndarray
        Boolean obstacle mask, shape (ny, nx)
    edge : EdgeCondition
        Domain edge rule
    feq_in, feq_out : ndarray, optional
        Reservoir distributions for EdgeCondition.INLET_OUTLET

    Returns
    -------
    f_streamed : ndarray
        Post-streaming distribution
    """
    edge = EdgeCondition.parse(edge)
    f_out = np.zeros_like(f)

    for i in range(Q):
        links = upstream_links(solid, i, edge)

        # Pull from x - e_i
        f_out[i] = f[i][links.y_src, links.x_src]

        apply_bounce_back(f, f_out, i, links.bounce)
        if edge == EdgeCondition.INLET_OUTLET:
            apply_reservoir(f_out, i, links.from_inlet, feq_in)
            apply_reservoir(f_out, i, links.from_outlet, feq_out)

    f_out[:, solid] = 0.0
    return f_out


@njit(parallel=True, cache=True)
def stream_pull_numba(f, f_out, solid, ex, ey, opposite, edge, feq_in, feq_out):
    """
    Numba-accelerated pull streaming.

    Parameters
    ----------
    f : ndarray
        Input distribution functions, shape (Q, ny, nx)
    f_out : ndarray
        Output distribution functions, shape (Q, ny, nx)
    solid : ndarray
        Boolean obstacle mask, shape (ny, nx)
    ex, ey : ndarray
        Lattice velocity components
    opposite : ndarray
        Opposite direction indices
    edge : int
        EdgeCondition value
    feq_in, feq_out : ndarray
        Reservoir distributions, shape (Q,)
    """
    q, ny, nx = f.shape

    for j in prange(ny):
        for i in range(nx):
            if solid[j, i]:
                for k in range(q):
                    f_out[k, j, i] = 0.0
                continue

            for k in range(q):
                i_src = i - ex[k]
                j_src = j - ey[k]

                if edge == 0:
                    i_src = (i_src + nx) % nx
                    j_src = (j_src + ny) % ny

                if i_src < 0 or i_src >= nx:
                    if edge == 2:
                        if i_src < 0:
                            f_out[k, j, i] = feq_in[k]
                        else:
                            f_out[k, j, i] = feq_out[k]
                    else:
                        f_out[k, j, i] = f[opposite[k], j, i]
                elif j_src < 0 or j_src >= ny:
                    f_out[k, j, i] = f[opposite[k], j, i]
                elif solid[j_src, i_src]:
                    f_out[k, j, i] = f[opposite[k], j, i]
                else:
                    f_out[k, j, i] = f[k, j_src, i_src]


def stream_pull_fast(f, solid, edge=EdgeCondition.PERIODIC, feq_in=None, feq_out=None):
    """
    Fast pull streaming using Numba.

    Parameters
    ----------
    f : ndarray
        Distribution functions, shape (Q, ny, nx)
    solid : ndarray
        Boolean obstacle mask, shape (ny, nx)
    edge : EdgeCondition
        Domain edge rule
    feq_in, feq_out : ndarray, optional
        Reservoir distributions for EdgeCondition.INLET_OUTLET

    Returns
    -------
    f_streamed : ndarray
        Post-streaming distribution
    """
    edge = EdgeCondition.parse(edge)
    f = np.ascontiguousarray(f, dtype=np.float64)
    f_out = np.zeros_like(f)

    if feq_in is None:
        feq_in = np.zeros(Q, dtype=np.float64)
    if feq_out is None:
        feq_out = np.zeros(Q, dtype=np.float64)

    stream_pull_numba(
        f, f_out,
        np.ascontiguousarray(solid, dtype=np.bool_),
        EX.astype(np.int64), EY.astype(np.int64), OPPOSITE.astype(np.int64),
        int(edge),
        np.asarray(feq_in, dtype=np.float64),
        np.asarray(feq_out, dtype=np.float64),
    )
    return f_out


def stream(src, dst, edge=EdgeCondition.PERIODIC, reservoirs=None, use_fast=False):
    """
    Stream the current lattice ``src`` into the next lattice ``dst``.

    ``src`` is only read. ``dst.f`` is overwritten entirely; its macroscopic
    fields are left for the caller to recompute.

    Parameters
    ----------
    src : Lattice
        Current (read) buffer
    dst : Lattice
        Next (write) buffer, same shape and obstacles as src
    edge : EdgeCondition
        Domain edge rule
    reservoirs : tuple of ndarray, optional
        (feq_in, feq_out), required for EdgeCondition.INLET_OUTLET
    use_fast : bool
        Use the Numba kernel
    """
    if src is dst:
        raise ValueError("Streaming needs two distinct buffers")

    edge = EdgeCondition.parse(edge)
    feq_in = feq_out = None
    if edge == EdgeCondition.INLET_OUTLET:
        if reservoirs is None:
            raise ConfigurationError("Inlet/outlet edges need reservoir distributions")
        feq_in, feq_out = reservoirs

    if use_fast:
        dst.f[...] = stream_pull_fast(src.f, src.solid, edge, feq_in, feq_out)
    else:
        dst.f[...] = stream_pull(src.f, src.solid, edge, feq_in, feq_out)


class DoubleBuffer:
    """
    Pair of lattices used alternately as read and write buffers.

    Parameters
    ----------
    current : Lattice
        Buffer holding the latest completed state
    next : Lattice
        Write target of the next sweep
    """

    def __init__(self, current, next):
        if current is next:
            raise ConfigurationError("Double buffer needs two distinct lattices")
        if current.shape != next.shape:
            raise ConfigurationError(
                f"Buffer shapes differ: {current.shape} vs {next.shape}"
            )
        if not np.array_equal(current.solid, next.solid):
            raise ConfigurationError("Buffers must share the same obstacles")

        self.current = current
        self.next = next

    def swap(self):
        """Make the just-written buffer current; the old one becomes the write target."""
        self.current, self.next = self.next, self.current
        return self.current
