"""
Macroscopic Observable Extraction

Compute density, velocity, and derived quantities from distributions.

In LBM, macroscopic quantities are moments of the distribution function:
    - Density (0th moment): rho = sum_i(f_i)
    - Momentum (1st moment): rho*u = sum_i(f_i * e_i)

Velocity is defined as zero wherever the density is not positive.
"""

import numpy as np
from numba import njit, prange
from .lattice import EX, EY, Q


def compute_density(f):
    """
    Compute density field from distribution functions.

    rho = sum_i(f_i)

    Parameters
    ----------
    f : ndarray
        Distribution functions, shape (Q, ny, nx)

    Returns
    -------
    rho : ndarray
        Density field, shape (ny, nx)
    """
    return np.sum(f, axis=0)


def compute_velocity(f, rho=None):
    """
    Compute velocity field from distribution functions.

    rho * u = sum_i(f_i * e_i)

    Parameters
    ----------
    f : ndarray
        Distribution functions, shape (Q, ny, nx)
    rho : ndarray, optional
        Density field, shape (ny, nx). If None, computed from f.

    Returns
    -------
    ux : ndarray
        X-velocity field, shape (ny, nx)
    uy : ndarray
        Y-velocity field, shape (ny, nx)
    """
    if rho is None:
        rho = compute_density(f)

    rho_ux = np.zeros(f.shape[1:], dtype=np.float64)
    rho_uy = np.zeros(f.shape[1:], dtype=np.float64)

    for i in range(Q):
        rho_ux += f[i] * EX[i]
        rho_uy += f[i] * EY[i]

    # Zero velocity where density is not positive (or NaN)
    positive = rho > 0.0
    ux = np.divide(rho_ux, rho, out=np.zeros_like(rho_ux), where=positive)
    uy = np.divide(rho_uy, rho, out=np.zeros_like(rho_uy), where=positive)

    return ux, uy


def compute_macroscopic(f):
    """
    Compute all macroscopic quantities from distribution functions.

    Parameters
    ----------
    f : ndarray
        Distribution functions, shape (Q, ny, nx)

    Returns
    -------
    rho : ndarray
        Density field, shape (ny, nx)
    ux, uy : ndarray
        Velocity fields, shape (ny, nx)
    """
    rho = compute_density(f)
    ux, uy = compute_velocity(f, rho)
    return rho, ux, uy


@njit(parallel=True, cache=True)
def compute_macroscopic_numba(f, rho, ux, uy, ex, ey):
    """
    Numba-accelerated macroscopic quantity computation.

    Parameters
    ----------
    f : ndarray
        Distribution functions, shape (Q, ny, nx)
    rho : ndarray
        Output density field, shape (ny, nx)
    ux, uy : ndarray
        Output velocity fields, shape (ny, nx)
    ex, ey : ndarray
        Lattice velocity components
    """
    q, ny, nx = f.shape

    for j in prange(ny):
        for i in range(nx):
            rho_local = 0.0
            rho_ux = 0.0
            rho_uy = 0.0

            for k in range(q):
                f_k = f[k, j, i]
                rho_local += f_k
                rho_ux += f_k * ex[k]
                rho_uy += f_k * ey[k]

            rho[j, i] = rho_local

            if rho_local > 0.0:
                ux[j, i] = rho_ux / rho_local
                uy[j, i] = rho_uy / rho_local
            else:
                ux[j, i] = 0.0
                uy[j, i] = 0.0


def compute_macroscopic_fast(f):
    """
    Fast macroscopic quantity computation using Numba.

    Parameters
    ----------
    f : ndarray
        Distribution functions, shape (Q, ny, nx)

    Returns
    -------
    rho : ndarray
        Density field, shape (ny, nx)
    ux, uy : ndarray
        Velocity fields, shape (ny, nx)
    """
    q, ny, nx = f.shape
    rho = np.zeros((ny, nx), dtype=np.float64)
    ux = np.zeros((ny, nx), dtype=np.float64)
    uy = np.zeros((ny, nx), dtype=np.float64)

    ex = EX.astype(np.float64)
    ey = EY.astype(np.float64)

    compute_macroscopic_numba(np.ascontiguousarray(f), rho, ux, uy, ex, ey)

    return rho, ux, uy


def compute_velocity_magnitude(ux, uy):
    """
    Compute velocity magnitude field.

    |u| = sqrt(ux^2 + uy^2)
    """
    return np.sqrt(ux * ux + uy * uy)


def find_unstable_cell(rho, fluid_mask, max_density):
    """
    Locate the first fluid cell with an insane density.

    A density is insane when it is negative, NaN, or above ``max_density``.

    Parameters
    ----------
    rho : ndarray
        Density field, shape (ny, nx)
    fluid_mask : ndarray
        Boolean mask of fluid cells, shape (ny, nx)
    max_density : float
        Sanity bound

    Returns
    -------
    cell : tuple or None
        (x, y, density) of the first offending cell in row-major order,
        or None if every fluid cell is sane
    """
    with np.errstate(invalid="ignore"):
        bad = fluid_mask & ~((rho >= 0.0) & (rho <= max_density))

    if not bad.any():
        return None

    y, x = np.argwhere(bad)[0]
    return int(x), int(y), float(rho[y, x])
