"""
Equilibrium Distribution Functions

Maxwell-Boltzmann equilibrium for D2Q9 lattice.

The equilibrium distribution is derived from the Maxwell-Boltzmann distribution
truncated to second order in velocity. For the D2Q9 lattice:

    f_i^eq = w_i * rho * [1 + (e_i · u)/c_s^2 + (e_i · u)^2/(2*c_s^4) - u^2/(2*c_s^2)]

which with c_s^2 = 1/3 is

    f_i^eq = w_i * rho * [1 + 3 (e_i · u) + 4.5 (e_i · u)^2 - 1.5 u^2]

where:
    - w_i are the lattice weights
    - e_i are the lattice velocities
    - rho is the density
    - u = (ux, uy) is the macroscopic velocity
"""

import numpy as np
from numba import njit, prange
from .lattice import EX, EY, W, CS2, CS4, Q
from .observables import compute_macroscopic


def compute_equilibrium(rho, ux, uy):
    """
    Compute equilibrium distribution for all lattice sites.

    Parameters
    ----------
    rho : ndarray
        Density field, shape (ny, nx) or any other shape, including a
        single site
    ux : ndarray
        X-velocity field, broadcastable to rho
    uy : ndarray
        Y-velocity field, broadcastable to rho

    Returns
    -------
    f_eq : ndarray
        Equilibrium distribution, shape (Q,) + rho.shape
    """
    rho = np.asarray(rho, dtype=np.float64)
    f_eq = np.zeros((Q,) + rho.shape, dtype=np.float64)

    u_sq = ux * ux + uy * uy

    for i in range(Q):
        eu = EX[i] * ux + EY[i] * uy
        f_eq[i] = W[i] * rho * (
            1.0
            + eu / CS2
            + (eu * eu) / (2.0 * CS4)
            - u_sq / (2.0 * CS2)
        )

    return f_eq


@njit(parallel=True, cache=True)
def compute_equilibrium_numba(rho, ux, uy, f_eq, ex, ey, w, cs2, cs4):
    """
    Numba-accelerated equilibrium computation.

    Parameters
    ----------
    rho : ndarray
        Density field, shape (ny, nx)
    ux, uy : ndarray
        Velocity fields, shape (ny, nx)
    f_eq : ndarray
        Output equilibrium distribution, shape (Q, ny, nx)
    ex, ey : ndarray
        Lattice velocity components
    w : ndarray
        Lattice weights
    cs2, cs4 : float
        Sound speed squared and fourth power
    """
    q, ny, nx = f_eq.shape

    for j in prange(ny):
        for i in range(nx):
            rho_ij = rho[j, i]
            ux_ij = ux[j, i]
            uy_ij = uy[j, i]
            u_sq = ux_ij * ux_ij + uy_ij * uy_ij

            for k in range(q):
                eu = ex[k] * ux_ij + ey[k] * uy_ij
                f_eq[k, j, i] = w[k] * rho_ij * (
                    1.0
                    + eu / cs2
                    + (eu * eu) / (2.0 * cs4)
                    - u_sq / (2.0 * cs2)
                )


def compute_equilibrium_fast(rho, ux, uy):
    """
    Fast equilibrium computation using Numba.

    Parameters
    ----------
    rho : ndarray
        Density field, shape (ny, nx)
    ux, uy : ndarray
        Velocity fields, shape (ny, nx)

    Returns
    -------
    f_eq : ndarray
        Equilibrium distribution, shape (Q, ny, nx)
    """
    ny, nx = rho.shape
    f_eq = np.zeros((Q, ny, nx), dtype=np.float64)

    ex = EX.astype(np.float64)
    ey = EY.astype(np.float64)
    w = W.copy()

    compute_equilibrium_numba(
        np.ascontiguousarray(rho, dtype=np.float64),
        np.ascontiguousarray(ux, dtype=np.float64),
        np.ascontiguousarray(uy, dtype=np.float64),
        f_eq, ex, ey, w, CS2, CS4,
    )

    return f_eq


def equilibrium_single_site(rho, ux, uy):
    """
    Compute equilibrium distribution for a single lattice site.

    Parameters
    ----------
    rho : float
        Density at the site
    ux, uy : float
        Velocity at the site

    Returns
    -------
    f_eq : ndarray
        Equilibrium distribution, shape (Q,)
    """
    return compute_equilibrium(np.asarray(rho, dtype=np.float64), ux, uy)


def equilibrium_from_distribution(f, accel_x_tau=0.0, accel_y_tau=0.0, use_fast=False):
    """
    Equilibrium target for a distribution, with an optional body force.

    Density and velocity are taken from the moments of ``f``; the velocity is
    (0, 0) wherever the density is not positive. The forcing term
    ``accel_x_tau`` (acceleration times relaxation time) is added to ux.

    ``accel_y_tau`` is accepted for symmetry but is not applied: the forcing
    drives a channel flow along x only.

    Parameters
    ----------
    f : ndarray
        Distribution, shape (Q,) for one cell or (Q, ny, nx) for a field.
        Not modified.
    accel_x_tau : float
        Forcing term added to the x-velocity
    accel_y_tau : float
        Forcing term in y (ignored)
    use_fast : bool
        Use the Numba equilibrium kernel (fields only)

    Returns
    -------
    f_eq : ndarray
        Equilibrium distribution with the same shape as ``f``
    """
    f = np.asarray(f, dtype=np.float64)
    single = f.ndim == 1
    if single:
        f = f.reshape(Q, 1, 1)

    rho, ux, uy = compute_macroscopic(f)
    if accel_x_tau:
        ux = ux + accel_x_tau

    if use_fast:
        f_eq = compute_equilibrium_fast(rho, ux, uy)
    else:
        f_eq = compute_equilibrium(rho, ux, uy)

    if single:
        return f_eq.reshape(Q)
    return f_eq
