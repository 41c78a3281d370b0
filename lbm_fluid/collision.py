"""
Collision Operators

BGK collision model for LBM.

The collision step models molecular interactions and drives the distribution
toward equilibrium. The canonical parameter is the relaxation rate omega;
the relaxation time is tau = 1 / omega. Viscosity follows from either:

    nu = c_s^2 * (tau - 0.5) * dt = c_s^2 * (1/omega - 0.5) * dt

where c_s^2 = 1/3 for D2Q9 and dt = 1 in lattice units.

Stability requires 0 < omega < 2 (tau > 0.5, nu > 0).
"""

import numpy as np
from numba import njit, prange
from .errors import ConfigurationError
from .lattice import CS2


def validate_omega(omega, name="omega"):
    """
    Validate that the relaxation rate is in the stable range.

    Parameters
    ----------
    omega : float
        Relaxation rate to validate
    name : str
        Name for error messages

    Raises
    ------
    ConfigurationError
        If omega is not in (0, 2)

    Returns
    -------
    omega : float
        Validated omega value
    """
    if not 0.0 < omega < 2.0:
        raise ConfigurationError(
            f"{name} must be in (0, 2) for stability (got {omega}). "
            f"This corresponds to nu > 0."
        )
    return float(omega)


def omega_from_tau(tau):
    """Relaxation rate for relaxation time ``tau`` (omega = 1 / tau)."""
    if tau <= 0.0:
        raise ConfigurationError(f"tau must be > 0, got {tau}")
    return 1.0 / tau


def tau_from_omega(omega):
    """Relaxation time for relaxation rate ``omega`` (tau = 1 / omega)."""
    if omega <= 0.0:
        raise ConfigurationError(f"omega must be > 0, got {omega}")
    return 1.0 / omega


def omega_from_viscosity(nu, dt=1.0, cs2=CS2):
    """
    Compute relaxation rate from kinematic viscosity.

    omega = 1 / (nu / (c_s^2 * dt) + 0.5)

    Parameters
    ----------
    nu : float
        Kinematic viscosity
    dt : float
        Time step (default 1.0 in lattice units)
    cs2 : float
        Sound speed squared (default 1/3)

    Returns
    -------
    omega : float
        Relaxation rate
    """
    return 1.0 / (nu / (cs2 * dt) + 0.5)


def viscosity_from_omega(omega, dt=1.0, cs2=CS2):
    """
    Compute kinematic viscosity from relaxation rate.

    nu = c_s^2 * (1/omega - 0.5) * dt

    Parameters
    ----------
    omega : float
        Relaxation rate (must be in (0, 2))
    dt : float
        Time step (default 1.0 in lattice units)
    cs2 : float
        Sound speed squared (default 1/3)

    Returns
    -------
    nu : float
        Kinematic viscosity
    """
    validate_omega(omega)
    return cs2 * (1.0 / omega - 0.5) * dt


def bgk_collision(f, f_eq, omega):
    """
    BGK (Bhatnagar-Gross-Krook) collision operator.

    f_out = f - omega * (f - f_eq)

    The BGK operator is the simplest single-relaxation-time model. It
    conserves sum_i(f_i) whenever f and f_eq carry the same density.

    Parameters
    ----------
    f : ndarray
        Distribution functions, shape (Q,) or (Q, ny, nx)
    f_eq : ndarray
        Equilibrium distribution, same shape as f
    omega : float
        Relaxation rate (0 < omega < 2)

    Returns
    -------
    f_out : ndarray
        Post-collision distribution
    """
    validate_omega(omega)
    return f - omega * (f - f_eq)


def bgk_collision_tau(f, f_eq, tau):
    """
    BGK collision parameterised by relaxation time.

    f_out = f - (f - f_eq) / tau

    Delegates to bgk_collision with omega = 1 / tau.
    """
    return bgk_collision(f, f_eq, omega_from_tau(tau))


@njit(parallel=True, cache=True)
def bgk_collision_numba(f, f_eq, omega, f_out):
    """
    Numba-accelerated BGK collision.

    Parameters
    ----------
    f : ndarray
        Distribution functions, shape (Q, ny, nx)
    f_eq : ndarray
        Equilibrium distribution, shape (Q, ny, nx)
    omega : float
        Relaxation frequency (1/tau)
    f_out : ndarray
        Output post-collision distribution, shape (Q, ny, nx)
    """
    q, ny, nx = f.shape

    for j in prange(ny):
        for i in range(nx):
            for k in range(q):
                f_out[k, j, i] = f[k, j, i] - omega * (f[k, j, i] - f_eq[k, j, i])


def bgk_collision_fast(f, f_eq, omega):
    """
    Numba-accelerated BGK collision.

    Parameters
    ----------
    f : ndarray
        Distribution functions, shape (Q, ny, nx)
    f_eq : ndarray
        Equilibrium distribution, shape (Q, ny, nx)
    omega : float
        Relaxation rate

    Returns
    -------
    f_out : ndarray
        Post-collision distribution
    """
    omega = validate_omega(omega)
    f = np.ascontiguousarray(f, dtype=np.float64)
    f_out = np.zeros_like(f)
    bgk_collision_numba(f, np.ascontiguousarray(f_eq, dtype=np.float64), omega, f_out)
    return f_out
