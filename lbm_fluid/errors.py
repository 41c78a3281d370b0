"""
Error Types

Faults raised by the solver. All of them derive from LBMError so callers can
catch solver faults in one place.
"""


class LBMError(Exception):
    """Base class for solver faults."""


class ConfigurationError(LBMError, ValueError):
    """Invalid simulation setup, detected before any step runs."""


class OutOfBounds(LBMError, IndexError):
    """
    Access outside the lattice.

    Always a programming fault (a neighbour-indexing defect), never
    recoverable by the user.
    """

    def __init__(self, x, y, nx, ny):
        self.x = x
        self.y = y
        self.nx = nx
        self.ny = ny
        super().__init__(
            f"Cell ({x}, {y}) is outside the {nx} x {ny} lattice"
        )


class NumericalInstability(LBMError, ArithmeticError):
    """
    Density became negative, NaN, or exceeded the sanity bound.

    Attributes
    ----------
    step : int
        Index (1-based) of the step that failed
    x, y : int
        Coordinates of the first offending cell in row-major order
    density : float
        Offending density value
    """

    def __init__(self, step, x, y, density):
        self.step = step
        self.x = x
        self.y = y
        self.density = density
        super().__init__(
            f"Numerical instability at step {step}: density {density!r} "
            f"at cell ({x}, {y})"
        )
