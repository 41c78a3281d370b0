"""
Simulation Driver

Time-stepping loop for the D2Q9 solver.

Each step:
    1. Stream the current buffer into the next one (pull + bounce-back)
    2. Compute the forced equilibrium of every fluid cell
    3. Apply BGK collision in place on the next buffer
    4. Recompute density and velocity from the post-collision distribution
    5. Check the density of every fluid cell, then swap the buffers

A step that fails the density check raises NumericalInstability before the
swap, so ``Simulation.current`` always holds the last valid completed step.
"""

import enum
import logging
import numbers
import time
from dataclasses import dataclass, field

from .boundary import EdgeCondition, edge_equilibria
from .collision import (
    bgk_collision, bgk_collision_fast, tau_from_omega, validate_omega,
    viscosity_from_omega,
)
from .equilibrium import equilibrium_from_distribution
from .errors import ConfigurationError, LBMError, NumericalInstability
from .grid import Lattice
from .lattice import lattice_settings
from .obstacles import ObstacleSpec
from .observables import compute_macroscopic, compute_macroscopic_fast, find_unstable_cell
from .streaming import DoubleBuffer, stream
from .utils.logger import dotted

logger = logging.getLogger(__name__)


@dataclass
class SimulationConfig:
    """
    Parameters of a run.

    Attributes
    ----------
    nx, ny : int
        Grid dimensions (> 0)
    omega : float
        BGK relaxation rate, 0 < omega < 2
    accel_x, accel_y : float
        Body-force acceleration. Only the x component drives the flow.
    rho0 : float
        Initial density (> 0)
    obstacles : ObstacleSpec
        Solid cell placement
    t_max : int
        Number of time steps (> 0)
    edge : EdgeCondition or str
        Rule for pulls that reach outside the domain
    inlet_density, outlet_density : float
        Reservoir densities for EdgeCondition.INLET_OUTLET
    inlet_velocity, outlet_velocity : float
        Reservoir x-velocities for EdgeCondition.INLET_OUTLET
    max_density : float
        Sanity bound; a denser fluid cell aborts the run
    lattice_model : str
        Lattice model name, only "D2Q9" is supported
    use_fast : bool
        Use the Numba kernels
    """
    nx: int
    ny: int
    omega: float = 1.0
    accel_x: float = 0.0
    accel_y: float = 0.0
    rho0: float = 1.0
    obstacles: ObstacleSpec = field(default_factory=ObstacleSpec.none)
    t_max: int = 1
    edge: EdgeCondition = EdgeCondition.PERIODIC
    inlet_density: float = 1.05
    outlet_density: float = 1.0
    inlet_velocity: float = 0.0
    outlet_velocity: float = 0.0
    max_density: float = 100.0
    lattice_model: str = "D2Q9"
    use_fast: bool = False

    @property
    def tau(self):
        return tau_from_omega(self.omega)

    @property
    def viscosity(self):
        return viscosity_from_omega(self.omega)

    def validate(self):
        """
        Check every parameter before anything is allocated.

        Returns
        -------
        config : SimulationConfig
            self, with ``edge`` normalised to an EdgeCondition

        Raises
        ------
        ConfigurationError
            On the first invalid parameter
        """
        lattice_settings(self.lattice_model)

        for name in ("nx", "ny", "t_max"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, numbers.Integral) or value <= 0:
                raise ConfigurationError(f"{name} must be a positive integer, got {value!r}")

        if not self.rho0 > 0:
            raise ConfigurationError(f"rho0 must be > 0, got {self.rho0}")
        if not self.max_density > 0:
            raise ConfigurationError(f"max_density must be > 0, got {self.max_density}")

        validate_omega(self.omega)

        self.edge = EdgeCondition.parse(self.edge)
        if self.edge == EdgeCondition.INLET_OUTLET:
            if not (self.inlet_density > 0 and self.outlet_density > 0):
                raise ConfigurationError("Reservoir densities must be > 0")

        if self.obstacles is None:
            self.obstacles = ObstacleSpec.none()
        self.obstacles.to_mask(self.nx, self.ny)

        return self


class SimulationState(enum.Enum):
    RUNNING = "running"
    COMPLETED = "completed"


class Simulation:
    """
    D2Q9 BGK solver owning a pair of lattice buffers.

    Parameters
    ----------
    config : SimulationConfig
        Run parameters, validated on construction

    Attributes
    ----------
    step_count : int
        Number of completed steps
    cells_processed : int
        Cumulative number of fluid-cell updates
    total_time : float
        Wall-clock time spent in step(), seconds
    """

    def __init__(self, config):
        self.config = config.validate()
        self.omega = config.omega
        self.tau = config.tau
        self.edge = config.edge

        self.reservoirs = None
        if self.edge == EdgeCondition.INLET_OUTLET:
            self.reservoirs = edge_equilibria(
                config.inlet_density, config.inlet_velocity,
                config.outlet_density, config.outlet_velocity,
            )

        lattice = Lattice.create(config.nx, config.ny, config.obstacles, config.rho0)
        self._buffers = DoubleBuffer(lattice, Lattice.empty_like(lattice))

        # Statistics
        self.step_count = 0
        self.cells_processed = 0
        self.total_time = 0.0

        self._log_parameters()

    @property
    def current(self):
        """Lattice holding the last valid completed step."""
        return self._buffers.current

    @property
    def state(self):
        if self.step_count >= self.config.t_max:
            return SimulationState.COMPLETED
        return SimulationState.RUNNING

    @property
    def mlups(self):
        """Million Lattice Updates Per Second so far."""
        if self.total_time <= 0.0:
            return 0.0
        return self.cells_processed / self.total_time / 1e6

    def step(self):
        """
        Perform one LBM timestep (streaming + collision).

        Returns
        -------
        dt : float
            Time taken for this step (seconds)

        Raises
        ------
        NumericalInstability
            If a fluid cell ends the step with an insane density
        LBMError
            If the run has already completed
        """
        if self.state is SimulationState.COMPLETED:
            raise LBMError(f"Simulation already completed {self.step_count} steps")

        start = time.perf_counter()
        step_index = self.step_count + 1
        cfg = self.config
        src, dst = self._buffers.current, self._buffers.next

        # Streaming
        stream(src, dst, self.edge, self.reservoirs, use_fast=cfg.use_fast)

        # Equilibrium with forcing, then collision on fluid cells only
        fluid = dst.fluid_mask
        f_eq = equilibrium_from_distribution(
            dst.f, cfg.accel_x * self.tau, cfg.accel_y * self.tau, use_fast=cfg.use_fast
        )
        if cfg.use_fast:
            f_post = bgk_collision_fast(dst.f, f_eq, self.omega)
        else:
            f_post = bgk_collision(dst.f, f_eq, self.omega)
        dst.f[:, fluid] = f_post[:, fluid]

        # Update macroscopic fields
        if cfg.use_fast:
            rho, ux, uy = compute_macroscopic_fast(dst.f)
        else:
            rho, ux, uy = compute_macroscopic(dst.f)
        ux[dst.solid] = 0.0
        uy[dst.solid] = 0.0
        dst.rho[...] = rho
        dst.ux[...] = ux
        dst.uy[...] = uy

        unstable = find_unstable_cell(rho, fluid, cfg.max_density)
        if unstable is not None:
            x, y, density = unstable
            logger.error(
                f"Aborting at step {step_index}: density {density} at ({x}, {y}); "
                f"keeping state of step {self.step_count}"
            )
            raise NumericalInstability(step_index, x, y, density)

        self._buffers.swap()

        dt = time.perf_counter() - start
        self.step_count = step_index
        self.cells_processed += dst.fluid_count
        self.total_time += dt

        logger.debug(f"Step {step_index}/{cfg.t_max} done in {dt * 1e3:.3f} ms")
        return dt

    def iter_steps(self):
        """
        Run the remaining steps, yielding after each one.

        Yields
        ------
        step : int
            Index of the completed step
        lattice : Lattice
            Copy of the lattice after that step
        """
        while self.state is SimulationState.RUNNING:
            self.step()
            yield self.step_count, self.current.copy()

    def run(self):
        """
        Run the simulation until all configured steps are done.

        Returns
        -------
        lattice : Lattice
            Copy of the final lattice state
        """
        while self.state is SimulationState.RUNNING:
            self.step()

        logger.info(
            f"Processed {self.cells_processed} cell updates in {self.step_count} "
            f"time steps ({self.total_time:.3f}s, {self.mlups:.2f} MLUPS)"
        )
        return self.current.copy()

    def _log_parameters(self):
        cfg = self.config
        lattice = self.current
        dotted(logger, "grid", f"{cfg.nx} x {cfg.ny}")
        dotted(logger, "fluid cells", lattice.fluid_count)
        dotted(logger, "solid cells", lattice.solid_count)
        dotted(logger, "omega", cfg.omega)
        dotted(logger, "tau", f"{self.tau:.4f}")
        dotted(logger, "viscosity", f"{cfg.viscosity:.6f}")
        dotted(logger, "accel_x", cfg.accel_x)
        dotted(logger, "rho0", cfg.rho0)
        dotted(logger, "edge", self.edge.name.lower())
        dotted(logger, "steps", cfg.t_max)
