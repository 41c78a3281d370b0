"""
Tests for conservation laws.

Validates mass and momentum conservation during collision and streaming.
These are fundamental requirements for any correct LBM implementation.
"""

import pytest
import numpy as np
import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from lbm_fluid.errors import ConfigurationError
from lbm_fluid.lattice import EX, EY, W, CS2, Q
from lbm_fluid.equilibrium import compute_equilibrium, compute_equilibrium_fast
from lbm_fluid.observables import compute_macroscopic
from lbm_fluid.collision import (
    bgk_collision, bgk_collision_fast, bgk_collision_tau,
    validate_omega, omega_from_tau, tau_from_omega,
    omega_from_viscosity, viscosity_from_omega,
)
from lbm_fluid.streaming import stream_pull, stream_pull_fast


@pytest.fixture
def rng():
    return np.random.default_rng(1234)


class TestMassConservation:
    """Test mass conservation during LBM steps."""

    @pytest.fixture
    def initial_field(self, rng):
        """Create initial distribution at equilibrium."""
        nx, ny = 64, 64
        rho = 1.0 + 0.1 * rng.standard_normal((ny, nx))
        ux = 0.05 * rng.standard_normal((ny, nx))
        uy = 0.05 * rng.standard_normal((ny, nx))

        return compute_equilibrium(rho, ux, uy)

    def test_mass_conservation_streaming(self, initial_field):
        """Mass should be exactly conserved by periodic streaming."""
        f = initial_field
        solid = np.zeros(f.shape[1:], dtype=bool)

        total_mass_before = np.sum(f)
        total_mass_after = np.sum(stream_pull(f, solid))

        assert np.isclose(total_mass_before, total_mass_after, rtol=1e-14)

    def test_mass_conservation_streaming_fast(self, initial_field):
        """Mass should be exactly conserved by fast streaming."""
        f = initial_field
        solid = np.zeros(f.shape[1:], dtype=bool)

        total_mass_before = np.sum(f)
        total_mass_after = np.sum(stream_pull_fast(f, solid))

        assert np.isclose(total_mass_before, total_mass_after, rtol=1e-14)

    @pytest.mark.parametrize("omega", [0.3, 1.0, 1.25, 1.9])
    def test_mass_conservation_bgk_collision(self, initial_field, omega, rng):
        """BGK collision conserves mass when f and f_eq share the density."""
        f = initial_field + 0.001 * rng.standard_normal(initial_field.shape)

        rho, ux, uy = compute_macroscopic(f)
        f_eq = compute_equilibrium(rho, ux, uy)

        f_coll = bgk_collision(f, f_eq, omega)

        np.testing.assert_allclose(f_coll.sum(axis=0), f.sum(axis=0), atol=1e-6)
        assert np.isclose(np.sum(f), np.sum(f_coll), rtol=1e-13)

    def test_mass_conservation_single_cell(self):
        """Collision of one cell keeps sum_i f_i."""
        f = np.array([0.5, 0.1, 0.02, 0.12, 0.03, 0.1, 0.025, 0.09, 0.03])
        rho, ux, uy = compute_macroscopic(f.reshape(Q, 1, 1))
        f_eq = compute_equilibrium(rho, ux, uy).reshape(Q)

        f_coll = bgk_collision(f, f_eq, 1.7)

        assert abs(f_coll.sum() - f.sum()) < 1e-6

    def test_mass_conservation_multiple_steps(self, initial_field):
        """Mass should be conserved over multiple timesteps."""
        f = initial_field.copy()
        solid = np.zeros(f.shape[1:], dtype=bool)
        omega = 1.25

        total_mass_initial = np.sum(f)

        for _ in range(100):
            rho, ux, uy = compute_macroscopic(f)
            f_eq = compute_equilibrium_fast(rho, ux, uy)
            f = bgk_collision_fast(f, f_eq, omega)
            f = stream_pull_fast(f, solid)

        total_mass_final = np.sum(f)

        assert np.isclose(total_mass_initial, total_mass_final, rtol=1e-12)


class TestMomentumConservation:
    """Test momentum conservation during LBM steps."""

    @pytest.fixture
    def initial_field(self):
        """Create initial distribution at equilibrium."""
        nx, ny = 64, 64
        rho = np.ones((ny, nx), dtype=np.float64)
        ux = 0.1 * np.ones((ny, nx), dtype=np.float64)
        uy = 0.05 * np.ones((ny, nx), dtype=np.float64)

        return compute_equilibrium(rho, ux, uy)

    def test_momentum_conservation_streaming(self, initial_field):
        """Momentum should be exactly conserved by streaming (periodic)."""
        f = initial_field
        solid = np.zeros(f.shape[1:], dtype=bool)

        mom_x_before = np.sum(f * EX[:, None, None])
        mom_y_before = np.sum(f * EY[:, None, None])

        f_streamed = stream_pull(f, solid)

        mom_x_after = np.sum(f_streamed * EX[:, None, None])
        mom_y_after = np.sum(f_streamed * EY[:, None, None])

        assert np.isclose(mom_x_before, mom_x_after, rtol=1e-14)
        assert np.isclose(mom_y_before, mom_y_after, rtol=1e-14)

    def test_momentum_conservation_bgk_collision(self, initial_field):
        """Momentum should be exactly conserved by BGK collision."""
        f = initial_field
        omega = 1.25

        rho, ux, uy = compute_macroscopic(f)
        f_eq = compute_equilibrium(rho, ux, uy)

        mom_x_before = np.sum(f * EX[:, None, None])
        mom_y_before = np.sum(f * EY[:, None, None])

        f_coll = bgk_collision(f, f_eq, omega)

        mom_x_after = np.sum(f_coll * EX[:, None, None])
        mom_y_after = np.sum(f_coll * EY[:, None, None])

        assert np.isclose(mom_x_before, mom_x_after, rtol=1e-14)
        assert np.isclose(mom_y_before, mom_y_after, rtol=1e-14)


class TestCollisionConsistency:
    """Test collision operator consistency."""

    def test_bgk_fast_equals_standard(self, rng):
        """Verify fast BGK matches standard implementation."""
        nx, ny = 64, 64
        rho = 1.0 + 0.1 * rng.standard_normal((ny, nx))
        ux = 0.05 * rng.standard_normal((ny, nx))
        uy = 0.05 * rng.standard_normal((ny, nx))

        f_eq = compute_equilibrium(rho, ux, uy)
        f = f_eq + 0.01 * rng.standard_normal(f_eq.shape)
        omega = 1.25

        f_std = bgk_collision(f, f_eq, omega)
        f_fast = bgk_collision_fast(f, f_eq, omega)

        np.testing.assert_allclose(f_fast, f_std, rtol=1e-14)

    @pytest.mark.parametrize("omega", [0.5, 1.0, 1.9])
    def test_equilibrium_is_fixed_point(self, omega):
        """BGK collision should leave equilibrium unchanged."""
        nx, ny = 32, 32
        rho = np.ones((ny, nx), dtype=np.float64)
        ux = 0.1 * np.ones((ny, nx), dtype=np.float64)
        uy = 0.05 * np.ones((ny, nx), dtype=np.float64)

        f_eq = compute_equilibrium(rho, ux, uy)

        f_coll = bgk_collision(f_eq, f_eq, omega)

        np.testing.assert_array_equal(f_coll, f_eq)

    def test_tau_and_omega_forms_agree(self, rng):
        """f - (f - feq)/tau equals f - omega (f - feq) for omega = 1/tau."""
        f_eq = compute_equilibrium(
            np.ones((4, 4)), 0.02 * np.ones((4, 4)), np.zeros((4, 4))
        )
        f = f_eq + 0.01 * rng.random(f_eq.shape)
        tau = 0.8

        expected = f - (f - f_eq) / tau

        np.testing.assert_allclose(bgk_collision_tau(f, f_eq, tau), expected, rtol=1e-14)
        np.testing.assert_allclose(bgk_collision(f, f_eq, 1.0 / tau), expected, rtol=1e-14)

    def test_omega_one_relaxes_to_equilibrium(self, rng):
        f_eq = W * 1.1
        f = f_eq + 0.01 * rng.random(Q)

        np.testing.assert_allclose(bgk_collision(f, f_eq, 1.0), f_eq, rtol=1e-14)

    @pytest.mark.parametrize("omega", [0.0, -0.5, 2.0, 2.5, float("nan")])
    def test_unstable_omega_rejected(self, omega):
        with pytest.raises(ConfigurationError):
            bgk_collision(W.copy(), W.copy(), omega)
        with pytest.raises(ConfigurationError):
            validate_omega(omega)

    def test_unstable_tau_rejected(self):
        """tau <= 0.5 corresponds to omega >= 2."""
        with pytest.raises(ConfigurationError):
            bgk_collision_tau(W.copy(), W.copy(), 0.5)
        with pytest.raises(ConfigurationError):
            bgk_collision_tau(W.copy(), W.copy(), 0.0)


class TestViscosityRelation:
    """Test viscosity / relaxation parameter relationships."""

    def test_omega_tau_inverse(self):
        assert np.isclose(omega_from_tau(0.8), 1.25)
        assert np.isclose(tau_from_omega(1.25), 0.8)

    def test_viscosity_from_omega(self):
        """nu = cs2 * (1/omega - 0.5)."""
        omega = 1.25
        assert np.isclose(viscosity_from_omega(omega), CS2 * (0.8 - 0.5))

    def test_roundtrip(self):
        omega = 1.6
        nu = viscosity_from_omega(omega)
        assert np.isclose(omega_from_viscosity(nu), omega)

    def test_viscosity_stability_check(self):
        with pytest.raises(ConfigurationError):
            viscosity_from_omega(2.1)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
