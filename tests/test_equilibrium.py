"""
Tests for equilibrium distribution functions.

Validates mass and momentum conservation, and physical consistency.
"""

import pytest
import numpy as np
import sys
import os

# Add package root to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from lbm_fluid.lattice import EX, EY, W, CS2, Q
from lbm_fluid.equilibrium import (
    compute_equilibrium,
    compute_equilibrium_fast,
    equilibrium_single_site,
    equilibrium_from_distribution,
)
from lbm_fluid.observables import compute_density, compute_velocity


class TestEquilibriumSingleSite:
    """Test equilibrium distribution at a single lattice site."""

    @pytest.mark.parametrize("rho", [0.5, 1.0, 1.7, 42.0])
    def test_zero_velocity_fixed_point(self, rho):
        """For u = 0 the equilibrium is exactly w_i * rho."""
        f_eq = equilibrium_single_site(rho, 0.0, 0.0)

        np.testing.assert_array_equal(f_eq, W * rho)

    def test_mass_conservation_moving(self):
        """Verify sum of f_eq equals rho for moving fluid."""
        rho = 1.5
        ux, uy = 0.1, -0.05

        f_eq = equilibrium_single_site(rho, ux, uy)

        assert np.isclose(np.sum(f_eq), rho, rtol=1e-14)

    def test_momentum_conservation_moving(self):
        """Verify momentum of f_eq equals rho*u for moving fluid."""
        rho = 1.2
        ux, uy = 0.15, 0.08

        f_eq = equilibrium_single_site(rho, ux, uy)

        mom_x = np.sum(f_eq * EX)
        mom_y = np.sum(f_eq * EY)

        assert np.isclose(mom_x, rho * ux, rtol=1e-12)
        assert np.isclose(mom_y, rho * uy, rtol=1e-12)

    def test_positivity_low_velocity(self):
        """Verify all f_eq are positive for low Mach number."""
        f_eq = equilibrium_single_site(1.0, 0.05, 0.03)

        assert np.all(f_eq > 0), f"Negative equilibrium values: {f_eq}"

    def test_symmetry_at_rest(self):
        """Verify equilibrium is symmetric for rest fluid."""
        f_eq = equilibrium_single_site(1.0, 0.0, 0.0)

        # Axis directions (N, E, S, W) should be equal
        assert np.isclose(f_eq[1], f_eq[3])
        assert np.isclose(f_eq[1], f_eq[5])
        assert np.isclose(f_eq[1], f_eq[7])

        # Diagonal directions (NE, SE, SW, NW) should be equal
        assert np.isclose(f_eq[2], f_eq[4])
        assert np.isclose(f_eq[2], f_eq[6])
        assert np.isclose(f_eq[2], f_eq[8])

    def test_polynomial_coefficients(self):
        """feq = w rho (1 + 3 eu + 4.5 eu^2 - 1.5 u^2)."""
        rho, ux, uy = 1.1, 0.04, -0.02
        f_eq = equilibrium_single_site(rho, ux, uy)

        eu = EX * ux + EY * uy
        expected = W * rho * (1 + 3 * eu + 4.5 * eu * eu - 1.5 * (ux * ux + uy * uy))

        np.testing.assert_allclose(f_eq, expected, rtol=1e-14)

    def test_matches_field_version(self):
        """The single-site and field calculators share one formula."""
        rho, ux, uy = 1.3, -0.03, 0.07
        f_site = equilibrium_single_site(rho, ux, uy)
        f_field = compute_equilibrium(
            np.full((2, 3), rho), np.full((2, 3), ux), np.full((2, 3), uy)
        )

        assert f_site.shape == (Q,)
        np.testing.assert_array_equal(f_site, f_field[:, 1, 2])


class TestEquilibriumFromDistribution:
    """Test the equilibrium target computed from a cell's own distribution."""

    def test_rest_state_is_fixed_point(self):
        f = W * 1.3
        f_eq = equilibrium_from_distribution(f)

        np.testing.assert_allclose(f_eq, f, rtol=1e-15)

    def test_forcing_applies_to_x_only(self):
        """accel_x_tau shifts ux; accel_y_tau is ignored."""
        f = W.copy()
        f_eq = equilibrium_from_distribution(f, accel_x_tau=0.01, accel_y_tau=0.5)

        assert np.isclose(np.sum(f_eq), 1.0, rtol=1e-14)
        assert np.isclose(np.sum(f_eq * EX), 0.01, rtol=1e-12)
        assert np.isclose(np.sum(f_eq * EY), 0.0, atol=1e-15)

    def test_does_not_mutate_input(self):
        rng = np.random.default_rng(0)
        f = W * (1.0 + 0.1 * rng.random(Q))
        original = f.copy()

        equilibrium_from_distribution(f, accel_x_tau=0.02)

        np.testing.assert_array_equal(f, original)

    def test_zero_density_gives_zero(self):
        f_eq = equilibrium_from_distribution(np.zeros(Q), accel_x_tau=0.01)

        np.testing.assert_array_equal(f_eq, np.zeros(Q))

    def test_field_matches_single_site(self):
        rng = np.random.default_rng(1)
        f = W[:, None, None] * (1.0 + 0.05 * rng.random((Q, 3, 4)))

        f_eq = equilibrium_from_distribution(f, accel_x_tau=1e-3)

        assert f_eq.shape == (Q, 3, 4)
        for y in range(3):
            for x in range(4):
                np.testing.assert_allclose(
                    f_eq[:, y, x],
                    equilibrium_from_distribution(f[:, y, x], accel_x_tau=1e-3),
                    rtol=1e-13,
                )

    def test_fast_equals_standard(self):
        rng = np.random.default_rng(2)
        f = W[:, None, None] * (1.0 + 0.05 * rng.random((Q, 8, 8)))

        f_std = equilibrium_from_distribution(f, accel_x_tau=1e-3)
        f_fast = equilibrium_from_distribution(f, accel_x_tau=1e-3, use_fast=True)

        np.testing.assert_allclose(f_fast, f_std, rtol=1e-13)


class TestEquilibriumField:
    """Test equilibrium distribution for entire field."""

    @pytest.fixture
    def uniform_field(self):
        """Create uniform density and velocity field."""
        nx, ny = 32, 32
        rho = np.ones((ny, nx), dtype=np.float64)
        ux = np.zeros((ny, nx), dtype=np.float64)
        uy = np.zeros((ny, nx), dtype=np.float64)
        return rho, ux, uy

    @pytest.fixture
    def varying_field(self):
        """Create spatially varying field."""
        nx, ny = 32, 32
        x = np.arange(nx)
        y = np.arange(ny)
        X, Y = np.meshgrid(x, y)

        rho = 1.0 + 0.1 * np.sin(2 * np.pi * X / nx)
        ux = 0.1 * np.cos(2 * np.pi * Y / ny)
        uy = 0.05 * np.sin(2 * np.pi * X / nx)

        return rho, ux, uy

    def test_mass_conservation_uniform(self, uniform_field):
        """Verify mass conservation for uniform field."""
        rho, ux, uy = uniform_field

        f_eq = compute_equilibrium(rho, ux, uy)
        rho_computed = compute_density(f_eq)

        np.testing.assert_allclose(rho_computed, rho, rtol=1e-14)

    def test_mass_conservation_varying(self, varying_field):
        """Verify mass conservation for varying field."""
        rho, ux, uy = varying_field

        f_eq = compute_equilibrium(rho, ux, uy)
        rho_computed = compute_density(f_eq)

        np.testing.assert_allclose(rho_computed, rho, rtol=1e-14)

    def test_momentum_conservation_varying(self, varying_field):
        """Verify momentum conservation for varying field."""
        rho, ux, uy = varying_field

        f_eq = compute_equilibrium(rho, ux, uy)
        ux_computed, uy_computed = compute_velocity(f_eq, rho)

        # Use atol for near-zero values
        np.testing.assert_allclose(ux_computed, ux, rtol=1e-12, atol=1e-15)
        np.testing.assert_allclose(uy_computed, uy, rtol=1e-12, atol=1e-15)

    def test_fast_equals_standard(self, varying_field):
        """Verify Numba implementation matches standard."""
        rho, ux, uy = varying_field

        f_eq_std = compute_equilibrium(rho, ux, uy)
        f_eq_fast = compute_equilibrium_fast(rho, ux, uy)

        np.testing.assert_allclose(f_eq_fast, f_eq_std, rtol=1e-14)

    def test_output_shape(self, uniform_field):
        """Verify output shape is correct."""
        rho, ux, uy = uniform_field
        ny, nx = rho.shape

        f_eq = compute_equilibrium(rho, ux, uy)

        assert f_eq.shape == (Q, ny, nx)


class TestEquilibriumStressTensor:
    """Test second-order moment (stress tensor) properties."""

    def test_stress_tensor_isotropy_at_rest(self):
        """Verify stress tensor is isotropic for rest fluid."""
        rho = 1.0
        f_eq = equilibrium_single_site(rho, 0.0, 0.0)

        pi_xx = np.sum(f_eq * EX * EX)
        pi_yy = np.sum(f_eq * EY * EY)
        pi_xy = np.sum(f_eq * EX * EY)

        # For rest fluid: Pi_xx = Pi_yy = rho * c_s^2, Pi_xy = 0
        expected_diag = rho * CS2

        assert np.isclose(pi_xx, expected_diag, rtol=1e-12)
        assert np.isclose(pi_yy, expected_diag, rtol=1e-12)
        assert np.isclose(pi_xy, 0.0, atol=1e-14)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
