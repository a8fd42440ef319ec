"""
===============================================================================
SATSIM - Environment Model Test Suite
===============================================================================
Gravity (point mass and J2) and the solar-flux atmosphere.
===============================================================================
"""

import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

import numpy as np
import pytest
from numpy.testing import assert_allclose

from satsim.core.constants import (
    EARTH_MU, EARTH_J2, EARTH_EQUATORIAL_RADIUS, EARTH_ATMOSPHERE_LIMIT, LEO_RADIUS,
)
from satsim.dynamics.environment import GravityField, SolarFluxAtmosphere


@pytest.fixture
def earth_gravity():
    """Return an Earth gravity field model with J2."""
    return GravityField.earth()


@pytest.fixture
def atmosphere():
    return SolarFluxAtmosphere()


# =============================================================================
# Test: Gravity
# =============================================================================

class TestGravityField:

    def test_point_mass_magnitude(self, earth_gravity):
        r = np.array([0.0, LEO_RADIUS, 0.0])
        a = earth_gravity.point_mass_acceleration(r)
        assert_allclose(np.linalg.norm(a), EARTH_MU / LEO_RADIUS ** 2, rtol=1e-14)
        assert_allclose(a / np.linalg.norm(a), [0.0, -1.0, 0.0], atol=1e-15)

    def test_j2_equatorial(self, earth_gravity):
        """In the equatorial plane J2 adds an inward radial pull."""
        r = np.array([LEO_RADIUS, 0.0, 0.0])
        a = earth_gravity.j2_acceleration(r)
        expected = -1.5 * EARTH_J2 * EARTH_MU * EARTH_EQUATORIAL_RADIUS ** 2 / LEO_RADIUS ** 4
        assert_allclose(a, [expected, 0.0, 0.0], rtol=1e-14)

    def test_j2_polar(self, earth_gravity):
        """Over the pole the J2 term points outward along z."""
        r = np.array([0.0, 0.0, LEO_RADIUS])
        a = earth_gravity.j2_acceleration(r)
        expected = 3.0 * EARTH_J2 * EARTH_MU * EARTH_EQUATORIAL_RADIUS ** 2 / LEO_RADIUS ** 4
        assert_allclose(a, [0.0, 0.0, expected], rtol=1e-14)

    def test_j2_relative_size(self, earth_gravity):
        r = np.array([4000e3, 3000e3, 4500e3])
        ratio = (np.linalg.norm(earth_gravity.j2_acceleration(r))
                 / np.linalg.norm(earth_gravity.point_mass_acceleration(r)))
        assert 1e-4 < ratio < 1e-2

    def test_j2_is_gradient_of_potential(self, earth_gravity):
        """Central differences of the J2 potential reproduce the acceleration."""
        mu, R, J2 = EARTH_MU, EARTH_EQUATORIAL_RADIUS, EARTH_J2

        def potential(p):
            r = np.linalg.norm(p)
            return -mu * J2 * R ** 2 / (2 * r ** 3) * (3 * p[2] ** 2 / r ** 2 - 1)

        p = np.array([3500e3, -4200e3, 3900e3])
        h = 1.0
        grad = np.array([
            (potential(p + h * e) - potential(p - h * e)) / (2 * h) for e in np.eye(3)
        ])
        assert_allclose(earth_gravity.j2_acceleration(p), grad, rtol=1e-6)

    def test_acceleration_switch(self, earth_gravity):
        r = np.array([4000e3, 3000e3, 4500e3])
        assert_allclose(earth_gravity.acceleration(r, include_j2=False),
                        earth_gravity.point_mass_acceleration(r))
        assert_allclose(earth_gravity.acceleration(r),
                        earth_gravity.point_mass_acceleration(r)
                        + earth_gravity.j2_acceleration(r))


# =============================================================================
# Test: Atmosphere
# =============================================================================

class TestSolarFluxAtmosphere:

    @pytest.mark.parametrize("altitude_km", [150, 200, 400, 600, 999])
    def test_density_positive_in_range(self, atmosphere, altitude_km):
        assert atmosphere.get_density(altitude_km * 1e3) > 0.0

    def test_density_zero_below_surface(self, atmosphere):
        assert atmosphere.get_density(-1.0) == 0.0

    @pytest.mark.parametrize("altitude", [EARTH_ATMOSPHERE_LIMIT + 1.0, 1500e3, 5000e3, 35786e3])
    def test_density_positive_above_fit_range(self, atmosphere, altitude):
        assert atmosphere.get_density(altitude) > 0.0

    def test_scale_height_frozen_above_fit_range(self, atmosphere):
        H_top = atmosphere.scale_height(EARTH_ATMOSPHERE_LIMIT / 1000.0)
        for h_km in (1001.0, 3000.0, 40000.0):
            assert atmosphere.scale_height(h_km) == H_top
        assert H_top > 0.0

    def test_density_continuous_at_fit_edge(self, atmosphere):
        below = atmosphere.get_density(EARTH_ATMOSPHERE_LIMIT - 1.0)
        above = atmosphere.get_density(EARTH_ATMOSPHERE_LIMIT + 1.0)
        assert above < below
        assert_allclose(above, below, rtol=1e-3)

    def test_density_decreases_above_fit_range(self, atmosphere):
        altitudes = np.linspace(1000e3, 3000e3, 9)
        rho = [atmosphere.get_density(h) for h in altitudes]
        assert np.all(np.diff(rho) < 0.0)

    def test_reference_density(self, atmosphere):
        assert_allclose(atmosphere.get_density(175e3), 6e-10, rtol=1e-12)

    def test_density_decreases_with_altitude(self, atmosphere):
        altitudes = np.linspace(200e3, 900e3, 15)
        rho = [atmosphere.get_density(h) for h in altitudes]
        assert np.all(np.diff(rho) < 0.0)

    def test_iss_altitude_order_of_magnitude(self, atmosphere):
        rho = atmosphere.get_density(400e3)
        assert 1e-13 < rho < 1e-10

    def test_solar_activity_raises_density(self):
        quiet = SolarFluxAtmosphere(f107=70.0, ap=4.0)
        active = SolarFluxAtmosphere(f107=250.0, ap=50.0)
        assert active.get_density(500e3) > quiet.get_density(500e3)

    def test_exospheric_temperature(self):
        assert_allclose(SolarFluxAtmosphere(f107=70.0, ap=0.0).exospheric_temperature(), 900.0)
        assert_allclose(SolarFluxAtmosphere(f107=150.0, ap=15.0).exospheric_temperature(),
                        900.0 + 200.0 + 22.5)

    def test_density_from_position(self, atmosphere):
        r = np.array([0.0, 0.0, EARTH_EQUATORIAL_RADIUS + 300e3])
        assert_allclose(atmosphere.get_density_from_position(r),
                        atmosphere.get_density(300e3), rtol=1e-12)
