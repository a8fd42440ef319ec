"""
===============================================================================
SATSIM - Force Model and Profile Test Suite
===============================================================================
Time-window semantics of thrust/torque profiles, drag on the co-rotating
atmosphere, and LVLH thrust resolved at the supplied state.
===============================================================================
"""

import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

import numpy as np
import pytest
from numpy.testing import assert_allclose

from satsim.core.constants import EARTH_MU, EARTH_ROTATION_RATE
from satsim.core.exceptions import InvalidArgumentError
from satsim.core.frames import lvlh_to_eci
from satsim.dynamics.environment import GravityField
from satsim.dynamics.force_model import ForceModel
from satsim.dynamics.orbital_mechanics import classical_to_eci
from satsim.dynamics.profiles import ThrustProfile, TorqueProfile, sum_active


@pytest.fixture
def low_orbit_state():
    """Near-circular 400 km orbit at 51.6 deg."""
    return classical_to_eci(6778e3, 0.001, *np.radians([51.6, 20.0, 10.0, 45.0]))


@pytest.fixture
def force_model():
    return ForceModel(mass=100.0, drag_coefficient=2.2, drag_area=1.5)


# =============================================================================
# Test: Profiles
# =============================================================================

class TestProfiles:

    def test_window_is_closed_open(self):
        p = ThrustProfile(10.0, 20.0, [1.0, 0.0, 0.0])
        assert not p.is_active(9.999)
        assert p.is_active(10.0)
        assert p.is_active(19.999)
        assert not p.is_active(20.0)

    @pytest.mark.parametrize("t_start,t_end", [(5.0, 5.0), (10.0, 2.0)])
    def test_invalid_window_raises(self, t_start, t_end):
        with pytest.raises(InvalidArgumentError):
            ThrustProfile(t_start, t_end, [1.0, 0.0, 0.0])

    def test_vector_shape_checked(self):
        with pytest.raises(InvalidArgumentError):
            TorqueProfile(0.0, 1.0, [1.0, 2.0])

    def test_from_direction_normalizes(self):
        p = ThrustProfile.from_direction([0.0, 3.0, 4.0], 10.0, 0.0, 1.0)
        assert_allclose(p.vector, [0.0, 6.0, 8.0])
        assert isinstance(p, ThrustProfile)

    def test_zero_direction_raises(self):
        with pytest.raises(InvalidArgumentError):
            TorqueProfile.from_direction([0.0, 0.0, 0.0], 1.0, 0.0, 1.0)

    def test_immutable(self):
        source = np.array([1.0, 2.0, 3.0])
        p = TorqueProfile(0.0, 1.0, source)
        source[0] = 99.0
        assert p.vector[0] == 1.0
        with pytest.raises(ValueError):
            p.vector[1] = 5.0
        with pytest.raises(AttributeError):
            p.t_end = 5.0

    def test_sum_active(self):
        profiles = [
            TorqueProfile(0.0, 10.0, [1.0, 0.0, 0.0]),
            TorqueProfile(5.0, 15.0, [0.0, 2.0, 0.0]),
            TorqueProfile(10.0, 20.0, [0.0, 0.0, 3.0]),
        ]
        assert_allclose(sum_active(profiles, 2.0), [1.0, 0.0, 0.0])
        assert_allclose(sum_active(profiles, 7.0), [1.0, 2.0, 0.0])
        assert_allclose(sum_active(profiles, 10.0), [0.0, 2.0, 3.0])
        assert_allclose(sum_active(profiles, 25.0), [0.0, 0.0, 0.0])


# =============================================================================
# Test: Force model
# =============================================================================

class TestForceModel:

    def test_invalid_mass(self):
        with pytest.raises(InvalidArgumentError):
            ForceModel(mass=0.0)

    def test_gravity_only(self, force_model, low_orbit_state):
        r, v = low_orbit_state
        a = force_model.acceleration(0.0, r, v, include_j2=False)
        assert_allclose(a, -EARTH_MU * r / np.linalg.norm(r) ** 3, rtol=1e-14)

    def test_j2_flag(self, force_model, low_orbit_state):
        r, v = low_orbit_state
        diff = (force_model.acceleration(0.0, r, v, include_j2=True)
                - force_model.acceleration(0.0, r, v, include_j2=False))
        assert_allclose(diff, GravityField.earth().j2_acceleration(r), rtol=1e-12)

    def test_drag_opposes_relative_velocity(self, force_model, low_orbit_state):
        r, v = low_orbit_state
        a_drag = force_model.drag_acceleration(r, v)
        v_rel = v - np.cross([0.0, 0.0, EARTH_ROTATION_RATE], r)
        assert np.linalg.norm(a_drag) > 0.0
        assert_allclose(a_drag / np.linalg.norm(a_drag), -v_rel / np.linalg.norm(v_rel),
                        atol=1e-12)

    def test_drag_magnitude(self, force_model, low_orbit_state):
        r, v = low_orbit_state
        rho = force_model.atmosphere.get_density_from_position(r)
        v_rel = v - np.cross([0.0, 0.0, EARTH_ROTATION_RATE], r)
        expected = 0.5 * rho * 2.2 * 1.5 / 100.0 * np.dot(v_rel, v_rel)
        assert_allclose(np.linalg.norm(force_model.drag_acceleration(r, v)), expected,
                        rtol=1e-12)

    def test_drag_removes_energy(self, force_model, low_orbit_state):
        r, v = low_orbit_state
        assert np.dot(force_model.drag_acceleration(r, v), v) < 0.0

    def test_drag_above_fit_range(self, force_model, low_orbit_state):
        """Drag stays active, and much weaker, above 1000 km."""
        r, v = classical_to_eci(7878e3, 0.0, *np.radians([10.0, 0.0, 0.0, 0.0]))
        a_drag = force_model.drag_acceleration(r, v)
        v_rel = v - np.cross([0.0, 0.0, EARTH_ROTATION_RATE], r)
        assert np.linalg.norm(a_drag) > 0.0
        assert np.dot(a_drag, v_rel) < 0.0
        assert (np.linalg.norm(a_drag)
                < 1e-3 * np.linalg.norm(force_model.drag_acceleration(*low_orbit_state)))

    def test_drag_flag(self, force_model, low_orbit_state):
        r, v = low_orbit_state
        diff = (force_model.acceleration(0.0, r, v, include_drag=True)
                - force_model.acceleration(0.0, r, v, include_drag=False))
        assert_allclose(diff, force_model.drag_acceleration(r, v), rtol=1e-6, atol=1e-12)

    def test_thrust_resolved_in_lvlh(self, force_model, low_orbit_state):
        r, v = low_orbit_state
        force_model.add_thrust_profile(ThrustProfile(0.0, 10.0, [0.0, 50.0, 0.0]))
        a = force_model.thrust_acceleration(5.0, r, v)
        assert_allclose(a, lvlh_to_eci([0.0, 0.5, 0.0], r, v), rtol=1e-14)
        # Transverse thrust on a near-circular orbit is almost along v
        assert np.dot(a, v) / (np.linalg.norm(a) * np.linalg.norm(v)) > 0.99

    def test_thrust_window(self, force_model, low_orbit_state):
        r, v = low_orbit_state
        force_model.add_thrust_profile(ThrustProfile(0.0, 10.0, [20.0, 0.0, 0.0]))
        assert np.any(force_model.thrust_acceleration(0.0, r, v) != 0.0)
        assert_allclose(force_model.thrust_acceleration(10.0, r, v), np.zeros(3))

    def test_thrust_follows_state(self, force_model, low_orbit_state):
        """The LVLH basis is rebuilt from whatever state is passed in."""
        r, v = low_orbit_state
        force_model.add_thrust_profile(ThrustProfile(0.0, 10.0, [10.0, 0.0, 0.0]))
        r2 = -r
        a1 = force_model.thrust_acceleration(1.0, r, v)
        a2 = force_model.thrust_acceleration(1.0, r2, -v)
        assert_allclose(a1, 0.1 * r / np.linalg.norm(r), rtol=1e-14)
        assert_allclose(a2, -a1, rtol=1e-14)
