"""
===============================================================================
SATSIM - Satellite
===============================================================================
A single Earth-orbiting rigid body: orbit, attitude, force and torque
profiles, and the evolution calls that advance them.

The satellite carries two views of its orbit:

    - six classical elements, set at construction and refreshed only by
      ``update_orbital_elements_from_position_and_velocity``
    - Cartesian position/velocity in ECI (evolved by the integrators) and in
      the perifocal frame (rotated from ECI with the stored elements after
      every accepted step)

The integrators advance one combined state

    y = [ r_eci (3) | v_eci (3) | q (4) | omega_rel (3) ]

so that translational and rotational motion share stages and step control.
q is the attitude of the body relative to LVLH (scalar first) and
omega_rel the body rate relative to LVLH in body coordinates.

Configuration
-------------
The constructor takes a mapping (see ``config_loader``)::

    Name: "ISS-like"
    Semimajor Axis: 6778.0          # km
    Eccentricity: 0.0005
    Inclination: 51.6               # deg, must not be 0
    RAAN: 40.0                      # deg
    Argument of Periapsis: 30.0     # deg
    True Anomaly: 10.0              # deg
    Mass: 420000.0                  # kg
    # optional
    Initial Roll Angle: 0.0         # deg
    Initial Pitch Angle: 0.0        # deg
    Initial Yaw Angle: 0.0          # deg
    Initial omega_x: 0.0            # rad/s, added to the inertially-fixed rate
    Inertia: [1.0, 1.0, 1.0]        # kg*m^2, principal moments
    Drag Coefficient: 2.2
    Drag Area: 1.0                  # m^2
    F10.7: 150.0
    Ap: 15.0
    Plotting Color: "tab:blue"
===============================================================================
"""

import logging
import numpy as np
from typing import Any, Mapping, Optional, Tuple

from satsim.core.constants import (
    EARTH_MU, DEG2RAD, CIRCULAR_ECCENTRICITY_TOL, EQUATORIAL_INCLINATION_TOL,
    DEFAULT_DRAG_COEFFICIENT, DEFAULT_DRAG_AREA, DEFAULT_F107, DEFAULT_AP,
)
from satsim.core.exceptions import ConfigurationError, InvalidArgumentError
from satsim.core.frames import (
    perifocal_to_eci, eci_to_perifocal, body_to_eci, eci_to_body,
)
from satsim.core.quaternion import Quaternion, normalize_array
from satsim.dynamics.attitude_dynamics import AttitudeDynamics
from satsim.dynamics.environment import GravityField, SolarFluxAtmosphere
from satsim.dynamics.force_model import ForceModel
from satsim.dynamics.integrators import (
    IntegratorConfig, R_SLICE, V_SLICE, Q_SLICE, W_SLICE,
    adaptive_step, rk4_step,
)
from satsim.dynamics.orbital_mechanics import (
    ELEMENT_NAMES, classical_to_perifocal, classical_to_eci, perifocal_to_classical,
    eccentric_anomaly, orbital_period, specific_energy,
)
from satsim.dynamics.profiles import ThrustProfile, TorqueProfile

logger = logging.getLogger(__name__)


REQUIRED_KEYS = (
    "Inclination",
    "RAAN",
    "Argument of Periapsis",
    "Eccentricity",
    "Semimajor Axis",
    "True Anomaly",
    "Mass",
    "Name",
)

ATTITUDE_NAMES = (
    "Roll", "Pitch", "Yaw",
    "omega_x", "omega_y", "omega_z",
    "q_0", "q_1", "q_2", "q_3",
)

_DEFAULT_INERTIA = (1.0, 1.0, 1.0)


def _as_float(config: Mapping[str, Any], key: str, default: Optional[float] = None) -> float:
    value = config.get(key, default)
    try:
        return float(value)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"'{key}' must be a number, got {value!r}") from exc


class Satellite:
    """
    Orbit and attitude propagator for one satellite.

    Parameters
    ----------
    config : mapping
        Satellite definition (angles in degrees, semimajor axis in km).
    mu : float
        Gravitational parameter of the central body (m^3/s^2).
    integrator_config : IntegratorConfig, optional
        Step-size controller settings for ``evolve_rk45``.

    Raises
    ------
    ConfigurationError
        Missing required field, zero (equatorial) inclination, non-positive
        mass or inertia, or a non-numeric value.
    """

    # ------------------------------------------------------------------ #
    #  Construction
    # ------------------------------------------------------------------ #
    def __init__(
        self,
        config: Mapping[str, Any],
        mu: float = EARTH_MU,
        integrator_config: Optional[IntegratorConfig] = None,
    ) -> None:
        missing = [key for key in REQUIRED_KEYS if key not in config]
        if missing:
            raise ConfigurationError(f"Missing required field(s): {', '.join(missing)}")

        self.mu = mu
        self.integrator_config = integrator_config or IntegratorConfig()
        self._name = str(config["Name"])
        self.plotting_color = config.get("Plotting Color")

        # --- Orbital elements (stored in SI / radians) ---
        self.inclination = _as_float(config, "Inclination") * DEG2RAD
        if abs(np.sin(self.inclination)) < EQUATORIAL_INCLINATION_TOL:
            raise ConfigurationError(
                f"{self._name}: equatorial orbits (inclination "
                f"{config['Inclination']} deg) are not supported."
            )
        self.raan = _as_float(config, "RAAN") * DEG2RAD
        self.arg_of_periapsis = _as_float(config, "Argument of Periapsis") * DEG2RAD
        self.eccentricity = _as_float(config, "Eccentricity")
        if self.eccentricity < CIRCULAR_ECCENTRICITY_TOL:
            # Periapsis undefined on a circular orbit
            self.arg_of_periapsis = 0.0
        self.semimajor_axis = _as_float(config, "Semimajor Axis") * 1000.0
        self.true_anomaly = _as_float(config, "True Anomaly") * DEG2RAD

        # --- Mass properties ---
        self._mass = _as_float(config, "Mass")
        if self._mass <= 0.0:
            raise ConfigurationError(f"{self._name}: mass must be positive, got {self._mass}")

        inertia = config.get("Inertia", _DEFAULT_INERTIA)
        try:
            inertia = np.asarray(inertia, dtype=np.float64)
        except (TypeError, ValueError) as exc:
            raise ConfigurationError(f"{self._name}: invalid inertia {inertia!r}") from exc
        if inertia.shape != (3,) or np.any(inertia <= 0.0):
            raise ConfigurationError(
                f"{self._name}: inertia must be three positive principal moments, "
                f"got {inertia.tolist()}"
            )

        # --- Force and torque models ---
        atmosphere = SolarFluxAtmosphere(
            f107=_as_float(config, "F10.7", DEFAULT_F107),
            ap=_as_float(config, "Ap", DEFAULT_AP),
        )
        self.force_model = ForceModel(
            mass=self._mass,
            gravity=GravityField(mu=mu),
            atmosphere=atmosphere,
            drag_coefficient=_as_float(config, "Drag Coefficient", DEFAULT_DRAG_COEFFICIENT),
            drag_area=_as_float(config, "Drag Area", DEFAULT_DRAG_AREA),
        )
        self.attitude = AttitudeDynamics(inertia)

        # --- Cartesian state ---
        self.perifocal_position, self.perifocal_velocity = classical_to_perifocal(
            self.semimajor_axis, self.eccentricity, self.true_anomaly, mu,
        )
        self.eci_position, self.eci_velocity = classical_to_eci(
            self.semimajor_axis, self.eccentricity, self.inclination,
            self.raan, self.arg_of_periapsis, self.true_anomaly, mu,
        )

        # --- Attitude state ---
        roll = _as_float(config, "Initial Roll Angle", 0.0) * DEG2RAD
        pitch = _as_float(config, "Initial Pitch Angle", 0.0) * DEG2RAD
        yaw = _as_float(config, "Initial Yaw Angle", 0.0) * DEG2RAD
        self.quaternion = Quaternion.from_euler(roll, pitch, yaw).components

        self.body_angular_velocity = self.attitude.initial_relative_rate(
            self.quaternion, self.eci_position, self.eci_velocity,
        ) + np.array([
            _as_float(config, "Initial omega_x", 0.0),
            _as_float(config, "Initial omega_y", 0.0),
            _as_float(config, "Initial omega_z", 0.0),
        ])

        self.t = 0.0

        logger.info(
            "Satellite '%s': a=%.3f km e=%.6f i=%.4f deg, m=%.3f kg, T=%.1f s",
            self._name, self.semimajor_axis / 1000.0, self.eccentricity,
            self.inclination / DEG2RAD, self._mass, self.get_orbital_period(),
        )

    # ------------------------------------------------------------------ #
    #  Cartesian state accessors
    # ------------------------------------------------------------------ #
    def get_eci_position(self) -> np.ndarray:
        return self.eci_position.copy()

    def get_eci_velocity(self) -> np.ndarray:
        return self.eci_velocity.copy()

    def get_perifocal_position(self) -> np.ndarray:
        return self.perifocal_position.copy()

    def get_perifocal_velocity(self) -> np.ndarray:
        return self.perifocal_velocity.copy()

    def get_speed(self) -> float:
        """Speed from the perifocal velocity (m/s)."""
        return float(np.linalg.norm(self.perifocal_velocity))

    def get_radius(self) -> float:
        """Orbital radius from the perifocal position (m)."""
        return float(np.linalg.norm(self.perifocal_position))

    def get_speed_eci(self) -> float:
        """Speed from the ECI velocity (m/s)."""
        return float(np.linalg.norm(self.eci_velocity))

    def get_radius_eci(self) -> float:
        """Orbital radius from the ECI position (m)."""
        return float(np.linalg.norm(self.eci_position))

    def get_total_energy(self) -> float:
        """
        Total mechanical energy (J), kinetic plus point-mass potential:

            E = 0.5 * m * v^2 - mu * m / r
        """
        return self._mass * specific_energy(self.get_radius_eci(), self.get_speed_eci(), self.mu)

    def get_instantaneous_time(self) -> float:
        return self.t

    def get_name(self) -> str:
        return self._name

    def get_mass(self) -> float:
        return self._mass

    def get_state_vector(self) -> np.ndarray:
        """Combined state [r, v, q, omega_rel] (copy)."""
        return np.concatenate([
            self.eci_position, self.eci_velocity,
            self.quaternion, self.body_angular_velocity,
        ])

    # ------------------------------------------------------------------ #
    #  Orbital elements
    # ------------------------------------------------------------------ #
    def get_orbital_period(self) -> float:
        """Period of the stored semimajor axis (s)."""
        return orbital_period(self.semimajor_axis, self.mu)

    def get_eccentric_anomaly(self) -> Tuple[float, float]:
        """(E, time since periapsis) for the stored elements."""
        return eccentric_anomaly(
            self.eccentricity, self.true_anomaly, self.semimajor_axis, self.mu,
        )

    def get_orbital_elements(self) -> Tuple[float, float, float, float, float, float]:
        """
        Stored elements in fixed order:
        (a [m], e, i [rad], RAAN [rad], omega [rad], nu [rad]).
        """
        return (
            self.semimajor_axis,
            self.eccentricity,
            self.inclination,
            self.raan,
            self.arg_of_periapsis,
            self.true_anomaly,
        )

    def get_orbital_element(self, name: str) -> float:
        """Single stored element by name (see ``ELEMENT_NAMES``)."""
        try:
            index = ELEMENT_NAMES.index(name)
        except ValueError:
            raise InvalidArgumentError(
                f"Unknown orbital element '{name}'; expected one of {ELEMENT_NAMES}"
            ) from None
        return self.get_orbital_elements()[index]

    def update_orbital_elements_from_position_and_velocity(self) -> int:
        """
        Recompute the classical elements from the current ECI state.

        The perifocal vectors are re-expressed with the refreshed rotation.
        Returns 0 on success.
        """
        (self.semimajor_axis, self.eccentricity, self.inclination,
         self.raan, self.arg_of_periapsis, self.true_anomaly) = perifocal_to_classical(
            self.eci_position, self.eci_velocity, self.mu,
        )
        self._refresh_perifocal()
        logger.debug(
            "%s: elements updated at t=%.3f s (a=%.3f m, e=%.3e)",
            self._name, self.t, self.semimajor_axis, self.eccentricity,
        )
        return 0

    # ------------------------------------------------------------------ #
    #  Attitude
    # ------------------------------------------------------------------ #
    def get_quaternion(self) -> np.ndarray:
        """Attitude of the body relative to LVLH, [w, x, y, z]."""
        return self.quaternion.copy()

    def get_body_angular_velocity(self) -> np.ndarray:
        """Body rate relative to LVLH in body coordinates (rad/s)."""
        return self.body_angular_velocity.copy()

    def get_inertial_angular_velocity(self) -> np.ndarray:
        """Body rate relative to ECI in body coordinates (rad/s)."""
        return self.attitude.inertial_rate(
            self.quaternion, self.body_angular_velocity,
            self.eci_position, self.eci_velocity,
        )

    def get_rotational_kinetic_energy(self) -> float:
        """Rotational kinetic energy 0.5 * omega_I^T J omega_I of the body (J)."""
        return self.attitude.rotational_kinetic_energy(self.get_inertial_angular_velocity())

    def get_attitude_val(self, name: str) -> float:
        """
        Named attitude quantity.

        Roll/Pitch/Yaw are the 3-2-1 Euler angles (rad) of the body relative
        to LVLH, omega_x/y/z the relative body rates (rad/s) and q_0..q_3 the
        quaternion components (q_0 scalar).
        """
        if name in ("Roll", "Pitch", "Yaw"):
            euler = Quaternion.from_array(self.quaternion).to_euler()
            return float(euler[("Roll", "Pitch", "Yaw").index(name)])
        if name in ("omega_x", "omega_y", "omega_z"):
            return float(self.body_angular_velocity[("omega_x", "omega_y", "omega_z").index(name)])
        if name in ("q_0", "q_1", "q_2", "q_3"):
            return float(self.quaternion[int(name[-1])])
        raise InvalidArgumentError(
            f"Unknown attitude value '{name}'; expected one of {ATTITUDE_NAMES}"
        )

    # ------------------------------------------------------------------ #
    #  Frame conversions
    # ------------------------------------------------------------------ #
    def convert_perifocal_to_eci(self, vec_pqw: np.ndarray) -> np.ndarray:
        """Rotate a perifocal vector into ECI with the stored elements."""
        return perifocal_to_eci(vec_pqw, self.raan, self.inclination, self.arg_of_periapsis)

    def convert_eci_to_perifocal(self, vec_eci: np.ndarray) -> np.ndarray:
        """Rotate an ECI vector into the perifocal frame with the stored elements."""
        return eci_to_perifocal(vec_eci, self.raan, self.inclination, self.arg_of_periapsis)

    def body_frame_to_eci(self, vec_body: np.ndarray) -> np.ndarray:
        """Express a body-frame vector in ECI at the current state."""
        return body_to_eci(vec_body, self.quaternion, self.eci_position, self.eci_velocity)

    def eci_to_body_frame(self, vec_eci: np.ndarray) -> np.ndarray:
        """Express an ECI vector in the body frame at the current state."""
        return eci_to_body(vec_eci, self.quaternion, self.eci_position, self.eci_velocity)

    # ------------------------------------------------------------------ #
    #  Profiles
    # ------------------------------------------------------------------ #
    def add_lvlh_thrust_profile(self, vector, t_start: float, t_end: float,
                                magnitude: Optional[float] = None) -> ThrustProfile:
        """
        Add a thrust force in LVLH, active on [t_start, t_end).

        With *magnitude* given, *vector* is a direction and is normalised;
        otherwise it is the force itself (N).
        """
        if magnitude is None:
            profile = ThrustProfile(t_start, t_end, vector)
        else:
            profile = ThrustProfile.from_direction(vector, magnitude, t_start, t_end)
        self.force_model.add_thrust_profile(profile)
        return profile

    def add_bodyframe_torque_profile(self, vector, t_start: float, t_end: float,
                                     magnitude: Optional[float] = None) -> TorqueProfile:
        """
        Add a body-frame torque, active on [t_start, t_end).

        With *magnitude* given, *vector* is an axis and is normalised;
        otherwise it is the torque itself (N*m).
        """
        if magnitude is None:
            profile = TorqueProfile(t_start, t_end, vector)
        else:
            profile = TorqueProfile.from_direction(vector, magnitude, t_start, t_end)
        self.attitude.add_torque_profile(profile)
        return profile

    # ------------------------------------------------------------------ #
    #  Evolution
    # ------------------------------------------------------------------ #
    def _derivative(self, perturbation: bool, atmospheric_drag: bool):
        """Coupled derivative f(t, y) of the combined state."""

        def f(t: float, y: np.ndarray) -> np.ndarray:
            r = y[R_SLICE]
            v = y[V_SLICE]
            q = y[Q_SLICE]
            w = y[W_SLICE]

            a = self.force_model.acceleration(
                t, r, v, include_j2=perturbation, include_drag=atmospheric_drag,
            )
            q_dot, w_dot = self.attitude.state_derivative(t, q, w, r, v)
            return np.concatenate([v, a, q_dot, w_dot])

        return f

    def _refresh_perifocal(self) -> None:
        self.perifocal_position = self.convert_eci_to_perifocal(self.eci_position)
        self.perifocal_velocity = self.convert_eci_to_perifocal(self.eci_velocity)

    def _commit(self, y: np.ndarray, dt: float) -> None:
        self.eci_position = y[R_SLICE].copy()
        self.eci_velocity = y[V_SLICE].copy()
        self.quaternion = normalize_array(y[Q_SLICE])
        self.body_angular_velocity = y[W_SLICE].copy()
        self.t += dt
        self._refresh_perifocal()

    def evolve_rk4(self, timestep: float, perturbation: bool = True,
                   atmospheric_drag: bool = False) -> None:
        """
        Advance orbit and attitude by one fixed RK4 step.

        Parameters
        ----------
        timestep : float
            Step size (s), strictly positive.
        perturbation : bool
            Include J2.
        atmospheric_drag : bool
            Include drag.
        """
        f = self._derivative(perturbation, atmospheric_drag)
        y_new = rk4_step(f, self.t, self.get_state_vector(), timestep)
        self._commit(y_new, timestep)
        logger.debug("%s: RK4 step to t=%.6f s", self._name, self.t)

    def evolve_rk45(self, epsilon: float, initial_timestep: float,
                    perturbation: bool = True,
                    atmospheric_drag: bool = False) -> Tuple[float, int]:
        """
        Advance orbit and attitude by one error-controlled RKF45 step.

        Parameters
        ----------
        epsilon : float
            Local error tolerance.
        initial_timestep : float
            Trial step size (s).  May be shrunk internally.
        perturbation : bool
            Include J2.
        atmospheric_drag : bool
            Include drag.

        Returns
        -------
        (next_timestep, status) : tuple
            Recommended size of the next step and the status code
            (0 accepted, 1 rejected with the state left unchanged).
        """
        f = self._derivative(perturbation, atmospheric_drag)
        result = adaptive_step(
            f, self.t, self.get_state_vector(), initial_timestep, epsilon,
            self.integrator_config,
        )
        if result.accepted:
            self._commit(result.state, result.step_taken)
        else:
            logger.warning(
                "%s: step rejected at t=%.6f s, retry with h=%.3e s",
                self._name, self.t, result.next_step,
            )
        return result.next_step, result.status

    def __repr__(self) -> str:
        return (
            f"Satellite(name={self._name!r}, t={self.t:.3f}, "
            f"a={self.semimajor_axis:.1f} m, e={self.eccentricity:.6f})"
        )
