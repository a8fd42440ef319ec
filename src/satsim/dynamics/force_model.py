"""
===============================================================================
SATSIM - Translational Force Model
===============================================================================
Sums every acceleration acting on the satellite's centre of mass:

    a_total = a_gravity(r)              point mass, plus J2 when enabled
            + a_drag(r, v)              when enabled and inside the atmosphere
            + sum(F_thrust_eci) / m     active LVLH thrust profiles

Thrust profiles are given in LVLH.  They are rotated into ECI with the basis
built from the position and velocity passed to ``acceleration``, which for an
integrator is the intermediate stage state rather than the step's start.

Drag uses the velocity relative to an atmosphere co-rotating with the Earth:

    v_rel = v - omega_E x r
    a_drag = -0.5 * rho * Cd * A / m * |v_rel| * v_rel
===============================================================================
"""

import logging
import numpy as np
from typing import List, Optional

from satsim.core.constants import (
    EARTH_ROTATION_RATE, DEFAULT_DRAG_COEFFICIENT, DEFAULT_DRAG_AREA,
)
from satsim.core.exceptions import InvalidArgumentError
from satsim.core.frames import lvlh_to_eci
from satsim.dynamics.environment import GravityField, SolarFluxAtmosphere
from satsim.dynamics.profiles import ThrustProfile, sum_active

logger = logging.getLogger(__name__)


class ForceModel:
    """
    Translational acceleration model for a single satellite.

    Parameters
    ----------
    mass : float
        Satellite mass (kg), constant.
    gravity : GravityField, optional
        Gravity model.  Defaults to Earth.
    atmosphere : SolarFluxAtmosphere, optional
        Density model used when drag is enabled.
    drag_coefficient : float
        Ballistic drag coefficient Cd.
    drag_area : float
        Cross-sectional area facing the flow (m^2).
    """

    def __init__(
        self,
        mass: float,
        gravity: Optional[GravityField] = None,
        atmosphere: Optional[SolarFluxAtmosphere] = None,
        drag_coefficient: float = DEFAULT_DRAG_COEFFICIENT,
        drag_area: float = DEFAULT_DRAG_AREA,
    ) -> None:
        if mass <= 0.0:
            raise InvalidArgumentError(f"Mass must be positive, got {mass}")
        self.mass = float(mass)
        self.gravity = gravity if gravity is not None else GravityField.earth()
        self.atmosphere = atmosphere if atmosphere is not None else SolarFluxAtmosphere()
        self.drag_coefficient = float(drag_coefficient)
        self.drag_area = float(drag_area)
        self.thrust_profiles: List[ThrustProfile] = []

    # ------------------------------------------------------------------ #
    def add_thrust_profile(self, profile: ThrustProfile) -> None:
        """Register an LVLH thrust profile."""
        self.thrust_profiles.append(profile)
        logger.debug(
            "Thrust profile [%.3f, %.3f) s, F_lvlh = %s N",
            profile.t_start, profile.t_end, profile.vector,
        )

    # ------------------------------------------------------------------ #
    def drag_acceleration(self, r_eci: np.ndarray, v_eci: np.ndarray) -> np.ndarray:
        """
        Aerodynamic drag on the co-rotating atmosphere.

        Returns zero above the atmosphere limit.
        """
        rho = self.atmosphere.get_density_from_position(r_eci)
        if rho == 0.0:
            return np.zeros(3, dtype=np.float64)

        omega_earth = np.array([0.0, 0.0, EARTH_ROTATION_RATE])
        v_rel = np.asarray(v_eci, dtype=np.float64) - np.cross(omega_earth, r_eci)
        v_rel_mag = np.linalg.norm(v_rel)

        ballistic = self.drag_coefficient * self.drag_area / self.mass
        return -0.5 * rho * ballistic * v_rel_mag * v_rel

    # ------------------------------------------------------------------ #
    def thrust_acceleration(self, t: float, r_eci: np.ndarray,
                            v_eci: np.ndarray) -> np.ndarray:
        """Acceleration from every thrust profile active at time *t* (ECI)."""
        force_lvlh = sum_active(self.thrust_profiles, t)
        if not np.any(force_lvlh):
            return np.zeros(3, dtype=np.float64)
        return lvlh_to_eci(force_lvlh, r_eci, v_eci) / self.mass

    # ------------------------------------------------------------------ #
    def acceleration(
        self,
        t: float,
        r_eci: np.ndarray,
        v_eci: np.ndarray,
        include_j2: bool = True,
        include_drag: bool = False,
    ) -> np.ndarray:
        """
        Total ECI acceleration at (t, r, v).

        Parameters
        ----------
        t : float
            Simulation time (s), used to select active thrust profiles.
        r_eci, v_eci : np.ndarray
            Position (m) and velocity (m/s).
        include_j2 : bool
            Add the J2 oblateness term.
        include_drag : bool
            Add atmospheric drag.

        Returns
        -------
        np.ndarray
            Acceleration (m/s^2).
        """
        a = self.gravity.acceleration(r_eci, include_j2=include_j2)
        if include_drag:
            a = a + self.drag_acceleration(r_eci, v_eci)
        if self.thrust_profiles:
            a = a + self.thrust_acceleration(t, r_eci, v_eci)
        return a
