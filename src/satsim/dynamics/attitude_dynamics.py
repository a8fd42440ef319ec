"""
===============================================================================
SATSIM - Attitude Dynamics in the LVLH Frame
===============================================================================
Rigid-body rotational dynamics of a satellite whose attitude is tracked
relative to the rotating LVLH frame.

State:
    q          body attitude relative to LVLH, scalar first [w, x, y, z]
    omega_rel  angular velocity of body relative to LVLH, body coordinates

Governing equations:

    LVLH rotation (about its z axis):
        n     = |h| / r^2
        n_dot = -2 |h| (r . v) / r^4
        omega_L = C_BL * [0, 0, n]             (LVLH rate seen from the body)

    Euler's equation (inertial rate):
        omega_I     = omega_rel + omega_L
        J omega_I_dot = tau - omega_I x (J omega_I)

    Relative rate, differentiated in the body frame:
        omega_rel_dot = omega_I_dot - C_BL * [0, 0, n_dot] + omega_rel x omega_L

    Quaternion kinematics:
        q_dot = 0.5 * q (x) [0, omega_rel]

C_BL rotates LVLH vectors into the body frame.  The orbit enters only through
n and n_dot, so the attitude model needs the current position and velocity
at every derivative evaluation.

References:
    - Wie, B. "Space Vehicle Dynamics and Control," 2nd ed., AIAA, 2008.
    - Hughes, P.C. "Spacecraft Attitude Dynamics," Dover, 2004.
===============================================================================
"""

import logging
import numpy as np
from typing import List, Tuple

from satsim.core.exceptions import InvalidArgumentError
from satsim.core.frames import lvlh_to_body
from satsim.core.quaternion import quaternion_derivative
from satsim.dynamics.orbital_mechanics import orbital_rate, orbital_angular_acceleration
from satsim.dynamics.profiles import TorqueProfile, sum_active

logger = logging.getLogger(__name__)


class AttitudeDynamics:
    """
    Euler-equation attitude model with a diagonal inertia tensor.

    Parameters
    ----------
    inertia : array_like, shape (3,)
        Principal moments of inertia [J11, J22, J33] (kg*m^2), all positive.
    """

    def __init__(self, inertia) -> None:
        inertia = np.asarray(inertia, dtype=np.float64)
        if inertia.shape != (3,):
            raise InvalidArgumentError(
                f"Inertia must have 3 principal moments, got shape {inertia.shape}"
            )
        if np.any(inertia <= 0.0):
            raise InvalidArgumentError(f"Principal moments must be positive, got {inertia}")

        self.inertia = inertia
        self.inertia_matrix = np.diag(inertia)
        self.inertia_inv = np.diag(1.0 / inertia)
        self.torque_profiles: List[TorqueProfile] = []

    # ------------------------------------------------------------------ #
    def add_torque_profile(self, profile: TorqueProfile) -> None:
        """Register a body-frame torque profile."""
        self.torque_profiles.append(profile)
        logger.debug(
            "Torque profile [%.3f, %.3f) s, tau_body = %s N*m",
            profile.t_start, profile.t_end, profile.vector,
        )

    def net_torque(self, t: float) -> np.ndarray:
        """Sum of the body-frame torques active at time *t*."""
        return sum_active(self.torque_profiles, t)

    # ------------------------------------------------------------------ #
    @staticmethod
    def lvlh_rate_in_body(q: np.ndarray, r_eci: np.ndarray,
                          v_eci: np.ndarray) -> np.ndarray:
        """Angular velocity of LVLH relative to ECI, in body coordinates."""
        n = orbital_rate(r_eci, v_eci)
        return lvlh_to_body(np.array([0.0, 0.0, n]), q)

    def initial_relative_rate(self, q: np.ndarray, r_eci: np.ndarray,
                              v_eci: np.ndarray) -> np.ndarray:
        """
        Relative rate that holds the body inertially fixed.

        A body with zero inertial rate sees LVLH rotating at +n about the
        orbit normal, so its rate relative to LVLH is -omega_L.
        """
        return -self.lvlh_rate_in_body(q, r_eci, v_eci)

    def inertial_rate(self, q: np.ndarray, omega_rel: np.ndarray,
                      r_eci: np.ndarray, v_eci: np.ndarray) -> np.ndarray:
        """omega_I = omega_rel + omega_L, body coordinates."""
        return np.asarray(omega_rel, dtype=np.float64) + self.lvlh_rate_in_body(q, r_eci, v_eci)

    # ------------------------------------------------------------------ #
    def state_derivative(
        self,
        t: float,
        q: np.ndarray,
        omega_rel: np.ndarray,
        r_eci: np.ndarray,
        v_eci: np.ndarray,
    ) -> Tuple[np.ndarray, np.ndarray]:
        """
        Time derivatives of the attitude state.

        Parameters
        ----------
        t : float
            Simulation time (s), used to select active torque profiles.
        q : np.ndarray
            Attitude quaternion, body relative to LVLH.
        omega_rel : np.ndarray
            Body rate relative to LVLH (rad/s, body coordinates).
        r_eci, v_eci : np.ndarray
            Orbital position and velocity at the same instant.

        Returns
        -------
        (q_dot, omega_rel_dot) : tuple of np.ndarray
        """
        omega_rel = np.asarray(omega_rel, dtype=np.float64)

        n_dot = orbital_angular_acceleration(r_eci, v_eci)
        omega_L = self.lvlh_rate_in_body(q, r_eci, v_eci)
        omega_L_dot = lvlh_to_body(np.array([0.0, 0.0, n_dot]), q)

        omega_I = omega_rel + omega_L
        tau = self.net_torque(t)

        # Euler's equation
        J_omega = self.inertia_matrix @ omega_I
        omega_I_dot = self.inertia_inv @ (tau - np.cross(omega_I, J_omega))

        omega_rel_dot = omega_I_dot - omega_L_dot + np.cross(omega_rel, omega_L)
        q_dot = quaternion_derivative(q, omega_rel)

        return q_dot, omega_rel_dot

    # ------------------------------------------------------------------ #
    def rotational_kinetic_energy(self, omega_inertial: np.ndarray) -> float:
        """0.5 * omega_I^T J omega_I (J)."""
        w = np.asarray(omega_inertial, dtype=np.float64)
        return float(0.5 * w @ self.inertia_matrix @ w)

    def __repr__(self) -> str:
        return (
            f"AttitudeDynamics(J={self.inertia.tolist()}, "
            f"torque_profiles={len(self.torque_profiles)})"
        )
