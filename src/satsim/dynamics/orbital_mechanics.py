"""
===============================================================================
SATSIM - Orbital Element Conversions
===============================================================================
Classical orbital elements <-> Cartesian state, eccentric anomaly, period,
and the orbit-rate quantities the attitude model needs.

The Satellite keeps two representations of its orbit:

    1. Six classical elements (a, e, i, RAAN, omega, nu).
    2. Cartesian position/velocity in the perifocal and ECI frames.

They are synchronised only through the explicit conversions in this module.
The integrator evolves the Cartesian state; elements are refreshed from it
on request.

Conventions
-----------
    - SI units (m, m/s, s), angles in radians.
    - Circular orbit (e below CIRCULAR_ECCENTRICITY_TOL): argument of
      periapsis is 0 and the true anomaly is measured from the ascending
      node (argument of latitude).
    - Equatorial orbits are not supported: the node line is undefined and
      recovering elements raises InvalidArgumentError.
    - Elliptic orbits only (0 <= e < 1).  Open orbits are not guarded and
      may produce non-finite values.

References
----------
    [1] Vallado, "Fundamentals of Astrodynamics and Applications", 4th ed.
    [2] Curtis, "Orbital Mechanics for Engineering Students", 4th ed.

===============================================================================
"""

import numpy as np
from typing import Tuple

from satsim.core.constants import (
    EARTH_MU,
    TWO_PI,
    CIRCULAR_ECCENTRICITY_TOL,
    EQUATORIAL_INCLINATION_TOL,
)
from satsim.core.exceptions import InvalidArgumentError
from satsim.core.frames import perifocal_to_eci_matrix


# Fixed output order of the element tuple
ELEMENT_NAMES = (
    "Semimajor Axis",
    "Eccentricity",
    "Inclination",
    "RAAN",
    "Argument of Periapsis",
    "True Anomaly",
)


def _signed_angle(a: np.ndarray, b: np.ndarray, axis: np.ndarray) -> float:
    """Angle from *a* to *b* about unit *axis*, wrapped to [0, 2*pi)."""
    sin_term = np.dot(axis, np.cross(a, b))
    cos_term = np.dot(a, b)
    return float(np.arctan2(sin_term, cos_term) % TWO_PI)


# =============================================================================
# ELEMENTS -> CARTESIAN
# =============================================================================

def classical_to_perifocal(
    a: float, e: float, nu: float, mu: float = EARTH_MU,
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Position and velocity in the perifocal (PQW) frame.

    Perifocal frame quantities:

        p = a * (1 - e^2)                        (semi-latus rectum)
        r = p / (1 + e*cos(nu))                  (orbital radius)
        r_pqw = r * [cos(nu), sin(nu), 0]
        v_pqw = sqrt(mu/p) * [-sin(nu), e+cos(nu), 0]

    The velocity split is the vis-viva speed resolved into radial
    (mu/h * e*sin(nu)) and transverse (mu/h * (1 + e*cos(nu))) components.

    Parameters
    ----------
    a : float
        Semi-major axis (m).
    e : float
        Eccentricity.
    nu : float
        True anomaly (rad).
    mu : float
        Gravitational parameter (m^3/s^2).

    Returns
    -------
    r_pqw, v_pqw : np.ndarray
        3-element perifocal position (m) and velocity (m/s).
    """
    p = a * (1.0 - e * e)
    cos_nu = np.cos(nu)
    sin_nu = np.sin(nu)

    r_mag = p / (1.0 + e * cos_nu)

    r_pqw = r_mag * np.array([cos_nu, sin_nu, 0.0], dtype=np.float64)
    v_pqw = np.sqrt(mu / p) * np.array([-sin_nu, e + cos_nu, 0.0],
                                        dtype=np.float64)
    return r_pqw, v_pqw


def classical_to_eci(
    a: float, e: float, i: float, raan: float, arg_periapsis: float, nu: float,
    mu: float = EARTH_MU,
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Classical elements -> ECI position and velocity.

    Builds the perifocal state and rotates it with the 3-1-3 sequence
    R = Rz(-RAAN) * Rx(-i) * Rz(-omega).

    References
    ----------
    Vallado (2013), Algorithm 10.
    """
    r_pqw, v_pqw = classical_to_perifocal(a, e, nu, mu)
    R = perifocal_to_eci_matrix(raan, i, arg_periapsis)
    return R @ r_pqw, R @ v_pqw


# =============================================================================
# CARTESIAN -> ELEMENTS
# =============================================================================

def perifocal_to_classical(
    r_vec: np.ndarray, v_vec: np.ndarray, mu: float = EARTH_MU,
) -> Tuple[float, float, float, float, float, float]:
    """
    Convert an inertial Cartesian state to classical orbital elements.

    The algorithm computes:

        h = r x v                       (angular momentum)
        n = z_hat x h                   (ascending node vector)
        e_vec = (v x h)/mu - r/|r|      (eccentricity vector)
        a = -mu / (2*E),  E = v^2/2 - mu/r
        i = angle between z_hat and h
        RAAN  = atan2(n_y, n_x)
        omega = signed angle from n to e_vec about h
        nu    = signed angle from e_vec to r about h

    Angles are obtained from atan2 of sine/cosine pairs rather than arccos,
    which keeps full precision near 0 and pi.

    Parameters
    ----------
    r_vec : np.ndarray
        3-element position vector (m).
    v_vec : np.ndarray
        3-element velocity vector (m/s).
    mu : float
        Gravitational parameter (m^3/s^2).

    Returns
    -------
    tuple of (a, e, i, RAAN, omega, nu)
        Angles in radians; RAAN, omega and nu wrapped to [0, 2*pi).

    Raises
    ------
    InvalidArgumentError
        If the orbit is equatorial (node line undefined).

    References
    ----------
    Vallado (2013), Algorithm 9.
    """
    r = np.asarray(r_vec, dtype=np.float64)
    v = np.asarray(v_vec, dtype=np.float64)

    r_mag = np.linalg.norm(r)
    v_mag = np.linalg.norm(v)

    h = np.cross(r, v)
    h_mag = np.linalg.norm(h)
    h_hat = h / h_mag

    n = np.cross(np.array([0.0, 0.0, 1.0]), h)
    n_mag = np.linalg.norm(n)
    if n_mag <= EQUATORIAL_INCLINATION_TOL * h_mag:
        raise InvalidArgumentError(
            "Equatorial orbits are not supported: the ascending node is undefined."
        )

    e_vec = np.cross(v, h) / mu - r / r_mag
    e = float(np.linalg.norm(e_vec))

    energy = 0.5 * v_mag * v_mag - mu / r_mag
    a = float(-mu / (2.0 * energy))

    inc = float(np.arctan2(np.hypot(h[0], h[1]), h[2]))
    raan = float(np.arctan2(n[1], n[0]) % TWO_PI)

    if e > CIRCULAR_ECCENTRICITY_TOL:
        omega = _signed_angle(n, e_vec, h_hat)
        nu = _signed_angle(e_vec, r, h_hat)
    else:
        # Circular: periapsis undefined, measure from the ascending node
        e = 0.0
        omega = 0.0
        nu = _signed_angle(n, r, h_hat)

    return (a, e, inc, raan, omega, nu)


# =============================================================================
# ANOMALIES AND PERIOD
# =============================================================================

def eccentric_anomaly(
    e: float, nu: float, a: float, mu: float = EARTH_MU,
) -> Tuple[float, float]:
    """
    Eccentric anomaly and time since periapsis for a true anomaly.

        tan(E/2) = sqrt((1-e)/(1+e)) * tan(nu/2)
        M = E - e*sin(E)                          (Kepler's equation)
        t = M / n,  n = sqrt(mu / a^3)

    The half-angle relation is evaluated as a single atan2 so that nu = pi
    needs no special case.  No iteration is needed in this direction.

    Parameters
    ----------
    e : float
        Eccentricity (0 <= e < 1).
    nu : float
        True anomaly (rad).
    a : float
        Semi-major axis (m).
    mu : float
        Gravitational parameter (m^3/s^2).

    Returns
    -------
    (E, t_since_periapsis) : tuple of float
        E in [0, 2*pi) radians, time in seconds in [0, period).
    """
    half_nu = 0.5 * nu
    E = 2.0 * np.arctan2(np.sqrt(1.0 - e) * np.sin(half_nu),
                         np.sqrt(1.0 + e) * np.cos(half_nu))
    E = E % TWO_PI

    M = E - e * np.sin(E)
    mean_motion = np.sqrt(mu / a ** 3)

    return float(E), float(M / mean_motion)


def orbital_period(a: float, mu: float = EARTH_MU) -> float:
    """
    Kepler's third law: T = 2*pi * sqrt(a^3 / mu).

    Raises
    ------
    InvalidArgumentError
        If a <= 0 (open orbit, no finite period).
    """
    if a <= 0:
        raise InvalidArgumentError(
            f"Orbital period is undefined for a <= 0 (got a = {a:.4e} m)."
        )
    return float(TWO_PI * np.sqrt(a ** 3 / mu))


# =============================================================================
# ORBIT UTILITY FUNCTIONS
# =============================================================================

def specific_energy(r: float, v: float, mu: float = EARTH_MU) -> float:
    """Specific mechanical energy E = v^2/2 - mu/r (J/kg)."""
    return 0.5 * v * v - mu / r


def specific_angular_momentum(r_vec: np.ndarray, v_vec: np.ndarray) -> np.ndarray:
    """h = r x v (m^2/s)."""
    return np.cross(
        np.asarray(r_vec, dtype=np.float64),
        np.asarray(v_vec, dtype=np.float64),
    )


def orbital_rate(r_vec: np.ndarray, v_vec: np.ndarray) -> float:
    """
    Instantaneous angular rate of the radius vector, |h| / r^2 (rad/s).

    This is the rotation rate of the LVLH frame about its z (orbit normal)
    axis.
    """
    r = np.asarray(r_vec, dtype=np.float64)
    r2 = np.dot(r, r)
    return float(np.linalg.norm(specific_angular_momentum(r, v_vec)) / r2)


def orbital_angular_acceleration(r_vec: np.ndarray, v_vec: np.ndarray) -> float:
    """
    Time derivative of ``orbital_rate`` for Keplerian motion.

        d/dt (h / r^2) = -2 h (r . v) / r^4

    Zero on circular orbits; non-zero on eccentric ones, where LVLH speeds
    up near periapsis and slows near apoapsis.
    """
    r = np.asarray(r_vec, dtype=np.float64)
    v = np.asarray(v_vec, dtype=np.float64)
    r2 = np.dot(r, r)
    h_mag = np.linalg.norm(np.cross(r, v))
    return float(-2.0 * h_mag * np.dot(r, v) / (r2 * r2))
