"""
===============================================================================
SATSIM - Reference Frame Transformations
===============================================================================
Supports: ECI, Perifocal (PQW), LVLH and Body frames.

    Orbit geometry     -> Perifocal <-> ECI   (element-defined 3-1-3 rotation)
    Thrust commands    -> LVLH -> ECI         (instantaneous r, v basis)
    Attitude / torques -> Body <-> LVLH       (attitude quaternion)

LVLH axes used throughout the package:

    x  radial       r / |r|
    y  transverse   h_hat x r_hat  (along-track for circular orbits)
    z  normal       h / |h|

The LVLH basis moves with the satellite, so every LVLH-related transform
takes the *current* position and velocity and rebuilds the basis on each
call.  Nothing here is cached between integrator stages.

All functions operate on NumPy arrays and return NumPy arrays.  Angles are
in radians.

References
----------
    [1] Vallado, "Fundamentals of Astrodynamics and Applications", 4th ed.
    [2] Curtis, "Orbital Mechanics for Engineering Students", 4th ed.

===============================================================================
"""

import numpy as np

from satsim.core.quaternion import rotate_by_array


# =============================================================================
# VECTOR HELPERS
# =============================================================================

def unit_vector(v: np.ndarray) -> np.ndarray:
    """
    Return *v* / |v|.

    Raises
    ------
    ValueError
        If *v* has zero length.
    """
    v = np.asarray(v, dtype=np.float64)
    n = np.linalg.norm(v)
    if n == 0.0:
        raise ValueError("Cannot normalize a zero-length vector.")
    return v / n


# =============================================================================
# ELEMENTARY ROTATION MATRICES
# =============================================================================

def Rx(angle: float) -> np.ndarray:
    """
    Elementary (passive) rotation matrix about the X-axis.

        Rx(a) = | 1    0       0     |
                | 0   cos(a)  sin(a)  |
                | 0  -sin(a)  cos(a)  |
    """
    c = np.cos(angle)
    s = np.sin(angle)
    return np.array([
        [1.0,  0.0,  0.0],
        [0.0,    c,    s],
        [0.0,   -s,    c],
    ], dtype=np.float64)


def Rz(angle: float) -> np.ndarray:
    """
    Elementary (passive) rotation matrix about the Z-axis.

        Rz(a) = |  cos(a)  sin(a)  0 |
                | -sin(a)  cos(a)  0 |
                |    0       0     1 |
    """
    c = np.cos(angle)
    s = np.sin(angle)
    return np.array([
        [  c,    s,  0.0],
        [ -s,    c,  0.0],
        [0.0,  0.0,  1.0],
    ], dtype=np.float64)


# =============================================================================
# PERIFOCAL <-> ECI
# =============================================================================

def perifocal_to_eci_matrix(raan: float, inc: float, arg_periapsis: float) -> np.ndarray:
    """
    Rotation matrix from the perifocal (PQW) frame to ECI.

    The perifocal frame is reached from ECI by rotating about Z by RAAN,
    about the new X by the inclination and about the new Z by the argument
    of periapsis.  Undoing that sequence gives:

        R_eci_pqw = Rz(-RAAN) * Rx(-inc) * Rz(-omega)

    The matrix is orthogonal, so its transpose maps ECI back to PQW.

    References
    ----------
    Vallado (2013), Algorithm 11.
    """
    return Rz(-raan) @ Rx(-inc) @ Rz(-arg_periapsis)


def perifocal_to_eci(vec_pqw: np.ndarray, raan: float, inc: float,
                     arg_periapsis: float) -> np.ndarray:
    """Rotate a perifocal vector into ECI."""
    return perifocal_to_eci_matrix(raan, inc, arg_periapsis) @ np.asarray(vec_pqw, dtype=np.float64)


def eci_to_perifocal(vec_eci: np.ndarray, raan: float, inc: float,
                     arg_periapsis: float) -> np.ndarray:
    """Rotate an ECI vector into the perifocal frame (transpose application)."""
    return perifocal_to_eci_matrix(raan, inc, arg_periapsis).T @ np.asarray(vec_eci, dtype=np.float64)


# =============================================================================
# ECI <-> LVLH
# =============================================================================

def lvlh_basis(r_eci: np.ndarray, v_eci: np.ndarray) -> np.ndarray:
    """
    Build the rotation matrix from ECI to LVLH.

    Rows are the LVLH unit vectors expressed in ECI:

        R-hat (radial)     = r / |r|
        S-hat (transverse) = W-hat x R-hat
        W-hat (normal)     = (r x v) / |r x v|

    so that ``v_lvlh = lvlh_basis(r, v) @ v_eci`` and the transpose maps
    LVLH back to ECI.

    Parameters
    ----------
    r_eci : np.ndarray
        3-element ECI position vector (m).
    v_eci : np.ndarray
        3-element ECI velocity vector (m/s).

    Returns
    -------
    np.ndarray
        3x3 rotation matrix from ECI to LVLH.
    """
    r = np.asarray(r_eci, dtype=np.float64)
    v = np.asarray(v_eci, dtype=np.float64)

    R_hat = unit_vector(r)
    W_hat = unit_vector(np.cross(r, v))
    S_hat = np.cross(W_hat, R_hat)

    return np.array([R_hat, S_hat, W_hat], dtype=np.float64)


def lvlh_to_eci(vec_lvlh: np.ndarray, r_eci: np.ndarray, v_eci: np.ndarray) -> np.ndarray:
    """Express an LVLH vector in ECI using the basis at (r, v)."""
    return lvlh_basis(r_eci, v_eci).T @ np.asarray(vec_lvlh, dtype=np.float64)


def eci_to_lvlh(vec_eci: np.ndarray, r_eci: np.ndarray, v_eci: np.ndarray) -> np.ndarray:
    """Express an ECI vector in LVLH using the basis at (r, v)."""
    return lvlh_basis(r_eci, v_eci) @ np.asarray(vec_eci, dtype=np.float64)


# =============================================================================
# BODY <-> LVLH <-> ECI
# =============================================================================

def body_to_lvlh(vec_body: np.ndarray, quaternion: np.ndarray) -> np.ndarray:
    """
    Rotate a body-frame vector into LVLH.

    *quaternion* is the scalar-first attitude [w, x, y, z] of the body frame
    relative to LVLH.
    """
    return rotate_by_array(np.asarray(quaternion, dtype=np.float64), vec_body)


def lvlh_to_body(vec_lvlh: np.ndarray, quaternion: np.ndarray) -> np.ndarray:
    """Rotate an LVLH vector into the body frame (conjugate rotation)."""
    q = np.asarray(quaternion, dtype=np.float64)
    q_conj = np.array([q[0], -q[1], -q[2], -q[3]], dtype=np.float64)
    return rotate_by_array(q_conj, vec_lvlh)


def body_to_eci(vec_body: np.ndarray, quaternion: np.ndarray,
                r_eci: np.ndarray, v_eci: np.ndarray) -> np.ndarray:
    """
    Rotate a body-frame vector into ECI.

    Composition of body -> LVLH (attitude quaternion) and LVLH -> ECI
    (orbital-plane basis at the supplied position and velocity).
    """
    return lvlh_to_eci(body_to_lvlh(vec_body, quaternion), r_eci, v_eci)


def eci_to_body(vec_eci: np.ndarray, quaternion: np.ndarray,
                r_eci: np.ndarray, v_eci: np.ndarray) -> np.ndarray:
    """Rotate an ECI vector into the body frame; inverse of ``body_to_eci``."""
    return lvlh_to_body(eci_to_lvlh(vec_eci, r_eci, v_eci), quaternion)
