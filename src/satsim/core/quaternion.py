"""
===============================================================================
SATSIM - Quaternion Mathematics
===============================================================================

Quaternion arithmetic for satellite attitude representation and propagation.
The attitude state carried by a Satellite is a unit quaternion giving the
orientation of the body frame relative to the LVLH frame.

Convention
----------
Scalar-first:

    q = [q_w, q_x, q_y, q_z] = q_w + q_x*i + q_y*j + q_z*k

The quaternion rotates a body-frame vector into the reference (LVLH) frame:

    v_ref = q * v_body * q_conjugate

Euler Angle Convention
----------------------
Aerospace 3-2-1 (ZYX) sequence: yaw (psi) about Z, pitch (theta) about the
new Y, roll (phi) about the new X.

Two layers are provided:

    * ``Quaternion`` -- an object with named accessors, used at the edges
      (construction from Euler angles, attitude read-out, frame transforms).
    * ``hamilton_product`` / ``quaternion_derivative`` / ``normalize_array``
      -- plain-array helpers used inside the integrator's derivative function,
      where the state vector already holds the quaternion as 4 floats.

References
----------
    [1] Markley & Crassidis, "Fundamentals of Spacecraft Attitude
        Determination and Control", Springer, 2014.
    [2] Diebel, "Representing Attitude: Euler Angles, Unit Quaternions, and
        Rotation Vectors", Stanford, 2006.

===============================================================================
"""

import numpy as np
from typing import Tuple, Union


# =============================================================================
# ARRAY-LEVEL HELPERS
# =============================================================================

def hamilton_product(p: np.ndarray, q: np.ndarray) -> np.ndarray:
    """
    Hamilton product p (x) q of two scalar-first quaternion arrays.

    The product represents sequential rotation: first by q, then by p.
    """
    a1, b1, c1, d1 = p
    a2, b2, c2, d2 = q
    return np.array([
        a1 * a2 - b1 * b2 - c1 * c2 - d1 * d2,
        a1 * b2 + b1 * a2 + c1 * d2 - d1 * c2,
        a1 * c2 - b1 * d2 + c1 * a2 + d1 * b2,
        a1 * d2 + b1 * c2 - c1 * b2 + d1 * a2,
    ], dtype=np.float64)


def quaternion_derivative(q: np.ndarray, omega: np.ndarray) -> np.ndarray:
    """
    Kinematic equation dq/dt = 0.5 * q (x) [0, omega].

    Parameters
    ----------
    q : np.ndarray
        4-element quaternion [w, x, y, z].  Need not be exactly unit length;
        the integrator renormalizes after each accepted step.
    omega : np.ndarray
        Angular velocity of the body relative to the reference frame,
        expressed in body coordinates (rad/s).

    Returns
    -------
    np.ndarray
        4-element quaternion rate.
    """
    w, x, y, z = q
    ox, oy, oz = omega
    return 0.5 * np.array([
        -x * ox - y * oy - z * oz,
         w * ox - z * oy + y * oz,
         z * ox + w * oy - x * oz,
        -y * ox + x * oy + w * oz,
    ], dtype=np.float64)


def rotate_by_array(q: np.ndarray, v: np.ndarray) -> np.ndarray:
    """Rotate 3-vector *v* by the unit quaternion array *q* (Rodrigues form)."""
    u = np.asarray(q[1:4], dtype=np.float64)
    v = np.asarray(v, dtype=np.float64)
    t = 2.0 * np.cross(u, v)
    return v + q[0] * t + np.cross(u, t)


def normalize_array(q: np.ndarray) -> np.ndarray:
    """
    Return *q* scaled to unit norm.

    Raises
    ------
    ValueError
        If the quaternion norm has collapsed to (near) zero.
    """
    q = np.asarray(q, dtype=np.float64)
    n = np.linalg.norm(q)
    if n < Quaternion._NORM_TOLERANCE:
        raise ValueError(
            f"Cannot normalize near-zero quaternion (norm = {n:.2e})."
        )
    return q / n


# =============================================================================
# QUATERNION CLASS
# =============================================================================

class Quaternion:
    """
    Unit quaternion for 3D rotation representation.

    A unit quaternion q = [w, x, y, z] encodes a rotation by angle theta
    about unit axis n as:

        q = [cos(theta/2), sin(theta/2) * n]

    Examples
    --------
    >>> q = Quaternion.identity()
    >>> q_yaw = Quaternion.from_euler(0.0, 0.0, np.pi / 2)
    >>> q_yaw.rotate_vector(np.array([1.0, 0.0, 0.0]))
    array([0., 1., 0.])
    """

    _NORM_TOLERANCE = 1e-10
    _COMPARISON_TOLERANCE = 1e-9

    def __init__(self, w: float, x: float, y: float, z: float,
                 normalize: bool = True) -> None:
        """
        Parameters
        ----------
        w, x, y, z : float
            Scalar-first components.
        normalize : bool, optional
            Normalize to unit magnitude (default True).

        Notes
        -----
        Normalization does not flip the sign of the quaternion.  q and -q
        encode the same rotation, and keeping the sign continuous avoids
        jumps in the components reported by an evolving satellite.
        """
        self._q = np.array([w, x, y, z], dtype=np.float64)

        if normalize:
            self._q = normalize_array(self._q)

    # =========================================================================
    # PROPERTIES
    # =========================================================================

    @property
    def w(self) -> float:
        """Scalar (real) part."""
        return float(self._q[0])

    @property
    def x(self) -> float:
        return float(self._q[1])

    @property
    def y(self) -> float:
        return float(self._q[2])

    @property
    def z(self) -> float:
        return float(self._q[3])

    @property
    def vector(self) -> np.ndarray:
        """Vector (imaginary) part [x, y, z]."""
        return self._q[1:4].copy()

    @property
    def components(self) -> np.ndarray:
        """Copy of the full quaternion [w, x, y, z]."""
        return self._q.copy()

    @property
    def norm(self) -> float:
        """Euclidean norm; 1.0 for a valid rotation."""
        return float(np.linalg.norm(self._q))

    # =========================================================================
    # FACTORY METHODS
    # =========================================================================

    @staticmethod
    def identity() -> 'Quaternion':
        """The identity quaternion [1, 0, 0, 0] (zero rotation)."""
        return Quaternion(1.0, 0.0, 0.0, 0.0, normalize=False)

    @staticmethod
    def from_array(q: np.ndarray, normalize: bool = True) -> 'Quaternion':
        """Build a Quaternion from a 4-element [w, x, y, z] array."""
        q = np.asarray(q, dtype=np.float64)
        if q.shape != (4,):
            raise ValueError(f"Quaternion array must have shape (4,), got {q.shape}")
        return Quaternion(q[0], q[1], q[2], q[3], normalize=normalize)

    @staticmethod
    def from_euler(phi: float, theta: float, psi: float) -> 'Quaternion':
        """
        Create a quaternion from 3-2-1 (ZYX) Euler angles.

        Built as the product q_z(psi) * q_y(theta) * q_x(phi) of the
        single-axis quaternions.

        Parameters
        ----------
        phi : float
            Roll about X (rad).
        theta : float
            Pitch about Y (rad).
        psi : float
            Yaw about Z (rad).

        Returns
        -------
        Quaternion
            Unit quaternion for the Euler sequence.

        References
        ----------
        Diebel (2006), Eq. 290.
        """
        q_x = Quaternion.from_axis_angle((1.0, 0.0, 0.0), phi)
        q_y = Quaternion.from_axis_angle((0.0, 1.0, 0.0), theta)
        q_z = Quaternion.from_axis_angle((0.0, 0.0, 1.0), psi)
        return q_z * q_y * q_x

    @staticmethod
    def from_axis_angle(axis: np.ndarray, angle: float) -> 'Quaternion':
        """
        Create a quaternion for a rotation of *angle* radians about *axis*.

        Raises
        ------
        ValueError
            If the axis has zero length.
        """
        axis = np.asarray(axis, dtype=np.float64)
        axis_norm = np.linalg.norm(axis)
        if axis_norm < Quaternion._NORM_TOLERANCE:
            raise ValueError("Rotation axis must be non-zero.")
        axis = axis / axis_norm
        half = 0.5 * angle
        s = np.sin(half)
        return Quaternion(np.cos(half), s * axis[0], s * axis[1], s * axis[2])

    # =========================================================================
    # ARITHMETIC
    # =========================================================================

    def conjugate(self) -> 'Quaternion':
        """
        Conjugate [w, -x, -y, -z].

        For unit quaternions this is the inverse rotation: if q maps body to
        LVLH, q* maps LVLH to body.
        """
        return Quaternion(self.w, -self.x, -self.y, -self.z, normalize=False)

    def multiply(self, other: 'Quaternion') -> 'Quaternion':
        """
        Hamilton product self * other.

        Rotates first by *other*, then by *self*.
        """
        p = hamilton_product(self._q, other._q)
        return Quaternion(p[0], p[1], p[2], p[3])

    def __mul__(self, other: Union['Quaternion', float, int]) -> 'Quaternion':
        if isinstance(other, Quaternion):
            return self.multiply(other)
        if isinstance(other, (int, float)):
            q = self._q * other
            return Quaternion(q[0], q[1], q[2], q[3], normalize=False)
        return NotImplemented

    # =========================================================================
    # ROTATION
    # =========================================================================

    def rotate_vector(self, v: np.ndarray) -> np.ndarray:
        """
        Rotate a 3-vector by this quaternion: v' = q * v * q*.

        Uses the Rodrigues form v' = v + w*t + u x t with t = 2 * (u x v),
        which needs two cross products instead of the full triple product.

        References
        ----------
        Markley & Crassidis (2014), Eq. 2.89.
        """
        return rotate_by_array(self._q, v)

    def derivative(self, omega: np.ndarray) -> np.ndarray:
        """
        Quaternion rate for a body angular velocity *omega* (rad/s, body frame).

        See ``quaternion_derivative``.
        """
        return quaternion_derivative(self._q, np.asarray(omega, dtype=np.float64))

    # =========================================================================
    # CONVERSIONS
    # =========================================================================

    def to_euler(self) -> Tuple[float, float, float]:
        """
        Convert to 3-2-1 (ZYX) Euler angles.

            phi   = atan2(2*(w*x + y*z), 1 - 2*(x^2 + y^2))
            theta = arcsin(2*(w*y - z*x))
            psi   = atan2(2*(w*z + x*y), 1 - 2*(y^2 + z^2))

        Returns
        -------
        tuple of (float, float, float)
            (roll, pitch, yaw) in radians.

        Warnings
        --------
        Roll and yaw are coupled at pitch = +/-90 deg (gimbal lock).
        """
        w, x, y, z = self.w, self.x, self.y, self.z

        phi = np.arctan2(2.0 * (w * x + y * z), 1.0 - 2.0 * (x * x + y * y))

        # Clamp against rounding just outside [-1, 1]
        sinp = np.clip(2.0 * (w * y - z * x), -1.0, 1.0)
        theta = np.arcsin(sinp)

        psi = np.arctan2(2.0 * (w * z + x * y), 1.0 - 2.0 * (y * y + z * z))

        return (float(phi), float(theta), float(psi))

    # =========================================================================
    # COMPARISON / REPRESENTATION
    # =========================================================================

    def __eq__(self, other: object) -> bool:
        # q and -q are the same rotation
        if not isinstance(other, Quaternion):
            return NotImplemented
        return (np.allclose(self._q, other._q, atol=self._COMPARISON_TOLERANCE)
                or np.allclose(self._q, -other._q, atol=self._COMPARISON_TOLERANCE))

    __hash__ = None

    def __repr__(self) -> str:
        return (f"Quaternion(w={self.w:.6f}, x={self.x:.6f}, "
                f"y={self.y:.6f}, z={self.z:.6f})")

    def copy(self) -> 'Quaternion':
        return Quaternion(self.w, self.x, self.y, self.z, normalize=False)
