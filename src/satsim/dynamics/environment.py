"""
===============================================================================
SATSIM - Environment Models
===============================================================================
Models of the near-Earth environment that act on a satellite:

    - GravityField         : Point-mass gravity with optional J2 oblateness
    - SolarFluxAtmosphere  : Thermospheric density driven by F10.7 and Ap

All vectors are in the ECI frame.  SI units throughout (m, s, kg, rad).
===============================================================================
"""

import numpy as np
from numpy.typing import NDArray

from satsim.core.constants import (
    EARTH_MU, EARTH_EQUATORIAL_RADIUS, EARTH_J2,
    EARTH_ATMOSPHERE_LIMIT, DEFAULT_F107, DEFAULT_AP,
)


# ============================================================================
#  GRAVITY FIELD (Central body + J2)
# ============================================================================

class GravityField:
    """
    Central-body gravity with the J2 zonal harmonic.

    Parameters
    ----------
    mu : float
        Gravitational parameter (m^3/s^2).
    j2 : float
        J2 coefficient (dimensionless).
    radius : float
        Equatorial radius used to normalise the harmonic (m).
    """

    def __init__(
        self,
        mu: float = EARTH_MU,
        j2: float = EARTH_J2,
        radius: float = EARTH_EQUATORIAL_RADIUS,
    ) -> None:
        self.mu = mu
        self.j2 = j2
        self.radius = radius

    @classmethod
    def earth(cls) -> "GravityField":
        """Earth gravity field (WGS84 radius, EGM J2)."""
        return cls()

    # ------------------------------------------------------------------ #
    def point_mass_acceleration(self, position_eci: NDArray) -> NDArray:
        """
        Two-body acceleration a = -mu / |r|^3 * r.
        """
        r = np.asarray(position_eci, dtype=np.float64)
        r_mag = np.linalg.norm(r)
        return -self.mu / (r_mag ** 3) * r

    # ------------------------------------------------------------------ #
    def j2_acceleration(self, position_eci: NDArray) -> NDArray:
        """
        J2 oblateness perturbation (Vallado, Eq. 8-30):

            factor = -(3/2) * J2 * mu * R^2 / r^5

            a_x = factor * x * (1 - 5*z^2/r^2)
            a_y = factor * y * (1 - 5*z^2/r^2)
            a_z = factor * z * (3 - 5*z^2/r^2)

        Parameters
        ----------
        position_eci : ndarray, shape (3,)
            Position in ECI (m).

        Returns
        -------
        ndarray, shape (3,)
            Perturbing acceleration (m/s^2).
        """
        r = np.asarray(position_eci, dtype=np.float64)
        x, y, z = r
        r_mag = np.linalg.norm(r)
        r2 = r_mag * r_mag

        factor = -1.5 * self.j2 * self.mu * self.radius ** 2 / r_mag ** 5
        z2_r2 = z * z / r2

        return np.array([
            factor * x * (1.0 - 5.0 * z2_r2),
            factor * y * (1.0 - 5.0 * z2_r2),
            factor * z * (3.0 - 5.0 * z2_r2),
        ], dtype=np.float64)

    # ------------------------------------------------------------------ #
    def acceleration(self, position_eci: NDArray, include_j2: bool = True) -> NDArray:
        """Total gravitational acceleration, J2 included when requested."""
        a = self.point_mass_acceleration(position_eci)
        if include_j2:
            a = a + self.j2_acceleration(position_eci)
        return a


# ============================================================================
#  SOLAR-FLUX ATMOSPHERE MODEL
# ============================================================================

class SolarFluxAtmosphere:
    """
    Thermospheric density model parameterised by space-weather indices.

    The exospheric temperature and the mean molecular mass set a local scale
    height, which then drives an exponential profile anchored at 175 km:

        T   = 900 + 2.5 * (F10.7 - 70) + 1.5 * Ap          [K]
        m   = 27 - 0.012 * (h - 200)                       [amu, h in km]
        H   = T / m                                        [km]
        rho = 6e-10 * exp(-(h - 175) / H)                  [kg/m^3]

    The fit is intended for roughly 180-500 km.  Above the atmosphere limit
    (1000 km) the scale height is frozen at its value there, so the profile
    keeps decaying exponentially instead of letting m reach zero.  Density
    is zero only below the surface; everywhere above it is positive, so drag
    always removes orbital energy.

    Parameters
    ----------
    f107 : float
        10.7 cm solar radio flux (solar flux units).
    ap : float
        Planetary geomagnetic index.
    body_radius : float
        Radius used to convert position to altitude (m).
    atmosphere_limit : float
        Altitude above which the scale height is held constant (m).
    """

    _REFERENCE_DENSITY = 6e-10   # kg/m^3 at 175 km
    _REFERENCE_ALTITUDE = 175.0  # km

    def __init__(
        self,
        f107: float = DEFAULT_F107,
        ap: float = DEFAULT_AP,
        body_radius: float = EARTH_EQUATORIAL_RADIUS,
        atmosphere_limit: float = EARTH_ATMOSPHERE_LIMIT,
    ) -> None:
        self.f107 = f107
        self.ap = ap
        self.body_radius = body_radius
        self.atmosphere_limit = atmosphere_limit

    # ------------------------------------------------------------------ #
    def exospheric_temperature(self) -> float:
        """Exospheric temperature (K) from F10.7 and Ap."""
        return 900.0 + 2.5 * (self.f107 - 70.0) + 1.5 * self.ap

    # ------------------------------------------------------------------ #
    def scale_height(self, altitude_km: float) -> float:
        """Density scale height (km) at *altitude_km*."""
        altitude_km = min(altitude_km, self.atmosphere_limit / 1000.0)
        molecular_mass = 27.0 - 0.012 * (altitude_km - 200.0)
        return self.exospheric_temperature() / molecular_mass

    # ------------------------------------------------------------------ #
    def get_density(self, altitude: float) -> float:
        """
        Atmospheric density at a geometric altitude.

        Parameters
        ----------
        altitude : float
            Altitude above the reference radius (m).

        Returns
        -------
        float
            Density (kg/m^3); 0.0 below the surface.
        """
        if altitude < 0.0:
            return 0.0

        h_km = altitude / 1000.0
        H = self.scale_height(h_km)
        return float(self._REFERENCE_DENSITY
                     * np.exp(-(h_km - self._REFERENCE_ALTITUDE) / H))

    # ------------------------------------------------------------------ #
    def get_density_from_position(self, position_eci: NDArray) -> float:
        """Density at an ECI position (altitude above ``body_radius``)."""
        r = np.linalg.norm(position_eci)
        return self.get_density(r - self.body_radius)
