"""
===============================================================================
SATSIM - Physical and Numerical Constants
===============================================================================
Central repository for the physical constants used by the propagation
engine. SI units throughout (meters, seconds, kilograms, radians).

The gravitational parameter is formed from G and the Earth's mass so that
the energy and orbital-element computations share one definition of mu.
===============================================================================
"""

import numpy as np


# =============================================================================
# MATHEMATICAL CONSTANTS
# =============================================================================
PI = np.pi
TWO_PI = 2.0 * np.pi
DEG2RAD = PI / 180.0
RAD2DEG = 180.0 / PI

# =============================================================================
# FUNDAMENTAL PHYSICAL CONSTANTS
# =============================================================================
GRAVITATIONAL_CONSTANT = 6.67430e-11   # m^3 / (kg * s^2)

# =============================================================================
# EARTH PARAMETERS
# =============================================================================
EARTH_MASS = 5.97237e24                # kg
EARTH_MU = GRAVITATIONAL_CONSTANT * EARTH_MASS  # m^3/s^2
EARTH_EQUATORIAL_RADIUS = 6378137.0    # WGS84 equatorial radius (m)
EARTH_J2 = 1.08263e-3                  # J2 oblateness coefficient
EARTH_ROTATION_RATE = 7.2921159e-5     # rad/s (sidereal)

# Top of the density fit; the scale height is held at its value here above it
EARTH_ATMOSPHERE_LIMIT = 1000000.0     # m

# =============================================================================
# SPACE WEATHER / DRAG DEFAULTS
# =============================================================================
DEFAULT_F107 = 150.0                   # solar flux units (moderate activity)
DEFAULT_AP = 15.0                      # planetary geomagnetic index
DEFAULT_DRAG_COEFFICIENT = 2.2         # flat plate, free molecular flow
DEFAULT_DRAG_AREA = 1.0                # m^2

# =============================================================================
# NUMERICAL THRESHOLDS
# =============================================================================
# Eccentricity below which the orbit is treated as circular (argp := 0)
CIRCULAR_ECCENTRICITY_TOL = 1e-10

# sin(inclination) below which the orbit is treated as equatorial
EQUATORIAL_INCLINATION_TOL = 1e-12

# =============================================================================
# USEFUL DERIVED QUANTITIES
# =============================================================================
LEO_ALTITUDE = 400000.0               # m
LEO_RADIUS = EARTH_EQUATORIAL_RADIUS + LEO_ALTITUDE
LEO_VELOCITY = np.sqrt(EARTH_MU / LEO_RADIUS)
LEO_PERIOD = TWO_PI * np.sqrt(LEO_RADIUS**3 / EARTH_MU)
