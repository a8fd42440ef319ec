"""
===============================================================================
SATSIM - Satellite Orbit and Attitude Propagation
===============================================================================
Propagates Earth-orbiting satellites under point-mass gravity, optional J2,
optional atmospheric drag, and time-windowed LVLH thrust and body-frame
torque profiles.

Subpackages:
    core        -- Constants, exceptions, quaternions, frame transforms
    dynamics    -- Element conversions, environment, force/torque models,
                   integrators
    simulation  -- Satellite, configuration loading, propagation runner
===============================================================================
"""

from satsim.core.exceptions import (
    SatsimError, ConfigurationError, InvalidArgumentError, PropagationError,
)
from satsim.dynamics.integrators import STEP_ACCEPTED, STEP_REJECTED, IntegratorConfig
from satsim.simulation.satellite import Satellite
from satsim.simulation.config_loader import load_satellite_config, load_satellites

__version__ = "0.1.0"
