"""
===============================================================================
SATSIM - Core Module
===============================================================================
Leaf utilities shared by every other module.

Submodules:
    constants   -- Physical constants (SI) and numerical thresholds
    exceptions  -- ConfigurationError / InvalidArgumentError
    quaternion  -- Quaternion class and array-level quaternion helpers
    frames      -- Perifocal, ECI, LVLH and body frame transforms
===============================================================================
"""
