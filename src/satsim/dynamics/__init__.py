"""
===============================================================================
SATSIM - Dynamics Module
===============================================================================
Equations of motion and the integrators that advance them.

Submodules:
    orbital_mechanics  -- Element <-> Cartesian conversions, period, anomalies
    environment        -- Gravity (point mass + J2) and solar-flux atmosphere
    profiles           -- Time-windowed thrust and torque profiles
    force_model        -- Translational acceleration (gravity, drag, thrust)
    attitude_dynamics  -- Euler's equations and quaternion kinematics in LVLH
    integrators        -- RK4, RKF45 and adaptive step control
===============================================================================
"""
