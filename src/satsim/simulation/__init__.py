"""
===============================================================================
SATSIM - Simulation Module
===============================================================================
Satellite orchestration and the loops that drive it.

Submodules:
    satellite      -- Satellite class: state, accessors, evolution calls
    config_loader  -- YAML/JSON satellite definitions
    runner         -- Adaptive and fixed-step propagation with state history
===============================================================================
"""
