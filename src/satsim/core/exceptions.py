"""
===============================================================================
SATSIM - Exception Types
===============================================================================
The argument errors derive from ValueError so that callers written against
plain ValueError checks keep working.

    ConfigurationError    -- bad satellite definition, raised at construction
    InvalidArgumentError  -- bad argument to an operation, state untouched
    PropagationError      -- a multi-step run stalled on rejected steps

A rejected adaptive step is not an exception; it is reported through the
status code returned by Satellite.evolve_rk45.
===============================================================================
"""


class SatsimError(Exception):
    """Base class for all satsim errors."""


class ConfigurationError(SatsimError, ValueError):
    """Satellite configuration is incomplete or physically unsupported."""


class InvalidArgumentError(SatsimError, ValueError):
    """An operation was called with an argument it cannot accept."""


class PropagationError(SatsimError, RuntimeError):
    """A propagation run could not make progress (repeated step rejection)."""
