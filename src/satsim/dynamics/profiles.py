"""
===============================================================================
SATSIM - Time-Windowed Force and Torque Profiles
===============================================================================
A profile is a constant 3-vector that applies while the simulation clock lies
in the closed-open window [t_start, t_end).

    ThrustProfile -- force in LVLH coordinates (N)
    TorqueProfile -- torque in body coordinates (N*m)

Profiles are immutable once created.  The force and torque models keep them
in flat lists and sum the active ones at each derivative evaluation.
===============================================================================
"""

import numpy as np
from dataclasses import dataclass
from typing import Iterable

from satsim.core.exceptions import InvalidArgumentError


@dataclass(frozen=True)
class TimedProfile:
    """
    Constant vector active on [t_start, t_end).

    Attributes
    ----------
    t_start : float
        Window start (s), inclusive.
    t_end : float
        Window end (s), exclusive.  Must be greater than t_start.
    vector : np.ndarray
        3-element vector (read-only copy of the input).
    """
    t_start: float
    t_end: float
    vector: np.ndarray

    def __post_init__(self):
        if not self.t_start < self.t_end:
            raise InvalidArgumentError(
                f"Profile window must satisfy t_start < t_end, "
                f"got [{self.t_start}, {self.t_end})"
            )
        vec = np.array(self.vector, dtype=np.float64)
        if vec.shape != (3,):
            raise InvalidArgumentError(
                f"Profile vector must have 3 components, got shape {vec.shape}"
            )
        vec.flags.writeable = False
        object.__setattr__(self, "t_start", float(self.t_start))
        object.__setattr__(self, "t_end", float(self.t_end))
        object.__setattr__(self, "vector", vec)

    @classmethod
    def from_direction(cls, direction, magnitude: float,
                       t_start: float, t_end: float) -> "TimedProfile":
        """
        Build a profile from a direction and a magnitude.

        The direction is normalised first, so only its orientation matters.
        """
        direction = np.asarray(direction, dtype=np.float64)
        norm = np.linalg.norm(direction)
        if norm == 0.0:
            raise InvalidArgumentError("Profile direction must be non-zero.")
        return cls(t_start, t_end, magnitude * direction / norm)

    def is_active(self, t: float) -> bool:
        """True when t_start <= t < t_end."""
        return self.t_start <= t < self.t_end


@dataclass(frozen=True)
class ThrustProfile(TimedProfile):
    """Thrust force (N) in LVLH coordinates, acting through the centre of mass."""


@dataclass(frozen=True)
class TorqueProfile(TimedProfile):
    """Torque (N*m) in body coordinates."""


def sum_active(profiles: Iterable[TimedProfile], t: float) -> np.ndarray:
    """Sum of the vectors of all profiles active at time *t*."""
    total = np.zeros(3, dtype=np.float64)
    for profile in profiles:
        if profile.is_active(t):
            total += profile.vector
    return total
