"""
===============================================================================
SATSIM - Propagation Runner
===============================================================================
Drives the caller-side evolution loop for one or more satellites and
collects a state history.

    propagate_adaptive -- RKF45, feeding each recommended step back in
    propagate_fixed    -- RK4 with a constant step
    propagate_all      -- run several satellites and stack their histories

Each history is a ``pandas.DataFrame`` with one row per accepted step
(plus the initial state).  When ``track_elements`` is set the classical
elements are refreshed after every step and recorded as well.
===============================================================================
"""

import logging
import time
from typing import Dict, Iterable, List

import numpy as np
import pandas as pd

from satsim.core.exceptions import InvalidArgumentError, PropagationError
from satsim.dynamics.integrators import STEP_ACCEPTED
from satsim.dynamics.orbital_mechanics import ELEMENT_NAMES
from satsim.simulation.satellite import Satellite, ATTITUDE_NAMES

logger = logging.getLogger(__name__)

# Consecutive rejected steps tolerated before a run is abandoned
MAX_CONSECUTIVE_REJECTIONS = 5

# Remaining time below which a run is considered complete (s)
_TIME_EPSILON = 1e-9


def snapshot(satellite: Satellite, track_elements: bool = False) -> Dict[str, float]:
    """One history row describing the current satellite state."""
    r = satellite.get_eci_position()
    v = satellite.get_eci_velocity()
    row = {
        "time": satellite.get_instantaneous_time(),
        "name": satellite.get_name(),
        "x": r[0], "y": r[1], "z": r[2],
        "vx": v[0], "vy": v[1], "vz": v[2],
        "radius": satellite.get_radius_eci(),
        "speed": satellite.get_speed_eci(),
        "energy": satellite.get_total_energy(),
        "rotational_energy": satellite.get_rotational_kinetic_energy(),
    }
    for name in ATTITUDE_NAMES:
        row[name] = satellite.get_attitude_val(name)
    if track_elements:
        row.update(zip(ELEMENT_NAMES, satellite.get_orbital_elements()))
    return row


def propagate_adaptive(
    satellite: Satellite,
    duration: float,
    tolerance: float,
    initial_step: float,
    perturbation: bool = True,
    atmospheric_drag: bool = False,
    track_elements: bool = False,
) -> pd.DataFrame:
    """
    Propagate *satellite* for *duration* seconds with adaptive RKF45 steps.

    The last step is shortened so the run ends exactly at the requested
    time.  A rejected step is retried with the recommended smaller step.

    Raises
    ------
    InvalidArgumentError
        Non-positive duration, tolerance or initial step.
    PropagationError
        More than ``MAX_CONSECUTIVE_REJECTIONS`` rejections in a row.
    """
    if duration <= 0.0:
        raise InvalidArgumentError(f"Duration must be positive, got {duration}")
    if initial_step <= 0.0:
        raise InvalidArgumentError(f"Initial step must be positive, got {initial_step}")
    if tolerance <= 0.0:
        raise InvalidArgumentError(f"Tolerance must be positive, got {tolerance}")

    t_end = satellite.get_instantaneous_time() + duration
    step = initial_step
    rejections = 0
    records: List[Dict[str, float]] = [snapshot(satellite, track_elements)]

    wall_start = time.time()
    while t_end - satellite.get_instantaneous_time() > _TIME_EPSILON:
        h = min(step, t_end - satellite.get_instantaneous_time())
        step, status = satellite.evolve_rk45(
            tolerance, h, perturbation=perturbation, atmospheric_drag=atmospheric_drag,
        )

        if status != STEP_ACCEPTED:
            rejections += 1
            if rejections > MAX_CONSECUTIVE_REJECTIONS:
                raise PropagationError(
                    f"{satellite.get_name()}: {rejections} consecutive rejected steps "
                    f"at t={satellite.get_instantaneous_time():.6f} s"
                )
            continue

        rejections = 0
        if track_elements:
            satellite.update_orbital_elements_from_position_and_velocity()
        records.append(snapshot(satellite, track_elements))

    logger.info(
        "%s: %d steps to t=%.3f s in %.2f s wall time",
        satellite.get_name(), len(records) - 1,
        satellite.get_instantaneous_time(), time.time() - wall_start,
    )
    return pd.DataFrame.from_records(records)


def propagate_fixed(
    satellite: Satellite,
    duration: float,
    timestep: float,
    perturbation: bool = True,
    atmospheric_drag: bool = False,
    track_elements: bool = False,
) -> pd.DataFrame:
    """Propagate *satellite* for *duration* seconds with constant RK4 steps."""
    if duration <= 0.0:
        raise InvalidArgumentError(f"Duration must be positive, got {duration}")
    if timestep <= 0.0:
        raise InvalidArgumentError(f"Timestep must be positive, got {timestep}")

    n_steps = int(np.ceil(duration / timestep - _TIME_EPSILON))
    t_end = satellite.get_instantaneous_time() + duration
    records: List[Dict[str, float]] = [snapshot(satellite, track_elements)]

    for _ in range(n_steps):
        h = min(timestep, t_end - satellite.get_instantaneous_time())
        satellite.evolve_rk4(h, perturbation=perturbation, atmospheric_drag=atmospheric_drag)
        if track_elements:
            satellite.update_orbital_elements_from_position_and_velocity()
        records.append(snapshot(satellite, track_elements))

    logger.info("%s: %d RK4 steps to t=%.3f s",
                satellite.get_name(), n_steps, satellite.get_instantaneous_time())
    return pd.DataFrame.from_records(records)


def propagate_all(satellites: Iterable[Satellite], duration: float, tolerance: float,
                  initial_step: float, **kwargs) -> pd.DataFrame:
    """Run ``propagate_adaptive`` for each satellite in turn and concatenate."""
    histories = [
        propagate_adaptive(sat, duration, tolerance, initial_step, **kwargs)
        for sat in satellites
    ]
    return pd.concat(histories, ignore_index=True)
