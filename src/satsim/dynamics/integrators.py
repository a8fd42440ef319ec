"""
===============================================================================
SATSIM - Numerical Integrators
===============================================================================
Explicit Runge-Kutta steppers for the combined satellite state:

    y = [ r (3) | v (3) | q (4) | omega_rel (3) ]      13 elements

    rk4_step       -- classical fixed-step 4th-order Runge-Kutta
    rkf45_step     -- Runge-Kutta-Fehlberg 4(5) embedded pair
    adaptive_step  -- RKF45 with step-size control and internal retries

The derivative function has signature ``f(t, y) -> dy/dt`` and must not
mutate *y*.  Every stage calls it with the stage time and stage state, so
frame-dependent forces (LVLH thrust, orbit-rate coupling of the attitude)
are always evaluated at the stage's own position and velocity.

Error control:
    The local error estimate is the largest 2-norm of (y5 - y4) taken over
    the four component groups (position, velocity, quaternion, rate).  A step
    is accepted when that estimate does not exceed the tolerance.  The next
    step proposal is

        h_new = h * clip(safety * (tol / err)^(1/5), min_factor, max_factor)

    clipped to [min_step, max_step].  The 5th-order solution advances the
    state (local extrapolation).

References:
    - Fehlberg, E. "Low-order classical Runge-Kutta formulas with stepsize
      control," NASA TR R-315, 1969.
    - Hairer, Norsett & Wanner, "Solving ODEs I," 2nd ed., Springer, 1993.
===============================================================================
"""

import logging
import numpy as np
from dataclasses import dataclass
from typing import Callable, Tuple

from satsim.core.exceptions import InvalidArgumentError

logger = logging.getLogger(__name__)

DerivativeFunction = Callable[[float, np.ndarray], np.ndarray]


# =============================================================================
# STATE LAYOUT
# =============================================================================
R_SLICE = slice(0, 3)
V_SLICE = slice(3, 6)
Q_SLICE = slice(6, 10)
W_SLICE = slice(10, 13)
STATE_SIZE = 13

_ERROR_GROUPS = (R_SLICE, V_SLICE, Q_SLICE, W_SLICE)

# Adaptive step status codes
STEP_ACCEPTED = 0
STEP_REJECTED = 1


# =============================================================================
# CONFIGURATION
# =============================================================================

@dataclass
class IntegratorConfig:
    """
    Step-size controller settings for ``adaptive_step``.

    Attributes:
        safety: Safety factor applied to the optimal step estimate.
        min_factor: Smallest allowed ratio h_new / h.
        max_factor: Largest allowed ratio h_new / h.
        min_step: Lower bound on any proposed step [s].
        max_step: Upper bound on any proposed step [s].
        max_attempts: Step attempts before giving up and reporting rejection.
    """
    safety: float = 0.9
    min_factor: float = 0.2
    max_factor: float = 5.0
    min_step: float = 1e-6
    max_step: float = 3600.0
    max_attempts: int = 10


@dataclass
class AdaptiveStepResult:
    """
    Outcome of one ``adaptive_step`` call.

    Attributes:
        state: New state if accepted, otherwise the input state (a copy).
        step_taken: Step actually used [s]; 0.0 when rejected.
        next_step: Proposed size of the following step [s].
        status: STEP_ACCEPTED or STEP_REJECTED.
        attempts: Number of RKF45 evaluations performed.
        error: Error estimate of the last attempt.
    """
    state: np.ndarray
    step_taken: float
    next_step: float
    status: int
    attempts: int
    error: float

    @property
    def accepted(self) -> bool:
        return self.status == STEP_ACCEPTED


# =============================================================================
# FEHLBERG TABLEAU
# =============================================================================
_C = np.array([0.0, 1.0 / 4.0, 3.0 / 8.0, 12.0 / 13.0, 1.0, 1.0 / 2.0])

_A = (
    (),
    (1.0 / 4.0,),
    (3.0 / 32.0, 9.0 / 32.0),
    (1932.0 / 2197.0, -7200.0 / 2197.0, 7296.0 / 2197.0),
    (439.0 / 216.0, -8.0, 3680.0 / 513.0, -845.0 / 4104.0),
    (-8.0 / 27.0, 2.0, -3544.0 / 2565.0, 1859.0 / 4104.0, -11.0 / 40.0),
)

# 4th-order weights
_B4 = np.array([25.0 / 216.0, 0.0, 1408.0 / 2565.0, 2197.0 / 4104.0,
                -1.0 / 5.0, 0.0])

# 5th-order weights
_B5 = np.array([16.0 / 135.0, 0.0, 6656.0 / 12825.0, 28561.0 / 56430.0,
                -9.0 / 50.0, 2.0 / 55.0])


def _check_step(h: float) -> None:
    if not h > 0.0:
        raise InvalidArgumentError(f"Integration step must be positive, got {h}")


# =============================================================================
# FIXED STEP
# =============================================================================

def rk4_step(f: DerivativeFunction, t: float, y: np.ndarray, h: float) -> np.ndarray:
    """
    Classical 4th-order Runge-Kutta step.

        k1 = f(t,       y)
        k2 = f(t + h/2, y + h/2 * k1)
        k3 = f(t + h/2, y + h/2 * k2)
        k4 = f(t + h,   y + h   * k3)
        y_new = y + h/6 * (k1 + 2*k2 + 2*k3 + k4)

    Parameters
    ----------
    f : callable
        Derivative ``f(t, y)``.
    t : float
        Current time [s].
    y : np.ndarray
        Current state.
    h : float
        Step size [s], strictly positive.

    Returns
    -------
    np.ndarray
        State at t + h.
    """
    _check_step(h)
    y = np.asarray(y, dtype=np.float64)

    k1 = f(t, y)
    k2 = f(t + 0.5 * h, y + 0.5 * h * k1)
    k3 = f(t + 0.5 * h, y + 0.5 * h * k2)
    k4 = f(t + h, y + h * k3)

    return y + (h / 6.0) * (k1 + 2.0 * k2 + 2.0 * k3 + k4)


# =============================================================================
# EMBEDDED PAIR
# =============================================================================

def error_norm(delta: np.ndarray) -> float:
    """Largest 2-norm of *delta* over the position, velocity, quaternion and rate groups."""
    return float(max(np.linalg.norm(delta[group]) for group in _ERROR_GROUPS))


def rkf45_step(f: DerivativeFunction, t: float, y: np.ndarray,
               h: float) -> Tuple[np.ndarray, float]:
    """
    One Runge-Kutta-Fehlberg 4(5) step.

    Six derivative evaluations give both a 4th- and a 5th-order solution.
    The 5th-order one is returned together with the error estimate.

    Returns
    -------
    y5 : np.ndarray
        5th-order state at t + h.
    error : float
        ``error_norm(y5 - y4)``.
    """
    _check_step(h)
    y = np.asarray(y, dtype=np.float64)

    k = np.empty((6, y.size), dtype=np.float64)
    for stage in range(6):
        y_stage = y.copy()
        for j, a_ij in enumerate(_A[stage]):
            y_stage += h * a_ij * k[j]
        k[stage] = f(t + _C[stage] * h, y_stage)

    y4 = y + h * (_B4 @ k)
    y5 = y + h * (_B5 @ k)

    return y5, error_norm(y5 - y4)


def next_step_size(h: float, error: float, tolerance: float,
                   config: IntegratorConfig) -> float:
    """Step proposal from the error estimate of a step of size *h*."""
    if error == 0.0:
        factor = config.max_factor
    elif not np.isfinite(error):
        factor = config.min_factor
    else:
        factor = config.safety * (tolerance / error) ** 0.2
        factor = min(max(factor, config.min_factor), config.max_factor)
    return float(np.clip(h * factor, config.min_step, config.max_step))


# =============================================================================
# ADAPTIVE STEP
# =============================================================================

def adaptive_step(
    f: DerivativeFunction,
    t: float,
    y: np.ndarray,
    h: float,
    tolerance: float,
    config: IntegratorConfig = None,
) -> AdaptiveStepResult:
    """
    Take one error-controlled RKF45 step, retrying with smaller steps.

    The first attempt uses *h*.  On failure the step is shrunk with
    ``next_step_size`` and retried, up to ``config.max_attempts`` attempts.
    When every attempt fails the returned state is the input state and the
    status is STEP_REJECTED.

    Parameters
    ----------
    f : callable
        Derivative ``f(t, y)``.
    t : float
        Current time [s].
    y : np.ndarray
        Current state.
    h : float
        Initial trial step [s], strictly positive.
    tolerance : float
        Error tolerance, strictly positive.
    config : IntegratorConfig, optional
        Controller settings; defaults are used when omitted.

    Returns
    -------
    AdaptiveStepResult
    """
    _check_step(h)
    if not tolerance > 0.0:
        raise InvalidArgumentError(f"Tolerance must be positive, got {tolerance}")
    if config is None:
        config = IntegratorConfig()

    y = np.asarray(y, dtype=np.float64)
    step = h
    error = np.inf

    for attempt in range(1, config.max_attempts + 1):
        y_new, error = rkf45_step(f, t, y, step)
        proposal = next_step_size(step, error, tolerance, config)

        if np.isfinite(error) and error <= tolerance:
            logger.debug(
                "RKF45 accepted t=%.6f h=%.6e err=%.3e next=%.6e (attempt %d)",
                t, step, error, proposal, attempt,
            )
            return AdaptiveStepResult(
                state=y_new, step_taken=step, next_step=proposal,
                status=STEP_ACCEPTED, attempts=attempt, error=error,
            )

        logger.debug(
            "RKF45 retry t=%.6f h=%.6e err=%.3e tol=%.3e",
            t, step, error, tolerance,
        )
        step = proposal

    logger.warning(
        "RKF45 step rejected at t=%.6f after %d attempts (err=%.3e, tol=%.3e)",
        t, config.max_attempts, error, tolerance,
    )
    return AdaptiveStepResult(
        state=y.copy(), step_taken=0.0, next_step=step,
        status=STEP_REJECTED, attempts=config.max_attempts, error=float(error),
    )
