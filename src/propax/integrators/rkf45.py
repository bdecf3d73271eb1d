"""Runge-Kutta-Fehlberg 4(5) adaptive integrator (RKF45).

Six stages per trial step; the 5th-order solution is propagated and the
embedded 4th-order solution provides the error estimate.  Rejected trial
steps are retried with a smaller step in a plain Python loop.

- Nodes (c): [0, 1/4, 3/8, 12/13, 1, 1/2]
- 5th-order weights (b_high): [16/135, 0, 6656/12825, 28561/56430, -9/50, 2/55]
- 4th-order weights (b_low): [25/216, 0, 1408/2565, 2197/4104, -1/5, 0]
"""

from __future__ import annotations

from collections.abc import Callable

import jax.numpy as jnp
from jax import Array
from jax.typing import ArrayLike

from propax.config import get_dtype
from propax.integrators._adaptive import compute_error_norm, compute_next_step_size
from propax.integrators._types import AdaptiveConfig, StepResult

_C = (0.0, 1.0 / 4.0, 3.0 / 8.0, 12.0 / 13.0, 1.0, 1.0 / 2.0)

_A1 = (1.0 / 4.0,)
_A2 = (3.0 / 32.0, 9.0 / 32.0)
_A3 = (1932.0 / 2197.0, -7200.0 / 2197.0, 7296.0 / 2197.0)
_A4 = (439.0 / 216.0, -8.0, 3680.0 / 513.0, -845.0 / 4104.0)
_A5 = (-8.0 / 27.0, 2.0, -3544.0 / 2565.0, 1859.0 / 4104.0, -11.0 / 40.0)

_B_HIGH = (16.0 / 135.0, 0.0, 6656.0 / 12825.0, 28561.0 / 56430.0, -9.0 / 50.0, 2.0 / 55.0)
_B_LOW = (25.0 / 216.0, 0.0, 1408.0 / 2565.0, 2197.0 / 4104.0, -1.0 / 5.0, 0.0)

_ORDER = 4.0


def rkf45_step(
    dynamics: Callable[[ArrayLike, ArrayLike], Array],
    t: ArrayLike,
    state: ArrayLike,
    dt: ArrayLike,
    config: AdaptiveConfig | None = None,
) -> StepResult:
    """Perform a single adaptive RKF45 integration step.

    Args:
        dynamics: ODE right-hand side function ``f(t, x) -> dx/dt``.
        t: Current time.
        state: Current state vector.
        dt: Requested timestep. May be negative for backward integration.
        config: Adaptive step-size configuration. Uses default
            :class:`AdaptiveConfig` if ``None``.

    Returns:
        StepResult: ``state`` at ``t + dt_used``, the step actually taken,
        the normalized error of the accepted step and the suggested next
        step.

    Examples:
        ```python
        import jax.numpy as jnp
        from propax.integrators import rkf45_step
        def harmonic(t, x):
            return jnp.array([x[1], -x[0]])
        result = rkf45_step(harmonic, 0.0, jnp.array([1.0, 0.0]), 0.1)
        ```
    """
    if config is None:
        config = AdaptiveConfig()

    dtype = get_dtype()
    t = jnp.asarray(t, dtype=dtype)
    state = jnp.asarray(state, dtype=dtype)

    def _attempt_step(h):
        k0 = dynamics(t, state)
        k1 = dynamics(t + _C[1] * h, state + h * _A1[0] * k0)
        k2 = dynamics(t + _C[2] * h, state + h * (_A2[0] * k0 + _A2[1] * k1))
        k3 = dynamics(t + _C[3] * h, state + h * (_A3[0] * k0 + _A3[1] * k1 + _A3[2] * k2))
        k4 = dynamics(
            t + _C[4] * h,
            state + h * (_A4[0] * k0 + _A4[1] * k1 + _A4[2] * k2 + _A4[3] * k3),
        )
        k5 = dynamics(
            t + _C[5] * h,
            state + h * (_A5[0] * k0 + _A5[1] * k1 + _A5[2] * k2 + _A5[3] * k3 + _A5[4] * k4),
        )

        state_high = state + h * (
            _B_HIGH[0] * k0 + _B_HIGH[2] * k2 + _B_HIGH[3] * k3 + _B_HIGH[4] * k4 + _B_HIGH[5] * k5
        )
        state_low = state + h * (_B_LOW[0] * k0 + _B_LOW[2] * k2 + _B_LOW[3] * k3 + _B_LOW[4] * k4)

        error = compute_error_norm(
            state_high - state_low, state_high, state, config.abs_tol, config.rel_tol
        )
        return state_high, error

    def _next(error, h):
        return compute_next_step_size(
            error,
            h,
            _ORDER,
            config.safety_factor,
            config.min_scale_factor,
            config.max_scale_factor,
            config.min_step,
            config.max_step,
        )

    # h always remains the step that produced state_new
    h = float(dt)
    attempts = max(config.max_step_attempts, 1)
    for attempt in range(attempts):
        state_new, error = _attempt_step(h)
        if error <= 1.0 or abs(h) <= config.min_step or attempt == attempts - 1:
            break
        h = _next(error, h)

    return StepResult(
        state=state_new,
        dt_used=jnp.asarray(h, dtype=dtype),
        error_estimate=jnp.asarray(error, dtype=dtype),
        dt_next=jnp.asarray(_next(error, h), dtype=dtype),
    )
