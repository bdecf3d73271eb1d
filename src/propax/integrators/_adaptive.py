"""Step-size control shared by the embedded Runge-Kutta integrators.

The rejection loop of :func:`~propax.integrators.rkf45_step` runs eagerly
in Python because the dynamics it drives update bodies and acceleration
models in place.  These helpers therefore return plain Python floats.
"""

from __future__ import annotations

import math

import jax.numpy as jnp
from jax.typing import ArrayLike

from propax.config import get_dtype


def compute_error_norm(
    error_vec: ArrayLike,
    state_new: ArrayLike,
    state_old: ArrayLike,
    abs_tol: float,
    rel_tol: float,
) -> float:
    """Normalized infinity-norm of the local error estimate.

    The per-component tolerance is
    ``abs_tol + rel_tol * max(|y_new_i|, |y_old_i|)``; a step is acceptable
    when the returned value is <= 1.0.

    Args:
        error_vec: Difference between high-order and low-order solutions.
        state_new: High-order solution.
        state_old: State at the beginning of the step.
        abs_tol: Absolute error tolerance.
        rel_tol: Relative error tolerance.

    Returns:
        float: Normalized error.
    """
    dtype = get_dtype()
    error_vec = jnp.asarray(error_vec, dtype=dtype)
    scale = abs_tol + rel_tol * jnp.maximum(
        jnp.abs(jnp.asarray(state_new, dtype=dtype)),
        jnp.abs(jnp.asarray(state_old, dtype=dtype)),
    )
    return float(jnp.max(jnp.abs(error_vec) / scale))


def compute_next_step_size(
    error: float,
    h: float,
    order: float,
    safety_factor: float,
    min_scale_factor: float,
    max_scale_factor: float,
    min_step: float,
    max_step: float,
) -> float:
    """Predict the next step size from the current normalized error.

    ``|h_next| = |h| * S * (1 / error) ** (1 / (order + 1))``, with the
    scale factor clamped to ``[min_scale_factor, max_scale_factor]`` and
    the result clamped to ``[min_step, max_step]``.  The sign of *h* is
    preserved for backward integration.

    Args:
        error: Normalized error from :func:`compute_error_norm`.
        h: Current step size.
        order: Order of the error estimator.
        safety_factor: Multiplicative safety factor.
        min_scale_factor: Minimum allowed ratio ``|h_next| / |h|``.
        max_scale_factor: Maximum allowed ratio ``|h_next| / |h|``.
        min_step: Absolute minimum step size.
        max_step: Absolute maximum step size.

    Returns:
        float: Suggested next step size.
    """
    if error > 0.0:
        scale = safety_factor * (1.0 / error) ** (1.0 / (order + 1.0))
    else:
        scale = max_scale_factor
    scale = min(max(scale, min_scale_factor), max_scale_factor)
    abs_h_next = min(max(abs(h) * scale, min_step), max_step)
    return math.copysign(abs_h_next, h)
