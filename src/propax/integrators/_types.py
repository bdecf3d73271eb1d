"""Type definitions for numerical integrators.

- :class:`StepResult`: Output of every step function, containing the new state,
  actual timestep used, error estimate, and suggested next timestep.
- :class:`AdaptiveConfig`: Configuration for adaptive step-size control in
  the RKF45 integrator.

Both types are :class:`~typing.NamedTuple` instances, so they unpack like
tuples and are treated as pytrees by JAX.
"""

from __future__ import annotations

from typing import NamedTuple

from jax import Array


class StepResult(NamedTuple):
    """Result of a single integrator step.

    For fixed-step methods (RK4), ``error_estimate`` is always 0.0 and
    ``dt_next`` equals ``dt_used``.

    Attributes:
        state: State vector at time ``t + dt_used``.
        dt_used: Actual timestep taken. For adaptive methods, this may be
            smaller than the requested ``dt`` if the step was rejected and
            retried.
        error_estimate: Normalized error estimate. A value <= 1.0 means the
            step met the tolerance. Always 0.0 for RK4.
        dt_next: Suggested timestep for the next step.
    """

    state: Array
    dt_used: Array
    error_estimate: Array
    dt_next: Array


class AdaptiveConfig(NamedTuple):
    """Configuration for adaptive step-size control.

    Attributes:
        abs_tol: Absolute error tolerance per component.
        rel_tol: Relative error tolerance per component.
        safety_factor: Multiplicative safety factor applied to step-size
            predictions.
        min_scale_factor: Minimum allowed ratio ``dt_next / dt_used``.
        max_scale_factor: Maximum allowed ratio ``dt_next / dt_used``.
        min_step: Absolute minimum allowed step size. A step at this size
            is accepted regardless of error.
        max_step: Absolute maximum allowed step size.
        max_step_attempts: Maximum number of trial steps before the last
            trial is accepted regardless of error.
    """

    abs_tol: float = 1e-6
    rel_tol: float = 1e-3
    safety_factor: float = 0.9
    min_scale_factor: float = 0.2
    max_scale_factor: float = 10.0
    min_step: float = 1e-12
    max_step: float = 900.0
    max_step_attempts: int = 10
