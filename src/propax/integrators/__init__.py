"""Numerical ODE integrators used by the dynamics simulator.

- :func:`rk4_step` -- Classic 4th-order Runge-Kutta (fixed step)
- :func:`rkf45_step` -- Runge-Kutta-Fehlberg 4(5) (adaptive step)

All step functions share a common interface::

    result = step_fn(dynamics, t, state, dt)

where ``dynamics(t, x) -> dx`` defines the ODE right-hand side, and the
result is a :class:`StepResult` named tuple.
"""

from propax.integrators._types import AdaptiveConfig, StepResult
from propax.integrators.rk4 import rk4_step
from propax.integrators.rkf45 import rkf45_step

__all__ = [
    "AdaptiveConfig",
    "StepResult",
    "rk4_step",
    "rkf45_step",
]
