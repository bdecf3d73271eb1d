"""Base class of acceleration models.

Every model follows the same two-phase contract: :meth:`update` computes
and caches the acceleration at a time (idempotent for a repeated time),
then :attr:`acceleration` returns the cached value as often as needed.
:meth:`reset_time` forces the next :meth:`update` to recompute even when
the time is unchanged, as happens between integrator stages that share a
time but not a state.
"""

from __future__ import annotations

import abc

import jax.numpy as jnp
from jax import Array

from propax.exceptions import EvaluationError


class AccelerationModel(abc.ABC):
    """Acceleration exerted on one body by another."""

    #: Acceleration type of the model, set by concrete subclasses.
    acceleration_type = None

    def __init__(self):
        self._time: float | None = None
        self._acceleration: Array | None = None

    @abc.abstractmethod
    def _compute_acceleration(self, time: float) -> Array:
        """Evaluate the acceleration from the current state of the bodies."""

    def update(self, time: float) -> None:
        """Recompute and cache the acceleration at *time*.

        Raises:
            EvaluationError: If the result is not finite.
        """
        time = float(time)
        if self._time == time:
            return
        acceleration = self._compute_acceleration(time)
        if not bool(jnp.all(jnp.isfinite(acceleration))):
            raise EvaluationError(f"{type(self).__name__} produced a non-finite acceleration at t={time!r}")
        self._acceleration = acceleration
        self._time = time

    def reset_time(self) -> None:
        self._time = None

    @property
    def current_time(self) -> float | None:
        return self._time

    @property
    def acceleration(self) -> Array:
        """Acceleration [m/s^2] from the last :meth:`update`, inertial axes."""
        if self._acceleration is None:
            raise EvaluationError(f"{type(self).__name__} has not been updated")
        return self._acceleration

    def get_acceleration(self) -> Array:
        return self.acceleration

    def update_and_get(self, time: float) -> Array:
        self.update(time)
        return self.acceleration
