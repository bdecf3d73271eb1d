"""Ephemerides: deterministic inertial state of a body as a function of time.

Every ephemeris is a pure function of its construction inputs and the
query time, which is what allows the state-derivative model to refresh
non-propagated bodies at any stage time of an integrator step.
"""

from __future__ import annotations

import abc

import jax.numpy as jnp
import numpy as np
from jax import Array
from jax.typing import ArrayLike

from propax.config import get_dtype
from propax.exceptions import ConfigurationError
from propax.interpolation import BoundaryHandling, interpolate_linear, validate_grid
from propax.orbits import mean_motion, state_koe_to_cartesian


class Ephemeris(abc.ABC):
    """Interface of an ephemeris provider."""

    @abc.abstractmethod
    def state_at(self, time: float) -> Array:
        """Return the 6-element inertial state ``[r, v]`` at *time* [m, m/s]."""


class ConstantEphemeris(Ephemeris):
    """Ephemeris returning the same state at every time.

    Args:
        state: 6-element state ``[r, v]`` [m, m/s].
    """

    def __init__(self, state: ArrayLike):
        state = jnp.asarray(state, dtype=get_dtype())
        if state.shape != (6,):
            raise ConfigurationError(f"Ephemeris state must have shape (6,), got {state.shape}")
        self._state = state

    def state_at(self, time: float) -> Array:
        return self._state


class TabulatedEphemeris(Ephemeris):
    """Linearly interpolated ephemeris over a fixed table of states.

    Args:
        times: Strictly increasing epochs [s], shape ``(N,)`` with N >= 2.
        states: States at *times*, shape ``(N, 6)``.
        boundary: Behaviour for queries outside ``[times[0], times[-1]]``.
            Defaults to raising :class:`~propax.exceptions.EvaluationError`.

    Examples:
        ```python
        import jax.numpy as jnp
        from propax.bodies import TabulatedEphemeris
        eph = TabulatedEphemeris([0.0, 10.0], jnp.zeros((2, 6)))
        eph.state_at(5.0)
        ```
    """

    def __init__(
        self,
        times: ArrayLike,
        states: ArrayLike,
        boundary: BoundaryHandling = BoundaryHandling.THROW,
    ):
        self._times = validate_grid(times, "Ephemeris times")
        states = jnp.asarray(states, dtype=get_dtype())
        if states.shape != (self._times.shape[0], 6):
            raise ConfigurationError(
                f"Ephemeris states must have shape ({self._times.shape[0]}, 6), got {states.shape}"
            )
        self._states = states
        self.boundary = boundary

    @classmethod
    def from_history(
        cls,
        history: dict[float, ArrayLike],
        boundary: BoundaryHandling = BoundaryHandling.THROW,
    ) -> TabulatedEphemeris:
        """Build an ephemeris from a ``{time: state}`` mapping (e.g. a state history)."""
        times = sorted(history)
        states = np.stack([np.asarray(history[t]) for t in times])
        return cls(times, states, boundary)

    @property
    def time_range(self) -> tuple[float, float]:
        """First and last tabulated epoch [s]."""
        return float(self._times[0]), float(self._times[-1])

    def state_at(self, time: float) -> Array:
        return interpolate_linear(self._times, self._states, time, self.boundary, "Ephemeris time")


class KeplerEphemeris(Ephemeris):
    """Analytic two-body ephemeris.

    The returned state is relative to the central body of the orbit, plus
    an optional constant offset (e.g. the central body's own fixed state).

    Args:
        initial_elements: ``[a, e, i, RAAN, omega, M0]`` at *reference_time*.
        reference_time: Epoch of the elements [s].
        gravitational_parameter: μ of the central body [m^3/s^2].
        origin_state: Constant 6-element state added to the result.
    """

    def __init__(
        self,
        initial_elements: ArrayLike,
        reference_time: float,
        gravitational_parameter: float,
        origin_state: ArrayLike | None = None,
    ):
        elements = jnp.asarray(initial_elements, dtype=get_dtype())
        if elements.shape != (6,):
            raise ConfigurationError(f"Keplerian elements must have shape (6,), got {elements.shape}")
        if not 0.0 <= float(elements[1]) < 1.0:
            raise ConfigurationError("KeplerEphemeris supports elliptic orbits only (0 <= e < 1)")
        self._elements = elements
        self._reference_time = float(reference_time)
        self._gm = float(gravitational_parameter)
        self._n = mean_motion(elements[0], self._gm)
        if origin_state is None:
            origin_state = jnp.zeros(6, dtype=get_dtype())
        self._origin = jnp.asarray(origin_state, dtype=get_dtype())

    def state_at(self, time: float) -> Array:
        M = self._elements[5] + self._n * (time - self._reference_time)
        elements = self._elements.at[5].set(M)
        return self._origin + state_koe_to_cartesian(elements, self._gm)
