"""Bodies and their state providers.

A :class:`Body` owns the environment models attached to it (ephemeris,
gravity field, rotation, atmosphere, aerodynamics, mass, vehicle systems)
and its *current* inertial state together with the time it was set at.
Exactly one writer refreshes that state during an evaluation: the state
derivative model, either from the integrated state vector
(:meth:`Body.set_state`) or from the ephemeris
(:meth:`Body.update_from_ephemeris`).  Acceleration models only read it.
"""

from __future__ import annotations

from collections.abc import Callable

import jax.numpy as jnp
from jax import Array
from jax.typing import ArrayLike

from propax.config import get_dtype, get_time_tolerance
from propax.exceptions import ConfigurationError, EvaluationError


class Body:
    """A named body in a simulation.

    Args:
        name: Unique name within its :class:`~propax.bodies.SystemOfBodies`.
        ephemeris: Source of the inertial state when the body is not
            propagated.
        gravity_field: Gravity field model.
        rotation_model: Orientation of the body-fixed frame.
        atmosphere: Atmosphere model (for bodies a vehicle flies through).
        mean_radius: Mean radius [m] used for altitudes above this body.
        aerodynamic_coefficients: Aerodynamic coefficient interface.
        mass: Constant mass [kg] or callable ``mass(time)``.
        vehicle_systems: Control-surface state.
    """

    def __init__(
        self,
        name: str,
        ephemeris=None,
        gravity_field=None,
        rotation_model=None,
        atmosphere=None,
        mean_radius: float | None = None,
        aerodynamic_coefficients=None,
        mass: float | Callable[[float], float] | None = None,
        vehicle_systems=None,
    ):
        self.name = name
        self.index: int | None = None
        self.ephemeris = ephemeris
        self.gravity_field = gravity_field
        self.rotation_model = rotation_model
        self.atmosphere = atmosphere
        self.mean_radius = mean_radius
        self.aerodynamic_coefficients = aerodynamic_coefficients
        self.vehicle_systems = vehicle_systems
        self.flight_conditions = None
        self._mass_function = None
        if mass is not None:
            self.set_mass(mass)

        self._time: float | None = None
        self._state: Array | None = None
        self._rotation_to_body_fixed: Array | None = None

    # ------------------------------------------------------------------
    # Mass
    # ------------------------------------------------------------------

    def set_mass(self, mass: float | Callable[[float], float]) -> None:
        """Set a constant mass [kg] or a mass function of time."""
        if callable(mass):
            self._mass_function = mass
        else:
            value = float(mass)
            if value <= 0.0:
                raise ConfigurationError(f"Mass of {self.name!r} must be positive, got {value}")
            self._mass_function = lambda _time: value

    @property
    def has_mass(self) -> bool:
        return self._mass_function is not None

    @property
    def mass(self) -> float:
        """Mass at the current state time [kg]."""
        if self._mass_function is None:
            raise ConfigurationError(f"Body {self.name!r} has no mass model")
        return self._mass_function(self.current_time)

    # ------------------------------------------------------------------
    # State provider
    # ------------------------------------------------------------------

    def set_state(self, time: float, state: ArrayLike) -> None:
        """Stamp the body with an inertial *state* at *time*."""
        self._time = float(time)
        self._state = jnp.asarray(state, dtype=get_dtype())
        self._rotation_to_body_fixed = None

    def update_from_ephemeris(self, time: float) -> None:
        """Refresh the state from the body's ephemeris at *time*.

        Raises:
            ConfigurationError: If the body has no ephemeris.
        """
        if self.ephemeris is None:
            raise ConfigurationError(f"Body {self.name!r} has no ephemeris")
        time = float(time)
        if self._time == time and self._state is not None:
            return
        self.set_state(time, self.ephemeris.state_at(time))

    def reset_time(self) -> None:
        """Mark the current state as stale."""
        self._time = None

    @property
    def current_time(self) -> float:
        if self._time is None:
            raise EvaluationError(f"State of body {self.name!r} has not been set")
        return self._time

    @property
    def state(self) -> Array:
        """Current inertial state ``[r, v]``."""
        if self._state is None or self._time is None:
            raise EvaluationError(f"State of body {self.name!r} has not been set")
        return self._state

    @property
    def position(self) -> Array:
        return self.state[:3]

    @property
    def velocity(self) -> Array:
        return self.state[3:]

    def get_position(self) -> Array:
        return self.state[:3]

    def get_velocity(self) -> Array:
        return self.state[3:]

    def get_state(self, time: float) -> Array:
        """Current state, checked to be valid at *time*.

        Raises:
            EvaluationError: If the state was set at a different time.
        """
        current = self.current_time
        if abs(current - float(time)) > get_time_tolerance():
            raise EvaluationError(
                f"Stale state of body {self.name!r}: set at t={current!r}, requested at t={time!r}"
            )
        return self._state

    # ------------------------------------------------------------------
    # Orientation
    # ------------------------------------------------------------------

    @property
    def rotation_to_body_fixed(self) -> Array:
        """Rotation from the inertial to the body-fixed frame at the current time."""
        if self.rotation_model is None:
            return jnp.eye(3, dtype=get_dtype())
        if self._rotation_to_body_fixed is None:
            self._rotation_to_body_fixed = self.rotation_model.rotation_to_body_fixed(self.current_time)
        return self._rotation_to_body_fixed

    @property
    def angular_velocity(self) -> Array:
        """Angular velocity of the body-fixed frame in inertial axes [rad/s]."""
        if self.rotation_model is None:
            return jnp.zeros(3, dtype=get_dtype())
        return self.rotation_model.angular_velocity(self.current_time)

    def __repr__(self) -> str:
        return f"Body(name={self.name!r}, index={self.index})"
