"""Dependent variables recorded alongside the propagated state.

A :class:`DependentVariableSettings` names a derived quantity; at setup
it is resolved once into an accessor ``function(time)`` returning a 1-D
array, read after every accepted step (when the environment reflects the
recorded state). Body states are read through :meth:`Body.get_state`, so
a stale state raises instead of being recorded.  The values of all requested variables are concatenated
in request order; :attr:`DependentVariableEvaluator.ids` gives the slice
of each.
"""

from __future__ import annotations

import enum
from collections.abc import Callable, Sequence
from dataclasses import dataclass

import jax.numpy as jnp
from jax import Array

from propax.acceleration import AccelerationType
from propax.bodies import SystemOfBodies
from propax.config import get_dtype
from propax.exceptions import ConfigurationError


class DependentVariable(enum.Enum):
    """Derived quantities that can be recorded."""

    MACH_NUMBER = "mach_number"
    ANGLE_OF_ATTACK = "angle_of_attack"
    ANGLE_OF_SIDESLIP = "angle_of_sideslip"
    BANK_ANGLE = "bank_angle"
    CONTROL_SURFACE_DEFLECTION = "control_surface_deflection"
    AERODYNAMIC_FORCE_COEFFICIENTS = "aerodynamic_force_coefficients"
    AERODYNAMIC_MOMENT_COEFFICIENTS = "aerodynamic_moment_coefficients"
    ALTITUDE = "altitude"
    AIRSPEED = "airspeed"
    DENSITY = "density"
    DYNAMIC_PRESSURE = "dynamic_pressure"
    RELATIVE_POSITION = "relative_position"
    RELATIVE_VELOCITY = "relative_velocity"
    RELATIVE_DISTANCE = "relative_distance"
    TOTAL_ACCELERATION = "total_acceleration"
    SINGLE_ACCELERATION = "single_acceleration"


_FLIGHT_CONDITION_VARIABLES = {
    DependentVariable.MACH_NUMBER: lambda fc: fc.mach_number,
    DependentVariable.ANGLE_OF_ATTACK: lambda fc: fc.angle_calculator.angle_of_attack,
    DependentVariable.ANGLE_OF_SIDESLIP: lambda fc: fc.angle_calculator.angle_of_sideslip,
    DependentVariable.BANK_ANGLE: lambda fc: fc.angle_calculator.bank_angle,
    DependentVariable.ALTITUDE: lambda fc: fc.altitude,
    DependentVariable.AIRSPEED: lambda fc: fc.airspeed,
    DependentVariable.DENSITY: lambda fc: fc.density,
    DependentVariable.DYNAMIC_PRESSURE: lambda fc: fc.dynamic_pressure,
}


@dataclass(frozen=True)
class DependentVariableSettings:
    """Request for one dependent variable.

    Args:
        variable: Which quantity.
        body: Body the quantity refers to.
        secondary: Secondary body (relative state, single acceleration;
            defaults to the central body for relative quantities) or
            control-surface name (deflection).
        acceleration_type: Acceleration type for ``SINGLE_ACCELERATION``.

    Examples:
        ```python
        from propax.propagation import DependentVariable, DependentVariableSettings
        mach = DependentVariableSettings(DependentVariable.MACH_NUMBER, "Vehicle")
        flap = DependentVariableSettings(DependentVariable.CONTROL_SURFACE_DEFLECTION, "Vehicle", "Flap")
        ```
    """

    variable: DependentVariable
    body: str
    secondary: str | None = None
    acceleration_type: AccelerationType | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.variable, DependentVariable):
            raise ConfigurationError(f"variable must be a DependentVariable, got {self.variable!r}")
        if self.variable is DependentVariable.CONTROL_SURFACE_DEFLECTION and self.secondary is None:
            raise ConfigurationError("Control surface deflection requires the surface name as secondary")
        if self.variable is DependentVariable.SINGLE_ACCELERATION:
            if self.secondary is None or self.acceleration_type is None:
                raise ConfigurationError("Single acceleration requires an exerting body and an acceleration type")

    @property
    def id(self) -> str:
        """Human-readable identifier, e.g. ``"mach_number:Vehicle"``."""
        parts = [self.variable.value, self.body]
        if self.secondary is not None:
            parts.append(self.secondary)
        if self.acceleration_type is not None:
            parts.append(self.acceleration_type.value)
        return ":".join(parts)


def _scalar(function: Callable[[], float]) -> Callable[[float], Array]:
    return lambda time: jnp.asarray([function()], dtype=get_dtype())


def create_dependent_variable_function(
    settings: DependentVariableSettings,
    bodies: SystemOfBodies,
    state_derivative,
) -> tuple[Callable[[float], Array], int]:
    """Resolve *settings* to an accessor and its output size.

    Raises:
        ConfigurationError: If the request cannot be served by the
            configured bodies and models.
    """
    if settings.body not in bodies:
        raise ConfigurationError(f"Dependent variable body {settings.body!r} is not in the system of bodies")
    body = bodies[settings.body]
    variable = settings.variable

    if variable in _FLIGHT_CONDITION_VARIABLES or variable in (
        DependentVariable.AERODYNAMIC_FORCE_COEFFICIENTS,
        DependentVariable.AERODYNAMIC_MOMENT_COEFFICIENTS,
    ):
        flight_conditions = body.flight_conditions
        if flight_conditions is None:
            raise ConfigurationError(
                f"{variable.value} of {body.name!r} requires flight conditions "
                "(create an aerodynamic acceleration first)"
            )
        if variable is DependentVariable.AERODYNAMIC_FORCE_COEFFICIENTS:
            coefficients = _require_coefficients(body)
            return lambda time: coefficients.current_force_coefficients, 3
        if variable is DependentVariable.AERODYNAMIC_MOMENT_COEFFICIENTS:
            coefficients = _require_coefficients(body)
            return lambda time: coefficients.current_moment_coefficients, 3
        reader = _FLIGHT_CONDITION_VARIABLES[variable]
        return _scalar(lambda: reader(flight_conditions)), 1

    if variable is DependentVariable.CONTROL_SURFACE_DEFLECTION:
        systems = body.vehicle_systems
        if systems is None:
            raise ConfigurationError(f"Body {body.name!r} has no vehicle systems")
        surface = settings.secondary
        return _scalar(lambda: systems.get_control_surface_deflection(surface)), 1

    if variable in (
        DependentVariable.RELATIVE_POSITION,
        DependentVariable.RELATIVE_VELOCITY,
        DependentVariable.RELATIVE_DISTANCE,
    ):
        secondary_name = settings.secondary
        if secondary_name is None:
            secondary_name = state_derivative.central_bodies.get(body.name)
            if secondary_name is None:
                raise ConfigurationError(f"No secondary body given for relative state of {body.name!r}")
        if bodies.is_frame_origin(secondary_name):
            state_derivative.add_ephemeris_body(body.name)
            relative_state = lambda time: body.get_state(time)
        elif secondary_name in bodies:
            secondary = bodies[secondary_name]
            state_derivative.add_ephemeris_body(body.name)
            state_derivative.add_ephemeris_body(secondary_name)
            relative_state = lambda time: body.get_state(time) - secondary.get_state(time)
        else:
            raise ConfigurationError(f"Secondary body {secondary_name!r} is not in the system of bodies")
        if variable is DependentVariable.RELATIVE_POSITION:
            return lambda time: relative_state(time)[:3], 3
        if variable is DependentVariable.RELATIVE_VELOCITY:
            return lambda time: relative_state(time)[3:], 3
        return lambda time: jnp.linalg.norm(relative_state(time)[:3]).reshape(1), 1

    if variable is DependentVariable.TOTAL_ACCELERATION:
        if body.name not in state_derivative.bodies_to_propagate:
            raise ConfigurationError(f"Total acceleration requested for non-propagated body {body.name!r}")
        name = body.name
        return lambda time: state_derivative.total_acceleration(name), 3

    if variable is DependentVariable.SINGLE_ACCELERATION:
        row = state_derivative.acceleration_models.get(body.name, {})
        models = [
            model
            for model in row.get(settings.secondary, [])
            if model.acceleration_type is settings.acceleration_type
        ]
        if not models:
            raise ConfigurationError(
                f"No {settings.acceleration_type.value} acceleration on {body.name!r} "
                f"from {settings.secondary!r}"
            )

        def single_acceleration(time: float) -> Array:
            total = jnp.zeros(3, dtype=get_dtype())
            for model in models:
                total = total + model.acceleration
            return total

        return single_acceleration, 3

    raise ConfigurationError(f"Unsupported dependent variable {variable!r}")


def _require_coefficients(body):
    if body.aerodynamic_coefficients is None:
        raise ConfigurationError(f"Body {body.name!r} has no aerodynamic coefficients")
    return body.aerodynamic_coefficients


class DependentVariableEvaluator:
    """Concatenated accessor for a list of dependent variables.

    Args:
        settings: Requested variables, in output order.
        bodies: The system of bodies.
        state_derivative: The state derivative model whose evaluation
            the variables are read after.
    """

    def __init__(
        self,
        settings: Sequence[DependentVariableSettings],
        bodies: SystemOfBodies,
        state_derivative,
    ):
        self.settings = list(settings)
        self._functions = []
        self.ids: list[tuple[DependentVariableSettings, int, int]] = []
        start = 0
        for entry in self.settings:
            function, size = create_dependent_variable_function(entry, bodies, state_derivative)
            self._functions.append(function)
            self.ids.append((entry, start, size))
            start += size
        self.size = start

    def __len__(self) -> int:
        return len(self.settings)

    def slice_of(self, settings: DependentVariableSettings) -> slice:
        """Slice of *settings* in the concatenated output."""
        for entry, start, size in self.ids:
            if entry == settings:
                return slice(start, start + size)
        raise ConfigurationError(f"Dependent variable {settings.id!r} was not requested")

    def __call__(self, time: float) -> Array:
        if not self._functions:
            return jnp.zeros(0, dtype=get_dtype())
        return jnp.concatenate(
            [jnp.asarray(function(time), dtype=get_dtype()).reshape(-1) for function in self._functions]
        )
