"""Termination settings of a propagation.

Settings are immutable descriptions; :func:`create_termination_condition`
resolves them against the bodies and the state derivative model into a
callable ``condition(time, state)`` that returns a human-readable reason
when the propagation must stop, and ``None`` otherwise.  Conditions are
checked once per accepted step, after the dependent variables of the
step have been recorded.
"""

from __future__ import annotations

import math
from collections.abc import Callable, Sequence
from dataclasses import dataclass

from jax import Array

from propax.exceptions import ConfigurationError
from propax.propagation.dependent_variables import (
    DependentVariableSettings,
    create_dependent_variable_function,
)

#: ``condition(time, state) -> reason or None``
TerminationCondition = Callable[[float, Array], "str | None"]


@dataclass(frozen=True)
class TimeTerminationSettings:
    """Stop once *final_time* is reached.

    Args:
        final_time: Final simulation time [s].
        terminate_exactly: Shorten the last step so the propagation ends
            exactly at *final_time*.
    """

    final_time: float
    terminate_exactly: bool = True

    def __post_init__(self) -> None:
        if not math.isfinite(self.final_time):
            raise ConfigurationError(f"final_time must be finite, got {self.final_time!r}")


@dataclass(frozen=True)
class DependentVariableTerminationSettings:
    """Stop when a scalar dependent variable crosses *limit*.

    Args:
        variable: A dependent variable of size 1.
        limit: Threshold value.
        use_as_lower_limit: Stop when the value falls below *limit*
            (otherwise when it rises above).
    """

    variable: DependentVariableSettings
    limit: float
    use_as_lower_limit: bool = False


@dataclass(frozen=True)
class CustomTerminationSettings:
    """Stop when ``predicate(time, state)`` returns true."""

    predicate: Callable[[float, Array], bool]

    def __post_init__(self) -> None:
        if not callable(self.predicate):
            raise ConfigurationError("Custom termination predicate must be callable")


@dataclass(frozen=True)
class HybridTerminationSettings:
    """Combination of termination settings.

    Args:
        settings: Component settings.
        fulfill_single_condition: Stop when any component is met;
            otherwise only when all are met at the same step.
    """

    settings: Sequence
    fulfill_single_condition: bool = True

    def __post_init__(self) -> None:
        if len(self.settings) == 0:
            raise ConfigurationError("Hybrid termination requires at least one condition")


def create_termination_condition(settings, bodies, state_derivative, forward: bool = True) -> TerminationCondition:
    """Resolve termination *settings* into a condition.

    Args:
        settings: Any of the termination settings classes.
        bodies: The system of bodies.
        state_derivative: The state derivative model.
        forward: Direction of integration.

    Raises:
        ConfigurationError: For unknown settings or a non-scalar
            dependent variable.
    """
    if isinstance(settings, TimeTerminationSettings):
        final_time = float(settings.final_time)
        if forward:
            return lambda time, state: f"final time {final_time} reached" if time >= final_time else None
        return lambda time, state: f"final time {final_time} reached" if time <= final_time else None

    if isinstance(settings, DependentVariableTerminationSettings):
        function, size = create_dependent_variable_function(settings.variable, bodies, state_derivative)
        if size != 1:
            raise ConfigurationError(
                f"Termination on {settings.variable.id!r} requires a scalar variable (size {size})"
            )
        limit = float(settings.limit)
        name = settings.variable.id

        if settings.use_as_lower_limit:

            def below_limit(time, state):
                value = float(function(time)[0])
                return f"{name} = {value} fell below {limit}" if value < limit else None

            return below_limit

        def above_limit(time, state):
            value = float(function(time)[0])
            return f"{name} = {value} exceeded {limit}" if value > limit else None

        return above_limit

    if isinstance(settings, CustomTerminationSettings):
        predicate = settings.predicate
        return lambda time, state: "custom termination condition met" if predicate(time, state) else None

    if isinstance(settings, HybridTerminationSettings):
        conditions = [
            create_termination_condition(component, bodies, state_derivative, forward)
            for component in settings.settings
        ]
        if settings.fulfill_single_condition:

            def any_condition(time, state):
                for condition in conditions:
                    reason = condition(time, state)
                    if reason is not None:
                        return reason
                return None

            return any_condition

        def all_conditions(time, state):
            reasons = [condition(time, state) for condition in conditions]
            if all(reason is not None for reason in reasons):
                return "; ".join(reasons)
            return None

        return all_conditions

    raise ConfigurationError(f"Unsupported termination settings {settings!r}")


def exact_final_time(settings, forward: bool = True) -> float | None:
    """Time the last step must land on, if any.

    Returns the final time of a :class:`TimeTerminationSettings` with
    ``terminate_exactly``; for a single-condition hybrid, the earliest
    such time in the direction of integration.
    """
    if isinstance(settings, TimeTerminationSettings):
        return float(settings.final_time) if settings.terminate_exactly else None
    if isinstance(settings, HybridTerminationSettings) and settings.fulfill_single_condition:
        times = [exact_final_time(component, forward) for component in settings.settings]
        times = [time for time in times if time is not None]
        if times:
            return min(times) if forward else max(times)
    return None
