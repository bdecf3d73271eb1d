"""Dynamics simulator: the propagation loop.

:class:`DynamicsSimulator` wires a :class:`TranslationalStateDerivative`
to a step function and runs it until a termination condition is met,
recording the state and the dependent variables after every accepted
step.  Failures during propagation do not propagate out of
:meth:`DynamicsSimulator.propagate`; they end the run with status
``FAILED``, the exception stored on the result and the history up to the
last valid step preserved.
"""

from __future__ import annotations

import enum
import logging
import math
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field

import jax.numpy as jnp
from jax import Array
from jax.typing import ArrayLike

from propax.acceleration import AccelerationMap
from propax.bodies import SystemOfBodies
from propax.config import get_dtype
from propax.exceptions import ConfigurationError, EvaluationError
from propax.integrators import AdaptiveConfig, StepResult, rk4_step, rkf45_step
from propax.propagation.dependent_variables import DependentVariableEvaluator, DependentVariableSettings
from propax.propagation.state_derivative import TranslationalStateDerivative
from propax.propagation.termination import create_termination_condition, exact_final_time

logger = logging.getLogger(__name__)


class SimulatorStatus(enum.Enum):
    """Life cycle of a :class:`DynamicsSimulator`."""

    IDLE = "idle"
    INTEGRATING = "integrating"
    TERMINATED = "terminated"
    FAILED = "failed"


@dataclass(frozen=True)
class IntegratorSettings:
    """Step function and step size of a propagation.

    Args:
        step_function: ``step(dynamics, t, state, dt) -> StepResult``.
        initial_time: Initial simulation time [s].
        step_size: Initial (or fixed) step size [s]; negative integrates
            backwards.
        adaptive: Tolerances for adaptive step functions.

    Examples:
        ```python
        from propax.integrators import rkf45_step, AdaptiveConfig
        from propax.propagation import IntegratorSettings
        settings = IntegratorSettings(rkf45_step, 0.0, 10.0, AdaptiveConfig(abs_tol=1e-9, rel_tol=1e-12))
        ```
    """

    step_function: Callable[..., StepResult] = rk4_step
    initial_time: float = 0.0
    step_size: float = 10.0
    adaptive: AdaptiveConfig | None = None

    def __post_init__(self) -> None:
        if not callable(self.step_function):
            raise ConfigurationError("step_function must be callable")
        if not math.isfinite(self.step_size) or self.step_size == 0.0:
            raise ConfigurationError(f"step_size must be finite and non-zero, got {self.step_size!r}")
        if not math.isfinite(self.initial_time):
            raise ConfigurationError(f"initial_time must be finite, got {self.initial_time!r}")

    @staticmethod
    def rk4(initial_time: float, step_size: float) -> IntegratorSettings:
        """Preset: fixed-step RK4."""
        return IntegratorSettings(rk4_step, initial_time, step_size)

    @staticmethod
    def rkf45(
        initial_time: float,
        initial_step_size: float,
        config: AdaptiveConfig | None = None,
    ) -> IntegratorSettings:
        """Preset: adaptive RKF45 with *config* (defaults when omitted)."""
        return IntegratorSettings(rkf45_step, initial_time, initial_step_size, config or AdaptiveConfig())


@dataclass
class PropagationResult:
    """Outcome of :meth:`DynamicsSimulator.propagate`.

    Attributes:
        state_history: ``{time: state}`` in strictly monotonic time order.
        dependent_variable_history: ``{time: values}`` at the same times.
        status: ``TERMINATED`` or ``FAILED``.
        termination_reason: Why the propagation stopped.
        error: The exception that ended a failed propagation.
        number_of_steps: Accepted steps.
        dependent_variable_ids: ``(settings, start, size)`` of each
            dependent variable in the recorded arrays.
    """

    state_history: dict[float, Array] = field(default_factory=dict)
    dependent_variable_history: dict[float, Array] = field(default_factory=dict)
    status: SimulatorStatus = SimulatorStatus.IDLE
    termination_reason: str | None = None
    error: Exception | None = None
    number_of_steps: int = 0
    dependent_variable_ids: list = field(default_factory=list)

    @property
    def success(self) -> bool:
        return self.status is SimulatorStatus.TERMINATED

    @property
    def final_time(self) -> float | None:
        if not self.state_history:
            return None
        return next(reversed(self.state_history))

    @property
    def final_state(self) -> Array | None:
        if not self.state_history:
            return None
        return self.state_history[self.final_time]

    def raise_for_status(self) -> None:
        """Re-raise the exception of a failed propagation."""
        if self.error is not None:
            raise self.error

    def dependent_variable(self, settings: DependentVariableSettings) -> dict[float, Array]:
        """History of a single dependent variable."""
        for entry, start, size in self.dependent_variable_ids:
            if entry == settings:
                return {
                    time: values[start: start + size]
                    for time, values in self.dependent_variable_history.items()
                }
        raise ConfigurationError(f"Dependent variable {settings.id!r} was not recorded")


class DynamicsSimulator:
    """Propagate the translational state of one or more bodies.

    Args:
        bodies: The system of bodies.
        acceleration_models: ``{target: {exerter: [model, ...]}}``.
        bodies_to_propagate: Propagated bodies, in state vector order.
        central_bodies: Central body of each propagated body.
        initial_state: Stacked relative initial states, shape ``(6 * N,)``.
        integrator_settings: Step function and step size.
        termination_settings: When to stop.
        dependent_variables: Variables to record after every step.
        maximum_number_of_steps: Safeguard against runaway propagations.

    Raises:
        ConfigurationError: On an inconsistent setup.

    Examples:
        ```python
        simulator = DynamicsSimulator(
            bodies, models, ["Vehicle"], ["Earth"], x0,
            IntegratorSettings.rk4(0.0, 10.0), TimeTerminationSettings(5400.0),
        )
        result = simulator.propagate()
        result.raise_for_status()
        ```
    """

    def __init__(
        self,
        bodies: SystemOfBodies,
        acceleration_models: AccelerationMap,
        bodies_to_propagate: Sequence[str],
        central_bodies,
        initial_state: ArrayLike,
        integrator_settings: IntegratorSettings,
        termination_settings,
        dependent_variables: Sequence[DependentVariableSettings] | None = None,
        maximum_number_of_steps: int = 1_000_000,
    ):
        self.bodies = bodies
        self.state_derivative = TranslationalStateDerivative(
            bodies, acceleration_models, bodies_to_propagate, central_bodies
        )
        self.initial_state = jnp.asarray(initial_state, dtype=get_dtype())
        if self.initial_state.shape != (self.state_derivative.state_size,):
            raise ConfigurationError(
                f"Initial state must have shape ({self.state_derivative.state_size},), "
                f"got {self.initial_state.shape}"
            )
        if maximum_number_of_steps <= 0:
            raise ConfigurationError("maximum_number_of_steps must be positive")
        self.integrator_settings = integrator_settings
        self.termination_settings = termination_settings
        self.maximum_number_of_steps = int(maximum_number_of_steps)

        self._forward = integrator_settings.step_size > 0.0
        self.dependent_variables = DependentVariableEvaluator(
            dependent_variables or [], bodies, self.state_derivative
        )
        self._termination_condition = create_termination_condition(
            termination_settings, bodies, self.state_derivative, self._forward
        )
        self._final_time = exact_final_time(termination_settings, self._forward)
        self.status = SimulatorStatus.IDLE
        self.result: PropagationResult | None = None

    def _step(self, time: float, state: Array, dt: float) -> StepResult:
        step_function = self.integrator_settings.step_function
        if self.integrator_settings.adaptive is not None:
            return step_function(self.state_derivative, time, state, dt, self.integrator_settings.adaptive)
        return step_function(self.state_derivative, time, state, dt)

    def _clamp_step(self, time: float, dt: float) -> tuple[float, bool]:
        if self._final_time is None:
            return dt, False
        remaining = self._final_time - time
        if self._forward and 0.0 < remaining < dt:
            return remaining, True
        if not self._forward and dt < remaining < 0.0:
            return remaining, True
        return dt, False

    def _record(self, result: PropagationResult, time: float, state: Array) -> None:
        values = self.dependent_variables(time)
        result.state_history[time] = state
        result.dependent_variable_history[time] = values

    def propagate(self) -> PropagationResult:
        """Run the propagation.

        Returns:
            PropagationResult: Histories and final status.  Failures are
            reported through ``status``/``error``, not raised.

        Raises:
            EvaluationError: If this simulator was already propagated.
        """
        if self.status is not SimulatorStatus.IDLE:
            raise EvaluationError(f"Simulator cannot be propagated again (status {self.status.value})")
        self.status = SimulatorStatus.INTEGRATING
        result = PropagationResult(
            status=SimulatorStatus.INTEGRATING,
            dependent_variable_ids=list(self.dependent_variables.ids),
        )
        self.result = result

        time = float(self.integrator_settings.initial_time)
        state = self.initial_state
        dt = float(self.integrator_settings.step_size)
        logger.info(
            "Starting propagation of %s at t=%s with step %s",
            self.state_derivative.bodies_to_propagate,
            time,
            dt,
        )

        try:
            self.state_derivative(time, state)
            self._record(result, time, state)
            reason = self._termination_condition(time, state)

            while reason is None:
                if result.number_of_steps >= self.maximum_number_of_steps:
                    raise EvaluationError(f"Maximum number of steps ({self.maximum_number_of_steps}) exceeded")

                step_size, clamped = self._clamp_step(time, dt)
                step = self._step(time, state, step_size)
                dt_used = float(step.dt_used)
                adaptive = self.integrator_settings.adaptive
                if adaptive is not None and float(step.error_estimate) > 1.0 and abs(dt_used) > adaptive.min_step:
                    raise EvaluationError(
                        f"Step from t={time!r} rejected by the integrator "
                        f"(error estimate {float(step.error_estimate):.3g})"
                    )
                new_time = time + dt_used
                if clamped and dt_used == step_size:
                    new_time = self._final_time
                new_state = step.state

                if not bool(jnp.all(jnp.isfinite(new_state))):
                    raise EvaluationError(f"Non-finite state after step from t={time!r}")
                if (new_time <= time) if self._forward else (new_time >= time):
                    raise EvaluationError(f"Step from t={time!r} did not advance time (t={new_time!r})")

                self.state_derivative(new_time, new_state)
                time, state = new_time, new_state
                result.number_of_steps += 1
                self._record(result, time, state)

                if not clamped or dt_used != step_size:
                    dt = float(step.dt_next)
                reason = self._termination_condition(time, state)
        except Exception as exc:
            self.status = SimulatorStatus.FAILED
            result.status = SimulatorStatus.FAILED
            result.error = exc
            result.termination_reason = f"propagation failed: {exc}"
            logger.error(
                "Propagation failed at t=%s after %d steps: %s",
                time,
                result.number_of_steps,
                exc,
                exc_info=exc,
            )
            return result

        self.status = SimulatorStatus.TERMINATED
        result.status = SimulatorStatus.TERMINATED
        result.termination_reason = reason
        logger.info(
            "Propagation terminated at t=%s after %d steps: %s",
            time,
            result.number_of_steps,
            reason,
        )
        return result
