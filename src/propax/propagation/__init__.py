"""State derivative model and propagation loop.

- **State derivative**: :class:`TranslationalStateDerivative`, the
  ``f(t, x)`` of the stacked relative states of the propagated bodies
- **Simulator**: :class:`DynamicsSimulator` with integrator and
  termination settings, returning a :class:`PropagationResult`
- **Dependent variables**: derived quantities recorded every step
"""

from .dependent_variables import (
    DependentVariable,
    DependentVariableEvaluator,
    DependentVariableSettings,
    create_dependent_variable_function,
)
from .simulator import DynamicsSimulator, IntegratorSettings, PropagationResult, SimulatorStatus
from .state_derivative import TranslationalStateDerivative
from .termination import (
    CustomTerminationSettings,
    DependentVariableTerminationSettings,
    HybridTerminationSettings,
    TimeTerminationSettings,
    create_termination_condition,
)

__all__ = [
    "TranslationalStateDerivative",
    # Simulator
    "DynamicsSimulator",
    "IntegratorSettings",
    "PropagationResult",
    "SimulatorStatus",
    # Dependent variables
    "DependentVariable",
    "DependentVariableSettings",
    "DependentVariableEvaluator",
    "create_dependent_variable_function",
    # Termination
    "TimeTerminationSettings",
    "DependentVariableTerminationSettings",
    "CustomTerminationSettings",
    "HybridTerminationSettings",
    "create_termination_condition",
]
