"""Aerodynamic coefficient interfaces and control-surface increments.

An :class:`AerodynamicCoefficientInterface` maps a list of independent
variables to force coefficients ``[C_D, C_S, C_L]`` (aerodynamic frame)
and moment coefficients ``[C_l, C_m, C_n]``.  Any number of
:class:`ControlSurfaceIncrementInterface` objects can be attached by
surface name; each receives its own independent variables and adds a
6-vector (3 force + 3 moment) increment to the clean-configuration
coefficients.  Increments are purely additive: installing or removing one
surface never changes the contribution of another.
"""

from __future__ import annotations

import abc
from collections.abc import Callable, Mapping, Sequence

import jax.numpy as jnp
from jax import Array
from jax.typing import ArrayLike

from propax.aerodynamics._types import AerodynamicVariable
from propax.config import get_dtype
from propax.exceptions import ConfigurationError, EvaluationError
from propax.interpolation import BoundaryHandling, interpolate_multilinear, validate_grid


def _as_coefficient_vector(values: ArrayLike, source: str) -> Array:
    values = jnp.asarray(values, dtype=get_dtype())
    if values.shape != (6,):
        raise EvaluationError(f"{source} must return 6 values (3 force + 3 moment), got shape {values.shape}")
    return values


def _validate_variables(variables: Sequence[AerodynamicVariable]) -> tuple[AerodynamicVariable, ...]:
    variables = tuple(variables)
    for variable in variables:
        if not isinstance(variable, AerodynamicVariable):
            raise ConfigurationError(f"Unknown aerodynamic independent variable {variable!r}")
    return variables


def _tabulated(grids, table, variables, source):
    grids = [validate_grid(grid, f"{source} grid {i}") for i, grid in enumerate(grids)]
    table = jnp.asarray(table, dtype=get_dtype())
    expected = tuple(grid.shape[0] for grid in grids)
    if len(variables) != len(grids):
        raise ConfigurationError(f"{source}: {len(grids)} grids for {len(variables)} independent variables")
    if table.shape[: len(grids)] != expected:
        raise ConfigurationError(f"{source}: table shape {table.shape} does not match grid sizes {expected}")
    return grids, table


# ---------------------------------------------------------------------------
# Control-surface increments
# ---------------------------------------------------------------------------


class ControlSurfaceIncrementInterface(abc.ABC):
    """Coefficient increment of a single control surface.

    Args:
        independent_variables: Variables the increment depends on, in the
            order :meth:`update_current_increments` expects them.
    """

    def __init__(self, independent_variables: Sequence[AerodynamicVariable]):
        self.independent_variables = _validate_variables(independent_variables)
        self._increments: Array | None = None

    @abc.abstractmethod
    def _compute_increments(self, independent_variables: Sequence[float]) -> Array:
        """Return the 6-element increment at *independent_variables*."""

    def update_current_increments(self, independent_variables: Sequence[float]) -> None:
        if len(independent_variables) != len(self.independent_variables):
            raise EvaluationError(
                f"Control surface increment expects {len(self.independent_variables)} "
                f"independent variables, got {len(independent_variables)}"
            )
        self._increments = self._compute_increments(list(independent_variables))

    @property
    def current_increments(self) -> Array:
        if self._increments is None:
            raise EvaluationError("Control surface increments have not been updated")
        return self._increments

    @property
    def current_force_increments(self) -> Array:
        return self.current_increments[:3]

    @property
    def current_moment_increments(self) -> Array:
        return self.current_increments[3:]


class CustomControlSurfaceIncrementInterface(ControlSurfaceIncrementInterface):
    """Increment given by a user function ``f(independent_variables) -> (6,)``."""

    def __init__(
        self,
        increment_function: Callable[[list[float]], ArrayLike],
        independent_variables: Sequence[AerodynamicVariable],
    ):
        super().__init__(independent_variables)
        self._function = increment_function

    def _compute_increments(self, independent_variables):
        return _as_coefficient_vector(self._function(independent_variables), "Control surface increment function")


class TabulatedControlSurfaceIncrementInterface(ControlSurfaceIncrementInterface):
    """Increment interpolated (multilinear) from a table of shape ``(*grid_sizes, 6)``."""

    def __init__(
        self,
        grids: Sequence[ArrayLike],
        increments: ArrayLike,
        independent_variables: Sequence[AerodynamicVariable],
        boundary: BoundaryHandling = BoundaryHandling.THROW,
    ):
        super().__init__(independent_variables)
        self._grids, self._table = _tabulated(
            grids, increments, self.independent_variables, "Control surface increment table"
        )
        if self._table.shape[len(self._grids):] != (6,):
            raise ConfigurationError("Control surface increment table must end in an axis of size 6")
        self.boundary = boundary

    def _compute_increments(self, independent_variables):
        return interpolate_multilinear(
            self._grids,
            self._table,
            independent_variables,
            self.boundary,
            [v.value for v in self.independent_variables],
        )


# ---------------------------------------------------------------------------
# Coefficient interfaces
# ---------------------------------------------------------------------------


class AerodynamicCoefficientInterface(abc.ABC):
    """Base class of aerodynamic coefficient interfaces.

    Args:
        reference_area: Reference area S [m^2].
        reference_length: Reference length for moments [m].
        independent_variables: Variables the clean-configuration
            coefficients depend on.
    """

    def __init__(
        self,
        reference_area: float,
        reference_length: float,
        independent_variables: Sequence[AerodynamicVariable],
    ):
        if reference_area <= 0.0:
            raise ConfigurationError("Reference area must be positive")
        self.reference_area = float(reference_area)
        self.reference_length = float(reference_length)
        self.independent_variables = _validate_variables(independent_variables)
        if AerodynamicVariable.CONTROL_SURFACE_DEFLECTION in self.independent_variables:
            raise ConfigurationError(
                "Control surface deflections are inputs of control surface increments, "
                "not of the clean-configuration coefficients"
            )
        self._control_surface_increments: dict[str, ControlSurfaceIncrementInterface] = {}
        self._coefficients: Array | None = None

    @abc.abstractmethod
    def _compute_coefficients(self, independent_variables: list[float]) -> Array:
        """Return the 6 clean-configuration coefficients."""

    # ------------------------------------------------------------------
    # Control surfaces
    # ------------------------------------------------------------------

    def set_control_surface_increments(
        self, increments: Mapping[str, ControlSurfaceIncrementInterface]
    ) -> None:
        """Install control-surface increment interfaces, keyed by surface name.

        Set these before acceleration models are created: flight conditions
        bind the increments' independent variables when they are built.
        """
        for name, interface in increments.items():
            if not isinstance(interface, ControlSurfaceIncrementInterface):
                raise ConfigurationError(f"Increment for surface {name!r} is not a ControlSurfaceIncrementInterface")
        self._control_surface_increments = dict(increments)

    @property
    def control_surface_names(self) -> list[str]:
        return list(self._control_surface_increments)

    def control_surface_increment(self, name: str) -> ControlSurfaceIncrementInterface:
        try:
            return self._control_surface_increments[name]
        except KeyError:
            raise ConfigurationError(f"No control surface increment named {name!r}") from None

    # ------------------------------------------------------------------
    # Update and access
    # ------------------------------------------------------------------

    def update_current_coefficients(
        self,
        independent_variables: Sequence[float],
        control_surface_independent_variables: Mapping[str, Sequence[float]] | None = None,
    ) -> None:
        """Recompute the current coefficients, including all control-surface increments.

        Args:
            independent_variables: Values of :attr:`independent_variables`.
            control_surface_independent_variables: Independent variables of
                every installed surface, by surface name.

        Raises:
            EvaluationError: On a wrong number of variables or a missing
                surface.
        """
        if len(independent_variables) != len(self.independent_variables):
            raise EvaluationError(
                f"Aerodynamic coefficients expect {len(self.independent_variables)} "
                f"independent variables, got {len(independent_variables)}"
            )
        coefficients = self._compute_coefficients(list(independent_variables))

        for name, increment in self._control_surface_increments.items():
            if control_surface_independent_variables is None or name not in control_surface_independent_variables:
                raise EvaluationError(f"No independent variables given for control surface {name!r}")
            increment.update_current_increments(control_surface_independent_variables[name])
            coefficients = coefficients + increment.current_increments

        self._coefficients = coefficients

    @property
    def current_coefficients(self) -> Array:
        if self._coefficients is None:
            raise EvaluationError("Aerodynamic coefficients have not been updated")
        return self._coefficients

    @property
    def current_force_coefficients(self) -> Array:
        """``[C_D, C_S, C_L]`` from the last update."""
        return self.current_coefficients[:3]

    @property
    def current_moment_coefficients(self) -> Array:
        """``[C_l, C_m, C_n]`` from the last update."""
        return self.current_coefficients[3:]


class ConstantAerodynamicCoefficientInterface(AerodynamicCoefficientInterface):
    """Coefficients independent of flight conditions.

    Args:
        force_coefficients: ``[C_D, C_S, C_L]``.
        moment_coefficients: ``[C_l, C_m, C_n]``; zero when omitted.
        reference_area: Reference area [m^2].
        reference_length: Reference length [m].
    """

    def __init__(
        self,
        force_coefficients: ArrayLike,
        moment_coefficients: ArrayLike | None = None,
        reference_area: float = 1.0,
        reference_length: float = 1.0,
    ):
        super().__init__(reference_area, reference_length, ())
        if moment_coefficients is None:
            moment_coefficients = jnp.zeros(3)
        self._constant = _as_coefficient_vector(
            jnp.concatenate([jnp.asarray(force_coefficients), jnp.asarray(moment_coefficients)]),
            "Constant coefficients",
        )

    def _compute_coefficients(self, independent_variables):
        return self._constant


class CustomAerodynamicCoefficientInterface(AerodynamicCoefficientInterface):
    """Coefficients from a user function ``f(independent_variables) -> (6,)``.

    Examples:
        ```python
        import jax.numpy as jnp
        from propax.aerodynamics import AerodynamicVariable, CustomAerodynamicCoefficientInterface
        iface = CustomAerodynamicCoefficientInterface(
            lambda x: jnp.array([1.2, 0.0, 0.3 * x[1], 0.0, -0.1 * x[1], 0.0]),
            [AerodynamicVariable.MACH_NUMBER, AerodynamicVariable.ANGLE_OF_ATTACK],
            reference_area=4.0,
        )
        iface.update_current_coefficients([10.0, 0.1])
        ```
    """

    def __init__(
        self,
        coefficient_function: Callable[[list[float]], ArrayLike],
        independent_variables: Sequence[AerodynamicVariable],
        reference_area: float = 1.0,
        reference_length: float = 1.0,
    ):
        super().__init__(reference_area, reference_length, independent_variables)
        self._function = coefficient_function

    def _compute_coefficients(self, independent_variables):
        return _as_coefficient_vector(self._function(independent_variables), "Aerodynamic coefficient function")


class TabulatedAerodynamicCoefficientInterface(AerodynamicCoefficientInterface):
    """Coefficients interpolated (multilinear) from tables on a regular grid.

    Args:
        grids: One strictly increasing grid per independent variable.
        force_coefficients: Table of shape ``(*grid_sizes, 3)``.
        moment_coefficients: Table of shape ``(*grid_sizes, 3)``.
        independent_variables: Variable of each grid axis.
        reference_area: Reference area [m^2].
        reference_length: Reference length [m].
        boundary: Out-of-range behaviour.
    """

    def __init__(
        self,
        grids: Sequence[ArrayLike],
        force_coefficients: ArrayLike,
        moment_coefficients: ArrayLike,
        independent_variables: Sequence[AerodynamicVariable],
        reference_area: float = 1.0,
        reference_length: float = 1.0,
        boundary: BoundaryHandling = BoundaryHandling.THROW,
    ):
        super().__init__(reference_area, reference_length, independent_variables)
        table = jnp.concatenate(
            [jnp.asarray(force_coefficients, dtype=get_dtype()), jnp.asarray(moment_coefficients, dtype=get_dtype())],
            axis=-1,
        )
        self._grids, self._table = _tabulated(
            grids, table, self.independent_variables, "Aerodynamic coefficient table"
        )
        if self._table.shape[len(self._grids):] != (6,):
            raise ConfigurationError("Force and moment coefficient tables must each end in an axis of size 3")
        self.boundary = boundary

    def _compute_coefficients(self, independent_variables):
        return interpolate_multilinear(
            self._grids,
            self._table,
            independent_variables,
            self.boundary,
            [v.value for v in self.independent_variables],
        )
