"""Aerodynamic acceleration from body-fixed coefficients.

The force coefficients ``[C_D, C_S, C_L]`` act along the negative axes of
the aerodynamic frame (drag opposite the airspeed, lift perpendicular to
it), so the force in that frame is ``-q * S * C``.
"""

from __future__ import annotations

from collections.abc import Callable

import jax.numpy as jnp
from jax import Array
from jax.typing import ArrayLike

from propax.acceleration._base import AccelerationModel
from propax.acceleration.settings import AccelerationType
from propax.config import get_dtype
from propax.exceptions import ConfigurationError


def accel_aerodynamic(
    force_coefficients: ArrayLike,
    dynamic_pressure: float,
    reference_area: float,
    mass: float,
    R_aerodynamic_to_inertial: ArrayLike,
) -> Array:
    """Acceleration due to aerodynamic forces.

    Args:
        force_coefficients: ``[C_D, C_S, C_L]`` [dimensionless].
        dynamic_pressure: q = 0.5 rho V^2 [Pa].
        reference_area: Reference area [m^2].
        mass: Vehicle mass [kg].
        R_aerodynamic_to_inertial: Rotation from the aerodynamic to the
            inertial frame, shape ``(3, 3)``.

    Returns:
        Aerodynamic acceleration in the inertial frame [m/s^2], shape ``(3,)``.

    Examples:
        ```python
        import jax.numpy as jnp
        from propax.acceleration import accel_aerodynamic
        a = accel_aerodynamic(jnp.array([1.2, 0.0, 0.3]), 50.0, 4.0, 1000.0, jnp.eye(3))
        ```
    """
    _float = get_dtype()
    C = jnp.asarray(force_coefficients, dtype=_float)
    R = jnp.asarray(R_aerodynamic_to_inertial, dtype=_float)
    force_aerodynamic = -_float(dynamic_pressure) * _float(reference_area) * C
    return R @ force_aerodynamic / _float(mass)


class AerodynamicAcceleration(AccelerationModel):
    """Aerodynamic acceleration of a vehicle.

    Args:
        flight_conditions: Flight conditions of the vehicle; updated by
            this model.
        coefficient_interface: The vehicle's aerodynamic coefficients,
            refreshed by the flight conditions.
        mass_function: Returns the vehicle mass [kg].

    Raises:
        ConfigurationError: If any input is missing.
    """

    acceleration_type = AccelerationType.AERODYNAMIC

    def __init__(self, flight_conditions, coefficient_interface, mass_function: Callable[[], float]):
        super().__init__()
        if flight_conditions is None:
            raise ConfigurationError("Aerodynamic acceleration requires flight conditions")
        if coefficient_interface is None:
            raise ConfigurationError("Aerodynamic acceleration requires an aerodynamic coefficient interface")
        if mass_function is None:
            raise ConfigurationError("Aerodynamic acceleration requires a mass function")
        self.flight_conditions = flight_conditions
        self.coefficient_interface = coefficient_interface
        self._mass_function = mass_function

    def reset_time(self) -> None:
        super().reset_time()
        self.flight_conditions.reset_time()

    def _compute_acceleration(self, time):
        conditions = self.flight_conditions
        conditions.update(time)
        return accel_aerodynamic(
            self.coefficient_interface.current_force_coefficients,
            conditions.dynamic_pressure,
            self.coefficient_interface.reference_area,
            float(self._mass_function()),
            conditions.rotation_aerodynamic_to_inertial,
        )
