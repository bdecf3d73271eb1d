"""Flight conditions of a vehicle in the atmosphere of a central body.

:class:`FlightConditions` derives, once per evaluation time, the
quantities an aerodynamic model needs from the states of the vehicle and
of the body it flies through: altitude, density, airspeed, Mach number,
dynamic pressure, the aerodynamic angles and the rotation from the
aerodynamic frame to the inertial frame.  It also refreshes the vehicle's
aerodynamic coefficients, including any control-surface increments, so
that everything read after an update refers to the same instant.

Frame chain (all passive rotations)::

    inertial --R_I->BF--> body-fixed --R_BF->V--> vertical (NED)
             --R_V->A--> aerodynamic

The airspeed vector is the velocity relative to the co-rotating
atmosphere, expressed in the body-fixed frame.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

import jax.numpy as jnp
from jax import Array

from propax.aerodynamics._types import AerodynamicVariable
from propax.exceptions import ConfigurationError, EvaluationError
from propax.frames import (
    flight_path_and_heading,
    geocentric_latitude_longitude,
    rotation_body_fixed_to_vertical,
    rotation_vertical_to_aerodynamic,
)

logger = logging.getLogger(__name__)


class AerodynamicAngleCalculator:
    """Aerodynamic angles and the aerodynamic-to-body-fixed rotation.

    Angle of attack, sideslip and bank angle come from user functions
    (typically a guidance object) and default to zero.  The optional
    *update_function* is called with the current time before the angle
    functions are read.
    """

    def __init__(self):
        self._angle_of_attack_function: Callable[[], float] | None = None
        self._angle_of_sideslip_function: Callable[[], float] | None = None
        self._bank_angle_function: Callable[[], float] | None = None
        self._update_function: Callable[[float], None] | None = None

        self.latitude: float | None = None
        self.longitude: float | None = None
        self.flight_path_angle: float | None = None
        self.heading_angle: float | None = None
        self.angle_of_attack: float | None = None
        self.angle_of_sideslip: float | None = None
        self.bank_angle: float | None = None
        self._rotation_aerodynamic_to_body_fixed: Array | None = None

    def set_orientation_angle_functions(
        self,
        angle_of_attack: Callable[[], float] | None = None,
        angle_of_sideslip: Callable[[], float] | None = None,
        bank_angle: Callable[[], float] | None = None,
        update_function: Callable[[float], None] | None = None,
    ) -> None:
        """Install the functions that provide the aerodynamic angles.

        Args:
            angle_of_attack: Zero-argument function returning alpha [rad].
            angle_of_sideslip: Zero-argument function returning beta [rad].
            bank_angle: Zero-argument function returning sigma [rad].
            update_function: Called as ``update_function(time)`` before the
                angle functions at each update.
        """
        self._angle_of_attack_function = angle_of_attack
        self._angle_of_sideslip_function = angle_of_sideslip
        self._bank_angle_function = bank_angle
        self._update_function = update_function

    def update(self, time: float, r_body_fixed: Array, v_body_fixed: Array) -> None:
        """Recompute angles from body-fixed position and airspeed vector."""
        latitude, longitude = geocentric_latitude_longitude(r_body_fixed)
        R_bf_to_v = rotation_body_fixed_to_vertical(latitude, longitude)
        flight_path_angle, heading_angle = flight_path_and_heading(R_bf_to_v @ v_body_fixed)

        if self._update_function is not None:
            self._update_function(time)

        self.latitude = float(latitude)
        self.longitude = float(longitude)
        self.flight_path_angle = float(flight_path_angle)
        self.heading_angle = float(heading_angle)
        self.angle_of_attack = _read_angle(self._angle_of_attack_function)
        self.angle_of_sideslip = _read_angle(self._angle_of_sideslip_function)
        self.bank_angle = _read_angle(self._bank_angle_function)

        R_v_to_a = rotation_vertical_to_aerodynamic(flight_path_angle, heading_angle, self.bank_angle)
        self._rotation_aerodynamic_to_body_fixed = (R_v_to_a @ R_bf_to_v).T

    @property
    def rotation_aerodynamic_to_body_fixed(self) -> Array:
        if self._rotation_aerodynamic_to_body_fixed is None:
            raise EvaluationError("Aerodynamic angles have not been updated")
        return self._rotation_aerodynamic_to_body_fixed


def _read_angle(function: Callable[[], float] | None) -> float:
    if function is None:
        return 0.0
    return float(function())


class FlightConditions:
    """Atmospheric flight conditions of *body* relative to *central_body*.

    Args:
        body: The vehicle.
        central_body: The body whose atmosphere the vehicle flies through.
            Must have an atmosphere and a mean radius.
        angle_calculator: Angle calculator to use; a new one (all angles
            zero) when omitted.

    Raises:
        ConfigurationError: If the central body lacks an atmosphere or a
            mean radius, or if an independent variable of the vehicle's
            aerodynamic coefficients cannot be provided.
    """

    def __init__(self, body, central_body, angle_calculator: AerodynamicAngleCalculator | None = None):
        if central_body.atmosphere is None:
            raise ConfigurationError(
                f"Flight conditions of {body.name!r} need an atmosphere on {central_body.name!r}"
            )
        if central_body.mean_radius is None:
            raise ConfigurationError(
                f"Flight conditions of {body.name!r} need a mean radius of {central_body.name!r}"
            )
        self.body = body
        self.central_body = central_body
        self.angle_calculator = angle_calculator if angle_calculator is not None else AerodynamicAngleCalculator()

        self._coefficient_variables: list[Callable[[], float]] = []
        self._control_surface_variables: dict[str, list[Callable[[], float]]] = {}
        coefficients = body.aerodynamic_coefficients
        if coefficients is not None:
            self._coefficient_variables = [
                self._bind_variable(variable) for variable in coefficients.independent_variables
            ]
            for surface in coefficients.control_surface_names:
                increment = coefficients.control_surface_increment(surface)
                self._control_surface_variables[surface] = [
                    self._bind_variable(variable, surface) for variable in increment.independent_variables
                ]

        self._time: float | None = None
        self.altitude: float | None = None
        self.density: float | None = None
        self.speed_of_sound: float | None = None
        self.airspeed: float | None = None
        self.mach_number: float | None = None
        self.dynamic_pressure: float | None = None
        self._relative_state: Array | None = None
        self._airspeed_velocity: Array | None = None
        self._rotation_aerodynamic_to_inertial: Array | None = None
        logger.debug(
            "Created flight conditions of %s in %s (%d coefficient variables, surfaces: %s)",
            body.name,
            central_body.name,
            len(self._coefficient_variables),
            list(self._control_surface_variables),
        )

    def _bind_variable(self, variable: AerodynamicVariable, surface: str | None = None) -> Callable[[], float]:
        if variable is AerodynamicVariable.MACH_NUMBER:
            return lambda: self.mach_number
        if variable is AerodynamicVariable.ANGLE_OF_ATTACK:
            return lambda: self.angle_calculator.angle_of_attack
        if variable is AerodynamicVariable.ANGLE_OF_SIDESLIP:
            return lambda: self.angle_calculator.angle_of_sideslip
        if variable is AerodynamicVariable.BANK_ANGLE:
            return lambda: self.angle_calculator.bank_angle
        if variable is AerodynamicVariable.ALTITUDE:
            return lambda: self.altitude
        if variable is AerodynamicVariable.CONTROL_SURFACE_DEFLECTION:
            if surface is None:
                raise ConfigurationError("Control surface deflection is only available to control surface increments")
            systems = self.body.vehicle_systems
            if systems is None:
                raise ConfigurationError(
                    f"Control surface {surface!r} of {self.body.name!r} requires vehicle systems"
                )
            return lambda: systems.get_control_surface_deflection(surface)
        raise ConfigurationError(f"Aerodynamic variable {variable!r} cannot be provided by flight conditions")

    def reset_time(self) -> None:
        self._time = None

    @property
    def current_time(self) -> float | None:
        return self._time

    def update(self, time: float) -> None:
        """Recompute all flight conditions at *time*; repeated calls are no-ops."""
        time = float(time)
        if self._time == time:
            return

        relative_state = self.body.get_state(time) - self.central_body.get_state(time)
        r_rel = relative_state[:3]
        v_rel = relative_state[3:]

        R_i_to_bf = self.central_body.rotation_to_body_fixed
        omega = self.central_body.angular_velocity
        r_bf = R_i_to_bf @ r_rel
        v_bf = R_i_to_bf @ (v_rel - jnp.cross(omega, r_rel))

        altitude = float(jnp.linalg.norm(r_rel)) - self.central_body.mean_radius
        atmosphere = self.central_body.atmosphere
        self.altitude = altitude
        self.density = atmosphere.density(altitude)
        self.speed_of_sound = atmosphere.speed_of_sound(altitude)
        self.airspeed = float(jnp.linalg.norm(v_bf))
        self.mach_number = self.airspeed / self.speed_of_sound
        self.dynamic_pressure = 0.5 * self.density * self.airspeed**2

        self.angle_calculator.update(time, r_bf, v_bf)
        self._rotation_aerodynamic_to_inertial = R_i_to_bf.T @ self.angle_calculator.rotation_aerodynamic_to_body_fixed
        self._relative_state = relative_state
        self._airspeed_velocity = v_bf

        coefficients = self.body.aerodynamic_coefficients
        if coefficients is not None:
            coefficients.update_current_coefficients(
                [function() for function in self._coefficient_variables],
                {
                    surface: [function() for function in functions]
                    for surface, functions in self._control_surface_variables.items()
                },
            )

        self._time = time

    def _require_update(self) -> None:
        if self._time is None:
            raise EvaluationError(f"Flight conditions of {self.body.name!r} have not been updated")

    @property
    def relative_state(self) -> Array:
        """State of the vehicle relative to the central body (inertial axes)."""
        self._require_update()
        return self._relative_state

    @property
    def airspeed_velocity(self) -> Array:
        """Airspeed vector in the central body's body-fixed frame [m/s]."""
        self._require_update()
        return self._airspeed_velocity

    @property
    def rotation_aerodynamic_to_inertial(self) -> Array:
        self._require_update()
        return self._rotation_aerodynamic_to_inertial

    def __repr__(self) -> str:
        return f"FlightConditions(body={self.body.name!r}, central_body={self.central_body.name!r})"
