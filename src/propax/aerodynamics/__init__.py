"""Aerodynamic coefficients and flight conditions.

- **Coefficient interfaces**: constant, custom and tabulated force/moment
  coefficients, with additive control-surface increments
- **Flight conditions**: altitude, density, airspeed, Mach number,
  dynamic pressure and aerodynamic angles of a vehicle
"""

from ._types import AerodynamicVariable
from .coefficients import (
    AerodynamicCoefficientInterface,
    ConstantAerodynamicCoefficientInterface,
    ControlSurfaceIncrementInterface,
    CustomAerodynamicCoefficientInterface,
    CustomControlSurfaceIncrementInterface,
    TabulatedAerodynamicCoefficientInterface,
    TabulatedControlSurfaceIncrementInterface,
)
from .flight_conditions import AerodynamicAngleCalculator, FlightConditions

__all__ = [
    "AerodynamicVariable",
    # Coefficients
    "AerodynamicCoefficientInterface",
    "ConstantAerodynamicCoefficientInterface",
    "CustomAerodynamicCoefficientInterface",
    "TabulatedAerodynamicCoefficientInterface",
    # Control surfaces
    "ControlSurfaceIncrementInterface",
    "CustomControlSurfaceIncrementInterface",
    "TabulatedControlSurfaceIncrementInterface",
    # Flight conditions
    "AerodynamicAngleCalculator",
    "FlightConditions",
]
