"""Independent variables of aerodynamic coefficient interfaces."""

from __future__ import annotations

import enum


class AerodynamicVariable(enum.Enum):
    """Quantities an aerodynamic coefficient (or increment) may depend on.

    Each is bound to an accessor on the vehicle's flight conditions when
    those are created; ``CONTROL_SURFACE_DEFLECTION`` is only meaningful
    for control-surface increment interfaces and reads the deflection of
    the surface the increment belongs to.
    """

    MACH_NUMBER = "mach_number"
    ANGLE_OF_ATTACK = "angle_of_attack"
    ANGLE_OF_SIDESLIP = "angle_of_sideslip"
    BANK_ANGLE = "bank_angle"
    ALTITUDE = "altitude"
    CONTROL_SURFACE_DEFLECTION = "control_surface_deflection"
