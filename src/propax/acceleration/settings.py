"""Acceleration settings consumed by the model builder.

Settings are static descriptions of *which* acceleration a body exerts on
another; :func:`~propax.acceleration.factory.create_acceleration_models`
turns them into models bound to the bodies.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field

from propax.exceptions import ConfigurationError


class AccelerationType(enum.Enum):
    """Kinds of acceleration the builder can create."""

    POINT_MASS_GRAVITY = "point_mass_gravity"
    SPHERICAL_HARMONIC_GRAVITY = "spherical_harmonic_gravity"
    AERODYNAMIC = "aerodynamic"


@dataclass(frozen=True)
class AccelerationSettings:
    """Settings of one acceleration.

    Args:
        acceleration_type: Which acceleration to create.

    Examples:
        ```python
        from propax.acceleration import AccelerationSettings
        settings = AccelerationSettings.point_mass_gravity()
        settings.acceleration_type
        ```
    """

    acceleration_type: AccelerationType

    def __post_init__(self) -> None:
        if not isinstance(self.acceleration_type, AccelerationType):
            raise ConfigurationError(
                f"acceleration_type must be an AccelerationType, got {self.acceleration_type!r}"
            )

    @staticmethod
    def point_mass_gravity() -> AccelerationSettings:
        """Preset: point-mass gravity of the exerting body."""
        return AccelerationSettings(AccelerationType.POINT_MASS_GRAVITY)

    @staticmethod
    def aerodynamic() -> AccelerationSettings:
        """Preset: aerodynamic force of the exerting body's atmosphere."""
        return AccelerationSettings(AccelerationType.AERODYNAMIC)

    @staticmethod
    def spherical_harmonic_gravity(maximum_degree: int, maximum_order: int) -> SphericalHarmonicAccelerationSettings:
        """Preset: spherical harmonic gravity truncated at degree/order."""
        return SphericalHarmonicAccelerationSettings(maximum_degree, maximum_order)


@dataclass(frozen=True)
class SphericalHarmonicAccelerationSettings(AccelerationSettings):
    """Spherical harmonic gravity settings.

    Args:
        maximum_degree: Maximum degree to evaluate.
        maximum_order: Maximum order to evaluate (``<= maximum_degree``).
    """

    acceleration_type: AccelerationType = field(default=AccelerationType.SPHERICAL_HARMONIC_GRAVITY, init=False)
    maximum_degree: int = 0
    maximum_order: int = 0

    def __post_init__(self) -> None:
        super().__post_init__()
        if self.maximum_degree < 0 or self.maximum_order < 0:
            raise ConfigurationError("maximum_degree and maximum_order must be non-negative")
        if self.maximum_order > self.maximum_degree:
            raise ConfigurationError(
                f"maximum_order ({self.maximum_order}) cannot exceed maximum_degree ({self.maximum_degree})"
            )
