"""Acceleration models and the builder that composes them.

- **Gravity**: point-mass and spherical harmonic kernels and models
- **Third body**: perturbation of bodies propagated about a non-inertial
  central body
- **Aerodynamic**: acceleration from coefficients and flight conditions
- **Factory**: :func:`create_acceleration_models` from
  :class:`AccelerationSettings`
"""

from ._base import AccelerationModel
from .aerodynamic import AerodynamicAcceleration, accel_aerodynamic
from .factory import AccelerationMap, create_acceleration_models
from .gravity import (
    CentralGravityAcceleration,
    SphericalHarmonicAcceleration,
    accel_point_mass,
    accel_spherical_harmonics,
)
from .settings import AccelerationSettings, AccelerationType, SphericalHarmonicAccelerationSettings
from .third_body import ThirdBodyAcceleration

__all__ = [
    "AccelerationModel",
    # Kernels
    "accel_point_mass",
    "accel_spherical_harmonics",
    "accel_aerodynamic",
    # Models
    "CentralGravityAcceleration",
    "SphericalHarmonicAcceleration",
    "ThirdBodyAcceleration",
    "AerodynamicAcceleration",
    # Settings and factory
    "AccelerationType",
    "AccelerationSettings",
    "SphericalHarmonicAccelerationSettings",
    "AccelerationMap",
    "create_acceleration_models",
]
