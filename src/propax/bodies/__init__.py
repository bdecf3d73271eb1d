"""Bodies and the environment models attached to them.

- **Body / SystemOfBodies**: named bodies with a time-stamped state, held
  in an index-based registry
- **Ephemerides**: constant, tabulated and Keplerian state providers
- **Gravity fields**: point-mass and spherical-harmonic fields
- **Rotation, atmosphere, vehicle systems**: inputs to aerodynamic models
"""

from .atmosphere import ExponentialAtmosphere
from .body import Body
from .ephemerides import ConstantEphemeris, Ephemeris, KeplerEphemeris, TabulatedEphemeris
from .gravity_field import GravityFieldModel, SphericalHarmonicsGravityField
from .rotation import SimpleRotationModel
from .system import SystemOfBodies
from .vehicle_systems import VehicleSystems

__all__ = [
    "Body",
    "SystemOfBodies",
    # Ephemerides
    "Ephemeris",
    "ConstantEphemeris",
    "TabulatedEphemeris",
    "KeplerEphemeris",
    # Gravity fields
    "GravityFieldModel",
    "SphericalHarmonicsGravityField",
    # Environment
    "SimpleRotationModel",
    "ExponentialAtmosphere",
    "VehicleSystems",
]
