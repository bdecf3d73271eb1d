"""Atmosphere models used by flight conditions."""

from __future__ import annotations

import math

from propax.constants import (
    GAMMA_AIR,
    H_EARTH_ATMOSPHERE,
    R_AIR,
    RHO0_EARTH_ATMOSPHERE,
    T_EARTH_ATMOSPHERE,
)
from propax.exceptions import ConfigurationError


class ExponentialAtmosphere:
    """Isothermal, single-layer exponential atmosphere.

    ``rho(h) = rho_0 * exp(-h / H)``; temperature is constant, so the speed
    of sound is ``sqrt(gamma * R * T)`` at every altitude.

    Args:
        scale_height: Density scale height H [m].
        surface_density: Density at zero altitude [kg/m^3].
        temperature: Constant temperature [K].
        gas_constant: Specific gas constant [J/(kg K)].
        specific_heat_ratio: Ratio of specific heats.
    """

    def __init__(
        self,
        scale_height: float,
        surface_density: float,
        temperature: float = T_EARTH_ATMOSPHERE,
        gas_constant: float = R_AIR,
        specific_heat_ratio: float = GAMMA_AIR,
    ):
        if scale_height <= 0.0 or surface_density < 0.0 or temperature <= 0.0:
            raise ConfigurationError(
                "Exponential atmosphere needs a positive scale height and temperature "
                "and a non-negative surface density"
            )
        self.scale_height = float(scale_height)
        self.surface_density = float(surface_density)
        self.temperature_value = float(temperature)
        self.gas_constant = float(gas_constant)
        self.specific_heat_ratio = float(specific_heat_ratio)

    @staticmethod
    def earth() -> ExponentialAtmosphere:
        """Preset: Earth exponential atmosphere (H = 7.2 km, rho_0 = 1.225 kg/m^3)."""
        return ExponentialAtmosphere(H_EARTH_ATMOSPHERE, RHO0_EARTH_ATMOSPHERE)

    def density(self, altitude):
        """Density at *altitude* [kg/m^3]."""
        return self.surface_density * math.exp(-float(altitude) / self.scale_height)

    def temperature(self, altitude):
        """Temperature at *altitude* [K]."""
        return self.temperature_value

    def speed_of_sound(self, altitude):
        """Speed of sound at *altitude* [m/s]."""
        return math.sqrt(self.specific_heat_ratio * self.gas_constant * self.temperature(altitude))
