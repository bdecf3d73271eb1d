"""
The `constants` module defines the mathematical and physical constants used by propax.
"""

from jax.numpy import pi as PI

# Mathematical Constants
"""
Constant to convert degrees to radians. Equal to 2pi/360. Units: *rad/deg*
"""
DEG2RAD = 2.0 * PI / 360.0

"""
Constant to convert radians to degrees. Equal to 360/2pi. Units: *deg/rad*
"""
RAD2DEG = 360.0 / (PI * 2.0)

# Physical Constants
"""
Astronomical Unit. Equal to the mean distance of the Earth from the sun.
TDB-compatible value. Units: *m*

References:

1. P. Gérard and B. Luzum, *IERS Technical Note 36*, 2010
"""
AU = 1.49597870700e11  # [m] Astronomical Unit IAU 2010

"""
Name of the default inertial frame origin (Solar System Barycenter).
"""
FRAME_ORIGIN = "SSB"

# Earth Constants
"""
Earth's equatorial radius. [m]

References:

1. NIMA Technical Report TR8350.2
"""
R_EARTH = 6378137.0  # WGS-84 semi-major axis

"""
Earth's Gravitational constant [m^3/s^2]

References:

1. NIMA Technical Report TR8350.2
"""
GM_EARTH = 3.986004418e14  # [m^3/s^2] WGS-84 / EGM96 value

"""
Earth axial rotation rate. [rad/s]

References:

1. D. Vallado, *Fundamentals of Astrodynamics and Applications (4th Ed.)*, p. 222, 2010
"""
OMEGA_EARTH = 7.292115146706979e-5  # [rad/s] Taken from Vallado 4th Ed page 222

# Earth exponential atmosphere
"""
Density scale height of a single-layer exponential Earth atmosphere. [m]
"""
H_EARTH_ATMOSPHERE = 7.2e3

"""
Sea-level density of the exponential Earth atmosphere. [kg/m^3]
"""
RHO0_EARTH_ATMOSPHERE = 1.225

"""
Constant temperature of the exponential Earth atmosphere. [K]
"""
T_EARTH_ATMOSPHERE = 246.0

"""
Specific gas constant of air. [J/(kg K)]
"""
R_AIR = 287.0

"""
Ratio of specific heats of air. [dimensionless]
"""
GAMMA_AIR = 1.4

# Celestial Constants - from JPL DE430 Ephemerides
"""
Gravitational constant of the Sun. [m^3/s^2]

References:

1. O. Montenbruck, and E. Gill, *Satellite Orbits: Models, Methods and
Applications*, 2012.
"""
GM_SUN = 132712440041.939400 * 1e9  # Gravitational constant of the Sun

"""
Gravitational constant of the Moon. [m^3/s^2]

References:

1. O. Montenbruck, and E. Gill, *Satellite Orbits: Models, Methods and
Applications*, 2012.
"""
GM_MOON = 4902.800066 * 1e9

"""
Gravitational constant of Mars (system). [m^3/s^2]
"""
GM_MARS = 42828.375214 * 1e9

"""
Gravitational constant of Jupiter (system). [m^3/s^2]
"""
GM_JUPITER = 126712764.800000 * 1e9
