"""
propax composes acceleration models for spacecraft and natural bodies and propagates their translational state, implemented in JAX.
"""

from .constants import (
    DEG2RAD,
    RAD2DEG,
    AU,
    FRAME_ORIGIN,
    R_EARTH,
    GM_EARTH,
    OMEGA_EARTH,
    GM_SUN,
    GM_MOON,
    GM_MARS,
    GM_JUPITER,
)

from .config import set_dtype, get_dtype
from .exceptions import ConfigurationError, EvaluationError

from .frames import Rx, Ry, Rz

from .orbits import (
    orbital_period,
    mean_motion,
    anomaly_mean_to_eccentric,
    state_koe_to_cartesian,
)

from .bodies import (
    Body,
    SystemOfBodies,
    ConstantEphemeris,
    TabulatedEphemeris,
    KeplerEphemeris,
    GravityFieldModel,
    SphericalHarmonicsGravityField,
    SimpleRotationModel,
    ExponentialAtmosphere,
    VehicleSystems,
)

from .acceleration import (
    AccelerationSettings,
    AccelerationType,
    SphericalHarmonicAccelerationSettings,
    create_acceleration_models,
)

from .propagation import (
    DynamicsSimulator,
    IntegratorSettings,
    PropagationResult,
    SimulatorStatus,
    TranslationalStateDerivative,
    DependentVariable,
    DependentVariableSettings,
    TimeTerminationSettings,
    DependentVariableTerminationSettings,
    CustomTerminationSettings,
    HybridTerminationSettings,
)

from .integrators import (
    AdaptiveConfig,
    StepResult,
    rk4_step,
    rkf45_step,
)
