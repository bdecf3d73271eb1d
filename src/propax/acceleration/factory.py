"""Build acceleration models from settings.

:func:`create_acceleration_models` turns a nested settings map
``{target: {exerter: [settings, ...]}}`` into acceleration models bound
to the bodies of a :class:`~propax.bodies.SystemOfBodies`, choosing per
acceleration between three formulations:

- the central body *is* the exerting body: direct model; for gravity the
  target's own gravitational parameter (if it has a gravity field) is
  added to the exerter's, giving the relative two-body motion
- the central body is the frame origin: direct model
- otherwise: third-body model, the exerter's pull on the target minus its
  pull on the central body (gravity only)
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping, Sequence

from propax.acceleration._base import AccelerationModel
from propax.acceleration.aerodynamic import AerodynamicAcceleration
from propax.acceleration.gravity import CentralGravityAcceleration, SphericalHarmonicAcceleration
from propax.acceleration.settings import (
    AccelerationSettings,
    AccelerationType,
    SphericalHarmonicAccelerationSettings,
)
from propax.acceleration.third_body import ThirdBodyAcceleration
from propax.aerodynamics import FlightConditions
from propax.bodies import Body, SphericalHarmonicsGravityField, SystemOfBodies
from propax.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

#: ``{target: {exerter: [model, ...]}}``
AccelerationMap = dict[str, dict[str, list[AccelerationModel]]]


def create_acceleration_models(
    bodies: SystemOfBodies,
    acceleration_settings: Mapping[str, Mapping[str, Sequence[AccelerationSettings]]],
    central_bodies: Mapping[str, str],
) -> AccelerationMap:
    """Create acceleration models for every target and exerting body.

    Args:
        bodies: The system of bodies the models read from.
        acceleration_settings: ``{target: {exerter: [settings, ...]}}``.
        central_bodies: Central body of each target; the frame origin name
            selects inertial propagation.

    Returns:
        ``{target: {exerter: [model, ...]}}``, in settings order.

    Raises:
        ConfigurationError: On unknown bodies, a missing central body, a
            body accelerating itself, missing environment models or an
            unsupported formulation.

    Examples:
        ```python
        from propax.acceleration import AccelerationSettings, create_acceleration_models
        models = create_acceleration_models(
            bodies,
            {"Vehicle": {"Earth": [AccelerationSettings.point_mass_gravity()]}},
            {"Vehicle": "Earth"},
        )
        ```
    """
    models: AccelerationMap = {}
    for target_name, exerters in acceleration_settings.items():
        target = _get_body(bodies, target_name, "Target")
        if target_name not in central_bodies:
            raise ConfigurationError(f"No central body given for {target_name!r}")
        central_name = central_bodies[target_name]
        if central_name == target_name:
            raise ConfigurationError(f"Body {target_name!r} cannot be its own central body")
        if not bodies.is_frame_origin(central_name):
            _get_body(bodies, central_name, "Central body")

        models[target_name] = {}
        for exerter_name, settings_list in exerters.items():
            exerter = _get_body(bodies, exerter_name, "Exerting body")
            if exerter_name == target_name:
                raise ConfigurationError(f"Body {target_name!r} cannot exert an acceleration on itself")
            models[target_name][exerter_name] = [
                _create_acceleration_model(bodies, target, exerter, settings, central_name)
                for settings in settings_list
            ]
            for settings in settings_list:
                logger.debug(
                    "Created %s acceleration on %s from %s (central body %s)",
                    settings.acceleration_type.value,
                    target_name,
                    exerter_name,
                    central_name,
                )

    logger.info(
        "Created %d acceleration models for %d bodies",
        sum(len(m) for row in models.values() for m in row.values()),
        len(models),
    )
    return models


def _get_body(bodies: SystemOfBodies, name: str, role: str) -> Body:
    if name not in bodies:
        raise ConfigurationError(f"{role} {name!r} is not in the system of bodies")
    return bodies[name]


def _create_acceleration_model(
    bodies: SystemOfBodies,
    target: Body,
    exerter: Body,
    settings: AccelerationSettings,
    central_name: str,
) -> AccelerationModel:
    if not isinstance(settings, AccelerationSettings):
        raise ConfigurationError(f"Expected AccelerationSettings, got {settings!r}")

    if central_name == exerter.name:
        if target.gravity_field is not None and settings.acceleration_type is not AccelerationType.AERODYNAMIC:
            logger.debug("Using combined gravitational parameter of %s and %s", exerter.name, target.name)
        return _create_direct_model(target, exerter, settings, use_combined_mass=True)
    if bodies.is_frame_origin(central_name):
        return _create_direct_model(target, exerter, settings, use_combined_mass=False)

    if settings.acceleration_type is AccelerationType.AERODYNAMIC:
        raise ConfigurationError(
            f"Aerodynamic acceleration on {target.name!r} from {exerter.name!r} requires "
            f"{exerter.name!r} to be its central body (got {central_name!r})"
        )
    central = bodies[central_name]
    logger.debug(
        "Wrapping acceleration on %s from %s as third-body perturbation about %s",
        target.name,
        exerter.name,
        central_name,
    )
    return ThirdBodyAcceleration(
        _create_direct_model(target, exerter, settings, use_combined_mass=False),
        _create_direct_model(central, exerter, settings, use_combined_mass=False),
    )


def _create_direct_model(
    target: Body,
    exerter: Body,
    settings: AccelerationSettings,
    use_combined_mass: bool,
) -> AccelerationModel:
    acceleration_type = settings.acceleration_type
    if acceleration_type is AccelerationType.POINT_MASS_GRAVITY:
        return CentralGravityAcceleration(
            target.get_position,
            _gravitational_parameter_function(target, exerter, use_combined_mass),
            exerter.get_position,
        )
    if acceleration_type is AccelerationType.SPHERICAL_HARMONIC_GRAVITY:
        return _create_spherical_harmonic_model(target, exerter, settings, use_combined_mass)
    if acceleration_type is AccelerationType.AERODYNAMIC:
        return _create_aerodynamic_model(target, exerter)
    raise ConfigurationError(f"Unsupported acceleration type {acceleration_type!r}")


def _gravitational_parameter_function(target: Body, exerter: Body, use_combined_mass: bool) -> Callable[[], float]:
    if exerter.gravity_field is None:
        raise ConfigurationError(f"Body {exerter.name!r} has no gravity field")
    exerter_field = exerter.gravity_field
    if use_combined_mass and target.gravity_field is not None:
        target_field = target.gravity_field
        return lambda: exerter_field.gravitational_parameter + target_field.gravitational_parameter
    return lambda: exerter_field.gravitational_parameter


def _create_spherical_harmonic_model(
    target: Body,
    exerter: Body,
    settings: AccelerationSettings,
    use_combined_mass: bool,
) -> SphericalHarmonicAcceleration:
    if not isinstance(settings, SphericalHarmonicAccelerationSettings):
        raise ConfigurationError("Spherical harmonic gravity requires SphericalHarmonicAccelerationSettings")
    field = exerter.gravity_field
    if not isinstance(field, SphericalHarmonicsGravityField):
        raise ConfigurationError(f"Body {exerter.name!r} has no spherical harmonic gravity field")
    C, S = field.get_coefficients(settings.maximum_degree, settings.maximum_order)
    return SphericalHarmonicAcceleration(
        target.get_position,
        _gravitational_parameter_function(target, exerter, use_combined_mass),
        field.reference_radius,
        C,
        S,
        position_of_exerting=exerter.get_position,
        rotation_to_body_fixed=lambda: exerter.rotation_to_body_fixed,
        maximum_degree=settings.maximum_degree,
        maximum_order=settings.maximum_order,
        normalized=field.normalized,
    )


def _create_aerodynamic_model(target: Body, exerter: Body) -> AerodynamicAcceleration:
    if target.aerodynamic_coefficients is None:
        raise ConfigurationError(f"Body {target.name!r} has no aerodynamic coefficients")
    if not target.has_mass:
        raise ConfigurationError(f"Body {target.name!r} has no mass model")

    # Rebuild flight conditions for the current exerter; keep installed guidance.
    previous = target.flight_conditions
    angle_calculator = previous.angle_calculator if previous is not None else None
    flight_conditions = FlightConditions(target, exerter, angle_calculator)
    target.flight_conditions = flight_conditions

    return AerodynamicAcceleration(
        flight_conditions,
        target.aerodynamic_coefficients,
        lambda: target.mass,
    )
