"""Tests for propax.propagation.state_derivative.

The state derivative stacks the relative states of the propagated bodies,
refreshes every body the accelerations depend on, and must never be
entered while an evaluation is in progress.
"""

import jax.numpy as jnp
import pytest

from propax.acceleration import (
    AccelerationModel,
    AccelerationSettings,
    accel_point_mass,
    create_acceleration_models,
)
from propax.bodies import ConstantEphemeris, GravityFieldModel, SystemOfBodies
from propax.constants import GM_EARTH, GM_MOON, R_EARTH
from propax.exceptions import ConfigurationError, EvaluationError
from propax.propagation import TranslationalStateDerivative

_EARTH_STATE = jnp.array([1.0e6, -2.0e6, 5.0e5, 10.0, 20.0, -5.0])
_MOON_RELATIVE = jnp.array([3.844e8, 0.0, 0.0, 0.0, 1022.0, 0.0])
_VEHICLE_RELATIVE = jnp.array([2.0e6, 0.0, 0.0, 0.0, 1500.0, 0.0])


def _earth_moon_system(earth_ephemeris=True):
    bodies = SystemOfBodies()
    bodies.create_body(
        "Earth",
        ephemeris=ConstantEphemeris(_EARTH_STATE) if earth_ephemeris else None,
        gravity_field=GravityFieldModel(GM_EARTH),
    )
    bodies.create_body("Moon", gravity_field=GravityFieldModel(GM_MOON))
    bodies.create_body("Vehicle")
    return bodies


def _point_mass(*exerters):
    return {name: [AccelerationSettings.point_mass_gravity()] for name in exerters}


class _ReentrantAcceleration(AccelerationModel):
    """Calls the state derivative from inside an update."""

    def __init__(self):
        super().__init__()
        self.state_derivative = None

    def _compute_acceleration(self, time):
        self.state_derivative(time, jnp.zeros(6))
        return jnp.zeros(3)


# ──────────────────────────────────────────────
# Derivative values
# ──────────────────────────────────────────────

class TestDerivative:
    def test_two_body(self):
        """Derivative of a relative two-body state is [v, -mu r / |r|^3]."""
        bodies = _earth_moon_system()
        models = create_acceleration_models(bodies, {"Vehicle": _point_mass("Earth")}, {"Vehicle": "Earth"})
        model = TranslationalStateDerivative(bodies, models, ["Vehicle"], ["Earth"])
        state = jnp.array([R_EARTH + 500e3, 0.0, 0.0, 0.0, 7600.0, 0.0])
        dx = model(0.0, state)
        r = R_EARTH + 500e3
        assert dx.shape == (6,)
        assert jnp.allclose(dx[:3], state[3:])
        assert float(dx[3]) == pytest.approx(-GM_EARTH / r**2, rel=1e-12)
        assert jnp.allclose(model.total_acceleration("Vehicle"), dx[3:])

    def test_bodies_stamped_inertial(self):
        """Propagated bodies hold inertial states after an evaluation."""
        bodies = _earth_moon_system()
        models = create_acceleration_models(bodies, {"Vehicle": _point_mass("Earth")}, {"Vehicle": "Earth"})
        model = TranslationalStateDerivative(bodies, models, ["Vehicle"], {"Vehicle": "Earth"})
        model(3.0, _VEHICLE_RELATIVE)
        assert bodies["Vehicle"].current_time == 3.0
        assert jnp.allclose(bodies["Vehicle"].state, _VEHICLE_RELATIVE + _EARTH_STATE)
        assert jnp.allclose(bodies["Earth"].state, _EARTH_STATE)

    def test_central_bodies_first(self):
        """A propagated central body is converted before the bodies orbiting it."""
        bodies = _earth_moon_system()
        models = create_acceleration_models(
            bodies,
            {"Vehicle": _point_mass("Moon", "Earth"), "Moon": _point_mass("Earth")},
            {"Vehicle": "Moon", "Moon": "Earth"},
        )
        model = TranslationalStateDerivative(bodies, models, ["Vehicle", "Moon"], ["Moon", "Earth"])
        state = jnp.concatenate([_VEHICLE_RELATIVE, _MOON_RELATIVE])
        dx = model(0.0, state)
        assert jnp.allclose(bodies["Moon"].state, _MOON_RELATIVE + _EARTH_STATE)
        assert jnp.allclose(bodies["Vehicle"].state, _VEHICLE_RELATIVE + _MOON_RELATIVE + _EARTH_STATE)
        assert dx.shape == (12,)

        r_vehicle = bodies["Vehicle"].position
        expected = (
            accel_point_mass(r_vehicle, bodies["Moon"].position, GM_MOON)
            + accel_point_mass(r_vehicle, bodies["Earth"].position, GM_EARTH)
            - accel_point_mass(bodies["Moon"].position, bodies["Earth"].position, GM_EARTH)
        )
        assert jnp.allclose(dx[3:6], expected, rtol=1e-12)

    def test_models_reset_between_evaluations(self):
        """Two evaluations at the same time with different states differ."""
        bodies = _earth_moon_system()
        models = create_acceleration_models(bodies, {"Vehicle": _point_mass("Earth")}, {"Vehicle": "Earth"})
        model = TranslationalStateDerivative(bodies, models, ["Vehicle"], ["Earth"])
        first = model(0.0, _VEHICLE_RELATIVE)
        second = model(0.0, 2.0 * _VEHICLE_RELATIVE)
        assert float(second[3]) == pytest.approx(0.25 * float(first[3]), rel=1e-12)

    def test_frame_origin_central_body(self):
        """With the frame origin as central body the state is already inertial."""
        bodies = _earth_moon_system()
        models = create_acceleration_models(bodies, {"Vehicle": _point_mass("Earth")}, {"Vehicle": "SSB"})
        model = TranslationalStateDerivative(bodies, models, ["Vehicle"], ["SSB"])
        model(0.0, _VEHICLE_RELATIVE)
        assert jnp.array_equal(bodies["Vehicle"].state, _VEHICLE_RELATIVE)

    def test_wrong_state_size(self):
        """The state size must match the number of propagated bodies."""
        bodies = _earth_moon_system()
        models = create_acceleration_models(bodies, {"Vehicle": _point_mass("Earth")}, {"Vehicle": "Earth"})
        model = TranslationalStateDerivative(bodies, models, ["Vehicle"], ["Earth"])
        assert model.state_size == 6
        with pytest.raises(EvaluationError, match="shape"):
            model(0.0, jnp.zeros(12))

    def test_reentrant_evaluation(self):
        """Evaluating while an evaluation is in progress is an error."""
        bodies = _earth_moon_system()
        reentrant = _ReentrantAcceleration()
        model = TranslationalStateDerivative(bodies, {"Vehicle": {"Earth": [reentrant]}}, ["Vehicle"], ["Earth"])
        reentrant.state_derivative = model
        with pytest.raises(EvaluationError, match="already in progress"):
            model(0.0, _VEHICLE_RELATIVE)

    def test_total_acceleration_before_evaluation(self):
        """No total acceleration is available before the first evaluation."""
        bodies = _earth_moon_system()
        model = TranslationalStateDerivative(bodies, {}, ["Vehicle"], ["Earth"])
        with pytest.raises(EvaluationError):
            model.total_acceleration("Vehicle")


# ──────────────────────────────────────────────
# Configuration checks
# ──────────────────────────────────────────────

class TestConfiguration:
    def test_cyclic_central_bodies(self):
        """Central bodies may not form a cycle."""
        bodies = _earth_moon_system()
        with pytest.raises(ConfigurationError, match="Cyclic"):
            TranslationalStateDerivative(bodies, {}, ["Vehicle", "Moon"], ["Moon", "Vehicle"])

    def test_own_central_body(self):
        """A body cannot be its own central body."""
        bodies = _earth_moon_system()
        with pytest.raises(ConfigurationError, match="own central body"):
            TranslationalStateDerivative(bodies, {}, ["Vehicle"], ["Vehicle"])

    def test_duplicate_bodies(self):
        """Each body is propagated at most once."""
        bodies = _earth_moon_system()
        with pytest.raises(ConfigurationError, match="Duplicate"):
            TranslationalStateDerivative(bodies, {}, ["Vehicle", "Vehicle"], ["Earth", "Earth"])

    def test_no_bodies(self):
        """At least one body must be propagated."""
        with pytest.raises(ConfigurationError):
            TranslationalStateDerivative(_earth_moon_system(), {}, [], [])

    def test_unknown_body(self):
        """Propagated bodies must exist."""
        with pytest.raises(ConfigurationError, match="Probe"):
            TranslationalStateDerivative(_earth_moon_system(), {}, ["Probe"], ["Earth"])

    def test_central_body_count(self):
        """A central body list must align with the propagated bodies."""
        with pytest.raises(ConfigurationError):
            TranslationalStateDerivative(_earth_moon_system(), {}, ["Vehicle"], ["Earth", "Moon"])

    def test_missing_central_body_in_mapping(self):
        """A mapping must name a central body for every propagated body."""
        with pytest.raises(ConfigurationError, match="No central body"):
            TranslationalStateDerivative(_earth_moon_system(), {}, ["Vehicle"], {"Moon": "Earth"})

    def test_models_for_unpropagated_body(self):
        """Acceleration models must belong to propagated bodies."""
        bodies = _earth_moon_system()
        models = create_acceleration_models(bodies, {"Moon": _point_mass("Earth")}, {"Moon": "Earth"})
        with pytest.raises(ConfigurationError, match="not propagated"):
            TranslationalStateDerivative(bodies, models, ["Vehicle"], ["Earth"])

    def test_central_body_needs_ephemeris(self):
        """A non-propagated central body must have an ephemeris."""
        bodies = _earth_moon_system(earth_ephemeris=False)
        with pytest.raises(ConfigurationError, match="ephemeris"):
            TranslationalStateDerivative(bodies, {}, ["Vehicle"], ["Earth"])

    def test_exerter_needs_ephemeris(self):
        """A non-propagated exerting body must have an ephemeris."""
        bodies = _earth_moon_system()
        models = create_acceleration_models(bodies, {"Vehicle": _point_mass("Moon")}, {"Vehicle": "Earth"})
        with pytest.raises(ConfigurationError, match="'Moon'"):
            TranslationalStateDerivative(bodies, models, ["Vehicle"], ["Earth"])

    def test_propagated_exerter_needs_no_ephemeris(self):
        """Propagated bodies provide their own state."""
        bodies = _earth_moon_system()
        models = create_acceleration_models(
            bodies,
            {"Vehicle": _point_mass("Moon", "Earth"), "Moon": _point_mass("Earth")},
            {"Vehicle": "Earth", "Moon": "Earth"},
        )
        model = TranslationalStateDerivative(bodies, models, ["Vehicle", "Moon"], ["Earth", "Earth"])
        assert model.state_size == 12
