"""Tests for the propax.aerodynamics module.

Covers the coefficient interfaces (constant, custom, tabulated), the
additive control-surface increments, and the flight conditions that feed
them: altitude, airspeed relative to the rotating atmosphere, Mach number,
dynamic pressure, aerodynamic angles and the aerodynamic frame.
"""

import math

import jax.numpy as jnp
import pytest

from propax.aerodynamics import (
    AerodynamicAngleCalculator,
    AerodynamicVariable,
    ConstantAerodynamicCoefficientInterface,
    CustomAerodynamicCoefficientInterface,
    CustomControlSurfaceIncrementInterface,
    FlightConditions,
    TabulatedAerodynamicCoefficientInterface,
    TabulatedControlSurfaceIncrementInterface,
)
from propax.bodies import ExponentialAtmosphere, SimpleRotationModel, SystemOfBodies, VehicleSystems
from propax.constants import OMEGA_EARTH, R_EARTH
from propax.exceptions import ConfigurationError, EvaluationError
from propax.interpolation import BoundaryHandling

_MACH = AerodynamicVariable.MACH_NUMBER
_AOA = AerodynamicVariable.ANGLE_OF_ATTACK
_SIDESLIP = AerodynamicVariable.ANGLE_OF_SIDESLIP
_DEFLECTION = AerodynamicVariable.CONTROL_SURFACE_DEFLECTION

_INCREMENT_SCALES = [1.0, -3.5, 2.1, 0.4, -0.75, 1.3]


def _clean_coefficients(x):
    mach, aoa, sideslip = x
    return jnp.array([
        0.5 + 0.01 * mach + 0.3 * aoa * aoa,
        0.2 * sideslip,
        1.5 * aoa,
        0.01 * sideslip,
        -0.2 * aoa + 0.001 * mach,
        -0.05 * sideslip,
    ])


def _increment(x):
    aoa, deflection = x
    return jnp.array([s * (0.01 * aoa + i * 0.005 * deflection) for i, s in enumerate(_INCREMENT_SCALES)])


def _vehicle_interface():
    return CustomAerodynamicCoefficientInterface(
        _clean_coefficients, [_MACH, _AOA, _SIDESLIP], reference_area=2.0, reference_length=1.5
    )


# ===========================================================================
# Coefficient interfaces
# ===========================================================================
class TestConstantCoefficients:
    def test_force_and_moment(self):
        """Force and moment coefficients are split from the 6-vector."""
        iface = ConstantAerodynamicCoefficientInterface([1.2, 0.1, 0.4], [0.01, 0.02, 0.03], reference_area=3.0)
        iface.update_current_coefficients([])
        assert jnp.allclose(iface.current_force_coefficients, jnp.array([1.2, 0.1, 0.4]))
        assert jnp.allclose(iface.current_moment_coefficients, jnp.array([0.01, 0.02, 0.03]))
        assert iface.reference_area == 3.0

    def test_moment_defaults_to_zero(self):
        """Omitted moment coefficients are zero."""
        iface = ConstantAerodynamicCoefficientInterface([1.2, 0.0, 0.0])
        iface.update_current_coefficients([])
        assert jnp.array_equal(iface.current_moment_coefficients, jnp.zeros(3))

    def test_read_before_update(self):
        """Coefficients cannot be read before the first update."""
        iface = ConstantAerodynamicCoefficientInterface([1.2, 0.0, 0.0])
        with pytest.raises(EvaluationError, match="not been updated"):
            iface.current_coefficients

    def test_invalid_reference_area(self):
        """The reference area must be positive."""
        with pytest.raises(ConfigurationError):
            ConstantAerodynamicCoefficientInterface([1.2, 0.0, 0.0], reference_area=0.0)


class TestCustomCoefficients:
    def test_variables_passed_in_order(self):
        """The function receives the independent variables in declaration order."""
        iface = _vehicle_interface()
        iface.update_current_coefficients([10.0, 0.1, -0.01])
        assert jnp.allclose(iface.current_coefficients, _clean_coefficients([10.0, 0.1, -0.01]), rtol=1e-15)

    def test_wrong_variable_count(self):
        """A wrong number of variables is an evaluation error."""
        iface = _vehicle_interface()
        with pytest.raises(EvaluationError, match="expect 3"):
            iface.update_current_coefficients([10.0, 0.1])

    def test_wrong_output_shape(self):
        """The function must return six values."""
        iface = CustomAerodynamicCoefficientInterface(lambda x: jnp.ones(3), [_MACH])
        with pytest.raises(EvaluationError, match="6 values"):
            iface.update_current_coefficients([5.0])

    def test_deflection_not_a_clean_variable(self):
        """Control surface deflection is reserved for increments."""
        with pytest.raises(ConfigurationError, match="Control surface"):
            CustomAerodynamicCoefficientInterface(lambda x: jnp.zeros(6), [_DEFLECTION])

    def test_unknown_variable(self):
        """Independent variables must be enumeration members."""
        with pytest.raises(ConfigurationError, match="Unknown"):
            CustomAerodynamicCoefficientInterface(lambda x: jnp.zeros(6), ["mach_number"])


class TestTabulatedCoefficients:
    @staticmethod
    def _interface(boundary=BoundaryHandling.THROW):
        mach = jnp.array([1.0, 5.0, 10.0])
        aoa = jnp.array([0.0, 0.2])
        force = jnp.stack(
            [jnp.stack([jnp.array([0.5 + 0.1 * m, 0.0, 2.0 * a]) for a in aoa]) for m in mach]
        )
        moment = jnp.zeros((3, 2, 3))
        return TabulatedAerodynamicCoefficientInterface(
            [mach, aoa], force, moment, [_MACH, _AOA], reference_area=4.0, boundary=boundary
        )

    def test_nodes_exact(self):
        """Interpolating on a node returns the node value."""
        iface = self._interface()
        iface.update_current_coefficients([5.0, 0.2])
        assert jnp.allclose(iface.current_force_coefficients, jnp.array([1.0, 0.0, 0.4]), rtol=1e-15)

    def test_bilinear(self):
        """The table is linear in both axes, so interpolation is exact."""
        iface = self._interface()
        iface.update_current_coefficients([7.5, 0.05])
        assert jnp.allclose(iface.current_force_coefficients, jnp.array([1.25, 0.0, 0.1]), rtol=1e-14)

    def test_out_of_range_throws(self):
        """Values beyond the grid raise with THROW boundary handling."""
        iface = self._interface()
        with pytest.raises(EvaluationError, match="mach_number"):
            iface.update_current_coefficients([12.0, 0.1])

    def test_out_of_range_hold(self):
        """HOLD clamps to the boundary value."""
        iface = self._interface(BoundaryHandling.HOLD)
        iface.update_current_coefficients([12.0, 0.2])
        assert jnp.allclose(iface.current_force_coefficients, jnp.array([1.5, 0.0, 0.4]), rtol=1e-15)

    def test_shape_mismatch(self):
        """Tables must match the grid sizes."""
        with pytest.raises(ConfigurationError, match="does not match"):
            TabulatedAerodynamicCoefficientInterface(
                [jnp.array([0.0, 1.0])], jnp.zeros((3, 3)), jnp.zeros((3, 3)), [_MACH]
            )

    def test_grid_count_mismatch(self):
        """One grid per independent variable."""
        with pytest.raises(ConfigurationError, match="grids"):
            TabulatedAerodynamicCoefficientInterface(
                [jnp.array([0.0, 1.0])], jnp.zeros((2, 3)), jnp.zeros((2, 3)), [_MACH, _AOA]
            )


# ===========================================================================
# Control-surface increments
# ===========================================================================
class TestControlSurfaceIncrements:
    def test_increments_are_additive(self):
        """Coefficients are the clean values plus every surface increment."""
        iface = _vehicle_interface()
        iface.set_control_surface_increments({
            "Elevon": CustomControlSurfaceIncrementInterface(_increment, [_AOA, _DEFLECTION]),
            "Rudder": CustomControlSurfaceIncrementInterface(_increment, [_AOA, _DEFLECTION]),
        })
        body_variables = [10.0, 0.1, -0.01]
        iface.update_current_coefficients(body_variables, {"Elevon": [0.1, 0.02], "Rudder": [0.1, -0.03]})
        expected = _clean_coefficients(body_variables) + _increment([0.1, 0.02]) + _increment([0.1, -0.03])
        assert jnp.allclose(iface.current_coefficients, expected, rtol=1e-14, atol=1e-14)

    def test_increments_independent(self):
        """Removing one surface leaves the other surface's contribution unchanged."""
        body_variables = [10.0, 0.1, -0.01]
        both = _vehicle_interface()
        both.set_control_surface_increments({
            "Elevon": CustomControlSurfaceIncrementInterface(_increment, [_AOA, _DEFLECTION]),
            "Rudder": CustomControlSurfaceIncrementInterface(_increment, [_AOA, _DEFLECTION]),
        })
        both.update_current_coefficients(body_variables, {"Elevon": [0.1, 0.02], "Rudder": [0.1, -0.03]})
        elevon_only = _vehicle_interface()
        elevon_only.set_control_surface_increments({
            "Elevon": CustomControlSurfaceIncrementInterface(_increment, [_AOA, _DEFLECTION]),
        })
        elevon_only.update_current_coefficients(body_variables, {"Elevon": [0.1, 0.02]})
        difference = both.current_coefficients - elevon_only.current_coefficients
        assert jnp.allclose(difference, _increment([0.1, -0.03]), rtol=1e-12, atol=1e-14)

    def test_increment_accessors(self):
        """Each increment exposes its own force and moment parts."""
        increment = CustomControlSurfaceIncrementInterface(_increment, [_AOA, _DEFLECTION])
        increment.update_current_increments([0.2, 0.1])
        values = _increment([0.2, 0.1])
        assert jnp.allclose(increment.current_force_increments, values[:3], rtol=1e-15)
        assert jnp.allclose(increment.current_moment_increments, values[3:], rtol=1e-15)

    def test_missing_surface_variables(self):
        """Every installed surface needs independent variables."""
        iface = _vehicle_interface()
        iface.set_control_surface_increments({
            "Elevon": CustomControlSurfaceIncrementInterface(_increment, [_AOA, _DEFLECTION]),
        })
        with pytest.raises(EvaluationError, match="Elevon"):
            iface.update_current_coefficients([10.0, 0.1, -0.01], {})

    def test_unknown_surface(self):
        """Asking for an uninstalled surface is a configuration error."""
        iface = _vehicle_interface()
        assert iface.control_surface_names == []
        with pytest.raises(ConfigurationError, match="Flap"):
            iface.control_surface_increment("Flap")

    def test_not_an_increment(self):
        """Only increment interfaces can be installed."""
        iface = _vehicle_interface()
        with pytest.raises(ConfigurationError):
            iface.set_control_surface_increments({"Elevon": _increment})

    def test_tabulated_increment(self):
        """Tabulated increments interpolate in deflection."""
        increment = TabulatedControlSurfaceIncrementInterface(
            [jnp.array([-0.2, 0.2])],
            jnp.array([[-0.02, 0.0, -0.1, 0.0, 0.05, 0.0], [0.02, 0.0, 0.1, 0.0, -0.05, 0.0]]),
            [_DEFLECTION],
        )
        increment.update_current_increments([0.1])
        assert jnp.allclose(
            increment.current_increments, jnp.array([0.01, 0.0, 0.05, 0.0, -0.025, 0.0]), rtol=1e-14, atol=1e-16
        )


# ===========================================================================
# Flight conditions
# ===========================================================================
_ALTITUDE = 80.0e3
_SPEED = 7000.0


def _flight_system(coefficients=None, vehicle_systems=None):
    """Vehicle over the equator at longitude 0, flying east."""
    bodies = SystemOfBodies()
    bodies.create_body(
        "Earth",
        rotation_model=SimpleRotationModel(OMEGA_EARTH),
        atmosphere=ExponentialAtmosphere.earth(),
        mean_radius=R_EARTH,
    )
    bodies.create_body(
        "Vehicle",
        aerodynamic_coefficients=coefficients,
        mass=2000.0,
        vehicle_systems=vehicle_systems,
    )
    bodies["Earth"].set_state(0.0, jnp.zeros(6))
    bodies["Vehicle"].set_state(0.0, jnp.array([R_EARTH + _ALTITUDE, 0.0, 0.0, 0.0, _SPEED, 0.0]))
    return bodies


class TestFlightConditions:
    def test_requires_atmosphere(self):
        """The central body must have an atmosphere."""
        bodies = SystemOfBodies()
        bodies.create_body("Moon", mean_radius=1737.4e3)
        bodies.create_body("Vehicle")
        with pytest.raises(ConfigurationError, match="atmosphere"):
            FlightConditions(bodies["Vehicle"], bodies["Moon"])

    def test_requires_mean_radius(self):
        """The central body must have a mean radius."""
        bodies = SystemOfBodies()
        bodies.create_body("Earth", atmosphere=ExponentialAtmosphere.earth())
        bodies.create_body("Vehicle")
        with pytest.raises(ConfigurationError, match="mean radius"):
            FlightConditions(bodies["Vehicle"], bodies["Earth"])

    def test_scalar_conditions(self):
        """Altitude, density, airspeed, Mach number and dynamic pressure."""
        bodies = _flight_system()
        conditions = FlightConditions(bodies["Vehicle"], bodies["Earth"])
        conditions.update(0.0)

        atmosphere = ExponentialAtmosphere.earth()
        airspeed = _SPEED - OMEGA_EARTH * (R_EARTH + _ALTITUDE)
        assert conditions.altitude == pytest.approx(_ALTITUDE, rel=1e-12)
        assert conditions.density == pytest.approx(atmosphere.density(_ALTITUDE), rel=1e-10)
        assert conditions.airspeed == pytest.approx(airspeed, rel=1e-12)
        assert conditions.mach_number == pytest.approx(airspeed / atmosphere.speed_of_sound(_ALTITUDE), rel=1e-12)
        assert conditions.dynamic_pressure == pytest.approx(
            0.5 * atmosphere.density(_ALTITUDE) * airspeed**2, rel=1e-10
        )
        assert jnp.allclose(conditions.airspeed_velocity, jnp.array([0.0, airspeed, 0.0]), atol=1e-9)

    def test_read_before_update(self):
        """Vector quantities cannot be read before the first update."""
        bodies = _flight_system()
        conditions = FlightConditions(bodies["Vehicle"], bodies["Earth"])
        with pytest.raises(EvaluationError, match="not been updated"):
            conditions.relative_state

    def test_update_deduplicated(self):
        """A repeated time is a no-op until reset_time."""
        bodies = _flight_system()
        conditions = FlightConditions(bodies["Vehicle"], bodies["Earth"])
        conditions.update(0.0)
        first = conditions.altitude
        bodies["Vehicle"].set_state(0.0, jnp.array([R_EARTH + 2.0 * _ALTITUDE, 0.0, 0.0, 0.0, _SPEED, 0.0]))
        conditions.update(0.0)
        assert conditions.altitude == first
        conditions.reset_time()
        conditions.update(0.0)
        assert conditions.altitude == pytest.approx(2.0 * _ALTITUDE, rel=1e-12)
        assert conditions.current_time == 0.0

    def test_aerodynamic_frame(self):
        """With zero angles the aerodynamic x-axis is along the airspeed and z points down."""
        bodies = _flight_system()
        conditions = FlightConditions(bodies["Vehicle"], bodies["Earth"])
        conditions.update(0.0)
        R = conditions.rotation_aerodynamic_to_inertial
        assert jnp.allclose(R @ R.T, jnp.eye(3), atol=1e-14)
        assert jnp.allclose(R[:, 0], jnp.array([0.0, 1.0, 0.0]), atol=1e-14)
        assert jnp.allclose(R[:, 2], jnp.array([-1.0, 0.0, 0.0]), atol=1e-14)
        calculator = conditions.angle_calculator
        assert calculator.heading_angle == pytest.approx(0.5 * math.pi, rel=1e-14)
        assert calculator.flight_path_angle == pytest.approx(0.0, abs=1e-14)
        assert calculator.angle_of_attack == 0.0

    def test_bank_angle_rotates_lift(self):
        """A bank angle rotates the aerodynamic z-axis about the airspeed."""
        bodies = _flight_system()
        calculator = AerodynamicAngleCalculator()
        calculator.set_orientation_angle_functions(bank_angle=lambda: 0.5 * math.pi)
        conditions = FlightConditions(bodies["Vehicle"], bodies["Earth"], calculator)
        conditions.update(0.0)
        R = conditions.rotation_aerodynamic_to_inertial
        assert jnp.allclose(R[:, 0], jnp.array([0.0, 1.0, 0.0]), atol=1e-14)
        assert abs(float(R[0, 2])) < 1e-14

    def test_guidance_called_before_angles(self):
        """The update function runs with the current time before the angles are read."""
        bodies = _flight_system()
        guidance = {"aoa": None, "times": []}

        def update(time):
            guidance["times"].append(time)
            guidance["aoa"] = 0.1 + 1.0e-3 * time

        calculator = AerodynamicAngleCalculator()
        calculator.set_orientation_angle_functions(angle_of_attack=lambda: guidance["aoa"], update_function=update)
        conditions = FlightConditions(bodies["Vehicle"], bodies["Earth"], calculator)
        bodies["Earth"].set_state(5.0, jnp.zeros(6))
        bodies["Vehicle"].set_state(5.0, jnp.array([R_EARTH + _ALTITUDE, 0.0, 0.0, 0.0, _SPEED, 0.0]))
        conditions.update(5.0)
        assert guidance["times"] == [5.0]
        assert calculator.angle_of_attack == pytest.approx(0.105, rel=1e-14)

    def test_coefficients_refreshed(self):
        """Updating refreshes the vehicle coefficients from the bound variables."""
        iface = CustomAerodynamicCoefficientInterface(
            lambda x: jnp.array([x[0], x[1], x[2], 0.0, 0.0, 0.0]),
            [_MACH, _AOA, AerodynamicVariable.ALTITUDE],
        )
        bodies = _flight_system(iface)
        calculator = AerodynamicAngleCalculator()
        calculator.set_orientation_angle_functions(angle_of_attack=lambda: 0.25)
        conditions = FlightConditions(bodies["Vehicle"], bodies["Earth"], calculator)
        conditions.update(0.0)
        assert float(iface.current_force_coefficients[0]) == pytest.approx(conditions.mach_number, rel=1e-14)
        assert float(iface.current_force_coefficients[1]) == 0.25
        assert float(iface.current_force_coefficients[2]) == pytest.approx(conditions.altitude, rel=1e-14)

    def test_control_surface_deflections_bound(self):
        """Surface increments read the vehicle's current deflection."""
        iface = _vehicle_interface()
        iface.set_control_surface_increments({
            "Elevon": CustomControlSurfaceIncrementInterface(_increment, [_AOA, _DEFLECTION]),
        })
        systems = VehicleSystems()
        systems.set_control_surface_deflection("Elevon", 0.05)
        bodies = _flight_system(iface, systems)
        calculator = AerodynamicAngleCalculator()
        calculator.set_orientation_angle_functions(angle_of_attack=lambda: 0.1)
        conditions = FlightConditions(bodies["Vehicle"], bodies["Earth"], calculator)
        conditions.update(0.0)
        expected = _clean_coefficients([conditions.mach_number, 0.1, 0.0]) + _increment([0.1, 0.05])
        assert jnp.allclose(iface.current_coefficients, expected, rtol=1e-12, atol=1e-15)

    def test_control_surface_requires_vehicle_systems(self):
        """Deflection-dependent increments need vehicle systems."""
        iface = _vehicle_interface()
        iface.set_control_surface_increments({
            "Elevon": CustomControlSurfaceIncrementInterface(_increment, [_AOA, _DEFLECTION]),
        })
        bodies = _flight_system(iface)
        with pytest.raises(ConfigurationError, match="vehicle systems"):
            FlightConditions(bodies["Vehicle"], bodies["Earth"])
