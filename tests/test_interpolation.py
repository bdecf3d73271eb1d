"""Tests for the propax.interpolation module."""

import jax.numpy as jnp
import numpy as np
import pytest

from propax.exceptions import ConfigurationError, EvaluationError
from propax.interpolation import (
    BoundaryHandling,
    interpolate_linear,
    interpolate_multilinear,
    validate_grid,
)


class TestValidateGrid:
    def test_valid(self):
        """A strictly increasing grid is returned as a numpy array."""
        grid = validate_grid([0.0, 1.0, 3.0])
        assert isinstance(grid, np.ndarray)

    def test_not_increasing(self):
        """Repeated values are rejected."""
        with pytest.raises(ConfigurationError):
            validate_grid([0.0, 1.0, 1.0])

    def test_too_short(self):
        """A single point is rejected."""
        with pytest.raises(ConfigurationError):
            validate_grid([0.0])

    def test_not_1d(self):
        """A 2-D grid is rejected."""
        with pytest.raises(ConfigurationError):
            validate_grid([[0.0, 1.0], [2.0, 3.0]])


class TestLinear:
    def test_midpoint(self):
        """Linear interpolation between two nodes."""
        grid = validate_grid([0.0, 10.0])
        values = jnp.array([[0.0, 1.0], [10.0, 3.0]])
        assert jnp.allclose(interpolate_linear(grid, values, 2.5), jnp.array([2.5, 1.5]))

    def test_nodes_exact(self):
        """Interpolating at a node returns the node value."""
        grid = validate_grid([0.0, 1.0, 2.0])
        values = jnp.array([1.0, 4.0, 9.0])
        assert float(interpolate_linear(grid, values, 1.0)) == 4.0
        assert float(interpolate_linear(grid, values, 2.0)) == 9.0

    def test_out_of_range_throws(self):
        """THROW boundary handling raises outside the grid."""
        grid = validate_grid([0.0, 1.0])
        with pytest.raises(EvaluationError, match="time"):
            interpolate_linear(grid, jnp.array([0.0, 1.0]), 1.5, BoundaryHandling.THROW, "time")

    def test_out_of_range_hold(self):
        """HOLD boundary handling clamps to the end values."""
        grid = validate_grid([0.0, 1.0])
        values = jnp.array([2.0, 5.0])
        assert float(interpolate_linear(grid, values, -3.0, BoundaryHandling.HOLD)) == 2.0
        assert float(interpolate_linear(grid, values, 7.0, BoundaryHandling.HOLD)) == 5.0


class TestMultilinear:
    def test_bilinear_plane(self):
        """Bilinear interpolation reproduces a plane exactly."""
        gx = validate_grid([0.0, 1.0, 2.0])
        gy = validate_grid([0.0, 2.0])
        X, Y = np.meshgrid(np.asarray(gx), np.asarray(gy), indexing="ij")
        table = jnp.asarray(3.0 * X - 2.0 * Y + 1.0)
        value = interpolate_multilinear([gx, gy], table, [1.5, 0.5])
        assert float(value) == pytest.approx(3.0 * 1.5 - 2.0 * 0.5 + 1.0, abs=1e-14)

    def test_vector_output(self):
        """Trailing table axes are interpolated component-wise."""
        gx = validate_grid([0.0, 1.0])
        table = jnp.array([[0.0, 10.0, 20.0], [1.0, 11.0, 21.0]])
        assert jnp.allclose(interpolate_multilinear([gx], table, [0.25]), jnp.array([0.25, 10.25, 20.25]))

    def test_wrong_number_of_variables(self):
        """A point of the wrong dimension is an evaluation error."""
        gx = validate_grid([0.0, 1.0])
        with pytest.raises(EvaluationError):
            interpolate_multilinear([gx], jnp.array([0.0, 1.0]), [0.5, 0.5])
