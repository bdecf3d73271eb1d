"""Table interpolation used by tabulated ephemerides and aerodynamic tables.

Lookups locate the bracketing grid interval with ``numpy.searchsorted`` on
the (static, host-side) grids and blend the bracketing values with plain
linear weights, so a given table and query always produce the same
result.  Out-of-range queries are handled by :class:`BoundaryHandling`.
"""

from __future__ import annotations

import enum
import itertools
from collections.abc import Sequence

import jax.numpy as jnp
import numpy as np
from jax import Array
from jax.typing import ArrayLike

from propax.exceptions import ConfigurationError, EvaluationError


class BoundaryHandling(enum.Enum):
    """Behaviour for queries outside the tabulated range.

    Attributes:
        THROW: Raise :class:`~propax.exceptions.EvaluationError`.
        HOLD: Clamp to the nearest boundary value.
    """

    THROW = "throw"
    HOLD = "hold"


def validate_grid(grid: ArrayLike, name: str = "grid") -> np.ndarray:
    """Check that *grid* is 1-D, has at least two points and is strictly increasing.

    Raises:
        ConfigurationError: If any of the conditions does not hold.
    """
    grid = np.asarray(grid, dtype=np.float64)
    if grid.ndim != 1 or grid.shape[0] < 2:
        raise ConfigurationError(f"{name} must be 1-D with at least two points, got shape {grid.shape}")
    if not np.all(np.diff(grid) > 0.0):
        raise ConfigurationError(f"{name} must be strictly increasing")
    return grid


def _bracket(grid: np.ndarray, x: float, boundary: BoundaryHandling, name: str) -> tuple[int, float]:
    """Lower bracket index and interpolation fraction of *x* in *grid*."""
    n = grid.shape[0]
    if x < grid[0] or x > grid[-1]:
        if boundary == BoundaryHandling.THROW:
            raise EvaluationError(
                f"{name} value {x!r} outside tabulated range [{grid[0]!r}, {grid[-1]!r}]"
            )
        x = min(max(x, grid[0]), grid[-1])

    idx_lo = int(np.clip(np.searchsorted(grid, x, side="right") - 1, 0, n - 2))
    frac = (x - grid[idx_lo]) / (grid[idx_lo + 1] - grid[idx_lo])
    return idx_lo, float(frac)


def interpolate_linear(
    grid: np.ndarray,
    values: Array,
    x: float,
    boundary: BoundaryHandling = BoundaryHandling.THROW,
    name: str = "independent variable",
) -> Array:
    """Linearly interpolate tabulated *values* (first axis along *grid*) at *x*.

    Args:
        grid: Strictly increasing grid, shape ``(N,)``.
        values: Tabulated values, shape ``(N, ...)``.
        x: Query point.
        boundary: Out-of-range behaviour.
        name: Name used in error messages.

    Returns:
        Interpolated value with shape ``values.shape[1:]``.

    Raises:
        EvaluationError: If *x* is out of range and *boundary* is ``THROW``.
    """
    idx_lo, frac = _bracket(grid, float(x), boundary, name)
    val_lo = values[idx_lo]
    val_hi = values[idx_lo + 1]
    return val_lo + frac * (val_hi - val_lo)


def interpolate_multilinear(
    grids: Sequence[np.ndarray],
    table: Array,
    point: Sequence[float],
    boundary: BoundaryHandling = BoundaryHandling.THROW,
    names: Sequence[str] | None = None,
) -> Array:
    """Multilinear interpolation in an N-dimensional table.

    Args:
        grids: One strictly increasing grid per independent variable.
        table: Tabulated values, shape ``(len(grids[0]), ..., len(grids[-1]), ...)``.
            Trailing axes hold the dependent values.
        point: One query value per grid.
        boundary: Out-of-range behaviour.
        names: Optional names of the independent variables, for error
            messages.

    Returns:
        Interpolated value with shape ``table.shape[len(grids):]``.
    """
    if len(point) != len(grids):
        raise EvaluationError(
            f"Expected {len(grids)} independent variables, got {len(point)}"
        )
    if names is None:
        names = [f"independent variable {i}" for i in range(len(grids))]

    brackets = [
        _bracket(grid, float(x), boundary, name)
        for grid, x, name in zip(grids, point, names)
    ]

    result = jnp.zeros(table.shape[len(grids):], dtype=table.dtype)
    for corner in itertools.product((0, 1), repeat=len(grids)):
        weight = 1.0
        index = []
        for (idx_lo, frac), upper in zip(brackets, corner):
            weight *= frac if upper else 1.0 - frac
            index.append(idx_lo + upper)
        if weight != 0.0:
            result = result + weight * table[tuple(index)]
    return result
