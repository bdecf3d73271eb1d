"""Gravity field models owned by bodies.

A plain :class:`GravityFieldModel` only carries a gravitational parameter;
:class:`SphericalHarmonicsGravityField` adds the reference radius and the
Stokes coefficient matrices used by spherical-harmonic accelerations.

Coefficient layout: ``cosine_coefficients[n, m]`` and
``sine_coefficients[n, m]`` hold C_nm and S_nm for degree *n* and order
*m* <= *n*.  Entries above the diagonal are ignored.
"""

from __future__ import annotations

import numpy as np
from jax.typing import ArrayLike

from propax.exceptions import ConfigurationError


class GravityFieldModel:
    """Point-mass gravity field.

    The gravitational parameter is a plain attribute: acceleration models
    read it through a bound accessor at every update, so a changed value
    is picked up without rebuilding the models.

    Args:
        gravitational_parameter: μ [m^3/s^2].
    """

    def __init__(self, gravitational_parameter: float):
        self.gravitational_parameter = float(gravitational_parameter)

    def __repr__(self) -> str:
        return f"GravityFieldModel(gm={self.gravitational_parameter:.6e})"


class SphericalHarmonicsGravityField(GravityFieldModel):
    """Spherical harmonic gravity field.

    Args:
        gravitational_parameter: μ [m^3/s^2].
        reference_radius: Reference radius of the expansion [m].
        cosine_coefficients: C_nm, square matrix of size ``degree + 1``.
        sine_coefficients: S_nm, same shape as *cosine_coefficients*.
        normalized: Whether the coefficients are fully normalized.

    Raises:
        ConfigurationError: If the matrices are not square or differ in shape.

    Examples:
        ```python
        import numpy as np
        from propax.bodies import SphericalHarmonicsGravityField
        C = np.zeros((3, 3)); C[0, 0] = 1.0; C[2, 0] = -4.841651437908150e-4
        field = SphericalHarmonicsGravityField(3.986004418e14, 6378137.0, C, np.zeros((3, 3)))
        field.degree
        ```
    """

    def __init__(
        self,
        gravitational_parameter: float,
        reference_radius: float,
        cosine_coefficients: ArrayLike,
        sine_coefficients: ArrayLike,
        normalized: bool = True,
    ):
        super().__init__(gravitational_parameter)
        C = np.asarray(cosine_coefficients, dtype=np.float64)
        S = np.asarray(sine_coefficients, dtype=np.float64)
        if C.ndim != 2 or C.shape[0] != C.shape[1]:
            raise ConfigurationError(f"Cosine coefficients must be a square matrix, got shape {C.shape}")
        if S.shape != C.shape:
            raise ConfigurationError(
                f"Sine coefficients shape {S.shape} does not match cosine coefficients shape {C.shape}"
            )
        if reference_radius <= 0.0:
            raise ConfigurationError("Reference radius must be positive")
        self.reference_radius = float(reference_radius)
        self.cosine_coefficients = C
        self.sine_coefficients = S
        self.normalized = normalized

    @property
    def degree(self) -> int:
        """Maximum degree available."""
        return self.cosine_coefficients.shape[0] - 1

    @property
    def order(self) -> int:
        """Maximum order available."""
        return self.cosine_coefficients.shape[1] - 1

    def get_coefficients(self, degree: int, order: int) -> tuple[np.ndarray, np.ndarray]:
        """Coefficient blocks truncated to (*degree*, *order*).

        Returns:
            tuple: ``(C, S)``, each of shape ``(degree + 1, order + 1)``.

        Raises:
            ConfigurationError: If the request exceeds the available field
                or *order* > *degree*.
        """
        if order > degree:
            raise ConfigurationError(f"Maximum order (m={order}) cannot exceed maximum degree (n={degree}).")
        if degree > self.degree or order > self.order:
            raise ConfigurationError(
                f"Requested (n={degree}, m={order}) exceeds field bounds "
                f"(n_max={self.degree}, m_max={self.order})."
            )
        return (
            self.cosine_coefficients[: degree + 1, : order + 1].copy(),
            self.sine_coefficients[: degree + 1, : order + 1].copy(),
        )

    def __repr__(self) -> str:
        return (
            f"SphericalHarmonicsGravityField(n_max={self.degree}, m_max={self.order}, "
            f"gm={self.gravitational_parameter:.6e}, radius={self.reference_radius:.1f})"
        )
