"""Gravitational acceleration: point mass and spherical harmonics.

The kernels :func:`accel_point_mass` and :func:`accel_spherical_harmonics`
are pure functions of positions and field parameters.  The model classes
wrap them with accessors that read the positions (and, for a body's own
central body, a possibly combined gravitational parameter) at each update.

All inputs and outputs use SI base units (metres, metres/second squared).

References:
    1. O. Montenbruck and E. Gill, *Satellite Orbits: Models, Methods
       and Applications*, 2012, p. 56-68.
"""

from __future__ import annotations

import math
from collections.abc import Callable

import jax.numpy as jnp
import numpy as np
from jax import Array
from jax.typing import ArrayLike

from propax.acceleration._base import AccelerationModel
from propax.acceleration.settings import AccelerationType
from propax.config import get_dtype
from propax.exceptions import ConfigurationError


# ---------------------------------------------------------------------------
# Kernels
# ---------------------------------------------------------------------------


def accel_point_mass(
    r_object: ArrayLike,
    r_body: ArrayLike,
    gm: float,
) -> Array:
    """Acceleration due to point-mass gravity.

    Computes ``-gm * d / |d|^3`` with ``d = r_object - r_body``.

    Args:
        r_object: Position of the accelerated body [m].  Shape ``(3,)`` or
            ``(6,)`` (only first 3 elements used).
        r_body: Position of the attracting body [m].  Shape ``(3,)``.
        gm: Gravitational parameter of the attracting body [m^3/s^2].

    Returns:
        Acceleration vector [m/s^2], shape ``(3,)``.

    Examples:
        ```python
        import jax.numpy as jnp
        from propax.constants import R_EARTH, GM_EARTH
        from propax.acceleration import accel_point_mass
        r = jnp.array([R_EARTH, 0.0, 0.0])
        a = accel_point_mass(r, jnp.zeros(3), GM_EARTH)
        ```
    """
    _float = get_dtype()
    d = jnp.asarray(r_object, dtype=_float)[:3] - jnp.asarray(r_body, dtype=_float)[:3]
    d_norm = jnp.linalg.norm(d)
    return -gm * d / d_norm**3


def _factorial_product(n: int, m: int) -> float:
    """Compute (n-m)!/(n+m)! without full factorials."""
    p = 1.0
    for i in range(n - m + 1, n + m + 1):
        p /= i
    return p


def accel_spherical_harmonics(
    r_relative: ArrayLike,
    R_to_body_fixed: ArrayLike,
    gm: float,
    reference_radius: float,
    cosine_coefficients: np.ndarray,
    sine_coefficients: np.ndarray,
    n_max: int,
    m_max: int,
    is_normalized: bool = True,
) -> Array:
    """Acceleration from a spherical harmonic gravity field expansion.

    Computes the gravitational acceleration using recursively-computed
    associated Legendre functions (V/W matrix method).  The position is
    transformed to the body-fixed frame, the acceleration is computed
    there, and transformed back to the inertial frame.

    Args:
        r_relative: Position relative to the attracting body, inertial
            axes [m].  Shape ``(3,)``.
        R_to_body_fixed: Rotation from inertial to body-fixed axes,
            shape ``(3, 3)``.
        gm: Gravitational parameter [m^3/s^2].
        reference_radius: Reference radius of the expansion [m].
        cosine_coefficients: C_nm, at least ``(n_max+1, m_max+1)``.
        sine_coefficients: S_nm, same shape as *cosine_coefficients*.
        n_max: Maximum degree for evaluation.
        m_max: Maximum order for evaluation (``<= n_max``).
        is_normalized: Whether the coefficients are fully normalized.

    Returns:
        Acceleration in the inertial frame [m/s^2], shape ``(3,)``.

    Examples:
        ```python
        import jax.numpy as jnp
        import numpy as np
        from propax.acceleration import accel_spherical_harmonics
        C = np.zeros((3, 3)); C[0, 0] = 1.0; C[2, 0] = -4.84165e-4
        a = accel_spherical_harmonics(
            jnp.array([6878e3, 0.0, 0.0]), jnp.eye(3), 3.986004418e14, 6378137.0,
            C, np.zeros((3, 3)), 2, 2,
        )
        ```
    """
    _float = get_dtype()
    r = jnp.asarray(r_relative, dtype=_float)[:3]
    R = jnp.asarray(R_to_body_fixed, dtype=_float)

    a_bf = _compute_spherical_harmonics(
        R @ r,
        np.asarray(cosine_coefficients, dtype=np.float64),
        np.asarray(sine_coefficients, dtype=np.float64),
        n_max,
        m_max,
        reference_radius,
        gm,
        is_normalized,
    )
    return R.T @ a_bf


def _compute_spherical_harmonics(
    r_bf: Array,
    C_nm: np.ndarray,
    S_nm: np.ndarray,
    n_max: int,
    m_max: int,
    r_ref: float,
    gm: float,
    is_normalized: bool,
) -> Array:
    """Core V/W recursion for spherical harmonic gravity.

    Implements the algorithm from Montenbruck & Gill (2012), p. 56-68,
    with Python loops over the static degree and order.
    """
    r_sqr = jnp.dot(r_bf, r_bf)
    rho = r_ref * r_ref / r_sqr

    x0 = r_ref * r_bf[0] / r_sqr
    y0 = r_ref * r_bf[1] / r_sqr
    z0 = r_ref * r_bf[2] / r_sqr

    size = n_max + 2
    V = jnp.zeros((size, size), dtype=r_bf.dtype)
    W = jnp.zeros((size, size), dtype=r_bf.dtype)

    # Zonal terms V(n,0); W(n,0) = 0
    V = V.at[0, 0].set(r_ref / jnp.sqrt(r_sqr))
    V = V.at[1, 0].set(z0 * V[0, 0])

    for n in range(2, n_max + 2):
        nf = float(n)
        V = V.at[n, 0].set(
            ((2.0 * nf - 1.0) * z0 * V[n - 1, 0]
             - (nf - 1.0) * rho * V[n - 2, 0]) / nf
        )

    # Tesseral and sectorial terms
    for m in range(1, m_max + 2):
        mf = float(m)
        V = V.at[m, m].set(
            (2.0 * mf - 1.0) * (x0 * V[m - 1, m - 1] - y0 * W[m - 1, m - 1])
        )
        W = W.at[m, m].set(
            (2.0 * mf - 1.0) * (x0 * W[m - 1, m - 1] + y0 * V[m - 1, m - 1])
        )

        if m <= n_max:
            V = V.at[m + 1, m].set((2.0 * mf + 1.0) * z0 * V[m, m])
            W = W.at[m + 1, m].set((2.0 * mf + 1.0) * z0 * W[m, m])

        for n in range(m + 2, n_max + 2):
            nf = float(n)
            V = V.at[n, m].set(
                ((2.0 * nf - 1.0) * z0 * V[n - 1, m]
                 - (nf + mf - 1.0) * rho * V[n - 2, m]) / (nf - mf)
            )
            W = W.at[n, m].set(
                ((2.0 * nf - 1.0) * z0 * W[n - 1, m]
                 - (nf + mf - 1.0) * rho * W[n - 2, m]) / (nf - mf)
            )

    ax = jnp.zeros((), dtype=r_bf.dtype)
    ay = ax
    az = ax

    for m in range(m_max + 1):
        mf = float(m)
        for n in range(m, n_max + 1):
            nf = float(n)
            if m == 0:
                C = float(C_nm[n, 0])
                if is_normalized:
                    C *= math.sqrt(2.0 * nf + 1.0)
                if C == 0.0:
                    continue

                ax = ax - C * V[n + 1, 1]
                ay = ay - C * W[n + 1, 1]
                az = az - (nf + 1.0) * C * V[n + 1, 0]
            else:
                C = float(C_nm[n, m])
                S = float(S_nm[n, m])
                if is_normalized:
                    N = math.sqrt(2.0 * (2.0 * nf + 1.0) * _factorial_product(n, m))
                    C *= N
                    S *= N
                if C == 0.0 and S == 0.0:
                    continue

                Fac = 0.5 * (nf - mf + 1.0) * (nf - mf + 2.0)
                ax = ax + (
                    0.5 * (-C * V[n + 1, m + 1] - S * W[n + 1, m + 1])
                    + Fac * (C * V[n + 1, m - 1] + S * W[n + 1, m - 1])
                )
                ay = ay + (
                    0.5 * (-C * W[n + 1, m + 1] + S * V[n + 1, m + 1])
                    + Fac * (-C * W[n + 1, m - 1] + S * V[n + 1, m - 1])
                )
                az = az + (nf - mf + 1.0) * (-C * V[n + 1, m] - S * W[n + 1, m])

    # Scale by GM/R_ref^2
    scale = gm / (r_ref * r_ref)
    return scale * jnp.array([ax, ay, az])


# ---------------------------------------------------------------------------
# Models
# ---------------------------------------------------------------------------


def _as_parameter_function(value: float | Callable[[], float]) -> Callable[[], float]:
    if callable(value):
        return value
    constant = float(value)
    return lambda: constant


class CentralGravityAcceleration(AccelerationModel):
    """Point-mass gravitational acceleration.

    Args:
        position_of_subject: Returns the accelerated body's position.
        gravitational_parameter: μ [m^3/s^2], or a function returning it
            (read at every update).
        position_of_exerting: Returns the attracting body's position; the
            origin when omitted.
    """

    acceleration_type = AccelerationType.POINT_MASS_GRAVITY

    def __init__(
        self,
        position_of_subject: Callable[[], Array],
        gravitational_parameter: float | Callable[[], float],
        position_of_exerting: Callable[[], Array] | None = None,
    ):
        super().__init__()
        self._position_of_subject = position_of_subject
        self._gravitational_parameter = _as_parameter_function(gravitational_parameter)
        self._position_of_exerting = position_of_exerting

    @property
    def gravitational_parameter(self) -> float:
        return float(self._gravitational_parameter())

    def _exerting_position(self) -> Array:
        if self._position_of_exerting is None:
            return jnp.zeros(3, dtype=get_dtype())
        return self._position_of_exerting()

    def _compute_acceleration(self, time):
        return accel_point_mass(
            self._position_of_subject(), self._exerting_position(), self.gravitational_parameter
        )


class SphericalHarmonicAcceleration(CentralGravityAcceleration):
    """Spherical harmonic gravitational acceleration.

    Args:
        position_of_subject: Returns the accelerated body's position.
        gravitational_parameter: μ [m^3/s^2] or a function returning it.
        reference_radius: Reference radius of the expansion [m].
        cosine_coefficients: C_nm, shape ``(degree+1, order+1)`` or larger.
        sine_coefficients: S_nm, same shape.
        position_of_exerting: Returns the attracting body's position.
        rotation_to_body_fixed: Returns the inertial-to-body-fixed rotation
            of the attracting body; identity when omitted.
        maximum_degree: Degree to evaluate; all available when omitted.
        maximum_order: Order to evaluate; all available when omitted.
        normalized: Whether the coefficients are fully normalized.

    Raises:
        ConfigurationError: If the coefficient matrices are inconsistent
            or smaller than the requested degree/order.
    """

    acceleration_type = AccelerationType.SPHERICAL_HARMONIC_GRAVITY

    def __init__(
        self,
        position_of_subject: Callable[[], Array],
        gravitational_parameter: float | Callable[[], float],
        reference_radius: float,
        cosine_coefficients: ArrayLike,
        sine_coefficients: ArrayLike,
        position_of_exerting: Callable[[], Array] | None = None,
        rotation_to_body_fixed: Callable[[], Array] | None = None,
        maximum_degree: int | None = None,
        maximum_order: int | None = None,
        normalized: bool = True,
    ):
        super().__init__(position_of_subject, gravitational_parameter, position_of_exerting)
        C = np.asarray(cosine_coefficients, dtype=np.float64)
        S = np.asarray(sine_coefficients, dtype=np.float64)
        if C.ndim != 2 or C.shape != S.shape:
            raise ConfigurationError(
                f"Cosine {C.shape} and sine {S.shape} coefficients must be matrices of equal shape"
            )
        degree = C.shape[0] - 1 if maximum_degree is None else int(maximum_degree)
        order = min(C.shape[1] - 1, degree) if maximum_order is None else int(maximum_order)
        if order > degree:
            raise ConfigurationError(f"Maximum order (m={order}) cannot exceed maximum degree (n={degree}).")
        if degree + 1 > C.shape[0] or order + 1 > C.shape[1]:
            raise ConfigurationError(
                f"Requested (n={degree}, m={order}) exceeds coefficient matrices of shape {C.shape}"
            )
        self.reference_radius = float(reference_radius)
        self.cosine_coefficients = C
        self.sine_coefficients = S
        self.maximum_degree = degree
        self.maximum_order = order
        self.normalized = normalized
        self._rotation_to_body_fixed = rotation_to_body_fixed

    def _compute_acceleration(self, time):
        if self._rotation_to_body_fixed is None:
            R = jnp.eye(3, dtype=get_dtype())
        else:
            R = self._rotation_to_body_fixed()
        r_relative = (
            jnp.asarray(self._position_of_subject(), dtype=get_dtype())[:3]
            - jnp.asarray(self._exerting_position(), dtype=get_dtype())[:3]
        )
        return accel_spherical_harmonics(
            r_relative,
            R,
            self.gravitational_parameter,
            self.reference_radius,
            self.cosine_coefficients,
            self.sine_coefficients,
            self.maximum_degree,
            self.maximum_order,
            self.normalized,
        )
