"""Two-body orbit utilities with an explicit gravitational parameter.

Element ordering ``[a, e, i, RAAN, omega, M]``:

| Index | Element                       | Units         |
|-------|-------------------------------|---------------|
| 0     | *a*, semi-major axis          | m             |
| 1     | *e*, eccentricity             | dimensionless |
| 2     | *i*, inclination              | rad           |
| 3     | *Ω*, right ascension (RAAN)   | rad           |
| 4     | *ω*, argument of periapsis    | rad           |
| 5     | *M*, mean anomaly             | rad           |

References:
    1. O. Montenbruck and E. Gill, *Satellite Orbits: Models, Methods
       and Applications*, Springer, 2012, Sec. 2.2.
"""

from __future__ import annotations

import jax
import jax.numpy as jnp
from jax import Array
from jax.typing import ArrayLike

from propax.config import get_dtype


def orbital_period(a: ArrayLike, gm: float) -> Array:
    """Orbital period of a Keplerian orbit.

    Args:
        a: Semi-major axis [m].
        gm: Gravitational parameter of the central body [m^3/s^2].

    Returns:
        Orbital period [s].
    """
    a = jnp.asarray(a, dtype=get_dtype())
    return 2.0 * jnp.pi * jnp.sqrt(a**3 / gm)


def mean_motion(a: ArrayLike, gm: float) -> Array:
    """Mean motion of a Keplerian orbit [rad/s]."""
    a = jnp.asarray(a, dtype=get_dtype())
    return jnp.sqrt(gm / a**3)


def anomaly_mean_to_eccentric(anm_mean: ArrayLike, e: ArrayLike) -> Array:
    """Convert mean anomaly to eccentric anomaly.

    Solves Kepler's equation ``M = E - e * sin(E)`` with a fixed number of
    Newton-Raphson iterations.

    Args:
        anm_mean: Mean anomaly [rad].
        e: Eccentricity.

    Returns:
        Eccentric anomaly [rad].
    """
    M = jnp.asarray(anm_mean, dtype=get_dtype()) % (2.0 * jnp.pi)
    e = jnp.asarray(e, dtype=get_dtype())

    E0 = jnp.where(e < 0.8, M, jnp.pi)

    def newton_step(_, E):
        f = E - e * jnp.sin(E) - M
        return E - f / (1.0 - e * jnp.cos(E))

    return jax.lax.fori_loop(0, 10, newton_step, E0)


def state_koe_to_cartesian(x_oe: ArrayLike, gm: float) -> Array:
    """Convert Keplerian orbital elements to a Cartesian state vector.

    Args:
        x_oe: Orbital elements ``[a, e, i, RAAN, omega, M]`` (m, rad).
        gm: Gravitational parameter of the central body [m^3/s^2].

    Returns:
        State ``[x, y, z, vx, vy, vz]`` relative to the central body, in
        the frame the elements are referred to [m, m/s].

    Examples:
        ```python
        import jax.numpy as jnp
        from propax.constants import GM_EARTH, R_EARTH
        from propax.orbits import state_koe_to_cartesian
        oe = jnp.array([R_EARTH + 400e3, 0.0, 0.0, 0.0, 0.0, 0.0])
        state = state_koe_to_cartesian(oe, GM_EARTH)
        ```
    """
    x_oe = jnp.asarray(x_oe, dtype=get_dtype())
    a, e, i, raan, omega, M = (x_oe[k] for k in range(6))

    E = anomaly_mean_to_eccentric(M, e)

    cos_o = jnp.cos(omega)
    sin_o = jnp.sin(omega)
    cos_R = jnp.cos(raan)
    sin_R = jnp.sin(raan)
    cos_i = jnp.cos(i)
    sin_i = jnp.sin(i)

    P = jnp.array(
        [
            cos_o * cos_R - sin_o * cos_i * sin_R,
            cos_o * sin_R + sin_o * cos_i * cos_R,
            sin_o * sin_i,
        ]
    )
    Q = jnp.array(
        [
            -sin_o * cos_R - cos_o * cos_i * sin_R,
            -sin_o * sin_R + cos_o * cos_i * cos_R,
            cos_o * sin_i,
        ]
    )

    cos_E = jnp.cos(E)
    sin_E = jnp.sin(E)
    sqrt_1me2 = jnp.sqrt(1.0 - e * e)

    r_vec = a * (cos_E - e) * P + a * sqrt_1me2 * sin_E * Q
    r_mag = jnp.linalg.norm(r_vec)
    v_vec = (jnp.sqrt(gm * a) / r_mag) * (-sin_E * P + sqrt_1me2 * cos_E * Q)

    return jnp.concatenate([r_vec, v_vec])
