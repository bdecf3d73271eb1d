"""Elementary rotations and the frames used by the aerodynamic models.

Frame chain used for aerodynamic accelerations (all rotations passive)::

    inertial -> body-fixed -> vertical (NED) -> trajectory -> aerodynamic

The body-fixed frame belongs to the central body the vehicle flies
through.  The vertical frame is North-East-Down at the vehicle's
geocentric latitude and longitude.  The trajectory frame has its x-axis
along the airspeed vector and is obtained from the vertical frame by the
heading and flight-path angles; the aerodynamic frame follows from a
rotation about the airspeed vector by the bank angle.

References:

    1. O. Montenbruck, and E. Gill, *Satellite Orbits: Models, Methods and Applications*, 2012, p.27.
    2. R. Mooij, *The Motion of a Vehicle in a Planetary Atmosphere*, 1994.
"""

from __future__ import annotations

import jax.numpy as jnp
from jax import Array
from jax.typing import ArrayLike

from propax.config import get_dtype


def Rx(angle: ArrayLike) -> Array:
    """Rotation matrix, for a rotation about the x-axis.

    Args:
        angle: Counter-clockwise angle of rotation [rad] as viewed looking
            back along the positive direction of the rotation axis.

    Returns:
        jax.Array: Rotation matrix, shape ``(3, 3)``.
    """
    c = jnp.cos(angle)
    s = jnp.sin(angle)

    return jnp.array([[1.0,  0.0,  0.0],
                      [0.0,   +c,   +s],
                      [0.0,   -s,   +c]], dtype=get_dtype())


def Ry(angle: ArrayLike) -> Array:
    """Rotation matrix, for a rotation about the y-axis.

    Args:
        angle: Counter-clockwise angle of rotation [rad].

    Returns:
        jax.Array: Rotation matrix, shape ``(3, 3)``.
    """
    c = jnp.cos(angle)
    s = jnp.sin(angle)

    return jnp.array([[ +c,  0.0,   -s],
                      [0.0, +1.0,  0.0],
                      [ +s,  0.0,   +c]], dtype=get_dtype())


def Rz(angle: ArrayLike) -> Array:
    """Rotation matrix, for a rotation about the z-axis.

    Args:
        angle: Counter-clockwise angle of rotation [rad].

    Returns:
        jax.Array: Rotation matrix, shape ``(3, 3)``.
    """
    c = jnp.cos(angle)
    s = jnp.sin(angle)

    return jnp.array([[ +c,   +s,  0.0],
                      [ -s,   +c,  0.0],
                      [0.0,  0.0,  1.0]], dtype=get_dtype())


def geocentric_latitude_longitude(r_body_fixed: ArrayLike) -> tuple[Array, Array]:
    """Geocentric latitude and longitude of a body-fixed position.

    Args:
        r_body_fixed: Position in the body-fixed frame [m], shape ``(3,)``.

    Returns:
        tuple: ``(latitude, longitude)`` [rad].
    """
    r = jnp.asarray(r_body_fixed, dtype=get_dtype())
    latitude = jnp.arcsin(r[2] / jnp.linalg.norm(r))
    longitude = jnp.arctan2(r[1], r[0])
    return latitude, longitude


def rotation_body_fixed_to_vertical(latitude: ArrayLike, longitude: ArrayLike) -> Array:
    """Rotation from the body-fixed frame to the local North-East-Down frame.

    Args:
        latitude: Geocentric latitude [rad].
        longitude: Longitude [rad].

    Returns:
        jax.Array: Rotation matrix, shape ``(3, 3)``.
    """
    return Ry(-latitude - 0.5 * jnp.pi) @ Rz(longitude)


def flight_path_and_heading(v_vertical: ArrayLike) -> tuple[Array, Array]:
    """Flight-path angle (positive up) and heading (from North towards East).

    Args:
        v_vertical: Velocity expressed in the North-East-Down frame [m/s].

    Returns:
        tuple: ``(flight_path_angle, heading_angle)`` [rad].
    """
    v = jnp.asarray(v_vertical, dtype=get_dtype())
    flight_path_angle = -jnp.arcsin(v[2] / jnp.linalg.norm(v))
    heading_angle = jnp.arctan2(v[1], v[0])
    return flight_path_angle, heading_angle


def rotation_vertical_to_aerodynamic(
    flight_path_angle: ArrayLike,
    heading_angle: ArrayLike,
    bank_angle: ArrayLike,
) -> Array:
    """Rotation from the North-East-Down frame to the aerodynamic frame.

    Args:
        flight_path_angle: Flight-path angle [rad], positive up.
        heading_angle: Heading angle [rad].
        bank_angle: Bank angle [rad] about the airspeed vector.

    Returns:
        jax.Array: Rotation matrix, shape ``(3, 3)``.
    """
    return Rx(bank_angle) @ Ry(flight_path_angle) @ Rz(heading_angle)
