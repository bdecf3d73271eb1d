"""Rotation models: orientation of a body-fixed frame w.r.t. the inertial frame."""

from __future__ import annotations

import jax.numpy as jnp
from jax import Array

from propax.config import get_dtype
from propax.frames import Rz


class SimpleRotationModel:
    """Uniform rotation about the inertial +z axis.

    Args:
        rotation_rate: Angular rate [rad/s].
        initial_angle: Rotation angle at *reference_time* [rad].
        reference_time: Epoch of *initial_angle* [s].
    """

    def __init__(self, rotation_rate: float, initial_angle: float = 0.0, reference_time: float = 0.0):
        self.rotation_rate = float(rotation_rate)
        self.initial_angle = float(initial_angle)
        self.reference_time = float(reference_time)

    def rotation_to_body_fixed(self, time: float) -> Array:
        """Rotation matrix from the inertial to the body-fixed frame at *time*."""
        return Rz(self.initial_angle + self.rotation_rate * (time - self.reference_time))

    def angular_velocity(self, time: float) -> Array:
        """Angular velocity of the body-fixed frame, in inertial axes [rad/s]."""
        return jnp.array([0.0, 0.0, self.rotation_rate], dtype=get_dtype())
