"""Third-body gravitational perturbation.

When a body is propagated relative to a central body that is neither the
frame origin nor the attracting body, the attracting body's pull on the
central body must be subtracted from its pull on the propagated body:

    a = a_direct(target <- exerter) - a_direct(central <- exerter)
"""

from __future__ import annotations

from propax.acceleration._base import AccelerationModel


class ThirdBodyAcceleration(AccelerationModel):
    """Difference of two direct gravitational models of the same exerting body.

    Args:
        direct_acceleration: Exerting body's pull on the propagated body.
        central_body_acceleration: Exerting body's pull on the central
            body, of the same kind.
    """

    def __init__(self, direct_acceleration: AccelerationModel, central_body_acceleration: AccelerationModel):
        super().__init__()
        self.direct_acceleration = direct_acceleration
        self.central_body_acceleration = central_body_acceleration

    @property
    def acceleration_type(self):
        return self.direct_acceleration.acceleration_type

    def reset_time(self) -> None:
        super().reset_time()
        self.direct_acceleration.reset_time()
        self.central_body_acceleration.reset_time()

    def _compute_acceleration(self, time):
        self.direct_acceleration.update(time)
        self.central_body_acceleration.update(time)
        return self.direct_acceleration.acceleration - self.central_body_acceleration.acceleration
