"""Vehicle systems: state of a vehicle's actuators."""

from __future__ import annotations

from propax.exceptions import EvaluationError


class VehicleSystems:
    """Current control-surface deflections of a vehicle, by surface name.

    A guidance function typically sets the deflections from inside the
    aerodynamic angle calculator's update hook; aerodynamic models read
    them through accessors bound when flight conditions are created.
    """

    def __init__(self):
        self._deflections: dict[str, float] = {}

    @property
    def control_surfaces(self) -> list[str]:
        """Names of surfaces that have been assigned a deflection."""
        return list(self._deflections)

    def set_control_surface_deflection(self, name: str, deflection: float) -> None:
        """Set the current deflection of surface *name* [rad]."""
        self._deflections[name] = float(deflection)

    def get_control_surface_deflection(self, name: str) -> float:
        """Current deflection of surface *name* [rad].

        Raises:
            EvaluationError: If no deflection has been set for *name*.
        """
        try:
            return self._deflections[name]
        except KeyError:
            raise EvaluationError(f"No deflection set for control surface {name!r}") from None
