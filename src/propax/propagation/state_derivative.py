"""Translational state derivative of one or more propagated bodies.

The propagated state vector stacks one ``[r, v]`` block per body, each
relative to that body's central body.  At every evaluation the model:

1. invalidates all cached accelerations and flight conditions,
2. refreshes the ephemeris-driven bodies the accelerations depend on,
3. converts the relative states to inertial ones and stamps them on the
   propagated bodies, central bodies first,
4. updates and sums the acceleration models of each propagated body.

Evaluation is strictly sequential: the bodies hold shared mutable state,
so a second evaluation may not start while one is in progress.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence

import jax.numpy as jnp
from jax import Array
from jax.typing import ArrayLike

from propax.acceleration import AccelerationMap, AccelerationModel
from propax.bodies import SystemOfBodies
from propax.config import get_dtype
from propax.exceptions import ConfigurationError, EvaluationError

logger = logging.getLogger(__name__)


class TranslationalStateDerivative:
    """Derivative ``[v, a]`` of the stacked relative states of propagated bodies.

    Instances are callable as ``model(t, state)`` so they can be passed to
    any step function directly.

    Args:
        bodies: The system of bodies.
        acceleration_models: ``{target: {exerter: [model, ...]}}`` as
            returned by
            :func:`~propax.acceleration.create_acceleration_models`.
        bodies_to_propagate: Names of the propagated bodies, in state
            vector order.
        central_bodies: Central body of each propagated body, either
            aligned with *bodies_to_propagate* or keyed by body name.

    Raises:
        ConfigurationError: On unknown bodies, missing central bodies,
            cyclic central-body assignments, or bodies whose state can
            be provided neither by propagation nor by an ephemeris.
    """

    def __init__(
        self,
        bodies: SystemOfBodies,
        acceleration_models: AccelerationMap,
        bodies_to_propagate: Sequence[str],
        central_bodies: Sequence[str] | Mapping[str, str],
    ):
        self.bodies = bodies
        self.acceleration_models = acceleration_models
        self.bodies_to_propagate = list(bodies_to_propagate)
        if len(set(self.bodies_to_propagate)) != len(self.bodies_to_propagate):
            raise ConfigurationError(f"Duplicate propagated bodies in {self.bodies_to_propagate}")
        if not self.bodies_to_propagate:
            raise ConfigurationError("No bodies to propagate")

        if isinstance(central_bodies, Mapping):
            missing = [name for name in self.bodies_to_propagate if name not in central_bodies]
            if missing:
                raise ConfigurationError(f"No central body given for {missing}")
            self.central_bodies = {name: central_bodies[name] for name in self.bodies_to_propagate}
        else:
            central_bodies = list(central_bodies)
            if len(central_bodies) != len(self.bodies_to_propagate):
                raise ConfigurationError(
                    f"{len(central_bodies)} central bodies given for "
                    f"{len(self.bodies_to_propagate)} propagated bodies"
                )
            self.central_bodies = dict(zip(self.bodies_to_propagate, central_bodies))

        for name in self.bodies_to_propagate:
            if name not in bodies:
                raise ConfigurationError(f"Propagated body {name!r} is not in the system of bodies")
            central = self.central_bodies[name]
            if central == name:
                raise ConfigurationError(f"Body {name!r} cannot be its own central body")
            if not bodies.is_frame_origin(central) and central not in bodies:
                raise ConfigurationError(f"Central body {central!r} of {name!r} is not in the system of bodies")
        for name in acceleration_models:
            if name not in self.bodies_to_propagate:
                raise ConfigurationError(f"Acceleration models given for {name!r}, which is not propagated")

        self._update_order = self._order_by_central_body()
        self._ephemeris_bodies = self._find_ephemeris_bodies()
        self._models: list[AccelerationModel] = [
            model
            for row in acceleration_models.values()
            for models in row.values()
            for model in models
        ]
        self._total_accelerations: dict[str, Array] = {}
        self._evaluating = False
        logger.debug(
            "State derivative for %s (update order %s, ephemeris bodies %s, %d models)",
            self.bodies_to_propagate,
            self._update_order,
            [body.name for body in self._ephemeris_bodies],
            len(self._models),
        )

    def _order_by_central_body(self) -> list[str]:
        """Propagated bodies ordered so propagated central bodies come first."""
        order: list[str] = []
        visiting: set[str] = set()

        def visit(name: str) -> None:
            if name in order:
                return
            if name in visiting:
                raise ConfigurationError(f"Cyclic central-body assignment involving {name!r}")
            visiting.add(name)
            central = self.central_bodies[name]
            if central in self.central_bodies:
                visit(central)
            visiting.discard(name)
            order.append(name)

        for name in self.bodies_to_propagate:
            visit(name)
        return order

    def _find_ephemeris_bodies(self) -> list:
        referenced = set()
        for name in self.bodies_to_propagate:
            central = self.central_bodies[name]
            if not self.bodies.is_frame_origin(central):
                referenced.add(central)
        for row in self.acceleration_models.values():
            referenced.update(row)
        referenced.difference_update(self.bodies_to_propagate)

        ephemeris_bodies = []
        for body in self.bodies:
            if body.name not in referenced:
                continue
            if body.ephemeris is None:
                raise ConfigurationError(
                    f"Body {body.name!r} is neither propagated nor has an ephemeris"
                )
            ephemeris_bodies.append(body)
        return ephemeris_bodies

    def add_ephemeris_body(self, name: str) -> None:
        """Refresh body *name* from its ephemeris on every evaluation.

        Propagated bodies and bodies already refreshed are left alone.

        Raises:
            ConfigurationError: If the body is unknown or has no ephemeris.
        """
        if name in self.bodies_to_propagate or any(body.name == name for body in self._ephemeris_bodies):
            return
        if name not in self.bodies:
            raise ConfigurationError(f"Body {name!r} is not in the system of bodies")
        body = self.bodies[name]
        if body.ephemeris is None:
            raise ConfigurationError(f"Body {name!r} is neither propagated nor has an ephemeris")
        self._ephemeris_bodies.append(body)
        logger.debug("Added %s to the ephemeris bodies", name)

    @property
    def state_size(self) -> int:
        return 6 * len(self.bodies_to_propagate)

    def convert_to_inertial(self, time: float, state: ArrayLike) -> dict[str, Array]:
        """Stamp inertial states on the propagated bodies.

        Central bodies must already hold a state valid at *time*.

        Returns:
            dict: Inertial state of each propagated body.
        """
        state = jnp.asarray(state, dtype=get_dtype())
        inertial = {}
        for name in self._update_order:
            index = self.bodies_to_propagate.index(name)
            relative = state[6 * index: 6 * index + 6]
            central = self.central_bodies[name]
            if self.bodies.is_frame_origin(central):
                body_state = relative
            else:
                body_state = relative + self.bodies[central].get_state(time)
            self.bodies[name].set_state(time, body_state)
            inertial[name] = body_state
        return inertial

    def compute_derivative(self, time: ArrayLike, state: ArrayLike) -> Array:
        """Evaluate ``d(state)/dt`` at *time*.

        Raises:
            EvaluationError: On re-entrant use, a size mismatch, or any
                failure of the environment or acceleration models.
        """
        if self._evaluating:
            raise EvaluationError("State derivative evaluation is already in progress")
        self._evaluating = True
        try:
            time = float(time)
            state = jnp.asarray(state, dtype=get_dtype())
            if state.shape != (self.state_size,):
                raise EvaluationError(f"Expected state of shape ({self.state_size},), got {state.shape}")

            for model in self._models:
                model.reset_time()
            for body in self._ephemeris_bodies:
                body.update_from_ephemeris(time)
            self.convert_to_inertial(time, state)

            blocks = []
            for index, name in enumerate(self.bodies_to_propagate):
                total = jnp.zeros(3, dtype=get_dtype())
                for models in self.acceleration_models.get(name, {}).values():
                    for model in models:
                        model.update(time)
                        total = total + model.acceleration
                self._total_accelerations[name] = total
                blocks.append(state[6 * index + 3: 6 * index + 6])
                blocks.append(total)
            return jnp.concatenate(blocks)
        finally:
            self._evaluating = False

    __call__ = compute_derivative

    def total_acceleration(self, name: str) -> Array:
        """Summed acceleration of *name* from the last evaluation."""
        try:
            return self._total_accelerations[name]
        except KeyError:
            raise EvaluationError(f"No acceleration evaluated for {name!r}") from None

    def __repr__(self) -> str:
        return f"TranslationalStateDerivative(bodies_to_propagate={self.bodies_to_propagate})"
