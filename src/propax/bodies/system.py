"""Registry of the bodies taking part in a simulation."""

from __future__ import annotations

from collections.abc import Iterator

from propax.bodies.body import Body
from propax.constants import FRAME_ORIGIN
from propax.exceptions import ConfigurationError


class SystemOfBodies:
    """Index-based registry of :class:`~propax.bodies.Body` objects.

    Bodies are addressed by name or by the integer handle assigned when
    they are added.  *frame_origin* names the origin of the global inertial
    frame; integrating relative to it means integrating inertial states.

    Args:
        frame_origin: Name of the inertial frame origin.

    Examples:
        ```python
        from propax.bodies import Body, SystemOfBodies
        bodies = SystemOfBodies()
        handle = bodies.add_body(Body("Earth"))
        bodies["Earth"].index == handle
        ```
    """

    def __init__(self, frame_origin: str = FRAME_ORIGIN):
        self.frame_origin = frame_origin
        self._bodies: list[Body] = []
        self._indices: dict[str, int] = {}

    def add_body(self, body: Body) -> int:
        """Register *body* and return its handle.

        Raises:
            ConfigurationError: If a body with the same name already exists.
        """
        if body.name in self._indices:
            raise ConfigurationError(f"Body {body.name!r} already exists")
        handle = len(self._bodies)
        body.index = handle
        self._bodies.append(body)
        self._indices[body.name] = handle
        return handle

    def create_body(self, name: str, **kwargs) -> Body:
        """Create, register and return a new :class:`Body`."""
        body = Body(name, **kwargs)
        self.add_body(body)
        return body

    def index_of(self, name: str) -> int:
        try:
            return self._indices[name]
        except KeyError:
            raise ConfigurationError(f"Unknown body {name!r}") from None

    def is_frame_origin(self, name: str) -> bool:
        return name == self.frame_origin

    @property
    def names(self) -> list[str]:
        return [body.name for body in self._bodies]

    def __getitem__(self, key: str | int) -> Body:
        if isinstance(key, int):
            return self._bodies[key]
        return self._bodies[self.index_of(key)]

    def __contains__(self, name: str) -> bool:
        return name in self._indices

    def __iter__(self) -> Iterator[Body]:
        return iter(self._bodies)

    def __len__(self) -> int:
        return len(self._bodies)
