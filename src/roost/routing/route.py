"""Route descriptors and mapping-string parsing."""

import re
from dataclasses import dataclass

from roost._internal.types import Handler
from roost.errors import ConfigurationError

# Method key for routes registered without a verb
ANY = "*"


@dataclass(frozen=True, slots=True)
class RouteDescriptor:
    """What runs when a route matches: its handlers and optional action name."""

    handlers: tuple[Handler, ...]
    name: str | None = None
    mapping: str = ""


@dataclass(frozen=True, slots=True)
class RouteInfo:
    """One registered method slot, as reported by ``Router.routes()``.

    ``method`` is the upper-cased verb, ``"ANY"`` for wildcard routes, or
    ``"MOUNT"`` for a mounted middleware.
    """

    method: str
    path: str
    name: str | None = None


def parse_mapping(mapping: str) -> tuple[str, str]:
    """Split ``"METHOD /path"`` into a lower-cased method key and a path.

    A mapping without a method is a path matching any method::

        parse_mapping("GET /users")  -> ("get", "/users")
        parse_mapping("/users")      -> ("*", "/users")
    """
    parts = mapping.split(None, 1)
    if not parts:
        msg = "route 'mapping' is mandatory"
        raise ConfigurationError(msg)
    if len(parts) == 1:
        return ANY, parts[0]
    method, path = parts
    return method.lower(), path.strip()


def split_path(path: str, delimiter: re.Pattern[str]) -> list[str]:
    """Split a path on *delimiter*, dropping empty segments."""
    return [segment for segment in delimiter.split(path) if segment]
