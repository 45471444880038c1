"""Roost exception hierarchy.

Shared across the role graph, router, and dispatcher so every module
raises and catches the same types.

Two kinds of failure exist:

- Setup errors (``ConfigurationError``, ``RoleError`` and subclasses) are
  raised synchronously while routes, mounts, and roles are registered.
  They are programmer errors and are never routed to handlers.
- Dispatch outcomes (``NotFound``, ``Forbidden``) are ``HTTPError``
  signals raised by the default not-found and prohibition handlers and
  left for the transport to translate.
"""

from dataclasses import dataclass


class RoostError(Exception):
    """Base for all roost-specific errors."""


class ConfigurationError(RoostError):
    """Raised when a route, mount, or router option is invalid.

    Raised during registration, never at dispatch time.
    """


class RoleError(RoostError):
    """Base for role specification and compilation errors."""


class SpecificationError(RoleError):
    """A role specification is neither a delimited string nor a token sequence."""

    def __init__(self, spec: object) -> None:
        self.spec = spec
        super().__init__(f"invalid specification: {spec}")


class CompileError(RoleError):
    """A role specification could not be compiled."""

    def __init__(self, role: str, reason: str) -> None:
        self.role = role
        self.reason = reason
        super().__init__(f"could not compile role '{role}': {reason}")


class RoleCycleError(CompileError):
    """A role references itself, directly or through other roles."""

    def __init__(self, role: str, cycle: tuple[str, ...]) -> None:
        self.cycle = cycle
        super().__init__(role, f"circular role reference: {' -> '.join(cycle)}")


@dataclass(frozen=True, slots=True)
class HTTPError(RoostError):
    """An outcome that maps directly to an HTTP status code.

    Raised by the default dispatch handlers or by route handlers. The
    transport catches these and writes the matching response.
    """

    status: int
    detail: str = ""
    headers: tuple[tuple[str, str], ...] = ()

    def __str__(self) -> str:
        if self.detail:
            return f"{self.status}: {self.detail}"
        return str(self.status)


class NotFound(HTTPError):  # noqa: N818
    """404 — no route (or no method on the route) matched the request."""

    def __init__(self, detail: str = "Not Found") -> None:
        super().__init__(status=404, detail=detail)


class Forbidden(HTTPError):  # noqa: N818
    """403 — the caller's roles do not grant the route's action."""

    def __init__(self, detail: str = "Forbidden") -> None:
        super().__init__(status=403, detail=detail)
