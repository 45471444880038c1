"""Security audit events.

Small opt-in event channel for authorization telemetry. The dispatcher
emits ``authz.granted`` and ``authz.denied`` for every named route it
checks against the role fetcher's roles. Applications can register a sink
to forward events to logs, metrics, or SIEM.

Usage::

    def record(event: SecurityEvent) -> None:
        if not event.granted:
            audit_log.warning("%s denied to %s", event.action, ", ".join(event.roles))

    set_security_event_sink(record)
"""

import threading
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from time import time
from types import MappingProxyType
from typing import Any, TypeAlias

from roost._internal.types import RoleSpec
from roost.rbac.spec import normalize

AUTHZ_GRANTED = "authz.granted"
AUTHZ_DENIED = "authz.denied"


@dataclass(frozen=True, slots=True)
class SecurityEvent:
    """One authorization decision, or a custom event with the same shape.

    ``roles`` are the role names the request presented, normalized the way
    the permission matcher reads them; empty when the fetcher returned
    ``None``. ``params`` are the path parameters captured for the route.
    """

    name: str
    timestamp: float = field(default_factory=time)
    path: str | None = None
    method: str | None = None
    action: str | None = None
    roles: tuple[str, ...] = ()
    params: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))

    @property
    def granted(self) -> bool:
        return self.name == AUTHZ_GRANTED


SecurityEventSink: TypeAlias = Callable[[SecurityEvent], None]


_sink_lock = threading.Lock()
_sink: SecurityEventSink | None = None


def set_security_event_sink(sink: SecurityEventSink | None) -> None:
    """Set a process-wide sink for security events.

    Pass ``None`` to disable event delivery.
    """
    global _sink
    with _sink_lock:
        _sink = sink


def emit_security_event(
    name: str,
    *,
    ctx: Any | None = None,
    action: str | None = None,
    roles: RoleSpec | None = None,
    params: Mapping[str, str] | None = None,
) -> None:
    """Emit a best-effort security event to the configured sink.

    Raises ``SpecificationError`` if *roles* is neither a string nor a
    sequence of strings.
    """
    with _sink_lock:
        sink = _sink
    if sink is None:
        return

    event = SecurityEvent(
        name=name,
        path=getattr(ctx, "path", None),
        method=getattr(ctx, "method", None),
        action=action,
        roles=() if roles is None else normalize(roles),
        params=MappingProxyType(dict(params or {})),
    )
    sink(event)
