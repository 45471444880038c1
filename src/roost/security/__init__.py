"""Security helpers — authorization audit events."""

from roost.security.audit import (
    AUTHZ_DENIED,
    AUTHZ_GRANTED,
    SecurityEvent,
    emit_security_event,
    set_security_event_sink,
)

__all__ = [
    "AUTHZ_DENIED",
    "AUTHZ_GRANTED",
    "SecurityEvent",
    "emit_security_event",
    "set_security_event_sink",
]
