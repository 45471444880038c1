"""Tests for authorization audit events."""

import pytest

from roost.errors import SpecificationError
from roost.rbac import RoleGraph
from roost.routing.router import Router
from roost.security.audit import (
    AUTHZ_DENIED,
    AUTHZ_GRANTED,
    SecurityEvent,
    emit_security_event,
    set_security_event_sink,
)
from roost.testing import RouterClient


async def _handler(ctx):
    return "ok"


@pytest.fixture
def events():
    collected: list[SecurityEvent] = []
    set_security_event_sink(collected.append)
    yield collected
    set_security_event_sink(None)


def test_emit_without_sink_is_noop() -> None:
    set_security_event_sink(None)
    emit_security_event("authz.test")


def test_emit_with_context(events: list[SecurityEvent]) -> None:
    class Ctx:
        path = "/x"
        method = "GET"

    emit_security_event(AUTHZ_GRANTED, ctx=Ctx(), action="x.show", roles="editor, auditor")

    assert len(events) == 1
    event = events[0]
    assert event.name == "authz.granted"
    assert event.granted
    assert (event.path, event.method, event.action) == ("/x", "GET", "x.show")
    assert event.roles == ("editor", "auditor")
    assert dict(event.params) == {}
    assert event.timestamp > 0


def test_emit_without_roles(events: list[SecurityEvent]) -> None:
    emit_security_event(AUTHZ_DENIED, action="x.show", params={"id": "7"})

    event = events[0]
    assert not event.granted
    assert event.roles == ()
    assert event.path is None
    assert dict(event.params) == {"id": "7"}


def test_event_params_are_read_only(events: list[SecurityEvent]) -> None:
    params = {"id": "7"}
    emit_security_event(AUTHZ_DENIED, params=params)
    params["id"] = "8"

    assert events[0].params["id"] == "7"
    with pytest.raises(TypeError):
        events[0].params["id"] = "9"  # type: ignore[index]


def test_invalid_roles_rejected(events: list[SecurityEvent]) -> None:
    with pytest.raises(SpecificationError):
        emit_security_event(AUTHZ_DENIED, roles=42)  # type: ignore[arg-type]
    assert events == []


@pytest.mark.anyio
async def test_dispatch_emits_granted_and_denied(events: list[SecurityEvent]) -> None:
    graph = RoleGraph({"reader": "docs.read"})
    r = Router(roles=graph, role_fetcher=lambda ctx: ctx.roles)
    r.get("docs.read", "/docs/:id", _handler)
    r.delete("docs.delete", "/docs/:id", _handler)
    client = RouterClient(r)

    await client.get("/docs/3", roles="reader")
    await client.delete("/docs/3", roles=["reader"])

    assert [e.name for e in events] == ["authz.granted", "authz.denied"]
    granted, denied = events
    assert granted.granted and not denied.granted
    assert denied.action == "docs.delete"
    assert denied.method == "DELETE"
    assert denied.roles == ("reader",)
    assert dict(denied.params) == {"id": "3"}


@pytest.mark.anyio
async def test_dispatch_with_no_roles(events: list[SecurityEvent]) -> None:
    r = Router(roles=RoleGraph({"reader": "docs.read"}), role_fetcher=lambda ctx: None)
    r.get("docs.read", "/docs", _handler)

    assert (await RouterClient(r).get("/docs")).status == 403
    assert [(e.name, e.roles) for e in events] == [("authz.denied", ())]


@pytest.mark.anyio
async def test_denial_is_logged(caplog: pytest.LogCaptureFixture) -> None:
    r = Router(roles=RoleGraph({"reader": "docs.read"}), role_fetcher=lambda ctx: "reader")
    r.delete("docs.delete", "/docs", _handler)

    with caplog.at_level("INFO", logger="roost.security"):
        await RouterClient(r).delete("/docs")

    assert any("docs.delete" in record.getMessage() for record in caplog.records)
