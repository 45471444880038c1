"""Request dispatch — match, authorize, run the handler chain.

Flow for one request::

    match path ──none──────────────▶ not_found_handler
        │
        ├─ middleware mount ───────▶ strip prefix, middleware(ctx, next)
        │
        └─ route node ─no method───▶ no_method_handler
              │
              ├─ named + role_fetcher: roles denied ─▶ prohibition_handler / Forbidden
              │
              └─ Chain(preamble + route handlers).run()

Handlers run on the caller's event loop. Suspension happens only when
the role fetcher or a chain stage awaits; there is no cancellation and
no retry. Errors raised by handlers propagate to the caller unchanged.
"""

import logging
import re
from typing import Any

from roost._internal.invoke import invoke
from roost._internal.types import Next
from roost.errors import Forbidden
from roost.routing.chain import Chain
from roost.routing.route import ANY, split_path
from roost.routing.router import Router
from roost.routing.trie import MiddlewareMount, RouteNode, match_path
from roost.security.audit import AUTHZ_DENIED, AUTHZ_GRANTED, emit_security_event

_log = logging.getLogger("roost.routing")
_security_log = logging.getLogger("roost.security")


async def _terminal() -> None:
    return None


async def dispatch(entry: Router, ctx: Any, next: Next | None = None) -> Any:
    """Dispatch *ctx* against the trie of *entry*.

    *next* is the transport's continuation; it is handed to a matched
    mounted middleware and otherwise unused.
    """
    segments = split_path(ctx.path, entry.PATH_DELIM)
    found = match_path(entry, segments)
    config = found.owner.config

    match found.target:
        case MiddlewareMount(handler=middleware):
            ctx.path = _residual_path(ctx.path, entry.PATH_DELIM, len(found.remaining))
            return await invoke(middleware, ctx, next or _terminal)
        case RouteNode(methods=methods) if methods:
            descriptor = methods.get(ctx.method.lower()) or methods.get(ANY)
            if descriptor is None:
                _log.debug("No %s handler for %s", ctx.method, ctx.path)
                return await invoke(config.method_fallback, ctx)
        case _:
            _log.debug("No route for %s %s", ctx.method, ctx.path)
            return await invoke(config.not_found_handler, ctx)

    action = descriptor.name
    if action:
        setattr(ctx, entry.CTX_ACTION, action)
    setattr(ctx, entry.CTX_PARAMS, found.params)

    if action and config.role_fetcher is not None:
        roles = await invoke(config.role_fetcher, ctx)
        if not found.owner.registry.matcher.match(action, roles):
            _security_log.info("Denied %r to roles %r (%s %s)", action, roles, ctx.method, ctx.path)
            emit_security_event(
                AUTHZ_DENIED, ctx=ctx, action=action, roles=roles, params=found.params
            )
            if config.prohibition_handler is not None:
                return await invoke(config.prohibition_handler, ctx)
            raise Forbidden(f"Action {action!r} is not permitted")
        emit_security_event(AUTHZ_GRANTED, ctx=ctx, action=action, roles=roles, params=found.params)

    return await Chain((*config.preamble, *descriptor.handlers), ctx).run()


def _residual_path(path: str, delim: re.Pattern[str], remaining: int) -> str:
    """*path* with all but its last *remaining* segments cut off, rooted at ``/``.

    Delimiter runs inside the kept part are left as they are.
    """
    if not remaining:
        return "/"
    starts = [m.end() for m in delim.finditer(path) if m.end() < len(path)]
    if delim.match(path) is None:
        starts.insert(0, 0)
    return "/" + path[starts[-remaining] :]
