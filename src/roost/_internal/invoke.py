"""Invoke helpers — call sync or async handlers uniformly.

Roost handlers, role fetchers, and dispatch hooks can be ``def`` or
``async def``. Any code that calls a user-provided callable goes through
``invoke`` so the sync/async check lives in exactly one place.

Usage::

    from roost._internal.invoke import invoke

    roles = await invoke(config.role_fetcher, ctx)
"""

import inspect
from collections.abc import Callable
from typing import Any


async def invoke(handler: Any, *args: Any, **kwargs: Any) -> Any:
    """Call a handler and await the result if it's awaitable."""
    result = handler(*args, **kwargs)
    if inspect.isawaitable(result):
        result = await result
    return result


def accepts_next(handler: Callable[..., Any]) -> bool:
    """Return True if *handler* can take a second positional argument.

    Chain handlers are called as ``handler(ctx, next)``; handlers that
    only declare ``ctx`` are called as ``handler(ctx)``. Callables whose
    signature cannot be inspected are assumed to take both.
    """
    try:
        params = inspect.signature(handler).parameters.values()
    except (TypeError, ValueError):
        return True
    positional = 0
    for param in params:
        if param.kind is inspect.Parameter.VAR_POSITIONAL:
            return True
        if param.kind in (
            inspect.Parameter.POSITIONAL_ONLY,
            inspect.Parameter.POSITIONAL_OR_KEYWORD,
        ):
            positional += 1
    return positional >= 2
