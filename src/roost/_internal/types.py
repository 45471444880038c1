"""Shared type aliases used across roost modules."""

from collections.abc import Awaitable, Callable, Sequence
from typing import Any, TypeAlias

# Continuation handed to a chain handler; awaiting it runs the rest of the chain
Next: TypeAlias = Callable[[], Awaitable[Any]]

# Chain handler: ``(ctx, next)`` or ``(ctx)``, sync or async
Handler: TypeAlias = Callable[..., Any]

# One handler or an ordered sequence of handlers
HandlerSpec: TypeAlias = Handler | Sequence[Handler]

# Role specification: delimited string or token sequence
RoleSpec: TypeAlias = str | Sequence[str]
