"""Handler chains — cooperative continuations over a fixed list of stages.

A matched route runs ``preamble handlers + route handlers`` as a chain.
Each stage is called as ``handler(ctx, next)`` (or ``handler(ctx)`` if it
declares a single parameter). Awaiting ``next()`` runs the rest of the
chain and returns the next stage's result::

    async def timing(ctx, next):
        start = time.monotonic()
        result = await next()
        ctx.elapsed = time.monotonic() - start
        return result

Rules:

- A stage that never calls ``next`` ends the chain; later stages do not run.
- A stage may call ``next()`` without awaiting it (for example from a
  plain ``def``); the rest of the chain then runs as soon as the stage's
  own result has settled.
- ``next`` is idempotent: once the following stage has started, calling
  ``next`` again does nothing and resolves to ``None``.
"""

from __future__ import annotations

from collections.abc import Generator, Sequence
from typing import Any

from roost._internal.invoke import accepts_next, invoke
from roost._internal.types import Handler


class Chain:
    """A finite sequence of stages and a cursor over them.

    The cursor counts stages that have started. Entering a stage the
    cursor has already passed is a no-op, which is what makes ``next``
    safe to call twice.
    """

    __slots__ = ("_ctx", "_cursor", "_stages")

    def __init__(self, stages: Sequence[Handler], ctx: Any) -> None:
        self._stages = tuple(stages)
        self._ctx = ctx
        self._cursor = 0

    @property
    def cursor(self) -> int:
        """Number of stages that have started."""
        return self._cursor

    def __len__(self) -> int:
        return len(self._stages)

    async def run(self) -> Any:
        """Run the chain from the first stage; return that stage's result."""
        return await self._enter(0)

    async def _enter(self, index: int) -> Any:
        if index >= len(self._stages) or index < self._cursor:
            return None
        self._cursor = index + 1
        handler = self._stages[index]
        advance = _Advance(self, index + 1)
        if accepts_next(handler):
            result = await invoke(handler, self._ctx, advance)
        else:
            result = await invoke(handler, self._ctx)
        if advance.requested:
            await self._enter(index + 1)
        return result


class _Advance:
    """The ``next`` callable handed to one stage."""

    __slots__ = ("_chain", "_index", "requested")

    def __init__(self, chain: Chain, index: int) -> None:
        self._chain = chain
        self._index = index
        self.requested = False

    def __call__(self) -> _Advance:
        self.requested = True
        return self

    def __await__(self) -> Generator[Any, None, Any]:
        return self._chain._enter(self._index).__await__()
