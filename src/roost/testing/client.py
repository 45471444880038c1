"""In-process client for exercising routers in tests.

Builds a ``RequestContext``, dispatches it through the router, and folds
``HTTPError`` outcomes into a result object. No transport is involved.
"""

from dataclasses import dataclass
from functools import partial
from typing import Any

import anyio

from roost.context import RequestContext
from roost.errors import HTTPError
from roost.routing.router import Router


@dataclass(frozen=True, slots=True)
class DispatchResult:
    """Outcome of one dispatched request.

    ``status`` is 200 when the chain completed and the ``HTTPError``
    status otherwise. ``value`` is what the first chain stage returned.
    """

    status: int
    ctx: RequestContext
    value: Any = None
    error: HTTPError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


class RouterClient:
    __test__ = False  # Tell pytest this is not a test class
    """Async test client for roost routers.

    Usage::

        client = RouterClient(router)
        result = await client.get("/items/42", user=alice)
        assert result.status == 200
        assert result.ctx.params == {"id": "42"}

    Keyword arguments become attributes of the request context. Errors
    other than ``HTTPError`` propagate.
    """

    __slots__ = ("router",)

    def __init__(self, router: Router) -> None:
        self.router = router

    async def request(self, method: str, path: str, **attrs: Any) -> DispatchResult:
        ctx = RequestContext(method, path, **attrs)
        try:
            value = await self.router(ctx)
        except HTTPError as exc:
            return DispatchResult(status=exc.status, ctx=ctx, error=exc)
        return DispatchResult(status=200, ctx=ctx, value=value)

    async def get(self, path: str, **attrs: Any) -> DispatchResult:
        """Send a GET request."""
        return await self.request("GET", path, **attrs)

    async def post(self, path: str, **attrs: Any) -> DispatchResult:
        """Send a POST request."""
        return await self.request("POST", path, **attrs)

    async def put(self, path: str, **attrs: Any) -> DispatchResult:
        """Send a PUT request."""
        return await self.request("PUT", path, **attrs)

    async def patch(self, path: str, **attrs: Any) -> DispatchResult:
        """Send a PATCH request."""
        return await self.request("PATCH", path, **attrs)

    async def delete(self, path: str, **attrs: Any) -> DispatchResult:
        """Send a DELETE request."""
        return await self.request("DELETE", path, **attrs)

    def request_sync(self, method: str, path: str, **attrs: Any) -> DispatchResult:
        """Dispatch from synchronous code on a fresh event loop."""
        return anyio.run(partial(self.request, method, path, **attrs))
