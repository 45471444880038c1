"""Request context consumed and augmented by the dispatcher.

The transport owns the context. Roost only needs three things from it:
a ``path`` string, a ``method`` string, and the ability to set
attributes. The dispatcher writes the matched action name and the
captured path parameters onto it (see ``Router.CTX_ACTION`` and
``Router.CTX_PARAMS``) and may rewrite ``path`` when delegating to a
mounted middleware.

``RequestContext`` is a ready-made implementation for transports that
have no context object of their own, and for tests.
"""

from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class Context(Protocol):
    """Minimal request context protocol."""

    path: str
    method: str


class RequestContext:
    """A mutable attribute bag with a path and a method.

    Usage::

        ctx = RequestContext("GET", "/items/42", user=current_user)
        await router(ctx)
        ctx.params  # {"id": "42"}
    """

    def __init__(self, method: str, path: str, **attrs: Any) -> None:
        self.method = method
        self.path = path
        self.__dict__.update(attrs)

    def __repr__(self) -> str:
        return f"RequestContext({self.method!r}, {self.path!r})"
