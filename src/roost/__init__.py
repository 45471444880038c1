"""Roost — a trie router with role-based action authorization.

Routes map ``"METHOD /path/:param"`` strings to handler chains. Named
routes are actions: when a role fetcher is configured, the caller's roles
must grant the action's name as a permission before the chain runs.

Basic usage::

    from roost import RequestContext, RoleGraph, Router

    roles = RoleGraph({"viewer": "items.show", "admin": "*"})
    router = Router(roles=roles, role_fetcher=lambda ctx: ctx.roles)

    @router.route("GET /items/:id", name="items.show")
    async def show_item(ctx):
        ctx.body = {"id": ctx.params["id"]}

    ctx = RequestContext("GET", "/items/42", roles="viewer")
    await router(ctx)
"""

__version__ = "0.1.0"
__all__ = [
    "CompileError",
    "ConfigurationError",
    "Forbidden",
    "HTTPError",
    "NotFound",
    "PermissionMatcher",
    "Registry",
    "RequestContext",
    "RoleCycleError",
    "RoleError",
    "RoleGraph",
    "RoostError",
    "Router",
    "RouterConfig",
    "SpecificationError",
]


def __getattr__(name: str) -> object:
    """Lazy imports for public API.

    Keeps ``import roost`` fast while providing a clean top-level API.
    """
    if name in ("Registry", "Router"):
        from roost.routing import router as _router

        return getattr(_router, name)

    if name == "RouterConfig":
        from roost.config import RouterConfig

        return RouterConfig

    if name == "RequestContext":
        from roost.context import RequestContext

        return RequestContext

    if name in ("PermissionMatcher", "RoleGraph"):
        from roost import rbac as _rbac

        return getattr(_rbac, name)

    if name in (
        "CompileError",
        "ConfigurationError",
        "Forbidden",
        "HTTPError",
        "NotFound",
        "RoleCycleError",
        "RoleError",
        "RoostError",
        "SpecificationError",
    ):
        from roost import errors as _errors

        return getattr(_errors, name)

    msg = f"module {__name__!r} has no attribute {name!r}"
    raise AttributeError(msg)
