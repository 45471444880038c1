"""Router facade — route registration, mounting, and the config chain.

Routes are registered into a mutable trie during setup. Routers can be
mounted inside each other; a mounted router keeps its own trie (spliced
in by reference) and inherits configuration from its ancestors at
dispatch time.

Usage::

    roles = RoleGraph({"reader": "posts.list", "editor": "@reader posts.edit"})
    router = Router(roles=roles, role_fetcher=lambda ctx: ctx.user.roles)

    router.get("posts.list", "/posts", list_posts)
    router.put("posts.edit", "/posts/:id", [load_post, edit_post])

    admin = Router(preamble_handler=require_staff)
    admin.get("/stats", stats)
    router.mount("/admin", admin)

    await router(ctx)
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable, Iterator, Mapping
from dataclasses import dataclass, field
from typing import Any, ClassVar

from roost._internal.types import Handler, HandlerSpec, Next
from roost.config import RouterConfig, flatten_handlers, is_handler_spec, validate_options
from roost.errors import ConfigurationError
from roost.rbac.graph import RoleGraph
from roost.rbac.matcher import PermissionMatcher
from roost.routing.route import ANY, RouteDescriptor, RouteInfo, parse_mapping, split_path
from roost.routing.trie import MiddlewareMount, ParamEdge, RouteNode, RouterMount

_log = logging.getLogger("roost.routing")


@dataclass(slots=True)
class Registry:
    """Process-scoped routing state shared by a tree of routers.

    Holds the set of action names (route names are unique across the
    whole tree), the role graph used for authorization, and the entry
    router that dispatch starts from (the first router created on it).

    Mutated during setup only; no locking is done.
    """

    roles: RoleGraph = field(default_factory=RoleGraph)
    actions: set[str] = field(default_factory=set)
    entry: Router | None = None
    matcher: PermissionMatcher = field(init=False)

    def __post_init__(self) -> None:
        self.matcher = PermissionMatcher(self.roles)

    def check_action(self, name: str) -> None:
        if name in self.actions:
            msg = f"non-unique route name: '{name}'"
            raise ConfigurationError(msg)

    def merge(self, other: Registry) -> None:
        """Take over the action names and roles of a registry being mounted into this one.

        A non-empty role graph on *other* is adopted when this registry's
        graph is empty. Two distinct non-empty graphs are not combined.
        """
        if other is self:
            return
        clash = self.actions & other.actions
        if clash:
            msg = f"non-unique route name: '{sorted(clash)[0]}'"
            raise ConfigurationError(msg)
        adopt = other.roles is not self.roles and len(other.roles) > 0
        if adopt and len(self.roles) > 0:
            msg = "mounted router brings its own role graph; share one RoleGraph across the tree"
            raise ConfigurationError(msg)
        self.actions |= other.actions
        if adopt:
            self.roles = other.roles
            self.matcher = PermissionMatcher(self.roles)


class Router:
    """A route trie with its own option overrides and a parent link.

    Class-level constants can be overridden by subclassing::

        class MyRouter(Router):
            PARAM_MARK = "$"
            CTX_PARAMS = "args"
    """

    # Context attribute receiving the matched action name
    CTX_ACTION: ClassVar[str] = "action"
    # Context attribute receiving the captured path parameters
    CTX_PARAMS: ClassVar[str] = "params"
    # Path segment prefix marking a parameter
    PARAM_MARK: ClassVar[str] = ":"
    # Path segment delimiter
    PATH_DELIM: ClassVar[re.Pattern[str]] = re.compile(r"/+")

    __slots__ = ("_options", "_parent", "_registry", "root")

    def __init__(
        self,
        *,
        registry: Registry | None = None,
        roles: RoleGraph | None = None,
        **options: Any,
    ) -> None:
        if registry is not None and roles is not None:
            msg = "pass either `registry` or `roles`, not both"
            raise ConfigurationError(msg)
        validate_options(options)
        self._options: dict[str, Any] = {k: v for k, v in options.items() if v is not None}
        self._parent: Router | None = None
        if registry is None:
            registry = Registry(roles=RoleGraph() if roles is None else roles)
        self._registry = registry
        if self._registry.entry is None:
            self._registry.entry = self
        self.root = RouteNode()

    def __repr__(self) -> str:
        return f"<{type(self).__name__} at {id(self):#x}>"

    # -- Config chain --

    @property
    def parent(self) -> Router | None:
        return self._parent

    @property
    def registry(self) -> Registry:
        """The registry of the outermost ancestor."""
        return self._ancestry()[0]._registry

    @property
    def roles(self) -> RoleGraph:
        return self.registry.roles

    @property
    def config(self) -> RouterConfig:
        """Effective config, merged from the outermost ancestor down to this router.

        Recomputed on every access.
        """
        return RouterConfig.merge([router._options for router in self._ancestry()])

    def configure(self, **options: Any) -> Router:
        """Update this router's overrides. ``None`` removes an override."""
        validate_options(options)
        for key, value in options.items():
            if value is None:
                self._options.pop(key, None)
            else:
                self._options[key] = value
        return self

    def _ancestry(self) -> list[Router]:
        chain: list[Router] = []
        router: Router | None = self
        while router is not None:
            chain.append(router)
            router = router._parent
        chain.reverse()
        return chain

    # -- Registration --

    def map(
        self,
        mapping: str | Mapping[str, Any],
        handler: HandlerSpec | None = None,
        *,
        name: str | None = None,
    ) -> Router:
        """Register a route.

        Accepted forms::

            router.map("GET /users/:id", handler)
            router.map("GET /users/:id", [load_user, show_user], name="users.show")
            router.map({"name": "users.show", "mapping": "GET /users/:id", "handler": h})

        A mapping without a method matches any method.
        """
        if handler is None and name is None:
            if not isinstance(mapping, Mapping):
                msg = "invalid route descriptor"
                raise ConfigurationError(msg)
            name = mapping.get("name")
            handler = mapping.get("handler")
            mapping = mapping.get("mapping")  # type: ignore[assignment]

        if not mapping or not isinstance(mapping, str):
            msg = "route 'mapping' is mandatory"
            raise ConfigurationError(msg)
        if not is_handler_spec(handler) or not flatten_handlers(handler):
            msg = "route 'handler' is mandatory and must be a function"
            raise ConfigurationError(msg)

        registry = self.registry
        if name:
            registry.check_action(name)

        method, path = parse_mapping(mapping)
        node = self._walk_route(path, mapping)

        previous = node.methods.get(method)
        if previous is not None and previous.name:
            registry.actions.discard(previous.name)
        node.methods[method] = RouteDescriptor(flatten_handlers(handler), name or None, mapping)
        if name:
            registry.actions.add(name)
        _log.debug("Mapped %s%s", mapping, f" as {name!r}" if name else "")
        return self

    def route(self, mapping: str, *, name: str | None = None) -> Callable[[Handler], Handler]:
        """Decorator form of ``map``::

            @router.route("GET /health")
            async def health(ctx):
                ctx.body = "ok"
        """

        def decorator(handler: Handler) -> Handler:
            self.map(mapping, handler, name=name)
            return handler

        return decorator

    def _verb(self, verb: str, path: str, handler: HandlerSpec | None, name: str | None) -> Router:
        return self.map(f"{verb} {path}", handler, name=name)

    def get(self, *args: Any) -> Router:
        """``get(path, handler)`` or ``get(name, path, handler)``."""
        return self._verb("GET", *_verb_args(args))

    def post(self, *args: Any) -> Router:
        return self._verb("POST", *_verb_args(args))

    def put(self, *args: Any) -> Router:
        return self._verb("PUT", *_verb_args(args))

    def patch(self, *args: Any) -> Router:
        return self._verb("PATCH", *_verb_args(args))

    def delete(self, *args: Any) -> Router:
        return self._verb("DELETE", *_verb_args(args))

    def any(self, *args: Any) -> Router:
        """Register a route matching every method."""
        return self._verb(ANY, *_verb_args(args))

    all = any

    def _walk_route(self, path: str, mapping: str) -> RouteNode:
        """Find or create the terminal node for a route path."""
        node = self.root
        seen: set[str] = set()
        for segment in split_path(path, self.PATH_DELIM):
            if not segment.startswith(self.PARAM_MARK):
                _, node = self._descend(self, node, segment, "path is used by middleware")
                continue
            param = segment[len(self.PARAM_MARK) :]
            if not param:
                msg = f"unnamed parameter in route '{mapping}'"
                raise ConfigurationError(msg)
            if param in seen:
                msg = f"duplicate parameter '{param}' in route '{mapping}'"
                raise ConfigurationError(msg)
            if node.param is None:
                node.param = ParamEdge(param)
            elif node.param.name != param:
                msg = (
                    f"collision of parameters '{node.param.name}' and '{param}' "
                    f"in route '{mapping}'"
                )
                raise ConfigurationError(msg)
            seen.add(param)
            node = node.param.node
        return node

    @staticmethod
    def _descend(
        owner: Router, node: RouteNode, segment: str, middleware_error: str
    ) -> tuple[Router, RouteNode]:
        """Step into (creating if needed) the static child for *segment*.

        Crossing a mounted router continues inside its trie.
        """
        key = segment.lower()
        slot = node.children.get(key)
        match slot:
            case None:
                child = node.children[key] = RouteNode()
                return owner, child
            case MiddlewareMount():
                raise ConfigurationError(middleware_error)
            case RouterMount(router=router):
                return router, router.root
            case _:
                return owner, slot

    # -- Mounting --

    def mount(self, prefix: str, target: Router | Handler) -> Router:
        """Mount a middleware or another router at *prefix*.

        A mounted middleware receives every request under the prefix, with
        the prefix stripped from ``ctx.path``. A mounted router continues
        matching with the rest of the path and inherits this router's
        configuration.
        """
        if not prefix or not isinstance(prefix, str):
            msg = "expected prefix string"
            raise ConfigurationError(msg)
        if not callable(target):
            msg = "expected middleware function or Router instance"
            raise ConfigurationError(msg)

        segments = split_path(prefix, self.PATH_DELIM)
        if not segments:
            msg = f"invalid prefix: {prefix}"
            raise ConfigurationError(msg)
        if any(segment.startswith(self.PARAM_MARK) for segment in segments):
            msg = f"parametrized prefix: {prefix}"
            raise ConfigurationError(msg)

        owner: Router = self
        node = self.root
        for segment in segments[:-1]:
            owner, node = self._descend(owner, node, segment, "prefix path is used by middleware")

        point = segments[-1].lower()
        existing = node.children.get(point)
        if existing is not None and not (isinstance(existing, RouteNode) and existing.vacant):
            msg = f"mount point is already in use: {prefix}"
            raise ConfigurationError(msg)

        if isinstance(target, Router):
            if target in owner._ancestry():
                msg = "cannot mount a router inside itself"
                raise ConfigurationError(msg)
            if target._parent is not None:
                msg = "router is already mounted"
                raise ConfigurationError(msg)
            owner.registry.merge(target.registry)
            target._parent = owner
            node.children[point] = RouterMount(target)
            _log.debug("Mounted router at %s", prefix)
        else:
            node.children[point] = MiddlewareMount(target)
            _log.debug("Mounted middleware %r at %s", target, prefix)
        return self

    use = mount

    # -- Introspection --

    def routes(self) -> list[RouteInfo]:
        """Every registered method slot and middleware mount, depth first."""
        return list(self._iter_routes(self.root, ""))

    def _iter_routes(self, node: RouteNode, prefix: str) -> Iterator[RouteInfo]:
        for method, descriptor in node.methods.items():
            verb = "ANY" if method == ANY else method.upper()
            yield RouteInfo(verb, prefix or "/", descriptor.name)
        for key, slot in node.children.items():
            path = f"{prefix}/{key}"
            match slot:
                case MiddlewareMount():
                    yield RouteInfo("MOUNT", path)
                case RouterMount(router=router):
                    yield from router._iter_routes(router.root, path)
                case _:
                    yield from self._iter_routes(slot, path)
        if node.param is not None:
            path = f"{prefix}/{self.PARAM_MARK}{node.param.name}"
            yield from self._iter_routes(node.param.node, path)

    # -- Dispatch --

    async def __call__(self, ctx: Any, next: Next | None = None) -> Any:
        """Dispatch *ctx* from the registry's entry router.

        Lets a router be used directly as a middleware by the transport.
        """
        from roost.routing.dispatch import dispatch

        return await dispatch(self.registry.entry or self, ctx, next)


def _verb_args(args: tuple[Any, ...]) -> tuple[str, HandlerSpec | None, str | None]:
    """Normalize ``(path, handler)`` / ``(name, path, handler)`` to ``(path, handler, name)``."""
    match args:
        case (path, handler):
            return path, handler, None
        case (name, path, handler):
            return path, handler, name
        case _:
            msg = "expected (path, handler) or (name, path, handler)"
            raise ConfigurationError(msg)
