"""Route trie — nodes, mount slots, and path matching.

Each static child slot of a node holds one of three things:

- ``RouteNode``: an ordinary path position, possibly with method handlers
- ``MiddlewareMount``: a middleware that takes over the rest of the path
- ``RouterMount``: another router whose trie continues from here

A node also has at most one parametric child, bound to a single
parameter name.
"""

from dataclasses import dataclass, field
from typing import Any, TypeAlias

from roost._internal.types import Handler
from roost.routing.route import RouteDescriptor


class RouteNode:
    """A position in the route trie. Mutated during setup only."""

    __slots__ = ("children", "methods", "param")

    def __init__(self) -> None:
        # Lower-cased static segment -> slot
        self.children: dict[str, Slot] = {}
        # Single parameter child (only one parameter name per position)
        self.param: ParamEdge | None = None
        # Route descriptors at this node, keyed by lower-cased method or ANY
        self.methods: dict[str, RouteDescriptor] = {}

    @property
    def vacant(self) -> bool:
        """True if nothing has been registered at or below this node."""
        return not (self.children or self.param or self.methods)


@dataclass(slots=True)
class ParamEdge:
    """A parametric edge; the segment value is captured under ``name``."""

    name: str
    node: RouteNode = field(default_factory=RouteNode)


@dataclass(frozen=True, slots=True)
class MiddlewareMount:
    """A middleware that takes over every path below its mount point."""

    handler: Handler


@dataclass(frozen=True, slots=True)
class RouterMount:
    """A mounted router. ``router`` exposes its trie as ``root``."""

    router: Any


Slot: TypeAlias = RouteNode | MiddlewareMount | RouterMount


@dataclass(slots=True)
class TrieMatch:
    """Where a path walk stopped.

    ``owner`` is the router whose trie holds ``target``; ``target`` is
    ``None`` when a segment matched nothing. ``remaining`` holds the
    segments left unconsumed when a middleware mount took over.
    """

    owner: Any
    target: RouteNode | MiddlewareMount | None
    params: dict[str, str]
    remaining: tuple[str, ...] = ()


def match_path(owner: Any, segments: list[str]) -> TrieMatch:
    """Walk *segments* down from ``owner.root``.

    Static children are matched case-insensitively and win over the
    parametric child. There is no backtracking: once a static child is
    taken, the parametric alternative at that position is not retried.
    Parameter values are captured verbatim.
    """
    node: RouteNode = owner.root
    params: dict[str, str] = {}
    for index, segment in enumerate(segments):
        slot = node.children.get(segment.lower())
        if slot is None:
            if node.param is None:
                return TrieMatch(owner, None, params)
            params[node.param.name] = segment
            slot = node.param.node
        match slot:
            case MiddlewareMount():
                return TrieMatch(owner, slot, params, tuple(segments[index + 1 :]))
            case RouterMount(router=router):
                owner = router
                node = router.root
            case _:
                node = slot
    return TrieMatch(owner, node, params)
