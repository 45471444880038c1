"""Routing — mutable route trie, mounts, and chain dispatch.

Routes are registered during setup into a trie of lower-cased static
segments with at most one parameter branch per position. Routers mount
into each other and resolve their configuration through the parent chain.
"""

from roost.routing.chain import Chain
from roost.routing.dispatch import dispatch
from roost.routing.route import ANY, RouteDescriptor, RouteInfo
from roost.routing.router import Registry, Router

__all__ = [
    "ANY",
    "Chain",
    "Registry",
    "RouteDescriptor",
    "RouteInfo",
    "Router",
    "dispatch",
]
