"""Permission matcher — does any of these roles grant this permission?"""

from roost._internal.types import RoleSpec
from roost.rbac.graph import RoleGraph
from roost.rbac.spec import normalize

WILDCARD = "*"


class PermissionMatcher:
    """Check permissions against the compiled roles of a ``RoleGraph``.

    The role specifier is normalized like a role specification, so both
    ``"editor, auditor"`` and ``["editor", "auditor"]`` name two roles.
    ``None`` names no roles. Unknown roles grant nothing.
    """

    __slots__ = ("graph",)

    def __init__(self, graph: RoleGraph) -> None:
        self.graph = graph

    def match(self, permission: str, roles: RoleSpec | None) -> bool:
        if roles is None:
            return False
        for name in normalize(roles):
            granted = self.graph.resolve(name)
            if permission in granted or WILDCARD in granted:
                return True
        return False

    __call__ = match
