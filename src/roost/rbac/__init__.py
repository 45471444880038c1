"""Role-based access control — role graph compiler and permission matcher.

Role specification language (tokens separated by whitespace or commas)::

    perm       grant a permission
    @role      grant every permission of another role
    !perm      revoke a permission granted by an earlier token
    !@role     revoke every permission of another role

Tokens apply left to right. ``*`` is the wildcard permission.
"""

from roost.rbac.graph import Role, RoleGraph
from roost.rbac.matcher import WILDCARD, PermissionMatcher
from roost.rbac.spec import normalize

__all__ = [
    "WILDCARD",
    "PermissionMatcher",
    "Role",
    "RoleGraph",
    "normalize",
]
