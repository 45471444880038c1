"""Role graph — compiles declarative role specifications into permission sets.

Roles are stored with their raw specification and compiled lazily (on
first ``resolve``) or eagerly (``build``). Compiling a role folds its
tokens left to right into a permission set; role references pull in (or
remove) the referenced role's compiled permissions and record a
dependency edge, so that recompiling a role later recompiles everything
that was built from it.

Usage::

    graph = RoleGraph({
        "reader": ["posts.list", "posts.show"],
        "editor": "@reader posts.edit",
        "admin": "*",
    })
    graph.resolve("editor")  # frozenset({"posts.list", "posts.show", "posts.edit"})

    graph.apply("reader", "posts.list")  # editor is recompiled too

Thread safety:
    Mutation (``setup``, ``apply``, ``compile``, ``unset``) is meant for the
    setup phase. No locking is done; ``resolve`` on fully built roles is a
    plain dict lookup.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from typing import Any

from roost.errors import CompileError, RoleCycleError
from roost.rbac.spec import Action, normalize, parse_token, references

_log = logging.getLogger("roost.rbac")

_EMPTY: frozenset[str] = frozenset()

# Marker for "use the stored specification"
_STORED: Any = object()


@dataclass(frozen=True, slots=True)
class Role:
    """A role's normalized specification and, once compiled, its permissions."""

    name: str
    spec: tuple[str, ...]
    permissions: frozenset[str] | None = None

    @property
    def compiled(self) -> bool:
        return self.permissions is not None


class RoleGraph:
    """Registry of roles and the reference edges between them."""

    __slots__ = ("_dependents", "_references", "_roles")

    def __init__(self, specs: Mapping[str, Any] | None = None, *, prebuild: bool = True) -> None:
        self._roles: dict[str, Role] = {}
        # referenced role -> roles whose specification references it
        self._dependents: dict[str, set[str]] = {}
        # role -> roles its last compilation referenced
        self._references: dict[str, set[str]] = {}
        if specs is not None:
            self.setup(specs, prebuild=prebuild)

    # -- Introspection --

    def __contains__(self, name: object) -> bool:
        return name in self._roles

    def __iter__(self) -> Iterator[str]:
        return iter(self._roles)

    def __len__(self) -> int:
        return len(self._roles)

    def get(self, name: str) -> Role | None:
        """Return the stored role (compiled or not), or ``None``."""
        return self._roles.get(name)

    def dependents(self, name: str) -> frozenset[str]:
        """Roles whose specification directly references *name*."""
        return frozenset(self._dependents.get(name, ()))

    # -- Setup --

    def setup(self, specs: Mapping[str, Any], *, prebuild: bool = True) -> RoleGraph:
        """Replace every role and edge with *specs*, compiling them unless told not to.

        Specifications are normalized immediately, so a malformed one fails
        here even when *prebuild* is false.
        """
        self._roles.clear()
        self._dependents.clear()
        self._references.clear()
        for name, spec in specs.items():
            self._roles[name] = Role(name, normalize(spec))
        _log.debug("Registered %d roles", len(self._roles))
        if prebuild:
            self.build()
        return self

    def build(self, *, force: bool = False) -> RoleGraph:
        """Compile every uncompiled role, or every role when *force* is set."""
        if force:
            for name, role in self._roles.items():
                self._roles[name] = Role(name, role.spec)
        for name in list(self._roles):
            if not self._roles[name].compiled:
                self._compile(name, _STORED, ())
        return self

    def apply(self, name: str, spec: Any = _STORED) -> RoleGraph:
        """Create or replace a role and recompile everything built from it.

        With *spec* omitted the stored specification is recompiled.
        """
        role = self._roles.get(name)
        if role is not None:
            self._roles[name] = Role(name, role.spec)
        self.compile(name, spec)
        return self

    def unset(self, name: str) -> None:
        """Remove a role. Roles that referenced it are recompiled without it."""
        if self._roles.pop(name, None) is None:
            return
        self._link(name, set())
        _log.debug("Removed role %r", name)
        self._cascade(name)

    # -- Compilation --

    def compile(self, name: str, spec: Any = _STORED) -> frozenset[str]:
        """Compile *name* and recompile its dependents; return its permissions.

        Raises ``CompileError`` when *spec* is omitted and the role has no
        stored specification, or when a token is malformed, and
        ``RoleCycleError`` when the role would reference itself.
        """
        permissions = self._compile(name, spec, ())
        self._cascade(name)
        return permissions

    def resolve(self, name: str) -> frozenset[str]:
        """Return the permissions of *name*, compiling it on demand.

        Unknown roles resolve to an empty set.
        """
        return self._resolve(name, ())

    def _resolve(self, name: str, stack: tuple[str, ...]) -> frozenset[str]:
        role = self._roles.get(name)
        if role is None:
            return _EMPTY
        if role.permissions is not None:
            return role.permissions
        return self._compile(name, _STORED, stack)

    def _compile(self, name: str, spec: Any, stack: tuple[str, ...]) -> frozenset[str]:
        if name in stack:
            raise RoleCycleError(stack[0], (*stack[stack.index(name) :], name))
        if spec is _STORED:
            role = self._roles.get(name)
            if role is None:
                raise CompileError(name, "no specification")
            tokens = role.spec
        else:
            tokens = normalize(spec)

        refs = references(tokens)
        for ref in refs:
            self._check_cycle(name, ref)

        stack = (*stack, name)
        result: set[str] = set()
        for raw in tokens:
            token = parse_token(name, raw)
            match token.action:
                case Action.INCLUDE:
                    result.add(token.value)
                case Action.EXCLUDE:
                    result.discard(token.value)
                case Action.INCLUDE_ROLE:
                    result.update(self._resolve(token.value, stack))
                case Action.EXCLUDE_ROLE:
                    result.difference_update(self._resolve(token.value, stack))

        permissions = frozenset(result)
        self._roles[name] = Role(name, tokens, permissions)
        self._link(name, refs)
        _log.debug("Compiled role %r: %d permissions", name, len(permissions))
        return permissions

    def _cascade(self, name: str) -> None:
        """Recompile every transitive dependent of *name*, each exactly once."""
        order = self._dependent_order(name)
        if order:
            _log.debug("Recompiling dependents of %r: %s", name, ", ".join(order))
        for dependent in order:
            if dependent in self._roles:
                self._compile(dependent, _STORED, ())

    def _dependent_order(self, name: str) -> list[str]:
        """Transitive dependents of *name* in dependency order."""
        postorder: list[str] = []
        visited: set[str] = set()
        active: list[str] = []

        def visit(node: str) -> None:
            active.append(node)
            for dependent in sorted(self._dependents.get(node, ())):
                if dependent in active:
                    cycle = (*active[active.index(dependent) :], dependent)
                    raise RoleCycleError(dependent, tuple(reversed(cycle)))
                if dependent not in visited:
                    visit(dependent)
            active.pop()
            visited.add(node)
            postorder.append(node)

        visit(name)
        postorder.pop()  # *name* itself
        return postorder[::-1]

    def _check_cycle(self, name: str, ref: str) -> None:
        """Raise if *ref* already depends on *name*, directly or transitively."""
        if ref == name:
            raise RoleCycleError(name, (name, name))
        parents: dict[str, str] = {}
        queue = [name]
        while queue:
            node = queue.pop(0)
            for dependent in self._dependents.get(node, ()):
                if dependent == name or dependent in parents:
                    continue
                parents[dependent] = node
                if dependent == ref:
                    path = [ref]
                    while path[-1] != name:
                        path.append(parents[path[-1]])
                    raise RoleCycleError(name, (name, *path))
                queue.append(dependent)

    def _link(self, name: str, refs: set[str]) -> None:
        """Point *name*'s outgoing reference edges at *refs*."""
        previous = self._references.pop(name, set())
        for ref in previous - refs:
            dependents = self._dependents.get(ref)
            if dependents is not None:
                dependents.discard(name)
                if not dependents:
                    del self._dependents[ref]
        for ref in refs:
            self._dependents.setdefault(ref, set()).add(name)
        if refs:
            self._references[name] = set(refs)
