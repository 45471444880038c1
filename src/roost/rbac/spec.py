"""Role specification parsing.

A role specification is either a delimited string (whitespace and/or
commas) or an ordered sequence of tokens. Both are normalized here into
a tuple of tokens, then each token into a typed ``Token``::

    perm          include permission
    @role         include every permission of another role
    !perm         exclude permission
    !@role        exclude every permission of another role
"""

import re
from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum

from roost.errors import CompileError, SpecificationError

DELIMITER = re.compile(r"[,\s]+")
EXCLUDE_MARK = "!"
ROLE_REF_MARK = "@"


class Action(Enum):
    INCLUDE = "include"
    EXCLUDE = "exclude"
    INCLUDE_ROLE = "include_role"
    EXCLUDE_ROLE = "exclude_role"

    @property
    def is_role_reference(self) -> bool:
        return self in (Action.INCLUDE_ROLE, Action.EXCLUDE_ROLE)


@dataclass(frozen=True, slots=True)
class Token:
    """One parsed specification token."""

    action: Action
    value: str


def normalize(spec: object) -> tuple[str, ...]:
    """Normalize a specification into a tuple of raw tokens.

    Strings are split on runs of commas and whitespace; sequences of
    strings are taken as-is. Anything else raises ``SpecificationError``.

    >>> normalize("@base, !drop  extra")
    ('@base', '!drop', 'extra')
    """
    if isinstance(spec, str):
        stripped = spec.strip()
        return tuple(DELIMITER.split(stripped)) if stripped else ()
    if isinstance(spec, Sequence) and all(isinstance(t, str) for t in spec):
        return tuple(spec)
    raise SpecificationError(spec)


def parse_token(role: str, raw: str) -> Token:
    """Classify a raw token by its leading marks.

    *role* is the role being compiled, used in error messages.
    """
    if raw.startswith(EXCLUDE_MARK + ROLE_REF_MARK):
        ref = raw[2:]
        if not ref:
            raise CompileError(role, "invalid exclude role reference")
        return Token(Action.EXCLUDE_ROLE, ref)
    if raw.startswith(EXCLUDE_MARK):
        perm = raw[1:]
        if not perm:
            raise CompileError(role, "invalid exclude specification")
        return Token(Action.EXCLUDE, perm)
    if raw.startswith(ROLE_REF_MARK):
        ref = raw[1:]
        if not ref:
            raise CompileError(role, "invalid role reference")
        return Token(Action.INCLUDE_ROLE, ref)
    return Token(Action.INCLUDE, raw)


def references(tokens: tuple[str, ...]) -> set[str]:
    """Names of all roles referenced by a normalized specification.

    Malformed tokens are skipped; they are reported when the role compiles.
    """
    refs: set[str] = set()
    for raw in tokens:
        if raw.startswith(EXCLUDE_MARK + ROLE_REF_MARK):
            ref = raw[2:]
        elif raw.startswith(ROLE_REF_MARK):
            ref = raw[1:]
        else:
            continue
        if ref:
            refs.add(ref)
    return refs
