"""Tests for roost.rbac.spec — specification normalizing and token parsing."""

import pytest

from roost.errors import CompileError, SpecificationError
from roost.rbac.spec import Action, normalize, parse_token, references


class TestNormalize:
    def test_string_split_on_spaces_and_commas(self) -> None:
        assert normalize("a b,c ,  d") == ("a", "b", "c", "d")

    def test_string_is_stripped(self) -> None:
        assert normalize("  a  ") == ("a",)

    def test_empty_string(self) -> None:
        assert normalize("") == ()
        assert normalize("   ") == ()

    def test_sequence_kept_in_order(self) -> None:
        assert normalize(["b", "a", "!b"]) == ("b", "a", "!b")

    def test_tuple(self) -> None:
        assert normalize(("x",)) == ("x",)

    def test_rejects_other_types(self) -> None:
        with pytest.raises(SpecificationError) as exc_info:
            normalize(True)
        assert str(exc_info.value) == "invalid specification: True"

    def test_rejects_non_string_tokens(self) -> None:
        with pytest.raises(SpecificationError):
            normalize(["ok", 1])


class TestParseToken:
    def test_permission(self) -> None:
        token = parse_token("r", "posts.read")
        assert token.action is Action.INCLUDE
        assert token.value == "posts.read"

    def test_exclude_permission(self) -> None:
        token = parse_token("r", "!posts.read")
        assert token.action is Action.EXCLUDE
        assert token.value == "posts.read"

    def test_role_reference(self) -> None:
        token = parse_token("r", "@base")
        assert token.action is Action.INCLUDE_ROLE
        assert token.action.is_role_reference
        assert token.value == "base"

    def test_exclude_role_reference(self) -> None:
        token = parse_token("r", "!@base")
        assert token.action is Action.EXCLUDE_ROLE
        assert token.value == "base"

    def test_wildcard_is_plain_permission(self) -> None:
        assert parse_token("r", "*").action is Action.INCLUDE

    @pytest.mark.parametrize(
        ("raw", "reason"),
        [
            ("!", "invalid exclude specification"),
            ("!@", "invalid exclude role reference"),
            ("@", "invalid role reference"),
        ],
    )
    def test_empty_operands(self, raw: str, reason: str) -> None:
        with pytest.raises(CompileError) as exc_info:
            parse_token("testRole", raw)
        assert str(exc_info.value) == f"could not compile role 'testRole': {reason}"
        assert exc_info.value.role == "testRole"


class TestReferences:
    def test_collects_included_and_excluded_roles(self) -> None:
        assert references(("@a", "!@b", "p", "!q")) == {"a", "b"}

    def test_skips_empty_references(self) -> None:
        assert references(("@", "!@")) == set()
