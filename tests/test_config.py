"""Tests for roost.config — merging and validating router options."""

import pytest

from roost.config import (
    RouterConfig,
    default_not_found_handler,
    flatten_handlers,
    is_handler_spec,
    validate_options,
)
from roost.context import RequestContext
from roost.errors import ConfigurationError, NotFound


def _fn(ctx) -> None:
    return None


class TestMerge:
    def test_empty_chain_gives_defaults(self) -> None:
        config = RouterConfig.merge([])
        assert config.role_fetcher is None
        assert config.not_found_handler is default_not_found_handler
        assert dict(config.extra) == {}

    def test_later_overrides_win(self) -> None:
        config = RouterConfig.merge([{"a": 1, "b": 2}, {"b": 3}])
        assert config.get("a") == 1
        assert config.get("b") == 3

    def test_none_does_not_override(self) -> None:
        config = RouterConfig.merge([{"role_fetcher": _fn}, {"role_fetcher": None}])
        assert config.role_fetcher is _fn

    def test_recognized_options_are_fields(self) -> None:
        config = RouterConfig.merge([{"prohibition_handler": _fn, "x": 1}])
        assert config.prohibition_handler is _fn
        assert "prohibition_handler" not in config.extra
        assert config.extra == {"x": 1}

    def test_extra_is_read_only(self) -> None:
        config = RouterConfig.merge([{"x": 1}])
        with pytest.raises(TypeError):
            config.extra["x"] = 2  # type: ignore[index]


class TestAccessors:
    def test_get_default(self) -> None:
        config = RouterConfig()
        assert config.get("missing", "fallback") == "fallback"
        assert config.get("role_fetcher", "fallback") == "fallback"

    def test_preamble_flattened(self) -> None:
        assert RouterConfig(preamble_handler=_fn).preamble == (_fn,)
        assert RouterConfig(preamble_handler=[_fn, _fn]).preamble == (_fn, _fn)
        assert RouterConfig().preamble == ()

    def test_method_fallback(self) -> None:
        assert RouterConfig().method_fallback is default_not_found_handler
        assert RouterConfig(not_found_handler=_fn).method_fallback is _fn
        assert RouterConfig(no_method_handler=len).method_fallback is len


class TestHelpers:
    def test_flatten_handlers(self) -> None:
        assert flatten_handlers(None) == ()
        assert flatten_handlers((_fn,)) == (_fn,)

    def test_is_handler_spec(self) -> None:
        assert is_handler_spec(_fn)
        assert is_handler_spec([_fn])
        assert not is_handler_spec("_fn")
        assert not is_handler_spec([_fn, None])
        assert not is_handler_spec(None)

    def test_validate_accepts_none_and_opaque(self) -> None:
        validate_options({"role_fetcher": None, "anything": object()})

    def test_validate_rejects(self) -> None:
        with pytest.raises(ConfigurationError):
            validate_options({"no_method_handler": 1})

    def test_default_not_found_raises(self) -> None:
        with pytest.raises(NotFound):
            default_not_found_handler(RequestContext("GET", "/x"))
