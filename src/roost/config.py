"""Router configuration.

Each router stores only its own option overrides. ``RouterConfig`` is the
frozen, merged view computed from the outermost ancestor down to a given
router every time it is requested, so changes made to an ancestor after
mounting are visible to its descendants on the next dispatch.

Recognized options::

    role_fetcher         (ctx) -> role specifier; enables authorization
    prohibition_handler  (ctx) -> result; called when authorization fails
    preamble_handler     handler or sequence, prepended to every chain
    not_found_handler    (ctx) -> result; default raises NotFound
    no_method_handler    (ctx) -> result; default delegates to not-found

Anything else is kept as opaque application configuration in ``extra``.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

from roost._internal.types import Handler, HandlerSpec
from roost.errors import ConfigurationError, NotFound

_CALLABLE_OPTIONS = frozenset(
    {"role_fetcher", "prohibition_handler", "not_found_handler", "no_method_handler"}
)

RECOGNIZED_OPTIONS = _CALLABLE_OPTIONS | {"preamble_handler"}


def default_not_found_handler(ctx: Any) -> None:
    """Signal a generic 404 to the transport."""
    raise NotFound(f"No route matches {ctx.method} {ctx.path!r}")


def flatten_handlers(spec: HandlerSpec | None) -> tuple[Handler, ...]:
    """Flatten a single handler or a sequence of handlers into a tuple."""
    if spec is None:
        return ()
    if callable(spec):
        return (spec,)
    return tuple(spec)


def is_handler_spec(value: object) -> bool:
    """True for a callable or a non-string sequence of callables."""
    if callable(value):
        return True
    if isinstance(value, Sequence) and not isinstance(value, (str, bytes)):
        return all(callable(fn) for fn in value)
    return False


def validate_options(options: Mapping[str, Any]) -> None:
    """Raise ``ConfigurationError`` for recognized options of the wrong shape.

    ``None`` is accepted for every option and means "not overridden".
    """
    for key, value in options.items():
        if value is None:
            continue
        if key in _CALLABLE_OPTIONS and not callable(value):
            msg = f"`{key}` must be a function"
            raise ConfigurationError(msg)
        if key == "preamble_handler" and not is_handler_spec(value):
            msg = "`preamble_handler` must be a function or a sequence of functions"
            raise ConfigurationError(msg)


@dataclass(frozen=True, slots=True)
class RouterConfig:
    """Effective router configuration. Immutable snapshot.

    Built by ``RouterConfig.merge`` from a chain of per-router overrides,
    outermost first. Opaque options are readable through ``get``::

        router = Router(page_size=20)
        router.config.get("page_size")  # 20
    """

    role_fetcher: Callable[..., Any] | None = None
    prohibition_handler: Callable[..., Any] | None = None
    preamble_handler: HandlerSpec | None = None
    not_found_handler: Callable[..., Any] = default_not_found_handler
    no_method_handler: Callable[..., Any] | None = None
    extra: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))

    @classmethod
    def merge(cls, chain: Sequence[Mapping[str, Any]]) -> RouterConfig:
        """Merge overrides, later mappings winning over earlier ones."""
        merged: dict[str, Any] = {}
        for overrides in chain:
            merged.update((k, v) for k, v in overrides.items() if v is not None)
        known = {k: merged.pop(k) for k in RECOGNIZED_OPTIONS if k in merged}
        return cls(**known, extra=MappingProxyType(merged))

    @property
    def preamble(self) -> tuple[Handler, ...]:
        """The preamble handlers as a flat tuple."""
        return flatten_handlers(self.preamble_handler)

    @property
    def method_fallback(self) -> Callable[..., Any]:
        """The no-method handler, defaulting to the not-found handler."""
        return self.no_method_handler or self.not_found_handler

    def get(self, key: str, default: Any = None) -> Any:
        """Return a recognized or opaque option by name."""
        if key in RECOGNIZED_OPTIONS:
            value = getattr(self, key)
            return default if value is None else value
        return self.extra.get(key, default)
