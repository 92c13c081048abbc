"""Immutable request-scoped context carrier.

A ``Context`` is passed explicitly through a call chain and handed to the
context-attribute extractor on every emission. ``Context.background()`` is the
explicit marker for "no ambient request data": handlers skip extraction for it
without comparing against an empty value.
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Mapping


@dataclass(frozen=True)
class Context:
    """Immutable bundle of request-scoped values.

    Derive children with ``with_value``/``with_values``; the parent is never
    modified.
    """

    values: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}), hash=False)
    is_background: bool = False

    def __post_init__(self) -> None:
        # Detach from the caller's mapping so later writes to it never leak in.
        object.__setattr__(self, "values", MappingProxyType(dict(self.values)))

    @classmethod
    def background(cls) -> "Context":
        """Return the shared context that carries no request data."""
        return _BACKGROUND

    def value(self, key: str, default: Any = None) -> Any:
        return self.values.get(key, default)

    def with_value(self, key: str, value: Any) -> "Context":
        return self.with_values(**{key: value})

    def with_values(self, **values: Any) -> "Context":
        """Derive a child context, inheriting parent values for unspecified keys."""
        return Context(values={**self.values, **values})


_BACKGROUND = Context(is_background=True)


def is_background(ctx: Any) -> bool:
    """True when ``ctx`` is absent or explicitly marked as background."""
    return ctx is None or getattr(ctx, "is_background", False) is True
