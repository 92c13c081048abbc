"""Typed log attributes and severity levels.

An ``Attr`` is a single key/value pair attached to a record. A value may be a
``Group`` — an ordered bundle of nested attributes — which sinks render as a
nested object (JSON) or as dotted keys (text).
"""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from enum import IntEnum
from typing import Any


class Level(IntEnum):
    """Record severity, numbered like the stdlib ``logging`` levels."""

    DEBUG = 10
    INFO = 20
    WARNING = 30
    ERROR = 40

    @classmethod
    def parse(cls, value: Any) -> int:
        """Coerce a member, an int, or a case-insensitive name into a level.

        Named values come back as members. Any other integer, such as 25 for
        a level between INFO and WARNING, is returned as a plain int.

        Raises:
            ValueError: If the value names no known level or is not an int.
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            name = value.strip().upper()
            if name == "WARN":
                name = "WARNING"
            if name.lstrip("-").isdigit():
                return cls.parse(int(name))
            try:
                return cls[name]
            except KeyError:
                msg = f"unknown log level: {value!r}"
                raise ValueError(msg) from None
        if isinstance(value, bool) or not isinstance(value, int):
            msg = f"unknown log level: {value!r}"
            raise ValueError(msg)
        try:
            return cls(value)
        except ValueError:
            return int(value)


def level_name(level: int) -> str:
    """Render a level, including values between the named ones (``INFO+5``)."""
    try:
        return Level(level).name
    except ValueError:
        pass

    below = [member for member in Level if member <= level]
    if not below:
        return f"DEBUG-{Level.DEBUG - level}"
    base = below[-1]
    return f"{base.name}+{level - base}"


@dataclass(frozen=True)
class Group:
    """Ordered bundle of attributes nested under a single key."""

    attrs: tuple["Attr", ...] = ()


@dataclass(frozen=True)
class Attr:
    """A single structured key/value pair."""

    key: str
    value: Any

    @property
    def is_group(self) -> bool:
        return isinstance(self.value, Group)


def group(key: str, /, *attrs: "Attr", **kwargs: Any) -> Attr:
    """Build a group attribute from Attrs and keyword pairs, in order."""
    return Attr(key, Group(tuple(to_attrs(attrs, kwargs))))


def to_attrs(args: Iterable[Attr] = (), kwargs: Mapping[str, Any] | None = None) -> list[Attr]:
    """Flatten positional Attrs and keyword pairs into one ordered list.

    Mapping values become groups so they nest the same way as ``group()``.
    """
    result: list[Attr] = []
    for attr in args:
        if not isinstance(attr, Attr):
            msg = f"expected Attr, got {type(attr).__name__}"
            raise TypeError(msg)
        result.append(attr)

    for key, value in (kwargs or {}).items():
        if isinstance(value, Mapping):
            result.append(group(key, **value))
        else:
            result.append(Attr(key, value))
    return result
