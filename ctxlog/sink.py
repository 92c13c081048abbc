"""Terminal sink: renders records as JSON or logfmt lines on a text stream.

Rendering is delegated to structlog's ``JSONRenderer`` and ``LogfmtRenderer``.
The sink itself only decides where attributes land:

- attrs added with ``with_attrs`` sit under the groups open when they were
  added;
- record attrs sit under every group open on the sink;
- groups without any attributes are dropped.

In text output, whitespace, ``=`` and ``"`` in keys are replaced by ``_``.
"""

import re
import threading
from collections.abc import Sequence
from datetime import datetime
from typing import Any, Literal, TextIO

import structlog

from ctxlog.attrs import Attr, Group, Level, level_name
from ctxlog.record import LogRecord

LogFormat = Literal["json", "text"]

TIME_KEY = "time"
LEVEL_KEY = "level"
MESSAGE_KEY = "msg"

# logfmt cannot carry these inside a key.
_LOGFMT_KEY_UNSAFE = re.compile(r"[\s=\"]")


class StreamSink:
    """Writes one rendered line per record to ``writer``.

    A sink and every sink derived from it share the same writer and the same
    lock, so lines from concurrent emitters never interleave.
    """

    def __init__(
        self,
        writer: TextIO,
        *,
        fmt: LogFormat = "text",
        level: int = Level.INFO,
    ) -> None:
        if fmt not in ("json", "text"):
            msg = f"unknown log format: {fmt!r}"
            raise ValueError(msg)

        self.writer = writer
        self.format: LogFormat = fmt
        self.level = level
        self._lock = threading.Lock()
        self._preformatted: tuple[tuple[tuple[str, ...], tuple[Attr, ...]], ...] = ()
        self._groups: tuple[str, ...] = ()

        if fmt == "json":
            self._renderer = structlog.processors.JSONRenderer()
        else:
            self._renderer = structlog.processors.LogfmtRenderer(
                key_order=[TIME_KEY, LEVEL_KEY, MESSAGE_KEY],
                bool_as_flag=False,
            )

    def enabled(self, level: int) -> bool:
        return level >= self.level

    def handle(self, ctx: Any, record: LogRecord) -> None:
        line = self.render(record)
        with self._lock:
            self.writer.write(line)
            flush = getattr(self.writer, "flush", None)
            if flush is not None:
                flush()

    def with_attrs(self, attrs: Sequence[Attr]) -> "StreamSink":
        if not attrs:
            return self
        derived = self._derive()
        derived._preformatted = (*self._preformatted, (self._groups, tuple(attrs)))
        return derived

    def with_group(self, name: str) -> "StreamSink":
        if not name:
            return self
        derived = self._derive()
        derived._groups = (*self._groups, name)
        return derived

    def render(self, record: LogRecord) -> str:
        """Render ``record`` as a single newline-terminated line."""
        event: dict[str, Any] = {
            TIME_KEY: record.time.isoformat(),
            LEVEL_KEY: level_name(record.level),
            MESSAGE_KEY: record.message,
        }
        for groups, attrs in self._preformatted:
            _insert(event, groups, attrs)
        _insert(event, self._groups, record.attrs)

        if self.format == "text":
            event = _flatten(event)
        return self._renderer(None, "", event) + "\n"

    def _derive(self) -> "StreamSink":
        derived = object.__new__(StreamSink)
        derived.__dict__.update(self.__dict__)
        return derived


def _insert(event: dict[str, Any], path: Sequence[str], attrs: Sequence[Attr]) -> None:
    resolved = _resolve(attrs)
    if not resolved:
        return

    target = event
    for name in path:
        nested = target.get(name)
        if not isinstance(nested, dict):
            nested = {}
            target[name] = nested
        target = nested
    _merge(target, resolved)


def _resolve(attrs: Sequence[Attr]) -> dict[str, Any]:
    resolved: dict[str, Any] = {}
    for attr in attrs:
        if isinstance(attr.value, Group):
            nested = _resolve(attr.value.attrs)
            if not nested:
                continue
            if attr.key:
                existing = resolved.get(attr.key)
                if isinstance(existing, dict):
                    _merge(existing, nested)
                else:
                    resolved[attr.key] = nested
            else:
                _merge(resolved, nested)
        elif attr.key == "" and attr.value is None:
            continue
        else:
            resolved[attr.key] = _plain(attr.value)
    return resolved


def _merge(target: dict[str, Any], source: dict[str, Any]) -> None:
    for key, value in source.items():
        existing = target.get(key)
        if isinstance(existing, dict) and isinstance(value, dict):
            _merge(existing, value)
        else:
            target[key] = value


def _plain(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, dict):
        # Copied so group merging never writes into caller-owned dicts.
        return {key: _plain(item) for key, item in value.items()}
    return value


def _flatten(event: dict[str, Any], prefix: str = "") -> dict[str, Any]:
    flat: dict[str, Any] = {}
    for key, value in event.items():
        name = f"{prefix}{_LOGFMT_KEY_UNSAFE.sub('_', str(key))}"
        if isinstance(value, dict):
            flat.update(_flatten(value, f"{name}."))
        else:
            flat[name] = value
    return flat
