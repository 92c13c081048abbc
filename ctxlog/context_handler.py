"""Context-enriching handler decorator.

``ContextHandler`` wraps any ``Handler`` and, on every record, injects the
caller's source location and the attributes a context extractor derives from
the request context. The process id and static attributes are baked into the
wrapped sink once, at construction. Deriving with ``with_attrs``/``with_group``
returns a new ``ContextHandler``, so enrichment survives any chain of
derivations.
"""

import contextlib
import os
import sys
from collections.abc import Callable, Sequence
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ctxlog.attrs import Attr, Level
from ctxlog.context import is_background
from ctxlog.handler import Handler
from ctxlog.record import LogRecord
from ctxlog.sink import LogFormat, StreamSink
from observability.diagnostics import Diagnostics, NullDiagnostics

DEFAULT_SOURCE_KEY = "source"
DEFAULT_PID_KEY = "pid"
DEFAULT_CALLER_SKIP = 3

ContextAttrExtractor = Callable[[Any], Sequence[Attr] | None]


class HandlerConfig(BaseModel):
    """Options consumed once by ``new_context_handler``.

    Attributes:
        format: Line encoding, "json" or "text".
        level: Records below this level are dropped before enrichment. Any
            int is accepted, names are parsed with ``Level.parse``.
        add_source: Inject the call site as "<file>:<line>".
        source_key: Attribute key for the call site.
        caller_skip: Frames between ``handle`` and the call site.
        writer: Output text stream, standard output when unset.
        with_pid: Bake the process id into every record.
        pid_key: Attribute key for the process id.
        extra_attrs: Static attributes baked in after the pid, in order.
        context_attr_extractor: Derives attributes from a request context.
        diagnostics: Receives extractor failures, discarded when unset.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    format: LogFormat = "text"
    level: int = Level.INFO
    add_source: bool = False
    source_key: str = DEFAULT_SOURCE_KEY
    caller_skip: int = Field(default=DEFAULT_CALLER_SKIP, ge=0)
    writer: Any = None
    with_pid: bool = False
    pid_key: str = DEFAULT_PID_KEY
    extra_attrs: tuple[Attr, ...] = ()
    context_attr_extractor: ContextAttrExtractor | None = None
    diagnostics: Any = None

    @field_validator("level", mode="before")
    @classmethod
    def _parse_level(cls, value: Any) -> int:
        return Level.parse(value)


class ContextHandler:
    """Handler decorator adding source, context, and static attributes.

    Instances are read-only after construction and safe to share across
    threads and tasks. The wrapped handler is shared by reference with every
    derived instance.
    """

    def __init__(
        self,
        handler: Handler,
        *,
        add_source: bool = False,
        source_key: str = DEFAULT_SOURCE_KEY,
        caller_skip: int = DEFAULT_CALLER_SKIP,
        context_attr_extractor: ContextAttrExtractor | None = None,
        diagnostics: Diagnostics | None = None,
    ) -> None:
        self._handler = handler
        self._add_source = add_source
        self._source_key = source_key or DEFAULT_SOURCE_KEY
        self._caller_skip = caller_skip or DEFAULT_CALLER_SKIP
        self._extractor = context_attr_extractor
        self._diagnostics = diagnostics if diagnostics is not None else NullDiagnostics()

    @property
    def handler(self) -> Handler:
        """The wrapped handler."""
        return self._handler

    @property
    def add_source(self) -> bool:
        return self._add_source

    @property
    def source_key(self) -> str:
        return self._source_key

    @property
    def caller_skip(self) -> int:
        return self._caller_skip

    @property
    def context_attr_extractor(self) -> ContextAttrExtractor | None:
        return self._extractor

    @property
    def diagnostics(self) -> Diagnostics:
        return self._diagnostics

    def enabled(self, level: int) -> bool:
        return self._handler.enabled(level)

    def handle(self, ctx: Any, record: LogRecord) -> None:
        """Enrich ``record`` and pass it to the wrapped handler.

        Extractor failures, including results that are not ``Attr`` items,
        are reported on the diagnostics channel and the record is still
        emitted. Failures of the wrapped handler propagate.
        """
        record = record.clone()

        if self._add_source:
            source = _caller_source(self._caller_skip)
            if source is not None:
                record.add_attrs(Attr(self._source_key, source))

        if not is_background(ctx) and self._extractor is not None:
            try:
                attrs = _checked_attrs(self._extractor(ctx))
            except Exception as exc:
                self._report_extract_failure(exc)
            else:
                record.add_attrs(*attrs)

        self._handler.handle(ctx, record)

    def _report_extract_failure(self, exc: Exception) -> None:
        # A broken diagnostics channel must not cost the record.
        with contextlib.suppress(Exception):
            self._diagnostics.error(
                "context_handler.extract_failed",
                error=str(exc),
                error_type=type(exc).__name__,
            )

    def with_attrs(self, attrs: Sequence[Attr]) -> "ContextHandler":
        return self._derive(self._handler.with_attrs(attrs))

    def with_group(self, name: str) -> "ContextHandler":
        return self._derive(self._handler.with_group(name))

    def _derive(self, handler: Handler) -> "ContextHandler":
        return ContextHandler(
            handler,
            add_source=self._add_source,
            source_key=self._source_key,
            caller_skip=self._caller_skip,
            context_attr_extractor=self._extractor,
            diagnostics=self._diagnostics,
        )


def new_context_handler(config: HandlerConfig | None = None) -> ContextHandler:
    """Build a ``ContextHandler`` over a fresh ``StreamSink``.

    Args:
        config: Handler options; defaults apply when omitted.

    Returns:
        The decorator, with the pid and ``extra_attrs`` baked into its sink.
    """
    config = config or HandlerConfig()
    writer = config.writer if config.writer is not None else sys.stdout

    sink: Handler = StreamSink(writer, fmt=config.format, level=config.level)

    if config.with_pid:
        sink = sink.with_attrs([Attr(config.pid_key or DEFAULT_PID_KEY, os.getpid())])

    if config.extra_attrs:
        sink = sink.with_attrs(list(config.extra_attrs))

    return ContextHandler(
        sink,
        add_source=config.add_source,
        source_key=config.source_key,
        caller_skip=config.caller_skip,
        context_attr_extractor=config.context_attr_extractor,
        diagnostics=config.diagnostics,
    )


def _checked_attrs(attrs: Sequence[Attr] | None) -> list[Attr]:
    result = list(attrs or ())
    for attr in result:
        if not isinstance(attr, Attr):
            msg = f"extractor returned {type(attr).__name__}, expected Attr"
            raise TypeError(msg)
    return result


def _caller_source(skip: int) -> str | None:
    """Return "<file>:<line>" for the frame ``skip`` levels above the caller."""
    try:
        # +1 steps over this helper so ``skip`` counts from ``handle``.
        frame = sys._getframe(skip + 1)
    except ValueError:
        return None
    return f"{frame.f_code.co_filename}:{frame.f_lineno}"
