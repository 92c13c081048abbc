"""Logger front-end over any ``Handler``.

Mirrors the structlog call style (``log.info("event", key=value)``) while
passing an explicit request context through to the handler.
"""

from typing import Any

from ctxlog.attrs import Attr, Level, to_attrs
from ctxlog.handler import Handler
from ctxlog.record import LogRecord


class Logger:
    """Builds records and hands them to a handler.

    Example:
        >>> log = Logger(new_context_handler(HandlerConfig(format="json")))
        >>> log = log.bind(service="billing").with_group("request")
        >>> log.info("charge.created", ctx=ctx, amount=1200)

    Every emitting method calls ``_log`` directly, so the call site is always
    three frames above ``Handler.handle``.
    """

    def __init__(self, handler: Handler) -> None:
        self._handler = handler

    @property
    def handler(self) -> Handler:
        return self._handler

    def enabled(self, level: int) -> bool:
        return self._handler.enabled(level)

    def debug(self, msg: str, /, *attrs: Attr, ctx: Any = None, **kwargs: Any) -> None:
        self._log(ctx, Level.DEBUG, msg, attrs, kwargs)

    def info(self, msg: str, /, *attrs: Attr, ctx: Any = None, **kwargs: Any) -> None:
        self._log(ctx, Level.INFO, msg, attrs, kwargs)

    def warning(self, msg: str, /, *attrs: Attr, ctx: Any = None, **kwargs: Any) -> None:
        self._log(ctx, Level.WARNING, msg, attrs, kwargs)

    def error(self, msg: str, /, *attrs: Attr, ctx: Any = None, **kwargs: Any) -> None:
        self._log(ctx, Level.ERROR, msg, attrs, kwargs)

    def log(self, level: int, msg: str, /, *attrs: Attr, ctx: Any = None, **kwargs: Any) -> None:
        """Emit at an arbitrary level, including values between named levels."""
        self._log(ctx, level, msg, attrs, kwargs)

    def bind(self, *attrs: Attr, **kwargs: Any) -> "Logger":
        """Derive a logger whose records all carry the given attributes."""
        return Logger(self._handler.with_attrs(to_attrs(attrs, kwargs)))

    def with_group(self, name: str) -> "Logger":
        """Derive a logger nesting subsequent attributes under ``name``."""
        return Logger(self._handler.with_group(name))

    def _log(
        self,
        ctx: Any,
        level: int,
        msg: str,
        attrs: tuple[Attr, ...],
        kwargs: dict[str, Any],
    ) -> None:
        if not self._handler.enabled(level):
            return
        record = LogRecord(message=msg, level=level, attrs=to_attrs(attrs, kwargs))
        self._handler.handle(ctx, record)
