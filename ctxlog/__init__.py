"""Context-enriching structured logging handlers."""

from ctxlog.attrs import Attr, Group, Level, group
from ctxlog.context import Context, is_background
from ctxlog.context_handler import ContextHandler, HandlerConfig, new_context_handler
from ctxlog.handler import Handler
from ctxlog.logger import Logger
from ctxlog.record import LogRecord
from ctxlog.sink import StreamSink

__all__ = [
    "Attr",
    "Group",
    "Level",
    "group",
    "Context",
    "is_background",
    "ContextHandler",
    "HandlerConfig",
    "new_context_handler",
    "Handler",
    "Logger",
    "LogRecord",
    "StreamSink",
]
