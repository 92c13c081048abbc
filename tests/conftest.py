"""Shared test fixtures for the ctxlog handlers."""

import io
import json
from collections.abc import Iterator
from typing import Any

import pytest
import structlog

from ctxlog.attrs import Attr
from ctxlog.context import Context
from ctxlog.context_handler import HandlerConfig, new_context_handler
from ctxlog.logger import Logger


class RecordingDiagnostics:
    """A diagnostics channel that keeps every event it receives."""

    def __init__(self) -> None:
        self.events: list[dict[str, Any]] = []

    def error(self, event: str, **kw: Any) -> None:
        self.events.append({"event": event, **kw})


class CountingExtractor:
    """An extractor returning fixed attributes and counting its calls."""

    def __init__(self, attrs: list[Attr] | None = None) -> None:
        self.attrs = attrs if attrs is not None else [Attr("request_id", "req-123")]
        self.calls = 0

    def __call__(self, ctx: Any) -> list[Attr]:
        self.calls += 1
        return list(self.attrs)


class FailingExtractor:
    """An extractor that always raises."""

    def __init__(self, message: str = "context error") -> None:
        self.message = message
        self.calls = 0

    def __call__(self, ctx: Any) -> list[Attr]:
        self.calls += 1
        raise LookupError(self.message)


class BrokenWriter:
    """A text stream whose writes always fail."""

    def write(self, data: str) -> int:
        msg = "disk full"
        raise OSError(msg)


def json_lines(buf: io.StringIO) -> list[dict[str, Any]]:
    """Parse every line written to ``buf`` as JSON."""
    return [json.loads(line) for line in buf.getvalue().splitlines() if line]


@pytest.fixture
def buf() -> io.StringIO:
    return io.StringIO()


@pytest.fixture
def diagnostics() -> RecordingDiagnostics:
    return RecordingDiagnostics()


@pytest.fixture
def request_ctx() -> Context:
    return Context().with_values(request_id="req-123", user_id="user-1")


@pytest.fixture
def json_logger(buf: io.StringIO) -> Logger:
    return Logger(new_context_handler(HandlerConfig(format="json", writer=buf)))


@pytest.fixture(autouse=True)
def _reset_structlog() -> Iterator[None]:
    """Undo any structlog configuration or bound contextvars a test leaves behind."""
    yield
    structlog.contextvars.clear_contextvars()
    structlog.reset_defaults()
