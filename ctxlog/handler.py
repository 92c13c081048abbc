"""The four-operation handler contract shared by sinks and decorators."""

from collections.abc import Sequence
from typing import Any, Protocol, runtime_checkable

from ctxlog.attrs import Attr
from ctxlog.record import LogRecord


@runtime_checkable
class Handler(Protocol):
    """Anything that can filter, emit, and derive log handlers.

    Implementations must not mutate themselves in ``with_attrs`` or
    ``with_group``; both return a handler carrying the extra state.
    """

    def enabled(self, level: int) -> bool:
        """Report whether records at ``level`` would be emitted."""
        ...

    def handle(self, ctx: Any, record: LogRecord) -> None:
        """Emit ``record``. Write failures are raised to the caller."""
        ...

    def with_attrs(self, attrs: Sequence[Attr]) -> "Handler":
        """Return a handler that adds ``attrs`` to every record."""
        ...

    def with_group(self, name: str) -> "Handler":
        """Return a handler that nests subsequent attrs under ``name``."""
        ...
