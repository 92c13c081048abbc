"""The per-emission log record."""

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone

from ctxlog.attrs import Attr


@dataclass
class LogRecord:
    """A single log emission.

    Attributes:
        message: The human-readable event message.
        level: Record severity (a ``Level`` or any int between levels).
        time: Emission timestamp, UTC.
        attrs: Ordered attributes attached at the call site or by enrichment.
    """

    message: str
    level: int
    time: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    attrs: list[Attr] = field(default_factory=list)

    def add_attrs(self, *attrs: Attr) -> None:
        self.attrs.extend(attrs)

    def clone(self) -> "LogRecord":
        """Copy the record so appended attrs do not leak into the original."""
        return replace(self, attrs=list(self.attrs))
