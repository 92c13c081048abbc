"""Diagnostic side channel for failures the handler recovers from.

A context handler never reports its own failures through itself: doing so
would re-enter the sink mid-emit. Instead it is given a separate diagnostics
channel at construction. Any structlog logger satisfies the protocol.
"""

from typing import Any, Protocol

import structlog


class Diagnostics(Protocol):
    """Receiver for recovered-failure events."""

    def error(self, event: str, **kw: Any) -> Any: ...


class NullDiagnostics:
    """Discards every diagnostic. Used when no channel is configured."""

    def error(self, event: str, **kw: Any) -> None:
        return None


def structlog_diagnostics(name: str = "ctxlog") -> Diagnostics:
    """Return a structlog logger to use as a handler's diagnostics channel.

    Output follows the process-wide structlog configuration, see
    ``config.logging.configure_logging``.
    """
    return structlog.get_logger(name)
