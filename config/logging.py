"""Structlog configuration for the library's own diagnostics.

Diagnostics (e.g. context extraction failures) go to stderr, never to the
writer of the handler that reported them. JSON output in production, pretty
console in development.
"""

import sys

import structlog

from ctxlog.attrs import Level


def configure_logging(environment: str = "development", level: str | int = "INFO") -> None:
    """Configure structlog for diagnostics output.

    Args:
        environment: One of "development" or "production". Controls output format.
        level: Minimum diagnostic level, a level name or number.
    """
    processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
    ]

    if environment == "production":
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=False))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(int(Level.parse(level))),
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )
