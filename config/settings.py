"""Handler settings loaded from environment variables and .env files.

Uses pydantic-settings for type-safe configuration. All environment variables
are prefixed with CTXLOG_ to avoid collisions. Only plain values live here;
runtime objects (writer, extractor, static attrs, diagnostics) are passed to
``to_config`` as overrides.
"""

from typing import Any

from pydantic import field_validator
from pydantic_settings import BaseSettings

from config.logging import configure_logging
from ctxlog.attrs import Level
from ctxlog.context_handler import (
    DEFAULT_CALLER_SKIP,
    DEFAULT_PID_KEY,
    DEFAULT_SOURCE_KEY,
    HandlerConfig,
)
from ctxlog.sink import LogFormat


class HandlerSettings(BaseSettings):
    """Context handler settings loaded from environment variables and .env files."""

    # Environment, selects the diagnostics renderer
    environment: str = "development"

    # Output
    format: LogFormat = "text"
    level: int = Level.INFO

    # Enrichment
    add_source: bool = False
    source_key: str = DEFAULT_SOURCE_KEY
    caller_skip: int = DEFAULT_CALLER_SKIP
    with_pid: bool = False
    pid_key: str = DEFAULT_PID_KEY

    model_config = {"env_prefix": "CTXLOG_", "env_file": ".env"}

    @field_validator("level", mode="before")
    @classmethod
    def _parse_level(cls, value: Any) -> int:
        return Level.parse(value)

    def to_config(self, **overrides: Any) -> HandlerConfig:
        """Build a ``HandlerConfig`` from these settings.

        Args:
            **overrides: ``HandlerConfig`` fields taking precedence over the
                settings, typically ``writer``, ``extra_attrs``,
                ``context_attr_extractor`` and ``diagnostics``.

        Returns:
            A validated, frozen handler configuration.
        """
        values = self.model_dump(exclude={"environment"})
        values.update(overrides)
        return HandlerConfig(**values)

    def configure_diagnostics(self, level: str | int = "INFO") -> None:
        """Configure structlog diagnostics for this environment.

        Production renders JSON, anything else the console format.
        """
        configure_logging(self.environment, level)
