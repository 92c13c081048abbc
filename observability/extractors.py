"""Built-in context-attribute extractors.

An extractor maps a request context to an ordered list of attributes, or
raises. ``ContextHandler`` only calls it for non-background contexts.
"""

from collections.abc import Sequence
from typing import Any

import structlog
from opentelemetry import trace

from ctxlog.attrs import Attr
from ctxlog.context_handler import ContextAttrExtractor

OTEL_CONTEXT_KEY = "otel_context"


def values_extractor(*keys: str) -> ContextAttrExtractor:
    """Build an extractor copying the named ``Context`` values, in order.

    Keys absent from the context are skipped.

    Args:
        *keys: Context value keys, also used as attribute keys.

    Returns:
        The extractor.
    """
    missing = object()

    def extract(ctx: Any) -> list[Attr]:
        attrs: list[Attr] = []
        for key in keys:
            value = ctx.value(key, missing)
            if value is not missing:
                attrs.append(Attr(key, value))
        return attrs

    return extract


def contextvars_extractor(ctx: Any) -> list[Attr]:
    """Attributes bound with ``structlog.contextvars.bind_contextvars``.

    The values live in ``contextvars``, so each thread and asyncio task sees
    only what it bound itself.
    """
    return [Attr(key, value) for key, value in structlog.contextvars.get_contextvars().items()]


def trace_extractor(ctx: Any) -> list[Attr]:
    """Trace and span ids of the active OpenTelemetry span.

    The OTel context is read from the ``OTEL_CONTEXT_KEY`` value of ``ctx``,
    falling back to the current OTel context.
    """
    otel_context = ctx.value(OTEL_CONTEXT_KEY) if hasattr(ctx, "value") else None
    span_context = trace.get_current_span(otel_context).get_span_context()
    if not span_context.is_valid:
        return []
    return [
        Attr("trace_id", f"{span_context.trace_id:032x}"),
        Attr("span_id", f"{span_context.span_id:016x}"),
    ]


def chain_extractors(*extractors: ContextAttrExtractor) -> ContextAttrExtractor:
    """Concatenate several extractors; the first failure propagates."""

    def extract(ctx: Any) -> list[Attr]:
        attrs: list[Attr] = []
        for extractor in extractors:
            result: Sequence[Attr] | None = extractor(ctx)
            if result:
                attrs.extend(result)
        return attrs

    return extract
