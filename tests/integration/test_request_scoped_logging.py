"""Integration tests: request-scoped enrichment under concurrent emitters."""

import asyncio
import io
import os
import re
from concurrent.futures import ThreadPoolExecutor

import structlog

from ctxlog.attrs import Attr
from ctxlog.context import Context
from ctxlog.context_handler import HandlerConfig, new_context_handler
from ctxlog.logger import Logger
from observability.extractors import chain_extractors, contextvars_extractor, values_extractor
from tests.conftest import RecordingDiagnostics, json_lines


def build_logger(buf: io.StringIO, **options: object) -> Logger:
    config = HandlerConfig(
        format="json",
        writer=buf,
        with_pid=True,
        add_source=True,
        extra_attrs=(Attr("service", "checkout"),),
        **options,
    )
    return Logger(new_context_handler(config))


class TestAsyncRequests:
    async def test_each_task_sees_its_own_contextvars(self, buf: io.StringIO) -> None:
        log = build_logger(buf, context_attr_extractor=contextvars_extractor)

        async def handle_request(request_id: str) -> None:
            structlog.contextvars.bind_contextvars(request_id=request_id)
            await asyncio.sleep(0)
            log.info("request.handled", ctx=Context().with_value("request_id", request_id))

        await asyncio.gather(*(handle_request(f"req-{i}") for i in range(20)))

        lines = json_lines(buf)
        assert len(lines) == 20
        assert {line["request_id"] for line in lines} == {f"req-{i}" for i in range(20)}
        assert all(line["pid"] == os.getpid() for line in lines)
        assert all(line["service"] == "checkout" for line in lines)

    async def test_background_context_skips_contextvars(self, buf: io.StringIO) -> None:
        log = build_logger(buf, context_attr_extractor=contextvars_extractor)
        structlog.contextvars.bind_contextvars(request_id="req-1")

        log.info("startup", ctx=Context.background())

        assert "request_id" not in json_lines(buf)[0]


class TestThreadedRequests:
    def test_concurrent_emitters_write_whole_lines(self, buf: io.StringIO) -> None:
        diagnostics = RecordingDiagnostics()
        log = build_logger(
            buf,
            context_attr_extractor=chain_extractors(values_extractor("request_id", "user_id")),
            diagnostics=diagnostics,
        )
        request_log = log.bind(component="api").with_group("request")

        def handle_request(i: int) -> None:
            ctx = Context().with_values(request_id=f"req-{i}", user_id=f"user-{i % 3}")
            request_log.info("request.handled", ctx=ctx, attempt=i)

        with ThreadPoolExecutor(max_workers=8) as pool:
            list(pool.map(handle_request, range(100)))

        lines = json_lines(buf)
        assert len(lines) == 100
        assert diagnostics.events == []
        for line in lines:
            group = line["request"]
            assert line["component"] == "api"
            assert group["request_id"] == f"req-{group['attempt']}"
            assert re.match(r".+\.py:\d+$", group["source"])

    def test_failing_extractor_reports_once_per_record(self, buf: io.StringIO) -> None:
        diagnostics = RecordingDiagnostics()

        def broken(ctx: Context) -> list[Attr]:
            raise KeyError(ctx.value("request_id"))

        log = build_logger(buf, context_attr_extractor=broken, diagnostics=diagnostics)
        for i in range(3):
            log.warning("payment.retry", ctx=Context().with_value("request_id", f"req-{i}"))

        lines = json_lines(buf)
        assert [line["msg"] for line in lines] == ["payment.retry"] * 3
        assert len(diagnostics.events) == 3
        assert {event["error_type"] for event in diagnostics.events} == {"KeyError"}
