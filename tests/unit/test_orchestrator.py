"""
Unit tests for the extraction orchestrator: ordering, fallback, retry and
failure reporting.
"""

from __future__ import annotations

import asyncio

import pytest
from structlog.testing import capture_logs

from articleflow.adapters.errors import AdapterError, AdapterErrorCode
from articleflow.models import Backend, ExtractionRequest, Failure, FailureCode, RawExtraction, RetryPolicy, Success
from articleflow.orchestrator import ExtractionOrchestrator, order_adapters

from tests.helpers import metric_delta

URL = "https://example.com/post"


def _raw(content: str = "<p>Body</p>") -> RawExtraction:
    return RawExtraction(url=URL, title="Title", author=None, content=content)


def _error(code: AdapterErrorCode = AdapterErrorCode.NETWORK) -> AdapterError:
    return AdapterError(code, f"{code.value.lower()} failure")


@pytest.fixture
def adapters(fake_adapter_cls):
    return [
        fake_adapter_cls(Backend.STRUCTURED, [_raw("<p>structured</p>")]),
        fake_adapter_cls(Backend.EXTRACT_API, [_raw("<p>extract api</p>")]),
        fake_adapter_cls(Backend.SCRAPER, [_raw("<p>scraper</p>")]),
    ]


@pytest.mark.unit
class TestOrderAdapters:
    def test_default_order_is_injected_order(self, adapters):
        assert order_adapters(adapters, None) == adapters

    def test_preferred_adapter_moves_first(self, adapters):
        ordered = order_adapters(adapters, Backend.SCRAPER)
        assert [a.backend for a in ordered] == [Backend.SCRAPER, Backend.STRUCTURED, Backend.EXTRACT_API]

    def test_preferred_adapter_not_present(self, adapters):
        assert order_adapters(adapters[:2], Backend.SCRAPER) == adapters[:2]

    def test_input_is_not_mutated(self, adapters):
        snapshot = list(adapters)
        order_adapters(adapters, Backend.EXTRACT_API)
        assert adapters == snapshot


@pytest.mark.unit
class TestExtractionOrchestrator:
    def test_requires_adapters(self):
        with pytest.raises(ValueError):
            ExtractionOrchestrator([])

    def test_rejects_duplicate_backends(self, fake_adapter_cls):
        with pytest.raises(ValueError):
            ExtractionOrchestrator(
                [fake_adapter_cls(Backend.SCRAPER, [_raw()]), fake_adapter_cls(Backend.SCRAPER, [_raw()])]
            )

    @pytest.mark.asyncio
    async def test_invalid_url_fails_without_calling_adapters(self, adapters, recording_sleep):
        orchestrator = ExtractionOrchestrator(adapters, sleep=recording_sleep)

        result = await orchestrator.run(ExtractionRequest(url="ftp://example.com/file"))

        assert isinstance(result, Failure)
        assert result.code is FailureCode.INVALID_URL
        assert result.url == "ftp://example.com/file"
        assert all(not adapter.calls for adapter in adapters)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("preferred", list(Backend))
    async def test_first_attempt_success_reports_source(self, adapters, recording_sleep, preferred):
        orchestrator = ExtractionOrchestrator(adapters, sleep=recording_sleep)

        result = await orchestrator.run(ExtractionRequest(url=URL, preferred_backend=preferred))

        assert isinstance(result, Success)
        assert result.source is preferred
        assert result.retry_attempts == 1
        assert recording_sleep.delays == []

    @pytest.mark.asyncio
    async def test_adapters_receive_normalized_url(self, adapters, recording_sleep):
        orchestrator = ExtractionOrchestrator(adapters, sleep=recording_sleep)

        await orchestrator.run(ExtractionRequest(url="  Example.com/post "))

        assert adapters[0].calls == [URL]

    @pytest.mark.asyncio
    async def test_retry_then_success_counts_attempts(self, fake_adapter_cls, recording_sleep):
        flaky = fake_adapter_cls(Backend.STRUCTURED, [_error(), _error(AdapterErrorCode.EMPTY_CONTENT), _raw()])
        orchestrator = ExtractionOrchestrator([flaky], sleep=recording_sleep)

        result = await orchestrator.run(ExtractionRequest(url=URL))

        assert isinstance(result, Success)
        assert result.retry_attempts == 3
        assert recording_sleep.delays == [1.0, 2.0]

    @pytest.mark.asyncio
    async def test_falls_back_after_exhausting_first_adapter(self, fake_adapter_cls, recording_sleep):
        call_log = []

        class Tracking:
            def __init__(self, backend, outcomes):
                self.inner = fake_adapter_cls(backend, outcomes)
                self.backend = backend

            async def extract(self, url, timeout):
                call_log.append(self.backend)
                return await self.inner.extract(url, timeout)

        first = Tracking(Backend.STRUCTURED, [_error()])
        second = Tracking(Backend.EXTRACT_API, [_raw()])
        orchestrator = ExtractionOrchestrator([first, second], RetryPolicy(max_attempts=3), sleep=recording_sleep)

        result = await orchestrator.run(ExtractionRequest(url=URL))

        assert isinstance(result, Success)
        assert result.source is Backend.EXTRACT_API
        assert result.retry_attempts == 1
        assert call_log == [Backend.STRUCTURED] * 3 + [Backend.EXTRACT_API]
        assert recording_sleep.delays == [1.0, 2.0]

    @pytest.mark.asyncio
    async def test_all_adapters_failing(self, fake_adapter_cls, recording_sleep):
        failing = [
            fake_adapter_cls(Backend.STRUCTURED, [_error(AdapterErrorCode.NETWORK)]),
            fake_adapter_cls(Backend.EXTRACT_API, [_error(AdapterErrorCode.MALFORMED_RESPONSE)]),
            fake_adapter_cls(Backend.SCRAPER, [_error(AdapterErrorCode.EMPTY_CONTENT)]),
        ]
        orchestrator = ExtractionOrchestrator(failing, RetryPolicy(max_attempts=2), sleep=recording_sleep)

        result = await orchestrator.run(ExtractionRequest(url="example.com/post"))

        assert isinstance(result, Failure)
        assert result.code is FailureCode.ALL_PARSERS_FAILED
        assert result.url == URL
        assert URL in result.message
        assert sum(len(adapter.calls) for adapter in failing) == 3 * 2

        backends = result.details["backends"]
        assert [entry["backend"] for entry in backends] == ["mercury", "rapidapi", "scraper"]
        assert all(entry["attempts"] == 2 for entry in backends)
        assert backends[1]["last_error"]["code"] == "MALFORMED_RESPONSE"
        assert backends[1]["last_error"]["backend"] == "rapidapi"

    @pytest.mark.asyncio
    async def test_slow_attempt_times_out(self, fake_adapter_cls, recording_sleep):
        async def hang(url, timeout):
            await asyncio.sleep(10)

        slow = fake_adapter_cls(Backend.STRUCTURED, [hang])
        fallback = fake_adapter_cls(Backend.SCRAPER, [_raw()])
        orchestrator = ExtractionOrchestrator([slow, fallback], RetryPolicy(max_attempts=2), sleep=recording_sleep)

        with capture_logs() as logs:
            result = await orchestrator.run(ExtractionRequest(url=URL, timeout=0.01))

        assert isinstance(result, Success)
        assert result.source is Backend.SCRAPER
        timeouts = [entry for entry in logs if entry["event"] == "Extraction attempt failed"]
        assert [entry["error_code"] for entry in timeouts] == ["TIMEOUT", "TIMEOUT"]

    @pytest.mark.asyncio
    async def test_programming_errors_are_not_retried(self, fake_adapter_cls, recording_sleep):
        buggy = fake_adapter_cls(Backend.STRUCTURED, [TypeError("bug")])
        orchestrator = ExtractionOrchestrator([buggy], sleep=recording_sleep)

        with pytest.raises(TypeError):
            await orchestrator.run(ExtractionRequest(url=URL))
        assert len(buggy.calls) == 1

    @pytest.mark.asyncio
    async def test_logs_each_failed_attempt_and_exhaustion(self, fake_adapter_cls, recording_sleep):
        failing = fake_adapter_cls(Backend.STRUCTURED, [_error()])
        working = fake_adapter_cls(Backend.SCRAPER, [_raw()])
        orchestrator = ExtractionOrchestrator([failing, working], sleep=recording_sleep)

        with capture_logs() as logs:
            await orchestrator.run(ExtractionRequest(url=URL))

        warnings = [entry for entry in logs if entry["log_level"] == "warning"]
        assert [entry["attempt"] for entry in warnings] == [1, 2, 3]
        assert [entry["delay"] for entry in warnings] == [1.0, 2.0, None]
        assert all(entry["backend"] == "mercury" for entry in warnings)
        exhausted = [entry for entry in logs if entry["event"] == "Backend exhausted its retries"]
        assert len(exhausted) == 1
        assert exhausted[0]["log_level"] == "error"

    @pytest.mark.asyncio
    async def test_records_attempt_metrics(self, fake_adapter_cls, recording_sleep):
        flaky = fake_adapter_cls(Backend.EXTRACT_API, [_error(AdapterErrorCode.TIMEOUT), _raw()])
        orchestrator = ExtractionOrchestrator([flaky], sleep=recording_sleep)

        labels_failed = {"backend": "rapidapi", "outcome": "TIMEOUT"}
        labels_ok = {"backend": "rapidapi", "outcome": "success"}
        with metric_delta("articleflow_adapter_attempts_total", labels_failed):
            with metric_delta("articleflow_adapter_attempts_total", labels_ok):
                await orchestrator.run(ExtractionRequest(url=URL))

    @pytest.mark.asyncio
    async def test_cancellation_propagates_through_backoff(self, fake_adapter_cls):
        failing = fake_adapter_cls(Backend.STRUCTURED, [_error()])
        orchestrator = ExtractionOrchestrator([failing], RetryPolicy(base_delay=60.0))

        task = asyncio.create_task(orchestrator.run(ExtractionRequest(url=URL)))
        while not failing.calls:
            await asyncio.sleep(0)
        task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await task
        assert len(failing.calls) == 1

    def test_worst_case_latency(self, adapters):
        orchestrator = ExtractionOrchestrator(adapters, RetryPolicy(max_attempts=2, base_delay=1.0))
        # 3 x (2 x 5s + 1s)
        assert orchestrator.worst_case_latency(5.0) == 33.0
