"""
Extraction orchestrator: ordered fallback across backend adapters with
bounded retry per adapter.
"""

from __future__ import annotations

import asyncio
from functools import partial
from typing import Any, Dict, List, Optional, Sequence, Union

import structlog

from .adapters.errors import AdapterError, AdapterErrorCode
from .adapters.protocols import Adapter
from .models import (
    DEFAULT_RETRY_POLICY,
    Backend,
    ExtractionRequest,
    Failure,
    FailureCode,
    RawExtraction,
    RetryPolicy,
    Success,
)
from .observability.metrics import record_attempt
from .retry import RetryExhaustedError, Sleep, with_retry, worst_case_latency
from .urls import InvalidUrlError, normalize_url

logger = structlog.get_logger(__name__)


def order_adapters(adapters: Sequence[Adapter], preferred: Optional[Backend] = None) -> List[Adapter]:
    """
    Fallback order for one request: the preferred adapter first, the rest in
    their injected order. An unknown preference leaves the order untouched.
    """
    ordered = list(adapters)
    if preferred is None:
        return ordered
    head = [adapter for adapter in ordered if adapter.backend is preferred]
    tail = [adapter for adapter in ordered if adapter.backend is not preferred]
    return head + tail


class ExtractionOrchestrator:
    """
    Runs the adapter cascade for a single extraction request.

    Adapters are tried strictly one after the other. Each adapter gets up to
    ``policy.max_attempts`` attempts, every attempt bounded by the request
    timeout; the first successful attempt ends the run. Per-call state lives
    in locals, so one orchestrator can serve concurrent requests.
    """

    def __init__(
        self,
        adapters: Sequence[Adapter],
        policy: RetryPolicy = DEFAULT_RETRY_POLICY,
        *,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        """
        Initialize the orchestrator.

        Args:
            adapters: Adapters in default fallback order
            policy: Retry policy applied to every adapter
            sleep: Awaitable used for backoff delays
        """
        if not adapters:
            raise ValueError("At least one adapter is required")
        backends = [adapter.backend for adapter in adapters]
        if len(set(backends)) != len(backends):
            raise ValueError(f"Duplicate backends in adapter list: {[b.value for b in backends]}")

        self._adapters = tuple(adapters)
        self.policy = policy
        self._sleep = sleep
        self.logger = logger.bind(component="ExtractionOrchestrator")

    @property
    def backends(self) -> List[Backend]:
        return [adapter.backend for adapter in self._adapters]

    def worst_case_latency(self, timeout: float) -> float:
        """Upper bound in seconds for one ``run`` with the given per-attempt timeout."""
        return worst_case_latency(self.policy, len(self._adapters), timeout)

    async def run(self, request: ExtractionRequest) -> Union[Success[RawExtraction], Failure]:
        """
        Extract the article at ``request.url``.

        Returns:
            Success with the raw extraction, the backend that produced it and
            the attempts that backend used; or a Failure (INVALID_URL or
            ALL_PARSERS_FAILED)
        """
        try:
            url = normalize_url(request.url)
        except InvalidUrlError as e:
            self.logger.info("Rejected invalid URL", url=request.url, reason=e.reason)
            return Failure(code=FailureCode.INVALID_URL, message=str(e), url=request.url)

        cascade = order_adapters(self._adapters, request.preferred_backend)
        self.logger.info(
            "Starting extraction cascade",
            url=url,
            cascade_order=[adapter.backend.value for adapter in cascade],
            timeout=request.timeout,
            max_attempts=self.policy.max_attempts,
        )

        exhausted: List[Dict[str, Any]] = []
        for adapter in cascade:
            try:
                attempted = await with_retry(
                    partial(self._attempt, adapter, url, request.timeout),
                    self.policy,
                    backend=adapter.backend,
                    retry_on=(AdapterError,),
                    sleep=self._sleep,
                    on_failure=partial(self._log_failed_attempt, adapter.backend, url),
                )
            except RetryExhaustedError as e:
                last_error = e.last_error
                self.logger.error(
                    "Backend exhausted its retries",
                    url=url,
                    backend=adapter.backend.value,
                    attempts=e.attempts,
                    error=str(last_error),
                )
                exhausted.append(
                    {
                        "backend": adapter.backend.value,
                        "attempts": e.attempts,
                        "last_error": last_error.to_dict() if isinstance(last_error, AdapterError) else str(last_error),
                    }
                )
                continue

            record_attempt(adapter.backend.value, "success")
            self.logger.info(
                "Extraction succeeded",
                url=url,
                backend=adapter.backend.value,
                attempts=attempted.attempts,
            )
            return Success(article=attempted.value, source=adapter.backend, retry_attempts=attempted.attempts)

        self.logger.error("All extraction backends failed", url=url, backends=[item["backend"] for item in exhausted])
        return Failure(
            code=FailureCode.ALL_PARSERS_FAILED,
            message=f"All {len(cascade)} extraction backends failed for {url}",
            url=url,
            details={"backends": exhausted},
        )

    async def _attempt(self, adapter: Adapter, url: str, timeout: float, attempt: int) -> RawExtraction:
        self.logger.debug("Attempting extraction", url=url, backend=adapter.backend.value, attempt=attempt)
        try:
            async with asyncio.timeout(timeout):
                return await adapter.extract(url, timeout)
        except TimeoutError:
            raise AdapterError(
                AdapterErrorCode.TIMEOUT,
                f"Attempt exceeded {timeout:g}s",
                backend=adapter.backend,
                details={"timeout": timeout},
            ) from None
        except AdapterError as e:
            tagged = e.with_backend(adapter.backend)
            if tagged is e:
                raise
            raise tagged from e

    def _log_failed_attempt(self, backend: Backend, url: str, attempt: int, error: BaseException, delay: Optional[float]) -> None:
        code = error.code.value if isinstance(error, AdapterError) else type(error).__name__
        record_attempt(backend.value, code)
        self.logger.warning(
            "Extraction attempt failed",
            url=url,
            backend=backend.value,
            attempt=attempt,
            max_attempts=self.policy.max_attempts,
            error_code=code,
            error=str(error),
            delay=delay,
        )
