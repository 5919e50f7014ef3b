"""
Bounded retry with exponential backoff.

``with_retry`` is the only retry loop in the pipeline; adapters never retry
on their own, so the backoff schedule can be read off the policy alone.
"""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, List, Optional, Tuple, Type, TypeVar

from .models import DEFAULT_RETRY_POLICY, Attempted, Backend, RetryPolicy

T = TypeVar("T")

Sleep = Callable[[float], Awaitable[None]]
FailureHook = Callable[[int, BaseException, Optional[float]], None]


class RetryExhaustedError(Exception):
    """Every attempt allowed by the policy failed."""

    def __init__(self, backend: Optional[Backend], attempts: int, last_error: BaseException) -> None:
        label = backend.value if backend else "operation"
        super().__init__(f"{label} gave up after {attempts} attempt(s): {last_error}")
        self.backend = backend
        self.attempts = attempts
        self.last_error = last_error


def backoff_schedule(policy: RetryPolicy = DEFAULT_RETRY_POLICY) -> List[float]:
    """Delays slept between consecutive attempts (``max_attempts - 1`` entries)."""
    return [policy.delay_after(attempt) for attempt in range(1, policy.max_attempts)]


def worst_case_latency(policy: RetryPolicy, adapter_count: int, timeout: float) -> float:
    """
    Hard upper bound in seconds for one orchestration.

    Every adapter may use all of its attempts, each running into the
    per-attempt timeout, plus the backoff sleeps in between.
    """
    per_adapter = policy.max_attempts * timeout + sum(backoff_schedule(policy))
    return adapter_count * per_adapter


async def with_retry(
    operation: Callable[[int], Awaitable[T]],
    policy: RetryPolicy = DEFAULT_RETRY_POLICY,
    *,
    backend: Optional[Backend] = None,
    retry_on: Tuple[Type[BaseException], ...] = (Exception,),
    sleep: Sleep = asyncio.sleep,
    on_failure: Optional[FailureHook] = None,
) -> Attempted[T]:
    """
    Run ``operation`` until it succeeds or the policy's attempts run out.

    Args:
        operation: Coroutine factory, called with the 1-based attempt number
        policy: Attempt limit and backoff parameters
        backend: Backend being retried, carried on the exhaustion error
        retry_on: Exception types counted as a failed attempt; anything else propagates
        sleep: Awaitable used for backoff delays
        on_failure: Called with (attempt, error, next_delay) after every failed
            attempt; ``next_delay`` is None after the last one

    Returns:
        Attempted wrapper with the value and the number of attempts used

    Raises:
        RetryExhaustedError: If every attempt failed
    """
    last_error: Optional[BaseException] = None

    for attempt in range(1, policy.max_attempts + 1):
        try:
            value = await operation(attempt)
            return Attempted(value=value, attempts=attempt)
        except retry_on as e:
            last_error = e
            is_last = attempt >= policy.max_attempts
            delay = None if is_last else policy.delay_after(attempt)
            if on_failure is not None:
                on_failure(attempt, e, delay)
            if delay is not None:
                await sleep(delay)

    assert last_error is not None
    raise RetryExhaustedError(backend, policy.max_attempts, last_error) from last_error
