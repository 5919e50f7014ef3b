"""
Shared fixtures for the ArticleFlow test suite.
"""

from __future__ import annotations

from typing import AsyncGenerator, Callable, List

import pytest
import pytest_asyncio
import structlog
from hypothesis import HealthCheck, settings

from articleflow.adapters import HttpTransport
from articleflow.config import LazyConfig
from articleflow.models import Backend, RawExtraction, RetryPolicy

# ============================================================================
# Pytest Configuration
# ============================================================================


def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line("markers", "unit: Unit tests for individual components")
    config.addinivalue_line("markers", "integration: Integration tests across modules")


# Profile for every @given test; the autouse reset fixture runs once per test.
settings.register_profile(
    "articleflow",
    deadline=None,
    suppress_health_check=[HealthCheck.function_scoped_fixture],
)
settings.load_profile("articleflow")


# ============================================================================
# Core Test Fixtures
# ============================================================================


@pytest.fixture(autouse=True)
def reset_global_state():
    """Undo logging configuration and cached settings between tests."""
    yield
    structlog.reset_defaults()
    structlog.contextvars.clear_contextvars()
    LazyConfig.reset()


class RecordingSleep:
    """Stand-in for ``asyncio.sleep`` that records delays without waiting."""

    def __init__(self) -> None:
        self.delays: List[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


@pytest.fixture
def recording_sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def fast_policy() -> RetryPolicy:
    return RetryPolicy(max_attempts=3, base_delay=1.0, backoff_factor=2.0)


@pytest_asyncio.fixture
async def transport() -> AsyncGenerator[HttpTransport, None]:
    async with HttpTransport() as t:
        yield t


@pytest.fixture
def make_raw() -> Callable[..., RawExtraction]:
    """Factory for RawExtraction records with sensible defaults."""

    def _make(**overrides) -> RawExtraction:
        fields = {
            "url": "https://example.com/post",
            "title": "A reasonably long article title",
            "author": "Jane Doe",
            "content": "<p>Hello world, this is the article body.</p>",
        }
        fields.update(overrides)
        return RawExtraction(**fields)

    return _make


class FakeAdapter:
    """
    Scripted adapter: each call pops the next outcome; an exception is raised,
    anything else is returned.
    """

    def __init__(self, backend: Backend, outcomes: list) -> None:
        self.backend = backend
        self._outcomes = list(outcomes)
        self.calls: List[str] = []

    async def extract(self, url: str, timeout: float) -> RawExtraction:
        self.calls.append(url)
        outcome = self._outcomes.pop(0) if len(self._outcomes) > 1 else self._outcomes[0]
        if callable(outcome):
            outcome = await outcome(url, timeout)
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome


@pytest.fixture
def fake_adapter_cls():
    return FakeAdapter
