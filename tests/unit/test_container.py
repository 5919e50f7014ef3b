"""
Tests for adapter wiring and the DependencyContainer lifecycle.
"""

from __future__ import annotations

import pytest
import yaml

from articleflow.adapters import ExtractApiAdapter, HttpTransport, ScraperAdapter, StructuredExtractionAdapter
from articleflow.config import Config
from articleflow.container import DependencyContainer, build_adapters
from articleflow.models import Backend
from articleflow.pipeline import ArticlePipeline


def full_config(**backends) -> Config:
    settings = {
        "structured_url": "https://mercury.example.com/parser",
        "extract_api_key": "secret",
        "scraper_fetch_url": "https://fetch.example.com",
    }
    settings.update(backends)
    return Config(backends=settings)


@pytest.mark.unit
class TestBuildAdapters:
    def test_all_backends_in_default_order(self):
        adapters = build_adapters(full_config(), HttpTransport())

        assert [type(a) for a in adapters] == [StructuredExtractionAdapter, ExtractApiAdapter, ScraperAdapter]
        assert [a.backend for a in adapters] == [Backend.STRUCTURED, Backend.EXTRACT_API, Backend.SCRAPER]

    def test_configured_order(self):
        adapters = build_adapters(full_config(order=["scraper", "mercury"]), HttpTransport())
        assert [a.backend for a in adapters] == [Backend.SCRAPER, Backend.STRUCTURED]

    def test_unconfigured_backends_are_skipped(self):
        adapters = build_adapters(Config(), HttpTransport())
        assert [a.backend for a in adapters] == [Backend.SCRAPER]

    def test_scraper_fetch_proxy(self):
        (scraper,) = build_adapters(full_config(order=["scraper"]), HttpTransport())
        assert scraper.fetch_url == "https://fetch.example.com"

    def test_nothing_configured(self):
        config = Config(backends={"order": ["mercury", "rapidapi"]})
        with pytest.raises(ValueError, match="No extraction backend"):
            build_adapters(config, HttpTransport())


@pytest.mark.unit
class TestDependencyContainer:
    @pytest.mark.asyncio
    async def test_lifecycle(self):
        container = DependencyContainer(full_config())
        assert container.is_running is False

        async with container:
            assert container.is_running is True
            transport = await container.get_transport()
            assert transport.session is not None
            assert await container.get_transport() is transport

        assert container.is_running is False
        assert transport.session is None

    @pytest.mark.asyncio
    async def test_context_exit_closes_transport_on_error(self):
        container = DependencyContainer(full_config())

        with pytest.raises(RuntimeError, match="ingestion blew up"):
            async with container:
                transport = await container.get_transport()
                raise RuntimeError("ingestion blew up")

        assert container.is_running is False
        assert transport.session is None

    def test_context_manager_is_the_only_lifecycle_entry_point(self):
        assert not hasattr(DependencyContainer, "lifecycle")

    @pytest.mark.asyncio
    async def test_shutdown_is_idempotent(self):
        container = DependencyContainer(Config())
        await container.initialize()
        await container.shutdown()
        await container.shutdown()
        assert container.is_running is False

    @pytest.mark.asyncio
    async def test_transport_uses_configured_proxy(self):
        config = Config(transport={"proxy_prefix": "https://proxy.example.com/", "user_agent": "test-agent"})
        async with DependencyContainer(config) as container:
            transport = await container.get_transport()
            assert transport.proxy_prefix == "https://proxy.example.com"
            assert transport.user_agent == "test-agent"

    @pytest.mark.asyncio
    async def test_pipeline_is_built_once(self):
        async with DependencyContainer(full_config()) as container:
            pipeline = await container.get_pipeline()
            assert isinstance(pipeline, ArticlePipeline)
            assert await container.get_pipeline() is pipeline
            assert pipeline.orchestrator.backends == [Backend.STRUCTURED, Backend.EXTRACT_API, Backend.SCRAPER]

    @pytest.mark.asyncio
    async def test_orchestrator_uses_configured_retry(self, recording_sleep):
        config = Config(retry={"max_attempts": 4, "base_delay": 0.5})
        async with DependencyContainer(config, sleep=recording_sleep) as container:
            orchestrator = await container.get_orchestrator()
        assert orchestrator.policy.max_attempts == 4
        assert orchestrator.policy.base_delay == 0.5

    @pytest.mark.asyncio
    async def test_loads_config_from_path(self, tmp_path):
        path = tmp_path / "articleflow.yaml"
        path.write_text(yaml.safe_dump({"retry": {"max_attempts": 2}}), encoding="utf-8")

        async with DependencyContainer(config_path=path) as container:
            assert container.config.retry.max_attempts == 2

    @pytest.mark.asyncio
    async def test_missing_path_uses_defaults(self, tmp_path):
        async with DependencyContainer(config_path=tmp_path / "absent.yaml") as container:
            assert container.config == Config()
