"""
Dependency injection container wiring configuration into the transport,
adapters and pipeline.
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any, Callable, Dict, Generic, List, Optional, TypeVar
from uuid import uuid4

import structlog

from articleflow.adapters import (
    Adapter,
    ExtractApiAdapter,
    HttpTransport,
    ScraperAdapter,
    StructuredExtractionAdapter,
)
from articleflow.config import Config
from articleflow.models import Backend
from articleflow.orchestrator import ExtractionOrchestrator
from articleflow.pipeline import ArticlePipeline
from articleflow.retry import Sleep

T = TypeVar("T")


class LazyInstance(Generic[T]):
    """Lazy-loaded instance with lifecycle management."""

    def __init__(self, factory: Callable[..., T], *args: Any, **kwargs: Any) -> None:
        self._factory = factory
        self._args = args
        self._kwargs = kwargs
        self._instance: Optional[T] = None
        self._initialized = False

    async def get(self) -> T:
        """Get or create the instance."""
        if not self._initialized:
            self._instance = self._factory(*self._args, **self._kwargs)
            initialize = getattr(self._instance, "initialize", None)
            if callable(initialize):
                await initialize()
            self._initialized = True
        assert self._instance is not None
        return self._instance

    async def cleanup(self) -> None:
        """Clean up the instance."""
        close = getattr(self._instance, "close", None)
        if self._instance is not None and callable(close):
            await close()
        self._instance = None
        self._initialized = False


def build_adapters(config: Config, transport: HttpTransport) -> List[Adapter]:
    """
    Adapters for every configured backend, in the configured fallback order.

    Backends whose endpoint or credentials are missing are skipped.
    """
    backends = config.backends
    logger = structlog.get_logger(__name__)
    adapters: List[Adapter] = []

    for backend in backends.order:
        if backend is Backend.STRUCTURED:
            if not backends.structured_url:
                logger.info("Skipping backend without endpoint", backend=backend.value)
                continue
            adapters.append(StructuredExtractionAdapter(transport, backends.structured_url))
        elif backend is Backend.EXTRACT_API:
            if not backends.extract_api_key:
                logger.info("Skipping backend without API key", backend=backend.value)
                continue
            adapters.append(
                ExtractApiAdapter(
                    transport,
                    backends.extract_api_url,
                    api_key=backends.extract_api_key,
                    api_host=backends.extract_api_host,
                )
            )
        elif backend is Backend.SCRAPER:
            adapters.append(ScraperAdapter(transport, fetch_url=backends.scraper_fetch_url))

    if not adapters:
        raise ValueError("No extraction backend is configured")
    return adapters


class DependencyContainer:
    """
    Owns the shared HTTP transport and builds the pipeline around it.
    Use as an async context manager so the transport session gets closed.
    """

    def __init__(
        self,
        config: Optional[Config] = None,
        config_path: Optional[Path] = None,
        *,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self.config = config
        self.config_path = config_path
        self._sleep = sleep
        self.logger = structlog.get_logger(self.__class__.__name__)

        self._instances: Dict[str, LazyInstance[Any]] = {}
        self._instances_lock = asyncio.Lock()
        self._pipeline: Optional[ArticlePipeline] = None

        self.container_id = str(uuid4())
        self.is_running = False

    async def initialize(self) -> None:
        """Load configuration (unless one was given) and prepare lazy instances."""
        if self.config is None:
            self.load_config()
        self._create_instances()
        self.is_running = True

        self.logger.debug(
            "Dependency container initialized",
            container_id=self.container_id,
            config_path=str(self.config_path) if self.config_path else "default",
        )

    def load_config(self) -> None:
        if self.config_path and self.config_path.exists():
            self.config = Config.from_yaml(self.config_path)
        else:
            self.config = Config()

    def _create_instances(self) -> None:
        if self.config is None:
            raise RuntimeError("Configuration must be loaded before creating instances")
        transport = self.config.transport
        self._instances = {
            "transport": LazyInstance(
                HttpTransport,
                proxy_prefix=transport.proxy_prefix,
                user_agent=transport.user_agent,
            ),
        }
        self._pipeline = None

    async def get_transport(self) -> HttpTransport:
        """Get the shared HTTP transport instance."""
        async with self._instances_lock:
            return await self._instances["transport"].get()  # type: ignore[no-any-return]

    async def get_orchestrator(self) -> ExtractionOrchestrator:
        assert self.config is not None
        transport = await self.get_transport()
        return ExtractionOrchestrator(
            build_adapters(self.config, transport),
            self.config.retry.to_policy(),
            sleep=self._sleep,
        )

    async def get_pipeline(self) -> ArticlePipeline:
        """Get the ingestion pipeline, built on first use."""
        if self._pipeline is None:
            self._pipeline = ArticlePipeline(await self.get_orchestrator())
        return self._pipeline

    async def __aenter__(self) -> DependencyContainer:
        await self.initialize()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.shutdown()

    async def shutdown(self) -> None:
        """Close all managed instances."""
        if not self.is_running:
            return
        for instance in self._instances.values():
            await instance.cleanup()
        self._pipeline = None
        self.is_running = False
        self.logger.debug("Dependency container shutdown complete", container_id=self.container_id)
