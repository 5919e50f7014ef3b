"""
Ingestion pipeline: URL normalization, extraction with fallback,
sanitization and enrichment behind a single ``ingest`` call.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, replace
from html import escape
from typing import TYPE_CHECKING, Callable, Optional, Union

import structlog

from .enrichment import enrich
from .models import (
    ArticleMetadata,
    Backend,
    ExtractionRequest,
    Failure,
    IngestedArticle,
    RawExtraction,
    SanitizedArticle,
    Success,
)
from .observability.logging import ingestion_context
from .observability.metrics import record_ingestion
from .orchestrator import ExtractionOrchestrator
from .sanitizer import sanitize

if TYPE_CHECKING:
    from .config import Config

logger = structlog.get_logger(__name__)

DEFAULT_TIMEOUT_MS = 15000

IngestionResult = Union[Success[IngestedArticle], Failure]


@dataclass(frozen=True)
class IngestOptions:
    """Per-request options for ``ArticlePipeline.ingest``."""

    preferred_backend: Optional[Backend] = None
    timeout_ms: int = DEFAULT_TIMEOUT_MS

    def __post_init__(self) -> None:
        if self.timeout_ms <= 0:
            raise ValueError("timeout_ms must be positive")


class ArticlePipeline:
    """
    Turns a URL into an enriched article record.

    Only extraction can fail an ingestion. Sanitization and enrichment
    degrade instead of raising, so a successful extraction always yields a
    ``Success``.
    """

    def __init__(
        self,
        orchestrator: ExtractionOrchestrator,
        *,
        sanitizer: Callable[[RawExtraction], SanitizedArticle] = sanitize,
        enricher: Callable[[SanitizedArticle], ArticleMetadata] = enrich,
    ) -> None:
        self.orchestrator = orchestrator
        self._sanitize = sanitizer
        self._enrich = enricher

    async def ingest(self, url: str, options: Optional[IngestOptions] = None) -> IngestionResult:
        options = options or IngestOptions()
        started = time.perf_counter()

        with ingestion_context(url):
            request = ExtractionRequest(
                url=url,
                preferred_backend=options.preferred_backend,
                timeout=options.timeout_ms / 1000,
            )
            extracted = await self.orchestrator.run(request)

            if isinstance(extracted, Failure):
                record_ingestion(extracted.code.value, time.perf_counter() - started)
                logger.warning("Ingestion failed", url=url, code=extracted.code.value, reason=extracted.message)
                return extracted

            article = self._sanitize_with_fallback(extracted.article)
            metadata = self._enrich(article)

            record_ingestion("success", time.perf_counter() - started)
            logger.info(
                "Ingestion completed",
                url=article.url,
                source=extracted.source.value,
                retry_attempts=extracted.retry_attempts,
                quality_score=metadata.quality_score,
            )
            return Success(
                article=IngestedArticle(article=article, metadata=metadata),
                source=extracted.source,
                retry_attempts=extracted.retry_attempts,
            )

    def _sanitize_with_fallback(self, raw: RawExtraction) -> SanitizedArticle:
        try:
            return self._sanitize(raw)
        except Exception as e:
            # Retry with the markup escaped into a single text paragraph.
            logger.warning("Sanitizer failed, escaping content", url=raw.url, error=str(e), exc_info=True)
            return self._sanitize(replace(raw, content=f"<p>{escape(raw.content)}</p>"))


async def ingest(
    url: str,
    *,
    preferred_backend: Union[Backend, str, None] = None,
    timeout_ms: Optional[int] = None,
    config: Optional[Config] = None,
) -> IngestionResult:
    """
    Ingest one URL with a pipeline built from ``config``.

    Args:
        url: Article URL, with or without a scheme
        preferred_backend: Backend to try first (enum or its value)
        timeout_ms: Per-attempt timeout; defaults to the configured one
        config: Configuration; defaults to the lazily loaded global settings

    Returns:
        Success with the ingested article, or a Failure
    """
    from .config import settings
    from .container import DependencyContainer

    config = config if config is not None else settings
    options = IngestOptions(
        preferred_backend=Backend(preferred_backend) if preferred_backend is not None else None,
        timeout_ms=timeout_ms if timeout_ms is not None else config.backends.default_timeout_ms,
    )
    async with DependencyContainer(config) as container:
        pipeline = await container.get_pipeline()
        return await pipeline.ingest(url, options)
