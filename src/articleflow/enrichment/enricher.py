"""
Metadata enricher: derives reading time, publication date, classification
and quality signals from a sanitized article.

Enrichment never fails an ingestion. A step that raises is logged and
replaced by its degraded value (no date, ``unknown`` type, no tags, minimum
quality score).
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Callable, Optional, Tuple, TypeVar

import structlog
from bs4 import BeautifulSoup

from ..models import ArticleMetadata, AuthorConfidence, ContentType, SanitizedArticle
from ..text import html_to_text
from .classify import author_confidence, detect_content_type
from .dates import extract_publication_date
from .quality import MIN_QUALITY_SCORE, QualitySignals, quality_score, reading_time_minutes
from .topics import generate_topic_tags

logger = structlog.get_logger(__name__)

R = TypeVar("R")


def count_images_and_links(html: str) -> Tuple[int, int]:
    if not html:
        return 0, 0
    soup = BeautifulSoup(html, "html.parser")
    return len(soup.find_all("img")), len(soup.find_all("a", href=True))


def _degrade(step: str, url: str, fallback: R, func: Callable[..., R], *args: Any, **kwargs: Any) -> R:
    try:
        return func(*args, **kwargs)
    except Exception as e:
        logger.warning("Enrichment step failed, using fallback", step=step, url=url, error=str(e), exc_info=True)
        return fallback


def enrich(article: SanitizedArticle, *, now: Optional[datetime] = None) -> ArticleMetadata:
    """
    Compute the metadata for ``article``.

    Args:
        article: Sanitized article
        now: Reference time for the date window and the estimated publish
            date; defaults to the current UTC time

    Returns:
        Freshly computed ArticleMetadata
    """
    now = now or datetime.now(timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    url = article.url

    text = _degrade("text", url, "", html_to_text, article.content)
    word_count = len(text.split())

    published = _degrade("publication_date", url, None, extract_publication_date, article.published_at, article.content, now)
    content_type = _degrade("content_type", url, ContentType.UNKNOWN, detect_content_type, article.url, article.title)
    tags = _degrade(
        "topic_tags",
        url,
        [],
        generate_topic_tags,
        title=article.title,
        excerpt=article.excerpt,
        content_text=text,
        word_count=word_count,
        domain=article.domain,
    )
    image_count, link_count = _degrade("media_counts", url, (0, 0), count_images_and_links, article.content)
    confidence = _degrade("author_confidence", url, AuthorConfidence.LOW, author_confidence, article.author)

    signals = QualitySignals(
        word_count=word_count,
        title=article.title,
        excerpt=article.excerpt,
        author_confidence=confidence,
        has_published_date=published is not None,
        has_lead_image=bool(article.lead_image_url),
        image_count=image_count,
        link_count=link_count,
    )
    score = _degrade("quality_score", url, MIN_QUALITY_SCORE, quality_score, signals)

    metadata = ArticleMetadata(
        reading_time_minutes=reading_time_minutes(word_count),
        word_count=word_count,
        published_date=published,
        estimated_publish_date=published or now,
        content_type=content_type,
        topic_tags=tuple(tags),
        image_count=image_count,
        link_count=link_count,
        author_confidence=confidence,
        quality_score=score,
    )
    logger.debug(
        "Article enriched",
        url=url,
        word_count=word_count,
        content_type=content_type.value,
        topic_tags=tags,
        quality_score=score,
    )
    return metadata
