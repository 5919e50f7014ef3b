"""
Data models for the article ingestion pipeline.

Every record here is created fresh for a single ingestion call and has no
identity beyond it; durable ids and timestamps are assigned by the storage
layer after the pipeline returns.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Generic, Optional, Tuple, TypeVar, Union

T = TypeVar("T")


class Backend(str, Enum):
    """Upstream extraction services, in default fallback order."""

    STRUCTURED = "mercury"  # structured-extraction API
    EXTRACT_API = "rapidapi"  # third-party extraction/summarization API
    SCRAPER = "scraper"  # raw fetch + heuristic parsing


class ContentType(str, Enum):
    ARTICLE = "article"
    BLOG = "blog"
    NEWS = "news"
    OPINION = "opinion"
    TUTORIAL = "tutorial"
    UNKNOWN = "unknown"


class AuthorConfidence(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class FailureCode(str, Enum):
    """Terminal failure kinds visible to callers."""

    INVALID_URL = "INVALID_URL"
    ALL_PARSERS_FAILED = "ALL_PARSERS_FAILED"


@dataclass(slots=True, frozen=True)
class RetryPolicy:
    """Bounded retry configuration, shared read-only across attempts."""

    max_attempts: int = 3
    base_delay: float = 1.0  # seconds
    backoff_factor: float = 2.0

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if self.base_delay < 0:
            raise ValueError("base_delay must not be negative")
        if self.backoff_factor < 1:
            raise ValueError("backoff_factor must be >= 1")

    def delay_after(self, attempt: int) -> float:
        """Delay to wait after failed attempt ``attempt`` (1-based)."""
        return self.base_delay * self.backoff_factor ** (attempt - 1)


DEFAULT_RETRY_POLICY = RetryPolicy()


@dataclass(slots=True, frozen=True)
class ExtractionRequest:
    """One ingestion request; immutable for the lifetime of the call."""

    url: str
    preferred_backend: Optional[Backend] = None
    timeout: float = 15.0  # seconds, per attempt


@dataclass(slots=True, frozen=True)
class RawExtraction:
    """Backend-specific intermediate record produced by one adapter attempt."""

    url: str
    title: Optional[str]
    author: Optional[str]
    content: str
    excerpt: Optional[str] = None
    lead_image_url: Optional[str] = None
    published_at: Optional[str] = None
    word_count: Optional[int] = None
    direction: Optional[str] = None
    total_pages: Optional[int] = None
    rendered_pages: Optional[int] = None
    next_page_url: Optional[str] = None
    dek: Optional[str] = None


@dataclass(slots=True, frozen=True)
class SanitizedArticle:
    """Display-ready article produced by the sanitizer."""

    title: str
    author: str
    content: str
    excerpt: str
    lead_image_url: Optional[str]
    url: str
    domain: str
    published_at: Optional[str]
    word_count: int
    direction: str = "ltr"
    total_pages: int = 1
    rendered_pages: int = 1
    next_page_url: Optional[str] = None
    dek: Optional[str] = None

    def as_raw(self) -> RawExtraction:
        """Feed a sanitized article back through the sanitizer."""
        return RawExtraction(
            url=self.url,
            title=self.title,
            author=self.author,
            content=self.content,
            excerpt=self.excerpt,
            lead_image_url=self.lead_image_url,
            published_at=self.published_at,
            word_count=self.word_count,
            direction=self.direction,
            total_pages=self.total_pages,
            rendered_pages=self.rendered_pages,
            next_page_url=self.next_page_url,
            dek=self.dek,
        )


@dataclass(slots=True, frozen=True)
class ArticleMetadata:
    """Derived signals; recomputed on every ingestion."""

    reading_time_minutes: int
    word_count: int
    published_date: Optional[datetime]
    estimated_publish_date: datetime
    content_type: ContentType
    topic_tags: Tuple[str, ...]
    image_count: int
    link_count: int
    author_confidence: AuthorConfidence
    quality_score: int

    def __post_init__(self) -> None:
        if not (1 <= self.quality_score <= 10):
            raise ValueError("quality_score must be between 1 and 10")
        if len(self.topic_tags) > 5:
            raise ValueError("topic_tags holds at most 5 tags")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "reading_time_minutes": self.reading_time_minutes,
            "word_count": self.word_count,
            "published_date": self.published_date.isoformat() if self.published_date else None,
            "estimated_publish_date": self.estimated_publish_date.isoformat(),
            "content_type": self.content_type.value,
            "topic_tags": list(self.topic_tags),
            "image_count": self.image_count,
            "link_count": self.link_count,
            "author_confidence": self.author_confidence.value,
            "quality_score": self.quality_score,
        }


@dataclass(slots=True, frozen=True)
class IngestedArticle:
    """A sanitized article together with its enrichment metadata."""

    article: SanitizedArticle
    metadata: ArticleMetadata

    def to_dict(self) -> Dict[str, Any]:
        return {**asdict(self.article), "metadata": self.metadata.to_dict()}


@dataclass(slots=True, frozen=True)
class Attempted(Generic[T]):
    """A value together with the number of attempts it took to obtain."""

    value: T
    attempts: int


@dataclass(slots=True, frozen=True)
class Success(Generic[T]):
    article: T
    source: Backend
    retry_attempts: int

    @property
    def ok(self) -> bool:
        return True

    def to_dict(self) -> Dict[str, Any]:
        article = self.article.to_dict() if hasattr(self.article, "to_dict") else asdict(self.article)  # type: ignore[call-overload]
        return {
            "success": True,
            "source": self.source.value,
            "retry_attempts": self.retry_attempts,
            "article": article,
        }


@dataclass(slots=True, frozen=True)
class Failure:
    code: FailureCode
    message: str
    url: str
    details: Optional[Dict[str, Any]] = field(default=None)

    @property
    def ok(self) -> bool:
        return False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": False,
            "error": {
                "code": self.code.value,
                "message": self.message,
                "url": self.url,
                "details": self.details,
            },
        }


ExtractionResult = Union[Success[T], Failure]
