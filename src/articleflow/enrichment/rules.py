"""
Rule tables driving metadata enrichment.

All tables are immutable and compiled once at import; each one can be tested
on its own, independently of the enricher.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping, Pattern, Tuple

from ..models import AuthorConfidence, ContentType

WORDS_PER_MINUTE = 200

# Topic tagging stays silent below either limit.
MIN_TOPIC_CONTENT_CHARS = 100
MIN_TOPIC_CONTENT_WORDS = 100
MAX_TOPIC_TAGS = 5

TITLE_WEIGHT = 3
EXCERPT_WEIGHT = 2
CONTENT_WEIGHT = 1

TOPIC_KEYWORDS: Mapping[str, Tuple[str, ...]] = MappingProxyType(
    {
        "technology": (
            "tech",
            "software",
            "programming",
            "code",
            "development",
            "app",
            "digital",
            "ai",
            "machine learning",
            "blockchain",
            "cryptocurrency",
            "startup",
        ),
        "science": (
            "research",
            "study",
            "experiment",
            "discovery",
            "scientific",
            "biology",
            "physics",
            "chemistry",
            "medicine",
            "health",
        ),
        "business": (
            "business",
            "company",
            "market",
            "economy",
            "finance",
            "investment",
            "revenue",
            "profit",
            "strategy",
            "management",
        ),
        "politics": (
            "politics",
            "government",
            "election",
            "policy",
            "law",
            "congress",
            "senate",
            "president",
            "democracy",
        ),
        "sports": (
            "sport",
            "game",
            "team",
            "player",
            "championship",
            "tournament",
            "olympics",
            "football",
            "basketball",
            "soccer",
        ),
        "entertainment": ("movie", "film", "tv", "show", "music", "celebrity", "entertainment", "hollywood", "netflix"),
        "travel": ("travel", "trip", "destination", "vacation", "hotel", "flight", "tourism", "adventure", "guide"),
        "food": ("food", "recipe", "cooking", "restaurant", "chef", "cuisine", "dish", "ingredients", "meal"),
        "lifestyle": ("lifestyle", "fashion", "beauty", "home", "family", "relationship", "wellness", "fitness"),
        "education": ("education", "school", "university", "student", "learning", "teacher", "course", "degree"),
    }
)


def _keyword_pattern(keyword: str) -> Pattern[str]:
    # Whole words only; inner spaces of multi-word keywords match any whitespace.
    body = r"\s+".join(re.escape(part) for part in keyword.split())
    return re.compile(rf"(?<!\w){body}(?!\w)")


TOPIC_PATTERNS: Mapping[str, Tuple[Pattern[str], ...]] = MappingProxyType(
    {topic: tuple(_keyword_pattern(keyword) for keyword in keywords) for topic, keywords in TOPIC_KEYWORDS.items()}
)


@dataclass(frozen=True)
class DomainTagRule:
    """Tag added whenever ``fragment`` occurs in the article's domain."""

    fragment: str
    tag: str


DOMAIN_TAG_RULES: Tuple[DomainTagRule, ...] = (
    DomainTagRule("github", "technology"),
    DomainTagRule("stackoverflow", "programming"),
    DomainTagRule("medium", "blog"),
    DomainTagRule("reddit", "discussion"),
    DomainTagRule("youtube", "video"),
    DomainTagRule("arxiv", "science"),
)


@dataclass(frozen=True)
class DateRule:
    """A date shape found in running text and the strptime formats that read it."""

    name: str
    pattern: Pattern[str]
    formats: Tuple[str, ...]


_LONG_MONTHS = "January|February|March|April|May|June|July|August|September|October|November|December"
_SHORT_MONTHS = "Jan|Feb|Mar|Apr|May|Jun|Jul|Aug|Sep|Oct|Nov|Dec"

DATE_RULES: Tuple[DateRule, ...] = (
    DateRule("iso", re.compile(r"\b(\d{4})-(\d{2})-(\d{2})\b"), ("%Y-%m-%d",)),
    DateRule("us_slash", re.compile(r"\b(\d{2})/(\d{2})/(\d{4})\b"), ("%m/%d/%Y",)),
    DateRule("us_dash", re.compile(r"\b(\d{2})-(\d{2})-(\d{4})\b"), ("%m-%d-%Y",)),
    DateRule(
        "long_month",
        re.compile(rf"\b(?:{_LONG_MONTHS})\s+\d{{1,2}},?\s+\d{{4}}\b", re.IGNORECASE),
        ("%B %d %Y",),
    ),
    DateRule(
        "short_month",
        re.compile(rf"\b(?:{_SHORT_MONTHS})\.?\s+\d{{1,2}},?\s+\d{{4}}\b", re.IGNORECASE),
        ("%b %d %Y",),
    ),
)


@dataclass(frozen=True)
class AuthorRule:
    pattern: Pattern[str]
    confidence: AuthorConfidence


AUTHOR_RULES: Tuple[AuthorRule, ...] = (
    AuthorRule(re.compile(r"^[A-Za-z\s\-'.]{2,50}$"), AuthorConfidence.HIGH),
    AuthorRule(re.compile(r"^[A-Za-z]+\s+[A-Za-z]+"), AuthorConfidence.HIGH),
)

# Names longer than this that contain a space, but match no rule above.
MEDIUM_AUTHOR_MIN_LENGTH = 3


@dataclass(frozen=True)
class ContentTypeRule:
    """``needle`` occurring in the lower-cased ``field`` classifies the article."""

    field: str  # "url" or "title"
    needle: str
    content_type: ContentType


CONTENT_TYPE_RULES: Tuple[ContentTypeRule, ...] = (
    ContentTypeRule("url", "blog", ContentType.BLOG),
    ContentTypeRule("url", "/post/", ContentType.BLOG),
    ContentTypeRule("url", "news", ContentType.NEWS),
    ContentTypeRule("url", "/article/", ContentType.NEWS),
    ContentTypeRule("url", "tutorial", ContentType.TUTORIAL),
    ContentTypeRule("url", "how-to", ContentType.TUTORIAL),
    ContentTypeRule("url", "opinion", ContentType.OPINION),
    ContentTypeRule("url", "editorial", ContentType.OPINION),
    ContentTypeRule("title", "how to", ContentType.TUTORIAL),
    ContentTypeRule("title", "tutorial", ContentType.TUTORIAL),
    ContentTypeRule("title", "opinion", ContentType.OPINION),
    ContentTypeRule("title", "editorial", ContentType.OPINION),
)
