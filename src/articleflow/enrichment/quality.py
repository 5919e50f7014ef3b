"""
Reading time and the 1-10 quality score.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

from ..models import AuthorConfidence
from .rules import WORDS_PER_MINUTE

MIN_QUALITY_SCORE = 1
MAX_QUALITY_SCORE = 10


def reading_time_minutes(word_count: int) -> int:
    return max(1, math.ceil(word_count / WORDS_PER_MINUTE))


@dataclass(frozen=True)
class QualitySignals:
    """Inputs to the quality score, gathered by the enricher."""

    word_count: int
    title: str
    excerpt: str
    author_confidence: AuthorConfidence
    has_published_date: bool
    has_lead_image: bool
    image_count: int
    link_count: int


def quality_score(signals: QualitySignals) -> int:
    """
    Heuristic completeness score.

    Starts at 5 and adds or removes points for length, title, excerpt,
    author confidence, publication date, lead image and content richness.
    Halves round up; the result is clamped to [1, 10].
    """
    score = 5.0

    if signals.word_count > 1000:
        score += 2
    elif signals.word_count > 500:
        score += 1
    elif signals.word_count < 100:
        score -= 2

    if len(signals.title) > 10:
        score += 1
    if len(signals.excerpt) > 50:
        score += 1

    if signals.author_confidence is AuthorConfidence.HIGH:
        score += 1
    elif signals.author_confidence is AuthorConfidence.LOW:
        score -= 1

    if signals.has_published_date:
        score += 1
    if signals.has_lead_image:
        score += 1

    if signals.image_count > 0:
        score += 0.5
    if signals.link_count > 5:
        score += 0.5

    rounded = math.floor(score + 0.5)
    return max(MIN_QUALITY_SCORE, min(MAX_QUALITY_SCORE, rounded))
