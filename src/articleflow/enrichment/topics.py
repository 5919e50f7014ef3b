"""
Topic tagging by weighted whole-word keyword matches.
"""

from __future__ import annotations

from typing import Dict, List, Mapping, Pattern, Sequence, Tuple

from .rules import (
    CONTENT_WEIGHT,
    DOMAIN_TAG_RULES,
    EXCERPT_WEIGHT,
    MAX_TOPIC_TAGS,
    MIN_TOPIC_CONTENT_CHARS,
    MIN_TOPIC_CONTENT_WORDS,
    TITLE_WEIGHT,
    TOPIC_PATTERNS,
    DomainTagRule,
)


def topic_threshold(word_count: int) -> float:
    """Minimum score for a topic; grows with length and saturates at 6."""
    return 3 + min(word_count / 500, 3)


def _matches(patterns: Sequence[Pattern[str]], text: str) -> int:
    return sum(len(pattern.findall(text)) for pattern in patterns) if text else 0


def score_topics(
    title: str,
    excerpt: str,
    content_text: str,
    patterns: Mapping[str, Tuple[Pattern[str], ...]] = TOPIC_PATTERNS,
) -> Dict[str, int]:
    """Weighted keyword hits per topic, in table order."""
    title, excerpt, content_text = title.lower(), excerpt.lower(), content_text.lower()
    return {
        topic: (
            _matches(topic_patterns, title) * TITLE_WEIGHT
            + _matches(topic_patterns, excerpt) * EXCERPT_WEIGHT
            + _matches(topic_patterns, content_text) * CONTENT_WEIGHT
        )
        for topic, topic_patterns in patterns.items()
    }


def domain_tags(domain: str, rules: Sequence[DomainTagRule] = DOMAIN_TAG_RULES) -> List[str]:
    domain = (domain or "").lower()
    return [rule.tag for rule in rules if rule.fragment in domain]


def generate_topic_tags(
    *,
    title: str,
    excerpt: str,
    content_text: str,
    word_count: int,
    domain: str,
) -> List[str]:
    """
    Topic tags for an article.

    Content under the minimum length yields no tags at all. Otherwise every
    topic scoring at least ``topic_threshold(word_count)`` is kept, followed by
    the tags implied by the domain; duplicates are dropped and at most
    ``MAX_TOPIC_TAGS`` are returned.
    """
    if len(content_text) < MIN_TOPIC_CONTENT_CHARS or word_count < MIN_TOPIC_CONTENT_WORDS:
        return []

    threshold = topic_threshold(word_count)
    scores = score_topics(title, excerpt, content_text)
    candidates = [topic for topic, score in scores.items() if score >= threshold]
    candidates.extend(domain_tags(domain))

    tags: List[str] = []
    for tag in candidates:
        if tag not in tags:
            tags.append(tag)
    return tags[:MAX_TOPIC_TAGS]
