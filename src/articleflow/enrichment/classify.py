"""
Rule-based content-type and author-confidence classification.
"""

from __future__ import annotations

from typing import Optional, Sequence

from ..models import AuthorConfidence, ContentType
from .rules import AUTHOR_RULES, CONTENT_TYPE_RULES, MEDIUM_AUTHOR_MIN_LENGTH, AuthorRule, ContentTypeRule


def detect_content_type(
    url: str,
    title: str,
    rules: Sequence[ContentTypeRule] = CONTENT_TYPE_RULES,
) -> ContentType:
    """First matching rule wins; ``article`` when nothing matches."""
    fields = {"url": (url or "").lower(), "title": (title or "").lower()}
    for rule in rules:
        if rule.needle in fields.get(rule.field, ""):
            return rule.content_type
    return ContentType.ARTICLE


def author_confidence(author: Optional[str], rules: Sequence[AuthorRule] = AUTHOR_RULES) -> AuthorConfidence:
    name = (author or "").strip()
    if not name:
        return AuthorConfidence.LOW
    for rule in rules:
        if rule.pattern.search(name):
            return rule.confidence
    if len(name) > MEDIUM_AUTHOR_MIN_LENGTH and " " in name:
        return AuthorConfidence.MEDIUM
    return AuthorConfidence.LOW
