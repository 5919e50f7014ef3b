"""
Publication date detection: explicit upstream dates first, then date-like
text found in the article body.
"""

from __future__ import annotations

import re
from datetime import datetime, timezone
from typing import Iterator, Optional, Sequence

from dateutil import parser as dateutil_parser

from .rules import DATE_RULES, DateRule

EARLIEST_PUBLISH_DATE = datetime(1990, 1, 1, tzinfo=timezone.utc)

_SEPARATORS_RE = re.compile(r"[,.]")
_WHITESPACE_RE = re.compile(r"\s+")


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def parse_explicit_date(value: Optional[str]) -> Optional[datetime]:
    """Parse an upstream-provided date string; None when absent or unreadable."""
    if not value or not value.strip():
        return None
    try:
        return _as_utc(dateutil_parser.parse(value.strip()))
    except (ValueError, OverflowError):
        return None


def _parse_match(text: str, formats: Sequence[str]) -> Optional[datetime]:
    cleaned = _WHITESPACE_RE.sub(" ", _SEPARATORS_RE.sub(" ", text)).strip()
    for fmt in formats:
        try:
            return datetime.strptime(cleaned, fmt).replace(tzinfo=timezone.utc)
        except ValueError:
            continue
    return None


def iter_content_dates(content: str, rules: Sequence[DateRule] = DATE_RULES) -> Iterator[datetime]:
    """Every parseable date in ``content``, rule by rule in table order."""
    for rule in rules:
        for match in rule.pattern.finditer(content):
            parsed = _parse_match(match.group(0), rule.formats)
            if parsed is not None:
                yield parsed


def scan_content_date(content: str, now: datetime) -> Optional[datetime]:
    """First date in ``content`` inside the plausible window [1990-01-01, now]."""
    now = _as_utc(now)
    for candidate in iter_content_dates(content):
        if EARLIEST_PUBLISH_DATE <= candidate <= now:
            return candidate
    return None


def extract_publication_date(published_at: Optional[str], content: str, now: datetime) -> Optional[datetime]:
    return parse_explicit_date(published_at) or scan_content_date(content, now)
