"""
Plain-text helpers shared by the sanitizer and the enricher.
"""

from __future__ import annotations

import re

from bs4 import BeautifulSoup

_WHITESPACE_RE = re.compile(r"\s+")

EXCERPT_LENGTH = 160


def html_to_text(html: str) -> str:
    """Visible text of an HTML fragment with whitespace collapsed to single spaces."""
    if not html:
        return ""
    text = BeautifulSoup(html, "html.parser").get_text(" ")
    return _WHITESPACE_RE.sub(" ", text).strip()


def count_words(html: str) -> int:
    return len(html_to_text(html).split())


def generate_excerpt(html: str, max_length: int = EXCERPT_LENGTH) -> str:
    """
    First ``max_length`` characters of the text, cut back to the last word
    boundary and suffixed with ``...`` when anything was cut.
    """
    text = html_to_text(html)
    if len(text) <= max_length:
        return text

    truncated = text[:max_length]
    last_space = truncated.rfind(" ")
    if last_space > 0:
        truncated = truncated[:last_space]
    return truncated + "..."
