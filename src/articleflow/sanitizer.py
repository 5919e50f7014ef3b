"""
Content sanitizer: turns a backend's raw extraction into a safe,
display-ready article.

The transformation is pure and idempotent; feeding a sanitized article back
through ``sanitize`` (via ``SanitizedArticle.as_raw``) yields it unchanged.
"""

from __future__ import annotations

from typing import Iterable, Optional, Tuple
from urllib.parse import parse_qsl, urlencode, urljoin, urlsplit, urlunsplit

import structlog
from bs4 import BeautifulSoup, Comment, Tag

from .models import RawExtraction, SanitizedArticle
from .text import count_words, generate_excerpt
from .urls import domain_of

logger = structlog.get_logger(__name__)

DEFAULT_TITLE = "Untitled"
DEFAULT_IMAGE_ALT = "Article image"

REMOVED_TAGS: Tuple[str, ...] = ("script", "style", "noscript")

# Lazy-loading attributes, in order of preference over ``src``.
LAZY_IMAGE_ATTRIBUTES: Tuple[str, ...] = ("data-src", "data-lazy-src", "data-original")

AD_CLASS_TOKENS = frozenset({"ad", "ads", "advert", "adverts", "adbox", "ad-unit"})
AD_CLASS_FRAGMENTS: Tuple[str, ...] = (
    "advertisement",
    "ad-container",
    "ad-slot",
    "ad-banner",
    "ad-wrapper",
    "adsbygoogle",
    "google-ad",
    "dfp-ad",
    "sponsored",
)

BLOCK_TAGS: Tuple[str, ...] = (
    "p",
    "div",
    "section",
    "article",
    "aside",
    "blockquote",
    "figure",
    "figcaption",
    "header",
    "footer",
    "ul",
    "ol",
    "li",
    "h1",
    "h2",
    "h3",
    "h4",
    "h5",
    "h6",
)
MEDIA_TAGS: Tuple[str, ...] = ("img", "picture", "video", "audio", "iframe", "embed", "object", "svg", "canvas")

TRACKING_QUERY_PARAMS = frozenset(
    {
        "fbclid",
        "gclid",
        "dclid",
        "msclkid",
        "yclid",
        "igshid",
        "mc_cid",
        "mc_eid",
        "_ga",
        "ref_src",
    }
)
TRACKING_QUERY_PREFIXES: Tuple[str, ...] = ("utm_",)


def _is_http_url(value: Optional[str]) -> bool:
    if not value:
        return False
    try:
        parts = urlsplit(value)
    except ValueError:
        return False
    return parts.scheme.lower() in ("http", "https") and bool(parts.netloc)


def _is_tracking_param(name: str) -> bool:
    lowered = name.lower()
    return lowered in TRACKING_QUERY_PARAMS or lowered.startswith(TRACKING_QUERY_PREFIXES)


def normalize_lead_image(url: Optional[str]) -> Optional[str]:
    """
    Lead image URL with tracking query parameters removed.

    Relative and non-http URLs become None. A URL that cannot be parsed is
    kept as-is only when it starts with ``http``.
    """
    if not url or not url.strip():
        return None
    url = url.strip()
    try:
        parts = urlsplit(url)
        query = parse_qsl(parts.query, keep_blank_values=True)
    except ValueError:
        return url if url.lower().startswith("http") else None

    if parts.scheme.lower() not in ("http", "https") or not parts.netloc:
        return None

    kept = [(name, value) for name, value in query if not _is_tracking_param(name)]
    if len(kept) == len(query):
        return url
    return urlunsplit(parts._replace(query=urlencode(kept)))


def _is_ad_container(element: Tag) -> bool:
    tokens = [token.lower() for token in element.get("class") or []]
    element_id = element.get("id")
    if isinstance(element_id, str) and element_id:
        tokens.append(element_id.lower())
    for token in tokens:
        if token in AD_CLASS_TOKENS:
            return True
        if any(fragment in token for fragment in AD_CLASS_FRAGMENTS):
            return True
    return False


def _decompose_all(elements: Iterable[Tag]) -> int:
    removed = 0
    for element in list(elements):
        if element.decomposed:
            continue
        element.decompose()
        removed += 1
    return removed


def _resolve_image_source(image: Tag, base_url: str) -> Optional[str]:
    lazy_values = [image.get(attribute) for attribute in LAZY_IMAGE_ATTRIBUTES]
    lazy = [value.strip() for value in lazy_values if isinstance(value, str) and value.strip()]
    src = image.get("src")

    candidates = [value for value in lazy if _is_http_url(value)]
    if isinstance(src, str) and src.strip():
        candidates.append(src.strip())
    candidates.extend(lazy)

    for candidate in candidates:
        try:
            resolved = urljoin(base_url, candidate)
        except ValueError:
            continue
        if _is_http_url(resolved):
            return resolved
    return None


def _is_empty_block(element: Tag) -> bool:
    return not element.get_text(strip=True) and element.find(MEDIA_TAGS) is None


def sanitize_html(html: str, base_url: str) -> str:
    """
    Safe HTML for display.

    Drops scripts, styles, ad containers and ad iframes; gives every image a
    resolved absolute ``src``; opens external links in a new tab; then removes
    block elements left without text or media.
    """
    if not html or not html.strip():
        return ""

    soup = BeautifulSoup(html, "html.parser")

    for comment in soup.find_all(string=lambda node: isinstance(node, Comment)):
        comment.extract()

    _decompose_all(soup.find_all(REMOVED_TAGS))
    _decompose_all(
        iframe for iframe in soup.find_all("iframe") if "ads" in str(iframe.get("src") or "").lower()
    )
    _decompose_all(element for element in soup.find_all(True) if not element.decomposed and _is_ad_container(element))

    for image in soup.find_all("img"):
        source = _resolve_image_source(image, base_url)
        if source is None:
            image.decompose()
            continue
        image["src"] = source
        for attribute in LAZY_IMAGE_ATTRIBUTES:
            if attribute in image.attrs:
                del image[attribute]
        image["loading"] = "lazy"
        alt = image.get("alt")
        if not isinstance(alt, str) or not alt.strip():
            image["alt"] = DEFAULT_IMAGE_ALT

    for link in soup.find_all("a", href=True):
        href = link.get("href")
        if isinstance(href, str) and href.strip().lower().startswith(("http://", "https://")):
            link["target"] = "_blank"
            link["rel"] = "noopener noreferrer"

    # Reverse document order visits children before their parents, so a
    # parent emptied by removing its children is caught in the same pass.
    for element in reversed(soup.find_all(BLOCK_TAGS)):
        if _is_empty_block(element):
            element.decompose()

    return str(soup).strip()


def _positive(value: Optional[int], default: int) -> int:
    return value if value is not None and value > 0 else default


def sanitize(raw: RawExtraction) -> SanitizedArticle:
    """Normalize a raw extraction into a display-ready article."""
    content = sanitize_html(raw.content, raw.url)

    title = (raw.title or "").strip() or DEFAULT_TITLE
    excerpt = (raw.excerpt or "").strip() or generate_excerpt(content)
    word_count = raw.word_count if raw.word_count and raw.word_count > 0 else count_words(content)
    direction = (raw.direction or "").strip().lower() or "ltr"

    article = SanitizedArticle(
        title=title,
        author=(raw.author or "").strip(),
        content=content,
        excerpt=excerpt,
        lead_image_url=normalize_lead_image(raw.lead_image_url),
        url=raw.url,
        domain=domain_of(raw.url),
        published_at=(raw.published_at or "").strip() or None,
        word_count=word_count,
        direction=direction,
        total_pages=_positive(raw.total_pages, 1),
        rendered_pages=_positive(raw.rendered_pages, 1),
        next_page_url=raw.next_page_url if _is_http_url(raw.next_page_url) else None,
        dek=(raw.dek or "").strip() or None,
    )
    logger.debug(
        "Sanitized article",
        url=raw.url,
        raw_length=len(raw.content),
        content_length=len(content),
        word_count=word_count,
    )
    return article
