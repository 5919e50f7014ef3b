"""
Raw-HTML adapter: fetch the page (optionally via a fetch proxy) and pull the
article out with per-domain selector rules, falling back to a generic
container heuristic for domains without a rule.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from html import escape
from typing import Optional, Tuple

import structlog
from bs4 import BeautifulSoup, Tag

from ..models import Backend, RawExtraction
from ..urls import domain_of
from .base import BaseAdapter, optional_text
from .errors import AdapterErrorCode
from .transport import HttpTransport

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class ScraperRule:
    """CSS selectors describing where a site keeps its article fields."""

    domain: str
    container: str
    is_html: bool
    title: str = "h1"
    author: Optional[str] = None
    content: str = "article"
    published: Optional[str] = None
    published_prefix: Optional[str] = None
    lead_image: Optional[str] = None
    excerpt: Optional[str] = None


SCRAPER_RULES: Tuple[ScraperRule, ...] = (
    ScraperRule(
        domain="lescienze.it",
        container="main",
        is_html=False,
        title="h1.detail_title",
        author=".detail_author",
        content="#detail-body",
        published=".detail_date",
        lead_image="figure",
        excerpt="#detail-body-paywall",
    ),
    ScraperRule(
        domain="unaparolaalgiorno.it",
        container="#layout-wrapper",
        is_html=True,
        title="h1",
        content="article",
        published=".word-datapub",
        published_prefix="Parola pubblicata il",
    ),
    ScraperRule(
        domain="comedonchisciotte.org",
        container=".single-container",
        is_html=False,
        title=".post-title",
        author=".post-author-name",
        content=".entry-content",
        lead_image="img.b-loaded",
    ),
    ScraperRule(
        domain="appleinsider.com",
        container="article.reviews",
        is_html=True,
        title="h1.h1-adjust",
        author=".avatar-link",
        content=".row",
        lead_image="#article-hero",
    ),
)

GENERIC_CONTENT_SELECTORS: Tuple[str, ...] = (
    "article",
    "main",
    '[role="main"]',
    ".post-content",
    ".entry-content",
    ".article-body",
    "#content",
    ".content",
)

BOILERPLATE_TAGS: Tuple[str, ...] = ("script", "style", "noscript", "nav", "header", "footer", "aside", "form")


def find_rule(url: str) -> Optional[ScraperRule]:
    """Selector rule for the host of ``url``; subdomains match their parent."""
    host = domain_of(url)
    if host.startswith("www."):
        host = host[4:]
    for rule in SCRAPER_RULES:
        rule_domain = rule.domain[4:] if rule.domain.startswith("www.") else rule.domain
        if host == rule_domain or host.endswith(f".{rule_domain}"):
            return rule
    return None


def _text_to_html(text: str) -> str:
    lines = [line.strip() for line in text.splitlines()]
    return "".join(f"<p>{escape(line)}</p>" for line in lines if line)


def _meta(soup: BeautifulSoup, **attrs: str) -> Optional[str]:
    tag = soup.find("meta", attrs=attrs)
    if isinstance(tag, Tag):
        return optional_text(tag.get("content"))
    return None


def _select_text(scope: Tag, selector: Optional[str]) -> Optional[str]:
    if not selector:
        return None
    element = scope.select_one(selector)
    if element is None:
        return None
    return optional_text(element.get_text(" ", strip=True))


def _image_source(element: Tag) -> Optional[str]:
    image = element if element.name == "img" else element.find("img")
    if not isinstance(image, Tag):
        return None
    for attribute in ("data-src", "data-lazy-src", "src"):
        value = optional_text(image.get(attribute))
        if value:
            return value
    return None


class ScraperAdapter(BaseAdapter):
    """``GET <fetch-proxy>/<url>`` and parse the returned HTML heuristically."""

    backend = Backend.SCRAPER

    def __init__(self, transport: HttpTransport, fetch_url: Optional[str] = None) -> None:
        super().__init__(transport)
        self.fetch_url = fetch_url.rstrip("/") if fetch_url else None

    def _fetch_target(self, url: str) -> str:
        return f"{self.fetch_url}/{url}" if self.fetch_url else url

    async def extract(self, url: str, timeout: float) -> RawExtraction:
        html = await self._transport.get_text(
            self._fetch_target(url),
            timeout=timeout,
            headers={"Accept": "text/html,application/xhtml+xml"},
        )
        if not html.strip():
            raise self._error(AdapterErrorCode.EMPTY_CONTENT, "Fetched page is empty", url=url)

        loop = asyncio.get_running_loop()
        extraction = await loop.run_in_executor(None, self._parse, html, url)
        self._require_content(extraction.content, url)
        return extraction

    def _parse(self, html: str, url: str) -> RawExtraction:
        soup = BeautifulSoup(html, "html.parser")
        rule = find_rule(url)
        if rule is not None:
            logger.debug("Scraping with site rule", url=url, domain=rule.domain)
            return self._parse_with_rule(soup, rule, url)
        logger.debug("Scraping with generic heuristic", url=url)
        return self._parse_generic(soup, url)

    def _parse_with_rule(self, soup: BeautifulSoup, rule: ScraperRule, url: str) -> RawExtraction:
        container = soup.select_one(rule.container)
        scope: Tag = container if isinstance(container, Tag) else soup

        content_element = scope.select_one(rule.content)
        content = ""
        if content_element is not None:
            if rule.is_html:
                for iframe in content_element.find_all("iframe"):
                    iframe.decompose()
                content = content_element.decode_contents()
            else:
                content = _text_to_html(content_element.get_text("\n"))

        published = None
        if rule.published:
            element = scope.select_one(rule.published) or soup.select_one(rule.published)
            if element is not None:
                published = optional_text(element.get("datetime")) or optional_text(element.get_text(" ", strip=True))
                if published and rule.published_prefix:
                    published = optional_text(published.replace(rule.published_prefix, ""))

        lead_image = None
        if rule.lead_image:
            element = scope.select_one(rule.lead_image) or soup.select_one(rule.lead_image)
            if element is not None:
                lead_image = _image_source(element)
        lead_image = lead_image or _meta(soup, property="og:image")

        return RawExtraction(
            url=url,
            title=_select_text(scope, rule.title) or _select_text(soup, rule.title),
            author=_select_text(scope, rule.author),
            content=content,
            excerpt=_select_text(scope, rule.excerpt),
            lead_image_url=lead_image,
            published_at=published,
        )

    def _parse_generic(self, soup: BeautifulSoup, url: str) -> RawExtraction:
        title = _meta(soup, property="og:title")
        if not title:
            heading = soup.find("h1")
            title = optional_text(heading.get_text(" ", strip=True)) if isinstance(heading, Tag) else None
        if not title and soup.title is not None:
            title = optional_text(soup.title.get_text(strip=True))

        author = _meta(soup, name="author") or _meta(soup, property="article:author")
        excerpt = _meta(soup, name="description") or _meta(soup, property="og:description")
        lead_image = _meta(soup, property="og:image")

        published = _meta(soup, property="article:published_time")
        if not published:
            time_tag = soup.find("time", attrs={"datetime": True})
            if isinstance(time_tag, Tag):
                published = optional_text(time_tag.get("datetime"))

        for tag_name in BOILERPLATE_TAGS:
            for element in soup.find_all(tag_name):
                element.decompose()

        main_content: Optional[Tag] = None
        for selector in GENERIC_CONTENT_SELECTORS:
            element = soup.select_one(selector)
            if isinstance(element, Tag) and element.get_text(strip=True):
                main_content = element
                break
        if main_content is None:
            body = soup.find("body")
            main_content = body if isinstance(body, Tag) else soup

        return RawExtraction(
            url=url,
            title=title,
            author=author,
            content=main_content.decode_contents().strip(),
            excerpt=excerpt,
            lead_image_url=lead_image,
            published_at=published,
        )
