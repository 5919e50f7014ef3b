"""
Adapter for the structured-extraction service (Mercury parser API).
"""

from __future__ import annotations

import structlog

from ..models import Backend, RawExtraction
from .base import BaseAdapter, optional_int, optional_text
from .transport import HttpTransport

logger = structlog.get_logger(__name__)


class StructuredExtractionAdapter(BaseAdapter):
    """``GET <endpoint>?url=<url>`` returning a parsed article as JSON."""

    backend = Backend.STRUCTURED

    def __init__(self, transport: HttpTransport, endpoint: str) -> None:
        super().__init__(transport)
        self.endpoint = endpoint

    async def extract(self, url: str, timeout: float) -> RawExtraction:
        payload = await self._transport.get_json(
            self.endpoint,
            params={"url": url},
            timeout=timeout,
            headers={"Accept": "application/json"},
        )
        data = self._require_mapping(payload)
        content = self._require_content(optional_text(data.get("content")), url)

        logger.debug("Structured extraction payload mapped", url=url, fields=sorted(data.keys()))
        return RawExtraction(
            url=url,
            title=optional_text(data.get("title")),
            author=optional_text(data.get("author")),
            content=content,
            excerpt=optional_text(data.get("excerpt")),
            lead_image_url=optional_text(data.get("lead_image_url")),
            published_at=optional_text(data.get("date_published")),
            word_count=optional_int(data.get("word_count")),
            direction=optional_text(data.get("direction")),
            total_pages=optional_int(data.get("total_pages")),
            rendered_pages=optional_int(data.get("rendered_pages")),
            next_page_url=optional_text(data.get("next_page_url")),
            dek=optional_text(data.get("dek")),
        )
