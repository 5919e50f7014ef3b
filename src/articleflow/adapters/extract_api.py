"""
Adapter for the third-party article extraction/summarization API.
"""

from __future__ import annotations

from typing import Optional

from ..models import Backend, RawExtraction
from .base import BaseAdapter, optional_text
from .transport import HttpTransport


class ExtractApiAdapter(BaseAdapter):
    """``POST <endpoint>`` with ``{"url": ...}`` and API-key headers."""

    backend = Backend.EXTRACT_API

    # Content fields in order of preference.
    CONTENT_FIELDS = ("html", "text", "content")

    def __init__(
        self,
        transport: HttpTransport,
        endpoint: str,
        *,
        api_key: Optional[str] = None,
        api_host: Optional[str] = None,
    ) -> None:
        super().__init__(transport)
        self.endpoint = endpoint
        self._headers = {"Content-Type": "application/json"}
        if api_key:
            self._headers["X-RapidAPI-Key"] = api_key
        if api_host:
            self._headers["X-RapidAPI-Host"] = api_host

    async def extract(self, url: str, timeout: float) -> RawExtraction:
        payload = await self._transport.post_json(
            self.endpoint,
            payload={"url": url},
            timeout=timeout,
            headers=self._headers,
        )
        data = self._require_mapping(payload)

        content: Optional[str] = None
        for field_name in self.CONTENT_FIELDS:
            content = optional_text(data.get(field_name))
            if content:
                break
        content = self._require_content(content, url)

        return RawExtraction(
            url=url,
            title=optional_text(data.get("title")),
            author=optional_text(data.get("author")),
            content=content,
            excerpt=optional_text(data.get("excerpt")),
            lead_image_url=optional_text(data.get("image")),
            published_at=optional_text(data.get("publish_date")),
            word_count=None,
            direction=None,
            total_pages=None,
            rendered_pages=None,
            next_page_url=None,
            dek=None,
        )
