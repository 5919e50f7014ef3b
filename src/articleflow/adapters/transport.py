"""
HTTP transport shared by the backend adapters.

Whether requests go straight to the upstream service or through a CORS
forwarding proxy is decided here, by the caller that builds the transport;
adapters only ever see target URLs.
"""

from __future__ import annotations

import asyncio
import json
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional
from urllib.parse import quote, urlencode

import aiohttp
import structlog

from .errors import AdapterError, AdapterErrorCode

logger = structlog.get_logger(__name__)

DEFAULT_USER_AGENT = "ArticleFlow/1.0 (+https://github.com/articleflow/articleflow)"


@dataclass
class TransportResponse:
    """Body and status of one upstream response."""

    status: int
    url: str
    text: str
    content_type: Optional[str] = None


class HttpTransport:
    """
    Thin aiohttp wrapper issuing exactly one request per call.

    No retries happen here: retry and backoff belong to the orchestrator.
    Every transport failure surfaces as an ``AdapterError``.
    """

    def __init__(
        self,
        *,
        proxy_prefix: Optional[str] = None,
        user_agent: str = DEFAULT_USER_AGENT,
        session: Optional[aiohttp.ClientSession] = None,
    ) -> None:
        self.proxy_prefix = proxy_prefix.rstrip("/") if proxy_prefix else None
        self.user_agent = user_agent
        self._headers = {
            "User-Agent": user_agent,
            "Accept": "application/json, text/html;q=0.9, */*;q=0.8",
        }
        self.session: Optional[aiohttp.ClientSession] = session
        self._owns_session = session is None

    async def initialize(self) -> None:
        """Open the underlying client session."""
        if self.session is None:
            self.session = aiohttp.ClientSession(headers=self._headers)
            self._owns_session = True
            logger.debug("HTTP transport session opened", proxied=self.proxy_prefix is not None)

    async def close(self) -> None:
        if self.session is not None and self._owns_session:
            await self.session.close()
        self.session = None

    async def __aenter__(self) -> HttpTransport:
        await self.initialize()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    def route(self, url: str, params: Optional[Mapping[str, str]] = None) -> str:
        """Final request URL for ``url``, including the proxy prefix if any."""
        target = url
        if params:
            separator = "&" if "?" in url else "?"
            target = f"{url}{separator}{urlencode(params, quote_via=quote)}"
        if self.proxy_prefix:
            return f"{self.proxy_prefix}/{target}"
        return target

    async def request(
        self,
        method: str,
        url: str,
        *,
        timeout: float,
        params: Optional[Mapping[str, str]] = None,
        headers: Optional[Mapping[str, str]] = None,
        json_body: Any = None,
    ) -> TransportResponse:
        """Perform one request and return its body, mapping failures to ``AdapterError``."""
        if self.session is None:
            raise RuntimeError("HttpTransport not initialized. Use: `async with HttpTransport() as t:`")

        target = self.route(url, params)
        request_headers: Dict[str, str] = dict(headers or {})
        kwargs: Dict[str, Any] = {"headers": request_headers}
        if json_body is not None:
            kwargs["data"] = json.dumps(json_body)
            request_headers.setdefault("Content-Type", "application/json")

        logger.debug("Upstream request", method=method, url=target, timeout=timeout)
        try:
            async with asyncio.timeout(timeout):
                async with self.session.request(method, target, **kwargs) as response:
                    text = await response.text(errors="replace")
                    status = response.status
                    content_type = response.headers.get("Content-Type")
        except TimeoutError as e:
            raise AdapterError(
                AdapterErrorCode.TIMEOUT,
                f"Request timed out after {timeout}s",
                details={"url": target},
            ) from e
        except aiohttp.ClientError as e:
            raise AdapterError(
                AdapterErrorCode.NETWORK,
                f"Request failed: {type(e).__name__}: {e}",
                details={"url": target},
            ) from e

        if status >= 400:
            raise AdapterError(
                AdapterErrorCode.NETWORK,
                f"Upstream returned HTTP {status}",
                details={"url": target, "status": status},
            )

        return TransportResponse(status=status, url=target, text=text, content_type=content_type)

    async def get_json(
        self,
        url: str,
        *,
        timeout: float,
        params: Optional[Mapping[str, str]] = None,
        headers: Optional[Mapping[str, str]] = None,
    ) -> Any:
        response = await self.request("GET", url, timeout=timeout, params=params, headers=headers)
        return _decode_json(response)

    async def post_json(
        self,
        url: str,
        *,
        payload: Any,
        timeout: float,
        headers: Optional[Mapping[str, str]] = None,
    ) -> Any:
        response = await self.request("POST", url, timeout=timeout, headers=headers, json_body=payload)
        return _decode_json(response)

    async def get_text(
        self,
        url: str,
        *,
        timeout: float,
        headers: Optional[Mapping[str, str]] = None,
    ) -> str:
        response = await self.request("GET", url, timeout=timeout, headers=headers)
        return response.text


def _decode_json(response: TransportResponse) -> Any:
    try:
        return json.loads(response.text)
    except ValueError as e:
        raise AdapterError(
            AdapterErrorCode.MALFORMED_RESPONSE,
            "Upstream response is not valid JSON",
            details={"url": response.url, "content_type": response.content_type},
        ) from e
