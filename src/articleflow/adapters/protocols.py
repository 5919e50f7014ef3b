"""
Protocol shared by all backend adapters.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from ..models import Backend, RawExtraction


@runtime_checkable
class Adapter(Protocol):
    """Stateless wrapper around one upstream extraction service."""

    backend: Backend

    async def extract(self, url: str, timeout: float) -> RawExtraction:
        """Extract an article with exactly one upstream call.

        Args:
            url: Canonical URL of the article
            timeout: Per-attempt network timeout in seconds

        Returns:
            RawExtraction with non-empty content

        Raises:
            AdapterError: On network failure, timeout, malformed or empty payload
        """
        ...
