"""
Shared helpers for payload mapping in the backend adapters.
"""

from __future__ import annotations

import re
from typing import Any, Mapping, Optional

from ..models import Backend
from .errors import AdapterError, AdapterErrorCode
from .transport import HttpTransport

_TAG_RE = re.compile(r"<[^>]*>")


def optional_text(value: Any) -> Optional[str]:
    """Stripped string value, or None for missing/blank/non-string values."""
    if value is None:
        return None
    if not isinstance(value, (str, int, float)):
        return None
    text = str(value).strip()
    return text or None


def optional_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value)
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    return None


def has_text(content: Optional[str]) -> bool:
    """True when ``content`` holds any visible text once markup is removed."""
    if not content:
        return False
    return bool(_TAG_RE.sub(" ", content).strip())


class BaseAdapter:
    """Common plumbing for adapters: the backend tag and the injected transport."""

    backend: Backend

    def __init__(self, transport: HttpTransport) -> None:
        self._transport = transport

    def _error(self, code: AdapterErrorCode, message: str, **details: Any) -> AdapterError:
        return AdapterError(code, message, backend=self.backend, details=details or None)

    def _require_mapping(self, payload: Any) -> Mapping[str, Any]:
        if not isinstance(payload, Mapping):
            raise self._error(
                AdapterErrorCode.MALFORMED_RESPONSE,
                f"Expected a JSON object, got {type(payload).__name__}",
            )
        return payload

    def _require_content(self, content: Optional[str], url: str) -> str:
        if not has_text(content):
            raise self._error(AdapterErrorCode.EMPTY_CONTENT, "Upstream returned no article content", url=url)
        assert content is not None
        return content
