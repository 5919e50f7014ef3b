"""
Typed failures raised by backend adapters.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Optional

from ..models import Backend


class AdapterErrorCode(str, Enum):
    EMPTY_CONTENT = "EMPTY_CONTENT"
    NETWORK = "NETWORK"
    TIMEOUT = "TIMEOUT"
    MALFORMED_RESPONSE = "MALFORMED_RESPONSE"


class AdapterError(Exception):
    """A single failed adapter attempt. Retried by the orchestrator."""

    def __init__(
        self,
        code: AdapterErrorCode,
        message: str,
        *,
        backend: Optional[Backend] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.backend = backend
        self.details = details or {}

    def with_backend(self, backend: Backend) -> AdapterError:
        """Return a copy tagged with the adapter that produced it."""
        if self.backend is backend:
            return self
        return AdapterError(self.code, self.message, backend=backend, details=self.details)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code.value,
            "message": self.message,
            "backend": self.backend.value if self.backend else None,
            **({"details": self.details} if self.details else {}),
        }

    def __repr__(self) -> str:
        return f"AdapterError({self.code.value}, {self.message!r})"
