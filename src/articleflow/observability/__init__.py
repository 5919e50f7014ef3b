"""Structured logging and Prometheus metrics."""

from __future__ import annotations

from .logging import configure_logging, ingestion_context
from .metrics import ADAPTER_ATTEMPTS, INGESTION_DURATION, INGESTIONS, record_attempt, record_ingestion

__all__ = [
    "ADAPTER_ATTEMPTS",
    "INGESTIONS",
    "INGESTION_DURATION",
    "configure_logging",
    "ingestion_context",
    "record_attempt",
    "record_ingestion",
]
