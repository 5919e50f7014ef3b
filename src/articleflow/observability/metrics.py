"""
Prometheus metrics for the ingestion pipeline.

Collectors register on the default registry; exposing them (HTTP exporter,
push gateway) is left to the embedding application.
"""

from __future__ import annotations

from typing import Any, Callable

from prometheus_client import REGISTRY as _PROM_REGISTRY
from prometheus_client import Counter as _OrigCounter
from prometheus_client import Histogram as _OrigHistogram


def _duplicate_safe_factory(metric_cls: Any) -> Callable[..., Any]:
    """Return a factory that reuses an existing collector if already present."""

    def _factory(name: str, documentation: str, *args: Any, **kwargs: Any) -> Any:
        # Counters register under their name without the _total suffix.
        key = name[: -len("_total")] if name.endswith("_total") else name
        existing = _PROM_REGISTRY._names_to_collectors.get(key)
        if existing is not None:
            return existing

        try:
            return metric_cls(name, documentation, *args, **kwargs)
        except ValueError:
            # Registration lost the race; use the collector that won it.
            return _PROM_REGISTRY._names_to_collectors[key]

    return _factory


Counter = _duplicate_safe_factory(_OrigCounter)
Histogram = _duplicate_safe_factory(_OrigHistogram)

INGESTIONS = Counter(
    "articleflow_ingestions_total",
    "Ingestion calls by terminal outcome",
    ["outcome"],
)

ADAPTER_ATTEMPTS = Counter(
    "articleflow_adapter_attempts_total",
    "Individual adapter attempts by backend and outcome",
    ["backend", "outcome"],
)

INGESTION_DURATION = Histogram(
    "articleflow_ingestion_duration_seconds",
    "Wall-clock duration of one ingestion call",
    buckets=(0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0, 120.0, 300.0),
)


def record_attempt(backend: str, outcome: str) -> None:
    """Count one adapter attempt; ``outcome`` is ``success`` or an error code."""
    ADAPTER_ATTEMPTS.labels(backend=backend, outcome=outcome).inc()


def record_ingestion(outcome: str, duration: float) -> None:
    INGESTIONS.labels(outcome=outcome).inc()
    INGESTION_DURATION.observe(duration)
