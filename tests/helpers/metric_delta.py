"""
Helpers for validating metric value changes during tests.
"""

from contextlib import contextmanager
from typing import Dict, Optional

from prometheus_client import REGISTRY


def sample_value(name: str, labels: Optional[Dict[str, str]] = None) -> float:
    """Current value of a sample in the default registry (0 when never recorded)."""
    value = REGISTRY.get_sample_value(name, labels or {})
    return value or 0.0


@contextmanager
def metric_delta(name: str, labels: Optional[Dict[str, str]] = None, expected_delta: float = 1):
    """
    Context manager to validate that a sample changes by ``expected_delta``.

    Usage:
        with metric_delta("articleflow_ingestions_total", {"outcome": "success"}):
            # Code that should increment the counter by 1
            ...
    """
    initial_value = sample_value(name, labels)

    yield

    final_value = sample_value(name, labels)
    actual_delta = final_value - initial_value
    if actual_delta != expected_delta:
        raise AssertionError(
            f"Expected {name}{labels or ''} to change by {expected_delta}, "
            f"but it changed by {actual_delta} (from {initial_value} to {final_value})"
        )
