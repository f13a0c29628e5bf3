"""
Helper for Prometheus metric registration.

Retrieves an already registered collector instead of failing when a module
is imported twice (uvicorn --reload, repeated application() calls in tests).
"""

from typing import Any, TypeVar

from prometheus_client import REGISTRY, Counter, Gauge, Histogram

MetricT = TypeVar("MetricT", Counter, Gauge, Histogram)


def _get_or_create(
    metric_cls: type[MetricT],
    name: str,
    doc: str,
    labels: list[str] | None = None,
    **kwargs: Any,
) -> MetricT:
    """
    Get existing metric or create new one.

    Args:
        metric_cls: Counter, Gauge or Histogram.
        name: Metric name.
        doc: Metric documentation.
        labels: Optional list of label names.
        **kwargs: Extra collector arguments, e.g. histogram buckets.

    Returns:
        Metric instance.
    """
    try:
        return metric_cls(name, doc, labels or [], **kwargs)
    except ValueError:
        # Metric already exists, retrieve it from registry
        return REGISTRY._names_to_collectors[name]
