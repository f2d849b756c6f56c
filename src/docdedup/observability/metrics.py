"""
Defines Prometheus metrics for the deduplication pipeline.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from prometheus_client import REGISTRY as _PROM_REGISTRY
from prometheus_client import Counter as _OrigCounter
from prometheus_client import Histogram as _OrigHistogram

# ---------------------------------------------------------------------------
# Duplicate-safe Prometheus metric wrappers
# ---------------------------------------------------------------------------
# The module may be imported more than once during a test session; reuse an
# already registered collector instead of failing on duplicate registration.


def _duplicate_safe_factory(metric_cls):
    """Return a factory that reuses an existing collector if already present."""

    def _factory(name: str, documentation: str, *args, **kwargs):  # type: ignore[override]
        existing = _PROM_REGISTRY._names_to_collectors.get(name)
        if existing is not None:
            return existing  # type: ignore[return-value]

        try:
            return metric_cls(name, documentation, *args, **kwargs)  # type: ignore[call-arg]
        except ValueError:
            # Registration lost the race; fall back to the now-existing collector.
            return _PROM_REGISTRY._names_to_collectors[name]  # type: ignore[return-value]

    return _factory


Counter = _duplicate_safe_factory(_OrigCounter)  # type: ignore[assignment]
Histogram = _duplicate_safe_factory(_OrigHistogram)  # type: ignore[assignment]


METRICS: Dict[str, Any] = {
    "documents_processed": Counter(
        "docdedup_documents_processed_total",
        "Total number of documents examined by the deduplication pipeline",
    ),
    "documents_skipped": Counter(
        "docdedup_documents_skipped_total",
        "Documents excluded from grouping",
        ["cause"],
    ),
    "duplicates_found": Counter(
        "docdedup_duplicates_found_total",
        "Documents classified as duplicates of a canonical document",
        ["reason"],
    ),
    "existence_checks": Counter(
        "docdedup_existence_checks_total",
        "Document store existence lookups by outcome",
        ["outcome"],
    ),
    "batch_latency_seconds": Histogram(
        "docdedup_batch_latency_seconds",
        "Time spent deduplicating a single batch",
        buckets=[0.001, 0.005, 0.01, 0.05, 0.1, 0.5, 1.0, 5.0, 10.0, 30.0],
    ),
}


def increment(name: str, value: float = 1.0, labels: Optional[Dict[str, Any]] = None) -> None:
    """Increment a counter metric."""
    if name in METRICS:
        metric = METRICS[name]
        if labels is not None:
            metric.labels(**labels).inc(value)
        else:
            metric.inc(value)


def observe(name: str, value: float, labels: Optional[Dict[str, Any]] = None) -> None:
    """Observe a histogram metric."""
    if name in METRICS:
        metric = METRICS[name]
        if labels is not None:
            metric.labels(**labels).observe(value)
        else:
            metric.observe(value)


def export_prometheus() -> str:
    """Export metrics in Prometheus format."""
    from prometheus_client import generate_latest

    return generate_latest().decode("utf-8")
