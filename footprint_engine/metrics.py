# -*- coding: utf-8 -*-
"""
Prometheus Metrics - Footprint Engine

Metrics:
    1. fpe_calculations_total (Counter, labels: category, status)
    2. fpe_calculation_errors_total (Counter, labels: error_type)
    3. fpe_fallback_uses_total (Counter, labels: reason)
    4. fpe_batch_size (Histogram)
    5. fpe_calculation_duration_seconds (Histogram, labels: operation)

Recording is skipped when ``enable_metrics`` is off in the engine config.
"""

from __future__ import annotations

import logging

from prometheus_client import Counter, Histogram

from footprint_engine.config import get_config

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Metric definitions
# ---------------------------------------------------------------------------

# 1. Calculations by category and outcome
fpe_calculations_total = Counter(
    "fpe_calculations_total",
    "Total emission calculations",
    labelnames=["category", "status"],
)

# 2. Errors by exception type
fpe_calculation_errors_total = Counter(
    "fpe_calculation_errors_total",
    "Total emission calculation errors",
    labelnames=["error_type"],
)

# 3. Degraded-mode fallbacks by reason
fpe_fallback_uses_total = Counter(
    "fpe_fallback_uses_total",
    "Total calculations answered by the static fallback calculator",
    labelnames=["reason"],
)

# 4. Batch size distribution
fpe_batch_size = Histogram(
    "fpe_batch_size",
    "Number of activities per batch calculation",
    buckets=(1, 5, 10, 25, 50, 100, 250, 500, 1000, 5000),
)

# 5. Duration by operation
fpe_calculation_duration_seconds = Histogram(
    "fpe_calculation_duration_seconds",
    "Emission calculation duration in seconds",
    labelnames=["operation"],
    buckets=(
        0.0001, 0.0005, 0.001, 0.005, 0.01,
        0.05, 0.1, 0.5, 1.0, 5.0,
    ),
)


# ---------------------------------------------------------------------------
# Helper functions
# ---------------------------------------------------------------------------


def _enabled() -> bool:
    return get_config().enable_metrics


def record_calculation(category: str, status: str) -> None:
    """Record a single calculation.

    Args:
        category: Engine category ("unknown" when mapping failed).
        status: success or failed.
    """
    if not _enabled():
        return
    fpe_calculations_total.labels(category=category, status=status).inc()


def record_error(error_type: str) -> None:
    """Record a calculation error by exception class name."""
    if not _enabled():
        return
    fpe_calculation_errors_total.labels(error_type=error_type).inc()


def record_fallback(reason: str) -> None:
    """Record a degraded-mode fallback.

    Args:
        reason: Exception class name, or "invalid_result".
    """
    if not _enabled():
        return
    fpe_fallback_uses_total.labels(reason=reason).inc()


def record_batch(size: int) -> None:
    if not _enabled():
        return
    fpe_batch_size.observe(size)


def record_duration(operation: str, duration: float) -> None:
    """Record processing duration for an operation.

    Args:
        operation: calculate or batch.
        duration: Duration in seconds.
    """
    if not _enabled():
        return
    fpe_calculation_duration_seconds.labels(operation=operation).observe(duration)


__all__ = [
    "fpe_calculations_total",
    "fpe_calculation_errors_total",
    "fpe_fallback_uses_total",
    "fpe_batch_size",
    "fpe_calculation_duration_seconds",
    "record_calculation",
    "record_error",
    "record_fallback",
    "record_batch",
    "record_duration",
]
