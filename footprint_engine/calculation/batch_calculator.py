"""
Batch Calculator

Aggregates many activity calculations into totals and breakdowns.

Features:
- Error isolation (one bad activity never aborts the batch)
- Optional thread pool with input order preserved
- Per-category and per-activity-type subtotals
"""

import logging
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, List, Mapping, Optional, Sequence

from footprint_engine import metrics
from footprint_engine.calculation.core_calculator import EmissionEngine, quantize
from footprint_engine.calculation.factor_store import FactorStore
from footprint_engine.exceptions import error_message

logger = logging.getLogger(__name__)

UNKNOWN_CATEGORY = "unknown"


@dataclass
class BatchResult:
    """
    Result of a batch calculation.

    Attributes:
        results: One wire-form entry per input activity, in input order
        total_kgCO2e: Sum of successful emissions (3 decimals)
        by_category: Category -> subtotal
        by_activity_type: Activity type -> subtotal
        successful_count: Number of successful calculations
        failed_count: Number of failed calculations
        batch_duration_seconds: Total batch processing time
    """
    results: List[Dict[str, Any]]
    total_kgCO2e: float = 0.0
    by_category: Dict[str, float] = field(default_factory=dict)
    by_activity_type: Dict[str, float] = field(default_factory=dict)
    successful_count: int = 0
    failed_count: int = 0
    batch_duration_seconds: float = 0.0

    def __post_init__(self):
        """Calculate summary statistics"""
        total = Decimal('0')
        by_category: Dict[str, Decimal] = {}
        by_activity_type: Dict[str, Decimal] = {}

        for entry in self.results:
            if not entry.get("success"):
                continue
            emission = Decimal(str(entry["calculated_kgCO2e"]))
            total += emission
            category = entry.get("category") or UNKNOWN_CATEGORY
            by_category[category] = by_category.get(category, Decimal('0')) + emission
            activity_type = entry.get("activityType")
            by_activity_type[activity_type] = by_activity_type.get(activity_type, Decimal('0')) + emission

        self.total_kgCO2e = float(quantize(total))
        self.by_category = {k: float(quantize(v)) for k, v in by_category.items()}
        self.by_activity_type = {k: float(quantize(v)) for k, v in by_activity_type.items()}
        self.successful_count = sum(1 for r in self.results if r.get("success"))
        self.failed_count = len(self.results) - self.successful_count

    def get_failed_results(self) -> List[Dict[str, Any]]:
        """Get all failed entries"""
        return [r for r in self.results if not r.get("success")]

    def to_dict(self) -> Dict[str, Any]:
        """Wire form of the batch"""
        return {
            "success": True,
            "total_kgCO2e": self.total_kgCO2e,
            "byCategory": dict(self.by_category),
            "byActivityType": dict(self.by_activity_type),
            "results": list(self.results),
            "successful_count": self.successful_count,
            "failed_count": self.failed_count,
        }


def _activity_type_of(activity: Any) -> Optional[str]:
    if isinstance(activity, Mapping):
        return activity.get("activityType", activity.get("activity_type"))
    return getattr(activity, "activity_type", None)


class BatchCalculator:
    """
    Batch calculator over an EmissionEngine.

    Items run sequentially in input order, or on a thread pool when
    max_workers > 1 (results keep input order either way).
    """

    def __init__(
        self,
        engine: Optional[EmissionEngine] = None,
        max_workers: Optional[int] = None,
    ):
        """
        Initialize batch calculator.

        Args:
            engine: Emission engine (auto-creates if None)
            max_workers: Thread pool size; None or 1 runs sequentially
        """
        self.engine = engine or EmissionEngine()
        self.max_workers = max_workers

    def calculate_batch(
        self,
        activities: Sequence[Any],
        store: Optional[FactorStore] = None,
    ) -> BatchResult:
        """
        Calculate emissions for a batch of activities.

        Args:
            activities: ActivityRecords or JSON-like mappings
            store: Factor store override

        Returns:
            BatchResult with one entry per activity
        """
        start = time.perf_counter()
        store = store if store is not None else self.engine.store
        activities = list(activities)

        logger.info("Starting batch calculation: %d activities", len(activities))

        if self.max_workers and self.max_workers > 1 and len(activities) > 1:
            with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
                results = list(executor.map(lambda a: self._safe_calculate(a, store), activities))
        else:
            results = [self._safe_calculate(a, store) for a in activities]

        duration = time.perf_counter() - start
        batch_result = BatchResult(results=results, batch_duration_seconds=duration)

        metrics.record_batch(len(activities))
        metrics.record_duration("batch", duration)
        logger.info(
            "Batch calculation completed: %d ok, %d failed, total %.3f kgCO2e in %.3fs",
            batch_result.successful_count,
            batch_result.failed_count,
            batch_result.total_kgCO2e,
            duration,
        )
        return batch_result

    def _safe_calculate(self, activity: Any, store: FactorStore) -> Dict[str, Any]:
        """
        Calculate one activity, turning any error into a failure entry.

        Returns:
            Result wire form, or {"success": False, "error", "activityType"}
        """
        try:
            return self.engine.calculate(activity, store=store).to_dict()
        except Exception as e:
            activity_type = _activity_type_of(activity)
            logger.error("Calculation failed for %s: %s", activity_type, error_message(e))
            return {
                "success": False,
                "error": error_message(e),
                "activityType": activity_type,
            }


__all__ = [
    "BatchCalculator",
    "BatchResult",
]
