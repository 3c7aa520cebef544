"""
Footprint Emission Calculation Engine

Deterministic, factor-table-driven emission estimates for user-reported
activities (trips, energy use, food, waste, water, purchases).

Components:
- UnitConverter: Whitelisted unit conversions
- ModifierResolver: Attribute-driven multiplicative adjustments
- FactorStore: Factor index with region/unit fallback
- ActivityMapper: Activity type -> (category, subtype), flight haul selection
- EmissionEngine: Single-activity calculation
- BatchCalculator: Batch aggregation with error isolation
- FallbackCalculator: Static degraded-mode estimates
"""

from footprint_engine.calculation.unit_converter import UnitConverter, denominator_unit, to_match_unit
from footprint_engine.calculation.modifiers import ModifierResolver, ModifierResult, multiplier_from
from footprint_engine.calculation.factor_store import EmissionFactor, FactorStore
from footprint_engine.calculation.activity_mapper import (
    ActivityMapper,
    ActivityMapping,
    flight_distance_km,
    select_flight_subtype,
)
from footprint_engine.calculation.core_calculator import (
    ActivityRecord,
    CalculationResult,
    EmissionEngine,
)
from footprint_engine.calculation.batch_calculator import BatchCalculator, BatchResult
from footprint_engine.calculation.fallback_calculator import (
    AnnualFootprint,
    FallbackCalculator,
    calculate_with_fallback,
)

__all__ = [
    # Units and modifiers
    "UnitConverter",
    "denominator_unit",
    "to_match_unit",
    "ModifierResolver",
    "ModifierResult",
    "multiplier_from",
    # Factors and mapping
    "EmissionFactor",
    "FactorStore",
    "ActivityMapper",
    "ActivityMapping",
    "flight_distance_km",
    "select_flight_subtype",
    # Engine
    "ActivityRecord",
    "CalculationResult",
    "EmissionEngine",
    "BatchCalculator",
    "BatchResult",
    # Degraded mode
    "AnnualFootprint",
    "FallbackCalculator",
    "calculate_with_fallback",
]
