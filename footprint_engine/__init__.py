"""
Footprint Engine
================

Emission calculation engine for personal carbon footprint tracking:
factor resolution with region/unit fallback, explicit unit conversion,
attribute modifiers and a degraded-mode fallback calculator.
"""

from ._version import __version__

from footprint_engine.calculation import (
    ActivityRecord,
    BatchResult,
    CalculationResult,
    EmissionEngine,
    EmissionFactor,
    FactorStore,
    FallbackCalculator,
    calculate_with_fallback,
)
from footprint_engine.data.loader import load_factor_store, load_factors

__all__ = [
    "__version__",
    "ActivityRecord",
    "BatchResult",
    "CalculationResult",
    "EmissionEngine",
    "EmissionFactor",
    "FactorStore",
    "FallbackCalculator",
    "calculate_with_fallback",
    "load_factor_store",
    "load_factors",
]
