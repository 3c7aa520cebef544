"""Packaged factor table and its loader."""

from footprint_engine.data.loader import (
    DEFAULT_FACTOR_TABLE,
    get_default_store,
    load_factor_store,
    load_factors,
    reset_default_store,
)

__all__ = [
    "DEFAULT_FACTOR_TABLE",
    "get_default_store",
    "load_factor_store",
    "load_factors",
    "reset_default_store",
]
