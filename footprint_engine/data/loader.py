"""
Factor Table Loader
===================

Loads the flat emission factor list from YAML or JSON and builds the
process-wide FactorStore.

The packaged table (``emission_factors.yaml`` next to this module) is used
when no path is given and none is configured via ``FPE_FACTOR_TABLE_PATH``.
"""

import json
import logging
import threading
from pathlib import Path
from typing import Any, List, Optional, Union

import yaml

from footprint_engine.calculation.factor_store import EmissionFactor, FactorStore
from footprint_engine.config import get_config
from footprint_engine.exceptions import InvalidFactorTable

logger = logging.getLogger(__name__)

DEFAULT_FACTOR_TABLE = Path(__file__).parent / "emission_factors.yaml"


def default_table_path() -> Path:
    """Configured factor table path, or the packaged table."""
    configured = get_config().factor_table_path
    return Path(configured) if configured else DEFAULT_FACTOR_TABLE


def _read(path: Path) -> Any:
    with open(path, 'r', encoding='utf-8') as f:
        if path.suffix.lower() == '.json':
            return json.load(f)
        return yaml.safe_load(f)


def load_factors(path: Optional[Union[str, Path]] = None) -> List[EmissionFactor]:
    """
    Load emission factors from a YAML or JSON file.

    The file holds either a list of factor rows or a mapping with a
    ``factors`` list.

    Args:
        path: Factor table path (defaults to the configured/packaged table)

    Returns:
        List of EmissionFactor; empty if the file is missing or unparseable

    Raises:
        InvalidFactorTable: If the file parses but a row is malformed
    """
    path = Path(path) if path is not None else default_table_path()

    try:
        data = _read(path)
    except FileNotFoundError:
        logger.error("Emission factor table not found: %s", path)
        return []
    except (yaml.YAMLError, json.JSONDecodeError) as e:
        logger.error("Failed to parse emission factor table %s: %s", path, e)
        return []

    if isinstance(data, dict):
        data = data.get("factors")
    if data is None:
        logger.error("Emission factor table is empty: %s", path)
        return []
    if not isinstance(data, list):
        raise InvalidFactorTable(
            f"Factor table must be a list of factors: {path}",
            context={"path": str(path)},
        )

    factors = [EmissionFactor.from_dict(row) for row in data]
    logger.info("Loaded %d emission factors from %s", len(factors), path)
    return factors


def load_factor_store(path: Optional[Union[str, Path]] = None) -> FactorStore:
    """Load a factor table and index it."""
    return FactorStore(load_factors(path))


# ---------------------------------------------------------------------------
# Process-wide default store
# ---------------------------------------------------------------------------

_default_store: Optional[FactorStore] = None
_store_lock = threading.Lock()


def get_default_store() -> FactorStore:
    """Return the shared FactorStore, loading it on first use."""
    global _default_store
    if _default_store is None:
        with _store_lock:
            if _default_store is None:
                _default_store = load_factor_store()
    return _default_store


def reset_default_store() -> None:
    """Drop the shared store so the next access reloads (test teardown)."""
    global _default_store
    with _store_lock:
        _default_store = None


__all__ = [
    "DEFAULT_FACTOR_TABLE",
    "default_table_path",
    "get_default_store",
    "load_factor_store",
    "load_factors",
    "reset_default_store",
]
