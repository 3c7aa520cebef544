# -*- coding: utf-8 -*-
"""
Footprint Engine Configuration

Centralized configuration for the emission calculation engine covering:
- Factor table location (packaged default or an external YAML/JSON file)
- Default region preference for region-sensitive categories
- Batch parallelism
- Metrics and logging

All settings can be overridden via environment variables with the
``FPE_`` prefix (e.g. ``FPE_DEFAULT_REGION``).

Example:
    >>> from footprint_engine.config import get_config
    >>> cfg = get_config()
    >>> print(cfg.default_region, cfg.batch_max_workers)
"""

from __future__ import annotations

import logging
import os
import threading
from dataclasses import dataclass
from typing import Any, Optional

logger = logging.getLogger(__name__)

_ENV_PREFIX = "FPE_"


@dataclass
class FootprintEngineConfig:
    """Configuration for the footprint engine.

    Attributes:
        factor_table_path: YAML/JSON factor table; empty uses the packaged table.
        default_region: Region preferred for energy factors when the
            activity carries none.
        batch_max_workers: Thread pool size for batch calculation
            (1 runs items sequentially).
        enable_metrics: Whether to record Prometheus metrics.
        log_level: Logging level for the CLI.
    """

    factor_table_path: str = ""
    default_region: str = "IN"
    batch_max_workers: int = 1
    enable_metrics: bool = True
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> FootprintEngineConfig:
        """Build a FootprintEngineConfig from environment variables.

        Every field can be overridden via ``FPE_<FIELD_UPPER>``.
        Boolean values accept ``true/1/yes`` (case-insensitive).

        Returns:
            Populated FootprintEngineConfig instance.
        """
        prefix = _ENV_PREFIX

        def _env(name: str, default: Any = None) -> Optional[str]:
            return os.environ.get(f"{prefix}{name}", default)

        def _bool(name: str, default: bool) -> bool:
            val = _env(name)
            if val is None:
                return default
            return val.lower() in ("true", "1", "yes")

        def _int(name: str, default: int) -> int:
            val = _env(name)
            if val is None:
                return default
            try:
                return int(val)
            except ValueError:
                logger.warning(
                    "Invalid integer for %s%s=%s, using default %d",
                    prefix, name, val, default,
                )
                return default

        def _str(name: str, default: str) -> str:
            val = _env(name)
            if val is None:
                return default
            return val

        config = cls(
            factor_table_path=_str("FACTOR_TABLE_PATH", cls.factor_table_path),
            default_region=_str("DEFAULT_REGION", cls.default_region),
            batch_max_workers=_int("BATCH_MAX_WORKERS", cls.batch_max_workers),
            enable_metrics=_bool("ENABLE_METRICS", cls.enable_metrics),
            log_level=_str("LOG_LEVEL", cls.log_level),
        )

        if config.batch_max_workers < 1:
            logger.warning(
                "%sBATCH_MAX_WORKERS must be >= 1, got %d; using 1",
                prefix, config.batch_max_workers,
            )
            config.batch_max_workers = 1

        logger.info(
            "FootprintEngineConfig loaded: factor_table=%s, default_region=%s, "
            "batch_workers=%d, metrics=%s",
            config.factor_table_path or "<packaged>",
            config.default_region,
            config.batch_max_workers,
            config.enable_metrics,
        )
        return config


# ---------------------------------------------------------------------------
# Thread-safe singleton accessor
# ---------------------------------------------------------------------------

_config_instance: Optional[FootprintEngineConfig] = None
_config_lock = threading.Lock()


def get_config() -> FootprintEngineConfig:
    """Return the singleton FootprintEngineConfig, creating from env if needed."""
    global _config_instance
    if _config_instance is None:
        with _config_lock:
            if _config_instance is None:
                _config_instance = FootprintEngineConfig.from_env()
    return _config_instance


def set_config(config: FootprintEngineConfig) -> None:
    """Replace the singleton FootprintEngineConfig (useful for testing).

    Args:
        config: New configuration to install.
    """
    global _config_instance
    with _config_lock:
        _config_instance = config
    logger.info("FootprintEngineConfig replaced programmatically")


def reset_config() -> None:
    """Reset the singleton (primarily for test teardown)."""
    global _config_instance
    with _config_lock:
        _config_instance = None


__all__ = [
    "FootprintEngineConfig",
    "get_config",
    "set_config",
    "reset_config",
]
