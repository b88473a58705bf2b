"""
logistics_config -- single public entrypoint for engine settings.

Responsibility:
    ``get_engine_settings()`` is the only way engines and modules obtain
    their tunable constants (number division, sequence width, budget warning
    ratio, subtotal tolerance, variance warning threshold).  YAML loading is
    internal.

Failure modes:
    - ``FileNotFoundError`` -- the requested settings file does not exist.
    - ``ValueError`` -- a value is malformed or out of range.

Audit relevance:
    Each load emits a ``LOGISTICS_CONFIG_TRACE`` log entry with the
    settings id, version and checksum.
"""

from __future__ import annotations

import functools
import logging
from pathlib import Path

from logistics_config.loader import load_settings
from logistics_config.schema import EngineSettings, NumberingSettings, ThresholdSettings

_logger = logging.getLogger("logistics_kernel.config")

_DEFAULT_SETTINGS_FILE = Path(__file__).parent / "sets" / "default.yaml"

__all__ = [
    "EngineSettings",
    "NumberingSettings",
    "ThresholdSettings",
    "clear_settings_cache",
    "get_engine_settings",
]


@functools.lru_cache(maxsize=8)
def _load_cached(path: Path) -> EngineSettings:
    settings = load_settings(path)
    _logger.info(
        "LOGISTICS_CONFIG_TRACE",
        extra={
            "trace_type": "LOGISTICS_CONFIG_TRACE",
            "settings_id": settings.settings_id,
            "settings_version": settings.version,
            "checksum": settings.checksum,
            "path": str(path),
        },
    )
    return settings


def get_engine_settings(path: Path | str | None = None) -> EngineSettings:
    """Return the active engine settings (cached per file path)."""
    resolved = Path(path) if path is not None else _DEFAULT_SETTINGS_FILE
    return _load_cached(resolved.resolve())


def clear_settings_cache() -> None:
    """Drop cached settings. FOR TESTING ONLY."""
    _load_cached.cache_clear()
