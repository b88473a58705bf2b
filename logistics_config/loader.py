"""
Settings Loader (``logistics_config.loader``).

Responsibility
--------------
Loads a YAML settings file and parses it into the frozen dataclasses of
``logistics_config.schema``.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Non-numeric threshold or invalid range  -> ``ValueError``.
"""

from __future__ import annotations

import hashlib
import json
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any

import yaml

from logistics_config.schema import EngineSettings, NumberingSettings, ThresholdSettings


def load_yaml_file(path: Path) -> dict[str, Any]:
    """Load a single YAML file and return its contents as a dict."""
    with open(path, encoding="utf-8") as f:
        data = yaml.safe_load(f)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"Settings file {path} must contain a mapping, got {type(data).__name__}")
    return data


def compute_checksum(data: dict[str, Any]) -> str:
    """Deterministic SHA-256 of the parsed settings mapping."""
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()


def _decimal(raw: dict[str, Any], key: str, default: Decimal) -> Decimal:
    if key not in raw:
        return default
    try:
        return Decimal(str(raw[key]))
    except InvalidOperation as e:
        raise ValueError(f"thresholds.{key} must be numeric, got {raw[key]!r}") from e


def parse_numbering(raw: dict[str, Any]) -> NumberingSettings:
    defaults = NumberingSettings()
    return NumberingSettings(
        division=str(raw.get("division", defaults.division)),
        sequence_width=int(raw.get("sequence_width", defaults.sequence_width)),
        jo_prefix=str(raw.get("jo_prefix", defaults.jo_prefix)),
    )


def parse_thresholds(raw: dict[str, Any]) -> ThresholdSettings:
    defaults = ThresholdSettings()
    return ThresholdSettings(
        budget_warning_ratio=_decimal(raw, "budget_warning_ratio", defaults.budget_warning_ratio),
        subtotal_tolerance=_decimal(raw, "subtotal_tolerance", defaults.subtotal_tolerance),
        variance_warning_percent=_decimal(
            raw, "variance_warning_percent", defaults.variance_warning_percent
        ),
    )


def parse_settings(data: dict[str, Any]) -> EngineSettings:
    """Parse a settings mapping into ``EngineSettings``."""
    return EngineSettings(
        settings_id=str(data.get("settings_id", "default")),
        version=int(data.get("version", 1)),
        currency=str(data.get("currency", "IDR")).upper(),
        numbering=parse_numbering(data.get("numbering") or {}),
        thresholds=parse_thresholds(data.get("thresholds") or {}),
        checksum=compute_checksum(data),
    )


def load_settings(path: Path) -> EngineSettings:
    """Load and parse a settings file."""
    return parse_settings(load_yaml_file(path))
