"""
Engine settings schema (``logistics_config.schema``).

Frozen dataclasses describing the tunable constants of the proforma
engines.  Parsed from YAML by ``logistics_config.loader``; consumed through
``logistics_config.get_engine_settings()``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal


@dataclass(frozen=True)
class NumberingSettings:
    """Document number layout: ``[jo_prefix]NNNN/<division>/<ROMAN>/YYYY``."""

    division: str = "CARGO"
    sequence_width: int = 4
    jo_prefix: str = "JO-"

    def __post_init__(self) -> None:
        if not self.division or "/" in self.division:
            raise ValueError(f"division must be non-empty and contain no '/': {self.division!r}")
        if self.sequence_width < 1:
            raise ValueError("sequence_width must be at least 1")


@dataclass(frozen=True)
class ThresholdSettings:
    """Budget and reconciliation thresholds."""

    budget_warning_ratio: Decimal = Decimal("0.9")
    subtotal_tolerance: Decimal = Decimal("0.01")
    variance_warning_percent: Decimal = Decimal("10")

    def __post_init__(self) -> None:
        if not (Decimal("0") < self.budget_warning_ratio <= Decimal("1")):
            raise ValueError("budget_warning_ratio must be in (0, 1]")
        if self.subtotal_tolerance < 0:
            raise ValueError("subtotal_tolerance cannot be negative")
        if self.variance_warning_percent < 0:
            raise ValueError("variance_warning_percent cannot be negative")


@dataclass(frozen=True)
class EngineSettings:
    """Complete settings set for the proforma engines."""

    settings_id: str = "default"
    version: int = 1
    currency: str = "IDR"
    numbering: NumberingSettings = field(default_factory=NumberingSettings)
    thresholds: ThresholdSettings = field(default_factory=ThresholdSettings)
    checksum: str = ""
