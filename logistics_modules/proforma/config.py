"""
Proforma Configuration Schema.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Self

from logistics_config import EngineSettings, get_engine_settings
from logistics_kernel.domain.currency import CurrencyRegistry
from logistics_kernel.logging_config import get_logger

logger = get_logger("modules.proforma.config")


@dataclass
class ProformaConfig:
    """Configuration schema for the proforma module."""

    currency: str = "IDR"
    division: str = "CARGO"
    sequence_width: int = 4
    jo_prefix: str = "JO-"
    budget_warning_ratio: Decimal = Decimal("0.9")
    subtotal_tolerance: Decimal = Decimal("0.01")
    variance_warning_percent: Decimal = Decimal("10")
    require_overrun_justification: bool = True

    def __post_init__(self):
        if not CurrencyRegistry.is_valid(self.currency):
            raise ValueError(f"Unknown currency: {self.currency}")
        if not self.division or "/" in self.division:
            raise ValueError("division must be non-empty and contain no '/'")
        if self.sequence_width < 1:
            raise ValueError("sequence_width must be at least 1")
        if not (Decimal("0") < self.budget_warning_ratio <= Decimal("1")):
            raise ValueError("budget_warning_ratio must be in (0, 1]")
        if self.subtotal_tolerance < 0:
            raise ValueError("subtotal_tolerance cannot be negative")
        if self.variance_warning_percent < 0:
            raise ValueError("variance_warning_percent cannot be negative")
        logger.info("proforma_config_initialized", extra={
            "currency": self.currency,
            "division": self.division,
            "require_overrun_justification": self.require_overrun_justification,
        })

    @classmethod
    def from_settings(cls, settings: EngineSettings) -> Self:
        return cls(
            currency=settings.currency,
            division=settings.numbering.division,
            sequence_width=settings.numbering.sequence_width,
            jo_prefix=settings.numbering.jo_prefix,
            budget_warning_ratio=settings.thresholds.budget_warning_ratio,
            subtotal_tolerance=settings.thresholds.subtotal_tolerance,
            variance_warning_percent=settings.thresholds.variance_warning_percent,
        )

    @classmethod
    def with_defaults(cls) -> Self:
        return cls.from_settings(get_engine_settings())
