"""
Lightweight domain validation helpers.

Pure checks with no I/O. Used at engine and module boundaries so that
monetary arithmetic only ever sees Decimal.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

from logistics_kernel.domain.currency import CurrencyRegistry

ZERO = Decimal("0")


def to_decimal(value: Any, name: str = "amount") -> Decimal:
    """Coerce a record value (int, str, float, Decimal) to Decimal.

    Floats go through ``str`` so that 0.1 becomes Decimal("0.1") rather
    than its binary expansion.

    Raises:
        ValueError: value is None, a bool, or not numeric.
    """
    if isinstance(value, Decimal):
        return value
    if value is None or isinstance(value, bool):
        raise ValueError(f"{name} must be numeric, got {value!r}")
    try:
        return Decimal(str(value).strip())
    except (InvalidOperation, ValueError) as e:
        raise ValueError(f"{name} must be numeric, got {value!r}") from e


def to_optional_decimal(value: Any, name: str = "amount") -> Decimal | None:
    """Like ``to_decimal`` but passes None (and empty strings) through."""
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    return to_decimal(value, name)


def round_minor(amount: Decimal, currency: str = "IDR") -> Decimal:
    """Round half-up to the currency's minor unit."""
    places = CurrencyRegistry.get_decimal_places(currency)
    quantum = Decimal(1).scaleb(-places)
    return amount.quantize(quantum, rounding=ROUND_HALF_UP)


