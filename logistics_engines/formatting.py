"""
logistics_engines.formatting -- Rupiah formatting, Roman months, sequences, dates.

Responsibility:
    Presentation-neutral string conversions shared by the number generator,
    validation messages and reports:  ``Rp 30.000.000`` currency strings,
    Roman-numeral months, zero-padded sequences, DD/MM/YYYY dates, plus the
    profit/margin arithmetic those strings are built from.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import logistics_kernel/domain.

Invariants enforced:
    - Rupiah strings use '.' as the thousands separator and carry no
      decimals; negatives render as ``-Rp`` followed by the same grouping.
    - Months outside 1-12 map to the empty string, never an exception.
    - Margin on zero revenue is 0, never a division error.
"""

from __future__ import annotations

import re
from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

from logistics_kernel.domain.validation import ZERO, to_decimal

_HUNDRED = Decimal("100")

ROMAN_MONTHS: dict[int, str] = {
    1: "I",
    2: "II",
    3: "III",
    4: "IV",
    5: "V",
    6: "VI",
    7: "VII",
    8: "VIII",
    9: "IX",
    10: "X",
    11: "XI",
    12: "XII",
}


def _group_thousands(n: int) -> str:
    return f"{n:,}".replace(",", ".")


def _whole_rupiah(amount: Any) -> int:
    return int(to_decimal(amount).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def format_idr(amount: Any) -> str:
    """Format an amount as Indonesian Rupiah.

    >>> format_idr(30000000)
    'Rp 30.000.000'
    >>> format_idr(-1000)
    '-Rp 1.000'
    """
    whole = _whole_rupiah(amount)
    if whole < 0:
        return f"-Rp {_group_thousands(-whole)}"
    return f"Rp {_group_thousands(whole)}"


def format_number_input(amount: Any) -> str:
    """Digits with '.' thousands separators, for form inputs."""
    whole = _whole_rupiah(amount)
    sign = "-" if whole < 0 else ""
    return f"{sign}{_group_thousands(abs(whole))}"


_IDR_NOISE = re.compile(r"Rp\s?")


def parse_idr(value: str) -> Decimal:
    """Parse ``"Rp 30.000.000"`` or ``"30.000.000"`` back to a Decimal.

    '.' is a grouping separator and ',' the decimal separator.  Anything
    that does not parse yields 0.
    """
    cleaned = _IDR_NOISE.sub("", value or "").replace(".", "").replace(",", ".").strip()
    if not cleaned:
        return ZERO
    try:
        return Decimal(cleaned)
    except InvalidOperation:
        return ZERO


def to_roman_month(month: int) -> str:
    """Month number 1-12 to I..XII; anything else gives ''."""
    return ROMAN_MONTHS.get(month, "")


def format_sequence(sequence: int, width: int = 4) -> str:
    """Zero-pad a sequence number to at least ``width`` digits."""
    return str(sequence).zfill(width)


def format_date(value: date | datetime | str) -> str:
    """DD/MM/YYYY, e.g. ``14/12/2025``."""
    if isinstance(value, str):
        value = datetime.fromisoformat(value)
    return value.strftime("%d/%m/%Y")


def format_datetime(value: datetime | str) -> str:
    """DD/MM/YYYY HH:mm, e.g. ``14/12/2025 15:30``."""
    if isinstance(value, str):
        value = datetime.fromisoformat(value)
    return value.strftime("%d/%m/%Y %H:%M")


def calculate_profit(revenue: Any, cost: Any) -> Decimal:
    """Profit = revenue - cost."""
    return to_decimal(revenue, "revenue") - to_decimal(cost, "cost")


def calculate_margin(revenue: Any, cost: Any) -> Decimal:
    """Margin percentage (profit / revenue * 100); 0 when revenue is 0."""
    revenue_d = to_decimal(revenue, "revenue")
    if revenue_d == ZERO:
        return ZERO
    return calculate_profit(revenue_d, cost) / revenue_d * _HUNDRED


def budget_usage_percent(estimated: Any, actual: Any) -> Decimal:
    """Share of the budget consumed, in percent; 0 when there is no budget."""
    estimated_d = to_decimal(estimated, "estimated")
    if estimated_d == ZERO:
        return ZERO
    return to_decimal(actual, "actual") / estimated_d * _HUNDRED


def format_variance_percentage(percentage: Decimal | None) -> str:
    """``N/A`` for None, explicit ``+`` for positive values, one decimal."""
    if percentage is None:
        return "N/A"
    rounded = to_decimal(percentage).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP)
    sign = "+" if rounded > ZERO else ""
    return f"{sign}{rounded}%"
