"""
logistics_engines.variance_report -- Budget variance across many PJOs.

Responsibility:
    Compare estimated and actual cost per PJO, flag PJOs whose overrun
    exceeds the warning threshold, and sort the report so the worst
    variances come first.  Also narrows a PJO list by status and
    ``jo_date`` range before it is reported on.

Architecture position:
    Engines -- pure calculation layer, zero I/O.

Invariants enforced:
    - Variance percentage is None (not 0) when nothing was estimated, so
      the report can show N/A instead of a misleading 0%.
    - Missing totals count as 0.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any

from logistics_kernel.domain.validation import ZERO, to_optional_decimal
from logistics_kernel.logging_config import get_logger
from logistics_engines._records import field_value
from logistics_engines.tracer import traced_engine

logger = get_logger("engines.variance_report")

DEFAULT_VARIANCE_WARNING_PERCENT = Decimal("10")


@dataclass(frozen=True)
class VarianceRow:
    """One PJO's estimated vs actual cost."""

    pjo_id: Any
    pjo_number: str
    customer_name: str
    estimated: Decimal
    actual: Decimal
    variance_amount: Decimal
    variance_percentage: Decimal | None
    has_warning: bool


@dataclass(frozen=True)
class BudgetVarianceReport:
    rows: tuple[VarianceRow, ...]
    total_estimated: Decimal
    total_actual: Decimal
    total_variance: Decimal
    warning_count: int


def calculate_variance(estimated: Any, actual: Any) -> tuple[Decimal, Decimal | None]:
    """(actual - estimated, percentage of estimated or None when estimated is 0)."""
    estimated_d = to_optional_decimal(estimated, "estimated") or ZERO
    actual_d = to_optional_decimal(actual, "actual") or ZERO
    amount = actual_d - estimated_d
    if estimated_d == ZERO:
        return amount, None
    return amount, amount / estimated_d * Decimal("100")


def has_variance_warning(
    percentage: Decimal | None,
    threshold: Decimal = DEFAULT_VARIANCE_WARNING_PERCENT,
) -> bool:
    """True iff the variance percentage is strictly above the threshold."""
    return percentage is not None and percentage > threshold


def _customer_name(pjo: Any) -> str:
    name = field_value(pjo, "customer_name")
    if name is None:
        name = field_value(field_value(pjo, "customers"), "name")
    return str(name) if name is not None else "Unknown"


def to_variance_row(
    pjo: Any,
    threshold: Decimal = DEFAULT_VARIANCE_WARNING_PERCENT,
) -> VarianceRow:
    estimated = to_optional_decimal(field_value(pjo, "total_cost_estimated"), "total_cost_estimated") or ZERO
    actual = to_optional_decimal(field_value(pjo, "total_cost_actual"), "total_cost_actual") or ZERO
    amount, percentage = calculate_variance(estimated, actual)
    return VarianceRow(
        pjo_id=field_value(pjo, "id"),
        pjo_number=str(field_value(pjo, "pjo_number") or ""),
        customer_name=_customer_name(pjo),
        estimated=estimated,
        actual=actual,
        variance_amount=amount,
        variance_percentage=percentage,
        has_warning=has_variance_warning(percentage, threshold),
    )


@traced_engine("variance_report", "1.0")
def build_budget_variance_report(
    pjos: Iterable[Any],
    threshold: Decimal = DEFAULT_VARIANCE_WARNING_PERCENT,
) -> BudgetVarianceReport:
    """Rows sorted by variance percentage descending; N/A rows last."""
    rows = [to_variance_row(pjo, threshold) for pjo in pjos]
    rows.sort(
        key=lambda r: (
            r.variance_percentage is None,
            -(r.variance_percentage if r.variance_percentage is not None else ZERO),
        )
    )
    total_estimated = sum((r.estimated for r in rows), ZERO)
    total_actual = sum((r.actual for r in rows), ZERO)
    report = BudgetVarianceReport(
        rows=tuple(rows),
        total_estimated=total_estimated,
        total_actual=total_actual,
        total_variance=total_actual - total_estimated,
        warning_count=sum(1 for r in rows if r.has_warning),
    )
    logger.info("budget_variance_report_built", extra={
        "row_count": len(rows),
        "warning_count": report.warning_count,
    })
    return report


def _day(value: Any) -> date | None:
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value).strip()
    return datetime.fromisoformat(text).date() if text else None


def filter_pjos(
    pjos: Iterable[Any],
    status: Any = None,
    date_from: date | datetime | None = None,
    date_to: date | datetime | None = None,
) -> list[Any]:
    """PJOs matching ``status`` with ``jo_date`` inside [date_from, date_to].

    A status of None or ``"all"`` keeps every status.  Both bounds are
    inclusive whole days.  PJOs without a ``jo_date`` are never excluded
    by the date range.
    """
    wanted = status.value if isinstance(status, Enum) else status
    start, end = _day(date_from), _day(date_to)
    kept = []
    for pjo in pjos:
        current = field_value(pjo, "status")
        current = current.value if isinstance(current, Enum) else current
        if wanted and wanted != "all" and current != wanted:
            continue
        jo_day = _day(field_value(pjo, "jo_date"))
        if jo_day is not None:
            if start is not None and jo_day < start:
                continue
            if end is not None and jo_day > end:
                continue
        kept.append(pjo)
    return kept
