"""
logistics_engines.reconciliation -- Estimated vs actual cost reconciliation.

Responsibility:
    Classify each cost item against its estimate, roll the items up into a
    budget report, and band actual-vs-estimate into safe / warning /
    exceeded so reviewers see near-miss budgets before they overrun.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    Consumed by the proforma lifecycle service (cost confirmation) and the
    conversion gate (readiness to convert).

Invariants enforced:
    - Classification compares amounts only after rounding both to the
      currency minor unit, so float noise in records cannot flip an
      on-budget item to exceeded or under_budget.
    - ``all_confirmed`` is False for an empty cost list.  A PJO with no
      costed items is never ready to convert.
    - ``has_overruns`` is True iff at least one item classifies as exceeded.

Failure modes:
    - ValueError for non-numeric amounts.
    - Division-by-zero safe: variance percentages are 0 when the estimate
      is 0.
"""

from __future__ import annotations

import time
from collections.abc import Iterable
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Any

from logistics_kernel.domain.validation import ZERO, round_minor, to_decimal, to_optional_decimal
from logistics_kernel.logging_config import get_logger
from logistics_engines._records import field_value
from logistics_engines.tracer import traced_engine

logger = get_logger("engines.reconciliation")

DEFAULT_WARNING_RATIO = Decimal("0.9")
_HUNDRED = Decimal("100")


class CostItemStatus(str, Enum):
    """Confirmation state of a single cost item."""

    ESTIMATED = "estimated"  # no actual amount yet
    UNDER_BUDGET = "under_budget"
    EXCEEDED = "exceeded"
    CONFIRMED = "confirmed"  # actual exactly on estimate


class BudgetWarningLevel(str, Enum):
    """Banding of an actual amount against its budget."""

    SAFE = "safe"
    WARNING = "warning"  # within [ratio * estimate, estimate]
    EXCEEDED = "exceeded"


@dataclass(frozen=True)
class BudgetReport:
    """
    Derived budget position of a PJO's cost items.

    Not persisted; recompute from the items whenever they change.
    """

    total_estimated: Decimal
    total_actual: Decimal
    total_variance: Decimal
    variance_pct: Decimal
    items_confirmed: int
    items_pending: int
    items_over_budget: int
    items_under_budget: int
    all_confirmed: bool
    has_overruns: bool

    @property
    def items_total(self) -> int:
        return self.items_confirmed + self.items_pending

    @property
    def ready_to_convert(self) -> bool:
        """Every cost item carries an actual amount (and there is at least one)."""
        return self.all_confirmed


def _classify(estimated: Decimal, actual: Decimal, currency: str) -> CostItemStatus:
    estimated_r = round_minor(estimated, currency)
    actual_r = round_minor(actual, currency)
    if actual_r > estimated_r:
        return CostItemStatus.EXCEEDED
    if actual_r < estimated_r:
        return CostItemStatus.UNDER_BUDGET
    return CostItemStatus.CONFIRMED


@traced_engine("reconciliation", "1.0", fingerprint_fields=("estimated", "actual"))
def classify_cost(estimated: Any, actual: Any, currency: str = "IDR") -> CostItemStatus:
    """Status of a cost item once its actual amount is known.

    exceeded if actual > estimated, under_budget if actual < estimated,
    confirmed if equal -- after rounding both to the minor unit.
    """
    return _classify(
        to_decimal(estimated, "estimated_amount"),
        to_decimal(actual, "actual_amount"),
        currency,
    )


def cost_variance(estimated: Any, actual: Any) -> tuple[Decimal | None, Decimal | None]:
    """(variance, variance_pct) of one item; both None while actual is absent."""
    actual_d = to_optional_decimal(actual, "actual_amount")
    if actual_d is None:
        return None, None
    estimated_d = to_decimal(estimated, "estimated_amount")
    variance = actual_d - estimated_d
    if estimated_d == ZERO:
        return variance, ZERO
    return variance, variance / estimated_d * _HUNDRED


@traced_engine("reconciliation", "1.0", fingerprint_fields=("cost_items",))
def analyze_budget(cost_items: Iterable[Any], currency: str = "IDR") -> BudgetReport:
    """Aggregate cost items into a BudgetReport in a single pass."""
    t0 = time.monotonic()

    total_estimated = ZERO
    total_actual = ZERO
    confirmed = pending = over = under = 0

    for item in cost_items:
        estimated = to_decimal(field_value(item, "estimated_amount"), "estimated_amount")
        actual = to_optional_decimal(field_value(item, "actual_amount"), "actual_amount")
        total_estimated += estimated
        if actual is None:
            pending += 1
            continue
        confirmed += 1
        total_actual += actual
        status = _classify(estimated, actual, currency)
        if status is CostItemStatus.EXCEEDED:
            over += 1
        elif status is CostItemStatus.UNDER_BUDGET:
            under += 1

    total_variance = total_actual - total_estimated
    variance_pct = (
        total_variance / total_estimated * _HUNDRED if total_estimated > ZERO else ZERO
    )

    report = BudgetReport(
        total_estimated=total_estimated,
        total_actual=total_actual,
        total_variance=total_variance,
        variance_pct=variance_pct,
        items_confirmed=confirmed,
        items_pending=pending,
        items_over_budget=over,
        items_under_budget=under,
        # An empty list is not all-confirmed.
        all_confirmed=pending == 0 and confirmed > 0,
        has_overruns=over > 0,
    )

    logger.info("budget_analyzed", extra={
        "items_confirmed": confirmed,
        "items_pending": pending,
        "items_over_budget": over,
        "total_estimated": str(total_estimated),
        "total_actual": str(total_actual),
        "all_confirmed": report.all_confirmed,
        "duration_ms": round((time.monotonic() - t0) * 1000, 2),
    })
    return report


@traced_engine("reconciliation", "1.0", fingerprint_fields=("estimated", "actual"))
def budget_warning_level(
    estimated: Any,
    actual: Any,
    warning_ratio: Decimal = DEFAULT_WARNING_RATIO,
) -> BudgetWarningLevel:
    """exceeded above the estimate, warning from ``warning_ratio`` x estimate
    up to and including the estimate, safe below that."""
    estimated_d = to_decimal(estimated, "estimated_amount")
    actual_d = to_decimal(actual, "actual_amount")
    if actual_d > estimated_d:
        return BudgetWarningLevel.EXCEEDED
    if actual_d >= estimated_d * warning_ratio:
        return BudgetWarningLevel.WARNING
    return BudgetWarningLevel.SAFE
