"""
logistics_engines.aggregation -- Revenue and cost line-item totals.

Responsibility:
    Roll revenue line items and cost line items up into the totals a PJO
    displays and a job order inherits.  The totals are projections of the
    items, recomputed on every call, never stored independently.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    Items may be model objects or plain mappings with the same field names.

Invariants enforced:
    - A revenue item's subtotal equals quantity x unit_price rounded to the
      currency minor unit.  A stored subtotal further than the tolerance
      from that value is refused, not silently summed.
    - Empty inputs total to 0.
    - Actual-cost totals treat unconfirmed items (no actual_amount) as 0,
      so a partially confirmed PJO still has a meaningful actual-to-date.

Failure modes:
    - SubtotalMismatchError when a stored subtotal disagrees with
      quantity x unit_price by more than the tolerance.
    - ValueError for an unknown cost basis or a non-numeric field.
"""

from __future__ import annotations

from collections.abc import Iterable
from decimal import Decimal
from enum import Enum
from typing import Any

from logistics_kernel.domain.validation import ZERO, round_minor, to_decimal, to_optional_decimal
from logistics_kernel.exceptions import SubtotalMismatchError
from logistics_kernel.logging_config import get_logger
from logistics_engines._records import field_value
from logistics_engines.tracer import traced_engine

logger = get_logger("engines.aggregation")

DEFAULT_SUBTOTAL_TOLERANCE = Decimal("0.01")


class CostBasis(str, Enum):
    """Which cost figure to total."""

    ESTIMATED = "estimated"
    ACTUAL = "actual"


def expected_subtotal(quantity: Any, unit_price: Any, currency: str = "IDR") -> Decimal:
    """quantity x unit_price rounded half-up to the currency minor unit."""
    return round_minor(
        to_decimal(quantity, "quantity") * to_decimal(unit_price, "unit_price"),
        currency,
    )


def revenue_subtotal(
    item: Any,
    tolerance: Decimal = DEFAULT_SUBTOTAL_TOLERANCE,
    currency: str = "IDR",
) -> Decimal:
    """Subtotal of one revenue item, checked against quantity x unit_price.

    A missing subtotal is derived.  A stored subtotal within ``tolerance``
    of the derived value is accepted as stored.

    Raises:
        SubtotalMismatchError: stored subtotal is outside the tolerance.
    """
    derived = expected_subtotal(
        field_value(item, "quantity"), field_value(item, "unit_price"), currency
    )
    stored = to_optional_decimal(field_value(item, "subtotal"), "subtotal")
    if stored is None:
        return derived
    if abs(stored - derived) > tolerance:
        logger.warning("revenue_subtotal_mismatch", extra={
            "item_id": field_value(item, "id"),
            "stored": str(stored),
            "expected": str(derived),
        })
        raise SubtotalMismatchError(
            item_id=field_value(item, "id"),
            stored=str(stored),
            expected=str(derived),
            tolerance=str(tolerance),
        )
    return stored


@traced_engine("aggregation", "1.0", fingerprint_fields=("items",))
def sum_revenue(
    items: Iterable[Any],
    tolerance: Decimal = DEFAULT_SUBTOTAL_TOLERANCE,
    currency: str = "IDR",
) -> Decimal:
    """Total revenue: sum of item subtotals; empty input gives 0.

    Raises:
        SubtotalMismatchError: an item's stored subtotal is inconsistent.
    """
    total = ZERO
    count = 0
    for item in items:
        total += revenue_subtotal(item, tolerance, currency)
        count += 1
    logger.debug("revenue_summed", extra={"item_count": count, "total": str(total)})
    return total


@traced_engine("aggregation", "1.0", fingerprint_fields=("items", "which"))
def sum_cost(items: Iterable[Any], which: CostBasis | str = CostBasis.ESTIMATED) -> Decimal:
    """Total cost on the estimated or actual basis.

    ``actual`` sums only items that carry an actual_amount; unconfirmed
    items contribute 0.

    Raises:
        ValueError: ``which`` is not ``estimated`` or ``actual``.
    """
    basis = CostBasis(which)
    total = ZERO
    count = 0
    for item in items:
        count += 1
        if basis is CostBasis.ESTIMATED:
            total += to_decimal(field_value(item, "estimated_amount"), "estimated_amount")
        else:
            actual = to_optional_decimal(field_value(item, "actual_amount"), "actual_amount")
            if actual is not None:
                total += actual
    logger.debug("cost_summed", extra={
        "basis": basis.value,
        "item_count": count,
        "total": str(total),
    })
    return total
