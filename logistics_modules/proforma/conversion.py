"""
PJO to Job Order Conversion Gate (``logistics_modules.proforma.conversion``).

Responsibility
--------------
Turns an approved, fully cost-confirmed proforma into a job order seeded
with the final figures, and reports every unmet precondition for callers
that want to render them instead of raising.

Architecture position
---------------------
**Modules layer** -- pure; ZERO I/O.  The caller persists the latched PJO
with ``ProformaStatusStore.mark_converted`` (conditional on
``converted_to_jo = false``) and inserts the job order in the same
transaction.

Invariants enforced
-------------------
* Preconditions are checked in a fixed order: already converted, status
  approved, all costs confirmed.
* Conversion is one-way: the returned PJO has ``converted_to_jo=True`` and
  ``job_order_id`` set; a latched PJO is never converted again.
* Final revenue comes from the line-item aggregator; final cost is the sum
  of actual amounts; margin is 0 when revenue is 0.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from decimal import ROUND_HALF_UP, Decimal
from uuid import UUID, uuid4

from logistics_kernel.domain.clock import Clock
from logistics_kernel.domain.values import Money
from logistics_kernel.exceptions import (
    AlreadyConvertedError,
    ConversionPreconditionError,
    CostsUnconfirmedError,
    PJONotApprovedError,
)
from logistics_kernel.logging_config import get_logger
from logistics_engines.aggregation import CostBasis, sum_cost, sum_revenue
from logistics_engines.formatting import calculate_margin
from logistics_engines.numbering import generate_jo_number
from logistics_engines.reconciliation import BudgetReport, analyze_budget
from logistics_modules.proforma.config import ProformaConfig
from logistics_modules.proforma.models import JobOrder, PJOStatus, ProformaJobOrder

logger = get_logger("modules.proforma.conversion")

_PERCENT_PLACES = Decimal("0.01")


@dataclass(frozen=True)
class ConversionResult:
    """The latched PJO and the job order created from it."""
    pjo: ProformaJobOrder
    job_order: JobOrder


def conversion_blockers(
    pjo: ProformaJobOrder,
    budget_report: BudgetReport | None = None,
) -> tuple[ConversionPreconditionError, ...]:
    """Every unmet conversion precondition, in check order.  Never raises."""
    report = budget_report or analyze_budget(pjo.cost_items, pjo.currency)
    blockers: list[ConversionPreconditionError] = []
    if pjo.converted_to_jo:
        blockers.append(AlreadyConvertedError(pjo.id, pjo.job_order_id))
    if pjo.status is not PJOStatus.APPROVED:
        blockers.append(PJONotApprovedError(pjo.id, pjo.status.value))
    if not report.all_confirmed:
        blockers.append(
            CostsUnconfirmedError(pjo.id, report.items_pending, report.items_total)
        )
    return tuple(blockers)


def can_convert(pjo: ProformaJobOrder, budget_report: BudgetReport | None = None) -> bool:
    return not conversion_blockers(pjo, budget_report)


def convert_to_jo(
    pjo: ProformaJobOrder,
    budget_report: BudgetReport | None,
    jo_sequence: int,
    *,
    clock: Clock,
    config: ProformaConfig | None = None,
    job_order_id: UUID | None = None,
) -> ConversionResult:
    """Convert an approved PJO with all costs confirmed into a job order.

    Raises:
        AlreadyConvertedError: the PJO was converted before.
        PJONotApprovedError: the PJO is not approved.
        CostsUnconfirmedError: some cost items have no actual amount.
        ValueError: ``jo_sequence`` is not a positive integer.
    """
    blockers = conversion_blockers(pjo, budget_report)
    if blockers:
        first = blockers[0]
        logger.warning("pjo_conversion_refused", extra={
            "pjo_id": str(pjo.id),
            "precondition": first.precondition,
            "blocker_count": len(blockers),
        })
        raise first

    cfg = config or ProformaConfig.with_defaults()
    now = clock.now()
    jo_number = generate_jo_number(
        jo_sequence, now.date(), cfg.division, cfg.sequence_width, cfg.jo_prefix,
    )

    revenue = sum_revenue(pjo.revenue_items, cfg.subtotal_tolerance, pjo.currency)
    cost = sum_cost(pjo.cost_items, CostBasis.ACTUAL)
    margin = calculate_margin(revenue, cost).quantize(_PERCENT_PLACES, rounding=ROUND_HALF_UP)

    job_order = JobOrder(
        id=job_order_id or uuid4(),
        jo_number=jo_number,
        pjo_id=pjo.id,
        customer_id=pjo.customer_id,
        project_id=pjo.project_id,
        final_revenue=Money.of(revenue, pjo.currency),
        final_cost=Money.of(cost, pjo.currency),
        profit=Money.of(revenue - cost, pjo.currency),
        margin_pct=margin,
        created_at=now,
    )
    latched = replace(
        pjo, converted_to_jo=True, job_order_id=job_order.id, updated_at=now,
    )

    logger.info("pjo_converted", extra={
        "pjo_id": str(pjo.id),
        "job_order_id": str(job_order.id),
        "jo_number": jo_number,
        "final_revenue": str(revenue),
        "final_cost": str(cost),
        "margin_pct": str(margin),
    })
    return ConversionResult(pjo=latched, job_order=job_order)
