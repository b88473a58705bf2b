"""
Proforma Lifecycle Service (``logistics_modules.proforma.service``).

Responsibility
--------------
Moves proforma job orders through their approval lifecycle, confirms cost
items against their estimates, enforces the draft-only editing rule, and
allocates document numbers.  Pure computation is delegated to
``logistics_engines``; legality of every status change comes from the
transition tables in ``workflows.py``.

Architecture position
---------------------
**Modules layer** -- thin domain glue.  ``ProformaLifecycle`` is the sole
public entry point for status changes.  It performs no I/O: the caller
re-reads the PJO, passes the status it observed as ``expected_status``,
and persists the returned copy through
``logistics_services.ProformaStatusStore`` (compare-and-set).

Invariants enforced
-------------------
* Status only moves along an edge of ``PJO_WORKFLOW``; approved and
  rejected are terminal.
* A PJO leaves draft only if ``validate_pjo_for_submission`` passes.
* Rejection always carries a non-empty reason, stored verbatim.
* Only draft PJOs may have their line items replaced or be deleted.
* A cost item never returns to ``estimated``; an overrun needs a
  justification.
* Inputs are never mutated; every operation returns a new frozen PJO
  stamped with ``updated_at`` from the injected ``Clock``.

Failure modes
-------------
* ``StaleStatusError``            -- ``expected_status`` differs from the snapshot.
* ``InvalidTransitionError``      -- no edge for the action from the current state.
* ``SubmissionRejectedError``     -- submission validation failed (all errors).
* ``RejectionReasonRequiredError`` -- blank rejection reason.
* ``PJONotEditableError``         -- edit/delete outside draft.
* ``JustificationRequiredError``  -- overrun confirmed without justification.
* ``AlreadyConvertedError``       -- cost confirmation on a converted PJO.

Audit relevance
---------------
Every attempted transition emits a ``workflow_transition`` log record with
workflow, action, from/to state, outcome and duration.
"""

from __future__ import annotations

import time
from collections.abc import Iterable
from dataclasses import replace
from datetime import date
from typing import Any
from uuid import UUID, uuid4

from logistics_kernel.domain.clock import Clock, SystemClock
from logistics_kernel.domain.dtos import ValidationResult
from logistics_kernel.domain.validation import to_decimal
from logistics_kernel.exceptions import (
    AlreadyConvertedError,
    InvalidTransitionError,
    JustificationRequiredError,
    PJONotEditableError,
    RejectionReasonRequiredError,
    StaleStatusError,
    SubmissionRejectedError,
)
from logistics_kernel.logging_config import LogContext, get_logger
from logistics_engines.numbering import generate_jo_number, generate_pjo_number
from logistics_engines.reconciliation import (
    BudgetReport,
    BudgetWarningLevel,
    analyze_budget,
    budget_warning_level,
    classify_cost,
)
from logistics_engines.validation import validate_pjo_for_submission
from logistics_engines.variance_report import BudgetVarianceReport, build_budget_variance_report
from logistics_modules.proforma.config import ProformaConfig
from logistics_modules.proforma.conversion import ConversionResult, convert_to_jo
from logistics_modules.proforma.models import (
    CostItem,
    PJOStatus,
    ProformaJobOrder,
    RevenueItem,
)
from logistics_modules.proforma.workflows import COST_ITEM_WORKFLOW, PJO_WORKFLOW

logger = get_logger("modules.proforma.service")

TRACE_TYPE_WORKFLOW_TRANSITION = "WORKFLOW_TRANSITION"
OUTCOME_TRANSITIONED = "transitioned"
OUTCOME_REFUSED = "refused"


def _emit_workflow_trace(
    workflow_name: str,
    action: str,
    entity_id: Any,
    from_state: str,
    outcome: str,
    started: float,
    to_state: str | None = None,
    reason: str | None = None,
) -> None:
    record: dict[str, Any] = {
        "trace_type": TRACE_TYPE_WORKFLOW_TRANSITION,
        "workflow": workflow_name,
        "action": action,
        "entity_id": str(entity_id),
        "from_state": from_state,
        "outcome": outcome,
        "duration_ms": round((time.monotonic() - started) * 1000, 3),
    }
    if to_state is not None:
        record["to_state"] = to_state
    if reason is not None:
        record["reason"] = reason
    record.update(LogContext.get_all())
    logger.info("workflow_transition", extra=record)


class ProformaLifecycle:
    """
    Approval lifecycle and cost confirmation for proforma job orders.

    Contract
    --------
    * Status-changing methods accept the caller's observed status as
      ``expected_status`` and refuse with ``StaleStatusError`` when the
      snapshot disagrees.  Without it only the edge is checked.
    * Methods return new frozen objects; nothing is persisted here.

    Non-goals
    ---------
    * Does NOT check who may approve (authorization is the caller's).
    * Does NOT deliver notifications.
    """

    def __init__(self, clock: Clock | None = None, config: ProformaConfig | None = None):
        self._clock = clock or SystemClock()
        self._config = config or ProformaConfig.with_defaults()

    @property
    def config(self) -> ProformaConfig:
        return self._config

    # -- creation and editing ---------------------------------------------

    def create_draft(self, sequence: int, **header: Any) -> ProformaJobOrder:
        """New draft PJO numbered from ``sequence`` in the current period."""
        now = self._clock.now()
        pjo = ProformaJobOrder(
            id=header.pop("id", None) or uuid4(),
            pjo_number=self.pjo_number(sequence, now.date()),
            status=PJOStatus.DRAFT,
            created_at=now,
            updated_at=now,
            currency=self._config.currency,
            subtotal_tolerance=self._config.subtotal_tolerance,
            **header,
        )
        logger.info("pjo_draft_created", extra={
            "pjo_id": str(pjo.id),
            "pjo_number": pjo.pjo_number,
        })
        return pjo

    def ensure_editable(self, pjo: ProformaJobOrder, operation: str = "edited") -> None:
        """Raise ``PJONotEditableError`` unless the PJO is a draft."""
        if pjo.status is not PJOStatus.DRAFT:
            logger.warning("pjo_edit_refused", extra={
                "pjo_id": str(pjo.id),
                "status": pjo.status.value,
                "operation": operation,
            })
            raise PJONotEditableError(pjo.id, pjo.status.value, operation)

    def ensure_deletable(self, pjo: ProformaJobOrder) -> None:
        self.ensure_editable(pjo, operation="deleted")

    def update_header(self, pjo: ProformaJobOrder, **changes: Any) -> ProformaJobOrder:
        """Copy of a draft PJO with header fields changed."""
        self.ensure_editable(pjo)
        protected = {"id", "status", "revenue_items", "cost_items", "converted_to_jo"}
        blocked = protected.intersection(changes)
        if blocked:
            raise ValueError(f"Fields cannot be edited directly: {sorted(blocked)}")
        return replace(pjo, updated_at=self._clock.now(), **changes)

    def with_revenue_items(
        self, pjo: ProformaJobOrder, items: Iterable[RevenueItem],
    ) -> ProformaJobOrder:
        """Replace a draft PJO's revenue items; subtotals are re-derived."""
        self.ensure_editable(pjo)
        updated = pjo.with_revenue_items(items)
        return replace(updated, updated_at=self._clock.now())

    def with_cost_items(
        self, pjo: ProformaJobOrder, items: Iterable[CostItem],
    ) -> ProformaJobOrder:
        """Replace a draft PJO's cost items."""
        self.ensure_editable(pjo)
        updated = pjo.with_cost_items(items)
        return replace(updated, updated_at=self._clock.now())

    # -- approval lifecycle ---------------------------------------------------

    def _begin_transition(
        self,
        pjo: ProformaJobOrder,
        action: str,
        expected_status: PJOStatus | str | None,
        started: float,
    ) -> PJOStatus:
        current = pjo.status.value
        if expected_status is not None and pjo.status is not PJOStatus(expected_status):
            _emit_workflow_trace(
                PJO_WORKFLOW.name, action, pjo.id, current, OUTCOME_REFUSED, started,
                reason="stale_status",
            )
            raise StaleStatusError(pjo.id, PJOStatus(expected_status).value, current)
        transition = PJO_WORKFLOW.find_transition(current, action)
        if transition is None:
            _emit_workflow_trace(
                PJO_WORKFLOW.name, action, pjo.id, current, OUTCOME_REFUSED, started,
                reason="no_transition",
            )
            raise InvalidTransitionError(
                PJO_WORKFLOW.name, current, action, PJO_WORKFLOW.allowed_actions(current),
            )
        return PJOStatus(transition.to_state)

    def validate_submission(self, pjo: ProformaJobOrder) -> ValidationResult:
        return validate_pjo_for_submission(pjo, self._config.subtotal_tolerance)

    def submit_for_approval(
        self,
        pjo: ProformaJobOrder,
        expected_status: PJOStatus | str | None = None,
    ) -> ProformaJobOrder:
        """draft -> pending_approval, guarded by submission validation.

        Raises:
            StaleStatusError, InvalidTransitionError, SubmissionRejectedError.
        """
        started = time.monotonic()
        target = self._begin_transition(pjo, "submit", expected_status, started)

        result = self.validate_submission(pjo)
        if not result.is_valid:
            _emit_workflow_trace(
                PJO_WORKFLOW.name, "submit", pjo.id, pjo.status.value, OUTCOME_REFUSED,
                started, reason="validation_failed",
            )
            raise SubmissionRejectedError(pjo.id, result.errors)

        submitted = replace(pjo, status=target, updated_at=self._clock.now())
        _emit_workflow_trace(
            PJO_WORKFLOW.name, "submit", pjo.id, pjo.status.value, OUTCOME_TRANSITIONED,
            started, to_state=target.value,
        )
        return submitted

    def approve_pjo(
        self,
        pjo: ProformaJobOrder,
        approver_id: UUID | None,
        expected_status: PJOStatus | str | None = None,
    ) -> ProformaJobOrder:
        """pending_approval -> approved.  Cost confirmation is not required here."""
        started = time.monotonic()
        target = self._begin_transition(pjo, "approve", expected_status, started)
        now = self._clock.now()
        approved = replace(
            pjo, status=target, approved_at=now, approved_by=approver_id, updated_at=now,
        )
        _emit_workflow_trace(
            PJO_WORKFLOW.name, "approve", pjo.id, pjo.status.value, OUTCOME_TRANSITIONED,
            started, to_state=target.value,
        )
        return approved

    def reject_pjo(
        self,
        pjo: ProformaJobOrder,
        reason: str | None,
        rejector_id: UUID | None = None,
        expected_status: PJOStatus | str | None = None,
    ) -> ProformaJobOrder:
        """pending_approval -> rejected, with the reason stored verbatim.

        Raises:
            StaleStatusError, InvalidTransitionError,
            RejectionReasonRequiredError.
        """
        started = time.monotonic()
        target = self._begin_transition(pjo, "reject", expected_status, started)
        if reason is None or not reason.strip():
            _emit_workflow_trace(
                PJO_WORKFLOW.name, "reject", pjo.id, pjo.status.value, OUTCOME_REFUSED,
                started, reason="reason_missing",
            )
            raise RejectionReasonRequiredError(pjo.id)
        now = self._clock.now()
        rejected = replace(
            pjo,
            status=target,
            rejected_at=now,
            rejected_by=rejector_id,
            rejection_reason=reason,
            updated_at=now,
        )
        _emit_workflow_trace(
            PJO_WORKFLOW.name, "reject", pjo.id, pjo.status.value, OUTCOME_TRANSITIONED,
            started, to_state=target.value,
        )
        return rejected

    # -- cost confirmation ----------------------------------------------------

    def confirm_cost_item(
        self,
        item: CostItem,
        actual_amount: Any,
        justification: str | None = None,
        confirmed_by: UUID | None = None,
    ) -> CostItem:
        """Record the actual amount of a cost item and derive its status.

        Re-confirming an already confirmed item is a correction and
        re-derives the status.

        Raises:
            ValueError: actual amount is not a non-negative number.
            JustificationRequiredError: actual exceeds the estimate and no
                justification was given.
        """
        started = time.monotonic()
        actual = to_decimal(actual_amount, "actual_amount")
        if actual < 0:
            raise ValueError(f"actual_amount cannot be negative: {actual}")

        target = classify_cost(item.estimated_amount, actual, self._config.currency)
        current = item.status.value
        transition = COST_ITEM_WORKFLOW.find_edge(current, target.value)
        if transition is None:
            raise InvalidTransitionError(
                COST_ITEM_WORKFLOW.name, current, "confirm",
                COST_ITEM_WORKFLOW.allowed_actions(current),
            )

        note = justification.strip() if justification else ""
        if (
            transition.guard is not None
            and self._config.require_overrun_justification
            and not note
        ):
            _emit_workflow_trace(
                COST_ITEM_WORKFLOW.name, transition.action, item.id, current,
                OUTCOME_REFUSED, started, reason="justification_missing",
            )
            raise JustificationRequiredError(item.id, str(item.estimated_amount), str(actual))

        confirmed = replace(
            item,
            actual_amount=actual,
            status=target,
            justification=note or None,
            confirmed_at=self._clock.now(),
            confirmed_by=confirmed_by,
        )
        _emit_workflow_trace(
            COST_ITEM_WORKFLOW.name, transition.action, item.id, current,
            OUTCOME_TRANSITIONED, started, to_state=target.value,
        )
        return confirmed

    def confirm_cost(
        self,
        pjo: ProformaJobOrder,
        cost_item_id: UUID,
        actual_amount: Any,
        justification: str | None = None,
        confirmed_by: UUID | None = None,
    ) -> ProformaJobOrder:
        """Confirm one of a PJO's cost items and return the updated PJO.

        Raises:
            AlreadyConvertedError: the PJO has been converted; its costs are frozen.
            KeyError: the PJO has no such cost item.
        """
        if pjo.converted_to_jo:
            raise AlreadyConvertedError(pjo.id, pjo.job_order_id)
        target = pjo.cost_item(cost_item_id)
        confirmed = self.confirm_cost_item(target, actual_amount, justification, confirmed_by)
        items = tuple(confirmed if c.id == cost_item_id else c for c in pjo.cost_items)
        return replace(pjo, cost_items=items, updated_at=self._clock.now())

    def budget_report(self, pjo: ProformaJobOrder) -> BudgetReport:
        return analyze_budget(pjo.cost_items, self._config.currency)

    def variance_report(self, pjos: Iterable[ProformaJobOrder]) -> BudgetVarianceReport:
        """Budget variance across ``pjos``, flagged at the configured percentage."""
        return build_budget_variance_report(pjos, self._config.variance_warning_percent)

    def warning_level(self, item: CostItem, actual_amount: Any) -> BudgetWarningLevel:
        """Form-level warning for a proposed actual amount."""
        return budget_warning_level(
            item.estimated_amount, actual_amount, self._config.budget_warning_ratio,
        )

    def convert_to_jo(
        self,
        pjo: ProformaJobOrder,
        jo_sequence: int,
        budget_report: BudgetReport | None = None,
        job_order_id: UUID | None = None,
    ) -> ConversionResult:
        """Convert through the conversion gate with this service's clock and config."""
        return convert_to_jo(
            pjo,
            budget_report,
            jo_sequence,
            clock=self._clock,
            config=self._config,
            job_order_id=job_order_id,
        )

    # -- numbering ------------------------------------------------------------

    def pjo_number(self, sequence: int, on_date: date | None = None) -> str:
        return generate_pjo_number(
            sequence,
            on_date or self._clock.today(),
            self._config.division,
            self._config.sequence_width,
        )

    def jo_number(self, sequence: int, on_date: date | None = None) -> str:
        return generate_jo_number(
            sequence,
            on_date or self._clock.today(),
            self._config.division,
            self._config.sequence_width,
            self._config.jo_prefix,
        )
