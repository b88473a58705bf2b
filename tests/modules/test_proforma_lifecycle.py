"""
Tests for ProformaLifecycle.

Verifies:
- Legal transitions only, approved/rejected terminal
- Stale expected status refused before anything else
- Submission guarded by validation with every error reported
- Draft-only editing
- Cost confirmation statuses, justification and corrections
- Inputs never mutated; updated_at from the injected clock
"""

from dataclasses import replace
from decimal import Decimal
from uuid import uuid4

import pytest

from logistics_engines.reconciliation import BudgetWarningLevel
from logistics_kernel.exceptions import (
    AlreadyConvertedError,
    ConcurrencyError,
    InvalidTransitionError,
    JustificationRequiredError,
    PJONotEditableError,
    RejectionReasonRequiredError,
    StaleStatusError,
    SubmissionRejectedError,
)
from logistics_modules.proforma import (
    CostItemStatus,
    PJOStatus,
    ProformaConfig,
    ProformaLifecycle,
)
from tests.factories import make_cost_item, make_pjo, make_revenue_item

APPROVER_ID = uuid4()


class TestSubmitForApproval:

    def test_draft_to_pending(self, lifecycle, draft_pjo, clock):
        clock.advance(60)
        submitted = lifecycle.submit_for_approval(draft_pjo, expected_status=PJOStatus.DRAFT)
        assert submitted.status is PJOStatus.PENDING_APPROVAL
        assert submitted.updated_at == clock.now()
        assert draft_pjo.status is PJOStatus.DRAFT

    def test_expected_status_accepts_string(self, lifecycle, draft_pjo):
        assert lifecycle.submit_for_approval(draft_pjo, "draft").status is PJOStatus.PENDING_APPROVAL

    def test_invalid_pjo_rejected_with_all_errors(self, lifecycle):
        pjo = make_pjo([], [make_cost_item(estimated="0")], customer_id=None)
        with pytest.raises(SubmissionRejectedError) as exc_info:
            lifecycle.submit_for_approval(pjo)
        fields = {e.field for e in exc_info.value.errors}
        assert fields == {"customer_id", "revenue_items", "cost_items[0].estimated_amount"}

    def test_non_positive_margin_blocks_submission(self, lifecycle):
        pjo = make_pjo(
            [make_revenue_item(quantity="1", unit_price="1000000")],
            [make_cost_item(estimated="1000000")],
        )
        with pytest.raises(SubmissionRejectedError) as exc_info:
            lifecycle.submit_for_approval(pjo)
        assert exc_info.value.errors[0].field == "total_cost_estimated"

    def test_resubmission_is_illegal(self, lifecycle, draft_pjo):
        submitted = lifecycle.submit_for_approval(draft_pjo)
        with pytest.raises(InvalidTransitionError) as exc_info:
            lifecycle.submit_for_approval(submitted, expected_status=PJOStatus.PENDING_APPROVAL)
        assert exc_info.value.from_state == "pending_approval"
        assert exc_info.value.action == "submit"
        assert exc_info.value.allowed == ("approve", "reject")

    def test_stale_status(self, lifecycle, draft_pjo):
        submitted = lifecycle.submit_for_approval(draft_pjo)
        with pytest.raises(StaleStatusError) as exc_info:
            lifecycle.submit_for_approval(submitted, expected_status=PJOStatus.DRAFT)
        assert isinstance(exc_info.value, ConcurrencyError)
        assert exc_info.value.actual_status == "pending_approval"

    def test_trace_logged(self, lifecycle, draft_pjo, captured_logs):
        lifecycle.submit_for_approval(draft_pjo)
        traces = [r for r in captured_logs() if r["message"] == "workflow_transition"]
        assert traces[-1]["workflow"] == "proforma_job_order"
        assert traces[-1]["outcome"] == "transitioned"
        assert traces[-1]["to_state"] == "pending_approval"


class TestApproveAndReject:

    @pytest.fixture
    def pending_pjo(self, lifecycle, draft_pjo):
        return lifecycle.submit_for_approval(draft_pjo)

    def test_approve(self, lifecycle, pending_pjo, clock):
        approved = lifecycle.approve_pjo(pending_pjo, APPROVER_ID)
        assert approved.status is PJOStatus.APPROVED
        assert approved.approved_by == APPROVER_ID
        assert approved.approved_at == clock.now()

    def test_approve_does_not_need_confirmed_costs(self, lifecycle, pending_pjo):
        assert not pending_pjo.all_costs_confirmed
        assert lifecycle.approve_pjo(pending_pjo, APPROVER_ID).status is PJOStatus.APPROVED

    def test_approve_draft_is_illegal(self, lifecycle, draft_pjo):
        with pytest.raises(InvalidTransitionError):
            lifecycle.approve_pjo(draft_pjo, APPROVER_ID, expected_status=PJOStatus.DRAFT)

    def test_reject_keeps_reason_verbatim(self, lifecycle, pending_pjo, clock):
        reason = "  Margin too thin for this lane  "
        rejected = lifecycle.reject_pjo(pending_pjo, reason, rejector_id=APPROVER_ID)
        assert rejected.status is PJOStatus.REJECTED
        assert rejected.rejection_reason == reason
        assert rejected.rejected_by == APPROVER_ID
        assert rejected.rejected_at == clock.now()

    @pytest.mark.parametrize("reason", [None, "", "   \t"])
    def test_reject_requires_reason(self, lifecycle, pending_pjo, reason):
        with pytest.raises(RejectionReasonRequiredError) as exc_info:
            lifecycle.reject_pjo(pending_pjo, reason)
        assert str(exc_info.value) == "Rejection reason is required"

    def test_terminal_states(self, lifecycle, pending_pjo):
        approved = lifecycle.approve_pjo(pending_pjo, APPROVER_ID)
        with pytest.raises(InvalidTransitionError):
            lifecycle.reject_pjo(approved, "too late", expected_status=PJOStatus.APPROVED)
        rejected = lifecycle.reject_pjo(pending_pjo, "no")
        with pytest.raises(InvalidTransitionError):
            lifecycle.approve_pjo(rejected, APPROVER_ID, expected_status=PJOStatus.REJECTED)
        with pytest.raises(InvalidTransitionError):
            lifecycle.submit_for_approval(rejected, expected_status=PJOStatus.REJECTED)

    def test_illegal_edge_without_expected_status(self, lifecycle, draft_pjo, pending_pjo):
        approved = lifecycle.approve_pjo(pending_pjo, APPROVER_ID)
        calls = [
            lambda: lifecycle.approve_pjo(draft_pjo, None),
            lambda: lifecycle.reject_pjo(approved, "late"),
            lambda: lifecycle.submit_for_approval(approved),
        ]
        for call in calls:
            with pytest.raises(InvalidTransitionError) as exc_info:
                call()
            assert not isinstance(exc_info.value, ConcurrencyError)

    def test_concurrent_approvers_one_wins(self, lifecycle, pending_pjo):
        """The second approver holds a stale snapshot once the first has saved."""
        approved = lifecycle.approve_pjo(pending_pjo, APPROVER_ID)
        with pytest.raises(StaleStatusError):
            lifecycle.reject_pjo(approved, "duplicate", expected_status=PJOStatus.PENDING_APPROVAL)

    def test_stale_check_precedes_reason_check(self, lifecycle, draft_pjo):
        with pytest.raises(StaleStatusError):
            lifecycle.reject_pjo(draft_pjo, "", expected_status=PJOStatus.PENDING_APPROVAL)


class TestConfiguredTolerance:

    @pytest.fixture
    def tolerant(self, clock):
        return ProformaLifecycle(clock=clock, config=ProformaConfig(subtotal_tolerance=Decimal("0.05")))

    def test_draft_carries_configured_tolerance(self, tolerant):
        assert tolerant.create_draft(1).subtotal_tolerance == Decimal("0.05")

    def test_submission_and_totals_agree(self, tolerant):
        pjo = make_pjo(
            [make_revenue_item(quantity="2", unit_price="1500000")],
            [make_cost_item(estimated="1000000")],
            subtotal_tolerance=Decimal("0.05"),
        )
        drifted = replace(pjo.revenue_items[0], subtotal=Decimal("3000000.03"))
        pjo = replace(pjo, revenue_items=(drifted,))

        assert pjo.total_revenue == Decimal("3000000.03")
        assert tolerant.validate_submission(pjo).is_valid
        assert tolerant.submit_for_approval(pjo).status is PJOStatus.PENDING_APPROVAL


class TestVarianceReport:

    def setup_method(self):
        self.pjo = make_pjo(
            [make_revenue_item()],
            [make_cost_item(estimated="1000000", actual="1150000")],
        )

    def test_default_threshold_flags_overrun(self, lifecycle):
        report = lifecycle.variance_report([self.pjo])
        assert report.rows[0].variance_percentage == Decimal("15")
        assert report.warning_count == 1

    def test_configured_threshold(self, clock):
        lenient = ProformaLifecycle(
            clock=clock, config=ProformaConfig(variance_warning_percent=Decimal("20")),
        )
        report = lenient.variance_report([self.pjo])
        assert report.rows[0].has_warning is False
        assert report.warning_count == 0


class TestEditing:

    def test_draft_editable(self, lifecycle, draft_pjo):
        lifecycle.ensure_editable(draft_pjo)
        lifecycle.ensure_deletable(draft_pjo)

    def test_submitted_not_editable(self, lifecycle, draft_pjo):
        submitted = lifecycle.submit_for_approval(draft_pjo)
        with pytest.raises(PJONotEditableError) as exc_info:
            lifecycle.with_revenue_items(submitted, [make_revenue_item()])
        assert exc_info.value.status == "pending_approval"
        with pytest.raises(PJONotEditableError) as exc_info:
            lifecycle.ensure_deletable(submitted)
        assert exc_info.value.operation == "deleted"

    def test_with_revenue_items_recomputes_subtotals(self, lifecycle, draft_pjo, clock):
        clock.advance(5)
        item = make_revenue_item(quantity="3", unit_price="100", subtotal="1")
        updated = lifecycle.with_revenue_items(draft_pjo, [item])
        assert updated.revenue_items[0].subtotal == Decimal("300.00")
        assert updated.revenue_items[0].pjo_id == draft_pjo.id
        assert updated.total_revenue == Decimal("300")
        assert updated.updated_at == clock.now()

    def test_with_cost_items(self, lifecycle, draft_pjo):
        updated = lifecycle.with_cost_items(draft_pjo, [make_cost_item(estimated="10")])
        assert updated.total_cost_estimated == Decimal("10")

    def test_update_header(self, lifecycle, draft_pjo):
        updated = lifecycle.update_header(draft_pjo, commodity="Cement")
        assert updated.commodity == "Cement"

    def test_update_header_refuses_status(self, lifecycle, draft_pjo):
        with pytest.raises(ValueError):
            lifecycle.update_header(draft_pjo, status=PJOStatus.APPROVED)

    def test_create_draft(self, lifecycle, clock):
        pjo = lifecycle.create_draft(7, commodity="Rice")
        assert pjo.pjo_number == "0007/CARGO/III/2025"
        assert pjo.status is PJOStatus.DRAFT
        assert pjo.created_at == clock.now()
        assert pjo.commodity == "Rice"


class TestConfirmCostItem:

    @pytest.mark.parametrize("actual, status", [
        ("900", CostItemStatus.UNDER_BUDGET),
        ("1000", CostItemStatus.CONFIRMED),
    ])
    def test_status_derived(self, lifecycle, actual, status):
        item = make_cost_item(estimated="1000")
        confirmed = lifecycle.confirm_cost_item(item, Decimal(actual))
        assert confirmed.status is status
        assert confirmed.actual_amount == Decimal(actual)
        assert item.actual_amount is None

    def test_overrun_requires_justification(self, lifecycle):
        item = make_cost_item(estimated="1000")
        with pytest.raises(JustificationRequiredError) as exc_info:
            lifecycle.confirm_cost_item(item, Decimal("1200"), justification="  ")
        assert exc_info.value.cost_item_id == item.id

    def test_overrun_with_justification(self, lifecycle, clock):
        item = make_cost_item(estimated="1000")
        confirmed = lifecycle.confirm_cost_item(
            item, "1200", justification="Fuel surcharge", confirmed_by=APPROVER_ID,
        )
        assert confirmed.status is CostItemStatus.EXCEEDED
        assert confirmed.justification == "Fuel surcharge"
        assert confirmed.confirmed_at == clock.now()
        assert confirmed.confirmed_by == APPROVER_ID

    def test_justification_can_be_disabled(self, clock):
        config = ProformaConfig(require_overrun_justification=False)
        lifecycle = ProformaLifecycle(clock=clock, config=config)
        confirmed = lifecycle.confirm_cost_item(make_cost_item(estimated="10"), "20")
        assert confirmed.status is CostItemStatus.EXCEEDED

    def test_correction_rederives_status(self, lifecycle):
        item = make_cost_item(estimated="1000")
        exceeded = lifecycle.confirm_cost_item(item, "1500", justification="Detour")
        corrected = lifecycle.confirm_cost_item(exceeded, "950")
        assert corrected.status is CostItemStatus.UNDER_BUDGET
        assert corrected.justification is None

    def test_negative_actual_rejected(self, lifecycle):
        with pytest.raises(ValueError):
            lifecycle.confirm_cost_item(make_cost_item(), "-1")

    def test_confirm_cost_on_pjo(self, lifecycle, draft_pjo):
        target = draft_pjo.cost_items[0]
        updated = lifecycle.confirm_cost(draft_pjo, target.id, target.estimated_amount)
        assert updated.cost_item(target.id).status is CostItemStatus.CONFIRMED
        assert updated.budget.items_confirmed == 1
        assert draft_pjo.budget.items_confirmed == 0

    def test_confirm_cost_after_conversion_refused(self, lifecycle, draft_pjo):
        converted = replace(draft_pjo, converted_to_jo=True, job_order_id=uuid4())
        with pytest.raises(AlreadyConvertedError):
            lifecycle.confirm_cost(converted, converted.cost_items[0].id, "1")

    def test_warning_level_uses_config_ratio(self, lifecycle):
        item = make_cost_item(estimated="1000")
        assert lifecycle.warning_level(item, "950") is BudgetWarningLevel.WARNING
        assert lifecycle.warning_level(item, "100") is BudgetWarningLevel.SAFE


class TestNumbering:

    def test_numbers_from_config(self, lifecycle):
        assert lifecycle.pjo_number(1) == "0001/CARGO/III/2025"
        assert lifecycle.jo_number(1) == "JO-0001/CARGO/III/2025"
