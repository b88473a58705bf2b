"""
Tests for the PJO -> JO conversion gate.

Verifies:
- Preconditions checked in order: not converted, approved, costs confirmed
- Unconfirmed message distinguishes "no cost items" from pending items
- Final figures use actual costs; margin rounded to two places
- Conversion latches the PJO and never mutates the input
"""

from dataclasses import replace
from decimal import Decimal
from uuid import uuid4

import pytest

from logistics_engines.reconciliation import analyze_budget
from logistics_kernel.exceptions import (
    AlreadyConvertedError,
    ConversionPreconditionError,
    CostsUnconfirmedError,
    PJONotApprovedError,
)
from logistics_modules.proforma import (
    CostItemStatus,
    PJOStatus,
    can_convert,
    conversion_blockers,
    convert_to_jo,
)
from tests.factories import make_cost_item, make_pjo, make_revenue_item


@pytest.fixture
def approved_pjo(revenue_items):
    """Approved, every cost confirmed.  Revenue 3,750,000; actual cost 2,500,000."""
    costs = [
        make_cost_item(estimated="2000000", actual="2100000",
                       status=CostItemStatus.EXCEEDED, justification="Toll increase"),
        make_cost_item(estimated="500000", actual="400000", status=CostItemStatus.UNDER_BUDGET),
    ]
    return make_pjo(revenue_items, costs, status=PJOStatus.APPROVED)


class TestConversionBlockers:

    def test_ready_pjo_has_no_blockers(self, approved_pjo):
        assert conversion_blockers(approved_pjo) == ()
        assert can_convert(approved_pjo)

    def test_blockers_in_check_order(self, draft_pjo):
        converted = replace(draft_pjo, converted_to_jo=True)
        blockers = conversion_blockers(converted)
        assert [type(b) for b in blockers] == [
            AlreadyConvertedError, PJONotApprovedError, CostsUnconfirmedError,
        ]

    def test_pending_count_message(self, draft_pjo):
        approved = replace(draft_pjo, status=PJOStatus.APPROVED)
        (blocker,) = conversion_blockers(approved)
        assert isinstance(blocker, CostsUnconfirmedError)
        assert blocker.items_pending == 2
        assert blocker.items_total == 2
        assert str(blocker) == "2 cost items still unconfirmed"

    def test_no_cost_items_message(self, revenue_items):
        pjo = make_pjo(revenue_items, [], status=PJOStatus.APPROVED)
        (blocker,) = conversion_blockers(pjo)
        assert blocker.items_total == 0
        assert "No cost items recorded" in str(blocker)

    def test_supplied_report_is_used(self, approved_pjo):
        report = analyze_budget([make_cost_item()])
        assert not can_convert(approved_pjo, report)


class TestConvertToJo:

    def test_success(self, lifecycle, approved_pjo, clock):
        result = lifecycle.convert_to_jo(approved_pjo, jo_sequence=1)
        jo = result.job_order

        assert jo.jo_number == "JO-0001/CARGO/III/2025"
        assert jo.pjo_id == approved_pjo.id
        assert jo.customer_id == approved_pjo.customer_id
        assert jo.final_revenue.amount == Decimal("3750000.00")
        assert jo.final_cost.amount == Decimal("2500000")
        assert jo.profit.amount == Decimal("1250000.00")
        assert jo.margin_pct == Decimal("33.33")
        assert jo.created_at == clock.now()

        assert result.pjo.converted_to_jo is True
        assert result.pjo.job_order_id == jo.id
        assert result.pjo.status is PJOStatus.APPROVED
        assert approved_pjo.converted_to_jo is False

    def test_explicit_job_order_id(self, lifecycle, approved_pjo):
        jo_id = uuid4()
        result = lifecycle.convert_to_jo(approved_pjo, 3, job_order_id=jo_id)
        assert result.job_order.id == jo_id
        assert result.job_order.jo_number.startswith("JO-0003/")

    def test_zero_revenue_margin_is_zero(self, clock, config):
        pjo = make_pjo(
            [make_revenue_item(quantity="1", unit_price="0")],
            [make_cost_item(estimated="10", actual="10", status=CostItemStatus.CONFIRMED)],
            status=PJOStatus.APPROVED,
        )
        result = convert_to_jo(pjo, None, 1, clock=clock, config=config)
        assert result.job_order.margin_pct == Decimal("0")
        assert result.job_order.profit.amount == Decimal("-10")

    def test_second_conversion_refused(self, lifecycle, approved_pjo):
        first = lifecycle.convert_to_jo(approved_pjo, 1)
        with pytest.raises(AlreadyConvertedError) as exc_info:
            lifecycle.convert_to_jo(first.pjo, 2)
        assert exc_info.value.job_order_id == first.job_order.id

    def test_pending_pjo_refused(self, lifecycle, approved_pjo):
        pending = replace(approved_pjo, status=PJOStatus.PENDING_APPROVAL)
        with pytest.raises(PJONotApprovedError) as exc_info:
            lifecycle.convert_to_jo(pending, 1)
        assert exc_info.value.status == "pending_approval"

    def test_unconfirmed_costs_refused(self, lifecycle, approved_pjo):
        extra = make_cost_item(estimated="100")
        pjo = replace(approved_pjo, cost_items=approved_pjo.cost_items + (extra,))
        with pytest.raises(CostsUnconfirmedError) as exc_info:
            lifecycle.convert_to_jo(pjo, 1)
        assert str(exc_info.value) == "1 cost item still unconfirmed"

    def test_refusal_logged(self, lifecycle, draft_pjo, captured_logs):
        with pytest.raises(ConversionPreconditionError):
            lifecycle.convert_to_jo(draft_pjo, 1)
        refused = [r for r in captured_logs() if r["message"] == "pjo_conversion_refused"]
        assert refused[0]["precondition"] == "status_approved"
        assert refused[0]["blocker_count"] == 2

    def test_invalid_sequence(self, lifecycle, approved_pjo):
        with pytest.raises(ValueError):
            lifecycle.convert_to_jo(approved_pjo, 0)
