"""
Hypothesis properties of the proforma engines.

Properties checked:
- Totals equal the sum of their items on either cost basis
- Cost classification agrees with the ordering of the amounts
- all_confirmed holds exactly when every item carries an actual amount
- Generated document numbers always match the number format and
  next_sequence recovers the successor
- Whole-rupiah amounts survive format_idr / parse_idr
- Margin is 0 whenever revenue is 0
"""

from datetime import date
from decimal import Decimal

from hypothesis import HealthCheck, given, settings
from hypothesis import strategies as st

from logistics_engines.aggregation import CostBasis, sum_cost, sum_revenue
from logistics_engines.formatting import calculate_margin, format_idr, parse_idr
from logistics_engines.numbering import (
    generate_jo_number,
    generate_pjo_number,
    is_valid_jo_number,
    is_valid_pjo_number,
    next_sequence,
)
from logistics_engines.reconciliation import analyze_budget, classify_cost
from logistics_modules.proforma import CostItemStatus
from tests.factories import make_cost_item, make_revenue_item

amounts = st.decimals(
    min_value=Decimal("0"), max_value=Decimal("999999999.99"), places=2,
    allow_nan=False, allow_infinity=False,
)
positive_amounts = st.decimals(
    min_value=Decimal("0.01"), max_value=Decimal("999999999.99"), places=2,
    allow_nan=False, allow_infinity=False,
)
quantities = st.integers(min_value=1, max_value=500)


@st.composite
def cost_items(draw):
    estimated = draw(positive_amounts)
    actual = draw(st.one_of(st.none(), amounts))
    return make_cost_item(
        estimated=str(estimated),
        actual=str(actual) if actual is not None else None,
    )


@st.composite
def revenue_items(draw):
    return make_revenue_item(
        quantity=str(draw(quantities)),
        unit_price=str(draw(positive_amounts)),
    ).with_subtotal()


PROPERTY_SETTINGS = settings(
    max_examples=100, deadline=None, suppress_health_check=[HealthCheck.too_slow],
)


class TestTotals:

    @PROPERTY_SETTINGS
    @given(items=st.lists(revenue_items(), max_size=10))
    def test_revenue_total_is_sum_of_subtotals(self, items):
        assert sum_revenue(items) == sum((i.subtotal for i in items), Decimal("0"))

    @PROPERTY_SETTINGS
    @given(items=st.lists(cost_items(), max_size=10))
    def test_cost_totals_are_sums(self, items):
        assert sum_cost(items, CostBasis.ESTIMATED) == sum(
            (i.estimated_amount for i in items), Decimal("0"),
        )
        assert sum_cost(items, CostBasis.ACTUAL) == sum(
            (i.actual_amount for i in items if i.actual_amount is not None), Decimal("0"),
        )


class TestReconciliation:

    @PROPERTY_SETTINGS
    @given(estimated=positive_amounts, actual=amounts)
    def test_classification_follows_amounts(self, estimated, actual):
        status = classify_cost(estimated, actual)
        if actual > estimated:
            assert status is CostItemStatus.EXCEEDED
        elif actual < estimated:
            assert status is CostItemStatus.UNDER_BUDGET
        else:
            assert status is CostItemStatus.CONFIRMED

    @PROPERTY_SETTINGS
    @given(items=st.lists(cost_items(), max_size=10))
    def test_all_confirmed_iff_every_item_has_actual(self, items):
        report = analyze_budget(items)
        expected = bool(items) and all(i.actual_amount is not None for i in items)
        assert report.all_confirmed is expected
        assert report.items_total == len(items)
        assert report.items_over_budget + report.items_under_budget <= report.items_confirmed


class TestNumbering:

    @PROPERTY_SETTINGS
    @given(
        sequence=st.integers(min_value=1, max_value=9998),
        on_date=st.dates(min_value=date(1000, 1, 1), max_value=date(9999, 12, 31)),
    )
    def test_numbers_match_format(self, sequence, on_date):
        pjo_number = generate_pjo_number(sequence, on_date)
        jo_number = generate_jo_number(sequence, on_date)
        assert is_valid_pjo_number(pjo_number)
        assert is_valid_jo_number(jo_number)
        assert next_sequence(pjo_number) == sequence + 1
        assert next_sequence(jo_number) == sequence + 1


class TestFormatting:

    @PROPERTY_SETTINGS
    @given(value=st.integers(min_value=-10**12, max_value=10**12))
    def test_whole_rupiah_round_trip(self, value):
        assert parse_idr(format_idr(value)) == Decimal(value)

    @PROPERTY_SETTINGS
    @given(cost=amounts)
    def test_zero_revenue_margin(self, cost):
        assert calculate_margin(Decimal("0"), cost) == Decimal("0")
