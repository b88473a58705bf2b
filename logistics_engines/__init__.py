"""
Logistics engines -- pure calculation layer for proforma job orders.

Every engine here is a pure function over a snapshot of line items or
amounts: no I/O, no clock, no persistence.  Public entry points are
wrapped with ``@traced_engine`` so each invocation leaves a
LOGISTICS_ENGINE_TRACE log record.

Engines:
    formatting       -- Rupiah strings, Roman months, dates, margin arithmetic
    aggregation      -- revenue and cost totals
    reconciliation   -- cost classification, budget report, warning bands
    validation       -- field-tagged validators and the submission guard
    numbering        -- PJO / JO number generation
    variance_report  -- budget variance across PJOs
"""

from logistics_engines.aggregation import CostBasis, sum_cost, sum_revenue
from logistics_engines.formatting import (
    calculate_margin,
    calculate_profit,
    format_idr,
    parse_idr,
    to_roman_month,
)
from logistics_engines.numbering import (
    generate_jo_number,
    generate_pjo_number,
    is_valid_jo_number,
    is_valid_pjo_number,
    next_sequence,
)
from logistics_engines.reconciliation import (
    BudgetReport,
    BudgetWarningLevel,
    CostItemStatus,
    analyze_budget,
    budget_warning_level,
    classify_cost,
)
from logistics_engines.validation import (
    validate_cost_item,
    validate_date_order,
    validate_document,
    validate_pjo_for_submission,
    validate_positive_margin,
    validate_revenue_item,
)
from logistics_engines.variance_report import build_budget_variance_report, filter_pjos

__all__ = [
    "BudgetReport",
    "BudgetWarningLevel",
    "CostBasis",
    "CostItemStatus",
    "analyze_budget",
    "budget_warning_level",
    "build_budget_variance_report",
    "calculate_margin",
    "calculate_profit",
    "classify_cost",
    "filter_pjos",
    "format_idr",
    "generate_jo_number",
    "generate_pjo_number",
    "is_valid_jo_number",
    "is_valid_pjo_number",
    "next_sequence",
    "parse_idr",
    "sum_cost",
    "sum_revenue",
    "to_roman_month",
    "validate_cost_item",
    "validate_date_order",
    "validate_document",
    "validate_pjo_for_submission",
    "validate_positive_margin",
    "validate_revenue_item",
]
