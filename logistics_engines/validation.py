"""
logistics_engines.validation -- Field-tagged validation of PJO inputs.

Responsibility:
    Check shipping documents, revenue and cost line items, margin and date
    order, and the whole PJO before submission.  Every validator returns a
    ``ValidationResult``; violations accumulate so a form can show all of
    them at once.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    Used by the proforma lifecycle service as the submission guard.

Invariants enforced:
    - Validators never raise for invalid input data; they return errors
      tagged with the offending field.
    - Positive margin means cost strictly below revenue.  Break-even is
      invalid.
    - Date order is only checked when both bounds are present.

Failure modes:
    - None for bad data.  A non-numeric value in a numeric field produces
      an ``invalid_number`` error rather than an exception.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import date, datetime
from decimal import Decimal
from typing import Any

from logistics_kernel.domain.dtos import ValidationError, ValidationResult
from logistics_kernel.domain.validation import ZERO, to_decimal, to_optional_decimal
from logistics_kernel.exceptions import SubtotalMismatchError
from logistics_kernel.logging_config import get_logger
from logistics_engines._records import field_value, text_value
from logistics_engines.aggregation import (
    DEFAULT_SUBTOTAL_TOLERANCE,
    expected_subtotal,
    sum_cost,
    sum_revenue,
)
from logistics_engines.formatting import format_idr

logger = get_logger("engines.validation")

# Error codes
REQUIRED = "required"
INVALID_NUMBER = "invalid_number"
NEGATIVE_VALUE = "negative_value"
NOT_POSITIVE = "not_positive"
SUBTOTAL_MISMATCH = "subtotal_mismatch"
NON_POSITIVE_MARGIN = "non_positive_margin"
DATE_ORDER = "date_order"

DOCUMENT_REQUIRED_FIELDS: dict[str, str] = {
    "exporter_name": "Exporter name",
    "cargo_description": "Cargo description",
    "origin": "Origin",
    "destination": "Destination",
}

DOCUMENT_MEASUREMENT_FIELDS: tuple[str, ...] = (
    "gross_weight",
    "net_weight",
    "volume",
    "package_count",
    "quantity",
)

PJO_REQUIRED_FIELDS: dict[str, str] = {
    "customer_id": "Customer",
    "project_id": "Project",
    "jo_date": "Date",
    "commodity": "Commodity",
    "pol": "Port of loading",
    "pod": "Port of discharge",
}


def _tag(prefix: str, name: str) -> str:
    return f"{prefix}.{name}" if prefix else name


def _required(record: Any, fields: dict[str, str], prefix: str = "") -> list[ValidationError]:
    errors: list[ValidationError] = []
    for name, label in fields.items():
        value = field_value(record, name)
        if value is None or (isinstance(value, str) and not value.strip()):
            errors.append(ValidationError(
                code=REQUIRED,
                field=_tag(prefix, name),
                message=f"{label} is required",
            ))
    return errors


def _number(record: Any, name: str, prefix: str) -> tuple[Decimal | None, ValidationError | None]:
    try:
        return to_optional_decimal(field_value(record, name), name), None
    except ValueError:
        return None, ValidationError(
            code=INVALID_NUMBER,
            field=_tag(prefix, name),
            message=f"{name.replace('_', ' ').capitalize()} must be a number",
        )


def _strictly_positive(record: Any, name: str, label: str, prefix: str) -> ValidationError | None:
    value, error = _number(record, name, prefix)
    if error is not None:
        return error
    if value is None or value <= ZERO:
        return ValidationError(
            code=NOT_POSITIVE,
            field=_tag(prefix, name),
            message=f"{label} must be greater than 0",
        )
    return None


def validate_document(record: Any) -> ValidationResult:
    """Shipping document: required parties/route/cargo, non-negative measurements."""
    errors = _required(record, DOCUMENT_REQUIRED_FIELDS)
    for name in DOCUMENT_MEASUREMENT_FIELDS:
        value, error = _number(record, name, "")
        if error is not None:
            errors.append(error)
        elif value is not None and value < ZERO:
            errors.append(ValidationError(
                code=NEGATIVE_VALUE,
                field=name,
                message=f"{name.replace('_', ' ').capitalize()} cannot be negative",
            ))
    return ValidationResult.from_errors(errors)


def validate_revenue_item(
    item: Any,
    prefix: str = "",
    tolerance: Decimal = DEFAULT_SUBTOTAL_TOLERANCE,
) -> ValidationResult:
    """Description present, unit price > 0, quantity > 0, subtotal consistent."""
    errors: list[ValidationError] = []
    if not text_value(item, "description"):
        errors.append(ValidationError(
            code=REQUIRED, field=_tag(prefix, "description"), message="Description is required",
        ))
    price_error = _strictly_positive(item, "unit_price", "Unit price", prefix)
    if price_error is not None:
        errors.append(price_error)
    quantity_error = _strictly_positive(item, "quantity", "Quantity", prefix)
    if quantity_error is not None:
        errors.append(quantity_error)

    if price_error is None and quantity_error is None:
        stored, stored_error = _number(item, "subtotal", prefix)
        if stored_error is not None:
            errors.append(stored_error)
        elif stored is not None:
            derived = expected_subtotal(field_value(item, "quantity"), field_value(item, "unit_price"))
            if abs(stored - derived) > tolerance:
                errors.append(ValidationError(
                    code=SUBTOTAL_MISMATCH,
                    field=_tag(prefix, "subtotal"),
                    message=f"Subtotal must equal quantity x unit price ({format_idr(derived)})",
                    details={"stored": str(stored), "expected": str(derived)},
                ))
    return ValidationResult.from_errors(errors)


def validate_cost_item(item: Any, prefix: str = "") -> ValidationResult:
    """Description present and estimated amount > 0."""
    errors: list[ValidationError] = []
    if not text_value(item, "description"):
        errors.append(ValidationError(
            code=REQUIRED, field=_tag(prefix, "description"), message="Description is required",
        ))
    amount_error = _strictly_positive(item, "estimated_amount", "Estimated amount", prefix)
    if amount_error is not None:
        errors.append(amount_error)
    return ValidationResult.from_errors(errors)


def validate_revenue_items(
    items: Sequence[Any],
    tolerance: Decimal = DEFAULT_SUBTOTAL_TOLERANCE,
) -> ValidationResult:
    """At least one revenue item; each item validated with an indexed tag."""
    if not items:
        return ValidationResult.failure(ValidationError(
            code=REQUIRED,
            field="revenue_items",
            message="At least one revenue item is required",
        ))
    result = ValidationResult.success()
    for index, item in enumerate(items):
        result = result.merge(validate_revenue_item(
            item, prefix=f"revenue_items[{index}]", tolerance=tolerance,
        ))
    return result


def validate_cost_items(items: Sequence[Any]) -> ValidationResult:
    """Each cost item validated with an indexed tag; an empty list is allowed."""
    result = ValidationResult.success()
    for index, item in enumerate(items):
        result = result.merge(validate_cost_item(item, prefix=f"cost_items[{index}]"))
    return result


def validate_positive_margin(revenue: Any, cost: Any) -> ValidationResult:
    """Invalid when cost >= revenue (break-even included)."""
    totals: dict[str, Decimal] = {}
    errors: list[ValidationError] = []
    for name, field, value in (
        ("revenue", "total_revenue", revenue),
        ("cost", "total_cost_estimated", cost),
    ):
        try:
            totals[name] = to_decimal(value, name)
        except ValueError:
            errors.append(ValidationError(
                code=INVALID_NUMBER,
                field=field,
                message=f"{name.capitalize()} must be a number",
            ))
    if errors:
        return ValidationResult.from_errors(errors)
    revenue_d, cost_d = totals["revenue"], totals["cost"]
    if cost_d < revenue_d:
        return ValidationResult.success()
    margin = (
        (revenue_d - cost_d) / revenue_d * Decimal("100") if revenue_d > ZERO else ZERO
    )
    return ValidationResult.failure(ValidationError(
        code=NON_POSITIVE_MARGIN,
        field="total_cost_estimated",
        message=(
            f"Cannot submit: Estimated cost ({format_idr(cost_d)}) exceeds or equals "
            f"revenue ({format_idr(revenue_d)}). Current margin: {margin:.2f}%"
        ),
        details={"revenue": str(revenue_d), "cost": str(cost_d)},
    ))


def _as_date(value: date | datetime | str | None) -> date | datetime | None:
    if isinstance(value, str):
        return datetime.fromisoformat(value) if value.strip() else None
    return value


def validate_date_order(
    start: date | datetime | str | None,
    end: date | datetime | str | None,
    field: str = "eta",
) -> ValidationResult:
    """Valid when either bound is absent, otherwise end must be >= start."""
    start_d = _as_date(start)
    end_d = _as_date(end)
    if start_d is None or end_d is None:
        return ValidationResult.success()
    # Compare dates with dates when one side carries no time.
    if isinstance(start_d, datetime) != isinstance(end_d, datetime):
        start_d = start_d.date() if isinstance(start_d, datetime) else start_d
        end_d = end_d.date() if isinstance(end_d, datetime) else end_d
    if end_d >= start_d:
        return ValidationResult.success()
    return ValidationResult.failure(ValidationError(
        code=DATE_ORDER,
        field=field,
        message="ETA must be on or after ETD",
    ))


def validate_pjo_for_submission(
    pjo: Any,
    tolerance: Decimal = DEFAULT_SUBTOTAL_TOLERANCE,
) -> ValidationResult:
    """Everything a PJO must satisfy to leave draft, all errors collected.

    Required header fields, revenue and cost items, positive margin on the
    estimated totals, and ETD/ETA order.
    """
    revenue_items = tuple(field_value(pjo, "revenue_items") or ())
    cost_items = tuple(field_value(pjo, "cost_items") or ())

    result = ValidationResult.from_errors(_required(pjo, PJO_REQUIRED_FIELDS))
    items_result = validate_revenue_items(revenue_items, tolerance).merge(validate_cost_items(cost_items))
    result = result.merge(items_result)

    # Totals are only meaningful once every line item is well-formed.
    if items_result.is_valid:
        try:
            revenue = sum_revenue(revenue_items, tolerance)
        except SubtotalMismatchError:
            revenue = None
        if revenue is not None:
            cost = sum_cost(cost_items, "estimated")
            result = result.merge(validate_positive_margin(revenue, cost))

    result = result.merge(validate_date_order(field_value(pjo, "etd"), field_value(pjo, "eta")))

    logger.info("pjo_submission_validated", extra={
        "pjo_id": field_value(pjo, "id"),
        "is_valid": result.is_valid,
        "error_fields": list(result.fields()),
    })
    return result
