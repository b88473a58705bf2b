"""
Typed Exception Hierarchy for the Logistics Kernel.

===============================================================================
CATCHING
===============================================================================

A rejected lifecycle step has to be rendered as an actionable message
("2 cost items still unconfirmed"), logged, and possibly retried.  Callers
must catch by type and read structured attributes, never parse message
text:

    try:
        result = lifecycle.approve_pjo(pjo, approver_id=user_id,
                                       expected_status=PJOStatus.PENDING_APPROVAL)
    except StaleStatusError as e:
        reload_and_retry(e.pjo_id)
    except InvalidTransitionError as e:
        api_response(code=e.code, status=e.from_state, action=e.action)

Every exception has:
  1. A TYPED class (catch by type, not message)
  2. A ``code`` class attribute (machine-readable, API-safe)
  3. Structured attributes for the context of the failure

Field validation is NOT in this hierarchy: validators return
``ValidationResult`` objects so all problems surface at once.  Only a
refused submission (which wraps those results) is raised.

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    LogisticsKernelError (base)
    |
    +-- LineItemError
    |   +-- SubtotalMismatchError
    |
    +-- LifecycleError
    |   +-- InvalidTransitionError
    |   +-- SubmissionRejectedError
    |   +-- RejectionReasonRequiredError
    |   +-- PJONotEditableError
    |   +-- JustificationRequiredError
    |
    +-- ConversionPreconditionError
    |   +-- PJONotApprovedError
    |   +-- CostsUnconfirmedError
    |   +-- AlreadyConvertedError
    |
    +-- ConcurrencyError
        +-- StaleStatusError
        +-- OptimisticLockError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category        | Code                        | When Raised
----------------|-----------------------------|-----------------------------------------
Line items      | SUBTOTAL_MISMATCH           | Stored subtotal != quantity x unit price
----------------|-----------------------------|-----------------------------------------
Lifecycle       | INVALID_TRANSITION          | Edge not in the status state machine
                | SUBMISSION_REJECTED         | Validation failed on submit
                | REJECTION_REASON_REQUIRED   | Blank rejection reason
                | PJO_NOT_EDITABLE            | Editing/deleting a non-draft PJO
                | JUSTIFICATION_REQUIRED      | Over-budget cost without justification
----------------|-----------------------------|-----------------------------------------
Conversion      | PJO_NOT_APPROVED            | Converting a PJO that is not approved
                | COSTS_UNCONFIRMED           | Cost items without actual amounts
                | ALREADY_CONVERTED           | PJO already latched to a job order
----------------|-----------------------------|-----------------------------------------
Concurrency     | STALE_STATUS                | Caller's expected status is out of date
                | OPTIMISTIC_LOCK_CONFLICT    | Conditional UPDATE matched no row
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any


class LogisticsKernelError(Exception):
    """
    Base exception for all logistics kernel errors.

    All subclasses must have a ``code`` class attribute for
    machine-readable error identification.
    """

    code: str = "LOGISTICS_KERNEL_ERROR"


# Line-item exceptions


class LineItemError(LogisticsKernelError):
    """Base exception for revenue/cost line item errors."""

    code: str = "LINE_ITEM_ERROR"


class SubtotalMismatchError(LineItemError):
    """A revenue item's stored subtotal disagrees with quantity x unit price."""

    code: str = "SUBTOTAL_MISMATCH"

    def __init__(self, item_id: Any, stored: str, expected: str, tolerance: str):
        self.item_id = item_id
        self.stored = stored
        self.expected = expected
        self.tolerance = tolerance
        super().__init__(
            f"Revenue item {item_id}: stored subtotal {stored} differs from "
            f"quantity x unit price {expected} by more than {tolerance}"
        )


# Lifecycle exceptions


class LifecycleError(LogisticsKernelError):
    """Base exception for status lifecycle errors."""

    code: str = "LIFECYCLE_ERROR"


class InvalidTransitionError(LifecycleError):
    """The requested status change is not an edge of the state machine."""

    code: str = "INVALID_TRANSITION"

    def __init__(
        self,
        workflow: str,
        from_state: str,
        action: str,
        allowed: Sequence[str] = (),
    ):
        self.workflow = workflow
        self.from_state = from_state
        self.action = action
        self.allowed = tuple(allowed)
        allowed_text = ", ".join(self.allowed) if self.allowed else "none"
        super().__init__(
            f"Cannot {action} from status '{from_state}' in {workflow} "
            f"(allowed actions: {allowed_text})"
        )


class SubmissionRejectedError(LifecycleError):
    """Submission for approval refused because validation failed.

    ``errors`` holds every ValidationError, not just the first.
    """

    code: str = "SUBMISSION_REJECTED"

    def __init__(self, pjo_id: Any, errors: Sequence[Any]):
        self.pjo_id = pjo_id
        self.errors = tuple(errors)
        super().__init__(
            f"PJO {pjo_id} cannot be submitted: {len(self.errors)} validation error(s)"
        )


class RejectionReasonRequiredError(LifecycleError):
    """A PJO rejection was attempted with a blank reason."""

    code: str = "REJECTION_REASON_REQUIRED"

    def __init__(self, pjo_id: Any):
        self.pjo_id = pjo_id
        super().__init__("Rejection reason is required")


class PJONotEditableError(LifecycleError):
    """Only draft PJOs can be edited or deleted."""

    code: str = "PJO_NOT_EDITABLE"

    def __init__(self, pjo_id: Any, status: str, operation: str = "edited"):
        self.pjo_id = pjo_id
        self.status = status
        self.operation = operation
        super().__init__(
            f"Only draft PJOs can be {operation} (PJO {pjo_id} is '{status}')"
        )


class JustificationRequiredError(LifecycleError):
    """Confirming a cost above its estimate needs a written justification."""

    code: str = "JUSTIFICATION_REQUIRED"

    def __init__(self, cost_item_id: Any, estimated: str, actual: str):
        self.cost_item_id = cost_item_id
        self.estimated = estimated
        self.actual = actual
        super().__init__(
            f"Cost item {cost_item_id} exceeds its budget "
            f"({actual} > {estimated}); justification is required"
        )


# Conversion gate exceptions


class ConversionPreconditionError(LogisticsKernelError):
    """Base exception for an unmet PJO -> JO conversion precondition."""

    code: str = "CONVERSION_PRECONDITION_FAILED"
    precondition: str = "unknown"


class PJONotApprovedError(ConversionPreconditionError):
    """Only approved PJOs can be converted to job orders."""

    code: str = "PJO_NOT_APPROVED"
    precondition: str = "status_approved"

    def __init__(self, pjo_id: Any, status: str):
        self.pjo_id = pjo_id
        self.status = status
        super().__init__(
            f"PJO {pjo_id} must be approved before conversion (status is '{status}')"
        )


class CostsUnconfirmedError(ConversionPreconditionError):
    """Some cost items have no actual amount yet."""

    code: str = "COSTS_UNCONFIRMED"
    precondition: str = "all_costs_confirmed"

    def __init__(self, pjo_id: Any, items_pending: int, items_total: int):
        self.pjo_id = pjo_id
        self.items_pending = items_pending
        self.items_total = items_total
        if items_total == 0:
            message = "No cost items recorded; at least one confirmed cost is required"
        else:
            noun = "item" if items_pending == 1 else "items"
            message = f"{items_pending} cost {noun} still unconfirmed"
        super().__init__(message)


class AlreadyConvertedError(ConversionPreconditionError):
    """The PJO has already been converted; conversion is one-way and once only."""

    code: str = "ALREADY_CONVERTED"
    precondition: str = "not_converted"

    def __init__(self, pjo_id: Any, job_order_id: Any = None):
        self.pjo_id = pjo_id
        self.job_order_id = job_order_id
        super().__init__(
            f"PJO {pjo_id} was already converted to job order {job_order_id}"
        )


# Concurrency exceptions


class ConcurrencyError(LogisticsKernelError):
    """Base exception for concurrency-related errors."""

    code: str = "CONCURRENCY_ERROR"


class StaleStatusError(ConcurrencyError):
    """The caller's expected status no longer matches the PJO snapshot."""

    code: str = "STALE_STATUS"

    def __init__(self, pjo_id: Any, expected_status: str, actual_status: str):
        self.pjo_id = pjo_id
        self.expected_status = expected_status
        self.actual_status = actual_status
        super().__init__(
            f"PJO {pjo_id} status changed: expected '{expected_status}', "
            f"found '{actual_status}'"
        )


class OptimisticLockError(ConcurrencyError):
    """A conditional UPDATE matched no row: the record changed underneath."""

    code: str = "OPTIMISTIC_LOCK_CONFLICT"

    def __init__(self, entity_type: str, entity_id: str, expected: str | None = None):
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.expected = expected
        super().__init__(
            f"Optimistic lock conflict on {entity_type} {entity_id}: "
            "entity was modified by another transaction"
        )
