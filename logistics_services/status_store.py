"""
ProformaStatusStore -- optimistic persistence of PJO status changes.

Responsibility:
    Persist the results of ``ProformaLifecycle`` operations so that two
    concurrent actors can never both win a transition.  Every status write
    is a conditional ``UPDATE ... WHERE id = :id AND status = :expected``;
    the conversion latch is ``UPDATE ... WHERE converted_to_jo = false``.
    Also finds the highest document number issued in a period so callers
    can derive the next sequence.

Architecture position:
    Services -- imperative shell.  The only place proforma rows are read
    or written.  Pure decisions stay in ``logistics_modules.proforma``.

Invariants enforced:
    - A status write that matches zero rows raises ``OptimisticLockError``;
      nothing is silently overwritten.
    - A PJO is latched as converted at most once.
    - Line items of a non-draft PJO are only touched to record cost
      confirmations.

Failure modes:
    - ``OptimisticLockError``  -- stale expected status, or already latched.
    - ``PJONotEditableError``  -- line item replacement outside draft.
    - ``IntegrityError``       -- a concurrent insert took the same
      document number (unique constraint); retry with a fresh sequence.

Non-goals:
    - Does NOT call ``session.commit()`` -- the caller controls boundaries
      (see ``logistics_kernel.db.engine.session_scope``).
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Any
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from logistics_kernel.exceptions import OptimisticLockError, PJONotEditableError
from logistics_kernel.logging_config import get_logger
from logistics_engines.aggregation import DEFAULT_SUBTOTAL_TOLERANCE
from logistics_engines.numbering import (
    DEFAULT_DIVISION,
    JO_PREFIX,
    next_sequence,
    period_suffix,
)
from logistics_modules.proforma.conversion import ConversionResult
from logistics_modules.proforma.models import (
    CostItem,
    JobOrder,
    PJOStatus,
    ProformaJobOrder,
    RevenueItem,
)
from logistics_modules.proforma.orm import (
    CostItemModel,
    JobOrderModel,
    ProformaJobOrderModel,
    RevenueItemModel,
)

logger = get_logger("services.status_store")

_TRANSITION_FIELDS = (
    "updated_at",
    "approved_at",
    "approved_by",
    "rejected_at",
    "rejected_by",
    "rejection_reason",
)

_WRITABLE_FIELDS = frozenset(_TRANSITION_FIELDS)


class ProformaStatusStore:
    """
    Conditional writes for proforma job orders over a SQLAlchemy session.

    Usage:
        with session_scope() as session:
            store = ProformaStatusStore(session, lifecycle.config.subtotal_tolerance)
            current = store.get(pjo_id)
            approved = lifecycle.approve_pjo(current, approver_id, current.status)
            store.save_transition(current.status, approved)
    """

    def __init__(
        self,
        session: Session,
        subtotal_tolerance: Decimal = DEFAULT_SUBTOTAL_TOLERANCE,
    ):
        self._session = session
        self._subtotal_tolerance = subtotal_tolerance

    # -- reads ----------------------------------------------------------------

    def get(self, pjo_id: UUID) -> ProformaJobOrder | None:
        """Fresh snapshot of a PJO with its items, or None."""
        model = self._session.execute(
            select(ProformaJobOrderModel)
            .where(ProformaJobOrderModel.id == pjo_id)
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()
        return model.to_dto(self._subtotal_tolerance) if model is not None else None

    def get_job_order(self, job_order_id: UUID) -> JobOrder | None:
        model = self._session.get(JobOrderModel, job_order_id)
        return model.to_dto() if model is not None else None

    def last_number_in_period(self, suffix: str, prefix: str = "") -> str | None:
        """Highest document number ending in ``suffix``.

        With an empty ``prefix`` PJO numbers are searched; with a prefix
        (e.g. ``JO-``) job order numbers starting with it are searched.
        Zero-padded sequences make the lexical maximum the numeric one.
        """
        if prefix:
            column = JobOrderModel.jo_number
            pattern = f"{prefix}%{suffix}"
        else:
            column = ProformaJobOrderModel.pjo_number
            pattern = f"%{suffix}"
        return self._session.execute(
            select(column).where(column.like(pattern)).order_by(column.desc()).limit(1)
        ).scalar_one_or_none()

    def next_pjo_sequence(self, on_date: date, division: str = DEFAULT_DIVISION) -> int:
        last = self.last_number_in_period(period_suffix(on_date, division))
        return next_sequence(last)

    def next_jo_sequence(
        self,
        on_date: date,
        division: str = DEFAULT_DIVISION,
        prefix: str = JO_PREFIX,
    ) -> int:
        last = self.last_number_in_period(period_suffix(on_date, division), prefix)
        return next_sequence(last, prefix)

    # -- writes ---------------------------------------------------------------

    def add(self, pjo: ProformaJobOrder, created_by_id: UUID | None = None) -> None:
        """Insert a new PJO with its items."""
        self._session.add(ProformaJobOrderModel.from_dto(pjo, created_by_id))
        self._session.flush()
        logger.info("pjo_inserted", extra={
            "pjo_id": str(pjo.id),
            "pjo_number": pjo.pjo_number,
            "status": pjo.status.value,
        })

    def compare_and_set_status(
        self,
        pjo_id: UUID,
        expected: PJOStatus | str,
        new: PJOStatus | str,
        **fields: Any,
    ) -> None:
        """Set ``status`` to ``new`` only if it is still ``expected``.

        Raises:
            OptimisticLockError: no row with that id has the expected status.
            ValueError: ``fields`` names a column that cannot be written here.
        """
        unknown = set(fields) - _WRITABLE_FIELDS
        if unknown:
            raise ValueError(f"Cannot write fields with a status change: {sorted(unknown)}")

        expected_value = PJOStatus(expected).value
        new_value = PJOStatus(new).value
        result = self._session.execute(
            update(ProformaJobOrderModel)
            .where(
                ProformaJobOrderModel.id == pjo_id,
                ProformaJobOrderModel.status == expected_value,
            )
            .values(status=new_value, **fields)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            logger.warning("pjo_status_conflict", extra={
                "pjo_id": str(pjo_id),
                "expected_status": expected_value,
                "new_status": new_value,
            })
            raise OptimisticLockError("ProformaJobOrder", str(pjo_id), expected_value)
        self._session.expire_all()
        logger.info("pjo_status_updated", extra={
            "pjo_id": str(pjo_id),
            "from_status": expected_value,
            "to_status": new_value,
        })

    def save_transition(self, expected: PJOStatus | str, pjo: ProformaJobOrder) -> None:
        """Persist a PJO returned by a lifecycle operation."""
        fields = {name: getattr(pjo, name) for name in _TRANSITION_FIELDS}
        if fields["updated_at"] is None:
            del fields["updated_at"]
        self.compare_and_set_status(pjo.id, expected, pjo.status, **fields)

    def mark_converted(self, pjo_id: UUID, job_order_id: UUID) -> None:
        """Latch ``converted_to_jo``; only the first caller succeeds.

        Raises:
            OptimisticLockError: the PJO does not exist or is already converted.
        """
        result = self._session.execute(
            update(ProformaJobOrderModel)
            .where(
                ProformaJobOrderModel.id == pjo_id,
                ProformaJobOrderModel.converted_to_jo.is_(False),
            )
            .values(converted_to_jo=True, job_order_id=job_order_id)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            logger.warning("pjo_conversion_conflict", extra={"pjo_id": str(pjo_id)})
            raise OptimisticLockError("ProformaJobOrder", str(pjo_id), "converted_to_jo=false")
        self._session.expire_all()

    def record_conversion(self, result: ConversionResult, created_by_id: UUID | None = None) -> None:
        """Latch the PJO and insert its job order in the caller's transaction."""
        self.mark_converted(result.pjo.id, result.job_order.id)
        self._session.add(JobOrderModel.from_dto(result.job_order, created_by_id))
        self._session.flush()
        logger.info("job_order_inserted", extra={
            "pjo_id": str(result.pjo.id),
            "job_order_id": str(result.job_order.id),
            "jo_number": result.job_order.jo_number,
        })

    def replace_items(self, pjo: ProformaJobOrder) -> None:
        """Make the stored line items of a draft PJO match ``pjo``.

        Raises:
            PJONotEditableError: the stored PJO is no longer a draft.
        """
        model = self._require(pjo.id)
        if model.status != PJOStatus.DRAFT.value:
            raise PJONotEditableError(pjo.id, model.status)
        _sync(model.revenue_items, pjo.revenue_items, RevenueItemModel, _apply_revenue)
        _sync(model.cost_items, pjo.cost_items, CostItemModel, _apply_cost)
        self._session.flush()

    def save_cost_confirmations(self, pjo: ProformaJobOrder) -> None:
        """Write actual amounts and statuses of ``pjo``'s cost items.

        Raises:
            OptimisticLockError: the stored PJO has been converted.
        """
        model = self._require(pjo.id)
        if model.converted_to_jo:
            raise OptimisticLockError("ProformaJobOrder", str(pjo.id), "converted_to_jo=false")
        stored = {item.id: item for item in model.cost_items}
        for item in pjo.cost_items:
            row = stored.get(item.id)
            if row is None:
                raise KeyError(f"PJO {pjo.id} has no stored cost item {item.id}")
            row.actual_amount = item.actual_amount
            row.status = item.status.value
            row.justification = item.justification
            row.confirmed_at = item.confirmed_at
            row.confirmed_by = item.confirmed_by
        self._session.flush()

    def delete(self, pjo_id: UUID) -> None:
        """Delete a draft PJO and its items.

        Raises:
            PJONotEditableError: the PJO is not a draft.
        """
        model = self._require(pjo_id)
        if model.status != PJOStatus.DRAFT.value:
            raise PJONotEditableError(pjo_id, model.status, "deleted")
        self._session.delete(model)
        self._session.flush()

    def _require(self, pjo_id: UUID) -> ProformaJobOrderModel:
        model = self._session.get(ProformaJobOrderModel, pjo_id, populate_existing=True)
        if model is None:
            raise KeyError(f"PJO {pjo_id} not found")
        return model


def _apply_revenue(row: RevenueItemModel, item: RevenueItem) -> None:
    row.description = item.description
    row.quantity = item.quantity
    row.unit = item.unit
    row.unit_price = item.unit_price
    row.subtotal = item.subtotal if item.subtotal is not None else item.expected_subtotal


def _apply_cost(row: CostItemModel, item: CostItem) -> None:
    row.category = item.category.value
    row.description = item.description
    row.estimated_amount = item.estimated_amount
    row.actual_amount = item.actual_amount
    row.status = item.status.value
    row.justification = item.justification


def _sync(rows: list, items, model_cls, apply) -> None:
    existing = {row.id: row for row in rows}
    wanted = {item.id for item in items}
    for row in list(rows):
        if row.id not in wanted:
            rows.remove(row)
    for item in items:
        row = existing.get(item.id)
        if row is None:
            rows.append(model_cls.from_dto(item))
        else:
            apply(row, item)
