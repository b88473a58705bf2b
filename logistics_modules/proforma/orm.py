"""
SQLAlchemy ORM persistence models for the Proforma module.

Responsibility
--------------
Provide database-backed persistence for proforma job orders, their revenue
and cost line items, and the job orders they are converted into.  Derived
figures (totals, profit, margin) are NOT stored; they are recomputed from
the item rows by the domain models.

Architecture position
---------------------
**Modules layer** -- ORM models consumed by
``logistics_services.ProformaStatusStore``.  Inherits from ``TrackedBase``
(kernel db layer).

Invariants enforced
-------------------
* All monetary fields use ``Decimal`` (Numeric(18,2)) -- NEVER float.
* Enum fields stored as String(50) for readability and portability.
* Line items belong to exactly one PJO and are deleted with it.
* ``pjo_number`` and ``jo_number`` are unique.
"""

from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import Boolean, Date, ForeignKey, Index, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from logistics_kernel.db.base import TrackedBase
from logistics_engines.aggregation import DEFAULT_SUBTOTAL_TOLERANCE


# ---------------------------------------------------------------------------
# ProformaJobOrderModel
# ---------------------------------------------------------------------------


class ProformaJobOrderModel(TrackedBase):
    """
    A proforma job order header.

    Maps to the ``ProformaJobOrder`` DTO in ``logistics_modules.proforma.models``.

    Guarantees:
        - ``status`` follows draft -> pending_approval -> approved | rejected.
        - ``converted_to_jo`` only ever goes from false to true.
    """

    __tablename__ = "proforma_job_orders"

    __table_args__ = (
        Index("idx_pjo_status", "status"),
        Index("idx_pjo_customer", "customer_id"),
    )

    pjo_number: Mapped[str] = mapped_column(String(50), nullable=False, unique=True)
    customer_id: Mapped[UUID | None] = mapped_column(nullable=True)
    project_id: Mapped[UUID | None] = mapped_column(nullable=True)
    jo_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    commodity: Mapped[str | None] = mapped_column(String(255), nullable=True)
    quantity: Mapped[Decimal | None] = mapped_column(Numeric(18, 4), nullable=True)
    quantity_unit: Mapped[str | None] = mapped_column(String(50), nullable=True)
    pol: Mapped[str | None] = mapped_column(String(255), nullable=True)
    pod: Mapped[str | None] = mapped_column(String(255), nullable=True)
    etd: Mapped[date | None] = mapped_column(Date, nullable=True)
    eta: Mapped[date | None] = mapped_column(Date, nullable=True)
    carrier_type: Mapped[str | None] = mapped_column(String(50), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(String(50), nullable=False, default="draft")
    currency: Mapped[str] = mapped_column(String(3), nullable=False, default="IDR")
    converted_to_jo: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    job_order_id: Mapped[UUID | None] = mapped_column(nullable=True)
    approved_at: Mapped[datetime | None] = mapped_column(nullable=True)
    approved_by: Mapped[UUID | None] = mapped_column(nullable=True)
    rejected_at: Mapped[datetime | None] = mapped_column(nullable=True)
    rejected_by: Mapped[UUID | None] = mapped_column(nullable=True)
    rejection_reason: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Relationships
    revenue_items: Mapped[list["RevenueItemModel"]] = relationship(
        "RevenueItemModel",
        back_populates="pjo",
        cascade="all, delete-orphan",
        lazy="selectin",
    )
    cost_items: Mapped[list["CostItemModel"]] = relationship(
        "CostItemModel",
        back_populates="pjo",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    def to_dto(self, subtotal_tolerance: Decimal = DEFAULT_SUBTOTAL_TOLERANCE):
        from logistics_modules.proforma.models import PJOStatus, ProformaJobOrder

        return ProformaJobOrder(
            id=self.id,
            pjo_number=self.pjo_number,
            customer_id=self.customer_id,
            project_id=self.project_id,
            jo_date=self.jo_date,
            commodity=self.commodity,
            quantity=self.quantity,
            quantity_unit=self.quantity_unit,
            pol=self.pol,
            pod=self.pod,
            etd=self.etd,
            eta=self.eta,
            carrier_type=self.carrier_type,
            notes=self.notes,
            status=PJOStatus(self.status),
            revenue_items=tuple(item.to_dto() for item in self.revenue_items),
            cost_items=tuple(item.to_dto() for item in self.cost_items),
            converted_to_jo=self.converted_to_jo,
            job_order_id=self.job_order_id,
            created_at=self.created_at,
            updated_at=self.updated_at,
            approved_at=self.approved_at,
            approved_by=self.approved_by,
            rejected_at=self.rejected_at,
            rejected_by=self.rejected_by,
            rejection_reason=self.rejection_reason,
            currency=self.currency,
            subtotal_tolerance=subtotal_tolerance,
        )

    @classmethod
    def from_dto(cls, dto, created_by_id: UUID | None = None) -> "ProformaJobOrderModel":
        model = cls(
            id=dto.id,
            pjo_number=dto.pjo_number,
            customer_id=dto.customer_id,
            project_id=dto.project_id,
            jo_date=dto.jo_date,
            commodity=dto.commodity,
            quantity=dto.quantity,
            quantity_unit=dto.quantity_unit,
            pol=dto.pol,
            pod=dto.pod,
            etd=dto.etd,
            eta=dto.eta,
            carrier_type=dto.carrier_type,
            notes=dto.notes,
            status=dto.status.value,
            currency=dto.currency,
            converted_to_jo=dto.converted_to_jo,
            job_order_id=dto.job_order_id,
            approved_at=dto.approved_at,
            approved_by=dto.approved_by,
            rejected_at=dto.rejected_at,
            rejected_by=dto.rejected_by,
            rejection_reason=dto.rejection_reason,
            created_by_id=created_by_id,
            revenue_items=[RevenueItemModel.from_dto(item) for item in dto.revenue_items],
            cost_items=[CostItemModel.from_dto(item) for item in dto.cost_items],
        )
        if dto.created_at is not None:
            model.created_at = dto.created_at
        if dto.updated_at is not None:
            model.updated_at = dto.updated_at
        return model

    def __repr__(self) -> str:
        return f"<ProformaJobOrderModel {self.pjo_number} [{self.status}]>"


# ---------------------------------------------------------------------------
# RevenueItemModel
# ---------------------------------------------------------------------------


class RevenueItemModel(TrackedBase):
    """A billable line of a PJO.  Maps to ``RevenueItem``."""

    __tablename__ = "proforma_revenue_items"

    __table_args__ = (
        Index("idx_revenue_item_pjo", "pjo_id"),
    )

    pjo_id: Mapped[UUID] = mapped_column(
        ForeignKey("proforma_job_orders.id", ondelete="CASCADE"), nullable=False,
    )
    description: Mapped[str] = mapped_column(String(500), nullable=False)
    quantity: Mapped[Decimal] = mapped_column(Numeric(18, 4), nullable=False)
    unit: Mapped[str] = mapped_column(String(50), nullable=False, default="")
    unit_price: Mapped[Decimal]
    subtotal: Mapped[Decimal | None] = mapped_column(nullable=True)

    pjo: Mapped["ProformaJobOrderModel"] = relationship(
        "ProformaJobOrderModel", back_populates="revenue_items",
    )

    def to_dto(self):
        from logistics_modules.proforma.models import RevenueItem

        return RevenueItem(
            id=self.id,
            pjo_id=self.pjo_id,
            description=self.description,
            quantity=self.quantity,
            unit=self.unit,
            unit_price=self.unit_price,
            subtotal=self.subtotal,
        )

    @classmethod
    def from_dto(cls, dto) -> "RevenueItemModel":
        return cls(
            id=dto.id,
            description=dto.description,
            quantity=dto.quantity,
            unit=dto.unit,
            unit_price=dto.unit_price,
            subtotal=dto.subtotal if dto.subtotal is not None else dto.expected_subtotal,
        )


# ---------------------------------------------------------------------------
# CostItemModel
# ---------------------------------------------------------------------------


class CostItemModel(TrackedBase):
    """An estimated (and later confirmed) cost of a PJO.  Maps to ``CostItem``."""

    __tablename__ = "proforma_cost_items"

    __table_args__ = (
        Index("idx_cost_item_pjo", "pjo_id"),
        Index("idx_cost_item_status", "status"),
    )

    pjo_id: Mapped[UUID] = mapped_column(
        ForeignKey("proforma_job_orders.id", ondelete="CASCADE"), nullable=False,
    )
    category: Mapped[str] = mapped_column(String(50), nullable=False)
    description: Mapped[str] = mapped_column(String(500), nullable=False)
    estimated_amount: Mapped[Decimal]
    actual_amount: Mapped[Decimal | None] = mapped_column(nullable=True)
    status: Mapped[str] = mapped_column(String(50), nullable=False, default="estimated")
    justification: Mapped[str | None] = mapped_column(Text, nullable=True)
    confirmed_at: Mapped[datetime | None] = mapped_column(nullable=True)
    confirmed_by: Mapped[UUID | None] = mapped_column(nullable=True)

    pjo: Mapped["ProformaJobOrderModel"] = relationship(
        "ProformaJobOrderModel", back_populates="cost_items",
    )

    def to_dto(self):
        from logistics_modules.proforma.models import CostCategory, CostItem, CostItemStatus

        return CostItem(
            id=self.id,
            pjo_id=self.pjo_id,
            category=CostCategory(self.category),
            description=self.description,
            estimated_amount=self.estimated_amount,
            actual_amount=self.actual_amount,
            status=CostItemStatus(self.status),
            justification=self.justification,
            confirmed_at=self.confirmed_at,
            confirmed_by=self.confirmed_by,
        )

    @classmethod
    def from_dto(cls, dto) -> "CostItemModel":
        return cls(
            id=dto.id,
            category=dto.category.value,
            description=dto.description,
            estimated_amount=dto.estimated_amount,
            actual_amount=dto.actual_amount,
            status=dto.status.value,
            justification=dto.justification,
            confirmed_at=dto.confirmed_at,
            confirmed_by=dto.confirmed_by,
        )


# ---------------------------------------------------------------------------
# JobOrderModel
# ---------------------------------------------------------------------------


class JobOrderModel(TrackedBase):
    """A job order created by converting an approved PJO.  Maps to ``JobOrder``."""

    __tablename__ = "job_orders"

    jo_number: Mapped[str] = mapped_column(String(50), nullable=False, unique=True)
    pjo_id: Mapped[UUID] = mapped_column(
        ForeignKey("proforma_job_orders.id"), nullable=False, unique=True,
    )
    customer_id: Mapped[UUID | None] = mapped_column(nullable=True)
    project_id: Mapped[UUID | None] = mapped_column(nullable=True)
    currency: Mapped[str] = mapped_column(String(3), nullable=False, default="IDR")
    final_revenue: Mapped[Decimal]
    final_cost: Mapped[Decimal]
    profit: Mapped[Decimal]
    margin_pct: Mapped[Decimal]

    def to_dto(self):
        from logistics_kernel.domain.values import Money
        from logistics_modules.proforma.models import JobOrder

        return JobOrder(
            id=self.id,
            jo_number=self.jo_number,
            pjo_id=self.pjo_id,
            customer_id=self.customer_id,
            project_id=self.project_id,
            final_revenue=Money.of(self.final_revenue, self.currency),
            final_cost=Money.of(self.final_cost, self.currency),
            profit=Money.of(self.profit, self.currency),
            margin_pct=self.margin_pct,
            created_at=self.created_at,
        )

    @classmethod
    def from_dto(cls, dto, created_by_id: UUID | None = None) -> "JobOrderModel":
        model = cls(
            id=dto.id,
            jo_number=dto.jo_number,
            pjo_id=dto.pjo_id,
            customer_id=dto.customer_id,
            project_id=dto.project_id,
            currency=dto.final_revenue.currency.code,
            final_revenue=dto.final_revenue.amount,
            final_cost=dto.final_cost.amount,
            profit=dto.profit.amount,
            margin_pct=dto.margin_pct,
            created_by_id=created_by_id,
        )
        if dto.created_at is not None:
            model.created_at = dto.created_at
        return model

    def __repr__(self) -> str:
        return f"<JobOrderModel {self.jo_number}>"
