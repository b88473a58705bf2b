"""
Proforma Job Order Domain Models (``logistics_modules.proforma.models``).

Responsibility
--------------
Frozen dataclass value objects for the nouns of the proforma workflow:
the proforma job order (PJO), its revenue and cost line items, and the
job order (JO) it is converted into.

Architecture position
---------------------
**Modules layer** -- pure data definitions with ZERO I/O.  Totals are
computed through ``logistics_engines``; the models never store them.

Invariants enforced
-------------------
* All models are ``frozen=True``; lifecycle operations return new copies.
* All monetary fields are ``Decimal`` -- NEVER ``float``.  Records coming
  from the store or a form are coerced on construction.
* ``total_revenue``, ``total_cost_*``, ``profit`` and ``margin_pct`` are
  properties recomputed from the line items on every read.
* A PJO owns its items exclusively: ``with_*_items`` re-parents items to
  the PJO's id.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any
from uuid import UUID, uuid4

from logistics_kernel.domain.validation import to_decimal, to_optional_decimal
from logistics_kernel.domain.values import Money
from logistics_engines.aggregation import (
    DEFAULT_SUBTOTAL_TOLERANCE,
    CostBasis,
    expected_subtotal,
    sum_cost,
    sum_revenue,
)
from logistics_engines.formatting import calculate_margin
from logistics_engines.reconciliation import (
    BudgetReport,
    CostItemStatus,
    analyze_budget,
    cost_variance,
)

__all__ = [
    "COST_CATEGORY_LABELS",
    "CostCategory",
    "CostItem",
    "CostItemStatus",
    "JobOrder",
    "PJOStatus",
    "ProformaJobOrder",
    "RevenueItem",
]


class PJOStatus(str, Enum):
    """Proforma job order approval states."""
    DRAFT = "draft"
    PENDING_APPROVAL = "pending_approval"
    APPROVED = "approved"
    REJECTED = "rejected"


class CostCategory(str, Enum):
    """Cost line categories."""
    TRUCKING = "trucking"
    PORT_CHARGES = "port_charges"
    DOCUMENTATION = "documentation"
    HANDLING = "handling"
    CUSTOMS = "customs"
    INSURANCE = "insurance"
    STORAGE = "storage"
    LABOR = "labor"
    FUEL = "fuel"
    TOLLS = "tolls"
    OTHER = "other"


COST_CATEGORY_LABELS: dict[CostCategory, str] = {
    CostCategory.TRUCKING: "Trucking",
    CostCategory.PORT_CHARGES: "Port Charges",
    CostCategory.DOCUMENTATION: "Documentation",
    CostCategory.HANDLING: "Handling",
    CostCategory.CUSTOMS: "Customs",
    CostCategory.INSURANCE: "Insurance",
    CostCategory.STORAGE: "Storage",
    CostCategory.LABOR: "Labor",
    CostCategory.FUEL: "Fuel",
    CostCategory.TOLLS: "Tolls",
    CostCategory.OTHER: "Other",
}


def _uuid(value: Any) -> UUID | None:
    if value is None or value == "":
        return None
    return value if isinstance(value, UUID) else UUID(str(value))


def _date(value: Any) -> date | None:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value)[:10])


def _datetime(value: Any) -> datetime | None:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    return datetime.fromisoformat(str(value).replace("Z", "+00:00"))


def _text(value: Any) -> str | None:
    if value is None:
        return None
    return str(value)


@dataclass(frozen=True)
class RevenueItem:
    """A billable line: quantity x unit price."""
    id: UUID
    pjo_id: UUID | None
    description: str
    quantity: Decimal
    unit: str
    unit_price: Decimal
    subtotal: Decimal | None = None

    def __post_init__(self):
        object.__setattr__(self, "quantity", to_decimal(self.quantity, "quantity"))
        object.__setattr__(self, "unit_price", to_decimal(self.unit_price, "unit_price"))
        object.__setattr__(self, "subtotal", to_optional_decimal(self.subtotal, "subtotal"))

    @property
    def expected_subtotal(self) -> Decimal:
        return expected_subtotal(self.quantity, self.unit_price)

    def with_subtotal(self) -> RevenueItem:
        """Copy with ``subtotal`` set to quantity x unit price."""
        return replace(self, subtotal=self.expected_subtotal)

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> RevenueItem:
        return cls(
            id=_uuid(record.get("id")) or uuid4(),
            pjo_id=_uuid(record.get("pjo_id")),
            description=str(record.get("description") or ""),
            quantity=record.get("quantity", 1),
            unit=str(record.get("unit") or ""),
            unit_price=record.get("unit_price", 0),
            subtotal=record.get("subtotal"),
        )


@dataclass(frozen=True)
class CostItem:
    """An estimated cost, later confirmed with its actual amount."""
    id: UUID
    pjo_id: UUID | None
    category: CostCategory
    description: str
    estimated_amount: Decimal
    actual_amount: Decimal | None = None
    status: CostItemStatus = CostItemStatus.ESTIMATED
    justification: str | None = None
    confirmed_at: datetime | None = None
    confirmed_by: UUID | None = None

    def __post_init__(self):
        object.__setattr__(self, "category", CostCategory(self.category))
        object.__setattr__(self, "status", CostItemStatus(self.status))
        object.__setattr__(
            self, "estimated_amount", to_decimal(self.estimated_amount, "estimated_amount")
        )
        object.__setattr__(
            self, "actual_amount", to_optional_decimal(self.actual_amount, "actual_amount")
        )

    @property
    def is_confirmed(self) -> bool:
        return self.actual_amount is not None

    @property
    def variance(self) -> Decimal | None:
        return cost_variance(self.estimated_amount, self.actual_amount)[0]

    @property
    def variance_pct(self) -> Decimal | None:
        return cost_variance(self.estimated_amount, self.actual_amount)[1]

    @property
    def category_label(self) -> str:
        return COST_CATEGORY_LABELS[self.category]

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> CostItem:
        return cls(
            id=_uuid(record.get("id")) or uuid4(),
            pjo_id=_uuid(record.get("pjo_id")),
            category=record.get("category") or CostCategory.OTHER,
            description=str(record.get("description") or ""),
            estimated_amount=record.get("estimated_amount", 0),
            actual_amount=record.get("actual_amount"),
            status=record.get("status") or CostItemStatus.ESTIMATED,
            justification=_text(record.get("justification")),
            confirmed_at=_datetime(record.get("confirmed_at")),
            confirmed_by=_uuid(record.get("confirmed_by")),
        )


@dataclass(frozen=True)
class ProformaJobOrder:
    """
    A proforma job order: the pre-approval financial estimate of a job.

    Financial figures are projections of ``revenue_items`` and
    ``cost_items`` and are recomputed on every access.  ``profit`` and
    ``margin_pct`` use the estimated cost; ``actual_profit`` uses the
    actual-to-date cost.  Stored revenue subtotals are checked against
    ``subtotal_tolerance``, which the lifecycle sets from its configuration.
    """
    id: UUID
    pjo_number: str
    customer_id: UUID | None = None
    project_id: UUID | None = None
    jo_date: date | None = None
    commodity: str | None = None
    quantity: Decimal | None = None
    quantity_unit: str | None = None
    pol: str | None = None
    pod: str | None = None
    etd: date | None = None
    eta: date | None = None
    carrier_type: str | None = None
    notes: str | None = None
    status: PJOStatus = PJOStatus.DRAFT
    revenue_items: tuple[RevenueItem, ...] = field(default_factory=tuple)
    cost_items: tuple[CostItem, ...] = field(default_factory=tuple)
    converted_to_jo: bool = False
    job_order_id: UUID | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    approved_at: datetime | None = None
    approved_by: UUID | None = None
    rejected_at: datetime | None = None
    rejected_by: UUID | None = None
    rejection_reason: str | None = None
    currency: str = "IDR"
    subtotal_tolerance: Decimal = DEFAULT_SUBTOTAL_TOLERANCE

    def __post_init__(self):
        object.__setattr__(self, "status", PJOStatus(self.status))
        object.__setattr__(self, "revenue_items", tuple(self.revenue_items))
        object.__setattr__(self, "cost_items", tuple(self.cost_items))
        object.__setattr__(self, "quantity", to_optional_decimal(self.quantity, "quantity"))
        object.__setattr__(
            self, "subtotal_tolerance", to_decimal(self.subtotal_tolerance, "subtotal_tolerance"),
        )

    # -- derived financials ------------------------------------------------

    @property
    def total_revenue(self) -> Decimal:
        return sum_revenue(self.revenue_items, self.subtotal_tolerance, self.currency)

    @property
    def total_cost_estimated(self) -> Decimal:
        return sum_cost(self.cost_items, CostBasis.ESTIMATED)

    @property
    def total_cost_actual(self) -> Decimal:
        return sum_cost(self.cost_items, CostBasis.ACTUAL)

    @property
    def profit(self) -> Decimal:
        return self.total_revenue - self.total_cost_estimated

    @property
    def margin_pct(self) -> Decimal:
        return calculate_margin(self.total_revenue, self.total_cost_estimated)

    @property
    def actual_profit(self) -> Decimal:
        return self.total_revenue - self.total_cost_actual

    @property
    def budget(self) -> BudgetReport:
        return analyze_budget(self.cost_items, currency=self.currency)

    @property
    def all_costs_confirmed(self) -> bool:
        return self.budget.all_confirmed

    @property
    def has_cost_overruns(self) -> bool:
        return self.budget.has_overruns

    @property
    def origin(self) -> str | None:
        return self.pol

    @property
    def destination(self) -> str | None:
        return self.pod

    # -- item ownership ----------------------------------------------------

    def with_revenue_items(self, items) -> ProformaJobOrder:
        """Copy owning ``items`` (re-parented, subtotals derived)."""
        owned = tuple(replace(item, pjo_id=self.id).with_subtotal() for item in items)
        return replace(self, revenue_items=owned)

    def with_cost_items(self, items) -> ProformaJobOrder:
        """Copy owning ``items`` (re-parented)."""
        owned = tuple(replace(item, pjo_id=self.id) for item in items)
        return replace(self, cost_items=owned)

    def cost_item(self, cost_item_id: UUID) -> CostItem:
        """Look up an owned cost item.

        Raises:
            KeyError: the PJO owns no cost item with that id.
        """
        for item in self.cost_items:
            if item.id == cost_item_id:
                return item
        raise KeyError(f"PJO {self.id} has no cost item {cost_item_id}")

    @classmethod
    def from_record(
        cls,
        record: Mapping[str, Any],
        revenue_items: list[Mapping[str, Any]] | None = None,
        cost_items: list[Mapping[str, Any]] | None = None,
        subtotal_tolerance: Decimal = DEFAULT_SUBTOTAL_TOLERANCE,
    ) -> ProformaJobOrder:
        """Build from a store row plus its item rows."""
        revenue_rows = revenue_items if revenue_items is not None else record.get("revenue_items") or []
        cost_rows = cost_items if cost_items is not None else record.get("cost_items") or []
        return cls(
            id=_uuid(record.get("id")) or uuid4(),
            pjo_number=str(record.get("pjo_number") or ""),
            customer_id=_uuid(record.get("customer_id")),
            project_id=_uuid(record.get("project_id")),
            jo_date=_date(record.get("jo_date")),
            commodity=_text(record.get("commodity")),
            quantity=record.get("quantity"),
            quantity_unit=_text(record.get("quantity_unit")),
            pol=_text(record.get("pol")),
            pod=_text(record.get("pod")),
            etd=_date(record.get("etd")),
            eta=_date(record.get("eta")),
            carrier_type=_text(record.get("carrier_type")),
            notes=_text(record.get("notes")),
            status=record.get("status") or PJOStatus.DRAFT,
            revenue_items=tuple(
                r if isinstance(r, RevenueItem) else RevenueItem.from_record(r)
                for r in revenue_rows
            ),
            cost_items=tuple(
                c if isinstance(c, CostItem) else CostItem.from_record(c)
                for c in cost_rows
            ),
            converted_to_jo=bool(record.get("converted_to_jo", False)),
            job_order_id=_uuid(record.get("job_order_id")),
            created_at=_datetime(record.get("created_at")),
            updated_at=_datetime(record.get("updated_at")),
            approved_at=_datetime(record.get("approved_at")),
            approved_by=_uuid(record.get("approved_by")),
            rejected_at=_datetime(record.get("rejected_at")),
            rejected_by=_uuid(record.get("rejected_by")),
            rejection_reason=_text(record.get("rejection_reason")),
            currency=str(record.get("currency") or "IDR"),
            subtotal_tolerance=subtotal_tolerance,
        )


@dataclass(frozen=True)
class JobOrder:
    """A billable job order, seeded from a converted PJO's final figures."""
    id: UUID
    jo_number: str
    pjo_id: UUID
    customer_id: UUID | None
    project_id: UUID | None
    final_revenue: Money
    final_cost: Money
    profit: Money
    margin_pct: Decimal
    created_at: datetime | None = None
