"""
Proforma Module (``logistics_modules.proforma``).

Responsibility
--------------
Thin domain glue for proforma job orders (PJOs): the draft and approval
lifecycle, cost confirmation against estimates, document numbering and the
one-way conversion of an approved PJO into a job order.

Architecture position
---------------------
**Modules layer** -- frozen domain models, transition tables, a config
schema and a lifecycle service that delegates totals, reconciliation,
validation and numbering to ``logistics_engines``.  No I/O; persistence
goes through ``logistics_services``.

Invariants enforced
-------------------
* Totals, profit and margin are always recomputed from line items.
* Status changes follow ``PJO_WORKFLOW`` only.
* Conversion requires approval and fully confirmed costs, and happens once.

Failure modes
-------------
* Typed ``LifecycleError`` / ``ConversionPreconditionError`` /
  ``ConcurrencyError`` subclasses from ``logistics_kernel.exceptions``.
"""

from logistics_modules.proforma.config import ProformaConfig
from logistics_modules.proforma.conversion import (
    ConversionResult,
    can_convert,
    conversion_blockers,
    convert_to_jo,
)
from logistics_modules.proforma.models import (
    COST_CATEGORY_LABELS,
    CostCategory,
    CostItem,
    CostItemStatus,
    JobOrder,
    PJOStatus,
    ProformaJobOrder,
    RevenueItem,
)
from logistics_modules.proforma.service import ProformaLifecycle
from logistics_modules.proforma.workflows import COST_ITEM_WORKFLOW, PJO_WORKFLOW

__all__ = [
    "COST_CATEGORY_LABELS",
    "COST_ITEM_WORKFLOW",
    "ConversionResult",
    "CostCategory",
    "CostItem",
    "CostItemStatus",
    "JobOrder",
    "PJOStatus",
    "PJO_WORKFLOW",
    "ProformaConfig",
    "ProformaJobOrder",
    "ProformaLifecycle",
    "RevenueItem",
    "can_convert",
    "conversion_blockers",
    "convert_to_jo",
]
