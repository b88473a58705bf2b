"""
logistics_services -- Package init and public API.

Responsibility:
    Stateful collaborators that hold database sessions on behalf of the
    pure proforma engine: conditional (compare-and-set) status writes,
    the conversion latch, and discovery of the last document number in a
    period.

Architecture position:
    Services -- stateful orchestration over engines + kernel + modules.

    Dependency direction:
        logistics_services/ -> logistics_modules/  (allowed)
        logistics_services/ -> logistics_engines/  (allowed)
        logistics_services/ -> logistics_kernel/   (allowed)
        logistics_engines/  -> logistics_services/ (FORBIDDEN)
        logistics_kernel/   -> logistics_services/ (FORBIDDEN)

Failure modes:
    - ``OptimisticLockError`` when a conditional write matches no row.
"""

from logistics_kernel.logging_config import get_logger

logger = get_logger("services")

from logistics_services.status_store import ProformaStatusStore  # noqa: E402

__all__ = ["ProformaStatusStore"]
