"""
Module: logistics_kernel.db.base
Responsibility: Declarative base for the ORM models behind proforma job
    orders, their line items and job orders.
Architecture position: Kernel > DB.  Imported by ORM modules only.

Invariants enforced:
    - Primary keys are uuid4 values stored as String(36), so SQLite test
      databases and PostgreSQL hold the same representation.
    - ``Decimal`` annotations become Numeric(18, 2); money is never a float.
    - ``datetime`` annotations are timezone-aware columns.
"""

from datetime import datetime
from decimal import Decimal
from typing import ClassVar
from uuid import UUID, uuid4

from sqlalchemy import DateTime, Numeric, String, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.types import TypeDecorator


class UUIDString(TypeDecorator):
    """UUID bound as its 36-character string and read back as ``uuid.UUID``."""

    impl = String(36)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        return None if value is None else str(value)

    def process_result_value(self, value, dialect):
        return None if value is None else UUID(value)


class Base(DeclarativeBase):
    type_annotation_map: ClassVar[dict] = {
        Decimal: Numeric(18, 2),
        datetime: DateTime(timezone=True),
        UUID: UUIDString(),
    }

    id: Mapped[UUID] = mapped_column(UUIDString(), primary_key=True, default=uuid4)


class TrackedBase(Base):
    """
    Abstract base adding row timestamps and the creating user.

    ``created_at``/``updated_at`` default on the server; a DTO that already
    carries timestamps (set from the lifecycle clock) overrides them.
    ``created_by_id`` is nullable for rows created by system jobs.
    """

    __abstract__ = True

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False,
    )
    created_by_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)
