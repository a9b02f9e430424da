"""
Module: fleet_kernel.db.base
Responsibility: Declarative bases shared by every fleet model.
Architecture position: Kernel > DB.  Lowest import target in the kernel;
    must not import models, services, selectors or domain code.

Invariants enforced:
    - Primary keys are uuid4 values stored as 36-character strings.
    - ``Decimal`` columns are Numeric(15, 2), enough for rupiah amounts in
      the billions with two decimal places.
    - Rows are soft-deleted: ``deleted_at`` is NULL while a row is live and
      nothing is ever removed from the table.
"""

from datetime import datetime
from decimal import Decimal
from typing import ClassVar
from uuid import UUID, uuid4

from sqlalchemy import BigInteger, DateTime, Numeric, String, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.types import TypeDecorator


class UUIDString(TypeDecorator):
    """UUID held as ``String(36)`` so SQLite and PostgreSQL share one schema."""

    impl = String(36)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        return None if value is None else str(value)

    def process_result_value(self, value, dialect):
        return None if value is None else UUID(value)


class Base(DeclarativeBase):
    type_annotation_map: ClassVar[dict] = {
        Decimal: Numeric(15, 2),
        datetime: DateTime(timezone=True),
        UUID: UUIDString(),
        int: BigInteger,
    }

    id: Mapped[UUID] = mapped_column(UUIDString(), primary_key=True, default=uuid4)


class TrackedBase(Base):
    """
    Audit timestamps plus the soft-delete marker.

    ``created_at`` and ``updated_at`` come from the database clock.
    ``deleted_at`` is written by services from the injected ``Clock``.
    """

    __abstract__ = True

    created_at: Mapped[datetime] = mapped_column(server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        server_default=func.now(), onupdate=func.now(),
    )
    deleted_at: Mapped[datetime | None] = mapped_column(default=None)
