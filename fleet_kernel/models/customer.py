"""
Module: fleet_kernel.models.customer
Responsibility: ORM persistence for customers that trips deliver for.
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - phone is unique among live customers (checked by CustomerService).
    - A customer referenced by a live trip cannot be soft-deleted.
"""

from sqlalchemy import Boolean, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from fleet_kernel.db.base import TrackedBase


class Customer(TrackedBase):
    __tablename__ = "customers"

    __table_args__ = (
        Index("idx_customer_phone", "phone"),
        Index("idx_customer_active", "is_active"),
    )

    name: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
    )

    phone: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
    )

    address: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
    )

    is_active: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=True,
    )

    def __repr__(self) -> str:
        return f"<Customer {self.name} ({self.phone})>"
