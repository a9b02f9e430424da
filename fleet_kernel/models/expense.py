"""
Module: fleet_kernel.models.expense
Responsibility: ORM persistence for expense ledger entries.  An expense may
    belong to a trip, to a vehicle, to both, or to neither (general office
    cost), depending on its category kind.
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced (by ExpenseService):
    - amount >= 0.
    - When the vehicle is derived from the trip, vehicle_id equals the trip's
      vehicle_id.
    - Every write that touches a trip-linked expense reconciles the trip in
      the same transaction.
"""

from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy import Date, ForeignKey, Index, Text
from sqlalchemy.orm import Mapped, mapped_column

from fleet_kernel.db.base import TrackedBase, UUIDString


class Expense(TrackedBase):
    __tablename__ = "expenses"

    __table_args__ = (
        Index("idx_expense_date", "expense_date"),
        Index("idx_expense_trip", "trip_id"),
        Index("idx_expense_vehicle", "vehicle_id"),
        Index("idx_expense_category", "category_id"),
    )

    expense_date: Mapped[date] = mapped_column(
        Date,
        nullable=False,
    )

    trip_id: Mapped[UUID | None] = mapped_column(
        UUIDString(),
        ForeignKey("trips.id"),
        nullable=True,
    )

    vehicle_id: Mapped[UUID | None] = mapped_column(
        UUIDString(),
        ForeignKey("vehicles.id"),
        nullable=True,
    )

    category_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("expense_categories.id"),
        nullable=False,
    )

    amount: Mapped[Decimal] = mapped_column(
        nullable=False,
    )

    notes: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
    )

    def __repr__(self) -> str:
        return f"<Expense {self.id} {self.expense_date} {self.amount}>"
