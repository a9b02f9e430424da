"""
Module: fleet_kernel.models.trip
Responsibility: ORM persistence for trips -- one delivery run of one vehicle,
    with the driver allowance (uang sangu) handed out before departure, the
    running expense totals, and the one-time allowance settlement.
Architecture position: Kernel > Models.  May import from db/base.py only.
    MUST NOT import from services/, selectors/, or outer layers.

Invariants enforced (by TripService / ReconciliationService, not the ORM):
    - total_expense equals the sum of the trip's live expenses after every
      expense write.
    - remaining_balance == allowance - total_expense after every
      reconciliation.
    - status follows fleet_kernel.domain.lifecycle.ALLOWED_TRANSITIONS except
      through the privileged override.
    - settlement_status moves unsettled -> settled once and never back.

Failure modes:
    - IntegrityError if vehicle_id / customer_id / origin_id / destination_id
      point at rows that do not exist.
"""

from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import Date, ForeignKey, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from fleet_kernel.db.base import TrackedBase, UUIDString


class Trip(TrackedBase):
    """
    A single trip with its allowance ledger.

    Contract:
        Money columns are Decimal(15, 2).  Status values are the string
        values of TripStatus / SettlementStatus.
    """

    __tablename__ = "trips"

    __table_args__ = (
        Index("idx_trip_date", "trip_date"),
        Index("idx_trip_vehicle", "vehicle_id"),
        Index("idx_trip_status", "status"),
    )

    trip_date: Mapped[date] = mapped_column(
        Date,
        nullable=False,
    )

    vehicle_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("vehicles.id"),
        nullable=False,
    )

    customer_id: Mapped[UUID | None] = mapped_column(
        UUIDString(),
        ForeignKey("customers.id"),
        nullable=True,
    )

    origin_id: Mapped[UUID | None] = mapped_column(
        UUIDString(),
        ForeignKey("locations.id"),
        nullable=True,
    )

    destination_id: Mapped[UUID | None] = mapped_column(
        UUIDString(),
        ForeignKey("locations.id"),
        nullable=True,
    )

    # Allowance ledger
    allowance: Mapped[Decimal] = mapped_column(
        nullable=False,
        default=Decimal("0"),
    )

    total_expense: Mapped[Decimal] = mapped_column(
        nullable=False,
        default=Decimal("0"),
    )

    remaining_balance: Mapped[Decimal] = mapped_column(
        nullable=False,
        default=Decimal("0"),
    )

    # Lifecycle
    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default="draft",
    )

    status_changed_at: Mapped[datetime | None] = mapped_column(
        nullable=True,
    )

    # Allowance settlement
    settlement_status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default="unsettled",
    )

    returned_amount: Mapped[Decimal | None] = mapped_column(
        nullable=True,
    )

    returned_date: Mapped[date | None] = mapped_column(
        Date,
        nullable=True,
    )

    # returned_amount - remaining_balance at settlement time
    settlement_difference: Mapped[Decimal | None] = mapped_column(
        nullable=True,
    )

    settlement_note: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
    )

    settled_at: Mapped[datetime | None] = mapped_column(
        nullable=True,
    )

    notes: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
    )

    def __repr__(self) -> str:
        return f"<Trip {self.id} {self.trip_date} [{self.status}]>"
