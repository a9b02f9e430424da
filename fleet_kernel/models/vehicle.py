"""
Module: fleet_kernel.models.vehicle
Responsibility: ORM persistence for fleet trucks.
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - plate_number is unique among live vehicles (checked by VehicleService,
      since soft-deleted rows keep their plate).
    - A vehicle referenced by a live trip cannot be soft-deleted.
"""

from decimal import Decimal

from sqlalchemy import Boolean, Index, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from fleet_kernel.db.base import TrackedBase


class Vehicle(TrackedBase):
    """A truck that trips are driven with and expenses are charged to."""

    __tablename__ = "vehicles"

    __table_args__ = (
        Index("idx_vehicle_plate", "plate_number"),
        Index("idx_vehicle_active", "is_active"),
    )

    plate_number: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
    )

    # e.g. "Fuso", "Tronton", "Engkel"
    vehicle_type: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
    )

    brand: Mapped[str | None] = mapped_column(
        String(50),
        nullable=True,
    )

    year: Mapped[int | None] = mapped_column(
        nullable=True,
    )

    capacity_tons: Mapped[Decimal | None] = mapped_column(
        Numeric(8, 2),
        nullable=True,
    )

    is_active: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=True,
    )

    notes: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
    )

    def __repr__(self) -> str:
        return f"<Vehicle {self.plate_number} ({self.vehicle_type})>"
