"""
Module: fleet_kernel.models.location
Responsibility: ORM persistence for cities used as trip origin and destination.
Architecture position: Kernel > Models.  May import from db/base.py only.
"""

from sqlalchemy import Boolean, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from fleet_kernel.db.base import TrackedBase


class Location(TrackedBase):
    __tablename__ = "locations"

    __table_args__ = (
        Index("idx_location_active", "is_active"),
    )

    city_name: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
    )

    is_active: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=True,
    )

    def __repr__(self) -> str:
        return f"<Location {self.city_name}>"
