"""
Module: fleet_kernel.models.delivery_checklist
Responsibility: ORM persistence for the delivery-document checklist (surat
    jalan tracking).  Standalone: not linked to trips or expenses.
Architecture position: Kernel > Models.  May import from db/base.py only.
"""

from datetime import date, datetime

from sqlalchemy import Date, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from fleet_kernel.db.base import TrackedBase


class DeliveryChecklist(TrackedBase):
    __tablename__ = "delivery_checklists"

    __table_args__ = (
        Index("idx_checklist_date", "document_date"),
        Index("idx_checklist_status", "status"),
    )

    document_number: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
    )

    document_date: Mapped[date] = mapped_column(
        Date,
        nullable=False,
    )

    # pending / completed
    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default="pending",
    )

    completed_at: Mapped[datetime | None] = mapped_column(
        nullable=True,
    )

    notes: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
    )

    def __repr__(self) -> str:
        return f"<DeliveryChecklist {self.document_number} [{self.status}]>"
