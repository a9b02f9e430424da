"""
Module: fleet_kernel.models.expense_category
Responsibility: ORM persistence for expense categories ("Solar", "Tol",
    "Ganti Oli", ...).  The category ``kind`` decides which of vehicle and
    trip an expense in that category must carry.
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - kind is one of the kinds named in fleet_config; the per-kind rules live
      in configuration, not here.
    - A category referenced by a live expense cannot be soft-deleted.
"""

from sqlalchemy import Boolean, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from fleet_kernel.db.base import TrackedBase


class ExpenseCategory(TrackedBase):
    """
    Classification of an expense.

    Non-goals:
        - Does NOT validate ``kind``; ExpenseCategoryService checks it
          against the configured kinds.
    """

    __tablename__ = "expense_categories"

    __table_args__ = (
        Index("idx_category_kind", "kind"),
        Index("idx_category_active", "is_active"),
    )

    name: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
    )

    # maintenance / general / trip (legacy)
    kind: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
    )

    notes: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
    )

    is_active: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=True,
    )

    def __repr__(self) -> str:
        return f"<ExpenseCategory {self.name} ({self.kind})>"
