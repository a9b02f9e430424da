"""
Service layer for expense categories.

A category's ``kind`` must be one of the kinds enabled in the expense rule
policy (fleet_config).  Categories used by a live expense cannot be deleted.
"""

from __future__ import annotations

from typing import Any
from uuid import UUID

from sqlalchemy.orm import Session

from fleet_kernel.domain.clock import Clock
from fleet_kernel.domain.dtos import ExpenseCategoryInfo
from fleet_kernel.domain.expense_rules import ExpenseRulePolicy
from fleet_kernel.domain.validation import FieldValidator
from fleet_kernel.exceptions import ReferentialIntegrityError
from fleet_kernel.logging_config import get_logger
from fleet_kernel.models.expense import Expense
from fleet_kernel.models.expense_category import ExpenseCategory
from fleet_kernel.services.base import BaseService

logger = get_logger("services.expense_category")


class ExpenseCategoryService(BaseService[ExpenseCategory]):
    """CRUD for expense categories, constrained by the configured kinds."""

    model = ExpenseCategory
    entity_name = "Expense category"

    def __init__(
        self,
        session: Session,
        policy: ExpenseRulePolicy,
        clock: Clock | None = None,
    ):
        super().__init__(session, clock)
        self.policy = policy

    def _to_dto(self, category: ExpenseCategory) -> ExpenseCategoryInfo:
        return ExpenseCategoryInfo(
            id=category.id,
            name=category.name,
            kind=category.kind,
            notes=category.notes,
            is_active=category.is_active,
        )

    def _validate(
        self, name: Any, kind: Any, notes: Any, current_kind: str | None = None,
    ) -> dict[str, Any]:
        """A retired kind is only accepted when the category already has it."""
        v = FieldValidator()
        cleaned = {
            "name": v.required_text("name", name, 50),
            "kind": v.required_text("kind", kind, 20),
            "notes": v.optional_text("notes", notes),
        }
        if cleaned["kind"] is not None:
            cleaned["kind"] = cleaned["kind"].lower()
            kept = (
                cleaned["kind"] == current_kind
                and self.policy.rule_for(current_kind) is not None
            )
            if not kept and not self.policy.is_enabled(cleaned["kind"]):
                allowed = ", ".join(sorted(self.policy.enabled_kinds))
                v.add("kind", f"kind must be one of: {allowed}.")
        v.raise_if_errors()
        return cleaned

    def create_category(
        self, name: Any, kind: Any, notes: Any = None, is_active: bool = True,
    ) -> ExpenseCategoryInfo:
        cleaned = self._validate(name, kind, notes)
        category = ExpenseCategory(**cleaned, is_active=bool(is_active))
        self.session.add(category)
        self.session.flush()

        logger.info(
            "expense_category_created",
            extra={"category_id": str(category.id), "kind": category.kind},
        )
        return self._to_dto(category)

    def update_category(
        self,
        category_id: UUID,
        name: Any,
        kind: Any,
        notes: Any = None,
        is_active: bool = True,
    ) -> ExpenseCategoryInfo:
        """
        Replace a category's fields.

        Changing the kind does not touch existing expenses; they are
        re-checked against the new kind the next time they are edited.
        """
        category = self._get_live(category_id)
        cleaned = self._validate(name, kind, notes, current_kind=category.kind)
        for field_name, value in cleaned.items():
            setattr(category, field_name, value)
        category.is_active = bool(is_active)
        self.session.flush()

        logger.info("expense_category_updated", extra={"category_id": str(category.id)})
        return self._to_dto(category)

    def delete_category(self, category_id: UUID) -> None:
        category = self._get_live(category_id)
        in_use = self._live(Expense).where(Expense.category_id == category.id)
        if self._has_live(in_use):
            raise ReferentialIntegrityError("Expense category", category.id, "expense")
        self._soft_delete(category)
        logger.info("expense_category_deleted", extra={"category_id": str(category.id)})

    def get_category(self, category_id: UUID) -> ExpenseCategoryInfo:
        return self._to_dto(self._get_live(category_id))

    def list_categories(
        self, active_only: bool = False, kind: str | None = None,
    ) -> list[ExpenseCategoryInfo]:
        stmt = self._live()
        if active_only:
            stmt = stmt.where(ExpenseCategory.is_active.is_(True))
        if kind:
            stmt = stmt.where(ExpenseCategory.kind == kind)
        stmt = stmt.order_by(ExpenseCategory.name)
        return [self._to_dto(c) for c in self.session.execute(stmt).scalars()]
