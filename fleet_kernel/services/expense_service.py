"""
ExpenseService -- expense ledger writes with trip reconciliation.

Responsibility:
    Validates every expense write against the category-kind rule table,
    persists it, and reconciles each affected trip inside the same
    transaction.

Architecture position:
    Kernel > Services.  The rule table is an ``ExpenseRulePolicy`` built by
    ``fleet_config.bridges``; reconciliation is delegated to
    ``ReconciliationService`` on the same session.

Invariants enforced:
    - amount >= 0, category live, vehicle/trip live when given.
    - Per category kind: vehicle required / optional / derived from the
      trip, and trip required or optional (same rules on create and update).
    - Reconciliation triggers:
        create with a trip             -> that trip
        update, trip changed           -> old trip and new trip, once each
        update, same trip              -> that trip
        delete (soft) with a trip      -> that trip
    - All validation runs before anything is written.

Failure modes:
    - ValidationError with a field map; nothing persisted.
    - NotFoundError when updating/deleting a missing or deleted expense.
"""

from __future__ import annotations

from datetime import date
from typing import Any
from uuid import UUID

from sqlalchemy.orm import Session

from fleet_kernel.db.types import to_money
from fleet_kernel.domain.clock import Clock
from fleet_kernel.domain.dtos import ExpenseInfo
from fleet_kernel.domain.expense_rules import ExpenseRulePolicy, VehicleSource
from fleet_kernel.domain.validation import FieldValidator
from fleet_kernel.logging_config import get_logger
from fleet_kernel.models.expense import Expense
from fleet_kernel.models.expense_category import ExpenseCategory
from fleet_kernel.models.trip import Trip
from fleet_kernel.models.vehicle import Vehicle
from fleet_kernel.services.base import BaseService
from fleet_kernel.services.reconciliation_service import ReconciliationService

logger = get_logger("services.expense")


class ExpenseService(BaseService[Expense]):
    """
    Service for expense ledger entries.

    All public methods return ExpenseInfo DTOs.
    """

    model = Expense
    entity_name = "Expense"

    def __init__(
        self,
        session: Session,
        policy: ExpenseRulePolicy,
        clock: Clock | None = None,
    ):
        super().__init__(session, clock)
        self.policy = policy
        self.reconciliation = ReconciliationService(session, self.clock)

    def _to_dto(self, expense: Expense) -> ExpenseInfo:
        return ExpenseInfo(
            id=expense.id,
            expense_date=expense.expense_date,
            trip_id=expense.trip_id,
            vehicle_id=expense.vehicle_id,
            category_id=expense.category_id,
            amount=to_money(expense.amount),
            notes=expense.notes,
        )

    def _validate(
        self,
        expense_date: Any,
        category_id: Any,
        amount: Any,
        trip_id: Any,
        vehicle_id: Any,
        notes: Any,
        current_trip_id: UUID | None = None,
    ) -> dict[str, Any]:
        """
        Apply the field checks and the category-kind rule.

        Returns the cleaned column values, with ``vehicle_id`` already
        resolved (copied from the trip for derived kinds).  On update,
        ``current_trip_id`` is the trip the expense already points at; it
        is accepted even after that trip was deleted.
        """
        v = FieldValidator()
        cleaned: dict[str, Any] = {
            "expense_date": v.required_date("expense_date", expense_date),
            "amount": v.required_amount("amount", amount),
            "notes": v.optional_text("notes", notes),
        }

        category = None
        ref = v.required_uuid("category_id", category_id)
        if ref is not None:
            category = self._find_live(ExpenseCategory, ref)
            if category is None:
                v.add("category_id", "category_id does not exist.")
        cleaned["category_id"] = category.id if category is not None else None

        trip = None
        ref = v.optional_uuid("trip_id", trip_id)
        if ref is not None:
            trip = self._find_live(Trip, ref)
            if trip is None and ref == current_trip_id:
                trip = self.session.get(Trip, ref)
            if trip is None:
                v.add("trip_id", "trip_id does not exist.")

        vehicle = None
        ref = v.optional_uuid("vehicle_id", vehicle_id)
        if ref is not None:
            vehicle = self._find_live(Vehicle, ref)
            if vehicle is None:
                v.add("vehicle_id", "vehicle_id does not exist.")

        cleaned["trip_id"] = trip.id if trip is not None else None
        cleaned["vehicle_id"] = vehicle.id if vehicle is not None else None

        if category is not None:
            rule = self.policy.rule_for(category.kind)
            if rule is None:
                v.add("category_id", f"category kind '{category.kind}' is not supported.")
            else:
                if rule.trip_required and trip_id in (None, ""):
                    v.add("trip_id", "trip_id is required for this category.")
                if rule.vehicle == VehicleSource.REQUIRED and vehicle_id in (None, ""):
                    v.add("vehicle_id", "vehicle_id is required for this category.")
                elif rule.vehicle == VehicleSource.DERIVED:
                    cleaned["vehicle_id"] = trip.vehicle_id if trip is not None else None

        v.raise_if_errors()
        return cleaned

    def create_expense(
        self,
        expense_date: Any,
        category_id: Any,
        amount: Any,
        trip_id: Any = None,
        vehicle_id: Any = None,
        notes: Any = None,
    ) -> ExpenseInfo:
        """
        Record an expense and reconcile its trip.

        Raises:
            ValidationError: Field map of every failing field.
        """
        cleaned = self._validate(expense_date, category_id, amount, trip_id, vehicle_id, notes)
        expense = Expense(**cleaned)
        self.session.add(expense)
        self.session.flush()

        logger.info(
            "expense_created",
            extra={
                "expense_id": str(expense.id),
                "trip_id": str(expense.trip_id) if expense.trip_id else None,
                "amount": str(expense.amount),
            },
        )
        self.reconciliation.reconcile(expense.trip_id)
        return self._to_dto(expense)

    def update_expense(
        self,
        expense_id: UUID,
        expense_date: Any,
        category_id: Any,
        amount: Any,
        trip_id: Any = None,
        vehicle_id: Any = None,
        notes: Any = None,
    ) -> ExpenseInfo:
        """
        Replace an expense's fields and reconcile every affected trip.

        When the trip changes both the old and the new trip are reconciled,
        each exactly once.
        """
        expense = self._get_live(expense_id)
        cleaned = self._validate(
            expense_date, category_id, amount, trip_id, vehicle_id, notes,
            current_trip_id=expense.trip_id,
        )

        old_trip_id = expense.trip_id
        for name, value in cleaned.items():
            setattr(expense, name, value)
        self.session.flush()

        logger.info(
            "expense_updated",
            extra={
                "expense_id": str(expense.id),
                "old_trip_id": str(old_trip_id) if old_trip_id else None,
                "new_trip_id": str(expense.trip_id) if expense.trip_id else None,
            },
        )
        for affected in _unique_trip_ids(old_trip_id, expense.trip_id):
            self.reconciliation.reconcile(affected)
        return self._to_dto(expense)

    def delete_expense(self, expense_id: UUID) -> None:
        """Soft-delete an expense and reconcile its trip."""
        expense = self._get_live(expense_id)
        self._soft_delete(expense)
        logger.info(
            "expense_deleted",
            extra={
                "expense_id": str(expense.id),
                "trip_id": str(expense.trip_id) if expense.trip_id else None,
            },
        )
        self.reconciliation.reconcile(expense.trip_id)

    def get_expense(self, expense_id: UUID) -> ExpenseInfo:
        return self._to_dto(self._get_live(expense_id))

    def list_expenses(
        self,
        start_date: date | None = None,
        end_date: date | None = None,
        trip_id: UUID | None = None,
        vehicle_id: UUID | None = None,
        kinds: tuple[str, ...] | None = None,
    ) -> list[ExpenseInfo]:
        """
        Live expenses in the date range, newest first.

        ``kinds`` restricts to categories of those kinds (the maintenance
        ledger screen passes ``("maintenance",)``).
        """
        stmt = self._live()
        if kinds:
            stmt = stmt.join(
                ExpenseCategory, Expense.category_id == ExpenseCategory.id,
            ).where(ExpenseCategory.kind.in_(kinds))
        if start_date is not None:
            stmt = stmt.where(Expense.expense_date >= start_date)
        if end_date is not None:
            stmt = stmt.where(Expense.expense_date <= end_date)
        if trip_id is not None:
            stmt = stmt.where(Expense.trip_id == trip_id)
        if vehicle_id is not None:
            stmt = stmt.where(Expense.vehicle_id == vehicle_id)
        stmt = stmt.order_by(Expense.expense_date.desc(), Expense.created_at.desc())
        return [self._to_dto(e) for e in self.session.execute(stmt).scalars()]


def _unique_trip_ids(*trip_ids: UUID | None) -> list[UUID]:
    seen: list[UUID] = []
    for trip_id in trip_ids:
        if trip_id is not None and trip_id not in seen:
            seen.append(trip_id)
    return seen
