"""
ReconciliationService -- keeps a trip's expense totals in step with its
expense ledger.

Responsibility:
    Recomputes ``total_expense`` and ``remaining_balance`` for one trip from
    the live expense rows.  Always a full recount, never an increment, so
    a missed trigger is repaired by the next one.

Architecture position:
    Kernel > Services.  Called by ExpenseService inside the same session
    (and therefore the same transaction) as the expense write.

Invariants enforced:
    - total_expense == SUM(amount) over live expenses of the trip.
    - remaining_balance == allowance - total_expense.

Failure modes:
    - A missing or soft-deleted trip is not an error: the call logs
      ``trip_reconcile_skipped`` and returns None.

Concurrency:
    Two transactions reconciling the same trip at once each read their own
    snapshot; the later commit wins.  Because every call recounts from
    scratch, the next expense write on that trip corrects any stale total.
"""

from __future__ import annotations

from decimal import Decimal
from uuid import UUID

from sqlalchemy import func, select

from fleet_kernel.db.types import round_money, to_money
from fleet_kernel.logging_config import get_logger
from fleet_kernel.models.expense import Expense
from fleet_kernel.models.trip import Trip
from fleet_kernel.services.base import BaseService, live

logger = get_logger("services.reconciliation")


class ReconciliationService(BaseService[Trip]):
    model = Trip
    entity_name = "Trip"

    def live_expense_total(self, trip_id: UUID) -> Decimal:
        """Sum of amounts over the trip's live expenses (0 when none)."""
        stmt = live(
            select(func.coalesce(func.sum(Expense.amount), 0)),
            Expense,
        ).where(Expense.trip_id == trip_id)
        return to_money(self.session.execute(stmt).scalar_one())

    def reconcile(self, trip_id: UUID | None) -> Trip | None:
        """
        Recompute the trip's totals and flush.

        Returns:
            The updated Trip row, or None when the trip is missing or
            deleted (a silent no-op).
        """
        if trip_id is None:
            return None
        # Pending expense writes must be visible to the SUM below.
        self.session.flush()

        trip = self._find_live(Trip, trip_id)
        if trip is None:
            logger.info("trip_reconcile_skipped", extra={"trip_id": str(trip_id)})
            return None

        total = self.live_expense_total(trip.id)
        trip.total_expense = total
        trip.remaining_balance = round_money(to_money(trip.allowance) - total)
        self.session.flush()

        logger.info(
            "trip_reconciled",
            extra={
                "trip_id": str(trip.id),
                "total_expense": str(trip.total_expense),
                "remaining_balance": str(trip.remaining_balance),
            },
        )
        return trip
