"""
Module: fleet_kernel.selectors.report_selector
Responsibility: The two management reports.
    - Vehicle expense report: expense detail rows with totals per vehicle,
      per category and per category kind.
    - Allowance report: trips with their allowance and expense totals,
      counted per status and summed per vehicle.
Architecture position: Kernel > Selectors.  Read-only.

Invariants enforced:
    - Only live expenses / trips are reported.
    - Missing dates default to the first day of the current month through
      today, taken from the injected clock.
    - All sums are Decimal; an empty report has zero totals, not None.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import aliased

from fleet_kernel.db.types import ZERO, to_money
from fleet_kernel.domain.clock import Clock
from fleet_kernel.domain.lifecycle import TripStatus
from fleet_kernel.models.expense import Expense
from fleet_kernel.models.expense_category import ExpenseCategory
from fleet_kernel.models.location import Location
from fleet_kernel.models.trip import Trip
from fleet_kernel.models.vehicle import Vehicle
from fleet_kernel.selectors.base import BaseSelector


def default_period(clock: Clock) -> tuple[date, date]:
    """First day of the current month through today."""
    today = clock.today()
    return today.replace(day=1), today


# ---------------------------------------------------------------------------
# Vehicle expense report DTOs
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ExpenseReportRow:
    expense_id: UUID
    expense_date: date
    amount: Decimal
    category_id: UUID
    category_name: str | None
    category_kind: str | None
    vehicle_id: UUID | None
    plate_number: str | None
    vehicle_type: str | None
    trip_id: UUID | None
    notes: str | None


@dataclass(frozen=True)
class VehicleExpenseTotal:
    vehicle_id: UUID
    plate_number: str | None
    vehicle_type: str | None
    total: Decimal
    transaction_count: int


@dataclass(frozen=True)
class CategoryExpenseTotal:
    category_id: UUID
    name: str | None
    kind: str | None
    total: Decimal


@dataclass(frozen=True)
class VehicleExpenseReport:
    start_date: date
    end_date: date
    vehicle_id: UUID | None
    include_general: bool
    rows: tuple[ExpenseReportRow, ...]
    per_vehicle: tuple[VehicleExpenseTotal, ...]
    per_category: tuple[CategoryExpenseTotal, ...]
    per_kind: dict[str, Decimal] = field(default_factory=dict)
    grand_total: Decimal = ZERO


# ---------------------------------------------------------------------------
# Allowance report DTOs
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class TripReportRow:
    trip_id: UUID
    trip_date: date
    vehicle_id: UUID
    plate_number: str | None
    vehicle_type: str | None
    origin_name: str | None
    destination_name: str | None
    allowance: Decimal
    total_expense: Decimal
    remaining_balance: Decimal
    status: str
    settlement_status: str


@dataclass(frozen=True)
class VehicleAllowanceTotal:
    vehicle_id: UUID
    plate_number: str | None
    vehicle_type: str | None
    trip_count: int
    total_allowance: Decimal
    total_expense: Decimal


@dataclass(frozen=True)
class AllowanceReport:
    start_date: date
    end_date: date
    status: str | None
    vehicle_id: UUID | None
    rows: tuple[TripReportRow, ...]
    trip_count: int
    status_counts: dict[str, int]
    total_allowance: Decimal
    total_expense: Decimal
    per_vehicle: tuple[VehicleAllowanceTotal, ...]


class ReportSelector(BaseSelector):
    """Read-only report queries."""

    def vehicle_expense_report(
        self,
        start_date: date | None = None,
        end_date: date | None = None,
        vehicle_id: UUID | None = None,
        include_general: bool = False,
    ) -> VehicleExpenseReport:
        """
        Expense report for a date range.

        Row filter for the detail, per-category and per-kind sections:
            - ``vehicle_id`` given: that vehicle's expenses only;
            - else ``include_general``: expenses with no vehicle;
            - else: every vehicle-linked expense.

        The per-vehicle section always covers vehicle-linked expenses
        (narrowed to ``vehicle_id`` when given), ordered by total descending.
        """
        default_start, default_end = default_period(self.clock)
        start_date = start_date or default_start
        end_date = end_date or default_end

        stmt = (
            select(Expense, Vehicle, ExpenseCategory)
            .outerjoin(Vehicle, Expense.vehicle_id == Vehicle.id)
            .outerjoin(ExpenseCategory, Expense.category_id == ExpenseCategory.id)
            .where(Expense.expense_date >= start_date)
            .where(Expense.expense_date <= end_date)
            .order_by(Expense.expense_date.desc(), Expense.created_at.desc())
        )
        stmt = self._live(stmt, Expense)

        all_rows = [
            ExpenseReportRow(
                expense_id=expense.id,
                expense_date=expense.expense_date,
                amount=to_money(expense.amount),
                category_id=expense.category_id,
                category_name=category.name if category else None,
                category_kind=category.kind if category else None,
                vehicle_id=expense.vehicle_id,
                plate_number=vehicle.plate_number if vehicle else None,
                vehicle_type=vehicle.vehicle_type if vehicle else None,
                trip_id=expense.trip_id,
                notes=expense.notes,
            )
            for expense, vehicle, category in self.session.execute(stmt).all()
        ]

        if vehicle_id is not None:
            rows = [r for r in all_rows if r.vehicle_id == vehicle_id]
        elif include_general:
            rows = [r for r in all_rows if r.vehicle_id is None]
        else:
            rows = [r for r in all_rows if r.vehicle_id is not None]

        vehicle_rows = [
            r for r in all_rows
            if r.vehicle_id is not None
            and (vehicle_id is None or r.vehicle_id == vehicle_id)
        ]

        return VehicleExpenseReport(
            start_date=start_date,
            end_date=end_date,
            vehicle_id=vehicle_id,
            include_general=include_general,
            rows=tuple(rows),
            per_vehicle=_totals_per_vehicle(vehicle_rows),
            per_category=_totals_per_category(rows),
            per_kind=_totals_per_kind(rows),
            grand_total=sum((r.amount for r in rows), ZERO),
        )

    def allowance_report(
        self,
        start_date: date | None = None,
        end_date: date | None = None,
        status: str | None = None,
        vehicle_id: UUID | None = None,
    ) -> AllowanceReport:
        """Trips in the date range with allowance totals, newest first."""
        default_start, default_end = default_period(self.clock)
        start_date = start_date or default_start
        end_date = end_date or default_end

        origin = aliased(Location)
        destination = aliased(Location)
        stmt = (
            select(Trip, Vehicle, origin.city_name, destination.city_name)
            .outerjoin(Vehicle, Trip.vehicle_id == Vehicle.id)
            .outerjoin(origin, Trip.origin_id == origin.id)
            .outerjoin(destination, Trip.destination_id == destination.id)
            .where(Trip.trip_date >= start_date)
            .where(Trip.trip_date <= end_date)
            .order_by(Trip.trip_date.desc(), Trip.created_at.desc())
        )
        stmt = self._live(stmt, Trip)
        if status:
            stmt = stmt.where(Trip.status == status)
        if vehicle_id is not None:
            stmt = stmt.where(Trip.vehicle_id == vehicle_id)

        rows = tuple(
            TripReportRow(
                trip_id=trip.id,
                trip_date=trip.trip_date,
                vehicle_id=trip.vehicle_id,
                plate_number=vehicle.plate_number if vehicle else None,
                vehicle_type=vehicle.vehicle_type if vehicle else None,
                origin_name=origin_name,
                destination_name=destination_name,
                allowance=to_money(trip.allowance),
                total_expense=to_money(trip.total_expense),
                remaining_balance=to_money(trip.remaining_balance),
                status=trip.status,
                settlement_status=trip.settlement_status,
            )
            for trip, vehicle, origin_name, destination_name
            in self.session.execute(stmt).all()
        )

        status_counts = {s.value: 0 for s in TripStatus}
        for row in rows:
            status_counts[row.status] = status_counts.get(row.status, 0) + 1

        return AllowanceReport(
            start_date=start_date,
            end_date=end_date,
            status=status,
            vehicle_id=vehicle_id,
            rows=rows,
            trip_count=len(rows),
            status_counts=status_counts,
            total_allowance=sum((r.allowance for r in rows), ZERO),
            total_expense=sum((r.total_expense for r in rows), ZERO),
            per_vehicle=_allowance_per_vehicle(rows),
        )


def _totals_per_vehicle(rows: list[ExpenseReportRow]) -> tuple[VehicleExpenseTotal, ...]:
    totals: dict[UUID, Decimal] = defaultdict(lambda: ZERO)
    counts: dict[UUID, int] = defaultdict(int)
    first: dict[UUID, ExpenseReportRow] = {}
    for row in rows:
        totals[row.vehicle_id] += row.amount
        counts[row.vehicle_id] += 1
        first.setdefault(row.vehicle_id, row)
    result = [
        VehicleExpenseTotal(
            vehicle_id=vid,
            plate_number=first[vid].plate_number,
            vehicle_type=first[vid].vehicle_type,
            total=totals[vid],
            transaction_count=counts[vid],
        )
        for vid in totals
    ]
    result.sort(key=lambda t: (-t.total, t.plate_number or ""))
    return tuple(result)


def _totals_per_category(rows: list[ExpenseReportRow]) -> tuple[CategoryExpenseTotal, ...]:
    totals: dict[UUID, Decimal] = defaultdict(lambda: ZERO)
    first: dict[UUID, ExpenseReportRow] = {}
    for row in rows:
        totals[row.category_id] += row.amount
        first.setdefault(row.category_id, row)
    result = [
        CategoryExpenseTotal(
            category_id=cid,
            name=first[cid].category_name,
            kind=first[cid].category_kind,
            total=totals[cid],
        )
        for cid in totals
    ]
    result.sort(key=lambda t: (-t.total, t.name or ""))
    return tuple(result)


def _totals_per_kind(rows: list[ExpenseReportRow]) -> dict[str, Decimal]:
    totals: dict[str, Decimal] = {}
    for row in rows:
        kind = row.category_kind or "unknown"
        totals[kind] = totals.get(kind, ZERO) + row.amount
    return totals


def _allowance_per_vehicle(rows: tuple[TripReportRow, ...]) -> tuple[VehicleAllowanceTotal, ...]:
    grouped: dict[UUID, list[TripReportRow]] = {}
    for row in rows:
        grouped.setdefault(row.vehicle_id, []).append(row)
    return tuple(
        VehicleAllowanceTotal(
            vehicle_id=vid,
            plate_number=items[0].plate_number,
            vehicle_type=items[0].vehicle_type,
            trip_count=len(items),
            total_allowance=sum((r.allowance for r in items), ZERO),
            total_expense=sum((r.total_expense for r in items), ZERO),
        )
        for vid, items in grouped.items()
    )
