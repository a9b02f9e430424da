"""
Immutable DTOs returned by kernel services.

Services never hand ORM rows to callers; each ``_to_dto`` copies the
columns into one of these frozen dataclasses.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from fleet_kernel.domain.lifecycle import (
    SettlementStatus,
    TripStatus,
    is_editable,
    is_terminal,
)


@dataclass(frozen=True)
class VehicleInfo:
    id: UUID
    plate_number: str
    vehicle_type: str
    brand: str | None
    year: int | None
    capacity_tons: Decimal | None
    is_active: bool
    notes: str | None


@dataclass(frozen=True)
class CustomerInfo:
    id: UUID
    name: str
    phone: str
    address: str | None
    is_active: bool


@dataclass(frozen=True)
class LocationInfo:
    id: UUID
    city_name: str
    is_active: bool


@dataclass(frozen=True)
class ExpenseCategoryInfo:
    id: UUID
    name: str
    kind: str
    notes: str | None
    is_active: bool


@dataclass(frozen=True)
class TripInfo:
    """Trip with its allowance ledger and settlement state."""

    id: UUID
    trip_date: date
    vehicle_id: UUID
    customer_id: UUID | None
    origin_id: UUID | None
    destination_id: UUID | None
    allowance: Decimal
    total_expense: Decimal
    remaining_balance: Decimal
    status: TripStatus
    status_changed_at: datetime | None
    settlement_status: SettlementStatus
    returned_amount: Decimal | None
    returned_date: date | None
    settlement_difference: Decimal | None
    settlement_note: str | None
    settled_at: datetime | None
    notes: str | None

    @property
    def is_editable(self) -> bool:
        return is_editable(self.status)

    @property
    def is_terminal(self) -> bool:
        return is_terminal(self.status)

    @property
    def is_settled(self) -> bool:
        return self.settlement_status == SettlementStatus.SETTLED


@dataclass(frozen=True)
class ExpenseInfo:
    id: UUID
    expense_date: date
    trip_id: UUID | None
    vehicle_id: UUID | None
    category_id: UUID
    amount: Decimal
    notes: str | None


@dataclass(frozen=True)
class DeliveryChecklistInfo:
    id: UUID
    document_number: str
    document_date: date
    status: str
    completed_at: datetime | None
    notes: str | None
