"""
TripService -- the trip lifecycle manager.

Responsibility:
    Creates trips, moves them through the status state machine, edits them
    while they are drafts, records the one-time allowance settlement, and
    applies the privileged status override.

Architecture position:
    Kernel > Services -- imperative shell.  Status rules come from
    ``fleet_kernel.domain.lifecycle``; the override role is injected from
    configuration (``fleet_config``) by the caller.

Invariants enforced:
    - New trips start as draft with total_expense 0 and
      remaining_balance == allowance.
    - Ordinary status changes follow ALLOWED_TRANSITIONS.  Only
      ``override_status`` bypasses the table, and only for a principal
      holding the override role.
    - Trip fields are editable only in draft.
    - Settlement happens once; a second attempt leaves stored values alone.

Failure modes:
    - NotFoundError: trip missing or soft-deleted.
    - ValidationError: bad field values, unknown status, unknown field names.
    - InvalidTransitionError / ImmutableStateError / AlreadySettledError.
    - UnauthorizedError: override without the privileged role.

Audit relevance:
    Every status change logs ``trip_status_changed`` with from/to statuses
    and, for overrides, the principal id.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import date
from typing import Any
from uuid import UUID

from sqlalchemy.orm import Session

from fleet_kernel.db.types import ZERO, round_money, to_money
from fleet_kernel.domain.clock import Clock
from fleet_kernel.domain.dtos import TripInfo
from fleet_kernel.domain.expense_rules import ExpenseRulePolicy, VehicleSource
from fleet_kernel.domain.lifecycle import (
    OPEN_STATUSES,
    SettlementStatus,
    TripStatus,
    can_transition,
    is_editable,
    parse_status,
)
from fleet_kernel.domain.principal import Principal
from fleet_kernel.domain.validation import FieldValidator
from fleet_kernel.exceptions import (
    AlreadySettledError,
    ImmutableStateError,
    InvalidTransitionError,
    UnauthorizedError,
    ValidationError,
)
from fleet_kernel.logging_config import get_logger
from fleet_kernel.models.customer import Customer
from fleet_kernel.models.expense import Expense
from fleet_kernel.models.expense_category import ExpenseCategory
from fleet_kernel.models.location import Location
from fleet_kernel.models.trip import Trip
from fleet_kernel.models.vehicle import Vehicle
from fleet_kernel.services.base import BaseService

logger = get_logger("services.trip")

DEFAULT_OVERRIDE_ROLE = "owner"

EDITABLE_FIELDS = frozenset({
    "trip_date",
    "vehicle_id",
    "customer_id",
    "origin_id",
    "destination_id",
    "allowance",
    "notes",
})


class TripService(BaseService[Trip]):
    """
    Service for the trip lifecycle.

    All public methods return TripInfo DTOs, not ORM Trip rows.
    """

    model = Trip
    entity_name = "Trip"

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        override_role: str = DEFAULT_OVERRIDE_ROLE,
        policy: ExpenseRulePolicy | None = None,
    ):
        super().__init__(session, clock)
        self.override_role = override_role
        self.policy = policy

    def _to_dto(self, trip: Trip) -> TripInfo:
        return TripInfo(
            id=trip.id,
            trip_date=trip.trip_date,
            vehicle_id=trip.vehicle_id,
            customer_id=trip.customer_id,
            origin_id=trip.origin_id,
            destination_id=trip.destination_id,
            allowance=to_money(trip.allowance),
            total_expense=to_money(trip.total_expense),
            remaining_balance=to_money(trip.remaining_balance),
            status=TripStatus(trip.status),
            status_changed_at=trip.status_changed_at,
            settlement_status=SettlementStatus(trip.settlement_status),
            returned_amount=(
                to_money(trip.returned_amount)
                if trip.returned_amount is not None else None
            ),
            returned_date=trip.returned_date,
            settlement_difference=(
                to_money(trip.settlement_difference)
                if trip.settlement_difference is not None else None
            ),
            settlement_note=trip.settlement_note,
            settled_at=trip.settled_at,
            notes=trip.notes,
        )

    # ------------------------------------------------------------------
    # Validation helpers
    # ------------------------------------------------------------------

    def _check_reference(
        self,
        v: FieldValidator,
        field: str,
        model: type,
        raw: Any,
        required: bool,
    ) -> UUID | None:
        ref_id = v.required_uuid(field, raw) if required else v.optional_uuid(field, raw)
        if ref_id is not None and self._find_live(model, ref_id) is None:
            v.add(field, f"{field} does not exist.")
            return None
        return ref_id

    def _clean_fields(
        self, fields: Mapping[str, Any], partial: bool,
    ) -> dict[str, Any]:
        """
        Validate trip form fields.

        With ``partial`` only the keys present in ``fields`` are checked and
        returned; otherwise trip_date, vehicle_id and allowance are required.
        """
        v = FieldValidator()
        cleaned: dict[str, Any] = {}

        if not partial or "trip_date" in fields:
            cleaned["trip_date"] = v.required_date("trip_date", fields.get("trip_date"))
        if not partial or "vehicle_id" in fields:
            cleaned["vehicle_id"] = self._check_reference(
                v, "vehicle_id", Vehicle, fields.get("vehicle_id"), required=True,
            )
        for field, model in (
            ("customer_id", Customer),
            ("origin_id", Location),
            ("destination_id", Location),
        ):
            if not partial or field in fields:
                cleaned[field] = self._check_reference(
                    v, field, model, fields.get(field), required=False,
                )
        if not partial or "allowance" in fields:
            cleaned["allowance"] = v.required_amount("allowance", fields.get("allowance"))
        if not partial or "notes" in fields:
            cleaned["notes"] = v.optional_text("notes", fields.get("notes"))

        v.raise_if_errors()
        return cleaned

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def create_trip(
        self,
        trip_date: Any,
        vehicle_id: Any,
        allowance: Any,
        customer_id: Any = None,
        origin_id: Any = None,
        destination_id: Any = None,
        notes: Any = None,
    ) -> TripInfo:
        """
        Create a new draft trip.

        Postconditions:
            status == draft, settlement unsettled, total_expense == 0,
            remaining_balance == allowance.

        Raises:
            ValidationError: On missing/invalid fields or references to
                missing or deleted master data.
        """
        cleaned = self._clean_fields(
            {
                "trip_date": trip_date,
                "vehicle_id": vehicle_id,
                "allowance": allowance,
                "customer_id": customer_id,
                "origin_id": origin_id,
                "destination_id": destination_id,
                "notes": notes,
            },
            partial=False,
        )

        trip = Trip(
            **cleaned,
            total_expense=ZERO,
            remaining_balance=cleaned["allowance"],
            status=TripStatus.DRAFT.value,
            status_changed_at=self.clock.now(),
            settlement_status=SettlementStatus.UNSETTLED.value,
        )
        self.session.add(trip)
        self.session.flush()

        logger.info(
            "trip_created",
            extra={
                "trip_id": str(trip.id),
                "vehicle_id": str(trip.vehicle_id),
                "allowance": str(trip.allowance),
            },
        )
        return self._to_dto(trip)

    def update_trip_fields(self, trip_id: UUID, fields: Mapping[str, Any]) -> TripInfo:
        """
        Edit a draft trip.

        Only the keys present in ``fields`` are changed.  When the allowance
        changes, remaining_balance is recomputed against the current
        total_expense.  When the vehicle changes, live expenses whose vehicle
        is derived from the trip follow it.

        Raises:
            ImmutableStateError: If the trip is not a draft.
            ValidationError: On unknown field names or invalid values.
        """
        trip = self._get_live(trip_id)
        if not is_editable(trip.status):
            raise ImmutableStateError(trip.id, trip.status)

        unknown = sorted(set(fields) - EDITABLE_FIELDS)
        if unknown:
            raise ValidationError({name: f"{name} cannot be edited." for name in unknown})

        cleaned = self._clean_fields(fields, partial=True)
        vehicle_changed = (
            "vehicle_id" in cleaned and cleaned["vehicle_id"] != trip.vehicle_id
        )
        for name, value in cleaned.items():
            setattr(trip, name, value)

        if "allowance" in cleaned:
            trip.remaining_balance = round_money(
                to_money(trip.allowance) - to_money(trip.total_expense)
            )
        if vehicle_changed:
            self._sync_derived_vehicle(trip)
        self.session.flush()

        logger.info(
            "trip_updated",
            extra={"trip_id": str(trip.id), "fields": sorted(cleaned)},
        )
        return self._to_dto(trip)

    def _sync_derived_vehicle(self, trip: Trip) -> None:
        if self.policy is None:
            return
        derived_kinds = [
            rule.kind for rule in self.policy.rules.values()
            if rule.vehicle == VehicleSource.DERIVED
        ]
        if not derived_kinds:
            return
        stmt = (
            self._live(Expense)
            .join(ExpenseCategory, Expense.category_id == ExpenseCategory.id)
            .where(Expense.trip_id == trip.id)
            .where(ExpenseCategory.kind.in_(derived_kinds))
        )
        for expense in self.session.execute(stmt).scalars():
            expense.vehicle_id = trip.vehicle_id

    def request_transition(self, trip_id: UUID, target_status: Any) -> TripInfo:
        """
        Move a trip to a new status following the transitions table.

        Raises:
            NotFoundError: If the trip is missing or deleted.
            ValidationError: If ``target_status`` is not a known status.
            InvalidTransitionError: If the change is not allowed from the
                current status (including same-status requests).
        """
        trip = self._get_live(trip_id)
        target = parse_status(target_status)
        if target is None:
            raise ValidationError({"status": "status is not a valid trip status."})

        current = trip.status
        if not can_transition(current, target):
            logger.warning(
                "trip_transition_rejected",
                extra={"trip_id": str(trip.id), "from_status": current,
                       "to_status": target.value},
            )
            raise InvalidTransitionError(trip.id, current, target.value)

        self._apply_status(trip, target)
        logger.info(
            "trip_status_changed",
            extra={"trip_id": str(trip.id), "from_status": current,
                   "to_status": target.value},
        )
        return self._to_dto(trip)

    def override_status(
        self, trip_id: UUID, target_status: Any, principal: Principal,
    ) -> TripInfo:
        """
        Set any status on a trip, ignoring the transitions table.

        Raises:
            UnauthorizedError: If ``principal`` lacks the override role.
                Checked before the trip is even looked up.
            NotFoundError / ValidationError: as for request_transition.
        """
        if not principal.has_role(self.override_role):
            logger.warning(
                "trip_override_denied",
                extra={"principal_id": principal.principal_id,
                       "required_role": self.override_role},
            )
            raise UnauthorizedError(principal.principal_id, self.override_role)

        trip = self._get_live(trip_id)
        target = parse_status(target_status)
        if target is None:
            raise ValidationError({"status": "status is not a valid trip status."})

        current = trip.status
        self._apply_status(trip, target)
        logger.info(
            "trip_status_changed",
            extra={
                "trip_id": str(trip.id),
                "from_status": current,
                "to_status": target.value,
                "override": True,
                "principal_id": principal.principal_id,
            },
        )
        return self._to_dto(trip)

    def _apply_status(self, trip: Trip, target: TripStatus) -> None:
        trip.status = target.value
        trip.status_changed_at = self.clock.now()
        self.session.flush()

    def settle_allowance(
        self,
        trip_id: UUID,
        returned_amount: Any,
        returned_date: Any = None,
        note: Any = None,
    ) -> TripInfo:
        """
        Record the cash the driver handed back.

        ``settlement_difference = returned_amount - remaining_balance``:
        positive means the driver returned more than expected, negative
        means a shortfall.  ``returned_date`` defaults to today.

        Raises:
            AlreadySettledError: If the trip was settled before.
            ValidationError: On a missing or negative amount.
        """
        trip = self._get_live(trip_id)
        if trip.settlement_status == SettlementStatus.SETTLED.value:
            raise AlreadySettledError(trip.id)

        v = FieldValidator()
        amount = v.required_amount("returned_amount", returned_amount)
        on_date: date | None = v.optional_date("returned_date", returned_date)
        cleaned_note = v.optional_text("note", note)
        v.raise_if_errors()

        trip.returned_amount = amount
        trip.returned_date = on_date or self.clock.today()
        trip.settlement_difference = round_money(amount - to_money(trip.remaining_balance))
        trip.settlement_note = cleaned_note
        trip.settlement_status = SettlementStatus.SETTLED.value
        trip.settled_at = self.clock.now()
        self.session.flush()

        logger.info(
            "trip_allowance_settled",
            extra={
                "trip_id": str(trip.id),
                "returned_amount": str(trip.returned_amount),
                "settlement_difference": str(trip.settlement_difference),
            },
        )
        return self._to_dto(trip)

    def delete_trip(self, trip_id: UUID) -> None:
        """
        Soft-delete a trip in any status.

        Expenses pointing at the trip are left as they are; reconciling a
        deleted trip is a no-op.
        """
        trip = self._get_live(trip_id)
        self._soft_delete(trip)
        logger.info("trip_deleted", extra={"trip_id": str(trip.id)})

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_trip(self, trip_id: UUID) -> TripInfo:
        return self._to_dto(self._get_live(trip_id))

    def list_trips(
        self,
        start_date: date | None = None,
        end_date: date | None = None,
        status: str | None = None,
        vehicle_id: UUID | None = None,
    ) -> list[TripInfo]:
        """Live trips in the date range (inclusive), newest first."""
        stmt = self._live()
        if start_date is not None:
            stmt = stmt.where(Trip.trip_date >= start_date)
        if end_date is not None:
            stmt = stmt.where(Trip.trip_date <= end_date)
        if status:
            stmt = stmt.where(Trip.status == status)
        if vehicle_id is not None:
            stmt = stmt.where(Trip.vehicle_id == vehicle_id)
        stmt = stmt.order_by(Trip.trip_date.desc(), Trip.created_at.desc())
        return [self._to_dto(t) for t in self.session.execute(stmt).scalars()]

    def list_open_trips(self) -> list[TripInfo]:
        """Draft and ongoing trips, the ones expenses are normally booked to."""
        stmt = (
            self._live()
            .where(Trip.status.in_([s.value for s in OPEN_STATUSES]))
            .order_by(Trip.trip_date.desc(), Trip.created_at.desc())
        )
        return [self._to_dto(t) for t in self.session.execute(stmt).scalars()]
