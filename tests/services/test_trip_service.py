"""Tests for TripService: creation, transitions, edits, settlement, override."""

from datetime import date, datetime, timezone
from decimal import Decimal
from uuid import uuid4

import pytest

from fleet_kernel.domain.lifecycle import SettlementStatus, TripStatus
from fleet_kernel.domain.principal import Principal
from fleet_kernel.exceptions import (
    AlreadySettledError,
    ImmutableStateError,
    InvalidTransitionError,
    NotFoundError,
    UnauthorizedError,
    ValidationError,
)

OWNER = Principal(principal_id="1", roles=frozenset({"owner"}), name="Owner TAN")
CLERK = Principal(principal_id="2", roles=frozenset({"admin"}), name="Clerk")


class TestCreateTrip:

    def test_new_trip_starts_as_draft(self, trip_service, vehicle, clock):
        trip = trip_service.create_trip(
            trip_date="2026-01-10", vehicle_id=vehicle.id, allowance="2000000",
        )

        assert trip.status == TripStatus.DRAFT
        assert trip.settlement_status == SettlementStatus.UNSETTLED
        assert trip.allowance == Decimal("2000000.00")
        assert trip.total_expense == Decimal("0.00")
        assert trip.remaining_balance == Decimal("2000000.00")
        assert trip.status_changed_at == clock.now()

    def test_optional_references(self, trip_service, vehicle, customer, jakarta, surabaya):
        trip = trip_service.create_trip(
            trip_date=date(2026, 1, 10),
            vehicle_id=str(vehicle.id),
            allowance=1500000,
            customer_id=customer.id,
            origin_id=jakarta.id,
            destination_id=surabaya.id,
            notes="Kirim ke distributor",
        )

        assert trip.customer_id == customer.id
        assert trip.origin_id == jakarta.id
        assert trip.destination_id == surabaya.id
        assert trip.notes == "Kirim ke distributor"

    def test_missing_required_fields(self, trip_service):
        with pytest.raises(ValidationError) as exc_info:
            trip_service.create_trip(trip_date=None, vehicle_id=None, allowance=None)

        assert set(exc_info.value.field_errors) == {"trip_date", "vehicle_id", "allowance"}

    def test_unknown_vehicle(self, trip_service):
        with pytest.raises(ValidationError) as exc_info:
            trip_service.create_trip(
                trip_date="2026-01-10", vehicle_id=uuid4(), allowance="100",
            )

        assert exc_info.value.field_errors == {"vehicle_id": "vehicle_id does not exist."}

    def test_deleted_vehicle_is_not_a_valid_reference(
        self, trip_service, vehicle_service, vehicle,
    ):
        vehicle_service.delete_vehicle(vehicle.id)

        with pytest.raises(ValidationError) as exc_info:
            trip_service.create_trip(
                trip_date="2026-01-10", vehicle_id=vehicle.id, allowance="100",
            )
        assert "vehicle_id" in exc_info.value.field_errors

    def test_negative_allowance(self, trip_service, vehicle):
        with pytest.raises(ValidationError) as exc_info:
            trip_service.create_trip(
                trip_date="2026-01-10", vehicle_id=vehicle.id, allowance="-5",
            )
        assert "allowance" in exc_info.value.field_errors


class TestRequestTransition:

    def test_draft_to_ongoing_to_completed(self, trip_service, trip, clock):
        clock.advance(60)
        ongoing = trip_service.request_transition(trip.id, "ongoing")
        assert ongoing.status == TripStatus.ONGOING
        assert ongoing.status_changed_at == clock.now()

        completed = trip_service.request_transition(trip.id, TripStatus.COMPLETED)
        assert completed.status == TripStatus.COMPLETED
        assert completed.is_terminal

    def test_draft_to_completed_rejected(self, trip_service, trip):
        with pytest.raises(InvalidTransitionError) as exc_info:
            trip_service.request_transition(trip.id, "completed")

        assert exc_info.value.current_status == "draft"
        assert exc_info.value.target_status == "completed"
        assert trip_service.get_trip(trip.id).status == TripStatus.DRAFT

    def test_same_status_rejected(self, trip_service, trip):
        with pytest.raises(InvalidTransitionError):
            trip_service.request_transition(trip.id, "draft")

    def test_terminal_status_has_no_way_out(self, trip_service, trip):
        trip_service.request_transition(trip.id, "cancelled")

        for target in ("draft", "ongoing", "completed"):
            with pytest.raises(InvalidTransitionError):
                trip_service.request_transition(trip.id, target)

    def test_unknown_status_is_validation_error(self, trip_service, trip):
        with pytest.raises(ValidationError) as exc_info:
            trip_service.request_transition(trip.id, "berangkat")
        assert "status" in exc_info.value.field_errors

    def test_missing_trip(self, trip_service, engine):
        with pytest.raises(NotFoundError):
            trip_service.request_transition(uuid4(), "ongoing")

    def test_deleted_trip(self, trip_service, trip):
        trip_service.delete_trip(trip.id)
        with pytest.raises(NotFoundError):
            trip_service.request_transition(trip.id, "ongoing")

    def test_status_change_is_logged(self, trip_service, trip, captured_logs):
        trip_service.request_transition(trip.id, "ongoing")

        events = [r for r in captured_logs() if r["message"] == "trip_status_changed"]
        assert len(events) == 1
        assert events[0]["from_status"] == "draft"
        assert events[0]["to_status"] == "ongoing"


class TestUpdateTripFields:

    def test_allowance_change_recomputes_remaining(
        self, trip_service, expense_service, trip, maintenance_category, vehicle,
    ):
        expense_service.create_expense(
            expense_date="2026-01-11",
            category_id=maintenance_category.id,
            amount="500000",
            trip_id=trip.id,
            vehicle_id=vehicle.id,
        )

        updated = trip_service.update_trip_fields(trip.id, {"allowance": "3000000"})

        assert updated.allowance == Decimal("3000000.00")
        assert updated.total_expense == Decimal("500000.00")
        assert updated.remaining_balance == Decimal("2500000.00")

    def test_partial_update_keeps_other_fields(self, trip_service, trip):
        updated = trip_service.update_trip_fields(trip.id, {"notes": "Lewat tol"})

        assert updated.notes == "Lewat tol"
        assert updated.allowance == trip.allowance
        assert updated.origin_id == trip.origin_id

    def test_clearing_an_optional_reference(self, trip_service, trip):
        updated = trip_service.update_trip_fields(trip.id, {"origin_id": None})
        assert updated.origin_id is None

    @pytest.mark.parametrize("path", [["ongoing"], ["cancelled"], ["ongoing", "completed"]])
    def test_only_draft_is_editable(self, trip_service, trip, path):
        for status in path:
            trip_service.request_transition(trip.id, status)

        with pytest.raises(ImmutableStateError):
            trip_service.update_trip_fields(trip.id, {"notes": "late edit"})
        assert trip_service.get_trip(trip.id).notes is None

    def test_unknown_field_names(self, trip_service, trip):
        with pytest.raises(ValidationError) as exc_info:
            trip_service.update_trip_fields(trip.id, {"status": "completed"})
        assert "status" in exc_info.value.field_errors

    def test_invalid_value(self, trip_service, trip):
        with pytest.raises(ValidationError):
            trip_service.update_trip_fields(trip.id, {"trip_date": "yesterday"})


class TestSettleAllowance:

    def test_settlement_difference(self, trip_service, trip, clock):
        settled = trip_service.settle_allowance(
            trip.id, returned_amount="1900000", returned_date="2026-01-14", note="Kurang 100rb",
        )

        assert settled.is_settled
        assert settled.returned_amount == Decimal("1900000.00")
        assert settled.returned_date == date(2026, 1, 14)
        # remaining is 2,000,000 with no expenses
        assert settled.settlement_difference == Decimal("-100000.00")
        assert settled.settlement_note == "Kurang 100rb"
        assert settled.settled_at == clock.now()

    def test_returned_date_defaults_to_today(self, trip_service, trip, clock):
        settled = trip_service.settle_allowance(trip.id, returned_amount="2000000")
        assert settled.returned_date == clock.today()
        assert settled.settlement_difference == Decimal("0.00")

    def test_second_settlement_rejected_and_values_kept(self, trip_service, trip):
        trip_service.settle_allowance(trip.id, returned_amount="1500000")

        with pytest.raises(AlreadySettledError):
            trip_service.settle_allowance(trip.id, returned_amount="10")

        stored = trip_service.get_trip(trip.id)
        assert stored.returned_amount == Decimal("1500000.00")
        assert stored.settlement_difference == Decimal("-500000.00")

    def test_settlement_does_not_touch_status(self, trip_service, trip):
        trip_service.request_transition(trip.id, "ongoing")
        settled = trip_service.settle_allowance(trip.id, returned_amount="0")
        assert settled.status == TripStatus.ONGOING

    def test_negative_amount(self, trip_service, trip):
        with pytest.raises(ValidationError):
            trip_service.settle_allowance(trip.id, returned_amount="-1")
        assert not trip_service.get_trip(trip.id).is_settled


class TestOverrideStatus:

    def test_owner_can_reopen_completed_trip(self, trip_service, trip):
        trip_service.request_transition(trip.id, "ongoing")
        trip_service.request_transition(trip.id, "completed")

        reopened = trip_service.override_status(trip.id, "draft", OWNER)

        assert reopened.status == TripStatus.DRAFT
        assert reopened.is_editable

    def test_owner_can_skip_states(self, trip_service, trip):
        assert trip_service.override_status(trip.id, "completed", OWNER).status == TripStatus.COMPLETED

    def test_non_owner_rejected(self, trip_service, trip):
        with pytest.raises(UnauthorizedError) as exc_info:
            trip_service.override_status(trip.id, "completed", CLERK)

        assert exc_info.value.required_role == "owner"
        assert trip_service.get_trip(trip.id).status == TripStatus.DRAFT

    def test_role_comes_from_configuration(self, session, clock, trip):
        from fleet_kernel.services import TripService

        dispatcher = Principal(principal_id="7", roles=frozenset({"dispatcher"}))
        service = TripService(session, clock, override_role="dispatcher")

        assert service.override_status(trip.id, "cancelled", dispatcher).status == TripStatus.CANCELLED
        with pytest.raises(UnauthorizedError):
            service.override_status(trip.id, "draft", OWNER)

    def test_override_is_logged_with_principal(self, trip_service, trip, captured_logs):
        trip_service.override_status(trip.id, "ongoing", OWNER)

        event = next(r for r in captured_logs() if r["message"] == "trip_status_changed")
        assert event["override"] is True
        assert event["principal_id"] == "1"


class TestDeleteAndList:

    def test_deleted_trip_is_invisible(self, trip_service, trip):
        trip_service.delete_trip(trip.id)

        with pytest.raises(NotFoundError):
            trip_service.get_trip(trip.id)
        assert trip_service.list_trips() == []

    def test_list_newest_first_in_range(self, trip_service, vehicle):
        for day in (5, 20, 12):
            trip_service.create_trip(
                trip_date=date(2026, 1, day), vehicle_id=vehicle.id, allowance="100",
            )

        listed = trip_service.list_trips(date(2026, 1, 1), date(2026, 1, 15))

        assert [t.trip_date.day for t in listed] == [12, 5]

    def test_list_open_trips(self, trip_service, vehicle):
        draft = trip_service.create_trip(trip_date="2026-01-01", vehicle_id=vehicle.id, allowance="1")
        ongoing = trip_service.create_trip(trip_date="2026-01-02", vehicle_id=vehicle.id, allowance="1")
        done = trip_service.create_trip(trip_date="2026-01-03", vehicle_id=vehicle.id, allowance="1")
        trip_service.request_transition(ongoing.id, "ongoing")
        trip_service.request_transition(done.id, "cancelled")

        assert {t.id for t in trip_service.list_open_trips()} == {draft.id, ongoing.id}
