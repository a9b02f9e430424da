"""Tests for the typed exception hierarchy."""

import pytest

from fleet_kernel.exceptions import (
    USER_MESSAGES,
    AlreadySettledError,
    FleetKernelError,
    ImmutableStateError,
    InvalidTransitionError,
    LifecycleError,
    NotFoundError,
    OperationFailedError,
    ReferentialIntegrityError,
    UnauthorizedError,
    ValidationError,
)


class TestHierarchy:

    @pytest.mark.parametrize("exc", [
        InvalidTransitionError("t", "draft", "completed"),
        ImmutableStateError("t", "ongoing"),
        AlreadySettledError("t"),
    ])
    def test_lifecycle_errors(self, exc):
        assert isinstance(exc, LifecycleError)
        assert isinstance(exc, FleetKernelError)

    def test_every_code_has_a_message(self):
        errors = [
            NotFoundError("Trip", "t"),
            ValidationError({"amount": "amount is required."}),
            InvalidTransitionError("t", "draft", "completed"),
            ImmutableStateError("t", "ongoing"),
            AlreadySettledError("t"),
            ReferentialIntegrityError("Vehicle", "v", "trip"),
            UnauthorizedError("p", "owner"),
            OperationFailedError("create_expense", "disk I/O error"),
        ]
        for exc in errors:
            assert exc.code in USER_MESSAGES


class TestStructuredData:

    def test_validation_error_copies_field_map(self):
        fields = {"amount": "amount must be at least 0."}
        exc = ValidationError(fields)
        fields["other"] = "x"

        assert exc.field_errors == {"amount": "amount must be at least 0."}
        assert "amount" in str(exc)

    def test_invalid_transition(self):
        exc = InvalidTransitionError("t-1", "completed", "draft")

        assert exc.code == "INVALID_TRANSITION"
        assert exc.current_status == "completed"
        assert exc.user_message == "This status change is not allowed."

    def test_not_found_message_names_entity(self):
        assert NotFoundError("Vehicle", "v-1").user_message == "Vehicle not found."

    def test_referential_integrity_message(self):
        exc = ReferentialIntegrityError("Location", "l-1", "trip")
        assert exc.user_message == "Location cannot be deleted because it is still used by a trip."

    def test_unauthorized(self):
        exc = UnauthorizedError(7, "owner")
        assert exc.principal_id == "7"
        assert exc.required_role == "owner"

    def test_base_error_falls_back_to_generic_message(self):
        assert FleetKernelError("x").user_message == USER_MESSAGES["FLEET_KERNEL_ERROR"]
