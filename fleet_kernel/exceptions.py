"""
Typed Exception Hierarchy for the Fleet Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Every rejection the kernel produces is something the request layer has to
turn into a message, a field-error map, or a redirect.  Parsing message
strings for that is fragile, so:

  1. Every error has a TYPED exception class (catch by type, not message)
  2. Every exception has a CODE attribute (machine-readable, API-safe)
  3. Exceptions carry structured DATA (entity ids, statuses, field errors)

Example - WRONG way:
    try:
        trips.request_transition(trip_id, "completed")
    except Exception as e:
        if "not allowed" in str(e):
            ...

Example - RIGHT way:
    try:
        trips.request_transition(trip_id, "completed")
    except InvalidTransitionError as e:
        flash(e.user_message)            # "This status change is not allowed."
        log.warning(e.current_status)    # structured data

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    FleetKernelError (base)
    |
    +-- NotFoundError
    +-- ValidationError                 (field_errors: dict[str, str])
    +-- LifecycleError
    |   +-- InvalidTransitionError
    |   +-- ImmutableStateError
    |   +-- AlreadySettledError
    +-- ReferentialIntegrityError
    +-- UnauthorizedError
    +-- OperationFailedError            (wraps database failures)

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Code                      | When Raised
--------------------------|--------------------------------------------------
NOT_FOUND                 | Entity missing or soft-deleted
VALIDATION_ERROR          | One or more fields rejected before persistence
INVALID_TRANSITION        | Target status not allowed from current status
IMMUTABLE_STATE           | Trip fields edited outside draft
ALREADY_SETTLED           | Allowance settlement attempted twice
REFERENTIAL_INTEGRITY     | Master data still referenced by live rows
UNAUTHORIZED              | Principal lacks the privileged override role
OPERATION_FAILED          | Database-level failure, transaction rolled back
"""

from __future__ import annotations


class FleetKernelError(Exception):
    """
    Base exception for all fleet kernel errors.

    All subclasses define a ``code`` class attribute for machine-readable
    identification; ``user_message`` resolves the user-facing text.
    """

    code: str = "FLEET_KERNEL_ERROR"

    @property
    def user_message(self) -> str:
        return USER_MESSAGES.get(self.code, USER_MESSAGES["FLEET_KERNEL_ERROR"])


class NotFoundError(FleetKernelError):
    """Referenced entity does not exist or has been soft-deleted."""

    code: str = "NOT_FOUND"

    def __init__(self, entity: str, entity_id: object):
        self.entity = entity
        self.entity_id = str(entity_id)
        super().__init__(f"{entity} not found: {entity_id}")

    @property
    def user_message(self) -> str:
        return f"{self.entity} not found."


class ValidationError(FleetKernelError):
    """
    Field-level validation failure.

    Raised before any persistence attempt; nothing is partially applied.
    ``field_errors`` maps field name to a human-readable message.
    """

    code: str = "VALIDATION_ERROR"

    def __init__(self, field_errors: dict[str, str]):
        self.field_errors = dict(field_errors)
        fields = ", ".join(sorted(self.field_errors))
        super().__init__(f"Validation failed for: {fields}")


# Lifecycle exceptions


class LifecycleError(FleetKernelError):
    """Base exception for trip lifecycle rule violations."""

    code: str = "LIFECYCLE_ERROR"


class InvalidTransitionError(LifecycleError):
    """Requested status is not reachable from the trip's current status."""

    code: str = "INVALID_TRANSITION"

    def __init__(self, trip_id: object, current_status: str, target_status: str):
        self.trip_id = str(trip_id)
        self.current_status = current_status
        self.target_status = target_status
        super().__init__(
            f"Trip {trip_id}: transition {current_status} -> {target_status} "
            "is not allowed"
        )


class ImmutableStateError(LifecycleError):
    """Trip fields can only be edited while the trip is a draft."""

    code: str = "IMMUTABLE_STATE"

    def __init__(self, trip_id: object, status: str):
        self.trip_id = str(trip_id)
        self.status = status
        super().__init__(f"Trip {trip_id} is {status} and can no longer be edited")


class AlreadySettledError(LifecycleError):
    """Allowance settlement is recorded once per trip."""

    code: str = "ALREADY_SETTLED"

    def __init__(self, trip_id: object):
        self.trip_id = str(trip_id)
        super().__init__(f"Allowance for trip {trip_id} is already settled")


class ReferentialIntegrityError(FleetKernelError):
    """Master-data row is still referenced by live rows and cannot be deleted."""

    code: str = "REFERENTIAL_INTEGRITY"

    def __init__(self, entity: str, entity_id: object, referenced_by: str):
        self.entity = entity
        self.entity_id = str(entity_id)
        self.referenced_by = referenced_by
        super().__init__(
            f"{entity} {entity_id} cannot be deleted: still referenced by {referenced_by}"
        )

    @property
    def user_message(self) -> str:
        return f"{self.entity} cannot be deleted because it is still used by a {self.referenced_by}."


class UnauthorizedError(FleetKernelError):
    """Principal is not allowed to perform a privileged operation."""

    code: str = "UNAUTHORIZED"

    def __init__(self, principal_id: object, required_role: str):
        self.principal_id = str(principal_id)
        self.required_role = required_role
        super().__init__(
            f"Principal {principal_id} lacks required role '{required_role}'"
        )


class OperationFailedError(FleetKernelError):
    """Database-level failure; the whole transaction was rolled back."""

    code: str = "OPERATION_FAILED"

    def __init__(self, operation: str, reason: str):
        self.operation = operation
        self.reason = reason
        super().__init__(f"Operation {operation} failed: {reason}")


USER_MESSAGES: dict[str, str] = {
    "FLEET_KERNEL_ERROR": "An unexpected error occurred. Please try again.",
    "NOT_FOUND": "The requested record was not found.",
    "VALIDATION_ERROR": "Some fields are invalid. Please check and try again.",
    "LIFECYCLE_ERROR": "This action is not allowed for the trip's current status.",
    "INVALID_TRANSITION": "This status change is not allowed.",
    "IMMUTABLE_STATE": "Trips that have already departed can no longer be edited.",
    "ALREADY_SETTLED": "The allowance for this trip has already been settled.",
    "REFERENTIAL_INTEGRITY": "This record is still in use and cannot be deleted.",
    "UNAUTHORIZED": "You are not allowed to perform this action.",
    "OPERATION_FAILED": "The operation could not be completed. Please try again.",
}
