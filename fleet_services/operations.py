"""
FleetOperations -- request-facing facade over the kernel services.

Responsibility:
    Runs each write in its own ``session_scope()`` transaction and turns the
    kernel's typed errors into an ``OperationResult`` the web layer can
    render (flash message or field-error map).  Expected errors never
    escape; anything else propagates after the rollback.

Architecture position:
    Services layer -- sits above ``fleet_kernel`` and ``fleet_config``.
    Builds kernel services per request from the active configuration.

Invariants enforced:
    - One transaction per operation: an expense write and the
      reconciliation of its trip(s) commit together or not at all.
    - Database errors are reported as FAILED with a generic message; the
      details go to the log only.
    - Every log line of an operation carries its name and a correlation id
      (reused when the caller already bound one).
"""

from __future__ import annotations

from collections.abc import Callable
from contextlib import AbstractContextManager
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Any, TypeVar
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from fleet_config import FleetConfig, build_expense_policy, get_active_config
from fleet_kernel.db.engine import session_scope
from fleet_kernel.domain.clock import Clock, SystemClock
from fleet_kernel.domain.principal import Principal
from fleet_kernel.exceptions import (
    FleetKernelError,
    LifecycleError,
    NotFoundError,
    OperationFailedError,
    ReferentialIntegrityError,
    UnauthorizedError,
    ValidationError,
)
from fleet_kernel.logging_config import LogContext, get_logger, new_correlation_id
from fleet_kernel.selectors.report_selector import (
    AllowanceReport,
    ReportSelector,
    VehicleExpenseReport,
)
from fleet_kernel.services import (
    CustomerService,
    DeliveryChecklistService,
    ExpenseCategoryService,
    ExpenseService,
    LocationService,
    TripService,
    VehicleService,
)

logger = get_logger("services.operations")

T = TypeVar("T")


class OperationStatus(str, Enum):
    """Outcome of a facade operation."""

    SUCCESS = "success"
    VALIDATION_FAILED = "validation_failed"
    NOT_FOUND = "not_found"
    REJECTED = "rejected"
    FAILED = "failed"


@dataclass(frozen=True)
class OperationResult:
    """Result of one facade operation."""

    status: OperationStatus
    message: str
    errors: dict[str, str] = field(default_factory=dict)
    entity_id: UUID | None = None
    data: Any = None
    error_code: str | None = None

    @property
    def is_success(self) -> bool:
        return self.status == OperationStatus.SUCCESS


class FleetOperations:
    """
    Facade used by the request layer.

    Contract:
        Every write method returns an ``OperationResult``.  SUCCESS carries
        the affected entity id and its DTO in ``data``.

    Args:
        config: Active FleetConfig; loaded via get_active_config() if None.
        clock: Time source handed to every service.
        scope: Transaction scope factory; defaults to session_scope.
    """

    def __init__(
        self,
        config: FleetConfig | None = None,
        clock: Clock | None = None,
        scope: Callable[[], AbstractContextManager[Session]] = session_scope,
    ):
        self.config = config or get_active_config()
        self.clock = clock or SystemClock()
        self.policy = build_expense_policy(self.config)
        self._scope = scope

    # ------------------------------------------------------------------
    # Plumbing
    # ------------------------------------------------------------------

    def _trips(self, session: Session) -> TripService:
        return TripService(
            session,
            self.clock,
            override_role=self.config.override_role,
            policy=self.policy,
        )

    def _run(
        self,
        operation: str,
        work: Callable[[Session], Any],
        success_message: str,
    ) -> OperationResult:
        """Run ``work`` in one transaction and map the outcome."""
        correlation_id = LogContext.get("correlation_id") or new_correlation_id()
        with LogContext.bind(operation=operation, correlation_id=correlation_id):
            try:
                with self._scope() as session:
                    data = work(session)
            except ValidationError as exc:
                logger.info(
                    "operation_validation_failed",
                    extra={"fields": sorted(exc.field_errors)},
                )
                return OperationResult(
                    status=OperationStatus.VALIDATION_FAILED,
                    message=exc.user_message,
                    errors=exc.field_errors,
                    error_code=exc.code,
                )
            except NotFoundError as exc:
                return OperationResult(
                    status=OperationStatus.NOT_FOUND,
                    message=exc.user_message,
                    error_code=exc.code,
                )
            except (LifecycleError, ReferentialIntegrityError, UnauthorizedError) as exc:
                logger.info("operation_rejected", extra={"error_code": exc.code})
                return OperationResult(
                    status=OperationStatus.REJECTED,
                    message=exc.user_message,
                    error_code=exc.code,
                )
            except SQLAlchemyError as exc:
                failure = OperationFailedError(operation, type(exc).__name__)
                logger.error("operation_failed", exc_info=True)
                return OperationResult(
                    status=OperationStatus.FAILED,
                    message=failure.user_message,
                    error_code=failure.code,
                )
            except FleetKernelError as exc:
                return OperationResult(
                    status=OperationStatus.REJECTED,
                    message=exc.user_message,
                    error_code=exc.code,
                )

            entity_id = getattr(data, "id", None)
            logger.info("operation_succeeded", extra={"entity_id": entity_id})

        return OperationResult(
            status=OperationStatus.SUCCESS,
            message=success_message,
            entity_id=entity_id,
            data=data,
        )

    def _read(self, work: Callable[[Session], T]) -> T:
        with self._scope() as session:
            return work(session)

    # ------------------------------------------------------------------
    # Vehicles, customers, locations, categories
    # ------------------------------------------------------------------

    def create_vehicle(self, **fields: Any) -> OperationResult:
        return self._run(
            "create_vehicle",
            lambda s: VehicleService(s, self.clock).create_vehicle(**fields),
            "Vehicle added.",
        )

    def update_vehicle(self, vehicle_id: UUID, **fields: Any) -> OperationResult:
        return self._run(
            "update_vehicle",
            lambda s: VehicleService(s, self.clock).update_vehicle(vehicle_id, **fields),
            "Vehicle updated.",
        )

    def delete_vehicle(self, vehicle_id: UUID) -> OperationResult:
        return self._run(
            "delete_vehicle",
            lambda s: VehicleService(s, self.clock).delete_vehicle(vehicle_id),
            "Vehicle deleted.",
        )

    def create_customer(self, **fields: Any) -> OperationResult:
        return self._run(
            "create_customer",
            lambda s: CustomerService(s, self.clock).create_customer(**fields),
            "Customer added.",
        )

    def update_customer(self, customer_id: UUID, **fields: Any) -> OperationResult:
        return self._run(
            "update_customer",
            lambda s: CustomerService(s, self.clock).update_customer(customer_id, **fields),
            "Customer updated.",
        )

    def delete_customer(self, customer_id: UUID) -> OperationResult:
        return self._run(
            "delete_customer",
            lambda s: CustomerService(s, self.clock).delete_customer(customer_id),
            "Customer deleted.",
        )

    def create_location(self, **fields: Any) -> OperationResult:
        return self._run(
            "create_location",
            lambda s: LocationService(s, self.clock).create_location(**fields),
            "Location added.",
        )

    def update_location(self, location_id: UUID, **fields: Any) -> OperationResult:
        return self._run(
            "update_location",
            lambda s: LocationService(s, self.clock).update_location(location_id, **fields),
            "Location updated.",
        )

    def delete_location(self, location_id: UUID) -> OperationResult:
        return self._run(
            "delete_location",
            lambda s: LocationService(s, self.clock).delete_location(location_id),
            "Location deleted.",
        )

    def create_category(self, **fields: Any) -> OperationResult:
        return self._run(
            "create_category",
            lambda s: ExpenseCategoryService(s, self.policy, self.clock).create_category(**fields),
            "Expense category added.",
        )

    def update_category(self, category_id: UUID, **fields: Any) -> OperationResult:
        return self._run(
            "update_category",
            lambda s: ExpenseCategoryService(s, self.policy, self.clock).update_category(
                category_id, **fields,
            ),
            "Expense category updated.",
        )

    def delete_category(self, category_id: UUID) -> OperationResult:
        return self._run(
            "delete_category",
            lambda s: ExpenseCategoryService(s, self.policy, self.clock).delete_category(
                category_id,
            ),
            "Expense category deleted.",
        )

    # ------------------------------------------------------------------
    # Trips
    # ------------------------------------------------------------------

    def create_trip(self, **fields: Any) -> OperationResult:
        return self._run(
            "create_trip",
            lambda s: self._trips(s).create_trip(**fields),
            "Trip created.",
        )

    def update_trip(self, trip_id: UUID, fields: dict[str, Any]) -> OperationResult:
        return self._run(
            "update_trip",
            lambda s: self._trips(s).update_trip_fields(trip_id, fields),
            "Trip updated.",
        )

    def change_trip_status(self, trip_id: UUID, status: str) -> OperationResult:
        return self._run(
            "change_trip_status",
            lambda s: self._trips(s).request_transition(trip_id, status),
            "Trip status updated.",
        )

    def override_trip_status(
        self, trip_id: UUID, status: str, principal: Principal,
    ) -> OperationResult:
        with LogContext.bind(actor_id=principal.principal_id):
            return self._run(
                "override_trip_status",
                lambda s: self._trips(s).override_status(trip_id, status, principal),
                "Trip status overridden.",
            )

    def settle_trip_allowance(
        self,
        trip_id: UUID,
        returned_amount: Any,
        returned_date: Any = None,
        note: Any = None,
    ) -> OperationResult:
        return self._run(
            "settle_trip_allowance",
            lambda s: self._trips(s).settle_allowance(
                trip_id, returned_amount, returned_date, note,
            ),
            "Allowance settled.",
        )

    def delete_trip(self, trip_id: UUID) -> OperationResult:
        return self._run(
            "delete_trip",
            lambda s: self._trips(s).delete_trip(trip_id),
            "Trip deleted.",
        )

    # ------------------------------------------------------------------
    # Expenses
    # ------------------------------------------------------------------

    def create_expense(self, **fields: Any) -> OperationResult:
        return self._run(
            "create_expense",
            lambda s: ExpenseService(s, self.policy, self.clock).create_expense(**fields),
            "Expense recorded.",
        )

    def update_expense(self, expense_id: UUID, **fields: Any) -> OperationResult:
        return self._run(
            "update_expense",
            lambda s: ExpenseService(s, self.policy, self.clock).update_expense(
                expense_id, **fields,
            ),
            "Expense updated.",
        )

    def delete_expense(self, expense_id: UUID) -> OperationResult:
        return self._run(
            "delete_expense",
            lambda s: ExpenseService(s, self.policy, self.clock).delete_expense(expense_id),
            "Expense deleted.",
        )

    # ------------------------------------------------------------------
    # Delivery checklist
    # ------------------------------------------------------------------

    def create_checklist(self, **fields: Any) -> OperationResult:
        return self._run(
            "create_checklist",
            lambda s: DeliveryChecklistService(s, self.clock).create_checklist(**fields),
            "Checklist entry added.",
        )

    def update_checklist(self, checklist_id: UUID, **fields: Any) -> OperationResult:
        return self._run(
            "update_checklist",
            lambda s: DeliveryChecklistService(s, self.clock).update_checklist(
                checklist_id, **fields,
            ),
            "Checklist entry updated.",
        )

    def toggle_checklist(self, checklist_id: UUID) -> OperationResult:
        return self._run(
            "toggle_checklist",
            lambda s: DeliveryChecklistService(s, self.clock).toggle(checklist_id),
            "Checklist status updated.",
        )

    def delete_checklist(self, checklist_id: UUID) -> OperationResult:
        return self._run(
            "delete_checklist",
            lambda s: DeliveryChecklistService(s, self.clock).delete_checklist(checklist_id),
            "Checklist entry deleted.",
        )

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def list_trips(
        self, start_date: date | None = None, end_date: date | None = None,
    ) -> list:
        return self._read(lambda s: self._trips(s).list_trips(start_date, end_date))

    def list_expenses(
        self, start_date: date | None = None, end_date: date | None = None,
    ) -> list:
        return self._read(
            lambda s: ExpenseService(s, self.policy, self.clock).list_expenses(
                start_date, end_date,
            )
        )

    def vehicle_expense_report(self, **filters: Any) -> VehicleExpenseReport:
        return self._read(
            lambda s: ReportSelector(s, self.clock).vehicle_expense_report(**filters)
        )

    def allowance_report(self, **filters: Any) -> AllowanceReport:
        return self._read(
            lambda s: ReportSelector(s, self.clock).allowance_report(**filters)
        )
