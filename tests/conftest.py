"""
Pytest fixtures for the fleet kernel test suite.

Provides:
- A fresh in-memory SQLite database per test (engine + tables)
- A ``session`` bound to it, rolled back after the test
- A deterministic clock, the default configuration and expense policy
- Service fixtures and small master-data factories
- ``captured_logs`` for asserting on structured log events
"""

import json
import logging
from datetime import date
from io import StringIO
from typing import Generator

import pytest
from sqlalchemy.orm import Session

from fleet_config import build_expense_policy, get_active_config
from fleet_kernel.db.engine import (
    create_tables,
    get_session,
    init_engine_from_url,
    reset_engine,
)
from fleet_kernel.domain.clock import DeterministicClock
from fleet_kernel.domain.expense_rules import ExpenseRulePolicy
from fleet_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)
from fleet_kernel.services import (
    CustomerService,
    DeliveryChecklistService,
    ExpenseCategoryService,
    ExpenseService,
    LocationService,
    ReconciliationService,
    TripService,
    VehicleService,
)

TEST_DATABASE_URL = "sqlite://"


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "scenario: end-to-end business scenario"
    )


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG)
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Clear LogContext between tests to prevent cross-test contamination."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture fleet_kernel logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs, trip_service):
            trip_service.request_transition(trip.id, "ongoing")
            assert any(r["message"] == "trip_status_changed" for r in captured_logs())
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("fleet_kernel")
    previous_level = root.level
    root.setLevel(logging.DEBUG)
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)
    root.setLevel(previous_level)


# =============================================================================
# Database
# =============================================================================


@pytest.fixture
def engine():
    """Fresh in-memory database with all tables for one test."""
    eng = init_engine_from_url(TEST_DATABASE_URL)
    create_tables()
    yield eng
    reset_engine()


@pytest.fixture
def session(engine) -> Generator[Session, None, None]:
    sess = get_session()
    yield sess
    sess.rollback()
    sess.close()


@pytest.fixture
def clock() -> DeterministicClock:
    return DeterministicClock()


@pytest.fixture
def config():
    return get_active_config()


@pytest.fixture
def policy(config) -> ExpenseRulePolicy:
    return build_expense_policy(config)


@pytest.fixture
def legacy_policy(policy) -> ExpenseRulePolicy:
    """Policy with the retired trip-bound kind switched back on."""
    return ExpenseRulePolicy(
        rules=dict(policy.rules),
        enabled_kinds=policy.enabled_kinds | {"trip"},
    )


# =============================================================================
# Services
# =============================================================================


@pytest.fixture
def vehicle_service(session, clock) -> VehicleService:
    return VehicleService(session, clock)


@pytest.fixture
def customer_service(session, clock) -> CustomerService:
    return CustomerService(session, clock)


@pytest.fixture
def location_service(session, clock) -> LocationService:
    return LocationService(session, clock)


@pytest.fixture
def category_service(session, policy, clock) -> ExpenseCategoryService:
    return ExpenseCategoryService(session, policy, clock)


@pytest.fixture
def trip_service(session, clock, config, policy) -> TripService:
    return TripService(
        session, clock, override_role=config.override_role, policy=policy,
    )


@pytest.fixture
def expense_service(session, policy, clock) -> ExpenseService:
    return ExpenseService(session, policy, clock)


@pytest.fixture
def reconciliation_service(session, clock) -> ReconciliationService:
    return ReconciliationService(session, clock)


@pytest.fixture
def checklist_service(session, clock) -> DeliveryChecklistService:
    return DeliveryChecklistService(session, clock)


# =============================================================================
# Master data factories
# =============================================================================


@pytest.fixture
def vehicle(vehicle_service):
    return vehicle_service.create_vehicle(
        plate_number="B 1234 CD",
        vehicle_type="Tronton",
        brand="Hino",
        year=2020,
        capacity_tons="8.00",
    )


@pytest.fixture
def other_vehicle(vehicle_service):
    return vehicle_service.create_vehicle(plate_number="B 5678 EF", vehicle_type="Engkel")


@pytest.fixture
def jakarta(location_service):
    return location_service.create_location("Jakarta")


@pytest.fixture
def surabaya(location_service):
    return location_service.create_location("Surabaya")


@pytest.fixture
def customer(customer_service):
    return customer_service.create_customer("PT Sinar Jaya", "081234567890")


@pytest.fixture
def maintenance_category(category_service):
    return category_service.create_category("Ganti Oli", "maintenance")


@pytest.fixture
def general_category(category_service):
    return category_service.create_category("Listrik Kantor", "general")


@pytest.fixture
def trip(trip_service, vehicle, jakarta, surabaya):
    """Draft trip Jakarta -> Surabaya with a 2,000,000 allowance."""
    return trip_service.create_trip(
        trip_date=date(2026, 1, 10),
        vehicle_id=vehicle.id,
        allowance="2000000",
        origin_id=jakarta.id,
        destination_id=surabaya.id,
    )
