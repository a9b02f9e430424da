"""Tests for fleet_kernel.logging_config: JSON lines and request context."""

import json
import logging
from datetime import date, datetime
from decimal import Decimal
from io import StringIO
from uuid import uuid4

import pytest

from fleet_kernel.exceptions import InvalidTransitionError, ReferentialIntegrityError
from fleet_kernel.logging_config import (
    CONTEXT_FIELDS,
    LogContext,
    StructuredFormatter,
    configure_logging,
    get_logger,
    new_correlation_id,
    reset_logging,
)


@pytest.fixture(autouse=True)
def _fresh_kernel_logger():
    reset_logging()
    yield
    reset_logging()


@pytest.fixture
def lines():
    """Configure kernel logging into a buffer; return a reader of parsed lines."""
    stream = StringIO()
    configure_logging(stream=stream)

    def _read() -> list[dict]:
        return [json.loads(line) for line in stream.getvalue().splitlines() if line]

    return _read


def _structured_handlers() -> list[logging.Handler]:
    # pytest's own capture handlers may also sit on the kernel logger.
    return [
        h for h in logging.getLogger("fleet_kernel").handlers
        if isinstance(h.formatter, StructuredFormatter)
    ]


class TestFormatter:

    def test_line_shape(self, lines):
        get_logger("services.trip").info("trip_created")

        [record] = lines()
        assert record["message"] == "trip_created"
        assert record["level"] == "INFO"
        assert record["logger"] == "fleet_kernel.services.trip"
        assert datetime.fromisoformat(record["ts"]).tzinfo is not None

    def test_status_change_extras(self, lines):
        trip_id = uuid4()
        get_logger("services.trip").info(
            "trip_status_changed",
            extra={"trip_id": trip_id, "from_status": "draft", "to_status": "ongoing"},
        )

        [record] = lines()
        assert record["trip_id"] == str(trip_id)
        assert (record["from_status"], record["to_status"]) == ("draft", "ongoing")

    def test_per_call_ids_survive_bound_operation(self, lines):
        old_trip, new_trip = uuid4(), uuid4()
        with LogContext.bind(operation="update_expense"):
            for trip_id in (old_trip, new_trip):
                get_logger("services.reconciliation").info(
                    "trip_reconciled", extra={"trip_id": str(trip_id)},
                )

        assert [r["trip_id"] for r in lines()] == [str(old_trip), str(new_trip)]
        assert {r["operation"] for r in lines()} == {"update_expense"}

    def test_bound_operation_beats_extra(self, lines):
        with LogContext.bind(operation="delete_trip"):
            get_logger("test").info("msg", extra={"operation": "something_else"})

        assert lines()[0]["operation"] == "delete_trip"

    def test_money_dates_and_sets(self, lines):
        get_logger("selectors.report").info(
            "report_built",
            extra={
                "total_expense": Decimal("2650000.00"),
                "period_start": date(2026, 1, 1),
                "statuses": {"ongoing", "draft"},
            },
        )

        [record] = lines()
        assert record["total_expense"] == "2650000.00"
        assert record["period_start"] == "2026-01-01"
        assert record["statuses"] == ["draft", "ongoing"]

    def test_transition_error_attributes(self, lines):
        try:
            raise InvalidTransitionError("t-1", "draft", "completed")
        except InvalidTransitionError:
            get_logger("services.trip").warning("transition_rejected", exc_info=True)

        [record] = lines()
        assert record["exc_type"] == "InvalidTransitionError"
        assert record["exc_code"] == "INVALID_TRANSITION"
        assert record["exc_current_status"] == "draft"
        assert record["exc_target_status"] == "completed"
        assert "Traceback" in record["traceback"]

    def test_integrity_error_attributes(self, lines):
        vehicle_id = uuid4()
        try:
            raise ReferentialIntegrityError("Vehicle", vehicle_id, "trip")
        except ReferentialIntegrityError:
            get_logger("services.vehicle").warning("delete_blocked", exc_info=True)

        [record] = lines()
        assert record["exc_code"] == "REFERENTIAL_INTEGRITY"
        assert record["exc_referenced_by"] == "trip"

    def test_plain_exception_has_no_code(self, lines):
        try:
            raise ValueError("bad amount")
        except ValueError:
            get_logger("test").error("failed", exc_info=True)

        [record] = lines()
        assert record["exc_message"] == "bad amount"
        assert "exc_code" not in record

    def test_no_context_keys_when_unbound(self, lines):
        get_logger("test").info("bare")

        assert not set(CONTEXT_FIELDS) & set(lines()[0])


class TestLogContext:

    def test_fields(self):
        assert CONTEXT_FIELDS == ("correlation_id", "actor_id", "operation")

    @pytest.mark.parametrize("name", ["trip_id", "expense_id", "operaton"])
    def test_unknown_field_rejected(self, name):
        with pytest.raises(TypeError):
            LogContext.set(**{name: "x"})
        with pytest.raises(TypeError):
            LogContext.get(name)

    def test_none_leaves_field_unchanged(self):
        LogContext.set(actor_id="7")
        LogContext.set(actor_id=None, operation="create_trip")

        assert LogContext.get_all() == {"actor_id": "7", "operation": "create_trip"}

    def test_nested_bind_restores_each_level(self):
        with LogContext.bind(correlation_id="req-1", operation="create_expense"):
            with LogContext.bind(operation="reconcile", actor_id=3):
                assert LogContext.get_all() == {
                    "correlation_id": "req-1", "operation": "reconcile", "actor_id": "3",
                }
            assert LogContext.get_all() == {
                "correlation_id": "req-1", "operation": "create_expense",
            }
        assert LogContext.get_all() == {}

    def test_bind_restores_after_error(self):
        with pytest.raises(RuntimeError):
            with LogContext.bind(operation="delete_trip"):
                raise RuntimeError("boom")

        assert LogContext.get("operation") is None

    def test_correlation_ids_are_unique_hex(self):
        first, second = new_correlation_id(), new_correlation_id()

        assert first != second
        assert len(first) == 32
        int(first, 16)


class TestConfigureLogging:

    def test_second_call_keeps_first_handler(self):
        first, second = StringIO(), StringIO()
        configure_logging(stream=first)
        configure_logging(stream=second)

        get_logger("test").info("once")

        assert len(_structured_handlers()) == 1
        assert "once" in first.getvalue()
        assert second.getvalue() == ""

    def test_kernel_logger_does_not_propagate(self, lines):
        assert logging.getLogger("fleet_kernel").propagate is False

    def test_level_by_name(self):
        stream = StringIO()
        configure_logging(level="DEBUG", stream=stream)

        get_logger("db.engine").debug("transaction_rolled_back")

        assert json.loads(stream.getvalue())["level"] == "DEBUG"

    def test_default_level_drops_debug(self, lines):
        get_logger("test").debug("noise")
        get_logger("test").info("kept")

        assert [r["message"] for r in lines()] == ["kept"]

    def test_reset_allows_reconfigure(self):
        configure_logging(stream=StringIO())
        reset_logging()

        assert _structured_handlers() == []
        stream = StringIO()
        configure_logging(stream=stream)
        get_logger("test").info("again")
        assert "again" in stream.getvalue()
