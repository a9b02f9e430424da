"""
Form-field validation helpers.

Pure checks with no I/O.  Services feed raw request values through a
``FieldValidator``, which cleans each value, records a message per failing
field and raises a single ``ValidationError`` carrying the whole field map.
Nothing is persisted until ``raise_if_errors()`` has passed.
"""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any
from uuid import UUID

from fleet_kernel.db.types import to_money
from fleet_kernel.exceptions import ValidationError


def normalize_whitespace(value: str) -> str:
    return " ".join(value.strip().split())


class FieldValidator:
    """Collects field errors; the first error recorded for a field wins."""

    def __init__(self) -> None:
        self.errors: dict[str, str] = {}

    def add(self, field: str, message: str) -> None:
        self.errors.setdefault(field, message)

    def required_text(self, field: str, value: Any, max_len: int) -> str | None:
        cleaned = normalize_whitespace(value) if isinstance(value, str) else ""
        if not cleaned:
            self.add(field, f"{field} is required.")
            return None
        if len(cleaned) > max_len:
            self.add(field, f"{field} must be {max_len} characters or fewer.")
            return None
        return cleaned

    def optional_text(self, field: str, value: Any, max_len: int | None = None) -> str | None:
        if value is None:
            return None
        if not isinstance(value, str):
            self.add(field, f"{field} must be text.")
            return None
        cleaned = value.strip()
        if not cleaned:
            return None
        if max_len is not None and len(cleaned) > max_len:
            self.add(field, f"{field} must be {max_len} characters or fewer.")
            return None
        return cleaned

    def required_date(self, field: str, value: Any) -> date | None:
        if value is None or value == "":
            self.add(field, f"{field} is required.")
            return None
        return self._to_date(field, value)

    def optional_date(self, field: str, value: Any) -> date | None:
        if value is None or value == "":
            return None
        return self._to_date(field, value)

    def _to_date(self, field: str, value: Any) -> date | None:
        if isinstance(value, datetime):
            return value.date()
        if isinstance(value, date):
            return value
        try:
            return date.fromisoformat(str(value).strip())
        except ValueError:
            self.add(field, f"{field} must be a valid date (YYYY-MM-DD).")
            return None

    def required_amount(self, field: str, value: Any) -> Decimal | None:
        if value is None or value == "":
            self.add(field, f"{field} is required.")
            return None
        return self.optional_amount(field, value)

    def optional_amount(self, field: str, value: Any) -> Decimal | None:
        if value is None or value == "":
            return None
        if isinstance(value, bool):
            self.add(field, f"{field} must be numeric.")
            return None
        try:
            amount = to_money(value)
        except (InvalidOperation, ValueError):
            self.add(field, f"{field} must be numeric.")
            return None
        if not amount.is_finite():
            self.add(field, f"{field} must be numeric.")
            return None
        if amount < 0:
            self.add(field, f"{field} must be at least 0.")
            return None
        return amount

    def optional_int(
        self,
        field: str,
        value: Any,
        min_value: int | None = None,
        max_value: int | None = None,
    ) -> int | None:
        if value is None or value == "":
            return None
        if isinstance(value, bool):
            self.add(field, f"{field} must be a whole number.")
            return None
        try:
            number = int(str(value).strip())
        except ValueError:
            self.add(field, f"{field} must be a whole number.")
            return None
        if min_value is not None and number < min_value:
            self.add(field, f"{field} must be at least {min_value}.")
            return None
        if max_value is not None and number > max_value:
            self.add(field, f"{field} must be at most {max_value}.")
            return None
        return number

    def optional_uuid(self, field: str, value: Any) -> UUID | None:
        if value is None or value == "":
            return None
        if isinstance(value, UUID):
            return value
        try:
            return UUID(str(value))
        except ValueError:
            self.add(field, f"{field} is not a valid reference.")
            return None

    def required_uuid(self, field: str, value: Any) -> UUID | None:
        if value is None or value == "":
            self.add(field, f"{field} is required.")
            return None
        return self.optional_uuid(field, value)

    def raise_if_errors(self) -> None:
        if self.errors:
            raise ValidationError(self.errors)
