"""
Service layer for Customer master data.

Phone numbers are unique among live customers.  Customers referenced by a
live trip cannot be deleted.
"""

from __future__ import annotations

from typing import Any
from uuid import UUID

from sqlalchemy import func, or_

from fleet_kernel.domain.dtos import CustomerInfo
from fleet_kernel.domain.validation import FieldValidator
from fleet_kernel.exceptions import ReferentialIntegrityError
from fleet_kernel.logging_config import get_logger
from fleet_kernel.models.customer import Customer
from fleet_kernel.models.trip import Trip
from fleet_kernel.services.base import BaseService

logger = get_logger("services.customer")


class CustomerService(BaseService[Customer]):
    model = Customer
    entity_name = "Customer"

    def _to_dto(self, customer: Customer) -> CustomerInfo:
        return CustomerInfo(
            id=customer.id,
            name=customer.name,
            phone=customer.phone,
            address=customer.address,
            is_active=customer.is_active,
        )

    def _validate(
        self, exclude_id: UUID | None, name: Any, phone: Any, address: Any,
    ) -> dict[str, Any]:
        v = FieldValidator()
        cleaned = {
            "name": v.required_text("name", name, 100),
            "phone": v.required_text("phone", phone, 20),
            "address": v.optional_text("address", address),
        }
        if cleaned["phone"] is not None:
            stmt = self._live().where(Customer.phone == cleaned["phone"])
            if exclude_id is not None:
                stmt = stmt.where(Customer.id != exclude_id)
            if self._has_live(stmt):
                v.add("phone", "phone has already been taken.")
        v.raise_if_errors()
        return cleaned

    def create_customer(
        self, name: Any, phone: Any, address: Any = None, is_active: bool = True,
    ) -> CustomerInfo:
        cleaned = self._validate(None, name, phone, address)
        customer = Customer(**cleaned, is_active=bool(is_active))
        self.session.add(customer)
        self.session.flush()

        logger.info("customer_created", extra={"customer_id": str(customer.id)})
        return self._to_dto(customer)

    def update_customer(
        self,
        customer_id: UUID,
        name: Any,
        phone: Any,
        address: Any = None,
        is_active: bool = True,
    ) -> CustomerInfo:
        customer = self._get_live(customer_id)
        cleaned = self._validate(customer.id, name, phone, address)
        for field_name, value in cleaned.items():
            setattr(customer, field_name, value)
        customer.is_active = bool(is_active)
        self.session.flush()

        logger.info("customer_updated", extra={"customer_id": str(customer.id)})
        return self._to_dto(customer)

    def delete_customer(self, customer_id: UUID) -> None:
        """
        Soft-delete a customer.

        Raises:
            ReferentialIntegrityError: If a live trip is for this customer.
        """
        customer = self._get_live(customer_id)
        if self._has_live(self._live(Trip).where(Trip.customer_id == customer.id)):
            raise ReferentialIntegrityError("Customer", customer.id, "trip")
        self._soft_delete(customer)
        logger.info("customer_deleted", extra={"customer_id": str(customer.id)})

    def get_customer(self, customer_id: UUID) -> CustomerInfo:
        return self._to_dto(self._get_live(customer_id))

    def list_customers(
        self, active_only: bool = False, search: str | None = None,
    ) -> list[CustomerInfo]:
        stmt = self._live()
        if active_only:
            stmt = stmt.where(Customer.is_active.is_(True))
        if search:
            pattern = f"%{search.strip().lower()}%"
            stmt = stmt.where(or_(
                func.lower(Customer.name).like(pattern),
                Customer.phone.like(pattern),
            ))
        stmt = stmt.order_by(Customer.name)
        return [self._to_dto(c) for c in self.session.execute(stmt).scalars()]
