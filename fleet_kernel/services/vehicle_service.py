"""
Service layer for Vehicle master data.

Returns VehicleInfo DTOs instead of ORM entities.  Plate numbers are unique
among live vehicles; a vehicle still used by a live trip cannot be deleted.
"""

from __future__ import annotations

from typing import Any
from uuid import UUID

from sqlalchemy import func, or_

from fleet_kernel.domain.dtos import VehicleInfo
from fleet_kernel.domain.validation import FieldValidator
from fleet_kernel.exceptions import ReferentialIntegrityError
from fleet_kernel.logging_config import get_logger
from fleet_kernel.models.trip import Trip
from fleet_kernel.models.vehicle import Vehicle
from fleet_kernel.services.base import BaseService

logger = get_logger("services.vehicle")

MIN_VEHICLE_YEAR = 1900


class VehicleService(BaseService[Vehicle]):
    """CRUD for trucks with live-plate uniqueness and a trip delete guard."""

    model = Vehicle
    entity_name = "Vehicle"

    def _to_dto(self, vehicle: Vehicle) -> VehicleInfo:
        return VehicleInfo(
            id=vehicle.id,
            plate_number=vehicle.plate_number,
            vehicle_type=vehicle.vehicle_type,
            brand=vehicle.brand,
            year=vehicle.year,
            capacity_tons=vehicle.capacity_tons,
            is_active=vehicle.is_active,
            notes=vehicle.notes,
        )

    def _validate(
        self,
        exclude_id: UUID | None,
        plate_number: Any,
        vehicle_type: Any,
        brand: Any,
        year: Any,
        capacity_tons: Any,
        notes: Any,
    ) -> dict[str, Any]:
        v = FieldValidator()
        cleaned = {
            "plate_number": v.required_text("plate_number", plate_number, 20),
            "vehicle_type": v.required_text("vehicle_type", vehicle_type, 50),
            "brand": v.optional_text("brand", brand, 50),
            "year": v.optional_int(
                "year", year,
                min_value=MIN_VEHICLE_YEAR,
                max_value=self.clock.today().year + 1,
            ),
            "capacity_tons": v.optional_amount("capacity_tons", capacity_tons),
            "notes": v.optional_text("notes", notes),
        }
        plate = cleaned["plate_number"]
        if plate is not None and self._plate_taken(plate, exclude_id):
            v.add("plate_number", "plate_number has already been taken.")
        v.raise_if_errors()
        return cleaned

    def _plate_taken(self, plate_number: str, exclude_id: UUID | None) -> bool:
        stmt = self._live().where(
            func.upper(Vehicle.plate_number) == plate_number.upper()
        )
        if exclude_id is not None:
            stmt = stmt.where(Vehicle.id != exclude_id)
        return self._has_live(stmt)

    def create_vehicle(
        self,
        plate_number: Any,
        vehicle_type: Any,
        brand: Any = None,
        year: Any = None,
        capacity_tons: Any = None,
        notes: Any = None,
        is_active: bool = True,
    ) -> VehicleInfo:
        """
        Register a new vehicle.

        Raises:
            ValidationError: On missing/oversized fields, a year outside
                1900..next year, negative capacity, or a plate already used
                by a live vehicle.
        """
        cleaned = self._validate(
            None, plate_number, vehicle_type, brand, year, capacity_tons, notes,
        )
        vehicle = Vehicle(**cleaned, is_active=bool(is_active))
        self.session.add(vehicle)
        self.session.flush()

        logger.info(
            "vehicle_created",
            extra={"vehicle_id": str(vehicle.id), "plate_number": vehicle.plate_number},
        )
        return self._to_dto(vehicle)

    def update_vehicle(
        self,
        vehicle_id: UUID,
        plate_number: Any,
        vehicle_type: Any,
        brand: Any = None,
        year: Any = None,
        capacity_tons: Any = None,
        notes: Any = None,
        is_active: bool = True,
    ) -> VehicleInfo:
        """Replace a vehicle's editable fields (full form submit)."""
        vehicle = self._get_live(vehicle_id)
        cleaned = self._validate(
            vehicle.id, plate_number, vehicle_type, brand, year, capacity_tons, notes,
        )
        for name, value in cleaned.items():
            setattr(vehicle, name, value)
        vehicle.is_active = bool(is_active)
        self.session.flush()

        logger.info("vehicle_updated", extra={"vehicle_id": str(vehicle.id)})
        return self._to_dto(vehicle)

    def delete_vehicle(self, vehicle_id: UUID) -> None:
        """
        Soft-delete a vehicle.

        Raises:
            NotFoundError: If the vehicle is missing or already deleted.
            ReferentialIntegrityError: If a live trip still uses it.
        """
        vehicle = self._get_live(vehicle_id)
        if self._has_live(self._live(Trip).where(Trip.vehicle_id == vehicle.id)):
            raise ReferentialIntegrityError("Vehicle", vehicle.id, "trip")
        self._soft_delete(vehicle)
        logger.info("vehicle_deleted", extra={"vehicle_id": str(vehicle.id)})

    def get_vehicle(self, vehicle_id: UUID) -> VehicleInfo:
        return self._to_dto(self._get_live(vehicle_id))

    def list_vehicles(
        self, active_only: bool = False, search: str | None = None,
    ) -> list[VehicleInfo]:
        """
        Live vehicles ordered by plate number.

        ``search`` matches plate number, type or brand (case-insensitive).
        """
        stmt = self._live()
        if active_only:
            stmt = stmt.where(Vehicle.is_active.is_(True))
        if search:
            pattern = f"%{search.strip().lower()}%"
            stmt = stmt.where(or_(
                func.lower(Vehicle.plate_number).like(pattern),
                func.lower(Vehicle.vehicle_type).like(pattern),
                func.lower(Vehicle.brand).like(pattern),
            ))
        stmt = stmt.order_by(Vehicle.plate_number)
        return [self._to_dto(v) for v in self.session.execute(stmt).scalars()]
