"""Service layer for Location (city) master data."""

from __future__ import annotations

from typing import Any
from uuid import UUID

from sqlalchemy import func, or_

from fleet_kernel.domain.dtos import LocationInfo
from fleet_kernel.domain.validation import FieldValidator
from fleet_kernel.exceptions import ReferentialIntegrityError
from fleet_kernel.logging_config import get_logger
from fleet_kernel.models.location import Location
from fleet_kernel.models.trip import Trip
from fleet_kernel.services.base import BaseService

logger = get_logger("services.location")


class LocationService(BaseService[Location]):
    model = Location
    entity_name = "Location"

    def _to_dto(self, location: Location) -> LocationInfo:
        return LocationInfo(
            id=location.id,
            city_name=location.city_name,
            is_active=location.is_active,
        )

    def _clean(self, city_name: Any) -> str:
        v = FieldValidator()
        cleaned = v.required_text("city_name", city_name, 100)
        v.raise_if_errors()
        return cleaned

    def create_location(self, city_name: Any, is_active: bool = True) -> LocationInfo:
        location = Location(city_name=self._clean(city_name), is_active=bool(is_active))
        self.session.add(location)
        self.session.flush()

        logger.info("location_created", extra={"location_id": str(location.id)})
        return self._to_dto(location)

    def update_location(
        self, location_id: UUID, city_name: Any, is_active: bool = True,
    ) -> LocationInfo:
        location = self._get_live(location_id)
        location.city_name = self._clean(city_name)
        location.is_active = bool(is_active)
        self.session.flush()

        logger.info("location_updated", extra={"location_id": str(location.id)})
        return self._to_dto(location)

    def delete_location(self, location_id: UUID) -> None:
        """
        Soft-delete a location.

        Raises:
            ReferentialIntegrityError: If a live trip starts or ends here.
        """
        location = self._get_live(location_id)
        in_use = self._live(Trip).where(or_(
            Trip.origin_id == location.id,
            Trip.destination_id == location.id,
        ))
        if self._has_live(in_use):
            raise ReferentialIntegrityError("Location", location.id, "trip")
        self._soft_delete(location)
        logger.info("location_deleted", extra={"location_id": str(location.id)})

    def get_location(self, location_id: UUID) -> LocationInfo:
        return self._to_dto(self._get_live(location_id))

    def list_locations(
        self, active_only: bool = False, search: str | None = None,
    ) -> list[LocationInfo]:
        stmt = self._live()
        if active_only:
            stmt = stmt.where(Location.is_active.is_(True))
        if search:
            stmt = stmt.where(
                func.lower(Location.city_name).like(f"%{search.strip().lower()}%")
            )
        stmt = stmt.order_by(Location.city_name)
        return [self._to_dto(loc) for loc in self.session.execute(stmt).scalars()]
