"""Service layer for the delivery-document checklist."""

from __future__ import annotations

from datetime import date
from typing import Any
from uuid import UUID

from fleet_kernel.domain.dtos import DeliveryChecklistInfo
from fleet_kernel.domain.lifecycle import ChecklistStatus
from fleet_kernel.domain.validation import FieldValidator
from fleet_kernel.logging_config import get_logger
from fleet_kernel.models.delivery_checklist import DeliveryChecklist
from fleet_kernel.services.base import BaseService

logger = get_logger("services.delivery_checklist")


class DeliveryChecklistService(BaseService[DeliveryChecklist]):
    model = DeliveryChecklist
    entity_name = "Delivery checklist"

    def _to_dto(self, checklist: DeliveryChecklist) -> DeliveryChecklistInfo:
        return DeliveryChecklistInfo(
            id=checklist.id,
            document_number=checklist.document_number,
            document_date=checklist.document_date,
            status=checklist.status,
            completed_at=checklist.completed_at,
            notes=checklist.notes,
        )

    def _validate(self, document_number: Any, document_date: Any, notes: Any) -> dict[str, Any]:
        v = FieldValidator()
        cleaned = {
            "document_number": v.required_text("document_number", document_number, 50),
            "document_date": v.required_date("document_date", document_date),
            "notes": v.optional_text("notes", notes),
        }
        v.raise_if_errors()
        return cleaned

    def create_checklist(
        self, document_number: Any, document_date: Any, notes: Any = None,
    ) -> DeliveryChecklistInfo:
        checklist = DeliveryChecklist(
            **self._validate(document_number, document_date, notes),
            status=ChecklistStatus.PENDING.value,
        )
        self.session.add(checklist)
        self.session.flush()

        logger.info("checklist_created", extra={"checklist_id": str(checklist.id)})
        return self._to_dto(checklist)

    def update_checklist(
        self,
        checklist_id: UUID,
        document_number: Any,
        document_date: Any,
        notes: Any = None,
    ) -> DeliveryChecklistInfo:
        checklist = self._get_live(checklist_id)
        for name, value in self._validate(document_number, document_date, notes).items():
            setattr(checklist, name, value)
        self.session.flush()
        return self._to_dto(checklist)

    def toggle(self, checklist_id: UUID) -> DeliveryChecklistInfo:
        """
        Flip pending <-> completed.

        Completing stamps ``completed_at``; reopening clears it.
        """
        checklist = self._get_live(checklist_id)
        if checklist.status == ChecklistStatus.COMPLETED.value:
            checklist.status = ChecklistStatus.PENDING.value
            checklist.completed_at = None
        else:
            checklist.status = ChecklistStatus.COMPLETED.value
            checklist.completed_at = self.clock.now()
        self.session.flush()

        logger.info(
            "checklist_toggled",
            extra={"checklist_id": str(checklist.id), "status": checklist.status},
        )
        return self._to_dto(checklist)

    def delete_checklist(self, checklist_id: UUID) -> None:
        self._soft_delete(self._get_live(checklist_id))
        logger.info("checklist_deleted", extra={"checklist_id": str(checklist_id)})

    def get_checklist(self, checklist_id: UUID) -> DeliveryChecklistInfo:
        return self._to_dto(self._get_live(checklist_id))

    def list_checklists(
        self,
        start_date: date | None = None,
        end_date: date | None = None,
        status: str | None = None,
    ) -> list[DeliveryChecklistInfo]:
        stmt = self._live()
        if start_date is not None:
            stmt = stmt.where(DeliveryChecklist.document_date >= start_date)
        if end_date is not None:
            stmt = stmt.where(DeliveryChecklist.document_date <= end_date)
        if status:
            stmt = stmt.where(DeliveryChecklist.status == status)
        stmt = stmt.order_by(
            DeliveryChecklist.document_date.desc(), DeliveryChecklist.created_at.desc(),
        )
        return [self._to_dto(c) for c in self.session.execute(stmt).scalars()]
