"""
BaseService -- abstract base for all kernel services.

Responsibility:
    Common constructor, flush-only session contract and the single
    soft-delete visibility rule shared by every fleet service.

Architecture position:
    Kernel > Services -- imperative shell.  Every service in
    ``fleet_kernel/services/`` that writes extends this class.

Invariants enforced:
    - Services flush within the caller's transaction and never commit or
      roll back.  ``session_scope()`` (or the test harness) owns that.
    - Soft-deleted rows are invisible: every lookup goes through ``_live()``
      or ``_get_live()``, never a bare ``session.get()``.

Failure modes:
    - NotFoundError from ``_get_live()`` for missing or soft-deleted rows.
"""

from abc import ABC
from typing import Any, Generic, TypeVar
from uuid import UUID

from sqlalchemy import Select, select
from sqlalchemy.orm import Session

from fleet_kernel.db.base import TrackedBase
from fleet_kernel.domain.clock import Clock, SystemClock
from fleet_kernel.exceptions import NotFoundError

ModelType = TypeVar("ModelType", bound=TrackedBase)


def live(stmt: Select, *models: type[TrackedBase]) -> Select:
    """Add the soft-delete filter for each model to a SELECT."""
    for model in models:
        stmt = stmt.where(model.deleted_at.is_(None))
    return stmt


class BaseService(ABC, Generic[ModelType]):
    """
    Abstract base class for all kernel services.

    Contract:
        Accepts a SQLAlchemy ``Session`` from the caller and uses
        ``session.flush()`` to persist changes within the active
        transaction.

    Guarantees:
        - Never calls ``session.commit()`` or ``session.rollback()``.
        - Stamps times from the injected clock only.
    """

    model: type[ModelType]
    entity_name: str = "Record"

    def __init__(self, session: Session, clock: Clock | None = None):
        self.session = session
        self.clock = clock or SystemClock()

    def _live(self, model: type[TrackedBase] | None = None) -> Select:
        target = model or self.model
        return live(select(target), target)

    def _find_live(self, model: type[TrackedBase], entity_id: Any) -> Any | None:
        if entity_id is None:
            return None
        if not isinstance(entity_id, UUID):
            try:
                entity_id = UUID(str(entity_id))
            except ValueError:
                return None
        row = self.session.get(model, entity_id)
        if row is None or row.deleted_at is not None:
            return None
        return row

    def _get_live(self, entity_id: Any) -> ModelType:
        """Get a live row of this service's model, raising if not found."""
        row = self._find_live(self.model, entity_id)
        if row is None:
            raise NotFoundError(self.entity_name, entity_id)
        return row

    def _soft_delete(self, row: TrackedBase) -> None:
        row.deleted_at = self.clock.now()
        self.session.flush()

    def _has_live(self, stmt: Select) -> bool:
        return self.session.execute(stmt.limit(1)).first() is not None
