"""
Module: fleet_kernel.selectors.base
Responsibility: Abstract base class for read-only query selectors (reports).
Architecture position: Kernel > Selectors.  May import from db/, models/ and
    domain/.  MUST NOT import from services/ or outer layers.

Invariants enforced:
    - Read-only: selectors never add, flush, commit or delete.
    - Soft-deleted rows are filtered the same way as in the services
      (``fleet_kernel.services.base.live`` semantics, re-stated here so the
      read side does not depend on the write side).
    - Selectors return frozen dataclasses, not ORM rows.
"""

from abc import ABC

from sqlalchemy import Select
from sqlalchemy.orm import Session

from fleet_kernel.domain.clock import Clock, SystemClock


class BaseSelector(ABC):
    """
    Abstract base class for all selectors.

    Contract:
        Selectors accept a Session from the caller, perform read-only queries,
        and return DTOs or computed results.
    """

    def __init__(self, session: Session, clock: Clock | None = None):
        self.session = session
        self.clock = clock or SystemClock()

    @staticmethod
    def _live(stmt: Select, *models) -> Select:
        for model in models:
            stmt = stmt.where(model.deleted_at.is_(None))
        return stmt
