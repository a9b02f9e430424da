"""
Trip lifecycle -- status enums and the allowed-transitions table.

Responsibility:
    Single source of truth for which trip status changes are legal.
    TripService consults ``can_transition()`` for every ordinary status
    request; only the privileged override bypasses it.

Architecture position:
    Kernel > Domain -- pure, zero I/O.

State machine::

    draft ----> ongoing ----> completed
      |            |
      +------------+--------> cancelled

    completed and cancelled are terminal.

Allowance settlement is a separate one-way flag (unsettled -> settled) that
does not depend on the primary status.
"""

from __future__ import annotations

from enum import Enum
from types import MappingProxyType


class TripStatus(str, Enum):
    """Primary lifecycle status of a trip."""

    DRAFT = "draft"
    ONGOING = "ongoing"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class SettlementStatus(str, Enum):
    """Allowance cash-return reconciliation status."""

    UNSETTLED = "unsettled"
    SETTLED = "settled"


class ChecklistStatus(str, Enum):
    """Delivery document checklist status."""

    PENDING = "pending"
    COMPLETED = "completed"


ALLOWED_TRANSITIONS: MappingProxyType[TripStatus, frozenset[TripStatus]] = MappingProxyType({
    TripStatus.DRAFT: frozenset({TripStatus.ONGOING, TripStatus.CANCELLED}),
    TripStatus.ONGOING: frozenset({TripStatus.COMPLETED, TripStatus.CANCELLED}),
    TripStatus.COMPLETED: frozenset(),
    TripStatus.CANCELLED: frozenset(),
})

# Statuses in which expenses may still be attached to a trip
OPEN_STATUSES: frozenset[TripStatus] = frozenset({TripStatus.DRAFT, TripStatus.ONGOING})


def parse_status(value: str | TripStatus) -> TripStatus | None:
    """Return the TripStatus for a request value, or None if unknown."""
    if isinstance(value, TripStatus):
        return value
    try:
        return TripStatus(str(value).strip().lower())
    except ValueError:
        return None


def can_transition(current: TripStatus | str, target: TripStatus | str) -> bool:
    """
    Check a status change against the transitions table.

    Same-status requests are not in the table and return False.
    """
    return TripStatus(target) in ALLOWED_TRANSITIONS[TripStatus(current)]


def is_terminal(status: TripStatus | str) -> bool:
    """Terminal statuses have no outbound transitions."""
    return not ALLOWED_TRANSITIONS[TripStatus(status)]


def is_editable(status: TripStatus | str) -> bool:
    """Trip fields may only be edited while the trip is a draft."""
    return TripStatus(status) == TripStatus.DRAFT
