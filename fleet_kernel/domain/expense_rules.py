"""
Expense category rules -- which references an expense must carry.

Responsibility:
    Turns a category ``kind`` into the vehicle/trip requirements that
    ExpenseService checks on every create and update.  The rule table is
    data: fleet_config builds an ``ExpenseRulePolicy`` from YAML through
    ``fleet_config.bridges.build_expense_policy`` and the kernel only reads
    it.

Architecture position:
    Kernel > Domain -- pure, zero I/O.  MUST NOT import fleet_config.

Default table (fleet_config/defaults.yaml)::

    kind          vehicle     trip
    maintenance   required    optional
    trip          derived     required     (legacy, disabled by default)
    general       optional    optional
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class VehicleSource(str, Enum):
    """How an expense gets its vehicle."""

    REQUIRED = "required"    # caller must supply a live vehicle
    OPTIONAL = "optional"    # caller may supply one
    DERIVED = "derived"      # copied from the trip; caller input ignored


@dataclass(frozen=True)
class CategoryKindRule:
    kind: str
    vehicle: VehicleSource
    trip_required: bool = False
    label: str | None = None


@dataclass(frozen=True)
class ExpenseRulePolicy:
    """
    The full rule table plus the set of kinds new categories may use.

    Kinds that are known but not enabled still resolve in ``rule_for`` so
    that existing rows of a retired kind keep validating.
    """

    rules: dict[str, CategoryKindRule] = field(default_factory=dict)
    enabled_kinds: frozenset[str] = frozenset()

    def rule_for(self, kind: str) -> CategoryKindRule | None:
        return self.rules.get(kind)

    def is_enabled(self, kind: str) -> bool:
        return kind in self.enabled_kinds and kind in self.rules
