"""
Config -> kernel bridges.

Convert a FleetConfig into kernel inputs.  These live here because the
kernel must never import fleet_config.

Usage:
    config = get_active_config()
    policy = build_expense_policy(config)
    expenses = ExpenseService(session, policy)
"""

from __future__ import annotations

from fleet_config.schema import FleetConfig
from fleet_kernel.domain.expense_rules import (
    CategoryKindRule,
    ExpenseRulePolicy,
    VehicleSource,
)


def build_expense_policy(config: FleetConfig) -> ExpenseRulePolicy:
    """Build the category-kind rule table the expense service checks."""
    rules = {
        definition.kind: CategoryKindRule(
            kind=definition.kind,
            vehicle=VehicleSource(definition.vehicle),
            trip_required=definition.trip == "required",
            label=definition.label,
        )
        for definition in config.category_kinds
    }
    return ExpenseRulePolicy(rules=rules, enabled_kinds=config.enabled_kinds)
