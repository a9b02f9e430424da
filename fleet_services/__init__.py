"""
fleet_services -- request-facing operations over the fleet kernel.

Usage:
    from fleet_services import FleetOperations

    ops = FleetOperations()
    result = ops.create_expense(expense_date="2026-01-15", category_id=..., amount="500000")
    if not result.is_success:
        show(result.message, result.errors)
"""

from fleet_services.operations import FleetOperations, OperationResult, OperationStatus

__all__ = ["FleetOperations", "OperationResult", "OperationStatus"]
