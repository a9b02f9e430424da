"""Read-only selectors (reports) for the fleet kernel."""

from fleet_kernel.selectors.report_selector import (
    AllowanceReport,
    ReportSelector,
    VehicleExpenseReport,
    default_period,
)

__all__ = [
    "AllowanceReport",
    "ReportSelector",
    "VehicleExpenseReport",
    "default_period",
]
