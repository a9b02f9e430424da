"""Domain models for the fleet kernel."""

from fleet_kernel.models.customer import Customer
from fleet_kernel.models.delivery_checklist import DeliveryChecklist
from fleet_kernel.models.expense import Expense
from fleet_kernel.models.expense_category import ExpenseCategory
from fleet_kernel.models.location import Location
from fleet_kernel.models.trip import Trip
from fleet_kernel.models.vehicle import Vehicle

__all__ = [
    "Customer",
    "DeliveryChecklist",
    "Expense",
    "ExpenseCategory",
    "Location",
    "Trip",
    "Vehicle",
]
