"""Write-side services for the fleet kernel.

Services flush within the caller's session and never commit.
"""

from fleet_kernel.services.customer_service import CustomerService
from fleet_kernel.services.delivery_checklist_service import DeliveryChecklistService
from fleet_kernel.services.expense_category_service import ExpenseCategoryService
from fleet_kernel.services.expense_service import ExpenseService
from fleet_kernel.services.location_service import LocationService
from fleet_kernel.services.reconciliation_service import ReconciliationService
from fleet_kernel.services.trip_service import TripService
from fleet_kernel.services.vehicle_service import VehicleService

__all__ = [
    "CustomerService",
    "DeliveryChecklistService",
    "ExpenseCategoryService",
    "ExpenseService",
    "LocationService",
    "ReconciliationService",
    "TripService",
    "VehicleService",
]
