from planner.models.tenant import Company, Client
from planner.models.guest import Guest, RSVP_STATUSES
from planner.models.derived import HotelRecord, TransportRecord
from planner.models.budget import BudgetItem

__all__ = [
    "Company", "Client",
    "Guest", "RSVP_STATUSES",
    "HotelRecord", "TransportRecord",
    "BudgetItem",
]
