from planner.schemas.guest import (
    GuestCreate, GuestUpdate, GuestResponse, GuestStats,
    PartyMemberHotelCommand, PartyMemberTransportCommand,
    RsvpUpdate, CheckInUpdate,
)
from planner.schemas.cascade import (
    CascadeAction, GuestMutationResponse, BulkGuestResponse, DeleteResponse,
    HotelRecordResponse, TransportRecordResponse, ReconcileResponse, BudgetItemResponse,
)

__all__ = [
    "GuestCreate", "GuestUpdate", "GuestResponse", "GuestStats",
    "PartyMemberHotelCommand", "PartyMemberTransportCommand",
    "RsvpUpdate", "CheckInUpdate",
    "CascadeAction", "GuestMutationResponse", "BulkGuestResponse", "DeleteResponse",
    "HotelRecordResponse", "TransportRecordResponse", "ReconcileResponse", "BudgetItemResponse",
]
