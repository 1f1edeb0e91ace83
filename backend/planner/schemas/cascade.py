"""
Pydantic schemas for cascade reports and derived records.
"""

from datetime import datetime
from decimal import Decimal
from typing import Literal, Optional

from pydantic import BaseModel

from planner.schemas.guest import GuestResponse

CascadeModule = Literal["hotel", "transport", "budget"]
CascadeActionKind = Literal["created", "updated", "deleted", "recalculated", "failed"]


class CascadeAction(BaseModel):
    module: CascadeModule
    action: CascadeActionKind
    count: int


class GuestMutationResponse(BaseModel):
    guest: GuestResponse
    cascade: list[CascadeAction]


class BulkGuestResponse(BaseModel):
    count: int
    guests: list[GuestResponse]
    cascade: list[CascadeAction]


class DeleteResponse(BaseModel):
    success: bool


class HotelRecordResponse(BaseModel):
    id: str
    client_id: str
    guest_id: Optional[str]
    primary_guest_id: Optional[str]
    guest_name: str
    hotel_name: Optional[str]
    room_type: Optional[str]
    check_in_date: Optional[str]
    check_out_date: Optional[str]
    accommodation_needed: bool
    party_size: int
    updated_at: datetime

    model_config = {"from_attributes": True}


class TransportRecordResponse(BaseModel):
    id: str
    client_id: str
    guest_id: Optional[str]
    primary_guest_id: Optional[str]
    guest_name: str
    leg_type: str
    leg_sequence: int
    pickup_date: Optional[str]
    pickup_time: Optional[str]
    pickup_from: Optional[str]
    drop_to: Optional[str]
    vehicle_info: Optional[str]
    transport_status: str
    notes: Optional[str]
    updated_at: datetime

    model_config = {"from_attributes": True}


class ReconcileResponse(BaseModel):
    updated_item_count: int


class BudgetItemResponse(BaseModel):
    id: str
    client_id: str
    category: str
    item: Optional[str]
    is_per_guest_item: bool
    per_guest_cost: Optional[Decimal]
    guest_count: int
    estimated_cost: Decimal
    actual_cost: Optional[Decimal]

    model_config = {"from_attributes": True}
