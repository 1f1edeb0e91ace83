"""
Pydantic schemas for guest request/response validation.
"""

from datetime import date, datetime
from typing import Any, Literal, Optional, Union

from pydantic import AliasChoices, BaseModel, EmailStr, Field, field_validator, model_validator

RsvpStatus = Literal["pending", "accepted", "declined"]

PHONE_PATTERN = r"^\+?[0-9 ()\-.]{5,20}$"
TIME_PATTERN = r"^([01][0-9]|2[0-3]):[0-5][0-9]$"

# Columns that may be omitted from a patch but never set to null
NON_NULLABLE_FIELDS = frozenset({
    "party_size", "additional_guest_names", "attending_events", "rsvp_status",
    "hotel_required", "transport_required", "gift_required", "checked_in",
})


# Party member commands arrive snake_case from API clients and camelCase from
# the dashboard, one object per member or a list of them.


class PartyMemberHotelCommand(BaseModel):
    member_name: str = Field(
        ..., min_length=1, max_length=255, validation_alias=AliasChoices("member_name", "memberName")
    )
    check_in: Optional[date] = Field(None, validation_alias=AliasChoices("check_in", "checkIn"))
    check_out: Optional[date] = Field(None, validation_alias=AliasChoices("check_out", "checkOut"))
    remove: bool = False

    model_config = {"populate_by_name": True}


class PartyMemberTransportCommand(BaseModel):
    member_name: str = Field(
        ..., min_length=1, max_length=255, validation_alias=AliasChoices("member_name", "memberName")
    )
    arrival_datetime: Optional[datetime] = Field(
        None, validation_alias=AliasChoices("arrival_datetime", "arrivalDatetime")
    )
    arrival_mode: Optional[str] = Field(
        None, max_length=100, validation_alias=AliasChoices("arrival_mode", "arrivalMode")
    )
    remove: bool = False

    model_config = {"populate_by_name": True}


PartyMemberHotelInput = Union[PartyMemberHotelCommand, list[PartyMemberHotelCommand]]
PartyMemberTransportInput = Union[PartyMemberTransportCommand, list[PartyMemberTransportCommand]]


def as_command_list(value: Any) -> Any:
    """Wrap a single command in a list; lists and None pass through."""
    if isinstance(value, BaseModel):
        return [value]
    return value

class GuestFields(BaseModel):
    """Attributes shared by create and update inputs."""

    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(None, pattern=PHONE_PATTERN)
    group_name: Optional[str] = Field(None, max_length=255)
    relationship_to_family: Optional[str] = Field(None, max_length=255)
    meal_preference: Optional[str] = Field(None, max_length=100)
    dietary_restrictions: Optional[str] = None
    notes: Optional[str] = None

    arrival_datetime: Optional[datetime] = None
    arrival_mode: Optional[str] = Field(None, max_length=100)
    departure_datetime: Optional[datetime] = None
    departure_mode: Optional[str] = Field(None, max_length=100)

    hotel_name: Optional[str] = Field(None, max_length=255)
    hotel_check_in: Optional[date] = None
    hotel_check_out: Optional[date] = None
    hotel_room_type: Optional[str] = Field(None, max_length=100)

    transport_type: Optional[str] = Field(None, max_length=100)
    transport_pickup_location: Optional[str] = Field(None, max_length=255)
    transport_pickup_time: Optional[str] = Field(None, pattern=TIME_PATTERN)
    transport_notes: Optional[str] = None

    gift_to_give: Optional[str] = Field(None, max_length=255)


class GuestCreate(GuestFields):
    # Either a free-text name or an explicit first name is required
    name: Optional[str] = Field(None, max_length=511)
    first_name: Optional[str] = Field(None, max_length=255)
    last_name: Optional[str] = Field(None, max_length=255)

    party_size: int = Field(default=1, ge=1, le=50)
    additional_guest_names: list[str] = Field(default_factory=list)
    attending_events: list[str] = Field(default_factory=list)
    rsvp_status: RsvpStatus = "pending"
    hotel_required: bool = False
    transport_required: bool = False
    gift_required: bool = False
    metadata: Optional[dict[str, Any]] = None

    @model_validator(mode="after")
    def _require_name(self):
        if not (self.name or "").strip() and not (self.first_name or "").strip():
            raise ValueError("name must not be empty")
        return self


class GuestUpdate(GuestFields):
    """Sparse patch: only fields present in the request body are applied."""

    name: Optional[str] = Field(None, min_length=1, max_length=511)
    first_name: Optional[str] = Field(None, min_length=1, max_length=255)
    last_name: Optional[str] = Field(None, max_length=255)

    party_size: Optional[int] = Field(None, ge=1, le=50)
    additional_guest_names: Optional[list[str]] = None
    attending_events: Optional[list[str]] = None
    rsvp_status: Optional[RsvpStatus] = None
    checked_in: Optional[bool] = None
    hotel_required: Optional[bool] = None
    transport_required: Optional[bool] = None
    gift_required: Optional[bool] = None
    metadata: Optional[dict[str, Any]] = None

    party_member_hotel: Optional[PartyMemberHotelInput] = Field(
        None, validation_alias=AliasChoices("party_member_hotel", "partyMemberHotel")
    )
    party_member_transport: Optional[PartyMemberTransportInput] = Field(
        None, validation_alias=AliasChoices("party_member_transport", "partyMemberTransport")
    )

    @field_validator("party_member_hotel", "party_member_transport")
    @classmethod
    def _commands_as_list(cls, value):
        return as_command_list(value)

    @model_validator(mode="after")
    def _reject_nulls(self):
        nulled = sorted(
            f for f in self.model_fields_set & NON_NULLABLE_FIELDS if getattr(self, f) is None
        )
        if nulled:
            raise ValueError(f"fields cannot be null: {', '.join(nulled)}")
        return self


class RsvpUpdate(BaseModel):
    rsvp_status: RsvpStatus


class CheckInUpdate(BaseModel):
    checked_in: bool = True


class GuestResponse(BaseModel):
    id: str
    client_id: str
    first_name: str
    last_name: str
    email: Optional[str]
    phone: Optional[str]
    group_name: Optional[str]
    party_size: int
    additional_guest_names: list[str]
    relationship_to_family: Optional[str]
    attending_events: list[str]
    arrival_datetime: Optional[datetime]
    arrival_mode: Optional[str]
    departure_datetime: Optional[datetime]
    departure_mode: Optional[str]
    rsvp_status: str
    meal_preference: Optional[str]
    dietary_restrictions: Optional[str]
    checked_in: bool
    checked_in_at: Optional[datetime]
    hotel_required: bool
    hotel_name: Optional[str]
    hotel_check_in: Optional[str]
    hotel_check_out: Optional[str]
    hotel_room_type: Optional[str]
    transport_required: bool
    transport_type: Optional[str]
    transport_pickup_location: Optional[str]
    transport_pickup_time: Optional[str]
    transport_notes: Optional[str]
    gift_required: bool
    gift_to_give: Optional[str]
    notes: Optional[str]
    metadata: Optional[dict[str, Any]] = Field(
        None, validation_alias=AliasChoices("guest_metadata", "metadata")
    )
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class GuestStats(BaseModel):
    total: int
    attending: int
    declined: int
    pending: int
    checked_in: int
