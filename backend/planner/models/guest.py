"""
Guest model: one row per invited individual.

Key design decisions:
- `additional_guest_names` lists co-travelers that are not guest rows
- hotel_* and transport_* columns are hints copied into the derived
  hotel/transport records by the cascade
- `metadata` is an open JSON map; the ORM attribute is `guest_metadata`
  because `metadata` is reserved on declarative classes
"""

from sqlalchemy import Column, String, Integer, Boolean, DateTime, Text, JSON, ForeignKey, Index, CheckConstraint

from planner.db.base import Base, TimestampMixin, new_id

RSVP_STATUSES = ("pending", "accepted", "declined")


class Guest(Base, TimestampMixin):
    __tablename__ = "guests"

    id = Column(String(36), primary_key=True, default=new_id)
    client_id = Column(String(36), ForeignKey("clients.id"), nullable=False)

    first_name = Column(String(255), nullable=False)
    last_name = Column(String(255), nullable=False, default="")
    email = Column(String(255), nullable=True)
    phone = Column(String(50), nullable=True)
    group_name = Column(String(255), nullable=True)
    party_size = Column(Integer, nullable=False, default=1)
    additional_guest_names = Column(JSON, nullable=False, default=list)
    relationship_to_family = Column(String(255), nullable=True)
    attending_events = Column(JSON, nullable=False, default=list)

    # Travel
    arrival_datetime = Column(DateTime(timezone=True), nullable=True)
    arrival_mode = Column(String(100), nullable=True)
    departure_datetime = Column(DateTime(timezone=True), nullable=True)
    departure_mode = Column(String(100), nullable=True)

    # RSVP and day-of state
    rsvp_status = Column(String(20), nullable=False, default="pending")
    meal_preference = Column(String(100), nullable=True)
    dietary_restrictions = Column(Text, nullable=True)
    checked_in = Column(Boolean, nullable=False, default=False)
    checked_in_at = Column(DateTime(timezone=True), nullable=True)

    # Accommodation intent
    hotel_required = Column(Boolean, nullable=False, default=False)
    hotel_name = Column(String(255), nullable=True)
    hotel_check_in = Column(String(20), nullable=True)
    hotel_check_out = Column(String(20), nullable=True)
    hotel_room_type = Column(String(100), nullable=True)

    # Transport intent
    transport_required = Column(Boolean, nullable=False, default=False)
    transport_type = Column(String(100), nullable=True)
    transport_pickup_location = Column(String(255), nullable=True)
    transport_pickup_time = Column(String(20), nullable=True)
    transport_notes = Column(Text, nullable=True)

    gift_required = Column(Boolean, nullable=False, default=False)
    gift_to_give = Column(String(255), nullable=True)
    notes = Column(Text, nullable=True)
    guest_metadata = Column("metadata", JSON, nullable=True)

    __table_args__ = (
        CheckConstraint("party_size >= 1", name="check_guest_party_size_positive"),
        CheckConstraint(
            f"rsvp_status IN ({', '.join(repr(s) for s in RSVP_STATUSES)})",
            name="check_guest_rsvp_status",
        ),
        Index("ix_guests_client_id", "client_id"),
        Index("ix_guests_client_rsvp", "client_id", "rsvp_status"),
    )

    @property
    def display_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    def __repr__(self) -> str:
        return f"<Guest(id={self.id}, client={self.client_id}, rsvp={self.rsvp_status})>"
