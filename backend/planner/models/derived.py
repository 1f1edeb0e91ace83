"""
Records derived from a guest: hotel accommodation and ground transport.

Key design decisions:
- `primary_guest_id` is set only on a guest's own primary row and is NULL on
  party-member rows. The unique constraint on it enforces at most one primary
  row per guest even when two transactions race to insert one.
- `guest_id` links every row (primary or party member) back to the guest whose
  mutation created it; guest deletion removes all rows linked this way.
- Party-member rows are matched by (client_id, guest_name).
"""

from sqlalchemy import Column, String, Integer, Boolean, Text, ForeignKey, Index, UniqueConstraint, CheckConstraint

from planner.db.base import Base, TimestampMixin, new_id


class HotelRecord(Base, TimestampMixin):
    __tablename__ = "hotels"

    id = Column(String(36), primary_key=True, default=new_id)
    client_id = Column(String(36), ForeignKey("clients.id"), nullable=False)
    guest_id = Column(String(36), ForeignKey("guests.id"), nullable=True)
    primary_guest_id = Column(String(36), nullable=True)
    guest_name = Column(String(255), nullable=False)
    hotel_name = Column(String(255), nullable=True)
    room_type = Column(String(100), nullable=True)
    check_in_date = Column(String(20), nullable=True)
    check_out_date = Column(String(20), nullable=True)
    accommodation_needed = Column(Boolean, nullable=False, default=True)
    party_size = Column(Integer, nullable=False, default=1)

    __table_args__ = (
        UniqueConstraint("primary_guest_id", name="uq_hotels_primary_guest"),
        CheckConstraint("party_size >= 1", name="check_hotel_party_size_positive"),
        Index("ix_hotels_client_id", "client_id"),
        Index("ix_hotels_guest_id", "guest_id"),
        Index("ix_hotels_client_guest_name", "client_id", "guest_name"),
    )

    def __repr__(self) -> str:
        return f"<HotelRecord(id={self.id}, guest={self.guest_id}, name={self.guest_name})>"


class TransportRecord(Base, TimestampMixin):
    __tablename__ = "guest_transport"

    id = Column(String(36), primary_key=True, default=new_id)
    client_id = Column(String(36), ForeignKey("clients.id"), nullable=False)
    guest_id = Column(String(36), ForeignKey("guests.id"), nullable=True)
    primary_guest_id = Column(String(36), nullable=True)
    guest_name = Column(String(255), nullable=False)
    leg_type = Column(String(20), nullable=False, default="arrival")
    leg_sequence = Column(Integer, nullable=False, default=1)
    pickup_date = Column(String(20), nullable=True)
    pickup_time = Column(String(10), nullable=True)
    pickup_from = Column(String(255), nullable=True)
    drop_to = Column(String(255), nullable=True)
    vehicle_info = Column(String(255), nullable=True)
    transport_status = Column(String(20), nullable=False, default="scheduled")
    notes = Column(Text, nullable=True)

    __table_args__ = (
        UniqueConstraint("primary_guest_id", name="uq_guest_transport_primary_guest"),
        CheckConstraint(
            "leg_type IN ('arrival', 'departure', 'inter_event')",
            name="check_transport_leg_type",
        ),
        Index("ix_guest_transport_client_id", "client_id"),
        Index("ix_guest_transport_guest_id", "guest_id"),
        Index("ix_guest_transport_client_guest_name", "client_id", "guest_name"),
    )

    def __repr__(self) -> str:
        return f"<TransportRecord(id={self.id}, guest={self.guest_id}, leg={self.leg_type}#{self.leg_sequence})>"
