"""Initial schema: tenants, clients, guests, derived hotel/transport rows, budget items.

Revision ID: 001
Revises: None
Create Date: 2026-10-19
"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    ]


def upgrade() -> None:
    op.create_table(
        "companies",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("name", sa.String(255), nullable=False),
        *_timestamps(),
    )

    op.create_table(
        "clients",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("company_id", sa.String(36), sa.ForeignKey("companies.id"), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
    )
    # Every tenant check filters on company_id
    op.create_index("ix_clients_company_id", "clients", ["company_id"])

    op.create_table(
        "guests",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("client_id", sa.String(36), sa.ForeignKey("clients.id"), nullable=False),
        sa.Column("first_name", sa.String(255), nullable=False),
        sa.Column("last_name", sa.String(255), nullable=False, server_default=""),
        sa.Column("email", sa.String(255), nullable=True),
        sa.Column("phone", sa.String(50), nullable=True),
        sa.Column("group_name", sa.String(255), nullable=True),
        sa.Column("party_size", sa.Integer(), nullable=False, server_default=sa.text("1")),
        sa.Column("additional_guest_names", sa.JSON(), nullable=False),
        sa.Column("relationship_to_family", sa.String(255), nullable=True),
        sa.Column("attending_events", sa.JSON(), nullable=False),
        sa.Column("arrival_datetime", sa.DateTime(timezone=True), nullable=True),
        sa.Column("arrival_mode", sa.String(100), nullable=True),
        sa.Column("departure_datetime", sa.DateTime(timezone=True), nullable=True),
        sa.Column("departure_mode", sa.String(100), nullable=True),
        sa.Column("rsvp_status", sa.String(20), nullable=False, server_default="pending"),
        sa.Column("meal_preference", sa.String(100), nullable=True),
        sa.Column("dietary_restrictions", sa.Text(), nullable=True),
        sa.Column("checked_in", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("checked_in_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("hotel_required", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("hotel_name", sa.String(255), nullable=True),
        sa.Column("hotel_check_in", sa.String(20), nullable=True),
        sa.Column("hotel_check_out", sa.String(20), nullable=True),
        sa.Column("hotel_room_type", sa.String(100), nullable=True),
        sa.Column("transport_required", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("transport_type", sa.String(100), nullable=True),
        sa.Column("transport_pickup_location", sa.String(255), nullable=True),
        sa.Column("transport_pickup_time", sa.String(20), nullable=True),
        sa.Column("transport_notes", sa.Text(), nullable=True),
        sa.Column("gift_required", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("gift_to_give", sa.String(255), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("metadata", sa.JSON(), nullable=True),
        *_timestamps(),
        sa.CheckConstraint("party_size >= 1", name="check_guest_party_size_positive"),
        sa.CheckConstraint(
            "rsvp_status IN ('pending', 'accepted', 'declined')",
            name="check_guest_rsvp_status",
        ),
    )
    op.create_index("ix_guests_client_id", "guests", ["client_id"])
    # Budget recount: COUNT(*) WHERE client_id = ? AND rsvp_status = 'accepted'
    op.create_index("ix_guests_client_rsvp", "guests", ["client_id", "rsvp_status"])

    op.create_table(
        "hotels",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("client_id", sa.String(36), sa.ForeignKey("clients.id"), nullable=False),
        sa.Column("guest_id", sa.String(36), sa.ForeignKey("guests.id"), nullable=True),
        sa.Column("primary_guest_id", sa.String(36), nullable=True),
        sa.Column("guest_name", sa.String(255), nullable=False),
        sa.Column("hotel_name", sa.String(255), nullable=True),
        sa.Column("room_type", sa.String(100), nullable=True),
        sa.Column("check_in_date", sa.String(20), nullable=True),
        sa.Column("check_out_date", sa.String(20), nullable=True),
        sa.Column("accommodation_needed", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("party_size", sa.Integer(), nullable=False, server_default=sa.text("1")),
        *_timestamps(),
        # AT MOST ONE PRIMARY ROW PER GUEST: party-member rows leave
        # primary_guest_id NULL, and NULLs never collide.
        sa.UniqueConstraint("primary_guest_id", name="uq_hotels_primary_guest"),
        sa.CheckConstraint("party_size >= 1", name="check_hotel_party_size_positive"),
    )
    op.create_index("ix_hotels_client_id", "hotels", ["client_id"])
    op.create_index("ix_hotels_guest_id", "hotels", ["guest_id"])
    op.create_index("ix_hotels_client_guest_name", "hotels", ["client_id", "guest_name"])

    op.create_table(
        "guest_transport",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("client_id", sa.String(36), sa.ForeignKey("clients.id"), nullable=False),
        sa.Column("guest_id", sa.String(36), sa.ForeignKey("guests.id"), nullable=True),
        sa.Column("primary_guest_id", sa.String(36), nullable=True),
        sa.Column("guest_name", sa.String(255), nullable=False),
        sa.Column("leg_type", sa.String(20), nullable=False, server_default="arrival"),
        sa.Column("leg_sequence", sa.Integer(), nullable=False, server_default=sa.text("1")),
        sa.Column("pickup_date", sa.String(20), nullable=True),
        sa.Column("pickup_time", sa.String(10), nullable=True),
        sa.Column("pickup_from", sa.String(255), nullable=True),
        sa.Column("drop_to", sa.String(255), nullable=True),
        sa.Column("vehicle_info", sa.String(255), nullable=True),
        sa.Column("transport_status", sa.String(20), nullable=False, server_default="scheduled"),
        sa.Column("notes", sa.Text(), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint("primary_guest_id", name="uq_guest_transport_primary_guest"),
        sa.CheckConstraint(
            "leg_type IN ('arrival', 'departure', 'inter_event')",
            name="check_transport_leg_type",
        ),
    )
    op.create_index("ix_guest_transport_client_id", "guest_transport", ["client_id"])
    op.create_index("ix_guest_transport_guest_id", "guest_transport", ["guest_id"])
    op.create_index(
        "ix_guest_transport_client_guest_name", "guest_transport", ["client_id", "guest_name"]
    )

    op.create_table(
        "budget_items",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("client_id", sa.String(36), sa.ForeignKey("clients.id"), nullable=False),
        sa.Column("category", sa.String(100), nullable=False),
        sa.Column("item", sa.String(255), nullable=True),
        sa.Column("is_per_guest_item", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("per_guest_cost", sa.Numeric(15, 2), nullable=True),
        sa.Column("guest_count", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("estimated_cost", sa.Numeric(15, 2), nullable=False, server_default=sa.text("0")),
        sa.Column("actual_cost", sa.Numeric(15, 2), nullable=True),
        *_timestamps(),
        sa.CheckConstraint("guest_count >= 0", name="check_budget_guest_count_non_negative"),
    )
    op.create_index(
        "ix_budget_items_client_per_guest", "budget_items", ["client_id", "is_per_guest_item"]
    )


def downgrade() -> None:
    op.drop_table("budget_items")
    op.drop_table("guest_transport")
    op.drop_table("hotels")
    op.drop_table("guests")
    op.drop_table("clients")
    op.drop_table("companies")
