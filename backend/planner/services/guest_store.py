"""
Guest persistence: create, sparse update, delete and client-level reads.

No tenant checks happen here; callers pass a client or guest that has
already been validated by the tenant guard.
"""

from datetime import date, datetime, timezone
from typing import Any, Iterable, Optional

from sqlalchemy import select, func, case
from sqlalchemy.ext.asyncio import AsyncSession

from planner.core.errors import ValidationError
from planner.core.logging import get_logger
from planner.models import Guest
from planner.schemas.guest import GuestCreate, GuestUpdate

logger = get_logger(__name__)

# Input fields that are not plain guest columns
_NON_COLUMN_FIELDS = frozenset({
    "name", "first_name", "last_name", "metadata",
    "party_member_hotel", "party_member_transport", "checked_in",
})


def split_name(name: str) -> tuple[str, str]:
    """
    Split a free-text name at the first whitespace boundary.
    "Jane van der Berg" -> ("Jane", "van der Berg"); "Cher" -> ("Cher", "").
    """
    parts = name.split()
    if not parts:
        raise ValidationError("Guest name must not be empty")
    return parts[0], " ".join(parts[1:])


def _column_value(value: Any) -> Any:
    # Hotel dates are stored as ISO strings
    if isinstance(value, date) and not isinstance(value, datetime):
        return value.isoformat()
    return value


def _resolve_name(
    name: Optional[str],
    first_name: Optional[str],
    last_name: Optional[str],
) -> tuple[str, str]:
    # Explicit first/last bypass the splitting heuristic
    if first_name is not None and first_name.strip():
        return first_name.strip(), (last_name or "").strip()
    return split_name(name or "")


def _column_values(data: GuestCreate | GuestUpdate, fields: Iterable[str]) -> dict[str, Any]:
    return {
        field: _column_value(getattr(data, field))
        for field in fields
        if field not in _NON_COLUMN_FIELDS
    }


async def create_guest(db: AsyncSession, client_id: str, data: GuestCreate) -> Guest:
    """Insert a guest row for a validated client."""
    if data.party_size < 1:
        raise ValidationError("party_size must be at least 1")
    first_name, last_name = _resolve_name(data.name, data.first_name, data.last_name)

    guest = Guest(
        client_id=client_id,
        first_name=first_name,
        last_name=last_name,
        guest_metadata=data.metadata,
        **_column_values(data, GuestCreate.model_fields),
    )
    db.add(guest)
    await db.flush()
    await db.refresh(guest)

    logger.info("guest_created", guest_id=guest.id, client_id=client_id, rsvp=guest.rsvp_status)
    return guest


async def update_guest(db: AsyncSession, guest: Guest, data: GuestUpdate) -> Guest:
    """
    Apply a sparse patch. Only fields the caller actually sent are written;
    everything else on the row is left untouched.
    """
    fields = data.model_fields_set

    if data.name is not None and "first_name" not in fields:
        guest.first_name, guest.last_name = split_name(data.name)
    if data.first_name is not None:
        guest.first_name = data.first_name.strip()
    if "last_name" in fields:
        guest.last_name = (data.last_name or "").strip()

    for column, value in _column_values(data, fields).items():
        setattr(guest, column, value)

    if "metadata" in fields:
        guest.guest_metadata = data.metadata

    if "checked_in" in fields and data.checked_in != guest.checked_in:
        guest.checked_in = data.checked_in
        guest.checked_in_at = datetime.now(timezone.utc) if data.checked_in else None

    await db.flush()
    await db.refresh(guest)

    logger.info("guest_updated", guest_id=guest.id, fields=sorted(fields))
    return guest


async def delete_guest(db: AsyncSession, guest: Guest) -> None:
    await db.delete(guest)
    await db.flush()
    logger.info("guest_deleted", guest_id=guest.id, client_id=guest.client_id)


async def list_guests(db: AsyncSession, client_id: str) -> list[Guest]:
    """All guests of a client, ordered by first name."""
    result = await db.execute(
        select(Guest)
        .where(Guest.client_id == client_id)
        .order_by(Guest.first_name.asc(), Guest.last_name.asc())
    )
    return list(result.scalars().all())


async def count_accepted_guests(db: AsyncSession, client_id: str) -> int:
    result = await db.execute(
        select(func.count())
        .select_from(Guest)
        .where(Guest.client_id == client_id, Guest.rsvp_status == "accepted")
    )
    return result.scalar_one()


async def guest_stats(db: AsyncSession, client_id: str) -> dict[str, int]:
    """RSVP and check-in totals for a client."""
    result = await db.execute(
        select(
            func.count(),
            func.sum(case((Guest.rsvp_status == "accepted", 1), else_=0)),
            func.sum(case((Guest.rsvp_status == "declined", 1), else_=0)),
            func.sum(case((Guest.rsvp_status == "pending", 1), else_=0)),
            func.sum(case((Guest.checked_in.is_(True), 1), else_=0)),
        ).where(Guest.client_id == client_id)
    )
    total, attending, declined, pending, checked_in = result.one()
    return {
        "total": total or 0,
        "attending": attending or 0,
        "declined": declined or 0,
        "pending": pending or 0,
        "checked_in": checked_in or 0,
    }


async def linked_records(db: AsyncSession, model: type, guest_id: str) -> list:
    """Hotel or transport rows linked to a guest, its primary row first."""
    result = await db.execute(
        select(model)
        .where(model.guest_id == guest_id)
        .order_by(model.primary_guest_id.is_(None), model.created_at.asc())
    )
    return list(result.scalars().all())
