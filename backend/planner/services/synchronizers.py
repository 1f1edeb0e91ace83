"""
Derived-record synchronizers: keep hotel and transport rows in step with a guest.

SYNC STRATEGY: Unique Constraint with Savepoint Recovery
========================================================

Problem:
  "Does this guest already have a primary hotel row?" followed by an INSERT is
  check-then-act. Two concurrent updates flipping hotel_required to true can
  both see no row and both insert, leaving two primary rows for one guest.

Solution:
  Primary rows carry `primary_guest_id` (= guest_id), which is UNIQUE.

  1. Read the primary row for the guest id
  2. Found -> copy the guest's current hints onto it (only changed fields)
  3. Missing -> INSERT inside a SAVEPOINT
  4. If the unique constraint rejects the INSERT, another transaction won the
     race: roll back the savepoint, re-read the winner's row and update it

  The read in step 1 doubles as the idempotency guard: running the sync twice
  with unchanged inputs finds the row, sees no differences and writes nothing.

Party members (names in additional_guest_names with no guest row) are matched
by (client_id, guest_name) among rows with no primary_guest_id, so a party
member command can never rewrite somebody's primary row.
"""

from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any, Optional, Sequence

from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import select, delete, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from planner.core.errors import ValidationError
from planner.core.logging import get_logger
from planner.core.metrics import record_insert_conflict
from planner.models import Guest, HotelRecord, TransportRecord
from planner.schemas.cascade import CascadeAction
from planner.schemas.guest import (
    GuestUpdate,
    PartyMemberHotelCommand,
    PartyMemberHotelInput,
    PartyMemberTransportCommand,
    PartyMemberTransportInput,
    as_command_list,
)

logger = get_logger(__name__)

# Keys under which party member commands may be stashed in guest metadata
HOTEL_METADATA_KEYS = ("party_member_hotel", "partyMemberHotel")
TRANSPORT_METADATA_KEYS = ("party_member_transport", "partyMemberTransport")


def split_arrival(arrival: datetime) -> tuple[str, str]:
    """Split an arrival timestamp into (YYYY-MM-DD, HH:MM) in UTC. Naive values are taken as UTC."""
    if arrival.tzinfo is not None:
        arrival = arrival.astimezone(timezone.utc)
    return arrival.date().isoformat(), arrival.strftime("%H:%M")


def build_vehicle_info(transport_type: Optional[str], arrival_mode: Optional[str]) -> Optional[str]:
    """'car' + 'flight' -> 'car (flight)'; None when both are empty."""
    parts = []
    if transport_type:
        parts.append(transport_type)
    if arrival_mode:
        parts.append(f"({arrival_mode})")
    return " ".join(parts) or None


def _apply_fields(record: Any, fields: dict[str, Any]) -> bool:
    changed = False
    for name, value in fields.items():
        if getattr(record, name) != value:
            setattr(record, name, value)
            changed = True
    return changed


class PrimaryRecordSynchronizer(ABC):
    """
    Maintains at most one primary derived row per guest.

    Subclasses choose the table, the flag that makes the row required, the
    guest-derived fields, and the defaults written only on insert.
    """

    module: str
    model: type

    @abstractmethod
    def is_required(self, guest: Guest) -> bool:
        ...

    @abstractmethod
    def build_fields(self, guest: Guest) -> dict[str, Any]:
        """Fields copied from the guest on every sync."""

    def insert_defaults(self) -> dict[str, Any]:
        return {}

    async def find_primary(self, db: AsyncSession, guest_id: str):
        result = await db.execute(
            select(self.model).where(self.model.primary_guest_id == guest_id)
        )
        return result.scalar_one_or_none()

    async def sync(self, db: AsyncSession, guest: Guest) -> Optional[CascadeAction]:
        """Create, update or delete the guest's primary row. Returns None when nothing changed."""
        if not self.is_required(guest):
            deleted = await self.delete_primary(db, guest.id)
            if not deleted:
                return None
            return CascadeAction(module=self.module, action="deleted", count=deleted)

        fields = self.build_fields(guest)
        existing = await self.find_primary(db, guest.id)
        if existing is not None:
            return await self._update(db, existing, fields)

        record = self.model(
            client_id=guest.client_id,
            guest_id=guest.id,
            primary_guest_id=guest.id,
            **self.insert_defaults(),
            **fields,
        )
        try:
            async with db.begin_nested():
                db.add(record)
                await db.flush()
        except IntegrityError:
            # A concurrent transaction inserted the primary row first
            record_insert_conflict(self.module)
            logger.info(f"{self.module}_record_insert_conflict", guest_id=guest.id)
            existing = await self.find_primary(db, guest.id)
            if existing is None:
                raise
            return await self._update(db, existing, fields)

        logger.info(f"{self.module}_record_created", guest_id=guest.id, record_id=record.id)
        return CascadeAction(module=self.module, action="created", count=1)

    async def _update(self, db: AsyncSession, record: Any, fields: dict[str, Any]) -> Optional[CascadeAction]:
        if not _apply_fields(record, fields):
            return None
        await db.flush()
        logger.info(f"{self.module}_record_updated", guest_id=record.guest_id, record_id=record.id)
        return CascadeAction(module=self.module, action="updated", count=1)

    async def delete_primary(self, db: AsyncSession, guest_id: str) -> int:
        result = await db.execute(
            delete(self.model).where(self.model.primary_guest_id == guest_id)
        )
        if result.rowcount:
            logger.info(f"{self.module}_record_deleted", guest_id=guest_id)
        return result.rowcount


class HotelSynchronizer(PrimaryRecordSynchronizer):
    module = "hotel"
    model = HotelRecord

    def is_required(self, guest: Guest) -> bool:
        return bool(guest.hotel_required)

    def build_fields(self, guest: Guest) -> dict[str, Any]:
        return {
            "guest_name": guest.display_name,
            "hotel_name": guest.hotel_name,
            "room_type": guest.hotel_room_type,
            "check_in_date": guest.hotel_check_in,
            "check_out_date": guest.hotel_check_out,
            "party_size": guest.party_size or 1,
        }

    def insert_defaults(self) -> dict[str, Any]:
        return {"accommodation_needed": True}


class TransportSynchronizer(PrimaryRecordSynchronizer):
    module = "transport"
    model = TransportRecord

    def is_required(self, guest: Guest) -> bool:
        return bool(guest.transport_required)

    def build_fields(self, guest: Guest) -> dict[str, Any]:
        pickup_date = pickup_time = None
        if guest.arrival_datetime is not None:
            pickup_date, pickup_time = split_arrival(guest.arrival_datetime)
        # An explicit pickup time beats the arrival-derived one
        if guest.transport_pickup_time:
            pickup_time = guest.transport_pickup_time

        return {
            "guest_name": guest.display_name,
            "pickup_date": pickup_date,
            "pickup_time": pickup_time,
            "pickup_from": guest.transport_pickup_location,
            "drop_to": guest.hotel_name,
            "vehicle_info": build_vehicle_info(guest.transport_type, guest.arrival_mode),
            "notes": guest.transport_notes,
        }

    def insert_defaults(self) -> dict[str, Any]:
        return {"leg_type": "arrival", "leg_sequence": 1, "transport_status": "scheduled"}


def _commands_from_metadata(metadata: Optional[dict], keys: Sequence[str], adapter: TypeAdapter) -> list:
    if not metadata:
        return []
    for key in keys:
        if metadata.get(key) is not None:
            try:
                return as_command_list(adapter.validate_python(metadata[key]))
            except PydanticValidationError as e:
                raise ValidationError(f"Invalid {key} in metadata: {e.errors()[0]['msg']}")
    return []


_hotel_commands = TypeAdapter(PartyMemberHotelInput)
_transport_commands = TypeAdapter(PartyMemberTransportInput)


def party_member_commands(
    data: GuestUpdate,
) -> tuple[list[PartyMemberHotelCommand], list[PartyMemberTransportCommand]]:
    """Explicit command fields win; otherwise fall back to the update's metadata."""
    hotel = data.party_member_hotel
    if hotel is None:
        hotel = _commands_from_metadata(data.metadata, HOTEL_METADATA_KEYS, _hotel_commands)
    transport = data.party_member_transport
    if transport is None:
        transport = _commands_from_metadata(data.metadata, TRANSPORT_METADATA_KEYS, _transport_commands)
    return list(hotel), list(transport)


def validate_member_names(commands: Sequence[Any], party_names: Sequence[str]) -> None:
    known = {name.strip() for name in party_names}
    unknown = sorted({c.member_name for c in commands if c.member_name.strip() not in known})
    if unknown:
        raise ValidationError(
            f"Party members not listed in additional_guest_names: {', '.join(unknown)}"
        )


class PartyMemberSynchronizer:
    """Hotel and transport rows for co-travelers keyed by (client_id, name)."""

    async def _find_member_rows(self, db: AsyncSession, model: type, client_id: str, name: str) -> list:
        result = await db.execute(
            select(model).where(
                model.client_id == client_id,
                model.guest_name == name,
                model.primary_guest_id.is_(None),
            )
        )
        return list(result.scalars().all())

    async def _sync_member(
        self,
        db: AsyncSession,
        model: type,
        guest: Guest,
        name: str,
        remove: bool,
        fields: dict[str, Any],
        defaults: dict[str, Any],
    ) -> tuple[Optional[str], int]:
        if remove:
            result = await db.execute(
                delete(model).where(
                    model.client_id == guest.client_id,
                    model.guest_name == name,
                    model.primary_guest_id.is_(None),
                )
            )
            return ("deleted", result.rowcount) if result.rowcount else (None, 0)

        rows = await self._find_member_rows(db, model, guest.client_id, name)
        if rows:
            changed = sum(1 for row in rows if _apply_fields(row, fields))
            return ("updated", changed) if changed else (None, 0)

        db.add(model(client_id=guest.client_id, guest_name=name, **defaults, **fields))
        return "created", 1

    @staticmethod
    def _summarise(module: str, counts: dict[str, int]) -> list[CascadeAction]:
        return [
            CascadeAction(module=module, action=action, count=counts[action])
            for action in ("created", "updated", "deleted")
            if counts.get(action)
        ]

    async def sync_hotels(
        self,
        db: AsyncSession,
        guest: Guest,
        commands: Sequence[PartyMemberHotelCommand],
    ) -> list[CascadeAction]:
        counts: dict[str, int] = {}
        for cmd in commands:
            name = cmd.member_name.strip()
            fields = {
                "guest_id": guest.id,
                "hotel_name": guest.hotel_name,
                "room_type": guest.hotel_room_type,
                "check_in_date": cmd.check_in.isoformat() if cmd.check_in else guest.hotel_check_in,
                "check_out_date": cmd.check_out.isoformat() if cmd.check_out else guest.hotel_check_out,
                "party_size": 1,
            }
            action, count = await self._sync_member(
                db, HotelRecord, guest, name, cmd.remove, fields, {"accommodation_needed": True}
            )
            if action:
                counts[action] = counts.get(action, 0) + count
                logger.info("party_member_hotel_synced", guest_id=guest.id, member=name, action=action)

        await db.flush()
        return self._summarise("hotel", counts)

    async def sync_transport(
        self,
        db: AsyncSession,
        guest: Guest,
        commands: Sequence[PartyMemberTransportCommand],
    ) -> list[CascadeAction]:
        counts: dict[str, int] = {}
        for cmd in commands:
            name = cmd.member_name.strip()
            arrival = cmd.arrival_datetime or guest.arrival_datetime
            pickup_date, pickup_time = split_arrival(arrival) if arrival else (None, None)
            fields = {
                "guest_id": guest.id,
                "pickup_date": pickup_date,
                "pickup_time": pickup_time,
                "pickup_from": guest.transport_pickup_location,
                "drop_to": guest.hotel_name,
                "vehicle_info": build_vehicle_info(
                    guest.transport_type, cmd.arrival_mode or guest.arrival_mode
                ),
            }
            defaults = {"leg_type": "arrival", "leg_sequence": 1, "transport_status": "scheduled"}
            action, count = await self._sync_member(
                db, TransportRecord, guest, name, cmd.remove, fields, defaults
            )
            if action:
                counts[action] = counts.get(action, 0) + count
                logger.info("party_member_transport_synced", guest_id=guest.id, member=name, action=action)

        await db.flush()
        return self._summarise("transport", counts)


async def prune_departed_members(db: AsyncSession, guest: Guest) -> list[CascadeAction]:
    """
    Delete the guest's party-member rows whose names are no longer listed in
    additional_guest_names.
    """
    names = [name.strip() for name in guest.additional_guest_names or []]
    actions = []
    for module, model in (("hotel", HotelRecord), ("transport", TransportRecord)):
        result = await db.execute(
            delete(model)
            .where(
                model.guest_id == guest.id,
                model.primary_guest_id.is_(None),
                model.guest_name.notin_(names),
            )
            .execution_options(synchronize_session="fetch")
        )
        if result.rowcount:
            actions.append(CascadeAction(module=module, action="deleted", count=result.rowcount))
            logger.info("party_member_records_pruned", module=module, guest_id=guest.id,
                        count=result.rowcount)
    return actions


async def delete_linked_records(db: AsyncSession, guest_id: str) -> list[CascadeAction]:
    """
    Remove every hotel and transport row linked to a guest, primary or party
    member, whatever the guest's last hotel/transport flags were.
    """
    actions = []
    for module, model in (("hotel", HotelRecord), ("transport", TransportRecord)):
        result = await db.execute(
            delete(model).where(
                or_(model.guest_id == guest_id, model.primary_guest_id == guest_id)
            )
        )
        if result.rowcount:
            actions.append(CascadeAction(module=module, action="deleted", count=result.rowcount))
            logger.info(f"{module}_records_deleted", guest_id=guest_id, count=result.rowcount)
    return actions


hotel_synchronizer = HotelSynchronizer()
transport_synchronizer = TransportSynchronizer()
party_member_synchronizer = PartyMemberSynchronizer()
