"""
Cascade orchestrator: the entry point for guest create/update/delete.

Every mutation runs the same fixed sequence inside one transaction:

  1. Validate   tenant guard + input shape; failure here writes nothing
  2. Persist    insert, patch or delete the guest row
  3. Synchronize primary hotel/transport rows, then party-member rows
  4. Reconcile  per-guest budget items when acceptance changed
  5. Commit     and return the guest with the ordered cascade actions

Any failure in steps 1-3 rolls back the whole transaction, so a guest is
never committed with drifted hotel/transport rows. Budget reconciliation runs
in a savepoint: unless BUDGET_RECONCILE_STRICT is set, its failure is logged
and reported as a `failed` action while the guest write still commits.

Deleting a guest removes its hotel/transport rows but does not recount the
budget.
"""

import time
from contextlib import asynccontextmanager
from typing import AsyncIterator, Sequence

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from planner.core.config import get_settings
from planner.core.errors import InternalError
from planner.core.logging import get_logger
from planner.core.metrics import (
    budget_reconcile_failures,
    cascade_latency,
    record_cascade_action,
    record_guest_mutation,
)
from planner.db.session import unit_of_work
from planner.models import Guest
from planner.schemas.cascade import CascadeAction
from planner.schemas.guest import GuestCreate, GuestUpdate
from planner.services import budget_reconciler, guest_store
from planner.services.cache_service import invalidate_client_cache
from planner.services.synchronizers import (
    delete_linked_records,
    hotel_synchronizer,
    party_member_commands,
    party_member_synchronizer,
    prune_departed_members,
    transport_synchronizer,
    validate_member_names,
)
from planner.services.tenant_guard import ensure_client_access, load_guest_for_tenant

logger = get_logger(__name__)


@asynccontextmanager
async def _cascade_transaction(db: AsyncSession, operation: str) -> AsyncIterator[None]:
    """Unit of work plus metrics; storage errors surface as InternalError."""
    start = time.perf_counter()
    try:
        async with unit_of_work(db):
            yield
    except SQLAlchemyError as e:
        record_guest_mutation(operation, "error")
        logger.error("guest_cascade_failed", operation=operation, error=str(e))
        raise InternalError("Guest changes could not be saved") from e
    except Exception:
        record_guest_mutation(operation, "error")
        raise

    record_guest_mutation(operation, "success")
    cascade_latency.labels(operation=operation).observe(time.perf_counter() - start)


def _record(actions: Sequence[CascadeAction]) -> None:
    for action in actions:
        record_cascade_action(action.module, action.action, action.count)


async def _sync_primary_records(db: AsyncSession, guest: Guest) -> list[CascadeAction]:
    actions = []
    for synchronizer in (hotel_synchronizer, transport_synchronizer):
        action = await synchronizer.sync(db, guest)
        if action is not None:
            actions.append(action)
    return actions


async def _reconcile_budget(db: AsyncSession, client_id: str) -> list[CascadeAction]:
    try:
        async with db.begin_nested():
            result = await budget_reconciler.reconcile(db, client_id)
    except SQLAlchemyError as e:
        budget_reconcile_failures.inc()
        logger.error("budget_reconcile_failed", client_id=client_id, error=str(e))
        if get_settings().BUDGET_RECONCILE_STRICT:
            raise
        return [CascadeAction(module="budget", action="failed", count=0)]

    if not result.updated_item_count:
        return []
    return [CascadeAction(module="budget", action="recalculated", count=result.updated_item_count)]


def _merge(actions: Sequence[CascadeAction]) -> list[CascadeAction]:
    """Sum counts per (module, action), keeping first-seen order."""
    merged: dict[tuple[str, str], int] = {}
    for action in actions:
        key = (action.module, action.action)
        merged[key] = merged.get(key, 0) + action.count
    return [CascadeAction(module=m, action=a, count=c) for (m, a), c in merged.items()]


async def create_guest(
    db: AsyncSession,
    tenant_id: str,
    client_id: str,
    data: GuestCreate,
) -> tuple[Guest, list[CascadeAction]]:
    """Create a guest and its derived records."""
    async with _cascade_transaction(db, "create"):
        await ensure_client_access(db, tenant_id, client_id)
        guest = await guest_store.create_guest(db, client_id, data)

        actions = await _sync_primary_records(db, guest)
        if budget_reconciler.rsvp_requires_reconcile(None, guest.rsvp_status):
            actions += await _reconcile_budget(db, client_id)

    _record(actions)
    logger.info("guest_cascade_completed", operation="create", guest_id=guest.id, actions=len(actions))
    return guest, actions


async def bulk_create_guests(
    db: AsyncSession,
    tenant_id: str,
    client_id: str,
    items: Sequence[GuestCreate],
) -> tuple[list[Guest], list[CascadeAction]]:
    """
    Create many guests in one transaction. Derived records are synced per
    guest; the budget is reconciled once at the end.
    """
    async with _cascade_transaction(db, "bulk_create"):
        await ensure_client_access(db, tenant_id, client_id)

        guests: list[Guest] = []
        actions: list[CascadeAction] = []
        for data in items:
            guest = await guest_store.create_guest(db, client_id, data)
            guests.append(guest)
            actions += await _sync_primary_records(db, guest)

        actions = _merge(actions)
        if any(g.rsvp_status == budget_reconciler.ACCEPTED for g in guests):
            actions += await _reconcile_budget(db, client_id)

    _record(actions)
    logger.info("guest_bulk_create_completed", client_id=client_id, count=len(guests))
    return guests, actions


async def update_guest(
    db: AsyncSession,
    tenant_id: str,
    guest_id: str,
    data: GuestUpdate,
) -> tuple[Guest, list[CascadeAction]]:
    """Patch a guest and bring its derived records up to date."""
    async with _cascade_transaction(db, "update"):
        guest = await load_guest_for_tenant(db, tenant_id, guest_id)

        names_changed = "additional_guest_names" in data.model_fields_set
        hotel_commands, transport_commands = party_member_commands(data)
        commands = [*hotel_commands, *transport_commands]
        if commands:
            listed = list(guest.additional_guest_names or [])
            party_names = (data.additional_guest_names or []) if names_changed else listed
            validate_member_names([c for c in commands if not c.remove], party_names)
            # A member dropped from the list in this same patch may still be removed
            validate_member_names([c for c in commands if c.remove], [*listed, *party_names])

        previous_rsvp = guest.rsvp_status
        guest = await guest_store.update_guest(db, guest, data)

        actions = await _sync_primary_records(db, guest)
        if hotel_commands:
            actions += await party_member_synchronizer.sync_hotels(db, guest, hotel_commands)
        if transport_commands:
            actions += await party_member_synchronizer.sync_transport(db, guest, transport_commands)
        if names_changed:
            actions += await prune_departed_members(db, guest)
        actions = _merge(actions)

        if budget_reconciler.rsvp_requires_reconcile(previous_rsvp, guest.rsvp_status):
            actions += await _reconcile_budget(db, guest.client_id)

    _record(actions)
    logger.info("guest_cascade_completed", operation="update", guest_id=guest.id, actions=len(actions))
    return guest, actions


async def update_rsvp(
    db: AsyncSession,
    tenant_id: str,
    guest_id: str,
    rsvp_status: str,
) -> tuple[Guest, list[CascadeAction]]:
    return await update_guest(db, tenant_id, guest_id, GuestUpdate(rsvp_status=rsvp_status))


async def check_in_guest(
    db: AsyncSession,
    tenant_id: str,
    guest_id: str,
    checked_in: bool = True,
) -> tuple[Guest, list[CascadeAction]]:
    return await update_guest(db, tenant_id, guest_id, GuestUpdate(checked_in=checked_in))


async def delete_guest(db: AsyncSession, tenant_id: str, guest_id: str) -> dict:
    """
    Delete a guest together with every hotel/transport row linked to it.
    The row flags are ignored: a guest that once needed a room and later
    opted out must not leave an orphaned hotel row behind. The client's
    cached views are dropped once the delete has committed.
    """
    async with _cascade_transaction(db, "delete"):
        guest = await load_guest_for_tenant(db, tenant_id, guest_id)
        client_id = guest.client_id
        actions = await delete_linked_records(db, guest.id)
        await guest_store.delete_guest(db, guest)

    _record(actions)
    await invalidate_client_cache(client_id)
    logger.info("guest_cascade_completed", operation="delete", guest_id=guest_id,
                client_id=client_id, actions=len(actions))
    return {"success": True}


async def reconcile_client_budget(db: AsyncSession, tenant_id: str, client_id: str) -> int:
    """Out-of-band recount of per-guest budget items, e.g. after a failed cascade recount."""
    async with unit_of_work(db):
        await ensure_client_access(db, tenant_id, client_id)
        result = await budget_reconciler.reconcile(db, client_id)

    if result.updated_item_count:
        record_cascade_action("budget", "recalculated", result.updated_item_count)
    return result.updated_item_count
