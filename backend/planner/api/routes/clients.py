"""
Client-scoped endpoints: guest creation, guest listings and budget recount.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from planner.api.deps import get_tenant_id
from planner.db.session import get_db
from planner.schemas import (
    BudgetItemResponse,
    BulkGuestResponse,
    GuestCreate,
    GuestMutationResponse,
    GuestResponse,
    GuestStats,
    ReconcileResponse,
)
from planner.services import cascade, guest_store
from planner.services.budget_reconciler import list_budget_items
from planner.services.cache_service import get_cached, set_cached, invalidate_client_cache
from planner.services.tenant_guard import ensure_client_access
from planner.core.logging import get_logger

logger = get_logger(__name__)
router = APIRouter(prefix="/clients/{client_id}", tags=["Clients"])


@router.post("/guests", response_model=GuestMutationResponse, status_code=status.HTTP_201_CREATED)
async def create_guest_endpoint(
    client_id: str,
    guest_data: GuestCreate,
    tenant_id: str = Depends(get_tenant_id),
    db: AsyncSession = Depends(get_db),
):
    """
    Create a guest. Hotel and transport records are created in the same
    transaction when the guest requires them, and per-guest budget items are
    recounted for accepted guests.
    """
    guest, actions = await cascade.create_guest(db, tenant_id, client_id, guest_data)
    await invalidate_client_cache(client_id)
    return GuestMutationResponse(guest=GuestResponse.model_validate(guest), cascade=actions)


@router.post("/guests/bulk", response_model=BulkGuestResponse, status_code=status.HTTP_201_CREATED)
async def bulk_create_guests_endpoint(
    client_id: str,
    guests_data: list[GuestCreate],
    tenant_id: str = Depends(get_tenant_id),
    db: AsyncSession = Depends(get_db),
):
    """Create many guests atomically: either all of them are stored or none."""
    guests, actions = await cascade.bulk_create_guests(db, tenant_id, client_id, guests_data)
    await invalidate_client_cache(client_id)
    return BulkGuestResponse(
        count=len(guests),
        guests=[GuestResponse.model_validate(g) for g in guests],
        cascade=actions,
    )


@router.get("/guests", response_model=list[GuestResponse])
async def list_guests_endpoint(
    client_id: str,
    tenant_id: str = Depends(get_tenant_id),
    db: AsyncSession = Depends(get_db),
):
    """All guests of a client, ordered by first name. Cached until the next guest mutation."""
    await ensure_client_access(db, tenant_id, client_id)

    cached = await get_cached(client_id, "guests")
    if cached is not None:
        logger.info("guest_list_cache_hit", client_id=client_id)
        return cached

    guests = await guest_store.list_guests(db, client_id)
    response = [GuestResponse.model_validate(g).model_dump(mode="json") for g in guests]
    await set_cached(client_id, "guests", response)
    return response


@router.get("/guests/stats", response_model=GuestStats)
async def guest_stats_endpoint(
    client_id: str,
    tenant_id: str = Depends(get_tenant_id),
    db: AsyncSession = Depends(get_db),
):
    await ensure_client_access(db, tenant_id, client_id)

    cached = await get_cached(client_id, "stats")
    if cached is not None:
        return cached

    stats = await guest_store.guest_stats(db, client_id)
    await set_cached(client_id, "stats", stats)
    return stats


@router.get("/budget", response_model=list[BudgetItemResponse])
async def list_budget_endpoint(
    client_id: str,
    tenant_id: str = Depends(get_tenant_id),
    db: AsyncSession = Depends(get_db),
):
    await ensure_client_access(db, tenant_id, client_id)
    return await list_budget_items(db, client_id)


@router.post("/budget/reconcile", response_model=ReconcileResponse)
async def reconcile_budget_endpoint(
    client_id: str,
    tenant_id: str = Depends(get_tenant_id),
    db: AsyncSession = Depends(get_db),
):
    """Recount per-guest budget items on demand (repairs a recount that failed during a guest write)."""
    updated = await cascade.reconcile_client_budget(db, tenant_id, client_id)
    return ReconcileResponse(updated_item_count=updated)
