"""
Guest endpoints: read, patch, RSVP, check-in, delete and derived records.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from planner.api.deps import get_tenant_id
from planner.db.session import get_db
from planner.models import HotelRecord, TransportRecord
from planner.schemas import (
    CheckInUpdate,
    DeleteResponse,
    GuestMutationResponse,
    GuestResponse,
    GuestUpdate,
    HotelRecordResponse,
    RsvpUpdate,
    TransportRecordResponse,
)
from planner.services import cascade, guest_store
from planner.services.cache_service import invalidate_client_cache
from planner.services.tenant_guard import load_guest_for_tenant

router = APIRouter(prefix="/guests", tags=["Guests"])


def _mutation_response(guest, actions) -> GuestMutationResponse:
    return GuestMutationResponse(guest=GuestResponse.model_validate(guest), cascade=actions)


@router.get("/{guest_id}", response_model=GuestResponse)
async def get_guest_endpoint(
    guest_id: str,
    tenant_id: str = Depends(get_tenant_id),
    db: AsyncSession = Depends(get_db),
):
    return await load_guest_for_tenant(db, tenant_id, guest_id)


@router.patch("/{guest_id}", response_model=GuestMutationResponse)
async def update_guest_endpoint(
    guest_id: str,
    guest_data: GuestUpdate,
    tenant_id: str = Depends(get_tenant_id),
    db: AsyncSession = Depends(get_db),
):
    """
    Sparse update: fields absent from the body are left untouched.
    Toggling hotel_required / transport_required creates or deletes the
    guest's primary hotel/transport record; party_member_hotel and
    party_member_transport manage rows for additional guests.
    """
    guest, actions = await cascade.update_guest(db, tenant_id, guest_id, guest_data)
    await invalidate_client_cache(guest.client_id)
    return _mutation_response(guest, actions)


@router.patch("/{guest_id}/rsvp", response_model=GuestMutationResponse)
async def update_rsvp_endpoint(
    guest_id: str,
    rsvp: RsvpUpdate,
    tenant_id: str = Depends(get_tenant_id),
    db: AsyncSession = Depends(get_db),
):
    guest, actions = await cascade.update_rsvp(db, tenant_id, guest_id, rsvp.rsvp_status)
    await invalidate_client_cache(guest.client_id)
    return _mutation_response(guest, actions)


@router.patch("/{guest_id}/check-in", response_model=GuestMutationResponse)
async def check_in_endpoint(
    guest_id: str,
    check_in: CheckInUpdate,
    tenant_id: str = Depends(get_tenant_id),
    db: AsyncSession = Depends(get_db),
):
    guest, actions = await cascade.check_in_guest(db, tenant_id, guest_id, check_in.checked_in)
    await invalidate_client_cache(guest.client_id)
    return _mutation_response(guest, actions)


@router.delete("/{guest_id}", response_model=DeleteResponse)
async def delete_guest_endpoint(
    guest_id: str,
    tenant_id: str = Depends(get_tenant_id),
    db: AsyncSession = Depends(get_db),
):
    """Delete a guest and every hotel/transport record linked to it."""
    return await cascade.delete_guest(db, tenant_id, guest_id)


@router.get("/{guest_id}/hotels", response_model=list[HotelRecordResponse])
async def guest_hotels_endpoint(
    guest_id: str,
    tenant_id: str = Depends(get_tenant_id),
    db: AsyncSession = Depends(get_db),
):
    await load_guest_for_tenant(db, tenant_id, guest_id)
    return await guest_store.linked_records(db, HotelRecord, guest_id)


@router.get("/{guest_id}/transport", response_model=list[TransportRecordResponse])
async def guest_transport_endpoint(
    guest_id: str,
    tenant_id: str = Depends(get_tenant_id),
    db: AsyncSession = Depends(get_db),
):
    await load_guest_for_tenant(db, tenant_id, guest_id)
    return await guest_store.linked_records(db, TransportRecord, guest_id)
