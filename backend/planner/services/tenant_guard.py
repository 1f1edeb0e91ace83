"""
Tenant isolation checks.

The client ownership check is the only authorization primitive the cascade
relies on. Derived-record writers never re-check it: they only act on a guest
that has already passed through here.
"""

from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from planner.core.errors import ForbiddenError, NotFoundError, UnauthorizedError
from planner.core.logging import get_logger
from planner.models import Client, Guest

logger = get_logger(__name__)


def require_tenant(tenant_id: Optional[str]) -> str:
    if not tenant_id:
        raise UnauthorizedError()
    return tenant_id


async def ensure_client_access(db: AsyncSession, tenant_id: str, client_id: str) -> Client:
    """Return the client if it belongs to the tenant and is not soft-deleted."""
    require_tenant(tenant_id)
    result = await db.execute(
        select(Client).where(
            Client.id == client_id,
            Client.company_id == tenant_id,
            Client.deleted_at.is_(None),
        )
    )
    client = result.scalar_one_or_none()
    if client is None:
        logger.warning("client_access_denied", tenant_id=tenant_id, client_id=client_id)
        raise ForbiddenError()
    return client


async def load_guest_for_tenant(db: AsyncSession, tenant_id: str, guest_id: str) -> Guest:
    """
    Load a guest and verify its client belongs to the tenant.
    Unknown ids are NotFound; guests under another tenant are Forbidden.
    """
    require_tenant(tenant_id)
    result = await db.execute(select(Guest).where(Guest.id == guest_id))
    guest = result.scalar_one_or_none()
    if guest is None:
        raise NotFoundError(f"Guest {guest_id} not found")

    await ensure_client_access(db, tenant_id, guest.client_id)
    return guest
