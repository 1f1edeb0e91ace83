"""
Per-guest budget reconciliation.

Per-guest line items (catering per plate, favors, ...) are priced against the
number of accepted guests. Reconciliation recounts accepted guests and
rewrites `guest_count` and `estimated_cost` on those items. It never creates
or deletes budget rows and never touches `actual_cost`, which records what was
really paid.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from planner.core.logging import get_logger
from planner.models import BudgetItem
from planner.services.guest_store import count_accepted_guests

logger = get_logger(__name__)

ACCEPTED = "accepted"


@dataclass
class ReconcileResult:
    updated_item_count: int
    accepted_count: int


def rsvp_requires_reconcile(previous: Optional[str], current: str) -> bool:
    """
    True when the mutation moves a guest into or out of the accepted state.
    `previous` is None for a newly created guest.
    """
    return (previous == ACCEPTED) != (current == ACCEPTED)


async def reconcile(db: AsyncSession, client_id: str) -> ReconcileResult:
    """Recompute every per-guest budget item for a client. 0 updated items is a valid outcome."""
    accepted = await count_accepted_guests(db, client_id)

    result = await db.execute(
        select(BudgetItem).where(
            BudgetItem.client_id == client_id,
            BudgetItem.is_per_guest_item.is_(True),
        )
    )
    updated = 0
    for item in result.scalars().all():
        changed = False
        if item.guest_count != accepted:
            item.guest_count = accepted
            changed = True
        if item.per_guest_cost is not None:
            estimated = Decimal(item.per_guest_cost) * accepted
            if item.estimated_cost is None or Decimal(item.estimated_cost) != estimated:
                item.estimated_cost = estimated
                changed = True
        if changed:
            updated += 1

    await db.flush()
    logger.info("budget_reconciled", client_id=client_id, accepted=accepted, updated_items=updated)
    return ReconcileResult(updated_item_count=updated, accepted_count=accepted)


async def list_budget_items(db: AsyncSession, client_id: str) -> list[BudgetItem]:
    result = await db.execute(
        select(BudgetItem)
        .where(BudgetItem.client_id == client_id)
        .order_by(BudgetItem.category.asc(), BudgetItem.created_at.asc())
    )
    return list(result.scalars().all())
