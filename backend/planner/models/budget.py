"""
Budget line items for a client.

Per-guest items (`is_per_guest_item`) carry a `per_guest_cost`; their
`guest_count` and `estimated_cost` are recomputed from the number of accepted
guests by the budget reconciler. Other items are never touched by it.
"""

from sqlalchemy import Column, String, Integer, Boolean, Numeric, ForeignKey, Index, CheckConstraint

from planner.db.base import Base, TimestampMixin, new_id


class BudgetItem(Base, TimestampMixin):
    __tablename__ = "budget_items"

    id = Column(String(36), primary_key=True, default=new_id)
    client_id = Column(String(36), ForeignKey("clients.id"), nullable=False)
    category = Column(String(100), nullable=False)
    item = Column(String(255), nullable=True)
    is_per_guest_item = Column(Boolean, nullable=False, default=False)
    per_guest_cost = Column(Numeric(15, 2), nullable=True)
    guest_count = Column(Integer, nullable=False, default=0)
    estimated_cost = Column(Numeric(15, 2), nullable=False, default=0)
    actual_cost = Column(Numeric(15, 2), nullable=True)

    __table_args__ = (
        CheckConstraint("guest_count >= 0", name="check_budget_guest_count_non_negative"),
        Index("ix_budget_items_client_per_guest", "client_id", "is_per_guest_item"),
    )

    def __repr__(self) -> str:
        return f"<BudgetItem(id={self.id}, client={self.client_id}, per_guest={self.is_per_guest_item})>"
