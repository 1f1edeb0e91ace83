"""
Tenant (company) and client models.

Every guest and derived record is partitioned by tenant transitively through
its client. A client is soft-deleted by setting `deleted_at`.
"""

from sqlalchemy import Column, String, DateTime, ForeignKey, Index

from planner.db.base import Base, TimestampMixin, new_id


class Company(Base, TimestampMixin):
    __tablename__ = "companies"

    id = Column(String(36), primary_key=True, default=new_id)
    name = Column(String(255), nullable=False)

    def __repr__(self) -> str:
        return f"<Company(id={self.id}, name={self.name})>"


class Client(Base, TimestampMixin):
    __tablename__ = "clients"

    id = Column(String(36), primary_key=True, default=new_id)
    company_id = Column(String(36), ForeignKey("companies.id"), nullable=False)
    name = Column(String(255), nullable=False)
    deleted_at = Column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        Index("ix_clients_company_id", "company_id"),
    )

    def __repr__(self) -> str:
        return f"<Client(id={self.id}, company={self.company_id}, deleted={self.deleted_at is not None})>"
