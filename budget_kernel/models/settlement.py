"""
Settlement record ORM model.

Responsibility:
    One row per applied settlement event.  The unique constraint on
    ``idempotency_key`` is the at-most-once guarantee: a replayed webhook or
    a double-click can never insert a second row, and ``paid_amount`` is only
    incremented in the same transaction that inserts this row.
"""

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import DateTime, Index, String, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column

from budget_kernel.db.base import Base, UUIDString


class SettlementModel(Base):
    """An applied settlement event (immutable once flushed)."""

    __tablename__ = "settlements"

    __table_args__ = (
        UniqueConstraint("idempotency_key", name="uq_settlement_idempotency_key"),
        Index("idx_settlement_document", "document_type", "document_id"),
    )

    idempotency_key: Mapped[str] = mapped_column(String(255), nullable=False)
    document_type: Mapped[str] = mapped_column(String(30), nullable=False)
    document_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)
    amount: Mapped[Decimal]
    settled_at: Mapped[datetime]
    payload_hash: Mapped[str] = mapped_column(String(64), nullable=False)
    provider: Mapped[str | None] = mapped_column(String(50), nullable=True)
    recorded_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<SettlementModel {self.idempotency_key} {self.document_type}:{self.document_id} {self.amount}>"
