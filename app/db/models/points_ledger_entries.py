from __future__ import annotations

from datetime import datetime

from sqlalchemy import BigInteger, CheckConstraint, DateTime, ForeignKey, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from app.db.models.base import Base


class PointsLedgerEntry(Base):
    __tablename__ = "points_ledger_entries"
    __table_args__ = (
        CheckConstraint("balance_after >= 0", name="ck_points_ledger_balance_non_negative"),
        Index("idx_points_ledger_user_created", "user_id", "created_at"),
        Index("idx_points_ledger_reason", "reason"),
    )

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True)
    user_id: Mapped[int] = mapped_column(BigInteger, ForeignKey("users.id"), nullable=False)
    delta: Mapped[int] = mapped_column(Integer, nullable=False)
    applied_delta: Mapped[int] = mapped_column(Integer, nullable=False)
    balance_after: Mapped[int] = mapped_column(Integer, nullable=False)
    reason: Mapped[str] = mapped_column(String(48), nullable=False)
    idempotency_key: Mapped[str | None] = mapped_column(String(96), unique=True, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
