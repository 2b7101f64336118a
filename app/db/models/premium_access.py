from __future__ import annotations

from datetime import datetime

from sqlalchemy import BigInteger, CheckConstraint, DateTime, ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from app.db.models.base import Base


class PremiumAccess(Base):
    """A PRO grant is open-ended; a TRIAL grant ends at `ends_at`."""

    __tablename__ = "premium_access"
    __table_args__ = (
        CheckConstraint("access_kind IN ('PRO','TRIAL')", name="ck_premium_access_kind"),
        CheckConstraint(
            "access_kind = 'PRO' OR ends_at IS NOT NULL",
            name="ck_premium_access_trial_has_end",
        ),
        Index("uq_premium_access_user_kind", "user_id", "access_kind", unique=True),
    )

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True)
    user_id: Mapped[int] = mapped_column(BigInteger, ForeignKey("users.id"), nullable=False)
    access_kind: Mapped[str] = mapped_column(String(8), nullable=False)
    granted_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    ends_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    revoked_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
