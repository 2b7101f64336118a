from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy import BigInteger, CheckConstraint, DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.dialects.postgresql import UUID as PG_UUID
from sqlalchemy.orm import Mapped, mapped_column

from app.db.models.base import Base


class DuelSession(Base):
    __tablename__ = "duel_sessions"
    __table_args__ = (
        CheckConstraint(
            (
                "status IN ("
                "'waiting','locked','started','completed','expired','cancelled','forfeited'"
                ")"
            ),
            name="ck_duel_sessions_status",
        ),
        CheckConstraint("num_questions >= 1", name="ck_duel_sessions_num_questions_positive"),
        CheckConstraint("host_score >= 0", name="ck_duel_sessions_host_score_non_negative"),
        CheckConstraint(
            "opponent_score >= 0",
            name="ck_duel_sessions_opponent_score_non_negative",
        ),
        CheckConstraint(
            "opponent_user_id IS NULL OR opponent_user_id <> host_user_id",
            name="ck_duel_sessions_opponent_not_host",
        ),
        Index("idx_duel_sessions_status_created", "status", "created_at"),
        Index("idx_duel_sessions_status_expires", "status", "expires_at"),
        Index("idx_duel_sessions_host_created", "host_user_id", "created_at"),
        Index("idx_duel_sessions_opponent_created", "opponent_user_id", "created_at"),
    )

    id: Mapped[UUID] = mapped_column(PG_UUID(as_uuid=True), primary_key=True)
    duel_key: Mapped[str] = mapped_column(String(6), unique=True, nullable=False)
    host_user_id: Mapped[int] = mapped_column(BigInteger, ForeignKey("users.id"), nullable=False)
    host_name: Mapped[str] = mapped_column(Text, nullable=False)
    opponent_user_id: Mapped[int | None] = mapped_column(
        BigInteger, ForeignKey("users.id"), nullable=True
    )
    opponent_name: Mapped[str | None] = mapped_column(Text, nullable=True)
    topic: Mapped[str] = mapped_column(String(200), nullable=False)
    num_questions: Mapped[int] = mapped_column(Integer, nullable=False)
    status: Mapped[str] = mapped_column(String(16), nullable=False)
    host_score: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    opponent_score: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    forfeited_by_user_id: Mapped[int | None] = mapped_column(
        BigInteger, ForeignKey("users.id"), nullable=True
    )
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    started_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
