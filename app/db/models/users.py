from __future__ import annotations

from datetime import date, datetime

from sqlalchemy import BigInteger, CheckConstraint, Date, DateTime, Index, Integer, String, Text, text
from sqlalchemy.orm import Mapped, mapped_column

from app.db.models.base import Base


class User(Base):
    __tablename__ = "users"
    __table_args__ = (
        CheckConstraint(
            "status IN ('ACTIVE','BLOCKED','DELETED')",
            name="ck_users_status",
        ),
        CheckConstraint("points >= 0", name="ck_users_points_non_negative"),
        CheckConstraint("login_streak >= 0", name="ck_users_login_streak_non_negative"),
        CheckConstraint("tool_streak >= 0", name="ck_users_tool_streak_non_negative"),
        CheckConstraint("forum_posts_count >= 0", name="ck_users_forum_posts_non_negative"),
        Index("idx_users_points_created", "points", "created_at"),
        Index("idx_users_created_at", "created_at"),
    )

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True)
    full_name: Mapped[str] = mapped_column(Text, nullable=False)
    email: Mapped[str | None] = mapped_column(String(320), unique=True, nullable=True)
    status: Mapped[str] = mapped_column(String(16), nullable=False, server_default=text("'ACTIVE'"))
    points: Mapped[int] = mapped_column(Integer, nullable=False, server_default=text("0"))

    login_streak: Mapped[int] = mapped_column(Integer, nullable=False, server_default=text("0"))
    last_login_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    tool_streak: Mapped[int] = mapped_column(Integer, nullable=False, server_default=text("0"))
    last_tool_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    study_planner_streak: Mapped[int] = mapped_column(
        Integer, nullable=False, server_default=text("0")
    )
    last_study_planner_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    analytics_streak: Mapped[int] = mapped_column(Integer, nullable=False, server_default=text("0"))
    last_analytics_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    last_course_opened_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    last_tool_used_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    forum_posts_count: Mapped[int] = mapped_column(Integer, nullable=False, server_default=text("0"))

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=text("now()"),
    )
    updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
