from __future__ import annotations

from datetime import date, datetime

from sqlalchemy import BigInteger, CheckConstraint, Date, DateTime, ForeignKey, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from app.db.models.base import Base


class GameStats(Base):
    __tablename__ = "game_stats"
    __table_args__ = (
        CheckConstraint("games_played >= 0", name="ck_game_stats_games_played_non_negative"),
        CheckConstraint("games_won >= 0", name="ck_game_stats_games_won_non_negative"),
        CheckConstraint("points_earned >= 0", name="ck_game_stats_points_earned_non_negative"),
        CheckConstraint(
            "current_game_streak >= 0",
            name="ck_game_stats_current_streak_non_negative",
        ),
        CheckConstraint("max_game_streak >= 0", name="ck_game_stats_max_streak_non_negative"),
        CheckConstraint("duels_today >= 0", name="ck_game_stats_duels_today_non_negative"),
        CheckConstraint(
            "duels_this_week >= 0",
            name="ck_game_stats_duels_this_week_non_negative",
        ),
        Index("idx_game_stats_games_won", "games_won"),
    )

    user_id: Mapped[int] = mapped_column(BigInteger, ForeignKey("users.id"), primary_key=True)
    games_played: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    games_won: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    points_earned: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    current_game_streak: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    max_game_streak: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    duels_today: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    duels_this_week: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    last_duel_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    last_duel_week: Mapped[str | None] = mapped_column(String(10), nullable=True)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
