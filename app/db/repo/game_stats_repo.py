from __future__ import annotations

from datetime import datetime

from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models.game_stats import GameStats


class GameStatsRepo:
    @staticmethod
    async def get_by_user_id(session: AsyncSession, user_id: int) -> GameStats | None:
        return await session.get(GameStats, user_id)

    @staticmethod
    async def get_or_create_for_update(
        session: AsyncSession,
        *,
        user_id: int,
        now_utc: datetime,
    ) -> GameStats:
        stmt = (
            insert(GameStats)
            .values(
                user_id=user_id,
                games_played=0,
                games_won=0,
                points_earned=0,
                current_game_streak=0,
                max_game_streak=0,
                duels_today=0,
                duels_this_week=0,
                updated_at=now_utc,
            )
            .on_conflict_do_nothing(index_elements=[GameStats.user_id])
        )
        await session.execute(stmt)
        locked = await session.execute(
            select(GameStats)
            .where(GameStats.user_id == user_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        return locked.scalar_one()
