from __future__ import annotations

from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession

from app.economy.points.service import PointsLedger
from app.game.badges.engine import BadgeEngine
from app.game.duels.rate_limit import DEFAULT_DUEL_QUOTA, DuelQuota
from app.game.duels.scoring import DEFAULT_DUEL_REWARDS, DuelRewards
from app.game.duels.service import (
    cancel_duel,
    create_duel,
    forfeit_duel,
    get_duel_status,
    get_game_stats,
    join_duel,
    start_duel,
    submit_result,
)
from app.game.duels.types import (
    DuelCreateResult,
    DuelJoinResult,
    DuelSnapshot,
    DuelSubmitResult,
    GameStatsSummary,
)


class DuelService:
    """Duel operations with their rule tables and collaborators bound in."""

    def __init__(
        self,
        *,
        points_ledger: PointsLedger,
        badge_engine: BadgeEngine,
        quota: DuelQuota = DEFAULT_DUEL_QUOTA,
        rewards: DuelRewards = DEFAULT_DUEL_REWARDS,
    ) -> None:
        self.points_ledger = points_ledger
        self.badge_engine = badge_engine
        self.quota = quota
        self.rewards = rewards

    async def create_duel(
        self,
        session: AsyncSession,
        *,
        user_id: int,
        topic: str | None,
        num_questions: object,
        now_utc: datetime,
    ) -> DuelCreateResult:
        return await create_duel(
            session,
            user_id=user_id,
            topic=topic,
            num_questions=num_questions,
            now_utc=now_utc,
            quota=self.quota,
        )

    async def join_duel(
        self,
        session: AsyncSession,
        *,
        user_id: int,
        duel_key: str,
        now_utc: datetime,
    ) -> DuelJoinResult:
        return await join_duel(
            session,
            user_id=user_id,
            duel_key=duel_key,
            now_utc=now_utc,
            quota=self.quota,
        )

    async def get_duel_status(
        self,
        session: AsyncSession,
        *,
        duel_key: str,
        now_utc: datetime,
    ) -> DuelSnapshot:
        return await get_duel_status(session, duel_key=duel_key, now_utc=now_utc)

    async def start_duel(
        self,
        session: AsyncSession,
        *,
        user_id: int,
        duel_key: str,
        now_utc: datetime,
    ) -> DuelSnapshot:
        return await start_duel(session, user_id=user_id, duel_key=duel_key, now_utc=now_utc)

    async def submit_result(
        self,
        session: AsyncSession,
        *,
        user_id: int,
        duel_key: str | None,
        score: object,
        is_solo: bool,
        now_utc: datetime,
    ) -> DuelSubmitResult:
        return await submit_result(
            session,
            user_id=user_id,
            duel_key=duel_key,
            score=score,
            is_solo=is_solo,
            now_utc=now_utc,
            points_ledger=self.points_ledger,
            badge_engine=self.badge_engine,
            rewards=self.rewards,
        )

    async def cancel_duel(
        self,
        session: AsyncSession,
        *,
        user_id: int,
        duel_key: str,
        now_utc: datetime,
    ) -> DuelSnapshot:
        return await cancel_duel(session, user_id=user_id, duel_key=duel_key, now_utc=now_utc)

    async def forfeit_duel(
        self,
        session: AsyncSession,
        *,
        user_id: int,
        duel_key: str,
        now_utc: datetime,
    ) -> DuelSnapshot:
        return await forfeit_duel(session, user_id=user_id, duel_key=duel_key, now_utc=now_utc)

    async def get_game_stats(
        self,
        session: AsyncSession,
        *,
        user_id: int,
        now_utc: datetime,
    ) -> GameStatsSummary:
        return await get_game_stats(session, user_id=user_id, now_utc=now_utc, quota=self.quota)
