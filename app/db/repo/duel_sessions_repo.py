from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models.duel_sessions import DuelSession


class DuelSessionsRepo:
    @staticmethod
    async def get_by_key(session: AsyncSession, duel_key: str) -> DuelSession | None:
        stmt = select(DuelSession).where(DuelSession.duel_key == duel_key)
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def get_by_key_for_update(session: AsyncSession, duel_key: str) -> DuelSession | None:
        stmt = select(DuelSession).where(DuelSession.duel_key == duel_key).with_for_update()
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def key_exists(session: AsyncSession, duel_key: str) -> bool:
        stmt = select(func.count(DuelSession.id)).where(DuelSession.duel_key == duel_key)
        result = await session.execute(stmt)
        return int(result.scalar_one() or 0) > 0

    @staticmethod
    async def create(session: AsyncSession, *, duel: DuelSession) -> DuelSession:
        session.add(duel)
        await session.flush()
        return duel

    @staticmethod
    async def claim_opponent(
        session: AsyncSession,
        *,
        duel_key: str,
        opponent_user_id: int,
        opponent_name: str,
        now_utc: datetime,
    ) -> UUID | None:
        """Sets the opponent only if the seat is still free; returns the duel id on success."""
        stmt = (
            update(DuelSession)
            .where(
                DuelSession.duel_key == duel_key,
                DuelSession.opponent_user_id.is_(None),
                DuelSession.status == "waiting",
                DuelSession.expires_at > now_utc,
                DuelSession.host_user_id != opponent_user_id,
            )
            .values(
                opponent_user_id=opponent_user_id,
                opponent_name=opponent_name,
                status="locked",
                updated_at=now_utc,
            )
            .returning(DuelSession.id)
            .execution_options(synchronize_session=False)
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def refresh(session: AsyncSession, duel_id: UUID) -> DuelSession | None:
        return await session.get(DuelSession, duel_id, populate_existing=True)

    @staticmethod
    async def list_waiting_due_for_expire_for_update(
        session: AsyncSession,
        *,
        now_utc: datetime,
        limit: int,
    ) -> list[DuelSession]:
        resolved_limit = max(1, int(limit))
        stmt = (
            select(DuelSession)
            .where(
                DuelSession.status == "waiting",
                DuelSession.expires_at <= now_utc,
            )
            .order_by(DuelSession.expires_at.asc())
            .limit(resolved_limit)
            .with_for_update(skip_locked=True)
        )
        result = await session.execute(stmt)
        return list(result.scalars().all())

    @staticmethod
    async def count_waiting_past_expiry(session: AsyncSession, *, now_utc: datetime) -> int:
        stmt = select(func.count(DuelSession.id)).where(
            DuelSession.status == "waiting",
            DuelSession.expires_at <= now_utc,
        )
        return int(await session.scalar(stmt) or 0)
