from __future__ import annotations

from datetime import datetime

from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models.user_badges import UserBadge


class UserBadgesRepo:
    @staticmethod
    async def list_for_user(session: AsyncSession, *, user_id: int) -> list[UserBadge]:
        stmt = (
            select(UserBadge)
            .where(UserBadge.user_id == user_id)
            .order_by(UserBadge.kind.asc(), UserBadge.badge_id.asc())
        )
        result = await session.execute(stmt)
        return list(result.scalars().all())

    @staticmethod
    async def list_earned_for_users(
        session: AsyncSession,
        *,
        user_ids: list[int],
    ) -> dict[int, list[str]]:
        if not user_ids:
            return {}
        stmt = (
            select(UserBadge.user_id, UserBadge.badge_id)
            .where(UserBadge.user_id.in_(user_ids), UserBadge.earned.is_(True))
            .order_by(UserBadge.user_id.asc(), UserBadge.earned_at.asc())
        )
        result = await session.execute(stmt)
        earned: dict[int, list[str]] = {}
        for user_id, badge_id in result.all():
            earned.setdefault(int(user_id), []).append(str(badge_id))
        return earned

    @staticmethod
    async def get_or_create_for_update(
        session: AsyncSession,
        *,
        user_id: int,
        badge_id: str,
        kind: str,
        now_utc: datetime,
    ) -> UserBadge:
        stmt = (
            insert(UserBadge)
            .values(
                user_id=user_id,
                badge_id=badge_id,
                kind=kind,
                earned=False,
                progress=None,
                earned_at=None,
                updated_at=now_utc,
            )
            .on_conflict_do_nothing(index_elements=[UserBadge.user_id, UserBadge.badge_id])
        )
        await session.execute(stmt)
        locked = await session.execute(
            select(UserBadge)
            .where(UserBadge.user_id == user_id, UserBadge.badge_id == badge_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        return locked.scalar_one()
