from __future__ import annotations

from datetime import datetime

from sqlalchemy import exists, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models.premium_access import PremiumAccess


class PremiumAccessRepo:
    @staticmethod
    async def has_active_premium(session: AsyncSession, user_id: int, now_utc: datetime) -> bool:
        stmt = select(
            exists().where(
                PremiumAccess.user_id == user_id,
                PremiumAccess.revoked_at.is_(None),
                PremiumAccess.granted_at <= now_utc,
                or_(PremiumAccess.ends_at.is_(None), PremiumAccess.ends_at > now_utc),
            )
        )
        return bool(await session.scalar(stmt))
