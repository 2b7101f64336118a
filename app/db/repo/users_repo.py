from __future__ import annotations

from datetime import datetime

from sqlalchemy import and_, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models.users import User


class UsersRepo:
    @staticmethod
    async def get_by_id(session: AsyncSession, user_id: int) -> User | None:
        return await session.get(User, user_id)

    @staticmethod
    async def get_by_id_for_update(session: AsyncSession, user_id: int) -> User | None:
        stmt = select(User).where(User.id == user_id).with_for_update()
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def create(
        session: AsyncSession,
        *,
        full_name: str,
        email: str | None = None,
        points: int = 0,
    ) -> User:
        user = User(full_name=full_name, email=email, points=points, status="ACTIVE")
        session.add(user)
        await session.flush()
        return user

    @staticmethod
    async def apply_points_delta(
        session: AsyncSession,
        *,
        user_id: int,
        delta: int,
        now_utc: datetime,
    ) -> tuple[int, int] | None:
        """Adds ``delta`` to the locked balance in one UPDATE, flooring at zero.

        Returns ``(balance_before, balance_after)`` or ``None`` for an unknown user.
        """
        locked = await session.execute(
            select(User.points).where(User.id == user_id).with_for_update()
        )
        balance_before = locked.scalar_one_or_none()
        if balance_before is None:
            return None
        stmt = (
            update(User)
            .where(User.id == user_id)
            .values(points=func.greatest(User.points + delta, 0), updated_at=now_utc)
            .returning(User.points)
        )
        result = await session.execute(stmt)
        balance_after = result.scalar_one()
        return int(balance_before), int(balance_after)

    @staticmethod
    async def count_all(session: AsyncSession) -> int:
        result = await session.execute(select(func.count(User.id)))
        return int(result.scalar_one() or 0)

    @staticmethod
    async def count_ranked_ahead(
        session: AsyncSession,
        *,
        points: int,
        created_at: datetime,
        user_id: int,
    ) -> int:
        stmt = select(func.count(User.id)).where(
            or_(
                User.points > points,
                and_(User.points == points, User.created_at < created_at),
                and_(User.points == points, User.created_at == created_at, User.id < user_id),
            )
        )
        result = await session.execute(stmt)
        return int(result.scalar_one() or 0)

    @staticmethod
    async def list_leaderboard_page(
        session: AsyncSession,
        *,
        limit: int,
        offset: int,
    ) -> list[User]:
        stmt = (
            select(User)
            .order_by(User.points.desc(), User.created_at.asc(), User.id.asc())
            .limit(max(1, int(limit)))
            .offset(max(0, int(offset)))
        )
        result = await session.execute(stmt)
        return list(result.scalars().all())
