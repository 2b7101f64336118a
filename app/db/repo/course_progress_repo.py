from __future__ import annotations

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models.course_progress import CourseProgress


class CourseProgressRepo:
    @staticmethod
    async def count_completed(session: AsyncSession, *, user_id: int) -> int:
        stmt = select(func.count(CourseProgress.id)).where(
            CourseProgress.user_id == user_id,
            CourseProgress.progress >= 100,
        )
        result = await session.execute(stmt)
        return int(result.scalar_one() or 0)
