from __future__ import annotations

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models.forum_posts import ForumPost


class ForumPostsRepo:
    @staticmethod
    async def get_engagement_maxima(session: AsyncSession, *, user_id: int) -> tuple[int, int]:
        """Returns ``(max helpful votes, max replies)`` across the user's posts."""
        stmt = select(
            func.coalesce(func.max(ForumPost.helpful_votes), 0),
            func.coalesce(func.max(ForumPost.replies_count), 0),
        ).where(ForumPost.author_user_id == user_id)
        result = await session.execute(stmt)
        max_votes, max_replies = result.one()
        return int(max_votes), int(max_replies)
