from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncSession

from app.db.repo.course_progress_repo import CourseProgressRepo
from app.db.repo.forum_posts_repo import ForumPostsRepo
from app.db.repo.game_stats_repo import GameStatsRepo
from app.db.repo.users_repo import UsersRepo
from app.economy.points.leaderboard import rank_for_user
from app.game.badges.rules import BadgeFacts


async def load_badge_facts(session: AsyncSession, *, user_id: int) -> BadgeFacts | None:
    user = await UsersRepo.get_by_id(session, user_id)
    if user is None:
        return None

    stats = await GameStatsRepo.get_by_user_id(session, user_id)
    completed_courses = await CourseProgressRepo.count_completed(session, user_id=user_id)
    max_votes, max_replies = await ForumPostsRepo.get_engagement_maxima(session, user_id=user_id)
    rank = await rank_for_user(session, user=user)

    return BadgeFacts(
        points=int(user.points or 0),
        rank=rank,
        login_streak=int(user.login_streak or 0),
        tool_streak=int(user.tool_streak or 0),
        study_planner_streak=int(user.study_planner_streak or 0),
        analytics_streak=int(user.analytics_streak or 0),
        has_opened_course=user.last_course_opened_at is not None,
        has_used_tool=user.last_tool_used_at is not None,
        forum_posts_count=int(user.forum_posts_count or 0),
        current_game_streak=int(stats.current_game_streak) if stats is not None else 0,
        completed_courses=completed_courses,
        max_post_helpful_votes=max_votes,
        max_post_replies=max_replies,
    )
