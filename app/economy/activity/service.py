from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models.users import User
from app.db.repo.users_repo import UsersRepo
from app.economy.points.service import (
    POINTS_REASON_COURSE_COMPLETED,
    POINTS_REASON_FORUM_REPLY_RECEIVED,
    POINTS_REASON_FORUM_UNVOTE,
    POINTS_REASON_FORUM_VOTE,
    POINTS_REASON_LESSON_COMPLETED,
    PointsLedger,
)
from app.economy.streak.rules import record_day_activity
from app.economy.streak.time import game_local_date
from app.economy.streak.types import DayStreak
from app.game.badges.engine import BadgeEngine
from app.game.badges.rules import (
    BADGE_EVENT_COURSE_COMPLETED,
    BADGE_EVENT_COURSE_OPENED,
    BADGE_EVENT_FORUM_POST_CREATED,
    BADGE_EVENT_FORUM_REPLY_RECEIVED,
    BADGE_EVENT_FORUM_VOTE_RECEIVED,
    BADGE_EVENT_LESSON_COMPLETED,
    BADGE_EVENT_LOGIN,
    BADGE_EVENT_TOOL_USED,
    QUICK_LEARNER_BADGE_ID,
)
from app.game.errors import GameValidationError, UserNotFoundError

logger = structlog.get_logger(__name__)

TOOL_STUDY_PLANNER = "study_planner"
TOOL_PROGRESS_ANALYTICS = "progress_analytics"

LESSON_COMPLETED_POINTS = 5
COURSE_COMPLETED_POINTS = 20
FORUM_REPLY_POINTS = 1
FORUM_VOTE_POINTS = 1


@dataclass(slots=True)
class ActivityResult:
    user_id: int
    event: str
    points_delta: int = 0
    streak: int | None = None
    awarded_badges: list[str] = field(default_factory=list)


class ActivityService:
    """Applies collaborator events to activity state, points and badges."""

    def __init__(self, *, points_ledger: PointsLedger, badge_engine: BadgeEngine) -> None:
        self._points_ledger = points_ledger
        self._badge_engine = badge_engine

    async def record_login(self, session: AsyncSession, *, user_id: int, now_utc: datetime) -> ActivityResult:
        user = await self._lock_user(session, user_id=user_id)
        update = record_day_activity(
            DayStreak(current=int(user.login_streak or 0), last_local_date=user.last_login_date),
            local_date=game_local_date(now_utc),
        )
        user.login_streak = update.streak.current
        user.last_login_date = update.streak.last_local_date
        user.updated_at = now_utc
        await session.flush()

        awarded = await self._badge_engine.evaluate(
            session, user_id=user_id, event=BADGE_EVENT_LOGIN, now_utc=now_utc
        )
        logger.info("activity_login_recorded", user_id=user_id, login_streak=user.login_streak)
        return ActivityResult(
            user_id=user_id,
            event=BADGE_EVENT_LOGIN,
            streak=user.login_streak,
            awarded_badges=awarded,
        )

    async def record_course_opened(
        self,
        session: AsyncSession,
        *,
        user_id: int,
        now_utc: datetime,
    ) -> ActivityResult:
        user = await self._lock_user(session, user_id=user_id)
        user.last_course_opened_at = now_utc
        user.updated_at = now_utc
        await session.flush()

        awarded = await self._badge_engine.evaluate(
            session, user_id=user_id, event=BADGE_EVENT_COURSE_OPENED, now_utc=now_utc
        )
        return ActivityResult(user_id=user_id, event=BADGE_EVENT_COURSE_OPENED, awarded_badges=awarded)

    async def record_tool_used(
        self,
        session: AsyncSession,
        *,
        user_id: int,
        tool_code: str,
        now_utc: datetime,
    ) -> ActivityResult:
        resolved_tool = (tool_code or "").strip().lower()
        if not resolved_tool:
            raise GameValidationError("tool_code is required", field="tool_code")

        user = await self._lock_user(session, user_id=user_id)
        local_date = game_local_date(now_utc)
        user.last_tool_used_at = now_utc

        tool_update = record_day_activity(
            DayStreak(current=int(user.tool_streak or 0), last_local_date=user.last_tool_date),
            local_date=local_date,
        )
        user.tool_streak = tool_update.streak.current
        user.last_tool_date = tool_update.streak.last_local_date

        if resolved_tool == TOOL_STUDY_PLANNER:
            planner_update = record_day_activity(
                DayStreak(
                    current=int(user.study_planner_streak or 0),
                    last_local_date=user.last_study_planner_date,
                ),
                local_date=local_date,
            )
            user.study_planner_streak = planner_update.streak.current
            user.last_study_planner_date = planner_update.streak.last_local_date
        elif resolved_tool == TOOL_PROGRESS_ANALYTICS:
            analytics_update = record_day_activity(
                DayStreak(
                    current=int(user.analytics_streak or 0),
                    last_local_date=user.last_analytics_date,
                ),
                local_date=local_date,
            )
            user.analytics_streak = analytics_update.streak.current
            user.last_analytics_date = analytics_update.streak.last_local_date

        user.updated_at = now_utc
        await session.flush()

        awarded = await self._badge_engine.evaluate(
            session, user_id=user_id, event=BADGE_EVENT_TOOL_USED, now_utc=now_utc
        )
        logger.info(
            "activity_tool_used_recorded",
            user_id=user_id,
            tool_code=resolved_tool,
            tool_streak=user.tool_streak,
        )
        return ActivityResult(
            user_id=user_id,
            event=BADGE_EVENT_TOOL_USED,
            streak=user.tool_streak,
            awarded_badges=awarded,
        )

    async def record_forum_post_created(
        self,
        session: AsyncSession,
        *,
        user_id: int,
        now_utc: datetime,
    ) -> ActivityResult:
        user = await self._lock_user(session, user_id=user_id)
        user.forum_posts_count = int(user.forum_posts_count or 0) + 1
        user.updated_at = now_utc
        await session.flush()

        awarded = await self._badge_engine.evaluate(
            session, user_id=user_id, event=BADGE_EVENT_FORUM_POST_CREATED, now_utc=now_utc
        )
        return ActivityResult(
            user_id=user_id,
            event=BADGE_EVENT_FORUM_POST_CREATED,
            awarded_badges=awarded,
        )

    async def record_lesson_completed(
        self,
        session: AsyncSession,
        *,
        user_id: int,
        now_utc: datetime,
    ) -> ActivityResult:
        adjustment = await self._points_ledger.adjust(
            session,
            user_id=user_id,
            delta=LESSON_COMPLETED_POINTS,
            reason=POINTS_REASON_LESSON_COMPLETED,
            now_utc=now_utc,
        )
        awarded = await self._badge_engine.evaluate(
            session, user_id=user_id, event=BADGE_EVENT_LESSON_COMPLETED, now_utc=now_utc
        )
        return ActivityResult(
            user_id=user_id,
            event=BADGE_EVENT_LESSON_COMPLETED,
            points_delta=adjustment.applied_delta,
            awarded_badges=awarded,
        )

    async def record_course_completed(
        self,
        session: AsyncSession,
        *,
        user_id: int,
        started_at: datetime,
        now_utc: datetime,
    ) -> ActivityResult:
        if started_at > now_utc:
            raise GameValidationError("started_at must not be in the future", field="started_at")

        adjustment = await self._points_ledger.adjust(
            session,
            user_id=user_id,
            delta=COURSE_COMPLETED_POINTS,
            reason=POINTS_REASON_COURSE_COMPLETED,
            now_utc=now_utc,
        )
        awarded: list[str] = []
        if await self._badge_engine.check_quick_learner(
            session,
            user_id=user_id,
            started_at=started_at,
            completed_at=now_utc,
        ):
            awarded.append(QUICK_LEARNER_BADGE_ID)
        awarded.extend(
            await self._badge_engine.evaluate(
                session, user_id=user_id, event=BADGE_EVENT_COURSE_COMPLETED, now_utc=now_utc
            )
        )
        return ActivityResult(
            user_id=user_id,
            event=BADGE_EVENT_COURSE_COMPLETED,
            points_delta=adjustment.applied_delta,
            awarded_badges=awarded,
        )

    async def record_forum_reply_received(
        self,
        session: AsyncSession,
        *,
        author_user_id: int,
        replier_user_id: int,
        now_utc: datetime,
    ) -> ActivityResult:
        if author_user_id == replier_user_id:
            return ActivityResult(user_id=author_user_id, event=BADGE_EVENT_FORUM_REPLY_RECEIVED)

        adjustment = await self._points_ledger.adjust(
            session,
            user_id=author_user_id,
            delta=FORUM_REPLY_POINTS,
            reason=POINTS_REASON_FORUM_REPLY_RECEIVED,
            now_utc=now_utc,
        )
        awarded = await self._badge_engine.evaluate(
            session,
            user_id=author_user_id,
            event=BADGE_EVENT_FORUM_REPLY_RECEIVED,
            now_utc=now_utc,
        )
        return ActivityResult(
            user_id=author_user_id,
            event=BADGE_EVENT_FORUM_REPLY_RECEIVED,
            points_delta=adjustment.applied_delta,
            awarded_badges=awarded,
        )

    async def record_forum_vote(
        self,
        session: AsyncSession,
        *,
        author_user_id: int,
        added: bool,
        now_utc: datetime,
    ) -> ActivityResult:
        adjustment = await self._points_ledger.adjust(
            session,
            user_id=author_user_id,
            delta=FORUM_VOTE_POINTS if added else -FORUM_VOTE_POINTS,
            reason=POINTS_REASON_FORUM_VOTE if added else POINTS_REASON_FORUM_UNVOTE,
            now_utc=now_utc,
        )
        awarded: list[str] = []
        if added:
            awarded = await self._badge_engine.evaluate(
                session,
                user_id=author_user_id,
                event=BADGE_EVENT_FORUM_VOTE_RECEIVED,
                now_utc=now_utc,
            )
        return ActivityResult(
            user_id=author_user_id,
            event=BADGE_EVENT_FORUM_VOTE_RECEIVED,
            points_delta=adjustment.applied_delta,
            awarded_badges=awarded,
        )

    @staticmethod
    async def _lock_user(session: AsyncSession, *, user_id: int) -> User:
        user = await UsersRepo.get_by_id_for_update(session, user_id)
        if user is None:
            raise UserNotFoundError("User not found")
        return user
