from __future__ import annotations

from collections.abc import Awaitable, Callable
from datetime import datetime

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models.user_badges import UserBadge
from app.db.repo.user_badges_repo import UserBadgesRepo
from app.db.repo.users_repo import UsersRepo
from app.game.badges.catalog import (
    BADGE_KIND_ACHIEVEMENT,
    BADGE_KIND_POINT,
    DEFAULT_BADGE_CATALOG,
    BadgeCatalog,
)
from app.game.badges.facts import load_badge_facts
from app.game.badges.rules import (
    BADGE_EVENT_DUEL_COMPLETED,
    BADGE_EVENT_POINTS_CHANGED,
    BADGE_EVENTS,
    DEFAULT_BADGE_RULES,
    QUICK_LEARNER_BADGE_ID,
    BadgeFacts,
    BadgeRule,
    is_quick_completion,
    rules_for_event,
)
from app.game.badges.types import BadgeView, UserBadgesView
from app.game.errors import GameValidationError, UserNotFoundError
from app.services.notifications import NOTIFICATION_BADGE_AWARDED, enqueue_notification

logger = structlog.get_logger(__name__)

FactsLoader = Callable[..., Awaitable[BadgeFacts | None]]

POINT_BADGE_EVENTS = frozenset({BADGE_EVENT_POINTS_CHANGED, BADGE_EVENT_DUEL_COMPLETED})


class BadgeEngine:
    """Evaluates badge predicates and persists awards.

    Every check runs in its own savepoint; a failing rule is logged and
    skipped so the caller's transaction is never aborted by badge work.
    """

    def __init__(
        self,
        *,
        catalog: BadgeCatalog = DEFAULT_BADGE_CATALOG,
        rules: tuple[BadgeRule, ...] = DEFAULT_BADGE_RULES,
        facts_loader: FactsLoader = load_badge_facts,
    ) -> None:
        self.catalog = catalog
        self.rules = rules
        self._facts_loader = facts_loader

    async def award_badge(
        self,
        session: AsyncSession,
        *,
        user_id: int,
        badge_id: str,
        now_utc: datetime,
        progress: int | None = None,
    ) -> bool:
        """Marks the badge earned once; returns False when it was already earned."""
        kind = self.catalog.kind_of(badge_id)
        if kind is None:
            raise GameValidationError(f"Unknown badge: {badge_id}", field="badge_id")

        badge = await UserBadgesRepo.get_or_create_for_update(
            session,
            user_id=user_id,
            badge_id=badge_id,
            kind=kind,
            now_utc=now_utc,
        )
        if progress is not None:
            badge.progress = progress
        if badge.earned:
            await session.flush()
            return False

        badge.earned = True
        badge.earned_at = now_utc
        badge.updated_at = now_utc
        await session.flush()

        logger.info("badge_awarded", user_id=user_id, badge_id=badge_id, badge_kind=kind)
        await enqueue_notification(
            session,
            user_id=user_id,
            event_type=NOTIFICATION_BADGE_AWARDED,
            payload=self._notification_payload(badge_id=badge_id, kind=kind),
        )
        return True

    async def evaluate(
        self,
        session: AsyncSession,
        *,
        user_id: int,
        event: str,
        now_utc: datetime,
    ) -> list[str]:
        """Runs the rules mapped to ``event``; returns newly awarded badge ids."""
        if event not in BADGE_EVENTS:
            raise GameValidationError(f"Unknown badge event: {event}", field="event")

        rules = rules_for_event(self.rules, event)
        check_points = event in POINT_BADGE_EVENTS
        if not rules and not check_points:
            return []

        facts = await self._load_facts(session, user_id=user_id)
        if facts is None:
            return []

        awarded = await self._apply_rules(session, user_id=user_id, rules=rules, facts=facts, now_utc=now_utc)
        if check_points:
            awarded.extend(
                await self._apply_point_band(session, user_id=user_id, points=facts.points, now_utc=now_utc)
            )
        return awarded

    async def check_all(
        self,
        session: AsyncSession,
        *,
        user_id: int,
        now_utc: datetime,
    ) -> list[str]:
        facts = await self._load_facts(session, user_id=user_id)
        if facts is None:
            return []
        awarded = await self._apply_point_band(
            session,
            user_id=user_id,
            points=facts.points,
            now_utc=now_utc,
        )
        awarded.extend(
            await self._apply_rules(session, user_id=user_id, rules=self.rules, facts=facts, now_utc=now_utc)
        )
        return awarded

    async def check_quick_learner(
        self,
        session: AsyncSession,
        *,
        user_id: int,
        started_at: datetime,
        completed_at: datetime,
    ) -> bool:
        completion_seconds = (completed_at - started_at).total_seconds()
        if not is_quick_completion(completion_seconds=completion_seconds):
            return False
        return await self._guarded(
            session,
            user_id=user_id,
            badge_id=QUICK_LEARNER_BADGE_ID,
            operation=lambda: self.award_badge(
                session,
                user_id=user_id,
                badge_id=QUICK_LEARNER_BADGE_ID,
                now_utc=completed_at,
            ),
        )

    async def get_user_badges(self, session: AsyncSession, *, user_id: int) -> UserBadgesView:
        user = await UsersRepo.get_by_id(session, user_id)
        if user is None:
            raise UserNotFoundError("User not found")

        stored = {badge.badge_id: badge for badge in await UserBadgesRepo.list_for_user(session, user_id=user_id)}
        achievement = [
            self._view(
                badge_id=definition.badge_id,
                kind=BADGE_KIND_ACHIEVEMENT,
                name=definition.name,
                icon=definition.icon,
                description=definition.description,
                threshold=definition.threshold,
                stored=stored.get(definition.badge_id),
            )
            for definition in self.catalog.achievements
        ]
        point = [
            self._view(
                badge_id=band.badge_id,
                kind=BADGE_KIND_POINT,
                name=band.name,
                icon=band.icon,
                description=band.description,
                threshold=band.min_points,
                stored=stored.get(band.badge_id),
            )
            for band in self.catalog.point_bands
        ]
        return UserBadgesView(
            user_id=user_id,
            points=int(user.points or 0),
            achievement=achievement,
            point=point,
        )

    async def _apply_rules(
        self,
        session: AsyncSession,
        *,
        user_id: int,
        rules: tuple[BadgeRule, ...],
        facts: BadgeFacts,
        now_utc: datetime,
    ) -> list[str]:
        awarded: list[str] = []
        for rule in rules:
            newly_awarded = await self._guarded(
                session,
                user_id=user_id,
                badge_id=rule.badge_id,
                operation=lambda rule=rule: self._apply_rule(
                    session,
                    user_id=user_id,
                    rule=rule,
                    facts=facts,
                    now_utc=now_utc,
                ),
            )
            if newly_awarded:
                awarded.append(rule.badge_id)
        return awarded

    async def _apply_rule(
        self,
        session: AsyncSession,
        *,
        user_id: int,
        rule: BadgeRule,
        facts: BadgeFacts,
        now_utc: datetime,
    ) -> bool:
        verdict = rule.check(facts)
        if verdict.earned:
            return await self.award_badge(
                session,
                user_id=user_id,
                badge_id=rule.badge_id,
                now_utc=now_utc,
                progress=verdict.progress,
            )
        if verdict.progress is not None:
            badge = await UserBadgesRepo.get_or_create_for_update(
                session,
                user_id=user_id,
                badge_id=rule.badge_id,
                kind=BADGE_KIND_ACHIEVEMENT,
                now_utc=now_utc,
            )
            if not badge.earned and badge.progress != verdict.progress:
                badge.progress = verdict.progress
                badge.updated_at = now_utc
                await session.flush()
        return False

    async def _apply_point_band(
        self,
        session: AsyncSession,
        *,
        user_id: int,
        points: int,
        now_utc: datetime,
    ) -> list[str]:
        band = self.catalog.band_for_points(points)
        if band is None:
            return []
        newly_awarded = await self._guarded(
            session,
            user_id=user_id,
            badge_id=band.badge_id,
            operation=lambda: self.award_badge(
                session,
                user_id=user_id,
                badge_id=band.badge_id,
                now_utc=now_utc,
            ),
        )
        return [band.badge_id] if newly_awarded else []

    async def _load_facts(self, session: AsyncSession, *, user_id: int) -> BadgeFacts | None:
        try:
            async with session.begin_nested():
                return await self._facts_loader(session, user_id=user_id)
        except Exception:
            logger.exception("badge_facts_load_failed", user_id=user_id)
            return None

    @staticmethod
    async def _guarded(
        session: AsyncSession,
        *,
        user_id: int,
        badge_id: str,
        operation: Callable[[], Awaitable[bool]],
    ) -> bool:
        try:
            async with session.begin_nested():
                return await operation()
        except Exception:
            logger.exception("badge_check_failed", user_id=user_id, badge_id=badge_id)
            return False

    def _notification_payload(self, *, badge_id: str, kind: str) -> dict[str, object]:
        if kind == BADGE_KIND_POINT:
            definition = self.catalog.get_point_band(badge_id)
        else:
            definition = self.catalog.get_achievement(badge_id)
        return {
            "badge_id": badge_id,
            "badge_kind": kind,
            "name": definition.name if definition is not None else badge_id,
            "icon": definition.icon if definition is not None else "",
        }

    @staticmethod
    def _view(
        *,
        badge_id: str,
        kind: str,
        name: str,
        icon: str,
        description: str,
        threshold: int | None,
        stored: UserBadge | None,
    ) -> BadgeView:
        return BadgeView(
            badge_id=badge_id,
            kind=kind,
            name=name,
            icon=icon,
            description=description,
            earned=bool(stored.earned) if stored is not None else False,
            progress=stored.progress if stored is not None else None,
            threshold=threshold,
            earned_at=stored.earned_at if stored is not None else None,
        )
