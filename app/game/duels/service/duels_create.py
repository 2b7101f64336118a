from __future__ import annotations

from datetime import datetime
from uuid import uuid4

import structlog
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models.duel_sessions import DuelSession
from app.db.repo.duel_sessions_repo import DuelSessionsRepo
from app.db.repo.game_stats_repo import GameStatsRepo
from app.db.repo.premium_access_repo import PremiumAccessRepo
from app.game.duels.constants import (
    DUEL_KIND_CREATE,
    DUEL_MAX_QUESTIONS,
    DUEL_STATUS_WAITING,
    DUEL_TOPIC_MAX_LENGTH,
)
from app.game.duels.keys import allocate_duel_key
from app.game.duels.rate_limit import DEFAULT_DUEL_QUOTA, DuelQuota, check_and_consume
from app.game.duels.types import DuelCreateResult
from app.game.errors import DuelRateLimitError, GameValidationError

from .duels_internal import (
    _build_duel_snapshot,
    _duel_expires_at,
    _get_user_or_raise,
    _stats_counters,
    _store_counters,
)

logger = structlog.get_logger(__name__)


def _validate_duel_request(*, topic: str | None, num_questions: object) -> tuple[str, int]:
    resolved_topic = (topic or "").strip()
    if not resolved_topic:
        raise GameValidationError("Topic is required", field="topic")
    if len(resolved_topic) > DUEL_TOPIC_MAX_LENGTH:
        raise GameValidationError(
            f"Topic must be at most {DUEL_TOPIC_MAX_LENGTH} characters",
            field="topic",
        )
    if isinstance(num_questions, bool) or not isinstance(num_questions, int):
        raise GameValidationError("Number of questions must be an integer", field="num_questions")
    if num_questions < 1 or num_questions > DUEL_MAX_QUESTIONS:
        raise GameValidationError(
            f"Number of questions must be between 1 and {DUEL_MAX_QUESTIONS}",
            field="num_questions",
        )
    return resolved_topic, num_questions


async def create_duel(
    session: AsyncSession,
    *,
    user_id: int,
    topic: str | None,
    num_questions: object,
    now_utc: datetime,
    quota: DuelQuota = DEFAULT_DUEL_QUOTA,
) -> DuelCreateResult:
    resolved_topic, resolved_questions = _validate_duel_request(
        topic=topic,
        num_questions=num_questions,
    )
    host = await _get_user_or_raise(session, user_id=user_id)
    is_premium = await PremiumAccessRepo.has_active_premium(session, user_id, now_utc)

    stats = await GameStatsRepo.get_or_create_for_update(session, user_id=user_id, now_utc=now_utc)
    decision = check_and_consume(
        _stats_counters(stats),
        kind=DUEL_KIND_CREATE,
        is_premium=is_premium,
        now_utc=now_utc,
        quota=quota,
    )
    if not decision.allowed:
        logger.info(
            "duel_create_rate_limited",
            user_id=user_id,
            window=decision.window,
            limit=decision.limit,
            is_premium=is_premium,
        )
        raise DuelRateLimitError(
            decision.reason or "Duel limit reached",
            window=decision.window or "",
            limit=decision.limit or 0,
        )

    duel_id = uuid4()
    created: list[DuelSession] = []

    async def _try_insert(candidate_key: str) -> bool:
        if await DuelSessionsRepo.key_exists(session, candidate_key):
            return False
        duel = DuelSession(
            id=duel_id,
            duel_key=candidate_key,
            host_user_id=user_id,
            host_name=host.full_name,
            opponent_user_id=None,
            opponent_name=None,
            topic=resolved_topic,
            num_questions=resolved_questions,
            status=DUEL_STATUS_WAITING,
            host_score=0,
            opponent_score=0,
            expires_at=_duel_expires_at(now_utc=now_utc),
            created_at=now_utc,
            updated_at=now_utc,
        )
        try:
            async with session.begin_nested():
                await DuelSessionsRepo.create(session, duel=duel)
        except IntegrityError:
            logger.warning("duel_key_collision", user_id=user_id, duel_key=candidate_key)
            return False
        created.append(duel)
        return True

    await allocate_duel_key(_try_insert)
    _store_counters(stats, decision.counters, now_utc=now_utc)
    await session.flush()

    duel = created[0]
    logger.info(
        "duel_created",
        duel_id=str(duel.id),
        duel_key=duel.duel_key,
        user_id=user_id,
        num_questions=resolved_questions,
        duels_today=stats.duels_today,
        duels_this_week=stats.duels_this_week,
    )
    return DuelCreateResult(
        snapshot=_build_duel_snapshot(duel),
        duels_today=int(stats.duels_today),
        duels_this_week=int(stats.duels_this_week),
    )
