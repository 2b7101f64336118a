from __future__ import annotations

from datetime import datetime

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models.duel_sessions import DuelSession
from app.db.models.game_stats import GameStats
from app.db.repo.game_stats_repo import GameStatsRepo
from app.economy.points.service import POINTS_REASON_DUEL, PointsLedger
from app.game.badges.engine import BadgeEngine
from app.game.badges.rules import BADGE_EVENT_DUEL_COMPLETED
from app.game.duels.constants import (
    DUEL_RESULT_FORFEITED,
    DUEL_RESULT_PENDING,
    DUEL_RESULT_SOLO,
    DUEL_SCORABLE_STATUSES,
    DUEL_STATUS_COMPLETED,
    DUEL_STATUS_FORFEITED,
)
from app.game.duels.scoring import (
    DEFAULT_DUEL_REWARDS,
    DuelRewards,
    record_solo_game,
    resolve_duel,
)
from app.game.duels.state_machine import expire_duel_if_due, raise_if_expired, transition_duel
from app.game.duels.types import DuelOutcome, DuelSubmitResult
from app.game.errors import DuelStateConflictError, GameForbiddenError, GameValidationError
from app.services.notifications import NOTIFICATION_DUEL_COMPLETED, enqueue_notification

from .duels_internal import (
    _build_duel_snapshot,
    _get_duel_or_raise,
    _is_participant,
    _stats_view,
    _store_stats_view,
)

logger = structlog.get_logger(__name__)


def duel_points_idempotency_key(*, duel_id: object, user_id: int) -> str:
    return f"duel:{duel_id}:{user_id}"


def _validate_score(score: object) -> int:
    if isinstance(score, bool) or not isinstance(score, int):
        raise GameValidationError("Score must be an integer", field="score")
    if score < 0:
        raise GameValidationError("Score must not be negative", field="score")
    return score


async def submit_result(
    session: AsyncSession,
    *,
    user_id: int,
    duel_key: str | None,
    score: object,
    is_solo: bool,
    now_utc: datetime,
    points_ledger: PointsLedger,
    badge_engine: BadgeEngine,
    rewards: DuelRewards = DEFAULT_DUEL_REWARDS,
) -> DuelSubmitResult:
    resolved_score = _validate_score(score)

    if is_solo:
        stats = await GameStatsRepo.get_or_create_for_update(session, user_id=user_id, now_utc=now_utc)
        _store_stats_view(stats, record_solo_game(_stats_view(stats)), now_utc=now_utc)
        await session.flush()
        logger.info("solo_game_recorded", user_id=user_id, games_played=stats.games_played)
        return DuelSubmitResult(completed=True, result=DUEL_RESULT_SOLO, points_awarded=0)

    if not duel_key:
        raise GameValidationError("Duel key is required for duel games", field="duel_key")

    duel = await _get_duel_or_raise(session, duel_key=duel_key, for_update=True)
    if not _is_participant(duel, user_id=user_id):
        raise GameForbiddenError("Only duel participants can submit results")

    if duel.status == DUEL_STATUS_FORFEITED:
        return DuelSubmitResult(
            completed=True,
            result=DUEL_RESULT_FORFEITED,
            points_awarded=0,
            snapshot=_build_duel_snapshot(duel),
        )

    expire_duel_if_due(duel=duel, now_utc=now_utc)
    raise_if_expired(duel)
    if duel.status not in DUEL_SCORABLE_STATUSES:
        raise DuelStateConflictError(f"Duel is {duel.status}", status=duel.status)

    if user_id == duel.host_user_id:
        duel.host_score = resolved_score
    else:
        duel.opponent_score = resolved_score
    duel.updated_at = now_utc

    # A score of 0 doubles as "not submitted yet", so a genuine zero never completes the duel.
    if duel.host_score <= 0 or duel.opponent_score <= 0:
        await session.flush()
        logger.info(
            "duel_score_submitted",
            duel_id=str(duel.id),
            user_id=user_id,
            score=resolved_score,
        )
        return DuelSubmitResult(
            completed=False,
            result=DUEL_RESULT_PENDING,
            points_awarded=0,
            snapshot=_build_duel_snapshot(duel),
        )

    outcome = await _complete_duel(
        session,
        duel=duel,
        now_utc=now_utc,
        points_ledger=points_ledger,
        badge_engine=badge_engine,
        rewards=rewards,
    )
    player = outcome.for_user(user_id)
    return DuelSubmitResult(
        completed=True,
        result=player.result,
        points_awarded=player.points,
        winner_user_id=outcome.winner_user_id,
        snapshot=_build_duel_snapshot(duel),
    )


async def _lock_player_stats(
    session: AsyncSession,
    *,
    host_user_id: int,
    opponent_user_id: int,
    now_utc: datetime,
) -> tuple[GameStats, GameStats]:
    # Fixed lock order keeps two concurrent completions from deadlocking.
    locked: dict[int, GameStats] = {}
    for player_id in sorted((host_user_id, opponent_user_id)):
        locked[player_id] = await GameStatsRepo.get_or_create_for_update(
            session,
            user_id=player_id,
            now_utc=now_utc,
        )
    return locked[host_user_id], locked[opponent_user_id]


async def _complete_duel(
    session: AsyncSession,
    *,
    duel: DuelSession,
    now_utc: datetime,
    points_ledger: PointsLedger,
    badge_engine: BadgeEngine,
    rewards: DuelRewards,
) -> DuelOutcome:
    host_user_id = int(duel.host_user_id)
    opponent_user_id = int(duel.opponent_user_id)
    host_stats, opponent_stats = await _lock_player_stats(
        session,
        host_user_id=host_user_id,
        opponent_user_id=opponent_user_id,
        now_utc=now_utc,
    )
    outcome = resolve_duel(
        host_user_id=host_user_id,
        host_score=int(duel.host_score),
        host_stats=_stats_view(host_stats),
        opponent_user_id=opponent_user_id,
        opponent_score=int(duel.opponent_score),
        opponent_stats=_stats_view(opponent_stats),
        rewards=rewards,
    )
    _store_stats_view(host_stats, outcome.host.stats, now_utc=now_utc)
    _store_stats_view(opponent_stats, outcome.opponent.stats, now_utc=now_utc)
    transition_duel(duel, target=DUEL_STATUS_COMPLETED, now_utc=now_utc)
    await session.flush()

    for player in (outcome.host, outcome.opponent):
        await points_ledger.adjust(
            session,
            user_id=player.user_id,
            delta=player.points,
            reason=POINTS_REASON_DUEL,
            now_utc=now_utc,
            idempotency_key=duel_points_idempotency_key(duel_id=duel.id, user_id=player.user_id),
        )

    logger.info(
        "duel_completed",
        duel_id=str(duel.id),
        duel_key=duel.duel_key,
        host_user_id=host_user_id,
        opponent_user_id=opponent_user_id,
        host_score=duel.host_score,
        opponent_score=duel.opponent_score,
        winner_user_id=outcome.winner_user_id,
    )

    for player in (outcome.host, outcome.opponent):
        await badge_engine.evaluate(
            session,
            user_id=player.user_id,
            event=BADGE_EVENT_DUEL_COMPLETED,
            now_utc=now_utc,
        )
        await enqueue_notification(
            session,
            user_id=player.user_id,
            event_type=NOTIFICATION_DUEL_COMPLETED,
            payload={
                "duel_key": duel.duel_key,
                "result": player.result,
                "points": player.points,
                "host_score": int(duel.host_score),
                "opponent_score": int(duel.opponent_score),
            },
        )
    return outcome
