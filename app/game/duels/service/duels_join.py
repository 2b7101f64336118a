from __future__ import annotations

from datetime import datetime

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models.duel_sessions import DuelSession
from app.db.repo.duel_sessions_repo import DuelSessionsRepo
from app.db.repo.game_stats_repo import GameStatsRepo
from app.db.repo.premium_access_repo import PremiumAccessRepo
from app.game.duels.constants import DUEL_KIND_JOIN, DUEL_STATUS_EXPIRED
from app.game.duels.rate_limit import DEFAULT_DUEL_QUOTA, DuelQuota, check_and_consume
from app.game.duels.state_machine import expire_duel_if_due
from app.game.duels.types import DuelJoinResult
from app.game.errors import (
    DuelAlreadyHasOpponentError,
    DuelExpiredError,
    DuelNotFoundError,
    DuelSelfJoinError,
    DuelStateConflictError,
)
from app.services.notifications import NOTIFICATION_DUEL_JOINED, enqueue_notification

from .duels_internal import (
    _build_duel_snapshot,
    _get_duel_or_raise,
    _get_user_or_raise,
    _stats_counters,
    _store_counters,
)

logger = structlog.get_logger(__name__)


def _raise_if_expired(duel: DuelSession, *, now_utc: datetime) -> None:
    if expire_duel_if_due(duel=duel, now_utc=now_utc) or duel.status == DUEL_STATUS_EXPIRED:
        raise DuelExpiredError("Duel key has expired")


def _raise_for_missed_claim(duel: DuelSession, *, now_utc: datetime) -> None:
    _raise_if_expired(duel, now_utc=now_utc)
    if duel.opponent_user_id is not None:
        raise DuelAlreadyHasOpponentError("Duel already has an opponent", status=duel.status)
    raise DuelStateConflictError(f"Duel is {duel.status}", status=duel.status)


async def join_duel(
    session: AsyncSession,
    *,
    user_id: int,
    duel_key: str,
    now_utc: datetime,
    quota: DuelQuota = DEFAULT_DUEL_QUOTA,
) -> DuelJoinResult:
    duel = await _get_duel_or_raise(session, duel_key=duel_key)
    if duel.host_user_id == user_id:
        raise DuelSelfJoinError("You cannot join your own duel")

    _raise_if_expired(duel, now_utc=now_utc)
    opponent = await _get_user_or_raise(session, user_id=user_id)

    # Joining is never capped; the pass only applies the lazy window resets.
    is_premium = await PremiumAccessRepo.has_active_premium(session, user_id, now_utc)
    stats = await GameStatsRepo.get_or_create_for_update(session, user_id=user_id, now_utc=now_utc)
    decision = check_and_consume(
        _stats_counters(stats),
        kind=DUEL_KIND_JOIN,
        is_premium=is_premium,
        now_utc=now_utc,
        quota=quota,
    )
    _store_counters(stats, decision.counters, now_utc=now_utc)

    claimed_id = await DuelSessionsRepo.claim_opponent(
        session,
        duel_key=duel.duel_key,
        opponent_user_id=user_id,
        opponent_name=opponent.full_name,
        now_utc=now_utc,
    )
    refreshed = await DuelSessionsRepo.refresh(session, duel.id)
    if refreshed is None:
        raise DuelNotFoundError("Duel not found")
    if claimed_id is None:
        logger.info(
            "duel_join_lost_race",
            duel_id=str(refreshed.id),
            user_id=user_id,
            status=refreshed.status,
        )
        _raise_for_missed_claim(refreshed, now_utc=now_utc)

    await enqueue_notification(
        session,
        user_id=int(refreshed.host_user_id),
        event_type=NOTIFICATION_DUEL_JOINED,
        payload={
            "duel_key": refreshed.duel_key,
            "opponent_user_id": user_id,
            "opponent_name": opponent.full_name,
        },
    )
    logger.info(
        "duel_joined",
        duel_id=str(refreshed.id),
        duel_key=refreshed.duel_key,
        host_user_id=refreshed.host_user_id,
        user_id=user_id,
    )
    return DuelJoinResult(snapshot=_build_duel_snapshot(refreshed))
