from __future__ import annotations

from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession

from app.db.repo.game_stats_repo import GameStatsRepo
from app.db.repo.premium_access_repo import PremiumAccessRepo
from app.game.duels.rate_limit import DEFAULT_DUEL_QUOTA, DuelQuota, reset_stale_windows
from app.game.duels.state_machine import expire_duel_if_due
from app.game.duels.types import DuelSnapshot, GameStatsSummary

from .duels_internal import (
    _build_duel_snapshot,
    _get_duel_or_raise,
    _get_user_or_raise,
    _stats_counters,
    _store_counters,
)


async def get_duel_status(
    session: AsyncSession,
    *,
    duel_key: str,
    now_utc: datetime,
) -> DuelSnapshot:
    duel = await _get_duel_or_raise(session, duel_key=duel_key)
    if expire_duel_if_due(duel=duel, now_utc=now_utc):
        await session.flush()
    return _build_duel_snapshot(duel)


def _win_rate(*, games_won: int, games_played: int) -> int:
    if games_played <= 0:
        return 0
    return round(100 * games_won / games_played)


async def get_game_stats(
    session: AsyncSession,
    *,
    user_id: int,
    now_utc: datetime,
    quota: DuelQuota = DEFAULT_DUEL_QUOTA,
) -> GameStatsSummary:
    await _get_user_or_raise(session, user_id=user_id)
    is_premium = await PremiumAccessRepo.has_active_premium(session, user_id, now_utc)
    stats = await GameStatsRepo.get_or_create_for_update(session, user_id=user_id, now_utc=now_utc)

    counters = _stats_counters(stats)
    refreshed = reset_stale_windows(counters, now_utc=now_utc)
    if refreshed != counters:
        _store_counters(stats, refreshed, now_utc=now_utc)
        await session.flush()

    daily_limit, weekly_limit = quota.limits_for(is_premium=is_premium)
    return GameStatsSummary(
        games_played=int(stats.games_played),
        games_won=int(stats.games_won),
        win_rate=_win_rate(games_won=int(stats.games_won), games_played=int(stats.games_played)),
        points_earned=int(stats.points_earned),
        current_game_streak=int(stats.current_game_streak),
        max_game_streak=int(stats.max_game_streak),
        duels_today=refreshed.duels_today,
        duels_this_week=refreshed.duels_this_week,
        daily_limit=daily_limit,
        weekly_limit=weekly_limit,
        is_premium=is_premium,
    )
