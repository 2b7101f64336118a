from __future__ import annotations

from datetime import datetime, timedelta

from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models.duel_sessions import DuelSession
from app.db.models.game_stats import GameStats
from app.db.models.users import User
from app.db.repo.duel_sessions_repo import DuelSessionsRepo
from app.db.repo.users_repo import UsersRepo
from app.game.duels.constants import DUEL_TTL_SECONDS
from app.game.duels.keys import normalize_duel_key
from app.game.duels.types import DuelSnapshot, PlayerStatsView, RateLimitCounters
from app.game.errors import DuelNotFoundError, UserNotFoundError


def _duel_expires_at(*, now_utc: datetime) -> datetime:
    return now_utc + timedelta(seconds=DUEL_TTL_SECONDS)


def _build_duel_snapshot(duel: DuelSession) -> DuelSnapshot:
    return DuelSnapshot(
        duel_id=duel.id,
        duel_key=duel.duel_key,
        status=duel.status,
        topic=duel.topic,
        num_questions=int(duel.num_questions),
        host_user_id=int(duel.host_user_id),
        host_name=duel.host_name,
        opponent_user_id=int(duel.opponent_user_id) if duel.opponent_user_id is not None else None,
        opponent_name=duel.opponent_name,
        host_score=int(duel.host_score or 0),
        opponent_score=int(duel.opponent_score or 0),
        expires_at=duel.expires_at,
        started_at=duel.started_at,
        completed_at=duel.completed_at,
        forfeited_by_user_id=(
            int(duel.forfeited_by_user_id) if duel.forfeited_by_user_id is not None else None
        ),
    )


def _stats_counters(stats: GameStats) -> RateLimitCounters:
    return RateLimitCounters(
        duels_today=int(stats.duels_today or 0),
        duels_this_week=int(stats.duels_this_week or 0),
        last_duel_date=stats.last_duel_date,
        last_duel_week=stats.last_duel_week,
    )


def _store_counters(stats: GameStats, counters: RateLimitCounters, *, now_utc: datetime) -> None:
    stats.duels_today = counters.duels_today
    stats.duels_this_week = counters.duels_this_week
    stats.last_duel_date = counters.last_duel_date
    stats.last_duel_week = counters.last_duel_week
    stats.updated_at = now_utc


def _stats_view(stats: GameStats) -> PlayerStatsView:
    return PlayerStatsView(
        games_played=int(stats.games_played or 0),
        games_won=int(stats.games_won or 0),
        points_earned=int(stats.points_earned or 0),
        current_game_streak=int(stats.current_game_streak or 0),
        max_game_streak=int(stats.max_game_streak or 0),
    )


def _store_stats_view(stats: GameStats, view: PlayerStatsView, *, now_utc: datetime) -> None:
    stats.games_played = view.games_played
    stats.games_won = view.games_won
    stats.points_earned = view.points_earned
    stats.current_game_streak = view.current_game_streak
    stats.max_game_streak = view.max_game_streak
    stats.updated_at = now_utc


async def _get_user_or_raise(session: AsyncSession, *, user_id: int) -> User:
    user = await UsersRepo.get_by_id(session, user_id)
    if user is None:
        raise UserNotFoundError("User not found")
    return user


async def _get_duel_or_raise(
    session: AsyncSession,
    *,
    duel_key: str,
    for_update: bool = False,
) -> DuelSession:
    key = normalize_duel_key(duel_key)
    if for_update:
        duel = await DuelSessionsRepo.get_by_key_for_update(session, key)
    else:
        duel = await DuelSessionsRepo.get_by_key(session, key)
    if duel is None:
        raise DuelNotFoundError("Duel not found")
    return duel


def _is_participant(duel: DuelSession, *, user_id: int) -> bool:
    return user_id == duel.host_user_id or (
        duel.opponent_user_id is not None and user_id == duel.opponent_user_id
    )
