from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime

from app.economy.streak.time import game_local_date, iso_week_key
from app.game.duels.constants import (
    DUEL_KIND_CREATE,
    DUEL_KIND_JOIN,
    RATE_WINDOW_DAILY,
    RATE_WINDOW_WEEKLY,
)
from app.game.duels.types import RateLimitCounters, RateLimitDecision


@dataclass(frozen=True, slots=True)
class DuelQuota:
    free_daily: int = 1
    free_weekly: int = 3
    premium_daily: int = 5
    premium_weekly: int = 20

    def limits_for(self, *, is_premium: bool) -> tuple[int, int]:
        if is_premium:
            return self.premium_daily, self.premium_weekly
        return self.free_daily, self.free_weekly


DEFAULT_DUEL_QUOTA = DuelQuota()


def reset_stale_windows(counters: RateLimitCounters, *, now_utc: datetime) -> RateLimitCounters:
    """Zeroes counters whose stored day or ISO week is not the current one."""
    local_date = game_local_date(now_utc)
    week_key = iso_week_key(local_date)

    updated = counters
    if updated.last_duel_date != local_date:
        updated = replace(updated, duels_today=0)
    if updated.last_duel_week != week_key:
        updated = replace(updated, duels_this_week=0)
    return updated


def check_and_consume(
    counters: RateLimitCounters,
    *,
    kind: str,
    is_premium: bool,
    now_utc: datetime,
    quota: DuelQuota = DEFAULT_DUEL_QUOTA,
) -> RateLimitDecision:
    if kind not in {DUEL_KIND_CREATE, DUEL_KIND_JOIN}:
        raise ValueError(f"unsupported duel rate kind: {kind}")

    refreshed = reset_stale_windows(counters, now_utc=now_utc)
    if kind == DUEL_KIND_JOIN:
        return RateLimitDecision(allowed=True, counters=refreshed)

    daily_limit, weekly_limit = quota.limits_for(is_premium=is_premium)
    if refreshed.duels_today >= daily_limit:
        return RateLimitDecision(
            allowed=False,
            counters=refreshed,
            window=RATE_WINDOW_DAILY,
            limit=daily_limit,
            reason=f"Daily duel limit reached ({daily_limit} per day)",
        )
    if refreshed.duels_this_week >= weekly_limit:
        return RateLimitDecision(
            allowed=False,
            counters=refreshed,
            window=RATE_WINDOW_WEEKLY,
            limit=weekly_limit,
            reason=f"Weekly duel limit reached ({weekly_limit} per week)",
        )

    local_date = game_local_date(now_utc)
    consumed = RateLimitCounters(
        duels_today=refreshed.duels_today + 1,
        duels_this_week=refreshed.duels_this_week + 1,
        last_duel_date=local_date,
        last_duel_week=iso_week_key(local_date),
    )
    return RateLimitDecision(allowed=True, counters=consumed)
