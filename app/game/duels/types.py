from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from uuid import UUID


@dataclass(slots=True)
class DuelSnapshot:
    duel_id: UUID
    duel_key: str
    status: str
    topic: str
    num_questions: int
    host_user_id: int
    host_name: str
    opponent_user_id: int | None
    opponent_name: str | None
    host_score: int
    opponent_score: int
    expires_at: datetime
    started_at: datetime | None = None
    completed_at: datetime | None = None
    forfeited_by_user_id: int | None = None


@dataclass(slots=True)
class DuelCreateResult:
    snapshot: DuelSnapshot
    duels_today: int
    duels_this_week: int


@dataclass(slots=True)
class DuelJoinResult:
    snapshot: DuelSnapshot


@dataclass(slots=True)
class DuelSubmitResult:
    completed: bool
    result: str
    points_awarded: int
    winner_user_id: int | None = None
    snapshot: DuelSnapshot | None = None


@dataclass(frozen=True, slots=True)
class RateLimitCounters:
    duels_today: int
    duels_this_week: int
    last_duel_date: date | None
    last_duel_week: str | None


@dataclass(frozen=True, slots=True)
class RateLimitDecision:
    allowed: bool
    counters: RateLimitCounters
    window: str | None = None
    limit: int | None = None
    reason: str | None = None


@dataclass(frozen=True, slots=True)
class PlayerStatsView:
    games_played: int
    games_won: int
    points_earned: int
    current_game_streak: int
    max_game_streak: int


@dataclass(frozen=True, slots=True)
class PlayerOutcome:
    user_id: int
    result: str
    points: int
    stats: PlayerStatsView


@dataclass(frozen=True, slots=True)
class DuelOutcome:
    host: PlayerOutcome
    opponent: PlayerOutcome
    winner_user_id: int | None

    def for_user(self, user_id: int) -> PlayerOutcome:
        if user_id == self.host.user_id:
            return self.host
        return self.opponent


@dataclass(slots=True)
class GameStatsSummary:
    games_played: int
    games_won: int
    win_rate: int
    points_earned: int
    current_game_streak: int
    max_game_streak: int
    duels_today: int
    duels_this_week: int
    daily_limit: int
    weekly_limit: int
    is_premium: bool
