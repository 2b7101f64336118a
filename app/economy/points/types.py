from __future__ import annotations

from dataclasses import dataclass


@dataclass(slots=True)
class PointsAdjustment:
    user_id: int
    requested_delta: int
    applied_delta: int
    balance_after: int
    reason: str
    duplicate: bool = False


@dataclass(slots=True)
class UserRank:
    user_id: int
    rank: int
    points: int
    total_users: int
    percentile: float


@dataclass(slots=True)
class LeaderboardRow:
    rank: int
    user_id: int
    full_name: str
    points: int
    is_current_user: bool
    badges: list[str] | None = None


@dataclass(slots=True)
class LeaderboardPage:
    rows: list[LeaderboardRow]
    total_users: int
    limit: int
    offset: int
    current_user_rank: int | None
