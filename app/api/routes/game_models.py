from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field


class DuelCreateRequest(BaseModel):
    topic: str = Field(min_length=1, max_length=200)
    num_questions: int = Field(ge=1, le=100)


class DuelKeyRequest(BaseModel):
    duel_key: str = Field(min_length=1, max_length=16)


class DuelResultRequest(BaseModel):
    duel_key: str | None = Field(default=None, max_length=16)
    score: int = Field(ge=0)
    is_solo: bool = False


class DuelResponse(BaseModel):
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
    started_at: datetime | None
    completed_at: datetime | None
    forfeited_by_user_id: int | None


class DuelCreateResponse(BaseModel):
    duel: DuelResponse
    duels_today: int = Field(ge=0)
    duels_this_week: int = Field(ge=0)


class DuelResultResponse(BaseModel):
    completed: bool
    result: str
    points_awarded: int = Field(ge=0)
    winner_user_id: int | None
    duel: DuelResponse | None


class GameStatsResponse(BaseModel):
    games_played: int = Field(ge=0)
    games_won: int = Field(ge=0)
    win_rate: int = Field(ge=0, le=100)
    points_earned: int = Field(ge=0)
    current_game_streak: int = Field(ge=0)
    max_game_streak: int = Field(ge=0)
    duels_today: int = Field(ge=0)
    duels_this_week: int = Field(ge=0)
    daily_limit: int = Field(ge=0)
    weekly_limit: int = Field(ge=0)
    is_premium: bool


class LeaderboardEntryResponse(BaseModel):
    rank: int = Field(ge=1)
    user_id: int
    name: str
    points: int = Field(ge=0)
    is_current_user: bool
    badges: list[str] | None = None


class LeaderboardResponse(BaseModel):
    leaderboard: list[LeaderboardEntryResponse]
    total_users: int = Field(ge=0)
    limit: int
    offset: int
    current_user_rank: int | None


class UserRankResponse(BaseModel):
    user_id: int
    rank: int = Field(ge=1)
    points: int = Field(ge=0)
    total_users: int = Field(ge=0)
    percentile: float = Field(ge=0.0, le=100.0)


class BadgeResponse(BaseModel):
    id: str
    kind: str
    name: str
    icon: str
    description: str
    earned: bool
    progress: int | None
    threshold: int | None
    earned_at: datetime | None


class UserBadgesResponse(BaseModel):
    user_id: int
    points: int = Field(ge=0)
    achievement: list[BadgeResponse]
    point: list[BadgeResponse]
    newly_awarded: list[str] = Field(default_factory=list)


class BadgeCheckResponse(BaseModel):
    user_id: int
    newly_awarded: list[str]
