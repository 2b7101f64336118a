from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(slots=True)
class BadgeView:
    badge_id: str
    kind: str
    name: str
    icon: str
    description: str
    earned: bool
    progress: int | None
    threshold: int | None
    earned_at: datetime | None


@dataclass(slots=True)
class UserBadgesView:
    user_id: int
    points: int
    achievement: list[BadgeView]
    point: list[BadgeView]
