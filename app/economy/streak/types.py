from __future__ import annotations

from dataclasses import dataclass
from datetime import date


@dataclass(frozen=True, slots=True)
class DayStreak:
    current: int
    last_local_date: date | None


@dataclass(frozen=True, slots=True)
class DayStreakUpdate:
    streak: DayStreak
