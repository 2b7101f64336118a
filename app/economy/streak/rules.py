from __future__ import annotations

from datetime import date, timedelta

from app.economy.streak.types import DayStreak, DayStreakUpdate


def record_day_activity(streak: DayStreak, *, local_date: date) -> DayStreakUpdate:
    """Advances a consecutive-day streak for activity on ``local_date``.

    Same day keeps the streak, the following day extends it, any gap (or a
    clock that moved backwards) restarts it at 1.
    """
    last_date = streak.last_local_date
    if last_date == local_date:
        return DayStreakUpdate(streak=streak)

    if last_date is not None and last_date + timedelta(days=1) == local_date and streak.current > 0:
        current = streak.current + 1
    else:
        current = 1

    return DayStreakUpdate(streak=DayStreak(current=current, last_local_date=local_date))
