from __future__ import annotations

from datetime import date, datetime
from zoneinfo import ZoneInfo

from app.core.config import get_settings


def game_local_date(now_utc: datetime, *, timezone_name: str | None = None) -> date:
    """Converts a UTC instant to the calendar date of the configured game timezone."""
    resolved_timezone = timezone_name or get_settings().game_timezone
    return now_utc.astimezone(ZoneInfo(resolved_timezone)).date()


def iso_week_key(local_date: date) -> str:
    """Returns a week identifier such as ``2026-W43``.

    Uses the ISO year rather than the calendar year so that the last days of
    December and the first days of January share a key when they share a week.
    """
    iso_year, iso_week, _ = local_date.isocalendar()
    return f"{iso_year}-W{iso_week:02d}"
