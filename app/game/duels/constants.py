from __future__ import annotations

import string

from app.core.config import get_settings

DUEL_STATUS_WAITING = "waiting"
DUEL_STATUS_LOCKED = "locked"
DUEL_STATUS_STARTED = "started"
DUEL_STATUS_COMPLETED = "completed"
DUEL_STATUS_EXPIRED = "expired"
DUEL_STATUS_CANCELLED = "cancelled"
DUEL_STATUS_FORFEITED = "forfeited"

DUEL_TERMINAL_STATUSES: frozenset[str] = frozenset(
    {
        DUEL_STATUS_COMPLETED,
        DUEL_STATUS_EXPIRED,
        DUEL_STATUS_CANCELLED,
        DUEL_STATUS_FORFEITED,
    }
)

# Scores are accepted once an opponent is locked in; the host starting the
# duel is not required for a submission to count.
DUEL_SCORABLE_STATUSES: frozenset[str] = frozenset({DUEL_STATUS_LOCKED, DUEL_STATUS_STARTED})

DUEL_KEY_ALPHABET = string.ascii_uppercase + string.digits
DUEL_KEY_LENGTH = 6
DUEL_KEY_MAX_ATTEMPTS = 10

DUEL_TTL_SECONDS = max(60, int(get_settings().duel_ttl_minutes) * 60)

DUEL_KIND_CREATE = "create"
DUEL_KIND_JOIN = "join"

RATE_WINDOW_DAILY = "daily"
RATE_WINDOW_WEEKLY = "weekly"

DUEL_RESULT_WIN = "win"
DUEL_RESULT_LOSS = "loss"
DUEL_RESULT_DRAW = "draw"
DUEL_RESULT_PENDING = "pending"
DUEL_RESULT_FORFEITED = "forfeited"
DUEL_RESULT_SOLO = "solo"

DUEL_TOPIC_MAX_LENGTH = 200
DUEL_MAX_QUESTIONS = 100
