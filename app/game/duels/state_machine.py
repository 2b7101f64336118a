from __future__ import annotations

from datetime import datetime

from app.db.models.duel_sessions import DuelSession
from app.game.duels.constants import (
    DUEL_STATUS_CANCELLED,
    DUEL_STATUS_COMPLETED,
    DUEL_STATUS_EXPIRED,
    DUEL_STATUS_FORFEITED,
    DUEL_STATUS_LOCKED,
    DUEL_STATUS_STARTED,
    DUEL_STATUS_WAITING,
    DUEL_TERMINAL_STATUSES,
)
from app.game.errors import DuelExpiredError, DuelStateConflictError

DUEL_TRANSITIONS: dict[str, frozenset[str]] = {
    DUEL_STATUS_WAITING: frozenset(
        {DUEL_STATUS_LOCKED, DUEL_STATUS_EXPIRED, DUEL_STATUS_CANCELLED, DUEL_STATUS_FORFEITED}
    ),
    DUEL_STATUS_LOCKED: frozenset(
        {DUEL_STATUS_STARTED, DUEL_STATUS_COMPLETED, DUEL_STATUS_FORFEITED}
    ),
    DUEL_STATUS_STARTED: frozenset({DUEL_STATUS_COMPLETED, DUEL_STATUS_FORFEITED}),
    DUEL_STATUS_COMPLETED: frozenset(),
    DUEL_STATUS_EXPIRED: frozenset(),
    DUEL_STATUS_CANCELLED: frozenset(),
    DUEL_STATUS_FORFEITED: frozenset(),
}


def is_terminal_status(status: str) -> bool:
    return status in DUEL_TERMINAL_STATUSES


def can_transition(current: str, target: str) -> bool:
    return target in DUEL_TRANSITIONS.get(current, frozenset())


def transition_duel(duel: DuelSession, *, target: str, now_utc: datetime) -> None:
    if not can_transition(duel.status, target):
        raise DuelStateConflictError(
            f"Duel cannot move from {duel.status} to {target}",
            status=duel.status,
        )
    duel.status = target
    if target == DUEL_STATUS_STARTED:
        duel.started_at = now_utc
    elif target in DUEL_TERMINAL_STATUSES:
        duel.completed_at = now_utc
    duel.updated_at = now_utc


def expire_duel_if_due(*, duel: DuelSession, now_utc: datetime) -> bool:
    """Flips an overdue ``waiting`` duel to ``expired``; returns whether it changed."""
    if duel.status != DUEL_STATUS_WAITING:
        return False
    if duel.expires_at > now_utc:
        return False
    transition_duel(duel, target=DUEL_STATUS_EXPIRED, now_utc=now_utc)
    return True


def raise_if_expired(duel: DuelSession) -> None:
    if duel.status == DUEL_STATUS_EXPIRED:
        raise DuelExpiredError("Duel has expired")
