from __future__ import annotations

from datetime import datetime

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.repo.duel_sessions_repo import DuelSessionsRepo
from app.game.duels.constants import (
    DUEL_STATUS_CANCELLED,
    DUEL_STATUS_FORFEITED,
    DUEL_STATUS_LOCKED,
    DUEL_STATUS_STARTED,
    DUEL_STATUS_WAITING,
)
from app.game.duels.state_machine import (
    expire_duel_if_due,
    is_terminal_status,
    raise_if_expired,
    transition_duel,
)
from app.game.duels.types import DuelSnapshot
from app.game.errors import DuelStateConflictError, GameForbiddenError

from .duels_internal import _build_duel_snapshot, _get_duel_or_raise, _is_participant

logger = structlog.get_logger(__name__)


async def start_duel(
    session: AsyncSession,
    *,
    user_id: int,
    duel_key: str,
    now_utc: datetime,
) -> DuelSnapshot:
    duel = await _get_duel_or_raise(session, duel_key=duel_key, for_update=True)
    if duel.host_user_id != user_id:
        raise GameForbiddenError("Only the host can start the duel")
    expire_duel_if_due(duel=duel, now_utc=now_utc)
    raise_if_expired(duel)
    if duel.status != DUEL_STATUS_LOCKED:
        raise DuelStateConflictError("Duel is not ready to start", status=duel.status)

    transition_duel(duel, target=DUEL_STATUS_STARTED, now_utc=now_utc)
    await session.flush()
    logger.info("duel_started", duel_id=str(duel.id), duel_key=duel.duel_key, user_id=user_id)
    return _build_duel_snapshot(duel)


async def cancel_duel(
    session: AsyncSession,
    *,
    user_id: int,
    duel_key: str,
    now_utc: datetime,
) -> DuelSnapshot:
    duel = await _get_duel_or_raise(session, duel_key=duel_key, for_update=True)
    if duel.host_user_id != user_id:
        raise GameForbiddenError("Only the host can cancel the duel")
    expire_duel_if_due(duel=duel, now_utc=now_utc)
    raise_if_expired(duel)
    if duel.status != DUEL_STATUS_WAITING:
        raise DuelStateConflictError("Cannot cancel duel in current status", status=duel.status)

    transition_duel(duel, target=DUEL_STATUS_CANCELLED, now_utc=now_utc)
    await session.flush()
    logger.info("duel_cancelled", duel_id=str(duel.id), duel_key=duel.duel_key, user_id=user_id)
    return _build_duel_snapshot(duel)


async def forfeit_duel(
    session: AsyncSession,
    *,
    user_id: int,
    duel_key: str,
    now_utc: datetime,
) -> DuelSnapshot:
    duel = await _get_duel_or_raise(session, duel_key=duel_key, for_update=True)
    if not _is_participant(duel, user_id=user_id):
        raise GameForbiddenError("Only duel participants can forfeit")
    expire_duel_if_due(duel=duel, now_utc=now_utc)
    raise_if_expired(duel)
    if is_terminal_status(duel.status):
        raise DuelStateConflictError(f"Duel is {duel.status}", status=duel.status)

    transition_duel(duel, target=DUEL_STATUS_FORFEITED, now_utc=now_utc)
    duel.forfeited_by_user_id = user_id
    await session.flush()
    logger.info("duel_forfeited", duel_id=str(duel.id), duel_key=duel.duel_key, user_id=user_id)
    return _build_duel_snapshot(duel)


async def expire_due_duels(
    session: AsyncSession,
    *,
    now_utc: datetime,
    batch_size: int,
) -> int:
    duels = await DuelSessionsRepo.list_waiting_due_for_expire_for_update(
        session,
        now_utc=now_utc,
        limit=batch_size,
    )
    expired_total = 0
    for duel in duels:
        if expire_duel_if_due(duel=duel, now_utc=now_utc):
            expired_total += 1
    if expired_total:
        await session.flush()
    return expired_total
