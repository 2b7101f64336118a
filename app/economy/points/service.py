from __future__ import annotations

from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

import structlog
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models.points_ledger_entries import PointsLedgerEntry
from app.db.repo.points_ledger_repo import PointsLedgerRepo
from app.db.repo.users_repo import UsersRepo
from app.economy.points.types import PointsAdjustment
from app.game.badges.engine import BadgeEngine
from app.game.badges.rules import BADGE_EVENT_POINTS_CHANGED
from app.game.errors import GameValidationError, UserNotFoundError

logger = structlog.get_logger(__name__)

POINTS_REASON_DUEL = "duel"
POINTS_REASON_LESSON_COMPLETED = "lesson_completed"
POINTS_REASON_COURSE_COMPLETED = "course_completed"
POINTS_REASON_FORUM_REPLY_RECEIVED = "forum_reply_received"
POINTS_REASON_FORUM_VOTE = "forum_vote"
POINTS_REASON_FORUM_UNVOTE = "forum_unvote"


def coerce_points_delta(value: int | float | Decimal | str) -> int:
    """Turns a requested delta into whole points, rounding half away from zero."""
    if isinstance(value, bool):
        raise GameValidationError("Points delta must be numeric", field="delta")
    try:
        decimal_value = Decimal(str(value))
    except (InvalidOperation, ValueError) as exc:
        raise GameValidationError("Points delta must be numeric", field="delta") from exc
    if not decimal_value.is_finite():
        raise GameValidationError("Points delta must be finite", field="delta")
    return int(decimal_value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


class PointsLedger:
    def __init__(self, *, badge_engine: BadgeEngine | None = None) -> None:
        self._badge_engine = badge_engine

    async def adjust(
        self,
        session: AsyncSession,
        *,
        user_id: int,
        delta: int | float | Decimal | str,
        reason: str,
        now_utc: datetime,
        idempotency_key: str | None = None,
    ) -> PointsAdjustment:
        requested_delta = coerce_points_delta(delta)

        if idempotency_key is not None:
            existing = await PointsLedgerRepo.get_by_idempotency_key(session, idempotency_key)
            if existing is not None:
                return self._duplicate(existing)

        if requested_delta == 0:
            user = await UsersRepo.get_by_id(session, user_id)
            if user is None:
                raise UserNotFoundError("User not found")
            return PointsAdjustment(
                user_id=user_id,
                requested_delta=0,
                applied_delta=0,
                balance_after=int(user.points or 0),
                reason=reason,
            )

        try:
            async with session.begin_nested():
                balances = await UsersRepo.apply_points_delta(
                    session,
                    user_id=user_id,
                    delta=requested_delta,
                    now_utc=now_utc,
                )
                if balances is None:
                    raise UserNotFoundError("User not found")
                balance_before, balance_after = balances
                await PointsLedgerRepo.create(
                    session,
                    user_id=user_id,
                    delta=requested_delta,
                    applied_delta=balance_after - balance_before,
                    balance_after=balance_after,
                    reason=reason,
                    idempotency_key=idempotency_key,
                    created_at=now_utc,
                )
        except IntegrityError:
            if idempotency_key is None:
                raise
            existing = await PointsLedgerRepo.get_by_idempotency_key(session, idempotency_key)
            if existing is None:
                raise
            return self._duplicate(existing)

        adjustment = PointsAdjustment(
            user_id=user_id,
            requested_delta=requested_delta,
            applied_delta=balance_after - balance_before,
            balance_after=balance_after,
            reason=reason,
        )
        logger.info(
            "points_adjusted",
            user_id=user_id,
            delta=requested_delta,
            applied_delta=adjustment.applied_delta,
            balance_after=balance_after,
            reason=reason,
        )

        if self._badge_engine is not None and adjustment.applied_delta != 0:
            await self._badge_engine.evaluate(
                session,
                user_id=user_id,
                event=BADGE_EVENT_POINTS_CHANGED,
                now_utc=now_utc,
            )
        return adjustment

    @staticmethod
    def _duplicate(entry: PointsLedgerEntry) -> PointsAdjustment:
        logger.info(
            "points_adjustment_duplicate",
            user_id=entry.user_id,
            idempotency_key=entry.idempotency_key,
        )
        return PointsAdjustment(
            user_id=int(entry.user_id),
            requested_delta=int(entry.delta),
            applied_delta=0,
            balance_after=int(entry.balance_after),
            reason=entry.reason,
            duplicate=True,
        )
