from __future__ import annotations

from datetime import datetime

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models.points_ledger_entries import PointsLedgerEntry


class PointsLedgerRepo:
    @staticmethod
    async def get_by_idempotency_key(
        session: AsyncSession,
        idempotency_key: str,
    ) -> PointsLedgerEntry | None:
        stmt = select(PointsLedgerEntry).where(PointsLedgerEntry.idempotency_key == idempotency_key)
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def create(
        session: AsyncSession,
        *,
        user_id: int,
        delta: int,
        applied_delta: int,
        balance_after: int,
        reason: str,
        idempotency_key: str | None,
        created_at: datetime,
    ) -> PointsLedgerEntry:
        entry = PointsLedgerEntry(
            user_id=user_id,
            delta=delta,
            applied_delta=applied_delta,
            balance_after=balance_after,
            reason=reason,
            idempotency_key=idempotency_key,
            created_at=created_at,
        )
        session.add(entry)
        await session.flush()
        return entry
