from __future__ import annotations

from datetime import datetime, timezone

import structlog

from app.core.config import get_settings
from app.db.session import SessionLocal
from app.game.duels.service import expire_due_duels
from app.workers.asyncio_runner import run_async_job
from app.workers.celery_app import DUEL_EXPIRY_SWEEP_TASK, celery_app

logger = structlog.get_logger(__name__)


async def run_duel_expiry_sweep_async(*, batch_size: int | None = None) -> dict[str, int]:
    resolved_batch_size = max(1, int(batch_size or get_settings().duel_expiry_sweep_batch_size))
    now_utc = datetime.now(timezone.utc)
    async with SessionLocal.begin() as session:
        expired_total = await expire_due_duels(
            session,
            now_utc=now_utc,
            batch_size=resolved_batch_size,
        )

    result = {"expired_total": expired_total, "batch_size": resolved_batch_size}
    logger.info("duel_expiry_sweep_finished", **result)
    return result


@celery_app.task(name=DUEL_EXPIRY_SWEEP_TASK)
def run_duel_expiry_sweep(batch_size: int | None = None) -> dict[str, int]:
    return run_async_job(lambda: run_duel_expiry_sweep_async(batch_size=batch_size))
