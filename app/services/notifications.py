from __future__ import annotations

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.repo.outbox_events_repo import OutboxEventsRepo

logger = structlog.get_logger(__name__)

NOTIFICATION_BADGE_AWARDED = "badge_awarded"
NOTIFICATION_DUEL_JOINED = "duel_joined"
NOTIFICATION_DUEL_COMPLETED = "duel_completed"


async def enqueue_notification(
    session: AsyncSession,
    *,
    user_id: int,
    event_type: str,
    payload: dict[str, object],
) -> bool:
    """Stores a user notification in the outbox; failures never reach the caller."""
    try:
        async with session.begin_nested():
            event = await OutboxEventsRepo.enqueue(
                session,
                user_id=user_id,
                event_type=event_type,
                payload=payload,
            )
    except Exception:
        logger.exception(
            "notification_enqueue_failed",
            user_id=user_id,
            notification_type=event_type,
        )
        return False
    logger.debug("notification_enqueued", user_id=user_id, notification_type=event_type, outbox_id=event.id)
    return True
