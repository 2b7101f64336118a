from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models.outbox_events import OutboxEvent


class OutboxEventsRepo:
    @staticmethod
    async def enqueue(
        session: AsyncSession,
        *,
        user_id: int,
        event_type: str,
        payload: dict[str, object],
    ) -> OutboxEvent:
        # Delivery transport picks PENDING rows up; this service only writes them.
        event = OutboxEvent(
            user_id=user_id,
            event_type=event_type,
            payload=payload,
            status="PENDING",
            delivery_attempts=0,
        )
        session.add(event)
        await session.flush()
        return event
