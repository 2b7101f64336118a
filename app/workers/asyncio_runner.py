from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from typing import TypeVar

from app.db.session import dispose_engine

T = TypeVar("T")


def run_async_job(job: Callable[[], Awaitable[T]]) -> T:
    """Runs an async job from a synchronous celery task on a fresh event loop.

    The job is a factory so the coroutine is created inside the loop that awaits it.
    Pooled asyncpg connections are bound to the loop that opened them, so the engine
    pool is dropped before and after each job.
    """

    async def _main() -> T:
        await dispose_engine()
        try:
            return await job()
        finally:
            await dispose_engine()

    return asyncio.run(_main())
