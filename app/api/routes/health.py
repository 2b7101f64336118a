from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from datetime import datetime, timezone
from typing import Any

import structlog
from fastapi import APIRouter, status
from fastapi.responses import JSONResponse
from redis.asyncio import Redis
from sqlalchemy import text

from app.core.config import get_settings
from app.db.repo.duel_sessions_repo import DuelSessionsRepo
from app.db.session import SessionLocal
from app.workers.celery_app import celery_app

router = APIRouter(tags=["health"])
logger = structlog.get_logger(__name__)

CheckResult = dict[str, Any]


class CheckFailed(Exception):
    def __init__(self, code: str) -> None:
        super().__init__(code)
        self.code = code


async def _run_check(name: str, ping: Callable[[], Awaitable[dict[str, Any]]]) -> CheckResult:
    try:
        details = await ping()
    except CheckFailed as exc:
        return {"status": "failed", "error": exc.code}
    except Exception as exc:
        # Driver and broker errors can embed credentials; only the type is logged.
        logger.warning("health_check_failed", check=name, error_type=type(exc).__name__)
        return {"status": "failed", "error": f"{name}_unavailable"}
    return {"status": "ok", **details}


async def _ping_database() -> dict[str, Any]:
    async with SessionLocal() as session:
        await session.execute(text("SELECT 1"))
        # Informational only: overdue duels are expired lazily on the next read.
        overdue = await DuelSessionsRepo.count_waiting_past_expiry(
            session,
            now_utc=datetime.now(timezone.utc),
        )
    return {"overdue_waiting_duels": overdue}


async def _ping_redis() -> dict[str, Any]:
    client = Redis.from_url(get_settings().redis_url)
    try:
        if await client.ping() is not True:
            raise CheckFailed("redis_unexpected_ping_response")
    finally:
        await client.aclose()
    return {}


def _ping_celery_workers() -> dict[str, Any]:
    inspector = celery_app.control.inspect(timeout=1.0)
    if inspector is None:
        raise CheckFailed("celery_inspector_unavailable")
    replies = inspector.ping() or {}
    if not replies:
        raise CheckFailed("celery_no_workers")
    return {"workers": len(replies)}


async def _check_database() -> CheckResult:
    return await _run_check("database", _ping_database)


async def _check_redis() -> CheckResult:
    return await _run_check("redis", _ping_redis)


async def _check_celery_worker() -> CheckResult:
    return await _run_check("celery", lambda: asyncio.to_thread(_ping_celery_workers))


async def _store_checks() -> dict[str, CheckResult]:
    database, redis = await asyncio.gather(_check_database(), _check_redis())
    return {"database": database, "redis": redis}


def _report(checks: dict[str, CheckResult], *, ok_label: str, failed_label: str) -> JSONResponse:
    healthy = all(check.get("status") == "ok" for check in checks.values())
    return JSONResponse(
        status_code=status.HTTP_200_OK if healthy else status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"status": ok_label if healthy else failed_label, "checks": checks},
    )


@router.get("/live")
async def live() -> dict[str, str]:
    return {"status": "live"}


@router.get("/health")
async def health() -> JSONResponse:
    checks = await _store_checks()
    checks["celery"] = await _check_celery_worker()
    return _report(checks, ok_label="ok", failed_label="degraded")


@router.get("/ready")
async def ready() -> JSONResponse:
    # The expiry sweep is optional, so readiness depends only on the stores.
    return _report(await _store_checks(), ok_label="ready", failed_label="not_ready")
