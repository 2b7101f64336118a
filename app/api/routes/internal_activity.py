from __future__ import annotations

from datetime import datetime, timezone

import structlog
from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import BaseModel, Field

from app.core.config import get_settings
from app.db.session import SessionLocal
from app.economy.activity.service import ActivityResult
from app.game.errors import GamificationError
from app.services.gamification import get_gamification_services
from app.services.internal_auth import (
    FORWARDED_FOR_HEADER,
    INTERNAL_TOKEN_HEADER,
    evaluate_internal_access,
)

from .game_helpers import _raise_http_error

logger = structlog.get_logger(__name__)


def _require_internal_access(request: Request) -> None:
    settings = get_settings()
    decision = evaluate_internal_access(
        received_token=request.headers.get(INTERNAL_TOKEN_HEADER),
        peer_host=request.client.host if request.client is not None else None,
        forwarded_for=request.headers.get(FORWARDED_FOR_HEADER),
        expected_token=settings.internal_api_token,
        allowlist=settings.internal_api_allowlist,
        trusted_proxies=settings.internal_api_trusted_proxies,
    )
    if not decision.allowed:
        logger.warning(
            "internal_activity_auth_failed",
            reason=decision.reason,
            client_ip=decision.client_ip,
            path=request.url.path,
        )
        raise HTTPException(status_code=403, detail={"code": "E_FORBIDDEN"})


router = APIRouter(
    prefix="/internal/activity",
    tags=["internal", "activity"],
    dependencies=[Depends(_require_internal_access)],
)


class ActivityUserRequest(BaseModel):
    user_id: int = Field(ge=1)


class ToolUsedRequest(ActivityUserRequest):
    tool_code: str = Field(min_length=1, max_length=64)


class CourseCompletedRequest(ActivityUserRequest):
    started_at: datetime


class ForumReplyReceivedRequest(BaseModel):
    author_user_id: int = Field(ge=1)
    replier_user_id: int = Field(ge=1)


class ForumVoteRequest(BaseModel):
    author_user_id: int = Field(ge=1)
    added: bool = True


class ActivityResponse(BaseModel):
    user_id: int
    event: str
    points_delta: int
    streak: int | None
    awarded_badges: list[str]


def _as_response(result: ActivityResult) -> ActivityResponse:
    return ActivityResponse(
        user_id=result.user_id,
        event=result.event,
        points_delta=result.points_delta,
        streak=result.streak,
        awarded_badges=list(result.awarded_badges),
    )


@router.post("/login", response_model=ActivityResponse)
async def record_login(payload: ActivityUserRequest) -> ActivityResponse:
    now_utc = datetime.now(timezone.utc)
    try:
        async with SessionLocal.begin() as session:
            result = await get_gamification_services().activity.record_login(
                session, user_id=payload.user_id, now_utc=now_utc
            )
    except GamificationError as exc:
        _raise_http_error(exc)
    return _as_response(result)


@router.post("/course-opened", response_model=ActivityResponse)
async def record_course_opened(payload: ActivityUserRequest) -> ActivityResponse:
    now_utc = datetime.now(timezone.utc)
    try:
        async with SessionLocal.begin() as session:
            result = await get_gamification_services().activity.record_course_opened(
                session, user_id=payload.user_id, now_utc=now_utc
            )
    except GamificationError as exc:
        _raise_http_error(exc)
    return _as_response(result)


@router.post("/tool-used", response_model=ActivityResponse)
async def record_tool_used(payload: ToolUsedRequest) -> ActivityResponse:
    now_utc = datetime.now(timezone.utc)
    try:
        async with SessionLocal.begin() as session:
            result = await get_gamification_services().activity.record_tool_used(
                session,
                user_id=payload.user_id,
                tool_code=payload.tool_code,
                now_utc=now_utc,
            )
    except GamificationError as exc:
        _raise_http_error(exc)
    return _as_response(result)


@router.post("/forum-post-created", response_model=ActivityResponse)
async def record_forum_post_created(payload: ActivityUserRequest) -> ActivityResponse:
    now_utc = datetime.now(timezone.utc)
    try:
        async with SessionLocal.begin() as session:
            result = await get_gamification_services().activity.record_forum_post_created(
                session, user_id=payload.user_id, now_utc=now_utc
            )
    except GamificationError as exc:
        _raise_http_error(exc)
    return _as_response(result)


@router.post("/lesson-completed", response_model=ActivityResponse)
async def record_lesson_completed(payload: ActivityUserRequest) -> ActivityResponse:
    now_utc = datetime.now(timezone.utc)
    try:
        async with SessionLocal.begin() as session:
            result = await get_gamification_services().activity.record_lesson_completed(
                session, user_id=payload.user_id, now_utc=now_utc
            )
    except GamificationError as exc:
        _raise_http_error(exc)
    return _as_response(result)


@router.post("/course-completed", response_model=ActivityResponse)
async def record_course_completed(payload: CourseCompletedRequest) -> ActivityResponse:
    now_utc = datetime.now(timezone.utc)
    started_at = payload.started_at
    if started_at.tzinfo is None:
        started_at = started_at.replace(tzinfo=timezone.utc)
    try:
        async with SessionLocal.begin() as session:
            result = await get_gamification_services().activity.record_course_completed(
                session,
                user_id=payload.user_id,
                started_at=started_at,
                now_utc=now_utc,
            )
    except GamificationError as exc:
        _raise_http_error(exc)
    return _as_response(result)


@router.post("/forum-reply-received", response_model=ActivityResponse)
async def record_forum_reply_received(
    payload: ForumReplyReceivedRequest,
) -> ActivityResponse:
    now_utc = datetime.now(timezone.utc)
    try:
        async with SessionLocal.begin() as session:
            result = await get_gamification_services().activity.record_forum_reply_received(
                session,
                author_user_id=payload.author_user_id,
                replier_user_id=payload.replier_user_id,
                now_utc=now_utc,
            )
    except GamificationError as exc:
        _raise_http_error(exc)
    return _as_response(result)


@router.post("/forum-vote", response_model=ActivityResponse)
async def record_forum_vote(payload: ForumVoteRequest) -> ActivityResponse:
    now_utc = datetime.now(timezone.utc)
    try:
        async with SessionLocal.begin() as session:
            result = await get_gamification_services().activity.record_forum_vote(
                session,
                author_user_id=payload.author_user_id,
                added=payload.added,
                now_utc=now_utc,
            )
    except GamificationError as exc:
        _raise_http_error(exc)
    return _as_response(result)
