from __future__ import annotations

from datetime import datetime, timezone

from fastapi import APIRouter, HTTPException, Query, Request

from app.db.session import SessionLocal
from app.economy.points.leaderboard import (
    LEADERBOARD_DEFAULT_LIMIT,
    LEADERBOARD_MAX_LIMIT,
    get_leaderboard,
    get_user_rank,
)
from app.game.errors import GamificationError
from app.services.gamification import get_gamification_services

from .game_helpers import _badges_as_response, _raise_http_error, _resolve_caller_id
from .game_models import (
    BadgeCheckResponse,
    LeaderboardEntryResponse,
    LeaderboardResponse,
    UserBadgesResponse,
    UserRankResponse,
)

router = APIRouter(tags=["leaderboard", "badges"])


def _resolve_optional_caller_id(request: Request) -> int | None:
    if request.headers.get("X-User-Id") is None:
        return None
    try:
        return _resolve_caller_id(request)
    except HTTPException:
        return None


@router.get("/leaderboard", response_model=LeaderboardResponse)
async def read_leaderboard(
    request: Request,
    limit: int = Query(default=LEADERBOARD_DEFAULT_LIMIT, ge=1, le=LEADERBOARD_MAX_LIMIT),
    offset: int = Query(default=0, ge=0),
    include_badges: bool = Query(default=False),
) -> LeaderboardResponse:
    current_user_id = _resolve_optional_caller_id(request)
    try:
        async with SessionLocal.begin() as session:
            page = await get_leaderboard(
                session,
                limit=limit,
                offset=offset,
                include_badges=include_badges,
                current_user_id=current_user_id,
            )
    except GamificationError as exc:
        _raise_http_error(exc)

    return LeaderboardResponse(
        leaderboard=[
            LeaderboardEntryResponse(
                rank=row.rank,
                user_id=row.user_id,
                name=row.full_name,
                points=row.points,
                is_current_user=row.is_current_user,
                badges=row.badges,
            )
            for row in page.rows
        ],
        total_users=page.total_users,
        limit=page.limit,
        offset=page.offset,
        current_user_rank=page.current_user_rank,
    )


@router.get("/leaderboard/me", response_model=UserRankResponse)
async def read_my_rank(request: Request) -> UserRankResponse:
    user_id = _resolve_caller_id(request)
    try:
        async with SessionLocal.begin() as session:
            rank = await get_user_rank(session, user_id=user_id)
    except GamificationError as exc:
        _raise_http_error(exc)

    return UserRankResponse(
        user_id=rank.user_id,
        rank=rank.rank,
        points=rank.points,
        total_users=rank.total_users,
        percentile=rank.percentile,
    )


@router.get("/badges/me", response_model=UserBadgesResponse)
async def read_my_badges(request: Request) -> UserBadgesResponse:
    user_id = _resolve_caller_id(request)
    now_utc = datetime.now(timezone.utc)
    badge_engine = get_gamification_services().badge_engine
    try:
        async with SessionLocal.begin() as session:
            newly_awarded = await badge_engine.check_all(session, user_id=user_id, now_utc=now_utc)
            view = await badge_engine.get_user_badges(session, user_id=user_id)
    except GamificationError as exc:
        _raise_http_error(exc)

    return _badges_as_response(view, newly_awarded=newly_awarded)


@router.post("/badges/me/check", response_model=BadgeCheckResponse)
async def check_my_badges(request: Request) -> BadgeCheckResponse:
    user_id = _resolve_caller_id(request)
    now_utc = datetime.now(timezone.utc)
    badge_engine = get_gamification_services().badge_engine
    try:
        async with SessionLocal.begin() as session:
            # Unknown users surface as 404 rather than an empty award list.
            await badge_engine.get_user_badges(session, user_id=user_id)
            newly_awarded = await badge_engine.check_all(session, user_id=user_id, now_utc=now_utc)
    except GamificationError as exc:
        _raise_http_error(exc)

    return BadgeCheckResponse(user_id=user_id, newly_awarded=newly_awarded)
