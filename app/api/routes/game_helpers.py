from __future__ import annotations

from typing import NoReturn

import structlog
from fastapi import HTTPException, Request

from app.game.badges.types import BadgeView, UserBadgesView
from app.game.duels.types import DuelSnapshot
from app.game.errors import (
    DuelExpiredError,
    DuelKeyGenerationError,
    DuelRateLimitError,
    DuelStateConflictError,
    GameForbiddenError,
    GameNotFoundError,
    GameValidationError,
    GamificationError,
)

from .game_models import BadgeResponse, DuelResponse, UserBadgesResponse

logger = structlog.get_logger(__name__)

CALLER_ID_HEADER = "X-User-Id"

_STATUS_BY_ERROR: tuple[tuple[type[GamificationError], int], ...] = (
    (GameValidationError, 422),
    (GameNotFoundError, 404),
    (GameForbiddenError, 403),
    (DuelStateConflictError, 409),
    (DuelKeyGenerationError, 409),
    (DuelRateLimitError, 429),
    (DuelExpiredError, 410),
)


def _resolve_caller_id(request: Request) -> int:
    raw_value = (request.headers.get(CALLER_ID_HEADER) or "").strip()
    if not raw_value.isdigit() or int(raw_value) <= 0:
        raise HTTPException(status_code=401, detail={"code": "E_UNAUTHENTICATED"})
    return int(raw_value)


def _status_for_error(exc: GamificationError) -> int:
    for error_type, status_code in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            return status_code
    return 400


def _raise_http_error(exc: GamificationError) -> NoReturn:
    status_code = _status_for_error(exc)
    logger.info("gamification_request_rejected", code=exc.code, status_code=status_code)
    raise HTTPException(
        status_code=status_code,
        detail={"code": exc.code, "message": exc.message, **exc.context()},
    ) from exc


def _duel_as_response(snapshot: DuelSnapshot) -> DuelResponse:
    return DuelResponse(
        duel_id=snapshot.duel_id,
        duel_key=snapshot.duel_key,
        status=snapshot.status,
        topic=snapshot.topic,
        num_questions=snapshot.num_questions,
        host_user_id=snapshot.host_user_id,
        host_name=snapshot.host_name,
        opponent_user_id=snapshot.opponent_user_id,
        opponent_name=snapshot.opponent_name,
        host_score=snapshot.host_score,
        opponent_score=snapshot.opponent_score,
        expires_at=snapshot.expires_at,
        started_at=snapshot.started_at,
        completed_at=snapshot.completed_at,
        forfeited_by_user_id=snapshot.forfeited_by_user_id,
    )


def _badge_as_response(badge: BadgeView) -> BadgeResponse:
    return BadgeResponse(
        id=badge.badge_id,
        kind=badge.kind,
        name=badge.name,
        icon=badge.icon,
        description=badge.description,
        earned=badge.earned,
        progress=badge.progress,
        threshold=badge.threshold,
        earned_at=badge.earned_at,
    )


def _badges_as_response(view: UserBadgesView, *, newly_awarded: list[str]) -> UserBadgesResponse:
    return UserBadgesResponse(
        user_id=view.user_id,
        points=view.points,
        achievement=[_badge_as_response(badge) for badge in view.achievement],
        point=[_badge_as_response(badge) for badge in view.point],
        newly_awarded=newly_awarded,
    )
