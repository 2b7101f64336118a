from __future__ import annotations

from datetime import datetime, timezone

from fastapi import APIRouter, Request, status

from app.db.session import SessionLocal
from app.game.errors import GamificationError
from app.services.gamification import get_gamification_services

from .game_helpers import _duel_as_response, _raise_http_error, _resolve_caller_id
from .game_models import (
    DuelCreateRequest,
    DuelCreateResponse,
    DuelKeyRequest,
    DuelResponse,
    DuelResultRequest,
    DuelResultResponse,
    GameStatsResponse,
)

router = APIRouter(tags=["duels"])


@router.post("/duels", response_model=DuelCreateResponse, status_code=status.HTTP_201_CREATED)
async def create_duel(payload: DuelCreateRequest, request: Request) -> DuelCreateResponse:
    user_id = _resolve_caller_id(request)
    now_utc = datetime.now(timezone.utc)
    try:
        async with SessionLocal.begin() as session:
            result = await get_gamification_services().duels.create_duel(
                session,
                user_id=user_id,
                topic=payload.topic,
                num_questions=payload.num_questions,
                now_utc=now_utc,
            )
    except GamificationError as exc:
        _raise_http_error(exc)

    return DuelCreateResponse(
        duel=_duel_as_response(result.snapshot),
        duels_today=result.duels_today,
        duels_this_week=result.duels_this_week,
    )


@router.post("/duels/join", response_model=DuelResponse)
async def join_duel(payload: DuelKeyRequest, request: Request) -> DuelResponse:
    user_id = _resolve_caller_id(request)
    now_utc = datetime.now(timezone.utc)
    try:
        async with SessionLocal.begin() as session:
            result = await get_gamification_services().duels.join_duel(
                session,
                user_id=user_id,
                duel_key=payload.duel_key,
                now_utc=now_utc,
            )
    except GamificationError as exc:
        _raise_http_error(exc)

    return _duel_as_response(result.snapshot)


@router.get("/duels/{duel_key}", response_model=DuelResponse)
async def get_duel_status(duel_key: str) -> DuelResponse:
    now_utc = datetime.now(timezone.utc)
    try:
        async with SessionLocal.begin() as session:
            snapshot = await get_gamification_services().duels.get_duel_status(
                session,
                duel_key=duel_key,
                now_utc=now_utc,
            )
    except GamificationError as exc:
        _raise_http_error(exc)

    return _duel_as_response(snapshot)


@router.post("/duels/start", response_model=DuelResponse)
async def start_duel(payload: DuelKeyRequest, request: Request) -> DuelResponse:
    user_id = _resolve_caller_id(request)
    now_utc = datetime.now(timezone.utc)
    try:
        async with SessionLocal.begin() as session:
            snapshot = await get_gamification_services().duels.start_duel(
                session,
                user_id=user_id,
                duel_key=payload.duel_key,
                now_utc=now_utc,
            )
    except GamificationError as exc:
        _raise_http_error(exc)

    return _duel_as_response(snapshot)


@router.post("/duels/result", response_model=DuelResultResponse)
async def submit_result(payload: DuelResultRequest, request: Request) -> DuelResultResponse:
    user_id = _resolve_caller_id(request)
    now_utc = datetime.now(timezone.utc)
    try:
        async with SessionLocal.begin() as session:
            result = await get_gamification_services().duels.submit_result(
                session,
                user_id=user_id,
                duel_key=payload.duel_key,
                score=payload.score,
                is_solo=payload.is_solo,
                now_utc=now_utc,
            )
    except GamificationError as exc:
        _raise_http_error(exc)

    return DuelResultResponse(
        completed=result.completed,
        result=result.result,
        points_awarded=result.points_awarded,
        winner_user_id=result.winner_user_id,
        duel=_duel_as_response(result.snapshot) if result.snapshot is not None else None,
    )


@router.post("/duels/cancel", response_model=DuelResponse)
async def cancel_duel(payload: DuelKeyRequest, request: Request) -> DuelResponse:
    user_id = _resolve_caller_id(request)
    now_utc = datetime.now(timezone.utc)
    try:
        async with SessionLocal.begin() as session:
            snapshot = await get_gamification_services().duels.cancel_duel(
                session,
                user_id=user_id,
                duel_key=payload.duel_key,
                now_utc=now_utc,
            )
    except GamificationError as exc:
        _raise_http_error(exc)

    return _duel_as_response(snapshot)


@router.post("/duels/forfeit", response_model=DuelResponse)
async def forfeit_duel(payload: DuelKeyRequest, request: Request) -> DuelResponse:
    user_id = _resolve_caller_id(request)
    now_utc = datetime.now(timezone.utc)
    try:
        async with SessionLocal.begin() as session:
            snapshot = await get_gamification_services().duels.forfeit_duel(
                session,
                user_id=user_id,
                duel_key=payload.duel_key,
                now_utc=now_utc,
            )
    except GamificationError as exc:
        _raise_http_error(exc)

    return _duel_as_response(snapshot)


@router.get("/games/stats", response_model=GameStatsResponse)
async def get_game_stats(request: Request) -> GameStatsResponse:
    user_id = _resolve_caller_id(request)
    now_utc = datetime.now(timezone.utc)
    try:
        async with SessionLocal.begin() as session:
            summary = await get_gamification_services().duels.get_game_stats(
                session,
                user_id=user_id,
                now_utc=now_utc,
            )
    except GamificationError as exc:
        _raise_http_error(exc)

    return GameStatsResponse(
        games_played=summary.games_played,
        games_won=summary.games_won,
        win_rate=summary.win_rate,
        points_earned=summary.points_earned,
        current_game_streak=summary.current_game_streak,
        max_game_streak=summary.max_game_streak,
        duels_today=summary.duels_today,
        duels_this_week=summary.duels_this_week,
        daily_limit=summary.daily_limit,
        weekly_limit=summary.weekly_limit,
        is_premium=summary.is_premium,
    )
