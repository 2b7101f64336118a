from __future__ import annotations

from decimal import Decimal

import pytest
from sqlalchemy.exc import IntegrityError

from app.db.models.points_ledger_entries import PointsLedgerEntry
from app.economy.points.service import PointsLedger, coerce_points_delta
from app.game.badges.engine import BadgeEngine
from app.game.errors import GameValidationError, UserNotFoundError
from tests.game.gamification_fakes import NOW_UTC, RecordingBadgeEngine


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        (5, 5),
        (-3, -3),
        (2.5, 3),
        (-2.5, -3),
        (1.49, 1),
        (Decimal("0.5"), 1),
        ("7", 7),
    ],
)
def test_coerce_points_delta_rounds_half_away_from_zero(value, expected: int) -> None:
    assert coerce_points_delta(value) == expected


@pytest.mark.parametrize("value", [True, "many", float("nan"), float("inf")])
def test_coerce_points_delta_rejects_non_numbers(value) -> None:
    with pytest.raises(GameValidationError) as exc_info:
        coerce_points_delta(value)

    assert exc_info.value.field == "delta"


@pytest.mark.asyncio
async def test_adjust_updates_balance_and_writes_ledger(store, session) -> None:
    store.add_user(1, points=10)
    badge_engine = RecordingBadgeEngine()

    adjustment = await PointsLedger(badge_engine=badge_engine).adjust(
        session,
        user_id=1,
        delta=5,
        reason="lesson_completed",
        now_utc=NOW_UTC,
    )

    assert adjustment.applied_delta == 5
    assert adjustment.balance_after == 15
    assert adjustment.duplicate is False
    assert store.users[1].points == 15
    assert [(entry.delta, entry.applied_delta, entry.balance_after) for entry in store.ledger] == [(5, 5, 15)]
    assert badge_engine.events == [(1, "points_changed")]


@pytest.mark.asyncio
async def test_adjust_floors_balance_at_zero(store, session) -> None:
    store.add_user(1, points=1)

    adjustment = await PointsLedger().adjust(
        session,
        user_id=1,
        delta=-4,
        reason="forum_unvote",
        now_utc=NOW_UTC,
    )

    assert adjustment.requested_delta == -4
    assert adjustment.applied_delta == -1
    assert adjustment.balance_after == 0
    assert store.ledger[0].delta == -4
    assert store.ledger[0].applied_delta == -1


@pytest.mark.asyncio
async def test_adjust_on_empty_balance_skips_badge_checks(store, session) -> None:
    store.add_user(1, points=0)
    badge_engine = RecordingBadgeEngine()

    adjustment = await PointsLedger(badge_engine=badge_engine).adjust(
        session,
        user_id=1,
        delta=-1,
        reason="forum_unvote",
        now_utc=NOW_UTC,
    )

    assert adjustment.applied_delta == 0
    assert badge_engine.events == []
    assert len(store.ledger) == 1


@pytest.mark.asyncio
async def test_adjust_with_same_key_applies_once(store, session) -> None:
    store.add_user(1)
    ledger = PointsLedger()

    first = await ledger.adjust(
        session,
        user_id=1,
        delta=5,
        reason="duel",
        now_utc=NOW_UTC,
        idempotency_key="duel:abc:1",
    )
    second = await ledger.adjust(
        session,
        user_id=1,
        delta=5,
        reason="duel",
        now_utc=NOW_UTC,
        idempotency_key="duel:abc:1",
    )

    assert first.duplicate is False
    assert second.duplicate is True
    assert second.applied_delta == 0
    assert second.balance_after == 5
    assert store.users[1].points == 5
    assert len(store.ledger) == 1


@pytest.mark.asyncio
async def test_adjust_losing_insert_race_returns_winner_entry(store, session) -> None:
    store.add_user(1)
    store.concurrent_ledger_entry = PointsLedgerEntry(
        id=99,
        user_id=1,
        delta=5,
        applied_delta=5,
        balance_after=5,
        reason="duel",
        idempotency_key="duel:abc:1",
        created_at=NOW_UTC,
    )

    adjustment = await PointsLedger().adjust(
        session,
        user_id=1,
        delta=5,
        reason="duel",
        now_utc=NOW_UTC,
        idempotency_key="duel:abc:1",
    )

    assert adjustment.duplicate is True
    assert adjustment.balance_after == 5
    assert session.rolled_back_savepoints == 1


@pytest.mark.asyncio
async def test_adjust_without_key_reraises_integrity_error(store, session) -> None:
    store.add_user(1)
    store.concurrent_ledger_entry = PointsLedgerEntry(
        id=99,
        user_id=1,
        delta=5,
        applied_delta=5,
        balance_after=5,
        reason="duel",
        idempotency_key=None,
        created_at=NOW_UTC,
    )

    with pytest.raises(IntegrityError):
        await PointsLedger().adjust(session, user_id=1, delta=5, reason="duel", now_utc=NOW_UTC)


@pytest.mark.asyncio
async def test_zero_delta_reports_balance_without_ledger_entry(store, session) -> None:
    store.add_user(1, points=40)

    adjustment = await PointsLedger().adjust(session, user_id=1, delta=0.4, reason="duel", now_utc=NOW_UTC)

    assert adjustment.applied_delta == 0
    assert adjustment.balance_after == 40
    assert store.ledger == []


@pytest.mark.asyncio
@pytest.mark.parametrize("delta", [0, 3])
async def test_adjust_unknown_user(store, session, delta: int) -> None:
    with pytest.raises(UserNotFoundError):
        await PointsLedger().adjust(session, user_id=404, delta=delta, reason="duel", now_utc=NOW_UTC)

    assert store.ledger == []


@pytest.mark.asyncio
async def test_crossing_point_band_adds_badge_and_keeps_lower_band(store, session) -> None:
    for user_id in (2, 3, 4):
        store.add_user(user_id, points=9_000)
    store.add_user(1, points=4_998)
    ledger = PointsLedger(badge_engine=BadgeEngine())

    await ledger.adjust(session, user_id=1, delta=1, reason="lesson_completed", now_utc=NOW_UTC)
    assert store.users[1].points == 4_999
    assert store.earned_badges(1) == {"bronze"}

    await ledger.adjust(session, user_id=1, delta=1, reason="lesson_completed", now_utc=NOW_UTC)
    assert store.users[1].points == 5_000
    assert store.earned_badges(1) == {"bronze", "silver"}

    await ledger.adjust(session, user_id=1, delta=-10, reason="penalty", now_utc=NOW_UTC)
    assert store.users[1].points == 4_990
    assert store.earned_badges(1) == {"bronze", "silver"}
