from __future__ import annotations

from datetime import timedelta

import pytest

from app.game.badges.engine import BadgeEngine
from app.game.errors import GameValidationError, UserNotFoundError
from tests.game.gamification_fakes import NOW_UTC


@pytest.mark.asyncio
async def test_login_streak_awards_consistent_once(store, session) -> None:
    store.add_user(1, login_streak=30)
    engine = BadgeEngine()

    first = await engine.evaluate(session, user_id=1, event="login", now_utc=NOW_UTC)
    second = await engine.evaluate(session, user_id=1, event="login", now_utc=NOW_UTC)

    assert first == ["consistent"]
    assert second == []
    badge = store.badges[(1, "consistent")]
    assert badge.earned is True
    assert badge.earned_at == NOW_UTC
    assert badge.progress == 30
    assert store.outbox_types(1) == ["badge_awarded"]
    assert store.outbox[0].payload["name"] == "Consistent"


@pytest.mark.asyncio
async def test_award_badge_keeps_first_earned_at(store, session) -> None:
    store.add_user(1)
    engine = BadgeEngine()

    first = await engine.award_badge(session, user_id=1, badge_id="first_step", now_utc=NOW_UTC)
    second = await engine.award_badge(
        session,
        user_id=1,
        badge_id="first_step",
        now_utc=NOW_UTC + timedelta(days=3),
    )

    assert (first, second) == (True, False)
    assert store.badges[(1, "first_step")].earned_at == NOW_UTC
    assert store.outbox_types(1) == ["badge_awarded"]


@pytest.mark.asyncio
async def test_unearned_rule_stores_progress(store, session) -> None:
    store.add_user(1, login_streak=12)

    awarded = await BadgeEngine().evaluate(session, user_id=1, event="login", now_utc=NOW_UTC)

    assert awarded == []
    badge = store.badges[(1, "consistent")]
    assert badge.earned is False
    assert badge.progress == 12
    assert store.outbox == []


@pytest.mark.asyncio
async def test_failing_rule_does_not_block_other_rules(store, session) -> None:
    store.add_user(
        1,
        tool_streak=14,
        forum_posts_count=2,
        last_course_opened_at=NOW_UTC - timedelta(days=1),
        last_tool_used_at=NOW_UTC,
    )
    store.failing_badge_ids.add("first_step")

    awarded = await BadgeEngine().evaluate(session, user_id=1, event="tool_used", now_utc=NOW_UTC)

    assert awarded == ["daily_grinder"]
    assert (1, "first_step") not in store.badges
    assert session.rolled_back_savepoints == 1


@pytest.mark.asyncio
async def test_points_change_awards_rank_and_point_band(store, session) -> None:
    store.add_user(1, points=5_200)

    awarded = await BadgeEngine().evaluate(session, user_id=1, event="points_changed", now_utc=NOW_UTC)

    assert awarded == ["wave_champion", "silver"]
    assert store.badges[(1, "silver")].kind == "point"


@pytest.mark.asyncio
async def test_wave_champion_needs_top_three_rank(store, session) -> None:
    for user_id, points in ((1, 900), (2, 800), (3, 700), (4, 600)):
        store.add_user(user_id, points=points)

    awarded = await BadgeEngine().evaluate(session, user_id=4, event="points_changed", now_utc=NOW_UTC)

    assert awarded == []
    assert store.earned_badges(4) == set()


@pytest.mark.asyncio
async def test_duel_completion_checks_game_streak_and_point_band(store, session) -> None:
    store.add_user(1, points=1_000)
    store.stats_for(1).current_game_streak = 5

    awarded = await BadgeEngine().evaluate(session, user_id=1, event="duel_completed", now_utc=NOW_UTC)

    assert awarded == ["wave_rider", "bronze"]


@pytest.mark.asyncio
async def test_course_completion_awards_expert(store, session) -> None:
    store.add_user(1)
    store.completed_courses[1] = 5

    awarded = await BadgeEngine().evaluate(session, user_id=1, event="course_completed", now_utc=NOW_UTC)

    assert awarded == ["expert"]


@pytest.mark.asyncio
async def test_forum_engagement_badges(store, session) -> None:
    store.add_user(1)
    store.forum_maxima[1] = (100, 99)
    engine = BadgeEngine()

    votes = await engine.evaluate(session, user_id=1, event="forum_vote_received", now_utc=NOW_UTC)
    replies = await engine.evaluate(session, user_id=1, event="forum_reply_received", now_utc=NOW_UTC)

    assert votes == ["wave_influencer"]
    assert replies == []


@pytest.mark.asyncio
async def test_unknown_event_is_rejected(store, session) -> None:
    store.add_user(1)

    with pytest.raises(GameValidationError) as exc_info:
        await BadgeEngine().evaluate(session, user_id=1, event="lottery_won", now_utc=NOW_UTC)

    assert exc_info.value.field == "event"


@pytest.mark.asyncio
async def test_award_unknown_badge_is_rejected(store, session) -> None:
    store.add_user(1)

    with pytest.raises(GameValidationError) as exc_info:
        await BadgeEngine().award_badge(session, user_id=1, badge_id="unicorn", now_utc=NOW_UTC)

    assert exc_info.value.field == "badge_id"


@pytest.mark.asyncio
async def test_evaluate_for_missing_user_awards_nothing(store, session) -> None:
    awarded = await BadgeEngine().evaluate(session, user_id=404, event="login", now_utc=NOW_UTC)

    assert awarded == []
    assert store.badges == {}


@pytest.mark.asyncio
async def test_award_survives_notification_failure(store, session) -> None:
    store.add_user(1)
    store.fail_outbox = True

    awarded = await BadgeEngine().award_badge(session, user_id=1, badge_id="expert", now_utc=NOW_UTC)

    assert awarded is True
    assert store.earned_badges(1) == {"expert"}
    assert store.outbox == []


@pytest.mark.asyncio
async def test_quick_learner_requires_completion_within_a_day(store, session) -> None:
    store.add_user(1)
    store.add_user(2)
    engine = BadgeEngine()

    quick = await engine.check_quick_learner(
        session,
        user_id=1,
        started_at=NOW_UTC - timedelta(hours=3),
        completed_at=NOW_UTC,
    )
    repeated = await engine.check_quick_learner(
        session,
        user_id=1,
        started_at=NOW_UTC - timedelta(hours=1),
        completed_at=NOW_UTC,
    )
    slow = await engine.check_quick_learner(
        session,
        user_id=2,
        started_at=NOW_UTC - timedelta(hours=25),
        completed_at=NOW_UTC,
    )

    assert quick is True
    assert repeated is False
    assert slow is False
    assert store.earned_badges(1) == {"quick_learner"}
    assert store.earned_badges(2) == set()


@pytest.mark.asyncio
async def test_check_all_catches_up_every_rule(store, session) -> None:
    store.add_user(1, points=12_000, login_streak=31, tool_streak=20)
    store.completed_courses[1] = 6

    awarded = await BadgeEngine().check_all(session, user_id=1, now_utc=NOW_UTC)

    assert awarded[0] == "gold"
    assert set(awarded) == {"gold", "consistent", "daily_grinder", "expert", "wave_champion"}


@pytest.mark.asyncio
async def test_user_badges_view_lists_whole_catalog(store, session) -> None:
    store.add_user(1, points=1_500, login_streak=4)
    engine = BadgeEngine()
    await engine.award_badge(session, user_id=1, badge_id="bronze", now_utc=NOW_UTC)
    await engine.evaluate(session, user_id=1, event="login", now_utc=NOW_UTC)

    view = await engine.get_user_badges(session, user_id=1)

    assert view.points == 1_500
    assert [badge.badge_id for badge in view.achievement] == [
        "first_step",
        "goal_setter",
        "quick_learner",
        "wave_rider",
        "consistent",
        "daily_grinder",
        "expert",
        "wave_champion",
        "wave_influencer",
        "trending",
    ]
    assert [badge.badge_id for badge in view.point] == ["bronze", "silver", "gold", "platinum", "legend"]
    bronze = view.point[0]
    assert bronze.earned is True
    assert bronze.threshold == 1_000
    consistent = next(badge for badge in view.achievement if badge.badge_id == "consistent")
    assert consistent.earned is False
    assert consistent.progress == 4
    assert consistent.threshold == 30


@pytest.mark.asyncio
async def test_user_badges_for_missing_user(store, session) -> None:
    with pytest.raises(UserNotFoundError):
        await BadgeEngine().get_user_badges(session, user_id=404)
