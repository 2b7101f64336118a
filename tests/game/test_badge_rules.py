from __future__ import annotations

from dataclasses import replace

import pytest

from app.game.badges.catalog import BADGE_KIND_ACHIEVEMENT, BADGE_KIND_POINT, DEFAULT_BADGE_CATALOG
from app.game.badges.rules import (
    BADGE_EVENT_COURSE_COMPLETED,
    BADGE_EVENT_DUEL_COMPLETED,
    BADGE_EVENT_LOGIN,
    BADGE_EVENT_POINTS_CHANGED,
    BADGE_EVENT_TOOL_USED,
    BADGE_EVENTS,
    DEFAULT_BADGE_RULES,
    QUICK_LEARNER_BADGE_ID,
    BadgeFacts,
    check_consistent,
    check_daily_grinder,
    check_expert,
    check_first_step,
    check_goal_setter,
    check_trending,
    check_wave_champion,
    check_wave_influencer,
    check_wave_rider,
    is_quick_completion,
    rules_for_event,
)

BASE_FACTS = BadgeFacts(
    points=0,
    rank=50,
    login_streak=0,
    tool_streak=0,
    study_planner_streak=0,
    analytics_streak=0,
    has_opened_course=False,
    has_used_tool=False,
    forum_posts_count=0,
    current_game_streak=0,
    completed_courses=0,
    max_post_helpful_votes=0,
    max_post_replies=0,
)


def test_first_step_needs_all_three_actions() -> None:
    partial = replace(BASE_FACTS, has_opened_course=True, has_used_tool=True)
    verdict = check_first_step(partial)
    assert verdict.earned is False
    assert verdict.progress == 2

    complete = replace(partial, forum_posts_count=1)
    assert check_first_step(complete).earned is True


def test_goal_setter_uses_best_planner_or_analytics_streak() -> None:
    assert check_goal_setter(replace(BASE_FACTS, study_planner_streak=6, analytics_streak=3)).earned is False
    verdict = check_goal_setter(replace(BASE_FACTS, study_planner_streak=2, analytics_streak=7))
    assert verdict.earned is True
    assert verdict.progress == 7


@pytest.mark.parametrize(
    ("check", "field", "threshold"),
    [
        (check_wave_rider, "current_game_streak", 5),
        (check_consistent, "login_streak", 30),
        (check_daily_grinder, "tool_streak", 14),
        (check_expert, "completed_courses", 5),
        (check_wave_influencer, "max_post_helpful_votes", 100),
        (check_trending, "max_post_replies", 100),
    ],
)
def test_threshold_rules(check, field: str, threshold: int) -> None:
    assert check(replace(BASE_FACTS, **{field: threshold - 1})).earned is False
    assert check(replace(BASE_FACTS, **{field: threshold})).earned is True


def test_wave_champion_requires_top_three_rank() -> None:
    assert check_wave_champion(replace(BASE_FACTS, rank=3)).earned is True
    assert check_wave_champion(replace(BASE_FACTS, rank=4)).earned is False


def test_quick_completion_window() -> None:
    assert is_quick_completion(completion_seconds=0) is True
    assert is_quick_completion(completion_seconds=24 * 60 * 60 - 1) is True
    assert is_quick_completion(completion_seconds=24 * 60 * 60) is False
    assert is_quick_completion(completion_seconds=-5) is False


def test_rules_are_mapped_to_their_events() -> None:
    assert {rule.badge_id for rule in rules_for_event(DEFAULT_BADGE_RULES, BADGE_EVENT_TOOL_USED)} == {
        "first_step",
        "goal_setter",
        "daily_grinder",
    }
    assert [rule.badge_id for rule in rules_for_event(DEFAULT_BADGE_RULES, BADGE_EVENT_LOGIN)] == ["consistent"]
    assert [rule.badge_id for rule in rules_for_event(DEFAULT_BADGE_RULES, BADGE_EVENT_DUEL_COMPLETED)] == [
        "wave_rider"
    ]
    assert [rule.badge_id for rule in rules_for_event(DEFAULT_BADGE_RULES, BADGE_EVENT_POINTS_CHANGED)] == [
        "wave_champion"
    ]
    assert "expert" in {rule.badge_id for rule in rules_for_event(DEFAULT_BADGE_RULES, BADGE_EVENT_COURSE_COMPLETED)}


def test_every_rule_targets_a_catalog_achievement_and_known_events() -> None:
    for rule in DEFAULT_BADGE_RULES:
        assert DEFAULT_BADGE_CATALOG.kind_of(rule.badge_id) == BADGE_KIND_ACHIEVEMENT
        assert rule.triggers <= BADGE_EVENTS
    assert QUICK_LEARNER_BADGE_ID not in {rule.badge_id for rule in DEFAULT_BADGE_RULES}
    assert DEFAULT_BADGE_CATALOG.get_achievement(QUICK_LEARNER_BADGE_ID) is not None


@pytest.mark.parametrize(
    ("points", "expected"),
    [
        (0, None),
        (999, None),
        (1_000, "bronze"),
        (4_999, "bronze"),
        (5_000, "silver"),
        (10_000, "gold"),
        (19_999, "gold"),
        (20_000, "platinum"),
        (99_999, "platinum"),
        (100_000, "legend"),
        (5_000_000, "legend"),
    ],
)
def test_point_band_boundaries(points: int, expected: str | None) -> None:
    band = DEFAULT_BADGE_CATALOG.band_for_points(points)
    assert (band.badge_id if band is not None else None) == expected


def test_catalog_kinds_and_descriptions() -> None:
    assert DEFAULT_BADGE_CATALOG.kind_of("gold") == BADGE_KIND_POINT
    assert DEFAULT_BADGE_CATALOG.kind_of("unknown") is None
    assert DEFAULT_BADGE_CATALOG.get_point_band("silver").description == "Reach 5,000 points"
    assert len(DEFAULT_BADGE_CATALOG.achievements) == 10
    assert len(DEFAULT_BADGE_CATALOG.point_bands) == 5
