from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

BADGE_EVENT_LOGIN = "login"
BADGE_EVENT_COURSE_OPENED = "course_opened"
BADGE_EVENT_TOOL_USED = "tool_used"
BADGE_EVENT_FORUM_POST_CREATED = "forum_post_created"
BADGE_EVENT_LESSON_COMPLETED = "lesson_completed"
BADGE_EVENT_COURSE_COMPLETED = "course_completed"
BADGE_EVENT_DUEL_COMPLETED = "duel_completed"
BADGE_EVENT_POINTS_CHANGED = "points_changed"
BADGE_EVENT_FORUM_VOTE_RECEIVED = "forum_vote_received"
BADGE_EVENT_FORUM_REPLY_RECEIVED = "forum_reply_received"

BADGE_EVENTS: frozenset[str] = frozenset(
    {
        BADGE_EVENT_LOGIN,
        BADGE_EVENT_COURSE_OPENED,
        BADGE_EVENT_TOOL_USED,
        BADGE_EVENT_FORUM_POST_CREATED,
        BADGE_EVENT_LESSON_COMPLETED,
        BADGE_EVENT_COURSE_COMPLETED,
        BADGE_EVENT_DUEL_COMPLETED,
        BADGE_EVENT_POINTS_CHANGED,
        BADGE_EVENT_FORUM_VOTE_RECEIVED,
        BADGE_EVENT_FORUM_REPLY_RECEIVED,
    }
)

QUICK_LEARNER_BADGE_ID = "quick_learner"
QUICK_LEARNER_MAX_SECONDS = 24 * 60 * 60


@dataclass(frozen=True, slots=True)
class BadgeFacts:
    points: int
    rank: int
    login_streak: int
    tool_streak: int
    study_planner_streak: int
    analytics_streak: int
    has_opened_course: bool
    has_used_tool: bool
    forum_posts_count: int
    current_game_streak: int
    completed_courses: int
    max_post_helpful_votes: int
    max_post_replies: int


@dataclass(frozen=True, slots=True)
class BadgeVerdict:
    earned: bool
    progress: int | None = None


@dataclass(frozen=True, slots=True)
class BadgeRule:
    badge_id: str
    triggers: frozenset[str]
    check: Callable[[BadgeFacts], BadgeVerdict]


def check_first_step(facts: BadgeFacts) -> BadgeVerdict:
    progress = sum(
        (
            facts.has_opened_course,
            facts.has_used_tool,
            facts.forum_posts_count > 0,
        )
    )
    return BadgeVerdict(earned=progress >= 3, progress=progress)


def check_goal_setter(facts: BadgeFacts) -> BadgeVerdict:
    days = max(facts.study_planner_streak, facts.analytics_streak)
    return BadgeVerdict(earned=days >= 7, progress=days)


def check_wave_rider(facts: BadgeFacts) -> BadgeVerdict:
    return BadgeVerdict(earned=facts.current_game_streak >= 5, progress=facts.current_game_streak)


def check_consistent(facts: BadgeFacts) -> BadgeVerdict:
    return BadgeVerdict(earned=facts.login_streak >= 30, progress=facts.login_streak)


def check_daily_grinder(facts: BadgeFacts) -> BadgeVerdict:
    return BadgeVerdict(earned=facts.tool_streak >= 14, progress=facts.tool_streak)


def check_expert(facts: BadgeFacts) -> BadgeVerdict:
    return BadgeVerdict(earned=facts.completed_courses >= 5, progress=facts.completed_courses)


def check_wave_champion(facts: BadgeFacts) -> BadgeVerdict:
    return BadgeVerdict(earned=facts.rank <= 3)


def check_wave_influencer(facts: BadgeFacts) -> BadgeVerdict:
    return BadgeVerdict(earned=facts.max_post_helpful_votes >= 100)


def check_trending(facts: BadgeFacts) -> BadgeVerdict:
    return BadgeVerdict(earned=facts.max_post_replies >= 100)


def is_quick_completion(*, completion_seconds: float) -> bool:
    return 0 <= completion_seconds < QUICK_LEARNER_MAX_SECONDS


# quick_learner depends on the completion moment only and is awarded at
# course completion, so it has no entry here.
DEFAULT_BADGE_RULES: tuple[BadgeRule, ...] = (
    BadgeRule(
        "first_step",
        frozenset(
            {
                BADGE_EVENT_COURSE_OPENED,
                BADGE_EVENT_TOOL_USED,
                BADGE_EVENT_FORUM_POST_CREATED,
                BADGE_EVENT_LESSON_COMPLETED,
            }
        ),
        check_first_step,
    ),
    BadgeRule("goal_setter", frozenset({BADGE_EVENT_TOOL_USED}), check_goal_setter),
    BadgeRule("wave_rider", frozenset({BADGE_EVENT_DUEL_COMPLETED}), check_wave_rider),
    BadgeRule("consistent", frozenset({BADGE_EVENT_LOGIN}), check_consistent),
    BadgeRule("daily_grinder", frozenset({BADGE_EVENT_TOOL_USED}), check_daily_grinder),
    BadgeRule("expert", frozenset({BADGE_EVENT_COURSE_COMPLETED}), check_expert),
    BadgeRule("wave_champion", frozenset({BADGE_EVENT_POINTS_CHANGED}), check_wave_champion),
    BadgeRule(
        "wave_influencer",
        frozenset({BADGE_EVENT_FORUM_VOTE_RECEIVED}),
        check_wave_influencer,
    ),
    BadgeRule("trending", frozenset({BADGE_EVENT_FORUM_REPLY_RECEIVED}), check_trending),
)


def rules_for_event(rules: tuple[BadgeRule, ...], event: str) -> tuple[BadgeRule, ...]:
    return tuple(rule for rule in rules if event in rule.triggers)
