from __future__ import annotations

from dataclasses import dataclass

BADGE_KIND_ACHIEVEMENT = "achievement"
BADGE_KIND_POINT = "point"


@dataclass(frozen=True, slots=True)
class AchievementBadge:
    badge_id: str
    name: str
    icon: str
    description: str
    threshold: int | None = None


@dataclass(frozen=True, slots=True)
class PointBadge:
    badge_id: str
    name: str
    icon: str
    min_points: int
    max_points: int | None

    def contains(self, points: int) -> bool:
        if points < self.min_points:
            return False
        return self.max_points is None or points <= self.max_points

    @property
    def description(self) -> str:
        return f"Reach {self.min_points:,} points"


@dataclass(frozen=True, slots=True)
class BadgeCatalog:
    achievements: tuple[AchievementBadge, ...]
    point_bands: tuple[PointBadge, ...]

    def get_achievement(self, badge_id: str) -> AchievementBadge | None:
        for badge in self.achievements:
            if badge.badge_id == badge_id:
                return badge
        return None

    def get_point_band(self, badge_id: str) -> PointBadge | None:
        for band in self.point_bands:
            if band.badge_id == badge_id:
                return band
        return None

    def kind_of(self, badge_id: str) -> str | None:
        if self.get_achievement(badge_id) is not None:
            return BADGE_KIND_ACHIEVEMENT
        if self.get_point_band(badge_id) is not None:
            return BADGE_KIND_POINT
        return None

    def band_for_points(self, points: int) -> PointBadge | None:
        for band in self.point_bands:
            if band.contains(points):
                return band
        return None


DEFAULT_BADGE_CATALOG = BadgeCatalog(
    achievements=(
        AchievementBadge(
            badge_id="first_step",
            name="First Step",
            icon="👣",
            description="Open a course, use a tool, and post in forum",
            threshold=3,
        ),
        AchievementBadge(
            badge_id="goal_setter",
            name="Goal Setter",
            icon="🎯",
            description="Use Smart Study Planner or Progress Analytics for 7 consecutive days",
            threshold=7,
        ),
        AchievementBadge(
            badge_id="quick_learner",
            name="Quick Learner",
            icon="⚡",
            description="Complete a course within 1 day",
        ),
        AchievementBadge(
            badge_id="wave_rider",
            name="Wave Rider",
            icon="🏄",
            description="Win 5 games in a row on Learning Games",
            threshold=5,
        ),
        AchievementBadge(
            badge_id="consistent",
            name="Consistent",
            icon="📅",
            description="Log into EduWave for 1 month (30 days streak)",
            threshold=30,
        ),
        AchievementBadge(
            badge_id="daily_grinder",
            name="Daily Grinder",
            icon="💪",
            description="Use any EduWave tools daily for 14 consecutive days",
            threshold=14,
        ),
        AchievementBadge(
            badge_id="expert",
            name="Expert",
            icon="🎓",
            description="Complete 5 courses",
            threshold=5,
        ),
        AchievementBadge(
            badge_id="wave_champion",
            name="Wave Champion",
            icon="🏆",
            description="Reach top 3 on the Leaderboard",
            threshold=3,
        ),
        AchievementBadge(
            badge_id="wave_influencer",
            name="Wave Influencer",
            icon="🌟",
            description="Get 100 likes on a single post",
            threshold=100,
        ),
        AchievementBadge(
            badge_id="trending",
            name="Trending",
            icon="🔥",
            description="Have 100 comments on a single post",
            threshold=100,
        ),
    ),
    point_bands=(
        PointBadge("bronze", "EduWaver Bronze", "🥉", 1_000, 4_999),
        PointBadge("silver", "EduWaver Silver", "🥈", 5_000, 9_999),
        PointBadge("gold", "EduWaver Gold", "🥇", 10_000, 19_999),
        PointBadge("platinum", "EduWaver Platinum", "💎", 20_000, 99_999),
        PointBadge("legend", "EduWaver Legend", "👑", 100_000, None),
    ),
)
