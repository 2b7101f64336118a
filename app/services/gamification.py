from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache

from app.economy.activity.service import ActivityService
from app.economy.points.service import PointsLedger
from app.game.badges.engine import BadgeEngine
from app.game.duels.service_facade import DuelService


@dataclass(frozen=True, slots=True)
class GamificationServices:
    badge_engine: BadgeEngine
    points_ledger: PointsLedger
    duels: DuelService
    activity: ActivityService


def build_gamification_services(*, badge_engine: BadgeEngine | None = None) -> GamificationServices:
    resolved_engine = badge_engine or BadgeEngine()
    points_ledger = PointsLedger(badge_engine=resolved_engine)
    return GamificationServices(
        badge_engine=resolved_engine,
        points_ledger=points_ledger,
        duels=DuelService(points_ledger=points_ledger, badge_engine=resolved_engine),
        activity=ActivityService(points_ledger=points_ledger, badge_engine=resolved_engine),
    )


@lru_cache(maxsize=1)
def get_gamification_services() -> GamificationServices:
    return build_gamification_services()
