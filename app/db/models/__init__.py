from app.db.models.course_progress import CourseProgress
from app.db.models.duel_sessions import DuelSession
from app.db.models.forum_posts import ForumPost
from app.db.models.game_stats import GameStats
from app.db.models.outbox_events import OutboxEvent
from app.db.models.points_ledger_entries import PointsLedgerEntry
from app.db.models.premium_access import PremiumAccess
from app.db.models.user_badges import UserBadge
from app.db.models.users import User

__all__ = [
    "CourseProgress",
    "DuelSession",
    "ForumPost",
    "GameStats",
    "OutboxEvent",
    "PointsLedgerEntry",
    "PremiumAccess",
    "UserBadge",
    "User",
]
