from app.db.repo.course_progress_repo import CourseProgressRepo
from app.db.repo.duel_sessions_repo import DuelSessionsRepo
from app.db.repo.forum_posts_repo import ForumPostsRepo
from app.db.repo.game_stats_repo import GameStatsRepo
from app.db.repo.outbox_events_repo import OutboxEventsRepo
from app.db.repo.points_ledger_repo import PointsLedgerRepo
from app.db.repo.premium_access_repo import PremiumAccessRepo
from app.db.repo.user_badges_repo import UserBadgesRepo
from app.db.repo.users_repo import UsersRepo

__all__ = [
    "CourseProgressRepo",
    "DuelSessionsRepo",
    "ForumPostsRepo",
    "GameStatsRepo",
    "OutboxEventsRepo",
    "PointsLedgerRepo",
    "PremiumAccessRepo",
    "UserBadgesRepo",
    "UsersRepo",
]
