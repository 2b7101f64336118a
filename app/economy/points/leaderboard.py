from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models.users import User
from app.db.repo.user_badges_repo import UserBadgesRepo
from app.db.repo.users_repo import UsersRepo
from app.economy.points.types import LeaderboardPage, LeaderboardRow, UserRank
from app.game.errors import GameValidationError, UserNotFoundError

LEADERBOARD_DEFAULT_LIMIT = 20
LEADERBOARD_MAX_LIMIT = 100


def compute_percentile(*, rank: int, total_users: int) -> float:
    """Share of users ranked at or below ``rank``, from 0 to 100."""
    if total_users <= 0 or rank <= 0:
        return 0.0
    at_or_below = max(0, total_users - rank + 1)
    return round(100 * at_or_below / total_users, 1)


async def rank_for_user(session: AsyncSession, *, user: User) -> int:
    ahead = await UsersRepo.count_ranked_ahead(
        session,
        points=int(user.points or 0),
        created_at=user.created_at,
        user_id=int(user.id),
    )
    return ahead + 1


async def get_user_rank(session: AsyncSession, *, user_id: int) -> UserRank:
    user = await UsersRepo.get_by_id(session, user_id)
    if user is None:
        raise UserNotFoundError("User not found")
    rank = await rank_for_user(session, user=user)
    total_users = await UsersRepo.count_all(session)
    return UserRank(
        user_id=user_id,
        rank=rank,
        points=int(user.points or 0),
        total_users=total_users,
        percentile=compute_percentile(rank=rank, total_users=total_users),
    )


async def get_leaderboard(
    session: AsyncSession,
    *,
    limit: int = LEADERBOARD_DEFAULT_LIMIT,
    offset: int = 0,
    include_badges: bool = False,
    current_user_id: int | None = None,
) -> LeaderboardPage:
    if limit < 1 or limit > LEADERBOARD_MAX_LIMIT:
        raise GameValidationError(
            f"limit must be between 1 and {LEADERBOARD_MAX_LIMIT}",
            field="limit",
        )
    if offset < 0:
        raise GameValidationError("offset must not be negative", field="offset")

    users = await UsersRepo.list_leaderboard_page(session, limit=limit, offset=offset)
    earned_badges: dict[int, list[str]] = {}
    if include_badges and users:
        earned_badges = await UserBadgesRepo.list_earned_for_users(
            session,
            user_ids=[int(user.id) for user in users],
        )

    rows = [
        LeaderboardRow(
            rank=offset + index + 1,
            user_id=int(user.id),
            full_name=user.full_name,
            points=int(user.points or 0),
            is_current_user=current_user_id is not None and int(user.id) == current_user_id,
            badges=earned_badges.get(int(user.id), []) if include_badges else None,
        )
        for index, user in enumerate(users)
    ]

    current_user_rank: int | None = None
    if current_user_id is not None:
        current_user = await UsersRepo.get_by_id(session, current_user_id)
        if current_user is not None:
            current_user_rank = await rank_for_user(session, user=current_user)

    return LeaderboardPage(
        rows=rows,
        total_users=await UsersRepo.count_all(session),
        limit=limit,
        offset=offset,
        current_user_rank=current_user_rank,
    )
