from __future__ import annotations

from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from datetime import datetime, timedelta, timezone
from uuid import UUID

import pytest
from sqlalchemy.exc import IntegrityError

from app.db.models.duel_sessions import DuelSession
from app.db.models.game_stats import GameStats
from app.db.models.outbox_events import OutboxEvent
from app.db.models.points_ledger_entries import PointsLedgerEntry
from app.db.models.user_badges import UserBadge
from app.db.models.users import User
from app.db.repo.course_progress_repo import CourseProgressRepo
from app.db.repo.duel_sessions_repo import DuelSessionsRepo
from app.db.repo.forum_posts_repo import ForumPostsRepo
from app.db.repo.game_stats_repo import GameStatsRepo
from app.db.repo.outbox_events_repo import OutboxEventsRepo
from app.db.repo.points_ledger_repo import PointsLedgerRepo
from app.db.repo.premium_access_repo import PremiumAccessRepo
from app.db.repo.user_badges_repo import UserBadgesRepo
from app.db.repo.users_repo import UsersRepo

UTC = timezone.utc
NOW_UTC = datetime(2026, 10, 21, 12, 0, tzinfo=UTC)


class FakeSavepoint:
    def __init__(self, session: FakeSession) -> None:
        self._session = session

    async def __aenter__(self) -> FakeSavepoint:
        self._session.savepoints += 1
        return self

    async def __aexit__(self, exc_type, exc, tb) -> bool:
        if exc_type is not None:
            self._session.rolled_back_savepoints += 1
        return False


class FakeSession:
    def __init__(self) -> None:
        self.savepoints = 0
        self.rolled_back_savepoints = 0
        self.flushes = 0

    def begin_nested(self) -> FakeSavepoint:
        return FakeSavepoint(self)

    async def flush(self) -> None:
        self.flushes += 1


class FakeSessionFactory:
    def __init__(self) -> None:
        self.sessions: list[FakeSession] = []

    @asynccontextmanager
    async def begin(self) -> AsyncIterator[FakeSession]:
        session = FakeSession()
        self.sessions.append(session)
        yield session


class InMemoryGamificationStore:
    def __init__(self) -> None:
        self.users: dict[int, User] = {}
        self.premium_user_ids: set[int] = set()
        self.stats: dict[int, GameStats] = {}
        self.duels: dict[str, DuelSession] = {}
        self.taken_keys: set[str] = set()
        self.badges: dict[tuple[int, str], UserBadge] = {}
        self.ledger: list[PointsLedgerEntry] = []
        self.outbox: list[OutboxEvent] = []
        self.completed_courses: dict[int, int] = {}
        self.forum_maxima: dict[int, tuple[int, int]] = {}
        self.stats_lock_order: list[int] = []
        self.before_claim: Callable[[DuelSession], None] | None = None
        self.concurrent_ledger_entry: PointsLedgerEntry | None = None
        self.fail_outbox = False
        self.failing_badge_ids: set[str] = set()

    def add_user(
        self,
        user_id: int,
        *,
        full_name: str | None = None,
        points: int = 0,
        created_at: datetime | None = None,
        **fields: object,
    ) -> User:
        user = User(
            id=user_id,
            full_name=full_name or f"User {user_id}",
            status="ACTIVE",
            points=points,
            login_streak=0,
            tool_streak=0,
            study_planner_streak=0,
            analytics_streak=0,
            forum_posts_count=0,
            created_at=created_at or NOW_UTC - timedelta(days=30) + timedelta(minutes=user_id),
        )
        for name, value in fields.items():
            setattr(user, name, value)
        self.users[user_id] = user
        return user

    def add_duel(
        self,
        *,
        duel_key: str = "ABC123",
        host_user_id: int = 1,
        opponent_user_id: int | None = None,
        status: str = "waiting",
        host_score: int = 0,
        opponent_score: int = 0,
        expires_at: datetime | None = None,
    ) -> DuelSession:
        duel = DuelSession(
            id=UUID(int=len(self.duels) + 1),
            duel_key=duel_key,
            host_user_id=host_user_id,
            host_name=self.users[host_user_id].full_name if host_user_id in self.users else "Host",
            opponent_user_id=opponent_user_id,
            opponent_name=(
                self.users[opponent_user_id].full_name
                if opponent_user_id is not None and opponent_user_id in self.users
                else None
            ),
            topic="Photosynthesis",
            num_questions=5,
            status=status,
            host_score=host_score,
            opponent_score=opponent_score,
            expires_at=expires_at or NOW_UTC + timedelta(minutes=30),
            created_at=NOW_UTC - timedelta(minutes=5),
            updated_at=NOW_UTC - timedelta(minutes=5),
        )
        self.duels[duel_key] = duel
        return duel

    def stats_for(self, user_id: int) -> GameStats:
        if user_id not in self.stats:
            self.stats[user_id] = GameStats(
                user_id=user_id,
                games_played=0,
                games_won=0,
                points_earned=0,
                current_game_streak=0,
                max_game_streak=0,
                duels_today=0,
                duels_this_week=0,
                last_duel_date=None,
                last_duel_week=None,
                updated_at=NOW_UTC,
            )
        return self.stats[user_id]

    def ranked_users(self) -> list[User]:
        return sorted(
            self.users.values(),
            key=lambda user: (-int(user.points or 0), user.created_at, int(user.id)),
        )

    def outbox_types(self, user_id: int) -> list[str]:
        return [event.event_type for event in self.outbox if event.user_id == user_id]

    def earned_badges(self, user_id: int) -> set[str]:
        return {badge_id for (owner, badge_id), badge in self.badges.items() if owner == user_id and badge.earned}

    def install(self, monkeypatch: pytest.MonkeyPatch) -> None:
        store = self

        async def get_user(session, user_id: int):
            return store.users.get(user_id)

        async def apply_points_delta(session, *, user_id: int, delta: int, now_utc: datetime):
            user = store.users.get(user_id)
            if user is None:
                return None
            before = int(user.points or 0)
            user.points = max(0, before + delta)
            user.updated_at = now_utc
            return before, int(user.points)

        async def count_all(session) -> int:
            return len(store.users)

        async def count_ranked_ahead(session, *, points: int, created_at: datetime, user_id: int) -> int:
            ranked_ids = [int(user.id) for user in store.ranked_users()]
            return ranked_ids.index(user_id)

        async def list_leaderboard_page(session, *, limit: int, offset: int):
            return store.ranked_users()[offset : offset + limit]

        async def has_active_premium(session, user_id: int, now_utc: datetime) -> bool:
            return user_id in store.premium_user_ids

        async def get_stats(session, user_id: int):
            return store.stats.get(user_id)

        async def get_or_create_stats(session, *, user_id: int, now_utc: datetime):
            store.stats_lock_order.append(user_id)
            return store.stats_for(user_id)

        async def get_duel_by_key(session, duel_key: str):
            return store.duels.get(duel_key)

        async def duel_key_exists(session, duel_key: str) -> bool:
            return duel_key in store.duels or duel_key in store.taken_keys

        async def create_duel(session, *, duel: DuelSession):
            store.duels[duel.duel_key] = duel
            return duel

        async def claim_opponent(
            session,
            *,
            duel_key: str,
            opponent_user_id: int,
            opponent_name: str,
            now_utc: datetime,
        ):
            duel = store.duels.get(duel_key)
            if duel is not None and store.before_claim is not None:
                store.before_claim(duel)
            if (
                duel is None
                or duel.opponent_user_id is not None
                or duel.status != "waiting"
                or duel.expires_at <= now_utc
                or duel.host_user_id == opponent_user_id
            ):
                return None
            duel.opponent_user_id = opponent_user_id
            duel.opponent_name = opponent_name
            duel.status = "locked"
            duel.updated_at = now_utc
            return duel.id

        async def refresh_duel(session, duel_id: UUID):
            for duel in store.duels.values():
                if duel.id == duel_id:
                    return duel
            return None

        async def list_due_duels(session, *, now_utc: datetime, limit: int):
            due = [duel for duel in store.duels.values() if duel.status == "waiting" and duel.expires_at <= now_utc]
            return sorted(due, key=lambda duel: duel.expires_at)[: max(1, limit)]

        async def list_badges_for_user(session, *, user_id: int):
            return [badge for (owner, _), badge in store.badges.items() if owner == user_id]

        async def list_earned_for_users(session, *, user_ids: list[int]):
            earned: dict[int, list[str]] = {}
            for (owner, badge_id), badge in sorted(store.badges.items()):
                if owner in user_ids and badge.earned:
                    earned.setdefault(owner, []).append(badge_id)
            return earned

        async def get_or_create_badge(session, *, user_id: int, badge_id: str, kind: str, now_utc: datetime):
            if badge_id in store.failing_badge_ids:
                raise RuntimeError(f"badge storage failed for {badge_id}")
            key = (user_id, badge_id)
            if key not in store.badges:
                store.badges[key] = UserBadge(
                    id=len(store.badges) + 1,
                    user_id=user_id,
                    badge_id=badge_id,
                    kind=kind,
                    earned=False,
                    progress=None,
                    earned_at=None,
                    updated_at=now_utc,
                )
            return store.badges[key]

        async def get_ledger_by_key(session, idempotency_key: str):
            for entry in store.ledger:
                if entry.idempotency_key == idempotency_key:
                    return entry
            return None

        async def create_ledger_entry(
            session,
            *,
            user_id: int,
            delta: int,
            applied_delta: int,
            balance_after: int,
            reason: str,
            idempotency_key: str | None,
            created_at: datetime,
        ):
            if store.concurrent_ledger_entry is not None:
                store.ledger.append(store.concurrent_ledger_entry)
                store.concurrent_ledger_entry = None
                raise IntegrityError("INSERT INTO points_ledger_entries", {}, Exception("duplicate key"))
            entry = PointsLedgerEntry(
                id=len(store.ledger) + 1,
                user_id=user_id,
                delta=delta,
                applied_delta=applied_delta,
                balance_after=balance_after,
                reason=reason,
                idempotency_key=idempotency_key,
                created_at=created_at,
            )
            store.ledger.append(entry)
            return entry

        async def enqueue_outbox_event(session, *, user_id: int, event_type: str, payload):
            if store.fail_outbox:
                raise RuntimeError("outbox unavailable")
            event = OutboxEvent(
                id=len(store.outbox) + 1,
                user_id=user_id,
                event_type=event_type,
                payload=payload,
                status="PENDING",
                delivery_attempts=0,
            )
            store.outbox.append(event)
            return event

        async def count_completed_courses(session, *, user_id: int) -> int:
            return store.completed_courses.get(user_id, 0)

        async def get_engagement_maxima(session, *, user_id: int) -> tuple[int, int]:
            return store.forum_maxima.get(user_id, (0, 0))

        patches = {
            (UsersRepo, "get_by_id"): get_user,
            (UsersRepo, "get_by_id_for_update"): get_user,
            (UsersRepo, "apply_points_delta"): apply_points_delta,
            (UsersRepo, "count_all"): count_all,
            (UsersRepo, "count_ranked_ahead"): count_ranked_ahead,
            (UsersRepo, "list_leaderboard_page"): list_leaderboard_page,
            (PremiumAccessRepo, "has_active_premium"): has_active_premium,
            (GameStatsRepo, "get_by_user_id"): get_stats,
            (GameStatsRepo, "get_or_create_for_update"): get_or_create_stats,
            (DuelSessionsRepo, "get_by_key"): get_duel_by_key,
            (DuelSessionsRepo, "get_by_key_for_update"): get_duel_by_key,
            (DuelSessionsRepo, "key_exists"): duel_key_exists,
            (DuelSessionsRepo, "create"): create_duel,
            (DuelSessionsRepo, "claim_opponent"): claim_opponent,
            (DuelSessionsRepo, "refresh"): refresh_duel,
            (DuelSessionsRepo, "list_waiting_due_for_expire_for_update"): list_due_duels,
            (UserBadgesRepo, "list_for_user"): list_badges_for_user,
            (UserBadgesRepo, "list_earned_for_users"): list_earned_for_users,
            (UserBadgesRepo, "get_or_create_for_update"): get_or_create_badge,
            (PointsLedgerRepo, "get_by_idempotency_key"): get_ledger_by_key,
            (PointsLedgerRepo, "create"): create_ledger_entry,
            (OutboxEventsRepo, "enqueue"): enqueue_outbox_event,
            (CourseProgressRepo, "count_completed"): count_completed_courses,
            (ForumPostsRepo, "get_engagement_maxima"): get_engagement_maxima,
        }
        for (repo, name), replacement in patches.items():
            monkeypatch.setattr(repo, name, staticmethod(replacement))


class RecordingBadgeEngine:
    def __init__(self) -> None:
        self.events: list[tuple[int, str]] = []

    async def evaluate(self, session, *, user_id: int, event: str, now_utc: datetime) -> list[str]:
        self.events.append((user_id, event))
        return []
