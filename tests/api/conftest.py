from __future__ import annotations

import pytest

from app.api.routes import duels, internal_activity, leaderboard
from tests.game.gamification_fakes import FakeSessionFactory, InMemoryGamificationStore


@pytest.fixture
def store(monkeypatch) -> InMemoryGamificationStore:
    in_memory = InMemoryGamificationStore()
    in_memory.install(monkeypatch)
    session_factory = FakeSessionFactory()
    for module in (duels, leaderboard, internal_activity):
        monkeypatch.setattr(module, "SessionLocal", session_factory)
    return in_memory
