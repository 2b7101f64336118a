from __future__ import annotations

import pytest

from tests.game.gamification_fakes import FakeSession, InMemoryGamificationStore


@pytest.fixture
def store(monkeypatch) -> InMemoryGamificationStore:
    in_memory = InMemoryGamificationStore()
    in_memory.install(monkeypatch)
    return in_memory


@pytest.fixture
def session() -> FakeSession:
    return FakeSession()
