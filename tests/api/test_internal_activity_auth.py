from __future__ import annotations

from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

from fastapi.testclient import TestClient

from app.api.routes import internal_activity
from app.main import app


def _settings(*, allowlist: str = "127.0.0.1/32") -> SimpleNamespace:
    return SimpleNamespace(
        internal_api_token="internal-secret",
        internal_api_allowlist=allowlist,
        internal_api_trusted_proxies="127.0.0.1/32",
    )


def _internal_client() -> TestClient:
    return TestClient(app, client=("127.0.0.1", 5100))


def test_internal_activity_rejects_missing_token(monkeypatch, store) -> None:
    monkeypatch.setattr(internal_activity, "get_settings", lambda: _settings())

    response = _internal_client().post("/internal/activity/login", json={"user_id": 1})

    assert response.status_code == 403
    assert response.json() == {"detail": {"code": "E_FORBIDDEN"}}


def test_internal_activity_rejects_disallowed_ip(monkeypatch, store) -> None:
    monkeypatch.setattr(internal_activity, "get_settings", lambda: _settings(allowlist="192.168.0.0/16"))

    response = _internal_client().post(
        "/internal/activity/login",
        json={"user_id": 1},
        headers={
            "X-Internal-Token": "internal-secret",
            "X-Forwarded-For": "10.0.0.25",
        },
    )

    assert response.status_code == 403
    assert response.json() == {"detail": {"code": "E_FORBIDDEN"}}


def test_internal_login_records_streak(monkeypatch, store) -> None:
    monkeypatch.setattr(internal_activity, "get_settings", lambda: _settings())
    store.add_user(1)

    response = _internal_client().post(
        "/internal/activity/login",
        json={"user_id": 1},
        headers={"X-Internal-Token": "internal-secret"},
    )

    assert response.status_code == 200
    assert response.json() == {
        "user_id": 1,
        "event": "login",
        "points_delta": 0,
        "streak": 1,
        "awarded_badges": [],
    }


def test_internal_course_completed_accepts_naive_start_time(monkeypatch, store) -> None:
    monkeypatch.setattr(internal_activity, "get_settings", lambda: _settings())
    store.add_user(1)
    started_at = (datetime.now(timezone.utc) - timedelta(hours=2)).replace(tzinfo=None)

    response = _internal_client().post(
        "/internal/activity/course-completed",
        json={"user_id": 1, "started_at": started_at.isoformat()},
        headers={"X-Internal-Token": "internal-secret"},
    )

    assert response.status_code == 200
    assert response.json()["points_delta"] == 20
    assert response.json()["awarded_badges"][0] == "quick_learner"


def test_internal_forum_vote_and_unknown_user(monkeypatch, store) -> None:
    monkeypatch.setattr(internal_activity, "get_settings", lambda: _settings())
    store.add_user(1, points=4)
    client = _internal_client()
    headers = {"X-Internal-Token": "internal-secret"}

    unvote = client.post(
        "/internal/activity/forum-vote",
        json={"author_user_id": 1, "added": False},
        headers=headers,
    )
    unknown = client.post("/internal/activity/lesson-completed", json={"user_id": 404}, headers=headers)

    assert unvote.json()["points_delta"] == -1
    assert store.users[1].points == 3
    assert unknown.status_code == 404
    assert unknown.json()["detail"]["code"] == "E_USER_NOT_FOUND"


def test_internal_tool_used_validates_payload(monkeypatch, store) -> None:
    monkeypatch.setattr(internal_activity, "get_settings", lambda: _settings())
    store.add_user(1)

    response = _internal_client().post(
        "/internal/activity/tool-used",
        json={"user_id": 1, "tool_code": ""},
        headers={"X-Internal-Token": "internal-secret"},
    )

    assert response.status_code == 422
