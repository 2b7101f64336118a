from __future__ import annotations

import re

from fastapi.testclient import TestClient

from app.main import app


def test_request_id_is_echoed_when_supplied() -> None:
    response = TestClient(app).get("/live", headers={"X-Request-Id": "req-42"})

    assert response.status_code == 200
    assert response.headers["X-Request-Id"] == "req-42"


def test_request_id_is_generated_when_missing() -> None:
    response = TestClient(app).get("/live")

    assert re.fullmatch(r"[0-9a-f]{32}", response.headers["X-Request-Id"])
