from __future__ import annotations

import sys
import uuid
from pathlib import Path
from typing import Dict

import pytest
from fastapi.testclient import TestClient

# Ensure project root on path
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from checkin_desk.main import app
from checkin_desk.config import get_settings
from checkin_desk.database import Base, engine
from checkin_desk.rate_limit import _window_counts as _rate_counts
from checkin_desk.startgg import get_startgg_client


API_TOKEN = "dev-token"


def _auth_headers(token: str = API_TOKEN) -> Dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture()
def client(monkeypatch: pytest.MonkeyPatch) -> TestClient:
    # Keep RL enabled but high to avoid interference unless explicitly tested
    monkeypatch.setenv("CHECKIN_RATE_LIMIT_ENABLED", "true")
    monkeypatch.setenv("CHECKIN_RATE_LIMIT_PER_MINUTE", "200")
    get_settings.cache_clear()  # type: ignore[attr-defined]
    _rate_counts.clear()
    Base.metadata.create_all(bind=engine)
    yield TestClient(app)
    get_settings.cache_clear()  # type: ignore[attr-defined]


def _tid() -> str:
    return f"t_{uuid.uuid4().hex[:8]}"


def test_invalid_token_401_has_error_shape(client: TestClient) -> None:
    r = client.get("/api/dashboard.summary", params={"tournament_id": _tid()}, headers=_auth_headers("bad-token"))
    assert r.status_code == 401
    data = r.json()
    assert data["ok"] is False
    assert data["error"]["status"] == 401
    assert data["error"]["path"] == "/api/dashboard.summary"
    assert "X-Process-Time-Ms" in r.headers


def test_csv_without_header_is_rejected(client: TestClient) -> None:
    tid = _tid()
    r = client.post(
        "/api/participants.importCsv",
        params={"tournament_id": tid},
        content=b"Name,Phone\nTaro,090\n",
        headers={**_auth_headers(), "Content-Type": "text/csv"},
    )
    assert r.status_code == 400
    assert "header" in r.json()["error"]["message"].lower()
    listed = client.get("/api/participants.list", params={"tournament_id": tid}, headers=_auth_headers())
    assert listed.json()["total"] == 0


def test_csv_with_header_but_no_rows_is_empty_import(client: TestClient) -> None:
    r = client.post(
        "/api/participants.importCsv",
        params={"tournament_id": _tid()},
        content=b"Id,GamerTag\n,\n",
        headers={**_auth_headers(), "Content-Type": "text/csv"},
    )
    assert r.status_code == 400


def test_csv_that_is_not_utf8_is_rejected(client: TestClient) -> None:
    tid = _tid()
    r = client.post(
        "/api/participants.importCsv",
        params={"tournament_id": tid},
        content="Id,GamerTag\n101,太郎\n".encode("shift_jis"),
        headers={**_auth_headers(), "Content-Type": "text/csv"},
    )
    assert r.status_code == 400
    assert "UTF-8" in r.json()["error"]["message"]
    listed = client.get("/api/participants.list", params={"tournament_id": tid}, headers=_auth_headers())
    assert listed.json()["total"] == 0


def test_lookup_errors(client: TestClient) -> None:
    tid = _tid()
    r = client.post("/api/participants.lookup", json={"tournament_id": tid, "raw": "abc"}, headers=_auth_headers())
    assert r.status_code == 400
    r = client.post("/api/participants.lookup", json={"tournament_id": tid, "raw": "999"}, headers=_auth_headers())
    assert r.status_code == 404


def test_unknown_adjustment_and_bad_filter(client: TestClient) -> None:
    tid = _tid()
    client.post(
        "/api/participants.import",
        json={"tournament_id": tid, "participants": [{"participantId": "1"}]},
        headers=_auth_headers(),
    )
    r = client.post(
        "/api/participants.quote",
        json={"tournament_id": tid, "participant_id": "1", "adjustment_key": "nope"},
        headers=_auth_headers(),
    )
    assert r.status_code == 400
    r = client.get(
        "/api/participants.list", params={"tournament_id": tid, "filter": "weird"}, headers=_auth_headers()
    )
    assert r.status_code == 400


def test_login_without_oauth_settings_is_setup_error(client: TestClient, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("CHECKIN_STARTGG_CLIENT_ID", raising=False)
    app.dependency_overrides.pop(get_startgg_client, None)
    get_settings.cache_clear()  # type: ignore[attr-defined]
    r = client.get("/auth/login", follow_redirects=False)
    assert r.status_code == 500
    assert r.json()["ok"] is False


def test_rate_limit(client: TestClient, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("CHECKIN_RATE_LIMIT_PER_MINUTE", "3")
    get_settings.cache_clear()  # type: ignore[attr-defined]
    _rate_counts.clear()
    # pin the clock inside one window
    monkeypatch.setattr("checkin_desk.rate_limit.time.time", lambda: 1_699_999_990.0)
    tid = _tid()
    for _ in range(3):
        ok = client.get("/api/dashboard.summary", params={"tournament_id": tid}, headers=_auth_headers())
        assert ok.status_code == 200
    blocked = client.get("/api/dashboard.summary", params={"tournament_id": tid}, headers=_auth_headers())
    assert blocked.status_code == 429
    assert blocked.headers["retry-after"] == "50"
    assert blocked.json()["error"]["status"] == 429
