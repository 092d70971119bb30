import asyncio
from dataclasses import replace

import pytest

from conftest import FakeProvider, make_raw
from tennis_importer.api import create_app
from tennis_importer.quota import MemoryQuota
from tennis_importer.storage import init_db

AUTH = {"Authorization": "Bearer op-token"}


@pytest.fixture
def operator_settings(settings):
    asyncio.run(init_db(settings.db_path))
    return replace(settings, operator_token="op-token")


def _client(settings, payload=None, status_code=200, quota=None):
    provider = FakeProvider(payload if payload is not None else [make_raw()], status_code)
    app = create_app(settings, quota=quota or MemoryQuota(50), transport=provider.transport)
    app.config["TESTING"] = True
    return app.test_client(), provider


def test_requires_authentication(operator_settings):
    client, provider = _client(operator_settings)
    resp = client.post("/api/tennis-import", json={"action": "get_quota_status"})
    assert resp.status_code == 401
    wrong = client.post("/api/tennis-import", json={"action": "get_quota_status"}, headers={"Authorization": "Bearer nope"})
    assert wrong.status_code == 401
    assert provider.calls == []


def test_auth_checked_before_method(operator_settings):
    client, _ = _client(operator_settings)
    assert client.get("/api/tennis-import").status_code == 401
    assert client.get("/api/tennis-import", headers=AUTH).status_code == 405


def test_session_user_is_authenticated(operator_settings):
    client, _ = _client(operator_settings)
    with client.session_transaction() as sess:
        sess["user_id"] = "u-1"
    resp = client.post("/api/tennis-import", json={"action": "get_quota_status"})
    assert resp.status_code == 200


def test_unknown_action(operator_settings):
    client, _ = _client(operator_settings)
    resp = client.post("/api/tennis-import", json={"action": "import_everything"}, headers=AUTH)
    assert resp.status_code == 400
    body = resp.get_json()
    assert any(a.startswith("import_atp_matches") for a in body["availableActions"])


def test_quota_status(operator_settings):
    client, _ = _client(operator_settings)
    body = client.post("/api/tennis-import", json={"action": "get_quota_status"}, headers=AUTH).get_json()
    assert body["success"]
    assert body["quota"] == {"used": 0, "remaining": 50, "dailyLimit": 50, "globalLimit": 300, "percentage": 0}


def test_import_atp_july_2025(operator_settings):
    client, provider = _client(operator_settings)
    resp = client.post("/api/tennis-import", json={"action": "import_atp_july_2025"}, headers=AUTH)
    assert resp.status_code == 200
    body = resp.get_json()
    assert body["success"]
    assert body["result"]["imported"] == 1
    assert body["summary"]["breakdown"] == {"imported": 1, "skipped": 0, "errors": 0}
    assert "start_time=gte.2025-07-01" in provider.calls[0].url.query.decode()

    again = client.post("/api/tennis-import", json={"action": "import_atp_july_2025"}, headers=AUTH).get_json()
    assert not again["success"]
    assert again["result"]["skipped"] == 1


def test_import_atp_matches_with_window(operator_settings):
    client, provider = _client(operator_settings)
    resp = client.post(
        "/api/tennis-import",
        json={"action": "import_atp_matches", "start": "2025-06-01", "end": "2025-06-15", "limit": 10},
        headers=AUTH,
    )
    assert resp.status_code == 200
    query = provider.calls[0].url.query.decode()
    assert "start_time=gte.2025-06-01" in query
    assert "start_time=lt.2025-06-15" in query


@pytest.mark.parametrize(
    "extra",
    [{"start": "2025-06-01"}, {"start": "2025-06-15", "end": "2025-06-01"}, {"start": "junk", "end": "2025-06-01"}, {"limit": 500}],
)
def test_import_atp_matches_bad_parameters(operator_settings, extra):
    client, provider = _client(operator_settings)
    body = {"action": "import_atp_matches", **extra}
    assert client.post("/api/tennis-import", json=body, headers=AUTH).status_code == 400
    assert provider.calls == []


def test_insufficient_quota_returns_429(operator_settings):
    quota = MemoryQuota(limit=4)
    client, provider = _client(operator_settings, quota=quota)
    resp = client.post("/api/tennis-import", json={"action": "import_atp_matches"}, headers=AUTH)
    assert resp.status_code == 429
    assert resp.get_json()["quota"]["remaining"] == 4
    assert provider.calls == []

    # the July import only needs three
    assert client.post("/api/tennis-import", json={"action": "import_atp_july_2025"}, headers=AUTH).status_code == 200


def test_quota_spent_mid_action_returns_429(operator_settings):
    client, provider = _client(operator_settings, quota=MemoryQuota(limit=1))
    resp = client.post("/api/tennis-import", json={"action": "debug_api_response"}, headers=AUTH)
    assert resp.status_code == 429
    body = resp.get_json()
    assert body["kind"] == "quota"
    assert body["quota"]["remaining"] == 0
    assert len(provider.calls) == 1


@pytest.mark.parametrize(
    "spent,hint",
    [(0, "Quota available (10 requests left)"), (6, "Quota half used (4 requests left)"), (9, "Quota almost spent (1 requests left)")],
)
def test_quota_status_recommendation(operator_settings, spent, hint):
    quota = MemoryQuota(limit=10)

    async def spend():
        for _ in range(spent):
            await quota.acquire()

    asyncio.run(spend())
    client, _ = _client(operator_settings, quota=quota)
    body = client.post("/api/tennis-import", json={"action": "get_quota_status"}, headers=AUTH).get_json()
    assert body["quota"]["used"] == spent
    assert body["recommendation"] == hint


def test_provider_auth_failure_returns_500_with_hints(operator_settings):
    client, _ = _client(operator_settings, payload={"message": "invalid key"}, status_code=401)
    resp = client.post("/api/tennis-import", json={"action": "import_atp_july_2025"}, headers=AUTH)
    assert resp.status_code == 500
    body = resp.get_json()
    assert body["kind"] == "auth"
    assert body["error"] == "Access to the tennis API was refused"
    assert body["troubleshooting"]


def test_test_connection(operator_settings):
    client, _ = _client(operator_settings)
    body = client.post("/api/tennis-import", json={"action": "test_connection"}, headers=AUTH).get_json()
    assert body["success"]
    assert body["details"]["quota"]["used"] == 1
    assert body["details"]["sampleMatch"]["tournament"] == "Wimbledon"


def test_debug_api_response(operator_settings):
    client, provider = _client(operator_settings)
    body = client.post("/api/tennis-import", json={"action": "debug_api_response"}, headers=AUTH).get_json()
    assert body["success"]
    raw = body["debug"]["rawApiResponse"]
    assert raw["dataType"] == "array"
    assert raw["realStructure"]["home_team_name"] == "Carlos Alcaraz"
    assert len(provider.calls) == 2


def test_healthz(operator_settings):
    client, _ = _client(operator_settings)
    assert client.get("/healthz").get_json() == {"status": "ok"}
