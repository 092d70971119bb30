import json

import httpx
import pytest

from tennis_importer.config import Settings


def make_raw(**overrides):
    raw = {
        "id": 1001,
        "home_team_name": "Carlos Alcaraz",
        "away_team_name": "Jannik Sinner",
        "tournament_name": "Wimbledon",
        "league_name": "ATP",
        "season_name": "Wimbledon 2025",
        "tournament_importance": 2000,
        "ground_type": "Grass",
        "status_type": "finished",
        "start_time": "2025-07-13T14:00:00+00:00",
        "arena_name": "Centre Court",
        "round": {"name": "Final"},
        "home_team_score": {"current": 1, "period_1": 6, "period_2": 3, "period_3": 6, "period_4": 4},
        "away_team_score": {"current": 3, "period_1": 4, "period_2": 6, "period_3": 7, "period_4": 6, "period_3_tie_break": 7},
    }
    raw.update(overrides)
    return raw


class FakeProvider:
    """httpx transport answering every GET with a canned payload."""

    def __init__(self, payload=None, status_code=200):
        self.payload = payload if payload is not None else []
        self.status_code = status_code
        self.calls = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.calls.append(request)
        return httpx.Response(
            self.status_code,
            content=json.dumps(self.payload).encode(),
            headers={"content-type": "application/json"},
        )

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)


@pytest.fixture
def settings(tmp_path):
    return Settings(
        api_key="test-key",
        db_path=str(tmp_path / "tennis.db"),
        quota_backend="memory",
        quota_max=50,
    )
