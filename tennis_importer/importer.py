from __future__ import annotations

import sqlite3
from collections import Counter
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import httpx
from loguru import logger

from .classifier import importance_of, is_official_atp
from .client import TennisApiClient
from .config import Settings
from .errors import SchemaError, TennisImportError
from .models import ConnectionReport, DateWindow, ImportResult, QuotaStatus, TennisMatch
from .parser import parse_datetime, parse_match
from .quota import build_quota
from .scoring import format_tennis_score
from .storage import TENNIS, ensure_sport_supported, find_existing, insert_match


PAGE_SIZE = 150
EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def _sample(raw: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "id": raw.get("id"),
        "player1": raw.get("home_team_name"),
        "player2": raw.get("away_team_name"),
        "tournament": raw.get("tournament_name"),
        "status": raw.get("status_type"),
        "surface": raw.get("ground_type"),
        "venue": raw.get("arena_name"),
        "date": raw.get("start_time"),
    }


def _is_candidate(raw: Any) -> bool:
    if not isinstance(raw, dict):
        return False
    if not raw.get("home_team_name") or not raw.get("away_team_name"):
        return False
    return raw.get("status_type") == "finished" and is_official_atp(raw)


def rank_matches(rows: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Most important tournaments first, then most recent."""
    by_date = sorted(
        rows,
        key=lambda r: parse_datetime(r.get("start_time")) or EPOCH,
        reverse=True,
    )
    return sorted(by_date, key=importance_of, reverse=True)


class TennisImporter:
    def __init__(self, client: TennisApiClient, db_path: str, settings: Optional[Settings] = None):
        self.client = client
        self.db_path = db_path
        self.settings = settings or client.settings
        self.sport = TENNIS

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        quota=None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> "TennisImporter":
        if quota is None:
            quota = build_quota(
                settings.quota_backend,
                settings.db_path,
                settings.quota_max,
                settings.provider_daily_limit,
            )
        client = TennisApiClient(settings, quota, transport=transport)
        return cls(client, settings.db_path, settings)

    async def __aenter__(self) -> "TennisImporter":
        return self

    async def __aexit__(self, *exc) -> None:
        await self.client.aclose()

    async def quota_status(self) -> QuotaStatus:
        return await self.client.quota_status()

    async def fetch_atp_matches(self, window: DateWindow, limit: int = 50) -> List[TennisMatch]:
        logger.info("Fetching up to {} official ATP matches, {}", limit, window.describe())
        payload = await self.client.request(f"/matches?{window.query()}&limit={PAGE_SIZE}")
        if not isinstance(payload, list):
            logger.warning("Unexpected tennis API payload: {}", type(payload).__name__)
            return []
        logger.info("{} matches received for {}", len(payload), window.describe())

        accepted = rank_matches([r for r in payload if _is_candidate(r)])
        if not accepted:
            logger.warning("No official ATP match found for {}", window.describe())
            for i, raw in enumerate(payload[:10], 1):
                if isinstance(raw, dict):
                    logger.info(
                        "  {}. {} (importance: {})", i, raw.get("tournament_name"), importance_of(raw)
                    )
            return []

        matches = [parse_match(raw) for raw in accepted[:limit]]
        by_level = Counter(m.tournament.level for m in matches)
        logger.info("{} official ATP matches kept", len(matches))
        for level, count in by_level.items():
            logger.info("  {}: {} matches", level, count)
        for m in matches[:8]:
            logger.debug(
                "  {} | {} | {}", m.label(), m.surface, format_tennis_score(m.scores)
            )
        return matches

    async def import_matches(self, window: DateWindow, limit: int = 50) -> ImportResult:
        result = ImportResult()
        start_requests = self.client.requests_made

        await ensure_sport_supported(self.db_path, self.sport)
        matches = await self.fetch_atp_matches(window, limit)
        if not matches:
            logger.info("No ATP match to import")
        else:
            logger.info("{} ATP matches to import", len(matches))

        for match in matches:
            if self.settings.reject_undated and "date" in match.defaulted:
                logger.warning("Skipping undated match {}", match.label())
                result.skipped += 1
                continue
            try:
                if await find_existing(self.db_path, match, self.sport) is not None:
                    result.skipped += 1
                    continue
                await insert_match(self.db_path, match, self.sport, raw=match.raw)
            except SchemaError:
                raise
            except (sqlite3.Error, OverflowError) as e:
                logger.error("Failed to import match {}: {}", match.id, e)
                result.errors += 1
                continue
            result.imported += 1
            result.add_example(match.label())
            logger.info("Imported {}", match.label())

        status = await self.client.quota_status()
        result.requests_used = self.client.requests_made - start_requests
        result.quota_remaining = status.remaining
        logger.info(
            "Tennis import done: {} imported, {} skipped, {} errors, {} requests",
            result.imported, result.skipped, result.errors, result.requests_used,
        )
        return result

    async def test_connection(self) -> ConnectionReport:
        logger.info("Testing tennis API connection")
        try:
            rows = await self.client.request("/matches?limit=3")
        except TennisImportError as e:
            logger.error("Tennis API connection failed: {}", e)
            return ConnectionReport(
                success=False,
                message=f"Tennis API error: {e}",
                sample_data={
                    "errorDetails": str(e),
                    "kind": e.kind.value,
                    "host": self.settings.api_host,
                    "hasApiKey": bool(self.settings.api_key),
                },
                requests_used=self.client.requests_made,
            )

        if isinstance(rows, list) and rows and isinstance(rows[0], dict):
            first = rows[0]
            return ConnectionReport(
                success=True,
                message=f"Tennis API connected, {len(rows)} test matches received",
                sample_data={
                    "totalMatches": len(rows),
                    "sampleMatch": _sample(first),
                    "apiStructure": {
                        "hasPlayers": bool(first.get("home_team_name") and first.get("away_team_name")),
                        "hasTournament": bool(first.get("tournament_name")),
                        "hasStatus": bool(first.get("status_type")),
                        "hasScores": bool(first.get("home_team_score") or first.get("away_team_score")),
                        "hasSurface": bool(first.get("ground_type")),
                    },
                },
                requests_used=self.client.requests_made,
            )
        return ConnectionReport(
            success=False,
            message="Tennis API reachable but no match or unexpected format",
            sample_data={"responseType": type(rows).__name__, "responseContent": rows},
            requests_used=self.client.requests_made,
        )

    async def debug_api_response(self) -> Dict[str, Any]:
        connection = await self.test_connection()
        rows = await self.client.request("/matches?limit=5")
        is_list = isinstance(rows, list)
        first = rows[0] if is_list and rows and isinstance(rows[0], dict) else None
        structure = None
        if first is not None:
            structure = {
                key: first.get(key)
                for key in (
                    "id", "name", "home_team_name", "away_team_name", "tournament_name",
                    "status_type", "ground_type", "start_time", "arena_name",
                    "home_team_score", "away_team_score",
                )
            }
        samples = []
        if is_list:
            for m in rows[:3]:
                if not isinstance(m, dict):
                    continue
                samples.append({
                    "id": m.get("id"),
                    "players": f"{m.get('home_team_name')} vs {m.get('away_team_name')}",
                    "tournament": m.get("tournament_name"),
                    "status": m.get("status_type"),
                    "surface": m.get("ground_type"),
                    "scores": {"home": m.get("home_team_score"), "away": m.get("away_team_score")},
                    "date": m.get("start_time"),
                    "venue": m.get("arena_name"),
                })
        return {
            "testConnection": connection.to_dict(),
            "rawApiResponse": {
                "dataType": "array" if is_list else type(rows).__name__,
                "count": len(rows) if is_list else None,
                "realStructure": structure,
                "sampleMatches": samples,
            },
        }
