from __future__ import annotations

import json
import sqlite3
from dataclasses import asdict
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import aiosqlite

from .config import SOURCE_NAME
from .errors import SchemaError
from .models import TennisMatch


TENNIS = "TENNIS"

SCHEMA_SQL = """
PRAGMA journal_mode=WAL;
PRAGMA synchronous=NORMAL;

CREATE TABLE IF NOT EXISTS sports (
    code TEXT PRIMARY KEY
);

INSERT OR IGNORE INTO sports(code) VALUES
    ('FOOTBALL'), ('BASKETBALL'), ('MMA'), ('RUGBY'), ('F1'), ('TENNIS');

CREATE TABLE IF NOT EXISTS matches (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    api_match_id INTEGER,
    sport TEXT NOT NULL REFERENCES sports(code),
    home_team TEXT NOT NULL,
    away_team TEXT NOT NULL,
    home_score INTEGER,
    away_score INTEGER,
    date TEXT NOT NULL,
    status TEXT NOT NULL,
    competition TEXT,
    season TEXT,
    venue TEXT,
    details TEXT NOT NULL,
    created_at TEXT NOT NULL
);

CREATE UNIQUE INDEX IF NOT EXISTS ux_matches_api_match_id ON matches(api_match_id);
CREATE INDEX IF NOT EXISTS ix_matches_teams_date ON matches(home_team, away_team, sport, date);

CREATE TABLE IF NOT EXISTS raw_responses (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    match_id INTEGER,
    payload TEXT NOT NULL,
    received_at TEXT NOT NULL
);
"""


def _schema_error(e: sqlite3.OperationalError) -> Optional[SchemaError]:
    msg = str(e).lower()
    if "no such table" in msg or "no such column" in msg:
        return SchemaError(f"Database schema is missing pieces: {e}")
    return None


def _iso(dt: datetime) -> str:
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc).isoformat()


async def init_db(db_path: str) -> None:
    async with aiosqlite.connect(db_path) as db:
        await db.executescript(SCHEMA_SQL)
        await db.commit()


async def ensure_sport_supported(db_path: str, sport: str = TENNIS) -> None:
    try:
        async with aiosqlite.connect(db_path) as db:
            cur = await db.execute("SELECT 1 FROM sports WHERE code = ?", (sport,))
            row = await cur.fetchone()
    except sqlite3.OperationalError as e:
        err = _schema_error(e)
        if err:
            raise err from e
        raise
    if row is None:
        raise SchemaError(f"Sport {sport} is missing from the sports table")


async def find_existing(db_path: str, match: TennisMatch, sport: str = TENNIS) -> Optional[int]:
    try:
        async with aiosqlite.connect(db_path) as db:
            cur = await db.execute(
                """
                SELECT id FROM matches
                WHERE (api_match_id IS NOT NULL AND api_match_id = ?)
                   OR (home_team = ? AND away_team = ? AND sport = ? AND date = ?)
                LIMIT 1
                """,
                (
                    match.api_match_id,
                    match.player1.name,
                    match.player2.name,
                    sport,
                    _iso(match.date),
                ),
            )
            row = await cur.fetchone()
    except sqlite3.OperationalError as e:
        err = _schema_error(e)
        if err:
            raise err from e
        raise
    return row[0] if row else None


def match_details(match: TennisMatch) -> Dict[str, Any]:
    return {
        "type": "TENNIS_MATCH",
        "tournament": asdict(match.tournament),
        "venue": asdict(match.venue),
        "surface": match.surface,
        "round": match.round,
        "scores": asdict(match.scores),
        "player1": asdict(match.player1),
        "player2": asdict(match.player2),
        "defaulted": sorted(match.defaulted),
        "source": SOURCE_NAME,
    }


async def _archive_raw(db: aiosqlite.Connection, match_id: Optional[int], payload: dict) -> None:
    await db.execute(
        "INSERT INTO raw_responses(match_id, payload, received_at) VALUES(?, ?, ?)",
        (match_id, json.dumps(payload, ensure_ascii=False, default=str), datetime.now(timezone.utc).isoformat()),
    )


async def insert_match(
    db_path: str, match: TennisMatch, sport: str = TENNIS, raw: Optional[dict] = None
) -> int:
    """Insert the match row and, when given, its raw payload in one transaction."""
    now = datetime.now(timezone.utc).isoformat()
    try:
        async with aiosqlite.connect(db_path) as db:
            await db.execute("PRAGMA foreign_keys=ON")
            cur = await db.execute(
                """
                INSERT INTO matches(
                    api_match_id, sport, home_team, away_team, home_score, away_score,
                    date, status, competition, season, venue, details, created_at
                ) VALUES(?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    match.api_match_id,
                    sport,
                    match.player1.name,
                    match.player2.name,
                    match.scores.player1.sets,
                    match.scores.player2.sets,
                    _iso(match.date),
                    match.status,
                    match.tournament.name,
                    str(match.date.year),
                    f"{match.venue.name}, {match.venue.city}",
                    json.dumps(match_details(match), ensure_ascii=False),
                    now,
                ),
            )
            row_id = cur.lastrowid
            if raw is not None:
                await _archive_raw(db, row_id, raw)
            await db.commit()
            return row_id
    except sqlite3.OperationalError as e:
        err = _schema_error(e)
        if err:
            raise err from e
        raise


async def count_matches(db_path: str, sport: Optional[str] = None) -> int:
    async with aiosqlite.connect(db_path) as db:
        if sport:
            cur = await db.execute("SELECT COUNT(*) FROM matches WHERE sport = ?", (sport,))
        else:
            cur = await db.execute("SELECT COUNT(*) FROM matches")
        row = await cur.fetchone()
    return row[0]


async def recent_matches(db_path: str, limit: int = 20, sport: str = TENNIS) -> List[Dict[str, Any]]:
    async with aiosqlite.connect(db_path) as db:
        db.row_factory = aiosqlite.Row
        cur = await db.execute(
            """
            SELECT id, api_match_id, home_team, away_team, home_score, away_score,
                   date, status, competition, details
            FROM matches WHERE sport = ? ORDER BY date DESC LIMIT ?
            """,
            (sport, limit),
        )
        rows = await cur.fetchall()
    out = []
    for r in rows:
        item = dict(r)
        item["details"] = json.loads(item["details"])
        out.append(item)
    return out
