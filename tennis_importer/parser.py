from __future__ import annotations

import random
import re
import time
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from dateutil import parser as dateparser

from .classifier import tournament_profile, importance_of
from .models import (
    MatchScores,
    PlayerInfo,
    SideScore,
    TennisMatch,
    TournamentInfo,
    VenueInfo,
)


STATUS_MAP = {
    "finished": "FINISHED",
    "live": "LIVE",
    "upcoming": "SCHEDULED",
    "postponed": "POSTPONED",
    "suspended": "POSTPONED",
    "canceled": "CANCELLED",
    "cancelled": "CANCELLED",
}

PERIOD_KEY = re.compile(r"^period_(\d+)$")
TIEBREAK_KEY = re.compile(r"^period_(\d+)_tie_break$")


def parse_datetime(value: Any) -> datetime | None:
    if value is None:
        return None
    if isinstance(value, (int, float)):
        try:
            # assume seconds if small, ms if large
            if value > 10_000_000_000:
                return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
            return datetime.fromtimestamp(value, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
    if isinstance(value, str) and value.strip():
        try:
            parsed = dateparser.parse(value)
        except (ValueError, OverflowError):
            return None
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        return parsed
    return None


def map_status(status_type: Optional[str]) -> str:
    if not status_type:
        return "SCHEDULED"
    return STATUS_MAP.get(str(status_type).strip().lower(), "SCHEDULED")


def _as_int(value: Any, default: int = 0) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def _int_list(value: Any) -> List[int]:
    if not isinstance(value, list):
        return []
    return [_as_int(v) for v in value]


def _periods(score: Dict[str, Any], pattern: re.Pattern) -> List[int]:
    found = []
    for key, val in score.items():
        m = pattern.match(str(key))
        if m:
            found.append((int(m.group(1)), _as_int(val)))
    return [v for _, v in sorted(found)]


def _side_score(score: Dict[str, Any]) -> SideScore:
    games = _int_list(score.get("games") or score.get("series")) or _periods(score, PERIOD_KEY)
    tiebreaks = _int_list(score.get("tiebreaks")) or _periods(score, TIEBREAK_KEY)
    return SideScore(
        sets=_as_int(score.get("sets") or score.get("current")),
        games=games,
        tiebreaks=tiebreaks,
    )


def extract_scores(raw: Dict[str, Any]) -> MatchScores | None:
    home = raw.get("home_team_score")
    away = raw.get("away_team_score")
    if not isinstance(home, dict) or not isinstance(away, dict) or not home or not away:
        return None
    return MatchScores(player1=_side_score(home), player2=_side_score(away))


def _round_name(raw: Dict[str, Any]) -> Optional[str]:
    rnd = raw.get("round")
    if isinstance(rnd, dict):
        rnd = rnd.get("name")
    return str(rnd) if rnd else None


def _fallback_id() -> str:
    return f"tennis_{int(time.time() * 1000)}_{random.random()}"


def parse_match(raw: Dict[str, Any], now: Optional[datetime] = None) -> TennisMatch:
    """Normalize one provider record. Never fails.

    Every field that had to be made up is listed in ``defaulted`` so callers
    can tell real data from placeholders.
    """
    defaulted = set()

    def pick(key: str, fallback: str, tag: str) -> str:
        val = raw.get(key)
        if val is None or (isinstance(val, str) and not val.strip()):
            defaulted.add(tag)
            return fallback
        return str(val)

    raw_id = raw.get("id")
    if raw_id is None or raw_id == "":
        match_id = _fallback_id()
        defaulted.add("id")
    else:
        match_id = str(raw_id)

    player1 = PlayerInfo(name=pick("home_team_name", "Player 1", "player1"))
    player2 = PlayerInfo(name=pick("away_team_name", "Player 2", "player2"))

    profile = tournament_profile(raw)
    if profile.surface_guessed:
        defaulted.add("surface")
    tournament = TournamentInfo(
        name=pick("tournament_name", "Tennis Tournament", "tournament"),
        level=profile.tier,
        surface=profile.surface,
        importance=importance_of(raw) if raw.get("tournament_importance") is not None else None,
    )

    venue = VenueInfo(
        name=pick("arena_name", "Tennis Court", "venue"),
        city="Unknown City",
        country="Unknown Country",
    )

    start = parse_datetime(raw.get("start_time")) or parse_datetime(raw.get("specific_start_time"))
    if start is None:
        start = now or datetime.now(timezone.utc)
        defaulted.add("date")

    scores = extract_scores(raw)
    if scores is None:
        scores = MatchScores()
        defaulted.add("scores")

    round_name = _round_name(raw)
    if round_name is None:
        round_name = "Round"
        defaulted.add("round")

    return TennisMatch(
        id=match_id,
        player1=player1,
        player2=player2,
        tournament=tournament,
        venue=venue,
        date=start,
        status=map_status(raw.get("status_type")),
        scores=scores,
        round=round_name,
        surface=profile.surface,
        defaulted=defaulted,
        raw=raw,
    )
