"""Official ATP tour detection and tournament tier / surface profiling.

Pure string heuristics over provider fields. Expected to both over- and
under-include; exclusions always win over inclusions.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional

from loguru import logger


GRAND_SLAM = "Grand Chelem"
MASTERS_1000 = "ATP Masters 1000"
ATP_500 = "ATP 500"
ATP_250 = "ATP 250"
GENERIC_TIER = "ATP Tournament"

EXCLUSIONS = [
    "wta",
    "women",
    "ladies",
    "junior",
    "youth",
    "doubles",
    "mixed",
    "wheelchair",
    "legends",
    "senior",
    "exhibition",
    "challenger",
    "futures",
    "itf",
    "atp challenger",
    "qualifying",
    "wildcard",
]

OFFICIAL_ATP_TOURNAMENTS = [
    # grand slams
    "wimbledon",
    "us open",
    "french open",
    "australian open",
    "roland garros",
    # masters 1000
    "indian wells",
    "miami open",
    "monte carlo masters",
    "madrid open",
    "rome masters",
    "rogers cup",
    "cincinnati masters",
    "shanghai masters",
    "paris masters",
    # 500
    "barcelona open",
    "hamburg open",
    "halle open",
    "queens club",
    "stuttgart open",
    "rotterdam open",
    "dubai open",
    "acapulco open",
    "rio open",
    "memphis open",
    "delray beach open",
    "washington open",
    "tokyo open",
    "vienna open",
    "basel open",
    # 250
    "adelaide international",
    "auckland open",
    "doha open",
    "pune open",
    "cordoba open",
    "buenos aires open",
    "santiago open",
    "houston open",
    "marrakech open",
    "budapest open",
    "munich open",
    "estoril open",
    "geneva open",
    "lyon open",
    "eastbourne international",
    "newport open",
    "los cabos open",
    "kitzbuhel open",
    "gstaad open",
    "umag open",
    "atlanta open",
    "winston-salem open",
]

ATP_KEYWORDS = ["atp masters", "atp 1000", "atp 500", "atp 250"]

MIN_ATP_IMPORTANCE = 250

TIER_NAME_HINTS = [
    (GRAND_SLAM, ["grand slam", "wimbledon", "us open", "french open", "australian open", "roland garros"]),
    (MASTERS_1000, ["masters", "1000", "indian wells", "miami", "madrid", "rome", "shanghai", "paris masters"]),
    (ATP_500, ["500", "barcelona", "hamburg", "halle", "queens"]),
    (ATP_250, ["250", "atp"]),
]


@dataclass(frozen=True)
class TournamentProfile:
    tier: str
    surface: str
    surface_guessed: bool


def _text(value: Any) -> str:
    if value is None:
        return ""
    return str(value).lower()


def importance_of(raw: Dict[str, Any]) -> int:
    try:
        return int(raw.get("tournament_importance") or 0)
    except (TypeError, ValueError):
        return 0


def find_exclusion(raw: Dict[str, Any]) -> Optional[str]:
    names = (
        _text(raw.get("tournament_name")),
        _text(raw.get("league_name")),
        _text(raw.get("season_name")),
    )
    for word in EXCLUSIONS:
        if any(word in n for n in names):
            return word
    return None


def has_atp_keyword(name: str) -> bool:
    if any(k in name for k in ATP_KEYWORDS):
        return True
    return "atp" in name and "challenger" not in name


def is_official_atp(raw: Dict[str, Any]) -> bool:
    name = _text(raw.get("tournament_name"))
    importance = importance_of(raw)

    excluded = find_exclusion(raw)
    if excluded:
        logger.debug("Excluded ({}): {}", excluded, name)
        return False

    listed = any(t in name for t in OFFICIAL_ATP_TOURNAMENTS)
    ranked = importance >= MIN_ATP_IMPORTANCE and has_atp_keyword(name)
    accepted = listed or ranked
    logger.debug(
        "{} official ATP: {} (importance: {})",
        "Accepted" if accepted else "Not", name, importance,
    )
    return accepted


def classify_tier(raw: Dict[str, Any]) -> str:
    importance = importance_of(raw)
    if importance >= 2000:
        return GRAND_SLAM
    if importance >= 1000:
        return MASTERS_1000
    if importance >= 500:
        return ATP_500
    if importance >= 250:
        return ATP_250

    name = _text(raw.get("tournament_name"))
    for tier, hints in TIER_NAME_HINTS:
        if any(h in name for h in hints):
            return tier
    return GENERIC_TIER


def guess_surface(tournament_name: Optional[str]) -> str:
    name = _text(tournament_name)
    if "wimbledon" in name:
        return "Grass"
    if "roland garros" in name or "french open" in name or "clay" in name:
        return "Clay"
    return "Hard"


def tournament_profile(raw: Dict[str, Any]) -> TournamentProfile:
    ground = raw.get("ground_type")
    if isinstance(ground, str) and ground.strip():
        surface, guessed = ground.strip(), False
    else:
        surface, guessed = guess_surface(raw.get("tournament_name")), True
    return TournamentProfile(tier=classify_tier(raw), surface=surface, surface_guessed=guessed)
