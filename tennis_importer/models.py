from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, timezone
from typing import Any, Dict, List, Optional, Set


MATCH_STATUSES = ("FINISHED", "LIVE", "SCHEDULED", "POSTPONED", "CANCELLED")
SQLITE_INT_RANGE = (-(2 ** 63), 2 ** 63 - 1)


@dataclass
class PlayerInfo:
    name: str
    ranking: Optional[int] = None
    country: Optional[str] = None


@dataclass
class TournamentInfo:
    name: str
    level: str
    surface: str
    importance: Optional[int] = None


@dataclass
class VenueInfo:
    name: str
    city: str
    country: str


@dataclass
class SideScore:
    sets: int = 0
    games: List[int] = field(default_factory=list)
    tiebreaks: List[int] = field(default_factory=list)


@dataclass
class MatchScores:
    player1: SideScore = field(default_factory=SideScore)
    player2: SideScore = field(default_factory=SideScore)


@dataclass
class TennisMatch:
    id: str
    player1: PlayerInfo
    player2: PlayerInfo
    tournament: TournamentInfo
    venue: VenueInfo
    date: datetime
    status: str
    scores: MatchScores
    round: str
    surface: str
    defaulted: Set[str] = field(default_factory=set)
    raw: Dict[str, Any] = field(default_factory=dict, repr=False)

    @property
    def api_match_id(self) -> Optional[int]:
        try:
            value = int(self.id)
        except (TypeError, ValueError):
            return None
        # ids SQLite cannot store as INTEGER fall back to the tuple dedup
        low, high = SQLITE_INT_RANGE
        return value if low <= value <= high else None

    def label(self) -> str:
        return f"{self.player1.name} vs {self.player2.name} ({self.tournament.name})"


@dataclass
class QuotaStatus:
    used: int
    remaining: int
    daily_limit: int
    global_limit: int = 300

    @property
    def percentage(self) -> int:
        if not self.daily_limit:
            return 100
        return round(self.used * 100 / self.daily_limit)

    def to_dict(self) -> Dict[str, int]:
        return {
            "used": self.used,
            "remaining": self.remaining,
            "dailyLimit": self.daily_limit,
            "globalLimit": self.global_limit,
            "percentage": self.percentage,
        }


@dataclass
class ImportResult:
    imported: int = 0
    skipped: int = 0
    errors: int = 0
    examples: List[str] = field(default_factory=list)
    requests_used: int = 0
    quota_remaining: int = 0

    MAX_EXAMPLES = 5

    def add_example(self, text: str) -> None:
        if len(self.examples) < self.MAX_EXAMPLES:
            self.examples.append(text)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "imported": self.imported,
            "skipped": self.skipped,
            "errors": self.errors,
            "examples": list(self.examples),
            "requestsUsed": self.requests_used,
            "quotaRemaining": self.quota_remaining,
        }


@dataclass
class ConnectionReport:
    success: bool
    message: str
    sample_data: Dict[str, Any]
    requests_used: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "message": self.message,
            "sampleData": self.sample_data,
            "requestsUsed": self.requests_used,
        }


@dataclass(frozen=True)
class DateWindow:
    start: date
    end: date

    @classmethod
    def july_2025(cls) -> "DateWindow":
        return cls(date(2025, 7, 1), date(2025, 8, 1))

    @classmethod
    def last_days(cls, days: int = 31, today: Optional[date] = None) -> "DateWindow":
        end = (today or datetime.now(timezone.utc).date()) + timedelta(days=1)
        return cls(end - timedelta(days=days), end)

    def query(self) -> str:
        return f"start_time=gte.{self.start.isoformat()}&start_time=lt.{self.end.isoformat()}"

    def describe(self) -> str:
        return f"{self.start.isoformat()} to {(self.end - timedelta(days=1)).isoformat()}"
