from __future__ import annotations

import threading
from datetime import datetime, timezone
from typing import Optional

import aiosqlite
from loguru import logger

from .models import QuotaStatus


QUOTA_SQL = """
CREATE TABLE IF NOT EXISTS quota_usage (
    day TEXT PRIMARY KEY,
    used INTEGER NOT NULL DEFAULT 0
);
"""


def _today() -> str:
    return datetime.now(timezone.utc).date().isoformat()


class MemoryQuota:
    """Request budget for the lifetime of the process.

    Resets whenever the process restarts, so it only bounds a single run or
    server lifetime.
    """

    def __init__(self, limit: int = 50, global_limit: int = 300):
        self.limit = limit
        self.global_limit = global_limit
        self._used = 0
        self._lock = threading.Lock()

    async def acquire(self) -> bool:
        with self._lock:
            if self._used >= self.limit:
                return False
            self._used += 1
            return True

    async def status(self) -> QuotaStatus:
        with self._lock:
            used = self._used
        return QuotaStatus(
            used=used,
            remaining=max(self.limit - used, 0),
            daily_limit=self.limit,
            global_limit=self.global_limit,
        )


class SqliteDailyQuota:
    """Per-UTC-day request budget persisted in SQLite.

    The conditional UPDATE is atomic, so concurrent callers in one or more
    processes never spend past the limit.
    """

    def __init__(self, db_path: str, limit: int = 50, global_limit: int = 300, day: Optional[str] = None):
        self.db_path = db_path
        self.limit = limit
        self.global_limit = global_limit
        self._fixed_day = day

    def _day(self) -> str:
        return self._fixed_day or _today()

    async def acquire(self) -> bool:
        day = self._day()
        async with aiosqlite.connect(self.db_path) as db:
            await db.executescript(QUOTA_SQL)
            await db.execute("INSERT OR IGNORE INTO quota_usage(day, used) VALUES(?, 0)", (day,))
            cur = await db.execute(
                "UPDATE quota_usage SET used = used + 1 WHERE day = ? AND used < ?",
                (day, self.limit),
            )
            await db.commit()
            acquired = cur.rowcount == 1
        if not acquired:
            logger.warning("Daily tennis quota exhausted for {}", day)
        return acquired

    async def status(self) -> QuotaStatus:
        async with aiosqlite.connect(self.db_path) as db:
            await db.executescript(QUOTA_SQL)
            cur = await db.execute("SELECT used FROM quota_usage WHERE day = ?", (self._day(),))
            row = await cur.fetchone()
        used = row[0] if row else 0
        return QuotaStatus(
            used=used,
            remaining=max(self.limit - used, 0),
            daily_limit=self.limit,
            global_limit=self.global_limit,
        )


def build_quota(backend: str, db_path: str, limit: int, global_limit: int = 300):
    if backend == "memory":
        return MemoryQuota(limit, global_limit)
    if backend == "sqlite":
        return SqliteDailyQuota(db_path, limit, global_limit)
    raise ValueError(f"Unknown quota backend: {backend}")
