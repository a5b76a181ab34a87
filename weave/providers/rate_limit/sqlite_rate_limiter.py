"""Fixed-window per-user rate limiting stored in SQLite.

One row per ``(user_id, function_name)`` holds a request count and the
start of the current window.  A request is allowed when there is no row
yet, when the window has expired (the counter restarts at 1), or while
the count is below the limit.  Denied requests are not counted.  Any
database error allows the request.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime, timedelta, timezone
from pathlib import Path

import aiosqlite
import structlog

from weave.interfaces.rate_limiter import IRateLimiter

logger = structlog.get_logger(logger_name=__name__)

_CREATE_TABLE_SQL = """\
CREATE TABLE IF NOT EXISTS rate_limits (
    user_id        TEXT    NOT NULL,
    function_name  TEXT    NOT NULL,
    request_count  INTEGER NOT NULL DEFAULT 1,
    window_start   TEXT    NOT NULL,
    UNIQUE(user_id, function_name)
);
"""

_SELECT_SQL = """\
SELECT request_count, window_start FROM rate_limits
WHERE user_id = ? AND function_name = ?;
"""

_INSERT_SQL = """\
INSERT INTO rate_limits (user_id, function_name, request_count, window_start)
VALUES (?, ?, 1, ?);
"""

_RESET_SQL = """\
UPDATE rate_limits SET request_count = 1, window_start = ?
WHERE user_id = ? AND function_name = ?;
"""

_INCREMENT_SQL = """\
UPDATE rate_limits SET request_count = request_count + 1
WHERE user_id = ? AND function_name = ?;
"""


def _utc_now() -> datetime:
    return datetime.now(tz=timezone.utc)  # noqa: UP017


class SQLiteRateLimiter(IRateLimiter):
    """Fixed-window limiter; defaults to 20 requests per 60 minutes."""

    def __init__(
        self,
        db_path: str | Path = "data/weave.db",
        max_requests: int = 20,
        window_minutes: int = 60,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self._db_path = Path(db_path)
        self._max_requests = max_requests
        self._window_minutes = window_minutes
        self._clock = clock

    @property
    def max_requests(self) -> int:
        return self._max_requests

    @property
    def window_minutes(self) -> int:
        return self._window_minutes

    async def initialize(self) -> None:
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        async with aiosqlite.connect(str(self._db_path)) as db:
            await db.execute(_CREATE_TABLE_SQL)
            await db.commit()

    async def check(
        self,
        user_id: str,
        function_name: str,
        max_requests: int | None = None,
        window_minutes: int | None = None,
    ) -> bool:
        limit = max_requests or self._max_requests
        window = timedelta(minutes=window_minutes or self._window_minutes)
        now = self._clock()
        try:
            allowed = await self._check(user_id, function_name, limit, window, now)
        except aiosqlite.Error as exc:
            logger.error("rate_limit_check_failed", function=function_name, error=str(exc))
            return True

        if not allowed:
            logger.warning("rate_limit_exceeded", function=function_name, limit=limit)
        return allowed

    async def _check(
        self,
        user_id: str,
        function_name: str,
        limit: int,
        window: timedelta,
        now: datetime,
    ) -> bool:
        async with aiosqlite.connect(str(self._db_path)) as db:
            cursor = await db.execute(_SELECT_SQL, (user_id, function_name))
            row = await cursor.fetchone()

            if row is None:
                await db.execute(_INSERT_SQL, (user_id, function_name, now.isoformat()))
                await db.commit()
                return True

            request_count, window_start = row
            if datetime.fromisoformat(window_start) < now - window:
                await db.execute(_RESET_SQL, (now.isoformat(), user_id, function_name))
                await db.commit()
                return True

            if request_count >= limit:
                return False

            await db.execute(_INCREMENT_SQL, (user_id, function_name))
            await db.commit()
            return True
