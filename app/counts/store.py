"""SQLite-backed view and vote counters.

Counters live in pre-aggregated tables (one row per tool) so reads are a
single scan. Votes are additionally recorded per voter, which makes
casting a vote idempotent for a given (tool, voter) pair.

Reads go through a short TTL cache. When the database cannot be read the
last cached mapping is served, however old.
"""

import sqlite3
import time
from collections.abc import Callable, Iterator
from contextlib import closing, contextmanager
from dataclasses import dataclass, field
from datetime import UTC, datetime
from functools import lru_cache
from pathlib import Path

from app.config import get_settings
from app.counts.models import CountMap
from app.dependencies import CountsStoreError, logger

SCHEMA = """
CREATE TABLE IF NOT EXISTS tool_view_counts (
    tool_id TEXT PRIMARY KEY,
    view_count INTEGER NOT NULL DEFAULT 0
);
CREATE TABLE IF NOT EXISTS tool_vote_counts (
    tool_id TEXT PRIMARY KEY,
    vote_count INTEGER NOT NULL DEFAULT 0
);
CREATE TABLE IF NOT EXISTS tool_votes (
    tool_id TEXT NOT NULL,
    voter_id TEXT NOT NULL,
    created_at TEXT NOT NULL,
    PRIMARY KEY (tool_id, voter_id)
);
"""


@dataclass
class CachedCounts:
    """A counts mapping and when it was fetched."""

    counts: CountMap | None = None
    fetched_at: float = 0.0

    def is_fresh(self, now: float, ttl: float) -> bool:
        return self.counts is not None and now - self.fetched_at < ttl


@dataclass
class CountStore:
    """View and vote counters for tools.

    Attributes:
        db_path: SQLite database file (created on first use)
        cache_seconds: How long a read is served from cache
        clock: Monotonic time source
    """

    db_path: Path
    cache_seconds: float = 30.0
    clock: Callable[[], float] = time.monotonic
    _views: CachedCounts = field(default_factory=CachedCounts, init=False, repr=False)
    _votes: CachedCounts = field(default_factory=CachedCounts, init=False, repr=False)
    _initialized: bool = field(default=False, init=False, repr=False)

    @contextmanager
    def _connect(self) -> Iterator[sqlite3.Connection]:
        """Open a connection, commit on success, always close.

        Raises:
            CountsStoreError: On any SQLite error
        """
        try:
            if not self._initialized:
                self.db_path.parent.mkdir(parents=True, exist_ok=True)
            with closing(sqlite3.connect(self.db_path)) as conn:
                if not self._initialized:
                    conn.executescript(SCHEMA)
                    self._initialized = True
                with conn:
                    yield conn
        except (sqlite3.Error, OSError) as e:
            raise CountsStoreError(f"Counts store unavailable: {e}") from e

    def _read(self, table: str, column: str) -> CountMap:
        with self._connect() as conn:
            rows = conn.execute(f"SELECT tool_id, {column} FROM {table}").fetchall()  # noqa: S608
        return {tool_id: count for tool_id, count in rows}

    def _cached_read(self, cache: CachedCounts, table: str, column: str) -> CountMap:
        now = self.clock()
        if cache.is_fresh(now, self.cache_seconds):
            return dict(cache.counts or {})

        try:
            counts = self._read(table, column)
        except CountsStoreError as e:
            if cache.counts is not None:
                logger.warning("counts_serving_stale", extra={"table": table, "error": str(e)})
                return dict(cache.counts)
            raise

        cache.counts = counts
        cache.fetched_at = now
        return dict(counts)

    async def view_counts(self) -> CountMap:
        """Tool id to view count.

        Raises:
            CountsStoreError: If the store fails and nothing is cached
        """
        return self._cached_read(self._views, "tool_view_counts", "view_count")

    async def vote_counts(self) -> CountMap:
        """Tool id to vote count.

        Raises:
            CountsStoreError: If the store fails and nothing is cached
        """
        return self._cached_read(self._votes, "tool_vote_counts", "vote_count")

    async def snapshot(self) -> tuple[CountMap, CountMap]:
        """View and vote counts for display, empty where unavailable.

        A store failure is logged and yields an empty mapping.
        """
        try:
            views = await self.view_counts()
        except CountsStoreError as e:
            logger.warning("view_counts_unavailable", extra={"error": str(e)})
            views = {}
        try:
            votes = await self.vote_counts()
        except CountsStoreError as e:
            logger.warning("vote_counts_unavailable", extra={"error": str(e)})
            votes = {}
        return views, votes

    async def record_view(self, tool_id: str) -> None:
        """Increment a tool's view counter by one."""
        with self._connect() as conn:
            conn.execute(
                "INSERT INTO tool_view_counts (tool_id, view_count) VALUES (?, 1) "
                "ON CONFLICT(tool_id) DO UPDATE SET view_count = view_count + 1",
                (tool_id,),
            )
        if self._views.counts is not None:
            self._views.counts[tool_id] = self._views.counts.get(tool_id, 0) + 1

    async def record_vote(self, tool_id: str, voter_id: str) -> bool:
        """Cast a vote for a tool.

        Returns:
            True for a new vote, False if this voter already voted
        """
        with self._connect() as conn:
            cursor = conn.execute(
                "INSERT OR IGNORE INTO tool_votes (tool_id, voter_id, created_at) "
                "VALUES (?, ?, ?)",
                (tool_id, voter_id, datetime.now(UTC).isoformat()),
            )
            is_new = cursor.rowcount == 1
            if is_new:
                conn.execute(
                    "INSERT INTO tool_vote_counts (tool_id, vote_count) VALUES (?, 1) "
                    "ON CONFLICT(tool_id) DO UPDATE SET vote_count = vote_count + 1",
                    (tool_id,),
                )

        if is_new and self._votes.counts is not None:
            self._votes.counts[tool_id] = self._votes.counts.get(tool_id, 0) + 1
        return is_new


@lru_cache
def get_count_store() -> CountStore:
    """Get the process-wide CountStore (FastAPI dependency)."""
    settings = get_settings()
    return CountStore(db_path=settings.counts_db_path, cache_seconds=settings.counts_cache_seconds)
