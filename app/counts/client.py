"""Client-side view and vote state.

``CountsClient`` talks to the counter endpoints and degrades every
failure to an empty mapping or a False result. ``ViewTracker`` and
``VoteTracker`` hold the local snapshot a browse view renders from,
including optimistic increments that are reconciled on the next refresh.
"""

import asyncio
import random
import uuid
from collections.abc import Awaitable, Callable

import httpx
from pydantic import NonNegativeInt, TypeAdapter, ValidationError

from app.counts.models import CountMap, VoteRecorded
from app.dependencies import logger

_COUNTS_ADAPTER = TypeAdapter(dict[str, NonNegativeInt])

BASE_POLL_INTERVAL = 60.0
POLL_JITTER = 15.0


def jittered_poll_interval() -> float:
    """Seconds until the next counts refresh, spread to avoid bursts."""
    return BASE_POLL_INTERVAL + random.uniform(-POLL_JITTER, POLL_JITTER)


async def poll_counts(
    refresh: Callable[[], Awaitable[CountMap]],
    stop: asyncio.Event,
    interval: Callable[[], float] = jittered_poll_interval,
) -> None:
    """Call ``refresh`` now and then once per interval until ``stop`` is set."""
    while not stop.is_set():
        await refresh()
        try:
            await asyncio.wait_for(stop.wait(), timeout=interval())
        except TimeoutError:
            continue


class CountsClient:
    """HTTP client for the view and vote endpoints.

    Args:
        base_url: Service root, e.g. 'https://example.com'
        http_client: Optional preconfigured client
    """

    def __init__(self, base_url: str = "", http_client: httpx.AsyncClient | None = None) -> None:
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(base_url=base_url, timeout=10.0)

    async def _fetch_counts(self, path: str) -> CountMap:
        try:
            response = await self._client.get(path)
            response.raise_for_status()
            return _COUNTS_ADAPTER.validate_json(response.content)
        except (httpx.HTTPError, ValidationError) as e:
            logger.warning("counts_fetch_failed", extra={"path": path, "error": str(e)})
            return {}

    async def fetch_views(self) -> CountMap:
        """Current view counts, or {} on failure."""
        return await self._fetch_counts("/api/views")

    async def fetch_votes(self) -> CountMap:
        """Current vote counts, or {} on failure."""
        return await self._fetch_counts("/api/votes")

    async def post_view(self, tool_id: str) -> bool:
        """Record a view. Returns False on failure."""
        try:
            response = await self._client.post("/api/views", json={"toolId": tool_id})
            response.raise_for_status()
            return True
        except httpx.HTTPError as e:
            logger.warning("view_post_failed", extra={"tool_id": tool_id, "error": str(e)})
            return False

    async def post_vote(self, tool_id: str, voter_id: str) -> VoteRecorded | None:
        """Cast a vote. Returns None on failure."""
        try:
            response = await self._client.post(
                "/api/votes", json={"toolId": tool_id, "voterId": voter_id}
            )
            response.raise_for_status()
            return VoteRecorded.model_validate_json(response.content)
        except (httpx.HTTPError, ValidationError) as e:
            logger.warning("vote_post_failed", extra={"tool_id": tool_id, "error": str(e)})
            return None

    async def aclose(self) -> None:
        """Close the HTTP client if this instance created it."""
        if self._owns_client:
            await self._client.aclose()


class ViewTracker:
    """Local view counts plus once-per-session view recording."""

    def __init__(self, client: CountsClient) -> None:
        self.client = client
        self.counts: CountMap = {}
        self._viewed: set[str] = set()

    async def refresh(self) -> CountMap:
        """Replace the local snapshot with the server's counts.

        A failed fetch keeps the previous snapshot.
        """
        counts = await self.client.fetch_views()
        if counts:
            self.counts = counts
        return self.counts

    async def poll(
        self, stop: asyncio.Event, interval: Callable[[], float] = jittered_poll_interval
    ) -> None:
        """Keep the snapshot fresh until ``stop`` is set."""
        await poll_counts(self.refresh, stop, interval)

    async def record_view(self, tool_id: str) -> bool:
        """Count a view of ``tool_id`` once per session.

        The local count is incremented before the call and kept even if
        the call fails.

        Returns:
            False if this session already recorded the tool
        """
        if tool_id in self._viewed:
            return False
        self._viewed.add(tool_id)
        self.counts[tool_id] = self.counts.get(tool_id, 0) + 1
        await self.client.post_view(tool_id)
        return True


class VoteTracker:
    """Local vote counts and the has-voted set for one client.

    Attributes:
        voter_id: Stable UUID identifying this client
        counts: Tool id to vote count (local snapshot)
    """

    def __init__(
        self,
        client: CountsClient,
        voter_id: str | None = None,
        voted: set[str] | None = None,
    ) -> None:
        self.client = client
        self.voter_id = voter_id or str(uuid.uuid4())
        self.counts: CountMap = {}
        self._voted: set[str] = set(voted or ())
        self._pending: set[str] = set()

    @property
    def voted_tools(self) -> frozenset[str]:
        """Tools this client has voted for."""
        return frozenset(self._voted)

    def has_voted(self, tool_id: str) -> bool:
        return tool_id in self._voted

    def is_pending(self, tool_id: str) -> bool:
        return tool_id in self._pending

    async def refresh(self) -> CountMap:
        """Replace the local snapshot with the server's counts.

        A failed fetch keeps the previous snapshot.
        """
        counts = await self.client.fetch_votes()
        if counts:
            self.counts = counts
        return self.counts

    async def poll(
        self, stop: asyncio.Event, interval: Callable[[], float] = jittered_poll_interval
    ) -> None:
        """Keep the snapshot fresh until ``stop`` is set."""
        await poll_counts(self.refresh, stop, interval)

    async def vote(self, tool_id: str) -> bool:
        """Upvote a tool at most once.

        The vote is applied optimistically and rolled back if the call
        fails.

        Returns:
            True if the vote was accepted, False if skipped or failed
        """
        if tool_id in self._voted or tool_id in self._pending:
            return False

        self._pending.add(tool_id)
        self._voted.add(tool_id)
        self.counts[tool_id] = self.counts.get(tool_id, 0) + 1

        try:
            result = await self.client.post_vote(tool_id, self.voter_id)
            if result is None:
                self._voted.discard(tool_id)
                self.counts[tool_id] = max(self.counts.get(tool_id, 1) - 1, 0)
                return False
            return True
        finally:
            self._pending.discard(tool_id)
