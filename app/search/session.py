"""Headless controller for an interactive browse view.

``SearchSession`` wires the debouncer, the relevance client, the composer
and the reveal/paging helpers together the way a search page uses them:

    session = SearchSession(tools, relevance=RelevanceClient(url))
    session.set_query("how do I reset autopilot devices remotely")
    ...                      # 300 ms later the query settles
    await session.wait_for_results()
    session.cards()

Only the most recent relevance request is ever applied. A new settled
query, clearing the input and ``close`` all cancel the request in flight,
and a response that arrives for a superseded token is dropped.
"""

import asyncio
from collections.abc import Mapping

from app.analytics.tracker import AnalyticsTracker
from app.catalog.models import ToolRecord
from app.config import get_settings
from app.dependencies import logger
from app.search.composer import ComposedResults, compose_results, is_ai_mode
from app.search.debounce import QueryDebouncer
from app.search.models import FilterState, PageInfo, RelevanceResults, SearchMode, ToolCard
from app.search.pagination import IncrementalReveal, PageCursor
from app.search.relevance import RelevanceClient
from app.search.url_state import update_state


class SearchSession:
    """Interactive search state for one browse view.

    Attributes:
        raw_query: Search text exactly as typed
        state: Filter state; ``state.query`` is the settled query
        ai_results: Relevance matches for the settled query, None while
            not in AI mode or not yet answered
        is_ai_searching: True while a relevance request is in flight
        view_counts: Tool id to view count
        vote_counts: Tool id to vote count
    """

    def __init__(
        self,
        tools: list[ToolRecord],
        relevance: RelevanceClient | None = None,
        tracker: AnalyticsTracker | None = None,
        state: FilterState | None = None,
        debounce_seconds: float | None = None,
        threshold: int | None = None,
    ) -> None:
        settings = get_settings()
        self.tools = tools
        self.relevance = relevance
        self.tracker = tracker
        self.state = state or FilterState()
        self.raw_query = self.state.query
        self.threshold = threshold if threshold is not None else settings.ai_search_threshold
        self.ai_results: RelevanceResults | None = None
        self.is_ai_searching = False
        self.view_counts: dict[str, int] = {}
        self.vote_counts: dict[str, int] = {}

        delay = debounce_seconds if debounce_seconds is not None else settings.debounce_ms / 1000
        self.debouncer = QueryDebouncer(self._on_settle, delay=delay)
        self.reveal = IncrementalReveal(initial=settings.initial_load, increment=settings.load_more_count)
        self.cursor = PageCursor(page_size=settings.page_size)

        self._token = 0
        self._task: asyncio.Task[None] | None = None

    # =========================================================================
    # Derived state
    # =========================================================================

    @property
    def is_ai_mode(self) -> bool:
        """True when the settled query selects relevance ranking."""
        return is_ai_mode(self.state.query, self.threshold)

    @property
    def mode(self) -> SearchMode:
        return "ai" if self.is_ai_mode else "keyword"

    @property
    def is_filtering(self) -> bool:
        """True while typed input has not settled or an answer is pending."""
        return self.raw_query != self.state.query or self.is_ai_searching

    def _signature(self) -> tuple[object, ...]:
        s = self.state
        return (s.query, s.category, s.tool_type, s.sort, self.mode, self.ai_results is None)

    def results(self) -> ComposedResults:
        """Compose the full filtered and ordered result list."""
        composed = compose_results(
            self.tools,
            self.state,
            ai_results=self.ai_results,
            view_counts=self.view_counts,
            vote_counts=self.vote_counts,
            threshold=self.threshold,
        )
        signature = self._signature()
        self.reveal.sync(signature)
        self.cursor.sync(signature)
        return composed

    def cards(self) -> list[ToolCard]:
        """Cards revealed so far in incremental mode."""
        composed = self.results()
        return self.reveal.visible(composed.cards(self.view_counts, self.vote_counts))

    def page(self) -> tuple[list[ToolCard], PageInfo]:
        """Cards and metadata for the current page in paged mode."""
        composed = self.results()
        return self.cursor.slice(composed.cards(self.view_counts, self.vote_counts))

    def has_more(self) -> bool:
        return self.reveal.has_more(len(self.results().tools))

    def load_more(self) -> int:
        """Reveal the next batch of results."""
        return self.reveal.load_more(len(self.results().tools))

    def go_to_page(self, page: int) -> int:
        """Move the paged view, clamped to the available pages."""
        return self.cursor.go_to(page, len(self.results().tools))

    # =========================================================================
    # Inputs
    # =========================================================================

    def set_query(self, raw: str) -> None:
        """Record a keystroke; the query settles after the debounce delay."""
        self.raw_query = raw
        self.debouncer.push(raw)

    def set_category(self, category: str | None) -> None:
        """Change the category filter without re-querying relevance."""
        self.state = update_state(self.state, category=category)
        if category and self.tracker is not None:
            self.tracker.track_category_filter(category)

    def set_type(self, tool_type: str | None) -> None:
        """Change the type filter without re-querying relevance."""
        self.state = update_state(self.state, tool_type=tool_type)

    def set_sort(self, sort: str) -> None:
        self.state = update_state(self.state, sort=sort)

    def set_view(self, view: str) -> None:
        self.state = update_state(self.state, view=view)

    def set_counts(
        self,
        view_counts: Mapping[str, int] | None = None,
        vote_counts: Mapping[str, int] | None = None,
    ) -> None:
        """Merge a fresh counts snapshot; missing ids count as zero."""
        if view_counts is not None:
            self.view_counts = dict(view_counts)
        if vote_counts is not None:
            self.vote_counts = dict(vote_counts)

    def clear_all(self) -> None:
        """Reset every filter dimension and cancel any relevance request."""
        self.debouncer.cancel()
        self._cancel_request()
        self.raw_query = ""
        self.debouncer.settled = ""
        self.state = self.state.cleared()

    # =========================================================================
    # Relevance requests
    # =========================================================================

    def _on_settle(self, query: str) -> None:
        if query == self.state.query and (self.ai_results is not None or self.is_ai_searching):
            return
        self.state = update_state(self.state, query=query)
        self._cancel_request()
        if not self.is_ai_mode or self.relevance is None:
            if query.strip() and self.tracker is not None:
                self.tracker.track_search(query, "keyword")
            return

        self.is_ai_searching = True
        token = self._token
        self._task = asyncio.get_running_loop().create_task(
            self._run_request(self.relevance, query, token)
        )

    def _cancel_request(self) -> None:
        """Invalidate the current token and stop any request in flight."""
        self._token += 1
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = None
        self.ai_results = None
        self.is_ai_searching = False

    async def _run_request(self, client: RelevanceClient, query: str, token: int) -> None:
        try:
            results = await client.request(query)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error(
                "relevance_request_error",
                extra={"query": query, "error": str(e), "error_type": type(e).__name__},
                exc_info=True,
            )
            results = None
        if token != self._token:
            logger.debug("relevance_result_discarded", extra={"query": query})
            return

        self.is_ai_searching = False
        if results is None:
            self.ai_results = RelevanceResults()
            return

        self.ai_results = results
        if self.tracker is not None:
            self.tracker.track_search(query, "ai")

    async def wait_for_results(self) -> None:
        """Flush the debouncer and wait for the current request, if any."""
        self.debouncer.flush()
        await _settle(self._task)

    async def close(self) -> None:
        """Tear the session down, cancelling pending work."""
        self.debouncer.cancel()
        task = self._task
        self._cancel_request()
        await _settle(task)


async def _settle(task: asyncio.Task[None] | None) -> None:
    """Wait for ``task`` to finish, treating its cancellation as finished."""
    if task is None:
        return
    try:
        await task
    except asyncio.CancelledError:
        if not task.cancelled():
            raise
