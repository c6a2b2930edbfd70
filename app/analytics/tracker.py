"""Fire-and-forget analytics sink.

Events are posted to a Plausible-compatible events endpoint on background
tasks. Emission never blocks the caller and never raises: an unreachable
sink only produces a warning in the log. With no ``analytics_domain``
configured, tracking is disabled.
"""

import asyncio

import httpx

from app.analytics.models import AnalyticsEvent, EventProps
from app.config import get_settings
from app.dependencies import logger

EVENT_SEARCH = "Search"
EVENT_TOOL_CLICK = "Tool Click"
EVENT_CATEGORY_FILTER = "Category Filter"
EVENT_OUTBOUND_LINK = "Outbound Link"


class AnalyticsTracker:
    """Send analytics events without waiting for them.

    Search queries are de-duplicated: each distinct query string is
    reported once per tracker, however often it is re-rendered.
    """

    def __init__(
        self,
        domain: str | None = None,
        endpoint: str | None = None,
        page_url: str = "/tools",
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        settings = get_settings()
        self.domain = domain if domain is not None else settings.analytics_domain
        self.endpoint = endpoint or settings.analytics_endpoint
        self.page_url = page_url
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(timeout=5.0)
        self._tracked_queries: set[str] = set()
        self._tasks: set[asyncio.Task[None]] = set()

    @property
    def enabled(self) -> bool:
        """True if a site domain is configured."""
        return bool(self.domain)

    def track(self, name: str, props: EventProps | None = None) -> bool:
        """Schedule an event for delivery.

        Returns:
            True if the event was scheduled, False if it was dropped
        """
        if not self.enabled:
            logger.debug("analytics_disabled", extra={"event": name})
            return False

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.warning("analytics_no_event_loop", extra={"event": name})
            return False

        event = AnalyticsEvent(
            name=name,
            url=f"https://{self.domain}{self.page_url}",
            domain=self.domain or "",
            props=props or {},
        )
        task = loop.create_task(self._send(event))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return True

    def track_search(self, query: str, mode: str = "keyword") -> bool:
        """Report a settled search query once per distinct string."""
        if not query or query in self._tracked_queries:
            return False
        self._tracked_queries.add(query)
        return self.track(EVENT_SEARCH, {"query": query, "mode": mode})

    def track_tool_click(self, tool_name: str, category: str) -> bool:
        """Report a click through to a tool."""
        return self.track(EVENT_TOOL_CLICK, {"tool": tool_name, "category": category})

    def track_category_filter(self, category: str) -> bool:
        """Report a category filter selection."""
        return self.track(EVENT_CATEGORY_FILTER, {"category": category})

    def track_outbound_link(self, url: str) -> bool:
        """Report a click on an external link."""
        return self.track(EVENT_OUTBOUND_LINK, {"url": url})

    async def _send(self, event: AnalyticsEvent) -> None:
        try:
            response = await self._client.post(
                self.endpoint,
                json=event.model_dump(),
                headers={"User-Agent": "tool-directory/0.1.0"},
            )
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.warning(
                "analytics_event_failed",
                extra={"event": event.name, "error": str(e)},
            )

    async def drain(self) -> None:
        """Wait for every scheduled event to finish sending."""
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)

    async def aclose(self) -> None:
        """Finish pending sends and close the HTTP client if owned."""
        await self.drain()
        if self._owns_client:
            await self._client.aclose()
