"""AI relevance scoring: the service side and the client side.

``score_query`` runs the relevance agent over the catalog and is what the
``POST /api/search`` route serves. ``RelevanceClient`` is the consumer of
that route: it never raises for transport or payload problems and returns
an empty result instead, so callers only ever see "some matches" or "no
matches".
"""

import json

import httpx
from pydantic import ValidationError

from app.catalog.models import ToolRecord
from app.catalog.records import author_names
from app.config import get_settings
from app.dependencies import logger
from app.search.agent import relevance_agent
from app.search.models import RelevanceMatch, RelevanceResults


class InvalidQueryError(ValueError):
    """Raised when a relevance query is too short to score."""

    pass


# =============================================================================
# Service Side
# =============================================================================


def catalog_entry(tool: ToolRecord) -> dict[str, object]:
    """Subset of a record sent to the model for matching."""
    return {
        "id": tool.id,
        "name": tool.name,
        "description": tool.description,
        "keywords": tool.keywords,
        "category": tool.category,
        "type": tool.type,
        "authors": author_names(tool),
    }


def build_prompt(query: str, tools: list[ToolRecord]) -> str:
    """Build the user prompt: the problem statement plus the catalog."""
    catalog = json.dumps([catalog_entry(t) for t in tools], indent=2)
    return (
        f'User\'s problem: "{query}"\n\n'
        f"Available tools:\n{catalog}\n\n"
        "Identify which tools can help solve this problem and explain why."
    )


def select_matches(
    matches: list[RelevanceMatch], min_confidence: float, max_results: int
) -> list[RelevanceMatch]:
    """Apply the confidence floor and result cap to model output.

    Duplicated tool ids keep their first occurrence.

    Returns:
        At most ``max_results`` matches, highest confidence first
    """
    seen: set[str] = set()
    selected: list[RelevanceMatch] = []
    for match in sorted(matches, key=lambda m: m.confidence, reverse=True):
        if match.confidence < min_confidence or match.tool_id in seen:
            continue
        seen.add(match.tool_id)
        selected.append(match)
    return selected[:max_results]


async def score_query(query: str, tools: list[ToolRecord], trace_id: str = "") -> RelevanceResults:
    """Ask the relevance agent which tools answer ``query``.

    Args:
        query: Natural-language problem description
        tools: Catalog to choose from
        trace_id: Request id for logging

    Returns:
        Selected matches

    Raises:
        InvalidQueryError: If the trimmed query is shorter than the minimum
    """
    settings = get_settings()
    query = query.strip()
    if len(query) < settings.ai_min_query_length:
        raise InvalidQueryError(
            f"Query must be at least {settings.ai_min_query_length} characters"
        )

    logger.info(
        "relevance_scoring_started",
        extra={"query": query, "catalog_size": len(tools), "trace_id": trace_id},
    )

    result = await relevance_agent.run(build_prompt(query, tools))
    matches = select_matches(
        result.output.results, settings.ai_min_confidence, settings.ai_max_results
    )

    logger.info(
        "relevance_scoring_completed",
        extra={"query": query, "result_count": len(matches), "trace_id": trace_id},
    )
    return RelevanceResults(results=matches)


# =============================================================================
# Client Side
# =============================================================================


class RelevanceClient:
    """HTTP client for the relevance service.

    Failures of any kind (transport error, timeout, non-2xx status, body
    that does not validate) are logged. ``request`` reports them as None
    and ``fetch`` as an empty result.
    ``asyncio.CancelledError`` is not caught, so a superseded request
    simply stops.
    """

    def __init__(
        self,
        endpoint: str,
        timeout: float | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self.endpoint = endpoint
        self.timeout = timeout if timeout is not None else get_settings().ai_timeout_seconds
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(timeout=self.timeout)

    async def request(self, query: str) -> RelevanceResults | None:
        """Score ``query`` remotely.

        Returns:
            The service's matches, or None if the call failed
        """
        try:
            response = await self._client.post(
                self.endpoint, json={"query": query}, timeout=self.timeout
            )
            response.raise_for_status()
            return RelevanceResults.model_validate_json(response.content)
        except httpx.HTTPError as e:
            logger.warning(
                "relevance_request_failed",
                extra={"query": query, "error": str(e), "error_type": type(e).__name__},
            )
        except ValidationError as e:
            logger.warning(
                "relevance_response_invalid",
                extra={"query": query, "error": str(e)},
            )
        return None

    async def fetch(self, query: str) -> RelevanceResults:
        """Like ``request``, with failures reported as an empty result."""
        results = await self.request(query)
        return results if results is not None else RelevanceResults()

    async def aclose(self) -> None:
        """Close the HTTP client if this instance created it."""
        if self._owns_client:
            await self._client.aclose()
