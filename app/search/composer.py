"""Hybrid result composer.

Chooses between keyword filtering and relevance ranking from the settled
query alone, then applies category/type filters and ordering. The mode
is always derived, never stored.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field

from app.catalog.models import ToolRecord
from app.catalog.records import category_config, type_config
from app.search.filters import filter_by_category, filter_by_type, filter_tools
from app.search.models import FilterState, RelevanceResults, SearchMode, ToolCard
from app.search.sorting import sort_by_confidence, sort_tools

DEFAULT_AI_THRESHOLD = 15


def is_ai_mode(settled_query: str, threshold: int = DEFAULT_AI_THRESHOLD) -> bool:
    """True when a settled query is long enough to be a natural-language question.

    Examples:
        >>> is_ai_mode("autopilot")
        False
        >>> is_ai_mode("how do I reset autopilot devices remotely")
        True
    """
    return bool(settled_query.strip()) and len(settled_query) >= threshold


@dataclass
class ComposedResults:
    """Ordered results plus the relevance annotations that produced them."""

    tools: list[ToolRecord]
    mode: SearchMode = "keyword"
    confidence: dict[str, float] = field(default_factory=dict)
    explanations: dict[str, str] = field(default_factory=dict)

    def cards(
        self,
        view_counts: Mapping[str, int] | None = None,
        vote_counts: Mapping[str, int] | None = None,
    ) -> list[ToolCard]:
        """Attach labels, counters and relevance annotations to each tool."""
        views = view_counts or {}
        votes = vote_counts or {}
        return [
            ToolCard(
                tool=tool,
                category_label=category_config(tool.category).label,
                type_label=type_config(tool.type).label,
                views=views.get(tool.id, 0),
                votes=votes.get(tool.id, 0),
                confidence=self.confidence.get(tool.id),
                relevance=self.explanations.get(tool.id),
            )
            for tool in self.tools
        ]


def compose_ai_results(
    tools: list[ToolRecord],
    ai_results: RelevanceResults,
    category: str | None = None,
    tool_type: str | None = None,
    view_counts: Mapping[str, int] | None = None,
) -> ComposedResults:
    """Resolve relevance matches to records and order them.

    Matches naming unknown tool ids are dropped by the intersection with
    ``tools``. Category/type filters narrow the matched set without
    another relevance call.
    """
    confidence = {m.tool_id: m.confidence for m in ai_results.results}
    explanations = {m.tool_id: m.relevance for m in ai_results.results}

    matched = [t for t in tools if t.id in confidence]
    matched = filter_by_type(filter_by_category(matched, category), tool_type)

    return ComposedResults(
        tools=sort_by_confidence(matched, confidence, view_counts),
        mode="ai",
        confidence={t.id: confidence[t.id] for t in matched},
        explanations={t.id: explanations[t.id] for t in matched},
    )


def compose_results(
    tools: list[ToolRecord],
    state: FilterState,
    ai_results: RelevanceResults | None = None,
    view_counts: Mapping[str, int] | None = None,
    vote_counts: Mapping[str, int] | None = None,
    threshold: int = DEFAULT_AI_THRESHOLD,
) -> ComposedResults:
    """Compose the result list for a filter state.

    Args:
        tools: Full record set
        state: Filter state whose ``query`` is the settled query
        ai_results: Relevance matches for ``state.query``; None while they
            are not available yet
        view_counts: Tool id to view count
        vote_counts: Tool id to vote count
        threshold: Settled-query length that selects AI mode

    Returns:
        Filtered, ordered results. In AI mode with results present the
        order is confidence-first and ``state.sort`` is ignored.
    """
    if is_ai_mode(state.query, threshold) and ai_results is not None:
        return compose_ai_results(
            tools, ai_results, state.category, state.tool_type, view_counts
        )

    filtered = filter_tools(tools, state.query, state.category, state.tool_type)
    return ComposedResults(
        tools=sort_tools(filtered, state.sort, view_counts, vote_counts),
        mode="keyword",
    )
