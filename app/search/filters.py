"""Keyword filtering over tool records.

All constraints combine with AND. Text matching is a case-insensitive
substring test over name, description and author names. Output order is
input order; ranking happens in ``app.search.sorting``.
"""

from app.catalog.models import ToolRecord
from app.catalog.records import author_names


def searchable_text(tool: ToolRecord) -> str:
    """Lower-cased text a keyword query is matched against.

    Examples:
        >>> searchable_text(ToolRecord(id="a", name="Reset", description="Wipe", author="Jo"))
        'reset wipe jo'
    """
    return " ".join([tool.name, tool.description, " ".join(author_names(tool))]).lower()


def search_tools(tools: list[ToolRecord], query: str) -> list[ToolRecord]:
    """Keep tools whose searchable text contains the query.

    An empty or whitespace-only query matches everything.
    """
    normalized = query.strip().lower()
    if not normalized:
        return list(tools)
    return [t for t in tools if normalized in searchable_text(t)]


def filter_by_category(tools: list[ToolRecord], category: str | None) -> list[ToolRecord]:
    """Keep tools in ``category``; None keeps everything."""
    if not category:
        return list(tools)
    return [t for t in tools if t.category == category]


def filter_by_type(tools: list[ToolRecord], tool_type: str | None) -> list[ToolRecord]:
    """Keep tools of ``tool_type``; None keeps everything."""
    if not tool_type:
        return list(tools)
    return [t for t in tools if t.type == tool_type]


def filter_tools(
    tools: list[ToolRecord],
    query: str = "",
    category: str | None = None,
    tool_type: str | None = None,
) -> list[ToolRecord]:
    """Apply query, category and type constraints together.

    Args:
        tools: Full record set
        query: Free-text query (empty = no text constraint)
        category: Exact category or None
        tool_type: Exact type or None

    Returns:
        Matching tools in input order (may be empty)
    """
    filtered = search_tools(tools, query)
    filtered = filter_by_category(filtered, category)
    return filter_by_type(filtered, tool_type)
