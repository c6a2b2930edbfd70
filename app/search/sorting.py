"""Sort engine for composed result lists.

Every ordering uses Python's stable sort, so records with equal keys keep
their input order. Counts missing from a mapping are treated as zero.
"""

import unicodedata
from collections.abc import Mapping
from datetime import UTC, datetime

from app.catalog.models import ToolRecord
from app.search.models import SortOption


def collation_key(name: str) -> str:
    """Accent- and case-insensitive key for alphabetical ordering.

    Examples:
        >>> collation_key("Élan") == collation_key("elan")
        True
    """
    decomposed = unicodedata.normalize("NFKD", name)
    stripped = "".join(c for c in decomposed if not unicodedata.combining(c))
    return stripped.casefold()


def parse_timestamp(value: str) -> float:
    """Convert an ISO date/datetime string to a POSIX timestamp.

    Naive values are taken as UTC. Unparsable or empty values return
    negative infinity so they sort after every real date.
    """
    try:
        parsed = datetime.fromisoformat(value.strip())
    except (ValueError, AttributeError):
        return float("-inf")
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed.timestamp()


def sort_tools(
    tools: list[ToolRecord],
    sort: SortOption,
    view_counts: Mapping[str, int] | None = None,
    vote_counts: Mapping[str, int] | None = None,
) -> list[ToolRecord]:
    """Order tools by one of the four sort options.

    Args:
        tools: Filtered records
        sort: 'alphabetical', 'popular', 'most-voted' or 'newest'
        view_counts: Tool id to view count
        vote_counts: Tool id to vote count

    Returns:
        New sorted list; the input is not modified
    """
    views = view_counts or {}
    votes = vote_counts or {}

    if sort == "popular":
        return sorted(tools, key=lambda t: views.get(t.id, 0), reverse=True)
    if sort == "most-voted":
        return sorted(tools, key=lambda t: votes.get(t.id, 0), reverse=True)
    if sort == "newest":
        return sorted(tools, key=lambda t: parse_timestamp(t.date_added), reverse=True)
    return sorted(tools, key=lambda t: collation_key(t.name))


def sort_by_confidence(
    tools: list[ToolRecord],
    confidence: Mapping[str, float],
    view_counts: Mapping[str, int] | None = None,
) -> list[ToolRecord]:
    """Order AI-mode results by confidence, then views, both descending."""
    views = view_counts or {}
    return sorted(
        tools,
        key=lambda t: (confidence.get(t.id, 0), views.get(t.id, 0)),
        reverse=True,
    )
