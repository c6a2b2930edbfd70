"""Adapter between FilterState and shareable URL query parameters.

Parameters: ``q`` (query), ``category``, ``type``, ``sort``, ``view``.
Defaults are left out of the URL, and values that fail validation are
read back as defaults, so any URL yields a usable state.
"""

from collections.abc import Mapping
from typing import Any
from urllib.parse import parse_qsl, urlencode

from app.catalog.records import is_known_category, is_known_type
from app.search.models import DEFAULT_SORT, DEFAULT_VIEW, SORT_OPTIONS, VIEW_MODES, FilterState

PARAM_QUERY = "q"
PARAM_CATEGORY = "category"
PARAM_TYPE = "type"
PARAM_SORT = "sort"
PARAM_VIEW = "view"


def from_query_params(params: Mapping[str, str]) -> FilterState:
    """Read a FilterState from URL parameters.

    Examples:
        >>> from_query_params({"category": "reporting", "sort": "bogus"}).sort
        'alphabetical'
    """
    category = params.get(PARAM_CATEGORY)
    tool_type = params.get(PARAM_TYPE)
    sort = params.get(PARAM_SORT)
    view = params.get(PARAM_VIEW)

    return FilterState(
        category=category if is_known_category(category) else None,
        tool_type=tool_type if is_known_type(tool_type) else None,
        sort=sort if sort in SORT_OPTIONS else DEFAULT_SORT,
        view=view if view in VIEW_MODES else DEFAULT_VIEW,
        query=params.get(PARAM_QUERY, ""),
    )


def from_query_string(query_string: str) -> FilterState:
    """Read a FilterState from a raw query string (leading '?' allowed)."""
    return from_query_params(dict(parse_qsl(query_string.lstrip("?"))))


def to_query_params(state: FilterState) -> dict[str, str]:
    """Write a FilterState as URL parameters, omitting defaults."""
    params: dict[str, str] = {}
    if state.query:
        params[PARAM_QUERY] = state.query
    if state.category:
        params[PARAM_CATEGORY] = state.category
    if state.tool_type:
        params[PARAM_TYPE] = state.tool_type
    if state.sort != DEFAULT_SORT:
        params[PARAM_SORT] = state.sort
    if state.view != DEFAULT_VIEW:
        params[PARAM_VIEW] = state.view
    return params


def to_query_string(state: FilterState) -> str:
    """Canonical query string for a state (no leading '?')."""
    return urlencode(to_query_params(state))


def build_url(path: str, state: FilterState) -> str:
    """Shareable URL for ``state`` under ``path``."""
    query = to_query_string(state)
    return f"{path}?{query}" if query else path


def update_state(state: FilterState, **changes: Any) -> FilterState:
    """Return ``state`` with some dimensions changed.

    Empty strings clear a dimension, as removing the URL parameter would.
    """
    for key in ("category", "tool_type"):
        if key in changes and not changes[key]:
            changes[key] = None
    if "sort" in changes and changes["sort"] not in SORT_OPTIONS:
        changes["sort"] = DEFAULT_SORT
    if "view" in changes and changes["view"] not in VIEW_MODES:
        changes["view"] = DEFAULT_VIEW
    return state.model_copy(update=changes)
