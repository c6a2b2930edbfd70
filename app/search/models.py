"""Pydantic models for the search pipeline.

This module defines the filter state shared by the browse view and the
URL adapter, the wire models of the relevance service, and the
result/paging structures returned by the browse endpoint.
"""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from app.catalog.models import ToolRecord

SortOption = Literal["alphabetical", "popular", "most-voted", "newest"]
ViewMode = Literal["grid", "list"]
SearchMode = Literal["keyword", "ai"]

SORT_OPTIONS: tuple[str, ...] = ("alphabetical", "popular", "most-voted", "newest")
VIEW_MODES: tuple[str, ...] = ("grid", "list")
DEFAULT_SORT: SortOption = "alphabetical"
DEFAULT_VIEW: ViewMode = "grid"


class FilterState(BaseModel):
    """The complete, serializable state of the browse view.

    Immutable: every change produces a new state via ``model_copy``.

    Attributes:
        category: Selected category (None = all)
        tool_type: Selected tool type (None = all)
        sort: Active sort order
        view: Grid or list presentation
        query: Search text as typed
    """

    model_config = ConfigDict(frozen=True)

    category: str | None = Field(default=None, description="Category filter")
    tool_type: str | None = Field(default=None, description="Tool type filter")
    sort: SortOption = Field(default=DEFAULT_SORT, description="Sort order")
    view: ViewMode = Field(default=DEFAULT_VIEW, description="Presentation mode")
    query: str = Field(default="", description="Search text")

    @property
    def has_active_filters(self) -> bool:
        """True if a category, type or query narrows the results."""
        return self.active_filter_count > 0

    @property
    def active_filter_count(self) -> int:
        """Number of narrowing filters; sort and view do not count."""
        return sum([bool(self.category), bool(self.tool_type), bool(self.query)])

    def cleared(self) -> "FilterState":
        """Reset category, type, sort and query in one step; keep the view mode."""
        return FilterState(view=self.view)


class RelevanceModel(BaseModel):
    """Base for relevance wire models (camelCase on the wire)."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class RelevanceMatch(RelevanceModel):
    """One tool the relevance service judged helpful for a query.

    Attributes:
        tool_id: Id of the referenced tool record
        relevance: Short explanation of how the tool helps
        confidence: Score from 0 to 100
    """

    tool_id: str = Field(..., description="Referenced tool id")
    relevance: str = Field(default="", description="Why the tool helps")
    confidence: float = Field(..., ge=0, le=100, description="Relevance confidence")


class RelevanceResults(RelevanceModel):
    """Response body of the relevance service."""

    results: list[RelevanceMatch] = Field(default_factory=list)


class RelevanceRequest(BaseModel):
    """Request body of the relevance service."""

    query: str = ""


class RelevanceFailure(BaseModel):
    """Body returned when relevance scoring fails."""

    error: str
    results: list[RelevanceMatch] = Field(default_factory=list)


class ToolCard(BaseModel):
    """A tool as displayed in browse results.

    Attributes:
        tool: The underlying record
        category_label: Display label (generic fallback for unknown values)
        type_label: Display label (generic fallback for unknown values)
        views: Merged view count
        votes: Merged vote count
        confidence: Relevance confidence in AI mode, else None
        relevance: Relevance explanation in AI mode, else None
    """

    tool: ToolRecord
    category_label: str = "Other"
    type_label: str = "Other"
    views: int = Field(default=0, ge=0)
    votes: int = Field(default=0, ge=0)
    confidence: float | None = None
    relevance: str | None = None


class PageInfo(BaseModel):
    """Position of one page within a paged result list.

    ``start`` is inclusive and ``end`` exclusive, as in list slicing.
    """

    page: int = Field(default=1, ge=1)
    page_size: int = Field(default=9, ge=1)
    total_items: int = Field(default=0, ge=0)
    total_pages: int = Field(default=0, ge=0)
    start: int = Field(default=0, ge=0)
    end: int = Field(default=0, ge=0)
    has_prev: bool = False
    has_next: bool = False
    page_numbers: list[int | str] = Field(default_factory=list)


class BrowseResponse(BaseModel):
    """One page of the filtered and sorted catalog.

    Attributes:
        tools: Cards on the requested page
        total: Number of results before paging
        mode: Whether keyword filtering or relevance ranking produced them
        state: Canonical filter state the page was built from
        query_string: Shareable URL query for ``state``
        page: Paging metadata
    """

    tools: list[ToolCard] = Field(default_factory=list)
    total: int = Field(default=0, ge=0)
    mode: SearchMode = "keyword"
    state: FilterState = Field(default_factory=FilterState)
    query_string: str = ""
    page: PageInfo = Field(default_factory=PageInfo)
