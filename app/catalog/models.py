"""Pydantic models for tool records.

Tool records are stored as one JSON object per file using camelCase keys
(``dateAdded``, ``repoStats``, ``worksWith``). Models here use snake_case
attributes with camelCase aliases so records round-trip unchanged.
"""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

CATEGORY_FALLBACK_COLOR = "#6b7280"

SecurityStatus = Literal["curated", "pending", "not_scanned", "verified", "warning"]


class RecordModel(BaseModel):
    """Base model accepting both camelCase and snake_case keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Author(RecordModel):
    """A contributor credited on a tool.

    Attributes:
        name: Display name
        picture: Optional avatar URL
        github_url: Optional GitHub profile
        linkedin_url: Optional LinkedIn profile
        x_url: Optional X profile
    """

    name: str = Field(..., description="Display name")
    picture: str | None = Field(default=None, description="Avatar URL")
    github_url: str | None = None
    linkedin_url: str | None = None
    x_url: str | None = None


class RepoStats(RecordModel):
    """Popularity signal pulled from the tool's source repository."""

    stars: int = Field(default=0, ge=0)
    forks: int = Field(default=0, ge=0)
    license: str | None = None
    last_updated: str | None = None
    archived: bool = False


class SecurityChecks(RecordModel):
    """Individual results of the automated source scan."""

    no_obfuscated_code: bool = False
    no_remote_execution: bool = False
    no_credential_theft: bool = False
    no_data_exfiltration: bool = False
    no_malicious_patterns: bool = False
    no_hardcoded_secrets: bool = False


class SecurityCheck(RecordModel):
    """Summary of the automated source scan for a tool."""

    passed: int = Field(default=0, ge=0)
    total: int = Field(default=0, ge=0)
    files_scanned: int = Field(default=0, ge=0)
    last_checked: str | None = None
    force_approved: bool = False
    ai_summary: str | None = None
    checks: SecurityChecks = Field(default_factory=SecurityChecks)


class ToolRecord(RecordModel):
    """A single directory entry describing one third-party tool.

    Category and type are kept as plain strings: values outside
    the configured category and type sets load fine and are rendered with the
    generic label.

    Legacy records carry a single ``author`` plus flat profile links;
    newer ones carry an ``authors`` array. The validator folds the legacy
    shape into ``authors`` so downstream code only reads the list.

    Attributes:
        id: Unique identifier, also used as URL segment
        name: Display name (primary search field)
        description: Free text (secondary search field)
        category: Category key (unknown values tolerated)
        type: Tool type key (unknown values tolerated)
        authors: Non-empty ordered list of contributors
        date_added: ISO date string used for recency sort
        keywords: Tags used for related-tool scoring and relevance prompts
        works_with: Integration tags used for related-tool scoring
    """

    id: str = Field(..., min_length=1, description="Unique tool identifier")
    name: str = Field(..., description="Display name")
    description: str = Field(default="", description="What the tool does")
    keywords: list[str] = Field(default_factory=list)
    works_with: list[str] = Field(default_factory=list)
    author: str = Field(default="", description="Legacy single author name")
    author_picture: str | None = None
    github_url: str | None = None
    linkedin_url: str | None = None
    x_url: str | None = None
    authors: list[Author] = Field(default_factory=list)
    repo_url: str | None = None
    download_url: str | None = None
    website_url: str | None = None
    category: str = Field(default="other")
    type: str = Field(default="other")
    date_added: str = Field(default="", description="ISO date the tool was listed")
    screenshots: list[str] = Field(default_factory=list)
    security_check: SecurityCheck | None = None
    repo_stats: RepoStats | None = None

    @model_validator(mode="after")
    def normalize_authors(self) -> "ToolRecord":
        """Synthesize the authors list from legacy fields when absent."""
        if not self.authors:
            self.authors = [legacy_author(self)]
        return self


def legacy_author(tool: ToolRecord) -> Author:
    """Build an Author from a record's legacy single-author fields."""
    return Author(
        name=tool.author.strip() or "Unknown",
        picture=tool.author_picture,
        github_url=tool.github_url,
        linkedin_url=tool.linkedin_url,
        x_url=tool.x_url,
    )


class LabelConfig(BaseModel):
    """Display label and accent colour for a category or type."""

    label: str
    color: str


class ToolDetail(BaseModel):
    """A tool record enriched with display data for a detail page."""

    tool: ToolRecord
    category_label: str
    type_label: str
    security_status: SecurityStatus
    screenshots: list[str] = Field(default_factory=list, description="Display-capped list")
    views: int = Field(default=0, ge=0)
    votes: int = Field(default=0, ge=0)


class RelatedTool(BaseModel):
    """A tool suggested alongside another, with its similarity score."""

    tool: ToolRecord
    score: int = Field(default=0, ge=0)
    shared: list[str] = Field(default_factory=list, description="Shared keywords/tags")


class CategoryCount(BaseModel):
    """Number of tools in one category."""

    category: str
    label: str
    color: str
    count: int = Field(default=0, ge=0)


class CatalogStats(BaseModel):
    """Aggregate numbers about the catalog.

    Attributes:
        total_tools: Number of records in the dataset
        categories: Distinct categories in use
        types: Distinct types in use
        authors: Distinct contributors (case-insensitive)
        total_views: Sum of all view counters
        by_category: Per-category counts, most populated first
    """

    total_tools: int = Field(default=0, ge=0)
    categories: int = Field(default=0, ge=0)
    types: int = Field(default=0, ge=0)
    authors: int = Field(default=0, ge=0)
    total_views: int = Field(default=0, ge=0)
    by_category: list[CategoryCount] = Field(default_factory=list)


class ErrorDetail(BaseModel):
    """Error detail carried in API error responses."""

    message: str
    type: str = "server_error"
    code: str | None = None


class ErrorResponse(BaseModel):
    """Error envelope returned by API routes."""

    error: ErrorDetail
