"""Helpers over tool records.

Author normalisation, display labels, security status, related tools,
"best of" rankings and catalog statistics. Everything here is pure and
synchronous; callers load records through ToolStore first.
"""

import re
from collections import Counter
from collections.abc import Iterable, Mapping

from app.catalog.models import (
    CATEGORY_FALLBACK_COLOR,
    Author,
    CatalogStats,
    CategoryCount,
    LabelConfig,
    RelatedTool,
    SecurityStatus,
    ToolRecord,
    legacy_author,
)

CATEGORY_CONFIG: dict[str, LabelConfig] = {
    "reporting": LabelConfig(label="Reporting", color="#3b82f6"),
    "automation": LabelConfig(label="Automation", color="#10b981"),
    "packaging": LabelConfig(label="Packaging", color="#f59e0b"),
    "troubleshooting": LabelConfig(label="Troubleshooting", color="#ef4444"),
    "security": LabelConfig(label="Security", color="#8b5cf6"),
    "configuration": LabelConfig(label="Configuration", color="#06b6d4"),
    "monitoring": LabelConfig(label="Monitoring", color="#ec4899"),
    "migration": LabelConfig(label="Migration", color="#84cc16"),
    "other": LabelConfig(label="Other", color=CATEGORY_FALLBACK_COLOR),
}

TYPE_CONFIG: dict[str, LabelConfig] = {
    "powershell-module": LabelConfig(label="PowerShell Module", color="#5c2d91"),
    "powershell-script": LabelConfig(label="PS Script", color="#4FC3F7"),
    "web-app": LabelConfig(label="Web App", color="#0078d4"),
    "desktop-app": LabelConfig(label="Desktop App", color="#00bcf2"),
    "browser-extension": LabelConfig(label="Browser Extension", color="#ff8c00"),
    "cli-tool": LabelConfig(label="CLI Tool", color="#16a34a"),
    "api-wrapper": LabelConfig(label="API Wrapper", color="#7c3aed"),
    "documentation": LabelConfig(label="Documentation", color="#64748b"),
    "other": LabelConfig(label="Other", color=CATEGORY_FALLBACK_COLOR),
}

FALLBACK_LABEL = LabelConfig(label="Other", color=CATEGORY_FALLBACK_COLOR)

MAX_SCREENSHOTS = 5
RELATED_LIMIT = 4

# Related-tool scoring weights
KEYWORD_WEIGHT = 2
WORKS_WITH_WEIGHT = 1
CATEGORY_WEIGHT = 1


# =============================================================================
# Normalisation and Labels
# =============================================================================


def get_tool_authors(tool: ToolRecord) -> list[Author]:
    """Get the non-empty, ordered author list for a tool.

    Uses the ``authors`` array when it has entries, otherwise builds a
    single author from the legacy fields.

    Examples:
        >>> get_tool_authors(ToolRecord(id="a", name="A", author="Jane"))[0].name
        'Jane'
    """
    if tool.authors:
        return list(tool.authors)
    return [legacy_author(tool)]


def author_names(tool: ToolRecord) -> list[str]:
    """Names of every author credited on a tool."""
    return [a.name for a in get_tool_authors(tool)]


def category_config(category: str | None) -> LabelConfig:
    """Label config for a category, generic fallback for unknown values."""
    return CATEGORY_CONFIG.get(category or "", FALLBACK_LABEL)


def type_config(tool_type: str | None) -> LabelConfig:
    """Label config for a tool type, generic fallback for unknown values."""
    return TYPE_CONFIG.get(tool_type or "", FALLBACK_LABEL)


def is_known_category(value: str | None) -> bool:
    """Check a category against the closed set."""
    return bool(value) and value in CATEGORY_CONFIG


def is_known_type(value: str | None) -> bool:
    """Check a tool type against the closed set."""
    return bool(value) and value in TYPE_CONFIG


def generate_author_slug(name: str) -> str:
    """Generate a URL slug from an author name.

    Examples:
        >>> generate_author_slug("Jane  O'Neil")
        'jane-oneil'
    """
    slug = name.lower()
    slug = re.sub(r"[^a-z0-9\s-]", "", slug)
    slug = re.sub(r"\s+", "-", slug)
    slug = re.sub(r"-+", "-", slug)
    return slug.strip()


def display_screenshots(tool: ToolRecord) -> list[str]:
    """Screenshots shown in the gallery, capped at MAX_SCREENSHOTS."""
    return tool.screenshots[:MAX_SCREENSHOTS]


def security_status(tool: ToolRecord) -> SecurityStatus:
    """Derive the security badge state for a tool.

    Tools without a repository are hand-curated; tools with a repository
    are judged by their latest scan.
    """
    if not tool.repo_url:
        return "curated"
    check = tool.security_check
    if check is None:
        return "pending"
    if check.files_scanned == 0:
        return "not_scanned"
    if check.passed == check.total:
        return "verified"
    return "warning"


# =============================================================================
# Related Tools and Rankings
# =============================================================================


def _lowered(values: Iterable[str]) -> set[str]:
    return {v.strip().lower() for v in values if v.strip()}


def related_tools(
    tool: ToolRecord, tools: list[ToolRecord], limit: int = RELATED_LIMIT
) -> list[RelatedTool]:
    """Find tools similar to ``tool``.

    Each candidate scores KEYWORD_WEIGHT per shared keyword,
    WORKS_WITH_WEIGHT per shared worksWith tag and CATEGORY_WEIGHT for a
    matching category. Candidates scoring zero are dropped. Ties keep
    dataset order.

    Args:
        tool: The tool being viewed
        tools: Full record set
        limit: Maximum suggestions

    Returns:
        Related tools, highest score first
    """
    keywords = _lowered(tool.keywords)
    works_with = _lowered(tool.works_with)
    related: list[RelatedTool] = []

    for candidate in tools:
        if candidate.id == tool.id:
            continue

        shared_keywords = keywords & _lowered(candidate.keywords)
        shared_works_with = works_with & _lowered(candidate.works_with)
        score = KEYWORD_WEIGHT * len(shared_keywords) + WORKS_WITH_WEIGHT * len(shared_works_with)
        if candidate.category == tool.category:
            score += CATEGORY_WEIGHT

        if score > 0:
            related.append(
                RelatedTool(
                    tool=candidate,
                    score=score,
                    shared=sorted(shared_keywords | shared_works_with),
                )
            )

    related.sort(key=lambda r: r.score, reverse=True)
    return related[:limit]


def rank_by_stars(tools: list[ToolRecord]) -> list[ToolRecord]:
    """Order tools by repository stars, most starred first (stable)."""
    return sorted(tools, key=lambda t: t.repo_stats.stars if t.repo_stats else 0, reverse=True)


def best_in_category(tools: list[ToolRecord], category: str) -> list[ToolRecord]:
    """Tools of one category ranked by repository stars."""
    return rank_by_stars([t for t in tools if t.category == category])


# =============================================================================
# Statistics
# =============================================================================


def unique_categories(tools: list[ToolRecord]) -> list[str]:
    """Distinct categories in first-seen order."""
    return list(dict.fromkeys(t.category for t in tools))


def unique_types(tools: list[ToolRecord]) -> list[str]:
    """Distinct tool types in first-seen order."""
    return list(dict.fromkeys(t.type for t in tools))


def unique_authors_count(tools: list[ToolRecord]) -> int:
    """Count distinct contributors across all tools (case-insensitive)."""
    return len({name.lower() for t in tools for name in author_names(t)})


def category_counts(tools: list[ToolRecord]) -> list[CategoryCount]:
    """Per-category tool counts, most populated first."""
    counter = Counter(t.category for t in tools)
    counts = []
    for category, count in counter.most_common():
        config = category_config(category)
        counts.append(
            CategoryCount(category=category, label=config.label, color=config.color, count=count)
        )
    return counts


def catalog_stats(
    tools: list[ToolRecord], view_counts: Mapping[str, int] | None = None
) -> CatalogStats:
    """Compute aggregate catalog statistics."""
    return CatalogStats(
        total_tools=len(tools),
        categories=len(unique_categories(tools)),
        types=len(unique_types(tools)),
        authors=unique_authors_count(tools),
        total_views=sum((view_counts or {}).values()),
        by_category=category_counts(tools),
    )


def format_count(count: int) -> str:
    """Compact display form of a counter.

    Examples:
        >>> format_count(999), format_count(1234), format_count(1_000_000)
        ('999', '1.2k', '1M')
    """
    if count >= 1_000_000:
        return f"{count / 1_000_000:.1f}".removesuffix(".0") + "M"
    if count >= 1_000:
        return f"{count / 1_000:.1f}".removesuffix(".0") + "k"
    return str(count)
