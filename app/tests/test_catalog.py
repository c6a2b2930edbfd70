"""Tests for the catalog feature.

Covers the ToolStore dataset provider, record normalisation and the
pure helpers in ``app.catalog.records``.
"""

import json
from pathlib import Path

import pytest

from app.catalog.models import CATEGORY_FALLBACK_COLOR, ToolRecord
from app.catalog.records import (
    MAX_SCREENSHOTS,
    author_names,
    best_in_category,
    catalog_stats,
    category_config,
    category_counts,
    display_screenshots,
    format_count,
    generate_author_slug,
    get_tool_authors,
    is_known_category,
    is_known_type,
    rank_by_stars,
    related_tools,
    security_status,
    type_config,
    unique_authors_count,
)
from app.dependencies import ToolNotFoundError, ToolStore


def by_id(tools: list[ToolRecord], tool_id: str) -> ToolRecord:
    return next(t for t in tools if t.id == tool_id)


# =============================================================================
# ToolStore Tests
# =============================================================================


class TestToolStore:
    """Tests for loading the dataset directory."""

    @pytest.mark.asyncio
    async def test_load_tools_sorted_by_name(self, tool_store: ToolStore) -> None:
        """Test records come back ordered by case-insensitive name."""
        tools = await tool_store.load_tools()

        assert [t.id for t in tools] == [
            "autopilot-reset",
            "compliance-report",
            "device-inventory",
            "graph-helper",
            "eclair-packager",
        ]

    @pytest.mark.asyncio
    async def test_template_and_invalid_files_skipped(self, tool_store: ToolStore) -> None:
        """Test template.json, broken JSON and non-JSON files are ignored."""
        ids = await tool_store.list_ids()

        assert "template" not in ids
        assert len(ids) == 5

    @pytest.mark.asyncio
    async def test_duplicate_id_keeps_first(self, tools_dir: Path) -> None:
        """Test a second file reusing an id is skipped."""
        record = json.loads((tools_dir / "compliance-report.json").read_text(encoding="utf-8"))
        record["name"] = "Compliance Report Copy"
        (tools_dir / "zz-copy.json").write_text(json.dumps(record), encoding="utf-8")
        store = ToolStore(data_path=tools_dir)

        ids = await store.list_ids()
        tool = await store.get_tool("compliance-report")

        assert ids.count("compliance-report") == 1
        assert len(ids) == 5
        assert tool.name == "Compliance Report"

    @pytest.mark.asyncio
    async def test_missing_directory_is_empty(self, tmp_path: Path) -> None:
        """Test a missing data directory yields no tools instead of failing."""
        store = ToolStore(data_path=tmp_path / "nope")

        assert await store.load_tools() == []

    @pytest.mark.asyncio
    async def test_get_tool(self, tool_store: ToolStore) -> None:
        """Test fetching a single tool by id."""
        tool = await tool_store.get_tool("compliance-report")

        assert tool.name == "Compliance Report"
        assert tool.repo_stats is not None
        assert tool.repo_stats.stars == 120

    @pytest.mark.asyncio
    async def test_get_tool_not_found(self, tool_store: ToolStore) -> None:
        """Test unknown ids raise ToolNotFoundError."""
        with pytest.raises(ToolNotFoundError, match="missing"):
            await tool_store.get_tool("missing")

    @pytest.mark.asyncio
    async def test_list_categories_first_seen(self, tool_store: ToolStore) -> None:
        """Test categories are listed once each in dataset order."""
        assert await tool_store.list_categories() == ["automation", "reporting", "packaging"]


# =============================================================================
# Record Model Tests
# =============================================================================


class TestToolRecord:
    """Tests for record parsing and author normalisation."""

    def test_camel_case_keys(self) -> None:
        """Test camelCase dataset keys populate snake_case fields."""
        tool = ToolRecord.model_validate(
            {"id": "x", "name": "X", "dateAdded": "2024-01-01", "worksWith": ["Intune"]}
        )

        assert tool.date_added == "2024-01-01"
        assert tool.works_with == ["Intune"]

    def test_legacy_author_normalised(self) -> None:
        """Test a single legacy author becomes a one-entry authors list."""
        tool = ToolRecord(id="x", name="X", author="Jane Doe", github_url="https://github.com/jd")

        authors = get_tool_authors(tool)
        assert len(authors) == 1
        assert authors[0].name == "Jane Doe"
        assert authors[0].github_url == "https://github.com/jd"

    def test_authors_array_preferred(self, sample_tools: list[ToolRecord]) -> None:
        """Test the authors array wins over legacy fields."""
        tool = by_id(sample_tools, "compliance-report")

        assert author_names(tool) == ["Alice Martin", "Bob Chen"]

    def test_no_author_at_all(self) -> None:
        """Test a record without any author data still has one author."""
        tool = ToolRecord(id="x", name="X")

        assert author_names(tool) == ["Unknown"]

    def test_empty_authors_array_falls_back(self) -> None:
        """Test an explicitly empty authors array uses the legacy author."""
        tool = ToolRecord.model_validate({"id": "x", "name": "X", "author": "Sam", "authors": []})

        assert author_names(tool) == ["Sam"]

    def test_unknown_category_and_type_load(self) -> None:
        """Test values outside the known sets are accepted."""
        tool = ToolRecord(id="x", name="X", category="quantum", type="hologram")

        assert tool.category == "quantum"
        assert tool.type == "hologram"


# =============================================================================
# Label Tests
# =============================================================================


class TestLabels:
    """Tests for category/type display labels."""

    def test_known_category(self) -> None:
        """Test a known category has its own label."""
        assert category_config("reporting").label == "Reporting"

    def test_unknown_category_falls_back(self) -> None:
        """Test unknown categories get the generic label and colour."""
        config = category_config("quantum")

        assert config.label == "Other"
        assert config.color == CATEGORY_FALLBACK_COLOR

    def test_missing_type_falls_back(self) -> None:
        """Test a None type gets the generic label."""
        assert type_config(None).label == "Other"

    def test_known_type(self) -> None:
        """Test a known type has its own label."""
        assert type_config("cli-tool").label == "CLI Tool"

    def test_membership_checks(self) -> None:
        """Test closed-set membership helpers."""
        assert is_known_category("automation")
        assert not is_known_category("quantum")
        assert not is_known_category(None)
        assert is_known_type("web-app")
        assert not is_known_type("")


# =============================================================================
# Display Helper Tests
# =============================================================================


class TestDisplayHelpers:
    """Tests for security status, screenshots, slugs and counts."""

    @pytest.mark.parametrize(
        ("tool_id", "expected"),
        [
            ("autopilot-reset", "verified"),
            ("compliance-report", "warning"),
            ("device-inventory", "curated"),
            ("graph-helper", "pending"),
            ("eclair-packager", "not_scanned"),
        ],
    )
    def test_security_status(
        self, sample_tools: list[ToolRecord], tool_id: str, expected: str
    ) -> None:
        """Test each security badge state."""
        assert security_status(by_id(sample_tools, tool_id)) == expected

    def test_screenshots_capped(self, sample_tools: list[ToolRecord]) -> None:
        """Test the gallery never shows more than MAX_SCREENSHOTS."""
        tool = by_id(sample_tools, "compliance-report")

        shots = display_screenshots(tool)
        assert len(tool.screenshots) == 7
        assert len(shots) == MAX_SCREENSHOTS
        assert shots[0] == "/screens/compliance-0.png"

    def test_author_slug(self) -> None:
        """Test author names become URL slugs."""
        assert generate_author_slug("Jane Doe") == "jane-doe"
        assert generate_author_slug("Jane  O'Neil") == "jane-oneil"
        assert generate_author_slug("A -- B") == "a-b"

    @pytest.mark.parametrize(
        ("count", "expected"),
        [(0, "0"), (999, "999"), (1000, "1k"), (1234, "1.2k"), (1_000_000, "1M"), (2_500_000, "2.5M")],
    )
    def test_format_count(self, count: int, expected: str) -> None:
        """Test compact counter formatting."""
        assert format_count(count) == expected


# =============================================================================
# Related Tools and Ranking Tests
# =============================================================================


class TestRelatedTools:
    """Tests for related-tool scoring."""

    def test_scores_and_order(self, sample_tools: list[ToolRecord]) -> None:
        """Test keyword, worksWith and category weights."""
        tool = by_id(sample_tools, "autopilot-reset")

        related = related_tools(tool, sample_tools)

        assert [r.tool.id for r in related] == ["compliance-report", "graph-helper"]
        assert [r.score for r in related] == [3, 2]
        assert related[0].shared == ["intune"]

    def test_excludes_self_and_zero_scores(self, sample_tools: list[ToolRecord]) -> None:
        """Test the tool itself and unrelated tools are left out."""
        tool = by_id(sample_tools, "autopilot-reset")

        ids = [r.tool.id for r in related_tools(tool, sample_tools)]
        assert "autopilot-reset" not in ids
        assert "eclair-packager" not in ids

    def test_limit(self, sample_tools: list[ToolRecord]) -> None:
        """Test the suggestion count is capped."""
        tool = by_id(sample_tools, "autopilot-reset")

        assert len(related_tools(tool, sample_tools, limit=1)) == 1


class TestRankings:
    """Tests for star rankings and statistics."""

    def test_rank_by_stars_stable(self, sample_tools: list[ToolRecord]) -> None:
        """Test most-starred first, unstarred tools keep dataset order."""
        ranked = [t.id for t in rank_by_stars(sample_tools)]

        assert ranked == [
            "compliance-report",
            "autopilot-reset",
            "device-inventory",
            "graph-helper",
            "eclair-packager",
        ]

    def test_best_in_category(self, sample_tools: list[ToolRecord]) -> None:
        """Test ranking restricted to one category."""
        best = best_in_category(sample_tools, "reporting")

        assert [t.id for t in best] == ["compliance-report", "device-inventory"]

    def test_unique_authors(self, sample_tools: list[ToolRecord]) -> None:
        """Test contributors are counted once across tools."""
        assert unique_authors_count(sample_tools) == 5

    def test_category_counts(self, sample_tools: list[ToolRecord]) -> None:
        """Test per-category counts, most populated first."""
        counts = category_counts(sample_tools)

        assert [(c.category, c.count) for c in counts] == [
            ("automation", 2),
            ("reporting", 2),
            ("packaging", 1),
        ]
        assert counts[0].label == "Automation"

    def test_catalog_stats(self, sample_tools: list[ToolRecord]) -> None:
        """Test aggregate statistics."""
        stats = catalog_stats(sample_tools, {"autopilot-reset": 10, "graph-helper": 5})

        assert stats.total_tools == 5
        assert stats.categories == 3
        assert stats.types == 5
        assert stats.authors == 5
        assert stats.total_views == 15
