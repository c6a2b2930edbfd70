"""Tests for the sort engine."""

import pytest

from app.catalog.models import ToolRecord
from app.search.sorting import collation_key, parse_timestamp, sort_by_confidence, sort_tools


def ids(tools: list[ToolRecord]) -> list[str]:
    return [t.id for t in tools]


class TestSortTools:
    """Tests for the four sort orders."""

    def test_alphabetical_ignores_accents_and_case(self, sample_tools: list[ToolRecord]) -> None:
        """Test 'Éclair' sorts with E and 'graph helper' with G."""
        result = sort_tools(sample_tools, "alphabetical")

        assert ids(result) == [
            "autopilot-reset",
            "compliance-report",
            "device-inventory",
            "eclair-packager",
            "graph-helper",
        ]

    def test_popular(self, sample_tools: list[ToolRecord]) -> None:
        """Test descending views, ties in input order, missing ids as zero."""
        views = {"graph-helper": 40, "device-inventory": 7, "compliance-report": 7}

        result = sort_tools(sample_tools, "popular", view_counts=views)

        assert ids(result) == [
            "graph-helper",
            "compliance-report",
            "device-inventory",
            "autopilot-reset",
            "eclair-packager",
        ]

    def test_most_voted(self, sample_tools: list[ToolRecord]) -> None:
        """Test descending votes."""
        votes = {"eclair-packager": 3, "autopilot-reset": 1}

        result = sort_tools(sample_tools, "most-voted", vote_counts=votes)

        assert ids(result)[:2] == ["eclair-packager", "autopilot-reset"]

    def test_newest_unparsable_dates_last(self, sample_tools: list[ToolRecord]) -> None:
        """Test descending dateAdded with invalid dates at the end."""
        result = sort_tools(sample_tools, "newest")

        assert ids(result) == [
            "compliance-report",
            "autopilot-reset",
            "graph-helper",
            "device-inventory",
            "eclair-packager",
        ]

    @pytest.mark.parametrize("sort", ["alphabetical", "popular", "most-voted", "newest"])
    def test_idempotent(self, sample_tools: list[ToolRecord], sort: str) -> None:
        """Test sorting a sorted list again changes nothing."""
        views = {"graph-helper": 2}
        once = sort_tools(sample_tools, sort, views, views)  # type: ignore[arg-type]

        assert sort_tools(once, sort, views, views) == once  # type: ignore[arg-type]

    @pytest.mark.parametrize("sort", ["popular", "most-voted"])
    def test_stable_for_equal_keys(self, sample_tools: list[ToolRecord], sort: str) -> None:
        """Test equal counts keep the relative input order."""
        reversed_tools = list(reversed(sample_tools))

        result = sort_tools(reversed_tools, sort)  # type: ignore[arg-type]

        assert result == reversed_tools

    def test_input_not_modified(self, sample_tools: list[ToolRecord]) -> None:
        """Test a new list is returned."""
        before = list(sample_tools)
        sort_tools(sample_tools, "newest")

        assert sample_tools == before


class TestSortByConfidence:
    """Tests for AI-mode ordering."""

    def test_confidence_then_views(self, sample_tools: list[ToolRecord]) -> None:
        """Test confidence first, view count as tiebreaker."""
        confidence = {"autopilot-reset": 85, "graph-helper": 92, "device-inventory": 85}
        views = {"device-inventory": 10}
        tools = [t for t in sample_tools if t.id in confidence]

        result = sort_by_confidence(tools, confidence, views)

        assert ids(result) == ["graph-helper", "device-inventory", "autopilot-reset"]


class TestHelpers:
    """Tests for collation and timestamp parsing."""

    def test_collation_key(self) -> None:
        """Test accents and case are folded."""
        assert collation_key("Éclair") == collation_key("eclair")
        assert collation_key("Straße") == "strasse"

    def test_parse_timestamp_orders_dates(self) -> None:
        """Test date-only and datetime values compare correctly."""
        assert parse_timestamp("2024-01-15T09:30:00Z") > parse_timestamp("2024-01-15")
        assert parse_timestamp("2024-01-15") > parse_timestamp("2023-12-31")

    def test_parse_timestamp_invalid(self) -> None:
        """Test invalid and empty values sort last."""
        assert parse_timestamp("") == float("-inf")
        assert parse_timestamp("yesterday") == float("-inf")
