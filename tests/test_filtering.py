"""
Test filtered and sorted tool listings.
"""

import json
from datetime import datetime, timedelta, timezone

import pytest
from pydantic import ValidationError as PydanticValidationError

from toolstudio.core.models import ToolCategory
from toolstudio.core.tools.models import FilterOptions, SortBy, SortOrder
from toolstudio.core.tools.search_service import favorites_first, sort_tools
from toolstudio.core.tools.tool_registry import ToolRegistryService

BASE_TIME = datetime(2025, 9, 1, 12, 0, tzinfo=timezone.utc)


def ids(tools):
    return [tool.id for tool in tools]


@pytest.fixture
def dated_registry(memory_store, config, tool_data):
    """Registry with fixed creation times and usage history."""
    memory_store.set("usage", json.dumps({
        "text-cleaner": {"usageCount": 1, "lastUsed": (BASE_TIME + timedelta(hours=1)).isoformat()},
        "calculator": {"usageCount": 5, "lastUsed": (BASE_TIME + timedelta(hours=3)).isoformat()},
        "unit-converter": {"usageCount": 5, "lastUsed": (BASE_TIME + timedelta(hours=2)).isoformat()},
    }))
    registry = ToolRegistryService(store=memory_store, config=config)
    registry.initialize([
        tool_data("text-cleaner", name="Text Cleaner", created_at=BASE_TIME - timedelta(days=3)),
        tool_data("calculator", name="Calculator", created_at=BASE_TIME - timedelta(days=1)),
        tool_data("color-picker", name="Color Picker", category=ToolCategory.DESIGN,
                  created_at=BASE_TIME - timedelta(days=2)),
        tool_data("unit-converter", name="Unit Converter", created_at=BASE_TIME - timedelta(days=1)),
    ])
    yield registry
    registry.close()


@pytest.mark.unit
class TestCategoryAndSearch:
    """Test category filtering and search within listings."""

    def test_no_options_keeps_collection_order(self, registry):
        assert ids(registry.get_filtered()) == ids(registry.get_all())

    def test_category_keeps_relative_order(self, registry):
        expected = [t.id for t in registry.get_all() if t.category == ToolCategory.UTILITIES]
        assert ids(registry.get_filtered(category="utilities")) == expected
        assert expected == ["text-cleaner", "calculator"]

    def test_category_all(self, registry):
        assert len(registry.get_filtered(category="all")) == 4
        assert len(registry.get_filtered(category=None)) == 4

    def test_exact_search_with_category(self, registry):
        assert ids(registry.get_filtered(search="text")) == ["text-cleaner", "markdown-formatter"]
        assert ids(registry.get_filtered(search="text", category="productivity")) == ["markdown-formatter"]

    def test_blank_search_is_ignored(self, registry):
        assert len(registry.get_filtered(search="   ")) == 4

    def test_fuzzy_keeps_ranking_order(self, registry):
        ranked = [m.item.id for m in registry.fuzzy_search("cal")]
        assert ids(registry.get_filtered(search="cal", use_fuzzy_search=True)) == ranked
        assert ids(registry.get_filtered(
            search="cal", use_fuzzy_search=True, sort_by=SortBy.RELEVANCE,
        )) == ranked

    def test_fuzzy_with_category(self, registry):
        tools = registry.get_filtered(search="c", use_fuzzy_search=True, category="design")
        assert ids(tools) == ["color-picker"]

    def test_fuzzy_then_sort_by_name(self, registry):
        tools = registry.get_filtered(search="c", use_fuzzy_search=True, sort_by="name")
        names = [t.name for t in tools]
        assert names == sorted(names, key=str.casefold)

    def test_filtered_with_matches(self, registry):
        result = registry.get_filtered_with_matches(search="clean", use_fuzzy_search=True)

        assert "text-cleaner" in ids(result.tools)
        assert set(result.matches) == set(ids(result.tools))
        name_match = result.matches["text-cleaner"].match_for("name")
        assert name_match.spans == [(5, 9)]

    def test_exact_search_has_no_matches(self, registry):
        result = registry.get_filtered_with_matches(search="text")
        assert result.matches == {}
        assert ids(result.tools) == ["text-cleaner", "markdown-formatter"]

    def test_enabled_only(self, registry):
        registry.update_tool("calculator", {"is_enabled": False})

        assert "calculator" not in ids(registry.get_filtered(enabled_only=True))
        assert "calculator" in ids(registry.get_filtered())

    def test_accepts_filter_options(self, registry):
        options = FilterOptions(category=ToolCategory.DESIGN)
        assert ids(registry.get_filtered(options)) == ["color-picker"]


@pytest.mark.unit
class TestSorting:
    """Test sort keys, directions and stability."""

    def test_sort_by_name(self, dated_registry):
        assert ids(dated_registry.get_filtered(sort_by="name")) == [
            "calculator", "color-picker", "text-cleaner", "unit-converter",
        ]
        assert ids(dated_registry.get_filtered(sort_by="name", sort_order="desc")) == [
            "unit-converter", "text-cleaner", "color-picker", "calculator",
        ]

    def test_sort_by_usage_is_stable(self, dated_registry):
        assert ids(dated_registry.get_filtered(sort_by=SortBy.USAGE)) == [
            "calculator", "unit-converter", "text-cleaner", "color-picker",
        ]
        assert ids(dated_registry.get_filtered(sort_by=SortBy.USAGE, sort_order=SortOrder.DESC)) == [
            "color-picker", "text-cleaner", "calculator", "unit-converter",
        ]

    def test_sort_by_recent(self, dated_registry):
        assert ids(dated_registry.get_filtered(sort_by="recent")) == [
            "calculator", "unit-converter", "text-cleaner", "color-picker",
        ]
        # Never-used tools stay last in both directions
        assert ids(dated_registry.get_filtered(sort_by="recent", sort_order="desc")) == [
            "text-cleaner", "unit-converter", "calculator", "color-picker",
        ]

    def test_sort_by_created(self, dated_registry):
        assert ids(dated_registry.get_filtered(sort_by="created")) == [
            "calculator", "unit-converter", "color-picker", "text-cleaner",
        ]

    def test_identical_names_keep_insertion_order(self, registry, tool_data):
        registry.add_tool(tool_data("twin-b", name="Twin"))
        registry.add_tool(tool_data("twin-a", name="Twin"))

        by_name = ids(registry.get_filtered(sort_by="name"))
        assert by_name.index("twin-b") < by_name.index("twin-a")

        reversed_names = ids(registry.get_filtered(sort_by="name", sort_order="desc"))
        assert reversed_names.index("twin-b") < reversed_names.index("twin-a")

    def test_relevance_without_search_keeps_order(self, registry):
        assert ids(registry.get_filtered(sort_by="relevance")) == ids(registry.get_all())


@pytest.mark.unit
class TestFavoritesFirst:
    """Test the favorites-first partition."""

    def test_favorites_pinned_in_collection_order(self, registry):
        registry.toggle_favorite("markdown-formatter")

        assert ids(registry.get_filtered(favorites_first=True)) == [
            "calculator", "markdown-formatter", "text-cleaner", "color-picker",
        ]

    def test_favorites_pinned_after_sorting(self, registry):
        registry.toggle_favorite("text-cleaner")
        tools = registry.get_filtered(favorites_first=True, sort_by="name")

        assert ids(tools) == ["calculator", "text-cleaner", "color-picker", "markdown-formatter"]

    @pytest.mark.parametrize("sort_by", [None, "name", "usage", "recent", "created"])
    def test_no_favorite_after_non_favorite(self, dated_registry, sort_by):
        dated_registry.toggle_favorite("color-picker")
        dated_registry.toggle_favorite("text-cleaner")
        flags = [t.is_favorite for t in dated_registry.get_filtered(
            favorites_first=True, sort_by=sort_by,
        )]

        assert flags == sorted(flags, reverse=True)

    def test_partition_helper_is_stable(self, registry):
        tools = registry.get_all()
        partitioned = favorites_first(tools)
        assert ids(partitioned) == ["calculator", "text-cleaner", "color-picker", "markdown-formatter"]


@pytest.mark.unit
class TestFilterOptions:
    """Test FilterOptions parsing."""

    def test_defaults(self):
        options = FilterOptions()
        assert options.category == "all"
        assert options.category_filter is None
        assert options.sort_by is None
        assert options.sort_order == SortOrder.ASC
        assert not options.has_filters()

    def test_coercion(self):
        options = FilterOptions(category="design", sort_by="recent", sort_order="desc")
        assert options.category_filter == ToolCategory.DESIGN
        assert options.sort_by == SortBy.RECENT
        assert options.sort_order == SortOrder.DESC
        assert options.has_filters()

    @pytest.mark.parametrize("field, value", [
        ("category", "games"),
        ("sort_by", "popularity"),
        ("sort_order", "sideways"),
    ])
    def test_invalid_values(self, field, value):
        with pytest.raises(PydanticValidationError):
            FilterOptions(**{field: value})

    def test_sort_tools_relevance_is_identity(self, registry):
        tools = registry.get_all()
        assert sort_tools(tools, SortBy.RELEVANCE) == tools
