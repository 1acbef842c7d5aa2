"""Tool registry, validation, search and ranking."""

from toolstudio.core.tools.fuzzy_search import FuzzyRanker, highlight_matches
from toolstudio.core.tools.models import (
    FieldMatch,
    FilteredResult,
    FilterOptions,
    FuzzyMatch,
    OperationResult,
    RegistryStats,
    SortBy,
    SortOrder,
)
from toolstudio.core.tools.search_service import ToolSearchService
from toolstudio.core.tools.tool_registry import ToolRegistryService
from toolstudio.core.tools.validation import (
    build_tool,
    is_valid_slug,
    validate_tool,
    validate_tool_updates,
)

__all__ = [
    "FuzzyRanker",
    "highlight_matches",
    "FieldMatch",
    "FilteredResult",
    "FilterOptions",
    "FuzzyMatch",
    "OperationResult",
    "RegistryStats",
    "SortBy",
    "SortOrder",
    "ToolSearchService",
    "ToolRegistryService",
    "build_tool",
    "is_valid_slug",
    "validate_tool",
    "validate_tool_updates",
]
