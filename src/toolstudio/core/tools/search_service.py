"""
Search, filtering and sorting for the Tool Studio registry.

Operates on snapshots of the registry's collection in insertion order. All
sorts are stable so equal keys keep their relative order.
"""

from collections import Counter
from datetime import datetime
from typing import List, Optional, Sequence

from toolstudio.core.models import Tool, ToolCategory
from toolstudio.core.tools.fuzzy_search import FuzzyRanker
from toolstudio.core.tools.models import (
    FilteredResult,
    FilterOptions,
    FuzzyMatch,
    RegistryStats,
    SortBy,
    SortOrder,
)
from toolstudio.utils.logging import get_logger

logger = get_logger(__name__)


def _timestamp(value: datetime) -> float:
    # Epoch seconds compare naive and aware datetimes alike
    return value.timestamp()


def matches_query(tool: Tool, query: str) -> bool:
    """Case-insensitive substring match against name, description and tags."""
    query_lower = query.lower()
    return (
        query_lower in tool.name.lower()
        or query_lower in tool.description.lower()
        or any(query_lower in tag.lower() for tag in tool.tags)
    )


def favorites_first(tools: Sequence[Tool]) -> List[Tool]:
    """Stable partition: favorites in their order, then the rest in theirs."""
    return [t for t in tools if t.is_favorite] + [t for t in tools if not t.is_favorite]


def sort_tools(tools: Sequence[Tool], sort_by: SortBy,
               sort_order: SortOrder = SortOrder.ASC) -> List[Tool]:
    """
    Sort tools by a key in its natural direction.

    Natural directions are: name ascending, usage descending, recent
    descending (never-used tools always last), created descending.
    ``SortOrder.DESC`` flips the natural direction. Relevance returns the
    input order unchanged.
    """
    flipped = sort_order == SortOrder.DESC

    if sort_by == SortBy.RELEVANCE:
        return list(tools)

    if sort_by == SortBy.USAGE:
        return sorted(tools, key=lambda t: t.usage_count, reverse=not flipped)

    if sort_by == SortBy.CREATED:
        return sorted(tools, key=lambda t: _timestamp(t.created_at), reverse=not flipped)

    if sort_by == SortBy.RECENT:
        used = [t for t in tools if t.last_used is not None]
        never_used = [t for t in tools if t.last_used is None]
        used.sort(key=lambda t: _timestamp(t.last_used), reverse=not flipped)
        return used + never_used

    return sorted(tools, key=lambda t: t.name.casefold(), reverse=flipped)


class ToolSearchService:
    """Handles search and listing operations over a tool collection."""

    def __init__(self, ranker: Optional[FuzzyRanker] = None):
        """
        Initialize tool search service.

        Args:
            ranker: Fuzzy ranker; a default-weighted one is created if omitted
        """
        self.ranker = ranker or FuzzyRanker()

    def search(self, tools: Sequence[Tool], query: str) -> List[Tool]:
        """
        Exact, case-insensitive substring search.

        Args:
            tools: Collection in insertion order
            query: Search text; an empty query matches every tool

        Returns:
            Matching tools in collection order
        """
        return [tool for tool in tools if matches_query(tool, query or "")]

    def fuzzy_search(self, tools: Sequence[Tool], query: str) -> List[FuzzyMatch]:
        return self.ranker.rank(query, tools)

    def filter_tools(self, tools: Sequence[Tool], options: FilterOptions) -> FilteredResult:
        """
        Apply category, search, favorites pinning and sorting.

        Args:
            tools: Collection in insertion order
            options: Filter options

        Returns:
            FilteredResult with the listed tools and fuzzy matches by tool id
        """
        filtered = list(tools)

        if options.enabled_only:
            filtered = [t for t in filtered if t.enabled]

        category = options.category_filter
        if category is not None:
            filtered = [t for t in filtered if t.category == category]

        matches = {}
        if options.has_search:
            if options.use_fuzzy_search:
                ranked = self.fuzzy_search(filtered, options.search)
                matches = {match.item.id: match for match in ranked}
                filtered = [match.item for match in ranked]
            else:
                filtered = self.search(filtered, options.search)

        # Without a sort key the collection (or ranking) order is kept
        sort_by = options.sort_by or SortBy.RELEVANCE
        filtered = sort_tools(filtered, sort_by, options.sort_order)

        if options.favorites_first:
            filtered = favorites_first(filtered)

        logger.debug("Filtered tool listing", extra={
            "category": category.value if category else "all",
            "search": options.search,
            "fuzzy": options.use_fuzzy_search,
            "sort_by": sort_by.value,
            "results_count": len(filtered),
        })
        return FilteredResult(tools=filtered, matches=matches)

    def get_registry_stats(self, tools: Sequence[Tool]) -> RegistryStats:
        """
        Get registry statistics.

        Returns:
            RegistryStats for the given collection
        """
        distribution = Counter(t.category.value for t in tools)
        last_used_values = [t.last_used for t in tools if t.last_used is not None]
        return RegistryStats(
            total_tools=len(tools),
            enabled_tools=sum(1 for t in tools if t.enabled),
            favorite_tools=sum(1 for t in tools if t.is_favorite),
            used_tools=sum(1 for t in tools if t.usage_count > 0),
            total_uses=sum(t.usage_count for t in tools),
            category_distribution={
                category.value: distribution.get(category.value, 0)
                for category in ToolCategory
            },
            last_used=max(last_used_values, key=_timestamp) if last_used_values else None,
        )
