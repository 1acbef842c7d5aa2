"""
Data models for the Tool Studio registry.

Provides filter options, operation results, fuzzy match results and registry
statistics used across the registry, search and ranking modules.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple, Union

from pydantic import BaseModel, Field, field_validator

from toolstudio.core.models import Tool, ToolCategory, utc_now


class SortBy(str, Enum):
    """Sort keys accepted by ``get_filtered``."""

    NAME = "name"
    USAGE = "usage"
    RECENT = "recent"
    CREATED = "created"
    RELEVANCE = "relevance"


class SortOrder(str, Enum):
    """Direction applied on top of a sort key's natural direction."""

    ASC = "asc"
    DESC = "desc"


class FilterOptions(BaseModel):
    """Options for filtered and sorted tool listings."""

    category: Union[ToolCategory, str] = Field(default="all", description="Category or 'all'")
    search: Optional[str] = Field(default=None, description="Search query")
    sort_by: Optional[SortBy] = Field(default=None, description="Sort key")
    sort_order: SortOrder = Field(default=SortOrder.ASC, description="Sort direction")
    favorites_first: bool = Field(default=False, description="Pin favorites to the top")
    use_fuzzy_search: bool = Field(default=False, description="Rank with fuzzy matching")
    enabled_only: bool = Field(default=False, description="Hide disabled tools")

    @field_validator("category", mode="before")
    @classmethod
    def validate_category(cls, v: Any) -> Union[ToolCategory, str]:
        """Accept 'all' or a member of the category enumeration."""
        if v is None or v == "all":
            return "all"
        return ToolCategory(v)

    @property
    def category_filter(self) -> Optional[ToolCategory]:
        """The category to keep, or None for all categories."""
        if self.category == "all":
            return None
        return ToolCategory(self.category)

    @property
    def has_search(self) -> bool:
        return bool(self.search and self.search.strip())

    def has_filters(self) -> bool:
        """Check if any filters are set."""
        return bool(
            self.category_filter is not None
            or self.has_search
            or self.enabled_only
        )


class OperationResult:
    """Outcome of a registry mutation."""

    def __init__(self, success: bool, errors: Optional[List[str]] = None,
                 tool: Optional[Tool] = None):
        self.success = success
        self.errors = list(errors or [])
        self.tool = tool

    @classmethod
    def ok(cls, tool: Optional[Tool] = None) -> "OperationResult":
        return cls(True, [], tool)

    @classmethod
    def failed(cls, errors: List[str]) -> "OperationResult":
        return cls(False, errors)

    def __bool__(self) -> bool:
        return self.success

    def __repr__(self) -> str:
        return f"OperationResult(success={self.success}, errors={self.errors})"

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "success": self.success,
            "errors": self.errors,
            "tool_id": self.tool.id if self.tool else None,
        }


@dataclass(frozen=True)
class FieldMatch:
    """Matched character positions within one searchable field."""

    key: str
    value: str
    positions: Tuple[int, ...]
    score: float

    @property
    def spans(self) -> List[Tuple[int, int]]:
        """Inclusive (start, end) runs of consecutive positions."""
        runs: List[Tuple[int, int]] = []
        for position in self.positions:
            if runs and runs[-1][1] == position - 1:
                runs[-1] = (runs[-1][0], position)
            else:
                runs.append((position, position))
        return runs


@dataclass(frozen=True)
class FuzzyMatch:
    """A ranked fuzzy search hit."""

    item: Any
    score: float
    matches: List[FieldMatch] = field(default_factory=list)

    def match_for(self, key: str) -> Optional[FieldMatch]:
        """Get the match details for a field, if that field matched."""
        for match in self.matches:
            if match.key == key:
                return match
        return None


@dataclass
class FilteredResult:
    """Filtered tools plus fuzzy highlight data keyed by tool id."""

    tools: List[Tool]
    matches: Dict[str, FuzzyMatch] = field(default_factory=dict)


class RegistryStats:
    """Statistics about the tool registry."""

    def __init__(self, total_tools: int, enabled_tools: int, favorite_tools: int,
                 used_tools: int, total_uses: int,
                 category_distribution: Dict[str, int],
                 last_used: Optional[datetime] = None):
        self.total_tools = total_tools
        self.enabled_tools = enabled_tools
        self.disabled_tools = total_tools - enabled_tools
        self.favorite_tools = favorite_tools
        self.used_tools = used_tools
        self.total_uses = total_uses
        self.category_distribution = category_distribution
        self.last_used = last_used
        self.generated_at = utc_now()

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "total_tools": self.total_tools,
            "enabled_tools": self.enabled_tools,
            "disabled_tools": self.disabled_tools,
            "favorite_tools": self.favorite_tools,
            "used_tools": self.used_tools,
            "total_uses": self.total_uses,
            "category_distribution": self.category_distribution,
            "last_used": self.last_used.isoformat() if self.last_used else None,
            "generated_at": self.generated_at.isoformat(),
        }
