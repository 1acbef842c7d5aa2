"""
Data models for Tool Studio.

Defines the Pydantic models for tools and usage counters together with the
conversions between runtime models and their persisted JSON records.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

# Entry points of every tool live under this route.
TOOL_PATH_PREFIX = "/tools/"


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


class ToolCategory(str, Enum):
    """Closed set of tool categories."""

    PRODUCTIVITY = "productivity"
    DEVELOPMENT = "development"
    DESIGN = "design"
    UTILITIES = "utilities"
    COMMUNICATION = "communication"
    FINANCE = "finance"


class Tool(BaseModel):
    """
    A launcher tool.

    Instances are frozen: the registry produces modified copies through
    ``model_copy(update=...)`` and hands out deep copies to callers.
    """

    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        alias_generator=to_camel,
    )

    id: str = Field(description="URL-safe slug, immutable")
    name: str = Field(description="Display name")
    description: str = Field(description="Short description")
    category: ToolCategory = Field(description="Tool category")
    icon: str = Field(description="Presentation icon reference")
    path: str = Field(description="Route of the tool entry point")
    preview: Optional[str] = Field(default=None, description="Preview image reference")
    usage_count: int = Field(default=0, ge=0, description="Number of recorded uses")
    last_used: Optional[datetime] = Field(default=None, description="Last recorded use")
    is_favorite: bool = Field(default=False, description="Starred by the user")
    tags: List[str] = Field(default_factory=list, description="Search and display tags")
    created_at: datetime = Field(default_factory=utc_now, description="Creation time")
    version: str = Field(description="The tool's own revision")
    is_enabled: Optional[bool] = Field(default=None, description="None means enabled")

    @model_validator(mode="after")
    def check_usage_timestamp(self) -> "Tool":
        """A last-used timestamp only exists once a use was recorded."""
        if self.last_used is not None and self.usage_count == 0:
            raise ValueError("last_used is set but usage_count is 0")
        return self

    @property
    def enabled(self) -> bool:
        return self.is_enabled is not False

    def __str__(self) -> str:
        return f"{self.name} ({self.id})"


class UsageRecord(BaseModel):
    """Usage counter of a single tool."""

    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        alias_generator=to_camel,
    )

    usage_count: int = Field(default=0, ge=0)
    last_used: Optional[datetime] = None

    def incremented(self, when: Optional[datetime] = None) -> "UsageRecord":
        """Return the record after one more use."""
        return UsageRecord(
            usage_count=self.usage_count + 1,
            last_used=when or utc_now(),
        )


# Optional keys omitted from persisted records when unset
_OPTIONAL_PERSISTED_KEYS = ("preview", "isEnabled")


def to_persisted_tool(tool: Tool) -> Dict[str, Any]:
    """Convert a tool to its persisted JSON record (camelCase, ISO timestamps)."""
    record = tool.model_dump(mode="json", by_alias=True)
    for key in _OPTIONAL_PERSISTED_KEYS:
        if record.get(key) is None:
            record.pop(key, None)
    return record


def from_persisted_tool(record: Mapping[str, Any]) -> Tool:
    """
    Convert a persisted record to a runtime tool.

    Raises:
        pydantic.ValidationError: If the record is malformed
    """
    return Tool.model_validate(dict(record))


def to_persisted_usage(record: UsageRecord) -> Dict[str, Any]:
    return record.model_dump(mode="json", by_alias=True)
