"""Static data shipped with Tool Studio."""

from toolstudio.data.default_tools import (
    DEFAULT_TOOLS,
    get_available_categories,
    get_default_tool,
    get_default_tools_by_category,
)

__all__ = [
    "DEFAULT_TOOLS",
    "get_available_categories",
    "get_default_tool",
    "get_default_tools_by_category",
]
