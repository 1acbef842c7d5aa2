"""
Tool Studio - Tool registry and ranking engine.

Indexes local utility tools, tracks their usage, and finds and ranks them
with exact and fuzzy search.
"""

__version__ = "1.0.0"
__description__ = "Tool registry and ranking engine for a local-first launcher"

# Public API
from toolstudio.core.exceptions import ToolStudioError
from toolstudio.core.models import Tool, ToolCategory
from toolstudio.core.tools.models import FilterOptions, SortBy, SortOrder
from toolstudio.core.tools.tool_registry import ToolRegistryService

__all__ = [
    "__version__",
    "__description__",
    "ToolStudioError",
    "Tool",
    "ToolCategory",
    "FilterOptions",
    "SortBy",
    "SortOrder",
    "ToolRegistryService",
]
