"""Core Tool Studio functionality."""

from toolstudio.core.exceptions import StorageError, ToolStudioError, ValidationError
from toolstudio.core.models import Tool, ToolCategory, UsageRecord

__all__ = [
    "ToolStudioError",
    "StorageError",
    "ValidationError",
    "Tool",
    "ToolCategory",
    "UsageRecord",
]
