"""Local persistence for the tool registry."""

from .database_manager import (
    KeyValueStore,
    MemoryKeyValueStore,
    SQLiteKeyValueStore,
    create_store,
)
from .persistence import CURRENT_SCHEMA_VERSION, ToolPersistence
from .usage_tracker import UsageTracker

__all__ = [
    "KeyValueStore",
    "MemoryKeyValueStore",
    "SQLiteKeyValueStore",
    "create_store",
    "CURRENT_SCHEMA_VERSION",
    "ToolPersistence",
    "UsageTracker",
]
