"""
Main orchestration module for the Tool Studio registry.

Holds the authoritative in-memory collection and coordinates validation,
persistence, usage tracking and search. The registry is an ordinary object
owned by its caller: construct it, call ``initialize`` once, and ``close``
it when done.
"""

from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

from pydantic import ValidationError as PydanticValidationError

from toolstudio.core.exceptions import RegistryNotInitializedError, UnsupportedSchemaError
from toolstudio.core.models import Tool, ToolCategory, utc_now
from toolstudio.core.storage.database_manager import KeyValueStore, create_store
from toolstudio.core.storage.persistence import ToolPersistence
from toolstudio.core.storage.usage_tracker import UsageTracker
from toolstudio.core.tools.fuzzy_search import FuzzyRanker
from toolstudio.core.tools.models import (
    FilteredResult,
    FilterOptions,
    FuzzyMatch,
    OperationResult,
    RegistryStats,
    SortBy,
)
from toolstudio.core.tools.search_service import ToolSearchService, sort_tools
from toolstudio.core.tools.validation import (
    PROTECTED_FIELDS,
    format_model_errors,
    normalize_tool_fields,
    validate_tool,
    validate_tool_updates,
)
from toolstudio.utils.config import Config, get_config
from toolstudio.utils.logging import get_logger

logger = get_logger(__name__)

ToolData = Union[Tool, Mapping[str, Any]]
Options = Union[FilterOptions, Mapping[str, Any], None]


def _as_field_dict(data: ToolData) -> Dict[str, Any]:
    if isinstance(data, Tool):
        return data.model_dump()
    return normalize_tool_fields(data)


class ToolRegistryService:
    """
    Main orchestration service for the tool registry.

    Every operation except ``initialize`` requires an initialized registry.
    Query operations return copies; all changes go through the named
    mutation methods.
    """

    def __init__(self, store: Optional[KeyValueStore] = None,
                 config: Optional[Config] = None):
        """
        Initialize tool registry service.

        Args:
            store: Key/value store. If None, built from the storage configuration.
            config: Configuration. If None, the global configuration is used.
        """
        self.config = config or get_config()
        self.store = store if store is not None else create_store(self.config)

        self.persistence = ToolPersistence(self.store, self.config.storage.tools_key)
        self.usage_tracker = UsageTracker(self.store, self.config.storage.usage_key)
        self.search_service = ToolSearchService(FuzzyRanker(self.config.search))

        self._tools: Dict[str, Tool] = {}
        self._initialized = False
        self._read_only_storage = False
        self._last_persistence_error: Optional[str] = None

    # ========== Lifecycle ==========

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    @property
    def persistence_healthy(self) -> bool:
        """False while the last storage write or read failed."""
        return self._last_persistence_error is None

    @property
    def last_persistence_error(self) -> Optional[str]:
        return self._last_persistence_error

    @property
    def read_only_storage(self) -> bool:
        """True when stored data uses a newer schema and must not be overwritten."""
        return self._read_only_storage

    def initialize(self, defaults: Iterable[ToolData] = ()) -> None:
        """
        Load persisted tools, merge defaults and sync usage counters.

        Only the first call has an effect.

        Args:
            defaults: Built-in tools added when their id is not yet registered
        """
        if self._initialized:
            return

        try:
            loaded = self.persistence.load()
        except UnsupportedSchemaError as e:
            logger.error("Stored tools use an unsupported schema; leaving them untouched",
                         extra={"error_code": e.error_code, "details": e.details})
            self._read_only_storage = True
            self._last_persistence_error = str(e)
            loaded = []

        for tool in loaded:
            self._accept_loaded(tool)

        added_defaults = self._merge_defaults(defaults)
        self._sync_usage_data()

        self._initialized = True
        self._persist()

        logger.info("Tool registry initialized", extra={
            "tool_count": len(self._tools),
            "loaded": len(loaded),
            "defaults_added": added_defaults,
            "read_only_storage": self._read_only_storage,
        })

    def _accept_loaded(self, tool: Tool) -> bool:
        """Register a stored tool unless it breaks a collection invariant."""
        errors = validate_tool(tool)
        if self._find_by_path(tool.path) is not None:
            errors.append(f'Tool with path "{tool.path}" already exists')
        if errors:
            logger.warning("Skipping invalid persisted tool", extra={
                "tool_id": tool.id, "errors": errors
            })
            return False
        self._tools[tool.id] = tool
        return True

    def _merge_defaults(self, defaults: Iterable[ToolData]) -> int:
        added = 0
        for default in defaults:
            data = _as_field_dict(default)
            tool_id = data.get("id")
            if tool_id in self._tools:
                continue

            errors = validate_tool(data)
            if self._find_by_path(data.get("path")) is not None:
                errors.append(f'Tool with path "{data.get("path")}" already exists')
            if not errors:
                try:
                    tool = default if isinstance(default, Tool) else Tool.model_validate(data)
                except PydanticValidationError as e:
                    errors = format_model_errors(e)
            if errors:
                logger.warning("Skipping invalid default tool", extra={
                    "tool_id": tool_id, "errors": errors
                })
                continue

            self._tools[tool.id] = tool
            added += 1
        return added

    def _sync_usage_data(self) -> None:
        """Copy tracker counters into the tool records."""
        usage = self.usage_tracker.get()
        if self.usage_tracker.last_error is not None:
            # Keep cached counters rather than zeroing them on a failed read
            self._last_persistence_error = self.usage_tracker.last_error
            return

        for tool_id, tool in list(self._tools.items()):
            record = usage.get(tool_id)
            usage_count = record.usage_count if record else 0
            last_used = record.last_used if record and usage_count > 0 else None
            if (tool.usage_count, tool.last_used) != (usage_count, last_used):
                self._tools[tool_id] = tool.model_copy(update={
                    "usage_count": usage_count,
                    "last_used": last_used,
                })

    def close(self) -> None:
        """Release the store and return to the uninitialized state."""
        self.store.close()
        self._tools.clear()
        self._initialized = False
        logger.debug("Tool registry closed")

    def _require_initialized(self, operation: str) -> None:
        if not self._initialized:
            raise RegistryNotInitializedError(operation)

    def _persist(self) -> bool:
        """Write the full collection; failures leave memory authoritative."""
        if self._read_only_storage:
            logger.debug("Skipping save: stored schema is newer than supported")
            return False
        saved = self.persistence.save(self._tools.values())
        self._last_persistence_error = self.persistence.last_error
        return saved

    # ========== Queries ==========

    def _snapshot(self) -> List[Tool]:
        return [tool.model_copy(deep=True) for tool in self._tools.values()]

    def _find_by_path(self, path: Any, exclude_id: Optional[str] = None) -> Optional[Tool]:
        for tool in self._tools.values():
            if tool.path == path and tool.id != exclude_id:
                return tool
        return None

    def get_all(self) -> List[Tool]:
        """
        Get all tools.

        Returns:
            Copies of all tools in insertion order
        """
        self._require_initialized("get_all")
        return self._snapshot()

    def get(self, tool_id: str) -> Optional[Tool]:
        """
        Get a tool by its id.

        Returns:
            A copy of the tool, or None if it is not registered
        """
        self._require_initialized("get")
        tool = self._tools.get(tool_id)
        return tool.model_copy(deep=True) if tool else None

    def get_by_category(self, category: Union[ToolCategory, str]) -> List[Tool]:
        self._require_initialized("get_by_category")
        category = ToolCategory(category)
        return [t for t in self._snapshot() if t.category == category]

    def get_favorites(self) -> List[Tool]:
        self._require_initialized("get_favorites")
        return [t for t in self._snapshot() if t.is_favorite]

    def get_recently_used(self, limit: int = 5) -> List[Tool]:
        """Used tools, most recent first."""
        self._require_initialized("get_recently_used")
        used = [t for t in self._snapshot() if t.last_used is not None]
        return sort_tools(used, SortBy.RECENT)[:limit]

    def get_most_used(self, limit: int = 5) -> List[Tool]:
        """Tools by descending usage count."""
        self._require_initialized("get_most_used")
        return sort_tools(self._snapshot(), SortBy.USAGE)[:limit]

    def search(self, query: str) -> List[Tool]:
        """
        Exact substring search across name, description and tags.

        Args:
            query: Case-insensitive search text

        Returns:
            Matching tools in insertion order
        """
        self._require_initialized("search")
        return self.search_service.search(self._snapshot(), query)

    def fuzzy_search(self, query: str) -> List[FuzzyMatch]:
        """
        Ranked fuzzy search.

        Args:
            query: Free-text query

        Returns:
            FuzzyMatch list by descending relevance
        """
        self._require_initialized("fuzzy_search")
        return self.search_service.fuzzy_search(self._snapshot(), query)

    def get_filtered(self, options: Options = None, **kwargs: Any) -> List[Tool]:
        """
        Filtered and sorted tool listing.

        Args:
            options: FilterOptions or a mapping of its fields
            **kwargs: FilterOptions fields, used when options is omitted

        Returns:
            List of tools
        """
        self._require_initialized("get_filtered")
        return self._filter(options, kwargs).tools

    def get_filtered_with_matches(self, options: Options = None, **kwargs: Any) -> FilteredResult:
        """Like ``get_filtered`` but also returns fuzzy highlight data by tool id."""
        self._require_initialized("get_filtered_with_matches")
        return self._filter(options, kwargs)

    def _filter(self, options: Options, kwargs: Dict[str, Any]) -> FilteredResult:
        if options is None:
            options = FilterOptions(**kwargs)
        elif not isinstance(options, FilterOptions):
            options = FilterOptions(**dict(options))
        return self.search_service.filter_tools(self._snapshot(), options)

    def get_registry_stats(self) -> RegistryStats:
        self._require_initialized("get_registry_stats")
        return self.search_service.get_registry_stats(list(self._tools.values()))

    # ========== Mutations ==========

    def add_tool(self, data: ToolData) -> OperationResult:
        """
        Add a new tool.

        Generated fields (usage count, last use, creation time) are set by
        the registry and override anything in ``data``.

        Args:
            data: Tool fields

        Returns:
            OperationResult carrying every violation on failure
        """
        self._require_initialized("add_tool")
        fields = _as_field_dict(data)
        errors = validate_tool(fields)

        tool_id = fields.get("id")
        if isinstance(tool_id, str) and tool_id in self._tools:
            errors.append(f'Tool with ID "{tool_id}" already exists')

        path = fields.get("path")
        if isinstance(path, str) and self._find_by_path(path) is not None:
            errors.append(f'Tool with path "{path}" already exists')

        if errors:
            logger.info("Rejected new tool", extra={"tool_id": tool_id, "errors": errors})
            return OperationResult.failed(errors)

        fields.update(usage_count=0, last_used=None, created_at=utc_now())
        try:
            tool = Tool.model_validate(fields)
        except PydanticValidationError as e:
            return OperationResult.failed(format_model_errors(e))

        self._tools[tool.id] = tool
        self._persist()

        logger.info("Tool added", extra={"tool_id": tool.id})
        return OperationResult.ok(tool.model_copy(deep=True))

    def update_tool(self, tool_id: str, updates: Mapping[str, Any]) -> OperationResult:
        """
        Update fields of an existing tool.

        Args:
            tool_id: Tool id
            updates: Partial fields; registry-owned fields must keep their value

        Returns:
            OperationResult carrying every violation on failure
        """
        self._require_initialized("update_tool")
        existing = self._tools.get(tool_id)
        if existing is None:
            return OperationResult.failed([f'Tool with ID "{tool_id}" not found'])

        current = existing.model_dump()
        changes = {
            key: value for key, value in normalize_tool_fields(updates).items()
            if not (key in PROTECTED_FIELDS and current.get(key) == value)
        }
        errors = validate_tool_updates(changes)

        merged = {**current, **{k: v for k, v in changes.items() if k not in PROTECTED_FIELDS}}
        errors.extend(validate_tool(merged))

        new_path = merged.get("path")
        if new_path != existing.path and self._find_by_path(new_path, exclude_id=tool_id):
            errors.append(f'Tool with path "{new_path}" already exists')

        if errors:
            logger.info("Rejected tool update", extra={"tool_id": tool_id, "errors": errors})
            return OperationResult.failed(errors)

        try:
            updated = Tool.model_validate(merged)
        except PydanticValidationError as e:
            return OperationResult.failed(format_model_errors(e))

        self._tools[tool_id] = updated
        self._persist()

        logger.info("Tool updated", extra={"tool_id": tool_id, "fields": sorted(changes)})
        return OperationResult.ok(updated.model_copy(deep=True))

    def remove_tool(self, tool_id: str) -> bool:
        """
        Remove a tool. Its usage history is kept.

        Returns:
            True if the tool existed
        """
        self._require_initialized("remove_tool")
        if self._tools.pop(tool_id, None) is None:
            return False

        self._persist()
        logger.info("Tool removed", extra={"tool_id": tool_id})
        return True

    def toggle_favorite(self, tool_id: str) -> bool:
        """
        Flip a tool's favorite flag.

        Returns:
            True if the tool existed
        """
        self._require_initialized("toggle_favorite")
        tool = self._tools.get(tool_id)
        if tool is None:
            return False

        self._tools[tool_id] = tool.model_copy(update={"is_favorite": not tool.is_favorite})
        self._persist()
        return True

    def record_usage(self, tool_id: str) -> bool:
        """
        Record one use of a tool.

        Updates the in-memory counter and the usage tracker only; the tool
        collection is not re-serialized. The in-memory counter advances even
        when the tracker cannot be written, so memory runs ahead of storage
        until the next ``initialize`` reloads the stored counters.

        Returns:
            True if the tool existed
        """
        self._require_initialized("record_usage")
        tool = self._tools.get(tool_id)
        if tool is None:
            return False

        now = utc_now()
        self._tools[tool_id] = tool.model_copy(update={
            "usage_count": tool.usage_count + 1,
            "last_used": now,
        })

        if self.usage_tracker.record_use(tool_id, now):
            self._last_persistence_error = None
        else:
            self._last_persistence_error = self.usage_tracker.last_error
        return True

    def reset_usage(self, tool_id: Optional[str] = None) -> bool:
        """
        Reset usage counters, for one tool or for all tools.

        Returns:
            False if a tool id was given and is not registered
        """
        self._require_initialized("reset_usage")
        if tool_id is None:
            targets = list(self._tools)
            tracker_ok = self.usage_tracker.clear()
        else:
            if tool_id not in self._tools:
                return False
            targets = [tool_id]
            tracker_ok = self.usage_tracker.reset(tool_id)

        for target in targets:
            self._tools[target] = self._tools[target].model_copy(update={
                "usage_count": 0,
                "last_used": None,
            })

        self._persist()
        if not tracker_ok:
            self._last_persistence_error = self.usage_tracker.last_error

        logger.info("Usage reset", extra={"tool_id": tool_id or "all"})
        return True
