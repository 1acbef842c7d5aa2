"""
Usage counters for tools.

Counters live under their own key so that clearing usage history never
touches the tool collection, and they are the source of truth for usage
statistics.
"""

import json
from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import ValidationError as PydanticValidationError

from toolstudio.core.exceptions import StorageError
from toolstudio.core.models import UsageRecord, to_persisted_usage, utc_now
from toolstudio.core.storage.database_manager import KeyValueStore
from toolstudio.utils.logging import get_logger

logger = get_logger(__name__)

# Version markers older releases kept inside the usage map
_IGNORED_KEYS = {"__schemaVersion", "schemaVersion"}


def _decode_usage(tool_id: str, value: Any) -> Optional[UsageRecord]:
    # Older releases stored a bare integer count
    if isinstance(value, int) and not isinstance(value, bool):
        return UsageRecord(usage_count=value) if value >= 0 else None
    if isinstance(value, dict):
        try:
            return UsageRecord.model_validate(value)
        except PydanticValidationError as e:
            logger.warning("Skipping invalid usage record", extra={
                "tool_id": tool_id, "error": str(e)
            })
    return None


class UsageTracker:
    """Durable per-tool usage counters."""

    def __init__(self, store: KeyValueStore, key: str = "usage"):
        self.store = store
        self.key = key
        self.last_error: Optional[str] = None

    def get(self) -> Dict[str, UsageRecord]:
        """
        Get all usage counters.

        Returns:
            Mapping of tool id to usage record; empty if unreadable
        """
        usage = self._load()
        return usage if usage is not None else {}

    def _load(self) -> Optional[Dict[str, UsageRecord]]:
        """
        Read the usage map.

        Returns:
            None when the store could not be read. Corrupt payloads decode
            as an empty map; both cases set ``last_error``.
        """
        self.last_error = None
        try:
            raw = self.store.get(self.key)
        except StorageError as e:
            self._record_failure("Failed to read usage data", e)
            return None

        if raw is None:
            return {}

        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            self._record_failure("Persisted usage data is not valid JSON", e)
            return {}

        if not isinstance(data, dict):
            self._record_failure("Persisted usage data is not an object",
                                 ValueError(type(data).__name__))
            return {}

        usage: Dict[str, UsageRecord] = {}
        for tool_id, value in data.items():
            if tool_id in _IGNORED_KEYS:
                continue
            record = _decode_usage(tool_id, value)
            if record is not None:
                usage[tool_id] = record
        return usage

    def get_record(self, tool_id: str) -> Optional[UsageRecord]:
        return self.get().get(tool_id)

    def record_use(self, tool_id: str, when: Optional[datetime] = None) -> bool:
        """
        Count one use of a tool.

        Args:
            tool_id: Tool id; a missing counter starts at 1
            when: Time of use, defaults to now

        Returns:
            True if the counter was stored; False if the usage map could
            not be read or written
        """
        usage = self._load()
        if usage is None:
            return False
        current = usage.get(tool_id, UsageRecord())
        usage[tool_id] = current.incremented(when or utc_now())

        logger.debug("Recording tool use", extra={
            "tool_id": tool_id,
            "usage_count": usage[tool_id].usage_count,
        })
        return self._write(usage)

    def update_record(self, tool_id: str, usage_count: Optional[int] = None,
                      last_used: Optional[datetime] = None) -> bool:
        """Overwrite parts of one counter, creating it if needed."""
        usage = self._load()
        if usage is None:
            return False
        current = usage.get(tool_id, UsageRecord())
        updates: Dict[str, Any] = {}
        if usage_count is not None:
            updates["usage_count"] = usage_count
        if last_used is not None:
            updates["last_used"] = last_used
        usage[tool_id] = UsageRecord.model_validate({**current.model_dump(), **updates})
        return self._write(usage)

    def reset(self, tool_id: str) -> bool:
        """Remove the counter of one tool."""
        usage = self._load()
        if usage is None:
            return False
        if usage.pop(tool_id, None) is None:
            return True
        return self._write(usage)

    def clear(self) -> bool:
        """Remove all counters. Tool records are not touched."""
        try:
            self.store.remove(self.key)
        except StorageError as e:
            self._record_failure("Failed to clear usage data", e)
            return False
        logger.info("Usage history cleared")
        return True

    def _write(self, usage: Dict[str, UsageRecord]) -> bool:
        payload = {tool_id: to_persisted_usage(record) for tool_id, record in usage.items()}
        try:
            self.store.set(self.key, json.dumps(payload))
        except StorageError as e:
            self._record_failure("Failed to persist usage data", e)
            return False
        self.last_error = None
        return True

    def _record_failure(self, message: str, error: Exception) -> None:
        self.last_error = f"{message}: {error}"
        logger.error(message, extra={"key": self.key, "error": str(error)})
