"""
Versioned persistence of the tool collection.

The whole collection is stored as one JSON envelope under a single key and
replaced on every save. The envelope's ``schemaVersion`` selects the decode
path; layouts newer than this build understands are rejected rather than
guessed at.
"""

import json
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

from pydantic import ValidationError as PydanticValidationError

from toolstudio.core.exceptions import StorageError, UnsupportedSchemaError
from toolstudio.core.models import Tool, from_persisted_tool, to_persisted_tool
from toolstudio.core.storage.database_manager import KeyValueStore
from toolstudio.utils.logging import get_logger

logger = get_logger(__name__)

CURRENT_SCHEMA_VERSION = 1

SCHEMA_VERSION_KEY = "schemaVersion"

# Version key written by the first release of the envelope
LEGACY_SCHEMA_VERSION_KEY = "__schemaVersion"


def _records_from_list(data: Any) -> List[Any]:
    """Version 0: a bare JSON list of tool records, no envelope."""
    return list(data)


def _records_from_envelope(data: Any) -> List[Any]:
    """Version 1: ``{"schemaVersion": 1, "tools": [...]}``."""
    records = data.get("tools", [])
    if not isinstance(records, list):
        raise ValueError("'tools' must be a list")
    return records


_DECODERS: Dict[int, Callable[[Any], List[Any]]] = {
    0: _records_from_list,
    1: _records_from_envelope,
}


def read_schema_version(data: Any) -> int:
    """
    Determine the layout version of decoded JSON.

    Raises:
        ValueError: If the data is not a list or an object with an integer version
        UnsupportedSchemaError: If the version is unknown or newer than supported
    """
    if isinstance(data, list):
        return 0
    if not isinstance(data, dict):
        raise ValueError(f"expected an object or a list, got {type(data).__name__}")

    version = data.get(SCHEMA_VERSION_KEY, data.get(LEGACY_SCHEMA_VERSION_KEY))
    if isinstance(version, bool) or not isinstance(version, int):
        raise ValueError(f"schema version must be an integer, got {version!r}")
    if version not in _DECODERS:
        raise UnsupportedSchemaError(version, CURRENT_SCHEMA_VERSION)
    return version


class ToolPersistence:
    """Loads and saves the tool collection through a key/value store."""

    def __init__(self, store: KeyValueStore, key: str = "tools"):
        """
        Initialize tool persistence.

        Args:
            store: Key/value store holding the envelope
            key: Key under which the envelope is stored
        """
        self.store = store
        self.key = key
        self.last_error: Optional[str] = None
        self.loaded_version: Optional[int] = None

    def load(self) -> List[Tool]:
        """
        Load the persisted collection.

        Records that fail to decode are skipped. Missing, unreadable or
        corrupt envelopes yield an empty collection; a corrupt one is
        replaced by the next save.

        Returns:
            Tools in stored order

        Raises:
            UnsupportedSchemaError: If the envelope was written by a newer layout
        """
        try:
            raw = self.store.get(self.key)
        except StorageError as e:
            self._record_failure("Failed to read tool collection", e)
            return []

        if raw is None:
            logger.debug("No persisted tool collection found")
            return []

        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            self._record_failure("Persisted tool collection is not valid JSON", e)
            return []

        try:
            version = read_schema_version(data)
            records = _DECODERS[version](data)
        except ValueError as e:
            self._record_failure("Persisted tool envelope is malformed", e)
            return []

        tools, skipped = self._decode_records(records)
        self.loaded_version = version
        self.last_error = None

        logger.info("Loaded persisted tools", extra={
            "schema_version": version,
            "loaded": len(tools),
            "skipped": skipped,
        })
        return tools

    def _decode_records(self, records: Iterable[Any]) -> Tuple[List[Tool], int]:
        tools: List[Tool] = []
        seen_ids = set()
        skipped = 0

        for record in records:
            if not isinstance(record, dict):
                logger.warning("Skipping persisted tool record that is not an object")
                skipped += 1
                continue
            try:
                tool = from_persisted_tool(record)
            except PydanticValidationError as e:
                logger.warning("Skipping invalid persisted tool record", extra={
                    "tool_id": record.get("id"),
                    "error": str(e),
                })
                skipped += 1
                continue
            if tool.id in seen_ids:
                logger.warning("Skipping duplicate persisted tool record", extra={
                    "tool_id": tool.id
                })
                skipped += 1
                continue
            seen_ids.add(tool.id)
            tools.append(tool)

        return tools, skipped

    def save(self, tools: Iterable[Tool]) -> bool:
        """
        Replace the persisted collection.

        Args:
            tools: Full collection to store

        Returns:
            True if the write succeeded
        """
        envelope = {
            SCHEMA_VERSION_KEY: CURRENT_SCHEMA_VERSION,
            "tools": [to_persisted_tool(tool) for tool in tools],
        }
        try:
            self.store.set(self.key, json.dumps(envelope))
        except StorageError as e:
            self._record_failure("Failed to persist tool collection", e)
            return False

        self.last_error = None
        logger.debug("Persisted tool collection", extra={
            "tool_count": len(envelope["tools"])
        })
        return True

    def clear(self) -> bool:
        """Remove the persisted collection."""
        try:
            self.store.remove(self.key)
        except StorageError as e:
            self._record_failure("Failed to clear tool collection", e)
            return False
        return True

    def _record_failure(self, message: str, error: Exception) -> None:
        self.last_error = f"{message}: {error}"
        logger.error(message, extra={"key": self.key, "error": str(error)})
