"""
Local key/value storage for Tool Studio.

Provides the durable store behind the persistence adapter and the usage
tracker: a single ``kv_store`` table in a SQLite database, plus an in-memory
store with the same interface for ephemeral sessions.
"""

import sqlite3
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Protocol, runtime_checkable

from toolstudio.core.exceptions import StorageError
from toolstudio.utils.config import Config, get_config
from toolstudio.utils.logging import get_logger

logger = get_logger(__name__)

# Stored layout of the kv_store table, tracked in PRAGMA user_version
STORE_SCHEMA_VERSION = 1


@runtime_checkable
class KeyValueStore(Protocol):
    """String-to-string store. Every ``set`` replaces the value atomically."""

    def get(self, key: str) -> Optional[str]: ...

    def set(self, key: str, value: str) -> None: ...

    def remove(self, key: str) -> bool: ...

    def keys(self) -> List[str]: ...

    def close(self) -> None: ...


class MemoryKeyValueStore:
    """Process-local store for ephemeral sessions and tests."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def remove(self, key: str) -> bool:
        return self._data.pop(key, None) is not None

    def keys(self) -> List[str]:
        return sorted(self._data)

    def close(self) -> None:
        pass


class SQLiteKeyValueStore:
    """Manages the SQLite database holding registry state."""

    def __init__(self, db_path: Optional[Path] = None):
        """
        Initialize the store and make sure its schema exists.

        Args:
            db_path: Path to SQLite database. If None, uses the configured path.

        Raises:
            StorageError: If the database cannot be opened or initialized
        """
        if db_path is None:
            db_path = get_config().database_path

        self.db_path = Path(db_path)
        self._ensure_database_ready()

        logger.info("Key/value store initialized", extra={
            "db_path": str(self.db_path)
        })

    def _ensure_database_ready(self) -> None:
        """Create the database directory and table if missing."""
        try:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)

            with self._connection() as conn:
                conn.execute("""
                    CREATE TABLE IF NOT EXISTS kv_store (
                        key TEXT PRIMARY KEY,
                        value TEXT NOT NULL,
                        updated_at TEXT NOT NULL
                    )
                """)
                version = conn.execute("PRAGMA user_version").fetchone()[0]
                if version > STORE_SCHEMA_VERSION:
                    raise StorageError(
                        f"Database layout version {version} is newer than supported "
                        f"version {STORE_SCHEMA_VERSION}",
                        error_code="STORE_SCHEMA_UNSUPPORTED",
                    )
                if version < STORE_SCHEMA_VERSION:
                    conn.execute(f"PRAGMA user_version = {STORE_SCHEMA_VERSION}")

        except StorageError:
            raise
        except (sqlite3.Error, OSError) as e:
            logger.error(f"Database initialization failed: {e}")
            raise StorageError(f"Database initialization failed: {e}") from e

    def get_connection(self) -> sqlite3.Connection:
        """
        Get a database connection.

        Returns:
            SQLite connection object
        """
        try:
            conn = sqlite3.connect(str(self.db_path))

            conn.execute("PRAGMA journal_mode=WAL")
            conn.execute("PRAGMA synchronous=NORMAL")
            conn.execute("PRAGMA temp_store=MEMORY")

            return conn

        except sqlite3.Error as e:
            logger.error(f"Failed to create database connection: {e}")
            raise StorageError(f"Failed to create database connection: {e}") from e

    @contextmanager
    def _connection(self) -> Iterator[sqlite3.Connection]:
        """Connection that commits on success, rolls back on error and always closes."""
        conn = self.get_connection()
        try:
            with conn:
                yield conn
        finally:
            conn.close()

    def get(self, key: str) -> Optional[str]:
        try:
            with self._connection() as conn:
                row = conn.execute(
                    "SELECT value FROM kv_store WHERE key = ?", (key,)
                ).fetchone()
        except sqlite3.Error as e:
            raise StorageError(f"Failed to read key '{key}': {e}") from e
        return row[0] if row else None

    def set(self, key: str, value: str) -> None:
        try:
            with self._connection() as conn:
                conn.execute(
                    """
                    INSERT INTO kv_store (key, value, updated_at) VALUES (?, ?, ?)
                    ON CONFLICT(key) DO UPDATE SET
                        value = excluded.value,
                        updated_at = excluded.updated_at
                    """,
                    (key, value, datetime.now().isoformat()),
                )
        except sqlite3.Error as e:
            raise StorageError(f"Failed to write key '{key}': {e}") from e

    def remove(self, key: str) -> bool:
        try:
            with self._connection() as conn:
                cursor = conn.execute("DELETE FROM kv_store WHERE key = ?", (key,))
                return cursor.rowcount > 0
        except sqlite3.Error as e:
            raise StorageError(f"Failed to remove key '{key}': {e}") from e

    def keys(self) -> List[str]:
        try:
            with self._connection() as conn:
                rows = conn.execute("SELECT key FROM kv_store ORDER BY key").fetchall()
        except sqlite3.Error as e:
            raise StorageError(f"Failed to list keys: {e}") from e
        return [row[0] for row in rows]

    def backup_database(self, backup_path: Optional[Path] = None) -> Path:
        """
        Create a backup of the database.

        Args:
            backup_path: Path for backup file. If None, generates timestamp-based name.

        Returns:
            Path to the created backup file
        """
        try:
            if backup_path is None:
                timestamp = str(int(datetime.now().timestamp()))
                backup_path = self.db_path.parent / f"{self.db_path.stem}_backup_{timestamp}.db"

            source_conn = self.get_connection()
            backup_conn = sqlite3.connect(str(backup_path))
            try:
                source_conn.backup(backup_conn)
            finally:
                backup_conn.close()
                source_conn.close()

            logger.info(f"Database backup created: {backup_path}")
            return backup_path

        except sqlite3.Error as e:
            logger.error(f"Database backup failed: {e}")
            raise StorageError(f"Database backup failed: {e}") from e

    def get_database_info(self) -> dict:
        """
        Get information about the database.

        Returns:
            Dictionary with database information
        """
        try:
            with self._connection() as conn:
                key_count = conn.execute("SELECT COUNT(*) FROM kv_store").fetchone()[0]
                schema_version = conn.execute("PRAGMA user_version").fetchone()[0]

            return {
                "path": str(self.db_path),
                "size_bytes": self.db_path.stat().st_size if self.db_path.exists() else 0,
                "key_count": key_count,
                "schema_version": schema_version,
                "exists": self.db_path.exists(),
            }

        except (sqlite3.Error, StorageError) as e:
            logger.error(f"Failed to get database info: {e}")
            return {"error": str(e)}

    def close(self) -> None:
        """Connections are opened per call; nothing is held between calls."""
        logger.debug("Key/value store closed")


def create_store(config: Optional[Config] = None) -> KeyValueStore:
    """Build the key/value store selected by the storage configuration."""
    config = config or get_config()
    if config.storage.backend == "memory":
        return MemoryKeyValueStore()
    return SQLiteKeyValueStore(config.database_path)
