"""Local recipe history with bounded retention.

The whole history is one JSON document (a list, most-recent-first) stored under
a single well-known key in a SQLite key-value table. Every operation completes
its read-modify-write before returning.

Lifecycle: construct once at process start, open(), pass the instance to
whoever needs it, close() on shutdown (or use it as a context manager).
"""

import json
import sqlite3
import time
import uuid
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Any, Callable, Optional

from pydantic import ValidationError

from cookiq.models.models import RecipeSet, StoredRecipeSet
from cookiq.utils.errors import StorageError
from cookiq.utils.logger import logger


HISTORY_KEY = "cookiq_history_v1"
DEFAULT_HISTORY_LIMIT = 20
EXPORT_PREFIX = "cookiq_database_export_"


def _epoch_millis() -> int:
    return int(time.time() * 1000)


def _new_id() -> str:
    return str(uuid.uuid4())


def export_file_name(today: date) -> str:
    """File name for a history export made on the given date."""
    return f"{EXPORT_PREFIX}{today.isoformat()}.json"


class HistoryStore:
    """Capped, most-recent-first persistence of accepted recipe sets."""

    def __init__(
        self,
        db_file: str = "cookiq.db",
        key: str = HISTORY_KEY,
        limit: int = DEFAULT_HISTORY_LIMIT,
        clock: Optional[Callable[[], int]] = None,
        id_factory: Optional[Callable[[], str]] = None,
    ) -> None:
        """Initialize HistoryStore.

        Args:
            db_file: SQLite database path (":memory:" for a throwaway store).
            key: Storage key holding the history document.
            limit: Maximum entries kept; older entries are dropped on save.
            clock: Returns the current time in epoch milliseconds.
            id_factory: Returns a new unique entry id.
        """
        if limit < 1:
            raise ValueError(f"History limit must be at least 1, got: {limit}")
        self.db_file = db_file
        self.key = key
        self.limit = limit
        self._clock = clock or _epoch_millis
        self._id_factory = id_factory or _new_id
        self._conn: Optional[sqlite3.Connection] = None

    def open(self) -> "HistoryStore":
        if self._conn is not None:
            return self
        try:
            self._conn = sqlite3.connect(self.db_file)
            self._conn.execute("CREATE TABLE IF NOT EXISTS kv (key TEXT PRIMARY KEY, value TEXT NOT NULL)")
            self._conn.commit()
        except sqlite3.Error as e:
            raise StorageError(f"Failed to open history database {self.db_file}: {e}") from e
        logger.debug(f"History store opened: {self.db_file}")
        return self

    def close(self) -> None:
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    def __enter__(self) -> "HistoryStore":
        return self.open()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    @property
    def conn(self) -> sqlite3.Connection:
        if self._conn is None:
            raise RuntimeError("HistoryStore is not open; call open() or use 'with'")
        return self._conn

    def _read_raw(self) -> list[dict[str, Any]]:
        try:
            row = self.conn.execute("SELECT value FROM kv WHERE key = ?", (self.key,)).fetchone()
        except sqlite3.Error as e:
            raise StorageError(f"Failed to read history: {e}") from e
        if row is None:
            return []
        try:
            data = json.loads(row[0])
        except json.JSONDecodeError as e:
            logger.error(f"Failed to parse history: {e}")
            return []
        if not isinstance(data, list):
            logger.error(f"Failed to parse history: expected a list, got {type(data).__name__}")
            return []
        return [item for item in data if isinstance(item, dict)]

    def _write_raw(self, items: list[dict[str, Any]]) -> None:
        try:
            with self.conn:
                self.conn.execute(
                    "INSERT INTO kv (key, value) VALUES (?, ?) "
                    "ON CONFLICT(key) DO UPDATE SET value = excluded.value",
                    (self.key, json.dumps(items, ensure_ascii=False)),
                )
        except sqlite3.Error as e:
            raise StorageError(f"Failed to write history: {e}") from e

    def save(self, recipe_set: RecipeSet) -> StoredRecipeSet:
        """Stamp and prepend a recipe set, keeping only the newest `limit` entries.

        Returns:
            StoredRecipeSet: The persisted entry with its id and timestamp.

        Raises:
            StorageError: If the write fails.
        """
        entry = {**recipe_set.to_json_dict(), "id": self._id_factory(), "timestamp": self._clock()}
        stored = StoredRecipeSet.model_validate(entry)

        history = [stored.to_json_dict(), *self._read_raw()][: self.limit]
        self._write_raw(history)
        logger.info(
            f"Saved recipe set {stored.id} ({len(history)}/{self.limit} in history)",
            extra={"recipe_set_id": stored.id},
        )
        return stored

    def list_all(self) -> list[StoredRecipeSet]:
        """Return every stored entry, most recent first. Unreadable entries are skipped."""
        entries = []
        for item in self._read_raw():
            try:
                entries.append(StoredRecipeSet.model_validate(item))
            except ValidationError as e:
                logger.warning(f"Skipping unreadable history entry {item.get('id')}: {e.error_count()} error(s)")
        return entries

    def get_by_id(self, recipe_set_id: str) -> Optional[StoredRecipeSet]:
        for entry in self.list_all():
            if entry.id == recipe_set_id:
                return entry
        return None

    def delete_by_id(self, recipe_set_id: str) -> None:
        """Remove one entry. Unknown ids leave the collection unchanged."""
        history = self._read_raw()
        remaining = [item for item in history if item.get("id") != recipe_set_id]
        if len(remaining) == len(history):
            logger.debug(f"No history entry with id {recipe_set_id}")
            return
        self._write_raw(remaining)
        logger.info(f"Deleted recipe set {recipe_set_id}")

    def clear_all(self) -> None:
        try:
            with self.conn:
                self.conn.execute("DELETE FROM kv WHERE key = ?", (self.key,))
        except sqlite3.Error as e:
            raise StorageError(f"Failed to clear history: {e}") from e
        logger.info("History cleared")

    def export_json(self, directory: str | Path = ".", today: Optional[date] = None) -> Path:
        """Write the stored history document as pretty-printed JSON named with the date.

        Entries are exported as stored, including ones list_all() would skip.

        Args:
            directory: Destination directory (created if missing).
            today: Date used in the file name (defaults to the current UTC date).

        Returns:
            Path: The written export file.

        Raises:
            StorageError: If the file cannot be written.
        """
        today = today or datetime.now(timezone.utc).date()
        path = Path(directory) / export_file_name(today)
        data = self._read_raw()
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(json.dumps(data, indent=2, ensure_ascii=False), encoding="utf-8")
        except OSError as e:
            raise StorageError(f"Failed to export history to {path}: {e}") from e
        logger.info(f"Exported {len(data)} recipe set(s) to {path}")
        return path
