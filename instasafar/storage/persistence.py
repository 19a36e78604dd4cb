"""Swappable persistence backends for session-owned UI state.

The wishlist and notification stores never talk to a storage engine
directly; they are handed a :class:`KeyValueStore` and use its three
operations (load, save, clear by key).  That keeps the store logic identical
whether state lives in memory (tests, anonymous kiosks), in a local SQLite
file, or in some remote cache added later.

Values are JSON documents.  Backends serialise on save and deserialise on
load so every backend returns plain ``dict`` / ``list`` structures.
"""

from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from datetime import UTC, datetime
from typing import Any

import aiosqlite

from instasafar.core.exceptions import StorageError

__all__ = ["KeyValueStore", "MemoryKeyValueStore", "SqliteKeyValueStore"]

logger = logging.getLogger(__name__)


class KeyValueStore(ABC):
    """Abstract load / save / clear interface keyed by string."""

    @abstractmethod
    async def load(self, key: str) -> Any | None:
        """Return the document stored under *key*, or ``None`` if absent.

        Raises:
            StorageError: If the backend cannot be read, or the stored value
                is not valid JSON.
        """

    @abstractmethod
    async def save(self, key: str, value: Any) -> None:
        """Store *value* (JSON-serialisable) under *key*, replacing any previous value.

        Raises:
            StorageError: If the value cannot be serialised or written.
        """

    @abstractmethod
    async def clear(self, key: str) -> None:
        """Delete *key*; no-op when absent."""


def _dumps(key: str, value: Any) -> str:
    try:
        return json.dumps(value, default=str, ensure_ascii=False)
    except (TypeError, ValueError) as exc:
        raise StorageError(f"Value for {key!r} is not JSON-serialisable: {exc}") from exc


def _loads(key: str, raw: str) -> Any:
    try:
        return json.loads(raw)
    except json.JSONDecodeError as exc:
        raise StorageError(f"Corrupt JSON stored under {key!r}: {exc}") from exc


class MemoryKeyValueStore(KeyValueStore):
    """Process-local backend.

    Stores JSON text rather than live objects so callers can never mutate
    persisted state by accident, matching the behaviour of on-disk backends.
    """

    def __init__(self) -> None:
        self._data: dict[str, str] = {}

    async def load(self, key: str) -> Any | None:
        raw = self._data.get(key)
        return None if raw is None else _loads(key, raw)

    async def save(self, key: str, value: Any) -> None:
        self._data[key] = _dumps(key, value)

    async def clear(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self) -> list[str]:
        return sorted(self._data)


class SqliteKeyValueStore(KeyValueStore):
    """``aiosqlite`` backend over the ``kv_store`` table.

    Owns no connection lifecycle: pass a connection opened by
    :func:`~instasafar.storage.database.open_db` and close it yourself.

    Args:
        conn: Open connection with the schema applied.
    """

    def __init__(self, conn: aiosqlite.Connection) -> None:
        self._conn = conn

    async def load(self, key: str) -> Any | None:
        try:
            cursor = await self._conn.execute(
                "SELECT value FROM kv_store WHERE key = ? LIMIT 1",
                (key,),
            )
            row = await cursor.fetchone()
        except aiosqlite.Error as exc:
            raise StorageError(f"Failed to load {key!r}: {exc}") from exc
        if row is None:
            return None
        return _loads(key, row[0])

    async def save(self, key: str, value: Any) -> None:
        payload = _dumps(key, value)
        now_utc = datetime.now(UTC).isoformat()
        try:
            await self._conn.execute(
                """
                INSERT INTO kv_store (key, value, updated_at)
                VALUES (?, ?, ?)
                ON CONFLICT(key) DO UPDATE SET
                    value = excluded.value,
                    updated_at = excluded.updated_at
                """,
                (key, payload, now_utc),
            )
            await self._conn.commit()
        except aiosqlite.Error as exc:
            raise StorageError(f"Failed to save {key!r}: {exc}") from exc
        logger.debug("Saved %s (%d bytes)", key, len(payload))

    async def clear(self, key: str) -> None:
        try:
            await self._conn.execute("DELETE FROM kv_store WHERE key = ?", (key,))
            await self._conn.commit()
        except aiosqlite.Error as exc:
            raise StorageError(f"Failed to clear {key!r}: {exc}") from exc
        logger.debug("Cleared %s", key)
