"""SQLite database initialisation for InstaSafar.

This module is responsible for:

* Opening (or creating) the SQLite file.
* Configuring low-level PRAGMA settings (WAL journal mode, foreign keys).
* Bootstrapping the schema via ``CREATE TABLE IF NOT EXISTS``, which is safe
  to call on every startup.

Consumers call :func:`open_db` once and hand the returned connection to
:class:`~instasafar.storage.persistence.SqliteKeyValueStore`.  The caller
closes the connection.

Typical usage::

    from instasafar.storage.database import open_db
    from instasafar.storage.persistence import SqliteKeyValueStore

    async def main() -> None:
        conn = await open_db()
        backend = SqliteKeyValueStore(conn)
        ...
        await conn.close()
"""

from __future__ import annotations

import logging
from pathlib import Path

import aiosqlite

__all__ = [
    "DEFAULT_DB_PATH",
    "open_db",
    "create_schema",
]

logger = logging.getLogger(__name__)

#: Fallback database path when no explicit path is passed to :func:`open_db`.
DEFAULT_DB_PATH: Path = Path("instasafar.db")

#: ``kv_store`` holds per-user UI state (wishlist, notifications) as JSON.
#:
#: key         Namespaced key, e.g. ``wishlist-<user_id>``.
#: value       JSON document.
#: updated_at  ISO-8601 UTC timestamp of the last write, set by the application.
_DDL_KV_STORE = """\
CREATE TABLE IF NOT EXISTS kv_store (
    key         TEXT  NOT NULL,
    value       TEXT  NOT NULL,
    updated_at  TEXT  NOT NULL,
    PRIMARY KEY (key)
)"""


async def open_db(path: Path | str | None = None) -> aiosqlite.Connection:
    """Open (or create) the SQLite database and bootstrap the schema.

    Args:
        path: Filesystem path for the SQLite file.  Defaults to
            :data:`DEFAULT_DB_PATH`.  ``":memory:"`` opens a throwaway database.

    Returns:
        An open, configured :class:`aiosqlite.Connection`.

    Raises:
        aiosqlite.OperationalError: If the database file cannot be opened.
    """
    if path == ":memory:":
        target: Path | str = ":memory:"
    else:
        db_path = Path(path or DEFAULT_DB_PATH)
        db_path.parent.mkdir(parents=True, exist_ok=True)
        target = db_path

    logger.debug("Opening SQLite database at %s", target)

    conn: aiosqlite.Connection = await aiosqlite.connect(target)
    conn.row_factory = aiosqlite.Row

    await _configure_pragmas(conn)
    await create_schema(conn)

    logger.info("SQLite database ready at %s", target)
    return conn


async def create_schema(conn: aiosqlite.Connection) -> None:
    """Create all required tables if they do not already exist."""
    await conn.execute(_DDL_KV_STORE)
    await conn.commit()
    logger.debug("Schema bootstrap complete (kv_store table verified)")


async def _configure_pragmas(conn: aiosqlite.Connection) -> None:
    """Enable WAL journaling and foreign-key enforcement."""
    result = await conn.execute("PRAGMA journal_mode=WAL")
    row = await result.fetchone()
    mode = row[0] if row else "unknown"
    if mode != "wal":
        logger.debug("SQLite journal_mode is %r (expected for ':memory:')", mode)

    await conn.execute("PRAGMA foreign_keys=ON")
