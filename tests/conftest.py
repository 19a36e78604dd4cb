"""Shared pytest fixtures and configuration for the InstaSafar test suite.

This file is loaded automatically by pytest before any test module.
It provides project-wide fixtures used across unit and integration tests.
"""

from __future__ import annotations

import logging
import os
from collections.abc import AsyncIterator

import aiosqlite
import pytest
from pydantic_settings import SettingsConfigDict

from instasafar.core import configure_logging
from instasafar.core.settings import Settings
from instasafar.storage.database import open_db
from instasafar.storage.persistence import MemoryKeyValueStore, SqliteKeyValueStore


# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _configure_test_logging() -> None:
    """Force DEBUG logging in text format for every test.

    ``force=True`` applies the configuration even when pytest's own
    ``log_cli`` handler is already present.
    """
    configure_logging(level="DEBUG", fmt="text", force=True)


# ---------------------------------------------------------------------------
# Environment
# ---------------------------------------------------------------------------


@pytest.fixture()
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Remove every InstaSafar env var for the duration of a test.

    Also disables pydantic-settings ``.env`` loading so values from a local
    ``.env`` file do not leak into Settings isolation tests.
    """
    prefixes = (
        "API_",
        "DATABASE_",
        "COMPARISON_",
        "DEFAULT_CURRENCY",
        "LOG_LEVEL",
        "LOG_FORMAT",
    )
    for key in list(os.environ):
        if any(key.startswith(prefix) for prefix in prefixes):
            monkeypatch.delenv(key, raising=False)

    monkeypatch.setattr(
        Settings,
        "model_config",
        SettingsConfigDict(
            env_file=None,
            env_file_encoding="utf-8",
            extra="ignore",
        ),
    )


# ---------------------------------------------------------------------------
# Storage
# ---------------------------------------------------------------------------


@pytest.fixture()
def memory_backend() -> MemoryKeyValueStore:
    return MemoryKeyValueStore()


@pytest.fixture()
async def db() -> AsyncIterator[aiosqlite.Connection]:
    """In-memory SQLite connection with the schema applied."""
    conn = await open_db(":memory:")
    yield conn
    await conn.close()


@pytest.fixture()
def sqlite_backend(db: aiosqlite.Connection) -> SqliteKeyValueStore:
    return SqliteKeyValueStore(db)


# ---------------------------------------------------------------------------
# Misc helpers
# ---------------------------------------------------------------------------


@pytest.fixture()
def logger() -> logging.Logger:
    """Logger for test code, named ``tests``."""
    return logging.getLogger("tests")
