"""Persistence backends and the session-owned wishlist / notification stores."""

from instasafar.storage.database import DEFAULT_DB_PATH, create_schema, open_db
from instasafar.storage.notifications import Notification, NotificationStore
from instasafar.storage.persistence import (
    KeyValueStore,
    MemoryKeyValueStore,
    SqliteKeyValueStore,
)
from instasafar.storage.wishlist import WishlistItem, WishlistItemType, WishlistStore

__all__ = [
    "DEFAULT_DB_PATH",
    "open_db",
    "create_schema",
    "KeyValueStore",
    "MemoryKeyValueStore",
    "SqliteKeyValueStore",
    "WishlistItem",
    "WishlistItemType",
    "WishlistStore",
    "Notification",
    "NotificationStore",
]
