"""Per-user wishlist of saved hotels, packages, and transport options.

:class:`WishlistStore` is owned by one UI session and persists through an
injected :class:`~instasafar.storage.persistence.KeyValueStore` under the
key ``wishlist-<user_id>``.  Every mutation is written through immediately;
removing the last item clears the key so an emptied wishlist stays empty on
the next load.

Typical usage::

    store = WishlistStore(backend, user_id="u-42")
    await store.load()
    await store.add("hotel-1", WishlistItemType.HOTEL)
    store.contains("hotel-1", WishlistItemType.HOTEL)   # → True
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from enum import StrEnum

from pydantic import BaseModel, Field, TypeAdapter, ValidationError

from instasafar.core.exceptions import AuthenticationRequiredError, StorageError
from instasafar.storage.persistence import KeyValueStore

__all__ = ["WishlistItemType", "WishlistItem", "WishlistStore", "wishlist_key"]

logger = logging.getLogger(__name__)


class WishlistItemType(StrEnum):
    """Listing kinds that can be saved to a wishlist."""

    HOTEL = "hotel"
    PACKAGE = "package"
    TRANSPORT = "transport"


class WishlistItem(BaseModel):
    """One saved listing reference."""

    model_config = {"frozen": True}

    id: str = Field(..., min_length=1)
    item_type: WishlistItemType
    added_at: datetime = Field(default_factory=lambda: datetime.now(UTC))


_ITEMS_ADAPTER: TypeAdapter[list[WishlistItem]] = TypeAdapter(list[WishlistItem])


def wishlist_key(user_id: str) -> str:
    """Persistence key for *user_id*'s wishlist."""
    return f"wishlist-{user_id}"


class WishlistStore:
    """Wishlist state for the signed-in user of one session.

    Args:
        backend: Persistence backend.
        user_id: Signed-in user, or ``None`` for an anonymous session.  An
            anonymous wishlist is always empty and cannot be added to.
    """

    def __init__(self, backend: KeyValueStore, user_id: str | None) -> None:
        self._backend = backend
        self._user_id = user_id
        self._items: list[WishlistItem] = []
        self._loading = True

    @property
    def user_id(self) -> str | None:
        return self._user_id

    @property
    def items(self) -> tuple[WishlistItem, ...]:
        return tuple(self._items)

    @property
    def is_loading(self) -> bool:
        return self._loading

    def __len__(self) -> int:
        return len(self._items)

    async def load(self) -> tuple[WishlistItem, ...]:
        """Read the persisted wishlist, replacing in-memory state.

        Unreadable or corrupt data is logged and treated as an empty wishlist
        so a bad entry never blocks the page.
        """
        self._loading = True
        try:
            if self._user_id is None:
                self._items = []
                return self.items
            raw = await self._backend.load(wishlist_key(self._user_id))
            self._items = [] if raw is None else _ITEMS_ADAPTER.validate_python(raw)
        except (StorageError, ValidationError) as exc:
            logger.warning("Could not load wishlist for %s: %s", self._user_id, exc)
            self._items = []
        finally:
            self._loading = False
        logger.debug("Loaded %d wishlist item(s) for %s", len(self._items), self._user_id)
        return self.items

    def contains(self, item_id: str, item_type: WishlistItemType | str) -> bool:
        return any(
            item.id == item_id and item.item_type == item_type for item in self._items
        )

    async def add(self, item_id: str, item_type: WishlistItemType | str) -> bool:
        """Save a listing.

        Returns:
            ``True`` if added, ``False`` if it was already saved.

        Raises:
            AuthenticationRequiredError: For an anonymous session.
            StorageError: If the write fails; in-memory state is rolled back.
        """
        if self._user_id is None:
            raise AuthenticationRequiredError("add to wishlist")
        if self.contains(item_id, item_type):
            return False

        previous = list(self._items)
        self._items.append(WishlistItem(id=item_id, item_type=WishlistItemType(item_type)))
        try:
            await self._persist()
        except StorageError:
            self._items = previous
            raise
        logger.info("Added %s %s to wishlist of %s", item_type, item_id, self._user_id)
        return True

    async def remove(self, item_id: str, item_type: WishlistItemType | str) -> bool:
        """Remove a saved listing.

        Returns:
            ``True`` if something was removed.  Always ``False`` for anonymous
            sessions or when the listing was not saved.
        """
        if self._user_id is None or not self.contains(item_id, item_type):
            return False

        previous = list(self._items)
        self._items = [
            item
            for item in self._items
            if not (item.id == item_id and item.item_type == item_type)
        ]
        try:
            await self._persist()
        except StorageError:
            self._items = previous
            raise
        logger.info("Removed %s %s from wishlist of %s", item_type, item_id, self._user_id)
        return True

    async def _persist(self) -> None:
        assert self._user_id is not None
        key = wishlist_key(self._user_id)
        if not self._items:
            await self._backend.clear(key)
            return
        await self._backend.save(key, [item.model_dump(mode="json") for item in self._items])
