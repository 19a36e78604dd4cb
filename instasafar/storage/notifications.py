"""Per-user in-app notifications.

:class:`NotificationStore` keeps a newest-first list of notifications for the
signed-in user and writes it through an injected
:class:`~instasafar.storage.persistence.KeyValueStore` under
``notifications-<user_id>``.
"""

from __future__ import annotations

import logging
import uuid
from datetime import UTC, datetime, timedelta
from typing import Final

from pydantic import BaseModel, Field, TypeAdapter, ValidationError

from instasafar.core.exceptions import StorageError
from instasafar.storage.persistence import KeyValueStore

__all__ = ["Notification", "NotificationStore", "notifications_key", "WELCOME_NOTIFICATIONS"]

logger = logging.getLogger(__name__)

#: ``(message, link, age)`` of the notifications seeded for a first visit.
WELCOME_NOTIFICATIONS: Final[tuple[tuple[str, str, timedelta], ...]] = (
    (
        "Welcome to InstaSafar! Start exploring Hajj and Umrah packages.",
        "/packages",
        timedelta(0),
    ),
    (
        "Complete your profile to get personalized recommendations.",
        "/account/profile",
        timedelta(days=1),
    ),
)


def _new_notification_id() -> str:
    return f"notif-{uuid.uuid4().hex[:12]}"


class Notification(BaseModel):
    id: str = Field(default_factory=_new_notification_id)
    user_id: str
    message: str = Field(..., min_length=1)
    link: str | None = None
    is_read: bool = False
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))


_NOTIFICATIONS_ADAPTER: TypeAdapter[list[Notification]] = TypeAdapter(list[Notification])


def notifications_key(user_id: str) -> str:
    return f"notifications-{user_id}"


class NotificationStore:
    """Notification inbox for the signed-in user of one session.

    Args:
        backend: Persistence backend.
        user_id: Signed-in user, or ``None`` for an anonymous session (always
            empty, :meth:`add` stores nothing).
        seed_welcome: When ``True`` and nothing has been stored for the user
            yet, :meth:`load` seeds :data:`WELCOME_NOTIFICATIONS`.
    """

    def __init__(
        self,
        backend: KeyValueStore,
        user_id: str | None,
        *,
        seed_welcome: bool = False,
    ) -> None:
        self._backend = backend
        self._user_id = user_id
        self._seed_welcome = seed_welcome
        self._notifications: list[Notification] = []
        self._loading = True

    @property
    def notifications(self) -> tuple[Notification, ...]:
        return tuple(self._notifications)

    @property
    def unread_count(self) -> int:
        return sum(1 for n in self._notifications if not n.is_read)

    @property
    def is_loading(self) -> bool:
        return self._loading

    async def load(self) -> tuple[Notification, ...]:
        """Read persisted notifications; corrupt data loads as empty."""
        self._loading = True
        try:
            if self._user_id is None:
                self._notifications = []
                return self.notifications
            raw = await self._backend.load(notifications_key(self._user_id))
            if raw is None:
                self._notifications = []
                if self._seed_welcome:
                    await self._seed()
            else:
                self._notifications = _NOTIFICATIONS_ADAPTER.validate_python(raw)
        except (StorageError, ValidationError) as exc:
            logger.warning("Could not load notifications for %s: %s", self._user_id, exc)
            self._notifications = []
        finally:
            self._loading = False
        return self.notifications

    async def add(self, message: str, link: str | None = None) -> Notification | None:
        """Prepend a new unread notification and persist.

        Returns:
            The stored notification, or ``None`` for an anonymous session.

        Raises:
            StorageError: If the write fails; in-memory state is rolled back.
        """
        if self._user_id is None:
            logger.debug("Dropping notification for anonymous session: %r", message)
            return None
        notification = Notification(user_id=self._user_id, message=message, link=link)
        await self._commit([notification, *self._notifications])
        return notification

    async def mark_as_read(self, notification_id: str) -> bool:
        """Mark one notification read; ``False`` if no such id."""
        for index, notification in enumerate(self._notifications):
            if notification.id == notification_id:
                if not notification.is_read:
                    updated = list(self._notifications)
                    updated[index] = notification.model_copy(update={"is_read": True})
                    await self._commit(updated)
                return True
        return False

    async def mark_all_as_read(self) -> None:
        if not self._notifications:
            return
        await self._commit(
            [n if n.is_read else n.model_copy(update={"is_read": True}) for n in self._notifications]
        )

    async def clear(self) -> None:
        """Drop every notification and the persisted key."""
        await self._commit([])

    async def _seed(self) -> None:
        assert self._user_id is not None
        now = datetime.now(UTC)
        self._notifications = [
            Notification(user_id=self._user_id, message=message, link=link, created_at=now - age)
            for message, link, age in WELCOME_NOTIFICATIONS
        ]
        await self._persist()
        logger.debug("Seeded welcome notifications for %s", self._user_id)

    async def _commit(self, updated: list[Notification]) -> None:
        previous = self._notifications
        self._notifications = updated
        try:
            await self._persist()
        except StorageError:
            self._notifications = previous
            raise

    async def _persist(self) -> None:
        if self._user_id is None:
            return
        key = notifications_key(self._user_id)
        if not self._notifications:
            await self._backend.clear(key)
            return
        await self._backend.save(key, [n.model_dump(mode="json") for n in self._notifications])
