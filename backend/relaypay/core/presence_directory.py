"""Presence Directory — online/offline and last-seen per user identity.

Invariants:
    - Users are never removed; offline is a soft state
    - snapshot() order is first-seen order (dict insertion order)
    - set_offline() is idempotent — only a real online→offline transition notifies
    - Listeners run inside the lock, after the mutation, before the call returns

Design Decisions:
    - Presence is independent of which physical channel is active: the registry
      tracks channels, this directory tracks users
    - Listener callbacks instead of a return value: callers cannot forget to broadcast
"""

import logging
import threading
from dataclasses import replace
from typing import Callable

from relaypay.core.entities import PresenceChange, User, utc_now
from relaypay.core.errors import UnknownRecipientError

logger = logging.getLogger(__name__)

PresenceListener = Callable[[PresenceChange], None]


class PresenceDirectory:

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._users: dict[str, User] = {}
        self._listeners: list[PresenceListener] = []

    def subscribe(self, listener: PresenceListener) -> None:
        self._listeners.append(listener)

    def set_online(self, user_id: str, display_name: str) -> User:
        with self._lock:
            user = self._users.get(user_id)
            if user is None:
                user = User(id=user_id, display_name=display_name)
                self._users[user_id] = user
            user.display_name = display_name
            user.online = True
            user.last_seen = utc_now()
            self._notify(user)
            return replace(user)

    def set_offline(self, user_id: str) -> bool:
        with self._lock:
            user = self._users.get(user_id)
            if user is None or not user.online:
                return False
            user.online = False
            user.last_seen = utc_now()
            self._notify(user)
            return True

    def get(self, user_id: str) -> User | None:
        with self._lock:
            user = self._users.get(user_id)
            return replace(user) if user else None

    def require(self, user_id: str) -> User:
        user = self.get(user_id)
        if user is None:
            raise UnknownRecipientError(user_id)
        return user

    def snapshot(self) -> list[User]:
        with self._lock:
            return self._copy_all()

    def online_count(self) -> int:
        with self._lock:
            return sum(1 for u in self._users.values() if u.online)

    def __len__(self) -> int:
        with self._lock:
            return len(self._users)

    def _copy_all(self) -> list[User]:
        return [replace(u) for u in self._users.values()]

    def _notify(self, user: User) -> None:
        change = PresenceChange(user=replace(user), snapshot=self._copy_all())
        for listener in self._listeners:
            try:
                listener(change)
            except Exception:
                # Presence change is committed; log and keep notifying
                logger.exception(
                    "Presence listener failed", extra={"user_id": user.id},
                )
