"""Chat Store — append-only message log with forward-only delivery/read flags.

Invariants:
    - Messages are never removed or compacted
    - delivered and read only flip False → True; unknown ids are ignored
    - history_for() is ascending by creation (append order)
    - Callers receive copies; the log itself is only mutated under the lock

Design Decisions:
    - Best-effort delivery: a message to an offline or unknown user is stored
      undelivered and never retried — the recipient discovers it via history
    - No referential integrity on from/to: dangling ids are simply undeliverable
"""

import threading
import uuid
from dataclasses import replace
from typing import Iterable

from relaypay.core.domain_types import MessageKind
from relaypay.core.entities import ChatMessage


class ChatStore:

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._messages: list[ChatMessage] = []
        self._by_id: dict[str, ChatMessage] = {}

    def append(
        self, from_id: str, to_id: str, content: str,
        kind: MessageKind = MessageKind.TEXT,
    ) -> ChatMessage:
        message = ChatMessage(
            id=f"msg_{uuid.uuid4().hex}",
            from_id=from_id, to_id=to_id, content=content, kind=kind,
        )
        with self._lock:
            self._messages.append(message)
            self._by_id[message.id] = message
            return replace(message)

    def mark_delivered(self, message_id: str) -> bool:
        with self._lock:
            message = self._by_id.get(message_id)
            if message is None or message.delivered:
                return False
            message.delivered = True
            return True

    def mark_read(
        self, message_ids: Iterable[str], reader_id: str | None = None,
    ) -> list[str]:
        """Flip read on the given ids. Returns only the ids that changed."""
        flipped: list[str] = []
        with self._lock:
            for message_id in dict.fromkeys(message_ids):
                message = self._by_id.get(message_id)
                if message is None or message.read:
                    continue
                if reader_id is not None and message.to_id != reader_id:
                    continue
                message.read = True
                flipped.append(message_id)
        return flipped

    def get(self, message_id: str) -> ChatMessage | None:
        with self._lock:
            message = self._by_id.get(message_id)
            return replace(message) if message else None

    def history_for(self, user_id: str) -> list[ChatMessage]:
        with self._lock:
            return [
                replace(m) for m in self._messages
                if user_id in (m.from_id, m.to_id)
            ]

    def __len__(self) -> int:
        with self._lock:
            return len(self._messages)
