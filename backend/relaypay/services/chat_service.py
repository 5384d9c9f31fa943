"""Chat Service — handles inbound chat events for one socket at a time.

Invariants:
    - Every event type → handler mapping is explicit; unknown types never reach here
      (the schema layer rejects them as transport faults)
    - Only auth is accepted before a successful auth on the socket
    - Domain errors become error events on the socket; they never close it
    - Disconnect only sets a user offline when the closing channel is still the
      registered one (a superseded socket closing is a no-op)

Design Decisions:
    - ChatSession carries per-socket identity; the registry carries per-identity channel
    - Best-effort delivery: offline recipients get the message via history on next auth
"""

import logging
import uuid
from dataclasses import dataclass
from typing import Callable

from relaypay.core import event_envelopes as events
from relaypay.core.channel_protocols import Channel
from relaypay.core.chat_store import ChatStore
from relaypay.core.connection_registry import Connection, ConnectionRegistry
from relaypay.core.domain_types import ChatEventType, MessageKind
from relaypay.core.errors import (
    ErrorContext, InputValidationError, NotAuthenticatedError, RelayPayError,
    UnknownRecipientError,
)
from relaypay.core.presence_directory import PresenceDirectory
from relaypay.schemas.socket_events import (
    AuthPayload, MessagePayload, ReadPayload, TypingPayload,
)
from relaypay.services.notification_router import NotificationRouter

logger = logging.getLogger(__name__)


@dataclass
class ChatSession:
    """Per-socket state. user_id is None until auth succeeds."""
    channel: Channel
    user_id: str | None = None
    username: str | None = None

    @property
    def authenticated(self) -> bool:
        return self.user_id is not None


class ChatService:
    """Routes chat event type -> handler. Explicit registration, no auto-discovery."""

    def __init__(
        self,
        connections: ConnectionRegistry,
        presence: PresenceDirectory,
        store: ChatStore,
        router: NotificationRouter,
    ):
        self._connections = connections
        self._presence = presence
        self._store = store
        self._router = router
        self._handlers: dict[str, Callable] = {
            ChatEventType.AUTH.value: self.authenticate,
            ChatEventType.MESSAGE.value: self.send_message,
            ChatEventType.TYPING.value: self.set_typing,
            ChatEventType.READ.value: self.mark_read,
            ChatEventType.PONG.value: self.pong,
        }

    def handle(self, session: ChatSession, event_type: str, payload) -> None:
        """Dispatch one parsed inbound event. Domain errors answered on the socket."""
        if session.authenticated:
            self._connections.touch(session.user_id, session.channel)
        handler = self._handlers[event_type]
        try:
            if event_type not in (ChatEventType.AUTH.value, ChatEventType.PONG.value):
                self._require_auth(session, event_type)
            handler(session, payload)
        except RelayPayError as e:
            logger.warning(
                f"Chat event rejected: {e.message}",
                extra={"error_code": e.code, "event_type": event_type,
                       "user_id": session.user_id},
            )
            session.channel.send(e.to_event())

    # ─── Handlers ────────────────────────────────────────────────

    def authenticate(self, session: ChatSession, payload: AuthPayload) -> None:
        if not payload.username:
            raise InputValidationError("Username is required", "username")
        user_id = payload.user_id or uuid.uuid4().hex
        if session.authenticated and session.user_id != user_id:
            self.disconnect(session)

        session.user_id = user_id
        session.username = payload.username
        self._connections.register(user_id, session.channel)
        session.channel.send(events.auth_ok(user_id, payload.username))
        self._presence.set_online(user_id, payload.username)
        self._router.send_history(user_id, self._store.history_for(user_id))
        logger.info(
            f"User {payload.username} authenticated",
            extra={"user_id": user_id, "event_type": "auth"},
        )

    def send_message(self, session: ChatSession, payload: MessagePayload) -> None:
        if not payload.content.strip():
            raise InputValidationError("Message content is required", "content")
        message = self._store.append(
            session.user_id, payload.to, payload.content,
            MessageKind.parse(payload.kind),
        )
        if self._router.deliver_message(message, session.username):
            self._store.mark_delivered(message.id)
            message.delivered = True
            self._router.echo_to_sender(message)
            self._router.acknowledge_delivery(message)
        else:
            self._router.echo_to_sender(message)

    def set_typing(self, session: ChatSession, payload: TypingPayload) -> None:
        sender = self._presence.get(session.user_id)
        if sender is None:
            return
        try:
            self._presence.require(payload.to)
        except UnknownRecipientError as e:
            logger.debug(f"Typing to unknown user dropped: {e.message}")
            return
        self._router.forward_typing(sender, payload.to, payload.typing)

    def mark_read(self, session: ChatSession, payload: ReadPayload) -> None:
        flipped = self._store.mark_read(payload.message_ids, reader_id=session.user_id)
        # Receipts go to whoever actually authored each message
        by_sender: dict[str, list[str]] = {}
        for message_id in flipped:
            message = self._store.get(message_id)
            by_sender.setdefault(message.from_id, []).append(message_id)
        if by_sender and payload.sender not in by_sender:
            logger.debug(
                f"Read receipt names {payload.sender} but messages came from {list(by_sender)}",
                extra={"user_id": session.user_id},
            )
        for sender_id, ids in by_sender.items():
            self._router.forward_read(sender_id, ids, session.user_id)

    def pong(self, session: ChatSession, payload) -> None:
        """Liveness answer; touch() in handle() already recorded it."""

    # ─── Lifecycle ───────────────────────────────────────────────

    def disconnect(self, session: ChatSession) -> None:
        if not session.authenticated:
            return
        user_id = session.user_id
        if self._connections.unregister(user_id, session.channel):
            self._presence.set_offline(user_id)
            logger.info("User disconnected", extra={"user_id": user_id})
        session.user_id = None
        session.username = None

    def retire(self, connection: Connection) -> None:
        """Liveness-sweep path: the registry already dropped the entry."""
        connection.channel.close()
        if self._connections.get(connection.identity) is None:
            self._presence.set_offline(connection.identity)

    @staticmethod
    def _require_auth(session: ChatSession, event_type: str) -> None:
        if not session.authenticated:
            raise NotAuthenticatedError(
                event_type, ErrorContext(event_type=event_type),
            )
