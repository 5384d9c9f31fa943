"""Notification Router — decides who hears about each state change and sends it.

Invariants:
    - Holds no state of its own: every decision reads the registries or directory
    - Chat events go to the chat registry, balance/payment events to the ledger registry
    - Presence changes: userList to every chat connection, status to all but the subject
    - Sends only enqueue, so calling this inside a store's lock scope is safe and
      keeps per-identity order equal to commit order

Design Decisions:
    - Explicit fan-out over framework rooms: every recipient rule is visible here
    - Subscribed to PresenceDirectory and LedgerStore at hub construction, so no
      service can mutate presence or balances without the matching broadcast
"""

import logging

from relaypay.core import event_envelopes as events
from relaypay.core.connection_registry import ConnectionRegistry
from relaypay.core.domain_types import SendResult
from relaypay.core.entities import (
    Account, BalanceChange, ChatMessage, PresenceChange, User,
)
from relaypay.core.presence_directory import PresenceDirectory

logger = logging.getLogger(__name__)


class NotificationRouter:

    def __init__(
        self,
        chat_connections: ConnectionRegistry,
        ledger_connections: ConnectionRegistry,
        presence: PresenceDirectory,
    ):
        self._chat = chat_connections
        self._ledger = ledger_connections
        self._presence = presence

    # ─── Chat ────────────────────────────────────────────────────

    def deliver_message(self, message: ChatMessage, sender_name: str | None) -> bool:
        """Push to the recipient. True only when a live channel accepted it."""
        result = self._chat.send(
            message.to_id, events.incoming_message(message, sender_name),
        )
        if result == SendResult.SKIPPED:
            logger.info(
                f"Recipient {message.to_id} offline; message {message.id} stored undelivered",
                extra={"user_id": message.from_id},
            )
        return result == SendResult.DELIVERED

    def echo_to_sender(self, message: ChatMessage) -> None:
        self._chat.send(message.from_id, events.sent_message(message))

    def acknowledge_delivery(self, message: ChatMessage) -> None:
        self._chat.send(message.from_id, events.delivered(message))

    def forward_typing(self, sender: User, to_id: str, is_typing: bool) -> bool:
        recipient = self._presence.get(to_id)
        if recipient is None or not recipient.online:
            return False
        return self._chat.send(
            to_id, events.typing(sender, is_typing),
        ) == SendResult.DELIVERED

    def forward_read(
        self, original_sender_id: str, message_ids: list[str], reader_id: str,
    ) -> bool:
        return self._chat.send(
            original_sender_id, events.read_receipt(message_ids, reader_id),
        ) == SendResult.DELIVERED

    def send_history(self, user_id: str, messages: list[ChatMessage]) -> None:
        self._chat.send(user_id, events.history(messages))

    def on_presence_change(self, change: PresenceChange) -> None:
        self._chat.broadcast(events.user_list(change.snapshot))
        self._chat.broadcast(events.status(change.user), exclude=change.user.id)

    # ─── Ledger ──────────────────────────────────────────────────

    def on_balance_change(self, change: BalanceChange) -> None:
        self._ledger.send(change.user_id, events.balance_updated(change))

    def notify_payment(self, till_id: str, change: BalanceChange) -> None:
        result = self._ledger.send(till_id, events.payment_successful(change.transaction))
        logger.info(
            f"Payment confirmation to till {till_id}: {result.value}",
            extra={"identity": till_id, "transaction_id": change.transaction.id},
        )

    def send_balance_snapshot(self, identity: str, account: Account) -> None:
        self._ledger.send(identity, events.balance_snapshot(account))
