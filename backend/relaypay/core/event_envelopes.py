"""Event Envelopes — pure builders for every outbound socket event.

Invariants:
    - Every frame is {"type": <kind>, "payload": {...}}
    - Builders are pure (no IO) — the router decides who receives them
    - Payload keys are camelCase to match the HTTP surface

Design Decisions:
    - One builder per event kind: the full outbound vocabulary is readable in one file
"""

from relaypay.core.domain_types import ChatEventType, LedgerEventType
from relaypay.core.entities import (
    Account, BalanceChange, ChatMessage, LedgerTransaction, User,
)


def envelope(event_type: str, payload: dict | None = None) -> dict:
    return {"type": event_type, "payload": payload or {}}


# ─── Chat ────────────────────────────────────────────────────────

def auth_ok(user_id: str, username: str) -> dict:
    return envelope(ChatEventType.AUTH.value, {
        "success": True, "userId": user_id, "username": username,
    })


def incoming_message(message: ChatMessage, sender_name: str | None) -> dict:
    """Message as the recipient sees it."""
    return envelope(ChatEventType.MESSAGE.value, {
        **message.to_dict(), "fromUsername": sender_name,
    })


def sent_message(message: ChatMessage) -> dict:
    """Echo of a sent message back to its author."""
    return envelope(ChatEventType.MESSAGE.value, {
        **message.to_dict(), "sent": True,
    })


def delivered(message: ChatMessage) -> dict:
    return envelope(ChatEventType.DELIVERED.value, {
        "messageId": message.id, "to": message.to_id,
    })


def typing(sender: User, is_typing: bool) -> dict:
    return envelope(ChatEventType.TYPING.value, {
        "from": sender.id, "username": sender.display_name, "typing": is_typing,
    })


def read_receipt(message_ids: list[str], reader_id: str) -> dict:
    return envelope(ChatEventType.READ.value, {
        "messageIds": message_ids, "by": reader_id,
    })


def user_list(users: list[User]) -> dict:
    return envelope(ChatEventType.USER_LIST.value, {
        "users": [u.to_dict() for u in users],
    })


def status(user: User) -> dict:
    return envelope(ChatEventType.STATUS.value, {
        "userId": user.id,
        "username": user.display_name,
        "online": user.online,
        "lastSeen": user.last_seen.isoformat(),
    })


def history(messages: list[ChatMessage]) -> dict:
    return envelope(ChatEventType.HISTORY.value, {
        "messages": [m.to_dict() for m in messages],
    })


def ping() -> dict:
    return envelope(ChatEventType.PING.value)


# ─── Ledger ──────────────────────────────────────────────────────

def balance_updated(change: BalanceChange) -> dict:
    return envelope(LedgerEventType.BALANCE_UPDATED.value, {
        "userId": change.user_id,
        "balance": change.balance,
        "transaction": change.transaction.to_dict(),
    })


def balance_snapshot(account: Account) -> dict:
    """Balance push without a transaction — sent when a channel joins."""
    return envelope(LedgerEventType.BALANCE_UPDATED.value, {
        "userId": account.user_id, "balance": account.balance,
    })


def payment_successful(transaction: LedgerTransaction) -> dict:
    return envelope(LedgerEventType.PAYMENT_SUCCESSFUL.value, {
        "status": "ok",
        "amount": -transaction.amount,
        "userId": transaction.user_id,
        "transactionId": transaction.id,
    })
