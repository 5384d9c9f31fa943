"""Domain Types — rich types that replace bare primitives across the codebase.

Invariants:
    - Users and tills share one identity namespace per registry
    - Amounts are whole numbers of currency units, never fractional
    - All valid states encoded as Enums — no raw string matching

Design Decisions:
    - str Enums: serialize to JSON without custom encoders (events are JSON envelopes)
"""

from enum import Enum


# ─── Enums ───────────────────────────────────────────────────────

class MessageKind(str, Enum):
    """Chat message payload kind. Anything not text is relayed verbatim."""
    TEXT = "text"
    OTHER = "other"

    @classmethod
    def parse(cls, raw: str | None) -> "MessageKind":
        if raw is None or raw == cls.TEXT.value:
            return cls.TEXT
        return cls.OTHER


class TransactionKind(str, Enum):
    """Ledger transaction kinds — one entry per side of a balance movement."""
    TOPUP = "topup"
    TRANSFER_OUT = "transfer_out"
    TRANSFER_IN = "transfer_in"
    QR_PAYMENT = "qr_payment"


class Liveness(str, Enum):
    """Connection liveness between two sweeps."""
    ALIVE = "alive"
    PING_PENDING = "ping_pending"


class SendResult(str, Enum):
    """Outcome of a registry send — skipped means no live channel."""
    DELIVERED = "delivered"
    SKIPPED = "skipped"


class ChatEventType(str, Enum):
    """Event kinds carried on the chat socket (both directions)."""
    AUTH = "auth"
    ERROR = "error"
    MESSAGE = "message"
    DELIVERED = "delivered"
    TYPING = "typing"
    READ = "read"
    USER_LIST = "userList"
    STATUS = "status"
    HISTORY = "history"
    PING = "ping"
    PONG = "pong"


class LedgerEventType(str, Enum):
    """Event kinds carried on the ledger socket (both directions)."""
    JOIN = "join"
    BALANCE_UPDATED = "balance_updated"
    PAYMENT_SUCCESSFUL = "payment_successful"
    PING = "ping"
    PONG = "pong"
