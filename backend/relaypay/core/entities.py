"""Entities — the in-memory records behind chat and ledger state.

Invariants:
    - ChatMessage.delivered / read only ever flip False → True
    - Account.balance >= 0 at every observable point
    - LedgerTransaction is immutable once created (frozen)
    - to_dict() emits the camelCase wire shape sent over sockets and HTTP

Design Decisions:
    - Dataclasses, not ORM models: state is in-memory only, lost on restart
    - Stores hand out copies (dataclasses.replace) so callers never hold live rows
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone

from relaypay.core.domain_types import MessageKind, TransactionKind


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class User:
    """Chat user as seen by the presence directory."""
    id: str
    display_name: str
    online: bool = False
    last_seen: datetime = field(default_factory=utc_now)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "username": self.display_name,
            "online": self.online,
            "lastSeen": self.last_seen.isoformat(),
        }


@dataclass
class ChatMessage:
    id: str
    from_id: str
    to_id: str
    content: str
    kind: MessageKind = MessageKind.TEXT
    created_at: datetime = field(default_factory=utc_now)
    delivered: bool = False
    read: bool = False

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "from": self.from_id,
            "to": self.to_id,
            "content": self.content,
            "type": self.kind.value,
            "timestamp": self.created_at.isoformat(),
            "delivered": self.delivered,
            "read": self.read,
        }


@dataclass
class Account:
    user_id: str
    balance: int = 0
    created_at: datetime = field(default_factory=utc_now)
    last_topup_at: datetime | None = None

    def to_dict(self) -> dict:
        return {
            "userId": self.user_id,
            "balance": self.balance,
            "createdAt": self.created_at.isoformat(),
            "lastTopupAt": (
                self.last_topup_at.isoformat() if self.last_topup_at else None
            ),
        }


@dataclass(frozen=True)
class LedgerTransaction:
    """One side of a balance movement. amount is signed (debits negative)."""
    id: str
    user_id: str
    kind: TransactionKind
    amount: int
    timestamp: datetime
    description: str
    sequence: int
    related_user_id: str | None = None

    def to_dict(self) -> dict:
        data = {
            "id": self.id,
            "userId": self.user_id,
            "type": self.kind.value,
            "amount": self.amount,
            "timestamp": self.timestamp.isoformat(),
            "description": self.description,
        }
        if self.related_user_id is not None:
            data["relatedUserId"] = self.related_user_id
        return data


@dataclass(frozen=True)
class BalanceChange:
    """A committed balance mutation — what ledger listeners are told about."""
    user_id: str
    balance: int
    transaction: LedgerTransaction


@dataclass(frozen=True)
class TransferResult:
    outgoing: BalanceChange
    incoming: BalanceChange

    @property
    def new_balance_from(self) -> int:
        return self.outgoing.balance

    @property
    def new_balance_to(self) -> int:
        return self.incoming.balance


@dataclass(frozen=True)
class PresenceChange:
    """A committed presence transition plus the directory as it stands after it."""
    user: User
    snapshot: list[User]
