"""Ledger Service — orchestrates ledger operations for HTTP routes and the ledger socket.

Invariants:
    - Balance pushes come from the LedgerStore subscription, never from here —
      every committed change is pushed exactly once
    - payment pushes payment_successful to the till before balance_updated to the payer
    - A failed operation raises before any mutation and emits no events
    - join() rebinding a socket releases the identity it was bound to before

Design Decisions:
    - Thin orchestration over LedgerStore + NotificationRouter; routes stay free of
      business logic
    - Response dicts built here so HTTP routes and tests share one shape
"""

import logging
import time
from datetime import datetime, timezone

from relaypay.core.channel_protocols import Channel
from relaypay.core.connection_registry import Connection, ConnectionRegistry
from relaypay.core.ledger_store import LedgerStore
from relaypay.services.notification_router import NotificationRouter

logger = logging.getLogger(__name__)


class LedgerService:

    def __init__(
        self,
        store: LedgerStore,
        connections: ConnectionRegistry,
        router: NotificationRouter,
        started_at: float | None = None,
    ):
        self._store = store
        self._connections = connections
        self._router = router
        self._started_at = started_at if started_at is not None else time.monotonic()

    # ─── HTTP operations ─────────────────────────────────────────

    def balance(self, user_id: str) -> dict:
        account = self._store.get_or_create_account(user_id)
        logger.info(
            f"Balance query for {user_id}: {account.balance}",
            extra={"user_id": user_id},
        )
        return {"success": True, "balance": account.balance, "userId": user_id}

    def top_up(self, user_id: str, amount: int) -> dict:
        change = self._store.top_up(user_id, amount)
        return {
            "success": True,
            "balance": change.balance,
            "transaction": change.transaction.to_dict(),
        }

    def transfer(
        self, from_id: str, to_id: str, amount: int, description: str = "",
    ) -> dict:
        result = self._store.transfer(from_id, to_id, amount, description)
        return {
            "success": True,
            "fromUserId": from_id,
            "toUserId": to_id,
            "amount": amount,
            "newBalanceFrom": result.new_balance_from,
            "newBalanceTo": result.new_balance_to,
        }

    def payment(
        self, from_id: str, store_name: str, amount: int, kassa_id: str,
    ) -> dict:
        change = self._store.payment(
            from_id, amount, f'Payment at "{store_name}" (till {kassa_id})',
            on_commit=lambda c: self._router.notify_payment(kassa_id, c),
        )
        return {
            "success": True,
            "newBalance": change.balance,
            "transaction": change.transaction.to_dict(),
        }

    def transactions(self, user_id: str, limit: int) -> dict:
        rows = self._store.transactions_for(user_id, limit)
        return {"success": True, "transactions": [tx.to_dict() for tx in rows]}

    def online_users(self) -> dict:
        users = [conn.to_dict() for conn in self._connections.connections()]
        logger.info(f"Online users requested: {len(users)}")
        return {"success": True, "count": len(users), "users": users}

    def status(self) -> dict:
        return {
            "status": "running",
            "uptime": round(time.monotonic() - self._started_at, 3),
            "users": self._store.account_count(),
            "transactions": self._store.transaction_count(),
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

    # ─── Ledger socket ───────────────────────────────────────────

    def join(self, channel: Channel, identity: str, previous: str | None = None) -> None:
        """Bind channel to identity (user or till); push the balance if an account exists."""
        if previous is not None and previous != identity:
            self._connections.unregister(previous, channel)
        self._connections.register(identity, channel)
        logger.info(
            f"Identity {identity} joined the ledger channel",
            extra={"identity": identity},
        )
        account = self._store.get_account(identity)
        if account is not None:
            self._router.send_balance_snapshot(identity, account)

    def touch(self, identity: str, channel: Channel) -> None:
        self._connections.touch(identity, channel)

    def leave(self, identity: str, channel: Channel) -> None:
        if self._connections.unregister(identity, channel):
            logger.info(f"Identity {identity} left", extra={"identity": identity})

    def retire(self, connection: Connection) -> None:
        connection.channel.close()
