"""Ledger Store — per-user balances plus an append-only transaction log.

Invariants:
    - balance >= 0 for every account at every observable point
    - All validation runs before any write; a rejected call mutates nothing
    - Operations on one account are serialized by that account's lock; operations
      on disjoint accounts proceed independently
    - transfer() holds both account locks (sorted-id order) for the whole
      debit + credit + log append, so readers see it fully before or fully after
    - A transfer appends exactly two transactions sharing a base id and timestamp
    - Listeners run inside the account lock scope after commit: per-account
      notifications follow commit order

Design Decisions:
    - Typed dicts keyed by user id replace a nested path-string store
    - New balances and transaction rows are computed before the first field is
      written, so no fault can leave a half-applied transfer
    - The transaction log has its own leaf lock, always taken last
    - Results are built inside the lock scope — no post-commit re-read of balances
"""

import itertools
import logging
import threading
import uuid
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Callable

from relaypay.core.domain_types import TransactionKind
from relaypay.core.entities import (
    Account, BalanceChange, LedgerTransaction, TransferResult, utc_now,
)
from relaypay.core.errors import (
    InsufficientFundsError, InvalidAmountError, SameAccountError,
)
from relaypay.core.keyed_lock import KeyedLock

logger = logging.getLogger(__name__)

BalanceListener = Callable[[BalanceChange], None]

DEFAULT_TRANSACTION_LIMIT = 20


@dataclass(frozen=True)
class AmountRange:
    """Inclusive bounds for an operation's amount."""
    minimum: int
    maximum: int

    def check(self, amount: int) -> None:
        if amount < self.minimum or amount > self.maximum:
            raise InvalidAmountError(amount, self.minimum, self.maximum)


class LedgerStore:

    def __init__(
        self,
        topup_range: AmountRange = AmountRange(100, 5000),
        transfer_range: AmountRange = AmountRange(100, 5000),
    ) -> None:
        self.topup_range = topup_range
        self.transfer_range = transfer_range
        self._account_locks = KeyedLock()
        self._accounts_guard = threading.Lock()
        self._accounts: dict[str, Account] = {}
        self._log_lock = threading.Lock()
        self._transactions: list[LedgerTransaction] = []
        self._by_user: dict[str, list[LedgerTransaction]] = {}
        self._sequence = itertools.count(1)
        self._listeners: list[BalanceListener] = []

    def subscribe(self, listener: BalanceListener) -> None:
        self._listeners.append(listener)

    # ─── Reads ───────────────────────────────────────────────────

    def get_or_create_account(self, user_id: str) -> Account:
        with self._account_locks.hold(user_id):
            return replace(self._get_or_create(user_id))

    def get_account(self, user_id: str) -> Account | None:
        with self._account_locks.hold(user_id):
            account = self._lookup(user_id)
            return replace(account) if account else None

    def balance_of(self, user_id: str) -> int:
        with self._account_locks.hold(user_id):
            account = self._lookup(user_id)
            return account.balance if account else 0

    def transactions_for(
        self, user_id: str, limit: int = DEFAULT_TRANSACTION_LIMIT,
    ) -> list[LedgerTransaction]:
        """Newest first, truncated to limit."""
        with self._log_lock:
            rows = list(self._by_user.get(user_id, ()))
        rows.sort(key=lambda tx: (tx.timestamp, tx.sequence), reverse=True)
        return rows[:max(limit, 0)]

    def account_count(self) -> int:
        with self._accounts_guard:
            return len(self._accounts)

    def transaction_count(self) -> int:
        with self._log_lock:
            return len(self._transactions)

    # ─── Writes ──────────────────────────────────────────────────

    def top_up(self, user_id: str, amount: int) -> BalanceChange:
        self.topup_range.check(amount)
        with self._account_locks.hold(user_id):
            account = self._get_or_create(user_id)
            now = utc_now()
            tx = self._new_transaction(
                f"tx_{uuid.uuid4().hex[:12]}", user_id, TransactionKind.TOPUP,
                amount, now, f"Top-up of {amount}",
            )
            new_balance = account.balance + amount
            account.balance = new_balance
            account.last_topup_at = now
            self._append(tx)
            change = BalanceChange(user_id, new_balance, tx)
            logger.info(
                f"Top-up for {user_id}: +{amount} (balance {new_balance})",
                extra={"user_id": user_id, "amount": amount, "transaction_id": tx.id},
            )
            self._notify(change)
            return change

    def transfer(
        self, from_id: str, to_id: str, amount: int, description: str = "",
    ) -> TransferResult:
        if from_id == to_id:
            raise SameAccountError(from_id)
        self.transfer_range.check(amount)
        with self._account_locks.hold(from_id, to_id):
            sender = self._lookup(from_id)
            available = sender.balance if sender else 0
            if sender is None or available < amount:
                raise InsufficientFundsError(from_id, available, amount)
            recipient = self._get_or_create(to_id)

            now = utc_now()
            base_id = f"tx_{uuid.uuid4().hex[:12]}"
            outgoing_tx = self._new_transaction(
                f"{base_id}_out", from_id, TransactionKind.TRANSFER_OUT,
                -amount, now, description or f"Transfer to {to_id}",
                related_user_id=to_id,
            )
            incoming_tx = self._new_transaction(
                f"{base_id}_in", to_id, TransactionKind.TRANSFER_IN,
                amount, now, description or f"Transfer from {from_id}",
                related_user_id=from_id,
            )
            new_from = sender.balance - amount
            new_to = recipient.balance + amount

            sender.balance = new_from
            recipient.balance = new_to
            self._append(outgoing_tx, incoming_tx)

            result = TransferResult(
                outgoing=BalanceChange(from_id, new_from, outgoing_tx),
                incoming=BalanceChange(to_id, new_to, incoming_tx),
            )
            logger.info(
                f"Transfer {from_id} -> {to_id}: {amount}",
                extra={"user_id": from_id, "amount": amount, "transaction_id": base_id},
            )
            self._notify(result.outgoing)
            self._notify(result.incoming)
            return result

    def payment(
        self, from_id: str, amount: int, description: str,
        on_commit: BalanceListener | None = None,
    ) -> BalanceChange:
        """Single-sided debit. on_commit runs before the subscribed listeners."""
        if amount <= 0:
            raise InvalidAmountError(amount)
        with self._account_locks.hold(from_id):
            account = self._lookup(from_id)
            available = account.balance if account else 0
            if account is None or available < amount:
                raise InsufficientFundsError(from_id, available, amount)
            tx = self._new_transaction(
                f"tx_{uuid.uuid4().hex[:12]}_qr", from_id,
                TransactionKind.QR_PAYMENT, -amount, utc_now(), description,
            )
            new_balance = account.balance - amount
            account.balance = new_balance
            self._append(tx)
            change = BalanceChange(from_id, new_balance, tx)
            logger.info(
                f"Payment from {from_id}: {amount} ({description})",
                extra={"user_id": from_id, "amount": amount, "transaction_id": tx.id},
            )
            if on_commit is not None:
                self._call(on_commit, change)
            self._notify(change)
            return change

    # ─── Internals (caller holds the account lock) ───────────────

    def _lookup(self, user_id: str) -> Account | None:
        with self._accounts_guard:
            return self._accounts.get(user_id)

    def _get_or_create(self, user_id: str) -> Account:
        with self._accounts_guard:
            account = self._accounts.get(user_id)
            if account is None:
                account = Account(user_id=user_id)
                self._accounts[user_id] = account
                logger.info(f"Created account {user_id}", extra={"user_id": user_id})
            return account

    def _new_transaction(
        self, tx_id: str, user_id: str, kind: TransactionKind, amount: int,
        timestamp: datetime, description: str, related_user_id: str | None = None,
    ) -> LedgerTransaction:
        return LedgerTransaction(
            id=tx_id, user_id=user_id, kind=kind, amount=amount,
            timestamp=timestamp, description=description,
            sequence=next(self._sequence), related_user_id=related_user_id,
        )

    def _append(self, *transactions: LedgerTransaction) -> None:
        with self._log_lock:
            for tx in transactions:
                self._transactions.append(tx)
                self._by_user.setdefault(tx.user_id, []).append(tx)

    def _notify(self, change: BalanceChange) -> None:
        for listener in self._listeners:
            self._call(listener, change)

    def _call(self, listener: BalanceListener, change: BalanceChange) -> None:
        try:
            listener(change)
        except Exception:
            # Balance is committed; a failed push is logged, not rolled back
            logger.exception(
                "Balance listener failed",
                extra={"user_id": change.user_id, "transaction_id": change.transaction.id},
            )
