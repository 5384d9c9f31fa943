"""LedgerService tests — operations, response shapes, and ledger-socket pushes.

Tests cover:
    - transfer 200 -> 150 scenario: balances, pushes to both sides, transaction log
    - payment: till confirmation before payer balance push
    - rejected operations mutate nothing and push nothing
    - join(): snapshot only for existing accounts; rebinding releases the old identity
"""

import pytest

from relaypay.core.errors import (
    InsufficientFundsError, InvalidAmountError, SameAccountError,
)


def test_balance_creates_account_at_zero(hub):
    assert hub.ledger.balance("alice") == {"success": True, "balance": 0, "userId": "alice"}
    assert hub.ledger_store.account_count() == 1


def test_top_up_pushes_balance_to_joined_channel(hub, ledger_join):
    channel = ledger_join("alice")
    result = hub.ledger.top_up("alice", 200)
    assert result["success"] is True
    assert result["balance"] == 200
    assert result["transaction"]["type"] == "topup"
    assert channel.types() == ["balance_updated"]
    pushed = channel.payloads("balance_updated")[0]
    assert pushed["balance"] == 200
    assert pushed["transaction"]["id"] == result["transaction"]["id"]


def test_transfer_scenario(hub, ledger_join):
    hub.ledger.top_up("alice", 200)
    a, b = ledger_join("alice"), ledger_join("bob")
    a.clear()

    result = hub.ledger.transfer("alice", "bob", 150)

    assert result == {
        "success": True, "fromUserId": "alice", "toUserId": "bob",
        "amount": 150, "newBalanceFrom": 50, "newBalanceTo": 150,
    }
    assert [p["balance"] for p in a.payloads("balance_updated")] == [50]
    assert [p["balance"] for p in b.payloads("balance_updated")] == [150]

    out = hub.ledger.transactions("alice", 20)["transactions"][0]
    assert out["type"] == "transfer_out" and out["amount"] == -150
    assert out["relatedUserId"] == "bob"
    inc = hub.ledger.transactions("bob", 20)["transactions"][0]
    assert inc["type"] == "transfer_in" and inc["amount"] == 150
    assert inc["timestamp"] == out["timestamp"]


def test_transfer_rejections_push_nothing(hub, ledger_join):
    hub.ledger.top_up("alice", 100)
    a = ledger_join("alice")
    with pytest.raises(SameAccountError):
        hub.ledger.transfer("alice", "alice", 100)
    with pytest.raises(InsufficientFundsError):
        hub.ledger.transfer("alice", "bob", 150)
    with pytest.raises(InvalidAmountError):
        hub.ledger.transfer("alice", "bob", 50)
    assert a.events == [{"type": "balance_updated", "payload": {"userId": "alice", "balance": 100}}]
    assert hub.ledger_store.get_account("bob") is None


def test_payment_confirms_till_before_payer_push(hub, ledger_join):
    hub.ledger.top_up("alice", 500)
    order = []
    till = ledger_join("kassa-1")
    payer = ledger_join("alice")
    payer.clear()
    till.send = _recording(till.send, order, "till")
    payer.send = _recording(payer.send, order, "payer")

    result = hub.ledger.payment("alice", "Corner Shop", 120, "kassa-1")

    assert order == ["till:payment_successful", "payer:balance_updated"]
    assert result["newBalance"] == 380
    assert result["transaction"]["type"] == "qr_payment"
    assert result["transaction"]["amount"] == -120
    assert result["transaction"]["description"] == 'Payment at "Corner Shop" (till kassa-1)'
    confirmation = till.payloads("payment_successful")[0]
    assert confirmation == {
        "status": "ok", "amount": 120, "userId": "alice",
        "transactionId": result["transaction"]["id"],
    }


def test_payment_with_absent_till_still_commits(hub):
    hub.ledger.top_up("alice", 500)
    result = hub.ledger.payment("alice", "Shop", 100, "kassa-9")
    assert result["newBalance"] == 400


def test_payment_without_funds_mutates_nothing(hub, ledger_join):
    till = ledger_join("kassa-1")
    with pytest.raises(InsufficientFundsError):
        hub.ledger.payment("alice", "Shop", 100, "kassa-1")
    assert till.events == []
    assert hub.ledger_store.transaction_count() == 0


def test_join_pushes_snapshot_only_for_existing_account(hub, make_channel):
    fresh = make_channel()
    hub.ledger.join(fresh, "newcomer")
    assert fresh.events == []

    hub.ledger.top_up("alice", 300)
    channel = make_channel()
    hub.ledger.join(channel, "alice")
    assert channel.payloads("balance_updated") == [{"userId": "alice", "balance": 300}]


def test_rejoin_releases_previous_identity(hub, make_channel):
    channel = make_channel()
    hub.ledger.join(channel, "kassa-1")
    hub.ledger.join(channel, "kassa-2", previous="kassa-1")
    assert hub.ledger_connections.identities() == ["kassa-2"]


def test_leave_with_superseded_channel_keeps_binding(hub, make_channel):
    old, new = make_channel("old"), make_channel("new")
    hub.ledger.join(old, "kassa-1")
    hub.ledger.join(new, "kassa-1")
    hub.ledger.leave("kassa-1", old)
    assert hub.ledger_connections.is_live("kassa-1")


def test_online_users_lists_ledger_identities(hub, ledger_join):
    ledger_join("alice")
    ledger_join("kassa-1")
    result = hub.ledger.online_users()
    assert result["count"] == 2
    assert sorted(u["userId"] for u in result["users"]) == ["alice", "kassa-1"]


def test_status_counts(hub):
    hub.ledger.top_up("alice", 200)
    hub.ledger.transfer("alice", "bob", 100)
    status = hub.ledger.status()
    assert status["status"] == "running"
    assert status["users"] == 2
    assert status["transactions"] == 3
    assert status["uptime"] >= 0


def _recording(send, order, label):
    def _send(event):
        order.append(f"{label}:{event['type']}")
        return send(event)
    return _send
