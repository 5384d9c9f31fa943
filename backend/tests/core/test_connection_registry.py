"""ConnectionRegistry tests — single entry per identity, send/skip, liveness sweep.

Tests cover:
    - register() supersedes without closing the old channel
    - unregister() with a stale channel is a no-op
    - send() skips missing or closed channels
    - broadcast() exclusion
    - sweep(): ping, then retire if still silent; touch() answers a ping
"""

from relaypay.core.connection_registry import ConnectionRegistry
from relaypay.core.domain_types import Liveness, SendResult


def test_register_and_send(make_channel):
    registry = ConnectionRegistry("test")
    channel = make_channel("a")
    assert registry.register("alice", channel) is None
    assert registry.is_live("alice")
    assert registry.send("alice", {"type": "x"}) == SendResult.DELIVERED
    assert channel.types() == ["x"]


def test_register_supersedes_without_closing(make_channel):
    registry = ConnectionRegistry("test")
    old, new = make_channel("old"), make_channel("new")
    registry.register("alice", old)
    assert registry.register("alice", new) is old
    assert old.closed is False
    assert len(registry) == 1
    registry.send("alice", {"type": "x"})
    assert old.events == []
    assert new.types() == ["x"]


def test_reregistering_same_channel_returns_none(make_channel):
    registry = ConnectionRegistry("test")
    channel = make_channel()
    registry.register("alice", channel)
    assert registry.register("alice", channel) is None


def test_unregister_with_stale_channel_is_noop(make_channel):
    registry = ConnectionRegistry("test")
    old, new = make_channel("old"), make_channel("new")
    registry.register("alice", old)
    registry.register("alice", new)
    assert registry.unregister("alice", old) is False
    assert registry.is_live("alice")
    assert registry.unregister("alice", new) is True
    assert not registry.is_live("alice")


def test_unregister_unknown_identity():
    assert ConnectionRegistry("test").unregister("ghost") is False


def test_send_skips_missing_and_closed(make_channel):
    registry = ConnectionRegistry("test")
    assert registry.send("ghost", {"type": "x"}) == SendResult.SKIPPED
    channel = make_channel()
    registry.register("alice", channel)
    channel.drop()
    assert not registry.is_live("alice")
    assert registry.send("alice", {"type": "x"}) == SendResult.SKIPPED


def test_broadcast_excludes_subject(make_channel):
    registry = ConnectionRegistry("test")
    a, b, c = make_channel("a"), make_channel("b"), make_channel("c")
    registry.register("a", a)
    registry.register("b", b)
    registry.register("c", c)
    c.drop()
    assert registry.broadcast({"type": "x"}, exclude="a") == 1
    assert a.events == [] and b.types() == ["x"] and c.events == []


def test_sweep_pings_then_retires_silent_connections(make_channel):
    registry = ConnectionRegistry("test")
    quiet, chatty = make_channel("quiet"), make_channel("chatty")
    registry.register("quiet", quiet)
    registry.register("chatty", chatty)

    assert registry.sweep() == []
    assert quiet.pings == 1 and chatty.pings == 1
    assert registry.get("quiet").liveness == Liveness.PING_PENDING

    registry.touch("chatty", chatty)
    retired = registry.sweep()
    assert [c.identity for c in retired] == ["quiet"]
    assert registry.identities() == ["chatty"]
    assert chatty.pings == 2


def test_sweep_retires_closed_channels_immediately(make_channel):
    registry = ConnectionRegistry("test")
    channel = make_channel()
    registry.register("alice", channel)
    channel.drop()
    assert [c.identity for c in registry.sweep()] == ["alice"]


def test_touch_from_superseded_channel_is_ignored(make_channel):
    registry = ConnectionRegistry("test")
    old, new = make_channel("old"), make_channel("new")
    registry.register("alice", old)
    registry.register("alice", new)
    registry.sweep()
    registry.touch("alice", old)
    assert registry.get("alice").liveness == Liveness.PING_PENDING


def test_close_all_closes_and_clears(make_channel):
    registry = ConnectionRegistry("test")
    a, b = make_channel("a"), make_channel("b")
    registry.register("a", a)
    registry.register("b", b)
    registry.close_all()
    assert a.closed and b.closed
    assert len(registry) == 0


def test_connection_to_dict(make_channel):
    registry = ConnectionRegistry("test")
    registry.register("kassa-1", make_channel())
    data = registry.connections()[0].to_dict()
    assert data["userId"] == "kassa-1"
    assert "connectedAt" in data and "lastSeen" in data
