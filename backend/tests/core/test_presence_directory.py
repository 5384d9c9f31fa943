"""PresenceDirectory tests — online/offline transitions and listener timing.

Tests cover:
    - First-seen ordering of snapshot()
    - Idempotent set_offline
    - Listeners fire synchronously on transitions only
    - require() raises UnknownRecipientError
"""

import pytest

from relaypay.core.errors import UnknownRecipientError
from relaypay.core.presence_directory import PresenceDirectory


def test_set_online_creates_user():
    directory = PresenceDirectory()
    user = directory.set_online("u1", "Alice")
    assert user.online is True
    assert user.display_name == "Alice"
    assert directory.online_count() == 1


def test_snapshot_keeps_first_seen_order():
    directory = PresenceDirectory()
    directory.set_online("b", "Bob")
    directory.set_online("a", "Alice")
    directory.set_offline("b")
    directory.set_online("b", "Bobby")
    assert [u.id for u in directory.snapshot()] == ["b", "a"]
    assert directory.get("b").display_name == "Bobby"


def test_set_offline_is_idempotent():
    directory = PresenceDirectory()
    directory.set_online("a", "Alice")
    assert directory.set_offline("a") is True
    first = directory.get("a")
    assert directory.set_offline("a") is False
    assert directory.get("a") == first


def test_set_offline_unknown_user_is_noop():
    directory = PresenceDirectory()
    assert directory.set_offline("ghost") is False
    assert len(directory) == 0


def test_offline_users_are_kept():
    directory = PresenceDirectory()
    directory.set_online("a", "Alice")
    directory.set_offline("a")
    assert len(directory) == 1
    assert directory.get("a").online is False


def test_listener_fires_before_return_with_post_change_snapshot():
    directory = PresenceDirectory()
    seen = []
    directory.subscribe(seen.append)
    directory.set_online("a", "Alice")
    assert len(seen) == 1
    assert seen[0].user.online is True
    assert [u.id for u in seen[0].snapshot] == ["a"]

    directory.set_offline("a")
    assert len(seen) == 2
    assert seen[1].snapshot[0].online is False


def test_listener_not_called_for_repeated_offline():
    directory = PresenceDirectory()
    seen = []
    directory.set_online("a", "Alice")
    directory.set_offline("a")
    directory.subscribe(seen.append)
    directory.set_offline("a")
    assert seen == []


def test_require_unknown_raises():
    with pytest.raises(UnknownRecipientError):
        PresenceDirectory().require("ghost")
