"""Service test fixtures — authenticated chat sessions and joined ledger channels.

Invariants:
    - Every helper goes through the real services (no registry shortcuts)
    - Channels are FakeChannel instances, so tests read exact event order
"""

import pytest

from relaypay.schemas.socket_events import AuthPayload
from relaypay.services.chat_service import ChatSession


@pytest.fixture
def chat_login(hub, make_channel):
    """chat_login("alice", "Alice") -> ChatSession authenticated as user id alice."""
    def _login(user_id: str, username: str | None = None) -> ChatSession:
        session = ChatSession(make_channel(user_id))
        hub.chat.handle(
            session, "auth",
            AuthPayload(username=username or user_id.title(), user_id=user_id),
        )
        return session
    return _login


@pytest.fixture
def ledger_join(hub, make_channel):
    """ledger_join("kassa-1") -> FakeChannel bound on the ledger registry."""
    def _join(identity: str):
        channel = make_channel(identity)
        hub.ledger.join(channel, identity)
        return channel
    return _join
