"""Root conftest — shared test configuration and channel doubles.

Invariants:
    - Every test gets a fresh hub (registries, directory, stores) — no shared state
    - FakeChannel records outbound events in send order, like a drained queue
"""

import os

import pytest

# Keep test output readable
os.environ.setdefault("LOG_FORMAT", "text")

from relaypay.config import Settings  # noqa: E402
from relaypay.services.hub import build_hub  # noqa: E402


class FakeChannel:
    """In-memory Channel: records every event it accepts."""

    def __init__(self, channel_id: str = "fake"):
        self.channel_id = channel_id
        self.events: list[dict] = []
        self.pings = 0
        self.closed = False
        self._open = True

    @property
    def is_open(self) -> bool:
        return self._open

    def send(self, event: dict) -> bool:
        if not self._open:
            return False
        self.events.append(event)
        return True

    def ping(self) -> None:
        self.pings += 1

    def close(self) -> None:
        self._open = False
        self.closed = True

    def drop(self) -> None:
        """Simulate the peer vanishing without a close handshake."""
        self._open = False

    def types(self) -> list[str]:
        return [e["type"] for e in self.events]

    def payloads(self, event_type: str) -> list[dict]:
        return [e["payload"] for e in self.events if e["type"] == event_type]

    def clear(self) -> None:
        self.events.clear()


@pytest.fixture
def make_channel():
    """Factory: make_channel("alice") -> FakeChannel."""
    def _make(channel_id: str = "fake") -> FakeChannel:
        return FakeChannel(channel_id)
    return _make


@pytest.fixture
def settings():
    return Settings(liveness_interval_seconds=0.05)


@pytest.fixture
def hub(settings):
    return build_hub(settings)
