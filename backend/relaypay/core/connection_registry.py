"""Connection Registry — identity → live outbound channel, plus liveness bookkeeping.

Invariants:
    - At most one Connection per identity; a new register() supersedes the old
      channel reference without closing it (the transport owns the socket)
    - unregister(identity, channel) is a no-op unless channel is still current,
      so a superseded socket closing never evicts its successor
    - send() never raises and never blocks — SKIPPED when no open channel
    - sweep() retires connections that left the previous ping unanswered

Design Decisions:
    - One lock for the map; channel sends happen under it because they only enqueue
    - Liveness lives on the Connection, not the channel: the registry decides retirement
"""

import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime

from relaypay.core.channel_protocols import Channel
from relaypay.core.domain_types import Liveness, SendResult
from relaypay.core.entities import utc_now

logger = logging.getLogger(__name__)


@dataclass
class Connection:
    identity: str
    channel: Channel
    liveness: Liveness = Liveness.ALIVE
    connected_at: datetime = field(default_factory=utc_now)
    last_seen: datetime = field(default_factory=utc_now)

    def to_dict(self) -> dict:
        return {
            "userId": self.identity,
            "connectedAt": self.connected_at.isoformat(),
            "lastSeen": self.last_seen.isoformat(),
        }


class ConnectionRegistry:
    """Maps identities to their current channel. Named for log lines only."""

    def __init__(self, name: str) -> None:
        self.name = name
        self._lock = threading.Lock()
        self._connections: dict[str, Connection] = {}

    def register(self, identity: str, channel: Channel) -> Channel | None:
        """Bind identity to channel. Returns the superseded channel, if any."""
        with self._lock:
            previous = self._connections.get(identity)
            self._connections[identity] = Connection(identity, channel)
        if previous is not None and previous.channel is not channel:
            logger.info(
                f"[{self.name}] {identity} superseded channel {previous.channel.channel_id}",
                extra={"identity": identity},
            )
            return previous.channel
        return None

    def unregister(self, identity: str, channel: Channel | None = None) -> bool:
        with self._lock:
            current = self._connections.get(identity)
            if current is None:
                return False
            if channel is not None and current.channel is not channel:
                return False
            del self._connections[identity]
            return True

    def get(self, identity: str) -> Connection | None:
        with self._lock:
            return self._connections.get(identity)

    def is_live(self, identity: str) -> bool:
        with self._lock:
            conn = self._connections.get(identity)
            return conn is not None and conn.channel.is_open

    def send(self, identity: str, event: dict) -> SendResult:
        with self._lock:
            conn = self._connections.get(identity)
            if conn is None or not conn.channel.is_open:
                return SendResult.SKIPPED
            ok = conn.channel.send(event)
        return SendResult.DELIVERED if ok else SendResult.SKIPPED

    def broadcast(self, event: dict, exclude: str | None = None) -> int:
        """Send to every open channel except `exclude`. Returns delivered count."""
        sent = 0
        with self._lock:
            for identity, conn in self._connections.items():
                if identity == exclude or not conn.channel.is_open:
                    continue
                if conn.channel.send(event):
                    sent += 1
        return sent

    def touch(self, identity: str, channel: Channel) -> None:
        """Record inbound activity from channel; answers any pending ping."""
        with self._lock:
            conn = self._connections.get(identity)
            if conn is not None and conn.channel is channel:
                conn.liveness = Liveness.ALIVE
                conn.last_seen = utc_now()

    def sweep(self) -> list[Connection]:
        """Retire silent connections, ping the rest. Returns the retired ones."""
        retired: list[Connection] = []
        with self._lock:
            for identity, conn in list(self._connections.items()):
                if conn.liveness == Liveness.PING_PENDING or not conn.channel.is_open:
                    del self._connections[identity]
                    retired.append(conn)
                    continue
                conn.liveness = Liveness.PING_PENDING
                conn.channel.ping()
        for conn in retired:
            logger.info(
                f"[{self.name}] retired unresponsive connection for {conn.identity}",
                extra={"identity": conn.identity},
            )
        return retired

    def connections(self) -> list[Connection]:
        with self._lock:
            return list(self._connections.values())

    def identities(self) -> list[str]:
        with self._lock:
            return list(self._connections)

    def close_all(self) -> None:
        with self._lock:
            conns = list(self._connections.values())
            self._connections.clear()
        for conn in conns:
            conn.channel.close()

    def __len__(self) -> int:
        with self._lock:
            return len(self._connections)
