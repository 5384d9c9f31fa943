"""Boundary Protocols — contracts between core and the transport shell.

Invariants:
    - Core NEVER imports from shell — dependency arrows point inward only
    - Outbound writes go through Channel.send, which never blocks and never raises
    - Implementations provided by shell (infrastructure/websocket_channel.py)

Design Decisions:
    - Protocol over ABC: structural subtyping, test doubles need no inheritance
    - Sync send: the core calls it while holding short locks, so the shell
      enqueues and drains asynchronously instead of writing to the socket inline
"""

from typing import Protocol


class Channel(Protocol):
    """Bidirectional message channel as the core sees it (outbound half only)."""
    channel_id: str

    @property
    def is_open(self) -> bool: ...

    def send(self, event: dict) -> bool:
        """Enqueue an event. False when the channel is closed or saturated."""
        ...

    def ping(self) -> None:
        """Ask the peer for a liveness response."""
        ...

    def close(self) -> None:
        """Retire the channel; pending events are dropped."""
        ...
