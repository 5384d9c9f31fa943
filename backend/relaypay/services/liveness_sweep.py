"""Liveness Sweep — periodic retirement of unresponsive connections.

Invariants:
    - Each sweep pings every registered channel; a channel still silent at the
      next sweep is retired and routed through normal disconnect handling
    - A failing sweep is logged and the loop keeps running
    - Cancellation (shutdown) exits cleanly

Design Decisions:
    - asyncio task owned by the app lifespan, not a thread: registry operations are
      short and lock-protected, so the loop never blocks the event loop for long
    - sweep_once() is synchronous and public — tests drive it without sleeping
"""

import asyncio
import logging

from relaypay.services.chat_service import ChatService
from relaypay.services.ledger_service import LedgerService
from relaypay.core.connection_registry import ConnectionRegistry

logger = logging.getLogger(__name__)


class LivenessSweep:

    def __init__(
        self,
        chat_connections: ConnectionRegistry,
        ledger_connections: ConnectionRegistry,
        chat: ChatService,
        ledger: LedgerService,
        interval_seconds: float = 30.0,
    ):
        self._chat_connections = chat_connections
        self._ledger_connections = ledger_connections
        self._chat = chat
        self._ledger = ledger
        self.interval_seconds = interval_seconds

    def sweep_once(self) -> int:
        """Run one sweep over both registries. Returns the number retired."""
        retired = 0
        for conn in self._chat_connections.sweep():
            self._chat.retire(conn)
            retired += 1
        for conn in self._ledger_connections.sweep():
            self._ledger.retire(conn)
            retired += 1
        if retired:
            logger.info(f"Liveness sweep retired {retired} connection(s)")
        return retired

    async def run(self) -> None:
        logger.info(f"Liveness sweep started (every {self.interval_seconds}s)")
        try:
            while True:
                await asyncio.sleep(self.interval_seconds)
                try:
                    self.sweep_once()
                except Exception as e:
                    logger.error(f"Liveness sweep failed: {e}", exc_info=True)
        except asyncio.CancelledError:
            logger.info("Liveness sweep stopped")
            raise
