"""Realtime Hub — composition root for the in-memory state-and-notification engine.

Invariants:
    - Exactly one hub per process (single-process uvicorn, state lost on restart)
    - The router is subscribed to presence and ledger changes before any request runs
    - Chat and ledger sockets use separate registries: a user may hold both at once

Design Decisions:
    - Singleton hub initialized on startup: FastAPI lifespan manages lifecycle
      (no global import side effects)
    - build_hub() is a plain function so tests get a fresh, isolated hub each time
"""

import logging
import time
from dataclasses import dataclass, field

from relaypay.config import Settings
from relaypay.core.chat_store import ChatStore
from relaypay.core.connection_registry import ConnectionRegistry
from relaypay.core.ledger_store import AmountRange, LedgerStore
from relaypay.core.presence_directory import PresenceDirectory
from relaypay.services.chat_service import ChatService
from relaypay.services.ledger_service import LedgerService
from relaypay.services.liveness_sweep import LivenessSweep
from relaypay.services.notification_router import NotificationRouter

logger = logging.getLogger(__name__)


@dataclass
class RealtimeHub:
    settings: Settings
    chat_connections: ConnectionRegistry
    ledger_connections: ConnectionRegistry
    presence: PresenceDirectory
    chat_store: ChatStore
    ledger_store: LedgerStore
    router: NotificationRouter
    chat: ChatService
    ledger: LedgerService
    sweep: LivenessSweep
    started_at: float = field(default_factory=time.monotonic)

    def shutdown(self) -> None:
        """Close every registered channel. In-flight HTTP responses are unaffected."""
        self.chat_connections.close_all()
        self.ledger_connections.close_all()


def build_hub(settings: Settings) -> RealtimeHub:
    chat_connections = ConnectionRegistry("chat")
    ledger_connections = ConnectionRegistry("ledger")
    presence = PresenceDirectory()
    chat_store = ChatStore()
    ledger_store = LedgerStore(
        topup_range=AmountRange(settings.topup_min_amount, settings.topup_max_amount),
        transfer_range=AmountRange(
            settings.transfer_min_amount, settings.transfer_max_amount,
        ),
    )
    router = NotificationRouter(chat_connections, ledger_connections, presence)
    presence.subscribe(router.on_presence_change)
    ledger_store.subscribe(router.on_balance_change)

    started_at = time.monotonic()
    chat = ChatService(chat_connections, presence, chat_store, router)
    ledger = LedgerService(ledger_store, ledger_connections, router, started_at)
    sweep = LivenessSweep(
        chat_connections, ledger_connections, chat, ledger,
        interval_seconds=settings.liveness_interval_seconds,
    )
    return RealtimeHub(
        settings=settings,
        chat_connections=chat_connections,
        ledger_connections=ledger_connections,
        presence=presence,
        chat_store=chat_store,
        ledger_store=ledger_store,
        router=router,
        chat=chat,
        ledger=ledger,
        sweep=sweep,
        started_at=started_at,
    )


# Singleton (initialized on startup)
hub: RealtimeHub | None = None


def init_hub(settings: Settings) -> RealtimeHub:
    global hub
    hub = build_hub(settings)
    logger.info("Realtime hub initialized")
    return hub


def get_hub() -> RealtimeHub:
    """FastAPI dependency for the process-wide hub."""
    if not hub:
        raise RuntimeError("Hub not initialized")
    return hub
