"""Ledger Socket — WebSocket endpoint that binds a channel to a user or till identity.

Invariants:
    - A socket is bound to at most one identity; a second join rebinds it
    - Balance and payment pushes are produced by the ledger, not by this endpoint
    - Malformed frames are logged and dropped; the socket stays open
"""

import logging

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect

from relaypay.api.routes.socket_frames import open_channel, receive_frame
from relaypay.core.domain_types import LedgerEventType
from relaypay.core.errors import TransportFaultError
from relaypay.schemas.socket_events import parse_ledger_event
from relaypay.services.hub import RealtimeHub, get_hub

logger = logging.getLogger(__name__)
router = APIRouter(tags=["ledger"])


@router.websocket("/ws/ledger")
async def ledger_socket(websocket: WebSocket, hub: RealtimeHub = Depends(get_hub)):
    channel = await open_channel(websocket, hub.settings.outbound_queue_size)
    identity: str | None = None
    logger.info(f"Ledger connection opened ({channel.channel_id})")
    try:
        while True:
            raw = await receive_frame(websocket)
            try:
                event = parse_ledger_event(raw)
            except TransportFaultError as e:
                logger.warning(e.message, extra={"error_code": e.code, "identity": identity})
                continue
            if identity is not None:
                hub.ledger.touch(identity, channel)
            if event.type == LedgerEventType.JOIN.value:
                hub.ledger.join(channel, event.payload.id, previous=identity)
                identity = event.payload.id
    except WebSocketDisconnect:
        logger.info(
            f"Ledger connection closed ({channel.channel_id})",
            extra={"identity": identity},
        )
    finally:
        if identity is not None:
            hub.ledger.leave(identity, channel)
        await channel.aclose()
