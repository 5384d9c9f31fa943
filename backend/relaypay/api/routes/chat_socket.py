"""Chat Socket — WebSocket endpoint for the chat relay.

Invariants:
    - One ChatSession per socket; the session is released in `finally`, so an
      abrupt disconnect always reaches presence handling
    - Malformed frames are logged and dropped; the socket stays open
    - Unexpected handler failures answer with a generic error event, detail logged only
"""

import logging

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect

from relaypay.api.routes.socket_frames import open_channel, receive_frame
from relaypay.core.errors import InternalFaultError, TransportFaultError
from relaypay.schemas.socket_events import parse_chat_event
from relaypay.services.chat_service import ChatSession
from relaypay.services.hub import RealtimeHub, get_hub

logger = logging.getLogger(__name__)
router = APIRouter(tags=["chat"])


@router.websocket("/ws/chat")
async def chat_socket(websocket: WebSocket, hub: RealtimeHub = Depends(get_hub)):
    channel = await open_channel(websocket, hub.settings.outbound_queue_size)
    session = ChatSession(channel)
    logger.info(f"Chat connection opened ({channel.channel_id})")
    try:
        while True:
            raw = await receive_frame(websocket)
            try:
                event = parse_chat_event(raw)
            except TransportFaultError as e:
                logger.warning(
                    e.message,
                    extra={"error_code": e.code, "user_id": session.user_id},
                )
                continue
            try:
                hub.chat.handle(session, event.type, event.payload)
            except Exception as e:
                logger.error(
                    f"Chat handler failed for {event.type}: {e}",
                    exc_info=True, extra={"user_id": session.user_id},
                )
                channel.send(InternalFaultError().to_event())
    except WebSocketDisconnect:
        logger.info(
            f"Chat connection closed ({channel.channel_id})",
            extra={"user_id": session.user_id},
        )
    finally:
        hub.chat.disconnect(session)
        await channel.aclose()
