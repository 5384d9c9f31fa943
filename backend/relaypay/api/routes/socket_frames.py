"""Socket Frame Helpers — shared receive/accept plumbing for both WebSocket endpoints.

Invariants:
    - receive_frame() returns raw text or bytes; a disconnect raises WebSocketDisconnect
    - open_channel() accepts the socket and starts its outbound pump
"""

from fastapi import WebSocket, WebSocketDisconnect

from relaypay.infrastructure.websocket_channel import WebSocketChannel


async def open_channel(websocket: WebSocket, queue_size: int) -> WebSocketChannel:
    await websocket.accept()
    channel = WebSocketChannel(websocket, queue_size)
    channel.start()
    return channel


async def receive_frame(websocket: WebSocket) -> str | bytes:
    message = await websocket.receive()
    if message["type"] == "websocket.disconnect":
        raise WebSocketDisconnect(message.get("code", 1000))
    if message.get("text") is not None:
        return message["text"]
    return message.get("bytes") or b""
