"""WebSocket Channel — queue-backed outbound half of a FastAPI WebSocket.

Invariants:
    - send() never awaits: events go onto a bounded FIFO drained by one pump task,
      so per-channel order equals enqueue order
    - A full queue (slow consumer) or a failed write closes the channel
    - Once closed, send() returns False and pending events are dropped
    - The socket close is scheduled exactly once, even when a failed write
      already stopped the channel from accepting sends

Design Decisions:
    - Implements core.channel_protocols.Channel structurally (no inheritance)
    - Pump task per socket: the core can enqueue while holding short locks and the
      socket write happens outside them
"""

import asyncio
import logging
import uuid

from fastapi import WebSocket

from relaypay.core import event_envelopes as events

logger = logging.getLogger(__name__)


class WebSocketChannel:

    def __init__(self, websocket: WebSocket, queue_size: int = 256):
        self.channel_id = uuid.uuid4().hex[:12]
        self._ws = websocket
        self._queue: asyncio.Queue[dict] = asyncio.Queue(maxsize=queue_size)
        self._open = True
        self._pump_task: asyncio.Task | None = None
        self._close_task: asyncio.Task | None = None

    @property
    def is_open(self) -> bool:
        return self._open

    def start(self) -> None:
        self._pump_task = asyncio.create_task(self._pump())

    def send(self, event: dict) -> bool:
        if not self._open:
            return False
        try:
            self._queue.put_nowait(event)
        except asyncio.QueueFull:
            logger.warning(f"Outbound queue full on channel {self.channel_id}; closing")
            self.close()
            return False
        return True

    def ping(self) -> None:
        self.send(events.ping())

    def close(self) -> None:
        """Stop writing and close the socket in the background."""
        self._open = False
        if self._pump_task is not None:
            self._pump_task.cancel()
        self._schedule_socket_close()

    async def aclose(self) -> None:
        """Called by the endpoint once the receive loop has ended."""
        self._open = False
        if self._pump_task is not None:
            self._pump_task.cancel()
            try:
                await self._pump_task
            except asyncio.CancelledError:
                pass
        if self._close_task is not None:
            await self._close_task

    async def _pump(self) -> None:
        while True:
            event = await self._queue.get()
            try:
                await self._ws.send_json(event)
            except Exception as e:
                logger.info(f"Channel {self.channel_id} write failed: {e}")
                self._open = False
                self._schedule_socket_close()
                return

    def _schedule_socket_close(self) -> None:
        if self._close_task is None:
            self._close_task = asyncio.create_task(self._close_socket())

    async def _close_socket(self) -> None:
        try:
            await self._ws.close(code=1001)
        except Exception as e:
            logger.debug(f"Channel {self.channel_id} already closed: {e}")
