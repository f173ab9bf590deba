"""
WebSocket transport: one outbound queue and writer task per connection.
"""

import asyncio
import logging
import uuid
from typing import Any, Dict

import orjson
from fastapi import WebSocket, WebSocketDisconnect

from ..errors import GameError, INVALID_EVENT

logger = logging.getLogger(__name__)


class WebSocketTransport:
    """
    Delivers outbound messages without blocking the caller.

    Handlers run synchronously and call send(); each message is queued and a
    per-connection writer task drains the queue in order.
    """

    def __init__(self):
        self.queues: Dict[str, asyncio.Queue] = {}
        self.writers: Dict[str, asyncio.Task] = {}

    def register(self, connection_id: str, websocket: WebSocket):
        queue: asyncio.Queue = asyncio.Queue()
        self.queues[connection_id] = queue
        self.writers[connection_id] = asyncio.create_task(self._write(connection_id, websocket, queue))

    def send(self, connection_id: str, message: Dict[str, Any]) -> None:
        queue = self.queues.get(connection_id)
        if queue is None:
            return
        queue.put_nowait(message)

    async def unregister(self, connection_id: str):
        self.queues.pop(connection_id, None)
        writer = self.writers.pop(connection_id, None)
        if writer is not None:
            writer.cancel()
            try:
                await writer
            except asyncio.CancelledError:
                pass

    def __len__(self) -> int:
        return len(self.queues)

    async def _write(self, connection_id: str, websocket: WebSocket, queue: asyncio.Queue):
        try:
            while True:
                message = await queue.get()
                await websocket.send_text(orjson.dumps(message).decode())
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.warning(f"Send to {connection_id} failed: {e}")


async def serve_connection(websocket: WebSocket, manager, transport: WebSocketTransport):
    """Run one client connection until it closes."""
    await websocket.accept()
    connection_id = uuid.uuid4().hex
    transport.register(connection_id, websocket)
    logger.info(f"WebSocket connection {connection_id} accepted")

    try:
        while True:
            raw = await websocket.receive_text()
            try:
                data = orjson.loads(raw)
            except orjson.JSONDecodeError:
                manager.reject(connection_id, None, GameError(INVALID_EVENT, "Malformed JSON"))
                continue
            manager.handle_event(connection_id, data)
    except WebSocketDisconnect:
        logger.info(f"WebSocket {connection_id} disconnected")
    except Exception as e:
        logger.error(f"WebSocket {connection_id} error: {e}")
    finally:
        manager.disconnect(connection_id)
        await transport.unregister(connection_id)
