from fastapi import WebSocket, WebSocketDisconnect
from typing import Dict, Optional, Set
import json
import asyncio
import contextlib
import logging
from datetime import datetime

from src.realtime.change_feed import ChangeEvent, WATCHED_TABLES, change_feed

logger = logging.getLogger(__name__)

class Connection:
    """A connected dashboard client and its outbound queue"""

    def __init__(self, websocket: WebSocket, loop: asyncio.AbstractEventLoop):
        self.websocket = websocket
        self.loop = loop
        self.queue: asyncio.Queue = asyncio.Queue()
        self.tables: Optional[Set[str]] = None  # None means every watched table

    def wants(self, table: str) -> bool:
        return self.tables is None or table in self.tables

    def enqueue(self, message: dict):
        """Queue a message from any thread"""
        self.loop.call_soon_threadsafe(self.queue.put_nowait, message)

class WebSocketManager:
    """Manager for WebSocket connections receiving committed row changes"""

    def __init__(self):
        self.active_connections: Dict[WebSocket, Connection] = {}
        self._unsubscribe = None

    async def connect(self, websocket: WebSocket) -> Connection:
        """Accept new WebSocket connection"""
        await websocket.accept()
        connection = Connection(websocket, asyncio.get_running_loop())
        self.active_connections[websocket] = connection

        # Start listening to the feed with the first client
        if self._unsubscribe is None:
            self._unsubscribe = change_feed.subscribe(self.broadcast_change)

        return connection

    def disconnect(self, websocket: WebSocket):
        """Remove WebSocket connection"""
        self.active_connections.pop(websocket, None)

        if not self.active_connections and self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    def subscribe(self, websocket: WebSocket, tables) -> Set[str]:
        """Restrict a connection to some tables; unknown names are ignored"""
        connection = self.active_connections.get(websocket)
        if connection is None:
            return set()

        selected = {table for table in tables if table in WATCHED_TABLES}
        connection.tables = selected
        connection.enqueue({
            "type": "subscription_confirmed",
            "tables": sorted(selected),
            "timestamp": datetime.now().isoformat()
        })
        return selected

    def broadcast_change(self, change: ChangeEvent):
        """Fan a committed change out to interested clients"""
        message = change.to_message()
        for connection in list(self.active_connections.values()):
            if connection.wants(change.table):
                connection.enqueue(message)

    async def pump(self, connection: Connection):
        """Send queued messages to the client until cancelled or a send fails"""
        while True:
            message = await connection.queue.get()
            try:
                await connection.websocket.send_text(json.dumps(message))
            except Exception:
                logger.info("Dropping WebSocket client after a failed send", exc_info=True)
                self.disconnect(connection.websocket)
                return

# Global WebSocket manager instance
ws_manager = WebSocketManager()

# WebSocket endpoint function
async def websocket_endpoint(websocket: WebSocket):
    """WebSocket endpoint streaming train, booking, payment, revenue and cancellation changes"""
    connection = await ws_manager.connect(websocket)
    sender = asyncio.create_task(ws_manager.pump(connection))

    try:
        while True:
            data = await websocket.receive_text()

            try:
                message = json.loads(data)
            except json.JSONDecodeError:
                logger.debug("Ignoring malformed WebSocket message: %s", data)
                continue

            if message.get("type") == "subscribe":
                ws_manager.subscribe(websocket, message.get("tables") or [])

            elif message.get("type") == "ping":
                connection.enqueue({
                    "type": "pong",
                    "timestamp": datetime.now().isoformat()
                })

    except WebSocketDisconnect:
        pass
    finally:
        sender.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await sender
        ws_manager.disconnect(websocket)
