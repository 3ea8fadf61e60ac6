"""
OnceDrop Realtime Push Service
WebSocket push of server-wide announcements
"""

import asyncio
import concurrent.futures
import json
import logging
import threading
import uuid
from collections import deque
from datetime import datetime
from typing import Optional, Dict, Any, List, Set
from dataclasses import dataclass, field
from enum import Enum
from fastapi import WebSocket

from config.settings import ANNOUNCEMENT_HISTORY_SIZE

logger = logging.getLogger(__name__)


class EventType(str, Enum):
    """Push event types"""
    CONNECTED = "connected"
    HEARTBEAT = "heartbeat"
    ANNOUNCEMENT = "announcement"


@dataclass
class PushEvent:
    """Push event"""
    event_type: EventType
    data: Dict[str, Any]
    event_id: str = field(default_factory=lambda: f"evt_{uuid.uuid4().hex[:12]}")
    timestamp: datetime = field(default_factory=datetime.utcnow)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event_id": self.event_id,
            "event_type": self.event_type.value,
            "data": self.data,
            "timestamp": self.timestamp.isoformat()
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), ensure_ascii=False)


class ConnectionManager:
    """WebSocket connection manager"""

    def __init__(self):
        # user_id -> Set[WebSocket]
        self.active_connections: Dict[str, Set[WebSocket]] = {}
        self._lock = asyncio.Lock()

    async def connect(self, websocket: WebSocket, user_id: str):
        await websocket.accept()

        async with self._lock:
            self.active_connections.setdefault(user_id, set()).add(websocket)

        await self.send_personal(
            user_id,
            PushEvent(
                event_type=EventType.CONNECTED,
                data={"user_id": user_id, "message": "Connected to OnceDrop realtime service"}
            )
        )

    async def disconnect(self, websocket: WebSocket, user_id: str):
        async with self._lock:
            if user_id in self.active_connections:
                self.active_connections[user_id].discard(websocket)
                if not self.active_connections[user_id]:
                    del self.active_connections[user_id]

    async def send_personal(self, user_id: str, event: PushEvent):
        if user_id not in self.active_connections:
            return

        message = event.to_json()
        dead_connections = []

        for websocket in list(self.active_connections[user_id]):
            try:
                await websocket.send_text(message)
            except Exception:
                dead_connections.append(websocket)

        for ws in dead_connections:
            await self.disconnect(ws, user_id)

    async def broadcast_all(self, event: PushEvent):
        """Global broadcast"""
        tasks = [self.send_personal(user_id, event) for user_id in list(self.active_connections.keys())]
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    def get_stats(self) -> Dict[str, Any]:
        return {
            "total_users": len(self.active_connections),
            "total_connections": sum(len(conns) for conns in self.active_connections.values())
        }


class RealtimeService:
    """Realtime push service"""

    def __init__(self, history_size: int = ANNOUNCEMENT_HISTORY_SIZE):
        self.ws_manager = ConnectionManager()
        # Appended from host worker threads, read from request threads.
        self._history: deque = deque(maxlen=history_size)
        self._history_lock = threading.Lock()

    async def broadcast(self, event: PushEvent):
        await self.ws_manager.broadcast_all(event)

    def add_announcement(self, event: PushEvent):
        with self._history_lock:
            self._history.append(event)

    def recent_announcements(self, limit: Optional[int] = None) -> List[Dict[str, Any]]:
        with self._history_lock:
            snapshot = list(self._history)
        events = [event.to_dict() for event in reversed(snapshot)]
        return events[:limit] if limit else events

    def get_stats(self) -> Dict[str, Any]:
        with self._history_lock:
            announcements = len(self._history)
        return {
            "websocket": self.ws_manager.get_stats(),
            "announcements": announcements
        }


class RealtimeBroadcastChannel:
    """
    Broadcast channel pushing announcements to every WebSocket client.

    Announcements may come from any host worker thread; delivery is scheduled
    on the loop bound with bind_loop() and not awaited.
    """

    def __init__(self, service: RealtimeService, loop: Optional[asyncio.AbstractEventLoop] = None):
        self.service = service
        self._loop = loop

    def bind_loop(self, loop: asyncio.AbstractEventLoop):
        self._loop = loop

    def send_server_wide_message(self, text: str) -> None:
        event = PushEvent(event_type=EventType.ANNOUNCEMENT, data={"message": text})
        self.service.add_announcement(event)

        loop = self._loop
        if loop is None or loop.is_closed():
            logger.debug(f"No event loop bound, announcement kept in history only: {text}")
            return

        future = asyncio.run_coroutine_threadsafe(self.service.broadcast(event), loop)
        future.add_done_callback(_log_broadcast_failure)


def _log_broadcast_failure(future: concurrent.futures.Future):
    if future.cancelled():
        logger.warning("Announcement broadcast was cancelled")
        return
    error = future.exception()
    if error is not None:
        logger.warning(f"Announcement broadcast failed: {error}")


_realtime_service_instance = None


def get_realtime_service() -> RealtimeService:
    """Realtime service singleton"""
    global _realtime_service_instance
    if _realtime_service_instance is None:
        _realtime_service_instance = RealtimeService()
    return _realtime_service_instance
