# parlour_api/realtime/broadcaster.py
"""
Process-wide fan-out of change events.

Every subscriber receives every published event. There is no backlog and no
delivery guarantee: listeners use the events as a cue to refresh their views,
the database stays the system of record.
"""
import asyncio
import logging
from threading import Lock
from typing import Any, Callable, Dict, List, Protocol

from fastapi import Request

logger = logging.getLogger(__name__)

ATTENDANCE_UPDATE = "attendance:update"
ATTENDANCE_DAILY_UPDATE = "attendance:daily-update"
ATTENDANCE_DELETE = "attendance:delete"
TASK_UPDATE = "task-update"

Listener = Callable[[str, Dict[str, Any]], Any]


class Publisher(Protocol):
    def publish(self, event: str, data: Dict[str, Any]) -> None:
        ...


class Broadcaster:
    def __init__(self):
        self._listeners: List[Listener] = []
        self._lock = Lock()

    def subscribe(self, listener: Listener) -> None:
        with self._lock:
            if listener not in self._listeners:
                self._listeners.append(listener)

    def unsubscribe(self, listener: Listener) -> None:
        with self._lock:
            if listener in self._listeners:
                self._listeners.remove(listener)

    @property
    def subscriber_count(self) -> int:
        return len(self._listeners)

    def publish(self, event: str, data: Dict[str, Any]) -> None:
        with self._lock:
            listeners = list(self._listeners)

        logger.debug("publish %s to %d listener(s)", event, len(listeners))
        for listener in listeners:
            try:
                listener(event, data)
            except Exception:
                logger.warning("Listener %r failed for event %s", listener, event, exc_info=True)


class SocketListener:
    """
    Forwards events to one WebSocket as {"event": ..., "data": ...} frames.

    publish() is usually called from a worker thread (sync routes), so the
    send is scheduled onto the loop that owns the socket.
    """

    def __init__(self, websocket, loop: asyncio.AbstractEventLoop):
        self.websocket = websocket
        self.loop = loop

    def __call__(self, event: str, data: Dict[str, Any]) -> None:
        coro = self.websocket.send_json({"event": event, "data": data})
        try:
            running = asyncio.get_running_loop()
        except RuntimeError:
            running = None

        if running is self.loop:
            future = self.loop.create_task(coro)
        else:
            future = asyncio.run_coroutine_threadsafe(coro, self.loop)
        future.add_done_callback(self._log_failure)

    @staticmethod
    def _log_failure(future) -> None:
        if future.cancelled():
            return
        exc = future.exception()
        if exc is not None:
            logger.warning("WebSocket send failed: %s", exc)


def get_publisher(request: Request) -> Publisher:
    return request.app.state.publisher
