"""
Event Broadcaster

WebSocket fan-out of pipeline events to every connected client.
`publish` only enqueues; a dispatcher thread serializes and sends, so a
slow client never blocks the tick loop. Best-effort, no acknowledgment.
"""

import json
import logging
import queue
import threading
from typing import Optional, Set

from websockets.exceptions import ConnectionClosed
from websockets.sync.server import Server, ServerConnection, serve

from claw_agent.monitoring.events import Event

logger = logging.getLogger(__name__)

_STOP = object()


class EventBroadcaster:
    """JSON text frames to all open WebSocket clients."""

    def __init__(self, host: str = "0.0.0.0", port: int = 8080):
        self.host = host
        self.port = port
        self._server: Optional[Server] = None
        self._clients: Set[ServerConnection] = set()
        self._lock = threading.Lock()
        self._queue: "queue.Queue[object]" = queue.Queue()
        self._threads: list[threading.Thread] = []

    @property
    def running(self) -> bool:
        return self._server is not None

    @property
    def client_count(self) -> int:
        with self._lock:
            return len(self._clients)

    @property
    def bound_port(self) -> Optional[int]:
        if self._server is None:
            return None
        return self._server.socket.getsockname()[1]

    def start(self) -> "EventBroadcaster":
        """Bind the server and start serving/dispatching threads."""
        if self._server is not None:
            return self
        self._server = serve(self._handler, self.host, self.port)
        self._threads = [
            threading.Thread(target=self._server.serve_forever, name="ws-server", daemon=True),
            threading.Thread(target=self._dispatch_loop, name="ws-dispatch", daemon=True),
        ]
        for t in self._threads:
            t.start()
        logger.info(f"[WS] WebSocket server listening on ws://{self.host}:{self.bound_port}")
        return self

    def stop(self, timeout: float = 5.0) -> None:
        if self._server is None:
            return
        self._queue.put(_STOP)
        self._server.shutdown()
        for t in self._threads:
            t.join(timeout)
        self._server = None
        self._threads = []
        logger.info("[WS] WebSocket server stopped")

    def publish(self, event: Event) -> None:
        """Enqueue an event for delivery (dropped when the server is not running)."""
        if self._server is None:
            logger.debug(f"[WS] Not running; dropping {event.type.value}")
            return
        self._queue.put(event)

    def flush(self) -> None:
        """Block until every queued event has been dispatched."""
        self._queue.join()

    def _handler(self, websocket: ServerConnection) -> None:
        with self._lock:
            self._clients.add(websocket)
            total = len(self._clients)
        logger.info(f"[WS] Client connected from {websocket.remote_address} (total: {total})")
        try:
            for _ in websocket:
                pass  # inbound frames are ignored
        except ConnectionClosed:
            pass
        finally:
            with self._lock:
                self._clients.discard(websocket)
                remaining = len(self._clients)
            logger.info(f"[WS] Client disconnected (remaining: {remaining})")

    def _dispatch_loop(self) -> None:
        while True:
            event = self._queue.get()
            try:
                if event is _STOP:
                    return
                self._send_all(event)
            except Exception as e:
                logger.error(f"[WS] Broadcast failed: {e}")
            finally:
                self._queue.task_done()

    def _send_all(self, event: Event) -> None:
        payload = json.dumps(event.to_dict())
        with self._lock:
            clients = list(self._clients)
        sent = 0
        for client in clients:
            try:
                client.send(payload)
                sent += 1
            except ConnectionClosed:
                with self._lock:
                    self._clients.discard(client)
        logger.debug(f"[WS] Broadcast {event.type.value} -> {sent} client(s)")
