"""Dev session: live-reload clients, debounced refresh and guarded rebuilds.

Connected WebSocket clients each get an asyncio queue. After a successful
rebuild a single debounce timer is (re)armed; when it fires every client
queue receives one ``"refresh"`` token, however many rebuilds finished
during the quiet window.

Not thread-safe: only use from the event loop that serves the sockets.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable

logger = logging.getLogger(__name__)

REFRESH_PATH = "/_refresh"
REFRESH_MESSAGE = "refresh"


class DevSession:
    """Manages live-reload clients and serializes rebuilds.

    Args:
        rebuild: Coroutine function running one full build.
        debounce: Quiet window in seconds before clients are refreshed.
    """

    def __init__(
        self,
        rebuild: Callable[[], Awaitable[object]] | None = None,
        debounce: float = 0.1,
    ) -> None:
        self._clients: dict[int, asyncio.Queue[str]] = {}
        self._next_id: int = 0
        self._debounce = debounce
        self._timer: asyncio.TimerHandle | None = None
        self._rebuild = rebuild
        self._lock = asyncio.Lock()
        self._pending: bool = False
        self.rebuild_count: int = 0

    def connect(self) -> tuple[int, asyncio.Queue[str]]:
        """Register a new client. Returns (client_id, queue)."""
        client_id = self._next_id
        self._next_id += 1
        queue: asyncio.Queue[str] = asyncio.Queue(maxsize=256)
        self._clients[client_id] = queue
        logger.info(
            "Live-reload client %d connected (%d total)",
            client_id,
            len(self._clients),
        )
        return client_id, queue

    def disconnect(self, client_id: int) -> None:
        """Unregister a client."""
        self._clients.pop(client_id, None)
        logger.info(
            "Live-reload client %d disconnected (%d total)",
            client_id,
            len(self._clients),
        )

    @property
    def client_count(self) -> int:
        """Number of connected clients."""
        return len(self._clients)

    @property
    def refresh_pending(self) -> bool:
        """Whether a refresh is waiting for the debounce timer."""
        return self._timer is not None

    def schedule_refresh(self) -> None:
        """Refresh every client once the debounce window passes quietly."""
        if self._timer is not None:
            self._timer.cancel()
        loop = asyncio.get_running_loop()
        self._timer = loop.call_later(self._debounce, self._broadcast_refresh)

    def _broadcast_refresh(self) -> None:
        """Send the refresh token to all connected clients."""
        self._timer = None
        if self._clients:
            logger.info("Refreshing %d client(s)", len(self._clients))
        for client_id, queue in list(self._clients.items()):
            try:
                queue.put_nowait(REFRESH_MESSAGE)
            except asyncio.QueueFull:
                logger.warning("Client %d queue full, dropping refresh", client_id)

    async def rebuild(self, propagate: bool = False) -> bool:
        """Run a rebuild unless one is already in flight.

        A request arriving while a rebuild runs is folded into a single
        follow-up rebuild once the current one finishes. Failed rebuilds
        are logged and don't refresh clients.

        Args:
            propagate: Re-raise a failed rebuild instead of logging it.

        Returns:
            True if this call ran the rebuild, False if it was folded
            into the one in flight.
        """
        if self._rebuild is None:
            raise RuntimeError("DevSession has no rebuild function")

        if self._lock.locked():
            self._pending = True
            return False

        async with self._lock:
            while True:
                self._pending = False
                self.rebuild_count += 1
                try:
                    await self._rebuild()
                except Exception:
                    if propagate:
                        raise
                    logger.exception("Rebuild failed")
                else:
                    self.schedule_refresh()
                if not self._pending:
                    break
        return True

    def close(self) -> None:
        """Cancel any pending refresh."""
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
