"""Bramble dev server: serves the built site with live reload."""

import asyncio
import contextlib
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, WebSocket, WebSocketDisconnect
from fastapi.staticfiles import StaticFiles

from bramble.config import Settings
from bramble.core.builder import build
from bramble.core.watcher import watch
from bramble.core.ws_manager import REFRESH_PATH, DevSession

logger = logging.getLogger(__name__)


def create_app(
    settings: Settings | None = None,
    session: DevSession | None = None,
    watch_files: bool = True,
) -> FastAPI:
    """Create the dev server app for a site.

    Args:
        settings: Build settings; read from the environment when omitted.
        session: Live-reload session; one rebuilding ``settings`` is
            created when omitted.
        watch_files: Whether to start the file watcher on startup.
    """
    settings = settings or Settings()

    if session is None:

        async def rebuild() -> None:
            await build(settings, include_refresh=True)

        session = DevSession(rebuild=rebuild, debounce=settings.refresh_debounce)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Initial build, then watch for changes until shutdown.

        A failed initial build aborts startup.
        """
        await session.rebuild(propagate=True)
        stop_event = asyncio.Event()
        watch_task = (
            asyncio.create_task(watch(settings, session, stop_event))
            if watch_files
            else None
        )
        yield
        stop_event.set()
        if watch_task is not None:
            watch_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await watch_task
        session.close()

    app = FastAPI(title="Bramble dev server", lifespan=lifespan)
    app.state.settings = settings
    app.state.session = session

    @app.websocket(REFRESH_PATH)
    async def ws_refresh(websocket: WebSocket):
        """Live-reload socket: sends ``refresh`` after each successful rebuild."""
        await websocket.accept()
        client_id, queue = session.connect()

        async def forward() -> None:
            while True:
                msg = await queue.get()
                await websocket.send_text(msg)

        forward_task = asyncio.create_task(forward())
        try:
            # Client messages are ignored; receiving only detects the close.
            while True:
                await websocket.receive_text()
        except WebSocketDisconnect:
            pass
        finally:
            forward_task.cancel()
            with contextlib.suppress(asyncio.CancelledError, WebSocketDisconnect, RuntimeError):
                await forward_task
            session.disconnect(client_id)

    app.mount(
        "/",
        StaticFiles(directory=str(settings.output_dir), html=True, check_dir=False),
        name="site",
    )
    return app
