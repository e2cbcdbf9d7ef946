"""
Camera Viewer API
=================

FastAPI surface over a single viewer session.

The session manager is created in the lifespan handler and torn down
on shutdown. Endpoints only read snapshots or issue connect/disconnect
commands; all session mutation stays on the server's event loop.

Endpoints:
    GET  /            - Service information
    GET  /health      - Liveness probe
    GET  /status      - Full session snapshot
    GET  /logs        - Activity log (oldest first)
    GET  /metrics     - Session counters
    GET  /frame       - Current frame as JPEG (404 when none)
    POST /connect     - Open (or replace) the connection
    POST /disconnect  - Close the connection, no auto-reconnect
    POST /visibility  - Record viewer visibility changes
    WS   /ws/status   - Session snapshot pushed periodically
"""

import asyncio
import logging
import time
from contextlib import asynccontextmanager
from typing import AsyncIterator, Callable, Optional

from fastapi import FastAPI, WebSocket, WebSocketDisconnect
from fastapi.responses import JSONResponse, Response

from camera_viewer.config import settings
from camera_viewer.presentation.formatting import format_data_size, format_timestamp
from camera_viewer.presentation.payload import ImageDecodeError, decode_frame_bytes
from camera_viewer.session import SessionManager


logger = logging.getLogger(__name__)


SessionFactory = Callable[[], SessionManager]


def _default_session_factory() -> SessionManager:
    return SessionManager.from_settings(settings)


def create_app(session_factory: Optional[SessionFactory] = None) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        session_factory: Builds the SessionManager at startup
            (defaults to one configured from settings)
    """
    factory = session_factory or _default_session_factory

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        app.state.startup_time = time.time()
        logger.info(f"Starting {settings.viewer.name} {settings.viewer.version}")

        session = factory()
        app.state.session = session
        session.start()

        logger.info(f"Stream URL: {session.url}")
        if settings.session.auto_connect:
            session.connect()

        yield

        logger.info("Shutting down gracefully...")
        await session.close()
        logger.info("Shutdown complete")

    app = FastAPI(
        title="Camera Viewer",
        description="Resilient live camera stream viewer",
        version=settings.viewer.version,
        lifespan=lifespan,
    )

    # =========================================================================
    # HTTP Endpoints
    # =========================================================================

    @app.get("/")
    async def root() -> JSONResponse:
        """Service information endpoint."""
        session: SessionManager = app.state.session
        return JSONResponse({
            "service": "camera-viewer",
            "name": settings.viewer.name,
            "version": settings.viewer.version,
            "stream_url": session.url,
            "status": session.status.value,
        })

    @app.get("/health")
    async def health() -> JSONResponse:
        """Liveness probe. Always 200 while the process runs."""
        return JSONResponse({
            "status": "healthy",
            "uptime_seconds": round(time.time() - app.state.startup_time, 1),
        })

    @app.get("/status")
    async def status() -> JSONResponse:
        session: SessionManager = app.state.session
        return JSONResponse(session.snapshot().model_dump(mode="json"))

    @app.get("/logs")
    async def logs() -> JSONResponse:
        session: SessionManager = app.state.session
        return JSONResponse([
            {"timestamp": entry.timestamp.isoformat(), "message": entry.message}
            for entry in session.logs
        ])

    @app.get("/metrics")
    async def metrics() -> JSONResponse:
        """Detailed counters for observability."""
        session: SessionManager = app.state.session
        stats = session.stats
        return JSONResponse({
            "uptime_seconds": round(time.time() - app.state.startup_time, 1),
            "status": session.status.value,
            "reconnect_pending": session.reconnect_pending,
            "frame_rate": stats.frame_rate,
            "data_received": format_data_size(stats.bytes_received),
            "last_frame": format_timestamp(stats.last_frame_time),
            **session.metrics.to_dict(),
        })

    @app.get("/frame")
    async def frame() -> Response:
        """Current frame as JPEG bytes."""
        session: SessionManager = app.state.session
        payload = session.current_frame
        if payload is None:
            return JSONResponse({"error": "No frame available"}, status_code=404)

        try:
            image_bytes = decode_frame_bytes(payload)
        except ImageDecodeError as e:
            logger.warning(f"Current frame is not decodable: {e}")
            return JSONResponse({"error": "Current frame is corrupt"}, status_code=422)

        return Response(content=image_bytes, media_type="image/jpeg")

    @app.post("/connect")
    async def connect() -> JSONResponse:
        session: SessionManager = app.state.session
        session.connect()
        return JSONResponse(session.snapshot().model_dump(mode="json"))

    @app.post("/disconnect")
    async def disconnect() -> JSONResponse:
        session: SessionManager = app.state.session
        session.disconnect()
        return JSONResponse(session.snapshot().model_dump(mode="json"))

    @app.post("/visibility")
    async def visibility(hidden: bool) -> JSONResponse:
        session: SessionManager = app.state.session
        session.note_visibility(hidden)
        return JSONResponse({"hidden": hidden})

    # =========================================================================
    # WebSocket Endpoints
    # =========================================================================

    @app.websocket("/ws/status")
    async def status_stream(websocket: WebSocket) -> None:
        """Push a session snapshot periodically."""
        await websocket.accept()
        logger.info("Client connected to /ws/status")
        session: SessionManager = app.state.session

        try:
            while True:
                await websocket.send_json(session.snapshot().model_dump(mode="json"))
                try:
                    # Client messages are ignored; receiving notices disconnects
                    await asyncio.wait_for(
                        websocket.receive_text(),
                        timeout=settings.server.status_push_interval_seconds,
                    )
                except asyncio.TimeoutError:
                    pass
        except WebSocketDisconnect:
            pass
        except RuntimeError as e:
            logger.warning(f"WebSocket error: {e}")
        finally:
            logger.info("Client disconnected from /ws/status")

    return app


app = create_app()


def run() -> None:
    """Console entry point: serve the API with uvicorn."""
    import uvicorn

    uvicorn.run(
        "camera_viewer.main:app",
        host=settings.server.host,
        port=settings.server.port,
        reload=False,
    )


if __name__ == "__main__":
    run()
