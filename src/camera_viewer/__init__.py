"""
Camera Viewer
=============

Resilient real-time viewer client for a single live camera feed.

This package keeps a WebSocket connection to a camera server, rebuilds
frames and statistics from the interleaved JSON message stream,
reconnects automatically after transient failures, and surfaces
connection health and quality hints to a display layer.

Components:
    - session: Stream session engine (state machine, stats, feedback)
    - models: Wire and output schemas
    - presentation: Image decoding, formatting, OpenCV window
    - main: FastAPI surface over a session

Example:
    from camera_viewer.session import SessionManager

    manager = SessionManager("ws://localhost:3001")
    manager.start()
    manager.connect()
"""

__version__ = "0.1.0"

__all__ = [
    "__version__",
]
