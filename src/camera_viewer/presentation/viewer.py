"""
Camera Viewer: OpenCV Window
============================

Architecture:
    Thread 1 (daemon)  : asyncio loop running the SessionManager
    Main thread        : cv2.imshow render loop

The main thread never touches session state directly. Commands are
posted with loop.call_soon_threadsafe and snapshots are read with
asyncio.run_coroutine_threadsafe, so every mutation stays on the loop
thread.

Usage:  camera-viewer [--url ws://host:port] [--connect]
Controls: c connect, d disconnect, l print activity log, q/ESC quit
"""

import argparse
import asyncio
import logging
import threading
from typing import Callable, Optional, Tuple

import cv2
import numpy as np

from camera_viewer.config import settings
from camera_viewer.models.stats import SessionSnapshot
from camera_viewer.models.status import ConnectionStatus
from camera_viewer.presentation.formatting import stats_lines
from camera_viewer.presentation.image_decoder import ImageDecodeError, decode_frame_bgr
from camera_viewer.session import SessionManager


logger = logging.getLogger(__name__)


WINDOW_NAME = "Live Camera Stream"
CANVAS_SIZE = (720, 1280)
REFRESH_MS = 30

STATUS_COLORS = {
    ConnectionStatus.CONNECTED: (0, 200, 0),
    ConnectionStatus.CONNECTING: (0, 220, 255),
    ConnectionStatus.CONGESTED: (0, 140, 255),
    ConnectionStatus.ERROR: (0, 0, 230),
    ConnectionStatus.DISCONNECTED: (0, 0, 230),
}


# =============================================================================
# Session loop thread
# =============================================================================

class SessionThread:
    """
    Runs a SessionManager on a private event loop in a daemon thread.

    Example:
        runner = SessionThread(lambda: SessionManager(url))
        runner.start()
        runner.call(lambda m: m.connect())
        snapshot, frame = runner.read()
        runner.stop()
    """

    def __init__(self, factory: Callable[[], SessionManager]) -> None:
        self._factory = factory
        self._loop = asyncio.new_event_loop()
        self._thread = threading.Thread(
            target=self._run, name="camera_session", daemon=True
        )
        self._ready = threading.Event()
        self._manager: Optional[SessionManager] = None

    def _run(self) -> None:
        asyncio.set_event_loop(self._loop)
        self._loop.run_until_complete(self._setup())
        self._ready.set()
        self._loop.run_forever()

    async def _setup(self) -> None:
        self._manager = self._factory()
        self._manager.start()

    def start(self, timeout: float = 5.0) -> None:
        self._thread.start()
        if not self._ready.wait(timeout):
            raise RuntimeError("Session loop failed to start")

    def call(self, command: Callable[[SessionManager], None]) -> None:
        """Run a command against the manager on the loop thread."""
        self._loop.call_soon_threadsafe(command, self._manager)

    async def _read(self) -> Tuple[SessionSnapshot, Optional[str]]:
        return self._manager.snapshot(), self._manager.current_frame

    def read(self, timeout: float = 1.0) -> Tuple[SessionSnapshot, Optional[str]]:
        """Snapshot plus current frame payload, read on the loop thread."""
        future = asyncio.run_coroutine_threadsafe(self._read(), self._loop)
        return future.result(timeout)

    def stop(self, timeout: float = 10.0) -> None:
        future = asyncio.run_coroutine_threadsafe(self._manager.close(), self._loop)
        future.result(timeout)
        self._loop.call_soon_threadsafe(self._loop.stop)
        self._thread.join(timeout)


# =============================================================================
# Drawing
# =============================================================================

def render_placeholder(snapshot: SessionSnapshot) -> np.ndarray:
    """Dark canvas with a centered hint when no frame is available."""
    h, w = CANVAS_SIZE
    canvas = np.full((h, w, 3), 30, dtype=np.uint8)
    text = (
        "Waiting for camera feed..."
        if snapshot.status.is_live
        else "Not connected to camera"
    )
    (tw, th), _ = cv2.getTextSize(text, cv2.FONT_HERSHEY_SIMPLEX, 1.0, 2)
    cv2.putText(canvas, text, ((w - tw) // 2, (h + th) // 2),
                cv2.FONT_HERSHEY_SIMPLEX, 1.0, (120, 120, 120), 2, cv2.LINE_AA)
    return canvas


def draw_status_bar(canvas: np.ndarray, snapshot: SessionSnapshot) -> np.ndarray:
    """Status dot, label, server URL and camera id along the top edge."""
    h, w = canvas.shape[:2]
    overlay = canvas.copy()
    cv2.rectangle(overlay, (0, 0), (w, 28), (10, 10, 10), -1)
    cv2.addWeighted(overlay, 0.75, canvas, 0.25, 0, canvas)

    color = STATUS_COLORS.get(snapshot.status, (120, 120, 120))
    cv2.circle(canvas, (14, 14), 6, color, -1)
    cv2.putText(canvas, snapshot.status_label, (28, 19),
                cv2.FONT_HERSHEY_SIMPLEX, 0.5, (230, 230, 230), 1, cv2.LINE_AA)

    server = f"Server: {snapshot.url}"
    cv2.putText(canvas, server, (w // 2 - 120, 19),
                cv2.FONT_HERSHEY_SIMPLEX, 0.45, (200, 200, 200), 1, cv2.LINE_AA)

    camera = f"Camera ID: {snapshot.camera_id or 'Not connected'}"
    (tw, _), _ = cv2.getTextSize(camera, cv2.FONT_HERSHEY_SIMPLEX, 0.45, 1)
    cv2.putText(canvas, camera, (w - tw - 10, 19),
                cv2.FONT_HERSHEY_SIMPLEX, 0.45, (200, 200, 200), 1, cv2.LINE_AA)
    return canvas


def draw_stats_panel(canvas: np.ndarray, snapshot: SessionSnapshot) -> np.ndarray:
    """Compact statistics HUD at the bottom-left."""
    h, w = canvas.shape[:2]
    lines = stats_lines(snapshot.stats)
    if snapshot.advice.suggested_quality is not None:
        lines.append(f"Suggested quality: {snapshot.advice.suggested_quality}%")
    if snapshot.advice.suggested_resolution:
        lines.append(f"Suggested resolution: {snapshot.advice.suggested_resolution}")

    line_h = 16
    panel_w, panel_h = 240, 8 + line_h * len(lines)
    px, py = 6, h - panel_h - 6

    overlay = canvas.copy()
    cv2.rectangle(overlay, (px, py), (px + panel_w, py + panel_h), (10, 10, 10), -1)
    cv2.addWeighted(overlay, 0.75, canvas, 0.25, 0, canvas)

    cy = py + 4
    for line in lines:
        cv2.putText(canvas, line, (px + 6, cy + 11),
                    cv2.FONT_HERSHEY_SIMPLEX, 0.38, (0, 200, 0), 1, cv2.LINE_AA)
        cy += line_h
    return canvas


# =============================================================================
# Main render loop
# =============================================================================

def main() -> None:
    parser = argparse.ArgumentParser(description="Live camera stream viewer")
    parser.add_argument("--url", default=settings.stream.url, help="Camera server WebSocket URL")
    parser.add_argument("--connect", action="store_true", help="Connect on startup")
    args = parser.parse_args()

    print("=" * 60)
    print("Live Camera Stream Viewer")
    print("=" * 60)
    print(f"  Server:  {args.url}")
    print()
    print("  Controls:")
    print("    c      — connect")
    print("    d      — disconnect")
    print("    l      — print activity log")
    print("    q/ESC  — quit")
    print("=" * 60)

    runner = SessionThread(lambda: SessionManager.from_settings(settings, url=args.url))
    runner.start()
    if args.connect or settings.session.auto_connect:
        runner.call(lambda m: m.connect())

    cv2.namedWindow(WINDOW_NAME, cv2.WINDOW_NORMAL)
    cv2.resizeWindow(WINDOW_NAME, 960, 540)

    last_payload: Optional[str] = None
    last_image: Optional[np.ndarray] = None

    try:
        while True:
            snapshot, payload = runner.read()

            if payload is None:
                last_payload, last_image = None, None
            elif payload is not last_payload:
                try:
                    last_image = decode_frame_bgr(payload)
                except ImageDecodeError as e:
                    logger.warning(f"Skipping undecodable frame: {e}")
                last_payload = payload

            if last_image is not None:
                canvas = last_image.copy()
            else:
                canvas = render_placeholder(snapshot)

            canvas = draw_status_bar(canvas, snapshot)
            canvas = draw_stats_panel(canvas, snapshot)
            cv2.imshow(WINDOW_NAME, canvas)

            key = cv2.waitKey(REFRESH_MS) & 0xFF
            if key == ord('q') or key == 27:
                break
            elif key == ord('c'):
                runner.call(lambda m: m.connect())
            elif key == ord('d'):
                runner.call(lambda m: m.disconnect())
            elif key == ord('l'):
                for record in snapshot.logs:
                    print(f"[{record.timestamp:%H:%M:%S}] {record.message}")
    finally:
        runner.stop()
        cv2.destroyAllWindows()
        print("\n[viewer] Shutdown.")


if __name__ == "__main__":
    main()
