"""
Connection Manager
==================

Owns the WebSocket, the reconnect timer, and the stats tick for one
viewer session.

This module provides the SessionManager class which:
    - Opens and closes sockets to the camera server
    - Decodes inbound JSON messages
    - Routes frames to the statistics aggregator
    - Routes network feedback to the feedback interpreter
    - Schedules automatic reconnects after abnormal closes
    - Recomputes the frame rate once per tick

State changes go through `transitions.transition()`; this class only
carries out the effects it returns.

Design Rules:
    - All mutation happens on one asyncio event loop
    - connect() / disconnect() never block
    - At most one reconnect timer and one live socket at any time
    - Events from superseded sockets are ignored
    - Malformed messages are logged and skipped, never fatal
    - Frame payloads are not decoded here
"""

import asyncio
import logging
import time
from typing import Any, Awaitable, Callable, Dict, List, Optional, Set, Union

import websockets
from pydantic import ValidationError
from websockets.exceptions import ConnectionClosedError, WebSocketException

from camera_viewer.models.messages import InboundMessage
from camera_viewer.models.stats import (
    LogRecord,
    QualityAdvice,
    SessionSnapshot,
    StreamStats,
)
from camera_viewer.models.status import ConnectionStatus
from camera_viewer.session.activity_log import ActivityLog, LogEntry
from camera_viewer.session.feedback import merge_advice
from camera_viewer.session.rate_counter import RateCounter
from camera_viewer.session.statistics import StatsAggregator
from camera_viewer.session.transitions import (
    ABNORMAL_CLOSURE,
    NORMAL_CLOSURE,
    AppendLog,
    CameraObserved,
    CancelReconnect,
    ClearFrame,
    CloseSocket,
    ConnectRequested,
    DisconnectRequested,
    Effect,
    Event,
    FeedbackReceived,
    OpenSocket,
    ReconnectFired,
    ScheduleReconnect,
    SessionState,
    SocketClosed,
    SocketErrored,
    SocketOpened,
    transition,
)


logger = logging.getLogger(__name__)


Connector = Callable[[str], Awaitable[Any]]


def now_ms() -> int:
    """Wall-clock time in epoch milliseconds."""
    return int(time.time() * 1000)


class SessionMetrics:
    """Counters for SessionManager observability."""

    __slots__ = (
        "messages_received",
        "frames_received",
        "feedback_messages",
        "parse_errors",
        "ignored_messages",
        "connect_attempts",
        "reconnects_scheduled",
    )

    def __init__(self) -> None:
        self.messages_received: int = 0
        self.frames_received: int = 0
        self.feedback_messages: int = 0
        self.parse_errors: int = 0
        self.ignored_messages: int = 0
        self.connect_attempts: int = 0
        self.reconnects_scheduled: int = 0

    def to_dict(self) -> dict:
        """Export metrics as dict."""
        return {name: getattr(self, name) for name in self.__slots__}


class SessionManager:
    """
    Resilient WebSocket session for a single camera feed.

    Attributes:
        url: WebSocket URL of the camera server
        reconnect_delay: Seconds to wait after an abnormal close
        tick_interval: Seconds between frame-rate recomputations
        activity_log: Bounded log of human-readable events
        metrics: Operational counters

    Example:
        manager = SessionManager("ws://localhost:3001")
        manager.start()
        manager.connect()

        ...
        snapshot = manager.snapshot()
        print(snapshot.status, snapshot.stats.frame_rate)

        await manager.close()
    """

    def __init__(
        self,
        url: str,
        reconnect_delay: float = 5.0,
        tick_interval: float = 1.0,
        rate_window_ms: int = 1000,
        log_capacity: int = 20,
        open_timeout: float = 10.0,
        max_message_size: int = 16 * 1024 * 1024,
        connector: Optional[Connector] = None,
        clock: Callable[[], int] = now_ms,
    ) -> None:
        """
        Initialize session manager.

        Args:
            url: WebSocket URL to connect to
            reconnect_delay: Delay before an automatic reconnect
            tick_interval: Period of the stats tick
            rate_window_ms: Width of the frame-rate window
            log_capacity: Maximum activity log entries
            open_timeout: Handshake timeout in seconds
            max_message_size: Largest accepted WebSocket message in bytes
            connector: Coroutine factory returning an open socket
                (defaults to websockets.connect)
            clock: Returns the current time in epoch milliseconds
        """
        if reconnect_delay < 0:
            raise ValueError("reconnect_delay must be >= 0")
        if tick_interval <= 0:
            raise ValueError("tick_interval must be positive")

        self.url = url
        self.reconnect_delay = reconnect_delay
        self.tick_interval = tick_interval
        self.open_timeout = open_timeout
        self.max_message_size = max_message_size
        self._connector = connector or self._default_connector
        self._clock = clock

        # State
        self._state = SessionState()
        self._sockets: Dict[int, Any] = {}
        self._socket_tasks: Dict[int, asyncio.Task] = {}
        self._closing: Set[asyncio.Task] = set()
        self._reconnect_task: Optional[asyncio.Task] = None
        self._tick_task: Optional[asyncio.Task] = None
        self._current_frame: Optional[str] = None
        self._advice = QualityAdvice()

        # Components
        self.activity_log = ActivityLog(capacity=log_capacity)
        self.aggregator = StatsAggregator(RateCounter(window_ms=rate_window_ms))
        self.metrics = SessionMetrics()

        self._log("Camera viewer initialized")
        self._log('Click "Connect to Camera" to start viewing')

    @classmethod
    def from_settings(cls, settings, **overrides: Any) -> "SessionManager":
        """
        Build a manager from a loaded Settings object.

        Args:
            settings: camera_viewer.config.Settings
            **overrides: Constructor arguments that win over settings
        """
        kwargs = dict(
            url=settings.stream.url,
            reconnect_delay=settings.stream.reconnect_delay_seconds,
            tick_interval=settings.session.tick_interval_seconds,
            rate_window_ms=settings.session.rate_window_ms,
            log_capacity=settings.session.log_capacity,
            open_timeout=settings.stream.open_timeout_seconds,
            max_message_size=settings.stream.max_message_bytes,
        )
        kwargs.update(overrides)
        return cls(**kwargs)

    # -------------------------------------------------------------------------
    # Read-only views
    # -------------------------------------------------------------------------

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def status(self) -> ConnectionStatus:
        return self._state.status

    @property
    def camera_id(self) -> Optional[str]:
        return self._state.camera_id

    @property
    def reconnect_pending(self) -> bool:
        return self._reconnect_task is not None and not self._reconnect_task.done()

    @property
    def current_frame(self) -> Optional[str]:
        """Base64 payload of the most recent frame, None if cleared."""
        return self._current_frame

    @property
    def stats(self) -> StreamStats:
        return self.aggregator.stats

    @property
    def advice(self) -> QualityAdvice:
        return self._advice

    @property
    def logs(self) -> List[LogEntry]:
        return self.activity_log.entries()

    def snapshot(self) -> SessionSnapshot:
        """Everything the presentation layer needs, in one model."""
        return SessionSnapshot(
            status=self.status,
            status_label=self.status.label,
            url=self.url,
            camera_id=self.camera_id,
            has_frame=self._current_frame is not None,
            stats=self.stats,
            advice=self._advice,
            logs=[
                LogRecord(timestamp=entry.timestamp, message=entry.message)
                for entry in self.activity_log.entries()
            ],
        )

    # -------------------------------------------------------------------------
    # Commands
    # -------------------------------------------------------------------------

    def start(self) -> None:
        """Start the periodic stats tick. Must be called inside a running loop."""
        if self._tick_task is None or self._tick_task.done():
            self._tick_task = asyncio.get_running_loop().create_task(
                self._tick_loop(),
                name="camera_stats_tick",
            )

    def connect(self) -> None:
        """Open a new socket, superseding any existing one."""
        self.metrics.connect_attempts += 1
        self._dispatch(ConnectRequested())

    def disconnect(self) -> None:
        """Close the socket normally. Suppresses automatic reconnect."""
        self._dispatch(DisconnectRequested())

    async def close(self) -> None:
        """
        Tear the session down.

        Disconnects, stops the tick, and waits for sockets to finish
        closing.
        """
        logger.info("SessionManager closing...")
        self.disconnect()

        if self._tick_task is not None:
            self._tick_task.cancel()

        pending = [
            task
            for task in (self._tick_task, *self._socket_tasks.values(), *self._closing)
            if task is not None
        ]
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)

        self._tick_task = None
        logger.info("SessionManager closed")

    def tick(self) -> StreamStats:
        """Recompute the frame rate from the rate counter."""
        return self.aggregator.tick(self._clock())

    def note_visibility(self, hidden: bool) -> None:
        """Record that the viewer window was hidden or shown."""
        if hidden:
            self._log("Viewer hidden - maintaining connection")
        else:
            self._log("Viewer visible - resuming normal operation")

    # -------------------------------------------------------------------------
    # Message handling
    # -------------------------------------------------------------------------

    def handle_message(
        self,
        raw: Union[str, bytes],
        socket_id: Optional[int] = None,
    ) -> None:
        """
        Decode one wire message and route its parts.

        The frame part is handled before the feedback part. Malformed
        messages are counted and skipped.

        Args:
            raw: JSON text (or UTF-8 bytes) from the socket
            socket_id: Socket the message arrived on (defaults to current)
        """
        if socket_id is None:
            socket_id = self._state.socket_id

        self.metrics.messages_received += 1

        try:
            if isinstance(raw, (bytes, bytearray)):
                raw = raw.decode("utf-8")
            message = InboundMessage.model_validate_json(raw)
        except (UnicodeDecodeError, ValidationError) as e:
            self.metrics.parse_errors += 1
            logger.warning(f"Error parsing message: {e}")
            return

        if not message.is_frame and not message.is_feedback:
            self.metrics.ignored_messages += 1
            logger.debug("Ignoring message with neither frame nor feedback")
            return

        if message.is_frame:
            self._handle_frame(message, socket_id)

        if message.is_feedback:
            self.metrics.feedback_messages += 1
            self._advice = merge_advice(self._advice, message.network_feedback)
            self._dispatch(FeedbackReceived(socket_id, message.network_feedback))

    def _handle_frame(self, message: InboundMessage, socket_id: Optional[int]) -> None:
        self.aggregator.record_frame(message, self._clock())
        self.metrics.frames_received += 1
        self._dispatch(CameraObserved(socket_id, message.camera_id))
        self._current_frame = message.data

    # -------------------------------------------------------------------------
    # State machine plumbing
    # -------------------------------------------------------------------------

    def _dispatch(self, event: Event) -> None:
        self._state, effects = transition(
            self._state, event, reconnect_delay=self.reconnect_delay
        )
        for effect in effects:
            self._apply(effect)

    def _apply(self, effect: Effect) -> None:
        if isinstance(effect, AppendLog):
            self._log(effect.message)
        elif isinstance(effect, OpenSocket):
            self._open_socket(effect.socket_id)
        elif isinstance(effect, CloseSocket):
            self._close_socket(effect.socket_id, effect.code)
        elif isinstance(effect, ScheduleReconnect):
            self._schedule_reconnect(effect.delay)
        elif isinstance(effect, CancelReconnect):
            self._cancel_reconnect()
        elif isinstance(effect, ClearFrame):
            self._current_frame = None
        else:
            raise TypeError(f"Unknown session effect: {effect!r}")

    def _log(self, message: str) -> None:
        self.activity_log.add(message)
        logger.info(message)

    # -------------------------------------------------------------------------
    # Timers
    # -------------------------------------------------------------------------

    def _schedule_reconnect(self, delay: float) -> None:
        self._cancel_reconnect()
        self.metrics.reconnects_scheduled += 1
        logger.info(f"Reconnecting in {delay:.1f}s")
        self._reconnect_task = asyncio.get_running_loop().create_task(
            self._reconnect_after(delay),
            name="camera_reconnect",
        )

    def _cancel_reconnect(self) -> None:
        if self._reconnect_task is not None and not self._reconnect_task.done():
            self._reconnect_task.cancel()
        self._reconnect_task = None

    async def _reconnect_after(self, delay: float) -> None:
        await asyncio.sleep(delay)
        self._reconnect_task = None
        self.metrics.connect_attempts += 1
        self._dispatch(ReconnectFired())

    async def _tick_loop(self) -> None:
        while True:
            await asyncio.sleep(self.tick_interval)
            self.tick()

    # -------------------------------------------------------------------------
    # Sockets
    # -------------------------------------------------------------------------

    async def _default_connector(self, url: str) -> Any:
        return await websockets.connect(
            url,
            open_timeout=self.open_timeout,
            ping_interval=20,
            ping_timeout=10,
            close_timeout=5,
            max_size=self.max_message_size,
        )

    def _open_socket(self, socket_id: int) -> None:
        task = asyncio.get_running_loop().create_task(
            self._run_socket(socket_id),
            name=f"camera_socket_{socket_id}",
        )
        self._socket_tasks[socket_id] = task
        task.add_done_callback(lambda _: self._socket_tasks.pop(socket_id, None))

    def _close_socket(self, socket_id: int, code: int) -> None:
        websocket = self._sockets.pop(socket_id, None)
        if websocket is not None:
            task = asyncio.get_running_loop().create_task(
                self._close_quietly(websocket, code),
                name=f"camera_socket_{socket_id}_close",
            )
            self._closing.add(task)
            task.add_done_callback(self._closing.discard)
            return

        # Still handshaking
        task = self._socket_tasks.get(socket_id)
        if task is not None:
            task.cancel()

    async def _close_quietly(self, websocket: Any, code: int) -> None:
        try:
            await websocket.close(code=code)
        except (OSError, WebSocketException) as e:
            logger.debug(f"Error while closing superseded socket: {e}")

    async def _run_socket(self, socket_id: int) -> None:
        """Connect, read until the socket ends, then report the close."""
        try:
            websocket = await asyncio.wait_for(
                self._connector(self.url),
                timeout=self.open_timeout,
            )
        except (OSError, WebSocketException, asyncio.TimeoutError) as e:
            logger.error(f"Failed to create WebSocket connection: {e!r}")
            self._dispatch(SocketErrored(socket_id, str(e)))
            self._dispatch(SocketClosed(socket_id, ABNORMAL_CLOSURE))
            return

        if socket_id != self._state.socket_id:
            # Superseded while the handshake was in flight
            await self._close_quietly(websocket, NORMAL_CLOSURE)
            return

        self._sockets[socket_id] = websocket
        logger.info(f"Connected to camera server: {self.url}")
        self._dispatch(SocketOpened(socket_id))

        try:
            async for raw in websocket:
                if socket_id != self._state.socket_id:
                    break
                try:
                    self.handle_message(raw, socket_id)
                except Exception:
                    self.metrics.parse_errors += 1
                    logger.exception("Error handling message, skipping")
        except ConnectionClosedError as e:
            logger.warning(f"Connection closed with error: {e}")
            self._dispatch(SocketErrored(socket_id, str(e)))
        finally:
            self._sockets.pop(socket_id, None)

        code = websocket.close_code
        self._dispatch(
            SocketClosed(socket_id, code if code is not None else ABNORMAL_CLOSURE)
        )
