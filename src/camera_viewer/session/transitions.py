"""
Session Transitions
===================

Pure state-machine functions for the viewer session.

Every socket callback, user command, and timer firing is modelled as an
event. `transition(state, event)` returns the next SessionState plus
the side effects the connection manager must carry out. Nothing in this
module touches a socket, a timer, or the clock.

State Graph:
    DISCONNECTED ──connect──▶ CONNECTING ──open──▶ CONNECTED ⇄ CONGESTED
    CONNECTING / CONNECTED / CONGESTED ──error──▶ ERROR
    any ──close / disconnect──▶ DISCONNECTED

Socket Generations:
    Each connect allocates a new socket id. Socket events carry the id
    they were raised for; events for any other id are stale and dropped.

Reconnect Rules:
    - A close with a code other than 1000 schedules exactly one reconnect
    - connect() and disconnect() cancel a pending reconnect
    - Only disconnect() suppresses auto-reconnect
"""

import logging
from dataclasses import dataclass, replace
from typing import List, Optional, Tuple, Union

from camera_viewer.models.messages import NetworkFeedback
from camera_viewer.models.status import ConnectionStatus
from camera_viewer.session.feedback import interpret_feedback


logger = logging.getLogger(__name__)


NORMAL_CLOSURE = 1000
ABNORMAL_CLOSURE = 1006


# =============================================================================
# State
# =============================================================================

@dataclass(frozen=True)
class SessionState:
    """
    Complete session state owned by the connection manager.

    Attributes:
        status: Current connection status
        socket_id: Generation id of the attached socket, None if detached
        camera_id: Camera currently being received from
        reconnect_pending: Whether a reconnect timer is armed
        generation: Last socket id handed out
    """

    status: ConnectionStatus = ConnectionStatus.DISCONNECTED
    socket_id: Optional[int] = None
    camera_id: Optional[str] = None
    reconnect_pending: bool = False
    generation: int = 0


# =============================================================================
# Events
# =============================================================================

@dataclass(frozen=True)
class ConnectRequested:
    pass


@dataclass(frozen=True)
class ReconnectFired:
    pass


@dataclass(frozen=True)
class DisconnectRequested:
    pass


@dataclass(frozen=True)
class SocketOpened:
    socket_id: int


@dataclass(frozen=True)
class SocketClosed:
    socket_id: int
    code: int


@dataclass(frozen=True)
class SocketErrored:
    socket_id: int
    detail: str = ""


@dataclass(frozen=True)
class CameraObserved:
    socket_id: int
    camera_id: str


@dataclass(frozen=True)
class FeedbackReceived:
    socket_id: int
    feedback: NetworkFeedback


Event = Union[
    ConnectRequested,
    ReconnectFired,
    DisconnectRequested,
    SocketOpened,
    SocketClosed,
    SocketErrored,
    CameraObserved,
    FeedbackReceived,
]


# =============================================================================
# Effects
# =============================================================================

@dataclass(frozen=True)
class AppendLog:
    message: str


@dataclass(frozen=True)
class OpenSocket:
    socket_id: int


@dataclass(frozen=True)
class CloseSocket:
    socket_id: int
    code: int = NORMAL_CLOSURE


@dataclass(frozen=True)
class ScheduleReconnect:
    delay: float


@dataclass(frozen=True)
class CancelReconnect:
    pass


@dataclass(frozen=True)
class ClearFrame:
    pass


Effect = Union[
    AppendLog,
    OpenSocket,
    CloseSocket,
    ScheduleReconnect,
    CancelReconnect,
    ClearFrame,
]

TransitionResult = Tuple[SessionState, List[Effect]]


# =============================================================================
# Transition Functions
# =============================================================================

def transition(
    state: SessionState,
    event: Event,
    reconnect_delay: float = 5.0,
) -> TransitionResult:
    """
    Compute the next state and side effects for an event.

    Args:
        state: Current session state
        event: Event to apply
        reconnect_delay: Seconds before an automatic reconnect

    Returns:
        Tuple of (next_state, effects). Effects are ordered.
    """
    if isinstance(event, (ConnectRequested, ReconnectFired)):
        return _on_connect(state, event)
    if isinstance(event, DisconnectRequested):
        return _on_disconnect(state)

    # Everything below is a socket event
    if event.socket_id != state.socket_id:
        logger.debug(
            f"Dropping stale {type(event).__name__} for socket {event.socket_id} "
            f"(current: {state.socket_id})"
        )
        return state, []

    if isinstance(event, SocketOpened):
        return _on_open(state)
    if isinstance(event, SocketClosed):
        return _on_close(state, event.code, reconnect_delay)
    if isinstance(event, SocketErrored):
        return _on_error(state)
    if isinstance(event, CameraObserved):
        return _on_camera(state, event.camera_id)
    if isinstance(event, FeedbackReceived):
        return _on_feedback(state, event.feedback)

    raise TypeError(f"Unknown session event: {event!r}")


def _on_connect(
    state: SessionState,
    event: Union[ConnectRequested, ReconnectFired],
) -> TransitionResult:
    if isinstance(event, ReconnectFired) and not state.reconnect_pending:
        # Timer was cancelled after it had already fired
        return state, []

    effects: List[Effect] = []
    if state.reconnect_pending:
        effects.append(CancelReconnect())
    if state.socket_id is not None:
        effects.append(CloseSocket(state.socket_id, NORMAL_CLOSURE))

    if isinstance(event, ReconnectFired):
        effects.append(AppendLog("Attempting to reconnect..."))
    effects.append(AppendLog("Attempting to connect..."))

    socket_id = state.generation + 1
    effects.append(OpenSocket(socket_id))

    return replace(
        state,
        status=ConnectionStatus.CONNECTING,
        socket_id=socket_id,
        reconnect_pending=False,
        generation=socket_id,
    ), effects


def _on_disconnect(state: SessionState) -> TransitionResult:
    effects: List[Effect] = []
    if state.reconnect_pending:
        effects.append(CancelReconnect())
    if state.socket_id is not None:
        effects.append(AppendLog("Disconnecting..."))
        effects.append(CloseSocket(state.socket_id, NORMAL_CLOSURE))
    effects.append(ClearFrame())

    return replace(
        state,
        status=ConnectionStatus.DISCONNECTED,
        socket_id=None,
        camera_id=None,
        reconnect_pending=False,
    ), effects


def _on_open(state: SessionState) -> TransitionResult:
    if state.status != ConnectionStatus.CONNECTING:
        return state, []
    return replace(state, status=ConnectionStatus.CONNECTED), [
        AppendLog("Connected to WebSocket server"),
    ]


def _on_close(
    state: SessionState,
    code: int,
    reconnect_delay: float,
) -> TransitionResult:
    effects: List[Effect] = [
        AppendLog(f"Connection closed (Code: {code})"),
        ClearFrame(),
    ]
    reconnect = code != NORMAL_CLOSURE
    if reconnect:
        if state.reconnect_pending:
            effects.append(CancelReconnect())
        effects.append(ScheduleReconnect(reconnect_delay))

    return replace(
        state,
        status=ConnectionStatus.DISCONNECTED,
        socket_id=None,
        camera_id=None,
        reconnect_pending=reconnect,
    ), effects


def _on_error(state: SessionState) -> TransitionResult:
    return replace(state, status=ConnectionStatus.ERROR), [
        AppendLog("WebSocket error occurred"),
    ]


def _on_camera(state: SessionState, camera_id: str) -> TransitionResult:
    if camera_id == state.camera_id:
        return state, []
    return replace(state, camera_id=camera_id), [
        AppendLog(f"Receiving from camera: {camera_id}"),
    ]


def _on_feedback(
    state: SessionState,
    feedback: NetworkFeedback,
) -> TransitionResult:
    outcome = interpret_feedback(state.status, feedback)
    effects: List[Effect] = [AppendLog(message) for message in outcome.messages]
    return replace(state, status=outcome.status), effects
