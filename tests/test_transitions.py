"""
Session Transition Tests
========================

Tests for the pure state-machine functions.
"""

from dataclasses import replace

from camera_viewer.models.messages import NetworkFeedback
from camera_viewer.models.status import ConnectionStatus
from camera_viewer.session.transitions import (
    AppendLog,
    CameraObserved,
    CancelReconnect,
    ClearFrame,
    CloseSocket,
    ConnectRequested,
    DisconnectRequested,
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


def _logs(effects):
    return [e.message for e in effects if isinstance(e, AppendLog)]


def _connected(socket_id=1) -> SessionState:
    return SessionState(
        status=ConnectionStatus.CONNECTED,
        socket_id=socket_id,
        generation=socket_id,
    )


class TestConnect:
    """connect() and reconnect timer firing."""

    def test_connect_from_disconnected(self):
        state, effects = transition(SessionState(), ConnectRequested())

        assert state.status == ConnectionStatus.CONNECTING
        assert state.socket_id == 1
        assert effects == [AppendLog("Attempting to connect..."), OpenSocket(1)]

    def test_connect_supersedes_existing_socket(self):
        state, effects = transition(_connected(socket_id=3), ConnectRequested())

        assert state.socket_id == 4
        assert effects[0] == CloseSocket(3, 1000)
        assert effects[-1] == OpenSocket(4)

    def test_connect_cancels_pending_reconnect(self):
        pending = SessionState(reconnect_pending=True, generation=2)
        state, effects = transition(pending, ConnectRequested())

        assert effects[0] == CancelReconnect()
        assert not state.reconnect_pending
        assert state.socket_id == 3

    def test_reconnect_fired_logs_attempt(self):
        pending = SessionState(reconnect_pending=True, generation=1)
        state, effects = transition(pending, ReconnectFired())

        assert _logs(effects) == [
            "Attempting to reconnect...",
            "Attempting to connect...",
        ]
        assert state.status == ConnectionStatus.CONNECTING
        assert OpenSocket(2) in effects

    def test_reconnect_fired_without_pending_is_ignored(self):
        state = SessionState()
        new_state, effects = transition(state, ReconnectFired())

        assert new_state == state
        assert effects == []

    def test_rapid_double_connect_leaves_one_socket(self):
        state, first = transition(SessionState(), ConnectRequested())
        state, second = transition(state, ConnectRequested())

        assert CloseSocket(1, 1000) in second
        assert OpenSocket(2) in second
        assert state.socket_id == 2


class TestDisconnect:
    """Explicit user disconnect."""

    def test_disconnect_closes_normally(self):
        state, effects = transition(_connected(), DisconnectRequested())

        assert state.status == ConnectionStatus.DISCONNECTED
        assert state.socket_id is None
        assert effects == [
            AppendLog("Disconnecting..."),
            CloseSocket(1, 1000),
            ClearFrame(),
        ]

    def test_disconnect_cancels_pending_reconnect(self):
        pending = SessionState(reconnect_pending=True, generation=1)
        state, effects = transition(pending, DisconnectRequested())

        assert CancelReconnect() in effects
        assert not state.reconnect_pending

    def test_disconnect_when_idle_has_no_log(self):
        state, effects = transition(SessionState(), DisconnectRequested())

        assert state.status == ConnectionStatus.DISCONNECTED
        assert _logs(effects) == []

    def test_close_after_disconnect_is_stale(self):
        state, _ = transition(_connected(), DisconnectRequested())
        state, effects = transition(state, SocketClosed(1, 1000))

        assert effects == []
        assert not state.reconnect_pending


class TestSocketEvents:
    """Open, close and error handling."""

    def test_open_moves_to_connected(self):
        state, _ = transition(SessionState(), ConnectRequested())
        state, effects = transition(state, SocketOpened(1))

        assert state.status == ConnectionStatus.CONNECTED
        assert _logs(effects) == ["Connected to WebSocket server"]

    def test_normal_close_does_not_reconnect(self):
        state, effects = transition(_connected(), SocketClosed(1, 1000))

        assert state.status == ConnectionStatus.DISCONNECTED
        assert _logs(effects) == ["Connection closed (Code: 1000)"]
        assert ClearFrame() in effects
        assert not any(isinstance(e, ScheduleReconnect) for e in effects)
        assert not state.reconnect_pending

    def test_abnormal_close_schedules_one_reconnect(self):
        state, effects = transition(
            _connected(), SocketClosed(1, 1006), reconnect_delay=5.0
        )

        assert state.status == ConnectionStatus.DISCONNECTED
        assert state.reconnect_pending
        assert [e for e in effects if isinstance(e, ScheduleReconnect)] == [
            ScheduleReconnect(5.0)
        ]

    def test_going_away_close_reconnects(self):
        state, effects = transition(_connected(), SocketClosed(1, 1001))
        assert state.reconnect_pending

    def test_error_then_close(self):
        state, effects = transition(_connected(), SocketErrored(1, "boom"))
        assert state.status == ConnectionStatus.ERROR
        assert _logs(effects) == ["WebSocket error occurred"]

        state, effects = transition(state, SocketClosed(1, 1006))
        assert state.status == ConnectionStatus.DISCONNECTED
        assert state.reconnect_pending

    def test_stale_socket_events_are_dropped(self):
        state = _connected(socket_id=2)
        for event in (
            SocketOpened(1),
            SocketClosed(1, 1006),
            SocketErrored(1),
            CameraObserved(1, "cam-9"),
            FeedbackReceived(1, NetworkFeedback(congested=True)),
        ):
            new_state, effects = transition(state, event)
            assert new_state == state
            assert effects == []


class TestCameraAndFeedback:
    """Camera switches and congestion feedback."""

    def test_camera_change_logged_once(self):
        state, effects = transition(_connected(), CameraObserved(1, "cam-1"))
        assert state.camera_id == "cam-1"
        assert _logs(effects) == ["Receiving from camera: cam-1"]

        state, effects = transition(state, CameraObserved(1, "cam-1"))
        assert effects == []

        state, effects = transition(state, CameraObserved(1, "cam-2"))
        assert _logs(effects) == ["Receiving from camera: cam-2"]

    def test_congestion_toggle(self):
        state, effects = transition(
            _connected(), FeedbackReceived(1, NetworkFeedback(congested=True))
        )
        assert state.status == ConnectionStatus.CONGESTED
        assert _logs(effects) == ["Network congestion detected"]

        state, effects = transition(
            state, FeedbackReceived(1, NetworkFeedback(congested=False))
        )
        assert state.status == ConnectionStatus.CONNECTED
        assert _logs(effects) == ["Network conditions improved"]

    def test_feedback_while_connecting_keeps_status(self):
        state = replace(_connected(), status=ConnectionStatus.CONNECTING)
        new_state, effects = transition(
            state, FeedbackReceived(1, NetworkFeedback(congested=True))
        )

        assert new_state.status == ConnectionStatus.CONNECTING
        assert "Ignoring congestion feedback" in _logs(effects)[0]

    def test_close_while_congested(self):
        state = replace(_connected(), status=ConnectionStatus.CONGESTED)
        state, _ = transition(state, SocketClosed(1, 1000))
        assert state.status == ConnectionStatus.DISCONNECTED
