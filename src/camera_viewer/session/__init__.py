"""
Session Module
==============

The stream session engine: socket lifecycle, message decoding, rolling
statistics, and feedback-driven status.

Components:
    - RateCounter: Sliding-window frame-rate counter
    - StatsAggregator: Frame count, bytes, latency, resolution, quality
    - interpret_feedback: Congestion / quality hints → status + advisories
    - ActivityLog: Bounded FIFO of timestamped events
    - transition: Pure (state, event) → (state, effects) function
    - SessionManager: Owns the socket and timers, runs the effects

Example:
    from camera_viewer.session import SessionManager

    manager = SessionManager("ws://localhost:3001")
    manager.start()
    manager.connect()
"""

from camera_viewer.session.activity_log import ActivityLog, LogEntry
from camera_viewer.session.feedback import FeedbackOutcome, interpret_feedback, merge_advice
from camera_viewer.session.manager import SessionManager, SessionMetrics
from camera_viewer.session.rate_counter import RateCounter
from camera_viewer.session.statistics import StatsAggregator
from camera_viewer.session.transitions import SessionState, transition


__all__ = [
    "ActivityLog",
    "LogEntry",
    "FeedbackOutcome",
    "interpret_feedback",
    "merge_advice",
    "SessionManager",
    "SessionMetrics",
    "RateCounter",
    "StatsAggregator",
    "SessionState",
    "transition",
]
