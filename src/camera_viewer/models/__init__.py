"""
Data Models
===========

Pydantic models for the camera viewer.

Models:
    Input:
        - InboundMessage: One JSON message from the camera server
        - FrameStats: Encoder metadata attached to a frame
        - NetworkFeedback: Congestion / quality hints

    Status:
        - ConnectionStatus: Enum of session states

    Output:
        - StreamStats: Rolling stream statistics
        - QualityAdvice: Latest server suggestions
        - LogRecord: Serializable activity log entry
        - SessionSnapshot: Complete state handed to the presentation layer
"""

from camera_viewer.models.messages import FrameStats, InboundMessage, NetworkFeedback
from camera_viewer.models.status import ConnectionStatus
from camera_viewer.models.stats import (
    UNKNOWN,
    LogRecord,
    QualityAdvice,
    SessionSnapshot,
    StreamStats,
)

__all__ = [
    # Input
    "InboundMessage",
    "FrameStats",
    "NetworkFeedback",
    # Status
    "ConnectionStatus",
    # Output
    "UNKNOWN",
    "StreamStats",
    "QualityAdvice",
    "LogRecord",
    "SessionSnapshot",
]
