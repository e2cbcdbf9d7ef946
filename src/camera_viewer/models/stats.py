"""
Stream Statistics Models
========================

Output-facing models describing the state of a viewer session.

StreamStats is rebuilt by the statistics aggregator on every frame and
every tick. SessionSnapshot bundles everything the presentation layer
needs into one serializable document.

Invariants:
    - frame_count only increases
    - bytes_received only increases
    - frame_rate is recomputed from the rate counter, never incremented
"""

from datetime import datetime
from typing import List, Literal, Optional, Union

from pydantic import BaseModel, Field

from camera_viewer.models.status import ConnectionStatus


UNKNOWN = "unknown"


class StreamStats(BaseModel):
    """
    Rolling statistics for the incoming stream.

    Attributes:
        frame_count: Total frames received since the viewer started
        frame_rate: Frames received in the trailing rate window
        resolution: Last reported resolution, or "unknown"
        quality: Last reported quality ("70%"), or "unknown"
        latency_ms: Last measured latency (clamped at 0), or "unknown"
        bytes_received: Total payload characters received
        last_frame_time: Receipt time of the last frame (epoch ms)
    """

    frame_count: int = Field(default=0, ge=0)
    frame_rate: int = Field(default=0, ge=0)
    resolution: str = Field(default=UNKNOWN)
    quality: str = Field(default=UNKNOWN)
    latency_ms: Union[int, Literal["unknown"]] = Field(default=UNKNOWN)
    bytes_received: int = Field(default=0, ge=0)
    last_frame_time: Optional[int] = Field(
        default=None,
        description="Receipt time of the most recent frame in epoch milliseconds",
    )


class QualityAdvice(BaseModel):
    """Latest quality/resolution suggestions received from the server."""

    suggested_quality: Optional[int] = None
    suggested_resolution: Optional[str] = None


class LogRecord(BaseModel):
    """Serializable form of an activity log entry."""

    timestamp: datetime
    message: str


class SessionSnapshot(BaseModel):
    """
    Everything the presentation layer renders, in one document.

    Logs are oldest-first, matching the activity log's retained order.
    """

    status: ConnectionStatus
    status_label: str
    url: str
    camera_id: Optional[str] = None
    has_frame: bool = False
    stats: StreamStats
    advice: QualityAdvice
    logs: List[LogRecord] = Field(default_factory=list)
