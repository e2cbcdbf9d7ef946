"""
Inbound Message Schema
======================

Pydantic models for JSON messages received from the camera server.

A single WebSocket text frame carries one JSON document. It may hold
a frame, network feedback, or both:

    {
        "camera_id": "cam-1",
        "data": "<base64 JPEG>",
        "timestamp": 1707321234567,
        "stats": {"resolution": "1280x720", "quality": 70},
        "network_feedback": {
            "congested": true,
            "suggested_quality": 40,
            "suggested_resolution": "640x480"
        }
    }

Every field is optional and unknown keys are ignored. Messages that
carry neither a frame nor feedback are dropped by the session.

Example:
    from camera_viewer.models.messages import InboundMessage

    message = InboundMessage.model_validate_json(raw)
    if message.is_frame:
        print(f"Frame from {message.camera_id}")
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class FrameStats(BaseModel):
    """Encoder metadata attached to a frame."""

    model_config = ConfigDict(extra="ignore")

    resolution: Optional[str] = Field(
        default=None,
        description="Frame resolution as reported by the producer (e.g. '1280x720')",
    )
    quality: Optional[int] = Field(
        default=None,
        description="JPEG quality percent used by the producer",
    )


class NetworkFeedback(BaseModel):
    """Congestion and quality hints sent by the server."""

    model_config = ConfigDict(extra="ignore")

    congested: Optional[bool] = Field(
        default=None,
        description="Whether the server considers the link congested",
    )
    suggested_quality: Optional[int] = Field(
        default=None,
        description="Quality percent the server suggests",
    )
    suggested_resolution: Optional[str] = Field(
        default=None,
        description="Resolution the server suggests",
    )


class InboundMessage(BaseModel):
    """
    Schema for one message received from the camera server.

    Attributes:
        camera_id: Identifier of the camera that produced the frame
        data: Base64-encoded JPEG frame (passed through, not decoded)
        timestamp: Producer emission time in epoch milliseconds
        stats: Optional encoder metadata
        network_feedback: Optional congestion / quality hints
    """

    model_config = ConfigDict(
        extra="ignore",
        json_schema_extra={
            "example": {
                "camera_id": "cam-1",
                "data": "/9j/4AAQSkZJRg...",
                "timestamp": 1707321234567,
                "stats": {"resolution": "1280x720", "quality": 70},
            }
        },
    )

    camera_id: Optional[str] = None
    data: Optional[str] = None
    timestamp: Optional[float] = Field(
        default=None,
        allow_inf_nan=False,
        description="Producer emission time (epoch ms, receiver clock assumed)",
    )
    stats: Optional[FrameStats] = None
    network_feedback: Optional[NetworkFeedback] = None

    @property
    def is_frame(self) -> bool:
        """Both a camera id and a payload are present."""
        return bool(self.camera_id) and bool(self.data)

    @property
    def is_feedback(self) -> bool:
        return self.network_feedback is not None
