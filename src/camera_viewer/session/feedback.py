"""
Adaptive Feedback Interpreter
=============================

Maps server-sent network feedback to connection status and advisories.

Rules:
    congested=True   while connected/congested → CONGESTED
    congested=False  while connected/congested → CONNECTED
    congested=*      in any other state        → status unchanged, noted
    suggested_quality / suggested_resolution   → advisory log line only

The viewer never renegotiates quality and never acknowledges feedback.
Suggestions are surfaced for the consumer, nothing more.
"""

from dataclasses import dataclass
from typing import Optional, Tuple

from camera_viewer.models.messages import NetworkFeedback
from camera_viewer.models.stats import QualityAdvice
from camera_viewer.models.status import ConnectionStatus


CONGESTION_DETECTED = "Network congestion detected"
CONGESTION_CLEARED = "Network conditions improved"


@dataclass(frozen=True)
class FeedbackOutcome:
    """
    Result of interpreting one feedback message.

    Attributes:
        status: Status after applying the feedback
        messages: Activity log lines to append, in order
    """

    status: ConnectionStatus
    messages: Tuple[str, ...]


def interpret_feedback(
    status: ConnectionStatus,
    feedback: NetworkFeedback,
) -> FeedbackOutcome:
    """
    Apply feedback to the current status.

    Args:
        status: Current connection status
        feedback: Parsed network_feedback block

    Returns:
        FeedbackOutcome with the resulting status and log lines
    """
    messages = []
    new_status = status

    if feedback.congested is not None:
        if status.is_live:
            if feedback.congested:
                new_status = ConnectionStatus.CONGESTED
                messages.append(CONGESTION_DETECTED)
            else:
                new_status = ConnectionStatus.CONNECTED
                messages.append(CONGESTION_CLEARED)
        else:
            messages.append(
                f"Ignoring congestion feedback while {status.value}"
            )

    if feedback.suggested_quality is not None:
        messages.append(f"Server suggests quality: {feedback.suggested_quality}%")

    if feedback.suggested_resolution:
        messages.append(
            f"Server suggests resolution: {feedback.suggested_resolution}"
        )

    return FeedbackOutcome(status=new_status, messages=tuple(messages))


def merge_advice(
    advice: Optional[QualityAdvice],
    feedback: NetworkFeedback,
) -> QualityAdvice:
    """Overlay any suggestions in feedback onto the previous advice."""
    advice = advice or QualityAdvice()
    updates = {}
    if feedback.suggested_quality is not None:
        updates["suggested_quality"] = feedback.suggested_quality
    if feedback.suggested_resolution:
        updates["suggested_resolution"] = feedback.suggested_resolution
    return advice.model_copy(update=updates) if updates else advice
