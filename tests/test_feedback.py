"""
Feedback Interpreter Tests
==========================
"""

import pytest

from camera_viewer.models.messages import NetworkFeedback
from camera_viewer.models.stats import QualityAdvice
from camera_viewer.models.status import ConnectionStatus
from camera_viewer.session.feedback import (
    CONGESTION_CLEARED,
    CONGESTION_DETECTED,
    interpret_feedback,
    merge_advice,
)


class TestInterpretFeedback:
    """Congestion flag and advisory handling."""

    def test_congestion_while_connected(self):
        outcome = interpret_feedback(
            ConnectionStatus.CONNECTED, NetworkFeedback(congested=True)
        )
        assert outcome.status == ConnectionStatus.CONGESTED
        assert outcome.messages == (CONGESTION_DETECTED,)

    def test_congestion_cleared(self):
        outcome = interpret_feedback(
            ConnectionStatus.CONGESTED, NetworkFeedback(congested=False)
        )
        assert outcome.status == ConnectionStatus.CONNECTED
        assert outcome.messages == (CONGESTION_CLEARED,)

    @pytest.mark.parametrize(
        "status",
        [
            ConnectionStatus.DISCONNECTED,
            ConnectionStatus.CONNECTING,
            ConnectionStatus.ERROR,
        ],
    )
    def test_congestion_ignored_outside_live_states(self, status):
        outcome = interpret_feedback(status, NetworkFeedback(congested=True))

        assert outcome.status == status
        assert len(outcome.messages) == 1
        assert "Ignoring congestion feedback" in outcome.messages[0]

    def test_suggestions_are_advisory_only(self):
        outcome = interpret_feedback(
            ConnectionStatus.CONNECTED,
            NetworkFeedback(suggested_quality=40, suggested_resolution="640x480"),
        )

        assert outcome.status == ConnectionStatus.CONNECTED
        assert outcome.messages == (
            "Server suggests quality: 40%",
            "Server suggests resolution: 640x480",
        )

    def test_congestion_and_suggestions_together(self):
        outcome = interpret_feedback(
            ConnectionStatus.CONNECTED,
            NetworkFeedback(congested=True, suggested_quality=30),
        )

        assert outcome.status == ConnectionStatus.CONGESTED
        assert outcome.messages[0] == CONGESTION_DETECTED
        assert outcome.messages[1] == "Server suggests quality: 30%"

    def test_empty_feedback(self):
        outcome = interpret_feedback(ConnectionStatus.CONNECTED, NetworkFeedback())
        assert outcome.status == ConnectionStatus.CONNECTED
        assert outcome.messages == ()


class TestMergeAdvice:
    """Latest-suggestion bookkeeping."""

    def test_overlays_present_fields(self):
        advice = merge_advice(None, NetworkFeedback(suggested_quality=50))
        advice = merge_advice(advice, NetworkFeedback(suggested_resolution="640x480"))

        assert advice == QualityAdvice(
            suggested_quality=50, suggested_resolution="640x480"
        )

    def test_congestion_only_leaves_advice_untouched(self):
        before = QualityAdvice(suggested_quality=60)
        after = merge_advice(before, NetworkFeedback(congested=True))
        assert after is before
