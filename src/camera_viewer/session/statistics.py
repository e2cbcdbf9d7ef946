"""
Stream Statistics Aggregator
============================

Accumulates stream counters from inbound frame metadata.

Per frame:
    frame_count    += 1
    bytes_received += len(data)
    last_frame_time = receipt time
    resolution / quality overwritten only when present
    latency_ms      = max(0, receipt time - emitted timestamp), if present

Per tick:
    frame_rate = rate_counter.rate(now)

Missing metadata keeps the last known value. Latency is clamped at
zero because producer and viewer clocks are not synchronized; the
upper bound is not validated.
"""

import logging
from typing import Optional, Union

from camera_viewer.models.messages import InboundMessage
from camera_viewer.models.stats import UNKNOWN, StreamStats
from camera_viewer.session.rate_counter import RateCounter


logger = logging.getLogger(__name__)


class StatsAggregator:
    """
    Rolling statistics for one viewer.

    Counters survive reconnects; they describe everything received
    since the viewer started.

    Example:
        aggregator = StatsAggregator(RateCounter(window_ms=1000))

        aggregator.record_frame(message, now_ms=1707321234600)
        aggregator.tick(now_ms=1707321235000)
        print(aggregator.stats.frame_rate)
    """

    def __init__(self, rate_counter: Optional[RateCounter] = None) -> None:
        self.rate_counter = rate_counter or RateCounter()

        self._frame_count: int = 0
        self._frame_rate: int = 0
        self._bytes_received: int = 0
        self._last_frame_time: Optional[int] = None
        self._resolution: str = UNKNOWN
        self._quality: str = UNKNOWN
        self._latency_ms: Union[int, str] = UNKNOWN

    @property
    def stats(self) -> StreamStats:
        """Current statistics as an immutable-by-convention model."""
        return StreamStats(
            frame_count=self._frame_count,
            frame_rate=self._frame_rate,
            resolution=self._resolution,
            quality=self._quality,
            latency_ms=self._latency_ms,
            bytes_received=self._bytes_received,
            last_frame_time=self._last_frame_time,
        )

    def record_frame(self, message: InboundMessage, now_ms: int) -> StreamStats:
        """
        Fold one frame message into the counters.

        Args:
            message: Message for which is_frame is True
            now_ms: Local receipt time in epoch milliseconds

        Returns:
            Updated statistics
        """
        self._frame_count += 1
        self._bytes_received += len(message.data or "")
        self._last_frame_time = now_ms

        if message.stats is not None:
            if message.stats.resolution:
                self._resolution = message.stats.resolution
            if message.stats.quality is not None:
                self._quality = f"{message.stats.quality}%"

        if message.timestamp is not None:
            self._latency_ms = max(0, int(now_ms - message.timestamp))

        self._frame_rate = self.rate_counter.record(now_ms)
        return self.stats

    def tick(self, now_ms: int) -> StreamStats:
        """Recompute the frame rate. Performs no I/O."""
        self._frame_rate = self.rate_counter.rate(now_ms)
        return self.stats
