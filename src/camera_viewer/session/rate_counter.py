"""
Sliding-Window Rate Counter
===========================

Counts frame arrivals within a trailing time window.

The counter keeps receipt timestamps in arrival order. On every query,
entries older than the window are discarded from the front and the
remaining count is the rate.

Rate Semantics:
    rate(now) = |{t : now - t <= window_ms}|

    This is an instantaneous count, not an average. During the first
    window after connecting it under-reports.

Ordering:
    Receipt order is arrival order. Sender clocks are never used here.
    If the local clock steps backwards, the new receipt time is clamped
    to the newest recorded one so the deque stays sorted.
"""

import logging
from collections import deque
from typing import Deque


logger = logging.getLogger(__name__)


class RateCounter:
    """
    Bounded log of receipt times with a windowed rate.

    Attributes:
        window_ms: Width of the trailing window in milliseconds

    Example:
        counter = RateCounter(window_ms=1000)

        for t in range(0, 1000, 100):
            counter.record(t)

        counter.rate(1000)  # -> 10
        counter.rate(2100)  # -> 0
    """

    def __init__(self, window_ms: int = 1000) -> None:
        if window_ms <= 0:
            raise ValueError("window_ms must be positive")

        self.window_ms = window_ms
        self._times: Deque[int] = deque()

    def __len__(self) -> int:
        return len(self._times)

    def record(self, now_ms: int) -> int:
        """
        Record one arrival and return the updated rate.

        Args:
            now_ms: Local receipt time in epoch milliseconds

        Returns:
            Arrivals within the window ending at now_ms
        """
        if self._times and now_ms < self._times[-1]:
            logger.debug(
                f"Receipt time went backwards ({now_ms} < {self._times[-1]}), clamping"
            )
            now_ms = self._times[-1]

        self._times.append(now_ms)
        return self.rate(now_ms)

    def rate(self, now_ms: int) -> int:
        """
        Prune expired arrivals and return the remaining count.

        Args:
            now_ms: Query time in epoch milliseconds

        Returns:
            Arrivals within the window ending at now_ms
        """
        cutoff = now_ms - self.window_ms
        while self._times and self._times[0] < cutoff:
            self._times.popleft()
        return len(self._times)

    def clear(self) -> None:
        self._times.clear()
