"""
Activity Log
============

Bounded FIFO of timestamped, human-readable session events.

Design Rules:
    - Append-only for producers
    - Holds at most `capacity` entries, oldest evicted first
    - Entries are returned oldest-first
    - Pure storage, no side effects
"""

from collections import deque
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Deque, List


@dataclass(frozen=True, slots=True)
class LogEntry:
    """One activity log line."""

    timestamp: datetime
    message: str

    def __str__(self) -> str:
        return f"[{self.timestamp:%H:%M:%S}] {self.message}"


class ActivityLog:
    """
    Ring buffer of the most recent activity entries.

    Attributes:
        capacity: Maximum number of retained entries

    Example:
        log = ActivityLog(capacity=20)
        log.add("Connected to WebSocket server")

        for entry in log.entries():
            print(entry)
    """

    def __init__(
        self,
        capacity: int = 20,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        if capacity < 1:
            raise ValueError("capacity must be >= 1")

        self._capacity = capacity
        self._clock = clock
        self._entries: Deque[LogEntry] = deque(maxlen=capacity)

    @property
    def capacity(self) -> int:
        return self._capacity

    def __len__(self) -> int:
        return len(self._entries)

    def add(self, message: str) -> LogEntry:
        """Append a message stamped with the current time."""
        entry = LogEntry(timestamp=self._clock(), message=message)
        self._entries.append(entry)
        return entry

    def entries(self) -> List[LogEntry]:
        """Retained entries, oldest first."""
        return list(self._entries)

    def clear(self) -> None:
        self._entries.clear()
