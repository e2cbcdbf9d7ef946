"""
Display formatting helpers shared by the window viewer and the HTTP API.
"""

from datetime import datetime
from typing import List, Optional

from camera_viewer.models.stats import StreamStats


def format_data_size(num_bytes: int) -> str:
    """Bytes as kilobytes with one decimal, e.g. '12.3 KB'."""
    return f"{num_bytes / 1024:.1f} KB"


def format_timestamp(epoch_ms: Optional[int]) -> str:
    """Epoch milliseconds as local HH:MM:SS, or 'Never'."""
    if not epoch_ms:
        return "Never"
    return datetime.fromtimestamp(epoch_ms / 1000).strftime("%H:%M:%S")


def format_latency(stats: StreamStats) -> str:
    if stats.latency_ms == "unknown":
        return "-"
    return f"{stats.latency_ms} ms"


def stats_lines(stats: StreamStats) -> List[str]:
    """Statistics panel as plain text lines."""
    return [
        f"FPS: {stats.frame_rate}",
        f"Resolution: {stats.resolution}",
        f"Quality: {stats.quality}",
        f"Latency: {format_latency(stats)}",
        f"Frames Received: {stats.frame_count}",
        f"Last Frame: {format_timestamp(stats.last_frame_time)}",
        f"Data Received: {format_data_size(stats.bytes_received)}",
    ]
