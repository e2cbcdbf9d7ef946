"""
Presentation Module
===================

Rendering-side helpers. Nothing here mutates session state.

This module provides:
    - decode_frame_bytes: Base64 payload decoding
    - image_decoder: JPEG → BGR arrays (requires OpenCV)
    - format_*: Display formatting for stats
    - viewer: OpenCV window (imported lazily by the console script)
"""

from camera_viewer.presentation.formatting import (
    format_data_size,
    format_latency,
    format_timestamp,
    stats_lines,
)
from camera_viewer.presentation.payload import ImageDecodeError, decode_frame_bytes


__all__ = [
    "format_data_size",
    "format_latency",
    "format_timestamp",
    "stats_lines",
    "ImageDecodeError",
    "decode_frame_bytes",
]
