"""
Presentation Tests
==================

Formatting helpers and frame payload decoding.
"""

import base64
from datetime import datetime

import pytest

from camera_viewer.models.stats import StreamStats
from camera_viewer.presentation.formatting import (
    format_data_size,
    format_latency,
    format_timestamp,
    stats_lines,
)
from camera_viewer.presentation.payload import ImageDecodeError, decode_frame_bytes


class TestFormatting:

    def test_data_size(self):
        assert format_data_size(0) == "0.0 KB"
        assert format_data_size(1536) == "1.5 KB"

    def test_timestamp(self):
        epoch_ms = 1_700_000_000_000
        expected = datetime.fromtimestamp(epoch_ms / 1000).strftime("%H:%M:%S")

        assert format_timestamp(None) == "Never"
        assert format_timestamp(epoch_ms) == expected

    def test_latency(self):
        assert format_latency(StreamStats()) == "-"
        assert format_latency(StreamStats(latency_ms=42)) == "42 ms"

    def test_stats_lines_defaults(self):
        lines = stats_lines(StreamStats())

        assert "FPS: 0" in lines
        assert "Resolution: unknown" in lines
        assert "Last Frame: Never" in lines
        assert "Data Received: 0.0 KB" in lines


class TestPayload:

    def test_decodes_base64(self):
        raw = b"\xff\xd8\xff\xe0jpeg"
        assert decode_frame_bytes(base64.b64encode(raw).decode()) == raw

    @pytest.mark.parametrize("payload", ["not base64!", "QUJ", ""])
    def test_rejects_bad_payloads(self, payload):
        with pytest.raises(ImageDecodeError):
            decode_frame_bytes(payload)


class TestImageDecoder:
    """Requires OpenCV."""

    @pytest.fixture
    def real_jpeg_b64(self):
        cv2 = pytest.importorskip("cv2")
        np = pytest.importorskip("numpy")

        image = np.zeros((48, 64, 3), dtype=np.uint8)
        image[:, :, 2] = 255
        ok, encoded = cv2.imencode(".jpg", image)
        assert ok
        return base64.b64encode(encoded.tobytes()).decode("ascii")

    def test_decode_real_jpeg(self, real_jpeg_b64):
        from camera_viewer.presentation.image_decoder import decode_frame_bgr

        bgr = decode_frame_bgr(real_jpeg_b64)
        assert bgr.shape == (48, 64, 3)

    def test_corrupt_jpeg(self, jpeg_b64):
        pytest.importorskip("cv2")
        from camera_viewer.presentation.image_decoder import decode_frame_bgr

        with pytest.raises(ImageDecodeError):
            decode_frame_bgr(jpeg_b64)
