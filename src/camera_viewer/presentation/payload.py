"""
Frame payload decoding shared by the HTTP API and the image decoder.
"""

import base64
import binascii


class ImageDecodeError(Exception):
    """Raised when a frame payload cannot be decoded."""
    pass


def decode_frame_bytes(image_b64: str) -> bytes:
    """
    Decode a base64 payload to raw JPEG bytes.

    Args:
        image_b64: Base64-encoded image as received on the wire

    Returns:
        Encoded image bytes

    Raises:
        ImageDecodeError: If the payload is not valid base64 or is empty
    """
    try:
        image_bytes = base64.b64decode(image_b64, validate=True)
    except (binascii.Error, ValueError) as e:
        raise ImageDecodeError(f"Base64 decode failed: {e}") from e

    if not image_bytes:
        raise ImageDecodeError("Frame payload is empty")

    return image_bytes
