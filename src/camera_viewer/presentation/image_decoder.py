"""
Image Decoder
=============

Decodes base64 JPEG frame payloads for display.

Design Rules:
    - This is the ONLY place in the codebase that decodes images
    - The session engine never calls into this module
    - Validates shape and dtype
    - Fails fast on corrupt frames
"""

import cv2
import numpy as np

from camera_viewer.presentation.payload import ImageDecodeError, decode_frame_bytes


def decode_frame_bgr(image_b64: str) -> np.ndarray:
    """
    Decode a base64 JPEG payload to a BGR numpy array.

    Args:
        image_b64: Base64-encoded JPEG image

    Returns:
        BGR image as np.ndarray (H, W, 3), dtype=uint8

    Raises:
        ImageDecodeError: If decoding fails or image is invalid
    """
    image_bytes = decode_frame_bytes(image_b64)
    nparr = np.frombuffer(image_bytes, np.uint8)
    bgr = cv2.imdecode(nparr, cv2.IMREAD_COLOR)

    if bgr is None:
        raise ImageDecodeError("Failed to decode frame: cv2.imdecode returned None")

    if len(bgr.shape) != 3 or bgr.shape[2] != 3:
        raise ImageDecodeError(f"Invalid image shape: {bgr.shape}")

    if bgr.dtype != np.uint8:
        raise ImageDecodeError(f"Invalid dtype: {bgr.dtype}")

    return bgr

