"""Polarity correction, thresholding and lossless encoding for OCR."""

import cv2
import numpy as np

from numcaptcha.errors import EncodingFailure


def invert(gray: np.ndarray) -> np.ndarray:
    """Map every sample v to 255 - v."""
    return cv2.bitwise_not(gray)


def apply_threshold(gray: np.ndarray, threshold: int) -> np.ndarray:
    """Samples above `threshold` become 255, everything else 0."""
    _, binary = cv2.threshold(gray, int(threshold), 255, cv2.THRESH_BINARY)
    return binary


def encode_png(binary: np.ndarray) -> bytes:
    """Encode a single-channel raster as PNG."""
    try:
        success, buffer = cv2.imencode(".png", binary)
    except cv2.error as e:
        raise EncodingFailure(f"Failed to encode image as PNG: {e}") from e
    if not success:
        raise EncodingFailure("Failed to encode image as PNG")
    return buffer.tobytes()
