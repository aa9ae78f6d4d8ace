"""
Decode encoded image bytes with OpenCV, plus the integer rounding every score uses.
"""

import math

import cv2
import numpy as np

from .errors import DecodeError


def _decode(buffer: bytes, flags: int) -> np.ndarray:
    if not buffer:
        raise DecodeError("Empty image buffer")
    raw = np.frombuffer(buffer, dtype=np.uint8)
    try:
        img = cv2.imdecode(raw, flags)
    except cv2.error as e:
        raise DecodeError(f"Could not decode image: {e}") from e
    if img is None or img.size == 0:
        raise DecodeError("Invalid or corrupted image file")
    return img


def decode_grayscale(buffer: bytes) -> np.ndarray:
    """8-bit single-channel image, row-major (H, W)."""
    return _decode(buffer, cv2.IMREAD_GRAYSCALE)


def decode_color(buffer: bytes) -> np.ndarray:
    """8-bit BGR image (H, W, 3). Alpha is dropped, gray inputs are expanded."""
    return _decode(buffer, cv2.IMREAD_COLOR)


def round_half_up(value: float) -> int:
    """
    Round to the nearest integer, .5 going up (2.5 -> 3, not 2).
    Float noise from the weights (0.35 * 70 == 24.499999999999996) is squashed first.
    """
    return int(math.floor(round(value, 9) + 0.5))


def clamp(value: float, low: float = 0.0, high: float = 100.0) -> float:
    return max(low, min(high, value))
