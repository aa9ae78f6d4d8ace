"""
Quality signals computed straight from pixels: sharpness (Laplacian variance) and lighting
(BT.709 brightness and contrast). Both are pure functions of the image bytes.
"""

import cv2
import numpy as np

import config as cfg
from .imaging import clamp, decode_color, decode_grayscale, round_half_up
from .models import LightingMetric, SharpnessMetric

ISSUE_TOO_DARK = "Image is too dark"
ISSUE_OVEREXPOSED = "Image is overexposed"
ISSUE_LOW_CONTRAST = "Low contrast - image appears flat"
ISSUE_HIGH_CONTRAST = "Very high contrast - may indicate harsh lighting"


def laplacian_variance(gray: np.ndarray) -> float:
    """
    Mean squared 4-neighbour Laplacian response over interior pixels; higher = sharper.
    Border pixels are excluded so no padding policy leaks into the score.
    """
    h, w = gray.shape[:2]
    if h < 3 or w < 3:
        return 0.0
    # ksize=1 is the [[0,1,0],[1,-4,1],[0,1,0]] kernel; squaring drops the sign
    lap = cv2.Laplacian(gray, cv2.CV_64F, ksize=1)
    interior = lap[1:-1, 1:-1]
    return float(np.mean(interior * interior))


def sharpness_severity(score: int) -> str:
    if score >= cfg.SHARPNESS_SHARP_MIN:
        return "sharp"
    if score >= cfg.SHARPNESS_SLIGHT_BLUR_MIN:
        return "slight-blur"
    if score >= cfg.SHARPNESS_BLURRY_MIN:
        return "blurry"
    return "very-blurry"


def sharpness_from_variance(variance: float) -> SharpnessMetric:
    score = min(100, round_half_up(variance / cfg.SHARPNESS_VARIANCE_DIVISOR))
    return SharpnessMetric(
        score=score,
        is_blurry=score < cfg.SHARPNESS_SLIGHT_BLUR_MIN,
        severity=sharpness_severity(score),
    )


def analyze_sharpness(buffer: bytes) -> SharpnessMetric:
    """Sharpness 0-100: 0-15 very blurry, 15-30 blurry, 30-50 slightly blurry, 50+ sharp."""
    gray = decode_grayscale(buffer)
    return sharpness_from_variance(laplacian_variance(gray))


def sample_luma(img_bgr: np.ndarray, stride: int = None) -> np.ndarray:
    """Perceived brightness of every `stride`-th pixel in both axes, starting at (0, 0)."""
    if stride is None:
        stride = cfg.LIGHTING_SAMPLE_STRIDE
    sample = img_bgr[::stride, ::stride].reshape(-1, 3).astype(np.float64)
    wr, wg, wb = cfg.LUMA_WEIGHTS
    # OpenCV channel order is B, G, R
    return wr * sample[:, 2] + wg * sample[:, 1] + wb * sample[:, 0]


def lighting_from_stats(mean_luma: float, std_luma: float) -> LightingMetric:
    """Penalty rules applied to normalized brightness/contrast; all four checks are independent."""
    brightness = mean_luma / 255.0 * 100.0
    contrast = min(100.0, std_luma / cfg.CONTRAST_REFERENCE_STD * 100.0)

    issues = []
    score = 100.0

    if brightness < cfg.DARK_BRIGHTNESS_MAX:
        issues.append(ISSUE_TOO_DARK)
        score -= cfg.DARK_BRIGHTNESS_MAX - brightness

    if brightness > cfg.OVEREXPOSED_BRIGHTNESS_MIN:
        issues.append(ISSUE_OVEREXPOSED)
        score -= (brightness - cfg.OVEREXPOSED_BRIGHTNESS_MIN) * cfg.OVEREXPOSED_PENALTY_FACTOR

    if contrast < cfg.LOW_CONTRAST_MAX:
        issues.append(ISSUE_LOW_CONTRAST)
        score -= cfg.LOW_CONTRAST_MAX - contrast

    if contrast > cfg.HIGH_CONTRAST_MIN:
        issues.append(ISSUE_HIGH_CONTRAST)
        score -= (contrast - cfg.HIGH_CONTRAST_MIN) / cfg.HIGH_CONTRAST_PENALTY_DIVISOR

    final = round_half_up(clamp(score))
    return LightingMetric(
        score=final,
        is_good_lighting=final >= cfg.GOOD_LIGHTING_MIN,
        brightness=round_half_up(clamp(brightness)),
        contrast=round_half_up(clamp(contrast)),
        issues=tuple(issues),
    )


def analyze_lighting(buffer: bytes) -> LightingMetric:
    """Lighting 0-100 from strided BT.709 luma: mean → brightness, population std → contrast."""
    luma = sample_luma(decode_color(buffer))
    return lighting_from_stats(float(luma.mean()), float(luma.std()))
