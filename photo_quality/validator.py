"""
Gatekeeper for raw uploads: format, dimensions and payload size.
Only the image header is read (Pillow opens lazily); pixels are decoded later by the analyzers.
"""

import io
import logging

from PIL import Image, UnidentifiedImageError

import config as cfg
from .errors import TooLarge, TooSmall, UnsupportedFormat
from .models import DecodedMetadata

log = logging.getLogger(__name__)


def _read_header(buffer: bytes):
    """Return (format, width, height) from the image header."""
    try:
        with Image.open(io.BytesIO(buffer)) as img:
            fmt = (img.format or "").lower()
            return cfg.FORMAT_ALIASES.get(fmt, fmt), img.width, img.height
    except Image.DecompressionBombError as e:
        raise TooLarge(f"Image too large: {e}", reason="dimensions") from e
    except (UnidentifiedImageError, OSError, ValueError) as e:
        raise UnsupportedFormat("Invalid or corrupted image file.") from e


def validate_image_format(buffer: bytes) -> DecodedMetadata:
    """
    Check an encoded image before any analysis runs. First failing rule wins:
    unsupported format, too small, dimensions too large, payload too large.
    """
    if not buffer:
        raise UnsupportedFormat("Empty image buffer.")

    fmt, width, height = _read_header(buffer)

    if fmt not in cfg.SUPPORTED_FORMATS:
        names = ", ".join(f.upper() for f in cfg.SUPPORTED_FORMATS)
        raise UnsupportedFormat(f"Unsupported image format: {fmt or 'unknown'}. Please use {names}.")

    min_px = cfg.MIN_DIMENSION_PX
    if not width or not height or width < min_px or height < min_px:
        raise TooSmall(f"Image too small. Minimum dimensions are {min_px}x{min_px} pixels.")

    max_px = cfg.MAX_DIMENSION_PX
    if width > max_px or height > max_px:
        raise TooLarge(
            f"Image too large. Maximum dimensions are {max_px}x{max_px} pixels.",
            reason="dimensions",
        )

    if len(buffer) > cfg.MAX_FILE_SIZE_BYTES:
        limit_mb = cfg.MAX_FILE_SIZE_BYTES // (1024 * 1024)
        raise TooLarge(f"Image file size exceeds {limit_mb}MB limit.", reason="payload")

    log.debug("validated image format=%s size=%dx%d bytes=%d", fmt, width, height, len(buffer))
    return DecodedMetadata(format=fmt, width=width, height=height, size=len(buffer))
