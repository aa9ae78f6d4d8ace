"""
Byte sources: read an uploaded photo from local storage or download it from its URL.
Any I/O failure becomes a FetchError so the batch records it against that photo only.
"""

import functools
import logging
import os

import requests

import config as cfg
from .errors import FetchError

log = logging.getLogger(__name__)


def read_local_file(path: str) -> bytes:
    try:
        with open(path, "rb") as f:
            return f.read()
    except OSError as e:
        raise FetchError(f"Could not read {path}: {e}") from e


def download_image(url: str, timeout: float = None) -> bytes:
    """GET the image at url. Non-2xx responses and network errors raise FetchError."""
    if timeout is None:
        timeout = cfg.HTTP_TIMEOUT_SEC
    try:
        response = requests.get(url, timeout=timeout)
        response.raise_for_status()
    except requests.RequestException as e:
        raise FetchError(f"Could not download {url}: {e}") from e
    log.debug("downloaded %s (%.2f KB)", url, len(response.content) / 1024)
    return response.content


def _is_http_url(url: str) -> bool:
    return bool(url) and url.lower().startswith(("http://", "https://"))


def load_image_bytes(storage_path: str = None, url: str = None, timeout: float = None) -> bytes:
    """
    Prefer the local file at storage_path; fall back to downloading url.
    Raises FetchError when neither gives an image.
    """
    if storage_path:
        if os.path.isfile(storage_path):
            return read_local_file(storage_path)
        log.warning("File not found at storage_path %s, trying URL", storage_path)
    if _is_http_url(url):
        return download_image(url, timeout=timeout)
    if storage_path:
        raise FetchError("File not found at storage_path and no valid URL available")
    raise FetchError("No valid image source found (no storage_path or valid URL)")


def lazy_source(storage_path: str = None, url: str = None, timeout: float = None):
    """Zero-argument callable for batch items; bytes are only read when the photo's turn comes."""
    return functools.partial(load_image_bytes, storage_path=storage_path, url=url, timeout=timeout)
