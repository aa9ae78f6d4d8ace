import threading

import cv2
import numpy as np
import pytest

from photo_quality.expression import DetectedFace, ExpressionClassifier


def encode(img: np.ndarray, ext: str = ".png") -> bytes:
    ok, buf = cv2.imencode(ext, img)
    assert ok
    return buf.tobytes()


def gray(value: int, width: int = 300, height: int = 300) -> np.ndarray:
    return np.full((height, width), value, dtype=np.uint8)


def half_split(width: int = 400, height: int = 300) -> np.ndarray:
    """Left half black, right half white."""
    img = np.zeros((height, width), dtype=np.uint8)
    img[:, width // 2:] = 255
    return img


def face(happy=0.0, neutral=0.0, sad=0.0, angry=0.0, surprised=0.0, bbox=(0, 0, 100, 100)):
    return DetectedFace(
        bbox=bbox,
        emotions={"happy": happy, "neutral": neutral, "sad": sad, "angry": angry, "surprised": surprised},
    )


class FakeClassifier(ExpressionClassifier):
    """Returns canned faces, raises a canned error, or blocks on images of a given width."""

    name = "fake"

    def __init__(self, faces=None, error=None, slow_width=None, release=None, on_detect=None):
        self.faces = faces or []
        self.error = error
        self.slow_width = slow_width
        self.release = release or threading.Event()
        self.on_detect = on_detect
        self.calls = 0

    def detect(self, image_bgr):
        self.calls += 1
        if self.on_detect:
            self.on_detect()
        if self.slow_width is not None and image_bgr.shape[1] == self.slow_width:
            self.release.wait(5)
        if self.error:
            raise self.error
        return list(self.faces)


@pytest.fixture
def mid_gray_png():
    return encode(gray(128))


@pytest.fixture
def half_split_png():
    return encode(half_split())


@pytest.fixture
def noise_png():
    rng = np.random.default_rng(7)
    return encode(rng.integers(0, 256, size=(240, 320, 3), dtype=np.uint8))


@pytest.fixture
def release():
    """Event that unblocks slow fake classifiers at teardown so their threads exit."""
    event = threading.Event()
    yield event
    event.set()
