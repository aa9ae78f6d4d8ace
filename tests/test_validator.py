import io

import pytest
from PIL import Image

import config as cfg
from conftest import encode, gray
from photo_quality.errors import TooLarge, TooSmall, UnsupportedFormat, ValidationError
from photo_quality.validator import validate_image_format


def test_valid_png_returns_metadata():
    buffer = encode(gray(128, width=320, height=240))
    meta = validate_image_format(buffer)

    assert meta.format == "png"
    assert (meta.width, meta.height) == (320, 240)
    assert meta.size == len(buffer)


@pytest.mark.parametrize("ext,fmt", [(".jpg", "jpeg"), (".png", "png"), (".webp", "webp")])
def test_supported_formats(ext, fmt):
    meta = validate_image_format(encode(gray(90), ext))
    assert meta.format == fmt


def test_multi_picture_jpeg_is_jpeg():
    # Phone cameras embed a second frame (MPF); Pillow opens these as "MPO"
    first = Image.new("RGB", (300, 300), (120, 130, 140))
    second = Image.new("RGB", (300, 300), (10, 20, 30))
    bio = io.BytesIO()
    first.save(bio, "MPO", save_all=True, append_images=[second])
    buffer = bio.getvalue()

    assert buffer[:3] == b"\xff\xd8\xff"
    meta = validate_image_format(buffer)
    assert meta.format == "jpeg"
    assert (meta.width, meta.height) == (300, 300)


def test_too_small():
    with pytest.raises(TooSmall):
        validate_image_format(encode(gray(128, width=100, height=100)))


def test_one_short_side_is_too_small():
    with pytest.raises(TooSmall):
        validate_image_format(encode(gray(128, width=800, height=199)))


def test_minimum_dimensions_accepted():
    meta = validate_image_format(encode(gray(128, width=200, height=200)))
    assert meta.width == 200


def test_too_large_dimensions():
    with pytest.raises(TooLarge) as exc:
        validate_image_format(encode(gray(0, width=5000, height=3000)))
    assert exc.value.reason == "dimensions"


def test_too_large_payload():
    # Pillow only reads the header, so trailing bytes inflate the payload without changing the image
    buffer = encode(gray(128)) + b"\0" * cfg.MAX_FILE_SIZE_BYTES
    with pytest.raises(TooLarge) as exc:
        validate_image_format(buffer)
    assert exc.value.reason == "payload"


def test_payload_limit_is_read_from_config(monkeypatch):
    buffer = encode(gray(128))
    monkeypatch.setattr(cfg, "MAX_FILE_SIZE_BYTES", len(buffer) - 1)
    with pytest.raises(TooLarge):
        validate_image_format(buffer)


def test_first_failing_rule_wins():
    # Too small and oversized payload: dimensions are checked first
    buffer = encode(gray(128, width=100, height=100)) + b"\0" * cfg.MAX_FILE_SIZE_BYTES
    with pytest.raises(TooSmall):
        validate_image_format(buffer)


@pytest.mark.parametrize("buffer", [b"", b"definitely not an image", b"\x89PNG\r\n"])
def test_undetectable_format(buffer):
    with pytest.raises(UnsupportedFormat):
        validate_image_format(buffer)


def test_unsupported_but_valid_format():
    bmp = encode(gray(128), ".bmp")
    with pytest.raises(UnsupportedFormat, match="bmp"):
        validate_image_format(bmp)

    bio = io.BytesIO()
    Image.new("L", (300, 300)).save(bio, "GIF")
    with pytest.raises(UnsupportedFormat):
        validate_image_format(bio.getvalue())


def test_errors_share_validation_base():
    for err in (UnsupportedFormat, TooSmall, TooLarge):
        assert issubclass(err, ValidationError)
    assert TooSmall("x").kind == "too_small"
