from unittest.mock import MagicMock

import pytest
import requests

import config as cfg
from photo_quality import sources
from photo_quality.errors import FetchError
from photo_quality.sources import download_image, lazy_source, load_image_bytes, read_local_file


def _response(content=b"img", status=200):
    resp = MagicMock()
    resp.content = content
    resp.status_code = status
    if status >= 400:
        resp.raise_for_status.side_effect = requests.HTTPError(f"{status} Client Error")
    return resp


@pytest.fixture
def fake_get(monkeypatch):
    get = MagicMock(return_value=_response(b"downloaded"))
    monkeypatch.setattr(sources.requests, "get", get)
    return get


def test_read_local_file(tmp_path):
    path = tmp_path / "a.jpg"
    path.write_bytes(b"abc")
    assert read_local_file(str(path)) == b"abc"


def test_read_missing_file(tmp_path):
    with pytest.raises(FetchError, match="Could not read"):
        read_local_file(str(tmp_path / "missing.jpg"))


def test_download(fake_get):
    assert download_image("https://cdn.example.com/p.jpg") == b"downloaded"
    fake_get.assert_called_once_with("https://cdn.example.com/p.jpg", timeout=cfg.HTTP_TIMEOUT_SEC)


def test_download_http_error(fake_get):
    fake_get.return_value = _response(status=404)
    with pytest.raises(FetchError, match="404"):
        download_image("https://cdn.example.com/gone.jpg", timeout=5)


def test_download_connection_error(fake_get):
    fake_get.side_effect = requests.ConnectionError("connection refused")
    with pytest.raises(FetchError, match="connection refused"):
        download_image("https://cdn.example.com/p.jpg")


def test_local_file_preferred_over_url(tmp_path, fake_get):
    path = tmp_path / "p.png"
    path.write_bytes(b"local")

    assert load_image_bytes(storage_path=str(path), url="https://cdn.example.com/p.png") == b"local"
    fake_get.assert_not_called()


def test_missing_local_file_falls_back_to_url(tmp_path, fake_get):
    data = load_image_bytes(storage_path=str(tmp_path / "gone.png"), url="https://cdn.example.com/p.png")
    assert data == b"downloaded"


def test_missing_local_file_without_url(tmp_path):
    with pytest.raises(FetchError, match="no valid URL"):
        load_image_bytes(storage_path=str(tmp_path / "gone.png"))


@pytest.mark.parametrize("url", [None, "", "ftp://example.com/p.png", "/uploads/p.png"])
def test_no_usable_source(url, fake_get):
    with pytest.raises(FetchError, match="No valid image source"):
        load_image_bytes(url=url)
    fake_get.assert_not_called()


def test_lazy_source_defers_io(tmp_path, fake_get):
    source = lazy_source(url="https://cdn.example.com/p.png", timeout=3)
    fake_get.assert_not_called()

    assert source() == b"downloaded"
    fake_get.assert_called_once_with("https://cdn.example.com/p.png", timeout=3)
