"""
Shared fixtures for optimizer tests.
"""

import io
import json
import pytest
from PIL import Image

from resmush_optimizer.core.config import Settings
from resmush_optimizer.services.optimization import (
    HttpTransport,
    ResmushOptimizer,
    TransportResponse,
)


class StubTransport(HttpTransport):
    """In-memory transport recording every call."""

    name = "stub"

    def __init__(
        self,
        response=None,
        download_bytes=b"",
        post_error=None,
        download_error=None,
        name="stub"
    ):
        super().__init__(connect_timeout=5.0)
        self.name = name
        self.response = response
        self.download_bytes = download_bytes
        self.post_error = post_error
        self.download_error = download_error
        self.posts = []
        self.downloads = []

    def post(self, url, payload, params=None):
        self.posts.append({"url": url, "payload": payload, "params": params})
        if self.post_error is not None:
            raise self.post_error
        return self.response

    def download(self, url, sink):
        self.downloads.append(url)
        if self.download_error is not None:
            raise self.download_error
        sink.write(self.download_bytes)
        return len(self.download_bytes)


def build_json_response(data, status_code=200):
    return TransportResponse(status_code=status_code, body=json.dumps(data).encode("utf-8"))


@pytest.fixture
def stub_transport():
    """The StubTransport class, for tests that build their own."""
    return StubTransport


@pytest.fixture
def json_response():
    return build_json_response


@pytest.fixture
def make_image(tmp_path):
    """Write a small gradient image and return its path."""
    def _make(name="photo.jpg", fmt="JPEG", mode="RGB", size=(64, 48)):
        image = Image.new(mode, size)
        if mode in ("RGB", "RGBA"):
            for x in range(size[0]):
                for y in range(size[1]):
                    pixel = ((x * 4) % 256, (y * 5) % 256, 128)
                    if mode == "RGBA":
                        pixel = pixel + (x % 256,)
                    image.putpixel((x, y), pixel)
        path = tmp_path / name
        image.save(path, format=fmt)
        return path
    return _make


@pytest.fixture
def test_settings(tmp_path):
    return Settings(LOG_FILE=str(tmp_path / "logs" / "debug.log"))


@pytest.fixture
def optimized_bytes():
    """JPEG bytes standing in for the file reSmush.it serves."""
    buffer = io.BytesIO()
    Image.new("RGB", (8, 8), color="green").save(buffer, format="JPEG", quality=50)
    return buffer.getvalue()


@pytest.fixture
def make_optimizer(test_settings):
    def _make(*transports, **kwargs):
        return ResmushOptimizer(settings=test_settings, transports=list(transports), **kwargs)
    return _make


@pytest.fixture
def ok_transport(optimized_bytes):
    return StubTransport(
        response=build_json_response({
            "src": "http://api.resmush.it/input.jpg",
            "dest": "http://par.static.resmush.it/output.jpg",
            "src_size": 4000,
            "dest_size": len(optimized_bytes),
            "percent": 50,
        }),
        download_bytes=optimized_bytes
    )

