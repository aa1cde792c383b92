"""
Tests for the requests and httpx transports.
"""

import io
import httpx
import pytest
import requests

from resmush_optimizer.services.optimization.transports import (
    HttpxTransport,
    RequestsTransport,
    UploadPayload,
    available_transports,
)
from resmush_optimizer.utils.error_handlers import RemoteServiceError, TransportUnavailable


class FakeRequestsResponse:
    def __init__(self, status_code=200, content=b"", chunks=()):
        self.status_code = status_code
        self.content = content
        self.chunks = list(chunks)

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Error")

    def iter_content(self, chunk_size=1):
        return iter(self.chunks)

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False


@pytest.fixture
def payload():
    return UploadPayload(filename="photo.jpg", content=b"\xff\xd8\xff", mime_type="image/jpeg")


class MissingLibraryTransport(RequestsTransport):
    name = "missing"
    module_name = "resmush_missing_http_library"


class TestRequestsTransport:

    def test_post_sends_multipart_and_query(self, monkeypatch, payload):
        calls = {}

        def fake_post(url, **kwargs):
            calls["url"] = url
            calls.update(kwargs)
            return FakeRequestsResponse(200, b'{"dest": "http://x/y.jpg"}')

        monkeypatch.setattr(requests, "post", fake_post)
        transport = RequestsTransport(connect_timeout=5.0)

        response = transport.post("http://api.resmush.it", payload, params={"qlty": 92})

        assert response.status_code == 200
        assert response.body == b'{"dest": "http://x/y.jpg"}'
        assert calls["url"] == "http://api.resmush.it"
        assert calls["params"] == {"qlty": 92}
        assert calls["files"] == {"files": ("photo.jpg", b"\xff\xd8\xff", "image/jpeg")}
        assert calls["timeout"] == (5.0, None)

    def test_post_connection_error(self, monkeypatch, payload):
        def fake_post(url, **kwargs):
            raise requests.ConnectionError("refused")

        monkeypatch.setattr(requests, "post", fake_post)

        with pytest.raises(RemoteServiceError):
            RequestsTransport().post("http://api.resmush.it", payload)

    def test_download_streams_chunks(self, monkeypatch):
        monkeypatch.setattr(
            requests, "get",
            lambda url, **kwargs: FakeRequestsResponse(200, chunks=[b"abc", b"", b"def"])
        )
        sink = io.BytesIO()

        written = RequestsTransport().download("http://x/y.jpg", sink)

        assert written == 6
        assert sink.getvalue() == b"abcdef"

    def test_download_http_error(self, monkeypatch):
        monkeypatch.setattr(requests, "get", lambda url, **kwargs: FakeRequestsResponse(404))

        with pytest.raises(RemoteServiceError):
            RequestsTransport().download("http://x/y.jpg", io.BytesIO())

    def test_missing_library(self, payload):
        transport = MissingLibraryTransport()

        assert MissingLibraryTransport.is_available() is False
        with pytest.raises(TransportUnavailable):
            transport.post("http://api.resmush.it", payload)
        with pytest.raises(TransportUnavailable):
            transport.download("http://x/y.jpg", io.BytesIO())


class TestHttpxTransport:

    @staticmethod
    def mock_transport(handler):
        return httpx.Client(transport=httpx.MockTransport(handler))

    def test_post_sends_multipart_and_query(self, monkeypatch, payload):
        seen = {}

        def handler(request):
            seen["request"] = request
            return httpx.Response(200, content=b'{"dest": "http://x/y.jpg"}')

        client = self.mock_transport(handler)

        def fake_post(url, **kwargs):
            seen["timeout"] = kwargs.pop("timeout")
            return client.post(url, **kwargs)

        monkeypatch.setattr(httpx, "post", fake_post)

        response = HttpxTransport(connect_timeout=5.0).post(
            "http://api.resmush.it", payload, params={"qlty": 85}
        )

        request = seen["request"]
        body = request.read()
        assert response.status_code == 200
        assert request.method == "POST"
        assert request.url.params["qlty"] == "85"
        assert b'name="files"; filename="photo.jpg"' in body
        assert b"Content-Type: image/jpeg" in body
        assert seen["timeout"].connect == 5.0
        assert seen["timeout"].read is None

    def test_post_connection_error(self, monkeypatch, payload):
        def fake_post(url, **kwargs):
            raise httpx.ConnectError("refused")

        monkeypatch.setattr(httpx, "post", fake_post)

        with pytest.raises(RemoteServiceError):
            HttpxTransport().post("http://api.resmush.it", payload)

    def test_download_streams_body(self, monkeypatch):
        client = self.mock_transport(lambda request: httpx.Response(200, content=b"optimized"))

        def fake_stream(method, url, **kwargs):
            kwargs.pop("timeout")
            return client.stream(method, url, **kwargs)

        monkeypatch.setattr(httpx, "stream", fake_stream)
        sink = io.BytesIO()

        written = HttpxTransport().download("http://x/y.jpg", sink)

        assert written == 9
        assert sink.getvalue() == b"optimized"

    def test_download_http_error(self, monkeypatch):
        client = self.mock_transport(lambda request: httpx.Response(500))

        def fake_stream(method, url, **kwargs):
            kwargs.pop("timeout")
            return client.stream(method, url, **kwargs)

        monkeypatch.setattr(httpx, "stream", fake_stream)

        with pytest.raises(RemoteServiceError):
            HttpxTransport().download("http://x/y.jpg", io.BytesIO())

    def test_download_invalid_url(self):
        with pytest.raises(RemoteServiceError):
            HttpxTransport().download("not a url", io.BytesIO())


class TestAvailableTransports:

    def test_detection_prefers_requests(self):
        transports = available_transports(connect_timeout=3.0)

        assert [t.name for t in transports] == ["requests", "httpx"]
        assert all(t.connect_timeout == 3.0 for t in transports)

    def test_without_primary(self):
        transports = available_transports(has_primary_transport=False)

        assert [t.name for t in transports] == ["httpx"]
