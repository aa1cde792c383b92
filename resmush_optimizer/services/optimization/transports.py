"""
HTTP transports for the reSmush.it upload and the follow-up download.

``RequestsTransport`` is preferred; ``HttpxTransport`` is used when requests
cannot be imported in the running environment.
"""

import importlib
import importlib.util
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, BinaryIO, Dict, List, Optional

from ...utils.error_handlers import RemoteServiceError, TransportUnavailable

logger = logging.getLogger(__name__)

CHUNK_SIZE = 64 * 1024


@dataclass
class UploadPayload:
    """Single-field multipart upload."""
    filename: str
    content: bytes
    mime_type: str
    field_name: str = "files"

    def as_files(self) -> Dict[str, tuple]:
        return {self.field_name: (self.filename, self.content, self.mime_type)}


@dataclass
class TransportResponse:
    """Buffered HTTP response."""
    status_code: int
    body: bytes


class HttpTransport(ABC):
    """
    An HTTP client able to perform the multipart POST and the streamed GET.
    """

    name: str = "base"
    module_name: str = ""

    def __init__(self, connect_timeout: float = 5.0):
        self.connect_timeout = connect_timeout

    @classmethod
    def is_available(cls) -> bool:
        """Check whether the backing HTTP library can be imported."""
        return importlib.util.find_spec(cls.module_name) is not None

    def _client_module(self):
        try:
            return importlib.import_module(self.module_name)
        except ImportError as e:
            raise TransportUnavailable(
                f"{self.module_name} is not installed. Use fallback transport.",
                details={"transport": self.name}
            ) from e

    @abstractmethod
    def post(
        self,
        url: str,
        payload: UploadPayload,
        params: Optional[Dict[str, Any]] = None
    ) -> TransportResponse:
        """
        Upload the payload as multipart/form-data.

        Raises:
            TransportUnavailable: If the HTTP library is missing
            RemoteServiceError: On any transport-level failure
        """

    @abstractmethod
    def download(self, url: str, sink: BinaryIO) -> int:
        """
        Stream ``url`` into ``sink``.

        Returns:
            Number of bytes written

        Raises:
            TransportUnavailable: If the HTTP library is missing
            RemoteServiceError: On network failure or non-2xx status
        """


class RequestsTransport(HttpTransport):
    """Transport backed by requests."""

    name = "requests"
    module_name = "requests"

    def post(self, url, payload, params=None):
        requests = self._client_module()
        try:
            response = requests.post(
                url,
                params=params,
                files=payload.as_files(),
                timeout=(self.connect_timeout, None)
            )
        except requests.RequestException as e:
            raise RemoteServiceError(f"Upload to {url} failed: {e}") from e

        return TransportResponse(status_code=response.status_code, body=response.content)

    def download(self, url, sink):
        requests = self._client_module()
        written = 0
        try:
            with requests.get(url, stream=True, timeout=(self.connect_timeout, None)) as response:
                response.raise_for_status()
                for chunk in response.iter_content(chunk_size=CHUNK_SIZE):
                    if chunk:
                        sink.write(chunk)
                        written += len(chunk)
        except requests.RequestException as e:
            raise RemoteServiceError(f"Download of {url} failed: {e}") from e

        return written


class HttpxTransport(HttpTransport):
    """Transport backed by httpx."""

    name = "httpx"
    module_name = "httpx"

    def _timeout(self, httpx):
        return httpx.Timeout(None, connect=self.connect_timeout)

    def post(self, url, payload, params=None):
        httpx = self._client_module()
        try:
            response = httpx.post(
                url,
                params=params,
                files=payload.as_files(),
                timeout=self._timeout(httpx)
            )
        except httpx.HTTPError as e:
            raise RemoteServiceError(f"Upload to {url} failed: {e}") from e

        return TransportResponse(status_code=response.status_code, body=response.content)

    def download(self, url, sink):
        httpx = self._client_module()
        written = 0
        try:
            with httpx.stream("GET", url, timeout=self._timeout(httpx), follow_redirects=True) as response:
                response.raise_for_status()
                for chunk in response.iter_bytes(chunk_size=CHUNK_SIZE):
                    sink.write(chunk)
                    written += len(chunk)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise RemoteServiceError(f"Download of {url} failed: {e}") from e

        return written


def available_transports(
    connect_timeout: float = 5.0,
    has_primary_transport: Optional[bool] = None
) -> List[HttpTransport]:
    """
    Build the ordered transport list.

    Args:
        connect_timeout: Connect timeout in seconds for every request
        has_primary_transport: Force the requests transport on or off.
            Detected from the environment if None.

    Returns:
        Transports in the order they should be tried
    """
    if has_primary_transport is None:
        has_primary_transport = RequestsTransport.is_available()

    transports: List[HttpTransport] = []
    if has_primary_transport:
        transports.append(RequestsTransport(connect_timeout))
    else:
        logger.info("requests not available, using httpx transport")
    transports.append(HttpxTransport(connect_timeout))

    return transports
