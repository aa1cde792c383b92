"""
Image optimization through the reSmush.it API with a local Pillow fallback.
"""

import json
import logging
import os
import shutil
import tempfile
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from ...core.config import Settings, settings as default_settings
from ...core.logging_config import configure_logging, log_error
from ...utils.error_handlers import (
    ErrorRecovery,
    LocalEncodeError,
    RemoteServiceError,
    TransportUnavailable,
    ValidationError,
)
from ...utils.file_utils import default_file_mode, generate_unique_filename
from ...utils.validators import (
    validate_file_extension,
    validate_file_size,
    validate_mime_type,
    validate_source_exists,
)
from .execution_budget import ExecutionBudget
from .local_encoder import LocalEncoder
from .transports import HttpTransport, TransportResponse, UploadPayload, available_transports

logger = logging.getLogger(__name__)


@dataclass
class OptimizationResult:
    """Result of image optimization."""
    success: bool
    source: str
    destination: str
    original_size: int
    optimized_size: int
    reduction_percentage: float
    optimization_method: str
    quality: int
    transport: Optional[str] = None
    error_message: Optional[str] = None


class ResmushOptimizer:
    """
    Optimizes a local image with reSmush.it, re-encoding it locally as JPEG
    when the service fails.

    ``optimize`` never raises: every failure is logged to the error log and
    reported as ``False``.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        transports: Optional[List[HttpTransport]] = None,
        has_primary_transport: Optional[bool] = None,
        encoder: Optional[LocalEncoder] = None,
        budget: Optional[ExecutionBudget] = None
    ):
        """
        Initialize the optimizer.

        Args:
            settings: Settings instance (module settings if None)
            transports: Ordered transports to try; built from the
                environment if None
            has_primary_transport: Capability flag for the requests transport,
                detected if None. Ignored when transports are given.
            encoder: Local fallback encoder
            budget: Execution-time budget
        """
        self.settings = settings or default_settings
        self.transports = transports if transports is not None else available_transports(
            connect_timeout=self.settings.CONNECT_TIMEOUT,
            has_primary_transport=has_primary_transport
        )
        self.encoder = encoder or LocalEncoder()
        self.budget = budget or ExecutionBudget(
            max_execution_seconds=self.settings.MAX_EXECUTION_SECONDS,
            margin=self.settings.EXECUTION_TIME_MARGIN
        )
        self.api_endpoint = self.settings.API_ENDPOINT
        self.error_logger = configure_logging(self.settings.LOG_FILE)

        # Per-call scratch state
        self.source: str = ""
        self.destination: str = ""
        self.quality: int = self.settings.DEFAULT_QUALITY
        self.mime_type: Optional[str] = None
        self.original_size: int = 0

    def optimize(self, source: str = "", destination: Optional[str] = None) -> bool:
        """
        Optimize ``source`` and write it to ``destination``.

        Args:
            source: Source image path
            destination: Output path. Defaults to overwriting the source; an
                existing different path is replaced by a numbered variant.

        Returns:
            True if an optimized file was written
        """
        return self.optimize_detailed(source, destination).success

    def optimize_detailed(self, source: str = "", destination: Optional[str] = None) -> OptimizationResult:
        """Same as ``optimize`` but returns the full OptimizationResult."""
        self.source = self.destination = str(source)
        self.quality = self.settings.DEFAULT_QUALITY
        self.mime_type = None
        self.original_size = 0

        try:
            self._validate(destination)
        except ValidationError as e:
            log_error(e.message)
            return self._failure(e.message)

        try:
            return ErrorRecovery.with_fallback(
                self._optimize_remotely,
                self._optimize_locally,
                exceptions=(RemoteServiceError, TransportUnavailable)
            )
        except LocalEncodeError as e:
            log_error(e.message)
            return self._failure(e.message)

    def _validate(self, destination: Optional[str]):
        if destination:
            destination = str(destination)
            validate_file_extension(destination, self.settings.ALLOWED_EXTENSIONS)

        validate_source_exists(self.source)
        self.mime_type = validate_mime_type(self.source, self.settings.ALLOWED_MIME_TYPES)
        self.original_size = validate_file_size(self.source, self.settings.MAX_FILE_SIZE)

        if destination and os.path.abspath(destination) != os.path.abspath(self.source):
            self.destination = generate_unique_filename(destination)

    def build_request(self) -> UploadPayload:
        """Build the multipart payload from the current source file."""
        with open(self.source, 'rb') as f:
            content = f.read()

        return UploadPayload(
            filename=os.path.basename(self.source),
            content=content,
            mime_type=self.mime_type
        )

    def _optimize_remotely(self) -> OptimizationResult:
        """
        Try each transport in order. A missing HTTP library moves on to the
        next transport; any other failure is final.

        Raises:
            TransportUnavailable: If no transport could be used
            RemoteServiceError: If the service call or the download failed
        """
        self.budget.reset_if_required()
        payload = self.build_request()

        for transport in self.transports:
            try:
                response = transport.post(
                    self.api_endpoint,
                    payload,
                    params={'qlty': self.quality}
                )
            except TransportUnavailable as e:
                logger.info(e.message)
                continue

            result = self.parse_response(response)
            self.store_on_filesystem(transport, result['dest'])
            return self._success("resmush", transport=transport.name, details=result)

        raise TransportUnavailable("No HTTP transport available.")

    def parse_response(self, response: TransportResponse) -> Dict[str, Any]:
        """
        Decode the reSmush.it JSON reply.

        Raises:
            RemoteServiceError: If the reply is not usable
        """
        if response.status_code != 200:
            raise RemoteServiceError(
                f"Status code is not 200 ({response.status_code}).",
                details={"status_code": response.status_code}
            )

        if not response.body:
            raise RemoteServiceError("Error Processing Request.")

        try:
            result = json.loads(response.body)
        except ValueError as e:
            raise RemoteServiceError(f"Response is not valid JSON: {e}") from e

        if not isinstance(result, dict) or not result:
            raise RemoteServiceError("Error Processing Request.")

        if 'dest' not in result:
            message = "Response does not contain compressed file URL."
            if 'error' in result:
                message = f"{message} Service error {result['error']}: {result.get('error_long', '')}"
            raise RemoteServiceError(message, details={"response": result})

        dest = result["dest"]
        if not isinstance(dest, str) or not dest.strip():
            raise RemoteServiceError(
                "Response does not contain a usable compressed file URL.",
                details={"response": result}
            )

        return result

    def store_on_filesystem(self, transport: HttpTransport, dest_url: str):
        """
        Download the optimized file and move it over the destination.

        The download lands in a temporary file next to the destination, so
        the destination is only replaced by a complete file.
        """
        self.budget.reset_if_required()

        directory = os.path.dirname(os.path.abspath(self.destination))
        suffix = os.path.splitext(self.destination)[1]
        tmp_path = None

        try:
            with tempfile.NamedTemporaryFile(dir=directory, suffix=suffix, delete=False) as tmp:
                tmp_path = tmp.name
                written = transport.download(dest_url, tmp)
                tmp.flush()
            if not written:
                raise RemoteServiceError(f"Optimized file at {dest_url} is empty.")
            if os.path.exists(self.destination):
                shutil.copymode(self.destination, tmp_path)
            else:
                os.chmod(tmp_path, default_file_mode())
            os.replace(tmp_path, self.destination)
        except OSError as e:
            raise RemoteServiceError(f"Could not store optimized file: {e}") from e
        finally:
            if tmp_path and os.path.exists(tmp_path):
                os.unlink(tmp_path)

    def _optimize_locally(self) -> OptimizationResult:
        """Re-encode the source as JPEG at the fallback quality."""
        self.quality = self.settings.FALLBACK_QUALITY
        self.budget.reset_if_required()
        self.encoder.reencode(self.source, self.destination, self.mime_type, self.quality)
        return self._success("local_jpeg")

    def _success(
        self,
        method: str,
        transport: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ) -> OptimizationResult:
        optimized_size = os.path.getsize(self.destination)
        reduction = 0.0
        if self.original_size:
            reduction = ((self.original_size - optimized_size) / self.original_size) * 100

        if details:
            logger.info(
                f"reSmush.it optimized {self.source}: {details.get('src_size')} -> "
                f"{details.get('dest_size')} bytes ({details.get('percent')}%)"
            )

        return OptimizationResult(
            success=True,
            source=self.source,
            destination=self.destination,
            original_size=self.original_size,
            optimized_size=optimized_size,
            reduction_percentage=reduction,
            optimization_method=method,
            quality=self.quality,
            transport=transport
        )

    def _failure(self, message: str) -> OptimizationResult:
        return OptimizationResult(
            success=False,
            source=self.source,
            destination=self.destination,
            original_size=self.original_size,
            optimized_size=self.original_size,
            reduction_percentage=0.0,
            optimization_method="none",
            quality=self.quality,
            error_message=message
        )
