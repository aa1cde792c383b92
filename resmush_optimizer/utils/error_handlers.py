"""
Error taxonomy and fallback helpers for the optimizer.
"""

import logging
from typing import Any, Callable, Dict, Optional
from datetime import datetime, timezone

logger = logging.getLogger(__name__)


class OptimizerError(Exception):
    """Base optimizer error class."""

    def __init__(
        self,
        message: str,
        code: str = "OPTIMIZER_ERROR",
        details: Optional[Dict] = None
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details or {}
        self.timestamp = datetime.now(timezone.utc).isoformat()


class ValidationError(OptimizerError):
    """Source or destination failed validation. Never retried."""

    def __init__(self, message: str, code: str = "VALIDATION_ERROR", **kwargs):
        super().__init__(message, code=code, **kwargs)


class TransportUnavailable(OptimizerError):
    """The HTTP client behind a transport cannot be used in this environment."""

    def __init__(self, message: str, **kwargs):
        super().__init__(message, code="TRANSPORT_UNAVAILABLE", **kwargs)


class RemoteServiceError(OptimizerError):
    """
    Remote optimization failed: network error, non-200 status, empty or
    unparsable body, missing ``dest`` field, or failed download.
    """

    def __init__(self, message: str, **kwargs):
        super().__init__(message, code="REMOTE_SERVICE_ERROR", **kwargs)


class LocalEncodeError(OptimizerError):
    """Decoding or JPEG re-encoding failed during the local fallback."""

    def __init__(self, message: str, **kwargs):
        super().__init__(message, code="LOCAL_ENCODE_ERROR", **kwargs)


class ErrorRecovery:
    """Utilities for fallback mechanisms."""

    @staticmethod
    def with_fallback(
        primary_func: Callable,
        fallback_func: Callable,
        exceptions: tuple = (Exception,)
    ) -> Any:
        """
        Execute primary function with fallback on failure.

        Args:
            primary_func: Primary function to execute
            fallback_func: Fallback function if primary fails
            exceptions: Exceptions to trigger fallback

        Returns:
            Result from primary or fallback function
        """
        try:
            return primary_func()
        except exceptions as e:
            logger.warning(f"Primary function failed: {str(e)}. Using fallback.")
            return fallback_func()
