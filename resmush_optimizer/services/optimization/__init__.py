"""
Image optimization through reSmush.it with a local JPEG fallback.
"""

from .optimizer import ResmushOptimizer, OptimizationResult
from .transports import (
    HttpTransport,
    HttpxTransport,
    RequestsTransport,
    TransportResponse,
    UploadPayload,
    available_transports,
)
from .local_encoder import LocalEncoder
from .execution_budget import ExecutionBudget

__all__ = [
    'ResmushOptimizer',
    'OptimizationResult',
    'HttpTransport',
    'HttpxTransport',
    'RequestsTransport',
    'TransportResponse',
    'UploadPayload',
    'available_transports',
    'LocalEncoder',
    'ExecutionBudget'
]
