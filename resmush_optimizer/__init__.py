"""
resmush-optimizer: shrink local images with the reSmush.it API,
falling back to local JPEG re-encoding.
"""

from .core.config import Settings, settings
from .services.optimization import OptimizationResult, ResmushOptimizer

__version__ = "0.1.0"

__all__ = ["ResmushOptimizer", "OptimizationResult", "Settings", "settings"]
