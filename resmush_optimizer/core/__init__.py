"""
Core module for the reSmush.it optimizer
"""

from .config import Settings, settings
from .logging_config import configure_logging, log_error

__all__ = ["Settings", "settings", "configure_logging", "log_error"]
