"""
Utility module for logging.
"""

from .logger import get_logger, configure_logging, LogCategory

__all__ = ["get_logger", "configure_logging", "LogCategory"]
