"""Utility modules for the global search engine"""

from .error_handler import ErrorHandler, handle_errors, safe_with_default
from .logger import get_logger, sanitize_log_content, setup_logging
from .mixins import LoggerMixin

__all__ = [
    "ErrorHandler",
    "LoggerMixin",
    "get_logger",
    "handle_errors",
    "safe_with_default",
    "sanitize_log_content",
    "setup_logging",
]
