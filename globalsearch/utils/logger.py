"""
Logging configuration for the global search engine
"""

import logging
import re

import structlog
from rich.console import Console
from rich.logging import RichHandler

from globalsearch.config import Settings, get_settings


def setup_logging(settings: Settings | None = None) -> None:
    """Set up structured logging with rich formatting"""

    settings = settings or get_settings()

    # Configure log level
    log_level = getattr(logging, settings.log_level.upper(), logging.INFO)

    # Create logs directory if it doesn't exist
    logs_dir = settings.log_dir
    logs_dir.mkdir(parents=True, exist_ok=True)

    # Configure standard library logging
    logging.basicConfig(
        level=log_level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[
            RichHandler(
                console=Console(stderr=True),
                show_time=True,
                show_path=True,
                markup=True,
                rich_tracebacks=True,
            ),
            logging.FileHandler(logs_dir / "search.log", encoding="utf-8"),
        ],
    )

    # Configure structlog
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            (
                structlog.processors.JSONRenderer()
                if settings.log_format == "json"
                else structlog.dev.ConsoleRenderer()
            ),
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a structured logger instance"""
    from typing import cast

    logger = structlog.get_logger(name)
    return cast("structlog.stdlib.BoundLogger", logger)


def sanitize_log_content(content: str, max_length: int = 50) -> str:
    """Mask likely secrets in free text and cap its length for logging"""

    sensitive_patterns = [
        r'token[=:\s]*["\']?[\w\-\.]{20,}["\']?',
        r'password[=:\s]*["\']?[\w\-\.]{8,}["\']?',
        r'secret[=:\s]*["\']?[\w\-\.]{20,}["\']?',
        r"\b[A-Za-z0-9]{32,}\b",
    ]

    sanitized = content
    for pattern in sensitive_patterns:
        sanitized = re.sub(pattern, "[REDACTED]", sanitized, flags=re.IGNORECASE)

    if len(sanitized) > max_length:
        sanitized = sanitized[:max_length] + "..."

    return sanitized
