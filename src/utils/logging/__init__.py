"""
Structured logging configuration for the validator.

Usage:
    from utils.logging import setup_logging

    setup_logging(level="INFO", json_format=True)

    logger = logging.getLogger(__name__)
    logger.info("Validated table", extra={"table_name": "users", "row_count": 3})
"""

from .config import configure_from_env, get_logger, setup_logging
from .formatters import ConsoleFormatter, JSONFormatter

__all__ = [
    "setup_logging",
    "get_logger",
    "configure_from_env",
    "JSONFormatter",
    "ConsoleFormatter",
]
