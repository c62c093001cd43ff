"""Shared utilities package."""

from .logging_config import get_logger, setup_logging
from .utils import retry_async, truncate

__all__ = [
    "get_logger",
    "setup_logging",
    "retry_async",
    "truncate",
]
