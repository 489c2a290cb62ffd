"""Core module with logging, middleware, rate limiting and exception handling."""

from storepilot.core.exceptions import setup_exception_handlers
from storepilot.core.logging import get_logger, setup_logging
from storepilot.core.middleware import (
    RequestContextMiddleware,
    SecurityHeadersMiddleware,
    UnhandledErrorMiddleware,
)
from storepilot.core.sanitize import sanitize_input

__all__ = [
    "get_logger",
    "setup_logging",
    "RequestContextMiddleware",
    "SecurityHeadersMiddleware",
    "UnhandledErrorMiddleware",
    "sanitize_input",
    "setup_exception_handlers",
]
