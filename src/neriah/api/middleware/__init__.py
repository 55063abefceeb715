"""API middleware."""

from neriah.api.middleware.cors import setup_cors
from neriah.api.middleware.errors import error_response, setup_error_handlers
from neriah.api.middleware.logging import configure_structlog, setup_logging

__all__ = [
    "configure_structlog",
    "error_response",
    "setup_cors",
    "setup_error_handlers",
    "setup_logging",
]
