# MISP Bridge: Core Module - Shared Utilities

from .log_setup import configure_logging, get_logger

__all__ = [
    "configure_logging",
    "get_logger",
]
