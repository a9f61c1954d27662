"""
Logging module for the service kernel.

Provides unified logging for the registry, event and hook machinery.
"""

from .logger import (
    ROOT_LOGGER_NAME,
    KernelLogger,
    get_logger,
    setup_logger,
    set_level
)

__all__ = [
    "ROOT_LOGGER_NAME",
    "KernelLogger",
    "get_logger",
    "setup_logger",
    "set_level"
]
