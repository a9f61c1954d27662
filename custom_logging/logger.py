"""
Structured logger setup for the service kernel.
Provides stdout logging with optional rotating file output.
"""

import logging
import logging.handlers
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional

ROOT_LOGGER_NAME = "service_kernel"


class KernelLogger:
    """Centralized logging configuration for the service kernel."""

    def __init__(self,
                 name: str = ROOT_LOGGER_NAME,
                 log_level: str = "INFO",
                 log_dir: Optional[str] = None,
                 max_file_size: int = 10 * 1024 * 1024,  # 10MB
                 backup_count: int = 5):
        """
        Initialize the kernel logger.

        Args:
            name: Logger name
            log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
            log_dir: Directory for log files (no file output when None)
            max_file_size: Maximum size for log files before rotation
            backup_count: Number of backup files to keep
        """
        self.name = name
        self.log_level = getattr(logging, log_level.upper())
        self.log_dir = Path(log_dir) if log_dir else None
        self.max_file_size = max_file_size
        self.backup_count = backup_count

        self.logger = logging.getLogger(name)
        self.logger.setLevel(self.log_level)

        # Prevent duplicate handlers
        if self.logger.handlers:
            return

        self._setup_handlers()

    def _setup_handlers(self):
        """Set up console and (optionally) file handlers."""
        simple_formatter = logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )

        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(self.log_level)
        console_handler.setFormatter(simple_formatter)
        self.logger.addHandler(console_handler)

        if self.log_dir is None:
            return

        self.log_dir.mkdir(parents=True, exist_ok=True)
        detailed_formatter = logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(filename)s:%(lineno)d - %(funcName)s() - %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )

        # File handler with rotation
        log_file = self.log_dir / f"{self.name}_{datetime.now().strftime('%Y%m%d')}.log"
        file_handler = logging.handlers.RotatingFileHandler(
            log_file,
            maxBytes=self.max_file_size,
            backupCount=self.backup_count
        )
        file_handler.setLevel(self.log_level)
        file_handler.setFormatter(detailed_formatter)

        # Error file handler for errors only
        error_file = self.log_dir / f"{self.name}_errors_{datetime.now().strftime('%Y%m%d')}.log"
        error_handler = logging.handlers.RotatingFileHandler(
            error_file,
            maxBytes=self.max_file_size,
            backupCount=self.backup_count
        )
        error_handler.setLevel(logging.ERROR)
        error_handler.setFormatter(detailed_formatter)

        self.logger.addHandler(file_handler)
        self.logger.addHandler(error_handler)

    def get_logger(self) -> logging.Logger:
        """Return the configured logger instance."""
        return self.logger

    def set_level(self, level: str):
        """Change logging level at runtime."""
        new_level = getattr(logging, level.upper())
        self.logger.setLevel(new_level)
        for handler in self.logger.handlers:
            if handler.level != logging.ERROR:
                handler.setLevel(new_level)


# Global logger instance
_root_logger: Optional[KernelLogger] = None


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """
    Get a logger in the kernel namespace.

    Args:
        name: Child logger name, e.g. "application" -> "service_kernel.application"

    Returns:
        Configured logger instance
    """
    global _root_logger
    if _root_logger is None:
        _root_logger = KernelLogger()
    if not name or name == ROOT_LOGGER_NAME:
        return _root_logger.get_logger()
    return _root_logger.get_logger().getChild(name)


def setup_logger(config: dict = None) -> logging.Logger:
    """
    Setup the kernel logger with configuration.

    Args:
        config: Configuration dictionary with keys:
               - log_level: str (DEBUG, INFO, WARNING, ERROR, CRITICAL)
               - log_dir: str (directory path, optional)
               - max_file_size: int (bytes)
               - backup_count: int

    Returns:
        Configured logger instance
    """
    global _root_logger
    if config is None:
        config = {}

    # Drop handlers from a previous setup so the new config takes effect
    existing = logging.getLogger(ROOT_LOGGER_NAME)
    for handler in existing.handlers[:]:
        existing.removeHandler(handler)
        handler.close()

    _root_logger = KernelLogger(
        log_level=config.get("log_level", "INFO"),
        log_dir=config.get("log_dir"),
        max_file_size=config.get("max_file_size", 10 * 1024 * 1024),
        backup_count=config.get("backup_count", 5)
    )

    return _root_logger.get_logger()


def set_level(level: str):
    """Change the kernel log level at runtime."""
    global _root_logger
    if _root_logger is None:
        _root_logger = KernelLogger()
    _root_logger.set_level(level)
