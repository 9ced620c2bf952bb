"""
Logging configuration for the Nexus personalization engine
"""
import sys
from pathlib import Path
from typing import Optional
from loguru import logger

from .config import LoggingConfig


class LoggingSetup:
    """Centralized logging configuration"""

    def __init__(self, config: Optional[LoggingConfig] = None):
        self.config = config or LoggingConfig()
        self.log_dir = Path(self.config.log_dir)

        # Remove default logger
        logger.remove()

        if self.config.enable_console:
            self._setup_console_logging()

        if self.config.enable_files:
            self.log_dir.mkdir(parents=True, exist_ok=True)
            self._setup_file_logging()

    def _setup_console_logging(self):
        """Setup console logging with colors"""
        logger.add(
            sys.stderr,
            level=self.config.level,
            format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
                   "<level>{level: <8}</level> | "
                   "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
                   "<level>{message}</level>",
            colorize=True
        )

    def _setup_file_logging(self):
        """Setup file logging with rotation"""
        logger.add(
            self.log_dir / self.config.log_file,
            level=self.config.level,
            format="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} | {message}",
            rotation=self.config.rotation,
            retention=self.config.retention,
            compression="zip",
            enqueue=True
        )

        logger.add(
            self.log_dir / self.config.error_file,
            level="ERROR",
            format="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} | {message}",
            rotation=self.config.rotation,
            retention="30 days",
            compression="zip",
            enqueue=True
        )


class DataProcessingLogger:
    """Specialized logger for per-visit processing operations"""

    def __init__(self, component_name: str):
        self.logger = logger.bind(component=component_name)
        self.component_name = component_name

    def log_processing_start(self, operation: str, data_size: int):
        """Log the start of a processing operation"""
        self.logger.debug(
            f"Starting {operation} ({data_size} chars)",
            operation=operation,
            data_size=data_size,
            stage="start"
        )

    def log_processing_complete(self, operation: str, duration: float, degraded: bool = False):
        """Log completion of a processing operation"""
        self.logger.debug(
            f"Completed {operation} in {duration * 1000:.1f}ms (degraded={degraded})",
            operation=operation,
            duration_seconds=duration,
            degraded=degraded,
            stage="complete"
        )

    def log_error_with_context(self, operation: str, error: Exception, context: dict):
        """Log errors with detailed context"""
        self.logger.error(
            f"Error in {operation}: {error}",
            operation=operation,
            error_type=type(error).__name__,
            context=context,
            stage="error"
        )


def configure_logging(config: Optional[LoggingConfig] = None) -> LoggingSetup:
    """Install the console and file sinks described by ``config``."""
    return LoggingSetup(config)


def get_data_processing_logger(component_name: str) -> DataProcessingLogger:
    """Get a data processing logger for a specific component"""
    return DataProcessingLogger(component_name)


def setup_logger(name: str):
    """Setup a logger with the given name"""
    return logger.bind(component=name)


__all__ = ["logger", "configure_logging", "get_data_processing_logger", "setup_logger"]
