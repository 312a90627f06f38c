"""
kanjisabi Logging Configuration

A centralized logging system using loguru. Provides a console handler tagged
with the emitting component (OCR, morphological analysis, server, pipeline),
a rotating debug log file and a dedicated error log file.
"""

import os
import sys
import time
from pathlib import Path
from typing import Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from loguru import Logger

from loguru import logger as _logger

# Remove default handler
_logger.remove()


class LoggerManager:
    """
    Manages the loguru handlers of the application.
    Log files live in the user config directory under ``logs/``.
    """

    # Component to file patterns mapping for automatic context tagging
    COMPONENT_PATTERNS = {
        "SERVER": ["morph/server.py", "morph/protocol.py"],
        "MORPH": ["morph/"],
        "OCR": ["ocr/"],
        "PIPELINE": ["pipeline/", "cli.py"],
        "CONFIG": ["configuration.py"],
    }

    def __init__(self):
        self._initialized = False
        self._log_dir: Optional[Path] = None
        self._handlers = {}

    def _get_app_directory(self) -> Path:
        """Get the application config directory (platform-aware)."""
        if sys.platform == 'win32':
            appdata_dir = os.getenv('APPDATA')
        else:
            appdata_dir = os.getenv('XDG_CONFIG_HOME') or os.path.expanduser('~/.config')

        config_dir = Path(appdata_dir) / 'kanjisabi'
        config_dir.mkdir(parents=True, exist_ok=True)
        return config_dir

    def _get_log_directory(self) -> Path:
        """Get or create the logs directory."""
        if self._log_dir is None:
            self._log_dir = self._get_app_directory() / 'logs'
            self._log_dir.mkdir(parents=True, exist_ok=True)
        return self._log_dir

    def _detect_component_tag(self, record) -> str:
        """
        Detect the component tag based on the file path in the log record.
        Returns fixed-width component tag for consistent formatting.
        """
        try:
            file_path = record.get("file", {})
            file_name = getattr(file_path, "path", None) or str(file_path)
            file_name = file_name.replace("\\", "/")

            for component, patterns in self.COMPONENT_PATTERNS.items():
                for pattern in patterns:
                    if pattern in file_name:
                        return component.ljust(10)

            return "MAIN".ljust(10)
        except Exception:
            return "MAIN".ljust(10)

    def _add_console_handler(self, logger_name: str = "kanjisabi", level: str = "INFO"):
        """Add a console handler with appropriate formatting and color."""
        def format_with_component(record):
            record["extra"]["component_tag"] = self._detect_component_tag(record)
            return True

        handler_id = _logger.add(
            sys.stderr,
            format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <dim>{extra[component_tag]}</dim> | <level>{message}</level>",
            level=level,
            colorize=True,
            backtrace=False,
            diagnose=False,
            filter=format_with_component,
        )
        self._handlers[f"{logger_name}_console"] = handler_id
        return handler_id

    def _add_file_handler(self, logger_name: str = "kanjisabi", level: str = "DEBUG"):
        """Add a rotating file handler for the specified logger."""
        log_file = self._get_log_directory() / f"{logger_name}.log"

        def format_with_component(record):
            record["extra"]["component_tag"] = self._detect_component_tag(record)
            return True

        handler_id = _logger.add(
            str(log_file),
            format="{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | {extra[component_tag]}{name}:{function}:{line} | {message}",
            level=level,
            rotation="5 MB",
            retention="7 days",
            encoding="utf-8",
            backtrace=True,
            diagnose=False,
            enqueue=True,
            filter=format_with_component,
        )
        self._handlers[f"{logger_name}_file"] = handler_id
        return handler_id

    def _add_error_handler(self):
        """Add a dedicated error log file for ERROR and CRITICAL messages."""
        error_log = self._get_log_directory() / "error.log"

        def format_with_component(record):
            record["extra"]["component_tag"] = self._detect_component_tag(record)
            return record["level"].no >= 40

        handler_id = _logger.add(
            str(error_log),
            format="{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | {extra[component_tag]}{name}:{function}:{line} - {message}\n{exception}",
            level="ERROR",
            rotation="5 MB",
            retention="14 days",
            encoding="utf-8",
            backtrace=True,
            diagnose=False,
            enqueue=True,
            filter=format_with_component,
        )
        self._handlers["error_file"] = handler_id
        return handler_id

    def initialize(self, logger_name: str = "kanjisabi", console_level: str = "INFO", file_level: str = "DEBUG"):
        """
        Initialize the logging system with handlers.

        Args:
            logger_name: Name of the log file (without extension)
            console_level: Minimum level for console output (INFO, DEBUG, etc.)
            file_level: Minimum level for file output
        """
        if self._initialized:
            return

        self._add_console_handler(logger_name, level=console_level)
        self._add_file_handler(logger_name, level=file_level)
        self._add_error_handler()

        self._initialized = True
        _logger.debug(f"Log directory: {self._get_log_directory()}")

    def cleanup_old_logs(self, days: int = 7):
        """Delete log files older than ``days`` days."""
        log_dir = self._get_log_directory()
        cutoff = time.time() - (days * 86400)

        cleaned_count = 0
        for log_file in log_dir.iterdir():
            if log_file.is_file() and log_file.stat().st_mtime < cutoff:
                try:
                    log_file.unlink()
                    cleaned_count += 1
                except OSError as e:
                    _logger.warning(f"Error deleting log file {log_file}: {e}")

        if cleaned_count > 0:
            _logger.info(f"Cleaned up {cleaned_count} old log files")

    def set_level(self, level: str):
        """Re-create every handler at the given level."""
        for handler_id in self._handlers.values():
            _logger.remove(handler_id)
        self._handlers.clear()
        self._initialized = False
        self.initialize(console_level=level, file_level=level)

    def get_logger(self) -> "Logger":
        """Get the configured loguru logger instance."""
        if not self._initialized:
            self.initialize()
        return _logger


# Global logger manager instance
_manager = LoggerManager()


def get_logger() -> "Logger":
    return _manager.get_logger()


def set_level(level: str):
    _manager.set_level(level)


def cleanup_old_logs(days: int = 7):
    """Clean up old log files (convenience function)."""
    _manager.cleanup_old_logs(days=days)


# Export the logger directly for convenience
logger = get_logger()

__all__ = [
    'logger',
    'get_logger',
    'set_level',
    'cleanup_old_logs',
    'LoggerManager',
]
