"""
Bagr Structured Logging
Loguru sink setup and a small wrapper that binds per-request context.
"""
import sys
from typing import Any, Dict, Optional

from loguru import logger

from bagr.config import config

SERVICE_NAME = "bagr-disc-photos"


class StructuredLogger:
    """
    Structured logger for the disc photo pipeline.

    Every record carries ``service``; callers add ``request_id`` and stage
    details through ``extra``. With ``BAGR_LOG_JSON=1`` records are emitted
    as JSON lines instead of the pipe-separated text format.
    """

    def __init__(self):
        self._configure_logger()
        self._logger = logger.bind(service=SERVICE_NAME)

    def _configure_logger(self):
        logger.remove()
        logger.add(
            sys.stdout,
            format="{time:YYYY-MM-DD HH:mm:ss} | {level} | {message} | {extra}",
            level=config.LOG_LEVEL,
            serialize=config.LOG_JSON
        )

    def _log(self, level: str, message: str, extra: Optional[Dict[str, Any]]):
        bound = self._logger.bind(**extra) if extra else self._logger
        # depth=2 reports the caller of info()/warning(), not this helper
        bound.opt(depth=2).log(level, message)

    def info(self, message: str, extra: Optional[Dict[str, Any]] = None):
        self._log("INFO", message, extra)

    def warning(self, message: str, extra: Optional[Dict[str, Any]] = None):
        self._log("WARNING", message, extra)

    def error(self, message: str, extra: Optional[Dict[str, Any]] = None):
        self._log("ERROR", message, extra)

    def debug(self, message: str, extra: Optional[Dict[str, Any]] = None):
        self._log("DEBUG", message, extra)

    def exception(self, message: str, extra: Optional[Dict[str, Any]] = None):
        """Log at ERROR with the active exception's traceback."""
        bound = self._logger.bind(**extra) if extra else self._logger
        bound.opt(depth=1, exception=True).error(message)


# Global logger instance
_logger: Optional[StructuredLogger] = None


def get_logger() -> StructuredLogger:
    """Get or create global logger instance."""
    global _logger
    if _logger is None:
        _logger = StructuredLogger()
    return _logger
