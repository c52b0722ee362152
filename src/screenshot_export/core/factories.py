"""Factory classes for creating configured service instances."""

import logging
from typing import Any, Optional

from .logging_config import setup_logger
from .observability import LogContext, MetricsCollector, StructuredLogger
from .protocols import LoggerProtocol
from .services import ExportService


class LoggerAdapter:
    """Adapter to make standard logger compatible with LoggerProtocol."""

    def __init__(self, logger: logging.Logger):
        self._logger = logger

    def _render(self, message: str, context: Optional[LogContext], **kwargs: Any) -> str:
        return StructuredLogger.format_message(message, context, **kwargs)

    def debug(self, message: str, context: Optional[LogContext] = None, **kwargs: Any) -> None:
        self._logger.debug(self._render(message, context, **kwargs))

    def info(self, message: str, context: Optional[LogContext] = None, **kwargs: Any) -> None:
        self._logger.info(self._render(message, context, **kwargs))

    def warning(self, message: str, context: Optional[LogContext] = None, **kwargs: Any) -> None:
        self._logger.warning(self._render(message, context, **kwargs))

    def error(self, message: str, context: Optional[LogContext] = None, **kwargs: Any) -> None:
        self._logger.error(self._render(message, context, **kwargs))


class LoggerFactory:
    """Factory for creating logger instances."""

    @staticmethod
    def create_logger(
        name: str = "screenshot-export", level: Optional[str] = None
    ) -> LoggerProtocol:
        """Create a configured logger instance."""
        return LoggerAdapter(setup_logger(name, level))


class ExportServiceFactory:
    """Factory for creating a ready-to-use ExportService."""

    @staticmethod
    def create_service(
        logger: Optional[LoggerProtocol] = None, metrics: bool = True
    ) -> ExportService:
        if logger is None:
            logger = LoggerFactory.create_logger()

        metrics_collector = MetricsCollector() if metrics else None
        return ExportService(logger, metrics_collector)
