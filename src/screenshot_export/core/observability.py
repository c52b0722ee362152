"""Structured logging context and timing metrics for export operations."""

import logging
import time
import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .logging_config import get_logger


@dataclass
class LogContext:
    """Correlation data attached to every log line of one export."""

    correlation_id: str = field(default_factory=lambda: uuid.uuid4().hex[:12])
    operation: str = ""
    component: str = ""
    metadata: Dict[str, Any] = field(default_factory=dict)

    def with_operation(self, operation: str) -> "LogContext":
        """Create new context with operation set."""
        return LogContext(
            correlation_id=self.correlation_id,
            operation=operation,
            component=self.component,
            metadata=self.metadata.copy(),
        )

    def with_metadata(self, **kwargs: Any) -> "LogContext":
        """Create new context with additional metadata."""
        return LogContext(
            correlation_id=self.correlation_id,
            operation=self.operation,
            component=self.component,
            metadata={**self.metadata, **kwargs},
        )


class StructuredLogger:
    """Logger that renders a LogContext into each message."""

    def __init__(self, name: str = "export", level: Optional[int] = None):
        self._logger = get_logger(name)
        if level is not None:
            self._logger.setLevel(level)

    @staticmethod
    def format_message(
        message: str, context: Optional[LogContext] = None, **kwargs: Any
    ) -> str:
        if context is None:
            extra = kwargs
        else:
            message = f"[{context.correlation_id}] {message}"
            if context.operation:
                message = f"[{context.operation}] {message}"
            extra = {**context.metadata, **kwargs}

        if extra:
            details = ", ".join(f"{key}={value}" for key, value in extra.items())
            message = f"{message} ({details})"
        return message

    def _log(
        self, level: int, message: str, context: Optional[LogContext], **kwargs: Any
    ) -> None:
        self._logger.log(level, self.format_message(message, context, **kwargs))

    def debug(self, message: str, context: Optional[LogContext] = None, **kwargs: Any) -> None:
        self._log(logging.DEBUG, message, context, **kwargs)

    def info(self, message: str, context: Optional[LogContext] = None, **kwargs: Any) -> None:
        self._log(logging.INFO, message, context, **kwargs)

    def warning(self, message: str, context: Optional[LogContext] = None, **kwargs: Any) -> None:
        self._log(logging.WARNING, message, context, **kwargs)

    def error(self, message: str, context: Optional[LogContext] = None, **kwargs: Any) -> None:
        self._log(logging.ERROR, message, context, **kwargs)


@dataclass
class PerformanceMetrics:
    """Timing of one export step."""

    operation: str
    start_time: float
    end_time: float
    success: bool
    error_message: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def duration(self) -> float:
        return self.end_time - self.start_time

    @property
    def duration_ms(self) -> float:
        return self.duration * 1000


class MetricsCollector:
    """In-memory collector for PerformanceMetrics."""

    def __init__(self) -> None:
        self._metrics: List[PerformanceMetrics] = []

    def record_metric(self, metric: PerformanceMetrics) -> None:
        self._metrics.append(metric)

    def get_metrics(self, operation: Optional[str] = None) -> List[PerformanceMetrics]:
        """Recorded metrics, optionally filtered by operation."""
        if operation:
            return [m for m in self._metrics if m.operation == operation]
        return self._metrics.copy()

    def get_summary(self, operation: Optional[str] = None) -> Dict[str, Any]:
        """Counts and duration statistics for the recorded metrics."""
        metrics = self.get_metrics(operation)
        if not metrics:
            return {}

        durations = [m.duration for m in metrics]
        successful = sum(1 for m in metrics if m.success)
        return {
            "total_operations": len(metrics),
            "successful_operations": successful,
            "failed_operations": len(metrics) - successful,
            "success_rate": successful / len(metrics),
            "avg_duration": sum(durations) / len(durations),
            "min_duration": min(durations),
            "max_duration": max(durations),
            "total_duration": sum(durations),
        }

    def clear_metrics(self) -> None:
        self._metrics.clear()


class timed_operation:
    """
    Context manager timing a block into a MetricsCollector.

    Example:
        with timed_operation("compose", collector, width=1280):
            ...
    """

    def __init__(
        self,
        operation: str,
        metrics_collector: Optional[MetricsCollector] = None,
        **metadata: Any,
    ):
        self.operation = operation
        self.metrics_collector = metrics_collector
        self.metadata = metadata
        self.start_time = 0.0

    def __enter__(self) -> "timed_operation":
        self.start_time = time.time()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> bool:
        if self.metrics_collector is not None:
            self.metrics_collector.record_metric(
                PerformanceMetrics(
                    operation=self.operation,
                    start_time=self.start_time,
                    end_time=time.time(),
                    success=exc_type is None,
                    error_message=str(exc_val) if exc_val else None,
                    metadata=self.metadata,
                )
            )
        return False
