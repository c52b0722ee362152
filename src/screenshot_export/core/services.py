"""Export service tying composition, delivery and observability together."""

from datetime import date
from pathlib import Path
from typing import Optional, Tuple, Union

from .delivery import CopyResult, DownloadResult, copy_image_to_clipboard, download_image
from .exceptions import CompositionError, DeliveryError
from .image_utils import EncodedImage
from .models import ExportConfig, ExportResult
from .observability import LogContext, MetricsCollector, timed_operation
from .pipeline import calculate_final_dimensions, compose
from .protocols import ClipboardProtocol, LoggerProtocol


def _effects_summary(config: ExportConfig) -> str:
    effects = [
        name
        for name, value in (
            ("padding", config.padding),
            ("browser_frame", config.browser_frame),
            ("watermark", config.watermark),
        )
        if value is not None
    ]
    return ",".join(effects) or "none"


class ExportService:
    """
    Runs exports with correlated logging and timing metrics.

    Composition and delivery are separate steps: when delivery fails the
    composed result is already built, so export_and_* raise the DeliveryError
    and the caller can deliver the same ExportResult again.
    """

    def __init__(
        self,
        logger: LoggerProtocol,
        metrics_collector: Optional[MetricsCollector] = None,
    ):
        self._logger = logger
        self._metrics_collector = metrics_collector

    @property
    def metrics_collector(self) -> Optional[MetricsCollector]:
        return self._metrics_collector

    def _context(self, operation: str, config: ExportConfig) -> LogContext:
        return LogContext(operation=operation, component="export_service").with_metadata(
            format=config.format, effects=_effects_summary(config)
        )

    def preview_dimensions(
        self, width: int, height: int, config: Optional[ExportConfig] = None
    ) -> Tuple[int, int]:
        """Final export size without rendering anything."""
        return calculate_final_dimensions(width, height, config).size

    async def export(
        self,
        source: EncodedImage,
        config: Optional[ExportConfig] = None,
        *,
        today: Optional[date] = None,
    ) -> ExportResult:
        """Compose the export, logging and timing the call."""
        config = config or ExportConfig()
        log_context = self._context("compose", config)
        self._logger.debug("Starting export", log_context)

        try:
            with timed_operation("compose", self._metrics_collector, format=config.format):
                result = await compose(source, config, today=today)
        except CompositionError as e:
            error_context = log_context.with_metadata(
                error_type=type(e).__name__, error=str(e)
            )
            self._logger.error("Export failed", error_context)
            raise

        self._logger.info(
            "Export composed", log_context, width=result.width, height=result.height
        )
        return result

    def download(
        self,
        result: ExportResult,
        directory: Union[str, Path] = ".",
        filename: Optional[str] = None,
    ) -> DownloadResult:
        """Save a composed export to disk."""
        log_context = LogContext(operation="download", component="export_service")
        try:
            with timed_operation("download", self._metrics_collector):
                outcome = download_image(result, directory, filename)
        except DeliveryError as e:
            self._logger.error("Download failed", log_context.with_metadata(error=str(e)))
            raise

        self._logger.info("Export saved", log_context, path=outcome.path)
        return outcome

    def copy(self, result: ExportResult, clipboard: ClipboardProtocol) -> CopyResult:
        """Copy a composed export to the clipboard."""
        log_context = LogContext(operation="copy", component="export_service")
        try:
            with timed_operation("copy", self._metrics_collector):
                outcome = copy_image_to_clipboard(result, clipboard)
        except DeliveryError as e:
            self._logger.error("Copy failed", log_context.with_metadata(error=str(e)))
            raise

        self._logger.info("Export copied", log_context, size_bytes=outcome.size_bytes)
        return outcome

    async def export_and_download(
        self,
        source: EncodedImage,
        config: Optional[ExportConfig] = None,
        directory: Union[str, Path] = ".",
        filename: Optional[str] = None,
        *,
        today: Optional[date] = None,
    ) -> Tuple[ExportResult, DownloadResult]:
        result = await self.export(source, config, today=today)
        return result, self.download(result, directory, filename)

    async def export_and_copy(
        self,
        source: EncodedImage,
        clipboard: ClipboardProtocol,
        config: Optional[ExportConfig] = None,
        *,
        today: Optional[date] = None,
    ) -> Tuple[ExportResult, CopyResult]:
        result = await self.export(source, config, today=today)
        return result, self.copy(result, clipboard)
