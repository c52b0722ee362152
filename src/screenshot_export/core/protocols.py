"""Protocol definitions for dependency injection and testability."""

from typing import Any, Protocol


class ClipboardProtocol(Protocol):
    """A system clipboard that accepts PNG images."""

    def write_image(self, png_bytes: bytes) -> None:
        """Replace the clipboard contents with a PNG image."""
        ...


class LoggerProtocol(Protocol):
    """Protocol for logging operations."""

    def debug(self, message: str, context: Any = None, **kwargs: Any) -> None:
        ...

    def info(self, message: str, context: Any = None, **kwargs: Any) -> None:
        ...

    def warning(self, message: str, context: Any = None, **kwargs: Any) -> None:
        ...

    def error(self, message: str, context: Any = None, **kwargs: Any) -> None:
        ...
