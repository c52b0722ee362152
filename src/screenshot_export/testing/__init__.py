"""Testing utilities and fakes for the screenshot export pipeline."""

from .fakes import (
    FakeClipboard,
    FakeLogger,
    create_patterned_image,
    create_test_data_url,
    create_test_image,
)

__all__ = [
    "FakeClipboard",
    "FakeLogger",
    "create_patterned_image",
    "create_test_data_url",
    "create_test_image",
]
