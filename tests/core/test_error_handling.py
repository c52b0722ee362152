# tests/core/test_error_handling.py

import pytest
from unittest import mock

from PIL import Image, UnidentifiedImageError

from screenshot_export.core.exceptions import (
    CompositionError,
    EffectDecodeError,
    SourceDecodeError,
    effect_error_handler,
    with_error_handling,
)


@pytest.fixture
def mock_logger():
    """Fixture to mock the logger used by the decorator."""
    with mock.patch("screenshot_export.core.exceptions.get_logger") as mock_get_logger:
        mock_log_instance = mock.Mock()
        mock_get_logger.return_value = mock_log_instance
        yield mock_log_instance


# --- Tests for @with_error_handling decorator ---

def test_with_error_handling_passes_result_through(mock_logger):
    """Test that a successful call returns its value untouched."""
    @with_error_handling
    def func_succeeds():
        return "composed"

    assert func_succeeds() == "composed"
    mock_logger.error.assert_not_called()


def test_with_error_handling_wraps_unexpected_error(mock_logger):
    """Test that unexpected exceptions become CompositionError."""
    @with_error_handling
    def func_raising_error():
        raise KeyError("missing")

    with pytest.raises(CompositionError) as excinfo:
        func_raising_error()

    assert isinstance(excinfo.value.__cause__, KeyError)
    mock_logger.error.assert_called_once()
    args, kwargs = mock_logger.error.call_args
    assert "func_raising_error" in args[0]
    assert kwargs.get("exc_info") is True


def test_with_error_handling_reraises_library_errors(mock_logger):
    """Test that pipeline errors keep their own type."""
    @with_error_handling
    def func_raising_decode_error():
        raise SourceDecodeError("bad source")

    with pytest.raises(SourceDecodeError):
        func_raising_decode_error()

    mock_logger.error.assert_called_once()


# --- Tests for effect_error_handler context manager ---

@pytest.mark.parametrize(
    "raised",
    [
        UnidentifiedImageError("cannot identify image file"),
        OSError("image file is truncated"),
        ValueError("bad data URL"),
        Image.DecompressionBombError("too many pixels"),
    ],
)
def test_effect_error_handler_maps_decode_errors(raised):
    """Test that decode failures become EffectDecodeError for the effect."""
    with pytest.raises(EffectDecodeError) as excinfo:
        with effect_error_handler("watermark"):
            raise raised

    assert excinfo.value.effect == "watermark"
    assert excinfo.value.__cause__ is raised


def test_effect_error_handler_keeps_pipeline_errors():
    """Test that pipeline errors pass through unchanged."""
    with pytest.raises(SourceDecodeError):
        with effect_error_handler("browser_frame"):
            raise SourceDecodeError("not an effect problem")


def test_effect_error_handler_ignores_other_errors():
    """Test that programming errors are not disguised as decode errors."""
    with pytest.raises(RuntimeError):
        with effect_error_handler("watermark"):
            raise RuntimeError("unexpected")


def test_effect_error_handler_no_error():
    """Test that the handler is transparent when nothing fails."""
    with effect_error_handler("watermark"):
        value = 42
    assert value == 42
