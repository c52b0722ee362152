"""Integration tests for the complete composition pipeline."""

import asyncio
from contextlib import contextmanager
from datetime import date
from unittest.mock import Mock, patch

import numpy as np
import pytest

from screenshot_export.core import surface as surface_module
from screenshot_export.core.exceptions import (
    EffectDecodeError,
    RenderSurfaceUnavailable,
    SourceDecodeError,
)
from screenshot_export.core.image_utils import decode_image
from screenshot_export.core.models import (
    BrowserFrameConfig,
    ExportConfig,
    PaddingConfig,
    WatermarkConfig,
)
from screenshot_export.core.pipeline import calculate_final_dimensions, compose, compose_sync
from screenshot_export.testing.fakes import (
    create_patterned_image,
    create_test_data_url,
    create_test_image,
)

RED = (255, 0, 0, 255)
BLUE = (0, 0, 255, 255)
BLACK = (0, 0, 0, 255)
MAC_HEADER = (232, 232, 232, 255)

CONFIGS = {
    "none": ExportConfig(),
    "padding": ExportConfig(padding=PaddingConfig(enabled=True, size=15)),
    "mac": ExportConfig(browser_frame=BrowserFrameConfig(enabled=True)),
    "windows_no_url": ExportConfig(
        browser_frame=BrowserFrameConfig(enabled=True, style="windows", include_url=False)
    ),
    "url_bottom_padded": ExportConfig(
        padding=PaddingConfig(enabled=True, size=7),
        browser_frame=BrowserFrameConfig(enabled=True, style="url_bottom"),
    ),
    "everything": ExportConfig(
        padding=PaddingConfig(enabled=True, size=12, color="#222"),
        browser_frame=BrowserFrameConfig(
            enabled=True, style="url_top", include_date=True, url="https://a.io"
        ),
        watermark=WatermarkConfig(
            enabled=True, image_data=create_test_data_url(30, 10, BLUE), opacity=60
        ),
        format="image/jpeg",
    ),
}


def pixel(result, x, y):
    return tuple(int(v) for v in np.array(result.bitmap)[y, x])


@contextmanager
def recording_surfaces(created):
    real_open_surface = surface_module.open_surface

    @contextmanager
    def open_and_record(*args, **kwargs):
        with real_open_surface(*args, **kwargs) as surface:
            created.append(surface)
            yield surface

    with patch("screenshot_export.core.pipeline.open_surface", open_and_record):
        yield


class TestDimensionAgreement:
    """The composed bitmap always has the pre-flight size."""

    @pytest.mark.parametrize("name", sorted(CONFIGS))
    def test_bitmap_matches_preflight(self, name):
        """Test that compose and calculate_final_dimensions agree."""
        config = CONFIGS[name]
        result = compose_sync(create_test_image(150, 90), config, today=date(2024, 1, 15))
        expected = calculate_final_dimensions(150, 90, config)

        assert result.bitmap.size == expected.size
        assert (result.width, result.height) == expected.size
        assert result.format == config.format
        assert decode_image(result.data_url).size == expected.size


class TestComposition:
    """End-to-end composition tests."""

    def test_all_disabled_is_identity(self):
        """Test that no effects reproduce the source pixels exactly."""
        source = create_patterned_image(60, 40)
        config = ExportConfig(
            padding=PaddingConfig(enabled=False, size=50),
            browser_frame=BrowserFrameConfig(enabled=False),
            watermark=WatermarkConfig(enabled=False, image_data=source),
        )

        result = compose_sync(source, config)

        assert np.array_equal(np.array(result.bitmap), np.array(decode_image(source)))
        assert np.array_equal(
            np.array(decode_image(result.data_url)), np.array(decode_image(source))
        )

    def test_padded_mac_frame_example(self):
        """Test a 1280x720 screenshot with 20px black padding and a mac frame."""
        config = ExportConfig(
            padding=PaddingConfig(enabled=True, size=20, color="#000000"),
            browser_frame=BrowserFrameConfig(enabled=True, style="mac", include_url=True),
        )

        result = compose_sync(create_test_image(1280, 720, RED), config)

        assert (result.width, result.height) == (1320, 842)
        assert pixel(result, 5, 5) == BLACK
        assert pixel(result, 640, 25) == MAC_HEADER
        assert pixel(result, 640, 102 + 360) == RED
        assert pixel(result, 640, 842 - 5) == BLACK
        assert pixel(result, 1320 - 5, 400) == BLACK

    def test_url_top_layering(self):
        """Test that url_top draws the header above the image."""
        config = ExportConfig(browser_frame=BrowserFrameConfig(enabled=True, style="url_top"))
        result = compose_sync(create_test_image(200, 100, RED), config)

        assert result.bitmap.size == (200, 182)
        assert pixel(result, 100, 5) == MAC_HEADER
        assert pixel(result, 100, 82 + 50) == RED

    def test_url_bottom_layering(self):
        """Test that url_bottom draws the header below the image."""
        config = ExportConfig(browser_frame=BrowserFrameConfig(enabled=True, style="url_bottom"))
        result = compose_sync(create_test_image(200, 100, RED), config)

        assert result.bitmap.size == (200, 182)
        assert pixel(result, 100, 50) == RED
        assert pixel(result, 100, 0) == RED
        assert pixel(result, 100, 105) == MAC_HEADER

    def test_url_bottom_header_follows_padded_image(self):
        """Test that the url_bottom header starts at padding + image height."""
        config = ExportConfig(
            padding=PaddingConfig(enabled=True, size=20, color="#000"),
            browser_frame=BrowserFrameConfig(enabled=True, style="url_bottom"),
        )
        layout = calculate_final_dimensions(300, 600, config)
        result = compose_sync(create_test_image(300, 600, RED), config)

        assert (layout.image_y, layout.frame_y) == (20, 620)
        assert result.bitmap.size == (340, 722)
        assert pixel(result, 120, 20) == RED
        assert pixel(result, 120, 619) == RED
        assert pixel(result, 120, 625) == MAC_HEADER
        assert pixel(result, 120, 10) == BLACK
        assert pixel(result, 120, 710) == BLACK

    def test_watermark_drawn_over_padding(self):
        """Test that the watermark is the topmost layer."""
        config = ExportConfig(
            padding=PaddingConfig(enabled=True, size=10, color="#000"),
            watermark=WatermarkConfig(
                enabled=True,
                image_data=create_test_data_url(40, 40, BLUE),
                position="top_left",
            ),
        )
        result = compose_sync(create_test_image(200, 200, RED), config)

        assert pixel(result, 12, 12) == BLUE
        assert pixel(result, 45, 45) == BLUE
        assert pixel(result, 100, 100) == RED

    def test_zero_opacity_watermark_is_invisible(self):
        """Test that opacity 0 leaves the image untouched."""
        source = create_patterned_image(80, 80)
        config = ExportConfig(
            watermark=WatermarkConfig(
                enabled=True, image_data=create_test_image(20, 20, BLUE), opacity=0
            )
        )
        result = compose_sync(source, config)
        assert np.array_equal(np.array(result.bitmap), np.array(decode_image(source)))

    def test_watermark_without_data_is_skipped(self):
        """Test that an enabled watermark with no image only logs a warning."""
        source = create_patterned_image(50, 50)
        config = ExportConfig(watermark=WatermarkConfig(enabled=True))
        mock_logger = Mock()

        with patch("screenshot_export.core.pipeline.get_logger", return_value=mock_logger):
            result = compose_sync(source, config)

        mock_logger.warning.assert_called_once()
        assert np.array_equal(np.array(result.bitmap), np.array(decode_image(source)))

    def test_jpeg_output(self):
        """Test JPEG encoding of the final image."""
        result = compose_sync(
            create_test_image(64, 64), ExportConfig(format="image/jpeg", quality=0.5)
        )
        assert result.data_url.startswith("data:image/jpeg;base64,")
        assert result.bitmap.mode == "RGBA"

    def test_same_inputs_same_output(self):
        """Test that composition is deterministic for a fixed date."""
        config = CONFIGS["everything"]
        source = create_patterned_image(120, 80)
        first = compose_sync(source, config, today=date(2024, 5, 1))
        second = compose_sync(source, config, today=date(2024, 5, 1))
        assert first.data_url == second.data_url

    def test_async_compose(self):
        """Test awaiting compose directly."""
        result = asyncio.run(compose(create_test_data_url(10, 10), CONFIGS["padding"]))
        assert result.bitmap.size == (40, 40)


class TestCompositionErrors:
    """Failures are reported with the right error type and leak nothing."""

    @pytest.mark.parametrize("source", [b"", b"garbage", "data:image/png;base64,AAAA"])
    def test_source_decode_error(self, source):
        """Test that undecodable sources raise SourceDecodeError."""
        with pytest.raises(SourceDecodeError):
            compose_sync(source)

    def test_watermark_decode_error_releases_surface(self):
        """Test that a bad watermark raises EffectDecodeError and frees the surface."""
        config = ExportConfig(
            padding=PaddingConfig(enabled=True, size=5),
            watermark=WatermarkConfig(enabled=True, image_data=b"not an image"),
        )
        created = []

        with recording_surfaces(created):
            with pytest.raises(EffectDecodeError) as excinfo:
                compose_sync(create_test_image(30, 30), config)

        assert excinfo.value.effect == "watermark"
        assert len(created) == 1
        assert created[0].released

    def test_frame_raster_error(self):
        """Test that frame rendering failures name the browser frame."""
        config = ExportConfig(browser_frame=BrowserFrameConfig(enabled=True))
        created = []

        with recording_surfaces(created):
            with patch(
                "screenshot_export.core.pipeline.generate_frame",
                side_effect=OSError("cannot open resource"),
            ):
                with pytest.raises(EffectDecodeError) as excinfo:
                    compose_sync(create_test_image(30, 30), config)

        assert excinfo.value.effect == "browser_frame"
        assert created[0].released

    def test_surface_unavailable(self):
        """Test that an oversized canvas raises RenderSurfaceUnavailable."""
        config = ExportConfig(padding=PaddingConfig(enabled=True, size=20))
        with patch("screenshot_export.core.surface.MAX_SURFACE_SIDE", 50):
            with pytest.raises(RenderSurfaceUnavailable):
                compose_sync(create_test_image(40, 40), config)

    def test_surface_released_after_success(self):
        """Test that the surface is released once the result is built."""
        created = []
        with recording_surfaces(created):
            result = compose_sync(create_test_image(10, 10))
        assert created[0].released
        assert result.bitmap.getpixel((0, 0)) == RED
