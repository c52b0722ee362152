"""Main module for the screenshot export CLI."""

import argparse
import asyncio
import os
import sys
from pathlib import Path
from typing import List, Optional

from pydantic import ValidationError

from . import __version__
from .core.exceptions import ScreenshotExportError
from .core.factories import ExportServiceFactory
from .core.logging_config import setup_logger
from .core.models import (
    BrowserFrameConfig,
    ExportConfig,
    FrameStyle,
    PaddingConfig,
    WatermarkConfig,
    WatermarkPosition,
)
from .core.pipeline import calculate_final_dimensions

FORMATS = {"png": "image/png", "jpeg": "image/jpeg"}


def add_effect_arguments(parser: argparse.ArgumentParser) -> None:
    """Flags shared by the compose and dimensions commands."""
    parser.add_argument(
        "--padding", type=float, default=0, help="Padding around the image in px (0-200)"
    )
    parser.add_argument(
        "--padding-color", default="#ffffff", help="Padding color (hex or rgb()/rgba())"
    )
    parser.add_argument(
        "--frame",
        choices=[style.value for style in FrameStyle],
        default=None,
        help="Browser frame style (default: no frame)",
    )
    parser.add_argument("--url", default="", help="URL shown in the frame's address bar")
    parser.add_argument(
        "--no-url", action="store_true", help="Hide the address bar (mac/windows frames)"
    )
    parser.add_argument("--date", action="store_true", help="Show today's date in the frame")
    parser.add_argument("--watermark", type=Path, default=None, help="Watermark image file")
    parser.add_argument(
        "--watermark-position",
        choices=[position.value for position in WatermarkPosition],
        default=WatermarkPosition.BOTTOM_RIGHT.value,
        help="Watermark anchor (default: bottom_right)",
    )
    parser.add_argument(
        "--watermark-size", type=float, default=100, help="Watermark scale in percent (20-200)"
    )
    parser.add_argument(
        "--watermark-opacity", type=float, default=100, help="Watermark opacity in percent (0-100)"
    )


def build_config(args: argparse.Namespace, watermark_data: bytes = b"") -> ExportConfig:
    """Translate parsed CLI flags into an ExportConfig."""
    padding = PaddingConfig(
        enabled=args.padding > 0, color=args.padding_color, size=args.padding
    )

    browser_frame = None
    if args.frame:
        browser_frame = BrowserFrameConfig(
            enabled=True,
            style=args.frame,
            include_url=not args.no_url,
            include_date=args.date,
            url=args.url,
        )

    watermark = None
    if args.watermark is not None:
        watermark = WatermarkConfig(
            enabled=True,
            image_data=watermark_data,
            position=args.watermark_position,
            size=args.watermark_size,
            opacity=args.watermark_opacity,
        )

    return ExportConfig(
        padding=padding,
        browser_frame=browser_frame,
        watermark=watermark,
        format=FORMATS[getattr(args, "format", "png")],
        quality=getattr(args, "quality", 0.92),
    )


def run_compose(args: argparse.Namespace) -> int:
    logger = setup_logger()
    source = args.input.read_bytes()
    watermark_data = args.watermark.read_bytes() if args.watermark is not None else b""
    config = build_config(args, watermark_data)

    if args.output is not None:
        directory, filename = args.output.parent, args.output.name
    else:
        directory, filename = args.output_dir, None

    service = ExportServiceFactory.create_service()
    result, saved = asyncio.run(
        service.export_and_download(source, config, directory, filename)
    )
    logger.info(f"Wrote {result.width}x{result.height} export to {saved.path}")
    print(saved.path)
    return 0


def run_dimensions(args: argparse.Namespace) -> int:
    layout = calculate_final_dimensions(args.width, args.height, build_config(args))
    print(f"{layout.width}x{layout.height}")
    return 0


def main(argv: Optional[List[str]] = None) -> None:
    """
    Entry point for the screenshot export command-line interface (CLI).

    Commands:
        compose: Render an image file with the selected effects and save it
        dimensions: Print the final size for a source size without rendering
        version: Show version information
    """
    parser = argparse.ArgumentParser(
        prog="screenshot-export",
        description="Screenshot Export - padding, browser frames and watermarks for screenshots",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Mac frame with URL and 20px white padding
  screenshot-export compose shot.png --frame mac --url https://example.com --padding 20

  # JPEG with a translucent watermark, saved into ./exports
  screenshot-export compose shot.png --watermark logo.png --watermark-opacity 50 \\
                            --format jpeg --output-dir exports

  # Final size of a 1280x720 screenshot with a mac frame
  screenshot-export dimensions 1280 720 --frame mac
        """,
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    compose_parser = subparsers.add_parser("compose", help="Compose and save an export")
    compose_parser.add_argument("input", type=Path, help="Source PNG or JPEG file")
    output_group = compose_parser.add_mutually_exclusive_group()
    output_group.add_argument("-o", "--output", type=Path, default=None, help="Output file")
    output_group.add_argument(
        "--output-dir",
        type=Path,
        default=Path("."),
        help="Output folder; the file gets a timestamped name",
    )
    add_effect_arguments(compose_parser)
    compose_parser.add_argument(
        "--format", choices=sorted(FORMATS), default="png", help="Output format"
    )
    compose_parser.add_argument(
        "--quality", type=float, default=0.92, help="JPEG quality between 0 and 1"
    )
    compose_parser.add_argument("--debug", action="store_true", help="Enable debug logging")

    dimensions_parser = subparsers.add_parser(
        "dimensions", help="Print the final export size without rendering"
    )
    dimensions_parser.add_argument("width", type=int, help="Source width in px")
    dimensions_parser.add_argument("height", type=int, help="Source height in px")
    add_effect_arguments(dimensions_parser)

    subparsers.add_parser("version", help="Show version information")

    args = parser.parse_args(argv)

    if args.command == "compose":
        if args.debug:
            os.environ["LOG_LEVEL"] = "DEBUG"
        try:
            code = run_compose(args)
        except (ScreenshotExportError, ValidationError, OSError) as e:
            print(f"Error: {e}", file=sys.stderr)
            code = 1
        sys.exit(code)

    elif args.command == "dimensions":
        try:
            code = run_dimensions(args)
        except (ScreenshotExportError, ValidationError) as e:
            print(f"Error: {e}", file=sys.stderr)
            code = 1
        sys.exit(code)

    elif args.command == "version":
        print("Screenshot Export CLI")
        print(f"Version {__version__}")
        print("Padding, browser frames and watermarks for screenshots")
        sys.exit(0)

    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
