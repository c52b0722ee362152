"""Compose screenshots with padding, a browser frame and a watermark."""

__version__ = "0.1.0"
