"""Test helper utilities for Pushover relay tests."""

from .http_fakes import (
    JPEG_BYTES,
    PNG_BYTES,
    make_api_response,
    make_image_response,
    make_session,
)

__all__ = [
    "JPEG_BYTES",
    "PNG_BYTES",
    "make_api_response",
    "make_image_response",
    "make_session",
]
