"""Utility modules for mbatch."""

from mbatch.utils.formats import (
    MediaType,
    actual_extension,
    media_type,
    mime_type,
)
from mbatch.utils.progress import (
    image_progress,
    parse_progress,
)
from mbatch.utils.tempfiles import TempFileManager

__all__ = [
    "MediaType",
    "actual_extension",
    "media_type",
    "mime_type",
    "image_progress",
    "parse_progress",
    "TempFileManager",
]
