"""Output format helpers.

Maps the format names handed to the encoder onto file extensions, media
types and MIME types used by the temp-file manager and the artifact store.
"""

from enum import Enum


class MediaType(Enum):
    """Destination media family of an output format."""

    IMAGE = "image"
    VIDEO = "video"
    AUDIO = "audio"


IMAGE_FORMATS = frozenset({"webp", "jpeg", "png", "jpg", "gif"})

VIDEO_FORMATS = frozenset(
    {"mp4", "mkv", "avi", "mov", "webm", "mpeg", "ts", "mts", "m4v", "ogv", "3gp"}
)

AUDIO_FORMATS = frozenset({"mp3", "aac", "wav", "flac", "ogg", "m4a", "opus", "ac3", "aif", "aiff"})

# Muxer names that differ from the file extension they produce
_EXTENSION_ALIASES = {
    "matroska": "mkv",
}

MIME_TYPES = {
    "png": "image/png",
    "jpeg": "image/jpeg",
    "jpg": "image/jpeg",
    "webp": "image/webp",
    "gif": "image/gif",
    "mp4": "video/mp4",
    "mkv": "video/x-matroska",
    "avi": "video/x-msvideo",
    "mov": "video/quicktime",
    "webm": "video/webm",
    "3gp": "video/3gpp",
    "ts": "video/mp2ts",
    "mts": "video/mp2ts",
    "m4v": "video/mp4",
    "ogv": "video/ogg",
    "mp3": "audio/mpeg",
    "aac": "audio/aac",
    "wav": "audio/x-wav",
    "flac": "audio/flac",
    "ogg": "audio/ogg",
    "m4a": "audio/mp4",
    "opus": "audio/opus",
    "ac3": "audio/ac3",
    "aif": "audio/aiff",
    "aiff": "audio/aiff",
    "mpeg": "video/mpeg",
}


def actual_extension(output_format: str) -> str:
    """Return the file extension for an encoder output format.

    Args:
        output_format: Format name as passed to the encoder (e.g. "mp4", "matroska")

    Returns:
        Lowercase extension without the leading dot
    """
    normalized = output_format.strip().lower().lstrip(".")
    return _EXTENSION_ALIASES.get(normalized, normalized)


def media_type(output_format: str) -> MediaType:
    """Classify an output format.

    Raises:
        ValueError: If the format is not a known image, video or audio format
    """
    extension = actual_extension(output_format)
    if extension in IMAGE_FORMATS:
        return MediaType.IMAGE
    if extension in VIDEO_FORMATS:
        return MediaType.VIDEO
    if extension in AUDIO_FORMATS:
        return MediaType.AUDIO
    raise ValueError(f"Unsupported format: {output_format}")


def mime_type(output_format: str) -> str:
    """Return the MIME type for an output format.

    Raises:
        ValueError: If the format has no known MIME type
    """
    extension = actual_extension(output_format)
    try:
        return MIME_TYPES[extension]
    except KeyError:
        raise ValueError(f"Unsupported format: {output_format}")
