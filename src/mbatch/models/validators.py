"""Validation functions for batch enqueue input.

Malformed input never reaches the per-item loop: the dispatcher rejects it
up front and reports a plain failure.
"""

from collections.abc import Sequence

__all__ = ["BatchDataError", "validate_video_lists", "validate_image_lists"]


class BatchDataError(ValueError):
    """Raised when required batch inputs are missing or malformed."""


def _require_non_empty(name: str, values: Sequence | None) -> None:
    if values is None or len(values) == 0:
        raise BatchDataError(f"{name} is required and cannot be empty")


def validate_video_lists(
    commands: Sequence[str] | None,
    source_paths: Sequence[str] | None,
    formats: Sequence[str] | None,
    durations: Sequence[int] | None,
) -> None:
    """Validate the lists of a video enqueue call.

    Raises:
        BatchDataError: If a required list is missing or empty
    """
    _require_non_empty("commands", commands)
    _require_non_empty("source_paths", source_paths)
    _require_non_empty("formats", formats)
    if durations is None:
        raise BatchDataError("durations is required")

    for i, duration in enumerate(durations):
        if isinstance(duration, bool) or not isinstance(duration, (int, float)):
            raise BatchDataError(f"durations[{i}] must be a number of milliseconds")
        if duration < 0:
            raise BatchDataError(f"durations[{i}] must not be negative")


def validate_image_lists(
    commands: Sequence[str] | None,
    source_paths: Sequence[str] | None,
    formats: Sequence[str] | None,
) -> None:
    """Validate the lists of an image enqueue call.

    Raises:
        BatchDataError: If a required list is missing or empty
    """
    _require_non_empty("commands", commands)
    _require_non_empty("source_paths", source_paths)
    _require_non_empty("formats", formats)
