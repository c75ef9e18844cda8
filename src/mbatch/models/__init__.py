"""Data models module for mbatch."""

from mbatch.models.types import (
    Batch,
    BatchResult,
    Completed,
    EncoderResult,
    Error,
    ItemStatus,
    JobItem,
    MediaKind,
    Processed,
    ProcessingState,
    ProgressSample,
)
from mbatch.models.validators import (
    BatchDataError,
    validate_image_lists,
    validate_video_lists,
)

__all__ = [
    # Batch description
    "Batch",
    "JobItem",
    "MediaKind",
    "ItemStatus",
    # Observed state
    "ProcessingState",
    "Processed",
    "Completed",
    "Error",
    "ProgressSample",
    # Results
    "EncoderResult",
    "BatchResult",
    # Validation
    "BatchDataError",
    "validate_image_lists",
    "validate_video_lists",
]
