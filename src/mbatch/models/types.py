"""Core data models for mbatch."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class MediaKind(Enum):
    """Kind of batch, which decides the progress and retry policy."""

    VIDEO = "video"
    IMAGE = "image"


class ItemStatus(Enum):
    """Lifecycle of a single job item within a batch."""

    PENDING = "pending"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    SKIPPED = "skipped"
    CANCELLED = "cancelled"


DEFAULT_VIDEO_FORMAT = "mp4"
DEFAULT_IMAGE_FORMAT = "jpg"


@dataclass(frozen=True)
class JobItem:
    """One media file's conversion task within a batch.

    Attributes:
        index: Position in the batch (identity, processing order)
        source_path: Path of the original media file
        output_format: Encoder output format
        command: Primary encoder command line (None = skip this item)
        fallback_command: Alternate command tried after the primary fails
        expected_duration_ms: Expected media duration (0 = unknown)
    """

    index: int
    source_path: str
    output_format: str
    command: str | None = None
    fallback_command: str | None = None
    expected_duration_ms: int = 0


@dataclass(frozen=True)
class Batch:
    """Ordered set of job items sharing one invocation.

    Attributes:
        kind: Video or image batch
        items: Items in processing order
        folder: Destination folder name inside the artifact store
        notification_title: Title shown by the presentation layer
    """

    kind: MediaKind
    items: tuple[JobItem, ...]
    folder: str = ""
    notification_title: str = "File under processing"

    def __len__(self) -> int:
        return len(self.items)

    @classmethod
    def for_videos(
        cls,
        commands: list[str],
        fallback_commands: list[str] | None,
        source_paths: list[str],
        formats: list[str],
        durations: list[int],
        folder: str = "",
        notification_title: str | None = None,
    ) -> Batch:
        """Build a video batch from index-aligned enqueue lists.

        Lists shorter than ``source_paths`` are tolerated: a missing command
        means the item is skipped, a missing fallback means no retry, a
        missing format defaults to mp4 and a missing duration to unknown.
        """
        fallbacks = fallback_commands or []
        items = tuple(
            JobItem(
                index=i,
                source_path=path,
                output_format=_get_or_none(formats, i) or DEFAULT_VIDEO_FORMAT,
                command=_get_or_none(commands, i),
                fallback_command=_get_or_none(fallbacks, i) or None,
                expected_duration_ms=int(_get_or_none(durations, i) or 0),
            )
            for i, path in enumerate(source_paths)
        )
        return cls(
            kind=MediaKind.VIDEO,
            items=items,
            folder=folder or "",
            notification_title=notification_title or "File under processing",
        )

    @classmethod
    def for_images(
        cls,
        commands: list[str],
        source_paths: list[str],
        formats: list[str],
        folder: str = "",
        notification_title: str | None = None,
    ) -> Batch:
        """Build an image batch from index-aligned enqueue lists."""
        items = tuple(
            JobItem(
                index=i,
                source_path=path,
                output_format=_get_or_none(formats, i) or DEFAULT_IMAGE_FORMAT,
                command=_get_or_none(commands, i),
            )
            for i, path in enumerate(source_paths)
        )
        return cls(
            kind=MediaKind.IMAGE,
            items=items,
            folder=folder or "",
            notification_title=notification_title or "File under processing",
        )


def _get_or_none(values: list[Any] | None, index: int) -> Any:
    if values is None or index >= len(values):
        return None
    return values[index]


@dataclass(frozen=True)
class ProcessingState:
    """Base class for the batch state reported to observers."""

    @property
    def is_terminal(self) -> bool:
        """Whether no further state follows this one within a batch."""
        return False

    def to_dict(self) -> dict[str, Any]:
        raise NotImplementedError


@dataclass(frozen=True)
class Processed(ProcessingState):
    """An item finished; carries every permanent path produced so far."""

    paths: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {"state": "processed", "paths": list(self.paths)}


@dataclass(frozen=True)
class Completed(ProcessingState):
    """The batch finished; carries all permanent output paths in item order."""

    paths: tuple[str, ...] = ()

    @property
    def is_terminal(self) -> bool:
        return True

    def to_dict(self) -> dict[str, Any]:
        return {"state": "completed", "paths": list(self.paths)}


@dataclass(frozen=True)
class Error(ProcessingState):
    """The batch aborted.

    Attributes:
        message: Short description of the failure
        encoder_logs: Raw encoder output for diagnostics (if any)
    """

    message: str = ""
    encoder_logs: str | None = None

    @property
    def is_terminal(self) -> bool:
        return True

    def to_dict(self) -> dict[str, Any]:
        return {"state": "error", "message": self.message, "encoder_logs": self.encoder_logs}


@dataclass(frozen=True)
class ProgressSample:
    """Latest completion percentage and the item it refers to."""

    progress: float
    index: int


@dataclass(frozen=True)
class EncoderResult:
    """Outcome of one encoder invocation.

    Attributes:
        success: True if the process exited with return code 0
        logs: Collected log text, or a diagnostic message if the process never ran
        return_code: Process return code (None if the process never started)
    """

    success: bool
    logs: str = ""
    return_code: int | None = None

    @property
    def launched(self) -> bool:
        """Whether an encoder process actually ran."""
        return self.return_code is not None


@dataclass
class BatchResult:
    """What the dispatcher sees once a batch has finished.

    Attributes:
        success: True only if every item ran and the batch completed
        paths: Permanent output paths accumulated in item order
        cancelled: True if the batch stopped on a cancellation request
        error_category: Failure classification (None on success)
    """

    success: bool
    paths: list[str] = field(default_factory=list)
    cancelled: bool = False
    error_category: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "success": self.success,
            "paths": list(self.paths),
            "cancelled": self.cancelled,
            "error_category": self.error_category,
        }
