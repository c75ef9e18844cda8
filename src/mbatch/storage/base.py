"""Artifact store interface consumed by the batch runner."""

from pathlib import Path
from typing import Protocol, runtime_checkable


@runtime_checkable
class ArtifactStore(Protocol):
    """Persists finished encoder output into permanent storage."""

    def save(
        self,
        source: Path,
        output_format: str,
        suggested_name: str,
        folder: str,
    ) -> Path | None:
        """Copy a scratch file into permanent storage.

        Args:
            source: Scratch file written by the encoder
            output_format: Encoder output format of the file
            suggested_name: File name without extension
            folder: Destination folder name

        Returns:
            Permanent path of the saved file, or None if saving failed
        """
        ...
