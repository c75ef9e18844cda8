"""Local filesystem artifact store.

Saved files land in a tree organized by media type:

    <output_root>/<Pictures|Movies|Music>/<app_folder>/<folder>/<name>.<ext>
"""

import logging
import shutil
from pathlib import Path

from mbatch.utils.formats import MediaType, actual_extension, media_type, mime_type

logger = logging.getLogger(__name__)

MEDIA_DIRECTORIES = {
    MediaType.IMAGE: "Pictures",
    MediaType.VIDEO: "Movies",
    MediaType.AUDIO: "Music",
}


class LocalArtifactStore:
    """Copy encoder output into a media-type directory tree."""

    def __init__(self, output_root: Path, app_folder: str = "MediaBatch"):
        """Initialize LocalArtifactStore.

        Args:
            output_root: Root of the destination tree
            app_folder: Application folder created under each media directory
        """
        self.output_root = Path(output_root).expanduser()
        self.app_folder = app_folder

    def destination_dir(self, output_format: str, folder: str = "") -> Path:
        """Return the directory a file of the given format is saved to.

        Raises:
            ValueError: If the format is not supported
        """
        base = self.output_root / MEDIA_DIRECTORIES[media_type(output_format)] / self.app_folder
        return base / folder if folder else base

    def save(
        self,
        source: Path,
        output_format: str,
        suggested_name: str,
        folder: str = "",
    ) -> Path | None:
        """Copy a scratch file into the destination tree.

        An existing file is never overwritten; ``_1``, ``_2``, ... is appended
        to the name until it is unique.

        Returns:
            Saved path, or None if the copy failed

        Raises:
            ValueError: If the format is not supported or has no MIME type
        """
        directory = self.destination_dir(output_format, folder)
        extension = actual_extension(output_format)
        content_type = mime_type(output_format)

        try:
            directory.mkdir(parents=True, exist_ok=True)
            destination = unique_path(directory, suggested_name, extension)
            shutil.copyfile(source, destination)
        except OSError as e:
            logger.error(f"Failed to save {source} to {directory}: {e}")
            return None

        logger.info(f"Saved {destination} ({content_type})")
        return destination


def unique_path(directory: Path, name: str, extension: str) -> Path:
    """Return a path in ``directory`` that does not exist yet."""
    candidate = directory / f"{name}.{extension}"
    counter = 1
    while candidate.exists():
        candidate = directory / f"{name}_{counter}.{extension}"
        counter += 1
    return candidate
