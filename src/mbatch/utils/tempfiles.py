"""Scratch file management for encoder output.

Encoder output is written to a scratch directory first and only moved into
permanent storage once the artifact store accepts it. This module tracks
those scratch files so every exit path of a batch can reclaim them.
"""

import itertools
import logging
import threading
import time
from collections.abc import Iterable
from pathlib import Path

from mbatch.utils.formats import actual_extension

logger = logging.getLogger(__name__)


class TempFileManager:
    """Allocates and reclaims scratch files for one batch at a time.

    Invariant: the tracked set never contains a path that has been promoted.
    """

    def __init__(self, scratch_dir: Path):
        """Initialize TempFileManager.

        Args:
            scratch_dir: Directory for scratch files (created on first allocation)
        """
        self.scratch_dir = Path(scratch_dir).expanduser()
        self._lock = threading.Lock()
        self._tracked: set[Path] = set()
        self._counter = itertools.count()

    @property
    def tracked(self) -> frozenset[Path]:
        """Snapshot of the scratch files still owned by the batch."""
        with self._lock:
            return frozenset(self._tracked)

    def allocate(self, output_format: str) -> Path:
        """Allocate a new scratch path and start tracking it.

        The file itself is not created; the encoder writes it.

        Args:
            output_format: Encoder output format (mapped to a file extension)

        Returns:
            Absolute path inside the scratch directory
        """
        self.scratch_dir.mkdir(parents=True, exist_ok=True)
        extension = actual_extension(output_format)

        with self._lock:
            while True:
                name = f"temp_{int(time.time() * 1000)}_{next(self._counter)}.{extension}"
                path = (self.scratch_dir / name).resolve()
                if path not in self._tracked and not path.exists():
                    break
            self._tracked.add(path)

        logger.debug(f"Allocated scratch file {path}")
        return path

    def promote(self, path: Path) -> None:
        """Release a scratch file after the artifact store has copied it.

        Removes the path from the tracked set and deletes the scratch copy.
        """
        path = Path(path).resolve()
        with self._lock:
            self._tracked.discard(path)
        self._delete(path)

    def purge_unpromoted(self, excluding: Iterable[str | Path] = ()) -> int:
        """Delete tracked scratch files whose path is not in ``excluding``.

        Used between items to reclaim disk space without touching paths that
        were already handed to the artifact store.

        Returns:
            Number of tracked entries released
        """
        keep = {Path(p).resolve() for p in excluding}
        with self._lock:
            stale = [p for p in self._tracked if p not in keep]
            self._tracked.difference_update(stale)

        for path in stale:
            self._delete(path)
        return len(stale)

    def purge_all(self) -> int:
        """Delete every tracked scratch file and clear the tracked set.

        Idempotent; files already gone from disk count as removed.

        Returns:
            Number of tracked entries released
        """
        with self._lock:
            stale = list(self._tracked)
            self._tracked.clear()

        for path in stale:
            self._delete(path)
        if stale:
            logger.info(f"Purged {len(stale)} scratch file(s) from {self.scratch_dir}")
        return len(stale)

    def _delete(self, path: Path) -> None:
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            logger.warning(f"Failed to delete scratch file {path}: {e}")
