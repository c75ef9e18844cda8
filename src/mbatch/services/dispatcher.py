"""Batch dispatcher.

Runs one batch at a time on a single background worker. Enqueuing a new
batch replaces the running one: its token is cancelled, the state bus is
reset and the new batch is queued behind it.
"""

import functools
import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from pathlib import Path

from mbatch.encoder.session import EncoderSession
from mbatch.models.types import Batch, BatchResult
from mbatch.models.validators import (
    BatchDataError,
    validate_image_lists,
    validate_video_lists,
)
from mbatch.services.cancellation import CancellationToken
from mbatch.services.error_handling import ErrorCategory
from mbatch.services.runner import SessionFactory, runner_for
from mbatch.services.state_bus import BatchChannel, StateBus
from mbatch.storage.base import ArtifactStore
from mbatch.utils.tempfiles import TempFileManager

logger = logging.getLogger(__name__)


class BatchDispatcher:
    """Schedules batches with replace-if-running semantics."""

    def __init__(
        self,
        artifact_store: ArtifactStore,
        scratch_dir: Path,
        encoder_binary: str = "ffmpeg",
        terminate_timeout: float = 5.0,
        kill_timeout: float = 2.0,
        session_factory: SessionFactory | None = None,
        state_bus: StateBus | None = None,
    ):
        """Initialize BatchDispatcher.

        Args:
            artifact_store: Destination for finished output files
            scratch_dir: Directory for encoder scratch output
            encoder_binary: Encoder executable
            terminate_timeout: Seconds to wait after SIGTERM on cancel
            kill_timeout: Seconds to wait after SIGKILL on cancel
            session_factory: Overrides EncoderSession construction
            state_bus: Bus to publish on (a new one by default)
        """
        self.artifact_store = artifact_store
        self.temp_files = TempFileManager(scratch_dir)
        self.state_bus = state_bus or StateBus()
        self.session_factory = session_factory or functools.partial(
            EncoderSession,
            binary=encoder_binary,
            terminate_timeout=terminate_timeout,
            kill_timeout=kill_timeout,
        )

        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="mbatch-worker")
        self._lock = threading.Lock()
        self._token: CancellationToken | None = None
        self._shutdown = False

    def process_videos(
        self,
        commands: list[str],
        fallback_commands: list[str] | None,
        source_paths: list[str],
        formats: list[str],
        durations: list[int],
        folder: str = "",
        notification_title: str | None = None,
    ) -> "Future[BatchResult]":
        """Enqueue a video batch.

        Returns:
            Future resolved with the BatchResult when the batch ends
        """
        try:
            validate_video_lists(commands, source_paths, formats, durations)
        except BatchDataError as e:
            return self._rejected(e)

        batch = Batch.for_videos(
            commands,
            fallback_commands,
            source_paths,
            formats,
            durations,
            folder=folder,
            notification_title=notification_title,
        )
        return self.submit(batch)

    def process_images(
        self,
        commands: list[str],
        source_paths: list[str],
        formats: list[str],
        folder: str = "",
        notification_title: str | None = None,
    ) -> "Future[BatchResult]":
        """Enqueue an image batch.

        Returns:
            Future resolved with the BatchResult when the batch ends
        """
        try:
            validate_image_lists(commands, source_paths, formats)
        except BatchDataError as e:
            return self._rejected(e)

        batch = Batch.for_images(
            commands,
            source_paths,
            formats,
            folder=folder,
            notification_title=notification_title,
        )
        return self.submit(batch)

    def submit(self, batch: Batch) -> "Future[BatchResult]":
        """Replace any running batch with ``batch``.

        Raises:
            RuntimeError: If the dispatcher has been shut down
        """
        token = CancellationToken()
        with self._lock:
            if self._shutdown:
                raise RuntimeError("BatchDispatcher has been shut down")
        channel = self._replace_active(token)

        logger.info(f"Enqueued {batch.kind.value} batch with {len(batch)} item(s)")
        return self._executor.submit(self._run, batch, channel, token)

    def cancel(self) -> None:
        """Cancel the active batch, if any."""
        with self._lock:
            token = self._token
        if token is not None:
            logger.info("Cancelling active batch")
            token.cancel()

    def shutdown(self, wait: bool = True) -> None:
        """Cancel the active batch and stop the worker."""
        with self._lock:
            self._shutdown = True
        self.cancel()
        self._executor.shutdown(wait=wait)

    def __enter__(self) -> "BatchDispatcher":
        return self

    def __exit__(self, *exc_info) -> None:
        self.shutdown(wait=True)

    def _run(self, batch: Batch, channel: BatchChannel, token: CancellationToken) -> BatchResult:
        runner = runner_for(batch.kind)(
            channel=channel,
            artifact_store=self.artifact_store,
            temp_files=self.temp_files,
            cancel_token=token,
            session_factory=self.session_factory,
        )
        try:
            return runner.run(batch)
        finally:
            with self._lock:
                if self._token is token:
                    self._token = None

    def _replace_active(self, token: CancellationToken | None) -> BatchChannel:
        """Install a new active token, reset the bus and cancel the previous batch."""
        with self._lock:
            previous, self._token = self._token, token
            channel = self.state_bus.reset_flow()

        # Outside the lock: stopping an encoder blocks for up to its timeouts
        if previous is not None:
            logger.info("Replacing running batch")
            previous.cancel()
        return channel

    def _rejected(self, error: BatchDataError) -> "Future[BatchResult]":
        logger.error(f"Rejected batch: {error}")
        self._replace_active(None)
        future: Future[BatchResult] = Future()
        future.set_result(BatchResult(success=False, error_category=ErrorCategory.DATA.value))
        return future
