"""Sequential batch runner.

Drives the items of one batch strictly in order:

1. Run the item's encoder command (and, for videos, the fallback command)
   into a scratch file
2. Hand the scratch file to the artifact store
3. Report Processed / Completed / Error states and progress samples
4. Reclaim scratch files on every exit path
"""

import functools
import logging
import threading
from collections.abc import Callable
from pathlib import Path

from mbatch.encoder.session import EncoderSession
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
)
from mbatch.services.cancellation import CancellationToken
from mbatch.services.error_handling import (
    ENCODE_FAILURE_MESSAGE,
    ErrorCategory,
    command_chain,
    save_failure_message,
    with_output_path,
)
from mbatch.services.state_bus import BatchChannel
from mbatch.storage.base import ArtifactStore
from mbatch.utils.progress import PROGRESS_MAX, image_progress, parse_progress
from mbatch.utils.tempfiles import TempFileManager

logger = logging.getLogger(__name__)

SessionFactory = Callable[..., EncoderSession]

OUTPUT_NAME_SUFFIX = "_process"


class BatchRunner:
    """Base runner; subclasses supply the progress and retry policy."""

    kind: MediaKind
    uses_fallback = False

    def __init__(
        self,
        channel: BatchChannel,
        artifact_store: ArtifactStore,
        temp_files: TempFileManager,
        cancel_token: CancellationToken | None = None,
        session_factory: SessionFactory | None = None,
        encoder_binary: str = "ffmpeg",
    ):
        """Initialize BatchRunner.

        Args:
            channel: Emitter for this batch's state and progress
            artifact_store: Destination for finished output files
            temp_files: Scratch file manager owned by this batch
            cancel_token: Token checked before each item
            session_factory: Builds an EncoderSession; called with ``on_log_line``
            encoder_binary: Encoder executable used by the default factory
        """
        self.channel = channel
        self.artifact_store = artifact_store
        self.temp_files = temp_files
        self.cancel_token = cancel_token or CancellationToken()
        self.session_factory = session_factory or functools.partial(
            EncoderSession, binary=encoder_binary
        )

        self._session_lock = threading.Lock()
        self._session: EncoderSession | None = None

    def run(self, batch: Batch) -> BatchResult:
        """Process every item of the batch in order.

        Never raises; every failure is reported through the channel and the
        returned BatchResult.
        """
        paths: list[str] = []
        total = len(batch)
        unregister = self.cancel_token.on_cancel(self._cancel_session)
        logger.info(f"Starting {self.kind.value} batch with {total} item(s)")

        try:
            for item in batch.items:
                if self.cancel_token.is_cancelled:
                    logger.info(f"Batch cancelled before item {item.index}")
                    return self._cancelled(paths)

                if not item.command:
                    logger.info(f"Item {item.index}: {ItemStatus.SKIPPED.value} (no command)")
                    continue

                logger.info(f"Item {item.index}: {ItemStatus.RUNNING.value} ({item.source_path})")
                self.before_item(item, total)

                temp_path = self.temp_files.allocate(item.output_format)
                result = self._run_commands(item, temp_path)

                if not result.success:
                    if self.cancel_token.is_cancelled:
                        logger.info(f"Item {item.index}: {ItemStatus.CANCELLED.value}")
                        return self._cancelled(paths)
                    logger.error(f"Item {item.index}: {ItemStatus.FAILED.value}")
                    self.channel.emit_state(
                        Error(ENCODE_FAILURE_MESSAGE, result.logs or _exit_diagnostic(result))
                    )
                    category = ErrorCategory.ENCODE if result.launched else ErrorCategory.LAUNCH
                    return BatchResult(success=False, paths=paths, error_category=category.value)

                if self.cancel_token.is_cancelled:
                    logger.info(f"Item {item.index}: {ItemStatus.CANCELLED.value} before save")
                    return self._cancelled(paths)

                saved = self._save(item, temp_path, batch.folder)
                if saved is None:
                    logger.error(f"Item {item.index}: {ItemStatus.FAILED.value} (save)")
                    self.channel.emit_state(Error(save_failure_message(item.source_path)))
                    return BatchResult(
                        success=False, paths=paths, error_category=ErrorCategory.SAVE.value
                    )

                self.temp_files.promote(temp_path)
                paths.append(str(saved))
                logger.info(f"Item {item.index}: {ItemStatus.SUCCEEDED.value} -> {saved}")
                self.channel.emit_state(Processed(tuple(paths)))
                self.temp_files.purge_unpromoted(excluding=paths)
                self.after_item(item, total)

            if self.cancel_token.is_cancelled:
                logger.info("Batch cancelled after the last item")
                return self._cancelled(paths)

            self.channel.emit_state(Completed(tuple(paths)))
            logger.info(f"Batch completed: {len(paths)} file(s) saved")
            return BatchResult(success=True, paths=paths)

        except Exception as e:
            logger.exception("Unexpected error while running batch")
            self.channel.emit_state(Error(str(e)))
            return BatchResult(
                success=False, paths=paths, error_category=ErrorCategory.UNEXPECTED.value
            )

        finally:
            unregister()
            self._cancel_session()
            with self._session_lock:
                self._session = None
            self.temp_files.purge_all()

    def before_item(self, item: JobItem, total: int) -> None:
        """Report progress before an item starts."""

    def after_item(self, item: JobItem, total: int) -> None:
        """Report progress after an item has been saved."""

    def log_line_handler(self, item: JobItem) -> Callable[[str], None] | None:
        """Return the encoder log line callback for an item, if any."""
        return None

    def _run_commands(self, item: JobItem, temp_path: Path) -> EncoderResult:
        fallback = item.fallback_command if self.uses_fallback else None
        result = EncoderResult(success=False)

        for attempt, command in enumerate(command_chain(item.command, fallback)):
            if attempt > 0:
                if self.cancel_token.is_cancelled:
                    break
                logger.warning(f"Item {item.index}: command failed, retrying with fallback command")
            result = self._execute(item, with_output_path(command, str(temp_path)))
            if result.success:
                break

        return result

    def _execute(self, item: JobItem, command_line: str) -> EncoderResult:
        session = self.session_factory(on_log_line=self.log_line_handler(item))
        with self._session_lock:
            self._session = session
        # A cancel that raced the registration above has already fired
        if self.cancel_token.is_cancelled:
            session.cancel()

        try:
            return session.start(command_line).result()
        finally:
            with self._session_lock:
                self._session = None

    def _save(self, item: JobItem, temp_path: Path, folder: str) -> Path | None:
        suggested_name = f"{Path(item.source_path).stem}{OUTPUT_NAME_SUFFIX}"
        try:
            return self.artifact_store.save(temp_path, item.output_format, suggested_name, folder)
        except Exception:
            logger.exception(f"Artifact store failed to save {temp_path}")
            return None

    def _cancel_session(self) -> None:
        with self._session_lock:
            session = self._session
        if session is not None:
            session.cancel()

    @staticmethod
    def _cancelled(paths: list[str]) -> BatchResult:
        return BatchResult(
            success=False,
            paths=paths,
            cancelled=True,
            error_category=ErrorCategory.CANCELLED.value,
        )


class VideoBatchRunner(BatchRunner):
    """Video batches: time-based progress from encoder logs and fallback retry."""

    kind = MediaKind.VIDEO
    uses_fallback = True

    def log_line_handler(self, item: JobItem) -> Callable[[str], None]:
        def on_log_line(line: str) -> None:
            progress = parse_progress(line, item.expected_duration_ms)
            if progress is not None:
                self.channel.emit_progress(progress, item.index)

        return on_log_line

    def after_item(self, item: JobItem, total: int) -> None:
        self.channel.emit_progress(PROGRESS_MAX, item.index)


class ImageBatchRunner(BatchRunner):
    """Image batches: coarse index-based progress, no fallback."""

    kind = MediaKind.IMAGE

    def before_item(self, item: JobItem, total: int) -> None:
        self.channel.emit_progress(image_progress(item.index, total), item.index)

    def after_item(self, item: JobItem, total: int) -> None:
        self.channel.emit_progress(image_progress(item.index + 1, total), item.index)


def _exit_diagnostic(result: EncoderResult) -> str:
    if result.return_code is None:
        return "Encoder produced no output"
    return f"Encoder exited with code {result.return_code} and produced no output"


RUNNERS: dict[MediaKind, type[BatchRunner]] = {
    MediaKind.VIDEO: VideoBatchRunner,
    MediaKind.IMAGE: ImageBatchRunner,
}


def runner_for(kind: MediaKind) -> type[BatchRunner]:
    """Return the runner class for a batch kind."""
    return RUNNERS[kind]
