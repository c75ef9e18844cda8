"""Single encoder process invocation.

An EncoderSession launches the encoder binary once, streams its log lines to
a callback while collecting the full log, and resolves a future with an
EncoderResult when the process ends. Launch problems and cancellation are
reported through the same future; nothing is raised past the session.
"""

import logging
import shlex
import subprocess
import threading
from collections.abc import Callable
from concurrent.futures import Future
from enum import Enum

from mbatch.models.types import EncoderResult

logger = logging.getLogger(__name__)


class SessionState(Enum):
    """Lifecycle of an encoder session."""

    IDLE = "idle"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    CANCELLED = "cancelled"


TERMINAL_STATES = frozenset({SessionState.SUCCEEDED, SessionState.FAILED, SessionState.CANCELLED})

LogLineCallback = Callable[[str], None]


class EncoderSession:
    """Wrap one external encoder process.

    The command line passed to ``start`` is the argument string for the
    encoder binary; the binary itself is configured on the session.
    """

    def __init__(
        self,
        binary: str = "ffmpeg",
        on_log_line: LogLineCallback | None = None,
        terminate_timeout: float = 5.0,
        kill_timeout: float = 2.0,
    ):
        """Initialize EncoderSession.

        Args:
            binary: Encoder executable (name on PATH or absolute path)
            on_log_line: Called with each log line as it arrives
            terminate_timeout: Seconds to wait after SIGTERM before SIGKILL
            kill_timeout: Seconds to wait after SIGKILL
        """
        self.binary = binary
        self.on_log_line = on_log_line
        self._terminate_timeout = max(0.0, terminate_timeout)
        self._kill_timeout = max(0.0, kill_timeout)

        self._lock = threading.Lock()
        self._state = SessionState.IDLE
        self._started = False
        self._cancel_requested = False
        self._process: subprocess.Popen[str] | None = None
        self._logs: list[str] = []
        self._future: Future[EncoderResult] = Future()

    @property
    def state(self) -> SessionState:
        with self._lock:
            return self._state

    @property
    def future(self) -> "Future[EncoderResult]":
        return self._future

    @property
    def logs(self) -> str:
        """Log text collected so far."""
        with self._lock:
            return "".join(self._logs)

    def start(self, command_line: str) -> "Future[EncoderResult]":
        """Launch the encoder asynchronously.

        Args:
            command_line: Encoder arguments as a single shell-style string

        Returns:
            Future resolved with the EncoderResult once the process ends,
            is cancelled, or fails to launch

        Raises:
            RuntimeError: If the session was already started
        """
        with self._lock:
            if self._started:
                raise RuntimeError("EncoderSession can only be started once")
            self._started = True
            if self._cancel_requested:
                self._state = SessionState.CANCELLED
                self._future.set_result(EncoderResult(success=False))
                return self._future

        try:
            args = [self.binary, *shlex.split(command_line)]
        except ValueError as e:
            return self._launch_failed(f"Malformed command line: {e}")

        logger.debug(f"Executing command: {shlex.join(args)}")

        try:
            # Text mode reads with universal newlines, so the "\r"-terminated
            # stats lines ffmpeg prints arrive as separate lines.
            process = subprocess.Popen(
                args,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                text=True,
                encoding="utf-8",
                errors="replace",
                bufsize=1,
            )
        except (OSError, ValueError) as e:
            return self._launch_failed(f"Failed to launch encoder '{self.binary}': {e}")

        with self._lock:
            self._process = process
            self._state = SessionState.RUNNING
            cancel_pending = self._cancel_requested

        reader = threading.Thread(
            target=self._pump, args=(process,), name="encoder-session", daemon=True
        )
        reader.start()

        if cancel_pending:
            self._stop_process(process)
        return self._future

    def wait(self, timeout: float | None = None) -> EncoderResult:
        """Block until the session resolves."""
        return self._future.result(timeout=timeout)

    def cancel(self) -> None:
        """Request termination of the running process.

        Safe to call repeatedly, before ``start`` and after completion.
        """
        with self._lock:
            if self._state in TERMINAL_STATES or self._cancel_requested:
                return
            self._cancel_requested = True
            process = self._process

        if process is None:
            # Not launched yet; start() resolves immediately
            return
        logger.info(f"Cancelling encoder process (pid={process.pid})")
        self._stop_process(process)

    def _pump(self, process: "subprocess.Popen[str]") -> None:
        stdout = process.stdout
        try:
            if stdout is None:
                raise RuntimeError("Encoder process has no output pipe")
            for line in stdout:
                with self._lock:
                    self._logs.append(line)
                self._dispatch_line(line.rstrip("\r\n"))
        finally:
            if stdout is not None:
                stdout.close()
            return_code = process.wait()
            self._resolve(return_code)

    def _dispatch_line(self, line: str) -> None:
        if self.on_log_line is None or not line:
            return
        try:
            self.on_log_line(line)
        except Exception:
            logger.exception("Log line callback failed")

    def _resolve(self, return_code: int) -> None:
        with self._lock:
            logs = "".join(self._logs)
            if self._cancel_requested:
                state = SessionState.CANCELLED
            elif return_code == 0:
                state = SessionState.SUCCEEDED
            else:
                state = SessionState.FAILED
            self._state = state
            self._process = None

        logger.debug(f"Encoder session state: {state.value} (return code {return_code})")
        if state is SessionState.FAILED:
            logger.error(f"Encoder command failed with return code {return_code}")
            logger.debug(f"Encoder logs:\n{logs}")

        self._future.set_result(
            EncoderResult(
                success=state is SessionState.SUCCEEDED,
                logs=logs,
                return_code=return_code,
            )
        )

    def _launch_failed(self, message: str) -> "Future[EncoderResult]":
        logger.error(message)
        with self._lock:
            self._state = SessionState.FAILED
        self._future.set_result(EncoderResult(success=False, logs=message, return_code=None))
        return self._future

    def _stop_process(self, process: "subprocess.Popen[str]") -> None:
        if process.poll() is not None:
            return

        try:
            process.terminate()
        except OSError as e:
            logger.warning(f"Failed to terminate encoder process: {e}")
        if self._wait_for_exit(process, self._terminate_timeout) is not None:
            return

        logger.warning("Encoder ignored SIGTERM; sending SIGKILL")
        try:
            process.kill()
        except OSError as e:
            logger.warning(f"Failed to kill encoder process: {e}")
        if self._wait_for_exit(process, self._kill_timeout) is None:
            logger.error("Encoder process still running after SIGKILL attempt")

    @staticmethod
    def _wait_for_exit(process: "subprocess.Popen[str]", timeout: float) -> int | None:
        try:
            return process.wait(timeout=timeout)
        except subprocess.TimeoutExpired:
            return None
