"""Pytest configuration and fixtures for mbatch tests."""

import shlex
import sys
import threading
from concurrent.futures import Future
from pathlib import Path

import pytest

from mbatch.models.types import EncoderResult
from mbatch.services.cancellation import CancellationToken
from mbatch.services.state_bus import StateBus
from mbatch.utils.tempfiles import TempFileManager


class FakeSession:
    """Scripted stand-in for EncoderSession.

    Feeds its log lines to the callback, writes the output file named by the
    trailing ``-y "<path>"`` argument (when the scripted process "ran"), and
    resolves with the scripted result.
    """

    def __init__(self, result: EncoderResult, log_lines=(), on_log_line=None, write_output=True):
        self.result = result
        self.log_lines = list(log_lines)
        self.on_log_line = on_log_line
        self.write_output = write_output
        self.command_line = None
        self.cancel_calls = 0
        self.future: Future = Future()

    def start(self, command_line: str) -> Future:
        self.command_line = command_line
        for line in self.log_lines:
            if self.on_log_line is not None:
                self.on_log_line(line)
        if self.write_output and self.result.launched:
            Path(shlex.split(command_line)[-1]).write_bytes(b"encoded")
        self.future.set_result(self.result)
        return self.future

    def cancel(self) -> None:
        self.cancel_calls += 1


class FakeSessionFactory:
    """Hands out FakeSessions from a script of (result, log_lines) pairs."""

    def __init__(self, script=None):
        self.script = list(script or [])
        self.sessions: list[FakeSession] = []
        self.before_start = None

    def __call__(self, on_log_line=None) -> FakeSession:
        if self.script:
            result, lines = self.script.pop(0)
        else:
            result, lines = EncoderResult(success=True, logs="ok", return_code=0), []
        session = FakeSession(result, lines, on_log_line=on_log_line)
        if self.before_start is not None:
            self.before_start(len(self.sessions), session)
        self.sessions.append(session)
        return session

    @property
    def commands(self) -> list[str]:
        return [s.command_line for s in self.sessions]


class FakeArtifactStore:
    """Records saves and copies files into an output directory."""

    def __init__(self, output_dir: Path):
        self.output_dir = output_dir
        self.saves: list[tuple] = []
        self.fail_on: set[int] = set()
        self.raise_on: set[int] = set()

    def save(self, source, output_format, suggested_name, folder):
        call = len(self.saves)
        self.saves.append((Path(source), output_format, suggested_name, folder))
        if call in self.raise_on:
            raise OSError("disk full")
        if call in self.fail_on:
            return None
        destination = self.output_dir / f"{suggested_name}_{call}.{output_format}"
        destination.parent.mkdir(parents=True, exist_ok=True)
        destination.write_bytes(Path(source).read_bytes() if Path(source).exists() else b"")
        return destination


class BusRecorder:
    """Collects non-None values published on a StateBus."""

    def __init__(self, bus: StateBus):
        self.states = []
        self.progress = []
        self.events = []
        self._lock = threading.Lock()
        bus.subscribe_state(self._on_state)
        bus.subscribe_progress(self._on_progress)

    def _on_state(self, state):
        if state is None:
            return
        with self._lock:
            self.states.append(state)
            self.events.append(("state", state))

    def _on_progress(self, sample):
        if sample is None:
            return
        with self._lock:
            self.progress.append(sample)
            self.events.append(("progress", sample))


@pytest.fixture
def scratch_dir(tmp_path):
    """Scratch directory for encoder output."""
    return tmp_path / "scratch"


@pytest.fixture
def temp_files(scratch_dir):
    """TempFileManager over the scratch directory."""
    return TempFileManager(scratch_dir)


@pytest.fixture
def artifact_store(tmp_path):
    """Recording artifact store writing into tmp_path/out."""
    return FakeArtifactStore(tmp_path / "out")


@pytest.fixture
def session_factory():
    """Scripted session factory (every session succeeds by default)."""
    return FakeSessionFactory()


@pytest.fixture
def state_bus():
    return StateBus()


@pytest.fixture
def recorder(state_bus):
    return BusRecorder(state_bus)


@pytest.fixture
def cancel_token():
    return CancellationToken()


@pytest.fixture
def fake_encoder():
    """Path to the fake encoder script used by the integration tests."""
    return Path(__file__).parent / "integration" / "fake_encoder.py"


@pytest.fixture
def python_binary():
    """Interpreter used as the encoder binary for the fake encoder."""
    return sys.executable
