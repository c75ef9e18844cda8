"""Property tests for scratch file cleanup.

Property: after purge_all, the scratch directory holds no file the manager
allocated, whichever subset was promoted and whichever files the encoder
actually wrote.
"""

import tempfile
from pathlib import Path

from hypothesis import given, settings
from hypothesis import strategies as st

from mbatch.services.error_handling import command_chain
from mbatch.utils.tempfiles import TempFileManager

formats = st.sampled_from(["mp4", "matroska", "jpg", "webp", "mov"])


class TestTempFilePurge:
    """Property tests for TempFileManager."""

    @given(
        allocations=st.lists(
            st.tuples(formats, st.booleans(), st.booleans()), min_size=0, max_size=20
        )
    )
    @settings(max_examples=100, deadline=None)
    def test_purge_leaves_nothing(self, allocations):
        """Tracked files are gone after purge_all; promoted files never return."""
        with tempfile.TemporaryDirectory() as tmp:
            manager = TempFileManager(Path(tmp) / "scratch")
            promoted = set()

            for fmt, written, promote in allocations:
                path = manager.allocate(fmt)
                if written:
                    path.write_bytes(b"x")
                if promote:
                    manager.promote(path)
                    promoted.add(path)
                assert not promoted & manager.tracked

            manager.purge_all()

            assert manager.tracked == frozenset()
            scratch = Path(tmp) / "scratch"
            if scratch.exists():
                assert list(scratch.iterdir()) == []

    @given(count=st.integers(min_value=1, max_value=50))
    @settings(max_examples=30, deadline=None)
    def test_allocations_unique(self, count):
        """Allocated paths never collide within a batch."""
        with tempfile.TemporaryDirectory() as tmp:
            manager = TempFileManager(Path(tmp))
            paths = [manager.allocate("mp4") for _ in range(count)]
            assert len(set(paths)) == count


class TestCommandChain:
    """Property tests for the retry chain."""

    @given(primary=st.one_of(st.none(), st.text()), fallback=st.one_of(st.none(), st.text()))
    @settings(max_examples=200, deadline=None)
    def test_chain_shape(self, primary, fallback):
        """The chain has at most two entries and starts with the primary."""
        chain = command_chain(primary, fallback)

        assert len(chain) <= 2
        if not primary:
            assert chain == []
        else:
            assert chain[0] == primary
            assert (len(chain) == 2) == bool(fallback and fallback.strip())
