"""Unit tests for LocalArtifactStore."""

import logging
from unittest.mock import patch

import pytest

from mbatch.storage.base import ArtifactStore
from mbatch.storage.local import LocalArtifactStore, unique_path


@pytest.fixture
def source(tmp_path):
    path = tmp_path / "scratch" / "temp_1_0.mp4"
    path.parent.mkdir()
    path.write_bytes(b"encoded video")
    return path


@pytest.fixture
def store(tmp_path):
    return LocalArtifactStore(tmp_path / "home", app_folder="MediaBatch")


class TestLocalArtifactStore:
    """Tests for LocalArtifactStore.save."""

    def test_satisfies_protocol(self, store):
        """Test the store implements ArtifactStore."""
        assert isinstance(store, ArtifactStore)

    def test_video_destination(self, store, source, tmp_path):
        """Test videos land under Movies/<app>/<folder>."""
        saved = store.save(source, "mp4", "clip_process", "Trips")

        assert saved == tmp_path / "home" / "Movies" / "MediaBatch" / "Trips" / "clip_process.mp4"
        assert saved.read_bytes() == b"encoded video"
        assert source.exists()

    def test_image_and_audio_destinations(self, store, source, tmp_path):
        """Test images and audio go to Pictures and Music."""
        image = store.save(source, "png", "img", "")
        audio = store.save(source, "mp3", "song", "")

        assert image.parent == tmp_path / "home" / "Pictures" / "MediaBatch"
        assert audio.parent == tmp_path / "home" / "Music" / "MediaBatch"

    def test_matroska_extension(self, store, source):
        """Test the matroska format is saved as .mkv."""
        assert store.save(source, "matroska", "clip", "").suffix == ".mkv"

    def test_name_collision(self, store, source):
        """Test existing names get _1, _2 suffixes."""
        first = store.save(source, "mp4", "clip", "")
        second = store.save(source, "mp4", "clip", "")
        third = store.save(source, "mp4", "clip", "")

        assert [p.name for p in (first, second, third)] == ["clip.mp4", "clip_1.mp4", "clip_2.mp4"]

    def test_unsupported_format(self, store, source):
        """Test an unknown format raises ValueError."""
        with pytest.raises(ValueError):
            store.save(source, "xyz", "clip", "")

    def test_save_logs_content_type(self, store, source, caplog):
        """Test the saved file is logged with its MIME type."""
        caplog.set_level(logging.INFO, logger="mbatch.storage.local")

        saved = store.save(source, "matroska", "clip", "")

        assert saved is not None
        assert "video/x-matroska" in caplog.text

    def test_copy_failure_returns_none(self, store, source, caplog):
        """Test an OSError while copying is logged and returns None."""
        with patch("mbatch.storage.local.shutil.copyfile", side_effect=OSError("disk full")):
            assert store.save(source, "mp4", "clip", "") is None
        assert "disk full" in caplog.text

    def test_missing_source_returns_none(self, store, tmp_path):
        """Test a missing scratch file is a failed save."""
        assert store.save(tmp_path / "nope.mp4", "mp4", "clip", "") is None


class TestUniquePath:
    """Tests for unique_path."""

    def test_free_name(self, tmp_path):
        """Test an unused name is returned unchanged."""
        assert unique_path(tmp_path, "a", "jpg") == tmp_path / "a.jpg"

    def test_skips_taken_names(self, tmp_path):
        """Test taken names are skipped in order."""
        (tmp_path / "a.jpg").touch()
        (tmp_path / "a_1.jpg").touch()
        assert unique_path(tmp_path, "a", "jpg") == tmp_path / "a_2.jpg"
