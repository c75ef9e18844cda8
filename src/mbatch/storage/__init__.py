"""Artifact storage module for mbatch."""

from mbatch.storage.base import ArtifactStore
from mbatch.storage.local import LocalArtifactStore

__all__ = ["ArtifactStore", "LocalArtifactStore"]
