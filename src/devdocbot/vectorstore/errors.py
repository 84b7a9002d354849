"""Exceptions raised by the vector store core."""

from __future__ import annotations


class VectorStoreError(Exception):
    """Base class for vector store failures."""


class EmbeddingInitError(VectorStoreError):
    """The embedding model could not be loaded."""


class EmbeddingError(VectorStoreError):
    """A single text could not be embedded."""


class StoreNotInitializedError(VectorStoreError, RuntimeError):
    """An operation was attempted before initialize() completed."""


class SnapshotError(VectorStoreError):
    """A persisted snapshot exists but cannot be used."""


class DimensionMismatchError(VectorStoreError, ValueError):
    """Two vectors, or a vector and the collection, disagree on length."""

    def __init__(self, expected: int, actual: int):
        self.expected = expected
        self.actual = actual
        super().__init__(f"Vector dimension mismatch: expected {expected}, got {actual}")
