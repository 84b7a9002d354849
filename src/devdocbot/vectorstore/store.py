"""Vector store: owns the collection, embeds chunks, persists and searches.

The whole collection lives in memory and is written to one JSON snapshot
after every add_chunks() batch. Writes go to a sibling temp file which is
then renamed over the snapshot, so readers see either the old or the new
collection, never a partial one.

Single writer: overlapping add_chunks() calls on one store are not
supported and must be serialized by the caller.
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import replace
from datetime import datetime, timezone
from pathlib import Path
from typing import Sequence

from devdocbot.vectorstore.embeddings import EmbeddingProvider, SentenceTransformerEmbeddings
from devdocbot.vectorstore.errors import (
    DimensionMismatchError,
    SnapshotError,
    StoreNotInitializedError,
)
from devdocbot.vectorstore.ranking import rank
from devdocbot.vectorstore.schema import (
    Chunk,
    CollectionConfig,
    SearchResult,
    Snapshot,
    StoredDocument,
)

logger = logging.getLogger(__name__)

PROGRESS_EVERY = 10


class VectorStore:
    """In-memory collection of embedded chunks backed by a JSON snapshot."""

    def __init__(
        self,
        config: CollectionConfig,
        snapshot_path: Path,
        embeddings: EmbeddingProvider | None = None,
    ):
        self.config = config
        self.snapshot_path = Path(snapshot_path)
        self.embeddings = embeddings or SentenceTransformerEmbeddings(dimension=config.dimension)
        self._documents: list[StoredDocument] = []
        self._next_id = 0
        self._initialized = False

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    @property
    def documents(self) -> tuple[StoredDocument, ...]:
        return tuple(self._documents)

    @property
    def count(self) -> int:
        return len(self._documents)

    def initialize(self) -> None:
        """Load the embedding model, then any existing snapshot.

        A missing snapshot starts an empty collection. A snapshot that
        exists but cannot be parsed, or was built with a different
        configuration, raises SnapshotError.
        """
        self.embeddings.load()
        if self.embeddings.dimension != self.config.dimension:
            raise DimensionMismatchError(self.config.dimension, self.embeddings.dimension)

        snapshot = load_snapshot(self.snapshot_path)
        if snapshot is None:
            logger.info("No existing vector store at %s, starting fresh", self.snapshot_path)
            self._documents = []
        else:
            self._check_snapshot(snapshot)
            self._documents = _unique_ids(snapshot.documents)
            logger.info(
                "Loaded %d existing documents from %s",
                len(self._documents), self.snapshot_path,
            )
        self._next_id = _next_sequence(self._documents)
        self._initialized = True

    def add_chunks(self, chunks: Sequence[Chunk]) -> list[StoredDocument]:
        """Embed a batch of chunks, append them and persist the collection.

        If embedding fails part-way, the documents added by this batch are
        removed again before the error propagates. If the snapshot write
        fails, the in-memory additions are kept and the OSError propagates.
        """
        self._require_initialized()
        if not chunks:
            return []

        logger.info("Processing %d chunks...", len(chunks))
        rollback_len = len(self._documents)
        rollback_id = self._next_id
        added: list[StoredDocument] = []
        try:
            for i, chunk in enumerate(chunks):
                embedding = self._embed(chunk.content)
                doc = StoredDocument(
                    id=f"chunk_{self._next_id}",
                    content=chunk.content,
                    metadata=chunk.metadata,
                    embedding=tuple(embedding),
                )
                self._next_id += 1
                self._documents.append(doc)
                added.append(doc)
                if (i + 1) % PROGRESS_EVERY == 0:
                    logger.debug("Processed %d/%d chunks", i + 1, len(chunks))
        except Exception:
            del self._documents[rollback_len:]
            self._next_id = rollback_id
            raise

        self.save()
        logger.info("Added %d chunks to vector store", len(added))
        return added

    def search(self, query: str, limit: int = 5) -> list[SearchResult]:
        """Return the `limit` stored chunks most similar to query."""
        self._require_initialized()
        if limit < 0:
            raise ValueError("limit must be >= 0")
        if not self._documents or limit == 0:
            return []
        return self.search_by_vector(self._embed(query), limit)

    def search_by_vector(self, vector: Sequence[float], limit: int = 5) -> list[SearchResult]:
        """Rank stored chunks against a precomputed query vector."""
        if len(vector) != self.config.dimension:
            raise DimensionMismatchError(self.config.dimension, len(vector))
        return rank(vector, self._documents, limit)

    def delete_collection(self) -> None:
        """Drop every document and remove the snapshot file if present."""
        self._documents = []
        self._next_id = 0
        self.snapshot_path.unlink(missing_ok=True)
        logger.info("Deleted collection %s", self.config.collection_name)

    def save(self) -> None:
        """Write the full collection to the snapshot path."""
        snapshot = Snapshot(
            documents=list(self._documents),
            timestamp=datetime.now(timezone.utc).isoformat(),
            config=self.config,
        )
        write_snapshot(self.snapshot_path, snapshot)

    def _embed(self, text: str) -> list[float]:
        vector = self.embeddings.embed(text)
        if len(vector) != self.config.dimension:
            raise DimensionMismatchError(self.config.dimension, len(vector))
        return vector

    def _check_snapshot(self, snapshot: Snapshot) -> None:
        if snapshot.config != self.config:
            raise SnapshotError(
                f"Snapshot {self.snapshot_path} was built with {snapshot.config.to_dict()}, "
                f"store is configured with {self.config.to_dict()}; "
                "rebuild or clear the collection to change its configuration"
            )
        for doc in snapshot.documents:
            if len(doc.embedding) != self.config.dimension:
                raise SnapshotError(
                    f"Document {doc.id} in {self.snapshot_path} has "
                    f"{len(doc.embedding)}-dimensional embedding, "
                    f"expected {self.config.dimension}"
                )

    def _require_initialized(self) -> None:
        if not self._initialized:
            raise StoreNotInitializedError("Vector store not initialized; call initialize() first")


def load_snapshot(path: Path) -> Snapshot | None:
    """Read a snapshot. None if the file is missing, SnapshotError if unusable."""
    try:
        raw = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return None
    except UnicodeDecodeError as e:
        raise SnapshotError(f"Corrupt snapshot {path}: {e}") from e
    except OSError as e:
        raise SnapshotError(f"Could not read snapshot {path}: {e}") from e

    try:
        return Snapshot.from_dict(json.loads(raw))
    except (json.JSONDecodeError, KeyError, TypeError, ValueError) as e:
        raise SnapshotError(f"Corrupt snapshot {path}: {e}") from e


def write_snapshot(path: Path, snapshot: Snapshot) -> None:
    """Atomically replace path with the serialized snapshot."""
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = path.with_name(path.name + ".tmp")
    try:
        tmp_path.write_text(json.dumps(snapshot.to_dict(), indent=2), encoding="utf-8")
        os.replace(tmp_path, path)
    except OSError:
        tmp_path.unlink(missing_ok=True)
        raise


def create_vector_store(
    config: CollectionConfig,
    snapshot_path: Path,
    embeddings: EmbeddingProvider | None = None,
    rebuild: bool = False,
) -> VectorStore:
    """Build a store and block until it is initialized.

    With rebuild, any existing snapshot is deleted first, so a corrupt one
    or one built with another configuration never gets loaded.
    """
    store = VectorStore(config, snapshot_path, embeddings)
    if rebuild:
        store.delete_collection()
    store.initialize()
    return store


def _unique_ids(documents: Sequence[StoredDocument]) -> list[StoredDocument]:
    """Documents as stored, renumbered in order if any id repeats.

    Snapshots written by the Node devdocbot restart chunk_0 for every
    batch, so their ids collide across files.
    """
    if len({doc.id for doc in documents}) == len(documents):
        return list(documents)
    logger.warning("Snapshot contains duplicate document ids, renumbering %d documents", len(documents))
    return [replace(doc, id=f"chunk_{i}") for i, doc in enumerate(documents)]


def _next_sequence(documents: Sequence[StoredDocument]) -> int:
    """First free number for chunk_<n> ids after the given documents."""
    highest = -1
    for doc in documents:
        prefix, _, number = doc.id.partition("_")
        if prefix == "chunk" and number.isdigit():
            highest = max(highest, int(number))
    return max(highest + 1, len(documents))
