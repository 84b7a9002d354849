"""Per-project vector stores shared across requests.

One store per snapshot path, each guarded by its own lock so that indexing,
clearing and searching a project never overlap. Embedding providers are
shared per dimension so a model is loaded at most once per process.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable

from devdocbot.config import DevDocBotSettings, load_settings
from devdocbot.utils.paths import get_snapshot_path
from devdocbot.vectorstore.embeddings import EmbeddingProvider, SentenceTransformerEmbeddings
from devdocbot.vectorstore.store import VectorStore

logger = logging.getLogger(__name__)

EmbeddingsFactory = Callable[[int], EmbeddingProvider]


def default_embeddings_factory(dimension: int) -> EmbeddingProvider:
    return SentenceTransformerEmbeddings(dimension=dimension)


@dataclass
class ManagedStore:
    """A store, its project settings and the lock serializing access to it."""
    store: VectorStore
    settings: DevDocBotSettings
    lock: threading.Lock = field(default_factory=threading.Lock)


class StoreRegistry:
    """Lazily opens and caches one initialized store per project."""

    def __init__(self, embeddings_factory: EmbeddingsFactory | None = None):
        self._factory = embeddings_factory or default_embeddings_factory
        self._providers: dict[int, EmbeddingProvider] = {}
        self._stores: dict[Path, ManagedStore] = {}
        self._lock = threading.Lock()

    def get(self, project_root: Path) -> ManagedStore:
        """Store for project_root, initializing it on first use."""
        project_root = project_root.resolve()
        settings = load_settings(project_root)
        snapshot_path = get_snapshot_path(project_root, settings.output_dir).resolve()

        with self._lock:
            managed = self._stores.get(snapshot_path)
            if managed is not None:
                return managed

            dimension = settings.vector_store.dimension
            provider = self._providers.get(dimension)
            if provider is None:
                provider = self._factory(dimension)
                self._providers[dimension] = provider

            store = VectorStore(settings.vector_store, snapshot_path, provider)
            store.initialize()
            logger.info("Opened vector store %s (%d documents)", snapshot_path, store.count)
            managed = ManagedStore(store=store, settings=settings)
            self._stores[snapshot_path] = managed
            return managed

    def reset(self, project_root: Path) -> Path:
        """Delete a project's collection and forget its cached store.

        Works without loading the model or the snapshot, so a corrupt or
        mismatched snapshot can still be removed. The next get() reopens
        the store with freshly loaded settings.
        """
        project_root = project_root.resolve()
        settings = load_settings(project_root)
        snapshot_path = get_snapshot_path(project_root, settings.output_dir).resolve()

        with self._lock:
            managed = self._stores.pop(snapshot_path, None)
            provider = self._providers.get(settings.vector_store.dimension)
        # Never initialized; delete_collection() needs no model.
        store = VectorStore(settings.vector_store, snapshot_path, provider)
        if managed is None:
            store.delete_collection()
        else:
            with managed.lock:
                store.delete_collection()
        logger.info("Reset vector store %s", snapshot_path)
        return snapshot_path
