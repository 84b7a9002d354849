"""Chunking, embedding, persistence and ranking for the code knowledge base."""

from devdocbot.vectorstore.chunker import CodeChunker, create_chunker
from devdocbot.vectorstore.errors import (
    DimensionMismatchError,
    EmbeddingError,
    EmbeddingInitError,
    SnapshotError,
    StoreNotInitializedError,
    VectorStoreError,
)
from devdocbot.vectorstore.schema import (
    Chunk,
    ChunkKind,
    ChunkMetadata,
    CollectionConfig,
    FileContent,
    SearchResult,
    StoredDocument,
    get_default_config,
)
from devdocbot.vectorstore.store import VectorStore, create_vector_store

__all__ = [
    "Chunk",
    "ChunkKind",
    "ChunkMetadata",
    "CodeChunker",
    "CollectionConfig",
    "DimensionMismatchError",
    "EmbeddingError",
    "EmbeddingInitError",
    "FileContent",
    "SearchResult",
    "SnapshotError",
    "StoreNotInitializedError",
    "StoredDocument",
    "VectorStore",
    "VectorStoreError",
    "create_chunker",
    "create_vector_store",
    "get_default_config",
]
