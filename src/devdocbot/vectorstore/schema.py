"""Data model for chunks, stored documents and the persisted collection.

Persisted keys are camelCase (``startLine``, ``collectionName``) to keep
the ``vector-store.json`` format shared with the Node devdocbot package.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any


EMBEDDING_DIM = 384  # all-MiniLM-L6-v2
DEFAULT_COLLECTION_NAME = "devdocbot_code"
DEFAULT_CHUNK_SIZE = 1000
DEFAULT_CHUNK_OVERLAP = 200
GENERAL_SECTION = "General"
SNAPSHOT_FILENAME = "vector-store.json"


class ChunkKind(str, Enum):
    """Content classification of a chunk."""
    CODE = "code"
    DOCUMENTATION = "documentation"
    COMMENT = "comment"


@dataclass(frozen=True)
class FileContent:
    """A source file handed to the chunker."""
    path: str
    content: str


@dataclass(frozen=True)
class ChunkMetadata:
    """Where a chunk came from and what it contains."""
    source_path: str
    kind: ChunkKind
    module: str | None = None
    section: str | None = None
    start_line: int | None = None
    end_line: int | None = None

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "path": self.source_path,
            "type": self.kind.value,
        }
        if self.module is not None:
            d["module"] = self.module
        if self.section is not None:
            d["section"] = self.section
        if self.start_line is not None:
            d["startLine"] = self.start_line
        if self.end_line is not None:
            d["endLine"] = self.end_line
        return d

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> ChunkMetadata:
        return cls(
            source_path=str(d["path"]),
            kind=ChunkKind(d["type"]),
            module=d.get("module"),
            section=d.get("section"),
            start_line=d.get("startLine"),
            end_line=d.get("endLine"),
        )


@dataclass(frozen=True)
class Chunk:
    """A contiguous slice of a source text, before embedding."""
    content: str
    metadata: ChunkMetadata


@dataclass(frozen=True)
class StoredDocument:
    """An embedded chunk as held in a collection."""
    id: str
    content: str
    metadata: ChunkMetadata
    embedding: tuple[float, ...]

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "content": self.content,
            "metadata": self.metadata.to_dict(),
            "embedding": list(self.embedding),
        }

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> StoredDocument:
        return cls(
            id=str(d["id"]),
            content=d["content"],
            metadata=ChunkMetadata.from_dict(d["metadata"]),
            embedding=tuple(float(x) for x in d["embedding"]),
        )


@dataclass(frozen=True)
class CollectionConfig:
    """Collection-level settings, fixed for the lifetime of a collection."""
    collection_name: str = DEFAULT_COLLECTION_NAME
    dimension: int = EMBEDDING_DIM
    chunk_size: int = DEFAULT_CHUNK_SIZE
    chunk_overlap: int = DEFAULT_CHUNK_OVERLAP

    def __post_init__(self) -> None:
        if self.dimension < 1:
            raise ValueError("dimension must be a positive integer")
        if self.chunk_size < 1:
            raise ValueError("chunk_size must be a positive integer")
        if not 0 <= self.chunk_overlap < self.chunk_size:
            raise ValueError("chunk_overlap must be >= 0 and smaller than chunk_size")

    def with_overrides(self, **overrides: Any) -> CollectionConfig:
        """Return a copy with the non-None overrides applied."""
        return replace(self, **{k: v for k, v in overrides.items() if v is not None})

    def to_dict(self) -> dict[str, Any]:
        return {
            "collectionName": self.collection_name,
            "dimension": self.dimension,
            "chunkSize": self.chunk_size,
            "chunkOverlap": self.chunk_overlap,
        }

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> CollectionConfig:
        return cls(
            collection_name=str(d["collectionName"]),
            dimension=int(d["dimension"]),
            chunk_size=int(d["chunkSize"]),
            chunk_overlap=int(d["chunkOverlap"]),
        )


@dataclass(frozen=True)
class SearchResult:
    """A ranked hit returned by a similarity query."""
    content: str
    metadata: ChunkMetadata
    similarity: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "content": self.content,
            "metadata": self.metadata.to_dict(),
            "similarity": self.similarity,
        }


@dataclass
class Snapshot:
    """On-disk form of a collection."""
    documents: list[StoredDocument] = field(default_factory=list)
    timestamp: str = ""
    config: CollectionConfig = field(default_factory=CollectionConfig)

    def to_dict(self) -> dict[str, Any]:
        return {
            "documents": [d.to_dict() for d in self.documents],
            "timestamp": self.timestamp,
            "config": self.config.to_dict(),
        }

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> Snapshot:
        return cls(
            documents=[StoredDocument.from_dict(doc) for doc in d["documents"]],
            timestamp=str(d.get("timestamp", "")),
            config=CollectionConfig.from_dict(d["config"]),
        )


def get_default_config() -> CollectionConfig:
    """Default collection settings (all-MiniLM-L6-v2, 1000/200 windows)."""
    return CollectionConfig()
