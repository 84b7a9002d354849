"""Pydantic response models for the DevDocBot engine API."""

from __future__ import annotations

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    """Health check response."""
    status: str = "ok"
    version: str
    capabilities: list[str] = Field(default_factory=list)


class VectorSearchResult(BaseModel):
    """A single ranked snippet."""
    content: str
    path: str
    type: str
    module: str | None = None
    section: str | None = None
    start_line: int | None = None
    end_line: int | None = None
    similarity: float


class VectorSearchResponse(BaseModel):
    """Response from a vector search."""
    success: bool
    query: str
    results: list[VectorSearchResult] = Field(default_factory=list)
    error: str | None = None


class IndexFailure(BaseModel):
    """An input skipped during indexing."""
    path: str
    module: str | None = None
    error: str | None = None


class VectorIndexResponse(BaseModel):
    """Response from indexing a project."""
    success: bool
    files_indexed: int = 0
    chunks_created: int = 0
    documents_total: int = 0
    failures: list[IndexFailure] = Field(default_factory=list)
    error: str | None = None


class VectorClearResponse(BaseModel):
    """Response from deleting a collection."""
    success: bool
    error: str | None = None
