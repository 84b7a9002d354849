"""Pydantic request models for the DevDocBot engine API."""

from __future__ import annotations

from pydantic import BaseModel, Field


class VectorSearchRequest(BaseModel):
    """Request to search the vector store."""
    query: str = Field(..., min_length=1, description="Natural language search query")
    limit: int = Field(default=5, ge=0, le=50, description="Maximum results to return")
    project_root: str = Field(..., description="Project root directory path")


class VectorIndexRequest(BaseModel):
    """Request to index a project into the vector store."""
    project_root: str = Field(..., description="Project root directory path")
    rebuild: bool = Field(default=False, description="Clear the collection before indexing")


class VectorClearRequest(BaseModel):
    """Request to delete a project's collection."""
    project_root: str = Field(..., description="Project root directory path")
