"""Vector store search, indexing and clearing endpoints.

Handlers are synchronous so FastAPI runs them in its threadpool; embedding
and snapshot writes block.
"""

from __future__ import annotations

import logging
from pathlib import Path

from fastapi import APIRouter, Request

from devdocbot.generator import generate_vector_docs
from devdocbot.vectorstore.errors import VectorStoreError
from devdocbot_engine.models.requests import (
    VectorClearRequest,
    VectorIndexRequest,
    VectorSearchRequest,
)
from devdocbot_engine.models.responses import (
    IndexFailure,
    VectorClearResponse,
    VectorIndexResponse,
    VectorSearchResponse,
    VectorSearchResult,
)
from devdocbot_engine.stores import StoreRegistry

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/vector")


def _registry(request: Request) -> StoreRegistry:
    return request.app.state.stores


@router.post("/search", response_model=VectorSearchResponse)
def search_endpoint(req: VectorSearchRequest, request: Request) -> VectorSearchResponse:
    """Rank stored snippets against the query."""
    try:
        managed = _registry(request).get(Path(req.project_root))
        with managed.lock:
            results = managed.store.search(req.query, limit=req.limit)
    except (VectorStoreError, OSError, ValueError) as e:
        logger.warning("Search failed for %s: %s", req.project_root, e)
        return VectorSearchResponse(success=False, query=req.query, error=str(e))

    return VectorSearchResponse(
        success=True,
        query=req.query,
        results=[
            VectorSearchResult(
                content=r.content,
                path=r.metadata.source_path,
                type=r.metadata.kind.value,
                module=r.metadata.module,
                section=r.metadata.section,
                start_line=r.metadata.start_line,
                end_line=r.metadata.end_line,
                similarity=r.similarity,
            )
            for r in results
        ],
    )


@router.post("/index", response_model=VectorIndexResponse)
def index_endpoint(req: VectorIndexRequest, request: Request) -> VectorIndexResponse:
    """Index the project's sources and docs."""
    project_root = Path(req.project_root).resolve()
    registry = _registry(request)
    try:
        if req.rebuild:
            registry.reset(project_root)
        managed = registry.get(project_root)
        with managed.lock:
            report = generate_vector_docs(
                managed.settings, project_root, managed.store, rebuild=req.rebuild,
            )
    except (VectorStoreError, OSError, ValueError) as e:
        logger.warning("Indexing failed for %s: %s", project_root, e)
        return VectorIndexResponse(success=False, error=str(e))

    return VectorIndexResponse(
        success=True,
        files_indexed=report.files_indexed,
        chunks_created=report.chunks_created,
        documents_total=report.documents_total,
        failures=[
            IndexFailure(path=f.path, module=f.module, error=f.error)
            for f in report.failures
        ],
    )


@router.post("/clear", response_model=VectorClearResponse)
def clear_endpoint(req: VectorClearRequest, request: Request) -> VectorClearResponse:
    """Delete the project's collection and snapshot, even if it cannot be loaded."""
    try:
        _registry(request).reset(Path(req.project_root))
    except (VectorStoreError, OSError, ValueError) as e:
        logger.warning("Clear failed for %s: %s", req.project_root, e)
        return VectorClearResponse(success=False, error=str(e))
    return VectorClearResponse(success=True)
