"""Health check endpoint."""

from __future__ import annotations

import importlib.util

from fastapi import APIRouter

from devdocbot_engine import __version__
from devdocbot_engine.models.responses import HealthResponse

router = APIRouter()

_CAPABILITY_MODULES = {
    "ranking": "numpy",
    "embeddings": "sentence_transformers",
}


def _detect_capabilities() -> list[str]:
    """Detect which optional dependencies are installed, without importing them."""
    return [
        cap for cap, module in _CAPABILITY_MODULES.items()
        if importlib.util.find_spec(module) is not None
    ]


@router.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Return engine health status and available capabilities."""
    return HealthResponse(
        status="ok",
        version=__version__,
        capabilities=_detect_capabilities(),
    )
