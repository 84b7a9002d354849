"""FastAPI application factory for DevDocBot Engine."""

from __future__ import annotations

import os

from fastapi import FastAPI

from devdocbot_engine import __version__
from devdocbot_engine.routes import health, vector
from devdocbot_engine.stores import EmbeddingsFactory, StoreRegistry


def create_app(embeddings_factory: EmbeddingsFactory | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Service mode is controlled via environment variables:
        DEVDOCBOT_SERVICE_MODE=1: enable CORS
        DEVDOCBOT_CORS_ORIGINS: comma-separated CORS origins (default: *)
    """
    app = FastAPI(
        title="DevDocBot Engine",
        version=__version__,
        description="Vector search over project source code and documentation",
    )
    app.state.stores = StoreRegistry(embeddings_factory)

    if os.environ.get("DEVDOCBOT_SERVICE_MODE") == "1":
        from starlette.middleware.cors import CORSMiddleware

        cors_env = os.environ.get("DEVDOCBOT_CORS_ORIGINS", "*")
        origins = [o.strip() for o in cors_env.split(",")]
        app.add_middleware(
            CORSMiddleware,
            allow_origins=origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    app.include_router(health.router)
    app.include_router(vector.router)

    return app
