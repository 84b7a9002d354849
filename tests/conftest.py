"""Shared test fixtures for DevDocBot."""

from __future__ import annotations

import re
import zlib
from pathlib import Path

import pytest

from devdocbot.vectorstore.errors import EmbeddingError, EmbeddingInitError, StoreNotInitializedError
from devdocbot.vectorstore.schema import CollectionConfig


class FakeEmbeddings:
    """Deterministic bag-of-words embeddings; table entries win when present."""

    def __init__(
        self,
        dimension: int = 16,
        table: dict[str, list[float]] | None = None,
        fail_on: str | None = None,
        fail_load: bool = False,
    ):
        self._dimension = dimension
        self.table = table or {}
        self.fail_on = fail_on
        self.fail_load = fail_load
        self.load_calls = 0
        self.embed_calls = 0
        self._loaded = False

    @property
    def dimension(self) -> int:
        return self._dimension

    @property
    def is_loaded(self) -> bool:
        return self._loaded

    def load(self) -> None:
        self.load_calls += 1
        if self.fail_load:
            raise EmbeddingInitError("model unavailable")
        self._loaded = True

    def embed(self, text: str) -> list[float]:
        if not self._loaded:
            raise StoreNotInitializedError("not loaded")
        self.embed_calls += 1
        if self.fail_on is not None and self.fail_on in text:
            raise EmbeddingError(f"cannot embed {text!r}")
        if text in self.table:
            return list(self.table[text])
        vector = [0.0] * self._dimension
        for word in re.findall(r"[a-z0-9]+", text.lower()):
            vector[zlib.crc32(word.encode()) % self._dimension] += 1.0
        return vector


@pytest.fixture
def fake_embeddings() -> FakeEmbeddings:
    return FakeEmbeddings()


@pytest.fixture
def small_config() -> CollectionConfig:
    return CollectionConfig(collection_name="test", dimension=16, chunk_size=100, chunk_overlap=20)


@pytest.fixture
def snapshot_path(tmp_path: Path) -> Path:
    return tmp_path / "project-docs" / "vector-store.json"


@pytest.fixture
def tmp_project(tmp_path: Path) -> Path:
    """Create a temporary project with a config, sources and docs."""
    (tmp_path / "devdocbot.config.yaml").write_text(
        "outputDir: ./project-docs\n"
        "structure:\n"
        "  server:\n"
        "    root: server/src\n"
        "    modules:\n"
        "      routes:\n"
        "        path: routes\n"
        "        pattern: '**/*.routes.{ts,js}'\n"
        "        description: API route handlers\n"
        "      missing:\n"
        "        path: does-not-exist\n"
        "        pattern: '**/*.ts'\n"
        "options:\n"
        "  includeReadme: true\n"
        "  includeDocs: true\n"
        "vectorStore:\n"
        "  collectionName: test\n"
        "  dimension: 16\n"
        "  chunkSize: 100\n"
        "  chunkOverlap: 20\n"
    )
    routes = tmp_path / "server" / "src" / "routes"
    (routes / "users").mkdir(parents=True)
    (routes / "auth.routes.ts").write_text(
        "// Authentication routes\n"
        "router.post('/login', loginHandler);\n"
        "router.post('/logout', logoutHandler);\n"
    )
    (routes / "users" / "users.routes.js").write_text(
        "/** User management endpoints */\n"
        "router.get('/users', listUsers);\n"
    )
    (routes / "helpers.ts").write_text("export const unrelated = 1;\n")
    (tmp_path / "README.md").write_text("# Demo\n\nA demo project about user login.\n")
    docs = tmp_path / "docs"
    docs.mkdir()
    (docs / "deploy.md").write_text("# Deployment\n\nDeploy with docker compose.\n")
    node_modules = tmp_path / "node_modules" / "pkg"
    node_modules.mkdir(parents=True)
    (node_modules / "README.md").write_text("# Vendored\n")
    return tmp_path


@pytest.fixture
def make_embeddings():
    """Factory for FakeEmbeddings with custom tables or failure modes."""
    return FakeEmbeddings
