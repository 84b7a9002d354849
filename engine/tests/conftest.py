"""Shared fixtures for DevDocBot Engine tests."""

from __future__ import annotations

import re
import zlib
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from devdocbot_engine.app import create_app


class WordHashEmbeddings:
    """Deterministic bag-of-words provider so tests never load a model."""

    def __init__(self, dimension: int):
        self._dimension = dimension
        self._loaded = False

    @property
    def dimension(self) -> int:
        return self._dimension

    @property
    def is_loaded(self) -> bool:
        return self._loaded

    def load(self) -> None:
        self._loaded = True

    def embed(self, text: str) -> list[float]:
        vector = [0.0] * self._dimension
        for word in re.findall(r"[a-z0-9]+", text.lower()):
            vector[zlib.crc32(word.encode()) % self._dimension] += 1.0
        return vector


@pytest.fixture
def client() -> TestClient:
    app = create_app(embeddings_factory=WordHashEmbeddings)
    return TestClient(app)


@pytest.fixture
def tmp_project(tmp_path: Path) -> Path:
    """Create a temporary project with one server module and a README."""
    (tmp_path / "devdocbot.config.yaml").write_text(
        "structure:\n"
        "  server:\n"
        "    root: src\n"
        "    modules:\n"
        "      services:\n"
        "        path: services\n"
        "        pattern: '**/*.py'\n"
        "vectorStore:\n"
        "  dimension: 32\n"
        "  chunkSize: 200\n"
        "  chunkOverlap: 40\n",
        encoding="utf-8",
    )
    services = tmp_path / "src" / "services"
    services.mkdir(parents=True)
    (services / "billing.py").write_text(
        "def charge_invoice(invoice):\n    return gateway.charge(invoice.total)\n",
        encoding="utf-8",
    )
    (services / "mailer.py").write_text(
        "def send_welcome_email(user):\n    smtp.send(user.email, 'welcome')\n",
        encoding="utf-8",
    )
    (tmp_path / "README.md").write_text("# Shop\n\nInvoices and email.\n", encoding="utf-8")
    return tmp_path
