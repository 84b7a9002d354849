"""Embedding providers: text in, fixed-length float vector out.

The default provider wraps sentence-transformers' all-MiniLM-L6-v2 with
mean pooling and L2 normalisation. Model loading is slow, so it happens
once per provider behind a lock and must finish before any embed() call.
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Protocol, runtime_checkable

from devdocbot.vectorstore.errors import (
    DimensionMismatchError,
    EmbeddingError,
    EmbeddingInitError,
    StoreNotInitializedError,
)
from devdocbot.vectorstore.schema import EMBEDDING_DIM

logger = logging.getLogger(__name__)

DEFAULT_MODEL_NAME = "all-MiniLM-L6-v2"


@runtime_checkable
class EmbeddingProvider(Protocol):
    """Anything that can turn text into a vector."""

    @property
    def dimension(self) -> int: ...

    @property
    def is_loaded(self) -> bool: ...

    def load(self) -> None: ...

    def embed(self, text: str) -> list[float]: ...


class SentenceTransformerEmbeddings:
    """sentence-transformers backed provider with a one-shot load gate."""

    def __init__(
        self,
        model_name: str = DEFAULT_MODEL_NAME,
        dimension: int = EMBEDDING_DIM,
        device: str | None = None,
    ):
        self.model_name = model_name
        self._dimension = dimension
        self._device = device
        self._model: Any = None
        self._lock = threading.Lock()

    @property
    def dimension(self) -> int:
        return self._dimension

    @property
    def is_loaded(self) -> bool:
        return self._model is not None

    def load(self) -> None:
        """Load the model once. Later calls return immediately.

        Raises DimensionMismatchError if the model's output size differs
        from the configured dimension.
        """
        if self._model is not None:
            return
        with self._lock:
            if self._model is not None:
                return
            logger.info("Loading embedding model %s", self.model_name)
            try:
                from sentence_transformers import SentenceTransformer
                model = SentenceTransformer(self.model_name, device=self._device)
            except Exception as e:
                raise EmbeddingInitError(
                    f"Could not load embedding model {self.model_name}: {e}"
                ) from e
            actual = model.get_sentence_embedding_dimension()
            if actual is not None and actual != self._dimension:
                raise DimensionMismatchError(self._dimension, actual)
            self._model = model
            logger.info("Embedding model %s ready (%d dimensions)", self.model_name, self._dimension)

    def embed(self, text: str) -> list[float]:
        if self._model is None:
            raise StoreNotInitializedError("Embedding model not loaded; call load() first")
        try:
            vector = self._model.encode(text, normalize_embeddings=True)
        except Exception as e:
            raise EmbeddingError(f"Failed to embed text ({len(text)} chars): {e}") from e
        return [float(x) for x in vector.tolist()]
