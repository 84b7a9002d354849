"""Cosine similarity and top-K ranking.

Ranking is a stable descending sort on cosine similarity truncated to the
limit. There is no score threshold, deduplication or diversity re-ranking.
"""

from __future__ import annotations

from typing import Sequence

import numpy as np

from devdocbot.vectorstore.errors import DimensionMismatchError
from devdocbot.vectorstore.schema import SearchResult, StoredDocument


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """(sum a_i*b_i) / (|a| * |b|). A zero vector scores 0.0."""
    if len(a) != len(b):
        raise DimensionMismatchError(len(a), len(b))
    va = np.asarray(a, dtype=np.float64)
    vb = np.asarray(b, dtype=np.float64)
    denom = float(np.linalg.norm(va)) * float(np.linalg.norm(vb))
    if denom == 0.0:
        return 0.0
    return float(np.dot(va, vb)) / denom


def similarities(query: Sequence[float], documents: Sequence[StoredDocument]) -> list[float]:
    """Cosine similarity of query against every document, in order."""
    if not documents:
        return []
    for doc in documents:
        if len(doc.embedding) != len(query):
            raise DimensionMismatchError(len(query), len(doc.embedding))

    q = np.asarray(query, dtype=np.float64)
    m = np.asarray([doc.embedding for doc in documents], dtype=np.float64)
    dots = m @ q
    norms = np.linalg.norm(m, axis=1) * np.linalg.norm(q)
    scores = np.divide(dots, norms, out=np.zeros_like(dots), where=norms != 0)
    return [float(s) for s in scores]


def rank(
    query: Sequence[float],
    documents: Sequence[StoredDocument],
    limit: int,
) -> list[SearchResult]:
    """Top `limit` documents by cosine similarity, best first."""
    if limit < 0:
        raise ValueError("limit must be >= 0")
    if limit == 0 or not documents:
        return []

    scored = list(zip(documents, similarities(query, documents)))
    scored.sort(key=lambda pair: pair[1], reverse=True)

    return [
        SearchResult(content=doc.content, metadata=doc.metadata, similarity=score)
        for doc, score in scored[:limit]
    ]
