from __future__ import annotations

import logging
from dataclasses import dataclass

import numpy as np
from sklearn.metrics.pairwise import cosine_similarity as pairwise_cosine

from ..chunkers.base import Chunk
from ..errors import ConfigurationError, DimensionMismatchError, NoDocumentLoadedError
from .store import DocumentIndex

logger = logging.getLogger(__name__)


@dataclass
class RetrievalResult:
    idx: int
    score: float


@dataclass(frozen=True)
class RetrievedChunk:
    chunk: Chunk
    similarity: float


def _check_dims(expected: int, actual: int) -> None:
    if expected != actual:
        err = DimensionMismatchError(expected=expected, actual=actual)
        logger.error("Similarity computation aborted: %s", err)
        raise err


def cosine_similarity(a: np.ndarray, b: np.ndarray) -> float:
    """Cosine of the angle between two vectors.

    Defined as 0.0 when either vector has zero magnitude.
    """
    a = np.asarray(a, dtype=np.float64).ravel()
    b = np.asarray(b, dtype=np.float64).ravel()
    _check_dims(len(a), len(b))

    norm = float(np.linalg.norm(a) * np.linalg.norm(b))
    if norm == 0.0:
        return 0.0
    return float(np.clip(np.dot(a, b) / norm, -1.0, 1.0))


def topk_cosine(query_vec: np.ndarray, doc_matrix: np.ndarray, k: int = 5) -> list[RetrievalResult]:
    """Return the top-k rows of ``doc_matrix`` by cosine similarity.

    Ties keep row order. Zero rows (and a zero query) score 0.0.
    """
    q = np.asarray(query_vec, dtype=np.float64).reshape(1, -1)
    _check_dims(doc_matrix.shape[1], q.shape[1])
    if doc_matrix.shape[0] == 0:
        return []

    if q.shape[1] == 0:
        sims = np.zeros(doc_matrix.shape[0])
    else:
        # scikit leaves zero-norm rows at zero after normalizing
        sims = np.clip(pairwise_cosine(q, doc_matrix)[0], -1.0, 1.0)

    top_idx = np.argsort(-sims, kind="stable")[: min(k, len(sims))]
    return [RetrievalResult(idx=int(i), score=float(sims[i])) for i in top_idx]


def retrieve(query_vector: np.ndarray, index: DocumentIndex | None, k: int) -> list[RetrievedChunk]:
    """Rank the chunks of one index snapshot against a query vector."""
    if index is None or len(index) == 0:
        raise NoDocumentLoadedError()
    if k < 1:
        raise ConfigurationError(f"k must be at least 1, got {k}", field="k")

    results = topk_cosine(query_vector, index.matrix, k=k)
    logger.debug(
        "Retrieved %d of %d chunks from %r (top score %.4f)",
        len(results),
        len(index),
        index.file_name,
        results[0].score if results else 0.0,
    )
    return [RetrievedChunk(chunk=index.chunks[r.idx].chunk, similarity=r.score) for r in results]
