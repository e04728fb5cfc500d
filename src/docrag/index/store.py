from __future__ import annotations

"""In-memory document index with single-document replace semantics.

``DocumentStore`` holds at most one ``DocumentIndex``. A new index is built
completely before it is published with a single reference swap, and every
installed index is immutable, so a reader that took a ``snapshot()`` keeps a
consistent view no matter what ingestion or ``clear()`` does afterwards.
"""

import logging
import threading
from dataclasses import dataclass, field
from typing import Sequence

import numpy as np

from ..chunkers.base import Chunk
from .embed import TfidfModel
from .vocabulary import Vocabulary

logger = logging.getLogger(__name__)


@dataclass(frozen=True, eq=False)
class IndexedChunk:
    chunk: Chunk
    vector: np.ndarray


@dataclass(frozen=True, eq=False)
class DocumentIndex:
    chunks: tuple[IndexedChunk, ...]
    vocabulary: Vocabulary
    tokenized_chunks: tuple[tuple[str, ...], ...]
    file_name: str
    model: TfidfModel
    matrix: np.ndarray = field(init=False, repr=False)

    def __post_init__(self) -> None:
        dim = len(self.vocabulary)
        for ic in self.chunks:
            if ic.vector.shape != (dim,):
                raise ValueError(
                    f"Indexed vector has shape {ic.vector.shape}, expected ({dim},) for this vocabulary"
                )
        if self.chunks:
            matrix = np.vstack([ic.vector for ic in self.chunks])
        else:
            matrix = np.zeros((0, dim), dtype=np.float64)
        matrix.setflags(write=False)
        object.__setattr__(self, "matrix", matrix)

    def __len__(self) -> int:
        return len(self.chunks)

    @classmethod
    def build(
        cls,
        chunks: Sequence[Chunk],
        vocabulary: Vocabulary,
        tokenized_chunks: Sequence[Sequence[str]],
        file_name: str,
        model: TfidfModel | None = None,
    ) -> DocumentIndex:
        """Vectorize ``chunks`` and freeze everything into a new index."""
        if len(chunks) != len(tokenized_chunks):
            raise ValueError(
                f"Got {len(chunks)} chunks but {len(tokenized_chunks)} token lists"
            )
        if model is None:
            model = TfidfModel.fit(tokenized_chunks, vocabulary)
        elif model.vocabulary is not vocabulary and model.vocabulary.terms != vocabulary.terms:
            raise ValueError("TF-IDF model was fitted on a different vocabulary")

        vectors = model.transform_many(tokenized_chunks)
        indexed = []
        for chunk, vec in zip(chunks, vectors):
            vec = vec.copy()
            vec.setflags(write=False)
            indexed.append(IndexedChunk(chunk=chunk, vector=vec))

        return cls(
            chunks=tuple(indexed),
            vocabulary=vocabulary,
            tokenized_chunks=tuple(tuple(t) for t in tokenized_chunks),
            file_name=file_name,
            model=model,
        )


@dataclass(frozen=True)
class IndexStatus:
    loaded: bool
    file_name: str | None

    def to_dict(self) -> dict:
        return {"loaded": self.loaded, "fileName": self.file_name}


class DocumentStore:
    """Owner of the one active document index."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._current: DocumentIndex | None = None

    def replace(
        self,
        chunks: Sequence[Chunk],
        vocabulary: Vocabulary,
        tokenized_chunks: Sequence[Sequence[str]],
        file_name: str,
        model: TfidfModel | None = None,
    ) -> DocumentIndex:
        index = DocumentIndex.build(chunks, vocabulary, tokenized_chunks, file_name, model=model)
        self.install(index)
        return index

    def install(self, index: DocumentIndex) -> None:
        with self._lock:
            previous = self._current
            self._current = index
        logger.info(
            "Installed index for %r (%d chunks, %d terms)%s",
            index.file_name,
            len(index),
            len(index.vocabulary),
            f", replacing {previous.file_name!r}" if previous is not None else "",
        )

    def clear(self) -> None:
        with self._lock:
            previous = self._current
            self._current = None
        if previous is not None:
            logger.info("Cleared index for %r", previous.file_name)

    def snapshot(self) -> DocumentIndex | None:
        with self._lock:
            return self._current

    def describe(self) -> IndexStatus:
        current = self.snapshot()
        if current is None or len(current) == 0:
            return IndexStatus(loaded=False, file_name=None)
        return IndexStatus(loaded=True, file_name=current.file_name)
