from __future__ import annotations

"""Ingestion and query orchestration.

Both pipelines receive the ``DocumentStore`` they work on. Ingestion builds
a complete index before publishing it; a query works against one snapshot
taken at its start.
"""

import enum
import logging
from dataclasses import dataclass, field
from typing import Any, Mapping

from .chunkers.recursive import RecursiveCharacterChunker
from .clean import tokenize
from .config import EngineConfig, validate_chunking, validate_top_k
from .errors import DocRagError, EmptyInputError, GenerationBackendError, NoDocumentLoadedError
from .generation import GenerationBackend
from .index.embed import TfidfModel
from .index.retrieve import RetrievedChunk, retrieve
from .index.store import DocumentIndex, DocumentStore
from .index.vocabulary import build_vocabulary

logger = logging.getLogger(__name__)


class IngestionState(str, enum.Enum):
    EMPTY = "empty"
    CHUNKING = "chunking"
    VECTORIZING = "vectorizing"
    LOADED = "loaded"
    FAILED = "failed"


@dataclass(frozen=True)
class IngestSummary:
    file_name: str
    total_chunks: int
    vocabulary_size: int
    chunk_size: int
    chunk_overlap: int
    text_length: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "fileName": self.file_name,
            "totalChunks": self.total_chunks,
            "vocabularySize": self.vocabulary_size,
            "chunkSize": self.chunk_size,
            "chunkOverlap": self.chunk_overlap,
            "textLength": self.text_length,
        }


@dataclass(frozen=True)
class RankedPassage:
    content: str
    similarity: float
    metadata: Mapping[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {"content": self.content, "similarity": self.similarity, "metadata": dict(self.metadata)}


@dataclass(frozen=True)
class QueryResult:
    query: str
    passages: tuple[RankedPassage, ...]
    answer: str | None
    file_name: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "query": self.query,
            "rankedPassages": [p.to_dict() for p in self.passages],
            "generatedAnswer": self.answer,
            "fileName": self.file_name,
        }


class IngestionPipeline:
    """Chunk -> tokenize -> vocabulary -> vectorize -> install, all or nothing."""

    def __init__(self, store: DocumentStore, config: EngineConfig | None = None) -> None:
        self.store = store
        self.config = config or EngineConfig()
        self._stage: IngestionState | None = None

    @property
    def state(self) -> IngestionState:
        """Stage of the run in progress, otherwise whatever the store holds."""
        if self._stage is not None:
            return self._stage
        return IngestionState.LOADED if self.store.describe().loaded else IngestionState.EMPTY

    def run(
        self,
        text: str,
        file_name: str = "document",
        chunk_size: int | None = None,
        chunk_overlap: int | None = None,
    ) -> IngestSummary:
        chunk_size = self.config.chunk_size if chunk_size is None else chunk_size
        chunk_overlap = self.config.chunk_overlap if chunk_overlap is None else chunk_overlap
        validate_chunking(chunk_size, chunk_overlap)
        if not text or not text.strip():
            raise EmptyInputError("Document text is empty", details={"file_name": file_name})

        try:
            index = self._build(text, file_name, chunk_size, chunk_overlap)
            self.store.install(index)
        except DocRagError as e:
            self._stage = IngestionState.FAILED
            logger.warning("Ingestion of %r failed, previous index kept: %s", file_name, e)
            raise
        except Exception:
            self._stage = IngestionState.FAILED
            logger.exception("Ingestion of %r failed, previous index kept", file_name)
            raise
        finally:
            self._stage = None

        return IngestSummary(
            file_name=file_name,
            total_chunks=len(index),
            vocabulary_size=len(index.vocabulary),
            chunk_size=chunk_size,
            chunk_overlap=chunk_overlap,
            text_length=len(text),
        )

    def _build(self, text: str, file_name: str, chunk_size: int, chunk_overlap: int) -> DocumentIndex:
        self._stage = IngestionState.CHUNKING
        chunker = RecursiveCharacterChunker(
            chunk_size=chunk_size,
            chunk_overlap=chunk_overlap,
            separators=self.config.separators,
        )
        chunks = chunker.split(text)
        if not chunks:
            raise EmptyInputError("Document produced no chunks", details={"file_name": file_name})
        logger.info("Split %r into %d chunks", file_name, len(chunks))

        self._stage = IngestionState.VECTORIZING
        tokenized = [tokenize(c.text) for c in chunks]
        vocabulary = build_vocabulary(tokenized)
        if len(vocabulary) == 0:
            raise EmptyInputError(
                "Document has no indexable terms (words of at least 3 characters)",
                details={"file_name": file_name},
            )
        logger.info("Vocabulary for %r has %d terms", file_name, len(vocabulary))

        model = TfidfModel.fit(tokenized, vocabulary)
        return DocumentIndex.build(chunks, vocabulary, tokenized, file_name, model=model)


class QueryPipeline:
    """Vectorize a query against one index snapshot, rank chunks, generate an answer."""

    def __init__(
        self,
        store: DocumentStore,
        generator: GenerationBackend | None = None,
        config: EngineConfig | None = None,
    ) -> None:
        self.store = store
        self.generator = generator
        self.config = config or EngineConfig()

    def retrieve(self, query: str, k: int | None = None) -> tuple[DocumentIndex, list[RankedPassage]]:
        k = self.config.top_k if k is None else k
        validate_top_k(k, self.config.max_top_k)
        if not query or not query.strip():
            raise EmptyInputError("Query is empty")

        snapshot = self.store.snapshot()
        if snapshot is None or len(snapshot) == 0:
            raise NoDocumentLoadedError()

        query_vector = snapshot.model.transform(tokenize(query))
        hits = retrieve(query_vector, snapshot, k)
        return snapshot, [_to_passage(h) for h in hits]

    def run(self, query: str, k: int | None = None) -> QueryResult:
        snapshot, passages = self.retrieve(query, k)

        answer = None
        if self.generator is None:
            logger.warning("No generation backend configured; returning passages only")
        else:
            try:
                answer = self.generator.generate(query, [p.content for p in passages])
            except GenerationBackendError as e:
                raise GenerationBackendError(e.message, passages=passages, details=e.details) from e
            except Exception as e:
                logger.error("Generation backend raised %s", type(e).__name__)
                raise GenerationBackendError(
                    f"Generation backend failed ({type(e).__name__})", passages=passages
                ) from e

        return QueryResult(query=query, passages=tuple(passages), answer=answer, file_name=snapshot.file_name)


def _to_passage(hit: RetrievedChunk) -> RankedPassage:
    return RankedPassage(content=hit.chunk.text, similarity=hit.similarity, metadata=hit.chunk.metadata)
