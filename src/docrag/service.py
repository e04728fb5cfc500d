from __future__ import annotations

from pathlib import Path

from .config import EngineConfig
from .extract_pages import read_document
from .generation import GenerationBackend
from .index.store import DocumentStore, IndexStatus
from .pipeline import IngestionPipeline, IngestSummary, QueryPipeline, QueryResult


class DocumentQAService:
    """Ingest / Query / Clear / Status over one shared ``DocumentStore``.

    Safe to call from several threads: ingestion publishes a finished index
    in one swap and every query reads a single snapshot.
    """

    def __init__(
        self,
        generator: GenerationBackend | None = None,
        config: EngineConfig | None = None,
        store: DocumentStore | None = None,
    ) -> None:
        self.config = config or EngineConfig()
        self.store = store or DocumentStore()
        self.ingestion = IngestionPipeline(self.store, self.config)
        self.queries = QueryPipeline(self.store, generator, self.config)

    def ingest(
        self,
        text: str,
        file_name: str = "document",
        chunk_size: int | None = None,
        chunk_overlap: int | None = None,
    ) -> IngestSummary:
        return self.ingestion.run(text, file_name, chunk_size=chunk_size, chunk_overlap=chunk_overlap)

    def ingest_file(
        self,
        path: Path | str,
        chunk_size: int | None = None,
        chunk_overlap: int | None = None,
    ) -> IngestSummary:
        path = Path(path)
        return self.ingest(read_document(path), path.name, chunk_size=chunk_size, chunk_overlap=chunk_overlap)

    def query(self, query: str, k: int | None = None) -> QueryResult:
        return self.queries.run(query, k)

    def clear(self) -> None:
        self.store.clear()

    def status(self) -> IndexStatus:
        return self.store.describe()
