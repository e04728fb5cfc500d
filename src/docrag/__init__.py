"""Single-document question answering over a TF-IDF index.

A document is split into overlapping chunks, indexed with TF-IDF vectors and
searched by cosine similarity; the best passages go to an LLM for the answer.
Only one document is loaded at a time and a new ingestion replaces it.
"""

from .errors import (
    ConfigurationError,
    DimensionMismatchError,
    DocRagError,
    EmptyInputError,
    GenerationBackendError,
    NoDocumentLoadedError,
)
from .service import DocumentQAService

__all__ = [
    "ConfigurationError",
    "DimensionMismatchError",
    "DocRagError",
    "DocumentQAService",
    "EmptyInputError",
    "GenerationBackendError",
    "NoDocumentLoadedError",
]
