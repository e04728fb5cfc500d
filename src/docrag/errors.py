"""Error hierarchy for the retrieval engine.

Every error carries a stable ``kind`` string that callers can switch on, a
human-readable message, and a small ``details`` dict for debugging.
"""

from __future__ import annotations

from typing import Any, Sequence


class DocRagError(Exception):
    """Base class for all engine errors."""

    kind = "docrag_error"

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message

    def to_dict(self) -> dict[str, Any]:
        return {"kind": self.kind, "message": self.message, "details": dict(self.details)}


class ConfigurationError(DocRagError):
    """Invalid chunk size, overlap, top-k or config file. Raised before any work."""

    kind = "configuration_error"

    def __init__(
        self,
        message: str,
        field: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        details = details or {}
        if field:
            details["field"] = field
        super().__init__(message, details)


class EmptyInputError(DocRagError):
    """Blank document text, blank query, or a document without indexable terms."""

    kind = "empty_input"


class NoDocumentLoadedError(DocRagError):
    kind = "no_document_loaded"

    def __init__(
        self,
        message: str = "No document is loaded. Ingest a document before asking questions.",
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details)


class DimensionMismatchError(DocRagError):
    """Two vectors compared for similarity have different lengths.

    Indexed vectors and query vectors are always built over the same
    vocabulary, so seeing this means the index is corrupt.
    """

    kind = "dimension_mismatch"

    def __init__(self, expected: int, actual: int, details: dict[str, Any] | None = None) -> None:
        details = details or {}
        details.update({"expected": expected, "actual": actual})
        super().__init__(f"Vector dimensions differ: expected {expected}, got {actual}", details)


class GenerationBackendError(DocRagError):
    """The answer generation call failed.

    ``passages`` holds the ranked passages retrieved before the call, which
    are still valid and can be shown without an answer.
    """

    kind = "generation_backend_error"

    def __init__(
        self,
        message: str,
        passages: Sequence[Any] = (),
        details: dict[str, Any] | None = None,
    ) -> None:
        self.passages = tuple(passages)
        super().__init__(message, details)
