"""Shared fixtures: sample documents, a recording generator, a loaded service."""

from __future__ import annotations

import pytest

from docrag.service import DocumentQAService

PARAGRAPHS = [
    "Photosynthesis converts sunlight into chemical energy inside green plant leaves.",
    "Volcanoes erupt molten magma when tectonic plates shift beneath the crust.",
    "Medieval castles were defended by archers standing on stone battlements.",
    "Neural networks learn weights through gradient descent and backpropagation.",
    "Coral reefs shelter thousands of marine species in warm tropical oceans.",
]

OTHER_PARAGRAPHS = [
    "Sourdough bread rises slowly because wild yeast ferments the flour overnight.",
    "Chess openings balance rapid development against control of central squares.",
]


class RecordingGenerator:
    """Generation backend stand-in that remembers what it was asked."""

    def __init__(self, answer: str = "stub answer", error: Exception | None = None):
        self.answer = answer
        self.error = error
        self.calls: list[tuple[str, list[str]]] = []

    def generate(self, query, passages):
        self.calls.append((query, list(passages)))
        if self.error is not None:
            raise self.error
        return self.answer


@pytest.fixture
def sample_text() -> str:
    return "\n\n".join(PARAGRAPHS)


@pytest.fixture
def other_text() -> str:
    return "\n\n".join(OTHER_PARAGRAPHS)


@pytest.fixture
def generator() -> RecordingGenerator:
    return RecordingGenerator()


@pytest.fixture
def service(generator) -> DocumentQAService:
    return DocumentQAService(generator=generator)


@pytest.fixture
def loaded_service(service, sample_text) -> DocumentQAService:
    service.ingest(sample_text, "science.txt", chunk_size=100, chunk_overlap=20)
    return service
