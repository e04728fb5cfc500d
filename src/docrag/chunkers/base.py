from __future__ import annotations

from dataclasses import dataclass, field
from typing import Mapping, Protocol, Union

MetadataValue = Union[str, int, float, bool]


@dataclass(frozen=True)
class Page:
    page: int
    text: str


@dataclass(frozen=True)
class Chunk:
    text: str
    metadata: Mapping[str, MetadataValue] = field(default_factory=dict)

    @property
    def source_index(self) -> int:
        return int(self.metadata.get("source_index", -1))


class Chunker(Protocol):
    def split(self, text: str) -> list[Chunk]: ...
