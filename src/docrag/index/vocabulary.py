from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Iterable, Mapping, Sequence


@dataclass(frozen=True)
class Vocabulary:
    """Ordered set of terms. A term's position is its vector dimension."""

    terms: tuple[str, ...]
    index: Mapping[str, int] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        mapping = {t: i for i, t in enumerate(self.terms)}
        if len(mapping) != len(self.terms):
            raise ValueError("Vocabulary terms must be unique")
        object.__setattr__(self, "index", MappingProxyType(mapping))

    def __len__(self) -> int:
        return len(self.terms)

    def __contains__(self, term: object) -> bool:
        return term in self.index

    def __iter__(self):
        return iter(self.terms)


def build_vocabulary(tokenized_chunks: Iterable[Sequence[str]]) -> Vocabulary:
    """Collect unique terms across all chunks in first-seen order."""
    seen: dict[str, None] = {}
    for terms in tokenized_chunks:
        for t in terms:
            seen.setdefault(t, None)
    return Vocabulary(terms=tuple(seen))
