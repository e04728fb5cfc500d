from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from ..clean import squash_whitespace


@dataclass
class RetrievalMetrics:
    n: int
    hit_at_1: float
    hit_at_3: float
    hit_at_5: float
    mrr: float
    avg_first_rank: float


def contains_expected(chunk_text: str, expected_text: str) -> bool:
    """Case- and whitespace-insensitive containment."""
    return squash_whitespace(expected_text).lower() in squash_whitespace(chunk_text).lower()


def first_hit_rank(chunk_texts: Sequence[str], expected_text: str) -> int | None:
    for rank, text in enumerate(chunk_texts, start=1):
        if contains_expected(text, expected_text):
            return rank
    return None


def compute_metrics(first_ranks: Sequence[int | None]) -> RetrievalMetrics:
    n = len(first_ranks)
    found = [r for r in first_ranks if r is not None]

    def hit_rate(cutoff: int) -> float:
        return sum(1 for r in found if r <= cutoff) / n if n else 0.0

    return RetrievalMetrics(
        n=n,
        hit_at_1=hit_rate(1),
        hit_at_3=hit_rate(3),
        hit_at_5=hit_rate(5),
        mrr=sum(1.0 / r for r in found) / n if n else 0.0,
        avg_first_rank=sum(found) / len(found) if found else float("inf"),
    )
