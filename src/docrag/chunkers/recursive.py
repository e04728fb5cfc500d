from __future__ import annotations

import logging
import re
from collections import deque
from dataclasses import dataclass
from types import MappingProxyType
from typing import Sequence

from .base import Chunk

logger = logging.getLogger(__name__)

# Paragraph, line, sentence, word, character.
DEFAULT_SEPARATORS: tuple[str, ...] = ("\n\n", "\n", ". ", " ", "")

# (offset into the source text, text)
Span = tuple[int, str]


def _split_on_separator(text: str, separator: str) -> list[str]:
    """Split text, keeping each separator attached to the piece before it."""
    if separator == "":
        return list(text)
    pieces = re.split(f"(?<={re.escape(separator)})", text)
    return [p for p in pieces if p]


@dataclass
class RecursiveCharacterChunker:
    """Character-budget chunker with a prioritized separator cascade.

    Algorithm:
      1) Pick the first separator that occurs in the text and split on it.
      2) Greedily merge pieces shorter than ``chunk_size``. When the next piece
         would overflow, emit the chunk and drop leading pieces until at most
         ``chunk_overlap`` characters are carried into the next chunk.
      3) Pieces of ``chunk_size`` or more are split again with the separators
         that come after the current one.

    The cascade always ends with ``""`` (split into single characters), so
    every piece eventually fits and the recursion depth never exceeds
    ``len(separators)``.
    """

    chunk_size: int = 1000
    chunk_overlap: int = 100
    separators: Sequence[str] = DEFAULT_SEPARATORS

    def __post_init__(self) -> None:
        if self.chunk_size <= 0:
            raise ValueError(f"chunk_size must be positive, got {self.chunk_size}")
        if self.chunk_overlap < 0 or self.chunk_overlap > self.chunk_size:
            raise ValueError(
                f"chunk_overlap ({self.chunk_overlap}) must be between 0 and chunk_size ({self.chunk_size})"
            )
        seps = tuple(self.separators)
        if not seps or seps[-1] != "":
            seps = seps + ("",)
        self.separators = seps

    def split(self, text: str) -> list[Chunk]:
        chunks: list[Chunk] = []
        line_no, cursor = 1, 0

        for start, piece in self._split(text, 0, self.separators):
            stripped = piece.strip()
            if not stripped:
                continue
            start += len(piece) - len(piece.lstrip())
            # chunk starts never move backwards
            line_no += text.count("\n", cursor, start)
            cursor = start

            chunks.append(
                Chunk(
                    text=stripped,
                    metadata=MappingProxyType(
                        {
                            "source_index": len(chunks),
                            "start_index": start,
                            "end_index": start + len(stripped),
                            "line_from": line_no,
                            "line_to": line_no + stripped.count("\n"),
                        }
                    ),
                )
            )

        logger.debug(
            "Split %d characters into %d chunks (chunk_size=%d, chunk_overlap=%d)",
            len(text),
            len(chunks),
            self.chunk_size,
            self.chunk_overlap,
        )
        return chunks

    def _split(self, text: str, offset: int, separators: Sequence[str]) -> list[Span]:
        separator = separators[-1]
        remaining: Sequence[str] = ()
        for i, sep in enumerate(separators):
            if sep == "":
                separator = sep
                break
            if sep in text:
                separator = sep
                remaining = separators[i + 1 :]
                break

        out: list[Span] = []
        small: list[Span] = []
        pos = offset
        for piece in _split_on_separator(text, separator):
            start, pos = pos, pos + len(piece)
            if len(piece) < self.chunk_size:
                small.append((start, piece))
                continue

            if small:
                out.extend(self._merge(small))
                small = []
            if remaining:
                out.extend(self._split(piece, start, remaining))
            else:
                out.append((start, piece))

        if small:
            out.extend(self._merge(small))
        return out

    def _merge(self, spans: list[Span]) -> list[Span]:
        """Join adjacent spans into windows of at most ``chunk_size`` characters."""
        merged: list[Span] = []
        window: deque[Span] = deque()
        total = 0

        for start, piece in spans:
            size = len(piece)
            if window and total + size > self.chunk_size:
                merged.append((window[0][0], "".join(p for _, p in window)))
                # keep a tail of at most chunk_overlap chars that still leaves room for piece
                while total > self.chunk_overlap or (total + size > self.chunk_size and total > 0):
                    total -= len(window.popleft()[1])
            window.append((start, piece))
            total += size

        if window:
            merged.append((window[0][0], "".join(p for _, p in window)))
        return merged


def split_text(text: str, chunk_size: int, chunk_overlap: int) -> list[Chunk]:
    return RecursiveCharacterChunker(chunk_size=chunk_size, chunk_overlap=chunk_overlap).split(text)
