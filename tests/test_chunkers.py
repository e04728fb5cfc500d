import pytest

from docrag.chunkers.recursive import DEFAULT_SEPARATORS, RecursiveCharacterChunker, split_text


def _words(n: int) -> str:
    return " ".join(f"w{i:03d}" for i in range(n))


def _reconstruct(text, chunks) -> str:
    """Rebuild the source from each chunk's non-overlapping part."""
    parts = []
    covered = 0
    for c in chunks:
        start, end = c.metadata["start_index"], c.metadata["end_index"]
        assert text[start:end] == c.text
        if start > covered:
            gap = text[covered:start]
            assert gap.strip() == ""
            parts.append(gap)
        parts.append(c.text[max(0, covered - start):])
        covered = max(covered, end)
    assert text[covered:].strip() == ""
    parts.append(text[covered:])
    return "".join(parts)


def test_sentence_scenario():
    chunks = split_text("The cat sat. The dog ran.", chunk_size=20, chunk_overlap=5)

    assert [c.text for c in chunks] == ["The cat sat.", "The dog ran."]
    assert all(len(c.text) <= 20 for c in chunks)
    assert [c.metadata["start_index"] for c in chunks] == [0, 13]


def test_chunks_are_in_source_order_with_positions():
    text = _words(200)
    chunks = split_text(text, chunk_size=100, chunk_overlap=20)

    assert [c.metadata["source_index"] for c in chunks] == list(range(len(chunks)))
    starts = [c.metadata["start_index"] for c in chunks]
    assert starts == sorted(starts)
    assert all(len(c.text) <= 100 for c in chunks)


def test_chunks_cover_the_whole_text():
    text = "\n\n".join(_words(60 + i * 7) + "." for i in range(4))
    chunks = split_text(text, chunk_size=150, chunk_overlap=30)

    assert _reconstruct(text, chunks) == text


def test_adjacent_chunks_overlap_within_bound():
    text = _words(200)
    chunks = split_text(text, chunk_size=100, chunk_overlap=20)

    assert len(chunks) > 2
    for prev, nxt in zip(chunks, chunks[1:]):
        overlap = prev.metadata["end_index"] - nxt.metadata["start_index"]
        assert 0 < overlap <= 20


def test_zero_overlap_produces_disjoint_chunks():
    text = _words(200)
    chunks = split_text(text, chunk_size=100, chunk_overlap=0)

    for prev, nxt in zip(chunks, chunks[1:]):
        assert prev.metadata["end_index"] <= nxt.metadata["start_index"]


def test_paragraph_break_is_preferred():
    text = "First paragraph is here.\n\nSecond paragraph is here."
    chunks = split_text(text, chunk_size=30, chunk_overlap=0)

    assert [c.text for c in chunks] == ["First paragraph is here.", "Second paragraph is here."]


def test_unbroken_text_falls_back_to_character_slices():
    text = "x" * 1050
    chunks = split_text(text, chunk_size=100, chunk_overlap=10)

    assert len(chunks) >= 11
    assert all(0 < len(c.text) <= 100 for c in chunks)
    assert chunks[-1].metadata["end_index"] == 1050
    assert _reconstruct(text, chunks) == text


def test_oversized_sentence_is_resplit_on_words():
    long_sentence = " ".join(["lorem"] * 60)  # 359 chars, no ". "
    text = f"Short intro.\n{long_sentence}"
    chunks = split_text(text, chunk_size=100, chunk_overlap=0)

    assert chunks[0].text == "Short intro."
    assert all(len(c.text) <= 100 for c in chunks)
    assert _reconstruct(text, chunks) == text


def test_line_metadata():
    chunks = split_text("alpha\nbeta\n\ngamma", chunk_size=100, chunk_overlap=0)

    assert len(chunks) == 1
    assert chunks[0].metadata["line_from"] == 1
    assert chunks[0].metadata["line_to"] == 4


def test_empty_and_blank_text():
    assert split_text("", chunk_size=100, chunk_overlap=0) == []
    assert split_text(" \n\n \n", chunk_size=100, chunk_overlap=0) == []


def test_metadata_is_read_only():
    chunk = split_text("Some text here.", chunk_size=100, chunk_overlap=0)[0]
    with pytest.raises(TypeError):
        chunk.metadata["source_index"] = 5


def test_cascade_always_ends_with_character_split():
    chunker = RecursiveCharacterChunker(chunk_size=10, chunk_overlap=0, separators=["\n"])
    assert chunker.separators == ("\n", "")
    assert all(len(c.text) <= 10 for c in chunker.split("abcdefghijklmnopqrstuvwxyz"))
    assert RecursiveCharacterChunker().separators == DEFAULT_SEPARATORS


def test_overlap_larger_than_size_is_rejected():
    with pytest.raises(ValueError):
        RecursiveCharacterChunker(chunk_size=100, chunk_overlap=101)


def test_offsets_with_repeated_lines():
    line = "same line here"
    text = "\n".join([line] * 30)

    chunks = split_text(text, chunk_size=100, chunk_overlap=90)

    assert len(chunks) == 25
    for i, c in enumerate(chunks):
        assert c.metadata["start_index"] == 15 * i
        assert c.metadata["line_from"] == i + 1
        assert c.metadata["line_to"] == i + 6
        assert text[c.metadata["start_index"]:c.metadata["end_index"]] == c.text
