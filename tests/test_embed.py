import math

import numpy as np
import pytest

from docrag.index.embed import TfidfModel, count_terms, vectorize
from docrag.index.vocabulary import Vocabulary, build_vocabulary

CORPUS = [["cat", "sat", "cat"], ["dog", "ran"], ["dog", "sat"]]


def test_vocabulary_keeps_first_seen_order():
    vocab = build_vocabulary([["b", "a", "b"], ["c", "a"]])

    assert vocab.terms == ("b", "a", "c")
    assert dict(vocab.index) == {"b": 0, "a": 1, "c": 2}
    assert len(vocab) == 3
    assert "c" in vocab and "z" not in vocab


def test_vocabulary_rejects_duplicates():
    with pytest.raises(ValueError):
        Vocabulary(terms=("a", "a"))


def test_count_terms_skips_unknown_terms():
    vocab = build_vocabulary(CORPUS)
    counts = count_terms([["cat", "zebra", "cat", "ran"]], vocab)

    assert counts.tolist() == [[2.0, 0.0, 0.0, 1.0]]


def test_idf_formula():
    model = TfidfModel.fit(CORPUS)

    # cat, sat, dog, ran appear in 1, 2, 2, 1 of 3 chunks
    expected = [math.log(3 / 2), math.log(3 / 3), math.log(3 / 3), math.log(3 / 2)]
    np.testing.assert_allclose(model.idf, expected)
    assert model.n_documents == 3


def test_chunk_vector_is_tf_times_idf():
    model = TfidfModel.fit(CORPUS)
    vec = model.transform(CORPUS[0])

    np.testing.assert_allclose(vec, [2 / 3 * math.log(1.5), 0.0, 0.0, 0.0])
    assert vec.shape == (len(model.vocabulary),)


def test_idf_goes_negative_for_terms_in_every_chunk():
    corpus = [["the", "cat"], ["the", "dog"]]
    vec = vectorize(["the", "cat"], build_vocabulary(corpus), corpus)

    assert vec[0] == pytest.approx(0.5 * math.log(2 / 3))
    assert vec[0] < 0
    assert vec[1] == pytest.approx(0.0)


def test_unknown_query_terms_still_count_towards_length():
    vocab = build_vocabulary(CORPUS)
    vec = vectorize(["cat", "zebra"], vocab, CORPUS)

    assert vec[vocab.index["cat"]] == pytest.approx(0.5 * math.log(1.5))


def test_document_without_terms_gives_zero_vector():
    model = TfidfModel.fit(CORPUS)

    vec = model.transform([])
    assert vec.tolist() == [0.0] * 4
    assert not np.isnan(vec).any()


def test_one_shot_vectorize_matches_fitted_model():
    vocab = build_vocabulary(CORPUS)
    model = TfidfModel.fit(CORPUS, vocab)

    for doc in CORPUS:
        np.testing.assert_allclose(vectorize(doc, vocab, CORPUS), model.transform(doc))


def test_transform_many_stacks_rows():
    model = TfidfModel.fit(CORPUS)
    mat = model.transform_many(CORPUS)

    assert mat.shape == (3, 4)
    np.testing.assert_allclose(mat[1], model.transform(CORPUS[1]))


def test_idf_is_read_only():
    model = TfidfModel.fit(CORPUS)
    with pytest.raises(ValueError):
        model.idf[0] = 1.0
