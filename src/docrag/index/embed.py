from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

import numpy as np
from sklearn.feature_extraction.text import CountVectorizer

from .vocabulary import Vocabulary, build_vocabulary


def _pass_through(terms: Sequence[str]) -> Sequence[str]:
    return terms


def count_terms(docs: Sequence[Sequence[str]], vocabulary: Vocabulary) -> np.ndarray:
    """Dense ``(len(docs), len(vocabulary))`` term-count matrix.

    Documents are already tokenized. Terms missing from the vocabulary are
    ignored.
    """
    if len(vocabulary) == 0:
        return np.zeros((len(docs), 0), dtype=np.float64)
    counter = CountVectorizer(analyzer=_pass_through, vocabulary=dict(vocabulary.index))
    return counter.transform(list(docs)).toarray().astype(np.float64)


@dataclass(frozen=True, eq=False)
class TfidfModel:
    """TF-IDF weights for one loaded document.

    TF is ``count / number of tokens`` and IDF is ``ln(N / (df + 1))``. IDF
    goes negative for terms found in every chunk; that is left as is.
    """

    vocabulary: Vocabulary
    idf: np.ndarray
    n_documents: int

    @classmethod
    def fit(
        cls,
        tokenized_chunks: Sequence[Sequence[str]],
        vocabulary: Vocabulary | None = None,
    ) -> TfidfModel:
        docs = list(tokenized_chunks)
        if vocabulary is None:
            vocabulary = build_vocabulary(docs)

        n = len(docs)
        if n == 0:
            idf = np.zeros(len(vocabulary), dtype=np.float64)
        else:
            df = (count_terms(docs, vocabulary) > 0).sum(axis=0)
            idf = np.log(n / (df + 1.0))
        idf.setflags(write=False)
        return cls(vocabulary=vocabulary, idf=idf, n_documents=n)

    def transform(self, terms: Sequence[str]) -> np.ndarray:
        return self.transform_many([terms])[0]

    def transform_many(self, docs: Sequence[Sequence[str]]) -> np.ndarray:
        docs = list(docs)
        counts = count_terms(docs, self.vocabulary)
        lengths = np.array([len(d) for d in docs], dtype=np.float64).reshape(-1, 1)
        # a document with no terms gets the zero vector instead of 0/0
        tf = np.divide(counts, lengths, out=np.zeros_like(counts), where=lengths > 0)
        return tf * self.idf


def vectorize(
    terms: Sequence[str],
    vocabulary: Vocabulary,
    corpus: Sequence[Sequence[str]],
) -> np.ndarray:
    """One-shot TF-IDF vector for ``terms`` against ``corpus``.

    Recomputes IDF on every call; pipelines fit a ``TfidfModel`` once instead.
    """
    return TfidfModel.fit(corpus, vocabulary).transform(terms)
