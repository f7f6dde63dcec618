import numpy as np

from ranking_proximity.index import InvertedIndex
from ranking_proximity.retriever import ProximityRetriever


def test_cosine_ordering_regression() -> None:
    """
    Regression check to guard cosine scoring:
    - Documents with repeated query terms should score higher than those with fewer matches.
    - Non-matching documents are not returned at all.
    """
    documents = [
        "foo foo foo bar",  # heavy tf on foo
        "foo bar baz",  # single foo/bar
        "baz qux",  # no query terms
    ]
    index = InvertedIndex.from_texts(documents)
    results = index.retrieve("foo bar")

    assert [r.name for r in results] == ["doc0", "doc1"]
    assert np.isclose(results[0].score, 4 / np.sqrt(20))
    assert np.isclose(results[1].score, 2 / np.sqrt(6))
    # Ensure score gaps are meaningful (avoid degenerate normalization).
    assert results[0].score - results[1].score > 0.05


def test_proximity_ordering_regression() -> None:
    """Adjacent query terms keep the cosine ordering; scattered ones fall behind."""
    documents = [
        "foo foo foo bar",
        "foo bar baz",
        "bar alpha beta gamma delta foo baz",
        "baz qux",
    ]
    retriever = ProximityRetriever.from_texts(documents)
    results = retriever.retrieve("foo bar")

    assert [r.name for r in results] == ["doc0", "doc1", "doc2"]
    assert [r.proximity for r in results] == [1.0, 1.0, 10.0]
    assert np.isclose(results[2].score, results[2].cosine / 10.0)
