import logging
import math

import numpy as np
import pytest

from ranking_proximity.documents import DocumentReference, references_from_directory, references_from_texts
from ranking_proximity.errors import DuplicateDocumentError, IndexAlreadyBuiltError
from ranking_proximity.feedback import Feedback, RatedFeedback
from ranking_proximity.index import InvertedIndex
from ranking_proximity.retriever import ProximityRetriever
from ranking_proximity.vectors import TermVector


def test_idf_is_log_of_inverse_document_frequency():
    index = InvertedIndex.from_texts({"a": "cat dog cat", "b": "fish fish", "c": "cat bird"})
    assert index.document_count == 3
    for token, token_info in index.token_infos.items():
        assert np.isclose(token_info.idf, np.log(3 / token_info.document_frequency)), token
        assert token_info.idf > 0.0
    assert np.isclose(index.idf("cat"), np.log(1.5))
    assert np.isclose(index.idf("bird"), np.log(3))
    assert index.idf("zebra") == 0.0


def test_tokens_in_every_document_are_pruned():
    index = InvertedIndex.from_texts({"doc1": "cat dog cat", "doc2": "dog cat"})
    assert index.size() == 0
    assert index.token_info("cat") is None
    assert index.retrieve("cat dog") == []


def test_cosine_score(animal_index):
    results = animal_index.retrieve("cat dog")
    assert [r.name for r in results] == ["doc1"]
    assert np.isclose(results[0].score, 3 / math.sqrt(10))
    assert results[0].cosine == results[0].score
    assert results[0].proximity is None


def test_document_lengths_match_surviving_weights():
    texts = {"a": "cat dog cat bird", "b": "fish fish dog", "c": "cat owl owl owl", "d": "dog bird"}
    index = InvertedIndex.from_texts(texts)
    for reference in index.doc_refs:
        vector = reference.get_document().term_vector()
        expected = math.sqrt(sum((index.idf(t) * count) ** 2 for t, count in vector.items()))
        assert np.isclose(reference.length, expected), reference.name


def test_query_scaling_does_not_change_scores(animal_index):
    query = animal_index.query_vector("cat dog cat")
    scaled = query.copy().multiply(3.5)
    original = animal_index.retrieve(query)
    rescaled = animal_index.retrieve(scaled)
    assert [r.name for r in original] == [r.name for r in rescaled]
    assert np.allclose([r.score for r in original], [r.score for r in rescaled])


def test_query_equal_to_document_scores_one():
    index = InvertedIndex.from_texts({"doc": "alpha beta gamma", "other": "delta"})
    results = index.retrieve("alpha beta gamma")
    assert [r.name for r in results] == ["doc"]
    assert np.isclose(results[0].score, 1.0)


@pytest.mark.parametrize(
    "texts, expected",
    [
        ({"a": "cat dog", "b": "cat dog", "c": "fish"}, ["a", "b"]),
        ({"b": "cat dog", "a": "cat dog", "c": "fish"}, ["b", "a"]),
    ],
)
def test_ties_keep_indexing_order(texts, expected):
    index = InvertedIndex.from_texts(texts)
    results = index.retrieve("cat")
    assert [r.name for r in results] == expected
    assert results[0].score == results[1].score


@pytest.mark.parametrize("query", ["zebra", "", "the and of", TermVector({"cat": 0.0})])
def test_queries_without_indexed_terms(animal_index, query):
    assert animal_index.retrieve(query) == []


def test_negative_query_weights(animal_index):
    results = animal_index.retrieve(TermVector({"cat": 1.0, "fish": -1.0}))
    assert [r.name for r in results] == ["doc1", "doc2"]
    assert results[0].score > 0.0 > results[1].score
    assert all(math.isfinite(r.score) for r in results)


def test_reindexing_raises(animal_index, animal_texts):
    references = list(animal_index.doc_refs)
    with pytest.raises(IndexAlreadyBuiltError):
        animal_index.index_documents(references)

    animal_index.clear()
    assert animal_index.document_count == 0
    animal_index.index_documents(references)
    assert animal_index.document_count == len(animal_texts)


def test_empty_index_cannot_be_rebuilt():
    index = InvertedIndex()
    index.index_documents([])
    assert index.retrieve("cat") == []
    with pytest.raises(IndexAlreadyBuiltError):
        index.index_documents([])


def test_from_directory(corpus_dir):
    index = InvertedIndex.from_directory(corpus_dir)
    assert [ref.name for ref in index.doc_refs] == ["a.txt", "b.txt", "c.txt", "d.txt"]
    assert [ref.doc_id for ref in index.doc_refs] == [0, 1, 2, 3]
    results = index.retrieve("retrieval documents")
    assert {r.name for r in results} == {"c.txt", "d.txt"}


def test_stemmed_index_matches_inflections():
    index = InvertedIndex.from_texts({"a": "the dog runs", "b": "a cat sleeps"}, stem=True)
    assert [r.name for r in index.retrieve("running dogs")] == ["a"]


def test_html_documents():
    texts = {
        "a.html": "<html><body><p>Proximity</p><script>query query</script></body></html>",
        "b.html": "<html><body><p>query ranking</p></body></html>",
    }
    index = InvertedIndex.from_texts(texts, doc_type="html")
    assert index.token_info("script") is None
    assert [r.name for r in index.retrieve("query")] == ["b.html"]


def test_from_records():
    records = [{"id": 1, "content": "cat"}, {"id": 2, "content": "dog"}]
    index = InvertedIndex.from_records(records)
    assert index.reference("2").doc_id == 1
    assert index.reference("3") is None
    assert [r.name for r in index.retrieve("dog")] == ["2"]


def test_indexing_is_logged(caplog, animal_texts):
    with caplog.at_level(logging.INFO, logger="ranking_proximity.index"):
        InvertedIndex.from_texts(animal_texts)
    assert "Indexed 2 documents with 3 unique terms." in caplog.text


@pytest.mark.parametrize("rated, expected_cls", [(False, Feedback), (True, RatedFeedback)])
def test_build_feedback(animal_index, rated, expected_cls):
    retrievals = animal_index.retrieve("cat")
    feedback = animal_index.build_feedback("cat", retrievals, rated=rated)
    assert type(feedback) is expected_cls
    assert feedback.query_vector == TermVector({"cat": 1.0})
    assert feedback.reference_at(1).name == "doc1"


def test_shared_references_do_not_leak_between_indexes():
    references = references_from_texts({"a": "cat dog", "b": "fish", "c": "bird"})
    first = InvertedIndex.from_references(references)
    before = [(r.name, r.score) for r in first.retrieve("cat")]

    extra = DocumentReference("z", text="cat cat owl")
    second = InvertedIndex.from_references([references[2], references[0], references[1], extra])

    assert [(r.name, r.score) for r in first.retrieve("cat")] == before
    assert np.isclose(before[0][1], 1 / math.sqrt(2))
    assert [ref.doc_id for ref in first.doc_refs] == [0, 1, 2]
    assert [ref.doc_id for ref in second.doc_refs] == [0, 1, 2, 3]
    assert [ref.doc_id for ref in references] == [-1, -1, -1]
    assert all(ref.length == 0.0 for ref in references)


def test_proximity_and_cosine_indexes_share_references():
    references = references_from_texts({"a": "cat dog", "b": "dog fish cat", "c": "bird"})
    plain = InvertedIndex.from_references(references)
    proximity = ProximityRetriever.from_references(references)
    assert [ref.doc_id for ref in plain.doc_refs] == [0, 1, 2]
    for expected, result in zip(plain.retrieve("cat dog"), proximity.retrieve("cat dog")):
        assert expected.name == result.name
        assert np.isclose(expected.cosine, result.cosine)


def test_duplicate_records_are_rejected():
    records = [{"id": 1, "content": "cat"}, {"id": 1, "content": "dog"}, {"id": 2, "content": "fish"}]
    with pytest.raises(DuplicateDocumentError):
        InvertedIndex.from_records(records)

    index = InvertedIndex()
    with pytest.raises(ValueError):
        index.index_documents([DocumentReference("x", text="cat"), DocumentReference("x", text="dog")])
    assert index.document_count == 0
    assert index.size() == 0


def test_duplicate_files_are_rejected(corpus_dir):
    references = references_from_directory(corpus_dir)
    with pytest.raises(DuplicateDocumentError):
        InvertedIndex.from_references(references + references[:1])
