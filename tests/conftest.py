import pytest

from ranking_proximity.index import InvertedIndex


@pytest.fixture
def animal_texts():
    return {
        "doc1": "cat dog cat",
        "doc2": "fish fish",
    }


@pytest.fixture
def animal_index(animal_texts):
    return InvertedIndex.from_texts(animal_texts)


@pytest.fixture
def corpus_dir(tmp_path):
    texts = {
        "a.txt": "The quick brown fox jumps over the lazy dog.",
        "b.txt": "A lazy dog sleeps while the brown cat watches the fox.",
        "c.txt": "Information retrieval ranks documents for a query.",
        "d.txt": "Proximity of query terms matters in retrieval of documents.",
    }
    for name, text in texts.items():
        (tmp_path / name).write_text(text, encoding="utf-8")
    return tmp_path
