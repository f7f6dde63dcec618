"""
Retrieval over precomputed dense embeddings.

Each document is a file holding one whitespace-separated vector. A query vector
is compared against every document by cosine similarity or by inverse Euclidean
distance.
"""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path
from typing import TYPE_CHECKING

import numpy as np
from scipy.spatial.distance import cdist

from ranking_proximity.documents import DocumentReference
from ranking_proximity.errors import DocumentLoadError
from ranking_proximity.retrieval import Retrieval, rank_retrievals

if TYPE_CHECKING:
    from numpy.typing import NDArray

EPSILON = 1e-12


def load_embedding(path: str | Path) -> NDArray[np.float64]:
    """Read a whitespace-separated vector from a file."""
    try:
        return np.atleast_1d(np.loadtxt(path, dtype=np.float64)).ravel()
    except (OSError, ValueError) as exc:
        raise DocumentLoadError(f"Could not load file: {path}") from exc


class DenseRetriever:
    """
    Args:
        references: One reference per embedding row.
        embeddings: Array of shape (n_docs, dimension).
        use_cosine: Rank by cosine similarity instead of inverse Euclidean distance.
    """

    def __init__(
        self,
        references: Sequence[DocumentReference],
        embeddings: NDArray[np.float64],
        use_cosine: bool = False,
    ):
        embeddings = np.asarray(embeddings, dtype=np.float64)
        if embeddings.ndim != 2 or embeddings.shape[0] != len(references):
            raise ValueError("embeddings must have one row per document reference")
        self.doc_refs = [reference.copy() for reference in references]
        self.embeddings = embeddings
        self.use_cosine = use_cosine
        for doc_id, (reference, norm) in enumerate(zip(self.doc_refs, np.linalg.norm(embeddings, axis=1))):
            reference.doc_id = doc_id
            reference.length = float(norm)

    @property
    def dimension(self) -> int:
        return int(self.embeddings.shape[1])

    @classmethod
    def from_directory(cls, directory: str | Path, use_cosine: bool = False) -> DenseRetriever:
        directory = Path(directory)
        if not directory.is_dir():
            raise DocumentLoadError(f"Not a directory: {directory}")
        files = sorted(p for p in directory.iterdir() if p.is_file())
        if not files:
            raise DocumentLoadError(f"No embedding files in {directory}")
        vectors = [load_embedding(p) for p in files]
        dimension = vectors[0].size
        for path, vector in zip(files, vectors):
            if vector.size != dimension:
                raise DocumentLoadError(f"{path} has dimension {vector.size}, expected {dimension}")
        references = [DocumentReference(p.name, path=p) for p in files]
        return cls(references, np.vstack(vectors), use_cosine)

    def _as_query(self, query: NDArray[np.float64]) -> NDArray[np.float64]:
        query = np.asarray(query, dtype=np.float64).reshape(1, -1)
        if query.shape[1] != self.dimension:
            raise ValueError(f"query has dimension {query.shape[1]}, expected {self.dimension}")
        return query

    def cosine_similarities(self, query: NDArray[np.float64]) -> NDArray[np.float64]:
        """Cosine similarity to every document; 0 where either vector is all zeros."""
        query = self._as_query(query)
        if np.linalg.norm(query) == 0.0:
            return np.zeros(len(self.doc_refs))
        with np.errstate(invalid="ignore", divide="ignore"):
            similarity = 1.0 - cdist(query, self.embeddings, metric="cosine")[0]
        return np.nan_to_num(similarity, nan=0.0)

    def scores(self, query: NDArray[np.float64]) -> NDArray[np.float64]:
        if self.use_cosine:
            return self.cosine_similarities(query)
        distances = cdist(self._as_query(query), self.embeddings, metric="euclidean")[0]
        return 1.0 / np.maximum(distances, EPSILON)

    def retrieve(self, query: NDArray[np.float64]) -> list[Retrieval]:
        """Rank every document against an embedded query."""
        scores = self.scores(query)
        cosine = scores if self.use_cosine else self.cosine_similarities(query)
        return rank_retrievals(
            Retrieval(ref, float(score), float(cos)) for ref, score, cos in zip(self.doc_refs, scores, cosine)
        )


__all__ = ["DenseRetriever", "load_embedding"]
