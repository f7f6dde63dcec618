"""Ranked retrieval results."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from ranking_proximity.documents import DocumentReference


@dataclass
class Retrieval:
    """
    One ranked document.

    Attributes:
        doc_ref: The retrieved document.
        score: Final rank key.
        cosine: Bag-of-words cosine similarity.
        proximity: Proximity distance used to adjust the cosine, or None when the
            result came from a cosine-only retriever.
    """

    doc_ref: DocumentReference
    score: float
    cosine: float
    proximity: float | None = None

    @property
    def name(self) -> str:
        return self.doc_ref.name

    @property
    def has_proximity(self) -> bool:
        return self.proximity is not None


def rank_retrievals(retrievals: Iterable[Retrieval]) -> list[Retrieval]:
    """Sort by descending score; ties keep the documents' indexing order."""
    return sorted(retrievals, key=lambda r: (-r.score, r.doc_ref.doc_id))


__all__ = ["Retrieval", "rank_retrievals"]
