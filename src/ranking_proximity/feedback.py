"""
Relevance feedback by Rocchio query reformulation.

Given the original query Q and documents the user marked relevant (good) or
irrelevant (bad), the reformulated query is

    Q' = alpha * norm(Q) + sum_good(beta * w_d * norm(D)) - sum_bad(gamma * w_d * norm(D))

where norm(V) scales V so its largest weight is 1, which keeps long documents
from dominating by sheer magnitude. With binary feedback w_d = 1. With rated
feedback w_d is the document's rating for good documents and the magnitude of
its (negative) rating for bad ones.

Document vectors are always re-derived by loading the document through its
reference with the index's tokenizer settings.
"""

from __future__ import annotations

import math
import warnings
from collections.abc import Sequence
from concurrent.futures import ThreadPoolExecutor
from typing import TYPE_CHECKING

from ranking_proximity.config import FeedbackConfig
from ranking_proximity.documents import DocumentReference
from ranking_proximity.errors import RatingOutOfRangeWarning
from ranking_proximity.retrieval import Retrieval
from ranking_proximity.vectors import TermVector

if TYPE_CHECKING:
    from ranking_proximity.index import InvertedIndex

# Feedback documents are loaded on a thread pool once there are at least this many.
DEFAULT_NUM_WORKERS = 8
MIN_DOCS_FOR_PARALLEL = 8

NEUTRAL_RATING = 0.0


def scaled_to_max(vector: TermVector, factor: float = 1.0) -> TermVector:
    """Copy of `vector` scaled by `factor / max_weight`; unscaled by max when that is not positive."""
    scaled = vector.copy()
    max_weight = scaled.max_weight()
    if max_weight > 0.0:
        return scaled.multiply(factor / max_weight)
    return scaled.multiply(factor)


class Feedback:
    """
    Binary relevance feedback for one query.

    Args:
        query_vector: The query being reformulated.
        retrievals: Ranked results shown to the user (for rank-based lookups).
        index: Index whose tokenizer settings are used to load documents.
        config: Rocchio weights.
    """

    def __init__(
        self,
        query_vector: TermVector,
        retrievals: Sequence[Retrieval] | None = None,
        index: InvertedIndex | None = None,
        config: FeedbackConfig | None = None,
    ):
        self.query_vector = query_vector
        self.retrievals: list[Retrieval] = list(retrievals or [])
        self.index = index
        self.config = config or FeedbackConfig()
        self.good_refs: list[DocumentReference] = []
        self.bad_refs: list[DocumentReference] = []

    def __repr__(self) -> str:
        return f"{type(self).__name__}(good={self.good_refs}, bad={self.bad_refs})"

    # ------------------------------------------------------------------
    # Recording feedback
    # ------------------------------------------------------------------

    def add_good(self, doc_ref: DocumentReference) -> None:
        self._mark(doc_ref, self.good_refs, self.bad_refs)

    def add_bad(self, doc_ref: DocumentReference) -> None:
        self._mark(doc_ref, self.bad_refs, self.good_refs)

    @staticmethod
    def _mark(
        doc_ref: DocumentReference,
        target: list[DocumentReference],
        other: list[DocumentReference],
    ) -> None:
        if doc_ref in other:
            other.remove(doc_ref)
        if doc_ref not in target:
            target.append(doc_ref)

    def is_empty(self) -> bool:
        return not self.good_refs and not self.bad_refs

    def reference_at(self, rank: int) -> DocumentReference:
        """Document at 1-based `rank` in the current retrievals."""
        if not 1 <= rank <= len(self.retrievals):
            raise IndexError(f"No such document number: {rank}")
        return self.retrievals[rank - 1].doc_ref

    def has_feedback(self, doc: DocumentReference | int) -> bool:
        """Whether a document (or the document at a 1-based rank) has been judged."""
        doc_ref = self.reference_at(doc) if isinstance(doc, int) else doc
        return doc_ref in self.good_refs or doc_ref in self.bad_refs

    # ------------------------------------------------------------------
    # Reformulation
    # ------------------------------------------------------------------

    def _pull(self, doc_ref: DocumentReference) -> float:
        return 1.0

    def _push(self, doc_ref: DocumentReference) -> float:
        return 1.0

    def _load_vector(self, doc_ref: DocumentReference) -> TermVector:
        if self.index is not None:
            document = doc_ref.get_document(self.index.doc_type, self.index.stem)
        else:
            document = doc_ref.get_document()
        return document.term_vector()

    def _load_vectors(self, doc_refs: Sequence[DocumentReference]) -> list[TermVector]:
        if len(doc_refs) < MIN_DOCS_FOR_PARALLEL:
            return [self._load_vector(doc_ref) for doc_ref in doc_refs]
        with ThreadPoolExecutor(max_workers=DEFAULT_NUM_WORKERS) as executor:
            return list(executor.map(self._load_vector, doc_refs))

    def new_query(self) -> TermVector:
        """Rocchio-reformulated query vector."""
        query = scaled_to_max(self.query_vector, self.config.alpha)

        good = [ref for ref in self.good_refs if self.config.beta * self._pull(ref) != 0.0]
        for doc_ref, vector in zip(good, self._load_vectors(good)):
            query.add(scaled_to_max(vector, self.config.beta * self._pull(doc_ref)))

        bad = [ref for ref in self.bad_refs if self.config.gamma * self._push(ref) != 0.0]
        for doc_ref, vector in zip(bad, self._load_vectors(bad)):
            query.subtract(scaled_to_max(vector, self.config.gamma * self._push(doc_ref)))

        return query


class RatedFeedback(Feedback):
    """
    Feedback with continuous ratings in [-1, 1].

    A rating near +1 pulls the query strongly toward a document, a rating near -1
    pushes it strongly away. Ratings outside the range are replaced by the neutral
    0.0 with a RatingOutOfRangeWarning.
    """

    def __init__(
        self,
        query_vector: TermVector,
        retrievals: Sequence[Retrieval] | None = None,
        index: InvertedIndex | None = None,
        config: FeedbackConfig | None = None,
    ):
        super().__init__(query_vector, retrievals, index, config)
        self.ratings: dict[DocumentReference, float] = {}

    @staticmethod
    def check_rating(rating: float) -> float:
        """Return `rating` if it is a number in [-1, 1], otherwise warn and return 0.0."""
        try:
            value = float(rating)
        except (TypeError, ValueError):
            value = math.nan
        if math.isnan(value) or not -1.0 <= value <= 1.0:
            warnings.warn(
                f"Rating {rating!r} is outside [-1, 1]; using {NEUTRAL_RATING}.",
                RatingOutOfRangeWarning,
                stacklevel=3,
            )
            return NEUTRAL_RATING
        return value

    def add_good(self, doc_ref: DocumentReference, rating: float = 1.0) -> None:
        super().add_good(doc_ref)
        self.ratings[doc_ref] = self.check_rating(rating)

    def add_bad(self, doc_ref: DocumentReference, rating: float = -1.0) -> None:
        super().add_bad(doc_ref)
        self.ratings[doc_ref] = self.check_rating(rating)

    def add_rating(self, doc_ref: DocumentReference, rating: float) -> bool:
        """
        Record a rating, routing positive ratings to good and negative to bad.

        Returns:
            True if feedback was recorded; a zero (or rejected) rating records nothing.
        """
        value = self.check_rating(rating)
        if value > 0.0:
            self.add_good(doc_ref, value)
        elif value < 0.0:
            self.add_bad(doc_ref, value)
        else:
            return False
        return True

    def get_rating(self, doc_ref: DocumentReference) -> float:
        return self.ratings.get(doc_ref, NEUTRAL_RATING)

    def _pull(self, doc_ref: DocumentReference) -> float:
        return self.get_rating(doc_ref)

    def _push(self, doc_ref: DocumentReference) -> float:
        return abs(self.get_rating(doc_ref))


__all__ = ["Feedback", "RatedFeedback", "scaled_to_max", "NEUTRAL_RATING"]
