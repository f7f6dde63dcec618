"""
Proximity-enhanced retrieval.

ProximityRetriever builds the bag-of-words index and the positional index in
the same pass over the corpus. Retrieval first computes cosine similarity over
the bag-of-words index, then divides each candidate's cosine by its proximity
distance:

    score = cosine / distance

so documents whose query terms occur close together and in query order move up.
"""

from __future__ import annotations

from collections.abc import Sequence

from ranking_proximity.config import DOC_TYPE_TEXT, ProximityConfig
from ranking_proximity.documents import Document
from ranking_proximity.index import InvertedIndex
from ranking_proximity.positional import PositionalIndex
from ranking_proximity.proximity import ProximityScorer
from ranking_proximity.retrieval import Retrieval, rank_retrievals
from ranking_proximity.vectors import TermVector


class ProximityRetriever(InvertedIndex):
    """
    Inverted index with a parallel positional index and proximity ranking.

    Args:
        doc_type: Document type ("text" or "html").
        stem: Whether tokens are Porter-stemmed.
        proximity: Proximity strategy and penalties.
        show_progress: Show a tqdm progress bar while indexing.
    """

    def __init__(
        self,
        doc_type: str = DOC_TYPE_TEXT,
        stem: bool = False,
        proximity: ProximityConfig | None = None,
        show_progress: bool = False,
    ):
        super().__init__(doc_type=doc_type, stem=stem, show_progress=show_progress)
        self.positional_index = PositionalIndex()
        self.scorer = ProximityScorer(self.positional_index, proximity)

    @property
    def proximity_config(self) -> ProximityConfig:
        return self.scorer.config

    def _index_document(self, document: Document) -> None:
        super()._index_document(document)
        self.positional_index.add_document(document.reference, document.positional_token_stream())

    def _compute_idf_and_document_lengths(self) -> None:
        super()._compute_idf_and_document_lengths()
        self.positional_index.mirror_idf(self.token_infos)

    def clear(self) -> None:
        super().clear()
        self.positional_index.clear()

    def retrieve(self, query: str | TermVector, order: Sequence[str] | None = None) -> list[Retrieval]:
        """
        Rank documents for a query string or vector.

        Args:
            query: Raw query text, or a term vector (e.g. a reformulated query).
            order: Unique query terms in query order. Taken from the text for string
                queries; for vectors without an explicit order the positively
                weighted terms are sorted, which keeps results deterministic but
                loses the order signal. Terms pushed away by negative feedback do
                not take part in proximity.
        """
        if isinstance(query, str):
            query_vector = self.query_vector(query)
            if order is None:
                order = self.query_order(query)
        else:
            query_vector = query
            if order is None:
                order = sorted(token for token, weight in query_vector.items() if weight > 0.0)

        results = []
        for doc_ref, cosine in self.cosine_scores(query_vector).items():
            distance = self.scorer.distance(order, doc_ref)
            results.append(Retrieval(doc_ref, self.scorer.combine(cosine, distance), cosine, distance))
        return rank_retrievals(results)


__all__ = ["ProximityRetriever"]
