"""
Bag-of-words inverted index with TF-IDF cosine retrieval.

Construction is a single pass over the corpus followed by a finalization step:

    idf(t) = ln(N / df(t))

Tokens with idf == 0 (present in every document) are dropped from the index.
Each document's cached length is sqrt(sum((idf * count)^2)) over its surviving
tokens, and retrieval scores are

    cosine(q, d) = sum(idf^2 * qcount * dcount) / (|q| * |d|)

computed sparsely: only documents sharing a token with the query are scored.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any

import numpy as np
from tqdm import tqdm

from ranking_proximity.config import DOC_TYPE_TEXT, FeedbackConfig, check_doc_type
from ranking_proximity.documents import (
    Document,
    DocumentReference,
    references_from_directory,
    references_from_records,
    references_from_texts,
)
from ranking_proximity.errors import DuplicateDocumentError, IndexAlreadyBuiltError
from ranking_proximity.feedback import Feedback, RatedFeedback
from ranking_proximity.retrieval import Retrieval, rank_retrievals
from ranking_proximity.tokenizer import Tokenizer
from ranking_proximity.vectors import TermVector

if TYPE_CHECKING:
    from numpy.typing import NDArray

logger = logging.getLogger(__name__)


@dataclass
class Posting:
    """Occurrence of a token in one document."""

    doc_ref: DocumentReference
    count: int


@dataclass
class TokenInfo:
    """Inverse document frequency and postings for one token."""

    idf: float = 0.0
    postings: list[Posting] = field(default_factory=list)

    @property
    def document_frequency(self) -> int:
        return len(self.postings)


class InvertedIndex:
    """
    Inverted index over a document corpus.

    Args:
        doc_type: Document type ("text" or "html") used to read every document.
        stem: Whether tokens are Porter-stemmed.
        show_progress: Show a tqdm progress bar while indexing.

    Attributes:
        token_infos: token -> TokenInfo for every token with non-zero idf.
        doc_refs: Indexed documents in insertion order.
    """

    def __init__(self, doc_type: str = DOC_TYPE_TEXT, stem: bool = False, show_progress: bool = False):
        self.doc_type = check_doc_type(doc_type)
        self.stem = stem
        self.show_progress = show_progress
        self.token_infos: dict[str, TokenInfo] = {}
        self.doc_refs: list[DocumentReference] = []
        self._built = False
        self._query_tokenizer = Tokenizer(DOC_TYPE_TEXT, stem)

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    @classmethod
    def from_references(cls, references: Iterable[DocumentReference], **kwargs: Any):
        index = cls(**kwargs)
        index.index_documents(references)
        return index

    @classmethod
    def from_directory(cls, directory: str | Path, doc_type: str = DOC_TYPE_TEXT, stem: bool = False, **kwargs: Any):
        references = references_from_directory(directory, doc_type, stem)
        return cls.from_references(references, doc_type=doc_type, stem=stem, **kwargs)

    @classmethod
    def from_texts(
        cls,
        texts: Mapping[str, str] | Sequence[str],
        doc_type: str = DOC_TYPE_TEXT,
        stem: bool = False,
        **kwargs: Any,
    ):
        references = references_from_texts(texts, doc_type, stem)
        return cls.from_references(references, doc_type=doc_type, stem=stem, **kwargs)

    @classmethod
    def from_records(
        cls,
        records: Iterable[Mapping[str, Any]],
        id_field: str = "id",
        text_field: str = "content",
        doc_type: str = DOC_TYPE_TEXT,
        stem: bool = False,
        **kwargs: Any,
    ):
        references = references_from_records(records, id_field, text_field, doc_type, stem)
        return cls.from_references(references, doc_type=doc_type, stem=stem, **kwargs)

    def index_documents(self, references: Iterable[DocumentReference]) -> None:
        """
        Index every document, then compute IDFs and document lengths.

        The index stores its own copy of each reference; the references passed
        in are left untouched and may be indexed again elsewhere.

        Raises:
            IndexAlreadyBuiltError: if this index already holds documents.
            DuplicateDocumentError: if the same document appears twice.
        """
        if self._built or self.token_infos or self.doc_refs:
            raise IndexAlreadyBuiltError("Cannot index documents more than once.")

        sources = list(references)
        seen: set[DocumentReference] = set()
        for source in sources:
            if source in seen:
                raise DuplicateDocumentError(f"Document {source.name!r} appears more than once.")
            seen.add(source)

        for source in tqdm(sources, desc="Indexing", unit="doc", disable=not self.show_progress):
            reference = source.copy()
            reference.doc_type = self.doc_type
            reference.stem = self.stem
            reference.doc_id = len(self.doc_refs)
            self.doc_refs.append(reference)
            self._index_document(reference.get_document())

        self._compute_idf_and_document_lengths()
        self._built = True
        logger.info("Indexed %d documents with %d unique terms.", len(self.doc_refs), self.size())

    def _index_document(self, document: Document) -> None:
        reference = document.reference
        for token, count in document.term_vector().items():
            token_info = self.token_infos.get(token)
            if token_info is None:
                token_info = self.token_infos[token] = TokenInfo()
            token_info.postings.append(Posting(reference, int(count)))

    def _compute_idf_and_document_lengths(self) -> None:
        n_docs = len(self.doc_refs)
        if n_docs == 0:
            return
        tokens = list(self.token_infos)
        df = np.array([self.token_infos[t].document_frequency for t in tokens], dtype=np.float64)
        idf_values = np.log(n_docs / df)

        squared_lengths: NDArray[np.float64] = np.zeros(n_docs, dtype=np.float64)
        for token, idf in zip(tokens, idf_values):
            if idf == 0.0:
                del self.token_infos[token]
                continue
            token_info = self.token_infos[token]
            token_info.idf = float(idf)
            doc_ids = np.fromiter((p.doc_ref.doc_id for p in token_info.postings), dtype=np.int64)
            counts = np.fromiter((p.count for p in token_info.postings), dtype=np.float64)
            np.add.at(squared_lengths, doc_ids, (idf * counts) ** 2)

        for reference, length in zip(self.doc_refs, np.sqrt(squared_lengths)):
            reference.length = float(length)

    def clear(self) -> None:
        """Drop all indexed state so the index can be rebuilt."""
        self.token_infos.clear()
        self.doc_refs.clear()
        self._built = False

    # ------------------------------------------------------------------
    # Statistics
    # ------------------------------------------------------------------

    @property
    def document_count(self) -> int:
        return len(self.doc_refs)

    def size(self) -> int:
        """Number of unique (non-pruned) tokens."""
        return len(self.token_infos)

    def idf(self, token: str) -> float:
        token_info = self.token_infos.get(token)
        return token_info.idf if token_info is not None else 0.0

    def token_info(self, token: str) -> TokenInfo | None:
        return self.token_infos.get(token)

    def reference(self, name: str) -> DocumentReference | None:
        """Look up an indexed document by name."""
        for reference in self.doc_refs:
            if reference.name == name:
                return reference
        return None

    # ------------------------------------------------------------------
    # Retrieval
    # ------------------------------------------------------------------

    def query_vector(self, text: str) -> TermVector:
        """Term vector of a query string, tokenized like the indexed documents."""
        return self._query_tokenizer.term_vector(text)

    def query_order(self, text: str) -> list[str]:
        """Unique query tokens in order of first occurrence."""
        return self._query_tokenizer.ordered_unique_tokens(text)

    def retrieve(self, query: str | TermVector) -> list[Retrieval]:
        """Rank documents by cosine similarity to a query string or vector."""
        query_vector = self.query_vector(query) if isinstance(query, str) else query
        scores = self.cosine_scores(query_vector)
        return rank_retrievals(Retrieval(ref, cosine, cosine) for ref, cosine in scores.items())

    def cosine_scores(self, query_vector: TermVector) -> dict[DocumentReference, float]:
        """Cosine similarity for every document sharing a weighted token with the query."""
        dot_products: dict[DocumentReference, float] = {}
        query_length = 0.0
        for token, count in query_vector.items():
            query_length += self._incorporate_token(token, count, dot_products)
        query_length = math.sqrt(query_length)
        if query_length == 0.0:
            return {}
        return {
            reference: dot / (query_length * reference.length)
            for reference, dot in dot_products.items()
            if dot != 0.0 and reference.length > 0.0
        }

    def _incorporate_token(
        self,
        token: str,
        count: float,
        dot_products: dict[DocumentReference, float],
    ) -> float:
        """Add one query token to the running dot products; return its squared weight."""
        token_info = self.token_infos.get(token)
        if token_info is None or count == 0.0:
            return 0.0
        weight = token_info.idf * count
        for posting in token_info.postings:
            dot_products[posting.doc_ref] = (
                dot_products.get(posting.doc_ref, 0.0) + weight * token_info.idf * posting.count
            )
        return weight * weight

    def build_feedback(
        self,
        query: str | TermVector,
        retrievals: Sequence[Retrieval],
        rated: bool = False,
        config: FeedbackConfig | None = None,
    ) -> Feedback:
        """Start a feedback session for a query and the results shown for it."""
        query_vector = self.query_vector(query) if isinstance(query, str) else query
        feedback_cls = RatedFeedback if rated else Feedback
        return feedback_cls(query_vector, retrievals, self, config)


__all__ = ["Posting", "TokenInfo", "InvertedIndex"]
