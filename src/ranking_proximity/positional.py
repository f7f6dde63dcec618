"""
Positional index: token -> per-document sorted occurrence positions.

Positions are zero-based indices into the stopword-retaining token stream of a
document, so they measure real word distance. Because stopwords are kept here
and dropped from the bag-of-words side, a token's positional count may differ
from its bag-of-words count for the same document.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

import numpy as np

from ranking_proximity.documents import DocumentReference

if TYPE_CHECKING:
    from numpy.typing import NDArray

    from ranking_proximity.index import TokenInfo

EMPTY_POSITIONS: NDArray[np.int64] = np.array([], dtype=np.int64)
EMPTY_POSITIONS.setflags(write=False)


@dataclass(eq=False)
class PositionalPosting:
    """Occurrences of a token in one document."""

    doc_ref: DocumentReference
    positions: NDArray[np.int64]

    @property
    def count(self) -> int:
        return len(self.positions)


@dataclass(eq=False)
class PositionalTokenInfo:
    """IDF mirrored from the bag-of-words index plus positional postings."""

    idf: float = 0.0
    postings: list[PositionalPosting] = field(default_factory=list)
    _by_doc: dict[DocumentReference, PositionalPosting] = field(default_factory=dict, repr=False)

    def add(self, posting: PositionalPosting) -> None:
        self.postings.append(posting)
        self._by_doc[posting.doc_ref] = posting

    def posting_for(self, doc_ref: DocumentReference) -> PositionalPosting | None:
        return self._by_doc.get(doc_ref)


class PositionalIndex:
    """Token -> PositionalTokenInfo, filled one document at a time and then finalized."""

    def __init__(self):
        self.token_infos: dict[str, PositionalTokenInfo] = {}

    def __len__(self) -> int:
        return len(self.token_infos)

    def __contains__(self, token: object) -> bool:
        return token in self.token_infos

    def add_document(self, doc_ref: DocumentReference, token_stream: Iterable[str]) -> None:
        """Record the position of every token in the stream."""
        term_positions: dict[str, list[int]] = {}
        for position, token in enumerate(token_stream):
            term_positions.setdefault(token, []).append(position)

        for token, positions in term_positions.items():
            array = np.sort(np.asarray(positions, dtype=np.int64))
            array.setflags(write=False)
            token_info = self.token_infos.get(token)
            if token_info is None:
                token_info = self.token_infos[token] = PositionalTokenInfo()
            token_info.add(PositionalPosting(doc_ref, array))

    def mirror_idf(self, token_infos: Mapping[str, TokenInfo]) -> None:
        """Copy IDF values from the finalized bag-of-words index."""
        for token, token_info in token_infos.items():
            positional = self.token_infos.get(token)
            if positional is not None:
                positional.idf = token_info.idf

    def idf(self, token: str) -> float:
        token_info = self.token_infos.get(token)
        return token_info.idf if token_info is not None else 0.0

    def token_info(self, token: str) -> PositionalTokenInfo | None:
        return self.token_infos.get(token)

    def positions(self, token: str, doc_ref: DocumentReference) -> NDArray[np.int64]:
        """Sorted positions of `token` in `doc_ref` (empty when it does not occur)."""
        token_info = self.token_infos.get(token)
        if token_info is None:
            return EMPTY_POSITIONS
        posting = token_info.posting_for(doc_ref)
        return posting.positions if posting is not None else EMPTY_POSITIONS

    def clear(self) -> None:
        self.token_infos.clear()


__all__ = ["PositionalPosting", "PositionalTokenInfo", "PositionalIndex", "EMPTY_POSITIONS"]
