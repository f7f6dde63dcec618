"""Exception and warning types raised by the retrieval engine."""

from __future__ import annotations


class RankingError(Exception):
    """Base class for errors raised by ranking_proximity."""


class IndexAlreadyBuiltError(RankingError, RuntimeError):
    """Raised when documents are indexed into an index that is already built."""


class DocumentLoadError(RankingError, OSError):
    """Raised when a document or corpus directory cannot be read."""


class DuplicateDocumentError(RankingError, ValueError):
    """Raised when the same document is passed to an index more than once."""


class RatingOutOfRangeWarning(UserWarning):
    """Emitted when a feedback rating falls outside [-1, 1] and is neutralized."""


__all__ = [
    "RankingError",
    "IndexAlreadyBuiltError",
    "DocumentLoadError",
    "DuplicateDocumentError",
    "RatingOutOfRangeWarning",
]
