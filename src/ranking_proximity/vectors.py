"""
Sparse term vectors.

A TermVector maps tokens to real weights. Absent tokens have weight 0, so
lookups never raise and arithmetic only touches the keys that are present.
"""

from __future__ import annotations

import math
from collections import Counter
from collections.abc import Iterable, Iterator, Mapping


class TermVector:
    """
    Sparse token -> weight mapping with in-place vector arithmetic.

    Args:
        weights: Optional initial weights (e.g. a Counter of term frequencies).
    """

    __slots__ = ("_weights",)

    def __init__(self, weights: Mapping[str, float] | None = None):
        self._weights: dict[str, float] = {}
        if weights:
            for token, weight in weights.items():
                self._weights[token] = float(weight)

    @classmethod
    def from_tokens(cls, tokens: Iterable[str]) -> TermVector:
        """Build a term-frequency vector from a token sequence."""
        return cls(Counter(tokens))

    def __len__(self) -> int:
        return len(self._weights)

    def __contains__(self, token: object) -> bool:
        return token in self._weights

    def __iter__(self) -> Iterator[str]:
        return iter(self._weights)

    def __getitem__(self, token: str) -> float:
        return self._weights.get(token, 0.0)

    def __setitem__(self, token: str, weight: float) -> None:
        self._weights[token] = float(weight)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, TermVector):
            return NotImplemented
        keys = self._weights.keys() | other._weights.keys()
        return all(self[k] == other[k] for k in keys)

    def __repr__(self) -> str:
        return f"TermVector({self._weights!r})"

    def items(self) -> Iterator[tuple[str, float]]:
        return iter(self._weights.items())

    def tokens(self) -> list[str]:
        """Tokens with a non-zero weight, in insertion order."""
        return [token for token, weight in self._weights.items() if weight != 0.0]

    def copy(self) -> TermVector:
        return TermVector(self._weights)

    def multiply(self, factor: float) -> TermVector:
        """Scale every weight by `factor` in place."""
        for token in self._weights:
            self._weights[token] *= factor
        return self

    def add(self, other: TermVector) -> TermVector:
        """Element-wise `self += other`."""
        for token, weight in other.items():
            self._weights[token] = self._weights.get(token, 0.0) + weight
        return self

    def subtract(self, other: TermVector) -> TermVector:
        """Element-wise `self -= other`."""
        for token, weight in other.items():
            self._weights[token] = self._weights.get(token, 0.0) - weight
        return self

    def max_weight(self) -> float:
        """Largest weight in the vector (0.0 when empty)."""
        return max(self._weights.values(), default=0.0)

    def dot(self, other: TermVector) -> float:
        """Dot product over the keys the two vectors share."""
        small, large = (self, other) if len(self) <= len(other) else (other, self)
        return sum(weight * large[token] for token, weight in small.items() if token in large)

    def length(self) -> float:
        """Euclidean length."""
        return math.sqrt(sum(weight * weight for weight in self._weights.values()))

    def to_dict(self) -> dict[str, float]:
        return dict(self._weights)


__all__ = ["TermVector"]
