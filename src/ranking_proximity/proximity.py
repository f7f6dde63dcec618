"""
Proximity scoring.

A document's proximity distance measures how close together, and how nearly in
query order, the query terms occur in it. Lower is better. The final rank key
divides the cosine score by this distance.

Two strategies are available (see ProximityConfig.strategy):

- nearest_pair: for every pair of unique query terms, the smallest distance
  between an occurrence of the first and its nearest neighbour of the second
  (either side, found by binary search); a neighbour on the wrong side of the
  query order has its distance multiplied by the order penalty. Pair distances
  are averaged. A pair with a missing term costs max_distance.
- min_span: the shortest window that contains every query term in query order,
  chained from each occurrence of the first term. A document with no such
  window costs max_distance.

Queries with fewer than two unique terms get the neutral distance 1.0.
"""

from __future__ import annotations

from collections.abc import Sequence
from itertools import combinations
from typing import TYPE_CHECKING

import numpy as np

from ranking_proximity.config import ProximityConfig
from ranking_proximity.documents import DocumentReference
from ranking_proximity.positional import PositionalIndex

if TYPE_CHECKING:
    from numpy.typing import NDArray

NEUTRAL_DISTANCE = 1.0


def closest_pair_distance(
    first: NDArray[np.int64],
    second: NDArray[np.int64],
    expect_forward: bool = True,
    order_penalty: float = 2.0,
    max_distance: float = 1000.0,
) -> float:
    """
    Smallest order-adjusted distance between occurrences of two terms.

    Args:
        first: Sorted positions of the term expected first when `expect_forward`.
        second: Sorted positions of the other term.
        expect_forward: Whether the query puts `first` before `second`.
        order_penalty: Multiplier for a neighbour on the wrong side.
        max_distance: Returned when either term is absent; also caps the result.

    Distinct terms never share a position, so the result is at least 1.
    """
    if first.size == 0 or second.size == 0:
        return max_distance

    insertion = np.searchsorted(second, first)
    in_range = insertion < second.size

    best = max_distance

    # Nearest occurrence of `second` after each occurrence of `first`.
    if np.any(in_range):
        after = (second[insertion[in_range]] - first[in_range]).astype(np.float64)
        if not expect_forward:
            after *= order_penalty
        best = min(best, float(after.min()))

    # Nearest occurrence of `second` before each occurrence of `first`.
    has_before = insertion > 0
    if np.any(has_before):
        before = (first[has_before] - second[insertion[has_before] - 1]).astype(np.float64)
        if expect_forward:
            before *= order_penalty
        best = min(best, float(before.min()))

    return best


def average_pair_distance(
    position_lists: Sequence[NDArray[np.int64]],
    order_penalty: float = 2.0,
    max_distance: float = 1000.0,
) -> float:
    """Mean closest-pair distance over all pairs; lists are in query order."""
    if len(position_lists) < 2:
        return NEUTRAL_DISTANCE
    distances = [
        closest_pair_distance(position_lists[i], position_lists[j], True, order_penalty, max_distance)
        for i, j in combinations(range(len(position_lists)), 2)
    ]
    return float(np.mean(distances))


def min_covering_span(
    position_lists: Sequence[NDArray[np.int64]],
    max_distance: float = 1000.0,
) -> float:
    """
    Shortest span (last position - first position) covering every term in order.

    Every occurrence of the first term seeds a chain that repeatedly jumps to the
    next occurrence of the following term; all seeds advance together.
    """
    if len(position_lists) < 2:
        return NEUTRAL_DISTANCE
    if any(positions.size == 0 for positions in position_lists):
        return max_distance

    starts = position_lists[0]
    current = starts
    valid = np.ones(starts.size, dtype=bool)
    for positions in position_lists[1:]:
        nxt = np.searchsorted(positions, current, side="right")
        valid &= nxt < positions.size
        current = positions[np.minimum(nxt, positions.size - 1)]

    if not np.any(valid):
        return max_distance
    span = float((current[valid] - starts[valid]).min())
    return min(span, max_distance)


class ProximityScorer:
    """
    Computes proximity distances against a positional index.

    Args:
        positional_index: Index holding per-document token positions.
        config: Strategy and penalty settings.
    """

    def __init__(self, positional_index: PositionalIndex, config: ProximityConfig | None = None):
        self.positional_index = positional_index
        self.config = config or ProximityConfig()

    def distance(self, query_order: Sequence[str], doc_ref: DocumentReference) -> float:
        """Proximity distance of `doc_ref` for query terms given in query order."""
        unique_terms = list(dict.fromkeys(query_order))
        if len(unique_terms) < 2:
            return NEUTRAL_DISTANCE

        position_lists = [self.positional_index.positions(term, doc_ref) for term in unique_terms]
        if self.config.strategy == "min_span":
            return min_covering_span(position_lists, self.config.max_distance)
        return average_pair_distance(position_lists, self.config.order_penalty, self.config.max_distance)

    @staticmethod
    def combine(cosine: float, distance: float) -> float:
        """Final rank key; a non-positive distance is treated as neutral."""
        if distance <= 0.0:
            distance = NEUTRAL_DISTANCE
        return cosine / distance


__all__ = [
    "NEUTRAL_DISTANCE",
    "closest_pair_distance",
    "average_pair_distance",
    "min_covering_span",
    "ProximityScorer",
]
