"""
Ranking metrics over ranked document ids.

`retrieved` is always a 1D array of document ids in rank order; `relevant` is a
1D array of the ids judged relevant. Graded NDCG takes a mapping from id to
gain instead.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence

import numpy as np

RECALL_LEVELS = np.linspace(0.0, 1.0, 11)


def precision_at_k(relevant: np.ndarray, retrieved: np.ndarray, k: int) -> float:
    """Fraction of the top k retrieved documents that are relevant."""
    if k <= 0:
        return 0.0
    hits = np.isin(retrieved[:k], relevant).sum()
    return float(hits / k)


def recall_at_k(relevant: np.ndarray, retrieved: np.ndarray, k: int) -> float:
    """Fraction of the relevant documents found in the top k."""
    if relevant.size == 0:
        return 0.0
    hits = np.isin(retrieved[:k], relevant).sum()
    return float(hits / relevant.size)


def average_precision(relevant: np.ndarray, retrieved: np.ndarray) -> float:
    """Mean of the precision values at each relevant document's rank."""
    if relevant.size == 0:
        return 0.0
    is_hit = np.isin(retrieved, relevant)
    if not is_hit.any():
        return 0.0
    ranks = np.flatnonzero(is_hit) + 1
    precisions = np.arange(1, ranks.size + 1) / ranks
    return float(precisions.sum() / np.unique(relevant).size)


def mean_average_precision(all_relevant: Sequence[np.ndarray], all_retrieved: Sequence[np.ndarray]) -> float:
    if not all_relevant:
        return 0.0
    return float(np.mean([average_precision(rel, ret) for rel, ret in zip(all_relevant, all_retrieved)]))


def recall_precision_points(relevant: np.ndarray, retrieved: np.ndarray) -> list[tuple[float, float]]:
    """(recall, precision) after each relevant document is retrieved."""
    if relevant.size == 0:
        return []
    total = np.unique(relevant).size
    ranks = np.flatnonzero(np.isin(retrieved, relevant)) + 1
    return [(hits / total, hits / rank) for hits, rank in enumerate(ranks.tolist(), start=1)]


def interpolated_precision(relevant: np.ndarray, retrieved: np.ndarray) -> np.ndarray:
    """
    Interpolated precision at the 11 standard recall levels 0.0, 0.1, ..., 1.0.

    The interpolated precision at level r is the maximum precision observed at
    any recall >= r (0 when that recall is never reached).
    """
    points = recall_precision_points(relevant, retrieved)
    curve = np.zeros(RECALL_LEVELS.size, dtype=np.float64)
    if not points:
        return curve
    recalls = np.array([r for r, _ in points])
    precisions = np.array([p for _, p in points])
    for i, level in enumerate(RECALL_LEVELS):
        reached = precisions[recalls >= level - 1e-12]
        curve[i] = reached.max() if reached.size else 0.0
    return curve


def ndcg_at_k(gains: Mapping[int, float], retrieved: np.ndarray, k: int) -> float:
    """
    Graded NDCG at rank k.

    Args:
        gains: Document id -> gain (e.g. a relevance rating); unlisted ids gain 0.
        retrieved: Ranked document ids.
        k: Cutoff.
    """
    if k <= 0:
        return 0.0
    discounts = 1.0 / np.log2(np.arange(2, k + 2))
    ranked = np.array([gains.get(int(doc), 0.0) for doc in retrieved[:k]], dtype=np.float64)
    dcg = float(np.sum(ranked * discounts[: ranked.size]))

    ideal = np.sort(np.array([g for g in gains.values() if g > 0], dtype=np.float64))[::-1][:k]
    idcg = float(np.sum(ideal * discounts[: ideal.size]))
    return dcg / idcg if idcg > 0 else 0.0


def reciprocal_rank(relevant: np.ndarray, retrieved: np.ndarray) -> float:
    hits = np.flatnonzero(np.isin(retrieved, relevant))
    return float(1.0 / (hits[0] + 1)) if hits.size else 0.0


__all__ = [
    "RECALL_LEVELS",
    "precision_at_k",
    "recall_at_k",
    "average_precision",
    "mean_average_precision",
    "recall_precision_points",
    "interpolated_precision",
    "ndcg_at_k",
    "reciprocal_rank",
]
