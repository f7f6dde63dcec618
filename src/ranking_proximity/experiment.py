"""
Simulated relevance-feedback experiments.

For each judged query the experiment retrieves, treats the top N documents as
having been judged by a user (relevant ones as good, the rest as bad), reruns
the reformulated query and evaluates the result on the residual collection:
the feedback documents are removed from both the ranking and the relevant set,
so the feedback round gets no credit for documents the user already saw.

Modes:
    rated    good documents pull with their gold rating
    binary   good documents pull with rating 1.0
    control  no reformulation; only the residual removal is applied
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field

import numpy as np
from tqdm import tqdm

from ranking_proximity.config import FeedbackConfig
from ranking_proximity.feedback import RatedFeedback
from ranking_proximity.index import InvertedIndex
from ranking_proximity.metrics import (
    RECALL_LEVELS,
    average_precision,
    interpolated_precision,
    ndcg_at_k,
    precision_at_k,
    recall_at_k,
)
from ranking_proximity.retrieval import Retrieval

logger = logging.getLogger(__name__)

EXPERIMENT_MODES = ("rated", "binary", "control")


@dataclass
class QueryJudgment:
    """A query and the gold ratings of its judged documents (by document name; >0 is relevant)."""

    query: str
    ratings: Mapping[str, float]

    @property
    def relevant(self) -> list[str]:
        return [name for name, rating in self.ratings.items() if rating > 0]


@dataclass
class QueryResult:
    query: str
    positive: list[str]
    negative: list[str]
    ranking: list[str]
    precision: float
    recall: float
    average_precision: float
    ndcg: float
    curve: np.ndarray = field(repr=False)


@dataclass
class ExperimentReport:
    mode: str
    k: int
    results: list[QueryResult]

    def _mean(self, attr: str) -> float:
        if not self.results:
            return 0.0
        return float(np.mean([getattr(r, attr) for r in self.results]))

    @property
    def mean_precision(self) -> float:
        return self._mean("precision")

    @property
    def mean_recall(self) -> float:
        return self._mean("recall")

    @property
    def mean_average_precision(self) -> float:
        return self._mean("average_precision")

    @property
    def mean_ndcg(self) -> float:
        return self._mean("ndcg")

    @property
    def recall_precision_curve(self) -> np.ndarray:
        """Mean 11-point interpolated precision."""
        if not self.results:
            return np.zeros(RECALL_LEVELS.size)
        return np.mean([r.curve for r in self.results], axis=0)

    def summary(self) -> dict[str, float | int | str]:
        return {
            "mode": self.mode,
            "queries": len(self.results),
            f"precision@{self.k}": self.mean_precision,
            f"recall@{self.k}": self.mean_recall,
            "map": self.mean_average_precision,
            f"ndcg@{self.k}": self.mean_ndcg,
        }


class FeedbackExperiment:
    """
    Args:
        index: A built index (cosine-only or proximity-enhanced).
        num_feedback_docs: How many top documents receive simulated feedback.
        mode: "rated", "binary" or "control".
        config: Rocchio weights.
        k: Cutoff for precision, recall and NDCG.
    """

    def __init__(
        self,
        index: InvertedIndex,
        num_feedback_docs: int = 5,
        mode: str = "rated",
        config: FeedbackConfig | None = None,
        k: int = 10,
        show_progress: bool = False,
    ):
        if mode not in EXPERIMENT_MODES:
            raise ValueError(f"Unknown experiment mode {mode!r}; expected one of {EXPERIMENT_MODES}")
        if num_feedback_docs < 0:
            raise ValueError("num_feedback_docs must be non-negative")
        self.index = index
        self.num_feedback_docs = num_feedback_docs
        self.mode = mode
        self.config = config or FeedbackConfig()
        self.k = k
        self.show_progress = show_progress

    def simulate_feedback(
        self,
        retrievals: list[Retrieval],
        judgment: QueryJudgment,
    ) -> tuple[list[Retrieval], list[Retrieval]]:
        """Split the top N retrievals into judged-relevant and judged-irrelevant."""
        top = retrievals[: self.num_feedback_docs]
        positive = [r for r in top if judgment.ratings.get(r.name, 0.0) > 0]
        negative = [r for r in top if judgment.ratings.get(r.name, 0.0) <= 0]
        return positive, negative

    def reformulate(
        self,
        judgment: QueryJudgment,
        retrievals: list[Retrieval],
        positive: list[Retrieval],
        negative: list[Retrieval],
    ) -> list[Retrieval]:
        feedback = RatedFeedback(self.index.query_vector(judgment.query), retrievals, self.index, self.config)
        for retrieval in positive:
            rating = 1.0 if self.mode == "binary" else judgment.ratings[retrieval.name]
            feedback.add_good(retrieval.doc_ref, rating)
        for retrieval in negative:
            feedback.add_bad(retrieval.doc_ref, -1.0)
        return self.index.retrieve(feedback.new_query())

    def run_query(self, judgment: QueryJudgment) -> QueryResult:
        retrievals = self.index.retrieve(judgment.query)
        positive, negative = self.simulate_feedback(retrievals, judgment)

        final = retrievals
        if self.mode != "control" and (positive or negative):
            final = self.reformulate(judgment, retrievals, positive, negative)

        seen = {r.name for r in positive} | {r.name for r in negative}
        residual = [r for r in final if r.name not in seen]

        gains: dict[int, float] = {}
        for name in judgment.relevant:
            reference = self.index.reference(name)
            if reference is not None and name not in seen:
                gains[reference.doc_id] = float(judgment.ratings[name])

        relevant_ids = np.array(sorted(gains), dtype=np.int64)
        ranked_ids = np.array([r.doc_ref.doc_id for r in residual], dtype=np.int64)
        return QueryResult(
            query=judgment.query,
            positive=[r.name for r in positive],
            negative=[r.name for r in negative],
            ranking=[r.name for r in residual],
            precision=precision_at_k(relevant_ids, ranked_ids, self.k),
            recall=recall_at_k(relevant_ids, ranked_ids, self.k),
            average_precision=average_precision(relevant_ids, ranked_ids),
            ndcg=ndcg_at_k(gains, ranked_ids, self.k),
            curve=interpolated_precision(relevant_ids, ranked_ids),
        )

    def run(self, judgments: Iterable[QueryJudgment]) -> ExperimentReport:
        results = [
            self.run_query(judgment)
            for judgment in tqdm(judgments, desc="Queries", unit="query", disable=not self.show_progress)
        ]
        report = ExperimentReport(self.mode, self.k, results)
        logger.info("Feedback experiment (%s): %s", self.mode, report.summary())
        return report


__all__ = [
    "EXPERIMENT_MODES",
    "QueryJudgment",
    "QueryResult",
    "ExperimentReport",
    "FeedbackExperiment",
]
