"""
Tunable parameters for proximity scoring and feedback reformulation.

Values are passed explicitly to the objects that use them. The `from_env`
constructors read overrides from the environment, which is how the command
line picks up its defaults:

    RANKING_PROXIMITY_STRATEGY        nearest_pair | min_span
    RANKING_PROXIMITY_ORDER_PENALTY   float > 1
    RANKING_PROXIMITY_MAX_DISTANCE    float > 0
    RANKING_PROXIMITY_ALPHA / _BETA / _GAMMA   non-negative floats
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Literal

DOC_TYPE_TEXT = "text"
DOC_TYPE_HTML = "html"
DOC_TYPES = (DOC_TYPE_TEXT, DOC_TYPE_HTML)

ENV_PREFIX = "RANKING_PROXIMITY_"

ProximityStrategy = Literal["nearest_pair", "min_span"]
PROXIMITY_STRATEGIES: tuple[str, ...] = ("nearest_pair", "min_span")


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(ENV_PREFIX + name)
    if raw is None or not raw.strip():
        return default
    return float(raw)


def check_doc_type(doc_type: str) -> str:
    if doc_type not in DOC_TYPES:
        raise ValueError(f"Unknown document type {doc_type!r}; expected one of {DOC_TYPES}")
    return doc_type


@dataclass(frozen=True)
class ProximityConfig:
    """
    Proximity scorer settings.

    Attributes:
        strategy: "nearest_pair" averages the closest order-adjusted distance over
            all pairs of unique query terms; "min_span" uses the shortest window
            covering every query term in query order.
        order_penalty: Multiplier applied to a pair distance whose occurrence order
            contradicts the query order.
        max_distance: Distance charged when a term (or an in-order span) is missing.
    """

    strategy: ProximityStrategy = "nearest_pair"
    order_penalty: float = 2.0
    max_distance: float = 1000.0

    def __post_init__(self) -> None:
        if self.strategy not in PROXIMITY_STRATEGIES:
            raise ValueError(
                f"Unknown proximity strategy {self.strategy!r}; expected one of {PROXIMITY_STRATEGIES}"
            )
        if self.order_penalty < 1.0:
            raise ValueError("order_penalty must be >= 1")
        if self.max_distance <= 0.0:
            raise ValueError("max_distance must be positive")

    @classmethod
    def from_env(cls) -> ProximityConfig:
        strategy = os.environ.get(ENV_PREFIX + "STRATEGY", "").strip() or "nearest_pair"
        return cls(
            strategy=strategy,  # type: ignore[arg-type]
            order_penalty=_env_float("ORDER_PENALTY", 2.0),
            max_distance=_env_float("MAX_DISTANCE", 1000.0),
        )


@dataclass(frozen=True)
class FeedbackConfig:
    """Rocchio weights: alpha for the original query, beta for relevant and gamma for irrelevant documents."""

    alpha: float = 1.0
    beta: float = 1.0
    gamma: float = 1.0

    def __post_init__(self) -> None:
        for name in ("alpha", "beta", "gamma"):
            if getattr(self, name) < 0.0:
                raise ValueError(f"{name} must be non-negative")

    @classmethod
    def from_env(cls) -> FeedbackConfig:
        return cls(
            alpha=_env_float("ALPHA", 1.0),
            beta=_env_float("BETA", 1.0),
            gamma=_env_float("GAMMA", 1.0),
        )


__all__ = [
    "DOC_TYPE_TEXT",
    "DOC_TYPE_HTML",
    "DOC_TYPES",
    "PROXIMITY_STRATEGIES",
    "ProximityConfig",
    "FeedbackConfig",
    "check_doc_type",
]
