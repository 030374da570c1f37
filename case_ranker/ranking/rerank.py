"""
Blend base retrieval order with a user's learned preferences.
"""

from __future__ import annotations

from dataclasses import dataclass
from math import inf
from typing import Optional, Sequence

from case_ranker.db.models import CaseRecord
from case_ranker.ranking.features import extract_features
from case_ranker.ranking.preferences import PreferenceKey, PreferenceMap

# (max total feedback magnitude, alpha, beta); first matching tier wins.
# alpha never reaches 0 so topical relevance always counts.
BLEND_TIERS: tuple[tuple[float, float, float], ...] = (
    (20, 0.8, 0.2),
    (50, 0.7, 0.3),
    (inf, 0.6, 0.4),
)


@dataclass(slots=True)
class RankedResult:
    case: CaseRecord
    relevance_score: Optional[float] = None
    user_reaction: Optional[int] = None


def feedback_magnitude(preferences: PreferenceMap) -> float:
    return sum(abs(weight) for weight in preferences.values())


def blend_weights(preferences: PreferenceMap) -> tuple[float, float]:
    """Return (alpha, beta) for the user's total feedback magnitude."""
    magnitude = feedback_magnitude(preferences)
    for threshold, alpha, beta in BLEND_TIERS:
        if magnitude <= threshold:
            return alpha, beta
    _, alpha, beta = BLEND_TIERS[-1]
    return alpha, beta


def personalization_score(case: CaseRecord, preferences: PreferenceMap) -> float:
    """Sum of preference weights over the case's features; unknown features add 0."""
    return sum(
        preferences.get(PreferenceKey(feature.key, feature.value), 0.0)
        for feature in extract_features(case)
    )


def rerank(cases: Sequence[CaseRecord], preferences: PreferenceMap) -> list[RankedResult]:
    """
    Order cases by alpha * base_score + beta * normalized personalization.

    base_score decays linearly with the input position, (N - i) / N, so it
    depends on the batch size N. Ties keep the input order. Without any
    preferences the input order is returned untouched and no score is set.
    """

    if not preferences:
        return [RankedResult(case=case) for case in cases]
    if not cases:
        return []

    alpha, beta = blend_weights(preferences)
    total = len(cases)
    raw_scores = [personalization_score(case, preferences) for case in cases]
    norm = max(1.0, max(abs(score) for score in raw_scores))

    ranked = [
        RankedResult(
            case=case,
            relevance_score=alpha * ((total - idx) / total) + beta * (raw_scores[idx] / norm),
        )
        for idx, case in enumerate(cases)
    ]
    # sorted() is stable, equal scores keep their retrieval order.
    return sorted(ranked, key=lambda result: result.relevance_score, reverse=True)
