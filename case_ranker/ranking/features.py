"""
Categorical features used as personalization signals.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Mapping, NamedTuple


class FeatureKey(str, Enum):
    NATURE_OF_SUIT = "nature_of_suit"
    CAUSE_OF_ACTION = "cause_of_action"
    ENTITY = "entity"
    SOURCE = "source"
    COURT_NAME = "court_name"
    JUDGE = "judge"


# Extraction order; fixed so results are deterministic.
FEATURE_ORDER: tuple[FeatureKey, ...] = (
    FeatureKey.NATURE_OF_SUIT,
    FeatureKey.CAUSE_OF_ACTION,
    FeatureKey.ENTITY,
    FeatureKey.SOURCE,
    FeatureKey.COURT_NAME,
    FeatureKey.JUDGE,
)


class FeatureTuple(NamedTuple):
    key: FeatureKey
    value: str


def _attribute(case: Any, name: str) -> Any:
    if isinstance(case, Mapping):
        return case.get(name)
    return getattr(case, name, None)


def extract_features(case: Any) -> list[FeatureTuple]:
    """
    Return the (key, value) pairs present on a case record.

    Accepts a CaseRecord or a row mapping. Attributes that are missing,
    not strings, or blank after trimming produce no tuple.
    """

    features: list[FeatureTuple] = []
    for key in FEATURE_ORDER:
        value = _attribute(case, key.value)
        if isinstance(value, str) and value.strip():
            features.append(FeatureTuple(key, value.strip()))
    return features
