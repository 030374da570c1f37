"""
Online preference learning from like/dislike reactions.

A user's profile is a mapping from (feature key, feature value) to a signed
weight. Every reaction transition adds the same delta to each feature of the
reacted case, so a weight is the running sum of all past feedback on that
feature value.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable, Mapping, NamedTuple, Optional, Protocol

from case_ranker.db.models import REACTION_VALUES
from case_ranker.exceptions import InvalidReactionError
from case_ranker.ranking.features import FeatureKey, extract_features

logger = logging.getLogger(__name__)


class PreferenceKey(NamedTuple):
    feature_key: FeatureKey
    feature_value: str


PreferenceMap = Mapping[PreferenceKey, float]


class PreferenceStore(Protocol):
    def increment(self, user_id: str, key: PreferenceKey, delta: float) -> None:
        """Atomically add delta to the weight, inserting the row when missing."""

    def load(self, user_id: str) -> dict[PreferenceKey, float]:
        ...


def validate_reaction(value: object) -> Optional[int]:
    # bool is an int subclass; True must not pass as a like.
    if value is None:
        return None
    if isinstance(value, bool) or value not in REACTION_VALUES:
        raise InvalidReactionError(value)
    return int(value)


def preference_delta(new_reaction: Optional[int], previous_reaction: Optional[int]) -> int:
    """Weight change implied by moving from previous_reaction to new_reaction."""
    if new_reaction is None:
        return -previous_reaction if previous_reaction is not None else 0
    if previous_reaction is not None:
        return new_reaction - previous_reaction
    return new_reaction


def build_preference_map(rows: Iterable[Any]) -> dict[PreferenceKey, float]:
    """
    Convert stored preference rows into a strongly keyed map.

    Rows with an unknown feature key are skipped with a warning.
    """

    preferences: dict[PreferenceKey, float] = {}
    for row in rows:
        if isinstance(row, Mapping):
            raw_key, value, weight = row["feature_key"], row["feature_value"], row["weight"]
        else:
            raw_key, value, weight = row.feature_key, row.feature_value, row.weight
        try:
            feature_key = FeatureKey(raw_key)
        except ValueError:
            logger.warning("Ignoring preference with unknown feature key %r", raw_key)
            continue
        preferences[PreferenceKey(feature_key, value)] = float(weight)
    return preferences


class PreferenceUpdater:
    """Applies reaction transitions to a user's preference weights."""

    def __init__(self, store: PreferenceStore) -> None:
        self.store = store

    def apply(
        self,
        user_id: str,
        case: Any,
        new_reaction: Optional[int],
        previous_reaction: Optional[int],
    ) -> list[tuple[PreferenceKey, int]]:
        """
        Add the transition delta to every feature of ``case``.

        Must be called exactly once per transition. Returns the applied
        (key, delta) pairs; store errors propagate to the caller.
        """

        new_reaction = validate_reaction(new_reaction)
        previous_reaction = validate_reaction(previous_reaction)

        features = extract_features(case)
        if not features:
            return []

        delta = preference_delta(new_reaction, previous_reaction)
        if delta == 0:
            return []

        applied: list[tuple[PreferenceKey, int]] = []
        for feature in features:
            key = PreferenceKey(feature.key, feature.value)
            self.store.increment(user_id, key, delta)
            applied.append((key, delta))

        logger.debug("Applied delta %+d to %d preferences for user %s", delta, len(applied), user_id)
        return applied
