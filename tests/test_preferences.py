"""Tests for reaction deltas and the preference updater."""

import pytest

from case_ranker.exceptions import InvalidReactionError
from case_ranker.ranking.features import FeatureKey
from case_ranker.ranking.preferences import (
    PreferenceKey,
    PreferenceUpdater,
    build_preference_map,
    preference_delta,
    validate_reaction,
)

from conftest import FakePreferenceStore, make_case

CONTRACT = PreferenceKey(FeatureKey.NATURE_OF_SUIT, "Contract")
ACME = PreferenceKey(FeatureKey.ENTITY, "Acme")


@pytest.mark.parametrize(
    "new, previous, expected",
    [
        (1, None, 1),
        (-1, None, -1),
        (None, 1, -1),
        (None, -1, 1),
        (None, None, 0),
        (-1, 1, -2),
        (1, -1, 2),
        (1, 1, 0),
        (-1, -1, 0),
    ],
)
def test_preference_delta(new, previous, expected):
    assert preference_delta(new, previous) == expected


@pytest.mark.parametrize("value", [0, 2, -2, "1", 1.5, True])
def test_validate_reaction_rejects_malformed_values(value):
    with pytest.raises(InvalidReactionError):
        validate_reaction(value)


def test_validate_reaction_accepts_valid_values():
    assert validate_reaction(1) == 1
    assert validate_reaction(-1) == -1
    assert validate_reaction(None) is None


def test_first_like_creates_weights():
    store = FakePreferenceStore()
    case = make_case("c1", nature_of_suit="Contract", entity="Acme")

    applied = PreferenceUpdater(store).apply("user-1", case, 1, None)

    assert applied == [(CONTRACT, 1), (ACME, 1)]
    assert store.load("user-1") == {CONTRACT: 1, ACME: 1}


def test_dislike_on_other_case_only_touches_shared_feature():
    store = FakePreferenceStore()
    updater = PreferenceUpdater(store)
    updater.apply("user-1", make_case("c1", nature_of_suit="Contract", entity="Acme"), 1, None)

    updater.apply("user-1", make_case("c2", entity="Acme"), -1, None)

    assert store.load("user-1") == {CONTRACT: 1, ACME: 0}


def test_like_then_clear_restores_previous_weights():
    store = FakePreferenceStore({ACME: 3, CONTRACT: -2})
    before = store.load("user-1")
    case = make_case("c1", nature_of_suit="Contract", entity="Acme", judge="Hon. Reyes")
    updater = PreferenceUpdater(store)

    updater.apply("user-1", case, 1, None)
    updater.apply("user-1", case, None, 1)

    after = store.load("user-1")
    judge = PreferenceKey(FeatureKey.JUDGE, "Hon. Reyes")
    assert after.pop(judge) == 0
    assert after == before


def test_flip_equals_clear_then_dislike():
    case = make_case("c1", nature_of_suit="Contract", entity="Acme")

    flipped = FakePreferenceStore()
    PreferenceUpdater(flipped).apply("user-1", case, 1, None)
    PreferenceUpdater(flipped).apply("user-1", case, -1, 1)

    stepped = FakePreferenceStore()
    PreferenceUpdater(stepped).apply("user-1", case, 1, None)
    PreferenceUpdater(stepped).apply("user-1", case, None, 1)
    PreferenceUpdater(stepped).apply("user-1", case, -1, None)

    assert flipped.load("user-1") == stepped.load("user-1") == {CONTRACT: -1, ACME: -1}


def test_case_without_features_is_a_no_op():
    store = FakePreferenceStore()
    assert PreferenceUpdater(store).apply("user-1", make_case("c1"), 1, None) == []
    assert store.calls == []


def test_zero_delta_is_skipped():
    store = FakePreferenceStore()
    case = make_case("c1", entity="Acme")
    updater = PreferenceUpdater(store)

    assert updater.apply("user-1", case, None, None) == []
    assert updater.apply("user-1", case, 1, 1) == []
    assert store.calls == []


def test_users_are_isolated():
    store = FakePreferenceStore()
    PreferenceUpdater(store).apply("user-2", make_case("c1", entity="Acme"), 1, None)
    assert store.load("user-1") == {}
    assert store.load("user-2") == {ACME: 1}


def test_store_errors_propagate():
    class FailingStore(FakePreferenceStore):
        def increment(self, user_id, key, delta):
            raise ConnectionError("database went away")

    with pytest.raises(ConnectionError):
        PreferenceUpdater(FailingStore()).apply("user-1", make_case("c1", entity="Acme"), 1, None)


def test_build_preference_map_skips_unknown_keys():
    rows = [
        {"feature_key": "entity", "feature_value": "Acme", "weight": 2},
        {"feature_key": "docket_number", "feature_value": "1:24-cv-1", "weight": 5},
    ]
    assert build_preference_map(rows) == {ACME: 2.0}
