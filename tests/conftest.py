"""Shared fixtures for case_ranker tests."""

from __future__ import annotations

import copy
from contextlib import contextmanager
from datetime import date
from typing import Optional

import pytest

from case_ranker.config import Settings
from case_ranker.db import queries
from case_ranker.db.models import CaseRecord, UserPreferenceRecord, has_usable_summary
from case_ranker.db.search import CaseFilters
from case_ranker.ranking.preferences import PreferenceKey


def make_case(case_id: str, **fields) -> CaseRecord:
    fields.setdefault("case_name", f"Case {case_id}")
    fields.setdefault("complaint_summary", f"Complaint summary for {case_id}.")
    fields.setdefault("filed", date(2024, 1, 15))
    return CaseRecord(id=case_id, **fields)


class FakePreferenceStore:
    """In-memory PreferenceStore."""

    def __init__(self, weights: Optional[dict[PreferenceKey, float]] = None) -> None:
        self.weights: dict[tuple[str, PreferenceKey], float] = {}
        self.calls: list[tuple[str, PreferenceKey, float]] = []
        for key, weight in (weights or {}).items():
            self.weights[("user-1", key)] = weight

    def increment(self, user_id: str, key: PreferenceKey, delta: float) -> None:
        self.calls.append((user_id, key, delta))
        self.weights[(user_id, key)] = self.weights.get((user_id, key), 0) + delta

    def load(self, user_id: str) -> dict[PreferenceKey, float]:
        return {key: weight for (owner, key), weight in self.weights.items() if owner == user_id}


class FakeDatabase:
    """
    Stands in for both the connection pool and a connection.

    ``transaction()`` restores the previous state when the block raises,
    mirroring a rolled back PostgreSQL transaction.
    """

    def __init__(self) -> None:
        self.cases: dict[str, CaseRecord] = {}
        self.reactions: dict[tuple[str, str], int] = {}
        self.preferences: dict[tuple[str, str, str], float] = {}
        self.locks: list[tuple[str, str]] = []

    def add_case(self, case: CaseRecord) -> CaseRecord:
        self.cases[case.id] = case
        return case

    @contextmanager
    def connection(self):
        yield self

    @contextmanager
    def transaction(self):
        snapshot = (dict(self.reactions), copy.deepcopy(self.preferences))
        try:
            yield self
        except BaseException:
            self.reactions, self.preferences = snapshot
            raise

    def weight(self, user_id: str, feature_key: str, feature_value: str) -> Optional[float]:
        return self.preferences.get((user_id, feature_key, feature_value))


@pytest.fixture
def settings() -> Settings:
    return Settings(DATABASE_URL="postgresql://localhost/test")


@pytest.fixture
def fake_db(monkeypatch) -> FakeDatabase:
    """FakeDatabase wired into the case_ranker.db.queries functions."""
    db = FakeDatabase()

    def fetch_case(conn, case_id):
        return conn.cases.get(case_id)

    def fetch_cases(conn, case_ids):
        return [conn.cases[case_id] for case_id in case_ids if case_id in conn.cases]

    def fetch_feed(conn, filters=None, *, limit=100):
        filters = filters or CaseFilters()
        source = (filters.source or "").strip().lower()

        def matches(case):
            viability = case.consultant.case_viability if case.consultant else None
            return (
                has_usable_summary(case.complaint_summary)
                and (filters.date_from is None or (case.filed is not None and case.filed >= filters.date_from))
                and (filters.date_to is None or (case.filed is not None and case.filed <= filters.date_to))
                and (not source or source in (case.source or "").lower())
                and (not filters.nature_of_suit or case.nature_of_suit in filters.nature_of_suit)
                and (not filters.viability or viability in filters.viability)
            )

        matched = sorted((case for case in conn.cases.values() if matches(case)), key=lambda case: case.id)
        matched.sort(key=lambda case: case.filed or date.min, reverse=True)
        return matched[:limit]

    def lock_reaction(conn, user_id, case_id):
        conn.locks.append((user_id, case_id))

    def fetch_reaction(conn, user_id, case_id):
        return conn.reactions.get((user_id, case_id))

    def fetch_reactions(conn, user_id, case_ids):
        return {cid: conn.reactions[(user_id, cid)] for cid in case_ids if (user_id, cid) in conn.reactions}

    def upsert_reaction(conn, user_id, case_id, reaction):
        conn.reactions[(user_id, case_id)] = reaction

    def delete_reaction(conn, user_id, case_id):
        conn.reactions.pop((user_id, case_id), None)

    def increment_preference(conn, user_id, key, delta):
        row = (user_id, key.feature_key.value, key.feature_value)
        conn.preferences[row] = conn.preferences.get(row, 0) + delta

    def fetch_preferences(conn, user_id):
        rows = [
            UserPreferenceRecord(user_id=owner, feature_key=fkey, feature_value=fvalue, weight=weight)
            for (owner, fkey, fvalue), weight in conn.preferences.items()
            if owner == user_id
        ]
        return sorted(rows, key=lambda r: (-abs(r.weight), r.feature_key, r.feature_value))

    for name, func in {
        "fetch_case": fetch_case,
        "fetch_cases": fetch_cases,
        "fetch_feed": fetch_feed,
        "lock_reaction": lock_reaction,
        "fetch_reaction": fetch_reaction,
        "fetch_reactions": fetch_reactions,
        "upsert_reaction": upsert_reaction,
        "delete_reaction": delete_reaction,
        "increment_preference": increment_preference,
        "fetch_preferences": fetch_preferences,
    }.items():
        monkeypatch.setattr(queries, name, func)
    return db
