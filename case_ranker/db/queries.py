"""
Database query helpers for cases, reactions, and preference weights.
"""

from __future__ import annotations

from typing import Iterable, Optional, Sequence

from psycopg import Connection

from case_ranker.db.models import SENTINEL_SUMMARIES, CaseRecord, ConsultantAssessment, UserPreferenceRecord
from case_ranker.db.search import USABLE_SUMMARY_SQL, CaseFilters
from case_ranker.ranking.preferences import PreferenceKey, build_preference_map

CASE_COLUMNS = """
    c.id, c.case_name, c.docket_number, c.status, c.nature_of_suit, c.cause_of_action,
    c.entity, c.source, c.court_name, c.judge, c.complaint_summary, c.filed, c.blaw_url,
    cr.case_viability, cr.viability_reasoning
"""

# Latest consultant annotation per case, if any.
CONSULTANT_JOIN = """
    LEFT JOIN LATERAL (
        SELECT case_viability, viability_reasoning
        FROM consultant_results
        WHERE case_id = c.id
        ORDER BY created_at DESC
        LIMIT 1
    ) cr ON TRUE
"""


def _row_to_case(row: Sequence) -> CaseRecord:
    consultant = None
    if row[13] is not None or row[14] is not None:
        consultant = ConsultantAssessment(case_viability=row[13], viability_reasoning=row[14])
    return CaseRecord(
        id=str(row[0]),
        case_name=row[1],
        docket_number=row[2],
        status=row[3],
        nature_of_suit=row[4],
        cause_of_action=row[5],
        entity=row[6],
        source=row[7],
        court_name=row[8],
        judge=row[9],
        complaint_summary=row[10],
        filed=row[11],
        blaw_url=row[12],
        consultant=consultant,
    )


def fetch_case(conn: Connection, case_id: str) -> Optional[CaseRecord]:
    """Fetch a single case row with its consultant annotation."""
    with conn.cursor() as cur:
        cur.execute(
            f"""
            SELECT {CASE_COLUMNS}
            FROM cases c
            {CONSULTANT_JOIN}
            WHERE c.id = %s
            """,
            (case_id,),
        )
        row = cur.fetchone()
    if row is None:
        return None
    return _row_to_case(row)


def fetch_cases(conn: Connection, case_ids: Sequence[str]) -> list[CaseRecord]:
    """Fetch cases by id. Row order is unspecified; callers reorder."""
    if not case_ids:
        return []
    with conn.cursor() as cur:
        cur.execute(
            f"""
            SELECT {CASE_COLUMNS}
            FROM cases c
            {CONSULTANT_JOIN}
            WHERE c.id = ANY(%s)
            """,
            (list(case_ids),),
        )
        rows = cur.fetchall()
    return [_row_to_case(row) for row in rows]


def fetch_feed(conn: Connection, filters: CaseFilters | None = None, *, limit: int = 100) -> list[CaseRecord]:
    """
    Newest cases with a usable complaint summary, narrowed by the feed filters.

    Viability is matched against the latest consultant annotation.
    """

    filters = filters or CaseFilters()
    source_pattern = filters.source_pattern
    with conn.cursor() as cur:
        cur.execute(
            f"""
            SELECT {CASE_COLUMNS}
            FROM cases c
            {CONSULTANT_JOIN}
            WHERE {USABLE_SUMMARY_SQL}
              AND (%s::DATE IS NULL OR c.filed >= %s)
              AND (%s::DATE IS NULL OR c.filed <= %s)
              AND (%s::TEXT IS NULL OR c.source ILIKE %s)
              AND (cardinality(%s::TEXT[]) = 0 OR c.nature_of_suit = ANY(%s::TEXT[]))
              AND (cardinality(%s::TEXT[]) = 0 OR cr.case_viability = ANY(%s::TEXT[]))
            ORDER BY c.filed DESC NULLS LAST, c.id
            LIMIT %s
            """,
            (
                list(SENTINEL_SUMMARIES),
                filters.date_from,
                filters.date_from,
                filters.date_to,
                filters.date_to,
                source_pattern,
                source_pattern,
                list(filters.nature_of_suit),
                list(filters.nature_of_suit),
                list(filters.viability),
                list(filters.viability),
                limit,
            ),
        )
        rows = cur.fetchall()
    return [_row_to_case(row) for row in rows]


# --- Reactions ---------------------------------------------------------------


def lock_reaction(conn: Connection, user_id: str, case_id: str) -> None:
    """
    Serialize reaction changes for one (user, case) pair.

    The advisory lock is released when the surrounding transaction ends.
    """
    conn.execute(
        "SELECT pg_advisory_xact_lock(hashtextextended(%s, 0))",
        (f"user_reactions:{user_id}:{case_id}",),
    )


def fetch_reaction(conn: Connection, user_id: str, case_id: str) -> Optional[int]:
    row = conn.execute(
        "SELECT reaction FROM user_reactions WHERE user_id = %s AND case_id = %s",
        (user_id, case_id),
    ).fetchone()
    return int(row[0]) if row else None


def fetch_reactions(conn: Connection, user_id: str, case_ids: Sequence[str]) -> dict[str, int]:
    """Return {case_id: reaction} for the user's reactions on the given cases."""
    if not case_ids:
        return {}
    rows = conn.execute(
        "SELECT case_id, reaction FROM user_reactions WHERE user_id = %s AND case_id = ANY(%s)",
        (user_id, list(case_ids)),
    ).fetchall()
    return {str(row[0]): int(row[1]) for row in rows}


def upsert_reaction(conn: Connection, user_id: str, case_id: str, reaction: int) -> None:
    conn.execute(
        """
        INSERT INTO user_reactions (user_id, case_id, reaction)
        VALUES (%s, %s, %s)
        ON CONFLICT (user_id, case_id) DO UPDATE SET reaction = EXCLUDED.reaction
        """,
        (user_id, case_id, reaction),
    )


def delete_reaction(conn: Connection, user_id: str, case_id: str) -> None:
    conn.execute(
        "DELETE FROM user_reactions WHERE user_id = %s AND case_id = %s",
        (user_id, case_id),
    )


# --- Preferences -------------------------------------------------------------


def increment_preference(conn: Connection, user_id: str, key: PreferenceKey, delta: float) -> None:
    """Add delta to a preference weight in one statement, creating the row if needed."""
    conn.execute(
        """
        INSERT INTO user_preferences (user_id, feature_key, feature_value, weight)
        VALUES (%s, %s, %s, %s)
        ON CONFLICT (user_id, feature_key, feature_value)
        DO UPDATE SET weight = user_preferences.weight + EXCLUDED.weight
        """,
        (user_id, key.feature_key.value, key.feature_value, delta),
    )


def fetch_preferences(conn: Connection, user_id: str) -> list[UserPreferenceRecord]:
    rows = conn.execute(
        """
        SELECT user_id, feature_key, feature_value, weight
        FROM user_preferences
        WHERE user_id = %s
        ORDER BY abs(weight) DESC, feature_key, feature_value
        """,
        (user_id,),
    ).fetchall()
    return [
        UserPreferenceRecord(user_id=r[0], feature_key=r[1], feature_value=r[2], weight=float(r[3]))
        for r in rows
    ]


class PgPreferenceStore:
    """Preference store bound to one connection (and its open transaction)."""

    def __init__(self, conn: Connection) -> None:
        self.conn = conn

    def increment(self, user_id: str, key: PreferenceKey, delta: float) -> None:
        increment_preference(self.conn, user_id, key, delta)

    def load(self, user_id: str) -> dict[PreferenceKey, float]:
        return build_preference_map(fetch_preferences(self.conn, user_id))


def order_by_ids(cases: Iterable[CaseRecord], case_ids: Sequence[str]) -> list[CaseRecord]:
    """Arrange cases in the order of case_ids, dropping ids with no row."""
    by_id = {case.id: case for case in cases}
    return [by_id[case_id] for case_id in case_ids if case_id in by_id]
