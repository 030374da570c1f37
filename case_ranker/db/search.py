"""
Vector and lexical case search helpers using pgvector.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Iterable, Sequence

from psycopg import Connection

from case_ranker.db.models import SENTINEL_SUMMARIES

# Takes list(SENTINEL_SUMMARIES) as its single parameter.
USABLE_SUMMARY_SQL = """
    c.complaint_summary IS NOT NULL
    AND btrim(c.complaint_summary) <> ''
    AND c.complaint_summary <> ALL(%s)
"""


@dataclass(slots=True)
class CaseFilters:
    date_from: date | None = None
    date_to: date | None = None
    source: str | None = None
    nature_of_suit: list[str] = field(default_factory=list)
    viability: list[str] = field(default_factory=list)

    @property
    def source_pattern(self) -> str | None:
        source = (self.source or "").strip()
        if not source:
            return None
        return f"%{escape_like(source)}%"


@dataclass(slots=True)
class ChunkMatch:
    case_id: str
    similarity: float


def match_case_chunks(
    conn: Connection,
    query_embedding: Sequence[float],
    *,
    similarity_floor: float = 0.3,
    limit: int = 20,
    timeout_seconds: float | None = None,
) -> list[ChunkMatch]:
    """Return the closest case_chunks by cosine similarity, at or above the floor."""
    with conn.cursor() as cur:
        if timeout_seconds:
            cur.execute(
                "SELECT set_config('statement_timeout', %s, true)",
                (f"{int(timeout_seconds * 1000)}ms",),
            )
        cur.execute(
            """
            SELECT case_id, 1 - (embedding <=> %s::vector) AS similarity
            FROM case_chunks
            WHERE 1 - (embedding <=> %s::vector) >= %s
            ORDER BY embedding <=> %s::vector
            LIMIT %s
            """,
            (
                list(query_embedding),
                list(query_embedding),
                similarity_floor,
                list(query_embedding),
                limit,
            ),
        )
        rows = cur.fetchall()
    return [ChunkMatch(case_id=str(row[0]), similarity=float(row[1])) for row in rows]


def best_similarity_per_case(matches: Iterable[ChunkMatch]) -> list[tuple[str, float]]:
    """
    Collapse chunk matches to one score per case, its best chunk.

    Sorted by similarity descending; equal scores keep first-seen order.
    """

    best: dict[str, float] = {}
    for match in matches:
        current = best.get(match.case_id)
        if current is None or match.similarity > current:
            best[match.case_id] = match.similarity
    return sorted(best.items(), key=lambda item: item[1], reverse=True)


def escape_like(text: str) -> str:
    return text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def lexical_case_ids(conn: Connection, query: str, *, limit: int = 10) -> list[str]:
    """Case-insensitive substring match over the main text fields."""
    pattern = f"%{escape_like(query)}%"
    with conn.cursor() as cur:
        cur.execute(
            f"""
            SELECT c.id
            FROM cases c
            WHERE {USABLE_SUMMARY_SQL}
              AND (
                    c.case_name ILIKE %s
                 OR c.complaint_summary ILIKE %s
                 OR c.nature_of_suit ILIKE %s
                 OR c.cause_of_action ILIKE %s
                 OR c.entity ILIKE %s
              )
            LIMIT %s
            """,
            (list(SENTINEL_SUMMARIES), pattern, pattern, pattern, pattern, pattern, limit),
        )
        rows = cur.fetchall()
    return [str(row[0]) for row in rows]
