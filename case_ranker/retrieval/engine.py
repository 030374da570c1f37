"""
Search and feedback orchestration.

``search`` runs retrieval, hydration, personalized reranking and optional
synthesis. ``feed`` personalizes the newest filtered cases. ``react`` records a
like/dislike and feeds it into the user's preference weights in one
transaction.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional

from psycopg_pool import ConnectionPool

from case_ranker.db import queries
from case_ranker.db.models import CaseRecord, UserPreferenceRecord, has_usable_summary
from case_ranker.db.search import CaseFilters
from case_ranker.exceptions import CaseNotFoundError, InvalidQueryError
from case_ranker.rag import Synthesizer
from case_ranker.ranking.preferences import PreferenceKey, PreferenceUpdater, validate_reaction
from case_ranker.ranking.rerank import RankedResult, rerank
from case_ranker.retrieval.retriever import Retriever

logger = logging.getLogger(__name__)

FEED_LIMIT = 100


def _attach_reactions(results: list[RankedResult], reactions: dict[str, int]) -> list[RankedResult]:
    for result in results:
        result.user_reaction = reactions.get(result.case.id)
    return results


@dataclass
class SearchOutcome:
    query: str
    results: list[RankedResult]
    synthesis: Optional[str] = None

    @property
    def total_count(self) -> int:
        return len(self.results)


@dataclass
class ReactionOutcome:
    case_id: str
    reaction: Optional[int]
    previous_reaction: Optional[int]
    applied: list[tuple[PreferenceKey, int]] = field(default_factory=list)


class SearchEngine:
    """Coordinates retrieval, personalization, and preference learning."""

    def __init__(self, retriever: Retriever, synthesizer: Synthesizer, db_pool: ConnectionPool) -> None:
        self.retriever = retriever
        self.synthesizer = synthesizer
        self.db_pool = db_pool

    def search(self, user_id: str, query: str) -> SearchOutcome:
        query = (query or "").strip()
        if not query:
            raise InvalidQueryError("Query is required")

        case_ids = self.retriever.retrieve(query)
        if not case_ids:
            return SearchOutcome(query=query, results=[])

        with self.db_pool.connection() as conn:
            cases = queries.fetch_cases(conn, case_ids)
            reactions = queries.fetch_reactions(conn, user_id, case_ids)
            preferences = queries.PgPreferenceStore(conn).load(user_id)

        # Retrieval order is the base relevance order.
        hydrated = [
            case
            for case in queries.order_by_ids(cases, case_ids)
            if has_usable_summary(case.complaint_summary)
        ]
        results = _attach_reactions(rerank(hydrated, preferences), reactions)

        synthesis = self.synthesizer.synthesize(query, results)
        return SearchOutcome(query=query, results=results, synthesis=synthesis)

    def feed(self, user_id: str, filters: CaseFilters | None = None, *, limit: int = FEED_LIMIT) -> list[RankedResult]:
        """Newest matching cases, reordered by the user's preferences."""
        with self.db_pool.connection() as conn:
            cases = queries.fetch_feed(conn, filters, limit=limit)
            reactions = queries.fetch_reactions(conn, user_id, [case.id for case in cases])
            preferences = queries.PgPreferenceStore(conn).load(user_id)

        return _attach_reactions(rerank(cases, preferences), reactions)

    def react(self, user_id: str, case_id: str, reaction: Optional[int]) -> ReactionOutcome:
        """
        Record, change, or clear a reaction and update preference weights.

        Reading the previous reaction, writing the new one and applying the
        preference deltas happen in a single transaction, serialized per
        (user, case). Any store error rolls back all three steps.
        """

        reaction = validate_reaction(reaction)
        with self.db_pool.connection() as conn:
            with conn.transaction():
                queries.lock_reaction(conn, user_id, case_id)
                case = queries.fetch_case(conn, case_id)
                if case is None:
                    raise CaseNotFoundError(case_id)

                previous = queries.fetch_reaction(conn, user_id, case_id)
                if reaction is None:
                    queries.delete_reaction(conn, user_id, case_id)
                else:
                    queries.upsert_reaction(conn, user_id, case_id, reaction)

                updater = PreferenceUpdater(queries.PgPreferenceStore(conn))
                applied = updater.apply(user_id, case, reaction, previous)

        logger.info(
            "Reaction on case %s by user %s: %s -> %s (%d preference updates)",
            case_id,
            user_id,
            previous,
            reaction,
            len(applied),
        )
        return ReactionOutcome(case_id=case_id, reaction=reaction, previous_reaction=previous, applied=applied)

    def get_case(self, user_id: str, case_id: str) -> tuple[CaseRecord, Optional[int]]:
        with self.db_pool.connection() as conn:
            case = queries.fetch_case(conn, case_id)
            if case is None:
                raise CaseNotFoundError(case_id)
            reaction = queries.fetch_reaction(conn, user_id, case_id)
        return case, reaction

    def list_preferences(self, user_id: str) -> list[UserPreferenceRecord]:
        with self.db_pool.connection() as conn:
            return queries.fetch_preferences(conn, user_id)
