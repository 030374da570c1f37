"""
Hybrid case retrieval: semantic search first, lexical fallback.
"""

from __future__ import annotations

import logging

from psycopg_pool import ConnectionPool

from case_ranker.config import Settings
from case_ranker.db import search
from case_ranker.embeddings import EmbeddingClient

logger = logging.getLogger(__name__)


class Retriever:
    """Produces the base relevance order of case ids for a query."""

    def __init__(self, settings: Settings, embedding_client: EmbeddingClient, db_pool: ConnectionPool) -> None:
        self.settings = settings
        self.embedding_client = embedding_client
        self.db_pool = db_pool

    def retrieve(self, query: str) -> list[str]:
        """Return up to ``result_limit`` case ids, most relevant first."""
        case_ids = self.semantic_case_ids(query)
        if case_ids:
            return case_ids
        return self.lexical_case_ids(query)

    def semantic_case_ids(self, query: str) -> list[str]:
        """
        Rank cases by their best matching chunk.

        Never raises: an unconfigured provider or any embedding/index failure
        yields an empty list so the caller falls back to lexical search.
        """

        if not self.embedding_client.is_configured:
            logger.debug("Embedding provider not configured; skipping semantic search.")
            return []

        try:
            query_embedding = self.embedding_client.embed_query(query)
            with self.db_pool.connection() as conn:
                matches = search.match_case_chunks(
                    conn,
                    query_embedding,
                    similarity_floor=self.settings.similarity_floor,
                    limit=self.settings.match_count,
                    timeout_seconds=self.settings.request_timeout,
                )
        except Exception as exc:
            logger.warning("Semantic search failed, falling back to text search: %s", exc)
            return []

        floor = self.settings.similarity_floor
        ranked = search.best_similarity_per_case(m for m in matches if m.similarity >= floor)
        return [case_id for case_id, _ in ranked[: self.settings.result_limit]]

    def lexical_case_ids(self, query: str) -> list[str]:
        with self.db_pool.connection() as conn:
            return search.lexical_case_ids(conn, query, limit=self.settings.result_limit)
