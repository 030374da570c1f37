"""
PostgreSQL connection pool shared by the API.
"""

from __future__ import annotations

from pgvector.psycopg import register_vector
from psycopg_pool import ConnectionPool

from case_ranker.config import Settings

_POOL: ConnectionPool | None = None


def get_connection_pool(settings: Settings) -> ConnectionPool:
    """Return a global ConnectionPool instance."""
    global _POOL
    if _POOL is None:
        def configure_connection(conn):
            """Register pgvector on each new connection."""
            register_vector(conn)
            conn.commit()

        _POOL = ConnectionPool(
            conninfo=settings.database_url,
            min_size=1,
            max_size=10,
            open=True,
            configure=configure_connection,
        )
    return _POOL


def close_connection_pool() -> None:
    global _POOL
    if _POOL is not None:
        _POOL.close()
        _POOL = None
