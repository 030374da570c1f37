"""
FastAPI entrypoint for case_ranker.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from case_ranker import __version__
from case_ranker.api import router
from case_ranker.config import Settings, get_settings
from case_ranker.db.session import close_connection_pool, get_connection_pool
from case_ranker.embeddings import EmbeddingClient, EmbeddingConfig
from case_ranker.rag import Synthesizer
from case_ranker.retrieval import Retriever, SearchEngine


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    close_connection_pool()


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or get_settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="[%(asctime)s] %(levelname)s %(name)s: %(message)s",
    )
    embedding_client = EmbeddingClient(
        EmbeddingConfig(
            model=settings.embedding_model,
            dimension=settings.embedding_dim,
            api_url=settings.embedding_api_url,
            api_key=settings.embedding_api_key,
            timeout=settings.request_timeout,
        )
    )
    db_pool = get_connection_pool(settings)
    retriever = Retriever(settings, embedding_client, db_pool)
    engine = SearchEngine(retriever, Synthesizer(settings), db_pool)

    app = FastAPI(title="case_ranker", version=__version__, lifespan=lifespan)
    app.include_router(router)
    app.state.settings = settings
    app.state.embedding_client = embedding_client
    app.state.db_pool = db_pool
    app.state.engine = engine
    return app


app = create_app()
