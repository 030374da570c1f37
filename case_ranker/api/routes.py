"""
FastAPI routes for personalized search and case reactions.
"""

from __future__ import annotations

from dataclasses import asdict
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Header, HTTPException, Query, Request
from fastapi.concurrency import run_in_threadpool
from pydantic import BaseModel, Field

from case_ranker.db.models import CaseRecord
from case_ranker.db.search import CaseFilters
from case_ranker.exceptions import CaseNotFoundError, InvalidQueryError, InvalidReactionError
from case_ranker.ranking.rerank import RankedResult

router = APIRouter()


def get_app_state(request: Request):
    return request.app.state


def get_user_id(x_user_id: Optional[str] = Header(None)) -> str:
    """Identity is established upstream; the gateway forwards it in X-User-Id."""
    if not x_user_id or not x_user_id.strip():
        raise HTTPException(status_code=401, detail="Unauthorized")
    return x_user_id.strip()


class SearchRequest(BaseModel):
    query: str = Field(..., description="Free-text search query.")


class ReactRequest(BaseModel):
    case_id: str = Field(..., min_length=1)
    reaction: Optional[int] = Field(..., description="1 to like, -1 to dislike, null to clear.")


def serialize_case(case: CaseRecord, user_reaction: Optional[int] = None) -> dict:
    payload = asdict(case)
    payload["user_reaction"] = user_reaction
    return payload


def serialize_result(result: RankedResult) -> dict:
    payload = serialize_case(result.case, result.user_reaction)
    payload["relevance_score"] = result.relevance_score
    return payload


@router.get("/health")
async def health():
    return {"status": "ok"}


@router.post("/search")
async def search_cases(payload: SearchRequest, state=Depends(get_app_state), user_id: str = Depends(get_user_id)):
    engine = state.engine
    try:
        outcome = await run_in_threadpool(engine.search, user_id, payload.query)
    except InvalidQueryError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    return {
        "query": outcome.query,
        "results": [serialize_result(result) for result in outcome.results],
        "synthesis": outcome.synthesis,
        "total_count": outcome.total_count,
    }


@router.post("/react")
async def react_to_case(payload: ReactRequest, state=Depends(get_app_state), user_id: str = Depends(get_user_id)):
    engine = state.engine
    try:
        outcome = await run_in_threadpool(engine.react, user_id, payload.case_id, payload.reaction)
    except InvalidReactionError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    except CaseNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc))
    return {
        "success": True,
        "reaction": outcome.reaction,
        "previous_reaction": outcome.previous_reaction,
    }


@router.get("/cases")
async def list_cases(
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    source: Optional[str] = None,
    nature_of_suit: list[str] = Query(default=[]),
    viability: list[str] = Query(default=[]),
    state=Depends(get_app_state),
    user_id: str = Depends(get_user_id),
):
    filters = CaseFilters(
        date_from=date_from,
        date_to=date_to,
        source=source,
        nature_of_suit=nature_of_suit,
        viability=viability,
    )
    results = await run_in_threadpool(state.engine.feed, user_id, filters)
    return {
        "results": [serialize_result(result) for result in results],
        "total_count": len(results),
    }


@router.get("/case/{case_id}")
async def get_case(case_id: str, state=Depends(get_app_state), user_id: str = Depends(get_user_id)):
    try:
        case, reaction = await run_in_threadpool(state.engine.get_case, user_id, case_id)
    except CaseNotFoundError:
        raise HTTPException(status_code=404, detail="Case not found.")
    return serialize_case(case, reaction)


@router.get("/preferences")
async def list_preferences(state=Depends(get_app_state), user_id: str = Depends(get_user_id)):
    preferences = await run_in_threadpool(state.engine.list_preferences, user_id)
    return {
        "preferences": [
            {"feature_key": p.feature_key, "feature_value": p.feature_value, "weight": p.weight}
            for p in preferences
        ]
    }
