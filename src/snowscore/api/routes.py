"""
API routes.

Endpoints:
- POST `/api/conditions`: ingest collector records into the condition store.
- GET  `/api/recommendations`: ranked resorts plus funnel counts.
- GET  `/api/destinations/closed`: resorts closed for the season with opening dates.
- GET  `/api/destinations/{identity}`: score, conditions and travel for one resort.
- GET  `/api/stats`: registry / condition / travel-cache counts.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Any

from fastapi import APIRouter, HTTPException, Query
from pydantic import BaseModel, Field

from snowscore.config.settings import get_settings
from snowscore.domain.models import RecommendationItem, RecommendationResult
from snowscore.ingestion.conditions import RawConditionRecord
from snowscore.recommender.recommend import RecommendationEngine, build_engine

router = APIRouter()


class ConditionBatch(BaseModel):
    """Collector payload for `POST /api/conditions`."""

    records: list[RawConditionRecord] = Field(default_factory=list)


@lru_cache
def get_engine() -> RecommendationEngine:
    # One engine per process: the condition store is in memory and shared by all requests.
    return build_engine(get_settings())


def _bad_request(e: Exception) -> HTTPException:
    return HTTPException(status_code=400, detail={"code": "VALIDATION_ERROR", "message": str(e)})


@router.post("/api/conditions")
def post_conditions(batch: ConditionBatch) -> dict[str, Any]:
    """Store a batch of collector records; returns the ingestion summary."""
    summary = get_engine().ingest(batch.records)
    return summary.as_dict()


@router.get("/api/recommendations", response_model=RecommendationResult)
def get_recommendations(
    max_travel_minutes: int | None = Query(None, ge=0),
    min_score: float | None = Query(None, ge=0, le=100),
    limit: int | None = Query(None, ge=1, le=50),
    include_closed: bool | None = None,
) -> RecommendationResult:
    """Run the recommendation pipeline (query params fall back to config defaults)."""
    try:
        return get_engine().recommend(
            max_travel_minutes=max_travel_minutes,
            min_score=min_score,
            limit=limit,
            include_closed=include_closed,
        )
    except ValueError as e:
        raise _bad_request(e) from e


@router.get("/api/destinations/closed", response_model=list[RecommendationItem])
def get_closed_destinations() -> list[RecommendationItem]:
    return get_engine().closed_destinations()


@router.get("/api/destinations/{identity}", response_model=RecommendationItem)
def get_destination(identity: str) -> RecommendationItem:
    try:
        item = get_engine().resort_details(identity)
    except ValueError as e:
        raise _bad_request(e) from e
    if item is None:
        raise HTTPException(
            status_code=404,
            detail={"code": "NOT_FOUND", "message": f"Unknown destination '{identity}'."},
        )
    return item


@router.get("/api/stats")
def get_stats() -> dict[str, Any]:
    return get_engine().stats()
