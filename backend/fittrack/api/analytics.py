"""
Analytics API endpoints.
"""
from datetime import date
from typing import Any, Optional

from fastapi import APIRouter, Depends, HTTPException, Path, Query, Request
from pydantic import BaseModel

from fittrack.core.auth import get_current_user_id
from fittrack.core.database import async_session_factory
from fittrack.core.logging import get_logger
from fittrack.models.exercise import ExerciseType
from fittrack.services.analytics import (
    AnalyticsEngine,
    DateRange,
    HeatmapTimeframe,
    RecordStoreAdapter,
    SqlRecordStore,
    TTLCache,
)

logger = get_logger(__name__)
router = APIRouter()

# calendar years datetime.date can represent
MIN_YEAR = 1
MAX_YEAR = 9999


# ========================================
# Response Schemas
# ========================================

class PersonalRecordsResponse(BaseModel):
    """Personal records, newest first."""
    records: list[dict[str, Any]]
    count: int


class CacheClearedResponse(BaseModel):
    cleared: bool = True


# ========================================
# Dependencies
# ========================================

def get_record_store() -> RecordStoreAdapter:
    """Record store for the request; overridden in tests."""
    return SqlRecordStore(async_session_factory)


def get_analytics_cache(request: Request) -> TTLCache:
    """Application-wide analytics cache created at startup."""
    return request.app.state.analytics_cache


def get_engine(
    store: RecordStoreAdapter = Depends(get_record_store),
    cache: TTLCache = Depends(get_analytics_cache),
) -> AnalyticsEngine:
    return AnalyticsEngine(store, cache=cache)


def _resolve_range(start: Optional[date], end: Optional[date]) -> DateRange:
    """Whole-day range from query params; missing ends default to this year."""
    default = DateRange.this_year()
    try:
        return DateRange.for_days(
            start or default.start.date(),
            end or default.end.date(),
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


# ========================================
# API Endpoints
# ========================================

@router.get("/workouts")
async def get_workout_analytics(
    start: Optional[date] = Query(None, description="First day, inclusive"),
    end: Optional[date] = Query(None, description="Last day, inclusive"),
    user_id: str = Depends(get_current_user_id),
    engine: AnalyticsEngine = Depends(get_engine),
):
    """
    Workout totals for a date range.
    """
    date_range = _resolve_range(start, end)
    analytics = await engine.compute_workout_analytics(user_id, date_range)
    return analytics.to_dict()


@router.get("/heatmap/month/{year}/{month}")
async def get_month_heatmap(
    year: int = Path(..., ge=MIN_YEAR, le=MAX_YEAR),
    month: int = Path(...),
    user_id: str = Depends(get_current_user_id),
    engine: AnalyticsEngine = Depends(get_engine),
):
    """
    Day-of-month activity for one month.

    The months before and after are warmed in the background so swiping
    the calendar is served from cache.
    """
    if not 1 <= month <= 12:
        raise HTTPException(status_code=400, detail=f"month must be in 1..12, got {month}")

    data = await engine.get_month_heatmap_data(user_id, year, month)
    engine.schedule_prefetch(user_id, year, month)

    return data.to_dict()


@router.get("/heatmap/{year}")
async def get_year_heatmap(
    year: int = Path(..., ge=MIN_YEAR, le=MAX_YEAR),
    user_id: str = Depends(get_current_user_id),
    engine: AnalyticsEngine = Depends(get_engine),
):
    """
    Activity heatmap for a calendar year.
    """
    data = await engine.generate_heatmap_data(user_id, year)
    return data.to_dict()


@router.get("/heatmap")
async def get_range_heatmap(
    start: Optional[date] = Query(None, description="First day, inclusive"),
    end: Optional[date] = Query(None, description="Last day, inclusive"),
    program_id: Optional[str] = Query(None, description="Only count sets of this program"),
    timeframe: Optional[HeatmapTimeframe] = Query(None, description="Preset range; overrides start/end"),
    user_id: str = Depends(get_current_user_id),
    engine: AnalyticsEngine = Depends(get_engine),
):
    """
    Activity heatmap over an arbitrary range or a preset timeframe.
    """
    if timeframe is not None:
        date_range = timeframe.date_range(engine.today())
    else:
        date_range = _resolve_range(start, end)
    data = await engine.generate_set_based_heatmap_data(user_id, date_range, program_id)
    return data.to_dict()


@router.get("/personal-records", response_model=PersonalRecordsResponse)
async def get_personal_records(
    limit: Optional[int] = Query(None, ge=0, description="Max records; 0 or omitted for all"),
    exercise_type: Optional[ExerciseType] = Query(None, description="Only PRs for this exercise type"),
    user_id: str = Depends(get_current_user_id),
    engine: AnalyticsEngine = Depends(get_engine),
):
    """
    Personal records over the history window.
    """
    records = await engine.get_personal_records(
        user_id,
        limit=limit,
        exercise_type=exercise_type,
    )

    return PersonalRecordsResponse(
        records=[record.to_dict() for record in records],
        count=len(records),
    )


@router.get("/key-statistics")
async def get_key_statistics(
    start: Optional[date] = Query(None, description="First day, inclusive"),
    end: Optional[date] = Query(None, description="Last day, inclusive"),
    user_id: str = Depends(get_current_user_id),
    engine: AnalyticsEngine = Depends(get_engine),
):
    """
    Dashboard summary for a date range.
    """
    date_range = _resolve_range(start, end)
    return await engine.compute_key_statistics(user_id, date_range)


@router.post("/cache/clear", response_model=CacheClearedResponse)
async def clear_cache(
    user_id: str = Depends(get_current_user_id),
    engine: AnalyticsEngine = Depends(get_engine),
):
    """
    Drop cached analytics so the next request recomputes.
    """
    logger.info("Clearing analytics cache", user_id=user_id)
    engine.clear_cache()
    return CacheClearedResponse()
