"""
Analytics module - Derived statistics over a user's training history.

This module provides:
- Record store adapters for walking programs -> weeks -> workouts ->
  exercises -> sets
- Snapshot types (workout summary, activity and month heatmaps, PRs)
- Per-exercise-type PR strategies
- The AnalyticsEngine with its TTL cache
"""
from fittrack.services.analytics.adapter import (
    ExerciseData,
    InMemoryRecordStore,
    ProgramData,
    RecordStoreAdapter,
    SetData,
    StoreBranchError,
    WeekData,
    WorkoutData,
)
from fittrack.services.analytics.cache import TTLCache, cache_key
from fittrack.services.analytics.calculator import AnalyticsEngine
from fittrack.services.analytics.date_range import DateRange, HeatmapTimeframe, add_months
from fittrack.services.analytics.detector import PersonalRecordDetector
from fittrack.services.analytics.heatmap import (
    ActivityHeatmapData,
    HeatmapDay,
    HeatmapIntensity,
    MonthHeatmapData,
)
from fittrack.services.analytics.records import PersonalRecord, PRType
from fittrack.services.analytics.store import SqlRecordStore
from fittrack.services.analytics.summary import WorkoutAnalytics

__all__ = [
    # Record store
    "RecordStoreAdapter",
    "InMemoryRecordStore",
    "SqlRecordStore",
    "StoreBranchError",
    "ProgramData",
    "WeekData",
    "WorkoutData",
    "ExerciseData",
    "SetData",
    # Dates
    "DateRange",
    "HeatmapTimeframe",
    "add_months",
    # Snapshots
    "WorkoutAnalytics",
    "ActivityHeatmapData",
    "MonthHeatmapData",
    "HeatmapDay",
    "HeatmapIntensity",
    "PersonalRecord",
    "PRType",
    # Engine
    "AnalyticsEngine",
    "PersonalRecordDetector",
    "TTLCache",
    "cache_key",
]
