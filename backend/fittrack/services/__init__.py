"""
Services module - Application business logic layer.

Modules:
- analytics: Workout statistics, heatmaps and personal records
"""
from fittrack.services.analytics import AnalyticsEngine, TTLCache

__all__ = [
    "AnalyticsEngine",
    "TTLCache",
]
