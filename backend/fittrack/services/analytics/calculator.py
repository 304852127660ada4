"""
Analytics Engine - Main entry point for derived workout statistics.

Orchestrates:
- Walking the record store hierarchy (programs -> weeks -> workouts ->
  exercises -> sets), concurrently per sibling and best-effort per branch
- Building snapshots (WorkoutAnalytics, ActivityHeatmapData,
  MonthHeatmapData) and personal record listings
- Serving snapshots from a TTL cache and warming adjacent months

A branch of the hierarchy that fails to load contributes nothing instead
of failing the whole request, so one corrupted workout cannot blank the
rest of a user's analytics. Failures are logged at warning level.
"""
import asyncio
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import (
    Any,
    Awaitable,
    Callable,
    ClassVar,
    Dict,
    List,
    Optional,
    Set,
    TypeVar,
)

from fittrack.core.auth import require_user_id
from fittrack.core.config import settings
from fittrack.core.logging import get_logger, track_computation
from fittrack.models.exercise import ExerciseType
from fittrack.services.analytics.adapter import (
    ExerciseData,
    RecordStoreAdapter,
    SetData,
    WorkoutData,
)
from fittrack.services.analytics.cache import Clock, TTLCache, cache_key
from fittrack.services.analytics.date_range import DateRange, add_months
from fittrack.services.analytics.detector import PersonalRecordDetector
from fittrack.services.analytics.heatmap import ActivityHeatmapData, MonthHeatmapData
from fittrack.services.analytics.records import PersonalRecord
from fittrack.services.analytics.summary import WorkoutAnalytics

logger = get_logger(__name__)

T = TypeVar("T")

WorkoutFilter = Callable[[WorkoutData], bool]


@dataclass
class FetchedHierarchy:
    """Flattened result of one walk over the record store."""
    workouts: List[WorkoutData] = field(default_factory=list)
    exercises: List[ExerciseData] = field(default_factory=list)
    sets: List[SetData] = field(default_factory=list)


class AnalyticsEngine:
    """
    Aggregation engine for one record store.

    Usage:
        engine = AnalyticsEngine(store, cache=TTLCache())
        month = await engine.get_month_heatmap_data(user_id, 2025, 3)
        engine.schedule_prefetch(user_id, 2025, 3)

    The cache is passed in rather than created globally so each process,
    session or test decides its own lifetime.
    """

    # Keeps fire-and-forget prefetch tasks referenced until they finish
    _background_tasks: ClassVar[Set[asyncio.Task]] = set()

    def __init__(
        self,
        store: RecordStoreAdapter,
        cache: Optional[TTLCache] = None,
        detector: Optional[PersonalRecordDetector] = None,
        clock: Optional[Clock] = None,
        max_concurrency: Optional[int] = None,
        pr_history_days: Optional[int] = None
    ):
        """
        Args:
            store: Record store to read from
            cache: Shared TTL cache; a private one is created if omitted
            detector: PR detector; default PersonalRecordDetector()
            clock: Returns "now"; defaults to the cache's clock
            max_concurrency: Max concurrent store calls per engine
            pr_history_days: Look-back window for PR scans
        """
        self.store = store
        if cache is None:
            cache = TTLCache(validity=settings.cache_validity, clock=clock)
        self.cache = cache
        self.detector = detector or PersonalRecordDetector()
        self._clock = clock or self.cache.now
        self._semaphore = asyncio.Semaphore(max_concurrency or settings.STORE_MAX_CONCURRENCY)
        self.pr_history_days = pr_history_days or settings.PR_HISTORY_DAYS

    def now(self) -> datetime:
        return self._clock()

    def today(self) -> date:
        return self.now().date()

    # ========================================
    # Workout analytics
    # ========================================

    async def compute_workout_analytics(
        self,
        user_id: str,
        date_range: DateRange
    ) -> WorkoutAnalytics:
        """
        Totals for workouts created inside ``date_range``.

        Exercises and sets are those of the in-range workouts; they are not
        filtered by their own timestamps.
        """
        require_user_id(user_id)
        key = cache_key(user_id, "analytics", date_range.cache_fragment())

        return await self.cache.get_or_compute(
            key,
            lambda: self._build_workout_analytics(user_id, date_range),
        )

    async def _build_workout_analytics(
        self,
        user_id: str,
        date_range: DateRange
    ) -> WorkoutAnalytics:
        with track_computation(logger, "workout_analytics", user_id=user_id):
            fetched = await self._fetch_hierarchy(
                user_id,
                include_workout=lambda w: date_range.contains(w.created_at),
            )
            return WorkoutAnalytics.from_workout_data(
                user_id=user_id,
                date_range=date_range,
                workouts=fetched.workouts,
                exercises=fetched.exercises,
                sets=fetched.sets,
            )

    # ========================================
    # Heatmaps
    # ========================================

    async def generate_heatmap_data(self, user_id: str, year: int) -> ActivityHeatmapData:
        """Activity heatmap for a calendar year."""
        require_user_id(user_id)
        key = cache_key(user_id, "heatmap", year)

        return await self.cache.get_or_compute(
            key,
            lambda: self._build_activity_heatmap(user_id, DateRange.year(year), None),
        )

    async def generate_set_based_heatmap_data(
        self,
        user_id: str,
        date_range: DateRange,
        program_filter: Optional[str] = None
    ) -> ActivityHeatmapData:
        """Activity heatmap over any range, optionally for a single program."""
        require_user_id(user_id)
        key = cache_key(user_id, "setheatmap", date_range.cache_fragment(), program_filter)

        return await self.cache.get_or_compute(
            key,
            lambda: self._build_activity_heatmap(user_id, date_range, program_filter),
        )

    async def _build_activity_heatmap(
        self,
        user_id: str,
        date_range: DateRange,
        program_filter: Optional[str]
    ) -> ActivityHeatmapData:
        with track_computation(logger, "activity_heatmap", user_id=user_id, program_filter=program_filter):
            sets = await self._fetch_sets_logged_in(user_id, date_range, program_filter)
            return ActivityHeatmapData.from_sets(
                user_id=user_id,
                date_range=date_range,
                sets=sets,
                reference_today=self.today(),
                program_filter=program_filter,
            )

    async def get_month_heatmap_data(
        self,
        user_id: str,
        year: int,
        month: int
    ) -> MonthHeatmapData:
        """Day-of-month counts of checked sets for one month, across all programs."""
        require_user_id(user_id)
        month_range = DateRange.month(year, month)
        key = cache_key(user_id, "month", year, month)

        return await self.cache.get_or_compute(
            key,
            lambda: self._build_month_heatmap(user_id, year, month, month_range),
            is_fresh=lambda data: data.is_valid_at(self.now()),
        )

    async def _build_month_heatmap(
        self,
        user_id: str,
        year: int,
        month: int,
        month_range: DateRange
    ) -> MonthHeatmapData:
        with track_computation(logger, "month_heatmap", user_id=user_id, year=year, month=month):
            sets = await self._fetch_sets_logged_in(user_id, month_range, None)
            return MonthHeatmapData.from_sets(
                year=year,
                month=month,
                sets=sets,
                fetched_at=self.now(),
                validity=self.cache.validity,
            )

    async def prefetch_adjacent_months(self, user_id: str, year: int, month: int) -> None:
        """
        Warm the cache for the months either side of (year, month).

        Both months load concurrently. A failure in one is logged and does
        not stop the other or reach the caller.
        """
        require_user_id(user_id)
        targets = [add_months(year, month, -1), add_months(year, month, 1)]

        results = await asyncio.gather(
            *(self.get_month_heatmap_data(user_id, y, m) for y, m in targets),
            return_exceptions=True,
        )

        for (target_year, target_month), result in zip(targets, results):
            if isinstance(result, BaseException):
                logger.warning(
                    "Month prefetch failed",
                    user_id=user_id,
                    year=target_year,
                    month=target_month,
                    error=str(result),
                    error_type=type(result).__name__,
                )

    def schedule_prefetch(self, user_id: str, year: int, month: int) -> asyncio.Task:
        """Start prefetch_adjacent_months in the background and return its task."""
        require_user_id(user_id)
        task = asyncio.ensure_future(self.prefetch_adjacent_months(user_id, year, month))
        self._background_tasks.add(task)
        task.add_done_callback(self._background_tasks.discard)
        return task

    # ========================================
    # Personal records
    # ========================================

    async def get_personal_records(
        self,
        user_id: str,
        limit: Optional[int] = None,
        exercise_type: Optional[ExerciseType] = None
    ) -> List[PersonalRecord]:
        """
        PRs over the history window, newest first.

        Args:
            user_id: Owner of the records
            limit: Max records to return; None or 0 returns all
            exercise_type: Only PRs on exercises of this type

        Returns:
            PersonalRecords sorted by achieved_at descending
        """
        require_user_id(user_id)
        if limit is not None and limit < 0:
            raise ValueError(f"limit must be >= 0, got {limit}")

        history = self._history_range()
        fetched = await self._fetch_hierarchy(
            user_id,
            include_workout=lambda w: history.contains(w.created_at),
        )
        sets = [s for s in fetched.sets if history.contains(s.created_at)]

        records = self.detector.detect_all(fetched.exercises, sets)

        if exercise_type is not None:
            records = [r for r in records if r.exercise_type == exercise_type]

        records.sort(key=lambda r: r.achieved_at, reverse=True)

        if limit:
            records = records[:limit]

        logger.info(
            "Personal records loaded",
            user_id=user_id,
            count=len(records),
            exercise_type=exercise_type.value if exercise_type else None,
        )

        return records

    async def check_for_new_pr(
        self,
        new_set: SetData,
        exercise: ExerciseData
    ) -> Optional[PersonalRecord]:
        """
        Check a just-logged set against the exercise's earlier sets.

        Only the metric that matters for the exercise type is compared.
        """
        require_user_id(exercise.user_id)
        history = self._history_range()

        prior_sets = await self._safe_call(
            lambda: self.store.list_sets(
                exercise.user_id,
                exercise.program_id,
                exercise.week_id,
                exercise.workout_id,
                exercise.id,
            ),
            "sets",
            exercise_id=exercise.id,
        )
        prior_sets = [
            s for s in prior_sets
            if s.id != new_set.id and history.contains(s.created_at)
        ]

        return self.detector.check_for_new_pr(new_set, exercise, prior_sets)

    def _history_range(self) -> DateRange:
        now = self.now()
        return DateRange(start=now - timedelta(days=self.pr_history_days), end=now)

    # ========================================
    # Key statistics
    # ========================================

    async def compute_key_statistics(
        self,
        user_id: str,
        date_range: DateRange
    ) -> Dict[str, Any]:
        """Flat dashboard summary for ``date_range``."""
        require_user_id(user_id)

        analytics = await self.compute_workout_analytics(user_id, date_range)

        prs = await self.get_personal_records(user_id, limit=settings.KEY_STATS_PR_LIMIT)
        new_prs = sum(1 for pr in prs if date_range.contains(pr.achieved_at))

        fetched = await self._fetch_hierarchy(
            user_id,
            include_workout=lambda w: date_range.contains(w.created_at),
        )
        all_sets = fetched.sets
        completed_sets = sum(1 for s in all_sets if s.checked)
        completion_percentage = (
            completed_sets / len(all_sets) * 100 if all_sets else 0.0
        )

        weeks_in_range = date_range.duration_in_days / 7
        workouts_per_week = (
            analytics.total_workouts / weeks_in_range if weeks_in_range > 0 else 0.0
        )

        most_used = analytics.most_used_exercise_type

        return {
            "totalWorkouts": analytics.total_workouts,
            "totalSets": analytics.total_sets,
            "totalVolume": analytics.total_volume,
            "averageDuration": analytics.average_workout_duration,
            "newPRs": new_prs,
            "mostUsedExerciseType": most_used.display_name if most_used else "None",
            "completionPercentage": completion_percentage,
            "workoutsPerWeek": workouts_per_week,
        }

    def clear_cache(self) -> None:
        """Drop every cached snapshot, e.g. on a manual refresh."""
        self.cache.clear()

    # ========================================
    # Record store traversal
    # ========================================

    async def _safe_call(
        self,
        call: Callable[[], Awaitable[List[T]]],
        branch: str,
        **context: Any
    ) -> List[T]:
        """Run one store call under the concurrency limit; failures yield []."""
        try:
            async with self._semaphore:
                return await call()
        except Exception as e:
            logger.warning(
                "Record store branch failed, treating as empty",
                branch=branch,
                error=str(e),
                error_type=type(e).__name__,
                **context
            )
            return []

    async def _fetch_workouts(
        self,
        user_id: str,
        include_workout: WorkoutFilter,
        program_filter: Optional[str] = None
    ) -> List[WorkoutData]:
        programs = await self._safe_call(
            lambda: self.store.list_programs(user_id),
            "programs",
            user_id=user_id,
        )
        if program_filter is not None:
            programs = [p for p in programs if p.id == program_filter]

        week_lists = await asyncio.gather(*(
            self._safe_call(
                lambda p=program: self.store.list_weeks(user_id, p.id),
                "weeks",
                program_id=program.id,
            )
            for program in programs
        ))
        weeks = [week for week_list in week_lists for week in week_list]

        workout_lists = await asyncio.gather(*(
            self._safe_call(
                lambda wk=week: self.store.list_workouts(user_id, wk.program_id, wk.id),
                "workouts",
                week_id=week.id,
            )
            for week in weeks
        ))
        return [
            workout
            for workout_list in workout_lists
            for workout in workout_list
            if include_workout(workout)
        ]

    async def _fetch_hierarchy(
        self,
        user_id: str,
        include_workout: WorkoutFilter,
        program_filter: Optional[str] = None
    ) -> FetchedHierarchy:
        """Walk the store and return included workouts with all their exercises and sets."""
        workouts = await self._fetch_workouts(user_id, include_workout, program_filter)

        exercise_lists = await asyncio.gather(*(
            self._safe_call(
                lambda w=workout: self.store.list_exercises(
                    user_id, w.program_id, w.week_id, w.id
                ),
                "exercises",
                workout_id=workout.id,
            )
            for workout in workouts
        ))
        exercises = [exercise for exercise_list in exercise_lists for exercise in exercise_list]

        set_lists = await asyncio.gather(*(
            self._safe_call(
                lambda e=exercise: self.store.list_sets(
                    user_id, e.program_id, e.week_id, e.workout_id, e.id
                ),
                "sets",
                exercise_id=exercise.id,
            )
            for exercise in exercises
        ))
        sets = [exercise_set for set_list in set_lists for exercise_set in set_list]

        logger.debug(
            "Fetched record hierarchy",
            user_id=user_id,
            workouts=len(workouts),
            exercises=len(exercises),
            sets=len(sets),
        )

        return FetchedHierarchy(workouts=workouts, exercises=exercises, sets=sets)

    async def _fetch_sets_logged_in(
        self,
        user_id: str,
        date_range: DateRange,
        program_filter: Optional[str]
    ) -> List[SetData]:
        """
        Sets whose own timestamp falls in ``date_range``.

        Heatmaps bucket by the day a set was logged, which can be later than
        its workout's creation day, so every workout created up to the end
        of the range is walked.
        """
        fetched = await self._fetch_hierarchy(
            user_id,
            include_workout=lambda w: w.created_at <= date_range.end,
            program_filter=program_filter,
        )
        return [s for s in fetched.sets if date_range.contains(s.created_at)]
