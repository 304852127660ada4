"""Tests for the AnalyticsEngine over an in-memory record store."""

import asyncio
from datetime import date, datetime, timedelta

import pytest

from fittrack.core.auth import NotAuthenticatedError
from fittrack.models.exercise import ExerciseType
from fittrack.services.analytics import (
    AnalyticsEngine,
    DateRange,
    PRType,
    SetData,
    TTLCache,
    add_months,
    cache_key,
)

USER_ID = "user-1"
MARCH = DateRange.month(2025, 3)
FEBRUARY = DateRange.month(2025, 2)


class TestWorkoutAnalytics:
    """Tests for compute_workout_analytics."""

    async def test_totals_for_range(self, engine, seeded):
        analytics = await engine.compute_workout_analytics(USER_ID, MARCH)

        assert analytics.total_workouts == 2
        assert analytics.total_sets == 6
        assert analytics.total_volume == 1550.0
        assert analytics.total_duration_seconds == 1800
        assert analytics.average_workout_duration == 15.0
        assert analytics.average_sets_per_workout == 3.0
        assert analytics.exercise_type_breakdown == {
            ExerciseType.STRENGTH: 1,
            ExerciseType.CARDIO: 1,
            ExerciseType.BODYWEIGHT: 1,
        }
        assert sorted(analytics.completed_workout_ids) == sorted(
            [seeded["monday"].id, seeded["wednesday"].id]
        )

    async def test_workouts_filtered_by_creation_time(self, engine, seeded):
        analytics = await engine.compute_workout_analytics(USER_ID, FEBRUARY)

        assert analytics.total_workouts == 1
        assert analytics.total_volume == 360.0
        assert analytics.most_used_exercise_type is ExerciseType.STRENGTH

    async def test_no_data(self, engine):
        """An empty history is not an error."""
        analytics = await engine.compute_workout_analytics(USER_ID, MARCH)

        assert analytics.total_workouts == 0
        assert analytics.total_sets == 0
        assert analytics.average_workout_duration == 0.0
        assert analytics.most_used_exercise_type is None

    async def test_cached_result_is_read_only(self, engine, seeded):
        analytics = await engine.compute_workout_analytics(USER_ID, MARCH)

        with pytest.raises(TypeError):
            analytics.exercise_type_breakdown[ExerciseType.CUSTOM] = 7
        with pytest.raises(AttributeError):
            analytics.completed_workout_ids.append("extra")

        cached = await engine.compute_workout_analytics(USER_ID, MARCH)
        assert ExerciseType.CUSTOM not in cached.exercise_type_breakdown
        assert len(cached.completed_workout_ids) == 2

    async def test_cached_result_skips_store(self, engine, store, seeded):
        await engine.compute_workout_analytics(USER_ID, MARCH)
        calls = store.calls

        await engine.compute_workout_analytics(USER_ID, MARCH)

        assert store.calls == calls

    async def test_concurrent_requests_walk_store_once(self, seeded, store, clock):
        """Single-flight: parallel identical requests share one walk."""
        single = AnalyticsEngine(store, cache=TTLCache(clock=clock), clock=clock)
        await single.compute_workout_analytics(USER_ID, MARCH)
        calls_for_one = store.calls

        store.calls = 0
        shared = AnalyticsEngine(store, cache=TTLCache(clock=clock), clock=clock)
        first, second = await asyncio.gather(
            shared.compute_workout_analytics(USER_ID, MARCH),
            shared.compute_workout_analytics(USER_ID, MARCH),
        )

        assert first is second
        assert store.calls == calls_for_one

    @pytest.mark.parametrize("user_id", ["", "   ", None])
    async def test_requires_user(self, engine, user_id):
        with pytest.raises(NotAuthenticatedError):
            await engine.compute_workout_analytics(user_id, MARCH)

    async def test_failed_branch_contributes_nothing(self, engine, store, seeded):
        """A broken workout drops out; the rest is still counted."""
        store.fail_on.add(seeded["monday"].id)

        analytics = await engine.compute_workout_analytics(USER_ID, MARCH)

        assert analytics.total_workouts == 2
        assert analytics.total_sets == 2
        assert analytics.exercise_type_breakdown == {ExerciseType.BODYWEIGHT: 1}

    async def test_failed_program_listing_yields_empty(self, engine, store, seeded):
        store.fail_on.add(USER_ID)

        analytics = await engine.compute_workout_analytics(USER_ID, MARCH)

        assert analytics.total_workouts == 0


class TestHeatmaps:
    """Tests for year, range and month heatmaps."""

    async def test_set_based_heatmap(self, engine, seeded):
        """Checked sets grouped by the day they were logged."""
        data = await engine.generate_set_based_heatmap_data(USER_ID, MARCH)

        assert data.daily_counts == {
            date(2025, 3, 10): 3,
            date(2025, 3, 12): 1,
            date(2025, 3, 13): 1,
        }
        assert data.total_sets == 5
        # NOW is 03-15 with no activity that day
        assert data.current_streak == 0
        assert data.longest_streak == 2

    async def test_sets_bucketed_by_set_day_not_workout_day(self, engine, seeded):
        """The 03-13 set of the 03-12 workout is found in a 03-13-only range."""
        only_13th = DateRange.for_days(date(2025, 3, 13), date(2025, 3, 13))

        data = await engine.generate_set_based_heatmap_data(USER_ID, only_13th)

        assert data.daily_counts == {date(2025, 3, 13): 1}

    async def test_program_filter(self, engine, seeded):
        both_months = DateRange.for_days(date(2025, 2, 1), date(2025, 3, 31))

        data = await engine.generate_set_based_heatmap_data(
            USER_ID, both_months, program_filter=seeded["old"].id
        )

        assert data.daily_counts == {date(2025, 2, 20): 1}
        assert data.program_filter == seeded["old"].id

    async def test_program_filter_is_part_of_cache_key(self, engine, seeded):
        """Filtered and unfiltered heatmaps are cached separately."""
        unfiltered = await engine.generate_set_based_heatmap_data(USER_ID, MARCH)
        filtered = await engine.generate_set_based_heatmap_data(
            USER_ID, MARCH, program_filter=seeded["old"].id
        )

        assert unfiltered.total_sets == 5
        assert filtered.total_sets == 0

    async def test_program_named_all_is_not_the_unfiltered_view(self, engine, seeded):
        unfiltered = await engine.generate_set_based_heatmap_data(USER_ID, MARCH, None)
        named_all = await engine.generate_set_based_heatmap_data(USER_ID, MARCH, "all")

        assert unfiltered.total_sets == 5
        assert named_all.total_sets == 0
        assert named_all.program_filter == "all"

    async def test_year_heatmap(self, engine, seeded):
        data = await engine.generate_heatmap_data(USER_ID, 2025)

        assert data.year == 2025
        assert data.total_sets == 6
        assert data.range_start == date(2025, 1, 1)
        assert data.range_end == date(2025, 12, 31)

    async def test_current_streak_as_of_clock(self, engine, builder, clock):
        """Streaks are measured against the engine's today."""
        program = builder.program(datetime(2025, 3, 1))
        week = builder.week(program)
        for offset in range(3):
            day = clock() - timedelta(days=offset)
            workout = builder.workout(week, day)
            exercise = builder.exercise(workout, "Plank", ExerciseType.TIME_BASED)
            builder.set(exercise, day, duration=60)

        data = await engine.generate_set_based_heatmap_data(USER_ID, MARCH)

        assert data.current_streak == 3
        assert data.longest_streak == 3

    async def test_month_heatmap(self, engine, seeded, clock):
        data = await engine.get_month_heatmap_data(USER_ID, 2025, 3)

        assert data.daily_counts == {10: 3, 12: 1, 13: 1}
        assert data.total_sets == 5
        assert data.fetched_at == clock()

    async def test_month_heatmap_served_from_cache_until_stale(self, engine, seeded, clock):
        first = await engine.get_month_heatmap_data(USER_ID, 2025, 3)
        assert await engine.get_month_heatmap_data(USER_ID, 2025, 3) is first

        clock.advance(minutes=5)
        refreshed = await engine.get_month_heatmap_data(USER_ID, 2025, 3)

        assert refreshed is not first
        assert refreshed.fetched_at == clock()

    async def test_month_rejects_invalid_month(self, engine):
        with pytest.raises(ValueError):
            await engine.get_month_heatmap_data(USER_ID, 2025, 13)

    async def test_month_requires_user(self, engine):
        with pytest.raises(NotAuthenticatedError):
            await engine.get_month_heatmap_data("", 2025, 3)


class TestPrefetch:
    """Tests for adjacent-month warming."""

    @pytest.mark.parametrize(
        "anchor,expected",
        [
            ((2025, 3), [(2025, 2), (2025, 4)]),
            ((2024, 12), [(2024, 11), (2025, 1)]),
            ((2025, 1), [(2024, 12), (2025, 2)]),
        ],
    )
    async def test_adjacent_months_cached(self, engine, cache, seeded, anchor, expected):
        await engine.prefetch_adjacent_months(USER_ID, *anchor)

        for year, month in expected:
            assert cache_key(USER_ID, "month", year, month) in cache
        assert cache_key(USER_ID, "month", *anchor) not in cache

    async def test_one_failure_does_not_block_the_other(self, engine, cache, seeded, monkeypatch):
        real_build = engine._build_month_heatmap

        async def flaky(user_id, year, month, month_range):
            if month == 2:
                raise RuntimeError("store offline")
            return await real_build(user_id, year, month, month_range)

        monkeypatch.setattr(engine, "_build_month_heatmap", flaky)

        await engine.prefetch_adjacent_months(USER_ID, 2025, 3)

        assert cache_key(USER_ID, "month", 2025, 4) in cache
        assert cache_key(USER_ID, "month", 2025, 2) not in cache

    async def test_schedule_prefetch_runs_in_background(self, engine, cache, seeded):
        task = engine.schedule_prefetch(USER_ID, 2025, 3)

        assert task in AnalyticsEngine._background_tasks
        await task

        assert cache_key(USER_ID, "month", 2025, 2) in cache
        assert cache_key(USER_ID, "month", 2025, 4) in cache

    async def test_navigation_from_fixed_anchor(self, engine, cache):
        """Stepping forward from a December anchor warms every month of the next year."""
        for offset in range(13):
            await engine.prefetch_adjacent_months(USER_ID, *add_months(2024, 12, offset))

        for month in range(1, 13):
            assert cache_key(USER_ID, "month", 2025, month) in cache


class TestPersonalRecords:
    """Tests for get_personal_records and check_for_new_pr."""

    async def test_all_records_newest_first(self, engine, seeded):
        records = await engine.get_personal_records(USER_ID)

        # bench 3 + 2, run 2, push-ups 2, squat 3
        assert len(records) == 12
        achieved = [r.achieved_at for r in records]
        assert achieved == sorted(achieved, reverse=True)
        assert records[0].exercise_name == "Push-ups"
        assert records[0].value == 25.0

    async def test_limit(self, engine, seeded):
        records = await engine.get_personal_records(USER_ID, limit=3)

        assert len(records) == 3
        assert records[0].achieved_at == datetime(2025, 3, 13, 7, 0)

    async def test_zero_limit_returns_all(self, engine, seeded):
        assert len(await engine.get_personal_records(USER_ID, limit=0)) == 12

    async def test_negative_limit_rejected(self, engine):
        with pytest.raises(ValueError):
            await engine.get_personal_records(USER_ID, limit=-1)

    async def test_exercise_type_filter(self, engine, seeded):
        records = await engine.get_personal_records(USER_ID, exercise_type=ExerciseType.CARDIO)

        assert {r.pr_type for r in records} == {PRType.MAX_DURATION, PRType.MAX_DISTANCE}
        assert all(r.exercise_type is ExerciseType.CARDIO for r in records)

    async def test_history_window(self, engine, builder, seeded):
        """Sets older than the look-back window are ignored."""
        ancient = builder.program(datetime(2023, 1, 1))
        workout = builder.workout(builder.week(ancient), datetime(2023, 1, 2))
        deadlift = builder.exercise(workout, "Deadlift")
        builder.set(deadlift, datetime(2023, 1, 2, 10, 0), weight=200.0, reps=1)

        records = await engine.get_personal_records(USER_ID)

        assert all(r.exercise_name != "Deadlift" for r in records)

    async def test_check_for_new_pr(self, engine, seeded, clock):
        bench = seeded["bench"]
        new_set = _new_set(bench, clock(), weight=115.0, reps=3)

        record = await engine.check_for_new_pr(new_set, bench)

        assert record is not None
        assert record.pr_type is PRType.MAX_WEIGHT
        assert record.previous_value == 110.0

    async def test_check_for_new_pr_tie(self, engine, seeded, clock):
        bench = seeded["bench"]
        new_set = _new_set(bench, clock(), weight=110.0, reps=8)

        assert await engine.check_for_new_pr(new_set, bench) is None

    async def test_check_for_new_pr_survives_store_failure(self, engine, store, seeded, clock):
        """An unreadable history is treated as empty."""
        bench = seeded["bench"]
        store.fail_on.add(bench.id)

        record = await engine.check_for_new_pr(_new_set(bench, clock(), weight=50.0), bench)

        assert record is not None
        assert record.previous_value is None


class TestKeyStatistics:
    """Tests for compute_key_statistics and clear_cache."""

    async def test_summary(self, engine, seeded):
        stats = await engine.compute_key_statistics(USER_ID, MARCH)

        assert stats["totalWorkouts"] == 2
        assert stats["totalSets"] == 6
        assert stats["totalVolume"] == 1550.0
        assert stats["averageDuration"] == 15.0
        # every PR except the three February squat records
        assert stats["newPRs"] == 9
        assert stats["mostUsedExerciseType"] in {"Strength", "Cardio", "Bodyweight"}
        assert stats["completionPercentage"] == pytest.approx(5 / 6 * 100)
        assert stats["workoutsPerWeek"] == pytest.approx(2 / (31 / 7))

    async def test_empty(self, engine):
        stats = await engine.compute_key_statistics(USER_ID, MARCH)

        assert stats["totalWorkouts"] == 0
        assert stats["completionPercentage"] == 0.0
        assert stats["workoutsPerWeek"] == 0.0
        assert stats["mostUsedExerciseType"] == "None"
        assert stats["newPRs"] == 0

    async def test_clear_cache(self, engine, cache, seeded):
        await engine.get_month_heatmap_data(USER_ID, 2025, 3)
        assert len(cache) == 1

        engine.clear_cache()

        assert len(cache) == 0


def _new_set(exercise, created_at: datetime, **fields) -> SetData:
    return SetData(
        id="new-set",
        user_id=exercise.user_id,
        program_id=exercise.program_id,
        week_id=exercise.week_id,
        workout_id=exercise.workout_id,
        exercise_id=exercise.id,
        created_at=created_at,
        checked=True,
        **fields,
    )
