"""Pure statistics over meal, weight and water records."""

from __future__ import annotations

from datetime import date, datetime, timezone
from zoneinfo import ZoneInfo

import pytest

from foodabuser.reports.stats import (
    compute_meal_stats,
    compute_period_stats,
    compute_water_stats,
    compute_weight_stats,
    latest_weight,
)

NOW = datetime(2025, 1, 8, 10, 0, tzinfo=timezone.utc)  # Wednesday


def _meal(meal_time: str, calories: int = 100, protein: float = 0.0) -> dict:
    return {"meal_time": meal_time, "calories": calories, "protein": protein}


def _weight(record_date: str, weight: float, created_at: str | None = None) -> dict:
    return {"record_date": record_date, "weight_kg": weight, "created_at": created_at}


class TestMealStats:
    def test_empty(self):
        assert compute_meal_stats([]) == {
            "total_calories": 0,
            "total_protein": 0,
            "total_fat": 0,
            "total_carbs": 0,
            "average_calories": 0,
        }

    def test_totals_and_average(self):
        meals = [
            {"calories": 300, "protein": 10, "fat": 5, "carbs": 40},
            {"calories": 500, "protein": 20.5, "fat": None, "carbs": 60},
        ]
        stats = compute_meal_stats(meals)
        assert stats["total_calories"] == 800
        assert stats["total_protein"] == pytest.approx(30.5)
        assert stats["total_fat"] == 5
        assert stats["average_calories"] == 400


class TestPeriodStats:
    def test_buckets(self):
        meals = [
            _meal("2025-01-08T08:00:00Z", 300),
            _meal("2025-01-06T12:00:00Z", 500),  # Monday
            _meal("2025-01-04T12:00:00Z", 700),  # Saturday, previous week
            _meal("2024-12-31T12:00:00Z", 900),
        ]
        stats = compute_period_stats(meals, NOW)
        assert stats["day"] == {"calories": 300, "meals_count": 1}
        assert stats["week"] == {"calories": 800, "meals_count": 2}
        assert stats["month"] == {"calories": 1500, "meals_count": 3}

    def test_week_starts_on_sunday(self):
        meals = [_meal("2025-01-05T00:00:00Z"), _meal("2025-01-04T23:59:59Z")]
        assert compute_period_stats(meals, NOW)["week"]["meals_count"] == 1

    def test_boundaries_follow_timezone(self):
        late_evening = [_meal("2025-01-07T16:00:00Z")]
        assert compute_period_stats(late_evening, NOW)["day"]["meals_count"] == 0
        tokyo = compute_period_stats(late_evening, NOW, ZoneInfo("Asia/Tokyo"))
        assert tokyo["day"]["meals_count"] == 1


class TestWeightStats:
    def test_progress_example(self):
        records = [_weight("2025-01-01", 78), _weight("2025-01-05", 75)]
        stats = compute_weight_stats(records, initial=80, target=70)
        assert stats["progress_percentage"] == 50.0
        assert stats["weight_change"] == -5
        assert stats["average_weight"] == 76.5

    def test_progress_is_capped(self):
        stats = compute_weight_stats([_weight("2025-01-05", 65)], initial=80, target=70)
        assert stats["progress_percentage"] == 100.0

    def test_empty(self):
        assert compute_weight_stats([], 80, 70) == {
            "weight_change": 0.0,
            "progress_percentage": 0.0,
            "average_weight": 0.0,
        }

    def test_without_initial_weight(self):
        stats = compute_weight_stats([_weight("2025-01-05", 75)], initial=None, target=70)
        assert stats["weight_change"] == 0.0
        assert stats["progress_percentage"] == 0.0
        assert stats["average_weight"] == 75

    def test_target_equal_to_initial(self):
        stats = compute_weight_stats([_weight("2025-01-05", 79)], initial=80, target=80)
        assert stats["progress_percentage"] == 0.0

    def test_latest_uses_created_at_on_same_day(self):
        records = [
            _weight("2025-01-05", 76, "2025-01-05T20:00:00Z"),
            _weight("2025-01-05", 75, "2025-01-05T07:00:00Z"),
        ]
        assert latest_weight(records)["weight_kg"] == 76


class TestWaterStats:
    def test_today_progress(self):
        records = [
            {"amount_ml": 500, "record_date": "2025-01-08"},
            {"amount_ml": 250, "record_date": date(2025, 1, 8)},
            {"amount_ml": 1000, "record_date": "2025-01-07"},
        ]
        stats = compute_water_stats(records, 2000, date(2025, 1, 8))
        assert stats == {
            "total_ml": 1750,
            "today_ml": 750,
            "goal_ml": 2000,
            "progress_percentage": 37.5,
        }

    def test_zero_goal(self):
        records = [{"amount_ml": 500, "record_date": "2025-01-08"}]
        stats = compute_water_stats(records, 0, date(2025, 1, 8))
        assert stats["progress_percentage"] == 0.0
