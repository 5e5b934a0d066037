"""Rollup statistics over already-loaded records.

Pure functions: no I/O, no clock reads.  Every function accepts the
pydantic records returned by the store or plain mappings with the same
field names, and returns zeros for empty input.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone, tzinfo
from typing import Any, Iterable, TypedDict

from foodabuser.core.time import parse_date, parse_timestamp, start_of_day


class MealStats(TypedDict):
    """Totals over a meal collection."""

    total_calories: float
    total_protein: float
    total_fat: float
    total_carbs: float
    average_calories: float


class PeriodBucket(TypedDict):
    calories: float
    meals_count: int


class PeriodStats(TypedDict):
    """Calories and meal count since the start of today, this week and this month."""

    day: PeriodBucket
    week: PeriodBucket
    month: PeriodBucket


class WeightStats(TypedDict):
    weight_change: float
    progress_percentage: float
    average_weight: float


class WaterStats(TypedDict):
    total_ml: int
    today_ml: int
    goal_ml: int
    progress_percentage: float


def field(record: Any, name: str, default: Any = None) -> Any:
    """Read *name* from a record object or a mapping."""
    if isinstance(record, dict):
        value = record.get(name, default)
    else:
        value = getattr(record, name, default)
    return default if value is None else value


_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def _timestamp(record: Any, name: str) -> datetime:
    return parse_timestamp(field(record, name))


# ---------------------------------------------------------------------------
# Meals
# ---------------------------------------------------------------------------
def compute_meal_stats(meals: Iterable[Any]) -> MealStats:
    meals = list(meals)
    total_calories = sum(field(m, "calories", 0) for m in meals)
    return MealStats(
        total_calories=total_calories,
        total_protein=sum(field(m, "protein", 0.0) for m in meals),
        total_fat=sum(field(m, "fat", 0.0) for m in meals),
        total_carbs=sum(field(m, "carbs", 0.0) for m in meals),
        average_calories=total_calories / len(meals) if meals else 0,
    )


def compute_period_stats(
    meals: Iterable[Any], now: datetime, tz: tzinfo | None = None
) -> PeriodStats:
    """Bucket meals into today / this week (from Sunday) / this month.

    Boundaries are local midnights in *tz* (default: the zone of *now*).
    """
    local_now = now.astimezone(tz) if tz is not None else now
    today = start_of_day(local_now)
    week_start = today - timedelta(days=(today.weekday() + 1) % 7)
    month_start = today.replace(day=1)

    buckets = {
        "day": PeriodBucket(calories=0, meals_count=0),
        "week": PeriodBucket(calories=0, meals_count=0),
        "month": PeriodBucket(calories=0, meals_count=0),
    }
    bounds = {"day": today, "week": week_start, "month": month_start}
    for meal in meals:
        moment = _timestamp(meal, "meal_time")
        for name, start in bounds.items():
            if moment >= start:
                buckets[name]["calories"] += field(meal, "calories", 0)
                buckets[name]["meals_count"] += 1
    return PeriodStats(day=buckets["day"], week=buckets["week"], month=buckets["month"])


# ---------------------------------------------------------------------------
# Weight
# ---------------------------------------------------------------------------
def latest_weight(records: Iterable[Any]) -> Any | None:
    """The record with the greatest ``record_date`` (``created_at`` breaks ties)."""
    latest = None
    latest_key: tuple[date, datetime] | None = None
    for record in records:
        created = field(record, "created_at")
        key = (
            parse_date(field(record, "record_date")),
            parse_timestamp(created) if created is not None else _EPOCH,
        )
        if latest_key is None or key >= latest_key:
            latest, latest_key = record, key
    return latest


def _weight_of(record: Any) -> float:
    return field(record, "weight_kg", None) or field(record, "weight", 0.0)


def compute_weight_stats(
    records: Iterable[Any],
    initial: float | None,
    target: float | None,
) -> WeightStats:
    """Change since *initial* and progress towards *target*.

    ``progress_percentage`` is ``|initial - current| / |initial - target|``
    as a percentage capped at 100; it does not distinguish overshoot or
    moving in the wrong direction.  Without an initial weight, change
    and progress are 0.
    """
    records = list(records)
    if not records:
        return WeightStats(weight_change=0.0, progress_percentage=0.0, average_weight=0.0)

    current = _weight_of(latest_weight(records))
    average = sum(_weight_of(r) for r in records) / len(records)
    if initial is None:
        return WeightStats(weight_change=0.0, progress_percentage=0.0, average_weight=average)

    total_change = abs(initial - target) if target is not None else 0.0
    progress = min(abs(initial - current) / total_change * 100, 100.0) if total_change > 0 else 0.0
    return WeightStats(
        weight_change=current - initial,
        progress_percentage=progress,
        average_weight=average,
    )


# ---------------------------------------------------------------------------
# Water
# ---------------------------------------------------------------------------
def compute_water_stats(records: Iterable[Any], goal_ml: int, today: date) -> WaterStats:
    """Total intake, today's intake and today's progress against *goal_ml*."""
    total = 0
    today_total = 0
    for record in records:
        amount = field(record, "amount_ml", 0)
        total += amount
        if parse_date(field(record, "record_date")) == today:
            today_total += amount
    progress = min(today_total / goal_ml * 100, 100.0) if goal_ml > 0 else 0.0
    return WaterStats(
        total_ml=total,
        today_ml=today_total,
        goal_ml=goal_ml,
        progress_percentage=round(progress, 1),
    )
