"""Chart-ready series: labelled buckets over a period.

Bucket per period:

- ``day``: hour of day (``"8:00"``), only hours that have data;
- ``week``: weekday, always seven buckets from Sunday, empty ones 0;
- ``month``: day of month, only days that have data;
- ``3m``: ISO week (Monday start), labelled ``"day/month"`` of its Monday;
- ``6m`` / ``year``: calendar month, labelled ``"Jan 25"``.

Calories *sum* inside a bucket; weight keeps the *last* point, i.e. the
one with the latest moment seen during a single left-to-right scan
(an equal moment later in the scan wins).
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time, timezone, tzinfo
from enum import Enum
from typing import Any, Hashable, Iterable, TypedDict

from foodabuser.core.time import Period, iso_week_start, parse_date, parse_timestamp
from foodabuser.i18n import t
from foodabuser.reports.stats import field


class ChartRule(str, Enum):
    SUM = "sum"
    LAST = "last"


class ChartSeries(TypedDict):
    labels: list[str]
    values: list[float]


@dataclass(frozen=True)
class ChartPoint:
    """One value at a local moment."""

    moment: datetime
    value: float


def _bucket_key(period: Period, moment: datetime) -> Hashable:
    if period is Period.DAY:
        return moment.hour
    if period is Period.WEEK:
        return (moment.weekday() + 1) % 7
    if period is Period.MONTH:
        return moment.day
    if period is Period.THREE_MONTHS:
        return iso_week_start(moment.date())
    return (moment.year, moment.month)


def _label(period: Period, key: Any, lang: str | None) -> str:
    if period is Period.DAY:
        return f"{key}:00"
    if period is Period.WEEK:
        return t(f"weekday_{key}", lang)
    if period is Period.MONTH:
        return str(key)
    if period is Period.THREE_MONTHS:
        return f"{key.day}/{key.month}"
    year, month = key
    return f"{t(f'month_{month}', lang)} {year % 100:02d}"


def build_chart_series(
    points: Iterable[ChartPoint],
    period: Period | str,
    rule: ChartRule | str,
    lang: str | None = "RU",
) -> ChartSeries:
    """Group *points* into the buckets of *period* and combine them by *rule*."""
    period = Period.parse(period, Period.WEEK)
    rule = ChartRule(rule)

    totals: dict[Hashable, float] = {}
    latest: dict[Hashable, ChartPoint] = {}
    for point in points:
        key = _bucket_key(period, point.moment)
        if rule is ChartRule.SUM:
            totals[key] = totals.get(key, 0) + point.value
        else:
            current = latest.get(key)
            if current is None or point.moment >= current.moment:
                latest[key] = point
                totals[key] = point.value

    if period is Period.WEEK:
        keys: list[Any] = list(range(7))
    else:
        keys = sorted(totals)
    return ChartSeries(
        labels=[_label(period, k, lang) for k in keys],
        values=[totals.get(k, 0) for k in keys],
    )


# ---------------------------------------------------------------------------
# Record adapters
# ---------------------------------------------------------------------------
def meal_points(meals: Iterable[Any], tz: tzinfo = timezone.utc) -> list[ChartPoint]:
    return [
        ChartPoint(
            moment=parse_timestamp(field(m, "meal_time")).astimezone(tz),
            value=field(m, "calories", 0),
        )
        for m in meals
    ]


def weight_points(records: Iterable[Any], tz: tzinfo = timezone.utc) -> list[ChartPoint]:
    """Weight at ``record_date``, timed by the hour it was recorded."""
    points = []
    for record in records:
        day: date = parse_date(field(record, "record_date"))
        created = field(record, "created_at")
        clock = parse_timestamp(created).astimezone(tz).time() if created is not None else time()
        points.append(
            ChartPoint(
                moment=datetime.combine(day, clock, tzinfo=tz),
                value=field(record, "weight_kg", None) or field(record, "weight", 0.0),
            )
        )
    return points


def calorie_series(
    meals: Iterable[Any], period: Period | str, tz: tzinfo = timezone.utc, lang: str | None = "RU"
) -> ChartSeries:
    return build_chart_series(meal_points(meals, tz), period, ChartRule.SUM, lang)


def weight_series(
    records: Iterable[Any], period: Period | str, tz: tzinfo = timezone.utc, lang: str | None = "RU"
) -> ChartSeries:
    return build_chart_series(weight_points(records, tz), period, ChartRule.LAST, lang)
