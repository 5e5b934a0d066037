"""Pydantic shapes for record input and output.

Input models (``*In``) are permissive: unknown fields are ignored,
missing or null numeric fields fall back to their defaults, and
timestamps may arrive as ISO strings.  Output models (``*Record``) are
built from ORM rows and are what every store operation returns.
"""

from __future__ import annotations

import math
from datetime import date, datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, field_validator, model_validator

from foodabuser.core.time import ensure_utc, parse_date


class MealCategory(str, Enum):
    BREAKFAST = "breakfast"
    LUNCH = "lunch"
    DINNER = "dinner"
    SNACK = "snack"


def _blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


# SQLite INTEGER is a signed 64-bit value.
INT_MIN = -(2**63)
INT_MAX = 2**63 - 1


def _whole(value: Any) -> Any:
    if isinstance(value, float):
        if not math.isfinite(value):
            raise ValueError("must be a finite number")
        return round(value)
    return value


def _int_or_zero(value: Any) -> Any:
    return 0 if _blank(value) else _whole(value)


def _int64(value: int | None) -> int | None:
    if value is not None and not INT_MIN <= value <= INT_MAX:
        raise ValueError(f"must be between {INT_MIN} and {INT_MAX}")
    return value


def _float_or_zero(value: Any) -> Any:
    return 0.0 if _blank(value) else value


def _timestamp_or_none(value: Any) -> Any:
    return None if _blank(value) else value


def _utc(value: datetime | None) -> datetime | None:
    return ensure_utc(value) if value is not None else None


class _Input(BaseModel):
    model_config = ConfigDict(extra="ignore", allow_inf_nan=False)


# ---------------------------------------------------------------------------
# Meals
# ---------------------------------------------------------------------------
class MealIn(_Input):
    id: str | None = None
    user_id: str | None = None
    title: str = ""
    description: str | None = None
    category: MealCategory = MealCategory.SNACK
    portion_weight: int | None = None
    calories: int = 0
    protein: float = 0.0
    fat: float = 0.0
    carbs: float = 0.0
    image_url: str | None = None
    meal_time: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @field_validator("title", mode="before")
    @classmethod
    def _title(cls, v: Any) -> Any:
        return "" if v is None else v

    @field_validator("category", mode="before")
    @classmethod
    def _category(cls, v: Any) -> Any:
        if _blank(v):
            return MealCategory.SNACK
        return v.lower() if isinstance(v, str) else v

    @field_validator("portion_weight", mode="before")
    @classmethod
    def _portion(cls, v: Any) -> Any:
        return None if _blank(v) else _whole(v)

    _calories = field_validator("calories", mode="before")(_int_or_zero)
    _ints = field_validator("portion_weight", "calories")(_int64)
    _macros = field_validator("protein", "fat", "carbs", mode="before")(_float_or_zero)
    _stamps_in = field_validator("meal_time", "created_at", "updated_at", mode="before")(
        _timestamp_or_none
    )
    _stamps_out = field_validator("meal_time", "created_at", "updated_at")(_utc)


class MealRecord(BaseModel):
    """A meal as persisted."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str | None = None
    title: str
    description: str | None = None
    category: MealCategory
    portion_weight: int | None = None
    calories: int = 0
    protein: float = 0.0
    fat: float = 0.0
    carbs: float = 0.0
    image_url: str | None = None
    meal_time: datetime
    created_at: datetime
    updated_at: datetime


# ---------------------------------------------------------------------------
# Water
# ---------------------------------------------------------------------------
class WaterIn(_Input):
    id: str | None = None
    user_id: str | None = None
    amount_ml: int = 0
    record_date: date | None = None
    created_at: datetime | None = None

    _amount = field_validator("amount_ml", mode="before")(_int_or_zero)
    _amount_range = field_validator("amount_ml")(_int64)
    _created_in = field_validator("created_at", mode="before")(_timestamp_or_none)
    _created_out = field_validator("created_at")(_utc)

    @field_validator("record_date", mode="before")
    @classmethod
    def _record_date(cls, v: Any) -> Any:
        return None if _blank(v) else parse_date(v)


class WaterRecord(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str | None = None
    amount_ml: int
    record_date: date
    created_at: datetime


# ---------------------------------------------------------------------------
# Weight
# ---------------------------------------------------------------------------
class WeightIn(_Input):
    """Weight input; ``weight`` is accepted as an alias of ``weight_kg``."""

    id: str | None = None
    user_id: str | None = None
    weight_kg: float = 0.0
    record_date: date | None = None
    created_at: datetime | None = None

    @model_validator(mode="before")
    @classmethod
    def _weight_alias(cls, data: Any) -> Any:
        if isinstance(data, dict) and _blank(data.get("weight_kg")) and "weight" in data:
            data = {**data, "weight_kg": data["weight"]}
        return data

    _weight = field_validator("weight_kg", mode="before")(_float_or_zero)
    _created_in = field_validator("created_at", mode="before")(_timestamp_or_none)
    _created_out = field_validator("created_at")(_utc)

    @field_validator("record_date", mode="before")
    @classmethod
    def _record_date(cls, v: Any) -> Any:
        return None if _blank(v) else parse_date(v)


class WeightRecord(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str | None = None
    weight_kg: float
    record_date: date
    created_at: datetime


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------
class SettingsIn(_Input):
    id: str | None = None
    user_id: str | None = None
    daily_calorie_goal: int = 2000
    daily_water_goal_ml: int = 2000
    target_weight_kg: float | None = None
    initial_weight_kg: float | None = None
    notifications_enabled: bool = True
    dark_mode: bool = False
    language: str = "ru"
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @field_validator("daily_calorie_goal", "daily_water_goal_ml", mode="before")
    @classmethod
    def _goal(cls, v: Any) -> Any:
        # 0 counts as "unset", as the mobile client writes it.
        if _blank(v) or v == 0:
            return 2000
        return _whole(v)

    _goal_range = field_validator("daily_calorie_goal", "daily_water_goal_ml")(_int64)

    @field_validator("target_weight_kg", "initial_weight_kg", mode="before")
    @classmethod
    def _weights(cls, v: Any) -> Any:
        return None if _blank(v) else v

    @field_validator("notifications_enabled", mode="before")
    @classmethod
    def _notifications(cls, v: Any) -> Any:
        return True if v is None else v

    @field_validator("dark_mode", mode="before")
    @classmethod
    def _dark_mode(cls, v: Any) -> Any:
        return False if v is None else v

    @field_validator("language", mode="before")
    @classmethod
    def _language(cls, v: Any) -> Any:
        return "ru" if _blank(v) else v

    _stamps_in = field_validator("created_at", "updated_at", mode="before")(_timestamp_or_none)
    _stamps_out = field_validator("created_at", "updated_at")(_utc)


class SettingsRecord(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str | None = None
    daily_calorie_goal: int = 2000
    daily_water_goal_ml: int = 2000
    target_weight_kg: float | None = None
    initial_weight_kg: float | None = None
    notifications_enabled: bool = True
    dark_mode: bool = False
    language: str = "ru"
    created_at: datetime
    updated_at: datetime
