"""SQLAlchemy 2.0 declarative models for the four record collections.

Timestamps are persisted as fixed-width ISO-8601 UTC strings (see
``IsoTimestamp``) so that period filters can compare them directly.
Dates are stored by the SQLite ``DATE`` type as ``YYYY-MM-DD``.
"""

from __future__ import annotations

from datetime import date, datetime

from sqlalchemy import Boolean, Date, Float, Index, Integer, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.types import TypeDecorator

from foodabuser.core.time import format_timestamp, parse_timestamp


class IsoTimestamp(TypeDecorator):
    """Aware datetime stored as ``YYYY-MM-DDTHH:MM:SS.ffffffZ`` text.

    Comparisons against a column of this type bind the other operand
    through the same codec, so ``MealEntry.meal_time >= start`` compares
    like-formatted strings.
    """

    impl = String(32)
    cache_ok = True

    def process_bind_param(self, value, dialect):  # noqa: ANN001, ANN201
        if value is None:
            return None
        return format_timestamp(parse_timestamp(value))

    def process_result_value(self, value, dialect):  # noqa: ANN001, ANN201
        if value is None:
            return None
        return parse_timestamp(value)


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


class MealEntry(Base):
    """A logged meal with its nutrition values."""

    __tablename__ = "meals"
    __table_args__ = (
        Index("idx_meals_meal_time", "meal_time"),
        Index("idx_meals_category", "category"),
    )

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    user_id: Mapped[str | None] = mapped_column(String(64), nullable=True)

    title: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    # breakfast / lunch / dinner / snack
    category: Mapped[str] = mapped_column(String(16), nullable=False)
    portion_weight: Mapped[int | None] = mapped_column(Integer, nullable=True)

    calories: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    protein: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    fat: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    carbs: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)

    image_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    meal_time: Mapped[datetime] = mapped_column(IsoTimestamp, nullable=False)

    created_at: Mapped[datetime] = mapped_column(IsoTimestamp, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(IsoTimestamp, nullable=False)

    def __repr__(self) -> str:
        return f"<MealEntry {self.id} {self.title} {self.calories}kcal>"


class WaterEntry(Base):
    """A single water intake record."""

    __tablename__ = "water_records"
    __table_args__ = (Index("idx_water_records_date", "record_date"),)

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    user_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    amount_ml: Mapped[int] = mapped_column(Integer, nullable=False)
    record_date: Mapped[date] = mapped_column(Date, nullable=False)
    created_at: Mapped[datetime] = mapped_column(IsoTimestamp, nullable=False)

    def __repr__(self) -> str:
        return f"<WaterEntry {self.id} {self.amount_ml}ml {self.record_date}>"


class WeightEntry(Base):
    """A single body weight measurement."""

    __tablename__ = "weight_records"
    __table_args__ = (Index("idx_weight_records_date", "record_date"),)

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    user_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    weight_kg: Mapped[float] = mapped_column(Float, nullable=False)
    record_date: Mapped[date] = mapped_column(Date, nullable=False)
    created_at: Mapped[datetime] = mapped_column(IsoTimestamp, nullable=False)

    def __repr__(self) -> str:
        return f"<WeightEntry {self.id} {self.weight_kg}kg {self.record_date}>"


class UserSettings(Base):
    """Goals and preferences; normally a single row per user."""

    __tablename__ = "user_settings"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    user_id: Mapped[str | None] = mapped_column(String(64), nullable=True)

    daily_calorie_goal: Mapped[int] = mapped_column(Integer, nullable=False, default=2000)
    daily_water_goal_ml: Mapped[int] = mapped_column(Integer, nullable=False, default=2000)
    target_weight_kg: Mapped[float | None] = mapped_column(Float, nullable=True)
    initial_weight_kg: Mapped[float | None] = mapped_column(Float, nullable=True)

    notifications_enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    dark_mode: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    language: Mapped[str] = mapped_column(String(8), nullable=False, default="ru")

    created_at: Mapped[datetime] = mapped_column(IsoTimestamp, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(IsoTimestamp, nullable=False)

    def __repr__(self) -> str:
        return f"<UserSettings {self.id} goal={self.daily_calorie_goal}kcal>"
