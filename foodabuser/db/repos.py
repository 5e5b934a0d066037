"""Database repositories: thin CRUD layer over SQLAlchemy models.

Repositories never commit; the caller owns the session and its
transaction boundary (see ``Database.session``).
"""

from __future__ import annotations

import secrets
from datetime import date, datetime
from typing import Any, ClassVar

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from foodabuser.db.models import Base, MealEntry, UserSettings, WaterEntry, WeightEntry

_ID_ALPHABET = "0123456789abcdefghijklmnopqrstuvwxyz"


def new_record_id(prefix: str, now: datetime) -> str:
    """Return ``{prefix}_{epoch_ms}_{random}`` with a 9-char base36 suffix."""
    suffix = "".join(secrets.choice(_ID_ALPHABET) for _ in range(9))
    return f"{prefix}_{int(now.timestamp() * 1000)}_{suffix}"


# ---------------------------------------------------------------------------
# Shared record operations
# ---------------------------------------------------------------------------
class _RecordRepo:
    """CRUD shared by every collection; subclasses name the model."""

    model: ClassVar[type[Base]]
    # Column used for period filtering and descending order.
    order_column: ClassVar[str]

    @classmethod
    async def create(cls, session: AsyncSession, **fields: Any) -> Any:
        """Insert a row and return it as read back from the database."""
        row = cls.model(**fields)
        session.add(row)
        await session.flush()
        await session.refresh(row)
        return row

    @classmethod
    async def get(cls, session: AsyncSession, record_id: str) -> Any | None:
        return await session.get(cls.model, record_id)

    @classmethod
    async def update(cls, session: AsyncSession, record_id: str, **fields: Any) -> Any | None:
        """Overwrite *fields* on the row with *record_id*.

        Returns:
            The refreshed row, or ``None`` when no row has that id.
        """
        row = await session.get(cls.model, record_id)
        if row is None:
            return None
        for name, value in fields.items():
            setattr(row, name, value)
        await session.flush()
        await session.refresh(row)
        return row

    @classmethod
    async def delete(cls, session: AsyncSession, record_id: str) -> int:
        """Delete by id; returns the number of rows removed (0 or 1)."""
        result = await session.execute(delete(cls.model).where(cls.model.id == record_id))
        return result.rowcount or 0

    @classmethod
    async def list_since(
        cls,
        session: AsyncSession,
        start: datetime | date,
        user_id: str | None = None,
    ) -> list[Any]:
        """Rows whose order column is ``>= start``, newest first."""
        column = getattr(cls.model, cls.order_column)
        stmt = select(cls.model).where(column >= start)
        if user_id is not None:
            stmt = stmt.where(cls.model.user_id == user_id)
        stmt = stmt.order_by(column.desc(), cls.model.id.desc())
        result = await session.execute(stmt)
        return list(result.scalars().all())

    @classmethod
    async def list_all(cls, session: AsyncSession) -> list[Any]:
        """Every row, newest first (stable on ties)."""
        column = getattr(cls.model, cls.order_column)
        stmt = select(cls.model).order_by(column.desc(), cls.model.id.desc())
        result = await session.execute(stmt)
        return list(result.scalars().all())

    @classmethod
    async def delete_all(cls, session: AsyncSession) -> int:
        result = await session.execute(delete(cls.model))
        return result.rowcount or 0


# ---------------------------------------------------------------------------
# MealRepo
# ---------------------------------------------------------------------------
class MealRepo(_RecordRepo):
    """CRUD operations for the ``meals`` table."""

    model = MealEntry
    order_column = "meal_time"


# ---------------------------------------------------------------------------
# WaterRepo / WeightRepo
# ---------------------------------------------------------------------------
class WaterRepo(_RecordRepo):
    """CRUD operations for the ``water_records`` table."""

    model = WaterEntry
    order_column = "record_date"


class WeightRepo(_RecordRepo):
    """CRUD operations for the ``weight_records`` table."""

    model = WeightEntry
    order_column = "record_date"


# ---------------------------------------------------------------------------
# SettingsRepo
# ---------------------------------------------------------------------------
class SettingsRepo(_RecordRepo):
    """CRUD operations for the ``user_settings`` table."""

    model = UserSettings
    order_column = "created_at"

    @staticmethod
    async def first(session: AsyncSession, user_id: str | None = None) -> UserSettings | None:
        """The oldest settings row, for *user_id* when given."""
        stmt = select(UserSettings)
        if user_id is not None:
            stmt = stmt.where(UserSettings.user_id == user_id)
        stmt = stmt.order_by(UserSettings.created_at, UserSettings.id).limit(1)
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def upsert(session: AsyncSession, **fields: Any) -> UserSettings:
        """Insert the row, or replace every column of the row with the same id."""
        row = await session.merge(UserSettings(**fields))
        await session.flush()
        return row
