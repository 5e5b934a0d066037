"""Record store: CRUD and period queries for meals, water, weight and settings.

``RecordStore`` is constructed once by the composition root and passed to
everything that needs it.  ``open()`` is idempotent.  When storage is
disabled or the schema cannot be created, the store stays *unavailable*
and every operation returns its pass-through result instead of raising:

- loads return ``[]``;
- adds return the input with id and timestamps filled in;
- updates return the input with a fresh ``updated_at``;
- deletes return ``True``;
- ``get_settings`` returns ``None``.
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from datetime import datetime
from pathlib import Path
from typing import Any, AsyncIterator, Callable, Mapping, TypeVar

from pydantic import BaseModel, ValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from foodabuser.core.config import Settings
from foodabuser.core.errors import NotFound, StorageFailure, ValidationFailure
from foodabuser.core.time import Period, ensure_utc, period_start, utc_now
from foodabuser.db.repos import MealRepo, SettingsRepo, WaterRepo, WeightRepo, new_record_id
from foodabuser.db.schemas import (
    MealIn,
    MealRecord,
    SettingsIn,
    SettingsRecord,
    WaterIn,
    WaterRecord,
    WeightIn,
    WeightRecord,
)
from foodabuser.db.session import Database

logger = logging.getLogger(__name__)

_M = TypeVar("_M", bound=BaseModel)


def coerce_input(model: type[_M], data: _M | Mapping[str, Any]) -> _M:
    """Validate *data* into *model*; pydantic errors become ``ValidationFailure``."""
    if isinstance(data, model):
        return data
    try:
        return model.model_validate(data)
    except ValidationError as exc:
        detail = "; ".join(
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in exc.errors()
        )
        raise ValidationFailure("err_invalid_input", detail=detail) from exc


class RecordStore:
    """Async record store over SQLAlchemy.

    Args:
        settings: Application settings (database URL, timezone, switches).
        clock: Returns the current aware time; injectable for tests.
    """

    def __init__(self, settings: Settings, *, clock: Callable[[], datetime] = utc_now) -> None:
        self._settings = settings
        self._clock = clock
        self._db: Database | None = None
        self._opened = False
        self._lock = asyncio.Lock()

    # --- lifecycle -----------------------------------------------------------
    @property
    def available(self) -> bool:
        return self._db is not None

    async def open(self) -> RecordStore:
        """Create the schema if absent.  Safe to call more than once."""
        async with self._lock:
            if self._opened:
                return self
            self._opened = True

            if not self._settings.STORE_ENABLED:
                logger.warning(
                    "Record store disabled by configuration",
                    extra={"event": "store_unavailable", "degraded": True},
                )
                return self

            db = Database(self._settings.DATABASE_URL)
            try:
                await db.create_schema()
            except (SQLAlchemyError, OSError):
                logger.error(
                    "Record store could not be opened; running degraded",
                    extra={"event": "store_unavailable", "degraded": True},
                    exc_info=True,
                )
                await db.dispose()
                return self
            except BaseException:
                await db.dispose()
                raise

            self._db = db
            logger.info("Record store opened", extra={"event": "store_opened"})
        return self

    @property
    def backup_dir(self) -> Path:
        return self._settings.BACKUP_DIR

    def mark_unavailable(self) -> None:
        """Switch to degraded mode (used when startup did not finish in time)."""
        self._opened = True
        if self._db is not None:
            return
        logger.warning(
            "Record store marked unavailable",
            extra={"event": "store_unavailable", "degraded": True},
        )

    async def close(self) -> None:
        if self._db is not None:
            await self._db.dispose()
            self._db = None
        self._opened = False

    # --- helpers -------------------------------------------------------------
    def now(self) -> datetime:
        """Current time in UTC."""
        return ensure_utc(self._clock())

    def local_now(self) -> datetime:
        """Current time in the configured timezone."""
        return self._clock().astimezone(self._settings.tz)

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[AsyncSession]:
        """One session and transaction; driver errors become ``StorageFailure``."""
        if self._db is None:
            raise StorageFailure("err_storage", detail="store is unavailable")
        try:
            async with self._db.session() as session:
                yield session
        except (SQLAlchemyError, OverflowError) as exc:
            logger.error(
                "Store operation failed: %s",
                exc.__class__.__name__,
                extra={"event": "storage_failure"},
            )
            raise StorageFailure("err_storage", detail=exc.__class__.__name__) from exc

    def _start(self, period: str | Period | None, default: Period) -> datetime:
        return period_start(Period.parse(period, default), self.local_now())

    # -------------------------------------------------------------------------
    # Meals
    # -------------------------------------------------------------------------
    def meal_fields(self, data: MealIn | Mapping[str, Any]) -> dict[str, Any]:
        """Column values for a new meal: id and timestamps filled when absent."""
        meal = coerce_input(MealIn, data)
        now = self.now()
        fields = meal.model_dump()
        fields.update(
            id=meal.id or new_record_id("meal", now),
            category=meal.category.value,
            meal_time=meal.meal_time or now,
            created_at=meal.created_at or now,
            updated_at=meal.updated_at or now,
        )
        return fields

    async def add_meal(self, data: MealIn | Mapping[str, Any]) -> MealRecord:
        fields = self.meal_fields(data)
        if not self.available:
            return MealRecord(**fields)

        async with self.transaction() as session:
            row = await MealRepo.create(session, **fields)
            record = MealRecord.model_validate(row)
        logger.info(
            "Meal added",
            extra={"event": "record_added", "collection": "meals", "record_id": record.id},
        )
        return record

    async def update_meal(self, data: MealIn | Mapping[str, Any]) -> MealRecord:
        """Replace every mutable field of the meal with ``data.id``.

        An omitted ``meal_time`` keeps the stored one.

        Raises:
            NotFound: No meal has that id.
        """
        meal = _require_id(coerce_input(MealIn, data))
        now = self.now()
        fields: dict[str, Any] = {
            "title": meal.title,
            "description": meal.description,
            "category": meal.category.value,
            "portion_weight": meal.portion_weight,
            "calories": meal.calories,
            "protein": meal.protein,
            "fat": meal.fat,
            "carbs": meal.carbs,
            "image_url": meal.image_url,
            "updated_at": now,
        }
        if meal.meal_time is not None:
            fields["meal_time"] = meal.meal_time

        if not self.available:
            return MealRecord(
                **{
                    **meal.model_dump(),
                    **fields,
                    "meal_time": meal.meal_time or now,
                    "created_at": meal.created_at or now,
                }
            )

        async with self.transaction() as session:
            row = await MealRepo.update(session, meal.id, **fields)
            if row is None:
                raise NotFound("err_not_found", collection="meals", record_id=meal.id)
            record = MealRecord.model_validate(row)
        logger.info(
            "Meal updated",
            extra={"event": "record_updated", "collection": "meals", "record_id": record.id},
        )
        return record

    async def delete_meal(self, record_id: str) -> bool:
        return await self._delete(MealRepo, "meals", record_id)

    async def load_meals(
        self, period: str | Period | None = Period.WEEK, user_id: str | None = None
    ) -> list[MealRecord]:
        """Meals with ``meal_time >= start of period``, newest first."""
        if not self.available:
            return []
        start = self._start(period, Period.WEEK)
        async with self.transaction() as session:
            rows = await MealRepo.list_since(session, start, user_id)
            records = [MealRecord.model_validate(r) for r in rows]
        logger.debug(
            "Meals loaded",
            extra={
                "event": "records_loaded",
                "collection": "meals",
                "period": Period.parse(period, Period.WEEK).value,
                "count": len(records),
            },
        )
        return records

    # -------------------------------------------------------------------------
    # Water
    # -------------------------------------------------------------------------
    def water_fields(self, data: WaterIn | Mapping[str, Any]) -> dict[str, Any]:
        water = coerce_input(WaterIn, data)
        now = self.now()
        fields = water.model_dump()
        fields.update(
            id=water.id or new_record_id("water", now),
            record_date=water.record_date or self.local_now().date(),
            created_at=water.created_at or now,
        )
        return fields

    async def add_water(self, data: WaterIn | Mapping[str, Any]) -> WaterRecord:
        fields = self.water_fields(data)
        if not self.available:
            return WaterRecord(**fields)

        async with self.transaction() as session:
            row = await WaterRepo.create(session, **fields)
            record = WaterRecord.model_validate(row)
        logger.info(
            "Water added",
            extra={"event": "record_added", "collection": "water_records", "record_id": record.id},
        )
        return record

    async def update_water(self, data: WaterIn | Mapping[str, Any]) -> WaterRecord:
        """Replace ``amount_ml`` and ``record_date`` of the record with ``data.id``."""
        water = _require_id(coerce_input(WaterIn, data))
        fields: dict[str, Any] = {"amount_ml": water.amount_ml}
        if water.record_date is not None:
            fields["record_date"] = water.record_date

        if not self.available:
            return WaterRecord(
                **{
                    **water.model_dump(),
                    "record_date": water.record_date or self.local_now().date(),
                    "created_at": water.created_at or self.now(),
                }
            )

        async with self.transaction() as session:
            row = await WaterRepo.update(session, water.id, **fields)
            if row is None:
                raise NotFound("err_not_found", collection="water_records", record_id=water.id)
            record = WaterRecord.model_validate(row)
        logger.info(
            "Water updated",
            extra={
                "event": "record_updated",
                "collection": "water_records",
                "record_id": record.id,
            },
        )
        return record

    async def delete_water(self, record_id: str) -> bool:
        return await self._delete(WaterRepo, "water_records", record_id)

    async def load_water(
        self, period: str | Period | None = Period.WEEK, user_id: str | None = None
    ) -> list[WaterRecord]:
        if not self.available:
            return []
        start = self._start(period, Period.WEEK).date()
        async with self.transaction() as session:
            rows = await WaterRepo.list_since(session, start, user_id)
            return [WaterRecord.model_validate(r) for r in rows]

    # -------------------------------------------------------------------------
    # Weight
    # -------------------------------------------------------------------------
    def weight_fields(self, data: WeightIn | Mapping[str, Any]) -> dict[str, Any]:
        weight = coerce_input(WeightIn, data)
        now = self.now()
        fields = weight.model_dump()
        fields.update(
            id=weight.id or new_record_id("weight", now),
            record_date=weight.record_date or self.local_now().date(),
            created_at=weight.created_at or now,
        )
        return fields

    async def add_weight(self, data: WeightIn | Mapping[str, Any]) -> WeightRecord:
        fields = self.weight_fields(data)
        if not self.available:
            return WeightRecord(**fields)

        async with self.transaction() as session:
            row = await WeightRepo.create(session, **fields)
            record = WeightRecord.model_validate(row)
        logger.info(
            "Weight added",
            extra={"event": "record_added", "collection": "weight_records", "record_id": record.id},
        )
        return record

    async def update_weight(self, data: WeightIn | Mapping[str, Any]) -> WeightRecord:
        """Replace ``weight_kg`` and ``record_date`` of the record with ``data.id``."""
        weight = _require_id(coerce_input(WeightIn, data))
        fields: dict[str, Any] = {"weight_kg": weight.weight_kg}
        if weight.record_date is not None:
            fields["record_date"] = weight.record_date

        if not self.available:
            return WeightRecord(
                **{
                    **weight.model_dump(),
                    "record_date": weight.record_date or self.local_now().date(),
                    "created_at": weight.created_at or self.now(),
                }
            )

        async with self.transaction() as session:
            row = await WeightRepo.update(session, weight.id, **fields)
            if row is None:
                raise NotFound("err_not_found", collection="weight_records", record_id=weight.id)
            record = WeightRecord.model_validate(row)
        logger.info(
            "Weight updated",
            extra={
                "event": "record_updated",
                "collection": "weight_records",
                "record_id": record.id,
            },
        )
        return record

    async def delete_weight(self, record_id: str) -> bool:
        return await self._delete(WeightRepo, "weight_records", record_id)

    async def load_weight(
        self, period: str | Period | None = Period.MONTH, user_id: str | None = None
    ) -> list[WeightRecord]:
        if not self.available:
            return []
        start = self._start(period, Period.MONTH).date()
        async with self.transaction() as session:
            rows = await WeightRepo.list_since(session, start, user_id)
            return [WeightRecord.model_validate(r) for r in rows]

    # -------------------------------------------------------------------------
    # Settings
    # -------------------------------------------------------------------------
    def settings_fields(self, data: SettingsIn | Mapping[str, Any]) -> dict[str, Any]:
        settings_in = coerce_input(SettingsIn, data)
        now = self.now()
        fields = settings_in.model_dump()
        fields.update(
            id=settings_in.id or new_record_id("settings", now),
            created_at=settings_in.created_at or now,
            updated_at=settings_in.updated_at or now,
        )
        return fields

    async def add_settings(self, data: SettingsIn | Mapping[str, Any]) -> SettingsRecord:
        fields = self.settings_fields(data)
        if not self.available:
            return SettingsRecord(**fields)

        async with self.transaction() as session:
            row = await SettingsRepo.create(session, **fields)
            record = SettingsRecord.model_validate(row)
        logger.info(
            "Settings added",
            extra={"event": "record_added", "collection": "user_settings", "record_id": record.id},
        )
        return record

    async def update_settings(self, data: SettingsIn | Mapping[str, Any]) -> SettingsRecord:
        settings_in = _require_id(coerce_input(SettingsIn, data))
        now = self.now()
        fields = settings_in.model_dump(exclude={"id", "user_id", "created_at"})
        fields["updated_at"] = now

        if not self.available:
            return SettingsRecord(
                **{
                    **settings_in.model_dump(),
                    **fields,
                    "created_at": settings_in.created_at or now,
                }
            )

        async with self.transaction() as session:
            row = await SettingsRepo.update(session, settings_in.id, **fields)
            if row is None:
                raise NotFound(
                    "err_not_found", collection="user_settings", record_id=settings_in.id
                )
            record = SettingsRecord.model_validate(row)
        logger.info(
            "Settings updated",
            extra={
                "event": "record_updated",
                "collection": "user_settings",
                "record_id": record.id,
            },
        )
        return record

    async def delete_settings(self, record_id: str) -> bool:
        return await self._delete(SettingsRepo, "user_settings", record_id)

    async def get_settings(self, user_id: str | None = None) -> SettingsRecord | None:
        if not self.available:
            return None
        async with self.transaction() as session:
            row = await SettingsRepo.first(session, user_id)
            return SettingsRecord.model_validate(row) if row is not None else None

    # -------------------------------------------------------------------------
    async def _delete(self, repo: Any, collection: str, record_id: str) -> bool:
        if not self.available:
            return True
        async with self.transaction() as session:
            removed = await repo.delete(session, record_id)
        logger.info(
            "Record deleted",
            extra={
                "event": "record_deleted",
                "collection": collection,
                "record_id": record_id,
                "count": removed,
            },
        )
        return True


def _require_id(model: _M) -> _M:
    if not getattr(model, "id", None):
        raise ValidationFailure("err_invalid_input", detail="id: Field required")
    return model
