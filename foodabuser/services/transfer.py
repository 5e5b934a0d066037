"""Export / import of the whole record store as one JSON document.

Document layout::

    {
      "version": "2.0.0",
      "exportDate": "2025-01-01T10:00:00.000000Z",
      "data": {
        "meals": [...],
        "water_records": [...],
        "weight_records": [...],
        "user_settings": [...]
      }
    }

Import runs in a single transaction: any failure (bad row, duplicate id,
driver error) rolls back everything, including the overwrite clear.
"""

from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path
from typing import Any, Mapping

from foodabuser.core.errors import ValidationFailure
from foodabuser.core.time import format_timestamp
from foodabuser.core.version import EXPORT_FORMAT_VERSION
from foodabuser.db.repos import MealRepo, SettingsRepo, WaterRepo, WeightRepo
from foodabuser.db.schemas import MealRecord, SettingsRecord, WaterRecord, WeightRecord
from foodabuser.services.store import RecordStore

logger = logging.getLogger(__name__)

COLLECTIONS = ("meals", "water_records", "weight_records", "user_settings")
BACKUP_PREFIX = "foodabuser_backup_"


def _document(store: RecordStore, data: dict[str, list[dict[str, Any]]]) -> dict[str, Any]:
    return {
        "version": EXPORT_FORMAT_VERSION,
        "exportDate": format_timestamp(store.now()),
        "data": data,
    }


# ---------------------------------------------------------------------------
# Export
# ---------------------------------------------------------------------------
async def export_all(store: RecordStore) -> dict[str, Any]:
    """Read every row of every collection into an export document."""
    if not store.available:
        return _document(store, {name: [] for name in COLLECTIONS})

    async with store.transaction() as session:
        meals = await MealRepo.list_all(session)
        water = await WaterRepo.list_all(session)
        weight = await WeightRepo.list_all(session)
        settings = await SettingsRepo.list_all(session)
        data = {
            "meals": [MealRecord.model_validate(r).model_dump(mode="json") for r in meals],
            "water_records": [WaterRecord.model_validate(r).model_dump(mode="json") for r in water],
            "weight_records": [
                WeightRecord.model_validate(r).model_dump(mode="json") for r in weight
            ],
            "user_settings": [
                SettingsRecord.model_validate(r).model_dump(mode="json") for r in settings
            ],
        }

    logger.info(
        "Store exported",
        extra={"event": "export_done", "count": sum(len(v) for v in data.values())},
    )
    return _document(store, data)


# ---------------------------------------------------------------------------
# Import
# ---------------------------------------------------------------------------
def _rows(data: Mapping[str, Any], name: str) -> list[Any]:
    rows = data.get(name)
    if rows is None:
        return []
    if not isinstance(rows, list):
        raise ValidationFailure("err_backup_invalid", detail=f"{name} must be a list")
    return rows


async def import_all(
    store: RecordStore, document: Mapping[str, Any], overwrite: bool = False
) -> bool:
    """Restore *document* into the store.

    With *overwrite* every collection is cleared first.  Otherwise meals,
    water and weight rows are inserted (a duplicate id aborts the whole
    import) and settings are inserted or replaced by id.

    Returns:
        ``True`` on success; ``False`` when the store is unavailable.

    Raises:
        ValidationFailure: The document or one of its rows is malformed.
        StorageFailure: The database rejected the import; nothing was kept.
    """
    if not store.available:
        logger.warning(
            "Import skipped: store unavailable",
            extra={"event": "import_skipped", "degraded": True},
        )
        return False

    data = document.get("data") if isinstance(document, Mapping) else None
    if data is None:
        data = {}
    if not isinstance(data, Mapping):
        raise ValidationFailure("err_backup_invalid", detail="data must be an object")

    count = 0
    async with store.transaction() as session:
        if overwrite:
            for repo in (MealRepo, WaterRepo, WeightRepo, SettingsRepo):
                await repo.delete_all(session)

        for row in _rows(data, "meals"):
            await MealRepo.create(session, **store.meal_fields(row))
            count += 1
        for row in _rows(data, "water_records"):
            await WaterRepo.create(session, **store.water_fields(row))
            count += 1
        for row in _rows(data, "weight_records"):
            await WeightRepo.create(session, **store.weight_fields(row))
            count += 1
        for row in _rows(data, "user_settings"):
            await SettingsRepo.upsert(session, **store.settings_fields(row))
            count += 1

    logger.info(
        "Store imported",
        extra={"event": "import_done", "overwrite": overwrite, "count": count},
    )
    return True


async def clear_all(store: RecordStore) -> None:
    """Delete every row of every collection; the schema stays."""
    if not store.available:
        return
    async with store.transaction() as session:
        for repo in (MealRepo, WaterRepo, WeightRepo, SettingsRepo):
            await repo.delete_all(session)
    logger.warning("All records deleted", extra={"event": "store_cleared"})


# ---------------------------------------------------------------------------
# Backup files
# ---------------------------------------------------------------------------
def backup_filename(store: RecordStore) -> str:
    return f"{BACKUP_PREFIX}{store.local_now().date().isoformat()}.json"


async def write_backup(store: RecordStore, directory: Path | None = None) -> Path:
    """Write the export document to ``foodabuser_backup_YYYY-MM-DD.json``.

    An existing backup of the same day is replaced.
    """
    document = await export_all(store)
    directory = Path(directory) if directory is not None else store.backup_dir
    path = directory / backup_filename(store)
    payload = json.dumps(document, ensure_ascii=False, indent=2)

    def _write() -> None:
        directory.mkdir(parents=True, exist_ok=True)
        tmp = path.with_suffix(".json.tmp")
        tmp.write_text(payload, encoding="utf-8")
        tmp.replace(path)

    await asyncio.to_thread(_write)
    logger.info("Backup written", extra={"event": "backup_written"})
    return path


async def read_backup(path: Path) -> dict[str, Any]:
    """Parse a backup file.

    Raises:
        ValidationFailure: Not JSON, or no ``data`` object inside.
    """
    text = await asyncio.to_thread(Path(path).read_text, encoding="utf-8")
    try:
        document = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ValidationFailure("err_backup_invalid", detail=exc.msg) from exc
    if not isinstance(document, dict) or not isinstance(document.get("data"), dict):
        raise ValidationFailure("err_backup_invalid", detail="missing data object")
    return document
