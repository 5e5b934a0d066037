"""Shared test fixtures.

Every test gets its own SQLite file and key/value directory under
``tmp_path`` and a controllable clock, so nothing leaks between tests
and time-dependent behaviour (periods, lockouts) is deterministic.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

from foodabuser.core.config import Settings
from foodabuser.services.store import RecordStore


class FixedClock:
    """Callable clock that only moves when told to."""

    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **delta: float) -> datetime:
        self.now = self.now + timedelta(**delta)
        return self.now


def make_settings(tmp_path: Path, **overrides: object) -> Settings:
    """Settings isolated in *tmp_path* with a cheap PIN hash."""
    env: dict[str, object] = {
        "DATABASE_URL": f"sqlite+aiosqlite:///{tmp_path / 'records.db'}",
        "DATA_DIR": tmp_path / "data",
        "SECURE_STORE_DIR": tmp_path / "secure",
        "BACKUP_DIR": tmp_path / "backups",
        "PIN_HASH_ITERATIONS": 1000,
        "TIMEZONE": "UTC",
        **overrides,
    }
    return Settings(_env_file=None, **env)  # type: ignore[arg-type]


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(datetime(2025, 1, 8, 10, 0, tzinfo=timezone.utc))


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return make_settings(tmp_path)


@pytest.fixture
async def store(settings: Settings, clock: FixedClock):
    """An opened record store on a fresh database file."""
    record_store = RecordStore(settings, clock=clock)
    await record_store.open()
    assert record_store.available
    yield record_store
    await record_store.close()


@pytest.fixture
async def degraded_store(tmp_path: Path, clock: FixedClock):
    """A store running with storage disabled."""
    record_store = RecordStore(make_settings(tmp_path, STORE_ENABLED=False), clock=clock)
    await record_store.open()
    yield record_store
    await record_store.close()


def meal_row(**overrides: object) -> dict:
    """Minimal meal input for tests."""
    return {
        "title": "Oatmeal",
        "category": "breakfast",
        "calories": 350,
        "protein": 12.0,
        "fat": 6.0,
        "carbs": 60.0,
        **overrides,
    }
