"""Alembic migrations produce the same schema as the ORM models."""

from __future__ import annotations

import sqlite3
from pathlib import Path

from alembic import command
from alembic.config import Config

from foodabuser.db.models import Base

_ROOT = Path(__file__).resolve().parents[1]


def _config(db_path: Path) -> Config:
    cfg = Config()
    cfg.set_main_option("script_location", str(_ROOT / "alembic"))
    cfg.set_main_option("sqlalchemy.url", f"sqlite+aiosqlite:///{db_path}")
    cfg.attributes["url_locked"] = True
    return cfg


def _schema(db_path: Path) -> dict[str, set[str]]:
    conn = sqlite3.connect(db_path)
    try:
        tables = [
            row[0]
            for row in conn.execute("SELECT name FROM sqlite_master WHERE type = 'table'")
            if row[0] != "alembic_version"
        ]
        return {t: {row[1] for row in conn.execute(f"PRAGMA table_info({t})")} for t in tables}
    finally:
        conn.close()


def _indexes(db_path: Path) -> set[str]:
    conn = sqlite3.connect(db_path)
    try:
        rows = conn.execute(
            "SELECT name FROM sqlite_master WHERE type = 'index' AND sql IS NOT NULL"
        )
        return {row[0] for row in rows}
    finally:
        conn.close()


class TestMigrations:
    def test_upgrade_matches_models(self, tmp_path):
        db_path = tmp_path / "migrated.db"
        command.upgrade(_config(db_path), "head")

        expected = {
            name: {column.name for column in table.columns}
            for name, table in Base.metadata.tables.items()
        }
        assert _schema(db_path) == expected
        assert _indexes(db_path) == {
            "idx_meals_meal_time",
            "idx_meals_category",
            "idx_water_records_date",
            "idx_weight_records_date",
        }

    def test_downgrade_removes_tables(self, tmp_path):
        db_path = tmp_path / "migrated.db"
        cfg = _config(db_path)
        command.upgrade(cfg, "head")
        command.downgrade(cfg, "base")
        assert _schema(db_path) == {}
