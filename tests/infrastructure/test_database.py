"""Tests for SQLite engine setup and the store schema."""

from __future__ import annotations

from pathlib import Path

from sqlalchemy import inspect

from lineagectl.infrastructure.database.engine import init_database


class TestInitDatabase:
    def test_creates_parent_directory_and_tables(self, tmp_path: Path) -> None:
        db_path = tmp_path / ".lineagectl" / "lineagectl.db"
        engine = init_database(db_path)
        try:
            assert db_path.exists()
            tables = set(inspect(engine).get_table_names())
            assert {"projects", "project_index"} <= tables
        finally:
            engine.dispose()

    def test_idempotent(self, tmp_path: Path) -> None:
        db_path = tmp_path / "store.db"
        init_database(db_path).dispose()
        engine = init_database(db_path)
        try:
            columns = {c["name"] for c in inspect(engine).get_columns("project_index")}
            assert "position" in columns
            assert "planned_node_count" in columns
        finally:
            engine.dispose()

    def test_wal_mode(self, tmp_path: Path) -> None:
        engine = init_database(tmp_path / "store.db")
        try:
            with engine.connect() as conn:
                mode = conn.exec_driver_sql("PRAGMA journal_mode").scalar()
            assert mode == "wal"
        finally:
            engine.dispose()
