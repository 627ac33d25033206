"""Tests for database engine setup and initialization."""

from pathlib import Path

from sqlalchemy import inspect, text

from prolink.infrastructure.database.engine import (
    DATA_DIRNAME,
    DB_FILENAME,
    create_db_engine,
    init_database,
)


class TestCreateDbEngine:
    def test_wal_mode_enabled(self, tmp_path: Path) -> None:
        engine = create_db_engine(tmp_path / "test.db")
        with engine.connect() as conn:
            assert conn.execute(text("PRAGMA journal_mode")).scalar() == "wal"
        engine.dispose()

    def test_busy_timeout_applied(self, tmp_path: Path) -> None:
        engine = create_db_engine(tmp_path / "test.db", busy_timeout_ms=1234)
        with engine.connect() as conn:
            assert conn.execute(text("PRAGMA busy_timeout")).scalar() == 1234
        engine.dispose()

    def test_foreign_keys_enabled(self, tmp_path: Path) -> None:
        engine = create_db_engine(tmp_path / "test.db")
        with engine.connect() as conn:
            assert conn.execute(text("PRAGMA foreign_keys")).scalar() == 1
        engine.dispose()

    def test_reads_share_one_snapshot(self, tmp_path: Path) -> None:
        engine = create_db_engine(tmp_path / "test.db")
        with engine.begin() as conn:
            conn.exec_driver_sql("CREATE TABLE t (x INTEGER)")
        with engine.connect() as reader:
            assert reader.exec_driver_sql("SELECT count(*) FROM t").scalar() == 0
            with engine.begin() as writer:
                writer.exec_driver_sql("INSERT INTO t VALUES (1)")
            assert reader.exec_driver_sql("SELECT count(*) FROM t").scalar() == 0
        with engine.connect() as conn:
            assert conn.exec_driver_sql("SELECT count(*) FROM t").scalar() == 1
        engine.dispose()


class TestInitDatabase:
    def test_creates_db_file(self, tmp_path: Path) -> None:
        engine = init_database(tmp_path)
        assert (tmp_path / DATA_DIRNAME / DB_FILENAME).exists()
        engine.dispose()

    def test_creates_all_tables(self, tmp_path: Path) -> None:
        engine = init_database(tmp_path)
        tables = set(inspect(engine).get_table_names())
        assert {"profiles", "profile_connections", "invitations", "connections"} <= tables
        engine.dispose()

    def test_idempotent(self, tmp_path: Path) -> None:
        init_database(tmp_path).dispose()
        engine = init_database(tmp_path)
        with engine.connect() as conn:
            assert conn.execute(text("SELECT count(*) FROM invitations")).scalar() == 0
        engine.dispose()
