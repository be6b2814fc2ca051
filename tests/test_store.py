"""Tests for the SQLite result store."""

from __future__ import annotations

import sqlite3
from contextlib import closing
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from sanity_service.config import Settings
from sanity_service.probes.models import ReportEntry, Result
from sanity_service.store import SQLiteResultStore, StorageError, create_store


class TestSQLiteResultStore:
    def test_append_and_query(self, store: SQLiteResultStore) -> None:
        store.append(ReportEntry.passed("run-1", "health"))
        store.append(ReportEntry.failed("run-1", "creds", "Expected status 200, but got 503"))

        entries = store.query_by_run("run-1")
        assert len(entries) == 2
        assert entries[0] == ReportEntry.passed("run-1", "health")
        assert entries[1].result is Result.FAIL
        assert entries[1].error == "Expected status 200, but got 503"

    def test_unknown_run_is_empty(self, store: SQLiteResultStore) -> None:
        assert store.query_by_run("no-such-run") == []

    def test_runs_are_isolated(self, store: SQLiteResultStore) -> None:
        store.append(ReportEntry.passed("run-1", "health"))
        store.append(ReportEntry.passed("run-2", "health"))
        assert [e.run_id for e in store.query_by_run("run-2")] == ["run-2"]

    def test_insertion_order(self, store: SQLiteResultStore) -> None:
        for name in ("c", "a", "b"):
            store.append(ReportEntry.passed("run-1", name))
        assert [e.description for e in store.query_by_run("run-1")] == ["c", "a", "b"]

    def test_query_is_idempotent(self, store: SQLiteResultStore) -> None:
        store.append(ReportEntry.failed("run-1", "health", "boom"))
        assert store.query_by_run("run-1") == store.query_by_run("run-1")

    def test_null_error_roundtrip(self, store: SQLiteResultStore) -> None:
        store.append(ReportEntry.passed("run-1", "health"))
        with closing(store._conn()) as conn, conn:
            row = conn.execute("SELECT error FROM sanity_tests").fetchone()
        assert row["error"] is None

    def test_survives_reopen(self, tmp_path: Path) -> None:
        SQLiteResultStore(tmp_path / "s.db").append(ReportEntry.passed("run-1", "health"))
        assert len(SQLiteResultStore(tmp_path / "s.db").query_by_run("run-1")) == 1

    def test_close_is_harmless(self, store: SQLiteResultStore) -> None:
        store.close()
        store.append(ReportEntry.passed("run-1", "health"))
        assert store.query_by_run("run-1")

    def test_write_error_wrapped(self, store: SQLiteResultStore) -> None:
        with closing(store._conn()) as conn, conn:
            conn.execute("DROP TABLE sanity_tests")
        with pytest.raises(StorageError) as exc_info:
            store.append(ReportEntry.passed("run-1", "health"))
        assert exc_info.value.operation == "write"
        assert isinstance(exc_info.value.__cause__, sqlite3.Error)

    def test_read_error_wrapped(self, store: SQLiteResultStore) -> None:
        with closing(store._conn()) as conn, conn:
            conn.execute("DROP TABLE sanity_tests")
        with pytest.raises(StorageError) as exc_info:
            store.query_by_run("run-1")
        assert exc_info.value.operation == "read"

    def test_connections_are_closed(self, tmp_path: Path) -> None:
        conn = MagicMock()
        conn.execute.return_value.fetchall.return_value = []
        with patch("sanity_service.store.sqlite3.connect", return_value=conn):
            s = SQLiteResultStore(tmp_path / "s.db")
            s.append(ReportEntry.passed("run-1", "health"))
            s.query_by_run("run-1")
        assert conn.close.call_count == 3

    def test_pragma_error_closes_connection(self, store: SQLiteResultStore) -> None:
        conn = MagicMock()
        conn.execute.side_effect = sqlite3.OperationalError("database is locked")
        with patch("sanity_service.store.sqlite3.connect", return_value=conn):
            with pytest.raises(StorageError) as exc_info:
                store.append(ReportEntry.passed("run-1", "health"))
        assert exc_info.value.operation == "write"
        assert "database is locked" in str(exc_info.value)
        conn.close.assert_called_once()


class TestCreateStore:
    def test_sqlite(self, tmp_path: Path) -> None:
        s = Settings(result_store="sqlite", sqlite_path=str(tmp_path / "x.db"))
        assert isinstance(create_store(s), SQLiteResultStore)

    def test_postgres(self) -> None:
        s = Settings(result_store="postgres", database_url="postgresql://db/sanity")
        with patch("sanity_service.store.PostgresResultStore") as pg:
            create_store(s)
        pg.assert_called_once_with("postgresql://db/sanity")

    def test_unknown(self) -> None:
        with pytest.raises(ValueError):
            create_store(Settings(result_store="mongo"))


class TestPostgresResultStore:
    @pytest.fixture
    def pool(self):
        with patch("sanity_service.store.ConnectionPool") as pool_cls:
            yield pool_cls.return_value

    @pytest.fixture
    def pg_store(self, pool):
        from sanity_service.store import PostgresResultStore

        return PostgresResultStore("postgresql://db/sanity")

    def test_creates_table(self, pool, pg_store) -> None:
        conn = pool.connection.return_value.__enter__.return_value
        statements = [c.args[0] for c in conn.execute.call_args_list]
        assert any("CREATE TABLE IF NOT EXISTS sanity_tests" in s for s in statements)

    def test_append(self, pool, pg_store) -> None:
        conn = pool.connection.return_value.__enter__.return_value
        conn.execute.reset_mock()
        pg_store.append(ReportEntry.failed("run-1", "health", "boom"))
        sql, params = conn.execute.call_args.args
        assert sql.startswith("INSERT INTO sanity_tests")
        assert params == ("run-1", "health", "Fail", "boom")

    def test_query(self, pool, pg_store) -> None:
        conn = pool.connection.return_value.__enter__.return_value
        conn.execute.return_value.fetchall.return_value = [
            {"run_id": "run-1", "description": "health", "result": "Pass", "error": None},
        ]
        assert pg_store.query_by_run("run-1") == [ReportEntry.passed("run-1", "health")]

    def test_write_error_wrapped(self, pool, pg_store) -> None:
        import psycopg

        conn = pool.connection.return_value.__enter__.return_value
        conn.execute.side_effect = psycopg.OperationalError("server closed the connection")
        with pytest.raises(StorageError) as exc_info:
            pg_store.append(ReportEntry.passed("run-1", "health"))
        assert exc_info.value.operation == "write"
        assert "server closed" in str(exc_info.value)

    def test_close(self, pool, pg_store) -> None:
        pg_store.close()
        pool.close.assert_called_once()
