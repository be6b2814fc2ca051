"""Result storage: append-only audit trail of report entries, keyed by run_id.

Two backends share one logical table, sanity_tests(run_id, description,
result, error):
  SQLiteResultStore    local file, a fresh connection per operation
  PostgresResultStore  psycopg connection pool, one pooled connection per op

Driver errors are wrapped in StorageError and always propagate.
"""

from __future__ import annotations

import logging
import sqlite3
from contextlib import closing
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING, Protocol

import psycopg
from psycopg.rows import dict_row
from psycopg_pool import ConnectionPool

from .probes.models import ReportEntry

if TYPE_CHECKING:
    from .config import Settings

logger = logging.getLogger(__name__)

DB_PATH = Path(__file__).parent.parent / "data" / "sanity.db"


class StorageError(Exception):
    """Raised when the result store cannot write or read entries."""

    def __init__(self, operation: str, detail: str) -> None:
        self.operation = operation
        self.detail = detail
        super().__init__(f"Storage {operation} failed: {detail}")


class ResultStore(Protocol):
    def append(self, entry: ReportEntry) -> None: ...

    def query_by_run(self, run_id: str) -> list[ReportEntry]: ...

    def close(self) -> None: ...


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


# ── SQLite ───────────────────────────────────────────────────────────────────


class SQLiteResultStore:
    """SQLite-backed result store."""

    def __init__(self, db_path: Path | str | None = None) -> None:
        self._db_path = Path(db_path or DB_PATH)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_db()

    def _conn(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self._db_path))
        try:
            conn.row_factory = sqlite3.Row
            conn.execute("PRAGMA journal_mode=WAL")
        except sqlite3.Error:
            conn.close()
            raise
        return conn

    def _init_db(self) -> None:
        try:
            with closing(self._conn()) as conn:
                conn.executescript("""
                    CREATE TABLE IF NOT EXISTS sanity_tests (
                        id          INTEGER PRIMARY KEY AUTOINCREMENT,
                        run_id      TEXT NOT NULL,
                        description TEXT NOT NULL,
                        result      TEXT NOT NULL CHECK (result IN ('Pass', 'Fail')),
                        error       TEXT,
                        created_at  TEXT NOT NULL
                    );

                    CREATE INDEX IF NOT EXISTS idx_sanity_tests_run
                        ON sanity_tests (run_id);
                """)
        except sqlite3.Error as e:
            raise StorageError("init", str(e)) from e

    def append(self, entry: ReportEntry) -> None:
        """Insert one entry. Entries are never updated or deleted."""
        try:
            with closing(self._conn()) as conn, conn:
                conn.execute(
                    "INSERT INTO sanity_tests (run_id, description, result, error, created_at) "
                    "VALUES (?, ?, ?, ?, ?)",
                    (entry.run_id, entry.description, entry.result.value, entry.error, _now()),
                )
        except sqlite3.Error as e:
            raise StorageError("write", str(e)) from e

    def query_by_run(self, run_id: str) -> list[ReportEntry]:
        """All entries of a run in insertion order; [] for an unknown run."""
        try:
            with closing(self._conn()) as conn:
                rows = conn.execute(
                    "SELECT run_id, description, result, error FROM sanity_tests "
                    "WHERE run_id = ? ORDER BY id",
                    (run_id,),
                ).fetchall()
        except sqlite3.Error as e:
            raise StorageError("read", str(e)) from e
        return [ReportEntry.from_row(dict(r)) for r in rows]

    def close(self) -> None:
        # connections are per-operation
        pass


# ── PostgreSQL ───────────────────────────────────────────────────────────────


class PostgresResultStore:
    """PostgreSQL-backed result store using a psycopg connection pool."""

    def __init__(self, conninfo: str, min_size: int = 1, max_size: int = 5) -> None:
        logger.info("Opening result store pool (min=%d, max=%d)", min_size, max_size)
        try:
            self._pool = ConnectionPool(
                conninfo=conninfo,
                min_size=min_size,
                max_size=max_size,
                timeout=30,
                kwargs={"row_factory": dict_row},
                open=True,
            )
            self._init_db()
        except psycopg.Error as e:
            raise StorageError("init", str(e)) from e

    def _init_db(self) -> None:
        with self._pool.connection() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS sanity_tests (
                    id          BIGSERIAL PRIMARY KEY,
                    run_id      TEXT NOT NULL,
                    description TEXT NOT NULL,
                    result      TEXT NOT NULL CHECK (result IN ('Pass', 'Fail')),
                    error       TEXT,
                    created_at  TIMESTAMPTZ NOT NULL DEFAULT now()
                )
            """)
            conn.execute(
                "CREATE INDEX IF NOT EXISTS idx_sanity_tests_run ON sanity_tests (run_id)"
            )

    def append(self, entry: ReportEntry) -> None:
        try:
            with self._pool.connection() as conn:
                conn.execute(
                    "INSERT INTO sanity_tests (run_id, description, result, error) "
                    "VALUES (%s, %s, %s, %s)",
                    (entry.run_id, entry.description, entry.result.value, entry.error),
                )
        except psycopg.Error as e:
            raise StorageError("write", str(e)) from e

    def query_by_run(self, run_id: str) -> list[ReportEntry]:
        try:
            with self._pool.connection() as conn:
                rows = conn.execute(
                    "SELECT run_id, description, result, error FROM sanity_tests "
                    "WHERE run_id = %s ORDER BY id",
                    (run_id,),
                ).fetchall()
        except psycopg.Error as e:
            raise StorageError("read", str(e)) from e
        return [ReportEntry.from_row(r) for r in rows]

    def close(self) -> None:
        logger.info("Closing result store pool")
        self._pool.close()


def create_store(settings: Settings) -> ResultStore:
    """Build the result store selected by configuration."""
    if settings.result_store == "postgres":
        return PostgresResultStore(settings.database_url)
    if settings.result_store == "sqlite":
        return SQLiteResultStore(settings.sqlite_path or None)
    raise ValueError(f"Unknown result store: {settings.result_store}")
