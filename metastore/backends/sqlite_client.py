# ==============================================
# SQLiteClient
# ==============================================
#
# PURPOSE:
#   RelationalBackend over a local SQLite file. Used for single-host
#   deployments and as the real database in the test suite.
#
# CLASS: SQLiteClient
# -------------------
#   Holds only the file path. A connection is opened per call and
#   closed on every exit path, so the client can be shared between
#   threads.
#
#   - insert_or_update() uses
#       INSERT ... ON CONFLICT(<keys>) DO UPDATE SET col = excluded.col
#     which is atomic on the UNIQUE(_set, _entity) constraint.
#   - `timeout` is how long a writer waits on a locked database
#     before failing, which is what makes concurrent upserts of the
#     same key queue up instead of erroring.
#
#   ":memory:" is not supported: each call would see a fresh database.
#
# ==============================================

import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Sequence

from metastore.backends.base import build_upsert_parts, check_identifier
from metastore.errors import BackendError


class SQLiteClient:
    placeholder = "?"

    def __init__(self, path: str, timeout: float = 30.0):
        if str(path) == ":memory:":
            raise ValueError("SQLiteClient needs a database file, not :memory:")
        self.path = Path(path)
        self.timeout = timeout

    def __repr__(self) -> str:
        return f"SQLiteClient(path={str(self.path)!r})"

    @contextmanager
    def _connect(self, operation: str) -> Iterator[sqlite3.Connection]:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            conn = sqlite3.connect(str(self.path), timeout=self.timeout)
        except (sqlite3.Error, OSError) as e:
            raise BackendError(operation, f"cannot open {self.path}: {e}") from e
        try:
            yield conn
        finally:
            conn.close()

    def fetch_all(self, query: str, params: Optional[tuple] = None) -> List[tuple]:
        with self._connect("fetch_all") as conn:
            try:
                return conn.execute(query, params or ()).fetchall()
            except sqlite3.Error as e:
                raise BackendError("fetch_all", str(e)) from e

    def execute(self, query: str, params: Optional[tuple] = None) -> int:
        with self._connect("execute") as conn:
            try:
                cursor = conn.execute(query, params or ())
                conn.commit()
                return cursor.rowcount
            except sqlite3.Error as e:
                conn.rollback()
                raise BackendError("execute", str(e)) from e

    def insert_or_update(self, table: str, keys: Sequence[str], values: Dict[str, Any]) -> None:
        check_identifier(table)
        columns, updates = build_upsert_parts(keys, values)
        placeholders = ", ".join([self.placeholder] * len(columns))
        if updates:
            update_clause = "DO UPDATE SET " + ", ".join(f"{c} = excluded.{c}" for c in updates)
        else:
            update_clause = "DO NOTHING"
        query = (
            f"INSERT INTO {table} ({', '.join(columns)}) "
            f"VALUES ({placeholders}) "
            f"ON CONFLICT({', '.join(keys)}) {update_clause}"
        )
        with self._connect("insert_or_update") as conn:
            try:
                conn.execute(query, tuple(values[c] for c in columns))
                conn.commit()
            except sqlite3.Error as e:
                conn.rollback()
                raise BackendError("insert_or_update", str(e)) from e

    def ensure_metadata_table(self, table: str) -> None:
        check_identifier(table)
        with self._connect("ensure_metadata_table") as conn:
            try:
                conn.execute(
                    f"""CREATE TABLE IF NOT EXISTS {table} (
                        _set TEXT NOT NULL,
                        _entity TEXT NOT NULL,
                        _value TEXT NOT NULL,
                        UNIQUE (_set, _entity)
                    )"""
                )
                conn.commit()
            except sqlite3.Error as e:
                raise BackendError("ensure_metadata_table", str(e)) from e
