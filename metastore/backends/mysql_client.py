# ==============================================
# MySQLClient
# ==============================================
#
# PURPOSE:
#   RelationalBackend over MySQL / MariaDB using pymysql.
#
# CLASS: MySQLClient
# ------------------
#   Holds connection params only. Every call opens its own
#   connection and closes it before returning (also on errors),
#   so concurrent callers never share a cursor.
#
#   Constructor:
#   ------------
#   - __init__(host, port, user, password, database)
#       Store connection params. Don't connect yet.
#
#   Methods:
#   --------
#   - ensure_metadata_table(table: str) -> None
#       CREATE DATABASE IF NOT EXISTS, then CREATE TABLE IF NOT EXISTS
#       with UNIQUE KEY (_set, _entity). Key columns use the binary
#       collation so keys differing only in case or accents stay distinct.
#
#   - insert_or_update(table, keys, values) -> None
#       INSERT ... ON DUPLICATE KEY UPDATE col = VALUES(col).
#       MySQL resolves the unique-key conflict inside one statement,
#       so concurrent upserts of one key never see a duplicate-key error.
#
#   - execute(query: str, params: tuple = None) -> int
#       Run a write, commit, return affected rows. Rollback on error.
#
#   - fetch_all(query: str, params: tuple = None) -> list[tuple]
#       Execute SELECT and return rows as tuples.
#
#   Any pymysql.MySQLError is re-raised as BackendError.
#
# ==============================================

from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional, Sequence

import pymysql

from metastore.backends.base import build_upsert_parts, check_identifier
from metastore.errors import BackendError


class MySQLClient:
    placeholder = "%s"

    def __init__(self, host, port, user, password, database, connect_timeout: int = 10):
        self.host = host
        self.port = port
        self.user = user
        self.password = password
        self.database = check_identifier(database)
        self.connect_timeout = connect_timeout

    def __repr__(self) -> str:
        return f"MySQLClient(host={self.host!r}, port={self.port}, database={self.database!r})"

    @contextmanager
    def _connect(self, operation: str, use_database: bool = True) -> Iterator[Any]:
        try:
            connection = pymysql.connect(
                host=self.host,
                port=self.port,
                user=self.user,
                password=self.password,
                database=self.database if use_database else None,
                charset="utf8mb4",
                autocommit=False,
                connect_timeout=self.connect_timeout,
            )
        except pymysql.MySQLError as e:
            raise BackendError(operation, f"cannot connect to {self.host}:{self.port}: {e}") from e
        try:
            yield connection
        finally:
            connection.close()

    def _write(self, operation: str, query: str, params: Optional[tuple]) -> int:
        with self._connect(operation) as connection:
            try:
                with connection.cursor() as cursor:
                    affected = cursor.execute(query, params)
                connection.commit()
                return affected
            except pymysql.MySQLError as e:
                connection.rollback()
                raise BackendError(operation, str(e)) from e

    def ensure_metadata_table(self, table: str) -> None:
        check_identifier(table)
        with self._connect("ensure_metadata_table", use_database=False) as connection:
            try:
                with connection.cursor() as cursor:
                    cursor.execute(
                        f"CREATE DATABASE IF NOT EXISTS {self.database} "
                        "CHARACTER SET utf8mb4"
                    )
                    cursor.execute(
                        f"CREATE TABLE IF NOT EXISTS {self.database}.{table} ("
                        "_set VARCHAR(255) COLLATE utf8mb4_bin NOT NULL, "
                        "_entity VARCHAR(255) COLLATE utf8mb4_bin NOT NULL, "
                        "_value LONGTEXT NOT NULL, "
                        "UNIQUE KEY uniq_set_entity (_set, _entity)"
                        ") ENGINE=InnoDB DEFAULT CHARSET=utf8mb4 COLLATE=utf8mb4_bin"
                    )
                connection.commit()
            except pymysql.MySQLError as e:
                connection.rollback()
                raise BackendError("ensure_metadata_table", str(e)) from e

    def insert_or_update(self, table: str, keys: Sequence[str], values: Dict[str, Any]) -> None:
        check_identifier(table)
        columns, updates = build_upsert_parts(keys, values)
        placeholders = ", ".join([self.placeholder] * len(columns))
        column_names = ", ".join(columns)

        if updates:
            update_clause = ", ".join(f"{col} = VALUES({col})" for col in updates)
        else:
            # Nothing but key columns: a no-op update keeps the row as is
            update_clause = f"{columns[0]} = {columns[0]}"

        query = (
            f"INSERT INTO {table} ({column_names}) "
            f"VALUES ({placeholders}) "
            f"ON DUPLICATE KEY UPDATE {update_clause}"
        )
        self._write("insert_or_update", query, tuple(values[c] for c in columns))

    def execute(self, query: str, params: Optional[tuple] = None) -> int:
        return self._write("execute", query, params)

    def fetch_all(self, query: str, params: Optional[tuple] = None) -> List[tuple]:
        with self._connect("fetch_all") as connection:
            try:
                with connection.cursor() as cursor:
                    cursor.execute(query, params)
                    return list(cursor.fetchall())
            except pymysql.MySQLError as e:
                raise BackendError("fetch_all", str(e)) from e
