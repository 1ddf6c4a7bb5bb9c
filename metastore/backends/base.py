# ==============================================
# RelationalBackend (contract)
# ==============================================
#
# PURPOSE:
#   What the SQL metadata store needs from a database driver.
#   Any class with these members can be passed to SQLMetadataStore;
#   no inheritance required.
#
# MEMBERS:
# --------
# - placeholder: str
#     Parameter marker of the driver ("%s" for pymysql, "?" for sqlite3).
#
# - fetch_all(query: str, params: tuple = None) -> list[tuple]
#     Run a parameterized SELECT and return every row.
#
# - execute(query: str, params: tuple = None) -> int
#     Run a parameterized write, commit, return affected row count.
#
# - insert_or_update(table: str, keys: list[str], values: dict) -> None
#     Atomic upsert keyed on the unique columns `keys`. Columns of
#     `values` not in `keys` are overwritten on conflict.
#
# - ensure_metadata_table(table: str) -> None
#     Create the (_set, _entity, _value) table with UNIQUE(_set, _entity)
#     if it does not exist yet.
#
# FAILURES:
#   Every member raises BackendError (driver exception chained).
#   Each call acquires and releases its own connection.
#
# ==============================================

import re
from typing import Any, Dict, List, Optional, Protocol, Sequence, Tuple, runtime_checkable

SET_COLUMN = "_set"
ENTITY_COLUMN = "_entity"
VALUE_COLUMN = "_value"
KEY_COLUMNS = [SET_COLUMN, ENTITY_COLUMN]

_IDENTIFIER_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


def check_identifier(name: str) -> str:
    """Table and column names are interpolated into SQL, so only plain identifiers pass."""
    if not isinstance(name, str) or not _IDENTIFIER_RE.match(name):
        raise ValueError(f"Invalid SQL identifier: {name!r}")
    return name


def build_upsert_parts(keys: Sequence[str], values: Dict[str, Any]) -> Tuple[List[str], List[str]]:
    """Split the columns of an upsert into (all columns, columns to update)."""
    columns = [check_identifier(c) for c in values]
    missing = [k for k in keys if k not in values]
    if missing:
        raise ValueError(f"Upsert values lack key columns: {', '.join(missing)}")
    updates = [c for c in columns if c not in keys]
    return columns, updates


@runtime_checkable
class RelationalBackend(Protocol):
    placeholder: str

    def fetch_all(self, query: str, params: Optional[tuple] = None) -> List[tuple]:
        ...

    def execute(self, query: str, params: Optional[tuple] = None) -> int:
        ...

    def insert_or_update(self, table: str, keys: Sequence[str], values: Dict[str, Any]) -> None:
        ...

    def ensure_metadata_table(self, table: str) -> None:
        ...
